"""Pytest configuration and shared fixtures."""

from collections.abc import Iterator
from typing import Any
from unittest.mock import MagicMock

import httpx
import pytest
import structlog

from krucible.clients.krucible_client import KrucibleClient
from krucible.core.config import ClientConfig, PollingConfig

BASE_URL = "http://127.0.0.1:3000/api"
ACCOUNT_ID = "4ad69a63-bb6c-49a8-9c6f-6a166fb5acff"
ACCOUNT_URL = f"{BASE_URL}/accounts/{ACCOUNT_ID}"
API_KEY_ID = "146d98c4-327d-4a2d-b85a-49590246e136"
API_KEY_SECRET = "0da8afd2911904aa9bad8862a3e7478a"

SAMPLE_KUBECONFIG = b"""apiVersion: v1
kind: Config
clusters:
- name: krucible
  cluster:
    server: https://c-123.clusters.usekrucible.com
    insecure-skip-tls-verify: true
users:
- name: krucible
  user:
    token: cluster-token
contexts:
- name: krucible
  context:
    cluster: krucible
    user: krucible
current-context: krucible
"""


def make_cluster_payload(
    state: str = "ready",
    cluster_id: str = "c-123",
    display_name: str = "stuff",
    expires_at: str | None = "2024-01-01T13:00:00Z",
) -> dict[str, Any]:
    """Build a cluster as returned by the Krucible API."""
    return {
        "id": cluster_id,
        "displayName": display_name,
        "state": state,
        "connectionDetails": {"server": f"https://{cluster_id}.clusters.usekrucible.com"},
        "createdAt": "2024-01-01T12:00:00Z",
        "expiresAt": expires_at,
    }


def make_snapshot_payload(
    state: str = "pending", snapshot_id: str = "s-456", cluster_id: str = "c-123"
) -> dict[str, Any]:
    """Build a snapshot as returned by the Krucible API."""
    return {
        "id": snapshot_id,
        "clusterId": cluster_id,
        "state": state,
        "createdAt": "2024-01-01T12:30:00Z",
    }


class FakeKrucibleApi:
    """Scripted Krucible API served through an httpx.MockTransport.

    Responses are queued per (method, path) below the account URL. The last
    queued response of a route is repeated once the queue is drained; unknown
    routes answer 404.
    """

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self._routes: dict[tuple[str, str], list[dict[str, Any]]] = {}
        self._prefix = httpx.URL(ACCOUNT_URL).path

    def add(
        self,
        method: str,
        path: str,
        status_code: int,
        json: Any = None,
        content: bytes | None = None,
    ) -> None:
        response: dict[str, Any] = {"status_code": status_code}
        if content is not None:
            response["content"] = content
        elif json is not None:
            response["json"] = json
        self._routes.setdefault((method, path), []).append(response)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        if path.startswith(self._prefix):
            path = path[len(self._prefix) :]

        queue = self._routes.get((request.method, path))
        if not queue:
            return httpx.Response(404, text="not found")
        response = queue.pop(0) if len(queue) > 1 else queue[0]
        return httpx.Response(**response)

    def calls(self, method: str, path: str) -> int:
        url = ACCOUNT_URL + path
        return sum(1 for r in self.requests if r.method == method and str(r.url) == url)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


@pytest.fixture(autouse=True)
def reset_structlog() -> Iterator[None]:
    """Undo logging configuration done by a test."""
    yield
    structlog.reset_defaults()


@pytest.fixture
def client_config() -> ClientConfig:
    """Provide connection settings pointing at a local API."""
    return ClientConfig(
        base_url=BASE_URL,
        account_id=ACCOUNT_ID,
        api_key_id=API_KEY_ID,
        api_key_secret=API_KEY_SECRET,
    )


@pytest.fixture
def polling_config() -> PollingConfig:
    """Polling without delay between polls."""
    return PollingConfig(interval=0)


@pytest.fixture
def fake_api() -> FakeKrucibleApi:
    return FakeKrucibleApi()


@pytest.fixture
def mock_connector() -> MagicMock:
    """Stand-in for connect_cluster."""
    return MagicMock(name="connect_cluster")


@pytest.fixture
def krucible_client(
    client_config: ClientConfig,
    polling_config: PollingConfig,
    fake_api: FakeKrucibleApi,
    mock_connector: MagicMock,
) -> Iterator[KrucibleClient]:
    """Provide a KrucibleClient wired to the fake API."""
    client = KrucibleClient(
        client_config,
        polling=polling_config,
        connector=mock_connector,
        transport=fake_api.transport,
    )
    yield client
    client.close()


@pytest.fixture
def account_url() -> str:
    return ACCOUNT_URL


@pytest.fixture
def cluster_payload():
    """Factory for API cluster payloads."""
    return make_cluster_payload


@pytest.fixture
def snapshot_payload():
    """Factory for API snapshot payloads."""
    return make_snapshot_payload


@pytest.fixture
def sample_kubeconfig() -> bytes:
    return SAMPLE_KUBECONFIG
