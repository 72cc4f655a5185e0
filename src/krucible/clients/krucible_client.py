"""Krucible API client for cluster and snapshot provisioning."""

from __future__ import annotations

import json
from collections.abc import Callable
from typing import Any, TypeVar

import httpx
from pydantic import TypeAdapter, ValidationError

from krucible.clients.kubernetes_client import connect_cluster
from krucible.core.config import DEFAULT_BASE_URL, ClientConfig, PollingConfig
from krucible.core.exceptions import (
    DecodeError,
    InvalidArgumentError,
    TransportError,
    UnexpectedStatusError,
)
from krucible.core.models import (
    ApiModel,
    Cluster,
    CreateClusterConfig,
    CreateClusterResult,
    CreateSnapshotConfig,
    Snapshot,
)
from krucible.utils.logging import get_logger
from krucible.utils.polling import wait_for_cluster

logger = get_logger(__name__)

T = TypeVar("T")

_CLUSTER_LIST = TypeAdapter(list[Cluster])
_SNAPSHOT_LIST = TypeAdapter(list[Snapshot])


def resolve_base_url(base_url: str) -> str:
    """Return base_url if it is an absolute URL, otherwise the production URL.

    Args:
        base_url: Base URL supplied by the caller (may be empty)

    Returns:
        The base URL every request is built on
    """
    if not base_url:
        return DEFAULT_BASE_URL

    try:
        url = httpx.URL(base_url)
    except httpx.InvalidURL:
        return DEFAULT_BASE_URL

    if not url.is_absolute_url:
        return DEFAULT_BASE_URL
    return base_url


def build_account_url(base_url: str, account_id: str) -> str:
    """Build the account-scoped prefix shared by all API paths."""
    account_url = base_url.rstrip("/") + "/accounts"
    if account_id:
        account_url += f"/{account_id}"
    return account_url


def _require_id(value: str, name: str) -> None:
    if not value:
        raise InvalidArgumentError(f"{name} must be non-empty")


class KrucibleClient:
    """Client for a single Krucible account.

    All requests go through ``_request``, which is the only place the API key
    headers and the account prefix are applied.

    Example:
        with KrucibleClient(ClientConfig(account_id=..., api_key_id=..., api_key_secret=...)) as kc:
            result = kc.create_cluster(CreateClusterConfig(display_name="my-cluster"))
            pods = result.kube_client.get_pods("kube-system")
    """

    def __init__(
        self,
        config: ClientConfig,
        polling: PollingConfig | None = None,
        connector: Callable[[bytes], Any] | None = None,
        transport: httpx.BaseTransport | None = None,
    ):
        """Initialize Krucible client. Never performs network calls.

        Args:
            config: Connection settings; an empty or relative base URL falls
                back to the production API
            polling: How create_cluster waits for provisioning (optional)
            connector: Turns kubeconfig bytes into a cluster client (optional,
                defaults to connect_cluster)
            transport: httpx transport to send requests through (optional)
        """
        self.config = config.model_copy(update={"base_url": resolve_base_url(config.base_url)})
        self.account_url = build_account_url(self.config.base_url, self.config.account_id)
        self.polling = polling or PollingConfig()
        self.connector = connector or connect_cluster
        self._http = httpx.Client(transport=transport, timeout=self.config.request_timeout)

        logger.debug("krucible_client_initialized", account_url=self.account_url)

    def __enter__(self) -> KrucibleClient:
        return self

    def __exit__(self, *_: Any) -> None:
        self.close()

    def close(self) -> None:
        """Close the underlying HTTP connection pool."""
        self._http.close()

    def _headers(self) -> dict[str, str]:
        return {
            "Api-Key-Id": self.config.api_key_id,
            "Api-Key-Secret": self.config.api_key_secret,
            "Content-Type": "application/json",
            "Accept-Encoding": "gzip",
        }

    def _request(self, method: str, path: str, body: ApiModel | None = None) -> httpx.Response:
        """Send an authenticated request to an account-scoped path.

        Args:
            method: HTTP method
            path: Path below the account URL, starting with "/"
            body: Payload serialized as JSON (optional, empty body when None)

        Returns:
            The raw response, whatever its status

        Raises:
            InvalidArgumentError: If path does not form a valid URL
            TransportError: If the request could not be sent
        """
        url = self.account_url + path
        content = json.dumps(body.to_payload()).encode() if body is not None else b""

        logger.debug("api_request", method=method, url=url)
        try:
            response = self._http.request(method, url, content=content, headers=self._headers())
        except httpx.InvalidURL as e:
            raise InvalidArgumentError(f"Invalid request URL {url!r}: {e}") from e
        except httpx.RequestError as e:
            raise TransportError(f"{method} {url} failed: {e}") from e

        logger.debug("api_response", method=method, url=url, status=response.status_code)
        return response

    @staticmethod
    def _check_status(response: httpx.Response, expected_status: int) -> None:
        if response.status_code != expected_status:
            raise UnexpectedStatusError(
                status_code=response.status_code,
                expected_status=expected_status,
                method=response.request.method,
                url=str(response.request.url),
                body=response.text,
            )

    def _request_json(
        self,
        method: str,
        path: str,
        expected_status: int,
        body: ApiModel | None = None,
    ) -> Any:
        response = self._request(method, path, body)
        self._check_status(response, expected_status)
        try:
            return response.json()
        except ValueError as e:
            raise DecodeError(f"Invalid JSON in response to {method} {path}: {e}") from e

    @staticmethod
    def _decode(adapter: Callable[[Any], T], data: Any, what: str) -> T:
        try:
            return adapter(data)
        except ValidationError as e:
            raise DecodeError(f"Unexpected {what} payload: {e}") from e

    def get_cluster(self, cluster_id: str) -> Cluster:
        """Fetch metadata about a cluster.

        Args:
            cluster_id: Cluster identifier

        Returns:
            Cluster metadata

        Raises:
            InvalidArgumentError: If cluster_id is empty
            UnexpectedStatusError: If the API does not answer 200
        """
        _require_id(cluster_id, "Cluster ID")
        data = self._request_json("GET", f"/clusters/{cluster_id}", 200)
        return self._decode(Cluster.model_validate, data, "cluster")

    def get_clusters(self) -> list[Cluster]:
        """List all clusters of the account."""
        data = self._request_json("GET", "/clusters/", 200)
        return self._decode(_CLUSTER_LIST.validate_python, data, "cluster list")

    def get_cluster_kubeconfig(self, cluster_id: str) -> bytes:
        """Download a cluster's kubeconfig.

        Args:
            cluster_id: Cluster identifier

        Returns:
            Raw kubeconfig document

        Raises:
            InvalidArgumentError: If cluster_id is empty
            UnexpectedStatusError: If the API does not answer 200
        """
        _require_id(cluster_id, "Cluster ID")
        response = self._request("GET", f"/clusters/{cluster_id}/kube-config")
        self._check_status(response, 200)

        logger.debug("kubeconfig_fetched", cluster_id=cluster_id, size=len(response.content))
        return response.content

    def get_cluster_client(self, cluster_id: str) -> Any:
        """Return a client connected to the given cluster.

        Raises:
            KubernetesError: If the default connector cannot load the kubeconfig
        """
        kubeconfig = self.get_cluster_kubeconfig(cluster_id)
        return self.connector(kubeconfig)

    def create_cluster(
        self, create_config: CreateClusterConfig, timeout: float | None = None
    ) -> CreateClusterResult:
        """Create a cluster and wait until it can be used.

        Blocks while the cluster is provisioning, polling at a fixed interval.
        Without a timeout (here or in the polling configuration) the wait is
        unbounded.

        Args:
            create_config: Cluster configuration
            timeout: Maximum seconds to wait for provisioning (optional,
                overrides the polling configuration)

        Returns:
            The provisioned cluster and a client connected to it

        Raises:
            InvalidArgumentError: If timeout is not positive
            UnexpectedStatusError: If the API does not answer 201
            PollError: If fetching the cluster fails while waiting
            PollTimeoutError: If provisioning exceeds the configured bounds
            ProvisioningFailedError: If the cluster ends in a failure state
            UnrecognizedStateError: If the cluster ends in an unknown state
        """
        if timeout is not None and timeout <= 0:
            raise InvalidArgumentError(f"timeout must be positive, got {timeout}")

        data = self._request_json("POST", "/clusters", 201, body=create_config)
        cluster = self._decode(Cluster.model_validate, data, "cluster")
        logger.info(
            "cluster_created",
            cluster_id=cluster.id,
            display_name=cluster.display_name,
            state=cluster.state,
        )

        polling = self.polling
        if timeout is not None:
            polling = polling.model_copy(update={"timeout": timeout})

        cluster = wait_for_cluster(self.get_cluster, cluster, polling)
        kube_client = self.get_cluster_client(cluster.id)

        logger.info("cluster_ready", cluster_id=cluster.id, server=cluster.connection_details.server)
        return CreateClusterResult(cluster=cluster, kube_client=kube_client)

    def delete_cluster(self, cluster_id: str) -> None:
        """Delete a cluster.

        Raises:
            InvalidArgumentError: If cluster_id is empty
            UnexpectedStatusError: If the API does not answer 202
        """
        _require_id(cluster_id, "Cluster ID")
        response = self._request("DELETE", f"/clusters/{cluster_id}")
        self._check_status(response, 202)
        logger.info("cluster_deleted", cluster_id=cluster_id)

    def create_snapshot(self, create_config: CreateSnapshotConfig) -> Snapshot:
        """Request a snapshot of a cluster.

        The API accepts the request asynchronously; the returned snapshot is in
        its initial state.

        Raises:
            UnexpectedStatusError: If the API does not answer 202
        """
        data = self._request_json("POST", "/snapshots", 202, body=create_config)
        snapshot = self._decode(Snapshot.model_validate, data, "snapshot")
        logger.info(
            "snapshot_created",
            snapshot_id=snapshot.id,
            cluster_id=snapshot.cluster_id,
            state=snapshot.state,
        )
        return snapshot

    def get_snapshot(self, snapshot_id: str) -> Snapshot:
        """Fetch metadata about a snapshot.

        Raises:
            InvalidArgumentError: If snapshot_id is empty
            UnexpectedStatusError: If the API does not answer 200
        """
        _require_id(snapshot_id, "Snapshot ID")
        data = self._request_json("GET", f"/snapshots/{snapshot_id}", 200)
        return self._decode(Snapshot.model_validate, data, "snapshot")

    def get_snapshots(self) -> list[Snapshot]:
        """List all snapshots of the account."""
        data = self._request_json("GET", "/snapshots/", 200)
        return self._decode(_SNAPSHOT_LIST.validate_python, data, "snapshot list")
