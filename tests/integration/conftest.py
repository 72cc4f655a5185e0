"""Integration test fixtures and configuration."""

import os
from collections.abc import Iterator

import pytest

from krucible.clients.krucible_client import KrucibleClient
from krucible.core.config import ClientConfig, PollingConfig


@pytest.fixture
def live_client_config() -> ClientConfig:
    """Client settings from KRUCIBLE_TEST_* variables, or skip."""
    account_id = os.getenv("KRUCIBLE_TEST_ACCOUNT_ID")
    api_key_id = os.getenv("KRUCIBLE_TEST_API_KEY_ID")
    api_key_secret = os.getenv("KRUCIBLE_TEST_API_KEY_SECRET")
    if not (account_id and api_key_id and api_key_secret):
        pytest.skip("Krucible test credentials not available")

    return ClientConfig(
        base_url=os.getenv("KRUCIBLE_TEST_BASE_URL", ""),
        account_id=account_id,
        api_key_id=api_key_id,
        api_key_secret=api_key_secret,
    )


@pytest.fixture
def live_client(live_client_config: ClientConfig) -> Iterator[KrucibleClient]:
    """Client against the live API with a bounded provisioning wait."""
    client = KrucibleClient(live_client_config, polling=PollingConfig(interval=2, timeout=900))
    yield client
    client.close()
