"""Clients for the Krucible API and provisioned clusters."""

from krucible.clients.krucible_client import KrucibleClient
from krucible.clients.kubernetes_client import KubernetesClient, connect_cluster

__all__ = [
    "KrucibleClient",
    "KubernetesClient",
    "connect_cluster",
]
