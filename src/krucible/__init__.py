"""Krucible client.

Create, inspect and delete Krucible Kubernetes clusters and snapshots, and get a
ready-to-use Kubernetes client for each provisioned cluster.
"""

__version__ = "0.1.0"
__license__ = "Apache-2.0"

from krucible.clients.krucible_client import KrucibleClient
from krucible.clients.kubernetes_client import KubernetesClient, connect_cluster
from krucible.core.config import ClientConfig, KrucibleConfig, PollingConfig
from krucible.core.models import (
    FIVE_HOURS,
    FOUR_HOURS,
    ONE_HOUR,
    PERMANENT,
    SIX_HOURS,
    THREE_HOURS,
    TWO_HOURS,
    Cluster,
    ClusterDuration,
    ClusterState,
    CreateClusterConfig,
    CreateClusterResult,
    CreateSnapshotConfig,
    Snapshot,
)

__all__ = [
    "FIVE_HOURS",
    "FOUR_HOURS",
    "ONE_HOUR",
    "PERMANENT",
    "SIX_HOURS",
    "THREE_HOURS",
    "TWO_HOURS",
    "ClientConfig",
    "Cluster",
    "ClusterDuration",
    "ClusterState",
    "CreateClusterConfig",
    "CreateClusterResult",
    "CreateSnapshotConfig",
    "KrucibleClient",
    "KrucibleConfig",
    "KubernetesClient",
    "PollingConfig",
    "Snapshot",
    "connect_cluster",
]
