"""Core data models for the Krucible client."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

if TYPE_CHECKING:
    from krucible.clients.kubernetes_client import KubernetesClient


class ClusterState(str, Enum):
    """Lifecycle state of a Krucible cluster."""

    PROVISIONING = "provisioning"
    READY = "ready"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, value: str) -> ClusterState:
        """Map a raw API state onto a known variant, or UNKNOWN."""
        try:
            state = cls(value)
        except ValueError:
            return cls.UNKNOWN
        return state


@dataclass(frozen=True)
class ClusterDuration:
    """How long a cluster should live.

    ``hours`` is None for a permanent cluster, otherwise 1 to 6.
    """

    hours: int | None = None

    @property
    def is_permanent(self) -> bool:
        return self.hours is None

    def __str__(self) -> str:
        if self.hours is None:
            return "permanent"
        return f"{self.hours}h"


ONE_HOUR = ClusterDuration(1)
TWO_HOURS = ClusterDuration(2)
THREE_HOURS = ClusterDuration(3)
FOUR_HOURS = ClusterDuration(4)
FIVE_HOURS = ClusterDuration(5)
SIX_HOURS = ClusterDuration(6)
PERMANENT = ClusterDuration(None)


class ApiModel(BaseModel):
    """Base model for payloads exchanged with the Krucible API."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    def to_payload(self) -> dict[str, Any]:
        """Serialize to the camelCase JSON body sent to the API."""
        return self.model_dump(mode="json", by_alias=True)


class ConnectionDetails(ApiModel):
    """How to reach a cluster's API server.

    Early API revisions also returned the CA and a bearer token; newer ones only
    return the server and the credentials come from the kubeconfig download.
    """

    server: str = ""
    certificate_authority: str | None = Field(None, alias="certificateAuthority")
    cluster_auth_token: str | None = Field(None, alias="clusterAuthToken")


class Cluster(ApiModel):
    """Metadata about a Krucible cluster."""

    id: str = Field(..., description="Unique cluster identifier")
    display_name: str = Field("", alias="displayName")
    state: str = Field(..., description="Raw lifecycle state reported by the API")
    connection_details: ConnectionDetails = Field(
        default_factory=ConnectionDetails, alias="connectionDetails"
    )
    created_at: datetime | None = Field(None, alias="createdAt")
    expires_at: datetime | None = Field(None, alias="expiresAt")

    @property
    def status(self) -> ClusterState:
        """Lifecycle state as an enumeration."""
        return ClusterState.parse(self.state)

    @property
    def is_permanent(self) -> bool:
        return self.expires_at is None


class Snapshot(ApiModel):
    """Metadata about a snapshot of a Krucible cluster."""

    id: str
    cluster_id: str = Field("", alias="clusterId")
    state: str = ""
    created_at: datetime | None = Field(None, alias="createdAt")


class CreateClusterConfig(ApiModel):
    """Request body for creating a cluster."""

    display_name: str = Field(..., alias="displayName")
    # None runs the cluster indefinitely, otherwise 1 to 6 hours; the API enforces the range
    duration_in_hours: int | None = Field(None, alias="durationInHours")
    snapshot_id: str | None = Field(None, alias="snapshotId")

    @field_validator("duration_in_hours", mode="before")
    @classmethod
    def unwrap_duration(cls, value: Any) -> Any:
        """Accept a ClusterDuration wherever an hour count is expected."""
        if isinstance(value, ClusterDuration):
            return value.hours
        return value

    def to_payload(self) -> dict[str, Any]:
        payload = super().to_payload()
        if self.snapshot_id is None:
            payload.pop("snapshotId")
        return payload


class CreateSnapshotConfig(ApiModel):
    """Request body for snapshotting a cluster."""

    cluster_id: str = Field(..., alias="clusterId")


@dataclass
class CreateClusterResult:
    """A provisioned cluster together with a client connected to it."""

    cluster: Cluster
    kube_client: KubernetesClient
