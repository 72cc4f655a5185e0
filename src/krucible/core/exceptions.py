"""Custom exceptions for the Krucible client."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from krucible.core.models import Cluster


class KrucibleError(Exception):
    """Base exception for all Krucible client errors."""


class ConfigurationError(KrucibleError):
    """Configuration-related errors."""


class InvalidArgumentError(KrucibleError, ValueError):
    """A required argument was empty or malformed."""


class TransportError(KrucibleError):
    """The request could not be delivered to the Krucible API."""


class UnexpectedStatusError(KrucibleError):
    """The Krucible API answered with a status other than the expected one.

    Attributes:
        status_code: Status code returned by the API
        expected_status: Status code the operation requires
        method: HTTP method of the request
        url: Absolute URL of the request
        body: Response body text (may be empty)
    """

    def __init__(
        self,
        status_code: int,
        expected_status: int,
        method: str = "",
        url: str = "",
        body: str = "",
    ):
        super().__init__(f"Unexpected status code {status_code}")
        self.status_code = status_code
        self.expected_status = expected_status
        self.method = method
        self.url = url
        self.body = body


class DecodeError(KrucibleError):
    """The response body could not be decoded into the expected shape."""


class KubernetesError(KrucibleError):
    """A kubeconfig could not be turned into a cluster client."""


class PollError(KrucibleError):
    """Fetching the cluster failed while waiting for provisioning.

    Attributes:
        cluster_id: Cluster that was being waited on
        cause: The error raised by the failing fetch
    """

    def __init__(self, cluster_id: str, cause: KrucibleError):
        super().__init__(f"Polling cluster {cluster_id} failed: {cause}")
        self.cluster_id = cluster_id
        self.cause = cause


class ClusterStateError(KrucibleError):
    """Base class for errors that carry the last observed cluster."""

    def __init__(self, message: str, cluster: Cluster):
        super().__init__(message)
        self.cluster = cluster


class PollTimeoutError(ClusterStateError):
    """The cluster did not leave a pending state within the configured bounds."""


class ProvisioningFailedError(ClusterStateError):
    """The cluster settled in a state configured as a failure."""


class UnrecognizedStateError(ClusterStateError):
    """The cluster settled in a state that is not known to be ready."""
