"""Unit tests for custom exceptions."""

import pytest

from krucible.core.exceptions import (
    ClusterStateError,
    ConfigurationError,
    DecodeError,
    InvalidArgumentError,
    KrucibleError,
    KubernetesError,
    PollError,
    PollTimeoutError,
    ProvisioningFailedError,
    TransportError,
    UnexpectedStatusError,
    UnrecognizedStateError,
)
from krucible.core.models import Cluster


class TestExceptionHierarchy:
    """Tests for exception hierarchy and inheritance."""

    def test_all_exceptions_inherit_from_krucible_error(self) -> None:
        """Test that all custom exceptions inherit from KrucibleError."""
        exceptions = [
            ConfigurationError,
            DecodeError,
            InvalidArgumentError,
            KubernetesError,
            PollError,
            PollTimeoutError,
            ProvisioningFailedError,
            TransportError,
            UnexpectedStatusError,
            UnrecognizedStateError,
        ]

        for exc_class in exceptions:
            assert issubclass(exc_class, KrucibleError)

    def test_invalid_argument_is_value_error(self) -> None:
        """Test InvalidArgumentError can be caught as ValueError."""
        with pytest.raises(ValueError):
            raise InvalidArgumentError("Cluster ID must be non-empty")

    def test_state_errors_share_base(self) -> None:
        for exc_class in (PollTimeoutError, ProvisioningFailedError, UnrecognizedStateError):
            assert issubclass(exc_class, ClusterStateError)


class TestExceptionAttributes:
    """Tests for exception payloads."""

    def test_unexpected_status_message_and_fields(self) -> None:
        exc = UnexpectedStatusError(
            status_code=404,
            expected_status=201,
            method="POST",
            url="https://usekrucible.com/api/accounts/acc/clusters",
            body="not found",
        )

        assert str(exc) == "Unexpected status code 404"
        assert exc.status_code == 404
        assert exc.expected_status == 201
        assert exc.method == "POST"
        assert exc.body == "not found"

    def test_poll_error_carries_cause(self) -> None:
        cause = TransportError("connection reset")
        exc = PollError("c-123", cause)

        assert exc.cluster_id == "c-123"
        assert exc.cause is cause
        assert "c-123" in str(exc)
        assert "connection reset" in str(exc)

    def test_cluster_state_error_carries_cluster(self) -> None:
        cluster = Cluster(id="c-123", state="provisioning")
        exc = PollTimeoutError("still provisioning", cluster)

        assert exc.cluster is cluster
        assert str(exc) == "still provisioning"
