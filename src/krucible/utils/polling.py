"""Wait for a cluster to leave its pending provisioning state."""

import time
from collections.abc import Callable

from tenacity import (
    RetryCallState,
    Retrying,
    retry_if_result,
    stop_after_attempt,
    stop_after_delay,
    stop_never,
)
from tenacity.stop import stop_base

from krucible.core.config import PollingConfig
from krucible.core.exceptions import (
    KrucibleError,
    PollError,
    PollTimeoutError,
    ProvisioningFailedError,
    UnrecognizedStateError,
)
from krucible.core.models import Cluster
from krucible.utils.logging import get_logger

logger = get_logger(__name__)


def build_stop_condition(policy: PollingConfig) -> stop_base:
    """Translate the polling bounds into a tenacity stop condition.

    Args:
        policy: Polling configuration

    Returns:
        stop_never when neither a timeout nor an attempt limit is configured
    """
    conditions: list[stop_base] = []
    if policy.timeout is not None:
        conditions.append(stop_after_delay(policy.timeout))
    if policy.max_attempts is not None:
        conditions.append(stop_after_attempt(policy.max_attempts))

    if not conditions:
        return stop_never

    stop = conditions[0]
    for condition in conditions[1:]:
        stop = stop | condition
    return stop


def check_settled_state(cluster: Cluster, policy: PollingConfig) -> Cluster:
    """Make sure a cluster that is no longer pending is actually usable.

    Args:
        cluster: Cluster whose state is no longer pending
        policy: Polling configuration holding the state taxonomy

    Returns:
        The cluster, unchanged

    Raises:
        ProvisioningFailedError: If the state is a configured failure state
        UnrecognizedStateError: If the state is not a ready state and
            unrecognized states are not allowed
    """
    if cluster.state in policy.failed_states:
        raise ProvisioningFailedError(
            f"Cluster {cluster.id} failed to provision (state: {cluster.state})", cluster
        )

    if cluster.state not in policy.ready_states and not policy.allow_unrecognized_states:
        raise UnrecognizedStateError(
            f"Cluster {cluster.id} settled in unrecognized state {cluster.state!r}", cluster
        )

    return cluster


def wait_for_cluster(
    fetch: Callable[[str], Cluster],
    cluster: Cluster,
    policy: PollingConfig,
    sleep: Callable[[float], None] = time.sleep,
) -> Cluster:
    """Poll a cluster at a fixed interval until it leaves its pending state.

    Each poll sleeps ``policy.interval`` seconds and then fetches the cluster
    again. There is no backoff. Without ``timeout`` or ``max_attempts`` the wait
    is unbounded.

    Args:
        fetch: Callable returning the current cluster for an id
        cluster: Cluster as returned by the create call
        policy: Polling configuration
        sleep: Sleep function (injectable for tests)

    Returns:
        The first cluster observed outside the pending states

    Raises:
        PollError: If a fetch fails; polling stops immediately
        PollTimeoutError: If the configured bounds are exceeded
        ProvisioningFailedError: If the cluster settles in a failure state
        UnrecognizedStateError: If the cluster settles in an unknown state
    """
    if cluster.state not in policy.pending_states:
        return check_settled_state(cluster, policy)

    cluster_id = cluster.id
    logger.info("waiting_for_cluster", cluster_id=cluster_id, state=cluster.state)

    def refresh() -> Cluster:
        sleep(policy.interval)
        try:
            return fetch(cluster_id)
        except KrucibleError as e:
            raise PollError(cluster_id, e) from e

    def still_pending(result: Cluster) -> bool:
        return result.state in policy.pending_states

    def after_poll(retry_state: RetryCallState) -> None:
        logger.debug(
            "cluster_still_pending",
            cluster_id=cluster_id,
            attempt=retry_state.attempt_number,
            elapsed_seconds=retry_state.seconds_since_start,
        )

    def give_up(retry_state: RetryCallState) -> Cluster:
        last_seen: Cluster = retry_state.outcome.result()
        raise PollTimeoutError(
            f"Cluster {cluster_id} still {last_seen.state} after "
            f"{retry_state.attempt_number} polls",
            last_seen,
        )

    retryer = Retrying(
        retry=retry_if_result(still_pending),
        stop=build_stop_condition(policy),
        after=after_poll,
        retry_error_callback=give_up,
    )
    settled = retryer(refresh)

    logger.info("cluster_settled", cluster_id=cluster_id, state=settled.state)
    return check_settled_state(settled, policy)
