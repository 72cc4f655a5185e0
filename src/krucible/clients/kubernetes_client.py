"""Kubernetes client for clusters provisioned through Krucible."""

from typing import Any

import yaml
from kubernetes import client, config
from kubernetes.client.exceptions import ApiException
from kubernetes.client.models import V1Namespace, V1Node, V1Pod
from kubernetes.config.config_exception import ConfigException

from krucible.core.exceptions import KubernetesError
from krucible.utils.logging import get_logger

logger = get_logger(__name__)


class KubernetesClient:
    """Kubernetes client bound to a single cluster.

    Wraps an isolated ``ApiClient`` so that several clusters can be used side by
    side without touching the kubernetes package's global configuration.
    """

    def __init__(self, api_client: client.ApiClient, context: str | None = None):
        """Initialize Kubernetes client.

        Args:
            api_client: ApiClient configured for the target cluster
            context: Name of the kubeconfig context in use (optional)
        """
        self.api_client = api_client
        self.context = context
        self.core_v1 = client.CoreV1Api(api_client)
        self.apps_v1 = client.AppsV1Api(api_client)

        logger.debug("k8s_client_initialized", context=context)

    @property
    def host(self) -> str:
        """API server URL the client talks to."""
        return self.api_client.configuration.host

    def get_nodes(self) -> list[V1Node]:
        """Get all nodes in the cluster.

        Returns:
            List of V1Node objects

        Raises:
            KubernetesError: If nodes cannot be retrieved
        """
        try:
            response = self.core_v1.list_node()
        except ApiException as e:
            raise KubernetesError(f"Failed to get nodes: {e.reason}") from e

        logger.debug("nodes_retrieved", count=len(response.items))
        return response.items

    def get_pods(self, namespace: str = "default", label_selector: str | None = None) -> list[V1Pod]:
        """Get pods in a namespace.

        Args:
            namespace: Namespace to query
            label_selector: Label selector (e.g., "k8s-app=kube-dns")

        Returns:
            List of V1Pod objects

        Raises:
            KubernetesError: If pods cannot be retrieved
        """
        kwargs: dict[str, Any] = {"namespace": namespace}
        if label_selector:
            kwargs["label_selector"] = label_selector

        try:
            response = self.core_v1.list_namespaced_pod(**kwargs)
        except ApiException as e:
            raise KubernetesError(f"Failed to get pods in {namespace}: {e.reason}") from e

        logger.debug("pods_retrieved", namespace=namespace, count=len(response.items))
        return response.items

    def get_namespaces(self) -> list[V1Namespace]:
        """Get all namespaces.

        Raises:
            KubernetesError: If namespaces cannot be retrieved
        """
        try:
            response = self.core_v1.list_namespace()
        except ApiException as e:
            raise KubernetesError(f"Failed to get namespaces: {e.reason}") from e

        return response.items

    def close(self) -> None:
        """Release the underlying connection pool."""
        self.api_client.close()


def connect_cluster(kubeconfig: bytes) -> KubernetesClient:
    """Build a connected cluster client from raw kubeconfig bytes.

    Args:
        kubeconfig: Kubeconfig document as downloaded from the Krucible API

    Returns:
        KubernetesClient for the kubeconfig's current context

    Raises:
        KubernetesError: If the kubeconfig cannot be parsed or loaded
    """
    try:
        config_dict = yaml.safe_load(kubeconfig)
    except yaml.YAMLError as e:
        raise KubernetesError(f"Failed to parse kubeconfig: {e}") from e

    if not isinstance(config_dict, dict):
        raise KubernetesError("Failed to parse kubeconfig: expected a mapping")

    try:
        api_client = config.new_client_from_config_dict(config_dict)
    except ConfigException as e:
        raise KubernetesError(f"Failed to load kubeconfig: {e}") from e

    return KubernetesClient(api_client, context=config_dict.get("current-context") or None)
