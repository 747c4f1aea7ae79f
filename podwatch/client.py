"""Cluster client context for the Pod Status Controller."""

import logging
from typing import Iterator, Optional

from kubernetes import client, config, watch
from kubernetes.client.rest import ApiException

from .config import API_REQUEST_TIMEOUT_SECONDS, WATCH_TIMEOUT_SECONDS
from .types import ObjectRef, StartupError

logger = logging.getLogger(__name__)


def load_cluster_config(in_cluster: bool = False) -> str:
    """
    Resolve cluster credentials from the environment.

    Tries the in-cluster service account first and falls back to the
    default kubeconfig, unless `in_cluster` forces the former.

    Returns:
        A short description of the source that was loaded

    Raises:
        StartupError: If no usable configuration was found
    """
    try:
        config.load_incluster_config()
        return "in-cluster configuration"
    except config.ConfigException as e:
        if in_cluster:
            raise StartupError(f"Failed to load in-cluster config: {e}") from e

    try:
        config.load_kube_config()
        return "kubeconfig from default location"
    except (config.ConfigException, OSError) as e:
        raise StartupError(f"Failed to load Kubernetes config: {e}") from e


class Context:
    """
    Read-only handle to the cluster shared by all workers.

    Wraps a CoreV1Api; the underlying connection pool is thread-safe.
    """

    def __init__(self, api: Optional[client.CoreV1Api] = None):
        self.v1 = api if api is not None else client.CoreV1Api()

    def get_pod(self, ref: ObjectRef) -> Optional[client.V1Pod]:
        """
        Fetch the current state of a pod.

        Args:
            ref: Reference of the pod to read

        Returns:
            The pod, or None if it no longer exists

        Raises:
            ApiException: For any error other than 404
        """
        try:
            return self.v1.read_namespaced_pod(
                name=ref.name,
                namespace=ref.namespace,
                _request_timeout=API_REQUEST_TIMEOUT_SECONDS
            )
        except ApiException as e:
            if e.status == 404:
                logger.debug(f"Pod {ref} not found")
                return None
            raise

    def watch_pods(
        self,
        namespace: str = "",
        timeout: int = WATCH_TIMEOUT_SECONDS
    ) -> Iterator[dict]:
        """
        Create a watch stream for Pod objects.

        Args:
            namespace: Namespace to watch ("" for all namespaces)
            timeout: Watch timeout in seconds

        Yields:
            Watch events
        """
        w = watch.Watch()

        if namespace:
            stream = w.stream(
                self.v1.list_namespaced_pod,
                namespace=namespace,
                timeout_seconds=timeout
            )
        else:
            stream = w.stream(
                self.v1.list_pod_for_all_namespaces,
                timeout_seconds=timeout
            )

        try:
            for event in stream:
                yield event
        finally:
            w.stop()


def create_context(in_cluster: bool = False) -> Context:
    """
    Resolve credentials and build the shared cluster context.

    Raises:
        StartupError: If credentials could not be resolved
    """
    source = load_cluster_config(in_cluster=in_cluster)
    logger.info(f"Loaded {source}")
    return Context()
