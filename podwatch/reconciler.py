"""Reconciliation logic for the Pod Status Controller."""

import logging

from kubernetes import client

from .config import REQUEUE_INTERVAL_SECONDS
from .types import Action, ObjectRef

logger = logging.getLogger(__name__)


class PodStatusReconciler:
    """Observes pods and reports their status."""

    def __init__(self, requeue_seconds: float = REQUEUE_INTERVAL_SECONDS):
        """
        Initialize the reconciler.

        Args:
            requeue_seconds: Delay before a pod is verified again
        """
        self.requeue_seconds = requeue_seconds

    def reconcile(self, ref: ObjectRef, pod: client.V1Pod) -> Action:
        """
        Reconcile a pod against its observed state.

        Only reads `pod`, so repeated calls with the same state give the
        same Action.

        Args:
            ref: Reference of the pod
            pod: Freshly fetched pod object

        Returns:
            RequeueAfter for periodic re-verification
        """
        logger.info(f"Status: {pod.status}")
        logger.info(f"Resource name: {pod.metadata.name}")

        return Action.requeue(self.requeue_seconds)

    def cleanup(self, ref: ObjectRef) -> Action:
        """Handle a pod that no longer exists."""
        logger.info(f"Pod {ref} is gone, nothing to clean up")
        return Action.await_change()
