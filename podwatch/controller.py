"""Main controller logic for the Pod Status Controller."""

import logging
import threading
import time
from typing import List, Optional

from kubernetes.client.rest import ApiException

from .client import Context
from .config import (
    DEFAULT_WORKERS,
    ERROR_REQUEUE_SECONDS,
    RESOURCE_KIND,
    WATCH_RETRY_SECONDS,
    WATCH_TIMEOUT_SECONDS,
    WORKER_JOIN_TIMEOUT_SECONDS,
    WORKER_POLL_SECONDS,
)
from .reconciler import PodStatusReconciler
from .types import (
    Action,
    NoRequeue,
    ObjectRef,
    ReconcileError,
    ReconcileOutcome,
    ReconcileRequest,
    RequeueAfter,
)
from .workqueue import WorkQueue

logger = logging.getLogger(__name__)


class PodStatusController:
    """
    Level-triggered controller that watches Pods and reconciles them
    through a work queue drained by a pool of worker threads.
    """

    def __init__(
        self,
        context: Context,
        reconciler: Optional[PodStatusReconciler] = None,
        queue: Optional[WorkQueue] = None,
        namespace: str = "",
        workers: int = DEFAULT_WORKERS
    ):
        """
        Initialize the controller.

        Args:
            context: Shared cluster context
            reconciler: Reconciler to invoke (a PodStatusReconciler by default)
            queue: Work queue to use (a fresh WorkQueue by default)
            namespace: Namespace to watch ("" for all namespaces)
            workers: Number of concurrent worker threads
        """
        self.context = context
        self.reconciler = reconciler or PodStatusReconciler()
        self.queue = queue or WorkQueue()
        self.namespace = namespace
        self.workers = max(1, int(workers))

        self._stop_event = threading.Event()
        self._threads: List[threading.Thread] = []

    def enqueue(self, request: ReconcileRequest) -> None:
        """Add a reconcile request to the work queue."""
        logger.debug(f"Enqueue {request.ref} ({request.reason})")
        self.queue.add(request.ref)

    def handle_pod_event(self, event_type: str, pod) -> None:
        """
        Handle a pod watch event.

        Every event type, DELETED included, only queues the pod; the
        worker decides what to do from the state it fetches.

        Args:
            event_type: ADDED, MODIFIED, DELETED, BOOKMARK or ERROR
            pod: The pod object from the event
        """
        if event_type in ("BOOKMARK", "ERROR") or getattr(pod, "metadata", None) is None:
            return
        ref = ObjectRef.from_object(pod, kind=RESOURCE_KIND)
        self.enqueue(ReconcileRequest(ref=ref, reason=event_type))

    def error_policy(self, ref: ObjectRef, error: ReconcileError) -> Action:
        """Action taken when reconciliation fails: a fixed-delay retry."""
        return Action.requeue(ERROR_REQUEUE_SECONDS)

    def reconcile(self, ref: ObjectRef) -> ReconcileOutcome:
        """
        Fetch the latest state of `ref` and run the reconciler on it.

        Returns:
            The reconciler's Action, or a ReconcileError on failure
        """
        try:
            pod = self.context.get_pod(ref)
            if pod is None:
                action = self.reconciler.cleanup(ref)
            else:
                action = self.reconciler.reconcile(ref, pod)
        except ReconcileError as e:
            return e
        except ApiException as e:
            return ReconcileError(ref, e)
        except Exception as e:
            logger.exception(f"Unexpected error reconciling {ref}")
            return ReconcileError(ref, e)

        if not isinstance(action, (RequeueAfter, NoRequeue)):
            return ReconcileError(ref, TypeError(f"Unknown action: {action!r}"))
        return action

    def process_next_item(self, timeout: Optional[float] = WORKER_POLL_SECONDS) -> bool:
        """
        Take one ref off the queue, reconcile it and schedule the follow-up.

        Returns:
            False if nothing was available within `timeout`
        """
        ref = self.queue.get(timeout=timeout)
        if ref is None:
            return False

        try:
            outcome = self.reconcile(ref)
        finally:
            self.queue.done(ref)

        if isinstance(outcome, ReconcileError):
            logger.error(f"Reconciliation error: {outcome}")
            action = self.error_policy(ref, outcome)
        else:
            logger.info(f"Reconciliation successful. Resource: {ref}")
            action = outcome

        self._schedule(ref, action)
        return True

    def _schedule(self, ref: ObjectRef, action: Action) -> None:
        if isinstance(action, RequeueAfter):
            logger.debug(f"Requeue {ref} in {action.seconds}s")
            self.queue.add_after(ref, action.seconds)
        elif isinstance(action, NoRequeue):
            logger.debug(f"Not requeueing {ref}")
        else:
            raise TypeError(f"Unknown action: {action!r}")

    def worker(self) -> None:
        """Drain the work queue until the controller is stopped."""
        while not self._stop_event.is_set():
            try:
                self.process_next_item()
            except Exception as e:
                logger.exception(f"Unexpected error in reconcile worker: {e}")

    def watch_pods(self) -> None:
        """Watch for Pod events in a loop."""
        logger.info("Starting pod watcher...")

        while not self._stop_event.is_set():
            try:
                for event in self.context.watch_pods(
                    namespace=self.namespace,
                    timeout=WATCH_TIMEOUT_SECONDS
                ):
                    if self._stop_event.is_set():
                        break
                    self.handle_pod_event(event["type"], event["object"])

            except ApiException as e:
                logger.error(f"Pod watch error: {e}")
                self._stop_event.wait(WATCH_RETRY_SECONDS)
            except Exception as e:
                logger.error(f"Unexpected error in pod watcher: {e}")
                self._stop_event.wait(WATCH_RETRY_SECONDS)

    def start(self) -> None:
        """Start the watcher and worker threads."""
        self._threads = [
            threading.Thread(
                target=self.watch_pods,
                name="pod-watcher",
                daemon=True
            )
        ]
        for i in range(self.workers):
            self._threads.append(
                threading.Thread(
                    target=self.worker,
                    name=f"reconcile-worker-{i}",
                    daemon=True
                )
            )

        for thread in self._threads:
            thread.start()

    def run(self) -> None:
        """Run the controller until interrupted."""
        logger.info("=" * 60)
        logger.info("Starting Pod Status Controller")
        logger.info("=" * 60)
        logger.info(f"Namespace: {self.namespace or 'all namespaces'}")
        logger.info(f"Workers: {self.workers}")

        self.start()

        logger.info("Controller is running. Press Ctrl+C to stop.")

        # Keep main thread alive
        try:
            while not self._stop_event.is_set():
                time.sleep(1)
        except KeyboardInterrupt:
            logger.info("Shutdown requested...")
            self.stop()

    def stop(self) -> None:
        """Stop the controller."""
        logger.info("Stopping controller...")
        self._stop_event.set()
        self.queue.shutdown()

        # The watcher may be blocked inside the stream; only workers are joined
        current = threading.current_thread()
        for thread in self._threads:
            if thread.name.startswith("reconcile-worker") and thread is not current:
                thread.join(timeout=WORKER_JOIN_TIMEOUT_SECONDS)
