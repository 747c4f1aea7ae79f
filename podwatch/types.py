"""Object references, reconcile actions and errors."""

from dataclasses import dataclass
from typing import Optional, Union

from .config import RESOURCE_KIND


@dataclass(frozen=True)
class ObjectRef:
    """Identity of a watched object."""
    namespace: str
    name: str
    kind: str = RESOURCE_KIND

    @classmethod
    def from_object(cls, obj, kind: str = RESOURCE_KIND) -> "ObjectRef":
        """Build a reference from a Kubernetes object (e.g. a V1Pod)."""
        return cls(
            namespace=obj.metadata.namespace or "",
            name=obj.metadata.name,
            kind=kind
        )

    def __str__(self) -> str:
        return f"{self.namespace}/{self.name}"


@dataclass(frozen=True)
class ReconcileRequest:
    """A request to reconcile the referenced object."""
    ref: ObjectRef
    reason: str = ""


class Action:
    """Directive returned by a reconciliation attempt."""

    @staticmethod
    def requeue(seconds: float) -> "RequeueAfter":
        return RequeueAfter(seconds)

    @staticmethod
    def await_change() -> "NoRequeue":
        return NoRequeue()


@dataclass(frozen=True)
class RequeueAfter(Action):
    """Reconcile the object again after `seconds`."""
    seconds: float


@dataclass(frozen=True)
class NoRequeue(Action):
    """Do not reconcile again until the object changes."""


class ControllerError(Exception):
    """Base class for controller errors."""


class ReconcileError(ControllerError):
    """A reconciliation failed, usually because of a cluster API call."""

    def __init__(self, ref: ObjectRef, cause: Optional[BaseException] = None):
        self.ref = ref
        self.cause = cause
        super().__init__(f"Reconciliation of {ref.kind} {ref} failed: {cause}")


class StartupError(ControllerError):
    """Cluster credentials could not be resolved."""


ReconcileOutcome = Union[Action, ReconcileError]
