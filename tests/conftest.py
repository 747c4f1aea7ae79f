import os
import sys

import pytest
from kubernetes import client

# Ensure project root is importable (so `import podwatch...` and `import run` work)
_project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if _project_root not in sys.path:
    sys.path.insert(0, _project_root)


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


def make_pod(name="pod-a", namespace="default", phase="Running"):
    return client.V1Pod(
        metadata=client.V1ObjectMeta(name=name, namespace=namespace),
        status=client.V1PodStatus(phase=phase),
    )


@pytest.fixture
def pod_factory():
    return make_pod
