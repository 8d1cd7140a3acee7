"""
Pytest configuration and fixtures for SpawnPool tests
"""

import os
import sys
from typing import Callable, List, Optional

import pytest

# Add src to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from spawnpool.core.launcher.exceptions import ProcessTableError, StaleResourceError  # noqa: E402
from spawnpool.core.launcher.interface import (  # noqa: E402
    BaseLauncher,
    BaseProcessTable,
    BaseResource,
)
from spawnpool.core.launcher.models import LaunchResult  # noqa: E402
from spawnpool.core.scheduler import BasePeriodicTimer, Scheduler  # noqa: E402


# ============== Host Fakes ==============


class FakeLauncher(BaseLauncher):
    """Launcher handing out sequential pids and recording every call."""

    def __init__(self, first_pid: int = 1000):
        self.next_pid = first_pid
        self.calls: List[tuple] = []
        self.pid_queue: List[int] = []
        self.fail_with: Optional[Exception] = None
        self.fail_after: Optional[int] = None
        self.on_launch: Optional[Callable[[LaunchResult], None]] = None

    def launch(self, command, startup_id=None):
        self.calls.append((command, startup_id))

        # fail_after: number of launches that still succeed
        if self.fail_with is not None and (
            self.fail_after is None or len(self.calls) > self.fail_after
        ):
            raise self.fail_with

        if self.pid_queue:
            pid = self.pid_queue.pop(0)
        else:
            pid = self.next_pid
            self.next_pid += 1

        result = LaunchResult(pid=pid, command=command, startup_id=startup_id)
        if self.on_launch is not None:
            self.on_launch(result)
        return result


class FakeProcessTable(BaseProcessTable):
    """Process table with a settable live set."""

    def __init__(self):
        self.live = set()
        self.fail = False
        self.queries = 0

    def live_pids(self):
        self.queries += 1
        if self.fail:
            raise ProcessTableError("ps failed")
        return set(self.live)


class FakeResource(BaseResource):
    """Resource handle with controllable liveness."""

    def __init__(self, pid, hidden=False, tags=None, alive=True):
        self.pid = pid
        self.hidden = hidden
        self.tags = list(tags) if tags is not None else ["2"]
        self.alive = alive
        self.kill_calls = 0

    def is_alive(self):
        if not self.alive:
            raise StaleResourceError(self.pid)
        return True

    def kill(self):
        self.kill_calls += 1
        self.alive = False


class ManualTimer(BasePeriodicTimer):
    """Periodic timer fired by hand."""

    def __init__(self, interval, callback):
        self.interval = interval
        self.callback = callback
        self._started = False

    @property
    def started(self):
        return self._started

    def start(self):
        self._started = True

    def stop(self):
        self._started = False

    def fire(self):
        assert self._started, "timer fired while stopped"
        return self.callback()


class ManualScheduler(Scheduler):
    """Scheduler whose deferred callbacks run only when asked to."""

    def __init__(self):
        self.queue: List[Callable[[], None]] = []
        self.timers: List[ManualTimer] = []

    def call_soon(self, callback):
        self.queue.append(callback)

    def periodic(self, interval, callback):
        timer = ManualTimer(interval, callback)
        self.timers.append(timer)
        return timer

    @property
    def pending(self) -> int:
        return len(self.queue)

    def run_pending(self) -> int:
        """Run queued callbacks (including ones queued meanwhile)."""
        ran = 0
        while self.queue:
            callback = self.queue.pop(0)
            callback()
            ran += 1
        return ran


# ============== Fixtures ==============


@pytest.fixture
def launcher():
    """Fake launcher."""
    return FakeLauncher()


@pytest.fixture
def process_table():
    """Fake process table."""
    return FakeProcessTable()


@pytest.fixture
def scheduler():
    """Manual scheduler."""
    return ManualScheduler()


@pytest.fixture
def pending_index():
    """Empty pending index."""
    from spawnpool.core.pool.registry import PendingIndex

    return PendingIndex()


@pytest.fixture
def make_pool(launcher, pending_index):
    """Factory building pools on the shared fake launcher and index."""
    from spawnpool.core.pool.pool import Pool
    from spawnpool.core.launcher.models import SpawnMetrics

    metrics = SpawnMetrics()

    def _make(command="term", capacity=3, liveness_check=None):
        return Pool(
            command=command,
            capacity=capacity,
            launch=launcher.launch,
            pending_index=pending_index,
            liveness_check=liveness_check,
            metrics=metrics,
        )

    _make.metrics = metrics
    return _make


@pytest.fixture
def resource_table():
    """Default handling table."""
    from spawnpool.core.resources import ResourceTable

    return ResourceTable(default_tags=["1"])


@pytest.fixture
def service(launcher, process_table, scheduler, resource_table):
    """Warm pool service on fake host collaborators."""
    from spawnpool.core.service import WarmPoolService

    svc = WarmPoolService(
        launcher=launcher,
        process_table=process_table,
        scheduler=scheduler,
        resource_table=resource_table,
    )
    yield svc
    svc.shutdown()


@pytest.fixture
def make_resource():
    """Factory for fake resource handles."""
    return FakeResource


@pytest.fixture
def ready(service):
    """Deliver a ready notification for a pid, returning the resource."""

    def _ready(pid, **kwargs):
        resource = FakeResource(pid, **kwargs)
        service.notify_ready(resource)
        return resource

    return _ready
