"""
Tests for Pool.
"""

from unittest.mock import patch

import psutil
import pytest

from spawnpool.core.launcher.exceptions import LaunchError, PoolStateError
from spawnpool.core.launcher.process_table import ProcessResource
from spawnpool.core.pool.slot import SlotState


class TestPoolRefill:
    """Test launching and refilling."""

    def test_refill_launches_capacity(self, make_pool, launcher, pending_index):
        """Test a fresh pool launches one process per slot."""
        pool = make_pool(capacity=3)

        launched = pool.request_refill()

        assert launched == 3
        assert launcher.calls == [("term", None)] * 3
        assert pool.pending_count == 3
        assert pool.ready_count == 0
        assert pending_index.count == 3
        for pid in pool.pending_pids:
            assert pending_index.owner(pid) is pool

    def test_refill_at_capacity_is_noop(self, make_pool, launcher):
        """Test refill does nothing when every slot is covered."""
        pool = make_pool(capacity=2)
        pool.request_refill()

        assert pool.request_refill() == 0
        assert len(launcher.calls) == 2

    def test_refill_only_missing_slots(self, make_pool, make_resource, launcher):
        """Test refill after a take only launches the missing slot."""
        pool = make_pool(capacity=2)
        pool.request_refill()
        for pid in list(pool.pending_pids):
            pool.enqueue_ready(make_resource(pid))

        assert pool.take() is not None
        assert pool.request_refill() == 1
        assert len(launcher.calls) == 3
        assert pool.pending_count == 1
        assert pool.ready_count == 1

    def test_launch_failure_propagates(self, make_pool, launcher, pending_index):
        """Test a failed launch propagates and keeps earlier slots."""
        launcher.fail_with = LaunchError("term", "no such file")
        launcher.fail_after = 1
        pool = make_pool(capacity=3)

        with pytest.raises(LaunchError):
            pool.request_refill()

        assert pool.pending_count == 1
        assert pending_index.count == 1

    def test_reused_pid_replaces_stale_entry(self, make_pool, launcher, pending_index):
        """Test a pid handed out twice is only pending once."""
        launcher.pid_queue = [500, 500]
        pool = make_pool(capacity=2)

        pool.request_refill()

        assert pool.pending_pids == [500]
        assert pending_index.count == 1

    def test_capacity_must_be_positive(self, make_pool):
        """Test capacity below 1 is rejected."""
        with pytest.raises(ValueError):
            make_pool(capacity=0)


class TestPoolEnqueue:
    """Test moving slots from pending to ready."""

    def test_enqueue_hides_resource(self, make_pool, make_resource, pending_index):
        """Test the resource is hidden and its placement cleared."""
        pool = make_pool(capacity=1)
        pool.request_refill()
        pid = pool.pending_pids[0]
        resource = make_resource(pid, hidden=False, tags=["3"])

        slot = pool.enqueue_ready(resource)

        assert resource.hidden is True
        assert resource.tags == []
        assert slot.was_hidden is False
        assert slot.state == SlotState.READY
        assert slot.launch_result.pid == pid
        assert pool.pending_count == 0
        assert pool.ready_count == 1
        assert pid not in pending_index

    def test_enqueue_remembers_hidden(self, make_pool, make_resource):
        """Test a resource that was already hidden stays hidden on hand-off."""
        pool = make_pool(capacity=1)
        pool.request_refill()

        slot = pool.enqueue_ready(make_resource(pool.pending_pids[0], hidden=True))

        assert slot.was_hidden is True

    def test_enqueue_unknown_pid(self, make_pool, make_resource):
        """Test enqueueing a pid that is not pending fails."""
        pool = make_pool(capacity=1)
        pool.request_refill()

        with pytest.raises(PoolStateError):
            pool.enqueue_ready(make_resource(99999))

        assert pool.pending_count == 1
        assert pool.ready_count == 0

    def test_enqueue_twice(self, make_pool, make_resource):
        """Test the same pid cannot become ready twice."""
        pool = make_pool(capacity=1)
        pool.request_refill()
        pid = pool.pending_pids[0]
        pool.enqueue_ready(make_resource(pid))

        with pytest.raises(PoolStateError):
            pool.enqueue_ready(make_resource(pid))


class TestPoolTake:
    """Test taking ready slots."""

    def _fill(self, pool, make_resource):
        pool.request_refill()
        resources = []
        for pid in list(pool.pending_pids):
            resource = make_resource(pid)
            pool.enqueue_ready(resource)
            resources.append(resource)
        return resources

    def test_take_is_lifo(self, make_pool, make_resource):
        """Test slots come out most recently readied first."""
        pool = make_pool(capacity=3)
        resources = self._fill(pool, make_resource)

        taken = [pool.take().resource for _ in range(3)]

        assert taken == list(reversed(resources))
        assert pool.take() is None

    def test_take_empty_pool(self, make_pool):
        """Test take on an empty pool returns None."""
        pool = make_pool(capacity=2)

        assert pool.take() is None

    def test_take_only_pending(self, make_pool):
        """Test take with only pending slots returns None."""
        pool = make_pool(capacity=2)
        pool.request_refill()

        assert pool.take() is None
        assert pool.pending_count == 2

    def test_take_skips_dead(self, make_pool, make_resource):
        """Test dead candidates are discarded."""
        pool = make_pool(capacity=3)
        resources = self._fill(pool, make_resource)
        resources[2].alive = False
        resources[1].alive = False

        slot = pool.take()

        assert slot.resource is resources[0]
        assert pool.ready_count == 0
        assert make_pool.metrics.stale_discarded == 2

    def test_take_all_dead(self, make_pool, make_resource):
        """Test a chain of dead slots is drained and None returned."""
        pool = make_pool(capacity=2)
        for resource in self._fill(pool, make_resource):
            resource.alive = False

        assert pool.take() is None
        assert pool.size == 0

    def test_take_skips_uninspectable_process(self, make_pool, make_resource):
        """Test a process psutil may not inspect is discarded, not raised."""
        pool = make_pool(capacity=2)
        pool.request_refill()
        live_pid, denied_pid = pool.pending_pids
        live = make_resource(live_pid)
        pool.enqueue_ready(live)
        pool.enqueue_ready(ProcessResource(pid=denied_pid))

        with patch(
            "spawnpool.core.launcher.process_table.psutil.Process",
            side_effect=psutil.AccessDenied(denied_pid),
        ):
            slot = pool.take()

        assert slot.resource is live
        assert pool.ready_count == 0
        assert make_pool.metrics.stale_discarded == 1

    def test_taken_slot_is_gone(self, make_pool, make_resource, pending_index):
        """Test a taken slot appears neither in the chain nor the index."""
        pool = make_pool(capacity=2)
        self._fill(pool, make_resource)

        slot = pool.take()

        assert slot.state == SlotState.TAKEN
        assert slot.next_slot is None
        assert slot.pid not in [s.pid for s in pool.iter_ready()]
        assert slot.pid not in pending_index
        with pytest.raises(PoolStateError):
            pool.enqueue_ready(slot.resource)

    def test_custom_liveness_check(self, make_pool, make_resource):
        """Test a pluggable liveness check replaces the handle probe."""
        pool = make_pool(capacity=2, liveness_check=lambda r: r.pid % 2 == 0)
        self._fill(pool, make_resource)

        slot = pool.take()

        assert slot.pid % 2 == 0

    def test_capacity_invariant(self, make_pool, make_resource):
        """Test pending + ready never exceeds capacity."""
        pool = make_pool(capacity=3)
        pool.request_refill()
        assert pool.size <= pool.capacity

        pool.enqueue_ready(make_resource(pool.pending_pids[0]))
        pool.request_refill()
        assert pool.size <= pool.capacity

        pool.take()
        pool.request_refill()
        assert pool.size == pool.capacity


class TestPoolDestroy:
    """Test pool teardown."""

    def test_destroy_kills_ready(self, make_pool, make_resource, pending_index):
        """Test ready resources are killed and pending pids dropped."""
        pool = make_pool(capacity=4)
        pool.request_refill()
        pids = pool.pending_pids
        resources = [make_resource(pid) for pid in pids[:2]]
        for resource in resources:
            pool.enqueue_ready(resource)

        assert pool.destroy() is True

        assert [r.kill_calls for r in resources] == [1, 1]
        assert pool.size == 0
        assert pending_index.count == 0
        assert pool.destroyed

    def test_destroy_idempotent(self, make_pool, make_resource):
        """Test destroying twice kills nothing more."""
        pool = make_pool(capacity=1)
        pool.request_refill()
        resource = make_resource(pool.pending_pids[0])
        pool.enqueue_ready(resource)

        assert pool.destroy() is True
        assert pool.destroy() is True
        assert resource.kill_calls == 1

    def test_destroyed_pool_ignores_refill(self, make_pool, launcher):
        """Test a pending refill after destroy launches nothing."""
        pool = make_pool(capacity=2)
        pool.destroy()

        assert pool.request_refill() == 0
        assert launcher.calls == []

    def test_destroy_survives_kill_failure(self, make_pool, make_resource):
        """Test one failing kill does not stop the others."""
        pool = make_pool(capacity=2)
        pool.request_refill()
        resources = [make_resource(pid) for pid in pool.pending_pids]
        for resource in resources:
            pool.enqueue_ready(resource)

        def broken_kill():
            raise OSError("permission denied")

        resources[1].kill = broken_kill

        assert pool.destroy() is True
        assert resources[0].kill_calls == 1


class TestPoolEvict:
    """Test evicting pending pids."""

    def test_evict_pending(self, make_pool, pending_index):
        """Test evicting drops the pid without touching other slots."""
        pool = make_pool(capacity=2)
        pool.request_refill()
        pid, other = pool.pending_pids

        assert pool.evict_pending(pid) is True

        assert pool.pending_pids == [other]
        assert pid not in pending_index
        assert make_pool.metrics.reclaimed == 1

    def test_evict_unknown(self, make_pool):
        """Test evicting a pid that is not pending."""
        pool = make_pool(capacity=1)

        assert pool.evict_pending(4242) is False

    def test_get_status(self, make_pool, make_resource):
        """Test pool status."""
        pool = make_pool(capacity=3)
        pool.request_refill()
        pids = pool.pending_pids
        pool.enqueue_ready(make_resource(pids[0]))
        pool.enqueue_ready(make_resource(pids[1]))

        status = pool.get_status()

        assert status.command == "term"
        assert status.capacity == 3
        assert status.pending == 1
        assert status.ready == 2
        assert status.ready_pids == [pids[1], pids[0]]
        assert status.pending_pids == [pids[2]]
        assert status.size == 3
