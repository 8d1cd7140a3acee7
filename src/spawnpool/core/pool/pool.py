"""
Warm Pool

Per-command pool of pre-launched, hidden processes.
"""

import logging
from contextlib import nullcontext
from typing import Callable, ContextManager, Dict, Iterator, List, Optional

from ..launcher.exceptions import PoolStateError, StaleResourceError
from ..launcher.interface import BaseResource
from ..launcher.models import LaunchResult, PoolStatus, SpawnMetrics
from .registry import PendingIndex
from .slot import ReadySlot, SlotState

logger = logging.getLogger(__name__)

LaunchFn = Callable[[str], LaunchResult]
LivenessCheck = Callable[[BaseResource], bool]
LaunchWindow = Callable[[], ContextManager[None]]


def default_liveness_check(resource: BaseResource) -> bool:
    """Probe the resource handle itself"""
    return resource.is_alive()


class Pool:
    """
    Pool of warm processes for one command.

    Each slot is launched (PENDING, indexed by pid in the shared
    PendingIndex), becomes READY once the host announces its resource, and
    is finally TAKEN by a caller. Ready slots are kept in a LIFO chain whose
    head is the most recently readied slot.

    ``pending_count + ready_count`` never exceeds ``capacity`` once an
    operation returns.

    Example:
        pool = Pool("urxvt", 3, launcher.launch, pending_index)
        pool.request_refill()           # 3 launches, all pending
        pool.enqueue_ready(resource)    # from the ready notification
        slot = pool.take()              # most recent ready slot, or None
    """

    def __init__(
        self,
        command: str,
        capacity: int,
        launch: LaunchFn,
        pending_index: PendingIndex,
        liveness_check: Optional[LivenessCheck] = None,
        metrics: Optional[SpawnMetrics] = None,
        launch_window: Optional[LaunchWindow] = None,
    ):
        """
        Initialize pool.

        Args:
            command: Command this pool pre-launches
            capacity: Target number of warm slots
            launch: Function launching the command
            pending_index: Shared pid -> pool index
            liveness_check: Probe run on each candidate at take time
            metrics: Metrics to update (stale discards, reclaimed slots)
            launch_window: Context wrapping each launch and its booking, for
                ready notifications delivered before the pid is known
        """
        if capacity < 1:
            raise ValueError("capacity must be at least 1")

        self.command = command
        self.capacity = capacity

        self._launch = launch
        self._pending_index = pending_index
        self._liveness_check = liveness_check or default_liveness_check
        self._metrics = metrics
        self._launch_window = launch_window or nullcontext

        # Pid -> launch metadata for slots waiting on a ready notification
        self._pending: Dict[int, LaunchResult] = {}

        # Ready chain
        self._head: Optional[ReadySlot] = None
        self._ready_count = 0

        self._destroyed = False

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    @property
    def ready_count(self) -> int:
        return self._ready_count

    @property
    def size(self) -> int:
        """Slots covered by pending launches and ready resources"""
        return len(self._pending) + self._ready_count

    @property
    def destroyed(self) -> bool:
        return self._destroyed

    @property
    def pending_pids(self) -> List[int]:
        return list(self._pending)

    def is_pending(self, pid: Optional[int]) -> bool:
        return pid in self._pending

    def iter_ready(self) -> Iterator[ReadySlot]:
        """Ready slots, most recently readied first"""
        slot = self._head
        while slot is not None:
            yield slot
            slot = slot.next_slot

    def request_refill(self) -> int:
        """
        Launch processes for every unit of capacity not yet covered.

        Each launch is booked (metadata stored, pid indexed) before the next
        one starts. A launch failure propagates; slots launched before it
        stay pending.

        Returns:
            Number of processes launched
        """
        if self._destroyed:
            logger.debug(f"Refill skipped for destroyed pool {self.command!r}")
            return 0

        missing = self.capacity - self.size
        launched = 0

        for _ in range(missing):
            with self._launch_window():
                result = self._launch(self.command)

                # Index first: a stale entry for a reused pid may live in this pool
                self._pending_index.add(result.pid, self)
                self._pending[result.pid] = result
            launched += 1

            logger.debug(f"Launched {self.command!r} pid {result.pid} (pending)")

        if launched:
            logger.debug(
                f"Refilled pool {self.command!r}: launched={launched}, "
                f"pending={self.pending_count}, ready={self.ready_count}"
            )

        return launched

    def enqueue_ready(self, resource: BaseResource) -> ReadySlot:
        """
        Move a pending slot to the ready chain.

        The resource is hidden and its placement cleared until a caller takes
        it; its previous visibility is kept on the slot.

        Args:
            resource: Resource announced by a pending process

        Returns:
            The new head of the ready chain

        Raises:
            PoolStateError: If the resource's pid is not pending here
        """
        pid = resource.pid
        launch_result = self._pending.pop(pid, None) if pid is not None else None
        if launch_result is None:
            raise PoolStateError(self.command, pid)

        self._pending_index.discard(pid, self)

        slot = ReadySlot(
            resource=resource,
            launch_result=launch_result,
            was_hidden=resource.hidden,
            next_slot=self._head,
        )

        resource.hidden = True
        resource.tags = []

        self._head = slot
        self._ready_count += 1

        logger.debug(f"Enqueued {self.command!r} pid {pid} (ready={self.ready_count})")
        return slot

    def take(self) -> Optional[ReadySlot]:
        """
        Pop the most recently readied live slot.

        Dead candidates met on the way are dropped.

        Returns:
            ReadySlot if one is available, None if the chain is exhausted
        """
        while self._head is not None:
            slot = self._head
            self._head = slot.next_slot
            self._ready_count -= 1

            if self._is_alive(slot.resource):
                slot.mark_taken()
                logger.debug(f"Took {self.command!r} pid {slot.pid}")
                return slot

            slot.state = SlotState.RECLAIMED
            slot.next_slot = None
            if self._metrics is not None:
                self._metrics.stale_discarded += 1
            logger.debug(f"Discarded dead {self.command!r} pid {slot.pid}")

        logger.debug(f"No ready slot left for {self.command!r}")
        return None

    def evict_pending(self, pid: int) -> bool:
        """
        Drop a pending pid without killing anything.

        Returns:
            True if the pid was pending here
        """
        launch_result = self._pending.pop(pid, None)
        self._pending_index.discard(pid, self)

        if launch_result is None:
            return False

        if self._metrics is not None:
            self._metrics.reclaimed += 1
        logger.debug(f"Evicted pending {self.command!r} pid {pid}")
        return True

    def destroy(self) -> bool:
        """
        Tear the pool down.

        Pending pids are dropped from the index (their processes, once ready,
        get default handling). Every ready resource is killed.

        Returns:
            Always True
        """
        self._destroyed = True

        for pid in list(self._pending):
            self._pending_index.discard(pid, self)
        abandoned = len(self._pending)
        self._pending.clear()

        killed = 0
        slot = self._head
        self._head = None
        self._ready_count = 0

        while slot is not None:
            next_slot = slot.next_slot
            slot.next_slot = None
            slot.state = SlotState.RECLAIMED
            try:
                slot.resource.kill()
                killed += 1
            except Exception as e:
                logger.error(f"Failed to kill {self.command!r} pid {slot.pid}: {e}")
            slot = next_slot

        logger.info(
            f"Destroyed pool {self.command!r}: killed={killed}, abandoned={abandoned}"
        )
        return True

    def get_status(self) -> PoolStatus:
        return PoolStatus(
            command=self.command,
            capacity=self.capacity,
            pending=self.pending_count,
            ready=self.ready_count,
            pending_pids=self.pending_pids,
            ready_pids=[slot.pid for slot in self.iter_ready()],
        )

    def _is_alive(self, resource: BaseResource) -> bool:
        try:
            return bool(self._liveness_check(resource))
        except StaleResourceError:
            return False

    def __repr__(self) -> str:
        return (
            f"Pool(command={self.command!r}, capacity={self.capacity}, "
            f"pending={self.pending_count}, ready={self.ready_count})"
        )
