"""
Pending Reconciler

Periodic task that drops pending pids whose process already exited.
"""

import logging
from typing import Callable, Optional

from ..launcher.exceptions import ProcessTableError
from ..launcher.interface import BaseProcessTable
from ..scheduler import BasePeriodicTimer, Scheduler
from .registry import PendingIndex

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL = 30.0


class Reconciler:
    """
    Cross-checks pending pids against the live process table.

    A process that exits before announcing its resource would otherwise stay
    pending forever, and a later unrelated process reusing its pid would be
    captured into the pool. Each tick evicts every pending pid that is not
    alive; nothing is killed.

    The timer disarms itself whenever nothing is pending and is rearmed by
    the next pool launch.
    """

    def __init__(
        self,
        pending_index: PendingIndex,
        process_table: BaseProcessTable,
        scheduler: Scheduler,
        reap: Optional[Callable[[], int]] = None,
    ):
        """
        Initialize reconciler.

        Args:
            pending_index: Shared pid -> pool index
            process_table: Live process source
            scheduler: Timer facility
            reap: Collects exited children before each pass, so they do not
                linger as zombies
        """
        self.pending_index = pending_index
        self.process_table = process_table
        self.scheduler = scheduler
        self.reap = reap

        self._timer: Optional[BasePeriodicTimer] = None

    @property
    def enabled(self) -> bool:
        return self._timer is not None

    @property
    def running(self) -> bool:
        return self._timer is not None and self._timer.started

    @property
    def interval(self) -> Optional[float]:
        return self._timer.interval if self._timer is not None else None

    def enable(self, interval: float = DEFAULT_INTERVAL) -> bool:
        """
        Enable reconciliation.

        Args:
            interval: Seconds between ticks

        Returns:
            False if already enabled
        """
        if self._timer is not None:
            return False

        if interval <= 0:
            raise ValueError("interval must be positive")

        self._timer = self.scheduler.periodic(interval, self.tick)
        logger.info(f"Reconciler enabled (interval={interval}s)")

        if self.pending_index.count > 0:
            self.arm()
        return True

    def disable(self) -> None:
        """Disable reconciliation and drop the timer"""
        if self._timer is None:
            return

        self._timer.stop()
        self._timer = None
        logger.info("Reconciler disabled")

    def arm(self) -> None:
        """Start the timer if enabled and idle (called on every pool launch)"""
        if self._timer is not None and not self._timer.started:
            self._timer.start()
            logger.debug("Reconciler on")

    def tick(self) -> int:
        """
        Run one reconciliation pass.

        Returns:
            Number of evicted pending pids
        """
        if self.pending_index.count == 0:
            if self._timer is not None:
                self._timer.stop()
            logger.debug("Reconciler off")
            return 0

        if self.reap is not None:
            self.reap()

        try:
            live = self.process_table.live_pids()
        except ProcessTableError as e:
            logger.warning(f"Reconciler skipped tick: {e}")
            return 0

        evicted = 0
        for pid, pool in self.pending_index.items():
            if pid in live:
                continue

            if pool.evict_pending(pid):
                evicted += 1
                logger.info(f"Reconciler collected {pool.command!r} pid {pid}")

        return evicted
