"""
Warm Pool Service

High-level facade wiring pools, routers and the reconciler together.
"""

import logging
from typing import List, Optional

from .launcher.exceptions import LaunchError
from .launcher.interface import BaseLauncher, BaseProcessTable, BaseResource
from .launcher.models import LaunchResult, PoolStatus, SpawnMetrics
from .notifications import ReadyNotificationRouter
from .pool.pool import LivenessCheck, Pool
from .pool.reconciler import DEFAULT_INTERVAL, Reconciler
from .pool.registry import PendingIndex, PoolRegistry
from .resources import ResourceTable
from .router import SpawnRouter
from .scheduler import Scheduler

logger = logging.getLogger(__name__)


class WarmPoolService:
    """
    Owns all pool state for one host.

    The pool registry and pending index live here and are handed by
    reference to the routers, the pools and the reconciler. Everything runs
    on the scheduler's event loop.

    Example:
        service = WarmPoolService(
            launcher=SubprocessLauncher(),
            process_table=PsutilProcessTable(),
            scheduler=AsyncioScheduler(),
        )
        service.register_command("urxvt", 3)
        service.enable_reconciler()

        # Host hooks
        service.notify_ready(resource)   # on every "resource ready" event
        service.spawn("urxvt")           # instead of launching directly

        service.shutdown()
    """

    def __init__(
        self,
        launcher: BaseLauncher,
        process_table: BaseProcessTable,
        scheduler: Scheduler,
        resource_table: Optional[ResourceTable] = None,
        liveness_check: Optional[LivenessCheck] = None,
    ):
        """
        Initialize service.

        Args:
            launcher: Launch facility
            process_table: Live process source for the reconciler
            scheduler: Timer facility
            resource_table: Default handling for unpooled resources
            liveness_check: Probe run on ready slots at take time
        """
        self.launcher = launcher
        self.process_table = process_table
        self.scheduler = scheduler
        self.resource_table = resource_table if resource_table is not None else ResourceTable()
        self.liveness_check = liveness_check

        self.metrics = SpawnMetrics()
        self.pending_index = PendingIndex()
        self.pools = PoolRegistry()

        self.ready_router = ReadyNotificationRouter(
            self.pending_index, self.resource_table.manage
        )
        self.reconciler = Reconciler(
            self.pending_index, process_table, scheduler, reap=launcher.reap
        )
        self.spawn_router = SpawnRouter(
            launcher=launcher,
            pools=self.pools,
            pool_factory=self._create_pool,
            scheduler=scheduler,
            announce=self.ready_router.handle,
            metrics=self.metrics,
        )

    def register_command(self, command: str, capacity: int = 1) -> bool:
        """Start keeping ``capacity`` warm processes for a command"""
        return self.spawn_router.register_command(command, capacity)

    def unregister_command(self, command: str) -> bool:
        """Stop managing a command, killing its warm processes"""
        return self.spawn_router.unregister_command(command)

    def is_registered(self, command: str) -> bool:
        return command in self.pools

    def enable_reconciler(self, interval_seconds: float = DEFAULT_INTERVAL) -> bool:
        """Periodically drop pending pids whose process is gone"""
        return self.reconciler.enable(interval_seconds)

    def disable_reconciler(self) -> None:
        self.reconciler.disable()

    def spawn(self, command: str, startup_id: Optional[str] = None) -> LaunchResult:
        """Launch a command, handing out a warm process when one is ready"""
        return self.spawn_router.route_spawn(command, startup_id)

    def notify_ready(self, resource: BaseResource) -> bool:
        """
        Feed a host "resource ready" notification.

        Returns:
            True if a pool captured the resource
        """
        return self.ready_router.handle(resource)

    def get_status(self, command: Optional[str] = None) -> List[PoolStatus]:
        """
        Get pool status.

        Args:
            command: Specific command, or None for every pool
        """
        if command is not None:
            pool = self.pools.get(command)
            return [pool.get_status()] if pool is not None else []

        return [pool.get_status() for pool in self.pools.pools()]

    def get_metrics(self) -> SpawnMetrics:
        return self.metrics

    def shutdown(self) -> None:
        """Destroy every pool and stop the reconciler"""
        logger.info("Shutting down warm pool service")
        self.reconciler.disable()
        removed = self.spawn_router.unregister_all()
        logger.info(f"Warm pool service stopped ({len(removed)} pools destroyed)")

    def _create_pool(self, command: str, capacity: int) -> Pool:
        return Pool(
            command=command,
            capacity=capacity,
            launch=self._launch_for_pool,
            pending_index=self.pending_index,
            liveness_check=self.liveness_check,
            metrics=self.metrics,
            launch_window=self.ready_router.launch_window,
        )

    def _launch_for_pool(self, command: str) -> LaunchResult:
        try:
            result = self.launcher.launch(command)
        except LaunchError:
            self.metrics.launch_failures += 1
            raise

        self.metrics.launches += 1
        self.reconciler.arm()
        return result
