"""
Spawn Router

Single entry point for "launch command C": managed commands are served from
their warm pool, everything else goes to the launcher untouched.
"""

import logging
from dataclasses import replace
from datetime import datetime, timezone
from typing import Callable, List, Optional

from .launcher.exceptions import LaunchError
from .launcher.interface import BaseLauncher, BaseResource
from .launcher.models import LaunchResult, SpawnMetrics
from .pool.pool import Pool
from .pool.registry import PoolRegistry
from .scheduler import Scheduler

logger = logging.getLogger(__name__)

PoolFactory = Callable[[str, int], Pool]
Announcer = Callable[[BaseResource], None]


class SpawnRouter:
    """
    Routes spawn requests through registered pools.

    Example:
        router.register_command("urxvt", 3)
        result = router.route_spawn("urxvt")   # warm process if one is ready
        router.route_spawn("xclock")           # not managed, launched directly
    """

    def __init__(
        self,
        launcher: BaseLauncher,
        pools: PoolRegistry,
        pool_factory: PoolFactory,
        scheduler: Scheduler,
        announce: Announcer,
        metrics: Optional[SpawnMetrics] = None,
    ):
        """
        Initialize spawn router.

        Args:
            launcher: Launcher used for direct launches
            pools: Command -> pool registry
            pool_factory: Builds a pool for (command, capacity)
            scheduler: Timer facility for deferred refills
            announce: Re-emits the ready notification for a handed-off resource
            metrics: Metrics to update
        """
        self.launcher = launcher
        self.pools = pools
        self.pool_factory = pool_factory
        self.scheduler = scheduler
        self.announce = announce
        self.metrics = metrics or SpawnMetrics()

    def route_spawn(self, command: str, startup_id: Optional[str] = None) -> LaunchResult:
        """
        Launch a command, using a warm process when possible.

        Args:
            command: Command line
            startup_id: Startup notification id; requests carrying one are
                never served from the pool

        Returns:
            LaunchResult of the warm process (``warm`` set) or of a direct
            launch

        Raises:
            LaunchError: If a direct launch fails
        """
        self.metrics.last_spawn_at = datetime.now(timezone.utc)

        pool = self.pools.get(command) if isinstance(command, str) else None
        if pool is None:
            self.metrics.passthrough += 1
            return self.launcher.launch(command, startup_id)

        if startup_id:
            logger.debug(f"Spawn {command!r} with startup notification, bypassing pool")
            self.metrics.passthrough += 1
            return self.launcher.launch(command, startup_id)

        slot = pool.take()
        self.schedule_refill(pool)

        if slot is None:
            logger.debug(f"Spawn {command!r}: no warm process left, launching directly")
            self.metrics.pool_misses += 1
            return self.launcher.launch(command)

        logger.debug(f"Spawn {command!r}: handing off pid {slot.pid}")
        self.metrics.pool_hits += 1

        resource = slot.resource
        resource.hidden = slot.was_hidden
        self.announce(resource)

        return replace(slot.launch_result, warm=True)

    def register_command(self, command: str, capacity: int = 1) -> bool:
        """
        Start managing a command.

        The initial fill is deferred to the next loop turn.

        Returns:
            False if the command is invalid or already registered

        Raises:
            ValueError: If capacity is below 1
        """
        if not isinstance(command, str) or not command.strip():
            logger.warning(f"Refusing to register invalid command: {command!r}")
            return False

        if command in self.pools:
            logger.warning(f"Command already registered: {command!r}")
            return False

        pool = self.pool_factory(command, capacity)
        self.pools.add(pool)
        self.schedule_refill(pool)

        logger.info(f"Registered command {command!r} (capacity={capacity})")
        return True

    def unregister_command(self, command: str) -> bool:
        """
        Stop managing a command, killing its warm processes.

        Returns:
            False if the command is not registered
        """
        if not isinstance(command, str):
            return False

        pool = self.pools.remove(command)
        if pool is None:
            return False

        pool.destroy()
        logger.info(f"Unregistered command {command!r}")
        return True

    def unregister_all(self) -> List[str]:
        """Unregister every command, returning the commands removed"""
        removed = []
        for command in self.pools:
            if self.unregister_command(command):
                removed.append(command)
        return removed

    def schedule_refill(self, pool: Pool) -> None:
        self.scheduler.call_soon(lambda: self._refill(pool))

    def _refill(self, pool: Pool) -> None:
        try:
            pool.request_refill()
        except LaunchError as e:
            logger.warning(f"Refill of {pool.command!r} failed: {e}")
