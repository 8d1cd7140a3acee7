"""
Service Setup

Build and configure the warm pool service based on settings.
"""

import asyncio
import logging
from typing import Optional

from .config import Settings, get_settings
from .launcher import PsutilProcessTable, SubprocessLauncher
from .resources import ResourceTable
from .scheduler import AsyncioScheduler
from .service import WarmPoolService

logger = logging.getLogger(__name__)

_service: Optional[WarmPoolService] = None


async def setup_service(settings: Settings = None) -> WarmPoolService:
    """
    Set up the warm pool service on the running event loop.

    Registers the configured pools (initial fills run on the next loop turn)
    and enables the reconciler when configured.

    Args:
        settings: Settings instance (uses default if None)

    Returns:
        Configured WarmPoolService
    """
    global _service

    settings = settings or get_settings()

    if _service is not None:
        _service.shutdown()

    service = WarmPoolService(
        launcher=SubprocessLauncher(
            shell=settings.launch_shell,
            cwd=settings.launch_cwd or None,
        ),
        process_table=PsutilProcessTable(),
        scheduler=AsyncioScheduler(asyncio.get_running_loop()),
        resource_table=ResourceTable(default_tags=settings.default_tags),
    )

    for command, capacity in settings.pools.items():
        try:
            if not service.register_command(command, capacity or settings.default_capacity):
                logger.warning(f"Pool for {command!r} not registered")
        except ValueError as e:
            logger.error(f"Invalid pool configuration for {command!r}: {e}")

    if settings.reconciler_enabled:
        service.enable_reconciler(settings.reconciler_interval)

    _service = service
    logger.info(f"Warm pool service ready ({len(service.pools)} pools)")
    return service


def get_service() -> Optional[WarmPoolService]:
    """Get the service built by setup_service"""
    return _service


async def cleanup_service() -> None:
    """Destroy every pool of the configured service"""
    global _service

    if _service is None:
        return

    _service.shutdown()
    _service = None
