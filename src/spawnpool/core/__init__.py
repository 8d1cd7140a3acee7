"""
Pool Lifecycle Engine

Warm pools, spawn and ready-notification routing, and reconciliation.
"""

from .notifications import ReadyNotificationRouter
from .resources import ResourceTable
from .router import SpawnRouter
from .scheduler import AsyncioScheduler, Scheduler
from .service import WarmPoolService

__all__ = [
    "ReadyNotificationRouter",
    "ResourceTable",
    "SpawnRouter",
    "AsyncioScheduler",
    "Scheduler",
    "WarmPoolService",
]
