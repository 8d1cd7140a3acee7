"""
Process Launcher Layer

Launch facility, OS process table and resource handles the pool engine
builds on.
"""

from .interface import BaseLauncher, BaseProcessTable, BaseResource
from .models import LaunchResult, PoolStatus, SpawnMetrics
from .subprocess_launcher import SubprocessLauncher
from .process_table import PsutilProcessTable, ProcessResource
from .exceptions import (
    SpawnPoolError,
    LaunchError,
    ProcessTableError,
    StaleResourceError,
    PoolStateError,
)

__all__ = [
    # Interface
    "BaseLauncher",
    "BaseProcessTable",
    "BaseResource",
    # Models
    "LaunchResult",
    "PoolStatus",
    "SpawnMetrics",
    # Host adapters
    "SubprocessLauncher",
    "PsutilProcessTable",
    "ProcessResource",
    # Exceptions
    "SpawnPoolError",
    "LaunchError",
    "ProcessTableError",
    "StaleResourceError",
    "PoolStateError",
]
