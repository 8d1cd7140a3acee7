"""
Launcher Exceptions

Custom exceptions for launch, process table and pool operations.
"""

from typing import Optional


class SpawnPoolError(Exception):
    """Base exception for spawn pool errors"""

    def __init__(self, message: str, command: Optional[str] = None):
        self.message = message
        self.command = command
        super().__init__(message)


class LaunchError(SpawnPoolError):
    """Raised when the launcher fails to start a command"""

    def __init__(self, command: str, reason: str):
        self.reason = reason
        super().__init__(f"Failed to launch {command!r}: {reason}", command=command)


class ProcessTableError(SpawnPoolError):
    """Raised when the OS process table cannot be queried"""

    def __init__(self, message: str = "Process table query failed"):
        super().__init__(message)


class StaleResourceError(SpawnPoolError):
    """Raised when a resource handle no longer resolves to a live resource"""

    def __init__(self, pid: Optional[int]):
        self.pid = pid
        super().__init__(f"Resource handle is stale (pid: {pid})")


class PoolStateError(SpawnPoolError):
    """Raised when a pool is asked to handle a pid it does not own"""

    def __init__(self, command: str, pid: Optional[int]):
        self.pid = pid
        super().__init__(
            f"Pid {pid} is not pending in pool {command!r}",
            command=command,
        )
