"""
Host Interfaces

Abstract base classes for the collaborators the pool engine talks to:
the process launcher, the OS process table and managed resource handles.
"""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, List, Optional, Set

if TYPE_CHECKING:
    from .models import LaunchResult


class BaseLauncher(ABC):
    """
    Abstract process launcher.

    Implementations start a command in the background and return as soon as
    the OS has assigned a pid. The resource the process creates is announced
    later, and separately, through a ready notification.

    Example:
        class EchoLauncher(BaseLauncher):
            def launch(self, command, startup_id=None):
                pid = start_somehow(command)
                return LaunchResult(pid=pid, command=command, startup_id=startup_id)
    """

    @abstractmethod
    def launch(self, command: str, startup_id: Optional[str] = None) -> "LaunchResult":
        """
        Launch a command.

        Args:
            command: Command line to launch
            startup_id: Startup notification id requested by the caller

        Returns:
            LaunchResult with the new pid

        Raises:
            LaunchError: If the command could not be started
        """
        pass

    def reap(self) -> int:
        """
        Collect launched children that have exited.

        Override this in launchers that own their children. Called on every
        reconciler tick.

        Returns:
            Number of children collected
        """
        return 0


class BaseProcessTable(ABC):
    """Abstract view of the OS process table"""

    @abstractmethod
    def live_pids(self) -> Set[int]:
        """
        Enumerate currently live pids.

        Raises:
            ProcessTableError: If the table could not be read
        """
        pass


class BaseResource(ABC):
    """
    Handle of a resource created by a launched process.

    The host delivers one of these per ready notification. ``hidden`` and
    ``tags`` are mutable: the pool hides captured resources and clears their
    placement until they are handed to a caller.
    """

    pid: Optional[int]
    hidden: bool
    tags: List[str]

    @abstractmethod
    def is_alive(self) -> bool:
        """
        Probe the handle.

        Raises:
            StaleResourceError: If the handle no longer resolves
        """
        pass

    @abstractmethod
    def kill(self) -> None:
        """Forcibly terminate the resource"""
        pass
