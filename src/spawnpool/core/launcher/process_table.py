"""
Process Table

psutil-backed view of live OS processes, and the resource handle used for
processes announced over the API.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Set

import psutil

from .exceptions import ProcessTableError, StaleResourceError
from .interface import BaseProcessTable, BaseResource

logger = logging.getLogger(__name__)


class PsutilProcessTable(BaseProcessTable):
    """
    Process table backed by ``psutil.process_iter()``.

    Zombies are left out: they have exited and only wait for their parent
    to collect them.
    """

    def live_pids(self) -> Set[int]:
        try:
            return {
                proc.pid
                for proc in psutil.process_iter(["status"])
                if proc.info["status"] != psutil.STATUS_ZOMBIE
            }
        except (psutil.Error, OSError) as e:
            raise ProcessTableError(f"Failed to list processes: {e}") from e


@dataclass
class ProcessResource(BaseResource):
    """
    Resource handle identified by its owning process.

    Zombies count as dead: the process has exited and only its table entry
    is left.
    """

    pid: Optional[int]
    hidden: bool = False
    tags: List[str] = field(default_factory=list)

    def is_alive(self) -> bool:
        if self.pid is None:
            raise StaleResourceError(self.pid)

        try:
            proc = psutil.Process(self.pid)
            return proc.status() != psutil.STATUS_ZOMBIE
        except psutil.Error as e:
            # Gone, or no longer ours to inspect
            raise StaleResourceError(self.pid) from e

    def kill(self) -> None:
        if self.pid is None:
            return

        try:
            psutil.Process(self.pid).kill()
            logger.debug(f"Killed pid {self.pid}")
        except psutil.NoSuchProcess:
            logger.debug(f"Pid {self.pid} already gone")
