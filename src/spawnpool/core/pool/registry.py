"""
Pool Registry and Pending Index

Service-wide bookkeeping shared by every pool: which command owns which
pool, and which pool is waiting for a ready notification from which pid.
"""

import logging
from typing import TYPE_CHECKING, Dict, Iterator, List, Optional, Tuple

if TYPE_CHECKING:
    from .pool import Pool

logger = logging.getLogger(__name__)


class PendingIndex:
    """
    Map from pending pid to the pool expecting its ready notification.

    A pid belongs to at most one pool. Indexing a pid that is still owned
    means the OS reused it after the earlier process exited unnoticed; the
    stale entry is evicted from its pool first.
    """

    def __init__(self):
        self._owners: Dict[int, "Pool"] = {}

    @property
    def count(self) -> int:
        return len(self._owners)

    def __len__(self) -> int:
        return len(self._owners)

    def __contains__(self, pid: object) -> bool:
        return pid in self._owners

    def owner(self, pid: Optional[int]) -> Optional["Pool"]:
        if pid is None:
            return None
        return self._owners.get(pid)

    def add(self, pid: int, pool: "Pool") -> None:
        stale_owner = self._owners.get(pid)
        if stale_owner is not None:
            logger.warning(
                f"Pid {pid} reused while pending for {stale_owner.command!r}, "
                f"evicting stale entry"
            )
            stale_owner.evict_pending(pid)

        self._owners[pid] = pool

    def discard(self, pid: int, pool: Optional["Pool"] = None) -> bool:
        """
        Remove a pid.

        Args:
            pid: Pid to remove
            pool: Only remove if owned by this pool

        Returns:
            True if an entry was removed
        """
        current = self._owners.get(pid)
        if current is None or (pool is not None and current is not pool):
            return False

        del self._owners[pid]
        return True

    def items(self) -> List[Tuple[int, "Pool"]]:
        """Snapshot of (pid, pool) pairs, safe to iterate while evicting"""
        return list(self._owners.items())


class PoolRegistry:
    """Map from command to its pool"""

    def __init__(self):
        self._pools: Dict[str, "Pool"] = {}

    def __contains__(self, command: object) -> bool:
        return command in self._pools

    def __len__(self) -> int:
        return len(self._pools)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._pools))

    def get(self, command: str) -> Optional["Pool"]:
        return self._pools.get(command)

    def add(self, pool: "Pool") -> None:
        if pool.command in self._pools:
            raise KeyError(f"Command already registered: {pool.command!r}")
        self._pools[pool.command] = pool

    def remove(self, command: str) -> Optional["Pool"]:
        return self._pools.pop(command, None)

    def pools(self) -> List["Pool"]:
        return list(self._pools.values())

    def commands(self) -> List[str]:
        return list(self._pools)
