"""
Launcher Data Models

Launch results, pool status and spawn metrics.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional


def _utcnow() -> datetime:
    """Get current UTC time (timezone-aware)"""
    return datetime.now(timezone.utc)


@dataclass
class LaunchResult:
    """Result of launching a command"""

    pid: int
    command: str

    # Startup notification id requested by the caller, if any
    startup_id: Optional[str] = None

    launched_at: datetime = field(default_factory=_utcnow)

    # Handed out from a warm pool rather than launched for this request
    warm: bool = False

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization"""
        return {
            "pid": self.pid,
            "command": self.command,
            "startup_id": self.startup_id,
            "launched_at": self.launched_at.isoformat(),
            "warm": self.warm,
        }


@dataclass
class PoolStatus:
    """Warm pool status for one command"""

    command: str
    capacity: int
    pending: int
    ready: int

    pending_pids: List[int] = field(default_factory=list)
    ready_pids: List[int] = field(default_factory=list)

    @property
    def size(self) -> int:
        """Slots currently covered (pending + ready)"""
        return self.pending + self.ready

    @property
    def fill_ratio(self) -> float:
        """Ready slots relative to capacity (0.0 - 1.0)"""
        if self.capacity == 0:
            return 0.0
        return self.ready / self.capacity

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization"""
        return {
            "command": self.command,
            "capacity": self.capacity,
            "pending": self.pending,
            "ready": self.ready,
            "size": self.size,
            "fill_ratio": self.fill_ratio,
            "pending_pids": self.pending_pids,
            "ready_pids": self.ready_pids,
        }


@dataclass
class SpawnMetrics:
    """Spawn routing metrics"""

    # Routed spawns
    pool_hits: int = 0
    pool_misses: int = 0
    passthrough: int = 0

    # Pool maintenance
    launches: int = 0
    launch_failures: int = 0
    reclaimed: int = 0
    stale_discarded: int = 0

    last_spawn_at: Optional[datetime] = None

    @property
    def pool_hit_ratio(self) -> float:
        """Pool hit ratio among managed spawns (0.0 - 1.0)"""
        total = self.pool_hits + self.pool_misses
        if total == 0:
            return 0.0
        return self.pool_hits / total

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization"""
        return {
            "pool_hits": self.pool_hits,
            "pool_misses": self.pool_misses,
            "pool_hit_ratio": self.pool_hit_ratio,
            "passthrough": self.passthrough,
            "launches": self.launches,
            "launch_failures": self.launch_failures,
            "reclaimed": self.reclaimed,
            "stale_discarded": self.stale_discarded,
            "last_spawn_at": self.last_spawn_at.isoformat() if self.last_spawn_at else None,
        }
