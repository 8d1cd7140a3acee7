"""
Warm Pool Management

Per-command pools of pre-launched, hidden processes.
Tracks each slot from launch to hand-off and reclaims stale pending pids.
"""

from .slot import ReadySlot, SlotState
from .registry import PendingIndex, PoolRegistry
from .pool import Pool, default_liveness_check
from .reconciler import Reconciler

__all__ = [
    "ReadySlot",
    "SlotState",
    "PendingIndex",
    "PoolRegistry",
    "Pool",
    "default_liveness_check",
    "Reconciler",
]
