"""
Pool Slots

Slot states and the ready slot wrapper kept in a pool's LIFO chain.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from ..launcher.interface import BaseResource
from ..launcher.models import LaunchResult


class SlotState(str, Enum):
    """Slot state in the warm pool"""

    REQUESTED = "requested"  # Launch issued, no pid yet
    PENDING = "pending"  # Pid known, waiting for ready notification
    READY = "ready"  # Hidden, available for take
    TAKEN = "taken"  # Handed to a caller
    RECLAIMED = "reclaimed"  # Dropped before ever becoming ready


@dataclass
class ReadySlot:
    """
    A launched process whose resource is ready and hidden.

    Slots form a singly linked chain: ``next_slot`` points at the slot that
    was readied before this one.
    """

    resource: BaseResource
    launch_result: LaunchResult

    # Visibility before the pool hid the resource
    was_hidden: bool = False

    next_slot: Optional["ReadySlot"] = field(default=None, repr=False)

    state: SlotState = SlotState.READY

    @property
    def pid(self) -> Optional[int]:
        return self.resource.pid

    def mark_taken(self) -> None:
        self.state = SlotState.TAKEN
        self.next_slot = None

