"""
Ready Notification Router

Decides whether a freshly announced resource belongs to a pool or gets the
host's default handling.
"""

import logging
from contextlib import contextmanager
from typing import Callable, Iterator, List

from .launcher.interface import BaseResource
from .pool.registry import PendingIndex

logger = logging.getLogger(__name__)

DefaultHandler = Callable[[BaseResource], None]


class ReadyNotificationRouter:
    """
    Routes "resource ready" notifications.

    Resources whose pid is pending in some pool are fed to that pool and
    default handling is skipped; they get it later, when the pool hands them
    to a caller and the notification is emitted again. Everything else goes
    straight to the default handler.

    A launcher may announce the resource before returning the pid. While a
    pool launch is in flight (see ``launch_window``) unknown resources are
    held and routed again once the launch is booked.
    """

    def __init__(self, pending_index: PendingIndex, default_handler: DefaultHandler):
        """
        Initialize router.

        Args:
            pending_index: Shared pid -> pool index
            default_handler: Host default handling (show and place the resource)
        """
        self.pending_index = pending_index
        self.default_handler = default_handler

        self._launching = 0
        self._held: List[BaseResource] = []

    @property
    def held_count(self) -> int:
        return len(self._held)

    @contextmanager
    def launch_window(self) -> Iterator[None]:
        """
        Wrap a pool launch and the booking of its pid.

        Held notifications are routed again when the outermost window
        closes, whether or not the launch succeeded.
        """
        self._launching += 1
        try:
            yield
        finally:
            self._launching -= 1
            if self._launching == 0 and self._held:
                held, self._held = self._held, []
                for resource in held:
                    self.handle(resource)

    def handle(self, resource: BaseResource) -> bool:
        """
        Handle a ready notification.

        Args:
            resource: Newly created resource

        Returns:
            True if a pool captured the resource, or it is held until the
            launch in flight is booked
        """
        pid = getattr(resource, "pid", None)

        if pid is not None and self.pending_index.count > 0:
            pool = self.pending_index.owner(pid)
            if pool is not None and pool.is_pending(pid):
                pool.enqueue_ready(resource)
                return True

        if pid is not None and self._launching:
            logger.debug(f"Holding ready notification for pid {pid} during launch")
            self._held.append(resource)
            return True

        self.default_handler(resource)
        return False

    __call__ = handle
