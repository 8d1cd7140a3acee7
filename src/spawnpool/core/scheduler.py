"""
Scheduler

Timer facility used to defer refills and drive the reconciler.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class BasePeriodicTimer(ABC):
    """Restartable periodic timer"""

    interval: float

    @property
    @abstractmethod
    def started(self) -> bool:
        """Whether the timer is armed"""
        pass

    @abstractmethod
    def start(self) -> None:
        """Arm the timer (no-op if already armed)"""
        pass

    @abstractmethod
    def stop(self) -> None:
        """Disarm the timer (no-op if not armed)"""
        pass


class Scheduler(ABC):
    """
    Host timer facility.

    Callbacks always run on the host's event loop, one at a time, so the pool
    engine needs no locking.
    """

    @abstractmethod
    def call_soon(self, callback: Callable[[], None]) -> None:
        """Run callback on the next loop turn"""
        pass

    @abstractmethod
    def periodic(self, interval: float, callback: Callable[[], None]) -> BasePeriodicTimer:
        """Create a (not yet started) periodic timer"""
        pass


class AsyncioPeriodicTimer(BasePeriodicTimer):
    """Periodic timer built on ``loop.call_later``"""

    def __init__(
        self,
        loop: asyncio.AbstractEventLoop,
        interval: float,
        callback: Callable[[], None],
    ):
        self.interval = interval
        self._loop = loop
        self._callback = callback
        self._handle: Optional[asyncio.TimerHandle] = None

    @property
    def started(self) -> bool:
        return self._handle is not None

    def start(self) -> None:
        if self._handle is None:
            self._handle = self._loop.call_later(self.interval, self._fire)

    def stop(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _fire(self) -> None:
        # Re-arm first so the callback can stop the timer
        self._handle = self._loop.call_later(self.interval, self._fire)
        try:
            self._callback()
        except Exception as e:
            logger.error(f"Periodic timer callback failed: {e}", exc_info=True)


class AsyncioScheduler(Scheduler):
    """
    Scheduler running callbacks on an asyncio event loop.

    Example:
        scheduler = AsyncioScheduler(asyncio.get_running_loop())
        scheduler.call_soon(pool.request_refill)
    """

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        """
        Initialize scheduler.

        Args:
            loop: Event loop to use (the running loop if None)
        """
        self._loop = loop

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def call_soon(self, callback: Callable[[], None]) -> None:
        self.loop.call_soon(self._run, callback)

    def periodic(self, interval: float, callback: Callable[[], None]) -> AsyncioPeriodicTimer:
        return AsyncioPeriodicTimer(self.loop, interval, callback)

    @staticmethod
    def _run(callback: Callable[[], None]) -> None:
        try:
            callback()
        except Exception as e:
            logger.error(f"Deferred callback failed: {e}", exc_info=True)
