"""
Scoped one-shot timers for transient UI elements (toasts, tooltips).

A timer fires its callback once after a delay unless cancelled first. Either
way it is removed from its scope, so closing a scope cancels everything still
pending and no callback runs against state that was already torn down.
"""

import asyncio
import logging
from typing import Callable, Optional, Set

logger = logging.getLogger(__name__)


class ScopedTimer:
    """One-shot asyncio timer."""

    def __init__(self, delay: float, callback: Callable[[], None],
                 scope: Optional["TimerScope"] = None):
        self.delay = delay
        self.callback = callback
        self.scope = scope
        self._task: Optional[asyncio.Task] = None
        self.expired = False
        self.cancelled = False

    @property
    def pending(self) -> bool:
        return self._task is not None and not self._task.done() and not self.cancelled

    def start(self) -> "ScopedTimer":
        if self._task is None:
            self._task = asyncio.get_running_loop().create_task(self._run())
            if self.scope:
                self.scope._timers.add(self)
        return self

    async def _run(self):
        try:
            await asyncio.sleep(self.delay)
            if self.cancelled:
                return
            self.expired = True
            try:
                self.callback()
            except Exception as e:
                logger.exception(f"Timer callback failed: {e}")
        finally:
            self._release()

    def cancel(self) -> bool:
        """Cancel the timer; returns False if it already fired or was cancelled."""
        if self.expired or self.cancelled:
            return False
        self.cancelled = True
        if self._task and not self._task.done():
            self._task.cancel()
        self._release()
        return True

    def _release(self):
        if self.scope:
            self.scope._timers.discard(self)

    async def wait(self):
        """Wait until the timer has fired or been cancelled."""
        if self._task is None:
            return
        try:
            await self._task
        except asyncio.CancelledError:
            if not self.cancelled:
                raise


class TimerScope:
    """Owns timers so they can all be cancelled together."""

    def __init__(self):
        self._timers: Set[ScopedTimer] = set()

    def call_later(self, delay: float, callback: Callable[[], None]) -> ScopedTimer:
        return ScopedTimer(delay, callback, scope=self).start()

    @property
    def active_count(self) -> int:
        return len(self._timers)

    def cancel_all(self) -> int:
        timers = list(self._timers)
        for timer in timers:
            timer.cancel()
        return len(timers)
