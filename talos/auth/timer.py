"""
SessionTimer — idle countdown for an active session.

A single actor task owns ``remaining``. The ticker task and the UI activity
hooks only post messages to its queue:

    TICK      remaining -= 1
    ACTIVITY  remaining = budget

When remaining reaches zero the expiry callback is scheduled exactly once
and every later message is dropped.
"""

from __future__ import annotations

import asyncio
import contextlib
import enum
import logging
from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)

DEFAULT_BUDGET = 900


class TimerMessage(enum.Enum):
    TICK = "tick"
    ACTIVITY = "activity"


class SessionTimer:
    """Idle countdown driven by Tick / Activity messages."""

    def __init__(
        self,
        budget: int = DEFAULT_BUDGET,
        on_expire: Callable[[], Awaitable[None]] | None = None,
        *,
        interval: float | None = 1.0,
        on_change: Callable[[int], None] | None = None,
    ) -> None:
        self.budget = budget
        self.interval = interval
        self._on_expire = on_expire
        self._on_change = on_change
        self._remaining = budget
        self._fired = False
        self._queue: asyncio.Queue[TimerMessage] | None = None
        self._actor: asyncio.Task | None = None
        self._ticker: asyncio.Task | None = None
        self._expiry: asyncio.Task | None = None

    @property
    def remaining(self) -> int:
        return self._remaining

    @property
    def expired(self) -> bool:
        return self._fired

    @property
    def running(self) -> bool:
        return self._actor is not None and not self._fired

    def start(self) -> None:
        """Start counting down from the full budget."""
        if self._actor is not None:
            return
        self._remaining = self.budget
        self._fired = False
        self._queue = asyncio.Queue()
        self._actor = asyncio.create_task(self._run())
        if self.interval:
            self._ticker = asyncio.create_task(self._tick_loop(self.interval))
        logger.debug("Session timer started (budget=%ds)", self.budget)

    def tick(self) -> None:
        self._post(TimerMessage.TICK)

    def activity(self) -> None:
        """User did something: reset the countdown."""
        self._post(TimerMessage.ACTIVITY)

    def _post(self, message: TimerMessage) -> None:
        if self._queue is None or self._fired:
            return
        self._queue.put_nowait(message)

    async def settle(self) -> None:
        """Wait until every posted message (and a triggered expiry) is handled."""
        if self._queue is not None:
            await self._queue.join()
        if self._expiry is not None and self._expiry is not asyncio.current_task():
            await asyncio.shield(self._expiry)

    async def stop(self) -> None:
        """Tear down the ticker and actor. Safe to call from the expiry callback."""
        current = asyncio.current_task()
        for task in (self._ticker, self._actor):
            if task is None or task is current:
                continue
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
        self._ticker = None
        self._actor = None
        self._queue = None

    async def _tick_loop(self, interval: float) -> None:
        while True:
            await asyncio.sleep(interval)
            self.tick()

    async def _run(self) -> None:
        assert self._queue is not None
        queue = self._queue
        while True:
            message = await queue.get()
            try:
                if self._fired:
                    continue
                if message is TimerMessage.TICK:
                    self._remaining -= 1
                else:
                    self._remaining = self.budget
                if self._on_change is not None:
                    self._on_change(max(self._remaining, 0))
                if self._remaining <= 0:
                    self._fired = True
                    if self._ticker is not None:
                        self._ticker.cancel()
                    self._expiry = asyncio.create_task(self._expire())
            finally:
                queue.task_done()

    async def _expire(self) -> None:
        logger.info("Session idle for %ds, expiring", self.budget)
        if self._on_expire is None:
            return
        try:
            await self._on_expire()
        except Exception as e:
            logger.error("Session expiry handler failed: %s", e, exc_info=True)
