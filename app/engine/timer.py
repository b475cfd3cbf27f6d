# app/engine/timer.py

import asyncio
from asyncio import CancelledError, Task
from typing import Awaitable, Callable, Optional
import logging

from app.config import TICK_INTERVAL
from app.models import GameMode, TimerState

logger = logging.getLogger(__name__)

TickCallback = Callable[[int], Awaitable[None]]
ExpiredCallback = Callable[[], Awaitable[None]]


def classify(remaining: int, total: int) -> str:
    """Warning level for the countdown: normal, warning or critical."""
    if total <= 0:
        return "critical"
    percentage = remaining / total * 100
    if percentage > 50:
        return "normal"
    if percentage > 25:
        return "warning"
    return "critical"


class TimerEngine:
    """A single countdown clock ticking once per interval.

    Each start() owns one asyncio task; stop() cancels it synchronously. A loop
    left over from an earlier start exits on its own because it no longer
    matches the current generation.
    """

    def __init__(self, on_tick: TickCallback, on_expired: ExpiredCallback, interval: float = TICK_INTERVAL):
        self._on_tick = on_tick
        self._on_expired = on_expired
        self.interval = interval
        self.state: Optional[TimerState] = None
        self._running = False
        self._generation = 0
        self._task: Optional[Task] = None

    @property
    def running(self) -> bool:
        return self._running

    @property
    def remaining(self) -> int:
        return self.state.remaining if self.state else 0

    def start(self, total: int, mode: GameMode = GameMode.MAIN):
        if self._running:
            raise RuntimeError("Timer is already running; stop() it before starting again.")
        if total <= 0:
            raise ValueError(f"Timer total must be positive, got {total}")

        self.state = TimerState(remaining=total, total=total, mode=mode)
        self._running = True
        self._generation += 1
        self._task = asyncio.create_task(self._run(self._generation))
        logger.debug(f"Timer started: {total}s ({mode.value})")

    def stop(self):
        """Halt ticking. Safe to call repeatedly or after expiry."""
        self._running = False
        task, self._task = self._task, None
        # The loop may be stopping itself from inside a callback.
        if task and not task.done() and task is not asyncio.current_task():
            task.cancel()

    async def tick(self):
        """Advance the clock by one second and notify listeners."""
        if not self._running or self.state is None or self.state.remaining <= 0:
            return

        self.state.remaining -= 1
        remaining = self.state.remaining
        if remaining == 0:
            self._running = False

        await self._on_tick(remaining)
        if remaining == 0:
            logger.debug("Timer expired")
            await self._on_expired()

    async def _run(self, generation: int):
        try:
            while self._running and generation == self._generation:
                await asyncio.sleep(self.interval)
                if generation != self._generation:
                    return
                await self.tick()
        except CancelledError:
            pass
        except Exception as e:
            logger.error(f"Error in timer loop: {e}", exc_info=True)
