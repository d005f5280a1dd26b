"""Fixed-period polling timer with an injectable clock."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Protocol

logger = logging.getLogger("notification_center.client.scheduler")

DEFAULT_POLL_INTERVAL_SECONDS = 60.0


class Clock(Protocol):
    def monotonic(self) -> float: ...

    async def sleep(self, seconds: float) -> None: ...


class AsyncioClock:
    """Clock backed by the running event loop."""

    def monotonic(self) -> float:
        return asyncio.get_running_loop().time()

    async def sleep(self, seconds: float) -> None:
        await asyncio.sleep(seconds)


class PollingScheduler:
    """Invoke ``tick`` every ``interval_seconds`` while started.

    Ticks run as independent tasks: a slow tick does not delay the next one,
    and ``stop`` only cancels the timer, never a tick already in flight.
    """

    def __init__(
        self,
        tick: Callable[[], Awaitable[object]],
        *,
        interval_seconds: float = DEFAULT_POLL_INTERVAL_SECONDS,
        clock: Clock | None = None,
        name: str = "notification-poller",
    ) -> None:
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be greater than zero.")
        self.tick = tick
        self.interval_seconds = interval_seconds
        self.clock: Clock = clock or AsyncioClock()
        self.name = name
        self._timer: asyncio.Task[None] | None = None
        self._inflight: set[asyncio.Task[None]] = set()
        self.ticks_started = 0
        self.last_tick_at: float | None = None

    @property
    def running(self) -> bool:
        return self._timer is not None and not self._timer.done()

    @property
    def inflight(self) -> int:
        return len(self._inflight)

    def start(self) -> None:
        if self.running:
            return
        self._timer = asyncio.create_task(self._run(), name=self.name)
        logger.info(
            "Notification polling scheduled",
            extra={"interval_seconds": self.interval_seconds},
        )

    def stop(self) -> None:
        if self._timer is None:
            return
        self._timer.cancel()
        self._timer = None
        logger.info("Notification polling stopped", extra={"inflight": len(self._inflight)})

    def trigger(self) -> asyncio.Task[None]:
        """Run a tick now, outside the regular cadence."""
        self.ticks_started += 1
        self.last_tick_at = self.clock.monotonic()
        task = asyncio.create_task(self._invoke(), name=f"{self.name}-tick")
        self._inflight.add(task)
        task.add_done_callback(self._inflight.discard)
        return task

    async def wait_idle(self) -> None:
        """Wait until every tick started so far has finished."""
        while self._inflight:
            await asyncio.gather(*list(self._inflight), return_exceptions=True)

    async def _run(self) -> None:
        while True:
            await self.clock.sleep(self.interval_seconds)
            self.trigger()

    async def _invoke(self) -> None:
        try:
            await self.tick()
        except asyncio.CancelledError:
            raise
        except Exception:  # noqa: BLE001
            logger.exception("Notification poll failed")


__all__ = ["AsyncioClock", "Clock", "DEFAULT_POLL_INTERVAL_SECONDS", "PollingScheduler"]
