"""Stoppable periodic triggers for tick and sweep callbacks."""

from __future__ import annotations

import asyncio
import contextlib
import inspect
import logging
from typing import Any, Awaitable, Callable, Optional, Union

logger = logging.getLogger("skytrack.scheduler")

PeriodicCallback = Callable[[float], Union[None, Awaitable[Any]]]


class PeriodicTask:
    """Invoke ``callback(elapsed_seconds)`` every ``interval`` seconds.

    ``stop`` is idempotent and safe before ``start``. A stopped task is never
    re-armed; create a new instance to resume. Callback errors are logged and
    the cadence continues.
    """

    def __init__(self, name: str, interval: float, callback: PeriodicCallback) -> None:
        if interval <= 0:
            raise ValueError(f"interval must be positive, got {interval}")
        self.name = name
        self.interval = interval
        self.callback = callback
        self._task: Optional[asyncio.Task[None]] = None
        self._stopped = False

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def stopped(self) -> bool:
        return self._stopped

    def start(self) -> None:
        """Schedule the loop on the running event loop."""

        if self._stopped:
            raise RuntimeError(f"Periodic task {self.name} was stopped and cannot restart")
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(
            self._run(), name=f"periodic:{self.name}"
        )
        logger.info("Started periodic task %s every %.2fs", self.name, self.interval)

    def stop(self) -> None:
        if self._stopped:
            return
        self._stopped = True
        if self._task is not None and not self._task.done():
            self._task.cancel()
        logger.info("Stopped periodic task %s", self.name)

    async def aclose(self) -> None:
        """Stop and wait for the loop to unwind."""

        self.stop()
        task = self._task
        if task is not None:
            with contextlib.suppress(asyncio.CancelledError):
                await task

    async def _run(self) -> None:
        loop = asyncio.get_running_loop()
        last = loop.time()
        while not self._stopped:
            await asyncio.sleep(self.interval)
            if self._stopped:
                return
            now = loop.time()
            elapsed, last = now - last, now
            try:
                result = self.callback(elapsed)
                if inspect.isawaitable(result):
                    await result
            except asyncio.CancelledError:
                raise
            except Exception as exc:
                logger.warning("Periodic task %s failed: %s", self.name, exc)


__all__ = ["PeriodicCallback", "PeriodicTask"]
