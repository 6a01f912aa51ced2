"""Cancellable repeating task on the asyncio event loop."""

from __future__ import annotations

import asyncio
from typing import Any, Callable

from core.logging import logger


class RepeatingTask:
    """Runs a callback, then re-arms itself after a fixed interval.

    The next run is scheduled only once the current one returns, so runs never
    overlap and missed runs are not queued. ``cancel()`` prevents any pending
    run from firing; the active flag is checked both before the callback and
    before re-arming.
    """

    def __init__(
        self,
        callback: Callable[[], Any],
        interval_s: float,
        *,
        name: str = "task",
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> None:
        if interval_s <= 0:
            raise ValueError(f"Interval must be positive, got {interval_s}")
        self._callback = callback
        self._interval_s = float(interval_s)
        self._name = name
        self._loop = loop
        self._handle: asyncio.TimerHandle | None = None
        self._active = False
        self.run_count = 0

    @property
    def active(self) -> bool:
        return self._active

    @property
    def interval_s(self) -> float:
        return self._interval_s

    def start(self, delay_s: float = 0.0) -> None:
        if self._active:
            return
        if self._loop is None or self._loop.is_closed():
            self._loop = asyncio.get_running_loop()
        self._active = True
        self._schedule(delay_s)
        logger.debug("[SCHEDULER] %s started (interval=%.3fs)", self._name, self._interval_s)

    def cancel(self) -> None:
        was_active = self._active
        self._active = False
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
        if was_active:
            logger.debug("[SCHEDULER] %s cancelled after %s runs", self._name, self.run_count)

    def _schedule(self, delay_s: float) -> None:
        assert self._loop is not None
        self._handle = self._loop.call_later(max(delay_s, 0.0), self._run)

    def _run(self) -> None:
        self._handle = None
        if not self._active:
            return

        self.run_count += 1
        try:
            self._callback()
        except Exception as exc:
            logger.exception("[SCHEDULER] %s run failed (continuing): %s", self._name, exc)

        if self._active:
            self._schedule(self._interval_s)
