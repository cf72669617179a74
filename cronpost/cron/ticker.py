"""Minute ticker: drives one evaluation pass per account at each minute boundary."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from datetime import datetime, timedelta
from typing import TYPE_CHECKING

from cronpost.log_context import set_log_context

if TYPE_CHECKING:
    from collections.abc import Sequence

    from cronpost.cron.runner import CronRunner, RunReport

logger = logging.getLogger(__name__)


def current_minute() -> datetime:
    """Local wall-clock time truncated to the minute."""
    return datetime.now().replace(second=0, microsecond=0)


def seconds_until_next_minute(now: datetime | None = None) -> float:
    now = now or datetime.now()
    boundary = now.replace(second=0, microsecond=0) + timedelta(minutes=1)
    return max((boundary - now).total_seconds(), 0.0)


class MinuteTicker:
    """Calls ``CronRunner.run`` for every account once per minute.

    Start/stop lifecycle with an asyncio background task. Consecutive ticks for
    the same minute run once; a clock stepping backwards is evaluated again.
    Minutes missed during a suspend are skipped, not replayed.
    """

    def __init__(self, runners: Sequence[CronRunner]) -> None:
        self._runners = list(runners)
        self._task: asyncio.Task[None] | None = None
        self._running = False
        self._last_minute: datetime | None = None

    @property
    def running(self) -> bool:
        return self._running

    async def start(self) -> None:
        if self._running:
            return
        self._running = True
        self._task = asyncio.create_task(self._loop())
        self._task.add_done_callback(_log_task_crash)
        logger.info("Ticker started (%d account(s))", len(self._runners))

    async def stop(self) -> None:
        self._running = False
        if self._task:
            task = self._task
            self._task = None
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
        for runner in self._runners:
            await runner.drain()
        logger.info("Ticker stopped")

    async def _loop(self) -> None:
        """Sleep to the next minute -> tick -> repeat."""
        try:
            while self._running:
                await asyncio.sleep(seconds_until_next_minute())
                if not self._running:
                    break
                try:
                    await self.tick(current_minute())
                except asyncio.CancelledError:
                    raise
                except Exception:
                    logger.exception("Tick failed (continuing)")
        except asyncio.CancelledError:
            logger.debug("Ticker loop cancelled")

    async def tick(self, now: datetime) -> list[RunReport]:
        """Run one pass per account for *now*. Returns the reports produced."""
        if self._last_minute is not None and now == self._last_minute:
            logger.debug("Minute %s already evaluated, skipping", now.isoformat())
            return []
        self._last_minute = now
        set_log_context(operation="tick")

        reports: list[RunReport] = []
        for runner in self._runners:
            if not runner.is_valid(runner.account, now):
                continue
            reports.append(await runner.run(now))
        return reports


def _log_task_crash(task: asyncio.Task[None]) -> None:
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.error("Ticker loop crashed: %s", exc, exc_info=exc)
