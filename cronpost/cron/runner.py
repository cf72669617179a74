"""One evaluation pass: match stored schedules against a timestamp and dispatch."""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from cronpost.log_context import set_log_context

if TYPE_CHECKING:
    from datetime import datetime

    from cronpost.cron.registry import ScheduleEntry, ScheduleRegistry
    from cronpost.posting import Poster

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class RunReport:
    """Outcome of one pass. Dispatch results are not included."""

    account: str
    evaluated: int = 0
    matched: int = 0
    unparseable: int = 0
    ids: tuple[int, ...] = field(default_factory=tuple)


class CronRunner:
    """Evaluates one account's schedules; meant to be called once per minute.

    Matching entries are posted as independent tasks. ``run`` never waits
    for them and never raises.
    """

    def __init__(self, registry: ScheduleRegistry, poster: Poster, account: str) -> None:
        self._registry = registry
        self._poster = poster
        self._account = account
        self._pending: set[asyncio.Task[None]] = set()

    @property
    def account(self) -> str:
        return self._account

    @property
    def pending(self) -> int:
        return len(self._pending)

    @staticmethod
    def is_valid(account: str, now: datetime) -> bool:  # noqa: ARG004
        """Every minute is evaluated, so the gate is always open."""
        return True

    async def run(
        self,
        now: datetime,
        on_finish: Callable[[], None] | None = None,
    ) -> RunReport:
        set_log_context(operation="cron", account=self._account)
        try:
            report = self._evaluate(now)
        except Exception:
            logger.exception("Evaluation pass failed at %s", now.isoformat())
            report = RunReport(account=self._account)

        if on_finish is not None:
            try:
                on_finish()
            except Exception:
                logger.exception("Finish callback failed")
        return report

    def _evaluate(self, now: datetime) -> RunReport:
        entries = self._registry.list_all(self._account)
        matched: list[ScheduleEntry] = []
        unparseable = 0
        for entry in entries.values():
            if not entry.schedule.is_parseable():
                unparseable += 1
                continue
            if entry.schedule.is_match(now):
                matched.append(entry)

        for entry in matched:
            self._dispatch(entry)

        if unparseable:
            logger.warning("%d schedule(s) can never fire (unparseable)", unparseable)
        logger.debug(
            "Pass at %s: %d evaluated, %d matched",
            now.strftime("%Y-%m-%d %H:%M"),
            len(entries),
            len(matched),
        )
        return RunReport(
            account=self._account,
            evaluated=len(entries),
            matched=len(matched),
            unparseable=unparseable,
            ids=tuple(e.id for e in matched),
        )

    def _dispatch(self, entry: ScheduleEntry) -> None:
        task = asyncio.create_task(self._post(entry), name=f"cron-post-{entry.id}")
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _post(self, entry: ScheduleEntry) -> None:
        try:
            await self._poster.post(self._account, entry.command)
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            logger.error(  # noqa: TRY400
                "Post failed: %s entry=%s",
                exc,
                json.dumps({"id": entry.id, **entry.to_dict()}, ensure_ascii=False),
            )
            return
        logger.debug("Cron executed! %s", entry.schedule.encode_unix_cron_option())

    async def drain(self) -> None:
        """Wait for all in-flight posts to finish."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)
