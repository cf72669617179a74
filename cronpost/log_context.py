"""Logging context: ContextVar-based log enrichment for async operations.

Every log record is automatically enriched with an ``[op:account]`` prefix
via a `ContextFilter` attached to the root logger handlers.

Operation codes: ``cron`` (evaluation pass), ``tick`` (minute ticker),
``cli`` (command line).
"""

from __future__ import annotations

import logging
from contextvars import ContextVar

ctx_operation: ContextVar[str | None] = ContextVar("ctx_operation", default=None)
ctx_account: ContextVar[str | None] = ContextVar("ctx_account", default=None)


class ContextFilter(logging.Filter):
    """Inject ContextVar values into every LogRecord as ``record.ctx``."""

    def filter(self, record: logging.LogRecord) -> bool:
        op = ctx_operation.get(None)
        account = ctx_account.get(None)
        parts: list[str] = []
        if op:
            parts.append(op)
        if account:
            parts.append(account)
        record.ctx = f"[{':'.join(parts)}] " if parts else ""
        return True


def set_log_context(
    *,
    operation: str | None = None,
    account: str | None = None,
) -> None:
    """Set logging context for the current asyncio task.

    Each ``asyncio.create_task()`` copies the current context automatically,
    so dispatch tasks inherit the account of the pass that spawned them.
    """
    if operation is not None:
        ctx_operation.set(operation)
    if account is not None:
        ctx_account.set(account)
