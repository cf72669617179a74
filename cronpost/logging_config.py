"""Logging setup: console on stderr plus an optional rotating ``cronpost.log``."""

from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

from cronpost.log_context import ContextFilter

LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(ctx)s%(message)s"
DATE_FMT = "%Y-%m-%d %H:%M:%S"
LOG_FILE_NAME = "cronpost.log"
MAX_BYTES = 2 * 1024 * 1024
BACKUP_COUNT = 5

logger = logging.getLogger(__name__)


def _resolve_level(level: int | str) -> int:
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(level.upper())
    return resolved if isinstance(resolved, int) else logging.INFO


def setup_logging(
    level: int | str = logging.INFO,
    verbose: bool = False,
    log_dir: Path | None = None,
) -> None:
    """Replace the root logger's handlers.

    *level* accepts a name such as ``"WARNING"``; *verbose* forces DEBUG.
    The file handler always records DEBUG and above.
    """
    root_level = logging.DEBUG if verbose else _resolve_level(level)
    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FMT)

    handlers: list[logging.Handler] = []
    if sys.stderr is not None:
        console = logging.StreamHandler(sys.stderr)
        console.setLevel(root_level)
        handlers.append(console)
    if log_dir is not None:
        log_dir.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            log_dir / LOG_FILE_NAME,
            maxBytes=MAX_BYTES,
            backupCount=BACKUP_COUNT,
            encoding="utf-8",
        )
        file_handler.setLevel(logging.DEBUG)
        handlers.append(file_handler)

    root = logging.getLogger()
    for old in root.handlers:
        if isinstance(old, logging.FileHandler):
            old.close()
    root.handlers.clear()
    root.setLevel(logging.DEBUG if log_dir is not None else root_level)

    ctx_filter = ContextFilter()
    for handler in handlers:
        handler.addFilter(ctx_filter)
        handler.setFormatter(formatter)
        root.addHandler(handler)

    logging.getLogger("aiohttp").setLevel(logging.WARNING)
    logging.getLogger("asyncio").setLevel(logging.WARNING)
    logger.debug("Logging ready (level=%s)", logging.getLevelName(root_level))
