"""Application configuration loaded from a JSON file."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, ValidationError

from cronpost.errors import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_NAMESPACE = "cronpost.schedules"
DEFAULT_CONFIG_PATH = Path("~/.cronpost/config.json")


class PosterConfig(BaseModel):
    """Where matching commands are delivered."""

    kind: Literal["log", "webhook"] = "log"
    url: str = ""
    token: str = ""
    timeout_seconds: float = 10.0


class AppConfig(BaseModel):
    """Top-level configuration loaded from config.json."""

    log_level: str = "INFO"
    namespace: str = DEFAULT_NAMESPACE
    store_path: str = "~/.cronpost/schedules.json"
    log_dir: str = ""
    accounts: list[str] = Field(default_factory=list)
    poster: PosterConfig = Field(default_factory=PosterConfig)

    @property
    def store_file(self) -> Path:
        return Path(self.store_path).expanduser()

    @property
    def log_path(self) -> Path | None:
        return Path(self.log_dir).expanduser() if self.log_dir else None


def load_config(path: Path | None = None) -> AppConfig:
    """Read *path* into an ``AppConfig``.

    A missing file yields the defaults. Unreadable JSON or values that fail
    validation raise ``ConfigError``.
    """
    config_path = (path or DEFAULT_CONFIG_PATH).expanduser()
    if not config_path.exists():
        logger.info("No config at %s, using defaults", config_path)
        return AppConfig()
    try:
        data = json.loads(config_path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, OSError) as exc:
        msg = f"Cannot read config {config_path}: {exc}"
        raise ConfigError(msg) from exc
    try:
        return AppConfig.model_validate(data)
    except ValidationError as exc:
        msg = f"Invalid config {config_path}: {exc}"
        raise ConfigError(msg) from exc
