"""Stores keyed by ``(namespace, account)`` holding opaque JSON-shaped blobs."""

from __future__ import annotations

import copy
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Protocol

from cronpost.errors import StoreError

logger = logging.getLogger(__name__)


class KeyValueStore(Protocol):
    """Persistence collaborator used by the schedule registry."""

    def get(self, namespace: str, account: str) -> Any | None: ...

    def set(self, namespace: str, account: str, blob: Any) -> None: ...


class MemoryStore:
    """Process-local store. Blobs are copied so callers cannot alias stored state."""

    def __init__(self) -> None:
        self._data: dict[str, dict[str, Any]] = {}

    def get(self, namespace: str, account: str) -> Any | None:
        blob = self._data.get(namespace, {}).get(account)
        return copy.deepcopy(blob)

    def set(self, namespace: str, account: str, blob: Any) -> None:
        self._data.setdefault(namespace, {})[account] = copy.deepcopy(blob)


class JsonFileStore:
    """Single JSON file laid out as ``{namespace: {account: blob}}``.

    The file is re-read on every ``get`` so external edits are picked up
    by the next evaluation pass.
    """

    def __init__(self, path: Path) -> None:
        self._path = path

    @property
    def path(self) -> Path:
        return self._path

    def get(self, namespace: str, account: str) -> Any | None:
        section = self._load().get(namespace)
        if not isinstance(section, dict):
            return None
        return section.get(account)

    def set(self, namespace: str, account: str, blob: Any) -> None:
        data = self._load()
        section = data.get(namespace)
        if not isinstance(section, dict):
            section = {}
            data[namespace] = section
        section[account] = blob
        self._save(data)

    def _load(self) -> dict[str, Any]:
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError):
            logger.warning("Corrupt store file: %s", self._path)
            return {}
        if not isinstance(data, dict):
            logger.warning("Store file is not a JSON object: %s", self._path)
            return {}
        return data

    def _save(self, data: dict[str, Any]) -> None:
        """Write atomically (temp file + rename)."""
        content = json.dumps(data, indent=2, ensure_ascii=False) + "\n"
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=str(self._path.parent), suffix=".tmp")
        except OSError as exc:
            msg = f"Cannot write store file {self._path}: {exc}"
            raise StoreError(msg) from exc
        tmp = Path(tmp_name)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(content)
            tmp.replace(self._path)
        except OSError as exc:
            tmp.unlink(missing_ok=True)
            msg = f"Cannot write store file {self._path}: {exc}"
            raise StoreError(msg) from exc
