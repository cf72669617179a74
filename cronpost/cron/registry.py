"""Per-account schedule registry persisted through a key-value store.

Stored layout per account::

    {"1": {"schedule": "<ScheduleSpec.serialize()>", "command": "hello"}, ...}
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from cronpost.config import DEFAULT_NAMESPACE
from cronpost.cron.schedule import ScheduleSpec

if TYPE_CHECKING:
    from cronpost.storage import KeyValueStore

logger = logging.getLogger(__name__)


@dataclass
class ScheduleEntry:
    """A stored schedule owned by one account."""

    id: int
    schedule: ScheduleSpec
    command: str

    def to_dict(self) -> dict[str, Any]:
        return {"schedule": self.schedule.serialize(), "command": self.command}

    @classmethod
    def from_dict(cls, entry_id: int, data: dict[str, Any]) -> ScheduleEntry:
        schedule = ScheduleSpec().deserialize(data.get("schedule", ""))
        command = data.get("command")
        if command is None:
            command = ""
        return cls(id=entry_id, schedule=schedule, command=str(command))


def _numeric_id(key: str) -> int | None:
    try:
        return int(key)
    except ValueError:
        return None


class ScheduleRegistry:
    """Create, list and delete schedules for an account.

    Mutations are read-modify-write against the store and are not atomic;
    callers serialize access per account.
    """

    def __init__(self, store: KeyValueStore, *, namespace: str = DEFAULT_NAMESPACE) -> None:
        self._store = store
        self._namespace = namespace

    @property
    def namespace(self) -> str:
        return self._namespace

    def list_all(self, account: str) -> dict[str, ScheduleEntry]:
        """Return every entry keyed by its stringified id, in storage order."""
        entries: dict[str, ScheduleEntry] = {}
        for key, record in self._load(account).items():
            entry_id = _numeric_id(key)
            if entry_id is None or not isinstance(record, dict):
                logger.warning("Skipping malformed schedule record %r for %s", key, account)
                continue
            entries[key] = ScheduleEntry.from_dict(entry_id, record)
        return entries

    def get(self, account: str, entry_id: int) -> ScheduleEntry | None:
        return self.list_all(account).get(str(entry_id))

    def add(self, account: str, schedule: ScheduleSpec, command: str) -> int:
        """Store a new entry and return its id (highest existing id + 1)."""
        records = self._load(account)
        ids = [i for i in map(_numeric_id, records) if i is not None]
        next_id = max(ids, default=0) + 1
        records[str(next_id)] = {"schedule": schedule.serialize(), "command": command}
        self._save(account, records)
        logger.info(
            "Schedule added: %s id=%d (%s)", account, next_id, schedule.encode_unix_cron_option()
        )
        return next_id

    def remove(self, account: str, entry_id: int) -> bool:
        """Delete an entry. Returns False if the id did not exist."""
        records = self._load(account)
        before = len(records)
        records.pop(str(entry_id), None)
        self._save(account, records)
        removed = len(records) != before
        if removed:
            logger.info("Schedule removed: %s id=%d", account, entry_id)
        return removed

    # -- Persistence --

    def _load(self, account: str) -> dict[str, Any]:
        blob = self._store.get(self._namespace, account)
        if blob is None:
            return {}
        if not isinstance(blob, dict):
            logger.warning("Stored schedules for %s are not a mapping, ignoring", account)
            return {}
        return dict(blob)

    def _save(self, account: str, records: dict[str, Any]) -> None:
        self._store.set(self._namespace, account, records)
