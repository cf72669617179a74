"""Five-field schedules: parsing, matching against a timestamp, serialization.

Fields hold raw strings. A field is either a wildcard (``*`` or the
full-width ``＊``) or an integer; lists, ranges and steps are not supported.
All five fields must match for a schedule to fire.
"""

from __future__ import annotations

import json
import logging
import re
from typing import TYPE_CHECKING, Any, Protocol, Self

if TYPE_CHECKING:
    from datetime import datetime

logger = logging.getLogger(__name__)

WILDCARDS: frozenset[str] = frozenset({"*", "＊"})

# Attribute name -> key in the serialized form. Order is the cron field order.
_FIELDS: tuple[tuple[str, str], ...] = (
    ("minute", "min"),
    ("hour", "hour"),
    ("day", "day"),
    ("month", "mon"),
    ("weekday", "week"),
)

# Authoring text: "<verb> <sub-verb> <placeholder> m h d M w ..."
_IGNORED_PREFIX_TOKENS = 3

_LEADING_INT = re.compile(r"\s*([+-]?[0-9]+)")


class Serializable(Protocol):
    """Round-trips through a compact string form."""

    def serialize(self) -> str: ...

    def deserialize(self, data: str) -> Self: ...


def is_wildcard(value: str | None) -> bool:
    return value in WILDCARDS


def parse_field(value: str | None) -> int | None:
    """Parse the leading base-10 integer of *value*, or None when there is none.

    ``"7"``, ``" 7"`` and ``"7am"`` all give 7; ``""``, ``"x"`` and None give None.
    Only ASCII digits count, so full-width ``"７"`` gives None.
    """
    if value is None:
        return None
    m = _LEADING_INT.match(value)
    return int(m.group(1)) if m else None


def _coerce(raw: Any) -> str | None:
    """Normalize a deserialized value to the stored string form."""
    if isinstance(raw, str):
        return raw
    if isinstance(raw, int) and not isinstance(raw, bool):
        return str(raw)
    return None


class ScheduleSpec:
    """One schedule: minute, hour, day of month, month (1-12), weekday (0 = Sunday)."""

    def __init__(
        self,
        minute: str | None = None,
        hour: str | None = None,
        day: str | None = None,
        month: str | None = None,
        weekday: str | None = None,
    ) -> None:
        self.minute = minute
        self.hour = hour
        self.day = day
        self.month = month
        self.weekday = weekday
        self.deserialize_failed = False

    @classmethod
    def from_text(cls, text: str) -> ScheduleSpec:
        """Build from authoring text; the first three tokens are skipped."""
        tokens = text.split()[_IGNORED_PREFIX_TOKENS:]
        return cls.from_expression(" ".join(tokens[: len(_FIELDS)]))

    @classmethod
    def from_expression(cls, expr: str) -> ScheduleSpec:
        """Build from a bare ``"m h d M w"`` expression. Missing tokens stay unset."""
        tokens = expr.split()
        values = [tokens[i] if i < len(tokens) else None for i in range(len(_FIELDS))]
        return cls(*values)

    def fields(self) -> tuple[str | None, ...]:
        return tuple(getattr(self, attr) for attr, _ in _FIELDS)

    def is_valid_schedule(self) -> bool:
        return all(self.fields())

    def is_parseable(self) -> bool:
        """True when every field is a wildcard or an integer.

        An unparseable schedule can never match; this tells "dormant" apart
        from "not due right now".
        """
        return all(is_wildcard(v) or parse_field(v) is not None for v in self.fields())

    def is_match(self, now: datetime) -> bool:
        return (
            self._field_matches(self.minute, now.minute)
            and self._field_matches(self.hour, now.hour)
            and self._field_matches(self.day, now.day)
            and self._field_matches(self.month, now.month)
            and self._field_matches(self.weekday, now.isoweekday() % 7)
        )

    @staticmethod
    def _field_matches(value: str | None, component: int) -> bool:
        if is_wildcard(value):
            return True
        parsed = parse_field(value)
        return parsed is not None and parsed == component

    # -- Serializable --

    def serialize(self) -> str:
        return json.dumps(
            {key: getattr(self, attr) for attr, key in _FIELDS},
            ensure_ascii=False,
            separators=(",", ":"),
        )

    def deserialize(self, data: str) -> Self:
        """Load fields from ``serialize()`` output.

        Malformed input is logged and leaves every field unset, so the
        schedule matches nothing.
        """
        try:
            parsed = json.loads(data)
        except (json.JSONDecodeError, TypeError) as exc:
            logger.warning("Cannot parse stored schedule %r: %s", data, exc)
            self._reset(failed=True)
            return self
        if not isinstance(parsed, dict):
            logger.warning("Stored schedule is not an object: %r", data)
            self._reset(failed=True)
            return self
        for attr, key in _FIELDS:
            setattr(self, attr, _coerce(parsed.get(key)))
        self.deserialize_failed = False
        return self

    def _reset(self, *, failed: bool) -> None:
        for attr, _ in _FIELDS:
            setattr(self, attr, None)
        self.deserialize_failed = failed

    def encode_unix_cron_option(self) -> str:
        """Crontab-style rendering for logs; unset fields show as ``?``."""
        return " ".join(v if v is not None else "?" for v in self.fields())

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ScheduleSpec):
            return NotImplemented
        return self.fields() == other.fields()

    def __hash__(self) -> int:
        return hash(self.fields())

    def __repr__(self) -> str:
        return f"ScheduleSpec({self.encode_unix_cron_option()!r})"


def split_schedule_command(text: str) -> tuple[ScheduleSpec, str]:
    """Split authoring text into its schedule and the command that follows it.

    ``"cron add - 0 9 * * * good morning"`` gives the schedule ``0 9 * * *``
    and the command ``"good morning"``.
    """
    head = _IGNORED_PREFIX_TOKENS + len(_FIELDS)
    parts = text.split(maxsplit=head)
    schedule = ScheduleSpec.from_text(text)
    command = parts[head] if len(parts) > head else ""
    return schedule, command.strip()
