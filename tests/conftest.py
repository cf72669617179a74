"""Shared test fixtures."""

from __future__ import annotations

import pytest

from cronpost.cron import ScheduleRegistry
from cronpost.posting import LogPoster
from cronpost.storage import MemoryStore


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def registry(store: MemoryStore) -> ScheduleRegistry:
    return ScheduleRegistry(store, namespace="test.schedules")


@pytest.fixture
def poster() -> LogPoster:
    return LogPoster()
