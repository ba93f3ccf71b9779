#!/usr/bin/env python3
"""
Global pytest configuration and fixtures.

This module provides:
- A controllable clock for deterministic modification timestamps
- In-memory Side A / Side B stores wired to that clock
- A fast configuration (no debounce, no retry delay)
"""

from datetime import datetime, timedelta, timezone
from typing import Iterable, Optional

import pytest

from task_sync.core.config import SyncConfig, StoreConfig
from task_sync.core.models import TaskRecord
from task_sync.stores.memory import InMemoryTaskStore
from task_sync.sync.runner import SyncRunner


T0 = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)


class FakeClock:
    """Clock that only moves when told to."""

    def __init__(self, start: datetime = T0):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, ms: int = 0, seconds: float = 0) -> datetime:
        self.now = self.now + timedelta(milliseconds=ms, seconds=seconds)
        return self.now


def at(ms: int) -> datetime:
    """Timestamp ``ms`` milliseconds after T0."""
    return T0 + timedelta(milliseconds=ms)


def task(title: str, completed: bool = False, notes: str = "", ms: int = 0,
         id: str = "", due=None) -> TaskRecord:
    return TaskRecord(title=title, id=id, completed=completed, notes=notes, last_modified=at(ms), due=due)


def make_config(**overrides) -> SyncConfig:
    settings = dict(
        guard_debounce_seconds=0,
        retry_base_delay=0,
        side_a=StoreConfig(name="Side A"),
        side_b=StoreConfig(name="Side B"),
    )
    settings.update(overrides)
    return SyncConfig(**settings)


def titles(store: InMemoryTaskStore) -> list:
    return sorted(record.title for record in store.all())


def pytest_configure(config):
    """Configure pytest environment."""
    config.addinivalue_line("markers", "slow: tests that exercise real sleeps or threads")


@pytest.fixture
def clock():
    """Clock starting well after T0 so store writes are the newest edits."""
    return FakeClock(T0 + timedelta(minutes=10))


@pytest.fixture
def fast_config():
    return make_config()


@pytest.fixture
def store_a(clock):
    return InMemoryTaskStore("Side A", clock=clock)


@pytest.fixture
def store_b(clock):
    return InMemoryTaskStore("Side B", clock=clock)


@pytest.fixture
def make_runner(store_a, store_b, clock):
    """Factory building a runner over the shared stores with a given config."""

    def factory(config: Optional[SyncConfig] = None, records_a: Iterable[TaskRecord] = (),
                records_b: Iterable[TaskRecord] = (), **kwargs) -> SyncRunner:
        for record in records_a:
            store_a.add(record)
        for record in records_b:
            store_b.add(record)
        kwargs.setdefault("sleep", lambda seconds: None)
        return SyncRunner(store_a, store_b, config or make_config(), clock=clock, **kwargs)

    return factory
