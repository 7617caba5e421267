"""Shared fixtures for hydrator tests.

No Docker or network required -- storage is in-memory or under ``tmp_path``.
"""

from __future__ import annotations

from collections.abc import Iterator

import pytest

from hydrator.engine import Hydrator
from hydrator.models import HydrationEvent
from hydrator.settings import _get_settings_cached
from hydrator.store.factory import get_default_storage
from tests.hydrator.doubles import CounterState, RecordingStorage


@pytest.fixture(autouse=True)
def _reset_caches() -> Iterator[None]:
    """Settings and default storage are process-wide; isolate each test."""
    _get_settings_cached.cache_clear()
    get_default_storage.cache_clear()
    yield
    _get_settings_cached.cache_clear()
    get_default_storage.cache_clear()


@pytest.fixture
def storage() -> RecordingStorage:
    return RecordingStorage()


@pytest.fixture
def events() -> list[tuple[HydrationEvent, str | None]]:
    return []


@pytest.fixture
def hydrator(
    storage: RecordingStorage, events: list[tuple[HydrationEvent, str | None]]
) -> Iterator[Hydrator[CounterState]]:
    h = Hydrator(
        key="test_key",
        to_json=CounterState.to_json,
        from_json=CounterState.from_json,
        storage=storage,
        on_event=lambda event, error: events.append((event, error)),
    )
    yield h
    h.dispose()
