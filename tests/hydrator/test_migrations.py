"""Unit tests for the migration chain."""

from __future__ import annotations

import pytest

from hydrator.errors import MigrationError
from hydrator.migrations import MigrationStep, find_step, migrate_document
from tests.hydrator.doubles import CounterState


def _to_json(state: CounterState) -> dict:
    return state.to_json()


def test_step_must_move_forward() -> None:
    with pytest.raises(ValueError, match="must move forward"):
        MigrationStep(2, 2, CounterState.from_json)
    with pytest.raises(ValueError):
        MigrationStep(3, 1, CounterState.from_json)


def test_find_step_first_match_wins() -> None:
    first = MigrationStep(1, 2, lambda doc: CounterState("first", 0))
    second = MigrationStep(1, 3, lambda doc: CounterState("second", 0))

    assert find_step([first, second], 1) is first
    assert find_step([first, second], 2) is None


def test_same_version_returns_input_unchanged() -> None:
    document = {"value": "x", "count": 1}

    assert migrate_document(document, 2, 2, [], _to_json) is document


def test_chain_reserializes_between_steps() -> None:
    steps = [
        MigrationStep(1, 2, lambda doc: CounterState(value=doc["label"], count=0)),
        MigrationStep(2, 3, lambda doc: CounterState(value=doc["value"], count=doc["count"] + 10)),
    ]

    result = migrate_document({"label": "old"}, 1, 3, steps, _to_json)
    assert result == {"value": "old", "count": 10}


def test_non_contiguous_step() -> None:
    steps = [MigrationStep(1, 3, lambda doc: CounterState(value="jumped", count=3))]

    assert migrate_document({}, 1, 3, steps, _to_json) == {"value": "jumped", "count": 3}


def test_steps_are_looked_up_by_version_not_position() -> None:
    steps = [
        MigrationStep(2, 3, lambda doc: CounterState(value=doc["value"] + "!", count=doc["count"])),
        MigrationStep(1, 2, lambda doc: CounterState(value="base", count=1)),
    ]

    assert migrate_document({}, 1, 3, steps, _to_json) == {"value": "base!", "count": 1}


def test_missing_step_raises() -> None:
    with pytest.raises(MigrationError, match="No migration path from version 1 to 2"):
        migrate_document({}, 1, 2, [], _to_json)


def test_step_exception_is_wrapped() -> None:
    steps = [MigrationStep(1, 2, lambda doc: CounterState(value=doc["missing"], count=0))]

    with pytest.raises(MigrationError, match="Migration 1 -> 2 failed") as exc_info:
        migrate_document({}, 1, 2, steps, _to_json)
    assert isinstance(exc_info.value.__cause__, KeyError)


def test_reserialization_failure_is_wrapped() -> None:
    def broken(state: CounterState) -> dict:
        raise TypeError("nope")

    steps = [MigrationStep(1, 2, lambda doc: CounterState(value="x", count=0))]

    with pytest.raises(MigrationError, match="Serializing result of migration 1 -> 2 failed"):
        migrate_document({}, 1, 2, steps, broken)


def test_newer_stored_version_passes_through() -> None:
    document = {"value": "future", "count": 1}

    assert migrate_document(document, 5, 3, [], _to_json) is document
