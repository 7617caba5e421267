"""Tests for the ``hydrator`` command line tool (local backend under tmp_path)."""

from __future__ import annotations

import json

import pytest
from click.testing import CliRunner

from hydrator.cli import main


@pytest.fixture
def prefs(tmp_path, monkeypatch):
    monkeypatch.setenv("HYDRATOR_STORAGE_BACKEND", "local")
    monkeypatch.setenv("HYDRATOR_DATA_ROOT", str(tmp_path))
    monkeypatch.delenv("HYDRATOR_DATA_PREFIX", raising=False)
    # Keep loguru pointed at the real stderr rather than CliRunner's capture.
    monkeypatch.setattr("hydrator.log.setup_logging", lambda level="INFO": None)

    path = tmp_path / "preferences.json"
    path.write_text(
        json.dumps({
            "settings": '{"version":2,"data":{"theme":"dark","fontSize":14}}',
            "broken": "not json",
        }),
        encoding="utf-8",
    )
    return path


def _stored(path) -> dict:
    return json.loads(path.read_text(encoding="utf-8"))


def test_show(prefs) -> None:
    result = CliRunner().invoke(main, ["show", "settings"])

    assert result.exit_code == 0
    assert "version: 2" in result.output
    assert '"theme": "dark"' in result.output


def test_show_missing_key(prefs) -> None:
    result = CliRunner().invoke(main, ["show", "nothing"])

    assert result.exit_code == 1
    assert "No state stored under 'nothing'" in result.output


def test_show_corrupt_value(prefs) -> None:
    result = CliRunner().invoke(main, ["show", "broken"])

    assert result.exit_code == 1
    assert "Invalid JSON format" in result.output


def test_remove(prefs) -> None:
    result = CliRunner().invoke(main, ["remove", "settings"])

    assert result.exit_code == 0
    assert "settings" not in _stored(prefs)
    assert "broken" in _stored(prefs)


def test_clear_requires_confirmation(prefs) -> None:
    result = CliRunner().invoke(main, ["clear"], input="n\n")

    assert result.exit_code != 0
    assert set(_stored(prefs)) == {"settings", "broken"}


def test_clear(prefs) -> None:
    result = CliRunner().invoke(main, ["clear", "--yes"])

    assert result.exit_code == 0
    assert _stored(prefs) == {}
