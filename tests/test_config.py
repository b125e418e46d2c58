"""Configuration loading tests."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from studyshelf.config import DB_ENV_VAR, ShelfConfig, load_config


@pytest.fixture(autouse=True)
def _no_db_env(monkeypatch):
    monkeypatch.delenv(DB_ENV_VAR, raising=False)


def test_defaults_when_file_missing(tmp_path):
    config = load_config(tmp_path / "missing.json")
    assert config == ShelfConfig()
    assert config.db_path == Path("data/materials.db")
    assert config.debounce_seconds == 0.3


def test_file_values_and_unknown_keys(tmp_path):
    path = tmp_path / "studyshelf.json"
    path.write_text(
        json.dumps({"db_path": "x/y.db", "debounce_seconds": 0.5, "theme": "dark"})
    )
    config = load_config(path)
    assert config.db_path == Path("x/y.db")
    assert config.debounce_seconds == 0.5
    assert config.log_dir == Path("logs")


def test_env_overrides_file(tmp_path, monkeypatch):
    path = tmp_path / "studyshelf.json"
    path.write_text(json.dumps({"db_path": "from-file.db"}))
    monkeypatch.setenv(DB_ENV_VAR, str(tmp_path / "from-env.db"))
    assert load_config(path).db_path == tmp_path / "from-env.db"


def test_negative_debounce_rejected():
    with pytest.raises(ValueError, match="debounce_seconds"):
        ShelfConfig(debounce_seconds=-1)


def test_invalid_json_raises(tmp_path):
    path = tmp_path / "broken.json"
    path.write_text("{not json")
    with pytest.raises(ValueError):
        load_config(path)
