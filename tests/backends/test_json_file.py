"""Tests for the JSON file backend."""

from pathlib import Path

import pytest

from taskflow.backends import JsonFileBackend
from taskflow.errors import StorageError
from taskflow.store import Store


def test_load_missing_file(tmp_path: Path) -> None:
    """Test that a missing file means no snapshot."""
    assert JsonFileBackend(tmp_path / "state.json").load() is None


def test_save_and_load(tmp_path: Path) -> None:
    """Test writing and reading a snapshot, creating parent directories."""
    backend = JsonFileBackend(tmp_path / "nested" / "state.json")
    backend.save({"tasks": [], "filter": {"status": "all"}})
    assert backend.load() == {"tasks": [], "filter": {"status": "all"}}
    assert not (tmp_path / "nested" / "state.json.tmp").exists()


def test_invalid_json_raises(tmp_path: Path) -> None:
    """Test that a corrupt file is reported."""
    path = tmp_path / "state.json"
    path.write_text("{oops", encoding="utf-8")
    with pytest.raises(StorageError):
        JsonFileBackend(path).load()


def test_clear(tmp_path: Path) -> None:
    """Test removing the snapshot file."""
    backend = JsonFileBackend(tmp_path / "state.json")
    backend.save({})
    backend.clear()
    assert backend.load() is None
    backend.clear()


def test_store_persists_to_file(tmp_path: Path) -> None:
    """Test a store reopened from the same file sees earlier mutations."""
    path = tmp_path / "state.json"
    store = Store(backend=JsonFileBackend(path))
    task = store.create_task("Persist me")
    store.complete_task(task.id)

    reopened = Store(backend=JsonFileBackend(path))
    assert reopened.get_task(task.id) == task
