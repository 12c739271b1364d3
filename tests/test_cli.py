"""Tests for CLI helpers."""

from datetime import datetime, timezone
from pathlib import Path

import pytest

from taskflow.automation_commands import build_action, build_trigger, describe
from taskflow.backends import JsonFileBackend, MemoryBackend, YamlFileBackend
from taskflow.cli import build_backend, get_store, parse_csv, parse_date, resolve_tags
from taskflow.config import Config
from taskflow.models import AddTag, CreateTask, PriorityChanged, SendNotification, TaskCompleted, TaskDueSoon
from taskflow.store import Store


@pytest.fixture
def workdir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Run in an empty directory with an empty home."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    work = tmp_path / "work"
    work.mkdir()
    monkeypatch.chdir(work)
    return work


def test_parse_csv() -> None:
    """Test splitting comma separated options."""
    assert parse_csv("a, b,,c ") == ["a", "b", "c"]
    assert parse_csv("") == []
    assert parse_csv(None) == []


def test_parse_date_assumes_utc() -> None:
    """Test that naive dates are read as UTC."""
    assert parse_date("2026-02-01") == datetime(2026, 2, 1, tzinfo=timezone.utc)
    assert parse_date(None) is None


def test_build_backend(workdir: Path) -> None:
    """Test backend selection from config."""
    config = Config(config_dir=workdir / ".taskflow")
    assert isinstance(build_backend(config), JsonFileBackend)
    config.set("storage.backend", "yaml")
    assert isinstance(build_backend(config), YamlFileBackend)
    config.set("storage.backend", "memory")
    assert isinstance(build_backend(config), MemoryBackend)
    config.set("storage.backend", "sqlite")
    with pytest.raises(ValueError):
        build_backend(config)


def test_get_store_uses_local_config(workdir: Path) -> None:
    """Test opening the configured store from the current directory."""
    store = get_store()
    assert [tag.name for tag in store.tags] == ["Personal", "Work", "Home"]
    store.create_task("From the CLI")

    assert (workdir / ".taskflow" / "state.json").exists()
    assert [task.title for task in get_store().tasks] == ["From the CLI"]


def test_resolve_tags_by_name_or_id() -> None:
    """Test tag resolution."""
    store = Store()
    work = store.create_tag("Work")
    assert resolve_tags(store, f"work,{work.id}") == [work.id, work.id]
    with pytest.raises(ValueError):
        resolve_tags(store, "nope")


def test_build_trigger_and_action() -> None:
    """Test building rule variants from options."""
    assert build_trigger("task-completed") == TaskCompleted()
    assert build_trigger("task-due-soon", days=3) == TaskDueSoon(days=3)
    assert build_trigger("priority-changed", priority="high") == PriorityChanged(priority="high")
    with pytest.raises(ValueError):
        build_trigger("task-due-soon")

    assert build_action("create-task", title="Follow up") == CreateTask(title="Follow up")
    assert build_action("add-tag", tag="t1") == AddTag(tag="t1")
    assert build_action("send-notification", message="hi") == SendNotification(message="hi")
    with pytest.raises(ValueError):
        build_action("change-priority")


def test_describe() -> None:
    """Test the one-line rule summary."""
    assert describe(TaskCompleted(), CreateTask(title="Follow up")) == 'when task completed, create task "Follow up"'
    summary = describe(TaskDueSoon(days=2), SendNotification(message="hurry"))
    assert summary == 'when task due within 2 day(s), notify "hurry"'
