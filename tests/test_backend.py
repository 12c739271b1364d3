"""Tests for the storage backend interface."""

from typing import Any

from taskflow.backend import StorageBackend
from taskflow.models import TaskCompleted, CreateTask
from taskflow.store import Store


class MockBackend(StorageBackend):
    """Mock backend for testing."""

    def __init__(self, snapshot: dict[str, Any] | None = None) -> None:
        """Initialize mock backend."""
        self.snapshot = snapshot
        self.saved: list[dict[str, Any]] = []

    def load(self) -> dict[str, Any] | None:
        """Load snapshot."""
        return self.snapshot

    def save(self, snapshot: dict[str, Any]) -> None:
        """Save snapshot."""
        self.saved.append(snapshot)
        self.snapshot = snapshot

    def clear(self) -> None:
        """Clear snapshot."""
        self.snapshot = None


def test_store_loads_nothing_from_empty_backend() -> None:
    """Test opening a store over an empty backend."""
    backend = MockBackend()
    store = Store(backend=backend)
    assert store.tasks == []
    assert backend.saved == []


def test_store_seeds_default_tags() -> None:
    """Test default tags are created only for a fresh store."""
    store = Store(backend=MockBackend(), seed_default_tags=True)
    assert [tag.name for tag in store.tags] == ["Personal", "Work", "Home"]


def test_every_mutation_saves_a_snapshot() -> None:
    """Test that each top-level mutation hands the state to the backend."""
    backend = MockBackend()
    store = Store(backend=backend)
    task = store.create_task("Task 1")
    store.update_task(task.id, title="Task 1 renamed")
    store.delete_task(task.id)
    assert len(backend.saved) == 3
    assert backend.saved[-1]["tasks"] == []


def test_cascade_saves_once() -> None:
    """Test that mutations made by automations are saved with the mutation that caused them."""
    backend = MockBackend()
    store = Store(backend=backend)
    store.create_automation("Follow up", TaskCompleted(), CreateTask(title="Follow up"))
    task = store.create_task("Task 1")
    saves_before = len(backend.saved)

    store.complete_task(task.id)

    assert len(backend.saved) == saves_before + 1
    assert [t["title"] for t in backend.saved[-1]["tasks"]] == ["Task 1", "Follow up"]


def test_missing_id_does_not_save() -> None:
    """Test that a no-op on a missing id leaves the backend untouched."""
    backend = MockBackend()
    store = Store(backend=backend)
    assert store.complete_task("missing") is None
    assert backend.saved == []


def test_store_reopens_saved_state() -> None:
    """Test reading the snapshot back at startup."""
    backend = MockBackend()
    store = Store(backend=backend)
    tag = store.create_tag("Work", "#f97316")
    task = store.create_task("Task 1", tags=[tag.id])

    reopened = Store(backend=backend, seed_default_tags=True)
    assert reopened.get_task(task.id) == task
    assert reopened.tags == [tag]
