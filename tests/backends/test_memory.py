"""Tests for the in-memory backend."""

from taskflow.backends import MemoryBackend


def test_memory_backend_starts_empty() -> None:
    """Test a fresh backend."""
    assert MemoryBackend().load() is None


def test_memory_backend_copies_snapshots() -> None:
    """Test that saved and loaded snapshots are isolated from callers."""
    backend = MemoryBackend()
    snapshot = {"tasks": [{"id": "t1"}]}
    backend.save(snapshot)
    snapshot["tasks"].clear()

    loaded = backend.load()
    assert loaded == {"tasks": [{"id": "t1"}]}
    loaded["tasks"].clear()
    assert backend.load() == {"tasks": [{"id": "t1"}]}
    assert backend.save_count == 1

    backend.clear()
    assert backend.load() is None
