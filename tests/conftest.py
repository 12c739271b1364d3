"""Shared fixtures for taskflow tests."""

from datetime import datetime, timedelta, timezone

import pytest

from taskflow.backends import MemoryBackend
from taskflow.notifications import Notifier
from taskflow.store import Store


class RecordingNotifier(Notifier):
    """Keeps every message in ``messages``."""

    def __init__(self) -> None:
        self.messages: list[str] = []

    def notify(self, message: str) -> None:
        self.messages.append(message)


class FakeClock:
    """Deterministic clock that only moves when told to."""

    def __init__(self, start: datetime) -> None:
        self.current = start

    def __call__(self) -> datetime:
        return self.current

    def advance(self, **kwargs: float) -> None:
        self.current += timedelta(**kwargs)


@pytest.fixture
def clock() -> FakeClock:
    """Create a clock fixed at noon UTC on 2026-01-01."""
    return FakeClock(datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc))


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def backend() -> MemoryBackend:
    return MemoryBackend()


@pytest.fixture
def store(backend: MemoryBackend, notifier: RecordingNotifier, clock: FakeClock) -> Store:
    """Create an empty store wired to in-memory persistence and a recording notifier."""
    return Store(backend=backend, notifier=notifier, clock=clock)
