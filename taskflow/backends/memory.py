"""In-memory backend, mainly for tests and throwaway sessions."""

import copy
from typing import Any

import structlog

from taskflow.backend import StorageBackend

logger = structlog.get_logger()


class MemoryBackend(StorageBackend):
    """Keeps a deep copy of the last saved snapshot."""

    def __init__(self, snapshot: dict[str, Any] | None = None) -> None:
        self._snapshot = copy.deepcopy(snapshot)
        self.save_count = 0

    def load(self) -> dict[str, Any] | None:
        return copy.deepcopy(self._snapshot)

    def save(self, snapshot: dict[str, Any]) -> None:
        self._snapshot = copy.deepcopy(snapshot)
        self.save_count += 1
        logger.debug("Snapshot saved in memory", save_count=self.save_count)

    def clear(self) -> None:
        self._snapshot = None
