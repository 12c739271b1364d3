"""JSON file backend."""

from pathlib import Path
from typing import Any

import structlog

from taskflow import serialization
from taskflow.backend import StorageBackend
from taskflow.errors import StorageError

logger = structlog.get_logger()


class JsonFileBackend(StorageBackend):
    """Stores the snapshot as a single JSON document on disk."""

    def __init__(self, path: str | Path) -> None:
        """Initialize JSON file backend.

        Args:
            path: Path of the snapshot file; parent directories are created on save
        """
        self.path = Path(path)
        logger.debug("Initializing JSON backend", path=str(self.path))

    def load(self) -> dict[str, Any] | None:
        if not self.path.exists():
            logger.debug("Snapshot file does not exist", path=str(self.path))
            return None

        try:
            text = self.path.read_text(encoding="utf-8")
        except OSError as e:
            logger.error("Failed to read snapshot", path=str(self.path), error=str(e))
            raise StorageError(f"Failed to read snapshot from {self.path}: {e}") from e

        snapshot = serialization.loads(text)
        logger.debug("Snapshot loaded", path=str(self.path), keys=list(snapshot.keys()))
        return snapshot

    def save(self, snapshot: dict[str, Any]) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            # Write then rename so a crash never leaves a truncated snapshot
            tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
            tmp_path.write_text(serialization.dumps(snapshot), encoding="utf-8")
            tmp_path.replace(self.path)
        except (OSError, TypeError) as e:
            logger.error("Failed to save snapshot", path=str(self.path), error=str(e))
            raise StorageError(f"Failed to save snapshot to {self.path}: {e}") from e
        logger.debug("Snapshot saved", path=str(self.path))

    def clear(self) -> None:
        self.path.unlink(missing_ok=True)
        logger.info("Snapshot cleared", path=str(self.path))
