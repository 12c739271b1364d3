"""YAML file backend."""

from pathlib import Path
from typing import Any

import structlog
import yaml

from taskflow.backend import StorageBackend
from taskflow.errors import StorageError

logger = structlog.get_logger()


class YamlFileBackend(StorageBackend):
    """Stores the snapshot as a YAML document, convenient for hand editing."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        logger.debug("Initializing YAML backend", path=str(self.path))

    def load(self) -> dict[str, Any] | None:
        if not self.path.exists():
            logger.debug("Snapshot file does not exist", path=str(self.path))
            return None

        try:
            with open(self.path, "r") as f:
                snapshot = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            logger.error("Failed to load snapshot", path=str(self.path), error=str(e))
            raise StorageError(f"Failed to load snapshot from {self.path}: {e}") from e

        if not isinstance(snapshot, dict):
            raise StorageError(f"Snapshot in {self.path} must be a mapping")
        logger.debug("Snapshot loaded", path=str(self.path), keys=list(snapshot.keys()))
        return snapshot

    def save(self, snapshot: dict[str, Any]) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, "w") as f:
                yaml.safe_dump(snapshot, f, default_flow_style=False, sort_keys=False)
        except (OSError, yaml.YAMLError) as e:
            logger.error("Failed to save snapshot", path=str(self.path), error=str(e))
            raise StorageError(f"Failed to save snapshot to {self.path}: {e}") from e
        logger.debug("Snapshot saved", path=str(self.path))

    def clear(self) -> None:
        self.path.unlink(missing_ok=True)
        logger.info("Snapshot cleared", path=str(self.path))
