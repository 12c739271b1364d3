"""Storage backend interface for taskflow snapshots."""

from abc import ABC, abstractmethod
from typing import Any


class StorageBackend(ABC):
    """Abstract base class for snapshot persistence backends.

    A backend stores one opaque snapshot (the dict produced by
    ``taskflow.serialization.encode_state``). It does not interpret the
    contents; schema changes are its own concern.
    """

    @abstractmethod
    def load(self) -> dict[str, Any] | None:
        """Load the stored snapshot.

        Returns:
            The snapshot dict, or None if nothing has been saved yet
        """
        pass

    @abstractmethod
    def save(self, snapshot: dict[str, Any]) -> None:
        """Replace the stored snapshot."""
        pass

    @abstractmethod
    def clear(self) -> None:
        """Remove the stored snapshot."""
        pass
