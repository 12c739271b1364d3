"""Exceptions raised by taskflow."""


class TaskflowError(Exception):
    """Base class for taskflow errors."""


class ValidationError(TaskflowError):
    """Input rejected before it reached the store."""


class StorageError(TaskflowError):
    """A snapshot could not be read from or written to a storage backend."""
