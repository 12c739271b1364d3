"""Backend implementations."""

from taskflow.backends.json_file import JsonFileBackend
from taskflow.backends.memory import MemoryBackend
from taskflow.backends.yaml_file import YamlFileBackend

__all__ = ["JsonFileBackend", "MemoryBackend", "YamlFileBackend"]
