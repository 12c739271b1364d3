"""Configuration management for taskflow using YAML files."""

from pathlib import Path
from typing import Any

import structlog
import yaml

logger = structlog.get_logger()

CONFIG_DIR_NAME = ".taskflow"

DEFAULTS: dict[str, Any] = {
    "storage.backend": "json",
    "storage.path": None,
    "automation.max_depth": 10,
    "automation.max_actions": 1000,
}

DEFAULT_STORAGE_FILES = {
    "json": "state.json",
    "yaml": "state.yaml",
}

STORAGE_BACKENDS = ("json", "yaml", "memory")

LIMIT_KEYS = ("automation.max_depth", "automation.max_actions")


def check_value(key: str, value: str) -> Any:
    """Validate a value for a known key and return it in its stored form.

    Unknown keys are stored as given.

    Raises:
        ValueError: If the value is not valid for the key
    """
    if key == "storage.backend" and value not in STORAGE_BACKENDS:
        raise ValueError(f"Invalid storage.backend {value!r}, expected one of: {', '.join(STORAGE_BACKENDS)}")
    if key in LIMIT_KEYS:
        try:
            limit = int(value)
        except ValueError as e:
            raise ValueError(f"{key} must be an integer, got {value!r}") from e
        if limit < 1:
            raise ValueError(f"{key} must be at least 1")
        return limit
    return value


class Config:
    """Configuration manager using YAML file storage.

    Local config lives in .taskflow/config.yaml under the current directory,
    global config in ~/.taskflow/config.yaml. Reads check local config first,
    then global config, then the built-in defaults.
    """

    def __init__(self, use_global: bool = False, config_dir: Path | None = None) -> None:
        """Initialize configuration manager.

        Args:
            use_global: If True, use global config only. If False, use local config with global fallback.
            config_dir: Custom directory to store config file (overrides use_global)
        """
        if config_dir is not None:
            self.config_dir = Path(config_dir)
            self.is_global = use_global
        elif use_global:
            self.config_dir = Path.home() / CONFIG_DIR_NAME
            self.is_global = True
        else:
            self.config_dir = Path.cwd() / CONFIG_DIR_NAME
            self.is_global = False

        self.config_file = self.config_dir / "config.yaml"
        self._config: dict[str, Any] = self._load(self.config_file)

        self._global_config: dict[str, Any] = {}
        if not self.is_global:
            global_config_file = Path.home() / CONFIG_DIR_NAME / "config.yaml"
            if global_config_file != self.config_file and global_config_file.exists():
                try:
                    self._global_config = self._load(global_config_file)
                except ValueError as e:
                    logger.warning("Failed to load global config", error=str(e))

        logger.debug("Config initialized", config_file=str(self.config_file), is_global=self.is_global)

    def _load(self, path: Path) -> dict[str, Any]:
        if not path.exists():
            logger.debug("Config file does not exist, initializing empty config", path=str(path))
            return {}

        try:
            with open(path, "r") as f:
                config = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            logger.error("Failed to load config", path=str(path), error=str(e))
            raise ValueError(f"Failed to load config from {path}: {e}") from e

        if not isinstance(config, dict):
            raise ValueError(f"Config in {path} must be a mapping")
        logger.debug("Config loaded successfully", keys=list(config.keys()))
        return config

    def _save(self) -> None:
        try:
            self.config_dir.mkdir(parents=True, exist_ok=True)
            with open(self.config_file, "w") as f:
                yaml.safe_dump(self._config, f, default_flow_style=False, sort_keys=False)
        except (OSError, yaml.YAMLError) as e:
            logger.error("Failed to save config", error=str(e))
            raise ValueError(f"Failed to save config to {self.config_file}: {e}") from e
        logger.debug("Config saved successfully")

    def get(self, key: str, default: Any = None) -> Any:
        """Get a configuration value.

        Args:
            key: Configuration key
            default: Returned when neither config file nor the built-in defaults have the key

        Returns:
            Configuration value or default
        """
        if key in self._config:
            logger.debug("Getting config value from local", key=key)
            return self._config[key]

        if not self.is_global and key in self._global_config:
            logger.debug("Getting config value from global", key=key)
            return self._global_config[key]

        if DEFAULTS.get(key) is not None:
            return DEFAULTS[key]
        return default

    def get_int(self, key: str) -> int:
        """Get a configuration value as an integer.

        Raises:
            ValueError: If the value is not an integer
        """
        value = self.get(key)
        try:
            return int(value)
        except (TypeError, ValueError) as e:
            raise ValueError(f"Config value {key}={value!r} is not an integer") from e

    def set(self, key: str, value: Any) -> None:
        logger.debug("Setting config value", key=key)
        self._config[key] = value
        self._save()

    def unset(self, key: str) -> None:
        logger.debug("Unsetting config value", key=key)
        if key in self._config:
            del self._config[key]
            self._save()

    def list(self) -> dict[str, Any]:
        """List configuration settings set in files.

        For local config, merges global config with local config (local takes precedence).
        """
        if self.is_global:
            return self._config.copy()
        merged = self._global_config.copy()
        merged.update(self._config)
        logger.debug("Listing merged config values", count=len(merged))
        return merged

    def storage_path(self) -> Path:
        """Resolve the snapshot path, defaulting to a file inside the config directory."""
        path = self.get("storage.path")
        if path:
            return Path(path).expanduser()
        backend = self.get("storage.backend")
        return self.config_dir / DEFAULT_STORAGE_FILES.get(backend, "state.json")


def get_config(use_global: bool = False) -> Config:
    """Get a configuration instance.

    Args:
        use_global: If True, return global config. If False, return local config with global fallback.

    Returns:
        Config instance
    """
    return Config(use_global=use_global)
