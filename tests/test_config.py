"""Tests for YAML configuration."""

from pathlib import Path

import pytest
import yaml

from taskflow import config_commands
from taskflow.config import Config, check_value


@pytest.fixture
def home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point the home directory at an empty temporary directory."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    return home


def test_defaults(tmp_path: Path, home: Path) -> None:
    """Test built-in defaults apply when nothing is configured."""
    config = Config(config_dir=tmp_path / "local")
    assert config.get("storage.backend") == "json"
    assert config.get_int("automation.max_depth") == 10
    assert config.get_int("automation.max_actions") == 1000
    assert config.get("unknown.key", "fallback") == "fallback"
    assert config.storage_path() == tmp_path / "local" / "state.json"


def test_set_persists_to_yaml(tmp_path: Path, home: Path) -> None:
    """Test that set values are written to config.yaml and read back."""
    config = Config(config_dir=tmp_path / "local")
    config.set("automation.max_depth", "5")
    config.set("storage.backend", "yaml")

    data = yaml.safe_load((tmp_path / "local" / "config.yaml").read_text())
    assert data == {"automation.max_depth": "5", "storage.backend": "yaml"}

    reloaded = Config(config_dir=tmp_path / "local")
    assert reloaded.get_int("automation.max_depth") == 5
    assert reloaded.storage_path() == tmp_path / "local" / "state.yaml"

    reloaded.unset("automation.max_depth")
    assert reloaded.get_int("automation.max_depth") == 10


def test_local_overrides_global(tmp_path: Path, home: Path) -> None:
    """Test lookup order: local, then global, then defaults."""
    Config(use_global=True).set("storage.path", "/global/state.json")
    Config(use_global=True).set("automation.max_actions", "50")
    local = Config(config_dir=tmp_path / "local")
    local.set("storage.path", "/local/state.json")

    assert local.get("storage.path") == "/local/state.json"
    assert local.get_int("automation.max_actions") == 50
    assert local.list() == {"storage.path": "/local/state.json", "automation.max_actions": "50"}


def test_get_int_rejects_garbage(tmp_path: Path, home: Path) -> None:
    """Test integer parsing errors."""
    config = Config(config_dir=tmp_path / "local")
    config.set("automation.max_depth", "deep")
    with pytest.raises(ValueError):
        config.get_int("automation.max_depth")


def test_invalid_yaml_raises(tmp_path: Path, home: Path) -> None:
    """Test that a broken config file is reported."""
    config_dir = tmp_path / "local"
    config_dir.mkdir()
    (config_dir / "config.yaml").write_text("key: [unterminated")
    with pytest.raises(ValueError):
        Config(config_dir=config_dir)


def test_check_value() -> None:
    """Test validation of storage and automation settings."""
    assert check_value("storage.backend", "yaml") == "yaml"
    assert check_value("automation.max_depth", "5") == 5
    assert check_value("storage.path", "/tmp/state.json") == "/tmp/state.json"
    with pytest.raises(ValueError):
        check_value("storage.backend", "sqlite")
    with pytest.raises(ValueError):
        check_value("automation.max_actions", "lots")
    with pytest.raises(ValueError):
        check_value("automation.max_depth", "0")


def test_set_command_validates_before_saving(tmp_path: Path, home: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Test that the config set command stores checked values and rejects bad ones."""
    monkeypatch.chdir(tmp_path)

    config_commands.set("automation.max_depth", "5")
    with pytest.raises(ValueError):
        config_commands.set("storage.backend", "sqlite")

    config = Config()
    assert config.get("automation.max_depth") == 5
    assert config.get("storage.backend") == "json"
