"""Tests for settings loading and environment substitution"""

from pathlib import Path

import pytest

from inventory.utils.config import ConfigManager, Settings
from inventory.utils.exceptions import ConfigError


@pytest.fixture
def manager():
    manager = ConfigManager()
    previous = manager._settings
    yield manager
    manager._settings = previous


def test_is_a_singleton():
    assert ConfigManager() is ConfigManager()


def test_missing_file_yields_defaults(manager, tmp_path):
    settings = manager.load_settings(tmp_path / "absent.yaml")
    assert settings == Settings()
    assert settings.auth.session_timeout_minutes == 30
    assert settings.auth.cookie_name == "session_token"


def test_yaml_with_env_substitution(manager, tmp_path, monkeypatch):
    path = tmp_path / "settings.yaml"
    path.write_text(
        "app:\n"
        "  environment: ${ENVIRONMENT:development}\n"
        "auth:\n"
        "  session_timeout_minutes: 15\n"
        "storage:\n"
        "  data_dir: ${INVENTORY_DATA_DIR:data}\n",
        encoding="utf-8",
    )
    monkeypatch.setenv("ENVIRONMENT", "production")
    monkeypatch.delenv("INVENTORY_DATA_DIR", raising=False)

    settings = manager.load_settings(path)
    assert settings.is_production
    assert settings.auth.session_timeout_minutes == 15
    assert settings.storage.data_dir == "data"
    assert settings.storage.users_file.name == "users.json"
    assert manager.settings is settings


def test_invalid_yaml_raises_config_error(manager, tmp_path):
    path = tmp_path / "settings.yaml"
    path.write_text("auth: [unclosed\n", encoding="utf-8")
    with pytest.raises(ConfigError):
        manager.load_settings(path)


def test_invalid_values_raise_config_error(manager, tmp_path):
    path = tmp_path / "settings.yaml"
    path.write_text("auth:\n  session_timeout_minutes: 0\n", encoding="utf-8")
    with pytest.raises(ConfigError):
        manager.load_settings(path)


def test_shipped_settings_file_loads(manager):
    settings = manager.load_settings(Path(__file__).resolve().parent.parent / "config" / "settings.yaml")
    assert settings.app.name == "Inventario"
    assert settings.seed.enabled
