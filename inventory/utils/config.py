"""
Configuration management with schema validation.
Single source of truth for inventory settings.
"""

import os
from pathlib import Path
from typing import Any, Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from .exceptions import ConfigError

# Load environment variables
load_dotenv()

SETTINGS_FILE = Path(os.getenv("INVENTORY_SETTINGS", "config/settings.yaml"))


class AppSettings(BaseModel):
    name: str = "Inventario"
    version: str = "1.0.0"
    environment: str = "development"


class AuthSettings(BaseModel):
    session_timeout_minutes: int = Field(default=30, gt=0)
    bcrypt_rounds: int = Field(default=12, ge=4, le=31)
    cookie_name: str = "session_token"
    cookie_secure: bool = False
    login_path: str = "/login"


class StorageSettings(BaseModel):
    data_dir: str = "data"
    store_timeout_seconds: float = Field(default=5.0, gt=0)

    @property
    def users_file(self) -> Path:
        return Path(self.data_dir) / "users.json"

    @property
    def catalog_file(self) -> Path:
        return Path(self.data_dir) / "catalog.json"


class LoggingSettings(BaseModel):
    level: str = "INFO"
    format: str = "json"
    file_path: Optional[str] = "logs/inventory.log"
    max_bytes: int = 10485760
    backup_count: int = 5


class SeedSettings(BaseModel):
    """Bootstrap accounts created on first start if missing"""
    enabled: bool = True
    admin_password: str = "admin123"
    user_password: str = "user123"


class Settings(BaseModel):
    app: AppSettings = Field(default_factory=AppSettings)
    auth: AuthSettings = Field(default_factory=AuthSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    seed: SeedSettings = Field(default_factory=SeedSettings)

    @property
    def is_production(self) -> bool:
        return self.app.environment.strip().lower() == "production"


class ConfigManager:
    """Singleton configuration manager"""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super(ConfigManager, cls).__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self):
        if self._initialized:
            return
        self.settings_path = SETTINGS_FILE
        self._settings: Optional[Settings] = None
        self._initialized = True

    def _substitute_env_vars(self, value: Any) -> Any:
        """Recursively substitute ${VAR} and ${VAR:default} placeholders"""
        if isinstance(value, str):
            if value.startswith("${") and value.endswith("}"):
                var_expr = value[2:-1]
                if ":" in var_expr:
                    var_name, default = var_expr.split(":", 1)
                    return os.getenv(var_name.strip(), default.strip())
                else:
                    return os.getenv(var_expr, value)
        elif isinstance(value, dict):
            return {k: self._substitute_env_vars(v) for k, v in value.items()}
        elif isinstance(value, list):
            return [self._substitute_env_vars(item) for item in value]
        return value

    def load_settings(self, path: Optional[Path] = None) -> Settings:
        """Load and validate settings.yaml; a missing file yields defaults"""
        settings_path = Path(path) if path else self.settings_path
        if not settings_path.exists():
            self._settings = Settings()
            return self._settings

        try:
            with open(settings_path, "r", encoding="utf-8") as f:
                raw_data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ConfigError(f"Failed to read settings from {settings_path}: {str(e)}")

        processed_data = self._substitute_env_vars(raw_data)
        try:
            self._settings = Settings(**processed_data)
        except PydanticValidationError as e:
            raise ConfigError(f"Invalid settings in {settings_path}: {str(e)}")
        return self._settings

    @property
    def settings(self) -> Settings:
        if self._settings is None:
            return self.load_settings()
        return self._settings


# Global instance
config_manager = ConfigManager()
