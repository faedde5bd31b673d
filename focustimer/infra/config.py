"""
Configuration management using Pydantic Settings.

Sources, lowest priority first:
1. defaults on Settings / UserPreferences
2. settings.yaml (workspace ``config/`` folder, else the user config dir)
3. FOCUSTIMER_* environment variables, nested with ``__``
   (e.g. FOCUSTIMER_PREFERENCES__SYNC_TOLERANCE_MS=500)
"""

import logging
import os
from pathlib import Path
from typing import Optional
import yaml

from pydantic_settings import BaseSettings, SettingsConfigDict
from focustimer.domain.models import UserPreferences

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
WORKSPACE_CONFIG = Path("config") / "settings.yaml"


def _user_dir(kind: str) -> Path:
    """Per-user base directory for 'config' or 'data'"""
    if os.name == 'nt':
        return Path(os.getenv('APPDATA') or Path.home())
    if kind == 'config':
        return Path(os.getenv('XDG_CONFIG_HOME') or Path.home() / '.config')
    return Path(os.getenv('XDG_DATA_HOME') or Path.home() / '.local' / 'share')


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix='FOCUSTIMER_',
        env_file='.env',
        env_file_encoding='utf-8',
        env_nested_delimiter='__',
        extra='ignore'
    )

    app_name: str = "FocusTimer"
    config_dir: Optional[Path] = None
    data_dir: Optional[Path] = None

    # Database; defaults to a SQLite file in data_dir
    database_url: Optional[str] = None
    db_filename: str = "focustimer.db"

    preferences: UserPreferences = UserPreferences()

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        slug = self.app_name.lower()
        if self.config_dir is None:
            self.config_dir = _user_dir('config') / slug
        if self.data_dir is None:
            self.data_dir = _user_dir('data') / slug
        self.config_dir.mkdir(parents=True, exist_ok=True)
        self.data_dir.mkdir(parents=True, exist_ok=True)
        self._merge_yaml_preferences()

    @property
    def config_file(self) -> Path:
        if WORKSPACE_CONFIG.exists():
            return WORKSPACE_CONFIG
        return self.config_dir / "settings.yaml"

    def _merge_yaml_preferences(self):
        path = self.config_file
        if not path.exists():
            return
        with open(path, 'r', encoding='utf-8') as f:
            from_file = yaml.safe_load(f) or {}
        # Fields set from the environment were explicitly set on the model
        from_env = self.preferences.model_dump(exclude_unset=True)
        self.preferences = UserPreferences(**{**from_file, **from_env})

    def save_preferences(self):
        """Write preferences to the user config dir"""
        with open(self.config_dir / "settings.yaml", 'w', encoding='utf-8') as f:
            yaml.safe_dump(self.preferences.model_dump(), f, default_flow_style=False, allow_unicode=True)

    def get_db_url(self) -> str:
        return self.database_url or f"sqlite+aiosqlite:///{self.data_dir / self.db_filename}"

    def configure_logging(self):
        """Set up the root logger from preferences.log_level"""
        level = logging.getLevelName(self.preferences.log_level.upper())
        if not isinstance(level, int):
            level = logging.INFO
        logging.basicConfig(level=level, format=LOG_FORMAT)


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get the global settings instance"""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reload_settings() -> Settings:
    """Re-read environment and YAML"""
    global _settings
    _settings = Settings()
    return _settings
