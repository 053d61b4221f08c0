"""
Configuration management using Pydantic Settings.

Architecture Decision: Why pydantic-settings?
- Type-safe configuration with validation
- Supports multiple sources (YAML, env vars, defaults)
- Easy to test with different configurations
"""

import os
from pathlib import Path
from typing import Optional
import yaml

from pydantic import BaseModel, ConfigDict, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from tasktime.domain.models import HEX_COLOR_PATTERN


class AnalyticsPreferences(BaseModel):
    """
    Knobs for analytics and CSV export.

    Defaults reproduce the established export format.
    """
    model_config = ConfigDict(from_attributes=True)

    default_time_range: str = Field(default="today", description="Used when a query names no range")
    uncategorized_label: str = Field(default="Uncategorized")
    uncategorized_color: str = Field(default="#9CA3AF", pattern=HEX_COLOR_PATTERN)
    default_category_color: str = Field(default="#3B82F6", pattern=HEX_COLOR_PATTERN)
    csv_datetime_format: Optional[str] = Field(
        default=None,
        description="strftime format for the Created At / Updated At columns. "
                    "Unset keeps the legacy '3/14/2026, 4:45:30 PM' form."
    )
    csv_escape_quotes: bool = Field(
        default=False,
        description="Double embedded quotes (RFC 4180). Off keeps the legacy file format."
    )


class Settings(BaseSettings):
    """
    Application settings with multiple sources:
    1. Default values (hardcoded)
    2. YAML config file
    3. Environment variables (highest priority)
    """
    model_config = SettingsConfigDict(
        env_prefix='TASKTIME_',
        env_file='.env',
        env_file_encoding='utf-8',
        env_nested_delimiter='__'
    )

    # Application paths
    app_name: str = "TaskTime"
    config_dir: Optional[Path] = None
    data_dir: Optional[Path] = None

    # Database
    database_url: Optional[str] = None

    log_level: str = "INFO"

    analytics: AnalyticsPreferences = AnalyticsPreferences()

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self._init_paths()
        self._load_yaml_config()

    def _init_paths(self):
        """Initialize default paths based on OS"""
        if self.config_dir is None:
            if os.name == 'nt':  # Windows
                base = Path(os.getenv('APPDATA'))
            else:  # Linux/Mac
                base = Path.home() / '.config'
            self.config_dir = base / self.app_name.lower()

        if self.data_dir is None:
            if os.name == 'nt':  # Windows
                base = Path(os.getenv('APPDATA'))
            else:  # Linux/Mac
                base = Path.home() / '.local' / 'share'
            self.data_dir = base / self.app_name.lower()

        # Create directories if they don't exist
        self.config_dir.mkdir(parents=True, exist_ok=True)
        self.data_dir.mkdir(parents=True, exist_ok=True)

    def _config_file(self) -> Path:
        # First check in workspace config folder
        config_file = Path("config/settings.yaml")
        if not config_file.exists():
            # Then check in user's config directory
            config_file = self.config_dir / "settings.yaml"
        return config_file

    def _load_yaml_config(self):
        """Load analytics preferences and log level from YAML file"""
        config_file = self._config_file()

        if config_file.exists():
            with open(config_file, 'r', encoding='utf-8') as f:
                config_data = yaml.safe_load(f)
            if config_data:
                # Values passed explicitly or through the environment win
                if 'log_level' in config_data and 'log_level' not in self.model_fields_set:
                    self.log_level = str(config_data['log_level'])
                if config_data.get('analytics') and 'analytics' not in self.model_fields_set:
                    self.analytics = AnalyticsPreferences(**config_data['analytics'])

    def save_preferences(self):
        """Save current preferences to YAML file"""
        config_file = self.config_dir / "settings.yaml"
        with open(config_file, 'w', encoding='utf-8') as f:
            yaml.dump(
                {'log_level': self.log_level, 'analytics': self.analytics.model_dump()},
                f,
                default_flow_style=False
            )

    def get_db_url(self) -> str:
        """Get database URL, creating default if not set"""
        if self.database_url:
            return self.database_url

        db_path = self.data_dir / 'tasktime.db'
        return f"sqlite+aiosqlite:///{db_path}"


# Global settings instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get the global settings instance"""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reload_settings():
    """Reload settings from file"""
    global _settings
    _settings = Settings()
    return _settings
