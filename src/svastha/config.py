"""
Svastha - Configuration and settings.

SvasthaSettings holds what the collaborator adapters and the CLI need.
The onboarding core itself takes no settings.
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class SvasthaSettings(BaseSettings):
    """
    Application settings loaded from the environment and .env.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Supabase (record store + identity provider)
    supabase_url: str = ""
    supabase_anon_key: str = ""
    users_table: str = "users"

    # Federated one-tap provider passed to Supabase Auth
    federated_provider: str = "google"

    # Local "is first run" flag
    preferences_path: Path = Path.home() / ".svastha" / "preferences.json"

    # Application
    svastha_env: Literal["development", "staging", "production"] = "development"
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    @property
    def has_supabase(self) -> bool:
        return bool(self.supabase_url and self.supabase_anon_key)


@lru_cache
def get_settings() -> SvasthaSettings:
    """Get cached settings instance."""
    return SvasthaSettings()


class _SettingsProxy:
    """Lazy proxy for settings to avoid loading .env at import time."""

    _instance: SvasthaSettings | None = None

    def __getattr__(self, name: str):
        if self._instance is None:
            self._instance = get_settings()
        return getattr(self._instance, name)


settings = _SettingsProxy()
