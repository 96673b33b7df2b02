"""Application settings powered by Pydantic BaseSettings."""

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from src.config.constants import DEFAULT_CACHE_DIR, DEFAULT_CONFIG_PATH
from src.fetch.constants import DEFAULT_API_BASE_URL


class AppSettings(BaseSettings):
    """Centralized environment configuration."""

    model_config = SettingsConfigDict(
        env_prefix="", case_sensitive=False, env_file=".env", env_file_encoding="utf-8"
    )

    twitter_bearer_token: str | None = Field(
        default=None, validation_alias="TWITTER_BEARER_TOKEN"
    )
    twitter_api_base_url: str = Field(
        default=DEFAULT_API_BASE_URL, validation_alias="TWITTER_API_BASE_URL"
    )
    headlines_config: Path = Field(
        default=Path(DEFAULT_CONFIG_PATH), validation_alias="HEADLINES_CONFIG"
    )
    headlines_cache_dir: Path = Field(
        default=Path(DEFAULT_CACHE_DIR), validation_alias="HEADLINES_CACHE_DIR"
    )

    @property
    def has_credentials(self) -> bool:
        """Check if a bearer token is configured."""
        return bool(self.twitter_bearer_token)


def get_settings() -> AppSettings:
    """Get a settings instance."""
    return AppSettings()
