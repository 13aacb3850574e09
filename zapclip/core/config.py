"""
Application configuration models and helpers.

Centralizes settings management so the FastAPI app, the chat command handler
and the operator scripts share a consistent configuration surface.
"""

from functools import lru_cache
from typing import Optional

from pydantic import AnyHttpUrl, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


_SETTINGS_CONFIG = SettingsConfigDict(
    env_file=".env",
    env_file_encoding="utf-8",
    extra="ignore",
    populate_by_name=True,
)


class TwitchSettings(BaseSettings):
    """Credentials and endpoints for the Twitch Helix API."""

    model_config = _SETTINGS_CONFIG

    client_id: str = Field(..., alias="TWITCH_CLIENT_ID")
    client_secret: str = Field(..., alias="TWITCH_CLIENT_SECRET")
    api_base_url: AnyHttpUrl = Field(
        "https://api.twitch.tv/helix", alias="TWITCH_API_BASE_URL"
    )
    token_url: AnyHttpUrl = Field(
        "https://id.twitch.tv/oauth2/token", alias="TWITCH_TOKEN_URL"
    )
    http_timeout_seconds: float = Field(10.0, alias="TWITCH_HTTP_TIMEOUT")


class ClipSettings(BaseSettings):
    """Cooldown and polling budgets for clip acquisition."""

    model_config = _SETTINGS_CONFIG

    cooldown_seconds: int = Field(30, alias="CLIP_COOLDOWN_SECONDS", ge=0)
    poll_attempts: int = Field(12, alias="CLIP_POLL_ATTEMPTS", ge=1)
    poll_delay_seconds: float = Field(2.5, alias="CLIP_POLL_DELAY_SECONDS", ge=0)
    extended_poll_attempts: int = Field(
        10,
        alias="CLIP_EXTENDED_POLL_ATTEMPTS",
        ge=0,
        description="Background attempts after the foreground poll gives up.",
    )
    extended_poll_delay_seconds: float = Field(
        15.0, alias="CLIP_EXTENDED_POLL_DELAY_SECONDS", ge=0
    )


class SecuritySettings(BaseSettings):
    """Security-related configuration."""

    model_config = _SETTINGS_CONFIG

    token_encryption_secret: Optional[str] = Field(
        None,
        alias="TOKEN_ENCRYPTION_SECRET",
        description=(
            "Secret used to derive the symmetric key for encrypting stored tokens."
        ),
    )
    previous_token_encryption_secrets: Optional[str] = Field(
        None,
        alias="TOKEN_ENCRYPTION_PREVIOUS_SECRETS",
        description="Comma separated retired secrets still accepted for decryption.",
    )


class AppSettings(BaseSettings):
    """Root settings object for the service."""

    model_config = _SETTINGS_CONFIG

    environment: str = Field("development", alias="APP_ENV")
    log_level: str = Field("INFO", alias="APP_LOG_LEVEL")
    database_path: str = Field("data/zapclip.db", alias="ZAPCLIP_DB_PATH")
    security: SecuritySettings = Field(default_factory=SecuritySettings)
    twitch: TwitchSettings = Field(default_factory=TwitchSettings)
    clips: ClipSettings = Field(default_factory=ClipSettings)

    @field_validator("log_level")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        return value.strip().upper()


@lru_cache()
def get_settings() -> AppSettings:
    """Return a cached settings object."""
    return AppSettings()  # type: ignore[call-arg]


__all__ = [
    "AppSettings",
    "ClipSettings",
    "SecuritySettings",
    "TwitchSettings",
    "get_settings",
]
