"""
Factory functions to provide shared clients and services as FastAPI dependencies.
"""

from functools import lru_cache

from zapclip.clients import SQLiteRecordSink, TwitchClient
from zapclip.core.config import get_settings
from zapclip.services import (
    ClipAcquisitionService,
    CooldownGate,
    CredentialManager,
    TokenCipherService,
)
from zapclip.services.token_cipher import split_secrets


@lru_cache()
def _settings():
    """Internal helper to cache settings for client factories."""
    return get_settings()


@lru_cache()
def get_token_cipher_service() -> TokenCipherService:
    """Provide symmetric encryption helper for token storage."""
    settings = _settings()
    security = settings.security
    secret = security.token_encryption_secret or settings.twitch.client_secret
    return TokenCipherService(
        secret=secret,
        previous_secrets=split_secrets(security.previous_token_encryption_secrets),
    )


@lru_cache()
def get_record_sink() -> SQLiteRecordSink:
    """Provide the shared SQLite clip history and token store."""
    settings = _settings()
    return SQLiteRecordSink(settings.database_path, get_token_cipher_service())


@lru_cache()
def get_twitch_client() -> TwitchClient:
    """Create a singleton Twitch Helix client."""
    return TwitchClient(_settings().twitch)


@lru_cache()
def get_cooldown_gate() -> CooldownGate:
    """Provide the process-wide cooldown gate."""
    return CooldownGate()


@lru_cache()
def get_credential_manager() -> CredentialManager:
    """Provide helper for managing broadcaster OAuth tokens."""
    return CredentialManager(
        store=get_record_sink(),
        twitch_client=get_twitch_client(),
    )


@lru_cache()
def get_clip_acquisition_service() -> ClipAcquisitionService:
    """Provide the clip orchestrator; cached so cooldowns and background polls are shared."""
    return ClipAcquisitionService(
        twitch_client=get_twitch_client(),
        credential_manager=get_credential_manager(),
        clip_sink=get_record_sink(),
        cooldown_gate=get_cooldown_gate(),
        settings=_settings().clips,
    )


__all__ = [
    "get_clip_acquisition_service",
    "get_cooldown_gate",
    "get_credential_manager",
    "get_record_sink",
    "get_token_cipher_service",
    "get_twitch_client",
]
