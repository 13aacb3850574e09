"""Expose dependency helpers for FastAPI routers."""

from .clients import (
    get_clip_acquisition_service,
    get_cooldown_gate,
    get_credential_manager,
    get_record_sink,
    get_token_cipher_service,
    get_twitch_client,
)
from .config import get_app_settings

__all__ = [
    "get_app_settings",
    "get_clip_acquisition_service",
    "get_cooldown_gate",
    "get_credential_manager",
    "get_record_sink",
    "get_token_cipher_service",
    "get_twitch_client",
]
