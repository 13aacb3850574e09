"""Service layer exports."""

from .chat_commands import ChatMessage, ClipCommandHandler
from .clip_acquisition import (
    ClipAcquisitionService,
    ClipPollTimeoutError,
    CooldownActiveError,
)
from .cooldown import CooldownGate
from .credentials import CredentialManager, CredentialNotFoundError, TokenRefreshError
from .errors import ClipAcquisitionError
from .token_cipher import TokenCipherService

__all__ = [
    "ChatMessage",
    "ClipAcquisitionError",
    "ClipAcquisitionService",
    "ClipCommandHandler",
    "ClipPollTimeoutError",
    "CooldownActiveError",
    "CooldownGate",
    "CredentialManager",
    "CredentialNotFoundError",
    "TokenCipherService",
    "TokenRefreshError",
]
