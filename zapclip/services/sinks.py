"""Persistence interfaces consumed by the clip acquisition services."""

from __future__ import annotations

from typing import Optional, Protocol

from zapclip.models.clip import ClipOutcome
from zapclip.models.oauth import AccessCredential


class ClipRecordSink(Protocol):
    def save_clip(self, outcome: ClipOutcome) -> None:
        """Append an outcome. Implementations must never update earlier rows."""


class CredentialStore(Protocol):
    def get_token(self, broadcaster_id: str) -> Optional[AccessCredential]:
        ...

    def upsert_token(self, credential: AccessCredential) -> None:
        ...


__all__ = ["ClipRecordSink", "CredentialStore"]
