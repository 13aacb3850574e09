"""
Domain models for OAuth credential persistence.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class AccessCredential(BaseModel):
    """An access/refresh token pair issued for a single broadcaster.

    Instances are immutable; a refresh always produces a new credential that
    replaces the stored one wholesale.
    """

    model_config = ConfigDict(frozen=True)

    broadcaster_id: str = Field(..., description="Broadcaster owning the token.")
    access_token: str
    refresh_token: str
    expires_at: datetime = Field(
        ..., description="Server-reported expiry of the access token (UTC)."
    )
    scopes: str = Field("", description="Comma-joined list of granted scopes.")
    token_type: str = "bearer"

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at <= now


__all__ = ["AccessCredential"]
