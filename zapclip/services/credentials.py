"""
Helpers for retrieving and refreshing broadcaster OAuth tokens.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, List, Tuple

from zapclip.clients.twitch import TokenPayload, TwitchClient, UpstreamError
from zapclip.models.oauth import AccessCredential
from zapclip.services.errors import ClipAcquisitionError
from zapclip.services.sinks import CredentialStore

logger = logging.getLogger(__name__)


class CredentialNotFoundError(ClipAcquisitionError):
    """Raised when no persisted token is available for a broadcaster."""

    def __init__(self, broadcaster_id: str) -> None:
        super().__init__(f"No tokens found for broadcaster {broadcaster_id}")
        self.broadcaster_id = broadcaster_id


class TokenRefreshError(ClipAcquisitionError):
    """Raised when Twitch rejects a refresh grant."""

    def __init__(self, status: int, body: str) -> None:
        super().__init__(f"Refresh token failed {status}: {body}")
        self.status = status
        self.body = body


def _flatten_scopes(scope: str | List[str]) -> str:
    if isinstance(scope, str):
        return scope
    return ",".join(scope)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CredentialManager:
    """Hands out usable access tokens, refreshing and persisting them on expiry.

    Credentials are read from the store on every call and never cached here.
    """

    def __init__(
        self,
        store: CredentialStore,
        twitch_client: TwitchClient,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._store = store
        self._twitch = twitch_client
        self._clock = clock

    async def ensure(self, broadcaster_id: str) -> AccessCredential:
        """Return a non-expired credential for the broadcaster."""
        credential, _ = await self.ensure_fresh(broadcaster_id)
        return credential

    async def ensure_fresh(self, broadcaster_id: str) -> Tuple[AccessCredential, bool]:
        """Like ``ensure``, also reporting whether a refresh was performed."""
        stored = self._store.get_token(broadcaster_id)
        if stored is None:
            raise CredentialNotFoundError(broadcaster_id)

        if stored.is_expired(self._clock()):
            return await self.refresh_and_store(stored), True
        return stored, False

    async def refresh_and_store(self, current: AccessCredential) -> AccessCredential:
        """Refresh ``current`` upstream and persist the replacement credential."""
        refreshed_at = self._clock()
        try:
            payload = await self._twitch.refresh_credential(current.refresh_token)
        except UpstreamError as exc:
            logger.warning(
                "Token refresh rejected",
                extra={"broadcaster_id": current.broadcaster_id, "status": exc.status},
            )
            raise TokenRefreshError(exc.status, exc.body) from exc

        replacement = self._build_credential(current.broadcaster_id, payload, refreshed_at)
        self._store.upsert_token(replacement)
        logger.info(
            "Refreshed access token",
            extra={
                "broadcaster_id": current.broadcaster_id,
                "expires_at": replacement.expires_at.isoformat(),
            },
        )
        return replacement

    @staticmethod
    def _build_credential(
        broadcaster_id: str, payload: TokenPayload, refreshed_at: datetime
    ) -> AccessCredential:
        return AccessCredential(
            broadcaster_id=broadcaster_id,
            access_token=payload.access_token,
            refresh_token=payload.refresh_token,
            expires_at=refreshed_at + timedelta(seconds=payload.expires_in),
            scopes=_flatten_scopes(payload.scope),
            token_type=payload.token_type,
        )


__all__ = ["CredentialManager", "CredentialNotFoundError", "TokenRefreshError"]
