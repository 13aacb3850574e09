"""
Twitch Helix client covering clip creation, clip lookup and token refresh.

Each call issues exactly one HTTP request. Failures are classified into
``UpstreamError`` and returned to the caller untouched; deciding whether a
401 warrants a token refresh is the caller's job.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import httpx
from pydantic import BaseModel, Field

from zapclip.core.config import TwitchSettings


class UpstreamError(Exception):
    """Raised when Twitch answers with a non-2xx status."""

    def __init__(self, status: int, body: str) -> None:
        super().__init__(f"Twitch request failed {status}: {body}")
        self.status = status
        self.body = body

    @property
    def is_unauthorized(self) -> bool:
        return self.status == httpx.codes.UNAUTHORIZED


class UpstreamResponseError(UpstreamError):
    """Raised when a successful response is missing data we rely on.

    Reported as a bad gateway so callers handling ``UpstreamError`` see it too.
    """

    def __init__(self, message: str) -> None:
        super().__init__(httpx.codes.BAD_GATEWAY, message)
        self.args = (message,)


class _HelixEnvelope(BaseModel):
    data: List[Dict[str, Any]]


class CreatedClip(BaseModel):
    clip_id: str


class ClipLookup(BaseModel):
    """Clip state as reported by Helix; ``url`` stays empty until it is ready."""

    clip_id: Optional[str] = None
    url: Optional[str] = None

    @property
    def ready(self) -> bool:
        return bool(self.url)


class TokenPayload(BaseModel):
    """Body returned by the OAuth token endpoint for a refresh grant."""

    access_token: str
    refresh_token: str
    expires_in: int
    scope: str | List[str] = Field(default_factory=list)
    token_type: str


class TwitchClient:
    """Thin async wrapper over the Helix clips endpoints and the token endpoint."""

    def __init__(
        self,
        settings: TwitchSettings,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._settings = settings
        self._api_base = str(settings.api_base_url).rstrip("/")
        self._token_url = str(settings.token_url)
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=self._settings.http_timeout_seconds,
            transport=self._transport,
        )

    def _headers(self, access_token: str) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {access_token}",
            "Client-Id": self._settings.client_id,
        }

    @staticmethod
    def _raise_for_status(response: httpx.Response) -> None:
        if not response.is_success:
            raise UpstreamError(response.status_code, response.text)

    async def create_clip(self, broadcaster_id: str, *, access_token: str) -> CreatedClip:
        """Ask Twitch to start capturing a clip and return its id."""
        async with self._client() as client:
            response = await client.post(
                f"{self._api_base}/clips",
                params={"broadcaster_id": broadcaster_id},
                headers=self._headers(access_token),
            )
        self._raise_for_status(response)

        envelope = _HelixEnvelope.model_validate(response.json())
        clip_id = envelope.data[0].get("id") if envelope.data else None
        if not clip_id:
            raise UpstreamResponseError("Clip ID missing from Twitch response")
        return CreatedClip(clip_id=clip_id)

    async def get_clip(self, clip_id: str, *, access_token: str) -> ClipLookup:
        """Look up a clip; an absent URL means Twitch is still processing it."""
        async with self._client() as client:
            response = await client.get(
                f"{self._api_base}/clips",
                params={"id": clip_id},
                headers=self._headers(access_token),
            )
        self._raise_for_status(response)

        envelope = _HelixEnvelope.model_validate(response.json())
        if not envelope.data:
            return ClipLookup(clip_id=clip_id)
        clip = envelope.data[0]
        return ClipLookup(clip_id=clip.get("id", clip_id), url=clip.get("url") or None)

    async def refresh_credential(self, refresh_token: str) -> TokenPayload:
        """Exchange a refresh token for a new token pair."""
        payload = {
            "grant_type": "refresh_token",
            "refresh_token": refresh_token,
            "client_id": self._settings.client_id,
            "client_secret": self._settings.client_secret,
        }
        async with self._client() as client:
            response = await client.post(self._token_url, data=payload)
        self._raise_for_status(response)

        return TokenPayload.model_validate(response.json())


__all__ = [
    "ClipLookup",
    "CreatedClip",
    "TokenPayload",
    "TwitchClient",
    "UpstreamError",
    "UpstreamResponseError",
]
