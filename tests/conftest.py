"""Pytest configuration and fakes shared across the suite."""

from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone
from typing import Any

try:
    from . import _bootstrap  # noqa: F401
except Exception:  # pragma: no cover - fallback for rootdir conftest loading
    import _bootstrap  # type: ignore # noqa: F401

import pytest

from zapclip.clients.twitch import ClipLookup, CreatedClip, TokenPayload
from zapclip.models.clip import ClipOutcome
from zapclip.models.oauth import AccessCredential


class FakeTwitchClient:
    """Scripted stand-in for ``TwitchClient``.

    ``create_results`` and ``lookup_results`` are consumed in order; an
    ``Exception`` instance is raised instead of returned. Once the lookup
    script runs out every lookup reports the clip as not ready.
    """

    def __init__(self) -> None:
        self.create_results: list[Any] = ["clip-1"]
        self.lookup_results: list[Any] = []
        self.refresh_results: list[Any] = []
        self.create_calls: list[tuple[str, str]] = []
        self.lookup_calls: list[tuple[str, str]] = []
        self.refresh_calls: list[str] = []

    @property
    def total_calls(self) -> int:
        return len(self.create_calls) + len(self.lookup_calls) + len(self.refresh_calls)

    async def create_clip(self, broadcaster_id: str, *, access_token: str) -> CreatedClip:
        self.create_calls.append((broadcaster_id, access_token))
        result = self.create_results.pop(0)
        if isinstance(result, Exception):
            raise result
        return CreatedClip(clip_id=result)

    async def get_clip(self, clip_id: str, *, access_token: str) -> ClipLookup:
        self.lookup_calls.append((clip_id, access_token))
        result = self.lookup_results.pop(0) if self.lookup_results else None
        if isinstance(result, Exception):
            raise result
        return ClipLookup(clip_id=clip_id, url=result)

    async def refresh_credential(self, refresh_token: str) -> TokenPayload:
        self.refresh_calls.append(refresh_token)
        if self.refresh_results:
            result = self.refresh_results.pop(0)
            if isinstance(result, Exception):
                raise result
            return result
        count = len(self.refresh_calls)
        return TokenPayload(
            access_token=f"refreshed-access-{count}",
            refresh_token=f"refreshed-refresh-{count}",
            expires_in=3600,
            scope=["clips:edit", "user:read:email"],
            token_type="bearer",
        )


class FakeCredentialStore:
    def __init__(self) -> None:
        self.tokens: dict[str, AccessCredential] = {}
        self.upserts: list[AccessCredential] = []

    def get_token(self, broadcaster_id: str) -> AccessCredential | None:
        return self.tokens.get(broadcaster_id)

    def upsert_token(self, credential: AccessCredential) -> None:
        self.upserts.append(credential)
        self.tokens[credential.broadcaster_id] = credential


class FakeClipSink:
    def __init__(self) -> None:
        self.outcomes: list[ClipOutcome] = []

    def save_clip(self, outcome: ClipOutcome) -> None:
        self.outcomes.append(outcome)


class RecordingSleep:
    """Replacement for ``asyncio.sleep`` that only yields to the loop."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)
        await asyncio.sleep(0)


def _make_credential(
    broadcaster_id: str = "broadcaster-1",
    *,
    expires_in: timedelta = timedelta(hours=1),
    access_token: str = "stored-access",
) -> AccessCredential:
    return AccessCredential(
        broadcaster_id=broadcaster_id,
        access_token=access_token,
        refresh_token="stored-refresh",
        expires_at=datetime.now(timezone.utc) + expires_in,
        scopes="clips:edit",
        token_type="bearer",
    )


@pytest.fixture
def anyio_backend() -> str:
    """Force AnyIO-powered tests to run against asyncio backend only."""
    return "asyncio"


@pytest.fixture
def twitch() -> FakeTwitchClient:
    return FakeTwitchClient()


@pytest.fixture
def token_store() -> FakeCredentialStore:
    return FakeCredentialStore()


@pytest.fixture
def clip_sink() -> FakeClipSink:
    return FakeClipSink()


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def make_credential():
    return _make_credential
