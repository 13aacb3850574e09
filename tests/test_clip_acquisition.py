from __future__ import annotations

from datetime import timedelta

import httpx
import pytest

from zapclip.clients.twitch import UpstreamError, UpstreamResponseError
from zapclip.core.config import ClipSettings
from zapclip.models.clip import ClipRequest, ClipStatus
from zapclip.services.clip_acquisition import (
    ClipAcquisitionService,
    ClipPollTimeoutError,
    CooldownActiveError,
)
from zapclip.services.cooldown import CooldownGate
from zapclip.services.credentials import (
    CredentialManager,
    CredentialNotFoundError,
    TokenRefreshError,
)

BROADCASTER = "broadcaster-x"


def _clip_settings(**overrides) -> ClipSettings:
    values = {
        "CLIP_COOLDOWN_SECONDS": 30,
        "CLIP_POLL_ATTEMPTS": 12,
        "CLIP_POLL_DELAY_SECONDS": 2.5,
        "CLIP_EXTENDED_POLL_ATTEMPTS": 10,
        "CLIP_EXTENDED_POLL_DELAY_SECONDS": 15,
    }
    values.update(overrides)
    return ClipSettings(**values)


@pytest.fixture
def build_service(twitch, token_store, clip_sink, recording_sleep):
    def _build(**overrides) -> ClipAcquisitionService:
        return ClipAcquisitionService(
            twitch_client=twitch,
            credential_manager=CredentialManager(store=token_store, twitch_client=twitch),
            clip_sink=clip_sink,
            cooldown_gate=CooldownGate(),
            settings=_clip_settings(**overrides),
            sleep=recording_sleep,
        )

    return _build


def _request(note: str | None = None) -> ClipRequest:
    return ClipRequest(
        broadcaster_id=BROADCASTER,
        requested_by="modname",
        requested_by_id="user-7",
        note=note,
    )


@pytest.mark.asyncio
async def test_successful_clip_then_cooldown_rejects_second_request(
    build_service, twitch, token_store, clip_sink, recording_sleep, make_credential
) -> None:
    token_store.tokens[BROADCASTER] = make_credential(BROADCASTER)
    twitch.create_results = ["abc123"]
    twitch.lookup_results = [None, None, "https://clips.example/abc123"]
    service = build_service()

    result = await service.request_clip(_request(note="big play"))

    assert result.clip_id == "abc123"
    assert result.url == "https://clips.example/abc123"
    assert len(twitch.lookup_calls) == 3
    assert recording_sleep.delays == [2.5, 2.5]

    assert len(clip_sink.outcomes) == 1
    outcome = clip_sink.outcomes[0]
    assert outcome.status is ClipStatus.OK
    assert outcome.clip_id == "abc123"
    assert outcome.url == "https://clips.example/abc123"
    assert outcome.requested_by == "modname"
    assert outcome.requested_by_id == "user-7"
    assert outcome.note == "big play"
    assert outcome.error is None

    calls_before = twitch.total_calls
    with pytest.raises(CooldownActiveError) as exc_info:
        await service.request_clip(_request())

    assert exc_info.value.remaining_seconds > 0
    assert twitch.total_calls == calls_before
    assert len(clip_sink.outcomes) == 1
    assert service.background_tasks == set()


@pytest.mark.asyncio
async def test_cooldown_override_window(build_service, twitch, token_store, make_credential) -> None:
    token_store.tokens[BROADCASTER] = make_credential(BROADCASTER)
    twitch.create_results = ["a", "b"]
    twitch.lookup_results = ["https://clips.example/a", "https://clips.example/b"]
    service = build_service()

    await service.request_clip(_request(), cooldown_seconds=0)
    result = await service.request_clip(_request(), cooldown_seconds=0)

    assert result.clip_id == "b"


@pytest.mark.asyncio
async def test_missing_credential_records_failure_without_upstream_calls(
    build_service, twitch, clip_sink
) -> None:
    service = build_service()

    with pytest.raises(CredentialNotFoundError):
        await service.request_clip(_request())

    assert twitch.total_calls == 0
    assert len(clip_sink.outcomes) == 1
    outcome = clip_sink.outcomes[0]
    assert outcome.status is ClipStatus.FAILED
    assert outcome.clip_id is None
    assert outcome.error == f"No tokens found for broadcaster {BROADCASTER}"


@pytest.mark.asyncio
async def test_single_unauthorized_triggers_one_refresh_and_retry(
    build_service, twitch, token_store, clip_sink, make_credential
) -> None:
    token_store.tokens[BROADCASTER] = make_credential(BROADCASTER)
    twitch.create_results = [UpstreamError(401, "invalid token"), "clip-after-refresh"]
    twitch.lookup_results = ["https://clips.example/clip-after-refresh"]
    service = build_service()

    result = await service.request_clip(_request())

    assert result.clip_id == "clip-after-refresh"
    assert twitch.refresh_calls == ["stored-refresh"]
    assert [token for _, token in twitch.create_calls] == [
        "stored-access",
        "refreshed-access-1",
    ]
    assert twitch.lookup_calls == [("clip-after-refresh", "refreshed-access-1")]
    assert token_store.tokens[BROADCASTER].access_token == "refreshed-access-1"
    assert [o.status for o in clip_sink.outcomes] == [ClipStatus.OK]


@pytest.mark.asyncio
async def test_second_unauthorized_is_terminal(
    build_service, twitch, token_store, clip_sink, make_credential
) -> None:
    token_store.tokens[BROADCASTER] = make_credential(BROADCASTER)
    twitch.create_results = [UpstreamError(401, "invalid token"), UpstreamError(401, "still invalid")]
    service = build_service()

    with pytest.raises(UpstreamError) as exc_info:
        await service.request_clip(_request())

    assert exc_info.value.status == 401
    assert len(twitch.refresh_calls) == 1
    assert len(twitch.create_calls) == 2
    assert twitch.lookup_calls == []
    assert len(clip_sink.outcomes) == 1
    outcome = clip_sink.outcomes[0]
    assert outcome.status is ClipStatus.FAILED
    assert outcome.clip_id is None
    assert outcome.error == "Twitch request failed 401: still invalid"
    assert service.background_tasks == set()


@pytest.mark.asyncio
async def test_unauthorized_after_proactive_refresh_is_not_refreshed_again(
    build_service, twitch, token_store, clip_sink, make_credential
) -> None:
    token_store.tokens[BROADCASTER] = make_credential(
        BROADCASTER, expires_in=timedelta(minutes=-1)
    )
    twitch.create_results = [UpstreamError(401, "revoked")]
    service = build_service()

    with pytest.raises(UpstreamError):
        await service.request_clip(_request())

    assert len(twitch.refresh_calls) == 1
    assert len(twitch.create_calls) == 1
    assert clip_sink.outcomes[0].status is ClipStatus.FAILED


@pytest.mark.asyncio
async def test_non_unauthorized_error_is_not_retried(
    build_service, twitch, token_store, clip_sink, make_credential
) -> None:
    token_store.tokens[BROADCASTER] = make_credential(BROADCASTER)
    twitch.create_results = [UpstreamError(404, "channel offline")]
    service = build_service()

    with pytest.raises(UpstreamError):
        await service.request_clip(_request())

    assert twitch.refresh_calls == []
    assert clip_sink.outcomes[0].error == "Twitch request failed 404: channel offline"


@pytest.mark.asyncio
async def test_refresh_failure_during_retry_is_terminal(
    build_service, twitch, token_store, clip_sink, make_credential
) -> None:
    token_store.tokens[BROADCASTER] = make_credential(BROADCASTER)
    twitch.create_results = [UpstreamError(401, "invalid token")]
    twitch.refresh_results = [UpstreamError(400, "Invalid refresh token")]
    service = build_service()

    with pytest.raises(TokenRefreshError):
        await service.request_clip(_request())

    assert len(clip_sink.outcomes) == 1
    assert clip_sink.outcomes[0].status is ClipStatus.FAILED
    assert clip_sink.outcomes[0].error == "Refresh token failed 400: Invalid refresh token"


@pytest.mark.asyncio
async def test_network_error_during_polling_records_message_verbatim(
    build_service, twitch, token_store, clip_sink, make_credential
) -> None:
    token_store.tokens[BROADCASTER] = make_credential(BROADCASTER)
    twitch.create_results = ["abc123"]
    twitch.lookup_results = [None, httpx.ConnectError("connection reset by peer")]
    service = build_service()

    with pytest.raises(httpx.ConnectError):
        await service.request_clip(_request())

    outcome = clip_sink.outcomes[0]
    assert outcome.status is ClipStatus.FAILED
    assert outcome.clip_id == "abc123"
    assert outcome.error == "connection reset by peer"
    assert service.background_tasks == set()


@pytest.mark.asyncio
async def test_poll_timeout_then_background_poll_recovers_url(
    build_service, twitch, token_store, clip_sink, recording_sleep, make_credential
) -> None:
    token_store.tokens[BROADCASTER] = make_credential(BROADCASTER)
    twitch.create_results = ["xyz"]
    twitch.lookup_results = [None] * 12 + [None, None, None, "https://clips.example/xyz"]
    service = build_service()

    with pytest.raises(ClipPollTimeoutError) as exc_info:
        await service.request_clip(_request(note="late one"))

    assert exc_info.value.clip_id == "xyz"
    assert str(exc_info.value) == "Clip URL unavailable after polling"
    assert len(twitch.lookup_calls) == 12
    assert [o.status for o in clip_sink.outcomes] == [ClipStatus.FAILED]
    failed = clip_sink.outcomes[0]
    assert failed.clip_id == "xyz"
    assert failed.error == "Clip URL unavailable after polling"
    assert len(service.background_tasks) == 1

    await service.join_background()

    assert len(twitch.lookup_calls) == 16
    assert recording_sleep.delays == [2.5] * 11 + [15] * 4
    assert [o.status for o in clip_sink.outcomes] == [ClipStatus.FAILED, ClipStatus.OK]
    recovered = clip_sink.outcomes[1]
    assert recovered.clip_id == "xyz"
    assert recovered.url == "https://clips.example/xyz"
    assert recovered.note == "late one"
    assert recovered.error is None
    assert service.background_tasks == set()


@pytest.mark.asyncio
async def test_background_poll_gives_up_silently_after_budget(
    build_service, twitch, token_store, clip_sink, make_credential
) -> None:
    token_store.tokens[BROADCASTER] = make_credential(BROADCASTER)
    twitch.create_results = ["slow"]
    service = build_service(CLIP_POLL_ATTEMPTS=2, CLIP_EXTENDED_POLL_ATTEMPTS=3)

    with pytest.raises(ClipPollTimeoutError):
        await service.request_clip(_request())
    await service.join_background()

    assert len(twitch.lookup_calls) == 5
    assert [o.status for o in clip_sink.outcomes] == [ClipStatus.FAILED]


@pytest.mark.asyncio
async def test_background_poll_swallows_errors_and_reensures_credentials(
    build_service, twitch, token_store, clip_sink, make_credential
) -> None:
    token_store.tokens[BROADCASTER] = make_credential(BROADCASTER)
    twitch.create_results = ["xyz"]
    twitch.lookup_results = [
        None,
        UpstreamError(500, "boom"),
        httpx.ReadTimeout("timed out"),
        "https://clips.example/xyz",
    ]
    service = build_service(CLIP_POLL_ATTEMPTS=1, CLIP_EXTENDED_POLL_ATTEMPTS=5)

    with pytest.raises(ClipPollTimeoutError):
        await service.request_clip(_request())

    # Token expires while the background poll is waiting.
    token_store.tokens[BROADCASTER] = make_credential(
        BROADCASTER, expires_in=timedelta(seconds=-1)
    )
    await service.join_background()

    assert len(twitch.refresh_calls) == 1
    assert twitch.lookup_calls[-1] == ("xyz", "refreshed-access-1")
    assert [o.status for o in clip_sink.outcomes] == [ClipStatus.FAILED, ClipStatus.OK]


@pytest.mark.asyncio
async def test_background_poll_disabled_when_budget_is_zero(
    build_service, twitch, token_store, make_credential
) -> None:
    token_store.tokens[BROADCASTER] = make_credential(BROADCASTER)
    twitch.create_results = ["xyz"]
    service = build_service(CLIP_POLL_ATTEMPTS=1, CLIP_EXTENDED_POLL_ATTEMPTS=0)

    with pytest.raises(ClipPollTimeoutError):
        await service.request_clip(_request())

    assert service.background_tasks == set()


@pytest.mark.asyncio
async def test_malformed_create_response_is_terminal_without_refresh(
    build_service, twitch, token_store, clip_sink, make_credential
) -> None:
    token_store.tokens[BROADCASTER] = make_credential(BROADCASTER)
    twitch.create_results = [UpstreamResponseError("Clip ID missing from Twitch response")]
    service = build_service()

    with pytest.raises(UpstreamError):
        await service.request_clip(_request())

    assert twitch.refresh_calls == []
    assert twitch.lookup_calls == []
    assert len(clip_sink.outcomes) == 1
    assert clip_sink.outcomes[0].status is ClipStatus.FAILED
    assert clip_sink.outcomes[0].error == "Clip ID missing from Twitch response"
    assert clip_sink.outcomes[0].clip_id is None
