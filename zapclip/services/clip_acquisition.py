"""
End-to-end clip acquisition: cooldown gate, token upkeep, creation and polling.

Twitch creates clips asynchronously. ``create_clip`` returns an id straight
away while the playable URL shows up some seconds later, so the service polls
for it in the foreground and, when that budget runs out, hands the clip id to
a detached background task that keeps looking for a while longer.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, Set, Tuple

from zapclip.clients.twitch import TwitchClient, UpstreamError
from zapclip.core.config import ClipSettings
from zapclip.models.clip import ClipOutcome, ClipRequest, ClipResult
from zapclip.models.oauth import AccessCredential
from zapclip.services.cooldown import CooldownGate
from zapclip.services.credentials import CredentialManager
from zapclip.services.errors import ClipAcquisitionError
from zapclip.services.sinks import ClipRecordSink

logger = logging.getLogger(__name__)

Sleeper = Callable[[float], Awaitable[None]]


class CooldownActiveError(ClipAcquisitionError):
    """The broadcaster asked for a clip too recently."""

    def __init__(self, broadcaster_id: str, remaining_seconds: int) -> None:
        super().__init__(
            f"Clip is on cooldown for broadcaster {broadcaster_id}; "
            f"try again in {remaining_seconds}s"
        )
        self.broadcaster_id = broadcaster_id
        self.remaining_seconds = remaining_seconds


class ClipPollTimeoutError(ClipAcquisitionError):
    """Twitch never produced a URL within the foreground polling budget."""

    def __init__(self, clip_id: str) -> None:
        super().__init__("Clip URL unavailable after polling")
        self.clip_id = clip_id


@dataclass(frozen=True)
class PollPolicy:
    attempts: int
    delay_seconds: float


class ClipAcquisitionService:
    """Compose the cooldown gate, credential manager and Twitch client."""

    def __init__(
        self,
        *,
        twitch_client: TwitchClient,
        credential_manager: CredentialManager,
        clip_sink: ClipRecordSink,
        cooldown_gate: CooldownGate,
        settings: ClipSettings,
        sleep: Sleeper = asyncio.sleep,
    ) -> None:
        self._twitch = twitch_client
        self._credentials = credential_manager
        self._sink = clip_sink
        self._gate = cooldown_gate
        self._cooldown_seconds = settings.cooldown_seconds
        self._foreground = PollPolicy(settings.poll_attempts, settings.poll_delay_seconds)
        self._extended = PollPolicy(
            settings.extended_poll_attempts, settings.extended_poll_delay_seconds
        )
        self._sleep = sleep
        self._background_tasks: Set[asyncio.Task[None]] = set()

    @property
    def background_tasks(self) -> Set[asyncio.Task[None]]:
        """Extended polls still in flight."""
        return set(self._background_tasks)

    async def join_background(self) -> None:
        """Wait for every in-flight extended poll to finish on its own."""
        while self._background_tasks:
            await asyncio.gather(*list(self._background_tasks))

    async def request_clip(
        self, request: ClipRequest, *, cooldown_seconds: Optional[int] = None
    ) -> ClipResult:
        """Create a clip and wait for its URL.

        Raises ``CooldownActiveError`` without touching Twitch or the sink when
        the broadcaster is still cooling down. Every other failure is appended
        to the sink as a ``failed`` outcome and then re-raised.
        """
        broadcaster_id = request.broadcaster_id
        window = self._cooldown_seconds if cooldown_seconds is None else cooldown_seconds
        if not self._gate.try_acquire(broadcaster_id, window):
            raise CooldownActiveError(broadcaster_id, self._gate.remaining(broadcaster_id))

        pending = ClipOutcome.pending(request)
        clip_id: Optional[str] = None
        try:
            credential, refreshed = await self._credentials.ensure_fresh(broadcaster_id)
            clip_id, credential = await self._create_clip(
                credential, broadcaster_id, refreshed=refreshed
            )
            logger.info(
                "Clip created, waiting for URL",
                extra={"broadcaster_id": broadcaster_id, "clip_id": clip_id},
            )
            url = await self._poll_foreground(clip_id, credential)
            if url is None:
                raise ClipPollTimeoutError(clip_id)
        except Exception as exc:
            self._sink.save_clip(pending.failed(error=str(exc), clip_id=clip_id))
            logger.warning(
                "Clip request failed: %s",
                exc,
                extra={"broadcaster_id": broadcaster_id, "clip_id": clip_id},
            )
            if isinstance(exc, ClipPollTimeoutError):
                self._spawn_extended_poll(pending, exc.clip_id)
            raise

        self._sink.save_clip(pending.succeeded(clip_id=clip_id, url=url))
        logger.info(
            "Clip ready",
            extra={"broadcaster_id": broadcaster_id, "clip_id": clip_id},
        )
        return ClipResult(clip_id=clip_id, url=url)

    async def _create_clip(
        self,
        credential: AccessCredential,
        broadcaster_id: str,
        *,
        refreshed: bool,
    ) -> Tuple[str, AccessCredential]:
        """Create the clip, refreshing the token once if Twitch answers 401."""
        try:
            created = await self._twitch.create_clip(
                broadcaster_id, access_token=credential.access_token
            )
        except UpstreamError as exc:
            if not exc.is_unauthorized or refreshed:
                raise
            logger.info(
                "Clip creation unauthorized, refreshing token and retrying",
                extra={"broadcaster_id": broadcaster_id},
            )
            credential = await self._credentials.refresh_and_store(credential)
            return await self._create_clip(credential, broadcaster_id, refreshed=True)
        return created.clip_id, credential

    async def _poll_foreground(
        self, clip_id: str, credential: AccessCredential
    ) -> Optional[str]:
        policy = self._foreground
        for attempt in range(1, policy.attempts + 1):
            lookup = await self._twitch.get_clip(
                clip_id, access_token=credential.access_token
            )
            if lookup.ready:
                return lookup.url
            if attempt < policy.attempts:
                await self._sleep(policy.delay_seconds)
        return None

    def _spawn_extended_poll(self, pending: ClipOutcome, clip_id: str) -> None:
        if self._extended.attempts <= 0:
            return
        task = asyncio.create_task(
            self._poll_extended(pending, clip_id),
            name=f"clip-extended-poll-{clip_id}",
        )
        self._background_tasks.add(task)
        task.add_done_callback(self._background_tasks.discard)
        logger.info(
            "Scheduled extended poll",
            extra={"broadcaster_id": pending.broadcaster_id, "clip_id": clip_id},
        )

    async def _poll_extended(self, pending: ClipOutcome, clip_id: str) -> None:
        """Keep looking for the URL after the caller already got its failure."""
        policy = self._extended
        broadcaster_id = pending.broadcaster_id
        for attempt in range(1, policy.attempts + 1):
            await self._sleep(policy.delay_seconds)
            try:
                credential = await self._credentials.ensure(broadcaster_id)
                lookup = await self._twitch.get_clip(
                    clip_id, access_token=credential.access_token
                )
                if lookup.ready:
                    self._sink.save_clip(pending.succeeded(clip_id=clip_id, url=lookup.url))
                    logger.info(
                        "Extended poll recovered clip URL",
                        extra={
                            "broadcaster_id": broadcaster_id,
                            "clip_id": clip_id,
                            "attempt": attempt,
                        },
                    )
                    return
            except Exception:
                logger.warning(
                    "Extended poll attempt failed",
                    exc_info=True,
                    extra={
                        "broadcaster_id": broadcaster_id,
                        "clip_id": clip_id,
                        "attempt": attempt,
                    },
                )

        logger.info(
            "Extended poll gave up",
            extra={"broadcaster_id": broadcaster_id, "clip_id": clip_id},
        )


__all__ = [
    "ClipAcquisitionError",
    "ClipAcquisitionService",
    "ClipPollTimeoutError",
    "CooldownActiveError",
    "PollPolicy",
]
