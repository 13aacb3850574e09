"""Turn ``!clip`` chat commands into clip requests and chat replies."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from zapclip.models.clip import ClipRequest
from zapclip.services.clip_acquisition import ClipAcquisitionService, CooldownActiveError

logger = logging.getLogger(__name__)

CLIP_COMMAND = "!clip"


@dataclass(slots=True)
class ChatMessage:
    """A chat line already attributed to a channel by the chat connection."""

    broadcaster_id: str
    text: str
    display_name: str
    user_id: Optional[str] = None
    is_moderator: bool = False
    is_broadcaster: bool = False

    @property
    def privileged(self) -> bool:
        return self.is_moderator or self.is_broadcaster


def parse_clip_command(text: str) -> Optional[str]:
    """Return the note following ``!clip`` ("" when absent), or ``None`` for other text."""
    stripped = (text or "").strip()
    if not stripped:
        return None
    command, *rest = stripped.split()
    if command.lower() != CLIP_COMMAND:
        return None
    return " ".join(rest)


class ClipCommandHandler:
    """Answer ``!clip`` from moderators and the broadcaster; ignore everything else."""

    def __init__(self, acquisition_service: ClipAcquisitionService) -> None:
        self._clips = acquisition_service

    async def handle(self, message: ChatMessage) -> Optional[str]:
        note = parse_clip_command(message.text)
        if note is None or not message.privileged:
            return None

        request = ClipRequest(
            broadcaster_id=message.broadcaster_id,
            requested_by=message.display_name or "unknown",
            requested_by_id=message.user_id,
            note=note[:300] or None,
        )
        try:
            clip = await self._clips.request_clip(request)
        except CooldownActiveError as exc:
            return f"Clip is on cooldown. Try again in {exc.remaining_seconds}s."
        except Exception as exc:  # failure already recorded by the service
            logger.info(
                "Clip command failed",
                extra={"broadcaster_id": message.broadcaster_id},
            )
            return f"Clip failed: {exc}"
        return f"Clip ready: {clip.url}"


__all__ = ["CLIP_COMMAND", "ChatMessage", "ClipCommandHandler", "parse_clip_command"]
