"""
Domain models describing clip requests and their recorded outcomes.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class ClipStatus(str, Enum):
    PENDING = "pending"
    OK = "ok"
    FAILED = "failed"


class ClipRequest(BaseModel):
    """Who asked for a clip, on which channel, and why."""

    broadcaster_id: str = Field(..., min_length=1)
    requested_by: str = Field(..., description="Display name or surface that asked.")
    requested_by_id: Optional[str] = None
    note: Optional[str] = Field(None, max_length=300)


class ClipOutcome(BaseModel):
    """A single appended record of how a clip request turned out.

    Terminal outcomes are derived from the pending one with ``model_copy`` so
    every emission is an independent value; sinks append, never update.
    """

    model_config = ConfigDict(frozen=True)

    broadcaster_id: str
    clip_id: Optional[str] = None
    url: Optional[str] = None
    requested_by: str
    requested_by_id: Optional[str] = None
    note: Optional[str] = None
    status: ClipStatus = ClipStatus.PENDING
    error: Optional[str] = None

    @classmethod
    def pending(cls, request: ClipRequest) -> "ClipOutcome":
        return cls(
            broadcaster_id=request.broadcaster_id,
            requested_by=request.requested_by,
            requested_by_id=request.requested_by_id,
            note=request.note,
        )

    def succeeded(self, *, clip_id: str, url: str) -> "ClipOutcome":
        return self.model_copy(
            update={"clip_id": clip_id, "url": url, "status": ClipStatus.OK, "error": None}
        )

    def failed(self, *, error: str, clip_id: Optional[str] = None) -> "ClipOutcome":
        return self.model_copy(
            update={"clip_id": clip_id, "status": ClipStatus.FAILED, "error": error}
        )


class ClipResult(BaseModel):
    """Returned to the caller once a clip has a playable URL."""

    clip_id: str
    url: str


__all__ = ["ClipOutcome", "ClipRequest", "ClipResult", "ClipStatus"]
