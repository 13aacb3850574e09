"""
Pydantic models for the clip HTTP endpoints.
"""

from typing import Optional

from pydantic import BaseModel, Field

from zapclip.models.clip import ClipStatus


class ClipRequestBody(BaseModel):
    """Optional note attached to a dashboard clip request."""

    note: Optional[str] = Field(
        None,
        max_length=300,
        description="Free-form text stored alongside the clip outcome.",
    )


class ClipResponse(BaseModel):
    """Returned once the clip has a playable URL."""

    clip_id: str = Field(..., description="Twitch clip identifier.")
    url: str = Field(..., description="Public clip URL.")


class ClipHistoryEntry(BaseModel):
    """One appended outcome row; a clip may appear as failed and later as ok."""

    id: int
    broadcaster_id: str
    clip_id: Optional[str] = None
    url: Optional[str] = None
    requested_by: str
    requested_by_id: Optional[str] = None
    note: Optional[str] = None
    status: ClipStatus
    error: Optional[str] = None
    created_at: str


__all__ = ["ClipHistoryEntry", "ClipRequestBody", "ClipResponse"]
