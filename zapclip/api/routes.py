"""
FastAPI routes for requesting clips and reading clip history.
"""

from __future__ import annotations

import logging
from http import HTTPStatus
from typing import Annotated, Any

from fastapi import APIRouter, Body, Depends, HTTPException, Query
from fastapi.responses import JSONResponse

from zapclip.dependencies import (
    get_app_settings,
    get_clip_acquisition_service,
    get_record_sink,
)
from zapclip.models.clip import ClipRequest
from zapclip.schemas import ClipHistoryEntry, ClipRequestBody, ClipResponse
from zapclip.services import CooldownActiveError, CredentialNotFoundError

router = APIRouter()
logger = logging.getLogger(__name__)

DASHBOARD_REQUESTER = "dashboard"


@router.get("/health", status_code=HTTPStatus.OK)
async def healthcheck(
    settings: Annotated[Any, Depends(get_app_settings)],
) -> dict:
    """Simple health endpoint for monitoring."""
    return {"status": "ok", "environment": settings.environment}


@router.post(
    "/channels/{broadcaster_id}/clip",
    status_code=HTTPStatus.OK,
    response_model=ClipResponse,
)
async def request_clip(
    broadcaster_id: str,
    clip_service: Annotated[Any, Depends(get_clip_acquisition_service)],
    payload: ClipRequestBody | None = Body(default=None),
) -> Any:
    """Create a clip for the broadcaster and wait for its URL."""
    request = ClipRequest(
        broadcaster_id=broadcaster_id,
        requested_by=DASHBOARD_REQUESTER,
        note=payload.note if payload else None,
    )
    try:
        clip = await clip_service.request_clip(request)
    except CooldownActiveError as exc:
        return JSONResponse(
            status_code=HTTPStatus.TOO_MANY_REQUESTS,
            content={"detail": str(exc), "retry_after": exc.remaining_seconds},
            headers={"Retry-After": str(exc.remaining_seconds)},
        )
    except CredentialNotFoundError as exc:
        raise HTTPException(status_code=HTTPStatus.NOT_FOUND, detail=str(exc)) from exc
    except Exception as exc:  # recorded as a failed outcome by the service
        logger.warning("Dashboard clip request failed: %s", exc)
        raise HTTPException(status_code=HTTPStatus.BAD_GATEWAY, detail=str(exc)) from exc

    return ClipResponse(clip_id=clip.clip_id, url=clip.url)


@router.get(
    "/channels/{broadcaster_id}/clips",
    status_code=HTTPStatus.OK,
    response_model=list[ClipHistoryEntry],
)
async def list_clips(
    broadcaster_id: str,
    record_sink: Annotated[Any, Depends(get_record_sink)],
    limit: int = Query(50, ge=1, le=200, description="Maximum rows to return."),
) -> Any:
    """Return appended clip outcomes for the broadcaster, newest first."""
    return record_sink.list_clips(broadcaster_id, limit=limit)


__all__ = ["router"]
