"""Timeline and notification endpoints."""

import logging
import re

from fastapi import APIRouter, Depends, HTTPException

from foryou import PipelineError, SourceUnavailable

from ..state import AppState, get_state

logger = logging.getLogger(__name__)

router = APIRouter()

_USER_ID = re.compile(r"^[A-Za-z0-9_.\-]{1,64}$")


def _check_user_id(user_id: str) -> None:
    if not _USER_ID.match(user_id):
        raise HTTPException(status_code=400, detail=f"Invalid user id: {user_id!r}")


def _http_error(e: Exception) -> HTTPException:
    if isinstance(e, SourceUnavailable):
        return HTTPException(status_code=503, detail=f"Source unavailable: {e}")
    return HTTPException(status_code=500, detail=f"Pipeline failed at {getattr(e, 'stage', 'unknown')}: {e}")


@router.get("/{user_id}/timeline")
async def get_timeline(user_id: str, state: AppState = Depends(get_state)):
    _check_user_id(user_id)
    try:
        timeline, metrics = await state.orchestrator.generate_timeline_with_metrics(user_id)
    except (SourceUnavailable, PipelineError) as e:
        logger.warning("[feed] timeline user=%s failed: %s", user_id, e)
        raise _http_error(e) from e
    return {
        "timeline": timeline.model_dump(mode="json"),
        "metrics": metrics.model_dump(mode="json"),
    }


@router.get("/{user_id}/notifications")
async def get_notifications(user_id: str, state: AppState = Depends(get_state)):
    _check_user_id(user_id)
    try:
        notifications, metrics = await state.orchestrator.generate_notifications_with_metrics(user_id)
    except (SourceUnavailable, PipelineError) as e:
        logger.warning("[feed] notifications user=%s failed: %s", user_id, e)
        raise _http_error(e) from e
    return {
        "user_id": user_id,
        "notifications": [n.model_dump(mode="json") for n in notifications],
        "metrics": metrics.model_dump(mode="json"),
    }
