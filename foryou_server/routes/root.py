"""Root and health endpoints."""

from fastapi import APIRouter, Depends

from foryou import __version__ as algorithm_version

from ..state import AppState, get_state

router = APIRouter()


@router.get("/")
def root(state: AppState = Depends(get_state)):
    config = state.orchestrator.config
    return {
        "name": "For You Feed API",
        "version": algorithm_version,
        "data_source": type(state.data_source).__name__,
        "model": type(state.orchestrator.model).__name__,
        "timeline_limit": config.mixing.timeline_limit,
        "endpoints": {
            "feed": ["/api/users/{user_id}/timeline", "/api/users/{user_id}/notifications"],
            "stats": ["/api/stats"],
            "health": ["/api/health"],
        },
    }


@router.get("/api/health")
def health(state: AppState = Depends(get_state)):
    return {
        "status": "healthy",
        "model": type(state.orchestrator.model).__name__,
        "partial_failure_policy": state.orchestrator.config.candidate_source.partial_failure_policy,
    }
