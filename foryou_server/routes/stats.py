"""Stats endpoint."""

from typing import Optional

from fastapi import APIRouter, Depends

from ..state import AppState, get_state

router = APIRouter()


def _mean(values) -> float:
    values = list(values)
    return sum(values) / len(values) if values else 0.0


@router.get("/stats")
def get_stats(pipeline: Optional[str] = None, state: AppState = Depends(get_state)):
    """Aggregates over the most recent pipeline runs."""
    recent = state.metrics.recent(pipeline)
    return {
        "runs": len(recent),
        "degraded_runs": sum(1 for m in recent if m.degraded),
        "avg_duration_seconds": _mean(m.duration_seconds for m in recent),
        "avg_returned": _mean(m.returned_count for m in recent),
        "avg_cache_hit_rate": _mean(m.cache_hit_rate for m in recent),
        "avg_error_rate": _mean(m.error_rate for m in recent),
        "last": recent[-1].model_dump(mode="json") if recent else None,
    }
