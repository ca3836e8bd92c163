"""
Pipeline metrics: one write-once snapshot per pipeline run.

The core only produces these records; emitting them (logs, dashboards) is the
job of the MetricsSink handed to the orchestrator.
"""

from datetime import datetime
from typing import List

import psutil
from pydantic import BaseModel, ConfigDict, Field

from .post import utc_now


class ResourceSnapshot(BaseModel):
    model_config = ConfigDict(frozen=True)

    memory_rss_bytes: int = 0
    cpu_percent: float = 0.0


def take_resource_snapshot() -> ResourceSnapshot:
    """RSS and CPU percent of the current process (CPU since the previous call)."""
    proc = psutil.Process()
    return ResourceSnapshot(
        memory_rss_bytes=proc.memory_info().rss,
        cpu_percent=proc.cpu_percent(interval=None),
    )


class PipelineMetrics(BaseModel):
    """Counts at each pipeline boundary plus timing and health for one run."""

    model_config = ConfigDict(frozen=True)

    pipeline: str
    user_id: str
    sourced_count: int = 0
    filtered_count: int = 0
    ranked_count: int = 0
    returned_count: int = 0
    duration_seconds: float = 0.0
    memory_rss_bytes: int = 0
    cpu_percent: float = 0.0
    cache_hit_rate: float = Field(default=0.0, ge=0.0, le=1.0)
    error_rate: float = Field(default=0.0, ge=0.0, le=1.0)
    degraded: bool = False
    failed_origins: List[str] = Field(default_factory=list)
    timestamp: datetime = Field(default_factory=utc_now)
