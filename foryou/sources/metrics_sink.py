"""
Metrics sinks: where PipelineMetrics go after each run.

LoggingMetricsSink is the default. RecentMetricsSink keeps a bounded window in
memory for the stats endpoint.
"""

import logging
import threading
from collections import deque
from typing import Deque, List, Optional, Protocol

from ..models.metrics import PipelineMetrics

logger = logging.getLogger(__name__)


class MetricsSink(Protocol):
    def emit(self, metrics: PipelineMetrics) -> None:
        ...


class LoggingMetricsSink:
    def emit(self, metrics: PipelineMetrics) -> None:
        logger.info(
            "[pipeline] METRICS pipeline=%s user=%s sourced=%d filtered=%d ranked=%d returned=%d "
            "duration=%.4fs rss=%d cpu=%.1f cache_hit_rate=%.2f error_rate=%.2f degraded=%s",
            metrics.pipeline, metrics.user_id, metrics.sourced_count, metrics.filtered_count,
            metrics.ranked_count, metrics.returned_count, metrics.duration_seconds,
            metrics.memory_rss_bytes, metrics.cpu_percent, metrics.cache_hit_rate,
            metrics.error_rate, metrics.degraded,
        )


class RecentMetricsSink:
    """Keeps the last max_entries snapshots; optionally forwards to another sink."""

    def __init__(self, max_entries: int = 200, forward_to: Optional[MetricsSink] = None):
        self._lock = threading.Lock()
        self._entries: Deque[PipelineMetrics] = deque(maxlen=max_entries)
        self.forward_to = forward_to

    def emit(self, metrics: PipelineMetrics) -> None:
        with self._lock:
            self._entries.append(metrics)
        if self.forward_to is not None:
            self.forward_to.emit(metrics)

    def recent(self, pipeline: Optional[str] = None) -> List[PipelineMetrics]:
        with self._lock:
            entries = list(self._entries)
        if pipeline is not None:
            entries = [m for m in entries if m.pipeline == pipeline]
        return entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
