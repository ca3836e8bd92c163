"""External boundaries: data source, rate-limit store, candidate cache, metrics sinks."""

from .cache import CandidateCache
from .data_source import DataSource
from .json_source import JsonDataSource
from .memory import DemoDataSource, InMemoryDataSource
from .metrics_sink import LoggingMetricsSink, MetricsSink, RecentMetricsSink
from .rate_limit import InMemoryRateLimitStore, RateLimitStore

__all__ = [
    "CandidateCache",
    "DataSource",
    "DemoDataSource",
    "InMemoryDataSource",
    "InMemoryRateLimitStore",
    "JsonDataSource",
    "LoggingMetricsSink",
    "MetricsSink",
    "RateLimitStore",
    "RecentMetricsSink",
]
