"""Application state: data source, orchestrator and recent metrics."""

import logging
from typing import Optional

from foryou import (
    DemoDataSource,
    InMemoryRateLimitStore,
    JsonDataSource,
    JsonWeightsLoader,
    LoggingMetricsSink,
    RecentMetricsSink,
    RecommendationOrchestrator,
    load_config,
)
from foryou.models import AlgorithmConfig
from foryou.sources import DataSource

from .config import ServerConfig, get_config

logger = logging.getLogger(__name__)


class AppState:
    """Global application state. Built once; the orchestrator is immutable after that."""

    def __init__(self, config: ServerConfig, data_source: Optional[DataSource] = None):
        ok, errors = config.validate()
        if not ok:
            raise ValueError("Invalid server configuration: " + "; ".join(errors))
        self.config = config

        self.data_source = data_source or self._create_data_source(config)
        logger.info("[startup] Data source: %s", type(self.data_source).__name__)

        algorithm_config = (
            load_config(config.algorithm_config_path)
            if config.algorithm_config_path
            else AlgorithmConfig()
        )
        weights_loader = (
            JsonWeightsLoader(config.model_weights_path) if config.model_weights_path else None
        )
        logger.info(
            "[startup] Algorithm config: %s, model weights: %s",
            config.algorithm_config_path or "defaults",
            config.model_weights_path or "cold start",
        )

        self.metrics = RecentMetricsSink(config.stats_window, forward_to=LoggingMetricsSink())
        self.rate_limit_store = InMemoryRateLimitStore()
        self.orchestrator = RecommendationOrchestrator(
            self.data_source,
            algorithm_config,
            weights_loader=weights_loader,
            rate_limit_store=self.rate_limit_store,
            metrics_sink=self.metrics,
        )

    @staticmethod
    def _create_data_source(config: ServerConfig) -> DataSource:
        if config.data_source == "json":
            return JsonDataSource(config.data_json_path)
        return DemoDataSource(seed=config.demo_seed)


_state: Optional[AppState] = None


def get_state() -> AppState:
    global _state
    if _state is None:
        config = get_config()
        _state = AppState(config)
    return _state


def reset_state() -> None:
    """Drop the global state; the next get_state() rebuilds it from config."""
    global _state
    _state = None
