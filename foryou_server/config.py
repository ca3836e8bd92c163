"""
Server Configuration

Loads configuration from environment variables and provides defaults.
Supports loading from .env file using python-dotenv.
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

# Single .env at the project root
_root_env = Path(__file__).resolve().parent.parent / ".env"
if _root_env.exists():
    load_dotenv(_root_env)

DATA_SOURCES = ("demo", "json")


@dataclass
class ServerConfig:
    """Server configuration."""

    # Server settings
    host: str = "0.0.0.0"
    port: int = 8000
    log_level: str = "INFO"

    # Data source: "demo" (seeded synthetic data) | "json" (DATA_JSON_PATH)
    data_source: str = "demo"
    data_json_path: Optional[Path] = None
    demo_seed: int = 7

    # Optional algorithm config JSON and model weights JSON
    algorithm_config_path: Optional[Path] = None
    model_weights_path: Optional[Path] = None

    # Recent pipeline runs kept for /api/stats
    stats_window: int = 200

    @classmethod
    def from_env(cls) -> "ServerConfig":
        """Load configuration from environment variables."""
        base_dir = Path(__file__).parent.parent
        data_source = os.getenv("DATA_SOURCE", "").strip().lower() or "demo"

        def _path_env(key: str) -> Optional[Path]:
            v = os.getenv(key)
            if not v:
                return None
            p = Path(v)
            return p if p.is_absolute() else (base_dir / p).resolve()

        return cls(
            host=os.getenv("HOST", "0.0.0.0"),
            port=int(os.getenv("PORT", "8000")),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            data_source=data_source,
            data_json_path=_path_env("DATA_JSON_PATH"),
            demo_seed=int(os.getenv("DEMO_SEED", "7")),
            algorithm_config_path=_path_env("ALGORITHM_CONFIG_PATH"),
            model_weights_path=_path_env("MODEL_WEIGHTS_PATH"),
            stats_window=int(os.getenv("STATS_WINDOW", "200")),
        )

    def validate(self) -> tuple[bool, list[str]]:
        """
        Validate the configuration.

        Returns:
            (is_valid, list_of_errors)
        """
        errors = []

        if self.data_source not in DATA_SOURCES:
            errors.append(f"DATA_SOURCE must be one of {DATA_SOURCES}, got {self.data_source!r}")
        if self.data_source == "json":
            if self.data_json_path is None:
                errors.append("DATA_JSON_PATH is required when DATA_SOURCE=json")
            elif not self.data_json_path.is_file():
                errors.append(f"Data file not found: {self.data_json_path}")
        if self.algorithm_config_path is not None and not self.algorithm_config_path.is_file():
            errors.append(f"Algorithm config not found: {self.algorithm_config_path}")
        if self.model_weights_path is not None and not self.model_weights_path.is_file():
            errors.append(f"Model weights not found: {self.model_weights_path}")
        if not 0 < self.port < 65536:
            errors.append(f"PORT out of range: {self.port}")

        return len(errors) == 0, errors


# Global config instance
_config: Optional[ServerConfig] = None


def get_config() -> ServerConfig:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = ServerConfig.from_env()
    return _config


def reload_config() -> ServerConfig:
    """Reload configuration from environment."""
    global _config
    _config = None
    return get_config()
