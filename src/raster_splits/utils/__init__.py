"""
Utilities

Configuration loading and logging setup shared by the planner, the Spark
helpers and the command line.
"""

from .config import (
    Config,
    StorageConfig,
    TileConfig,
    SparkConfig,
    MonitoringConfig,
    DEFAULT_BLOCK_SIZE_BYTES
)
from .logging_config import configure_logging

__all__ = [
    "Config",
    "StorageConfig",
    "TileConfig",
    "SparkConfig",
    "MonitoringConfig",
    "DEFAULT_BLOCK_SIZE_BYTES",
    "configure_logging"
]
