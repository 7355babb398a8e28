"""
Configuration Management

Sectioned configuration for split planning: storage block sizing, tile
layout, Spark session settings and monitoring backends. Values come from
dataclass defaults, an optional YAML file and ``RASTER_SPLITS_*``
environment variables, in that order of precedence (environment wins).
"""

import os
from dataclasses import dataclass, field, fields, asdict
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml


ENV_PREFIX = "RASTER_SPLITS_"

# HDFS default block size
DEFAULT_BLOCK_SIZE_BYTES = 64 * 1024 * 1024


@dataclass
class StorageConfig:
    """Target storage block sizing."""
    block_size_bytes: int = DEFAULT_BLOCK_SIZE_BYTES


@dataclass
class TileConfig:
    """Tile layout used to estimate uncompressed tile size."""
    tile_cols: int = 256
    tile_rows: int = 256
    cell_type: str = "float32"


@dataclass
class SparkConfig:
    """Spark session settings for the partitioning helpers."""
    app_name: str = "RasterSplitPlanner"
    master: str = "local[*]"
    executor_memory: str = "4g"
    driver_memory: str = "2g"
    shuffle_partitions: int = 200
    log_level: str = "WARN"


@dataclass
class MonitoringConfig:
    """Metrics backends."""
    enable_prometheus: bool = True
    prometheus_gateway: Optional[str] = None
    namespace: str = "raster_splits"


@dataclass
class Config:
    """Top-level configuration object."""
    environment: str = "development"
    log_level: str = "INFO"
    storage: StorageConfig = field(default_factory=StorageConfig)
    tiles: TileConfig = field(default_factory=TileConfig)
    spark: SparkConfig = field(default_factory=SparkConfig)
    monitoring: MonitoringConfig = field(default_factory=MonitoringConfig)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Config":
        """Build a configuration from a nested dictionary."""
        config = cls()
        for key, value in (data or {}).items():
            if key not in _field_names(cls):
                raise ValueError(f"Unknown configuration key: {key}")
            current = getattr(config, key)
            if _is_section(current):
                if not isinstance(value, dict):
                    raise ValueError(f"Configuration section '{key}' must be a mapping")
                _update_section(current, key, value)
            else:
                setattr(config, key, value)
        return config

    @classmethod
    def from_yaml(cls, path: Union[str, Path]) -> "Config":
        """Load configuration from a YAML file, then apply env overrides."""
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {path}")

        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

        if not isinstance(data, dict):
            raise ValueError(f"Configuration file {path} must contain a mapping")

        return cls.from_dict(data).apply_env_overrides()

    @classmethod
    def from_env(cls) -> "Config":
        """Defaults overridden by environment variables."""
        return cls().apply_env_overrides()

    def apply_env_overrides(self, environ: Optional[Dict[str, str]] = None) -> "Config":
        """
        Override values from environment variables.

        Top-level keys map to ``RASTER_SPLITS_<KEY>`` and section keys to
        ``RASTER_SPLITS_<SECTION>__<KEY>``, e.g.
        ``RASTER_SPLITS_STORAGE__BLOCK_SIZE_BYTES=134217728``.
        """
        environ = os.environ if environ is None else environ

        for f in fields(self):
            current = getattr(self, f.name)
            if _is_section(current):
                for sf in fields(current):
                    env_key = f"{ENV_PREFIX}{f.name.upper()}__{sf.name.upper()}"
                    if env_key in environ:
                        setattr(current, sf.name, _coerce(environ[env_key], getattr(current, sf.name)))
            else:
                env_key = f"{ENV_PREFIX}{f.name.upper()}"
                if env_key in environ:
                    setattr(self, f.name, _coerce(environ[env_key], current))

        return self

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _field_names(obj: Any) -> set:
    return {f.name for f in fields(obj)}


def _is_section(value: Any) -> bool:
    return isinstance(value, (StorageConfig, TileConfig, SparkConfig, MonitoringConfig))


def _update_section(section: Any, section_name: str, values: Dict[str, Any]) -> None:
    known = _field_names(section)
    for key, value in values.items():
        if key not in known:
            raise ValueError(f"Unknown configuration key: {section_name}.{key}")
        setattr(section, key, value)


def _coerce(raw: str, current: Any) -> Any:
    """Convert an environment string to the type of the current value."""
    if isinstance(current, bool):
        return raw.strip().lower() in ("1", "true", "yes", "on")
    if isinstance(current, int):
        return int(raw)
    if isinstance(current, float):
        return float(raw)
    if current is None and raw.strip() == "":
        return None
    return raw
