"""
Configuration data models.

This module contains the configuration structures loaded from `config.toml`.
"""

from dataclasses import dataclass, field

from ..config.storage_config import StorageConfig


@dataclass
class MonitorConfig:
    """
    Configuration for the monitor's global behavior, loaded from `config.toml`.
    """

    # [monitor.general]
    log_level: str = "INFO"
    default_group_by: str = "Database"

    # [monitor.collection]
    interval_seconds: int = 60
    # Upper bound on a single counter fetch; a slower fetch abandons the tick.
    query_timeout_seconds: float = 15.0
    # Retention cap of the capture history.
    max_captures: int = 360

    # [monitor.storage]
    storage: StorageConfig = field(default_factory=StorageConfig)


@dataclass
class AppConfig:
    """
    The root configuration object that aggregates all loaded settings.
    """

    monitor: MonitorConfig
