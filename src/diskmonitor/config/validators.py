"""
Configuration validation utilities.

Turns the raw `[monitor]` table of `config.toml` into a validated
MonitorConfig.
"""

import logging
from typing import Any, Dict

from ..models.config import MonitorConfig
from ..models.series import GroupBy
from ..validation import (
    ValidationError,
    validate_enum_choice,
    validate_interval_seconds,
    validate_positive_float,
    validate_positive_integer,
    validate_with_handler,
)
from .storage_config import StorageConfig

logger = logging.getLogger(__name__)

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


def validate_monitor_config(monitor_data: Dict[str, Any]) -> MonitorConfig:
    """
    Validate and create a MonitorConfig from raw configuration data.

    Missing sections and keys fall back to the MonitorConfig defaults.

    Args:
        monitor_data: Raw `[monitor]` table from TOML

    Returns:
        Validated MonitorConfig instance

    Raises:
        ValidationError: If validation fails
    """
    general_settings = monitor_data.get("general", {})
    collection_settings = monitor_data.get("collection", {})
    storage_settings = monitor_data.get("storage", {})

    log_level = validate_enum_choice(
        general_settings.get("log_level", "INFO"),
        valid_choices=LOG_LEVELS,
        field_name="monitor.general.log_level",
        case_sensitive=False,
    )

    default_group_by = validate_enum_choice(
        general_settings.get("default_group_by", GroupBy.DATABASE.value),
        valid_choices=[g.value for g in GroupBy],
        field_name="monitor.general.default_group_by",
        case_sensitive=False,
    )

    interval_seconds = validate_interval_seconds(
        collection_settings.get("interval_seconds", 60),
        field_name="monitor.collection.interval_seconds",
    )

    query_timeout_seconds = validate_positive_float(
        collection_settings.get("query_timeout_seconds", 15.0),
        min_value=0.1,
        max_value=600.0,
        field_name="monitor.collection.query_timeout_seconds",
    )

    max_captures = validate_positive_integer(
        collection_settings.get("max_captures", 360),
        min_value=1,
        max_value=100_000,
        field_name="monitor.collection.max_captures",
    )

    storage = validate_with_handler(
        StorageConfig.from_dict,
        storage_settings,
        field_name="monitor.storage",
        context="storage configuration",
        logger=logger,
    )

    if query_timeout_seconds > interval_seconds:
        logger.warning(
            f"query_timeout_seconds ({query_timeout_seconds}s) exceeds the capture "
            f"interval ({interval_seconds}s); slow ticks will delay the next one"
        )

    config = MonitorConfig(
        log_level=log_level,
        default_group_by=default_group_by,
        interval_seconds=interval_seconds,
        query_timeout_seconds=query_timeout_seconds,
        max_captures=max_captures,
        storage=storage,
    )
    logger.debug(f"Validated monitor configuration: {config}")
    return config


def validate_app_sections(config_data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Return the `[monitor]` table, rejecting a non-table value.

    Raises:
        ValidationError: If `monitor` is present but not a table
    """
    monitor_data = config_data.get("monitor", {})
    if not isinstance(monitor_data, dict):
        raise ValidationError(
            "[monitor] must be a table",
            field_name="monitor",
            value=monitor_data,
        )
    return monitor_data
