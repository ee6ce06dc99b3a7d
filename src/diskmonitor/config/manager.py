"""
Process-wide access to the validated configuration.

The configuration is read from disk on first use and cached. The CLI points
the cache at another file with --config; tests do the same through
set_config_path().
"""

import logging
from pathlib import Path
from typing import Optional

from ..models.config import AppConfig
from ..validation import handle_config_error, ErrorSeverity
from .loader import load_main_config
from .validators import validate_app_sections, validate_monitor_config

logger = logging.getLogger(__name__)

_CONFIG: Optional[AppConfig] = None

# <repo>/conf/config.toml
_CONFIG_FILE_PATH = Path(__file__).parent.parent.parent.parent / "conf" / "config.toml"


def set_config_path(config_path: Path) -> None:
    """Use ``config_path`` from now on; the cached configuration is dropped."""
    global _CONFIG_FILE_PATH, _CONFIG
    _CONFIG_FILE_PATH = Path(config_path)
    _CONFIG = None
    logger.info(f"Configuration path set to: {config_path}")


def clear_config_cache() -> None:
    global _CONFIG
    _CONFIG = None
    logger.debug("Configuration cache cleared")


def _load_config(config_path: Path) -> AppConfig:
    """
    Read and validate config.toml.

    Raises:
        FileNotFoundError: If the configuration file is missing
        ValidationError: If a value is out of range or of the wrong type
        tomllib.TOMLDecodeError: If the file is not valid TOML
    """
    try:
        monitor = validate_monitor_config(validate_app_sections(load_main_config(config_path)))
    except FileNotFoundError as e:
        handle_config_error(e, "loading configuration file", severity=ErrorSeverity.CRITICAL, logger=logger)
        raise
    except Exception as e:
        handle_config_error(e, f"processing {config_path}", logger=logger)
        raise

    logger.info(
        f"Configuration ready: capture every {monitor.interval_seconds}s, keep "
        f"{monitor.max_captures} captures, group by {monitor.default_group_by}"
    )
    return AppConfig(monitor=monitor)


def get_config() -> AppConfig:
    """Return the cached AppConfig, loading it on first call."""
    global _CONFIG
    if _CONFIG is None:
        _CONFIG = _load_config(_CONFIG_FILE_PATH)
    return _CONFIG


def is_config_loaded() -> bool:
    return _CONFIG is not None


def get_config_info() -> dict:
    """Summary of the configuration state, for status output."""
    monitor = _CONFIG.monitor if _CONFIG else None
    return {
        "config_loaded": monitor is not None,
        "config_path": str(_CONFIG_FILE_PATH),
        "interval_seconds": monitor.interval_seconds if monitor else None,
        "max_captures": monitor.max_captures if monitor else None,
        "session_dir": str(monitor.storage.session_dir) if monitor else None,
    }
