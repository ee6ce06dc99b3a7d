"""
Reading config.toml from disk.

Relative paths in the `[monitor.storage]` table are resolved against the
directory holding the config file, so a capture started from any working
directory writes its sessions to the same place.
"""

import logging
import tomllib
from pathlib import Path
from typing import Any, Dict

from ..validation import handle_config_error, ErrorSeverity

logger = logging.getLogger(__name__)

PATH_KEYS = ("session_dir",)


def load_toml_file(file_path: Path, description: str = "configuration file") -> Dict[str, Any]:
    """
    Parse a TOML file into a dictionary.

    Raises:
        FileNotFoundError: If the file does not exist
        tomllib.TOMLDecodeError: If the file is not valid TOML
    """
    file_path = Path(file_path)
    if not file_path.is_file():
        logger.error(f"{description} not found: {file_path}")
        raise FileNotFoundError(f"{description} not found: {file_path}")

    logger.debug(f"Reading {description}: {file_path}")
    try:
        return tomllib.loads(file_path.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as e:
        handle_config_error(
            e,
            f"parsing {file_path.name}",
            severity=ErrorSeverity.CRITICAL,
            logger=logger,
        )
        raise


def _resolve_storage_paths(config_data: Dict[str, Any], base_dir: Path) -> None:
    storage = config_data.get("monitor", {}).get("storage")
    if not isinstance(storage, dict):
        return
    for key in PATH_KEYS:
        value = storage.get(key)
        if isinstance(value, str) and not Path(value).is_absolute():
            storage[key] = str(base_dir / value)


def load_main_config(config_path: Path) -> Dict[str, Any]:
    """Load config.toml with storage paths made absolute."""
    config_path = Path(config_path)
    config_data = load_toml_file(config_path, "main configuration file")
    if isinstance(config_data.get("monitor"), dict):
        _resolve_storage_paths(config_data, config_path.resolve().parent)
    logger.info(f"Loaded configuration from {config_path}")
    return config_data
