"""
Input validation functions.

Small, composable validators used by the configuration layer and the CLI.
Each returns the normalized value or raises ValidationError.
"""

from datetime import datetime
from typing import Any, Optional, Sequence

from .exceptions import ValidationError

# Capture intervals offered by the monitor, in seconds.
INTERVAL_STEPS = (1, 5, 10, 30, 60, 120, 180, 240, 300)

# Format used for user-entered time range bounds and CSV timestamps.
TIME_BOUND_FORMAT = "%Y-%m-%d %H:%M:%S"


def validate_positive_integer(
    value: Any,
    min_value: int = 1,
    max_value: Optional[int] = None,
    field_name: str = "value"
) -> int:
    """
    Validate that a value is an integer within bounds.

    Args:
        value: Value to validate
        min_value: Minimum allowed value (inclusive)
        max_value: Maximum allowed value (inclusive), None for no limit
        field_name: Name of the field being validated

    Returns:
        Validated integer value

    Raises:
        ValidationError: If validation fails
    """
    if isinstance(value, bool):
        raise ValidationError(
            f"{field_name} must be a valid integer, got {value}",
            field_name=field_name,
            value=value
        )
    try:
        int_value = int(value)
    except (ValueError, TypeError):
        raise ValidationError(
            f"{field_name} must be a valid integer, got {value}",
            field_name=field_name,
            value=value
        )
    if int_value < min_value:
        raise ValidationError(
            f"{field_name} must be >= {min_value}, got {int_value}",
            field_name=field_name,
            value=value
        )
    if max_value is not None and int_value > max_value:
        raise ValidationError(
            f"{field_name} must be <= {max_value}, got {int_value}",
            field_name=field_name,
            value=value
        )
    return int_value


def validate_positive_float(
    value: Any,
    min_value: float = 0.0,
    max_value: Optional[float] = None,
    field_name: str = "value"
) -> float:
    """
    Validate that a value is a number within bounds.

    Args:
        value: Value to validate
        min_value: Minimum allowed value (inclusive)
        max_value: Maximum allowed value (inclusive), None for no limit
        field_name: Name of the field being validated

    Returns:
        Validated float value

    Raises:
        ValidationError: If validation fails
    """
    try:
        float_value = float(value)
    except (ValueError, TypeError):
        raise ValidationError(
            f"{field_name} must be a valid number, got {value}",
            field_name=field_name,
            value=value
        )
    if float_value < min_value:
        raise ValidationError(
            f"{field_name} must be >= {min_value}, got {float_value}",
            field_name=field_name,
            value=value
        )
    if max_value is not None and float_value > max_value:
        raise ValidationError(
            f"{field_name} must be <= {max_value}, got {float_value}",
            field_name=field_name,
            value=value
        )
    return float_value


def validate_enum_choice(
    value: Any,
    valid_choices: Sequence[str],
    field_name: str = "value",
    case_sensitive: bool = True
) -> str:
    """
    Validate that a value is one of the allowed choices.

    Args:
        value: Value to validate
        valid_choices: Allowed values
        field_name: Name of the field being validated
        case_sensitive: Whether comparison is case sensitive

    Returns:
        The matching choice, spelled as in ``valid_choices``

    Raises:
        ValidationError: If value is not a valid choice
    """
    if not isinstance(value, str):
        raise ValidationError(
            f"{field_name} must be a string, got {type(value).__name__}",
            field_name=field_name,
            value=value
        )
    for choice in valid_choices:
        if value == choice or (not case_sensitive and value.lower() == choice.lower()):
            return choice
    raise ValidationError(
        f"{field_name} must be one of {list(valid_choices)}, got '{value}'",
        field_name=field_name,
        value=value
    )


def validate_interval_seconds(value: Any, field_name: str = "interval_seconds") -> int:
    """Validate a capture interval against the supported interval steps."""
    seconds = validate_positive_integer(value, min_value=1, field_name=field_name)
    if seconds not in INTERVAL_STEPS:
        raise ValidationError(
            f"{field_name} must be one of {list(INTERVAL_STEPS)}, got {seconds}",
            field_name=field_name,
            value=value
        )
    return seconds


def interval_label(seconds: int) -> str:
    """Human readable label for an interval step ("5s", "2 min")."""
    if seconds < 60:
        return f"{seconds}s"
    return f"{seconds // 60} min"


def validate_time_bound(
    value: Optional[str],
    field_name: str = "time bound"
) -> Optional[datetime]:
    """
    Parse an optional ``YYYY-MM-DD HH:MM:SS`` time range bound.

    Blank or missing values mean an open bound and yield None.

    Raises:
        ValidationError: If the value is present but not in the expected format
    """
    if value is None or not value.strip():
        return None
    try:
        return datetime.strptime(value.strip(), TIME_BOUND_FORMAT)
    except ValueError:
        raise ValidationError(
            f"{field_name} must use the format YYYY-MM-DD HH:MM:SS, got '{value}'",
            field_name=field_name,
            value=value
        )
