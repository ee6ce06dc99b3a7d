"""
Factory for creating counter sources from a ``module:attribute`` reference.

The CLI has no built-in transport; the user points it at a Python object
that either is a counter source, builds one, or returns rows when called.
"""

import importlib
import logging
from typing import Any

from ..validation import ValidationError
from .base import AbstractCounterSource, CallableCounterSource

logger = logging.getLogger(__name__)


def _resolve(reference: str) -> Any:
    module_name, sep, attr_path = reference.partition(":")
    if not sep or not module_name or not attr_path:
        raise ValidationError(
            f"Source reference must look like 'package.module:attribute', got '{reference}'",
            field_name="source",
            value=reference,
        )
    try:
        target: Any = importlib.import_module(module_name)
    except ImportError as e:
        raise ValidationError(
            f"Cannot import source module '{module_name}': {e}",
            field_name="source",
            value=reference,
        )
    for attr in attr_path.split("."):
        try:
            target = getattr(target, attr)
        except AttributeError:
            raise ValidationError(
                f"Module '{module_name}' has no attribute '{attr_path}'",
                field_name="source",
                value=reference,
            )
    return target


def create_source(reference: str, server: str = "") -> AbstractCounterSource:
    """
    Build a counter source from a ``module:attribute`` reference.

    The attribute may be:
    - an AbstractCounterSource instance, used as is,
    - an AbstractCounterSource subclass, instantiated without arguments,
    - any other callable, wrapped in CallableCounterSource and called on
      every tick for the current rows.

    Raises:
        ValidationError: If the reference cannot be resolved or is not usable
    """
    target = _resolve(reference)

    if isinstance(target, AbstractCounterSource):
        source = target
    elif isinstance(target, type) and issubclass(target, AbstractCounterSource):
        source = target()
    elif callable(target):
        source = CallableCounterSource(target, server=server)
    else:
        raise ValidationError(
            f"Source '{reference}' is neither a counter source nor callable",
            field_name="source",
            value=reference,
        )

    logger.debug(f"Created counter source {source.__class__.__name__} from '{reference}'")
    return source
