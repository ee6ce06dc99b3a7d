"""
Aggregation and presentation logic over capture history.

This module groups and filters delta rows into chart series, assigns stable
colours to groups, and models the legend and its display toggles. Nothing
here draws anything.
"""

from .aggregation import (
    aggregate_group,
    build_series,
    collect_universe,
    filter_options,
    filter_rows,
    group_key,
)
from .colors import PALETTE, ColorRegistry, assign_colors, hex_to_hsl, hsl_to_hex, shade
from .legend import DatabaseSection, Legend, LegendItem, build_legend, file_label
from .view_state import ViewState

__all__ = [
    "aggregate_group",
    "build_series",
    "collect_universe",
    "filter_options",
    "filter_rows",
    "group_key",
    "PALETTE",
    "ColorRegistry",
    "assign_colors",
    "hex_to_hsl",
    "hsl_to_hex",
    "shade",
    "DatabaseSection",
    "Legend",
    "LegendItem",
    "build_legend",
    "file_label",
    "ViewState",
]
