"""
Legend model built from series output and view toggles.

Database and Drive groupings produce one flat list of entries. File grouping
produces one section per database: a header carrying the database's base
colour, and the database's files listed under it when it is expanded.
"""

from dataclasses import dataclass, field
from pathlib import PureWindowsPath
from typing import List, Tuple

from ..models.series import GroupBy, GroupInfo, SeriesOutput
from .colors import ColorRegistry
from .view_state import ViewState

FALLBACK_COLOR = "#808080"


@dataclass(frozen=True)
class LegendItem:
    key: str
    label: str
    color: str
    hidden: bool


@dataclass(frozen=True)
class DatabaseSection:
    """Header of one database in a File-grouped legend."""

    database_name: str
    color: str
    file_keys: Tuple[str, ...]
    all_hidden: bool
    expanded: bool
    items: Tuple[LegendItem, ...] = ()

    @property
    def marker(self) -> str:
        return "▾" if self.expanded else "▸"


@dataclass
class Legend:
    group_by: GroupBy
    items: List[LegendItem] = field(default_factory=list)
    sections: List[DatabaseSection] = field(default_factory=list)


def file_label(info: GroupInfo) -> str:
    """``<file name> [<file id>]`` for a file group."""
    return f"{PureWindowsPath(info.path).name} [{info.file_id}]"


def build_legend(output: SeriesOutput, view: ViewState, registry: ColorRegistry) -> Legend:
    """
    Describe the legend for the given series output.

    Args:
        output: Result of build_series()
        view: Current hidden and expanded toggles
        registry: Colour registry used for the series, for section headers

    Returns:
        Legend with flat items, or with per-database sections for File grouping
    """
    legend = Legend(group_by=output.group_by)

    if output.group_by is not GroupBy.FILE:
        for key in sorted(output.universe):
            legend.items.append(
                LegendItem(
                    key=key,
                    label=key,
                    color=output.colors.get(key, FALLBACK_COLOR),
                    hidden=view.is_hidden(key),
                )
            )
        return legend

    for database_name in sorted(output.database_files):
        keys = tuple(sorted(output.database_files[database_name]))
        expanded = view.is_expanded(database_name)
        items: Tuple[LegendItem, ...] = ()
        if expanded:
            items = tuple(
                LegendItem(
                    key=key,
                    label=file_label(output.universe[key]),
                    color=output.colors.get(key, FALLBACK_COLOR),
                    hidden=view.is_hidden(key),
                )
                for key in keys
            )
        legend.sections.append(
            DatabaseSection(
                database_name=database_name,
                color=registry.base_color(database_name),
                file_keys=keys,
                all_hidden=all(view.is_hidden(key) for key in keys),
                expanded=expanded,
                items=items,
            )
        )
    return legend
