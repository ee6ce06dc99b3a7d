"""
Grouping, filtering and series construction over capture history.

build_series() is a pure function of its inputs: the retained captures, the
grouping dimension, the two filters, the hidden keys and the colour
registry. It is re-run on every render and never touches the captures.
"""

import logging
from typing import Collection, Dict, Iterable, List, Optional, Sequence, Tuple

from ..models.delta import DeltaCapture, DeltaRow
from ..models.series import (
    ALL_FILTER,
    METRIC_NAMES,
    GroupBy,
    GroupInfo,
    SeriesOutput,
)
from .colors import ColorRegistry, assign_colors

logger = logging.getLogger(__name__)


def group_key(row: DeltaRow, group_by: GroupBy) -> str:
    """Series key of a row under the given grouping."""
    if group_by is GroupBy.DRIVE:
        return f"{row.drive}:"
    if group_by is GroupBy.FILE:
        return f"{row.database_name}:{row.file_id}"
    return row.database_name


def is_active_filter(value: Optional[str]) -> bool:
    return bool(value) and value != ALL_FILTER


def filter_rows(
    rows: Iterable[DeltaRow],
    drive_filter: Optional[str] = None,
    database_filter: Optional[str] = None,
) -> List[DeltaRow]:
    """Rows matching both filters; None, "" and "(All)" match everything."""
    result = list(rows)
    if is_active_filter(drive_filter):
        result = [row for row in result if row.drive == drive_filter]
    if is_active_filter(database_filter):
        result = [row for row in result if row.database_name == database_filter]
    return result


def aggregate_group(rows: Sequence[DeltaRow]) -> Dict[str, float]:
    """
    Combine the rows of one group within one capture.

    Rates are summed. Latency is weighted by operation count, i.e. total
    stall over total operations, rather than averaged across rows.
    """
    total_reads = sum(row.delta_reads for row in rows)
    total_writes = sum(row.delta_writes for row in rows)
    read_stall = sum(row.delta_read_stall for row in rows)
    write_stall = sum(row.delta_write_stall for row in rows)

    # Rates sum the already-rounded row values, matching the on-screen row figures.
    return {
        "read_latency_ms": round(read_stall / total_reads, 2) if total_reads > 0 else 0.0,
        "write_latency_ms": round(write_stall / total_writes, 2) if total_writes > 0 else 0.0,
        "read_iops": round(sum(row.read_iops for row in rows), 1),
        "write_iops": round(sum(row.write_iops for row in rows), 1),
        "read_mbps": round(sum(row.read_mbps for row in rows), 2),
        "write_mbps": round(sum(row.write_mbps for row in rows), 2),
    }


def collect_universe(
    captures: Sequence[DeltaCapture],
    group_by: GroupBy,
    drive_filter: Optional[str] = None,
    database_filter: Optional[str] = None,
) -> Dict[str, GroupInfo]:
    """
    Every group key present in any capture after filtering, sorted by key.

    The display attributes of a key come from the first row that produced it.
    """
    seen: Dict[str, GroupInfo] = {}
    for capture in captures:
        for row in filter_rows(capture.rows, drive_filter, database_filter):
            key = group_key(row, group_by)
            if key not in seen:
                seen[key] = GroupInfo(
                    database_name=row.database_name,
                    type_desc=row.type_desc,
                    file_id=row.file_id,
                    drive=row.drive,
                    path=row.path,
                )
    return {key: seen[key] for key in sorted(seen)}


def build_series(
    captures: Sequence[DeltaCapture],
    group_by: GroupBy,
    drive_filter: Optional[str] = None,
    database_filter: Optional[str] = None,
    hidden_keys: Collection[str] = (),
    colors: Optional[ColorRegistry] = None,
) -> SeriesOutput:
    """
    Build per-group, per-metric point series from capture history.

    Args:
        captures: Oldest-first capture history
        group_by: Dimension to group rows by
        drive_filter: Drive letter to keep, or None/""/"(All)"
        database_filter: Database name to keep, or None/""/"(All)"
        hidden_keys: Group keys to leave out of series and maxima
        colors: Colour registry; a fresh one is used when omitted

    Returns:
        SeriesOutput; empty when there are no captures or nothing matches
    """
    output = SeriesOutput(group_by=group_by)
    if not captures:
        return output

    universe = collect_universe(captures, group_by, drive_filter, database_filter)
    if not universe:
        logger.debug("No rows matched the current filters")
        return output

    registry = colors if colors is not None else ColorRegistry()
    hidden = set(hidden_keys)
    origin = captures[0].timestamp

    database_files: Dict[str, List[str]] = {}
    for key, info in universe.items():
        database_files.setdefault(info.database_name, []).append(key)

    series: Dict[str, Dict[str, List[Tuple[float, float]]]] = {name: {} for name in METRIC_NAMES}
    y_max = {name: 0.0 for name in METRIC_NAMES}
    x_max = 0.0

    for capture in captures:
        x = (capture.timestamp - origin).total_seconds()
        x_max = max(x_max, x)

        groups: Dict[str, List[DeltaRow]] = {}
        for row in filter_rows(capture.rows, drive_filter, database_filter):
            groups.setdefault(group_key(row, group_by), []).append(row)

        for key in sorted(groups):
            if key in hidden:
                continue
            values = aggregate_group(groups[key])
            for name in METRIC_NAMES:
                value = values[name]
                series[name].setdefault(key, []).append((x, value))
                if value > y_max[name]:
                    y_max[name] = value

    output.universe = universe
    output.series = series
    output.colors = assign_colors(group_by, universe, registry)
    output.y_max = y_max
    output.x_max = x_max
    output.origin = origin
    output.database_files = database_files
    logger.debug(
        f"Built {group_by.value} series: {len(universe)} group(s), "
        f"{len(hidden & set(universe))} hidden, {len(captures)} capture(s)"
    )
    return output


def filter_options(captures: Iterable[DeltaCapture]) -> Tuple[List[str], List[str]]:
    """Sorted distinct drives and database names present in the captures."""
    drives = set()
    databases = set()
    for capture in captures:
        for row in capture.rows:
            drives.add(row.drive)
            databases.add(row.database_name)
    return sorted(drives), sorted(databases)
