"""
Aggregation and rendering output models.

These structures describe what the aggregation pipeline hands to a rendering
collaborator: the universe of group keys, per-metric point series, the
colour map and the axis maxima. Nothing here knows how the data is drawn.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional, Tuple

# Filter sentinel meaning "no filter on this dimension".
ALL_FILTER = "(All)"


class GroupBy(Enum):
    """Dimension delta rows are grouped by."""
    DATABASE = "Database"
    DRIVE = "Drive"
    FILE = "File"

    @classmethod
    def parse(cls, value: str) -> "GroupBy":
        """Look up a member by its value, case-insensitively."""
        for member in cls:
            if member.value.lower() == str(value).lower():
                return member
        raise ValueError(f"Unknown grouping dimension: {value}")


@dataclass(frozen=True)
class MetricSpec:
    """One of the six charted metrics."""

    name: str
    title: str
    precision: int


# Order matters: it is the panel order of every rendering.
METRICS: Tuple[MetricSpec, ...] = (
    MetricSpec("read_latency_ms", "Avg Read Latency (ms)", 2),
    MetricSpec("write_latency_ms", "Avg Write Latency (ms)", 2),
    MetricSpec("read_iops", "Read IOPS", 1),
    MetricSpec("write_iops", "Write IOPS", 1),
    MetricSpec("read_mbps", "Read Throughput (MB/s)", 2),
    MetricSpec("write_mbps", "Write Throughput (MB/s)", 2),
)

METRIC_NAMES: Tuple[str, ...] = tuple(m.name for m in METRICS)


@dataclass(frozen=True)
class GroupInfo:
    """Display attributes of a group, taken from the first row seen for it."""

    database_name: str
    type_desc: str
    file_id: int
    drive: str
    path: str


Point = Tuple[float, float]


@dataclass
class SeriesOutput:
    """
    Result of one aggregation rebuild.

    Attributes:
        group_by: Dimension used for grouping.
        universe: Every group key seen in any retained capture that passed
            the filters, sorted by key, with its display attributes.
        series: ``series[metric][key]`` is the ordered list of
            ``(seconds_since_first_capture, value)`` points. Hidden keys
            are absent.
        colors: Hex colour per group key (hidden keys included so a legend
            can still show them).
        y_max: Largest value per metric across visible groups.
        x_max: Largest x value across all retained captures.
        origin: Timestamp of the first retained capture.
        database_files: Database name to the sorted group keys that belong
            to it, used for per-database legend sections.
    """

    group_by: GroupBy
    universe: Dict[str, GroupInfo] = field(default_factory=dict)
    series: Dict[str, Dict[str, List[Point]]] = field(default_factory=dict)
    colors: Dict[str, str] = field(default_factory=dict)
    y_max: Dict[str, float] = field(default_factory=dict)
    x_max: float = 0.0
    origin: Optional[datetime] = None
    database_files: Dict[str, List[str]] = field(default_factory=dict)

    @property
    def is_empty(self) -> bool:
        return not self.universe

    @property
    def keys(self) -> List[str]:
        return list(self.universe)

    def y_axis_max(self, metric: str) -> float:
        """Upper bound for a metric axis with 15% headroom, 1 when flat."""
        peak = self.y_max.get(metric, 0.0)
        return peak * 1.15 if peak > 0 else 1.0

    def x_axis_range(self) -> Tuple[float, float]:
        """X axis bounds padded by 5% of the span, at least 2 seconds."""
        pad = max(self.x_max * 0.05, 2.0)
        return (-pad, self.x_max + pad)
