"""
Renders series output as an interactive chart page.

This module is the rendering collaborator of the monitor: it takes the
SeriesOutput built by the aggregation pipeline and draws it with Plotly, one
panel per metric in a 3x2 grid, one filled area trace per group. It makes
no grouping or colour decisions of its own.

The main functionalities include:
- Building a Plotly figure from SeriesOutput, honouring its colours and
  axis bounds. Hidden groups stay in the legend but draw nothing.
- Saving figures as interactive HTML files and, if Kaleido is installed, as
  static PNG images.
"""

import logging
from datetime import datetime, timedelta
from pathlib import Path
from typing import Optional

# Third-party library imports
import plotly.graph_objects as go
from plotly.colors import hex_to_rgb
from plotly.subplots import make_subplots

from .analysis.legend import file_label
from .models.series import METRICS, GroupBy, SeriesOutput

logger = logging.getLogger(__name__)

# --- Module Constants ---

BACKGROUND_COLOR = "#0d1117"
GRID_COLOR = "#1c2333"
AXIS_LINE_COLOR = "#30363d"
TEXT_COLOR = "#8b949e"
TITLE_COLOR = "#c9d1d9"
FILL_ALPHA = 50 / 255

PNG_WIDTH = 1400
PNG_HEIGHT = 900


def _fill_color(color: str, alpha: float = FILL_ALPHA) -> str:
    r, g, b = hex_to_rgb(color)
    return f"rgba({r},{g},{b},{alpha:.3f})"


def _trace_name(output: SeriesOutput, key: str) -> str:
    if output.group_by is GroupBy.FILE:
        return f"{output.universe[key].database_name}: {file_label(output.universe[key])}"
    return key


def _empty_figure(title: str) -> go.Figure:
    fig = make_subplots(rows=3, cols=2, subplot_titles=[m.title for m in METRICS])
    fig.add_annotation(
        text="No data",
        xref="paper", yref="paper", x=0.5, y=0.5,
        showarrow=False, font={"size": 16, "color": TEXT_COLOR},
    )
    _apply_theme(fig, title)
    return fig


def _apply_theme(fig: go.Figure, title: str) -> None:
    fig.update_layout(
        title={"text": title, "font": {"color": TITLE_COLOR}},
        paper_bgcolor=BACKGROUND_COLOR,
        plot_bgcolor=BACKGROUND_COLOR,
        font={"color": TEXT_COLOR, "size": 10},
        hovermode="x unified",
        legend={"orientation": "h", "y": -0.08},
        margin={"l": 48, "r": 10, "t": 60, "b": 40},
    )
    fig.update_xaxes(gridcolor=GRID_COLOR, linecolor=AXIS_LINE_COLOR, tickformat="%H:%M:%S")
    fig.update_yaxes(gridcolor=GRID_COLOR, linecolor=AXIS_LINE_COLOR, rangemode="tozero")
    fig.update_annotations(font={"color": TITLE_COLOR, "size": 11})


def build_figure(output: SeriesOutput, title: str = "") -> go.Figure:
    """
    Build the six-panel figure for one series output.

    Args:
        output: Result of build_series()
        title: Figure title

    Returns:
        Plotly figure; a placeholder with empty panels when there is no data
    """
    if output.is_empty or output.origin is None:
        return _empty_figure(title)

    origin = output.origin
    fig = make_subplots(
        rows=3, cols=2,
        subplot_titles=[m.title for m in METRICS],
        vertical_spacing=0.08, horizontal_spacing=0.06,
    )

    x_low, x_high = output.x_axis_range()
    x_range = [origin + timedelta(seconds=x_low), origin + timedelta(seconds=x_high)]

    for index, metric in enumerate(METRICS):
        row, col = index // 2 + 1, index % 2 + 1
        metric_series = output.series.get(metric.name, {})
        for key in sorted(output.universe):
            color = output.colors.get(key, "#808080")
            points = metric_series.get(key, [])
            hidden = key not in metric_series
            fig.add_trace(
                go.Scatter(
                    x=[origin + timedelta(seconds=x) for x, _ in points],
                    y=[y for _, y in points],
                    name=_trace_name(output, key),
                    legendgroup=key,
                    showlegend=index == 0,
                    visible="legendonly" if hidden else True,
                    mode="lines+markers",
                    line={"color": color, "width": 2},
                    marker={"size": 5, "color": color},
                    fill="tozeroy",
                    fillcolor=_fill_color(color),
                    hovertemplate=f"{key}<br>%{{x|%H:%M:%S}}<br>{metric.title}: %{{y:.{metric.precision}f}}<extra></extra>",
                ),
                row=row, col=col,
            )
        fig.update_xaxes(range=x_range, row=row, col=col)
        fig.update_yaxes(range=[0, output.y_axis_max(metric.name)], row=row, col=col)

    _apply_theme(fig, title)
    return fig


def save_figure(fig: go.Figure, base_filename: str, output_dir: Path, write_png: bool = True) -> Optional[Path]:
    """
    Saves a Plotly figure to HTML and, if possible, PNG.

    Args:
        fig: The Plotly figure object to save.
        base_filename: The base name for the output files (without extension).
        output_dir: The directory to save the files in.
        write_png: Also attempt a static PNG export.

    Returns:
        Path of the HTML file, or None if it could not be written.
    """
    output_dir.mkdir(parents=True, exist_ok=True)
    plot_filename_html = output_dir / f"{base_filename}.html"
    try:
        fig.write_html(plot_filename_html)
        logger.info(f"Interactive chart saved to: {plot_filename_html}")
    except Exception as e:
        logger.error(f"Failed to save chart {plot_filename_html} using Plotly: {e}", exc_info=True)
        return None

    if write_png:
        try:
            plot_filename_png = output_dir / f"{base_filename}.png"
            fig.write_image(plot_filename_png, width=PNG_WIDTH, height=PNG_HEIGHT)
            logger.info(f"Static chart saved to: {plot_filename_png}")
        except Exception as e_kaleido:
            # Non-critical; the HTML page is already written.
            logger.warning(
                f"Failed to save static chart to PNG (Kaleido might be missing or misconfigured): {e_kaleido}. "
                f"To enable PNG export, install Kaleido: `pip install diskmonitor[export]`"
            )
    return plot_filename_html


def default_chart_basename(now: Optional[datetime] = None) -> str:
    return f"DiskMonitorChart_{(now or datetime.now()):%Y%m%d_%H%M%S}"


def plot_series(
    output: SeriesOutput,
    output_dir: Path,
    base_filename: Optional[str] = None,
    title: str = "",
    write_png: bool = True,
) -> Optional[Path]:
    """Build and save the chart for one series output. Returns the HTML path."""
    if output.is_empty:
        logger.warning("No data to plot for the current filters; writing an empty chart")
    fig = build_figure(output, title=title)
    return save_figure(fig, base_filename or default_chart_basename(), output_dir, write_png=write_png)
