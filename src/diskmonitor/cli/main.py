"""
Command-line interface for the disk monitor.

This module provides the main CLI entry point, with one subcommand per
workflow:
- capture: sample a counter source on a timer, then save the session and
  optionally export and chart it
- replay: chart a saved session, optionally time-filtered, grouped and
  filtered by drive or database
- export: write a saved session as CSV or Parquet
- diagnose: compare two readings taken a moment apart and report which
  files saw physical I/O
"""

import argparse
import asyncio
import logging
import signal
import sys
from pathlib import Path
from typing import List, Optional

from ..collectors import create_source
from ..config import get_config, set_config_path
from ..models import AppConfig, EmptyResult, MonitorConfig
from ..monitoring import TickResult, TickStatus, run_diagnostic, write_report
from ..plotter import plot_series
from ..validation import (
    INTERVAL_STEPS,
    MalformedSessionError,
    TransportError,
    ValidationError,
    handle_cli_error,
    validate_interval_seconds,
    validate_time_bound,
)
from ..workspace import MonitorWorkspace

# --- Logging Setup ---
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)-5.5s] %(name)s:%(filename)s:%(lineno)d\t %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
    stream=sys.stdout,
)
logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="diskmonitor",
        description="Capture, replay and export per-database-file I/O metrics.",
    )
    parser.add_argument("--config", type=Path, help="Path to config.toml (defaults to conf/config.toml).")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    capture = subparsers.add_parser("capture", help="Sample a counter source until stopped.")
    capture.add_argument(
        "--source", required=True,
        help="Counter source as 'package.module:attribute' (a source, source class or callable).",
    )
    capture.add_argument("--server", default="", help="Server name recorded in the session.")
    capture.add_argument(
        "--interval", type=int,
        help=f"Seconds between captures, one of {list(INTERVAL_STEPS)}. Defaults to config.",
    )
    capture.add_argument("--ticks", type=int, help="Stop after this many ticks (default: until Ctrl+C).")
    capture.add_argument("--output", type=Path, help="Session file or directory (default: storage.session_dir).")
    capture.add_argument("--export", type=Path, help="Also export the captures to this file or directory.")
    capture.add_argument("--plot-dir", type=Path, help="Also write a chart page to this directory.")
    capture.add_argument("--group-by", help="Grouping for --plot-dir: Database, Drive or File.")
    capture.add_argument("--no-png", action="store_true", help="Skip the static PNG export for --plot-dir.")

    replay = subparsers.add_parser("replay", help="Chart a saved session.")
    _add_session_arguments(replay)
    replay.add_argument("--group-by", help="Database, Drive or File (default: config).")
    replay.add_argument("--drive", help="Only include files on this drive.")
    replay.add_argument("--database", help="Only include files of this database.")
    replay.add_argument("--hide", action="append", default=[], help="Group key to hide; may be repeated.")
    replay.add_argument("--output-dir", type=Path, help="Directory for the chart (default: storage.session_dir).")
    replay.add_argument("--no-png", action="store_true", help="Skip the static PNG export.")

    export = subparsers.add_parser("export", help="Export a saved session as CSV or Parquet.")
    _add_session_arguments(export)
    export.add_argument("--format", choices=["csv", "parquet"], help="Export format (default: from --output suffix, else config).")
    export.add_argument("--output", type=Path, help="Target file or directory (default: storage.session_dir).")

    diagnose = subparsers.add_parser("diagnose", help="Report which files see physical I/O.")
    diagnose.add_argument("--source", required=True, help="Counter source as 'package.module:attribute'.")
    diagnose.add_argument("--server", default="", help="Server name shown in the report.")
    diagnose.add_argument("--output", type=Path, help="Report file or directory (default: storage.session_dir).")

    return parser


def _add_session_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("session", type=Path, help="Session JSON file.")
    parser.add_argument("--from", dest="time_from", help="Keep captures at or after 'YYYY-MM-DD HH:MM:SS'.")
    parser.add_argument("--to", dest="time_to", help="Keep captures at or before 'YYYY-MM-DD HH:MM:SS'.")


def _load_app_config(config_path: Optional[Path]) -> AppConfig:
    if config_path is not None:
        set_config_path(config_path)
        return get_config()
    try:
        return get_config()
    except FileNotFoundError:
        logger.warning("No configuration file found, using built-in defaults")
        return AppConfig(monitor=MonitorConfig())


def _export_format(target: Path, requested: Optional[str], default: str) -> str:
    """Explicit format, else the target's suffix when it names one, else the configured default."""
    if requested:
        return requested
    suffix = target.suffix.lower().lstrip(".")
    return suffix if suffix in ("csv", "parquet") else default


def _log_tick(result: TickResult) -> None:
    if result.status is TickStatus.CAPTURED:
        logger.info(
            f"Captures: {result.capture_count} | Active: {result.active_files}/{result.total_files} | "
            f"ΔR:{result.delta_reads} ΔW:{result.delta_writes}"
        )
    elif result.ok:
        logger.info(result.message)
    else:
        logger.warning(result.message)


def _load_workspace(args: argparse.Namespace, config: MonitorConfig) -> Optional[MonitorWorkspace]:
    """Load the session named on the command line; None if the time filter matched nothing."""
    start = validate_time_bound(args.time_from, field_name="--from")
    end = validate_time_bound(args.time_to, field_name="--to")
    workspace = MonitorWorkspace.from_config(config)
    result = workspace.load_session(args.session, start=start, end=end)
    if isinstance(result, EmptyResult):
        logger.warning(f"{result.reason} ({result.total_captures} capture(s) in file)")
        return None
    logger.info(workspace.range_label())
    return workspace


async def _capture_until_stopped(workspace: MonitorWorkspace, ticks: Optional[int]) -> None:
    sampler = workspace.sampler
    loop = asyncio.get_running_loop()

    def _request_stop(signum, frame):
        logger.info(f"Signal {signal.strsignal(signum)} received. Stopping capture...")
        loop.call_soon_threadsafe(sampler.stop)

    previous_handlers = {
        sig: signal.signal(sig, _request_stop) for sig in (signal.SIGINT, signal.SIGTERM)
    }
    try:
        await sampler.run(max_ticks=ticks)
    finally:
        for sig, handler in previous_handlers.items():
            signal.signal(sig, handler)
        sampler.close()


def _run_capture(args: argparse.Namespace, config: MonitorConfig) -> int:
    source = create_source(args.source, server=args.server)
    workspace = MonitorWorkspace.from_config(config, server=args.server)
    if args.interval is not None:
        workspace.set_interval(validate_interval_seconds(args.interval, field_name="--interval"))
    if args.group_by:
        workspace.set_group_by(args.group_by)
    workspace.create_sampler(source, query_timeout_seconds=config.query_timeout_seconds, on_tick=_log_tick)

    asyncio.run(_capture_until_stopped(workspace, args.ticks))

    if not workspace.captures:
        logger.warning("No captures were recorded; nothing to save")
        return 1

    session_target = args.output or config.storage.session_dir
    if args.output is None:
        session_target.mkdir(parents=True, exist_ok=True)
    workspace.save_session(session_target, indent=config.storage.session_indent)

    if args.export is not None:
        workspace.export(
            args.export,
            format_type=_export_format(args.export, None, config.storage.export_format),
            compression=config.storage.compression,
        )
    if args.plot_dir is not None:
        plot_series(
            workspace.render(),
            args.plot_dir,
            title=f"{workspace.server} - I/O by {workspace.group_by.value}",
            write_png=not args.no_png,
        )
    return 0


def _run_replay(args: argparse.Namespace, config: MonitorConfig) -> int:
    workspace = _load_workspace(args, config)
    if workspace is None:
        return 0
    if args.group_by:
        workspace.set_group_by(args.group_by)
    workspace.set_filters(drive=args.drive, database=args.database)
    for key in args.hide:
        workspace.toggle_series(key)

    output = workspace.render()
    legend = workspace.legend(output)
    for item in legend.items:
        logger.info(f"  {item.label} {item.color}{' (hidden)' if item.hidden else ''}")
    for section in legend.sections:
        logger.info(f"  {section.database_name} {section.color}: {len(section.file_keys)} file(s)")

    output_dir = args.output_dir or config.storage.session_dir
    plot_series(
        output,
        output_dir,
        base_filename=f"{args.session.stem}_{workspace.group_by.value.lower()}",
        title=f"{workspace.server} - I/O by {workspace.group_by.value}",
        write_png=not args.no_png,
    )
    return 0


def _run_export(args: argparse.Namespace, config: MonitorConfig) -> int:
    workspace = _load_workspace(args, config)
    if workspace is None:
        return 0
    target = args.output or config.storage.session_dir
    if args.output is None:
        target.mkdir(parents=True, exist_ok=True)
    path = workspace.export(
        target,
        format_type=_export_format(target, args.format, config.storage.export_format),
        compression=config.storage.compression,
    )
    logger.info(f"Exported {len(workspace.captures)} captures to {path}")
    return 0


def _run_diagnose(args: argparse.Namespace, config: MonitorConfig) -> int:
    source = create_source(args.source, server=args.server)
    try:
        report = run_diagnostic(source)
    finally:
        source.close()
    target = args.output or config.storage.session_dir
    if args.output is None:
        target.mkdir(parents=True, exist_ok=True)
    path = write_report(report, target)
    logger.info(f"Saved: {path}")
    for line in report.summary().splitlines():
        logger.info(line)
    return 0


COMMANDS = {
    "capture": _run_capture,
    "replay": _run_replay,
    "export": _run_export,
    "diagnose": _run_diagnose,
}


def main_cli(argv: Optional[List[str]] = None) -> int:
    """
    Main command-line interface for the disk monitor.

    Args:
        argv: Arguments to parse instead of sys.argv[1:]

    Returns:
        Process exit code

    Raises:
        SystemExit: On configuration errors, invalid arguments, unreadable
            session files or transport failures.
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        app_config = _load_app_config(args.config)
    except (OSError, ValidationError, ValueError) as e:
        handle_cli_error(
            error=e,
            context="configuration loading",
            exit_code=1,
            include_traceback=True,
            logger=logger,
        )

    monitor_config = app_config.monitor
    logging.getLogger().setLevel(logging.DEBUG if args.verbose else monitor_config.log_level)

    try:
        return COMMANDS[args.command](args, monitor_config)
    except (ValidationError, ValueError) as e:
        handle_cli_error(error=e, context=f"{args.command} arguments", exit_code=2, logger=logger)
    except MalformedSessionError as e:
        handle_cli_error(error=e, context=f"loading session {e.source or ''}".strip(), exit_code=1, logger=logger)
    except (TransportError, OSError) as e:
        handle_cli_error(error=e, context=args.command, exit_code=1, logger=logger)
    except RuntimeError as e:
        handle_cli_error(error=e, context=args.command, exit_code=1, include_traceback=True, logger=logger)
    return 1


if __name__ == "__main__":
    sys.exit(main_cli())
