#!/usr/bin/env python3
"""CLI interface for claude-todo-monitor."""

import logging
import sys
from pathlib import Path
from typing import Optional

import click
from pydantic import ValidationError

from .config import MonitorConfig, get_default_claude_dir
from .sorting import SortMode


def build_config(
    claude_dir: Optional[Path],
    sort: str,
    refresh_interval: float,
    debounce: float,
    max_files: int,
    poll: bool,
) -> MonitorConfig:
    """Build the monitor configuration from command line options."""
    return MonitorConfig(
        claude_dir=claude_dir or get_default_claude_dir(),
        sort_mode=SortMode(sort),
        forced_refresh_interval=refresh_interval,
        debounce_window=debounce,
        max_snapshot_files=max_files,
        use_native_watch=not poll,
    )


def configure_logging(debug: bool, log_file: Optional[Path]) -> None:
    """Send log records to a file when given; the monitor owns the terminal."""
    level = logging.DEBUG if debug else logging.WARNING
    log_format = "%(asctime)s %(levelname)s %(name)s: %(message)s"
    if log_file is not None:
        logging.basicConfig(level=level, format=log_format, filename=str(log_file))
    else:
        logging.basicConfig(level=level, format="%(levelname)s: %(message)s")


@click.command()
@click.option(
    "--claude-dir",
    type=click.Path(path_type=Path, file_okay=False),
    default=None,
    help="Claude data directory (default: ~/.claude, or $CLAUDE_TODO_MONITOR_DIR).",
)
@click.option(
    "--sort",
    type=click.Choice([mode.value for mode in SortMode]),
    default=SortMode.RECENT.value,
    help="Project order: name, recent (default) or todos.",
)
@click.option(
    "--refresh-interval",
    type=float,
    default=10.0,
    help="Seconds between forced refreshes when no file changes (default: 10).",
)
@click.option(
    "--debounce",
    type=float,
    default=1.0,
    help="Minimum seconds between two change-triggered redraws (default: 1).",
)
@click.option(
    "--max-files",
    type=int,
    default=50,
    help="Maximum number of recent snapshot files read per refresh (default: 50).",
)
@click.option(
    "--poll",
    is_flag=True,
    help="Poll modification times instead of using native file notifications.",
)
@click.option(
    "--list-view",
    is_flag=True,
    help="Launch the interactive list view instead of the live terminal monitor.",
)
@click.option(
    "--log-file",
    type=click.Path(path_type=Path, dir_okay=False),
    default=None,
    help="Write log records to this file.",
)
@click.option(
    "--debug",
    is_flag=True,
    default=False,
    help="Enable debug logging and show full traceback on errors.",
)
def main(
    claude_dir: Optional[Path],
    sort: str,
    refresh_interval: float,
    debounce: float,
    max_files: int,
    poll: bool,
    list_view: bool,
    log_file: Optional[Path],
    debug: bool,
) -> None:
    """Live view of Claude Code todo lists across sessions and projects.

    Runs until interrupted with Ctrl+C.
    """
    configure_logging(debug, log_file)

    try:
        config = build_config(
            claude_dir, sort, refresh_interval, debounce, max_files, poll
        )

        if list_view:
            from .tui import run_todo_browser

            run_todo_browser(config)
            return

        from .monitor import run_monitor

        run_monitor(config)

    except ValidationError as e:
        click.echo(f"Error: invalid configuration: {e}", err=True)
        sys.exit(1)
    except Exception as e:
        click.echo(f"Error running monitor: {e}", err=True)
        if debug:
            import traceback

            traceback.print_exc()
        sys.exit(1)


if __name__ == "__main__":
    main()
