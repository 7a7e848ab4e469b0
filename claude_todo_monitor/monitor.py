"""The terminal monitor's event loop.

One loop, one consumer: the watcher blocks for at most a tick, the queued
events are handled one after the other, and every handler runs to
completion before the next wait. Redraws therefore never overlap.
"""

import logging
from datetime import datetime
from typing import Callable, Optional

import click

from .aggregator import load_projects
from .config import MonitorConfig
from .formatting import format_body, format_header, format_status_line
from .models import Project
from .paths import ProjectResolver
from .renderer import TerminalRenderer
from .sorting import sort_projects_deep
from .sources import SessionSource
from .watcher import CountdownTick, MonitorEvent, RefreshRequested, Watcher

logger = logging.getLogger(__name__)

STOPPED_MESSAGE = "Todo Monitor stopped"


class TodoMonitor:
    """Wires aggregation, sorting and the renderer to the watcher's events."""

    def __init__(
        self,
        config: MonitorConfig,
        renderer: Optional[TerminalRenderer] = None,
        watcher: Optional[Watcher] = None,
        resolver: Optional[ProjectResolver] = None,
        now: Callable[[], datetime] = datetime.now,
    ):
        self.config = config
        self.renderer = renderer or TerminalRenderer(
            debounce_window=config.debounce_window
        )
        self.watcher = watcher or Watcher(config)
        self.resolver = resolver or ProjectResolver(config.projects_dir)
        self.now = now
        self.projects: list[Project] = []
        self.updated_at: datetime = now()

    @property
    def todo_count(self) -> int:
        return sum(p.todo_count for p in self.projects)

    def start(self) -> None:
        """Open the watcher, draw the header and the first body."""
        self.watcher.start()
        current = SessionSource(self.config).read_current_file()
        self.renderer.draw_header(
            format_header(current, self.renderer.width, polling=self.watcher.polling)
        )
        self.refresh(forced=True)

    def refresh(self, forced: bool = False) -> bool:
        """Re-read the snapshot files and redraw the body.

        Returns:
            True if the body was redrawn, False if the redraw was debounced.
        """
        if not self.renderer.should_redraw(forced):
            logger.debug("Redraw suppressed by debounce window")
            return False

        projects = load_projects(self.config, self.resolver)
        self.projects = sort_projects_deep(projects, self.config.sort_mode)
        self.updated_at = self.now()
        lines = format_body(
            self.projects,
            self.renderer.width,
            self.updated_at,
            self.watcher.seconds_until_forced,
        )
        return self.renderer.render(lines, forced=forced)

    def update_countdown(self, remaining: float) -> bool:
        """Rewrite only the status line with the time left until a forced refresh."""
        return self.renderer.update_status(
            format_status_line(
                self.todo_count, self.updated_at, self.renderer.width, remaining
            )
        )

    def handle(self, event: MonitorEvent) -> None:
        if isinstance(event, RefreshRequested):
            self.refresh(forced=event.forced)
        elif isinstance(event, CountdownTick):
            self.update_countdown(event.remaining)

    def run(self) -> None:
        """Refresh until interrupted, then release the watcher."""
        try:
            self.start()
            while True:
                for event in self.watcher.wait():
                    self.handle(event)
        except KeyboardInterrupt:
            pass
        finally:
            self.watcher.close()
            self.renderer.finish(click.style(STOPPED_MESSAGE, fg="yellow"))


def run_monitor(config: MonitorConfig) -> None:
    """Run the terminal monitor until Ctrl+C."""
    TodoMonitor(config).run()
