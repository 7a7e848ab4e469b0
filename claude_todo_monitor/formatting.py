"""Text layout of the terminal monitor: header block, status line and body.

Every line is truncated to the viewport width before styling so that no
line wraps; the renderer relies on one output line per terminal row.
"""

import os
from datetime import datetime
from typing import Optional

import click
from rich.cells import cell_len, set_cell_size

from .models import (
    CurrentTodos,
    Project,
    Session,
    Todo,
    TodoStats,
    TodoStatus,
    display_session_id,
)

TITLE = "CLAUDE CODE TODO MONITOR"
BANNER_WIDTH = 63

STATUS_ICONS = {
    TodoStatus.COMPLETED: "✓",
    TodoStatus.IN_PROGRESS: "▶",
    TodoStatus.PENDING: "○",
}


def truncate(text: str, max_cells: int) -> str:
    """Truncate text to max_cells terminal cells, appending an ellipsis if truncated.

    Wide characters (CJK, most emoji) take two cells.
    """
    if max_cells <= 0:
        return ""
    if cell_len(text) <= max_cells:
        return text
    # set_cell_size pads with a space when a wide character straddles the cut
    return set_cell_size(text, max_cells - 1).rstrip(" ") + "…"


def _fit(text: str, width: int) -> str:
    # Leave the last column empty; writing it makes some terminals wrap
    return truncate(text, width - 1)


def format_clock(value: datetime) -> str:
    return value.strftime("%H:%M:%S")


def format_stats(stats: TodoStats) -> str:
    return f"✓{stats.completed} ▶{stats.active} ○{stats.pending}"


def format_header(
    current: Optional[CurrentTodos], width: int, polling: bool = False
) -> list[str]:
    """Build the static header block drawn once at startup."""
    rule = "═" * min(BANNER_WIDTH, max(width - 1, 0))
    lines = [
        click.style(rule, fg="cyan", bold=True),
        click.style(_fit(TITLE.center(BANNER_WIDTH), width), fg="cyan", bold=True),
        click.style(rule, fg="cyan", bold=True),
        "",
    ]

    if current is None:
        lines.append(
            click.style(
                _fit("Waiting for TodoWrite events from Claude Code...", width),
                fg="yellow",
            )
        )
    else:
        session_id = display_session_id(current.session_id or "unknown")
        directory = os.path.basename((current.cwd or "unknown").rstrip("/\\"))
        lines.append(
            click.style(
                _fit(f"Session: {session_id}... | Directory: {directory}", width),
                dim=True,
            )
        )

    legend_text = "Legend: ✓ Completed | ▶ Active | ○ Pending | Press Ctrl+C to exit"
    if cell_len(legend_text) < width:
        legend = (
            click.style("Legend: ", dim=True)
            + click.style("✓ Completed", fg="green", strikethrough=True)
            + click.style(" | ", dim=True)
            + click.style("▶ Active", fg="blue", bold=True)
            + click.style(" | ○ Pending | Press Ctrl+C to exit", dim=True)
        )
    else:
        legend = click.style(_fit(legend_text, width), dim=True)
    lines.append(legend)

    if polling:
        lines.append(
            click.style(
                _fit(
                    "Note: Using polling method (native file watching unavailable)",
                    width,
                ),
                fg="yellow",
            )
        )
    lines.append("")
    return lines


def format_status_line(
    todo_count: int,
    updated_at: datetime,
    width: int,
    remaining: Optional[float] = None,
) -> str:
    """Build the status line that the countdown tick rewrites in place."""
    if todo_count == 0:
        text = f"No todos found | Last update: {format_clock(updated_at)}"
    else:
        text = f"Current Todos ({todo_count}) | Updated: {format_clock(updated_at)}"
    if remaining is not None:
        text += f" | Next refresh in {max(0, int(round(remaining)))}s"
    style = {"fg": "yellow"} if todo_count == 0 else {"bold": True}
    return click.style(_fit(text, width), **style)


def format_todo_line(todo: Todo, width: int, indent: int = 4) -> str:
    status = todo.normalized_status
    text = _fit(f"{' ' * indent}{STATUS_ICONS[status]} {todo.display_text}", width)
    if status is TodoStatus.COMPLETED:
        return click.style(text, fg="green", strikethrough=True)
    if status is TodoStatus.IN_PROGRESS:
        return click.style(text, fg="blue", bold=True)
    return text


def format_session_line(session: Session, width: int) -> str:
    text = (
        f"  Session {session.id} · {len(session.todos)} todos · "
        f"{format_stats(session.stats)} · {format_clock(session.last_modified)}"
    )
    return click.style(_fit(text, width), fg="magenta")


def format_project_line(project: Project, width: int) -> str:
    count = len(project.sessions)
    noun = "session" if count == 1 else "sessions"
    text = f"▸ {project.name}  ({project.path})  {count} {noun} · {format_stats(project.stats)}"
    return click.style(_fit(text, width), fg="cyan", bold=True)


def format_body(
    projects: list[Project],
    width: int,
    updated_at: datetime,
    remaining: Optional[float] = None,
) -> list[str]:
    """Build the body: status line first, then every project, session and todo.

    Projects, sessions and todos are expected to be sorted already.
    """
    todo_count = sum(p.todo_count for p in projects)
    lines = [format_status_line(todo_count, updated_at, width, remaining)]
    if not projects:
        return lines

    lines.append("")
    for index, project in enumerate(projects):
        if index:
            lines.append("")
        lines.append(format_project_line(project, width))
        for session in project.sessions.values():
            lines.append(format_session_line(session, width))
            lines.extend(format_todo_line(todo, width) for todo in session.todos)
    return lines
