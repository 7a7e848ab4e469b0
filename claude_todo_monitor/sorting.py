"""Ordering of projects, sessions and todos for display."""

from dataclasses import replace
from datetime import datetime
from enum import Enum

from .models import Project, Session, Todo

_EPOCH = datetime.min


class SortMode(str, Enum):
    """Project ordering modes, in the order the list view cycles through them."""

    NAME = "name"
    RECENT = "recent"
    TODOS = "todos"

    def next(self) -> "SortMode":
        modes = list(SortMode)
        return modes[(modes.index(self) + 1) % len(modes)]

    @property
    def label(self) -> str:
        return {
            SortMode.NAME: "Name",
            SortMode.RECENT: "Recent",
            SortMode.TODOS: "Todo Count",
        }[self]


def sort_todos(todos: list[Todo]) -> list[Todo]:
    """Order todos completed, in progress, then pending.

    sorted() is stable, so todos of the same rank keep their input order.
    """
    return sorted(todos, key=lambda todo: todo.normalized_status.rank)


def sort_sessions(sessions: list[Session]) -> list[Session]:
    """Most recently modified session first."""
    return sorted(sessions, key=lambda s: s.last_modified, reverse=True)


def _naive(value: datetime) -> datetime:
    # Mixed aware/naive values cannot be compared; compare on local wall time
    return value.replace(tzinfo=None) if value.tzinfo else value


def sort_projects(projects: list[Project], mode: SortMode) -> list[Project]:
    """Order projects by the selected mode."""
    if mode is SortMode.NAME:
        return sorted(projects, key=lambda p: p.name)
    if mode is SortMode.RECENT:
        return sorted(
            projects,
            key=lambda p: _naive(p.latest_modified or _EPOCH),
            reverse=True,
        )
    return sorted(projects, key=lambda p: p.todo_count, reverse=True)


def sort_projects_deep(projects: list[Project], mode: SortMode) -> list[Project]:
    """Sort projects, and the sessions and todos within each of them.

    Returns new Project and Session values; the inputs are left untouched.
    """
    result: list[Project] = []
    for project in sort_projects(projects, mode):
        ordered = [
            replace(session, todos=sort_todos(session.todos))
            for session in sort_sessions(list(project.sessions.values()))
        ]
        result.append(
            Project(path=project.path, sessions={s.id: s for s in ordered})
        )
    return result
