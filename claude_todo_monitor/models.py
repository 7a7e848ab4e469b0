"""Data models for Claude Code todo snapshots.

Todo and CurrentTodos mirror the JSON written by the TodoWrite hook and are
parsed leniently with pydantic: unknown fields are ignored and missing ones
get defaults. Session and Project are the aggregated, in-memory view that is
rebuilt from disk on every refresh pass.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, ValidationInfo, field_validator

# Number of characters of the full session id shown in the UI
SESSION_ID_DISPLAY_LENGTH = 8

# Placeholder project labels
CURRENT_SESSION_LABEL = "Current Session"
UNKNOWN_PROJECT_LABEL = "Unknown Project"


class TodoStatus(str, Enum):
    """Recognized todo statuses.

    Using str as base class keeps plain string comparisons working.
    Anything the producer writes outside these three values is displayed
    and sorted as pending.
    """

    COMPLETED = "completed"
    IN_PROGRESS = "in_progress"
    PENDING = "pending"

    @classmethod
    def parse(cls, value: Optional[str]) -> "TodoStatus":
        """Map a raw status string to a TodoStatus, defaulting to PENDING."""
        try:
            return cls(value)
        except ValueError:
            return cls.PENDING

    @property
    def rank(self) -> int:
        """Sort rank: completed first, then in progress, then pending."""
        return _STATUS_RANKS[self]


_STATUS_RANKS = {
    TodoStatus.COMPLETED: 0,
    TodoStatus.IN_PROGRESS: 1,
    TodoStatus.PENDING: 2,
}


class Todo(BaseModel):
    """Single todo item as written by the TodoWrite tool.

    All fields have defaults for lenient parsing of partial writes.
    """

    model_config = ConfigDict(extra="ignore", frozen=True)

    content: str = ""
    status: str = "pending"  # Allow any string; see TodoStatus.parse
    activeForm: str = ""

    @field_validator("content", "status", "activeForm", mode="before")
    @classmethod
    def _null_as_default(cls, value: Any, info: ValidationInfo) -> Any:
        # The producer writes null for fields it has no value for
        if value is None and info.field_name is not None:
            return cls.model_fields[info.field_name].default
        return value

    @property
    def normalized_status(self) -> TodoStatus:
        return TodoStatus.parse(self.status)

    @property
    def identity(self) -> tuple[str, str]:
        """Deduplication key used when merging sessions."""
        return (self.content, self.status)

    @property
    def display_text(self) -> str:
        """Text to show: the active form while in progress, else the content."""
        if self.normalized_status is TodoStatus.IN_PROGRESS and self.activeForm:
            return self.activeForm
        return self.content


class CurrentTodos(BaseModel):
    """The live-session file written by the hook (current_todos.json)."""

    model_config = ConfigDict(extra="ignore")

    timestamp: Optional[str] = None
    session_id: Optional[str] = None
    cwd: Optional[str] = None
    todos: Optional[list[Todo]] = None
    last_updated: Optional[str] = None


@dataclass
class TodoStats:
    """Per-status todo counts. Unknown statuses count as pending."""

    completed: int = 0
    active: int = 0
    pending: int = 0

    @property
    def total(self) -> int:
        return self.completed + self.active + self.pending

    def __add__(self, other: "TodoStats") -> "TodoStats":
        return TodoStats(
            completed=self.completed + other.completed,
            active=self.active + other.active,
            pending=self.pending + other.pending,
        )


def todo_stats(todos: list[Todo]) -> TodoStats:
    """Count todos by normalized status."""
    stats = TodoStats()
    for todo in todos:
        status = todo.normalized_status
        if status is TodoStatus.COMPLETED:
            stats.completed += 1
        elif status is TodoStatus.IN_PROGRESS:
            stats.active += 1
        else:
            stats.pending += 1
    return stats


def display_session_id(full_id: str) -> str:
    """Truncate a full session id to its display form."""
    return full_id[:SESSION_ID_DISPLAY_LENGTH]


@dataclass
class SessionRecord:
    """One raw session observation read from disk, before aggregation."""

    full_id: str
    todos: list[Todo]
    last_modified: datetime
    source_file: Path
    is_current: bool = False
    cwd: Optional[str] = None


@dataclass
class Session:
    """A session's todo list after aggregation."""

    id: str
    full_id: str
    todos: list[Todo]
    last_modified: datetime
    source_file: Path
    source_files: list[Path] = field(default_factory=list)

    @property
    def stats(self) -> TodoStats:
        return todo_stats(self.todos)


@dataclass
class Project:
    """A project path together with its sessions, keyed by session id."""

    path: str
    sessions: dict[str, Session] = field(default_factory=dict)

    @property
    def name(self) -> str:
        """Last path segment, accepting either separator."""
        segments = [s for s in self.path.replace("\\", "/").split("/") if s]
        return segments[-1] if segments else self.path

    @property
    def latest_modified(self) -> Optional[datetime]:
        if not self.sessions:
            return None
        return max(s.last_modified for s in self.sessions.values())

    @property
    def todo_count(self) -> int:
        return sum(len(s.todos) for s in self.sessions.values())

    @property
    def stats(self) -> TodoStats:
        total = TodoStats()
        for session in self.sessions.values():
            total = total + session.stats
        return total
