"""Runtime configuration for the todo monitor."""

import os
from pathlib import Path

from pydantic import BaseModel, Field, field_validator

from .sorting import SortMode

CLAUDE_DIR_ENV_VAR = "CLAUDE_TODO_MONITOR_DIR"

TODOS_DIR_NAME = "todos"
PROJECTS_DIR_NAME = "projects"
CURRENT_TODOS_FILE = Path("logs") / "current_todos.json"


def get_default_claude_dir() -> Path:
    """Get the Claude data directory, respecting CLAUDE_TODO_MONITOR_DIR.

    Priority: CLAUDE_TODO_MONITOR_DIR env var > ~/.claude.
    """
    env_path = os.getenv(CLAUDE_DIR_ENV_VAR)
    if env_path:
        return Path(env_path).expanduser()
    return Path.home() / ".claude"


class MonitorConfig(BaseModel):
    """Every tunable of the monitor and the list view.

    Intervals are in seconds.
    """

    claude_dir: Path = Field(default_factory=get_default_claude_dir)
    forced_refresh_interval: float = 10.0
    tick_interval: float = 1.0
    debounce_window: float = 1.0
    list_refresh_interval: float = 5.0
    max_snapshot_files: int = 50
    min_snapshot_bytes: int = 10
    sort_mode: SortMode = SortMode.RECENT
    use_native_watch: bool = True

    @field_validator(
        "forced_refresh_interval",
        "tick_interval",
        "list_refresh_interval",
        "max_snapshot_files",
    )
    @classmethod
    def _must_be_positive(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("must be greater than zero")
        return value

    @field_validator("debounce_window", "min_snapshot_bytes")
    @classmethod
    def _must_not_be_negative(cls, value: float) -> float:
        if value < 0:
            raise ValueError("must not be negative")
        return value

    @property
    def todos_dir(self) -> Path:
        """Directory of per-session snapshot files."""
        return self.claude_dir / TODOS_DIR_NAME

    @property
    def projects_dir(self) -> Path:
        """Directory of flattened project index directories."""
        return self.claude_dir / PROJECTS_DIR_NAME

    @property
    def current_file(self) -> Path:
        """The live-session file written by the hook."""
        return self.claude_dir / CURRENT_TODOS_FILE

    @property
    def watch_paths(self) -> list[Path]:
        """Directories holding the files the watcher reacts to."""
        return [self.todos_dir, self.current_file.parent]
