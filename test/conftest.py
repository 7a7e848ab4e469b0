"""Pytest configuration and shared fixtures."""

import io
import json
import os
import re
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Optional

import pytest

from claude_todo_monitor.config import MonitorConfig
from claude_todo_monitor.paths import flatten_project_path


class FakeClock:
    """Monotonic clock advanced by hand."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class ClaudeHome:
    """A throwaway ~/.claude tree with helpers to populate it."""

    def __init__(self, root: Path):
        self.root = root
        self.todos_dir = root / "todos"
        self.projects_dir = root / "projects"
        self.logs_dir = root / "logs"
        for directory in (self.todos_dir, self.projects_dir, self.logs_dir):
            directory.mkdir(parents=True, exist_ok=True)

    def config(self, **overrides: Any) -> MonitorConfig:
        return MonitorConfig(claude_dir=self.root, **overrides)

    def write_snapshot(
        self,
        session_id: str,
        todos: list[Any],
        agent: Optional[str] = None,
        mtime: Optional[datetime] = None,
    ) -> Path:
        path = self.todos_dir / f"{session_id}-agent-{agent or session_id}.json"
        path.write_text(json.dumps(todos), encoding="utf-8")
        if mtime is not None:
            stamp = mtime.timestamp()
            os.utime(path, (stamp, stamp))
        return path

    def write_current(
        self,
        session_id: Optional[str],
        todos: list[Any],
        cwd: str = "/home/alice/proj",
        mtime: Optional[datetime] = None,
    ) -> Path:
        path = self.logs_dir / "current_todos.json"
        data = {
            "timestamp": "2025-06-01T12:00:00",
            "session_id": session_id,
            "cwd": cwd,
            "todos": todos,
            "last_updated": "2025-06-01T12:00:00",
        }
        path.write_text(json.dumps(data), encoding="utf-8")
        if mtime is not None:
            stamp = mtime.timestamp()
            os.utime(path, (stamp, stamp))
        return path

    def add_project(self, project_path: str, *session_ids: str) -> Path:
        """Create a project index directory holding one transcript per session."""
        project_dir = self.projects_dir / flatten_project_path(project_path)
        project_dir.mkdir(parents=True, exist_ok=True)
        for session_id in session_ids:
            (project_dir / f"{session_id}.jsonl").write_text("{}\n", encoding="utf-8")
        return project_dir


_ESCAPE = re.compile(r"\x1b\[([0-9;]*)([A-Za-z])")


class ScrollError(AssertionError):
    """Output reached past the bottom of the viewport."""


class VirtualTerminal(io.StringIO):
    """A write-only stream keeping a grid of the visible rows.

    Understands the sequences the renderer writes: absolute cursor moves,
    clear line, clear screen and cursor home. Color sequences are dropped.
    Text written below the last row raises ScrollError, since a real
    terminal would scroll and shift everything drawn so far.
    """

    def __init__(self, columns: int = 100, lines: int = 40):
        super().__init__()
        self.columns = columns
        self.lines = lines
        self.rows: list[str] = [""] * lines
        self.row = 0
        self.column = 0
        self.cleared_rows: list[int] = []
        self.written_rows: list[int] = []
        self.flushes = 0

    def size(self) -> os.terminal_size:
        return os.terminal_size((self.columns, self.lines))

    def reset_log(self) -> None:
        """Forget which rows were touched so far."""
        self.cleared_rows = []
        self.written_rows = []

    def write(self, s: str) -> int:
        position = 0
        for match in _ESCAPE.finditer(s):
            self._put_text(s[position : match.start()])
            self._apply(match.group(1), match.group(2))
            position = match.end()
        self._put_text(s[position:])
        return len(s)

    def flush(self) -> None:
        self.flushes += 1

    def _apply(self, params: str, command: str) -> None:
        if command == "H":
            parts = [int(p) for p in params.split(";") if p]
            self.row = (parts[0] if parts else 1) - 1
            self.column = (parts[1] if len(parts) > 1 else 1) - 1
        elif command == "K" and params == "2":
            self._check_row()
            self.rows[self.row] = ""
            self.cleared_rows.append(self.row + 1)
        elif command == "J" and params == "2":
            self.rows = [""] * self.lines
        # Colors and styles do not move the cursor

    def _check_row(self) -> None:
        if not 0 <= self.row < self.lines:
            raise ScrollError(
                f"row {self.row + 1} is outside a {self.lines}-row viewport"
            )

    def _put_text(self, text: str) -> None:
        for char in text:
            if char == "\n":
                self.row += 1
                self.column = 0
                continue
            self._check_row()
            line = self.rows[self.row].ljust(self.column)
            self.rows[self.row] = line[: self.column] + char + line[self.column + 1 :]
            self.column += 1
            if not self.written_rows or self.written_rows[-1] != self.row + 1:
                self.written_rows.append(self.row + 1)

    def row_text(self, row: int) -> str:
        """Text on a 1-based row."""
        return self.rows[row - 1]

    @property
    def screen(self) -> list[str]:
        """All rows with trailing blank rows removed."""
        rows = list(self.rows)
        while rows and not rows[-1]:
            rows.pop()
        return rows


@pytest.fixture
def claude_home(tmp_path: Path) -> ClaudeHome:
    """Create an isolated Claude data directory."""
    return ClaudeHome(tmp_path / ".claude")


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def make_terminal() -> Callable[..., VirtualTerminal]:
    """Factory for virtual terminals of a given size."""

    def _make(columns: int = 100, lines: int = 40) -> VirtualTerminal:
        return VirtualTerminal(columns, lines)

    return _make
