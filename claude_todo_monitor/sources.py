"""Discovery and parsing of todo snapshot files.

The TodoWrite hook keeps two kinds of files up to date:

- ~/.claude/todos/<sessionId>-agent-<agentId>.json: a bare JSON array of
  todos per session (or a placeholder such as [] while nothing is planned)
- ~/.claude/logs/current_todos.json: the live session as an object with
  session_id, cwd, todos and last_updated

Files are observed while the producer may be rewriting them, so any file
that cannot be read or parsed is skipped for this pass.
"""

import json
import logging
import os
from datetime import datetime
from pathlib import Path
from typing import Any, Iterator, Optional

from pydantic import ValidationError

from .config import MonitorConfig
from .models import CurrentTodos, SessionRecord, Todo

logger = logging.getLogger(__name__)

# Separator between the session id and the agent marker in snapshot names
SESSION_ID_SEPARATOR = "-agent"


def extract_session_id(file_name: str) -> str:
    """Return the full session id encoded in a snapshot file name.

    Names without the agent marker fall back to the file stem.
    """
    stem = file_name[:-5] if file_name.endswith(".json") else file_name
    session_id, separator, _ = stem.partition(SESSION_ID_SEPARATOR)
    if separator and session_id:
        return session_id
    return stem


def parse_todo_list(data: Any) -> list[Todo]:
    """Parse a list of raw todo objects leniently.

    Items that are not objects or fail validation are dropped.
    """
    if not isinstance(data, list):
        return []
    todos: list[Todo] = []
    for item in data:
        if not isinstance(item, dict):
            continue
        try:
            todos.append(Todo.model_validate(item))
        except ValidationError:
            continue
    return todos


def _read_json(path: Path) -> Any:
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def _mtime(timestamp: float) -> datetime:
    return datetime.fromtimestamp(timestamp)


class SessionSource:
    """Reads session records from the snapshot directory and the live file."""

    def __init__(self, config: MonitorConfig):
        self.config = config

    def list_snapshot_files(self) -> list[tuple[Path, os.stat_result]]:
        """Return populated snapshot files, most recently modified first.

        Placeholder writes at or below min_snapshot_bytes are skipped, and
        the result is capped at max_snapshot_files.
        """
        todos_dir = self.config.todos_dir
        candidates: list[tuple[Path, os.stat_result]] = []
        try:
            with os.scandir(todos_dir) as entries:
                for entry in entries:
                    if not entry.name.endswith(".json"):
                        continue
                    try:
                        if not entry.is_file():
                            continue
                        stat = entry.stat()
                    except OSError:
                        continue
                    if stat.st_size <= self.config.min_snapshot_bytes:
                        continue
                    candidates.append((Path(entry.path), stat))
        except OSError:
            logger.debug(f"Snapshot directory not readable: {todos_dir}")
            return []

        candidates.sort(key=lambda item: item[1].st_mtime, reverse=True)
        return candidates[: self.config.max_snapshot_files]

    def read_snapshot(
        self, path: Path, stat: Optional[os.stat_result] = None
    ) -> Optional[SessionRecord]:
        """Parse one snapshot file, or return None if it holds no todos."""
        try:
            if stat is None:
                stat = path.stat()
            data = _read_json(path)
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            logger.debug(f"Skipping unreadable snapshot {path.name}: {e}")
            return None

        todos = parse_todo_list(data)
        if not todos:
            return None

        return SessionRecord(
            full_id=extract_session_id(path.name),
            todos=todos,
            last_modified=_mtime(stat.st_mtime),
            source_file=path,
        )

    def read_current(self) -> Optional[SessionRecord]:
        """Parse the live-session file, or return None if absent or empty."""
        current = self.read_current_file()
        if current is None or not current.todos:
            return None
        path = self.config.current_file
        try:
            modified = _mtime(path.stat().st_mtime)
        except OSError:
            modified = datetime.now()
        return SessionRecord(
            full_id=current.session_id or "current",
            todos=list(current.todos),
            last_modified=modified,
            source_file=path,
            is_current=True,
            cwd=current.cwd,
        )

    def read_current_file(self) -> Optional[CurrentTodos]:
        """Load current_todos.json as a model, tolerating bad entries."""
        path = self.config.current_file
        try:
            data = _read_json(path)
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            logger.debug(f"Skipping unreadable current todos file: {e}")
            return None

        if not isinstance(data, dict):
            return None
        todos = parse_todo_list(data.get("todos"))
        try:
            return CurrentTodos.model_validate({**data, "todos": todos})
        except ValidationError as e:
            logger.debug(f"Skipping malformed current todos file: {e}")
            return None

    def iter_records(self) -> Iterator[SessionRecord]:
        """Yield every session record for one pass: snapshots, then the live file."""
        for path, stat in self.list_snapshot_files():
            record = self.read_snapshot(path, stat)
            if record is not None:
                yield record

        current = self.read_current()
        if current is not None:
            yield current
