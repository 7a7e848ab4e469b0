"""Conversion between project paths and Claude's flattened directory names.

Claude Code indexes every project under ~/.claude/projects/ using a single
directory name derived from the project path, with separators replaced by
a dash:

- Unix:    /home/alice/proj      -> -home-alice-proj
- Windows: C:\\Users\\alice\\proj -> C--Users-alice-proj

The scheme is lossy (a dash inside a path segment is indistinguishable from
a separator), so the reverse direction is best-effort.
"""

import logging
import os
import re
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

FLATTEN_CHAR = "-"

_WINDOWS_PATH_PATTERN = re.compile(r"^([A-Za-z]):[\\/]*(.*)$")
_FLATTENED_WINDOWS_PATTERN = re.compile(r"^([A-Za-z])--(.*)$")


def flatten_project_path(project_path: str) -> str:
    """Convert a project path to its flattened directory name."""
    windows_match = _WINDOWS_PATH_PATTERN.match(project_path)
    if windows_match:
        # Drive letter, then an empty part to create the double dash
        drive, rest = windows_match.groups()
        parts = [p for p in re.split(r"[\\/]", rest) if p]
        return FLATTEN_CHAR.join([drive, "", *parts])

    parts = [p for p in project_path.split("/") if p]
    if project_path.startswith("/"):
        return FLATTEN_CHAR + FLATTEN_CHAR.join(parts)
    return FLATTEN_CHAR.join(parts)


def unflatten_project_dir(dir_name: str, sep: Optional[str] = None) -> str:
    """Convert a flattened directory name back to a project path.

    Args:
        dir_name: Directory name under ~/.claude/projects/
        sep: Path separator used for Windows-style and opaque names.
            Defaults to the OS separator.

    Returns:
        The reconstructed path, e.g. "/home/alice/proj" or "C:\\Users\\alice".
    """
    sep = sep or os.sep

    windows_match = _FLATTENED_WINDOWS_PATTERN.match(dir_name)
    if windows_match:
        drive, rest = windows_match.groups()
        return f"{drive}:{sep}{rest.replace(FLATTEN_CHAR, sep)}"

    if dir_name.startswith(FLATTEN_CHAR):
        # Unix paths always use a forward slash
        return "/" + dir_name[1:].replace(FLATTEN_CHAR, "/")

    return dir_name.replace(FLATTEN_CHAR, sep)


class ProjectResolver:
    """Find the project a session belongs to by scanning the project index.

    Each project directory contains one transcript file per session, named
    after the full session id. The first project directory containing a
    file whose name starts with the session id wins.

    Directories are visited in the order the filesystem lists them. If the
    same session id prefix appears under more than one project, which one
    is returned is therefore unspecified; no tie-break is applied.
    """

    def __init__(self, projects_dir: Path, sep: Optional[str] = None):
        self.projects_dir = projects_dir
        self.sep = sep

    def _candidate_dirs(self) -> list[Path]:
        try:
            with os.scandir(self.projects_dir) as entries:
                return [Path(e.path) for e in entries if e.is_dir()]
        except OSError:
            # Missing or unreadable index: nothing can be resolved
            return []

    @staticmethod
    def _contains_session(project_dir: Path, session_id: str) -> bool:
        try:
            with os.scandir(project_dir) as entries:
                return any(e.name.startswith(session_id) for e in entries)
        except OSError as e:
            logger.debug(f"Skipping unreadable project directory {project_dir}: {e}")
            return False

    def find_project_dir(self, session_id: str) -> Optional[Path]:
        """Return the project index directory holding the session, if any."""
        if not session_id:
            return None
        for project_dir in self._candidate_dirs():
            if self._contains_session(project_dir, session_id):
                return project_dir
        return None

    def find_project_for_session(self, session_id: str) -> Optional[str]:
        """Return the real project path of the session, or None if unresolved."""
        project_dir = self.find_project_dir(session_id)
        if project_dir is None:
            return None
        return unflatten_project_dir(project_dir.name, self.sep)
