"""Group session records into projects and merge duplicate sessions."""

import logging
from typing import Iterable, Optional

from .config import MonitorConfig
from .models import (
    CURRENT_SESSION_LABEL,
    UNKNOWN_PROJECT_LABEL,
    Project,
    Session,
    SessionRecord,
    Todo,
    display_session_id,
)
from .paths import ProjectResolver
from .sources import SessionSource

logger = logging.getLogger(__name__)


def merge_todos(first: list[Todo], second: list[Todo]) -> list[Todo]:
    """Concatenate two todo lists, keeping the first of each (content, status)."""
    seen: set[tuple[str, str]] = set()
    merged: list[Todo] = []
    for todo in [*first, *second]:
        if todo.identity in seen:
            continue
        seen.add(todo.identity)
        merged.append(todo)
    return merged


def merge_sessions(existing: Session, incoming: Session) -> Session:
    """Combine two observations of the same session.

    Todos are unioned by identity and the newest modification time wins.
    """
    newest = max(existing, incoming, key=lambda s: s.last_modified)
    return Session(
        id=existing.id,
        full_id=existing.full_id,
        todos=merge_todos(existing.todos, incoming.todos),
        last_modified=newest.last_modified,
        source_file=newest.source_file,
        source_files=[*existing.source_files, *incoming.source_files],
    )


class Aggregator:
    """Builds the project list for one refresh pass."""

    def __init__(self, resolver: ProjectResolver):
        self.resolver = resolver

    def aggregate(self, records: Iterable[SessionRecord]) -> list[Project]:
        """Group records by project, merging repeated (project, session id) pairs.

        Projects are returned in first-seen order; see sorting for display order.
        """
        projects: dict[str, Project] = {}
        resolved: dict[str, Optional[str]] = {}

        for record in records:
            if record.full_id not in resolved:
                resolved[record.full_id] = self.resolver.find_project_for_session(
                    record.full_id
                )
            project_path = resolved[record.full_id]
            if project_path is None:
                project_path = (
                    CURRENT_SESSION_LABEL if record.is_current else UNKNOWN_PROJECT_LABEL
                )

            session = Session(
                id=display_session_id(record.full_id),
                full_id=record.full_id,
                todos=list(record.todos),
                last_modified=record.last_modified,
                source_file=record.source_file,
                source_files=[record.source_file],
            )

            project = projects.setdefault(project_path, Project(path=project_path))
            existing = project.sessions.get(session.id)
            if existing is not None:
                logger.debug(
                    f"Merging duplicate session {session.id} in {project_path}"
                )
                session = merge_sessions(existing, session)
            project.sessions[session.id] = session

        return list(projects.values())


def load_projects(
    config: MonitorConfig, resolver: Optional[ProjectResolver] = None
) -> list[Project]:
    """Run one full aggregation pass over the files on disk."""
    if resolver is None:
        resolver = ProjectResolver(config.projects_dir)
    source = SessionSource(config)
    return Aggregator(resolver).aggregate(source.iter_records())
