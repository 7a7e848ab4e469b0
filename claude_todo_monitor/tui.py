#!/usr/bin/env python3
"""Interactive list view of todos across projects and sessions."""

from enum import Enum
from typing import ClassVar, Optional, cast

from rich.markup import escape
from textual.app import App, ComposeResult
from textual.binding import Binding, BindingType
from textual.containers import Container, Horizontal, Vertical
from textual.reactive import reactive
from textual.widgets import DataTable, Footer, Header, Label, Static

from .aggregator import load_projects
from .config import MonitorConfig
from .formatting import STATUS_ICONS, format_clock
from .models import Project, Session
from .paths import ProjectResolver
from .sorting import SortMode, sort_projects_deep


class Spacing(str, Enum):
    """Vertical spacing of the todo list, cycled with the p key."""

    NORMAL = "normal"
    COMPACT = "compact"
    NONE = "none"

    def next(self) -> "Spacing":
        modes = list(Spacing)
        return modes[(modes.index(self) + 1) % len(modes)]


STATUS_MARKUP = {
    "completed": "[green strike]{text}[/]",
    "in_progress": "[bold blue]{text}[/]",
    "pending": "{text}",
}


def render_todo_list(session: Session, spacing: Spacing) -> str:
    """Numbered todo list with status icons as Rich markup."""
    lines: list[str] = []
    for index, todo in enumerate(session.todos, start=1):
        status = todo.normalized_status
        text = f"{index}. {STATUS_ICONS[status]} {escape(todo.display_text)}"
        lines.append(STATUS_MARKUP[status.value].format(text=text))
    separator = "\n\n" if spacing is Spacing.NORMAL else "\n"
    return separator.join(lines)


class TodoBrowser(App[None]):
    """Projects on the left, sessions and their todos on the right."""

    CSS = """
    #sidebar {
        width: 40%;
        min-width: 30;
    }

    #sort-label {
        height: 1;
        color: $accent;
    }

    #projects-table {
        height: 1fr;
    }

    #content {
        width: 1fr;
    }

    #project-title {
        height: auto;
        text-style: bold;
        color: $primary;
    }

    #sessions-table {
        height: auto;
        max-height: 12;
    }

    #stats-container {
        height: 3;
        border: solid $primary;
    }

    #todo-list {
        height: 1fr;
        overflow-y: auto;
    }

    #todo-list.spacing-normal {
        padding: 1 2;
    }

    #todo-list.spacing-compact {
        padding: 0 1;
    }

    #todo-list.spacing-none {
        padding: 0;
    }
    """

    TITLE = "Claude Code Todo Monitor"
    BINDINGS: ClassVar[list[BindingType]] = [
        Binding("q", "quit", "Quit"),
        Binding("escape", "quit", "Quit", show=False),
        Binding("s", "cycle_sort", "Sort"),
        Binding("p", "cycle_spacing", "Spacing"),
        Binding("r", "reload", "Reload"),
    ]

    selected_project_path: reactive[Optional[str]] = reactive(
        cast(Optional[str], None)
    )
    selected_session_id: reactive[Optional[str]] = reactive(cast(Optional[str], None))
    projects: list[Project]
    sort_mode: SortMode
    spacing: Spacing

    def __init__(
        self,
        config: MonitorConfig,
        resolver: Optional[ProjectResolver] = None,
    ):
        """Initialize the browser with the monitor configuration."""
        super().__init__()
        self.theme = "gruvbox"
        self.config = config
        self.resolver = resolver or ProjectResolver(config.projects_dir)
        self.projects = []
        self.sort_mode = config.sort_mode
        self.spacing = Spacing.NONE

    def compose(self) -> ComposeResult:
        """Create the UI layout."""
        yield Header()

        with Horizontal(id="main-container"):
            with Vertical(id="sidebar"):
                yield Label("", id="sort-label")
                yield DataTable[str](id="projects-table", cursor_type="row")
            with Vertical(id="content"):
                yield Label("Select a project to view todos", id="project-title")
                yield DataTable[str](id="sessions-table", cursor_type="row")
                with Container(id="stats-container"):
                    yield Label("", id="stats")
                yield Static("", id="todo-list", classes="spacing-none")

        yield Footer()

    def on_mount(self) -> None:
        """Load data and schedule periodic reloads."""
        self.load_projects()
        self.set_interval(self.config.list_refresh_interval, self.load_projects)

    @property
    def selected_project(self) -> Optional[Project]:
        for project in self.projects:
            if project.path == self.selected_project_path:
                return project
        return None

    @property
    def selected_session(self) -> Optional[Session]:
        project = self.selected_project
        if project is None or self.selected_session_id is None:
            return None
        return project.sessions.get(self.selected_session_id)

    def load_projects(self) -> None:
        """Re-read the snapshot files and refresh every widget."""
        projects = load_projects(self.config, self.resolver)
        self.projects = sort_projects_deep(projects, self.sort_mode)

        if self.selected_project is None:
            self.selected_project_path = (
                self.projects[0].path if self.projects else None
            )
        self.populate_projects_table()
        self.populate_sessions_table()
        self.update_todo_view()

    def populate_projects_table(self) -> None:
        """Fill the projects table, keeping the selected project highlighted."""
        label = self.query_one("#sort-label", Label)
        label.update(
            f"Projects ({len(self.projects)}) | Sort by: {self.sort_mode.label}"
        )

        table = cast(DataTable[str], self.query_one("#projects-table", DataTable))
        table.clear(columns=True)
        table.add_column("Project", width=max(20, self.size.width // 3))
        table.add_column("Sessions", width=8)
        table.add_column("Todos", width=6)
        table.add_column("Last", width=10)

        selected_index = 0
        for index, project in enumerate(self.projects):
            latest = project.latest_modified
            table.add_row(
                project.name,
                str(len(project.sessions)),
                str(project.todo_count),
                latest.strftime("%Y-%m-%d") if latest else "",
                key=project.path,
            )
            if project.path == self.selected_project_path:
                selected_index = index

        if self.projects:
            table.move_cursor(row=selected_index)

    def populate_sessions_table(self) -> None:
        """Fill the sessions table for the selected project."""
        table = cast(DataTable[str], self.query_one("#sessions-table", DataTable))
        table.clear(columns=True)
        table.add_column("Session", width=10)
        table.add_column("Todos", width=6)
        table.add_column("Updated", width=20)

        project = self.selected_project
        title = self.query_one("#project-title", Label)
        if project is None:
            title.update(
                f"Select a project to view todos ({len(self.projects)} projects with active todo lists)"
            )
            self.selected_session_id = None
            return

        title.update(escape(project.path))
        sessions = list(project.sessions.values())
        if self.selected_session_id not in project.sessions:
            self.selected_session_id = sessions[0].id if sessions else None

        selected_index = 0
        for index, session in enumerate(sessions):
            table.add_row(
                session.id,
                str(len(session.todos)),
                session.last_modified.strftime("%Y-%m-%d %H:%M:%S"),
                key=session.id,
            )
            if session.id == self.selected_session_id:
                selected_index = index

        if sessions:
            table.move_cursor(row=selected_index)

    def update_todo_view(self) -> None:
        """Show stats and todos of the selected session."""
        stats_label = self.query_one("#stats", Label)
        todo_list = self.query_one("#todo-list", Static)

        session = self.selected_session
        if session is None:
            stats_label.update("")
            todo_list.update("")
            return

        stats = session.stats
        stats_label.update(
            f"[bold]Total:[/bold] {stats.total} | "
            f"[bold green]Completed:[/] {stats.completed} | "
            f"[bold blue]Active:[/] {stats.active} | "
            f"[bold]Pending:[/bold] {stats.pending} | "
            f"[bold]Updated:[/bold] {format_clock(session.last_modified)}"
        )

        for spacing in Spacing:
            todo_list.set_class(spacing is self.spacing, f"spacing-{spacing.value}")
        todo_list.update(render_todo_list(session, self.spacing))

    def on_data_table_row_highlighted(self, event: DataTable.RowHighlighted) -> None:
        """Follow the cursor in either table."""
        key = event.row_key.value if event.row_key is not None else None
        if key is None:
            return
        if event.data_table.id == "projects-table":
            if key != self.selected_project_path:
                self.selected_project_path = key
                self.selected_session_id = None
                self.populate_sessions_table()
                self.update_todo_view()
        elif event.data_table.id == "sessions-table":
            if key != self.selected_session_id:
                self.selected_session_id = key
                self.update_todo_view()

    def action_cycle_sort(self) -> None:
        """Switch to the next project sort mode."""
        self.sort_mode = self.sort_mode.next()
        self.projects = sort_projects_deep(self.projects, self.sort_mode)
        self.populate_projects_table()

    def action_cycle_spacing(self) -> None:
        """Switch to the next todo list spacing."""
        self.spacing = self.spacing.next()
        self.update_todo_view()

    def action_reload(self) -> None:
        """Reload the snapshot files now."""
        self.load_projects()


def run_todo_browser(config: MonitorConfig) -> None:
    """Run the list view until the user quits."""
    app = TodoBrowser(config)
    try:
        app.run()
    except KeyboardInterrupt:
        # Textual handles terminal cleanup automatically
        print("\nInterrupted")
