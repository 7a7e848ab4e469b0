#!/usr/bin/env python3
"""Tests for the text layout of the terminal monitor."""

from datetime import datetime
from pathlib import Path

import click
from rich.cells import cell_len

from claude_todo_monitor.formatting import (
    format_body,
    format_header,
    format_project_line,
    format_status_line,
    format_todo_line,
    truncate,
)
from claude_todo_monitor.models import CurrentTodos, Project, Session, Todo

UPDATED_AT = datetime(2025, 6, 1, 14, 5, 9)


def _plain(lines: list[str]) -> list[str]:
    return [click.unstyle(line) for line in lines]


def _project() -> Project:
    path = Path("/tmp/s.json")
    session = Session(
        id="abcd1234",
        full_id="abcd1234-ffff",
        todos=[
            Todo(content="Done thing", status="completed"),
            Todo(content="Fix parser", status="in_progress", activeForm="Fixing parser"),
            Todo(content="Later thing"),
        ],
        last_modified=UPDATED_AT,
        source_file=path,
        source_files=[path],
    )
    return Project(path="/home/alice/proj", sessions={session.id: session})


class TestTruncate:
    def test_short_text_unchanged(self):
        assert truncate("hello", 10) == "hello"

    def test_long_text_gets_ellipsis(self):
        assert truncate("hello world", 6) == "hello…"

    def test_non_positive_width(self):
        assert truncate("hello", 0) == ""

    def test_wide_characters_count_two_cells(self):
        text = truncate("修复" * 30, 39)

        assert cell_len(text) <= 39
        assert text.endswith("…")

    def test_wide_character_fitting_exactly(self):
        assert truncate("修复", 4) == "修复"
        assert truncate("修复", 3) == "修…"


class TestFormatHeader:
    """Test the static header block."""

    def test_waiting_without_current_file(self):
        lines = _plain(format_header(None, 80))

        assert "CLAUDE CODE TODO MONITOR" in lines[1]
        assert lines[4] == "Waiting for TodoWrite events from Claude Code..."
        assert lines[5].startswith("Legend: ✓ Completed | ▶ Active | ○ Pending")
        assert lines[-1] == ""

    def test_session_line(self):
        current = CurrentTodos(session_id="0123456789abcdef", cwd="/home/alice/proj")

        lines = _plain(format_header(current, 80))

        assert lines[4] == "Session: 01234567... | Directory: proj"

    def test_polling_note(self):
        without = format_header(None, 80)
        with_note = _plain(format_header(None, 80, polling=True))

        assert len(with_note) == len(without) + 1
        assert any("polling" in line for line in with_note)

    def test_lines_fit_narrow_terminal(self):
        for line in _plain(format_header(None, 30, polling=True)):
            assert len(line) < 30


class TestFormatStatusLine:
    """Test the status line rewritten by countdown ticks."""

    def test_with_todos(self):
        line = click.unstyle(format_status_line(3, UPDATED_AT, 100, remaining=7.2))
        assert line == "Current Todos (3) | Updated: 14:05:09 | Next refresh in 7s"

    def test_without_todos(self):
        line = click.unstyle(format_status_line(0, UPDATED_AT, 100))
        assert line == "No todos found | Last update: 14:05:09"

    def test_negative_remaining_shows_zero(self):
        line = click.unstyle(format_status_line(1, UPDATED_AT, 100, remaining=-0.4))
        assert line.endswith("Next refresh in 0s")


class TestFormatLines:
    def test_in_progress_shows_active_form(self):
        line = click.unstyle(
            format_todo_line(
                Todo(content="Fix parser", status="in_progress", activeForm="Fixing parser"),
                80,
            )
        )
        assert line == "    ▶ Fixing parser"

    def test_unknown_status_uses_pending_icon(self):
        line = click.unstyle(format_todo_line(Todo(content="x", status="odd"), 80))
        assert line == "    ○ x"

    def test_completed_is_struck_through(self):
        line = format_todo_line(Todo(content="x", status="completed"), 80)
        assert "\x1b[9m" in line

    def test_project_line(self):
        line = click.unstyle(format_project_line(_project(), 120))
        assert line.startswith("▸ proj  (/home/alice/proj)  1 session")
        assert line.endswith("✓1 ▶1 ○1")


class TestFormatBody:
    """Test the complete body layout."""

    def test_status_line_comes_first(self):
        lines = _plain(format_body([_project()], 100, UPDATED_AT, remaining=10))

        assert lines[0].startswith("Current Todos (3)")
        assert lines[1] == ""
        assert lines[2].startswith("▸ proj")
        assert lines[3].startswith("  Session abcd1234")
        assert lines[4:] == [
            "    ✓ Done thing",
            "    ▶ Fixing parser",
            "    ○ Later thing",
        ]

    def test_empty(self):
        lines = _plain(format_body([], 100, UPDATED_AT))
        assert lines == ["No todos found | Last update: 14:05:09"]

    def test_no_line_reaches_last_column(self):
        long_todo = Todo(content="x" * 300)
        project = _project()
        project.sessions["abcd1234"].todos.append(long_todo)

        for line in _plain(format_body([project], 40, UPDATED_AT)):
            assert cell_len(line) <= 39

    def test_wide_character_lines_fit_the_width(self):
        project = _project()
        project.sessions["abcd1234"].todos.append(Todo(content="修复" * 30))
        project.sessions["abcd1234"].todos.append(Todo(content="🚀 ship it " * 10))

        for line in _plain(format_body([project], 40, UPDATED_AT)):
            assert cell_len(line) <= 39

    def test_wide_todo_line(self):
        line = click.unstyle(format_todo_line(Todo(content="修复" * 30), 40))

        assert cell_len(line) <= 39
        assert line.startswith("    ○ 修复")
