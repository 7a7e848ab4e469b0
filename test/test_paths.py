#!/usr/bin/env python3
"""Tests for project path flattening and session-to-project resolution."""

from pathlib import Path

import pytest

from claude_todo_monitor.paths import (
    ProjectResolver,
    flatten_project_path,
    unflatten_project_dir,
)


class TestFlattenProjectPath:
    """Test conversion of project paths to index directory names."""

    def test_unix_path(self):
        assert flatten_project_path("/home/alice/proj") == "-home-alice-proj"

    def test_windows_path(self):
        assert flatten_project_path("C:\\Users\\alice\\proj") == "C--Users-alice-proj"

    def test_windows_path_with_forward_slashes(self):
        assert flatten_project_path("D:/work/app") == "D--work-app"

    def test_trailing_separator_is_ignored(self):
        assert flatten_project_path("/home/alice/proj/") == "-home-alice-proj"


class TestUnflattenProjectDir:
    """Test the best-effort reverse conversion."""

    def test_unix_directory_name(self):
        assert unflatten_project_dir("-home-alice-proj") == "/home/alice/proj"

    def test_unix_directory_ignores_separator_argument(self):
        assert unflatten_project_dir("-home-alice-proj", sep="\\") == "/home/alice/proj"

    def test_windows_directory_name(self):
        assert (
            unflatten_project_dir("C--Users-alice-proj", sep="\\")
            == "C:\\Users\\alice\\proj"
        )

    def test_windows_directory_name_with_posix_separator(self):
        assert unflatten_project_dir("C--Users-alice", sep="/") == "C:/Users/alice"

    def test_opaque_name(self):
        assert unflatten_project_dir("some-project", sep="/") == "some/project"

    @pytest.mark.parametrize(
        "project_path, sep",
        [
            ("/home/alice/proj", "/"),
            ("/srv/app", "/"),
            ("C:\\Users\\alice\\proj", "\\"),
            ("E:\\code", "\\"),
        ],
    )
    def test_round_trip_without_dashes(self, project_path: str, sep: str):
        assert unflatten_project_dir(flatten_project_path(project_path), sep) == (
            project_path
        )

    def test_dash_in_segment_is_lossy(self):
        flattened = flatten_project_path("/home/alice/my-proj")
        assert unflatten_project_dir(flattened) == "/home/alice/my/proj"


class TestProjectResolver:
    """Test finding the project of a session through the index directories."""

    def _make_project(self, projects_dir: Path, name: str, *files: str) -> Path:
        project_dir = projects_dir / name
        project_dir.mkdir(parents=True)
        for file_name in files:
            (project_dir / file_name).write_text("{}\n", encoding="utf-8")
        return project_dir

    def test_resolves_session_to_project_path(self, tmp_path: Path):
        projects_dir = tmp_path / "projects"
        self._make_project(projects_dir, "-home-alice-proj", "abcd1234-full.jsonl")
        self._make_project(projects_dir, "-home-alice-other", "ffff0000.jsonl")

        resolver = ProjectResolver(projects_dir)

        assert resolver.find_project_for_session("abcd1234") == "/home/alice/proj"
        assert resolver.find_project_dir("ffff0000") == projects_dir / "-home-alice-other"

    def test_windows_index_directory(self, tmp_path: Path):
        projects_dir = tmp_path / "projects"
        self._make_project(projects_dir, "C--Users-alice-proj", "s1.jsonl")

        resolver = ProjectResolver(projects_dir, sep="\\")

        assert resolver.find_project_for_session("s1") == "C:\\Users\\alice\\proj"

    def test_unknown_session(self, tmp_path: Path):
        projects_dir = tmp_path / "projects"
        self._make_project(projects_dir, "-home-alice-proj", "abcd.jsonl")

        assert ProjectResolver(projects_dir).find_project_for_session("zzzz") is None

    def test_missing_index_directory(self, tmp_path: Path):
        resolver = ProjectResolver(tmp_path / "does-not-exist")
        assert resolver.find_project_for_session("abcd") is None

    def test_empty_session_id_never_matches(self, tmp_path: Path):
        projects_dir = tmp_path / "projects"
        self._make_project(projects_dir, "-home-alice-proj", "abcd.jsonl")

        assert ProjectResolver(projects_dir).find_project_for_session("") is None

    def test_plain_files_in_index_are_ignored(self, tmp_path: Path):
        projects_dir = tmp_path / "projects"
        projects_dir.mkdir()
        (projects_dir / "abcd.jsonl").write_text("{}\n", encoding="utf-8")

        assert ProjectResolver(projects_dir).find_project_for_session("abcd") is None
