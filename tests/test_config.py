"""Tests for credentials and project config loading."""

import json

import pytest

from clockhand.config import (
    expand_config_paths,
    load_access_token,
    load_watch_list,
    project_root_for,
    read_project_config,
)
from clockhand.errors import ConfigInvalid


def _write(path, data):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(data if isinstance(data, str) else json.dumps(data))
    return path


class TestAccessToken:
    def test_valid(self, tmp_path):
        path = _write(tmp_path / "access-token.json", {"token": "abc", "account_id": 456})
        token = load_access_token(path)
        assert token.token == "abc"
        assert token.account_id == 456

    def test_missing_file_explains_setup(self, tmp_path):
        with pytest.raises(ConfigInvalid, match="id.getharvest.com/developers"):
            load_access_token(tmp_path / "nope.json")

    def test_bad_format(self, tmp_path):
        path = _write(tmp_path / "access-token.json", {"token": "abc"})
        with pytest.raises(ConfigInvalid, match="bad format"):
            load_access_token(path)


class TestProjectConfig:
    def test_root_is_config_dir(self, tmp_path):
        path = _write(tmp_path / "acme" / "clockhand.json", {"harvest_project_id": 1, "name": "Acme"})
        project = read_project_config(path)
        assert project.root == (tmp_path / "acme").resolve()
        assert project.project_id == 1
        assert project.name == "Acme"
        assert project.task_id is None

    def test_dot_config_dir_uses_parent(self, tmp_path):
        path = _write(tmp_path / "acme" / ".config" / "clockhand.json", {"harvest_project_id": 1, "name": "Acme"})
        assert project_root_for(path) == (tmp_path / "acme").resolve()

    def test_task_id(self, tmp_path):
        path = _write(
            tmp_path / "clockhand.json",
            {"harvest_project_id": 1, "name": "Acme", "harvest_task_id": 9},
        )
        assert read_project_config(path).task_id == 9

    def test_malformed_json(self, tmp_path):
        path = _write(tmp_path / "clockhand.json", "{not json")
        with pytest.raises(ConfigInvalid, match="bad format"):
            read_project_config(path)

    def test_missing_field(self, tmp_path):
        path = _write(tmp_path / "clockhand.json", {"name": "Acme"})
        with pytest.raises(ConfigInvalid):
            read_project_config(path)


class TestWatchList:
    def test_glob_expands_every_match(self, tmp_path):
        for name in ("a", "b", "c"):
            _write(tmp_path / name / "clockhand.json", {"harvest_project_id": 1, "name": name})
        projects, errors = load_watch_list([str(tmp_path / "*" / "clockhand.json")])
        assert [p.name for p in projects] == ["a", "b", "c"]
        assert errors == []

    def test_overlapping_patterns_are_not_deduplicated(self, tmp_path):
        path = _write(tmp_path / "a" / "clockhand.json", {"harvest_project_id": 1, "name": "a"})
        projects, _ = load_watch_list([str(path), str(tmp_path / "*" / "clockhand.json")])
        assert [p.name for p in projects] == ["a", "a"]

    def test_invalid_entry_does_not_block_others(self, tmp_path):
        good = _write(tmp_path / "good" / "clockhand.json", {"harvest_project_id": 1, "name": "good"})
        bad = _write(tmp_path / "bad" / "clockhand.json", "[]")
        projects, errors = load_watch_list([str(bad), str(good), str(tmp_path / "missing.json")])
        assert [p.name for p in projects] == ["good"]
        assert len(errors) == 2
        assert all(isinstance(e, ConfigInvalid) for e in errors)

    def test_glob_without_matches_is_error(self, tmp_path):
        projects, errors = load_watch_list([str(tmp_path / "*" / "clockhand.json")])
        assert projects == []
        assert "no config files match" in str(errors[0])

    def test_directory_argument(self, tmp_path):
        _write(tmp_path / "acme" / ".config" / "clockhand.json", {"harvest_project_id": 1, "name": "acme"})
        assert expand_config_paths(str(tmp_path / "acme")) == [tmp_path / "acme" / ".config" / "clockhand.json"]

    def test_home_expansion(self, tmp_path, monkeypatch):
        monkeypatch.setenv("HOME", str(tmp_path))
        _write(tmp_path / "code" / "x" / "clockhand.json", {"harvest_project_id": 1, "name": "x"})
        projects, errors = load_watch_list(["~/code/*/clockhand.json"])
        assert [p.name for p in projects] == ["x"]
