"""
Tests for global.json discovery.
"""

import json

import pytest

from dotnetkit.core.exceptions import ProjectConfigError, ProjectConfigNotFoundError
from dotnetkit.releases.global_json import (
    find_global_json,
    read_sdk_version,
    resolve_project_expression,
)


def write_global_json(directory, version="9.0.100"):
    path = directory / "global.json"
    path.write_text(json.dumps({"sdk": {"version": version, "rollForward": "latestFeature"}}))
    return path


class TestFindGlobalJson:
    """Test walking parent directories."""

    def test_in_start_directory(self, tmp_path):
        """Test a file in the start directory is found."""
        path = write_global_json(tmp_path)
        assert find_global_json(tmp_path) == path.resolve()

    def test_in_ancestor(self, tmp_path):
        """Test a file in an ancestor directory is found."""
        path = write_global_json(tmp_path)
        nested = tmp_path / "src" / "app" / "tests"
        nested.mkdir(parents=True)

        assert find_global_json(nested) == path.resolve()

    def test_nearest_wins(self, tmp_path):
        """Test the nearest file shadows ones further up."""
        write_global_json(tmp_path, "8.0.100")
        nested = tmp_path / "src"
        nested.mkdir()
        nearest = write_global_json(nested, "9.0.100")

        assert find_global_json(nested / ".") == nearest.resolve()

    def test_directory_named_global_json_ignored(self, tmp_path):
        """Test a directory named global.json is not a match."""
        write_global_json(tmp_path)
        nested = tmp_path / "src"
        (nested / "global.json").mkdir(parents=True)

        assert find_global_json(nested) == (tmp_path / "global.json").resolve()

    def test_not_found(self, tmp_path, monkeypatch):
        """Test reaching the root without a file is a hard failure."""
        monkeypatch.setattr("pathlib.Path.is_file", lambda self: False)

        with pytest.raises(ProjectConfigNotFoundError) as exc_info:
            find_global_json(tmp_path)

        assert exc_info.value.start_dir == tmp_path.resolve()

    def test_defaults_to_cwd(self, tmp_path, monkeypatch):
        """Test the search starts at the working directory by default."""
        path = write_global_json(tmp_path)
        monkeypatch.chdir(tmp_path)

        assert find_global_json() == path.resolve()


class TestReadSdkVersion:
    """Test reading sdk.version."""

    def test_read(self, tmp_path):
        """Test the version is returned."""
        assert read_sdk_version(write_global_json(tmp_path, "8.0.415")) == "8.0.415"

    def test_utf8_bom(self, tmp_path):
        """Test files saved with a UTF-8 BOM are accepted."""
        path = tmp_path / "global.json"
        path.write_bytes(b'\xef\xbb\xbf{"sdk": {"version": "9.0.100"}}')

        assert read_sdk_version(path) == "9.0.100"

    def test_invalid_json(self, tmp_path):
        """Test malformed JSON raises ProjectConfigError."""
        path = tmp_path / "global.json"
        path.write_text("{sdk: ")

        with pytest.raises(ProjectConfigError, match="Invalid JSON"):
            read_sdk_version(path)

    @pytest.mark.parametrize(
        "document",
        [{}, {"sdk": {}}, {"sdk": "9.0.100"}, {"sdk": {"version": ""}}, {"sdk": {"version": 9}}, []],
    )
    def test_missing_version(self, tmp_path, document):
        """Test files without sdk.version raise ProjectConfigError."""
        path = tmp_path / "global.json"
        path.write_text(json.dumps(document))

        with pytest.raises(ProjectConfigError, match="sdk.version"):
            read_sdk_version(path)


class TestResolveProjectExpression:
    """Test resolve_project_expression."""

    def test_returns_expression(self, tmp_path):
        """Test the version string is returned unchanged."""
        write_global_json(tmp_path, "9.0.1xx")
        assert resolve_project_expression(tmp_path) == "9.0.1xx"
