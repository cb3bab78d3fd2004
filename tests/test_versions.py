"""Tests for nuget_release.versions."""

from __future__ import annotations

from pathlib import Path

import pytest

from nuget_release.errors import ProjectNotFoundError, VersionParseError
from nuget_release.versions import (
    DEFAULT_VERSION_REGEX,
    clean_prerelease,
    extract_version,
    load_project,
    match_version,
    package_name_for,
    prerelease_version,
)


class TestMatchVersion:
    def test_default_pattern_reads_csproj_version(self) -> None:
        text = "<Project>\n  <Version>1.2.0</Version>\n</Project>\n"
        result = match_version(DEFAULT_VERSION_REGEX, text)
        assert result.found
        assert result.value == "1.2.0"

    def test_case_insensitive(self) -> None:
        text = "<project>\n  <VERSION>3.1.4</VERSION>\n</project>\n"
        assert match_version(DEFAULT_VERSION_REGEX, text).value == "3.1.4"

    def test_first_group_wins(self) -> None:
        result = match_version(r"version\s*=\s*\"([^\"]+)\"", 'name = "x"\nversion = "0.9.1"\n')
        assert result.value == "0.9.1"

    def test_pattern_without_groups_uses_whole_match(self) -> None:
        result = match_version(r"\d+\.\d+\.\d+", "release 4.5.6 notes")
        assert result.value == "4.5.6"

    def test_strips_whitespace(self) -> None:
        text = "  <Version> 2.0.0 </Version>\n"
        assert match_version(DEFAULT_VERSION_REGEX, text).value == "2.0.0"

    def test_no_match(self) -> None:
        result = match_version(DEFAULT_VERSION_REGEX, "<Project></Project>")
        assert not result.found
        assert result.value is None


class TestPackageNameFor:
    def test_strips_final_extension(self) -> None:
        assert package_name_for("src/My.Lib/My.Lib.csproj") == "My.Lib"

    def test_plain_name(self) -> None:
        assert package_name_for("Tool.fsproj") == "Tool"


class TestExtractVersion:
    def test_reads_version(self, write_manifest) -> None:
        path = write_manifest("App.csproj", "1.2.0")
        assert extract_version(str(path), DEFAULT_VERSION_REGEX) == "1.2.0"

    def test_mismatch_includes_file_contents(self, tmp_path: Path) -> None:
        path = tmp_path / "App.csproj"
        path.write_text("<Project><PropertyGroup/></Project>")

        with pytest.raises(VersionParseError) as excinfo:
            extract_version(str(path), DEFAULT_VERSION_REGEX)

        assert "App.csproj" in str(excinfo.value)
        assert excinfo.value.details == "<Project><PropertyGroup/></Project>"


class TestLoadProject:
    def test_builds_descriptor(self, write_manifest) -> None:
        path = write_manifest("src/My.Lib.csproj", "2.3.4")

        project = load_project(str(path), DEFAULT_VERSION_REGEX)

        assert project.path == str(path)
        assert project.package_name == "My.Lib"
        assert project.version == "2.3.4"

    def test_missing_project_lists_working_directory(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        (tmp_path / "Other.csproj").write_text("")
        monkeypatch.chdir(tmp_path)

        with pytest.raises(ProjectNotFoundError) as excinfo:
            load_project("Missing.csproj", DEFAULT_VERSION_REGEX)

        assert "Missing.csproj" in str(excinfo.value)
        assert "-> Other.csproj" in excinfo.value.details


class TestPrereleaseVersion:
    def test_semver_version(self) -> None:
        assert prerelease_version("1.2.0", "pre-240305-abc1234") == "1.2.0-pre-240305-abc1234"

    def test_replaces_existing_prerelease(self) -> None:
        assert prerelease_version("1.2.0-rc1", "nightly") == "1.2.0-nightly"

    def test_four_part_version_appends(self) -> None:
        assert prerelease_version("1.2.3.4", "ci") == "1.2.3.4-ci"

    def test_leading_separator_trimmed(self) -> None:
        assert prerelease_version("1.0.0", "-beta") == "1.0.0-beta"

    def test_empty_suffix_keeps_version(self) -> None:
        assert prerelease_version("1.0.0", "") == "1.0.0"

    def test_clean_prerelease_replaces_invalid_characters(self) -> None:
        assert clean_prerelease("feature_x+1") == "feature-x-1"


class TestExtractVersionUnreadable:
    def test_non_utf8_manifest(self, tmp_path: Path) -> None:
        path = tmp_path / "App.csproj"
        path.write_text("<Project>\n  <Version>1.2.0</Version>\n</Project>\n", encoding="utf-16")

        with pytest.raises(VersionParseError, match="decode") as excinfo:
            extract_version(str(path), DEFAULT_VERSION_REGEX)

        assert "App.csproj" in str(excinfo.value)
        assert excinfo.value.details

    def test_directory_path(self, tmp_path: Path) -> None:
        (tmp_path / "App.csproj").mkdir()

        with pytest.raises(VersionParseError, match="unable to read"):
            extract_version(str(tmp_path / "App.csproj"), DEFAULT_VERSION_REGEX)

    def test_byte_order_mark_is_dropped(self, tmp_path: Path) -> None:
        path = tmp_path / "App.csproj"
        path.write_text("<Version>1.2.0</Version>\n", encoding="utf-8-sig")

        assert extract_version(str(path), r"\A<Version>(.*)</Version>") == "1.2.0"
