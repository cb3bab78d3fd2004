"""Tests for nuget_release.cli."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from click.testing import CliRunner

from nuget_release.cli import cli
from nuget_release.errors import PushError, VersionParseError
from nuget_release.models import ProjectDescriptor
from nuget_release.pipeline import PublishResult

PROJECT = ProjectDescriptor(path="My.Lib.csproj", package_name="My.Lib", version="1.2.0")


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@patch("nuget_release.cli.run_publish")
@patch("nuget_release.cli.load_config")
def test_publish_runs_pipeline(
    mock_load: MagicMock, mock_run: MagicMock, runner: CliRunner
) -> None:
    mock_run.return_value = PublishResult(projects=(PROJECT,), published=(PROJECT,))

    result = runner.invoke(cli, ["publish"], env={"GITHUB_OUTPUT": ""})

    assert result.exit_code == 0
    mock_load.assert_called_once_with(config_path=None)
    mock_run.assert_called_once_with(mock_load.return_value)


@patch("nuget_release.cli.run_publish")
@patch("nuget_release.cli.load_config")
def test_publish_writes_github_outputs(
    mock_load: MagicMock, mock_run: MagicMock, runner: CliRunner, tmp_path: Path
) -> None:
    mock_run.return_value = PublishResult(projects=(PROJECT,), published=(PROJECT,))
    output = tmp_path / "github_output.txt"

    result = runner.invoke(cli, ["publish"], env={"GITHUB_OUTPUT": str(output)})

    assert result.exit_code == 0
    assert 'published=["My.Lib"]' in output.read_text()


@patch("nuget_release.cli.run_publish")
@patch("nuget_release.cli.load_config")
def test_publish_error_exits_nonzero_with_details(
    mock_load: MagicMock, mock_run: MagicMock, runner: CliRunner
) -> None:
    mock_run.side_effect = VersionParseError(
        "unable to determine version for 'My.Lib.csproj'", details="<Project />"
    )

    result = runner.invoke(cli, ["publish"])

    assert result.exit_code == 1
    assert "<Project />" in result.output
    assert "##[error]🛑 unable to determine version for 'My.Lib.csproj'" in result.output


@patch("nuget_release.cli.run_publish")
@patch("nuget_release.cli.load_config")
def test_push_error_line_reported(
    mock_load: MagicMock, mock_run: MagicMock, runner: CliRunner
) -> None:
    mock_run.side_effect = PushError("error: 409 conflict")

    result = runner.invoke(cli, ["publish"])

    assert result.exit_code == 1
    assert "error: 409 conflict" in result.output


@patch("nuget_release.cli.run_publish")
@patch("nuget_release.cli.load_config")
def test_publish_passes_config_file(
    mock_load: MagicMock, mock_run: MagicMock, runner: CliRunner, tmp_path: Path
) -> None:
    mock_run.return_value = PublishResult(projects=(PROJECT,), published=())
    config_file = tmp_path / "nuget-release.toml"
    config_file.write_text("")

    result = runner.invoke(
        cli, ["publish", "--config", str(config_file)], env={"GITHUB_OUTPUT": ""}
    )

    assert result.exit_code == 0
    mock_load.assert_called_once_with(config_path=config_file)


@patch("nuget_release.cli.run_publish")
@patch("nuget_release.cli.load_config")
def test_plan_is_a_dry_run(
    mock_load: MagicMock, mock_run: MagicMock, runner: CliRunner
) -> None:
    mock_run.return_value = PublishResult(projects=(PROJECT,), published=(PROJECT,))

    result = runner.invoke(cli, ["plan"])

    assert result.exit_code == 0
    mock_run.assert_called_once_with(mock_load.return_value, dry_run=True)
    assert "Would publish:" in result.output
    assert "My.Lib 1.2.0" in result.output


@patch("nuget_release.cli.run_publish")
@patch("nuget_release.cli.load_config")
def test_plan_nothing_to_publish(
    mock_load: MagicMock, mock_run: MagicMock, runner: CliRunner
) -> None:
    mock_run.return_value = PublishResult(projects=(PROJECT,), published=())

    result = runner.invoke(cli, ["plan"])

    assert result.exit_code == 0
    assert "Nothing to publish." in result.output


@patch("nuget_release.cli.run_publish")
@patch("nuget_release.cli.load_config")
def test_plan_error_exits_nonzero(
    mock_load: MagicMock, mock_run: MagicMock, runner: CliRunner
) -> None:
    mock_run.side_effect = VersionParseError("unable to read 'My.Lib.csproj'")

    result = runner.invoke(cli, ["plan"])

    assert result.exit_code == 1
    assert not isinstance(result.exception, UnboundLocalError)
    assert "##[error]🛑 unable to read 'My.Lib.csproj'" in result.output
    assert "Would publish:" not in result.output
