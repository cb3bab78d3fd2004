"""CLI entry point for nuget-release."""

from __future__ import annotations

import os
from pathlib import Path

import click

from nuget_release.config import load_config
from nuget_release.errors import PublishError
from nuget_release.pipeline import run_publish, write_github_outputs
from nuget_release.shell import fatal

config_option = click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="TOML file with settings; environment variables take precedence.",
)


@click.group()
@click.version_option(package_name="nuget-release")
def cli() -> None:
    """Publish NuGet packages whose version is not on the registry yet."""


@cli.command()
@config_option
def publish(config_path: Path | None) -> None:
    """Run the publish pipeline (usually called from CI)."""
    try:
        config = load_config(config_path=config_path)
        result = run_publish(config)
    except PublishError as exc:
        fatal(str(exc), exc.details)

    if os.environ.get("GITHUB_OUTPUT"):
        write_github_outputs(os.environ["GITHUB_OUTPUT"], result)


@cli.command()
@config_option
def plan(config_path: Path | None) -> None:
    """Show which packages would be published, without side effects."""
    try:
        config = load_config(config_path=config_path)
        result = run_publish(config, dry_run=True)
    except PublishError as exc:
        fatal(str(exc), exc.details)

    click.echo()
    if result.published:
        click.echo("Would publish:")
        for project in result.published:
            click.echo(f"  {project.package_name} {project.version}")
    else:
        click.echo("Nothing to publish.")
