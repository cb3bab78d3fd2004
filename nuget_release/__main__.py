from nuget_release.cli import cli

cli()
