"""Shared test fixtures."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest

from nuget_release.config import PublishConfig

COMMIT_SHA = "abc1234567890def1234567890abcdef12345678"


def csproj(version: str) -> str:
    return f"""\
<Project Sdk="Microsoft.NET.Sdk">
  <PropertyGroup>
    <TargetFramework>net8.0</TargetFramework>
    <Version>{version}</Version>
  </PropertyGroup>
</Project>
"""


@pytest.fixture
def write_manifest(tmp_path: Path) -> Callable[[str, str], Path]:
    """Factory writing a .csproj with the given version into tmp_path."""

    def _write(name: str, version: str) -> Path:
        path = tmp_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(csproj(version))
        return path

    return _write


@pytest.fixture
def make_config() -> Callable[..., PublishConfig]:
    """Factory for a PublishConfig with sensible CI-like defaults."""

    def _make(**overrides) -> PublishConfig:
        values = {
            "nuget_source": "https://nuget.example.org",
            "nuget_key": "secret-key",
            "project_file_paths": ("My.Lib.csproj",),
            "commit_sha": COMMIT_SHA,
            "branch": "main",
            "repository": "acme/widgets",
            "repo_token": "repo-token",
        }
        values.update(overrides)
        return PublishConfig(**values)

    return _make
