"""Run configuration.

Configuration is assembled once at startup from (in increasing precedence)
defaults, an optional TOML file and the environment, then frozen and passed
to every stage. Environment keys are looked up as ``INPUT_<KEY>`` first (the
GitHub Actions input convention) and then as ``<KEY>``.
"""

from __future__ import annotations

import os
import re
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import tomlkit
from tomlkit.exceptions import ParseError
from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from .errors import ConfigurationError
from .models import VersionSuffixRule
from .registry import DEFAULT_TIMEOUT
from .shell import git
from .versions import DEFAULT_VERSION_REGEX, compile_version_regex

DEFAULT_SOURCE = "https://api.nuget.org"

# Config keys as they appear in the environment (upper-case) and in TOML
# files (lower-case).
KEYS = (
    "NUGET_SOURCE",
    "NUGET_KEY",
    "PROJECT_FILE_PATHS",
    "VERSION_REGEX",
    "INCLUDE_SYMBOLS",
    "TAG_COMMIT",
    "TAG_FORMAT",
    "BRANCH_VERSION_SUFFIXES",
    "REPO_TOKEN",
    "COMMIT_SHA",
    "HTTP_TIMEOUT",
)


def split_csv(value: Any) -> Any:
    """Split a comma-separated string, trimming whitespace and dropping empties.

    Non-string values (e.g., TOML arrays) are returned unchanged.
    """
    if isinstance(value, str):
        return [part.strip() for part in value.split(",") if part.strip()]
    return value


def parse_suffix_rules(value: Any) -> Any:
    """Parse ``branch=template`` entries into rule mappings.

    Accepts a comma-separated string, a list of such strings, or a TOML
    table mapping branch → template.

    Example:
        "develop=pre-{yyMMdd}-*,release/=rc-*" →
        [{"branch_pattern": "develop", "template": "pre-{yyMMdd}-*"},
         {"branch_pattern": "release/", "template": "rc-*"}]
    """
    if isinstance(value, Mapping):
        return [
            {"branch_pattern": str(branch), "template": str(template)}
            for branch, template in value.items()
        ]
    entries = split_csv(value)
    if not isinstance(entries, list):
        return entries
    rules: list[Any] = []
    for entry in entries:
        if not isinstance(entry, str):
            rules.append(entry)
            continue
        branch, sep, template = entry.partition("=")
        if not sep or not branch.strip():
            raise ValueError(f"expected 'branch=template', got {entry!r}")
        rules.append({"branch_pattern": branch.strip(), "template": template.strip()})
    return rules


class PublishConfig(BaseModel):
    """Immutable settings for one publish run.

    Attributes:
        nuget_source: Registry base URL.
        nuget_key: Registry push credential.
        project_file_paths: Manifests to publish, in order. The first one
            supplies the version embedded in the release tag.
        version_regex: Pattern used to pull the version out of a manifest.
        include_symbols: Build and push symbol packages (.snupkg).
        tag_commit: Branches whose commits get a release tag.
        tag_format: Tag template; ``*`` is replaced with the version.
        branch_version_suffixes: Per-branch suffix templates.
        repo_token: Credential for tag creation.
        commit_sha: Commit being released.
        branch: Branch being released, if known.
        repository: ``owner/repo`` slug used for the tagging API.
        http_timeout: Registry request timeout in seconds.
    """

    model_config = ConfigDict(frozen=True)

    nuget_source: str = DEFAULT_SOURCE
    nuget_key: str
    project_file_paths: tuple[str, ...]
    version_regex: str = DEFAULT_VERSION_REGEX
    include_symbols: bool = False
    tag_commit: tuple[str, ...] = ()
    tag_format: str = "v*"
    branch_version_suffixes: tuple[VersionSuffixRule, ...] = ()
    repo_token: str | None = None
    commit_sha: str | None = None
    branch: str | None = None
    repository: str | None = None
    http_timeout: float = DEFAULT_TIMEOUT

    @field_validator("project_file_paths", "tag_commit", mode="before")
    @classmethod
    def _split_lists(cls, value: Any) -> Any:
        return split_csv(value)

    @field_validator("branch_version_suffixes", mode="before")
    @classmethod
    def _parse_rules(cls, value: Any) -> Any:
        return parse_suffix_rules(value)

    @field_validator("project_file_paths")
    @classmethod
    def _require_projects(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        if not value:
            raise ValueError("at least one project file path is required")
        return value

    @field_validator("version_regex")
    @classmethod
    def _check_regex(cls, value: str) -> str:
        try:
            compile_version_regex(value)
        except re.error as exc:
            raise ValueError(f"invalid version regex {value!r}: {exc}") from exc
        return value

    @field_validator("http_timeout")
    @classmethod
    def _positive_timeout(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("http_timeout must be positive")
        return value

    @property
    def push_source(self) -> str:
        """V3 service index URL that ``dotnet nuget push`` expects."""
        return f"{self.nuget_source.rstrip('/')}/v3/index.json"


def load_toml_config(path: Path) -> dict[str, Any]:
    """Read a TOML config file into a plain dict with lower-case keys."""
    if not path.exists():
        raise ConfigurationError(f"config file not found: {path}")
    try:
        doc = tomlkit.parse(path.read_text())
    except ParseError as exc:
        raise ConfigurationError(f"invalid config file {path}: {exc}") from exc
    data = doc.unwrap()
    unknown = sorted(k for k in data if k.upper() not in KEYS)
    if unknown:
        raise ConfigurationError(
            f"unknown keys in {path}: {', '.join(unknown)}"
        )
    return {k.lower(): v for k, v in data.items()}


def read_env(env: Mapping[str, str]) -> dict[str, str]:
    """Collect config keys from the environment.

    ``INPUT_<KEY>`` wins over ``<KEY>``; empty values count as unset, since
    Actions passes unset inputs as empty strings.
    """
    values: dict[str, str] = {}
    for key in KEYS:
        value = env.get(f"INPUT_{key}") or env.get(key)
        if value:
            values[key.lower()] = value
    return values


def detect_branch(env: Mapping[str, str]) -> str | None:
    """Current branch from the CI environment, falling back to git."""
    if env.get("GITHUB_REF_NAME"):
        return env["GITHUB_REF_NAME"]
    ref = env.get("GITHUB_REF", "")
    if ref.startswith("refs/heads/"):
        return ref[len("refs/heads/") :]
    branch = _git_or_none("rev-parse", "--abbrev-ref", "HEAD")
    return branch if branch and branch != "HEAD" else None


def detect_commit(env: Mapping[str, str]) -> str | None:
    """Triggering commit from the CI environment, falling back to git."""
    return env.get("GITHUB_SHA") or _git_or_none("rev-parse", "HEAD")


def _git_or_none(*args: str) -> str | None:
    """Stripped git output, or None outside a repository or without git."""
    try:
        return git(*args, check=False) or None
    except OSError:
        return None


def load_config(
    env: Mapping[str, str] | None = None, config_path: Path | None = None
) -> PublishConfig:
    """Build the run configuration.

    Args:
        env: Environment mapping; defaults to ``os.environ``.
        config_path: Optional TOML file with lower-case config keys.

    Raises:
        ConfigurationError: If required values are missing or malformed.
    """
    env = os.environ if env is None else env
    values: dict[str, Any] = {}
    if config_path is not None:
        values.update(load_toml_config(config_path))
    values.update(read_env(env))

    if not values.get("commit_sha"):
        values["commit_sha"] = detect_commit(env)
    values["branch"] = detect_branch(env)
    values["repository"] = env.get("GITHUB_REPOSITORY") or None

    try:
        return PublishConfig(**values)
    except ValidationError as exc:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or 'config'}: {err['msg']}"
            for err in exc.errors()
        )
        raise ConfigurationError(f"invalid configuration: {problems}") from exc
