"""Publish pipeline: extract → compare → tag → build → pack → push.

This module orchestrates a nuget-release run:
1. Extract the declared version from every manifest
2. Ask the registry which of those versions already exist
3. Keep only the projects whose version is new
4. On taggable branches, tag the commit (refusing duplicate tag names)
5. Build and pack each new project with the dotnet CLI
6. Push every produced package in a single ``dotnet nuget push``

Each stage raises a PublishError subclass on failure, which aborts the run.
"""

from __future__ import annotations

import json
import re
from collections.abc import Callable, Sequence
from datetime import datetime, timezone
from pathlib import Path

from pydantic import BaseModel, ConfigDict

from .config import PublishConfig
from .errors import BuildError, ConfigurationError, PushError
from .models import ProjectDescriptor, TagSpec
from .registry import fetch_remote_versions
from .shell import run, run_captured, step
from .tagging import tag_release
from .tags import branch_suffix, build_tag, is_taggable
from .versions import load_project, prerelease_version

ARTIFACT_SUFFIXES = (".nupkg", ".snupkg")
_ERROR_LINE_RE = re.compile(r"^.*error.*$", re.MULTILINE)


class PublishResult(BaseModel):
    """Outcome of a run.

    Attributes:
        projects: Every configured project, in input order.
        published: Projects that were built and pushed (the publish decision).
        tag: The release tag, if the branch is taggable.
        tag_created: Whether the tag was actually created.
    """

    model_config = ConfigDict(frozen=True)

    projects: tuple[ProjectDescriptor, ...]
    published: tuple[ProjectDescriptor, ...]
    tag: TagSpec | None = None
    tag_created: bool = False


def load_projects(config: PublishConfig) -> list[ProjectDescriptor]:
    """Extract the declared version of every configured manifest."""
    step("Extracting project versions")
    return [
        load_project(path, config.version_regex) for path in config.project_file_paths
    ]


def plan_publish(
    projects: Sequence[ProjectDescriptor],
    remote_versions: Callable[[str], set[str]],
) -> list[ProjectDescriptor]:
    """Select the projects whose version is not yet on the registry.

    Args:
        projects: Projects in input order.
        remote_versions: Returns the registry's version set for a package
            name. Called once per project, in order.

    Returns:
        Projects needing publication, preserving input order.
    """
    step("Checking registry for existing versions")

    decision: list[ProjectDescriptor] = []
    for project in projects:
        known = {v.lower() for v in remote_versions(project.package_name)}
        if project.version.lower() in known:
            print(f"  {project.package_name} {project.version}: already published")
        else:
            print(f"  {project.package_name} {project.version}: needs publishing")
            decision.append(project)
    return decision


def compute_release_tag(
    config: PublishConfig,
    projects: Sequence[ProjectDescriptor],
    now: datetime,
) -> TagSpec | None:
    """Compute the release tag for this run, or None if the branch is not taggable.

    The tag embeds the version of the first configured project.
    """
    if not is_taggable(config.branch, config.tag_commit):
        return None
    suffix = current_suffix(config, now)
    return build_tag(config.tag_format, projects[0].version, suffix)


def current_suffix(config: PublishConfig, now: datetime) -> str:
    """Branch suffix for this run ("" when no rule applies)."""
    if not config.branch:
        return ""
    return branch_suffix(
        config.branch_version_suffixes, config.branch, now, config.commit_sha or ""
    )


def find_artifacts(directory: Path) -> list[Path]:
    """Package files (.nupkg/.snupkg) in a directory, sorted by name."""
    return sorted(
        p
        for p in directory.iterdir()
        if p.is_file() and p.name.endswith(ARTIFACT_SUFFIXES)
    )


def clean_artifacts(directory: Path) -> None:
    """Delete leftover packages so stale files are never pushed."""
    for artifact in find_artifacts(directory):
        print(f"  Removing stale {artifact.name}")
        artifact.unlink()


def build_projects(
    config: PublishConfig, projects: Sequence[ProjectDescriptor], suffix: str = ""
) -> None:
    """Build and pack each project, in order, into the working directory.

    Raises:
        BuildError: If dotnet build or dotnet pack fails for any project.
    """
    step(f"Building {len(projects)} packages")

    clean_artifacts(Path.cwd())

    for project in projects:
        print(
            f"\n🏭 Starting build process for "
            f"{project.package_name} version {project.version}"
        )
        _run_build_tool(project, "dotnet", "build", "-c", "Release", project.path)

        pack_args = ["dotnet", "pack"]
        if config.include_symbols:
            pack_args += ["--include-symbols", "-p:SymbolPackageFormat=snupkg"]
        pack_args += ["--no-build", "-c", "Release", project.path, "-o", "."]
        if suffix:
            version = prerelease_version(project.version, suffix)
            pack_args.append(f"-p:PackageVersion={version}")
        _run_build_tool(project, *pack_args)


def _run_build_tool(project: ProjectDescriptor, *args: str) -> None:
    failure = (
        f"error building package {project.package_name} version {project.version}"
    )
    try:
        result = run(*args, check=False)
    except OSError as exc:
        raise BuildError(f"{failure}: {exc}") from exc
    if result.returncode != 0:
        raise BuildError(
            f"{failure}: {args[0]} {args[1]} exited with {result.returncode}"
        )


def first_error_line(output: str) -> str | None:
    """First line of tool output that contains ``error``, if any."""
    m = _ERROR_LINE_RE.search(output)
    return m.group(0).strip() if m else None


def push_packages(config: PublishConfig) -> list[str]:
    """Push every package in the working directory to the registry.

    Returns:
        Names of the pushed package files.

    Raises:
        PushError: If there is nothing to push, or the push tool reports an
            error line or exits non-zero.
    """
    step("Pushing packages")

    packages = [p.name for p in find_artifacts(Path.cwd())]
    if not packages:
        raise PushError("no packages found to push")
    print(f"🚀 Sending packages... ({', '.join(packages)})")

    args = [
        "dotnet",
        "nuget",
        "push",
        "*.nupkg",
        "-s",
        config.push_source,
        "-k",
        config.nuget_key,
        "--skip-duplicate",
    ]
    if not config.include_symbols:
        args.append("--no-symbols")

    try:
        result = run_captured(*args, secrets=[config.nuget_key])
    except OSError as exc:
        raise PushError(f"unable to run dotnet nuget push: {exc}") from exc

    output = result.stdout or ""
    print(output)

    line = first_error_line(output)
    if line:
        raise PushError(line)
    if result.returncode != 0:
        raise PushError(f"dotnet nuget push exited with {result.returncode}")
    return packages


def write_github_outputs(output_path: str, result: PublishResult) -> None:
    """Append step outputs for later workflow steps."""
    version = result.projects[0].version if result.projects else ""
    tag = result.tag.name if result.tag_created and result.tag else ""
    published = json.dumps([p.package_name for p in result.published])
    with open(output_path, "a") as fh:
        fh.write(f"published={published}\n")
        fh.write(f"version={version}\n")
        fh.write(f"tag={tag}\n")


def run_publish(
    config: PublishConfig,
    *,
    now: datetime | None = None,
    dry_run: bool = False,
) -> PublishResult:
    """Execute the full publish pipeline.

    Args:
        config: Run configuration.
        now: Clock used for date placeholders; defaults to the current UTC time.
        dry_run: Stop after the publish decision and report the would-be tag.

    Raises:
        PublishError: On the first failure of any stage.
    """
    now = now or datetime.now(timezone.utc)

    projects = load_projects(config)
    decision = plan_publish(
        projects,
        lambda name: fetch_remote_versions(
            config.nuget_source, name, timeout=config.http_timeout
        ),
    )
    tag = compute_release_tag(config, projects, now)

    # An empty decision ends the run untagged so reruns on a published version succeed
    if dry_run or not decision:
        if not decision:
            step("Nothing to publish")
        if tag:
            print(f"  Release tag would be {tag.name}")
        return PublishResult(
            projects=tuple(projects), published=tuple(decision), tag=tag
        )

    tag_created = False
    if tag is not None:
        if not config.repo_token:
            raise ConfigurationError("REPO_TOKEN is required to tag commits")
        if not config.repository:
            raise ConfigurationError("GITHUB_REPOSITORY is required to tag commits")
        if not config.commit_sha:
            raise ConfigurationError("unable to determine the commit to tag")
        tag_release(config.repository, config.repo_token, tag.name, config.commit_sha)
        tag_created = True
    else:
        step(f"Skipping tag: branch '{config.branch or '<unknown>'}' is not taggable")

    build_projects(config, decision, suffix=current_suffix(config, now))
    push_packages(config)

    result = PublishResult(
        projects=tuple(projects),
        published=tuple(decision),
        tag=tag,
        tag_created=tag_created,
    )
    print(f"\n{'=' * 60}\nDone!\n{'=' * 60}")
    return result
