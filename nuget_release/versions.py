"""Version extraction and pre-release version utilities.

Reads the declared version out of a manifest with a configurable regular
expression, and composes pre-release package versions from a branch suffix.
"""

from __future__ import annotations

import re
from pathlib import Path

import semver

from .errors import ProjectNotFoundError, VersionParseError
from .models import ProjectDescriptor, VersionMatch

DEFAULT_VERSION_REGEX = r"^\s*<Version>(.*)</Version>\s*$"
VERSION_REGEX_FLAGS = re.IGNORECASE | re.MULTILINE


def compile_version_regex(pattern: str) -> re.Pattern[str]:
    """Compile a version pattern with the case-insensitive, multiline flags."""
    return re.compile(pattern, VERSION_REGEX_FLAGS)


def match_version(pattern: str | re.Pattern[str], text: str) -> VersionMatch:
    """Apply a version pattern to manifest text.

    The first capturing group is the version; a pattern without groups
    yields the whole match. Surrounding whitespace is stripped.
    """
    regex = compile_version_regex(pattern) if isinstance(pattern, str) else pattern
    m = regex.search(text)
    if m is None:
        return VersionMatch(found=False)
    value = m.group(1) if regex.groups else m.group(0)
    return VersionMatch(found=True, value=(value or "").strip())


def package_name_for(manifest_path: str) -> str:
    """Derive the package name from a manifest path.

    Examples:
        "src/My.Lib/My.Lib.csproj" → "My.Lib"
        "Tool.fsproj" → "Tool"
    """
    return Path(manifest_path).stem


def ensure_project_exists(manifest_path: str) -> None:
    """Raise ProjectNotFoundError, with a listing of the cwd, if missing."""
    if Path(manifest_path).exists():
        return
    cwd = Path.cwd()
    listing = [str(cwd)] + [f"-> {p.name}" for p in sorted(cwd.iterdir())]
    raise ProjectNotFoundError(
        f"Unable to find project '{manifest_path}'", details="\n".join(listing)
    )


def extract_version(manifest_path: str, pattern: str) -> str:
    """Read a manifest and return its declared version.

    Raises:
        VersionParseError: If the manifest cannot be read as UTF-8 or the
            pattern does not match. The raw file contents are attached as
            diagnostic details.
    """
    try:
        raw = Path(manifest_path).read_bytes()
    except OSError as exc:
        raise VersionParseError(f"unable to read '{manifest_path}': {exc}") from exc
    try:
        # utf-8-sig drops a leading BOM so it never reaches the pattern
        text = raw.decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        raise VersionParseError(
            f"unable to decode '{manifest_path}' as UTF-8: {exc}",
            details=raw.decode("utf-8", errors="replace"),
        ) from exc
    result = match_version(pattern, text)
    if not result.found or not result.value:
        raise VersionParseError(
            f"unable to determine version for '{manifest_path}' using regex {pattern}",
            details=text,
        )
    return result.value


def load_project(manifest_path: str, pattern: str) -> ProjectDescriptor:
    """Check a manifest exists and build its descriptor."""
    ensure_project_exists(manifest_path)
    version = extract_version(manifest_path, pattern)
    print(f"  Found version {version} for '{manifest_path}'")
    return ProjectDescriptor(
        path=manifest_path,
        package_name=package_name_for(manifest_path),
        version=version,
    )


def clean_prerelease(suffix: str) -> str:
    """Normalize a branch suffix into a valid pre-release label.

    Leading separators are dropped and characters outside ``[0-9A-Za-z.-]``
    become hyphens.

    Examples:
        "-pre-240305-abc1234" → "pre-240305-abc1234"
        "beta_1" → "beta-1"
    """
    label = re.sub(r"[^0-9A-Za-z.\-]", "-", suffix)
    return label.lstrip("-.")


def prerelease_version(version: str, suffix: str) -> str:
    """Attach a branch suffix to a version as its pre-release label.

    Semver-shaped versions go through semver so an existing pre-release
    label is replaced rather than stacked. Anything else (e.g., four-part
    NuGet versions) gets the label appended.

    Examples:
        ("1.2.0", "pre-240305-abc1234") → "1.2.0-pre-240305-abc1234"
        ("1.2.0-rc1", "nightly") → "1.2.0-nightly"
        ("1.2.3.4", "ci") → "1.2.3.4-ci"
    """
    label = clean_prerelease(suffix)
    if not label:
        return version
    if semver.Version.is_valid(version):
        return str(semver.Version.parse(version).replace(prerelease=label, build=None))
    return f"{version}-{label}"
