"""Data models for nuget-release.

These Pydantic models represent the values passed between pipeline stages.
All of them are frozen: each is built once and only read afterwards.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class ProjectDescriptor(BaseModel):
    """A manifest file and the version it declares.

    Attributes:
        path: Manifest path as configured (e.g., "src/My.Lib/My.Lib.csproj").
        package_name: File name minus its final extension ("My.Lib").
        version: Version string extracted from the manifest.
    """

    model_config = ConfigDict(frozen=True)

    path: str
    package_name: str
    version: str


class VersionMatch(BaseModel):
    """Result of applying the version pattern to manifest text."""

    model_config = ConfigDict(frozen=True)

    found: bool
    value: str | None = None


class VersionSuffixRule(BaseModel):
    """Suffix template applied when the current branch matches.

    Attributes:
        branch_pattern: Branch name or prefix (e.g., "develop", "release/").
        template: Suffix template; may contain one ``{dateFormat}``
                  placeholder and any number of ``*`` commit-hash placeholders.
    """

    model_config = ConfigDict(frozen=True)

    branch_pattern: str
    template: str


class TagSpec(BaseModel):
    """A computed release tag.

    Attributes:
        format_template: Tag template with ``*`` standing for the version.
        suffix: Computed branch suffix (may be empty).
        name: Final tag name: the version-substituted template plus suffix.
    """

    model_config = ConfigDict(frozen=True)

    format_template: str
    suffix: str
    name: str
