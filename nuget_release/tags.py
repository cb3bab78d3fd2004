"""Release tag name computation.

Tag names are built from two templates:

- the tag format (e.g., ``v*``), where ``*`` stands for the package version;
- a branch suffix (e.g., ``-pre-{yyMMdd}-*``), chosen per branch, where
  ``{...}`` is a date format rendered in UTC and ``*`` stands for the short
  commit hash.

Everything here is pure; callers supply the clock and the commit hash.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Sequence
from datetime import datetime

from .models import TagSpec, VersionSuffixRule

SHORT_HASH_LENGTH = 7

# .NET-style date tokens, longest first so "yyyy" wins over "yy".
_DATE_TOKENS = {
    "yyyy": "%Y",
    "yy": "%y",
    "MM": "%m",
    "dd": "%d",
    "HH": "%H",
    "mm": "%M",
    "ss": "%S",
}
_DATE_TOKEN_RE = re.compile("|".join(_DATE_TOKENS))
_DATE_PLACEHOLDER_RE = re.compile(r"\{([^{}]*)\}")


def format_date(fmt: str, now: datetime) -> str:
    """Render a .NET-style date format.

    Recognized tokens are yyyy, yy, MM, dd, HH, mm and ss; every other
    character is copied literally.

    Examples:
        ("yyMMdd", 2024-03-05) → "240305"
        ("yyyy.MM.dd-HHmm", 2024-03-05 14:07) → "2024.03.05-1407"
    """
    out: list[str] = []
    pos = 0
    for m in _DATE_TOKEN_RE.finditer(fmt):
        out.append(fmt[pos : m.start()])
        out.append(now.strftime(_DATE_TOKENS[m.group(0)]))
        pos = m.end()
    out.append(fmt[pos:])
    return "".join(out)


def short_hash(commit_hash: str) -> str:
    """First 7 characters of a commit hash."""
    return commit_hash[:SHORT_HASH_LENGTH]


def compute_suffix(template: str, now: datetime, commit_hash: str) -> str:
    """Expand a suffix template.

    The ``{format}`` placeholder is rendered with ``now``, then every ``*``
    becomes the short commit hash. A template with neither is returned
    unchanged.

    Example:
        ("pre-{yyMMdd}-*", 2024-03-05, "abc1234567") → "pre-240305-abc1234"
    """
    expanded = _DATE_PLACEHOLDER_RE.sub(
        lambda m: format_date(m.group(1), now), template
    )
    return expanded.replace("*", short_hash(commit_hash))


def select_suffix_rule(
    rules: Iterable[VersionSuffixRule], branch: str
) -> VersionSuffixRule | None:
    """Pick the suffix rule for a branch.

    An exact branch match wins; otherwise the longest matching prefix.
    Returns None when no rule applies.
    """
    best: VersionSuffixRule | None = None
    for rule in rules:
        if rule.branch_pattern == branch:
            return rule
        if branch.startswith(rule.branch_pattern):
            if best is None or len(rule.branch_pattern) > len(best.branch_pattern):
                best = rule
    return best


def branch_suffix(
    rules: Iterable[VersionSuffixRule],
    branch: str,
    now: datetime,
    commit_hash: str,
) -> str:
    """Compute the suffix for a branch, or "" when no rule matches."""
    rule = select_suffix_rule(rules, branch)
    if rule is None:
        return ""
    return compute_suffix(rule.template, now, commit_hash)


def is_taggable(branch: str | None, taggable_branches: Sequence[str]) -> bool:
    """Whether commits on this branch get a release tag."""
    return bool(branch) and branch in taggable_branches


def build_tag(format_template: str, version: str, suffix: str) -> TagSpec:
    """Substitute the version into the tag format and append the suffix.

    Example:
        ("v*", "2.0.0", "pre-240305-abc1234") → name "v2.0.0pre-240305-abc1234"
    """
    name = format_template.replace("*", version) + suffix
    return TagSpec(format_template=format_template, suffix=suffix, name=name)
