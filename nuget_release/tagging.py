"""Release tagging through the GitHub git-data API.

Tags are created server-side with ``gh api`` rather than ``git push`` so the
step works from a shallow CI checkout: first an annotated tag object, then
the ``refs/tags/{name}`` ref pointing at it.
"""

from __future__ import annotations

import subprocess

from .errors import DuplicateTagError, TagCreationError
from .shell import gh, step

TAGS_PER_PAGE = 100
MAX_TAG_PAGES = 10


def _api(failure: str, *args: str, token: str) -> str:
    """Call ``gh api``, turning any failure into TagCreationError."""
    try:
        return gh("api", *args, token=token)
    except subprocess.CalledProcessError as exc:
        detail = (exc.stderr or "").strip() or f"gh exited with {exc.returncode}"
        raise TagCreationError(f"{failure}: {detail}") from exc
    except OSError as exc:
        raise TagCreationError(f"{failure}: {exc}") from exc


def list_existing_tags(repository: str, token: str) -> list[str]:
    """Fetch up to 1000 existing tag names.

    Pages through ``GET repos/{repo}/tags`` and stops at the first short
    page.
    """
    names: list[str] = []
    for page in range(1, MAX_TAG_PAGES + 1):
        output = _api(
            f"unable to list tags for {repository}",
            f"repos/{repository}/tags?per_page={TAGS_PER_PAGE}&page={page}",
            "--jq",
            ".[].name",
            token=token,
        )
        page_names = output.splitlines() if output else []
        names.extend(page_names)
        if len(page_names) < TAGS_PER_PAGE:
            break
    return names


def create_tag_object(
    repository: str, token: str, name: str, commit_sha: str, message: str
) -> str:
    """Create an annotated tag object and return its sha."""
    return _api(
        f"unable to create tag '{name}'",
        f"repos/{repository}/git/tags",
        "-X",
        "POST",
        "-f",
        f"tag={name}",
        "-f",
        f"message={message}",
        "-f",
        f"object={commit_sha}",
        "-f",
        "type=commit",
        "--jq",
        ".sha",
        token=token,
    )


def create_tag_ref(repository: str, token: str, name: str, tag_sha: str) -> None:
    """Point ``refs/tags/{name}`` at a tag object."""
    _api(
        f"created tag object for '{name}' but not its ref",
        f"repos/{repository}/git/refs",
        "-X",
        "POST",
        "-f",
        f"ref=refs/tags/{name}",
        "-f",
        f"sha={tag_sha}",
        token=token,
    )


def tag_release(repository: str, token: str, name: str, commit_sha: str) -> str:
    """Tag a commit, refusing to reuse an existing tag name.

    Returns:
        The sha of the created tag object.

    Raises:
        DuplicateTagError: If ``name`` is already among the existing tags.
            Nothing is created in that case.
        TagCreationError: If any API call fails. A tag object whose ref
            could not be created is left as is.
    """
    step(f"Tagging {commit_sha[:7]} as {name}")

    if name in list_existing_tags(repository, token):
        raise DuplicateTagError(f"tag '{name}' already exists in {repository}")

    tag_sha = create_tag_object(
        repository, token, name, commit_sha, message=f"Release {name}"
    )
    if not tag_sha:
        raise TagCreationError(f"unable to create tag '{name}': no sha returned")
    create_tag_ref(repository, token, name, tag_sha)
    print(f"  {name} → {commit_sha}")
    return tag_sha
