"""Error taxonomy for the publish pipeline.

Every error is terminal: stages raise, and the CLI reports the first one
and exits non-zero.
"""

from __future__ import annotations


class PublishError(Exception):
    """Base class for all pipeline failures.

    Attributes:
        details: Optional diagnostic text printed before the error line
                 (e.g., a directory listing or the raw manifest contents).
    """

    def __init__(self, message: str, *, details: str | None = None) -> None:
        super().__init__(message)
        self.details = details


class ConfigurationError(PublishError):
    """Required configuration is missing or malformed."""


class ProjectNotFoundError(PublishError):
    """A manifest path does not exist."""


class VersionParseError(PublishError):
    """The version pattern did not match a manifest."""


class RemoteQueryError(PublishError):
    """The registry could not be queried (anything other than 200 or 404)."""


class DuplicateTagError(PublishError):
    """The computed tag name already exists in the repository."""


class TagCreationError(PublishError):
    """Creating the tag object or its ref failed."""


class BuildError(PublishError):
    """The build or pack tool exited abnormally."""


class PushError(PublishError):
    """The push tool reported an error."""
