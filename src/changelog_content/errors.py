"""Exception hierarchy for the content pipeline."""

from __future__ import annotations


class ContentError(RuntimeError):
    """Base class for content pipeline failures."""


class InvalidContentError(ContentError, ValueError):
    """Raised when a candidate document or title is rejected on ingress."""


class RenderingError(ContentError):
    """Raised when a document is too malformed to produce markup.

    This indicates validation was bypassed and should be treated as an
    internal error rather than a client mistake.
    """


class SlugConflictError(ContentError):
    """Raised when persistence rejects a slug that is already taken in its scope."""

    def __init__(self, scope: str, slug: str) -> None:
        super().__init__(f"Slug {slug!r} is already taken in scope {scope!r}")
        self.scope = scope
        self.slug = slug


class EntryNotFoundError(ContentError, LookupError):
    """Raised when an entry cannot be located in its scope."""

    def __init__(self, scope: str, slug: str) -> None:
        super().__init__(f"No entry {slug!r} in scope {scope!r}")
        self.scope = scope
        self.slug = slug
