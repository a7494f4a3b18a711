"""High-level create/update workflows for block-document content entries."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Optional

from changelog_content.config import ContentSettings
from changelog_content.documents.models import Document
from changelog_content.documents.text import excerpt as generate_excerpt
from changelog_content.documents.validation import ensure_valid
from changelog_content.errors import InvalidContentError
from changelog_content.local.models import PUBLISHED, STATUSES, ContentEntry, ContentProjection
from changelog_content.local.repository import EntryRepository
from changelog_content.rendering.html import HtmlRenderer
from changelog_content.slugs.naming import derive_slug
from changelog_content.slugs.resolver import persist_with_unique_slug, resolve_unique_slug

logger = logging.getLogger(__name__)


class ContentService:
    """Coordinate validation, derivation and persistence of content entries."""

    def __init__(
        self,
        repository: EntryRepository,
        settings: Optional[ContentSettings] = None,
    ) -> None:
        self.repository = repository
        self.settings = settings or ContentSettings()
        self.renderer = HtmlRenderer(max_depth=self.settings.max_render_depth)

    # ------------------------------------------------------------------
    # Derivation
    # ------------------------------------------------------------------
    def parse(self, content: Any) -> Document:
        return ensure_valid(content, max_depth=self.settings.max_render_depth)

    def prepare(
        self,
        document: Document,
        *,
        scope: str,
        title: str,
        slug: Optional[str] = None,
        excerpt: Optional[str] = None,
        html_content: Optional[str] = None,
        exclude: Optional[str] = None,
    ) -> ContentProjection:
        """Compute the derived artifacts for an accepted document.

        The slug returned here is only advisory; see :meth:`create_entry` for
        the retry against the repository's uniqueness guard.
        """

        candidate = self.candidate_slug(title, slug)
        return ContentProjection(
            html_content=self.renderer.render(document) if html_content is None else html_content,
            excerpt=self._excerpt(document, excerpt),
            slug=resolve_unique_slug(
                candidate, scope, self.repository.exists_in_scope, exclude=exclude
            ),
        )

    def candidate_slug(self, title: str, slug: Optional[str] = None) -> str:
        candidate = derive_slug(slug) if slug else derive_slug(title)
        if not candidate:
            raise InvalidContentError("A title or slug with at least one letter or digit is required")
        return candidate

    # ------------------------------------------------------------------
    # Entry workflows
    # ------------------------------------------------------------------
    def create_entry(
        self,
        scope: str,
        *,
        title: str,
        content: Any,
        slug: Optional[str] = None,
        excerpt: Optional[str] = None,
        status: str = "draft",
        html_content: Optional[str] = None,
        published_at: Optional[datetime] = None,
    ) -> ContentEntry:
        """Validate ``content`` and store a new entry with a scope-unique slug."""

        _check_status(status)
        document = self.parse(content)
        candidate = self.candidate_slug(title, slug)
        entry = ContentEntry(
            scope=scope,
            slug=candidate,
            title=title,
            document=document.to_raw(),
            html_content=self.renderer.render(document) if html_content is None else html_content,
            excerpt=self._excerpt(document, excerpt),
            status=status,
            published_at=_publication_time(status, published_at),
        )

        def _persist(resolved: str) -> ContentEntry:
            entry.slug = resolved
            return self.repository.create(entry)

        return persist_with_unique_slug(
            candidate,
            scope,
            self.repository.exists_in_scope,
            _persist,
            retry_limit=self.settings.slug_retry_limit,
        )

    def update_entry(
        self,
        scope: str,
        slug: str,
        *,
        title: Optional[str] = None,
        content: Any = None,
        new_slug: Optional[str] = None,
        excerpt: Optional[str] = None,
        status: Optional[str] = None,
    ) -> ContentEntry:
        """Apply changes to an existing entry, re-deriving artifacts from new content.

        A changed title keeps the current slug; pass ``new_slug`` to move the
        entry to a different one.
        """

        entry = self.repository.get(scope, slug)
        if title is not None:
            if not title.strip():
                raise InvalidContentError("Title must not be empty")
            entry.title = title

        if content is not None:
            document = self.parse(content)
            entry.document = document.to_raw()
            entry.html_content = self.renderer.render(document)
            entry.excerpt = self._excerpt(document, excerpt)
        elif excerpt is not None:
            entry.excerpt = excerpt

        if status is not None:
            _check_status(status)
            if status == PUBLISHED and entry.status != PUBLISHED and entry.published_at is None:
                entry.published_at = _publication_time(status, None)
            entry.status = status

        if new_slug is None or derive_slug(new_slug) == slug:
            return self.repository.save(entry)

        candidate = self.candidate_slug(entry.title, new_slug)
        logger.info("Moving entry %r in scope %r towards slug %r", slug, scope, candidate)

        def _persist(resolved: str) -> ContentEntry:
            entry.slug = resolved
            if resolved == slug:
                return self.repository.save(entry)
            return self.repository.rename(entry, slug)

        return persist_with_unique_slug(
            candidate,
            scope,
            self.repository.exists_in_scope,
            _persist,
            retry_limit=self.settings.slug_retry_limit,
            exclude=slug,
        )

    def rerender_entry(self, scope: str, slug: str) -> ContentEntry:
        """Regenerate the HTML of a stored entry from its raw document."""

        entry = self.repository.get(scope, slug)
        document = self.parse(entry.document)
        entry.html_content = self.renderer.render(document)
        return self.repository.save(entry)

    def _excerpt(self, document: Document, supplied: Optional[str]) -> str:
        if supplied is not None:
            return supplied
        return generate_excerpt(document, self.settings.excerpt_length)


def _check_status(status: str) -> None:
    if status not in STATUSES:
        raise InvalidContentError(f"Unknown status {status!r}; expected one of {', '.join(STATUSES)}")


def _publication_time(status: str, published_at: Optional[datetime]) -> Optional[datetime]:
    if published_at is not None:
        return published_at
    if status == PUBLISHED:
        return datetime.now(timezone.utc)
    return None
