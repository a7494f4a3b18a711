"""Local filesystem repository of content entries."""

from __future__ import annotations

import logging
import re
from datetime import datetime
from pathlib import Path
from typing import Iterable, Optional

import frontmatter

from changelog_content.errors import EntryNotFoundError, SlugConflictError
from changelog_content.slugs.naming import is_valid_slug

from .models import DRAFT, ContentEntry

logger = logging.getLogger(__name__)

ENTRY_SUFFIX = ".md"
_SCOPE_SEGMENT_RE = re.compile(r"[A-Za-z0-9_][A-Za-z0-9_.-]*")


class EntryRepository:
    """Persist entries as Markdown files with YAML frontmatter.

    Each scope maps to a directory under ``root`` and each entry to
    ``{scope}/{slug}.md``. The frontmatter carries the title, excerpt, status
    and the raw block document; the file body is the rendered HTML. Creating
    a file uses exclusive mode, which makes the filesystem the authoritative
    guard against two writers claiming the same slug in one scope.
    """

    def __init__(self, root: Path) -> None:
        self.root = root

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------
    def exists_in_scope(self, scope: str, slug: str) -> bool:
        return self._entry_path(scope, slug).exists()

    def get(self, scope: str, slug: str) -> ContentEntry:
        path = self._entry_path(scope, slug)
        if not path.exists():
            raise EntryNotFoundError(scope, slug)
        return self._read_entry(scope, path)

    def list_entries(self, scope: str) -> list[ContentEntry]:
        directory = self.scope_directory(scope)
        if not directory.exists():
            return []
        return [self._read_entry(scope, path) for path in self.iter_entry_files(directory)]

    def iter_entry_files(self, directory: Path) -> Iterable[Path]:
        for candidate in sorted(directory.iterdir()):
            if candidate.is_file() and candidate.suffix == ENTRY_SUFFIX:
                yield candidate

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------
    def create(self, entry: ContentEntry) -> ContentEntry:
        """Store a new entry, failing if its slug is already taken in the scope."""

        path = self._entry_path(entry.scope, entry.slug)
        path.parent.mkdir(parents=True, exist_ok=True)
        try:
            with path.open("x", encoding="utf-8") as handle:
                handle.write(frontmatter.dumps(self._to_post(entry)))
        except FileExistsError as exc:
            raise SlugConflictError(entry.scope, entry.slug) from exc
        entry.path = path
        logger.info("Created entry %r in scope %r", entry.slug, entry.scope)
        return entry

    def save(self, entry: ContentEntry) -> ContentEntry:
        """Persist modifications made to an existing entry."""

        path = self._entry_path(entry.scope, entry.slug)
        if not path.exists():
            raise EntryNotFoundError(entry.scope, entry.slug)
        with path.open("w", encoding="utf-8") as handle:
            handle.write(frontmatter.dumps(self._to_post(entry)))
        entry.path = path
        return entry

    def rename(self, entry: ContentEntry, old_slug: str) -> ContentEntry:
        """Move an entry stored under ``old_slug`` to ``entry.slug``."""

        old_path = self._entry_path(entry.scope, old_slug)
        if not old_path.exists():
            raise EntryNotFoundError(entry.scope, old_slug)
        self.create(entry)
        old_path.unlink()
        logger.info("Renamed entry %r to %r in scope %r", old_slug, entry.slug, entry.scope)
        return entry

    def delete(self, scope: str, slug: str) -> None:
        path = self._entry_path(scope, slug)
        if not path.exists():
            raise EntryNotFoundError(scope, slug)
        path.unlink()
        logger.info("Deleted entry %r from scope %r", slug, scope)

    # ------------------------------------------------------------------
    # Utilities
    # ------------------------------------------------------------------
    def scope_directory(self, scope: str) -> Path:
        """Return the directory holding ``scope``, rejecting paths outside the root."""

        segments = scope.split("/")
        if not scope or not all(_SCOPE_SEGMENT_RE.fullmatch(segment) for segment in segments):
            raise ValueError(f"Invalid scope {scope!r}")
        base = self.root.resolve()
        candidate = base.joinpath(*segments).resolve()
        if not candidate.is_relative_to(base):
            raise ValueError(f"Scope {scope!r} is outside of repository root {self.root}")
        return candidate

    def _entry_path(self, scope: str, slug: str) -> Path:
        if not is_valid_slug(slug):
            raise ValueError(f"Invalid slug {slug!r}")
        return self.scope_directory(scope) / f"{slug}{ENTRY_SUFFIX}"

    @staticmethod
    def _to_post(entry: ContentEntry) -> frontmatter.Post:
        post = frontmatter.Post(entry.html_content)
        post.metadata.update(
            {
                "title": entry.title,
                "slug": entry.slug,
                "excerpt": entry.excerpt,
                "status": entry.status,
                "published_at": entry.published_at.isoformat() if entry.published_at else None,
                "document": entry.document,
            }
        )
        return post

    @staticmethod
    def _read_entry(scope: str, path: Path) -> ContentEntry:
        post = frontmatter.load(path)
        document = post.metadata.get("document")
        return ContentEntry(
            scope=scope,
            slug=path.stem,
            title=str(post.metadata.get("title", path.stem)),
            document=document if isinstance(document, list) else [],
            html_content=post.content,
            excerpt=str(post.metadata.get("excerpt") or ""),
            status=str(post.metadata.get("status") or DRAFT),
            published_at=_as_optional_datetime(post.metadata.get("published_at")),
            path=path,
        )


def _as_optional_datetime(value: object) -> Optional[datetime]:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value
    try:
        return datetime.fromisoformat(str(value))
    except ValueError:
        return None
