"""Dataclasses representing persisted content entries."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

DRAFT = "draft"
PUBLISHED = "published"
ARCHIVED = "archived"
STATUSES = (DRAFT, PUBLISHED, ARCHIVED)


@dataclass(slots=True)
class ContentProjection:
    """Derived artifacts stored alongside a raw document."""

    html_content: str
    excerpt: str
    slug: str


@dataclass(slots=True)
class ContentEntry:
    """A changelog or post entry as stored on disk."""

    scope: str
    slug: str
    title: str
    document: list[Any] = field(default_factory=list)
    html_content: str = ""
    excerpt: str = ""
    status: str = DRAFT
    published_at: Optional[datetime] = None
    path: Optional[Path] = None
