"""Utilities for mapping entry titles to URL-safe slugs."""

from __future__ import annotations

import re


_DISALLOWED_RE = re.compile(r"[^a-z0-9\s_-]")
_SEPARATOR_RUN_RE = re.compile(r"[\s_-]+")
SLUG_RE = re.compile(r"[a-z0-9-]+")


def derive_slug(title: str) -> str:
    """Return a URL-safe slug derived from ``title``.

    The title is lowercased and trimmed, characters other than ASCII letters,
    digits, whitespace, underscores and hyphens are dropped, and separator runs
    collapse to a single hyphen. An empty result means the title carried no
    usable characters; callers must reject it.
    """

    value = title.lower().strip()
    value = _DISALLOWED_RE.sub("", value)
    value = _SEPARATOR_RUN_RE.sub("-", value)
    return value.strip("-")


def is_valid_slug(value: str) -> bool:
    return SLUG_RE.fullmatch(value) is not None
