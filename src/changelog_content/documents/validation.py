"""Structural validation of candidate documents on ingress."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from changelog_content.errors import InvalidContentError

from .models import DEFAULT_MAX_DEPTH, Document


def validate(candidate: Any) -> bool:
    """Return ``True`` if ``candidate`` is a list of blocks with a non-empty ``type``.

    Only the top level is checked. Props, content and children are left to the
    renderer, which degrades gracefully on malformed sub-structure.
    """

    if not isinstance(candidate, list):
        return False
    return all(
        isinstance(block, Mapping)
        and isinstance(block.get("type"), str)
        and len(block["type"]) > 0
        for block in candidate
    )


def ensure_valid(candidate: Any, *, max_depth: int = DEFAULT_MAX_DEPTH) -> Document:
    """Validate ``candidate`` and return it parsed into a :class:`Document`."""

    if not validate(candidate):
        raise InvalidContentError("Content must be a list of blocks, each with a non-empty 'type'")
    return Document.from_raw(candidate, max_depth=max_depth)
