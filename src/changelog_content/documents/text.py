"""Plain-text extraction and excerpt generation."""

from __future__ import annotations

from typing import Any

from .models import coerce_document

DEFAULT_EXCERPT_LENGTH = 200
ELLIPSIS = "..."
# A word-boundary cut is only used when it keeps at least this share of the budget.
_WORD_BOUNDARY_RATIO = 0.8


def extract_text(document: Any) -> str:
    """Flatten the top-level blocks of ``document`` into unstyled text.

    Nested ``children`` (list sub-items, table rows) are not descended into.
    Blocks without text are skipped so they do not introduce doubled spaces.
    """

    parts = (block.plain_text() for block in coerce_document(document))
    return " ".join(part for part in parts if part)


def excerpt(document: Any, max_length: int = DEFAULT_EXCERPT_LENGTH) -> str:
    """Return a word-safe summary no longer than ``max_length + 3`` characters."""

    if max_length < 1:
        raise ValueError("max_length must be at least 1")

    text = extract_text(document)
    return truncate(text, max_length)


def truncate(text: str, max_length: int) -> str:
    if len(text) <= max_length:
        return text

    head = text[:max_length]
    last_space = head.rfind(" ")
    if last_space >= max_length * _WORD_BOUNDARY_RATIO:
        return head[:last_space] + ELLIPSIS
    return head + ELLIPSIS
