"""Tests for plain-text extraction and excerpt generation."""

from __future__ import annotations

import pytest

from changelog_content.documents.text import excerpt, extract_text


def _paragraph(text: str) -> dict:
    return {"type": "paragraph", "content": [text]}


class TestExtractText:
    def test_joins_top_level_blocks_with_space(self, release_notes) -> None:
        assert extract_text(release_notes) == "Release Notes Fixed bugs"

    def test_inline_items_concatenate_without_separator(self) -> None:
        document = [
            {
                "type": "paragraph",
                "content": [
                    "Read ",
                    {"type": "link", "href": "/x", "content": "the docs"},
                    {"type": "text", "text": " now", "styles": {"italic": True}},
                    {"type": "unknown"},
                ],
            }
        ]

        assert extract_text(document) == "Read the docs now"

    def test_children_are_not_included(self) -> None:
        document = [
            {
                "type": "bulletListItem",
                "content": ["parent"],
                "children": [{"type": "bulletListItem", "content": ["child"]}],
            }
        ]

        assert extract_text(document) == "parent"

    def test_blocks_without_content_contribute_nothing(self) -> None:
        document = [_paragraph("a"), {"type": "image", "props": {"url": "x.png"}}, _paragraph("b")]

        assert extract_text(document) == "a b"

    def test_non_list_content_is_ignored(self) -> None:
        assert extract_text([{"type": "paragraph", "content": "raw string"}]) == ""

    def test_empty_document(self) -> None:
        assert extract_text([]) == ""


class TestExcerpt:
    def test_short_text_is_returned_unchanged(self, release_notes) -> None:
        assert excerpt(release_notes) == "Release Notes Fixed bugs"
        assert excerpt(release_notes, 24) == "Release Notes Fixed bugs"

    def test_cuts_at_word_boundary_after_eighty_percent(self) -> None:
        document = [_paragraph("aaaaaaaaa bbbbbbbbbbbb")]

        # The last space in the first 10 characters is at index 9 >= 8.
        assert excerpt(document, 10) == "aaaaaaaaa..."

    def test_cuts_mid_word_when_boundary_is_too_early(self) -> None:
        document = [_paragraph("ab cdefghijklmnop")]

        assert excerpt(document, 10) == "ab cdefghi..."

    def test_boundary_exactly_at_eighty_percent(self) -> None:
        document = [_paragraph("aaaaaaaa bbbbbbbb")]

        assert excerpt(document, 10) == "aaaaaaaa..."

    def test_default_length_is_two_hundred(self) -> None:
        document = [_paragraph("x" * 250)]

        assert excerpt(document) == "x" * 200 + "..."

    @pytest.mark.parametrize("max_length", [1, 2, 5, 17, 40, 200])
    def test_length_bound(self, max_length: int) -> None:
        document = [_paragraph("lorem ipsum dolor sit amet " * 12), _paragraph("consectetur")]

        assert len(excerpt(document, max_length)) <= max_length + 3

    @pytest.mark.parametrize("max_length", [24, 25, 100])
    def test_identity_when_text_fits(self, release_notes, max_length: int) -> None:
        assert excerpt(release_notes, max_length) == extract_text(release_notes)

    def test_rejects_non_positive_length(self) -> None:
        with pytest.raises(ValueError):
            excerpt([_paragraph("text")], 0)
