"""Tests for structural validation of candidate documents."""

from __future__ import annotations

import pytest

from changelog_content.documents.models import Document
from changelog_content.documents.validation import ensure_valid, validate
from changelog_content.errors import InvalidContentError


class TestValidate:
    @pytest.mark.parametrize(
        "candidate",
        [None, "paragraph", 42, {"type": "paragraph"}, ({"type": "paragraph"},)],
    )
    def test_non_list_input_is_rejected(self, candidate) -> None:
        assert validate(candidate) is False

    def test_empty_list_is_accepted(self) -> None:
        assert validate([]) is True

    def test_blocks_with_type_are_accepted_regardless_of_other_fields(self) -> None:
        candidate = [
            {"type": "paragraph"},
            {"type": "mystery", "props": "not a dict", "content": 17, "children": None},
        ]

        assert validate(candidate) is True

    @pytest.mark.parametrize(
        "block",
        [None, "paragraph", {"type": ""}, {"type": 3}, {"props": {}}, ["type", "paragraph"]],
    )
    def test_malformed_block_is_rejected(self, block) -> None:
        assert validate([{"type": "paragraph"}, block]) is False


class TestEnsureValid:
    def test_returns_parsed_document(self, release_notes) -> None:
        document = ensure_valid(release_notes)

        assert isinstance(document, Document)
        assert [block.type for block in document] == ["heading", "paragraph"]
        assert document.to_raw() == release_notes

    def test_raises_invalid_content(self) -> None:
        with pytest.raises(InvalidContentError):
            ensure_valid({"type": "paragraph"})

    def test_invalid_content_is_a_value_error(self) -> None:
        with pytest.raises(ValueError):
            ensure_valid([{"type": ""}])
