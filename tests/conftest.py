from __future__ import annotations

from pathlib import Path

import pytest

from changelog_content.local.repository import EntryRepository


@pytest.fixture
def release_notes() -> list[dict]:
    return [
        {"type": "heading", "props": {"level": 2}, "content": ["Release Notes"]},
        {
            "type": "paragraph",
            "content": [{"type": "text", "text": "Fixed bugs", "styles": {"bold": True}}],
        },
    ]


@pytest.fixture
def repository(tmp_path: Path) -> EntryRepository:
    return EntryRepository(tmp_path / "entries")
