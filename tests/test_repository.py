"""Tests for the file-backed entry repository."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from changelog_content.errors import EntryNotFoundError, SlugConflictError
from changelog_content.local.models import ContentEntry
from changelog_content.local.repository import EntryRepository


def _entry(slug: str = "launch", scope: str = "acme/changelog", **kwargs) -> ContentEntry:
    defaults = {
        "title": "Launch",
        "document": [{"type": "paragraph", "content": ["We launched"]}],
        "html_content": "<p>We launched</p>",
        "excerpt": "We launched",
    }
    defaults.update(kwargs)
    return ContentEntry(scope=scope, slug=slug, **defaults)


class TestCreateAndRead:
    def test_round_trip(self, repository: EntryRepository) -> None:
        published = datetime(2024, 5, 1, 12, 30, tzinfo=timezone.utc)
        repository.create(_entry(status="published", published_at=published))

        stored = repository.get("acme/changelog", "launch")

        assert stored.title == "Launch"
        assert stored.document == [{"type": "paragraph", "content": ["We launched"]}]
        assert stored.html_content == "<p>We launched</p>"
        assert stored.excerpt == "We launched"
        assert stored.status == "published"
        assert stored.published_at == published
        assert stored.path == repository.root.resolve() / "acme" / "changelog" / "launch.md"

    def test_exists_in_scope(self, repository: EntryRepository) -> None:
        repository.create(_entry())

        assert repository.exists_in_scope("acme/changelog", "launch")
        assert not repository.exists_in_scope("acme/changelog", "other")
        assert not repository.exists_in_scope("globex/changelog", "launch")

    def test_create_rejects_taken_slug(self, repository: EntryRepository) -> None:
        repository.create(_entry())

        with pytest.raises(SlugConflictError) as excinfo:
            repository.create(_entry(title="Second"))

        assert excinfo.value.slug == "launch"
        assert repository.get("acme/changelog", "launch").title == "Launch"

    def test_get_missing_entry(self, repository: EntryRepository) -> None:
        with pytest.raises(EntryNotFoundError):
            repository.get("acme/changelog", "missing")

    def test_list_entries_sorted_by_slug(self, repository: EntryRepository) -> None:
        repository.create(_entry("zeta"))
        repository.create(_entry("alpha"))

        assert [entry.slug for entry in repository.list_entries("acme/changelog")] == ["alpha", "zeta"]
        assert repository.list_entries("empty") == []


class TestUpdates:
    def test_save_overwrites(self, repository: EntryRepository) -> None:
        entry = repository.create(_entry())
        entry.title = "Renamed"

        repository.save(entry)

        assert repository.get("acme/changelog", "launch").title == "Renamed"

    def test_save_requires_existing_entry(self, repository: EntryRepository) -> None:
        with pytest.raises(EntryNotFoundError):
            repository.save(_entry())

    def test_rename_moves_entry(self, repository: EntryRepository) -> None:
        entry = repository.create(_entry())
        entry.slug = "launch-day"

        repository.rename(entry, "launch")

        assert repository.exists_in_scope("acme/changelog", "launch-day")
        assert not repository.exists_in_scope("acme/changelog", "launch")

    def test_rename_onto_taken_slug_keeps_original(self, repository: EntryRepository) -> None:
        repository.create(_entry("other"))
        entry = repository.create(_entry())
        entry.slug = "other"

        with pytest.raises(SlugConflictError):
            repository.rename(entry, "launch")

        assert repository.exists_in_scope("acme/changelog", "launch")

    def test_delete(self, repository: EntryRepository) -> None:
        repository.create(_entry())

        repository.delete("acme/changelog", "launch")

        assert not repository.exists_in_scope("acme/changelog", "launch")
        with pytest.raises(EntryNotFoundError):
            repository.delete("acme/changelog", "launch")


class TestScopes:
    @pytest.mark.parametrize("scope", ["", "../outside", "acme/../../x", "/abs", "acme//x"])
    def test_invalid_scopes_are_rejected(self, repository: EntryRepository, scope: str) -> None:
        with pytest.raises(ValueError):
            repository.scope_directory(scope)

    def test_invalid_slug_is_rejected(self, repository: EntryRepository) -> None:
        with pytest.raises(ValueError):
            repository.exists_in_scope("acme", "../escape")

    @pytest.mark.parametrize("slug", ["", "Launch", "launch.v2", "launch_day", "launch day"])
    def test_slug_outside_slug_alphabet_is_rejected(
        self, repository: EntryRepository, slug: str
    ) -> None:
        with pytest.raises(ValueError):
            repository.get("acme/changelog", slug)
