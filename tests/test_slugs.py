"""Tests for slug derivation and scope-unique resolution."""

from __future__ import annotations

import pytest

from changelog_content.errors import InvalidContentError, SlugConflictError
from changelog_content.slugs.naming import derive_slug, is_valid_slug
from changelog_content.slugs.resolver import persist_with_unique_slug, resolve_unique_slug


class FakeScopes:
    """In-memory slug lookup recording every lookup."""

    def __init__(self, **scopes: set[str]) -> None:
        self.scopes = scopes
        self.calls: list[tuple[str, str]] = []

    def __call__(self, scope: str, slug: str) -> bool:
        self.calls.append((scope, slug))
        return slug in self.scopes.get(scope, set())


class TestDeriveSlug:
    @pytest.mark.parametrize(
        ("title", "expected"),
        [
            ("Hello, World! v2.0", "hello-world-v20"),
            ("  Leading and trailing  ", "leading-and-trailing"),
            ("snake_case__and--dashes", "snake-case-and-dashes"),
            ("---Already-Slugged---", "already-slugged"),
            ("Tabs\tand\nnewlines", "tabs-and-newlines"),
            ("Café au lait", "caf-au-lait"),
            ("", ""),
            ("!!!", ""),
        ],
    )
    def test_normalisation(self, title: str, expected: str) -> None:
        assert derive_slug(title) == expected

    @pytest.mark.parametrize("title", ["Release 1.2", "A & B", "x_y z", "Ünïcödé"])
    def test_non_empty_results_are_valid_slugs(self, title: str) -> None:
        slug = derive_slug(title)

        assert slug == "" or is_valid_slug(slug)

    def test_is_valid_slug(self) -> None:
        assert is_valid_slug("post-1")
        assert not is_valid_slug("")
        assert not is_valid_slug("Post")
        assert not is_valid_slug("post\n")


class TestResolveUniqueSlug:
    def test_free_candidate_is_returned(self) -> None:
        lookup = FakeScopes(acme={"other"})

        assert resolve_unique_slug("post", "acme", lookup) == "post"
        assert lookup.calls == [("acme", "post")]

    def test_first_free_counter_is_used(self) -> None:
        lookup = FakeScopes(acme={"post", "post-1", "post-2"})

        assert resolve_unique_slug("post", "acme", lookup) == "post-3"
        assert len(lookup.calls) == 4

    def test_scopes_are_independent(self) -> None:
        lookup = FakeScopes(acme={"post"}, globex=set())

        assert resolve_unique_slug("post", "globex", lookup) == "post"

    def test_start_seeds_the_counter(self) -> None:
        lookup = FakeScopes(acme={"post"})

        assert resolve_unique_slug("post", "acme", lookup, start=2) == "post-2"

    def test_excluded_slug_counts_as_free(self) -> None:
        lookup = FakeScopes(acme={"post", "post-1"})

        assert resolve_unique_slug("post", "acme", lookup, exclude="post-1") == "post-1"

    def test_empty_candidate_is_rejected(self) -> None:
        with pytest.raises(InvalidContentError):
            resolve_unique_slug("", "acme", FakeScopes())


class TestPersistWithUniqueSlug:
    def test_persists_resolved_slug(self) -> None:
        stored: list[str] = []

        result = persist_with_unique_slug(
            "post", "acme", FakeScopes(acme={"post"}), lambda slug: stored.append(slug) or slug
        )

        assert result == "post-1"
        assert stored == ["post-1"]

    def test_retries_after_concurrent_claim(self) -> None:
        lookup = FakeScopes(acme={"post"})
        attempts: list[str] = []

        def persist(slug: str) -> str:
            attempts.append(slug)
            if slug == "post-1":
                # Another writer claimed it between the lookup and the write.
                lookup.scopes["acme"].add(slug)
                raise SlugConflictError("acme", slug)
            return slug

        assert persist_with_unique_slug("post", "acme", lookup, persist) == "post-2"
        assert attempts == ["post-1", "post-2"]

    def test_retry_seed_skips_invisible_conflicts(self) -> None:
        # The lookup never sees the competing writes, so only the seed moves on.
        attempts: list[str] = []

        def persist(slug: str) -> str:
            attempts.append(slug)
            if len(attempts) < 3:
                raise SlugConflictError("acme", slug)
            return slug

        assert persist_with_unique_slug("post", "acme", FakeScopes(), persist) == "post-2"
        assert attempts == ["post", "post-1", "post-2"]

    def test_gives_up_after_retry_limit(self) -> None:
        def persist(slug: str) -> str:
            raise SlugConflictError("acme", slug)

        with pytest.raises(SlugConflictError) as excinfo:
            persist_with_unique_slug("post", "acme", FakeScopes(), persist, retry_limit=2)

        assert excinfo.value.slug == "post-1"
