"""Find a slug that is not yet taken within a scope.

The lookup loop is advisory: between the read that reports a slug as free and
the write that stores it, another writer may claim the same slug. The
persistence layer's uniqueness constraint is the authoritative guard, and
:func:`persist_with_unique_slug` retries against it a bounded number of times.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional, Protocol, TypeVar

from changelog_content.errors import InvalidContentError, SlugConflictError

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_RETRY_LIMIT = 3


class SlugLookup(Protocol):
    def __call__(self, scope: str, slug: str) -> bool:
        ...


def resolve_unique_slug(
    candidate: str,
    scope: str,
    exists_in_scope: SlugLookup,
    *,
    start: int = 0,
    exclude: Optional[str] = None,
) -> str:
    """Return ``candidate`` or the first free ``{candidate}-{n}`` in ``scope``.

    ``start`` seeds the counter when retrying after a conflict, and ``exclude``
    names the slug currently held by the entry being updated so it can keep it.
    """

    if not candidate:
        raise InvalidContentError("Cannot resolve an empty slug")

    counter = start
    final = _with_counter(candidate, counter)
    while True:
        if final == exclude or not exists_in_scope(scope, final):
            logger.debug("Resolved slug %r in scope %r", final, scope)
            return final
        logger.debug("Slug %r already taken in scope %r", final, scope)
        counter += 1
        final = _with_counter(candidate, counter)


def persist_with_unique_slug(
    candidate: str,
    scope: str,
    exists_in_scope: SlugLookup,
    persist: Callable[[str], T],
    *,
    retry_limit: int = DEFAULT_RETRY_LIMIT,
    exclude: Optional[str] = None,
) -> T:
    """Resolve a slug and hand it to ``persist``, retrying on write conflicts.

    ``persist`` must raise :class:`SlugConflictError` when the store rejects the
    slug. After ``retry_limit`` rejected attempts the last conflict propagates.
    """

    start = 0
    attempts = 0
    while True:
        slug = resolve_unique_slug(candidate, scope, exists_in_scope, start=start, exclude=exclude)
        try:
            return persist(slug)
        except SlugConflictError:
            attempts += 1
            if attempts >= retry_limit:
                logger.error(
                    "Giving up on slug %r in scope %r after %d conflicts", candidate, scope, attempts
                )
                raise
            start = _counter_of(candidate, slug) + 1
            logger.warning(
                "Slug %r was claimed concurrently in scope %r; retrying from %d",
                slug,
                scope,
                start,
            )


def _with_counter(candidate: str, counter: int) -> str:
    return candidate if counter == 0 else f"{candidate}-{counter}"


def _counter_of(candidate: str, slug: str) -> int:
    if slug == candidate:
        return 0
    return int(slug[len(candidate) + 1 :])
