"""Slug allocation for public profile URLs.

Slugs are derived from the display name and disambiguated with a
sequential counter: ``jane-doe``, ``jane-doe-1``, ``jane-doe-2`` ...
"""

import re
from typing import Awaitable, Callable, Iterator

from ..core.errors import ValidationError

_WHITESPACE = re.compile(r"\s+")
_DISALLOWED = re.compile(r"[^a-z0-9-]")

SlugExists = Callable[[str], Awaitable[bool]]


def slugify(name: str) -> str:
    """Normalize a display name into a URL-safe slug base.

    Raises:
        ValidationError: If nothing URL-safe remains after normalization
    """
    slug = _WHITESPACE.sub("-", (name or "").strip().lower())
    slug = _DISALLOWED.sub("", slug)
    if not slug.strip("-"):
        raise ValidationError(
            "Name must contain at least one letter or digit", field="name"
        )
    return slug


def candidate_slugs(base: str) -> Iterator[str]:
    """Yield ``base`` followed by ``base-1``, ``base-2`` and so on."""
    yield base
    counter = 1
    while True:
        yield f"{base}-{counter}"
        counter += 1


async def allocate_slug(name: str, slug_exists: SlugExists) -> str:
    """Return the first free slug for ``name``.

    The storage layer's unique constraint remains the final authority: the
    returned slug may be taken by a concurrent insert before it is used.
    """
    for candidate in candidate_slugs(slugify(name)):
        if not await slug_exists(candidate):
            return candidate
    raise AssertionError("unreachable")


def build_profile_url(base_url: str, slug: str) -> str:
    """Canonical public URL for a slug."""
    return f"{base_url.rstrip('/')}/{slug}"
