"""Tests for slug derivation and allocation."""

import pytest

from cardlink.core.errors import ValidationError
from cardlink.domain.slugs import allocate_slug, build_profile_url, candidate_slugs, slugify


@pytest.mark.unit
class TestSlugify:
    """Normalization of display names into slug bases."""

    @pytest.mark.parametrize(
        "name,expected",
        [
            ("Jane Doe", "jane-doe"),
            ("  Jane   Doe  ", "jane-doe"),
            ("Dr. Who?", "dr-who"),
            ("C++ Dev", "c-dev"),
            ("Acme\tCorp\nLLC", "acme-corp-llc"),
            ("Studio 54", "studio-54"),
        ],
    )
    def test_slugify(self, name, expected):
        assert slugify(name) == expected

    def test_non_ascii_letters_are_dropped(self):
        assert slugify("José García") == "jos-garca"

    @pytest.mark.parametrize("name", ["", "   ", "!!!", "---", "日本"])
    def test_nothing_url_safe_left(self, name):
        with pytest.raises(ValidationError) as exc_info:
            slugify(name)
        assert exc_info.value.field == "name"


@pytest.mark.unit
class TestAllocation:
    """Sequential-counter collision policy."""

    def test_candidates_are_sequential(self):
        candidates = candidate_slugs("jane-doe")
        assert [next(candidates) for _ in range(4)] == [
            "jane-doe",
            "jane-doe-1",
            "jane-doe-2",
            "jane-doe-3",
        ]

    async def test_free_base_is_used(self):
        async def taken(slug):
            return False

        assert await allocate_slug("Jane Doe", taken) == "jane-doe"

    async def test_first_free_counter_wins(self):
        existing = {"jane-doe", "jane-doe-1"}

        async def taken(slug):
            return slug in existing

        assert await allocate_slug("Jane Doe", taken) == "jane-doe-2"

    async def test_allocating_twice_yields_distinct_slugs(self):
        existing = set()

        async def taken(slug):
            return slug in existing

        first = await allocate_slug("Jane Doe", taken)
        existing.add(first)
        second = await allocate_slug("Jane Doe", taken)

        assert first == "jane-doe"
        assert second == "jane-doe-1"

    def test_profile_url_joins_base_and_slug(self):
        assert build_profile_url("https://linkme.io/", "jane-doe") == "https://linkme.io/jane-doe"
        assert build_profile_url("https://linkme.io", "jane-doe") == "https://linkme.io/jane-doe"
