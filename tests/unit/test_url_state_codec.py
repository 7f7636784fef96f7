"""
Unit tests for UrlStateCodec
"""

import pytest

from conftest import CATEGORIES
from shared.catalog.UrlStateCodec import UrlStateCodec
from shared.models.catalog import FeatureFlags, FilterState, UrlState


@pytest.fixture
def codec():
    return UrlStateCodec()


@pytest.fixture
def flags():
    return FeatureFlags()


class TestEncode:

    def test_defaults_encode_to_empty(self, codec, flags):
        assert codec.encode(FilterState(), flags) == ""

    def test_field_order_and_slug(self, codec, flags):
        state = FilterState(category=3, search="logo design", page=2)
        assert codec.encode(state, flags, CATEGORIES) == "page=2&c=branding&search=logo+design"

    def test_unknown_id_is_written_as_id(self, codec, flags):
        assert codec.encode(FilterState(category=42), flags, CATEGORIES) == "c=42"

    def test_disabled_features_are_not_written(self, codec):
        flags = FeatureFlags(search_enabled=False, filters_enabled=False, paginator_enabled=True)
        state = FilterState(category=3, search="logo", page=2)
        assert codec.encode(state, flags, CATEGORIES) == "page=2"


class TestDecode:

    def test_leading_question_mark(self, codec, flags):
        state = codec.decode("?page=3&c=web&search=landing", flags)
        assert state == UrlState(category="web", search="landing", page=3)

    def test_numeric_category_decodes_to_int(self, codec, flags):
        assert codec.decode("c=5", flags).category == 5

    def test_legacy_alias(self, codec, flags):
        assert codec.decode("cat=branding", flags).category == "branding"

    def test_current_name_wins_over_legacy(self, codec, flags):
        assert codec.decode("cat=branding&c=web", flags).category == "web"

    @pytest.mark.parametrize("query", ["page=0", "page=-2", "page=abc", "page="])
    def test_invalid_page_falls_back(self, codec, flags, query):
        assert codec.decode(query, flags).page == 1

    def test_empty_values_are_absent(self, codec, flags):
        assert codec.decode("c=&search=", flags) == UrlState()
        assert codec.is_present("c=&search=&page=", flags) == {"page": False, "category": False, "search": False}

    def test_disabled_features_are_not_read(self, codec):
        flags = FeatureFlags(search_enabled=False, filters_enabled=False, paginator_enabled=False)

        assert codec.decode("page=3&c=web&search=x", flags) == UrlState()
        assert not any(codec.is_present("page=3&c=web&search=x", flags).values())

    @pytest.mark.parametrize(
        "state",
        [
            UrlState(),
            UrlState(page=4),
            UrlState(category=5, search="café & co"),
            UrlState(category="web", search="landing", page=2),
        ],
    )
    def test_decode_inverts_encode(self, codec, flags, state):
        assert codec.decode(codec.encode(state, flags), flags) == state

    @pytest.mark.parametrize("query", ["c=.5", "c=-.5", "cat=+.5", "c=0", "c=-3"])
    def test_non_positive_numeric_category_means_all(self, codec, flags, query):
        assert codec.decode(query, flags).category is None


class TestSearchNormalisation:

    def test_inner_whitespace_is_collapsed_when_encoding(self, codec, flags):
        assert codec.encode(FilterState(search="  logo   design "), flags) == "search=logo+design"

    def test_round_trip_gives_the_normalised_search(self, codec, flags):
        decoded = codec.decode(codec.encode(UrlState(search="logo  design"), flags), flags)
        assert decoded == UrlState(search="logo design")
