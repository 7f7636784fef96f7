"""
Unit tests for ResponseCache
"""

import pytest

from client.ResponseCache import ResponseCache
from conftest import make_result
from shared.models.catalog import CanonicalQueryKey, FilterState


@pytest.fixture
def cache(helper_config):
    return ResponseCache(helper_config)


class TestResponseCache:

    def test_miss_returns_none(self, cache):
        assert cache.get(CanonicalQueryKey.from_state(FilterState())) is None
        assert len(cache) == 0

    def test_put_then_get(self, cache):
        state = FilterState(category=3, page=2)
        key = CanonicalQueryKey.from_state(state)
        result = make_result(state)

        cache.put(key, result)

        assert key in cache
        assert cache.get(key) is result

    def test_equivalent_states_share_an_entry(self, cache):
        cache.put(CanonicalQueryKey.from_state(FilterState(search="logo ")), make_result(FilterState()))

        assert CanonicalQueryKey.from_state(FilterState(search=" logo")) in cache
        assert len(cache) == 1

    def test_clear(self, cache):
        cache.put(CanonicalQueryKey.from_state(FilterState()), make_result(FilterState()))
        cache.clear()
        assert len(cache) == 0
