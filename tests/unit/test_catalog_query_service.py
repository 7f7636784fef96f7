"""
Unit tests for CatalogQueryService
"""

import pytest

from server.core.CatalogQueryService import CatalogQueryService
from shared.errors.CatalogErrors import RepositoryUnavailable
from shared.models.catalog import FilterState


@pytest.fixture
def query_service(helper_config, cms_client):
    return CatalogQueryService(helper_config=helper_config, cms_client=cms_client)


class TestComputeTotalPages:

    @pytest.mark.parametrize("total, page_size, expected", [(0, 8, 1), (1, 8, 1), (8, 8, 1), (9, 8, 2), (10, 4, 3)])
    def test_ceiling_with_floor_of_one(self, total, page_size, expected):
        assert CatalogQueryService.compute_total_pages(total, page_size) == expected


class TestExecute:

    @pytest.mark.asyncio
    async def test_all_categories(self, query_service):
        result = await query_service.do_execute(FilterState(page_size=4))

        assert [i.id for i in result.items] == [101, 102, 103, 104]
        assert result.total == 10
        assert result.total_pages == 3
        assert [c.slug for c in result.categories] == ["branding", "web"]

    @pytest.mark.asyncio
    async def test_categories_do_not_depend_on_the_filter(self, query_service):
        unfiltered = await query_service.do_execute(FilterState())
        filtered = await query_service.do_execute(FilterState(category=3, search="logo"))

        assert filtered.categories == unfiltered.categories

    @pytest.mark.asyncio
    async def test_category_and_search(self, query_service):
        result = await query_service.do_execute(FilterState(category=3, search="logo"))

        assert [i.id for i in result.items] == [101, 103]
        assert result.total == 2
        assert result.total_pages == 1

    @pytest.mark.asyncio
    async def test_no_match_still_has_one_page(self, query_service):
        result = await query_service.do_execute(FilterState(search="nothing like this"))

        assert result.items == []
        assert result.total == 0
        assert result.total_pages == 1

    @pytest.mark.asyncio
    async def test_search_is_normalised_before_it_is_sent(self, query_service, fake_wordpress):
        result = await query_service.do_execute(FilterState(search="  logo   refresh "))

        assert result.total == 5
        assert fake_wordpress.entry_requests()[-1].url.params["search"] == "logo refresh"

    @pytest.mark.asyncio
    async def test_page_past_the_end(self, query_service):
        result = await query_service.do_execute(FilterState(page=7, page_size=4))

        assert result.items == []
        assert result.total == 10
        assert result.total_pages == 3

    @pytest.mark.asyncio
    async def test_unresolved_state_is_rejected(self, query_service):
        with pytest.raises(ValueError):
            await query_service.do_execute(FilterState(category="branding"))

    @pytest.mark.asyncio
    async def test_repository_failure(self, query_service, fake_wordpress):
        fake_wordpress.fail_with = 503
        with pytest.raises(RepositoryUnavailable):
            await query_service.do_execute(FilterState())


class TestQuery:

    @pytest.mark.asyncio
    async def test_slug_is_resolved_against_the_repository(self, query_service):
        result = await query_service.do_query(raw_category="web", raw_page="2", raw_page_size="4")

        assert [i.id for i in result.items] == [109, 110]
        assert result.total == 6

    @pytest.mark.asyncio
    async def test_unresolvable_slug_lists_everything(self, query_service):
        result = await query_service.do_query(raw_category="photography")
        assert result.total == 10

    @pytest.mark.asyncio
    async def test_malformed_parameters_fall_back(self, query_service):
        result = await query_service.do_query(raw_page="abc", raw_page_size="-3")

        assert len(result.items) == 1
        assert result.total_pages == 10

    @pytest.mark.asyncio
    async def test_lookup_failure_is_repository_unavailable(self, query_service, fake_wordpress):
        fake_wordpress.fail_with = 500
        with pytest.raises(RepositoryUnavailable):
            await query_service.do_query(raw_category="branding")

    @pytest.mark.asyncio
    async def test_unknown_numeric_id_gives_no_results(self, query_service):
        result = await query_service.do_query(raw_category="99")

        assert result.items == []
        assert result.total == 0
        assert result.total_pages == 1
        assert [c.slug for c in result.categories] == ["branding", "web"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("raw_category", [".5", "-.5"])
    async def test_fractional_category_lists_everything(self, query_service, raw_category):
        result = await query_service.do_query(raw_category=raw_category)
        assert result.total == 10
