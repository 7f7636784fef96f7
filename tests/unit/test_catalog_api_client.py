"""
Unit tests for CatalogApiClient
"""

import asyncio

import httpx
import pytest
import pytest_asyncio

from client.CancellationToken import CancellationToken
from client.CatalogApiClient import CatalogApiClient
from conftest import make_result
from shared.errors.CatalogErrors import RepositoryUnavailable, RequestCancelled
from shared.models.catalog import FilterState


class CatalogEndpoint:
    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.status = 200
        self.body = None

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.body is not None:
            return httpx.Response(self.status, content=self.body)
        state = FilterState(page=int(request.url.params.get("page", "1")), page_size=int(request.url.params["per_page"]))
        return httpx.Response(self.status, json=make_result(state).model_dump(by_alias=True))


@pytest.fixture
def endpoint():
    return CatalogEndpoint()


@pytest_asyncio.fixture
async def api_client(helper_config, endpoint):
    client = CatalogApiClient(helper_config, api_base="/voy/v1/portfolio")
    await client.boot(transport=httpx.MockTransport(endpoint.handler))
    yield client
    await client.close()


class TestCatalogApiClient:

    @pytest.mark.asyncio
    async def test_sends_filter_and_no_store(self, api_client, endpoint):
        state = FilterState(category=3, search=" logo ", page=2, page_size=8)

        result = await api_client.do_fetch_portfolio(state, CancellationToken())

        request = endpoint.requests[0]
        assert str(request.url).startswith("http://testserver/voy/v1/portfolio?")
        assert dict(request.url.params) == {"page": "2", "per_page": "8", "search": "logo", "category": "3"}
        assert request.headers["Cache-Control"] == "no-store"
        assert result.total == 20

    @pytest.mark.asyncio
    async def test_all_categories_and_empty_search_are_omitted(self, api_client, endpoint):
        await api_client.do_fetch_portfolio(FilterState(), CancellationToken())
        assert set(endpoint.requests[0].url.params) == {"page", "per_page"}

    @pytest.mark.asyncio
    async def test_search_whitespace_is_collapsed(self, api_client, endpoint):
        await api_client.do_fetch_portfolio(FilterState(search="logo   design"), CancellationToken())
        assert endpoint.requests[0].url.params["search"] == "logo design"

    def test_absolute_api_base_is_used_as_is(self, helper_config):
        client = CatalogApiClient(helper_config, api_base="https://site.example/voy/v1/portfolio")
        assert client._get_base_url() == "https://site.example/voy/v1/portfolio"
        assert client._get_endpoint_healthcheck() == ""

    @pytest.mark.asyncio
    async def test_error_status(self, api_client, endpoint):
        endpoint.status = 502
        with pytest.raises(RepositoryUnavailable):
            await api_client.do_fetch_portfolio(FilterState(), CancellationToken())

    @pytest.mark.asyncio
    async def test_malformed_body(self, api_client, endpoint):
        endpoint.body = b"<html>maintenance</html>"
        with pytest.raises(RepositoryUnavailable):
            await api_client.do_fetch_portfolio(FilterState(), CancellationToken())

    @pytest.mark.asyncio
    async def test_transport_failure(self, helper_config):
        def refuse(request):
            raise httpx.ConnectError("connection refused", request=request)

        client = CatalogApiClient(helper_config, api_base="/voy/v1/portfolio")
        await client.boot(transport=httpx.MockTransport(refuse))
        try:
            with pytest.raises(RepositoryUnavailable):
                await client.do_fetch_portfolio(FilterState(), CancellationToken())
        finally:
            await client.close()

    @pytest.mark.asyncio
    async def test_cancelled_request(self, helper_config):
        started = asyncio.Event()

        async def slow(request):
            started.set()
            await asyncio.sleep(10)
            return httpx.Response(200, json={})

        client = CatalogApiClient(helper_config, api_base="/voy/v1/portfolio")
        await client.boot(transport=httpx.MockTransport(slow))
        token = CancellationToken()
        try:
            pending = asyncio.create_task(client.do_fetch_portfolio(FilterState(), token))
            await started.wait()
            token.cancel()
            with pytest.raises(RequestCancelled):
                await pending
        finally:
            await client.close()
