"""
Pytest configuration and shared fixtures

Provides a fake WordPress site (served through httpx.MockTransport), a fake
catalog endpoint for controller tests and the usual config/logger fixtures.
"""

import os

# must be set before any module reads its configuration
os.environ.setdefault("LOG_FILE_ENABLED", "false")
os.environ.setdefault("CMS_WORDPRESS_BASE_URL", "http://wp.test")
os.environ.setdefault("CATALOG_API_BASE_URL", "http://testserver")

import asyncio
import math

import httpx
import pytest
import pytest_asyncio

from client.CancellationToken import CancellationToken
from shared.clients.cms.wordpress.CMSClientWordpress import CMSClientWordpress
from shared.errors.CatalogErrors import RepositoryUnavailable
from shared.helper.HelperConfig import HelperConfig
from shared.logging.logging_setup import setup_logging
from shared.models.boot import BootPayload, InitialState
from shared.models.catalog import Category, FeatureFlags, FilterState, Item, QueryResult, RenderedText

CATEGORIES = [Category(id=3, name="Branding", slug="branding"), Category(id=5, name="Web", slug="web")]

WP_BASE = "http://wp.test"

TERMS = [
    {"id": 3, "name": "Branding", "slug": "branding", "taxonomy": "project-cat", "count": 4},
    {"id": 5, "name": "Web", "slug": "web", "taxonomy": "project-cat", "count": 6},
    {"id": 9, "name": "Print", "slug": "print", "taxonomy": "project-cat", "count": 0},
]


def _media(n: int) -> dict:
    return {
        "id": 900 + n,
        "source_url": f"{WP_BASE}/uploads/p{n}.jpg",
        "media_details": {
            "width": 1600,
            "sizes": {
                "thumbnail": {"source_url": f"{WP_BASE}/uploads/p{n}-150.jpg", "width": 150},
                "medium_large": {"source_url": f"{WP_BASE}/uploads/p{n}-768.jpg", "width": 768},
            },
        },
    }


def _entry(n: int, term_ids: list[int], title: str, with_image: bool = True) -> dict:
    terms = [t for t in TERMS if t["id"] in term_ids]
    embedded: dict = {"wp:term": [terms, [{"id": 77, "name": "Featured", "slug": "featured", "taxonomy": "post_tag"}]]}
    if with_image:
        embedded["wp:featuredmedia"] = [_media(n)]
    return {
        "id": 100 + n,
        "title": {"rendered": title},
        "link": f"{WP_BASE}/portfolio/project-{n}/",
        "status": "publish",
        "type": "portfolio",
        "project-cat": term_ids,
        "_embedded": embedded,
    }


def build_entries() -> list[dict]:
    """Ten published projects, newest first: 1-4 branding, 5-10 web, 10 without image."""
    entries = []
    for n in range(1, 11):
        term_ids = [3] if n <= 4 else [5]
        title = f"Logo refresh {n}" if n % 2 else f"Landing page {n}"
        entries.append(_entry(n, term_ids, title, with_image=n != 10))
    return entries


class FakeWordpress:
    """Minimal wp/v2 implementation of the portfolio and project-cat routes."""

    def __init__(self) -> None:
        self.entries = build_entries()
        self.terms = list(TERMS)
        self.requests: list[httpx.Request] = []
        self.fail_with: int | None = None

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.fail_with is not None:
            return httpx.Response(self.fail_with, json={"code": "internal_error"})

        path = request.url.path
        params = request.url.params
        if path == "/wp-json/":
            return httpx.Response(200, json={"name": "Fake site"})
        if path == "/wp-json/wp/v2/project-cat":
            return self._terms(params)
        if path == "/wp-json/wp/v2/portfolio":
            return self._entries(params)
        return httpx.Response(404, json={"code": "rest_no_route"})

    def entry_requests(self) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.path == "/wp-json/wp/v2/portfolio"]

    def _paginate(self, rows: list[dict], params) -> tuple[list[dict], dict, int, int]:
        page = int(params.get("page", "1"))
        per_page = int(params.get("per_page", "10"))
        total = len(rows)
        total_pages = math.ceil(total / per_page) if total else 0
        headers = {"X-WP-Total": str(total), "X-WP-TotalPages": str(total_pages)}
        start = (page - 1) * per_page
        return rows[start:start + per_page], headers, page, total_pages

    def _terms(self, params) -> httpx.Response:
        rows = self.terms
        if params.get("slug"):
            rows = [t for t in rows if t["slug"] == params["slug"]]
        if params.get("hide_empty") == "true":
            rows = [t for t in rows if t["count"] > 0]
        rows = sorted(rows, key=lambda t: t["name"])
        page_rows, headers, _, _ = self._paginate(rows, params)
        return httpx.Response(200, json=page_rows, headers=headers)

    def _entries(self, params) -> httpx.Response:
        rows = [e for e in self.entries if e["status"] == params.get("status", "publish")]
        if params.get("project-cat"):
            term_id = int(params["project-cat"])
            rows = [e for e in rows if term_id in e["project-cat"]]
        if params.get("search"):
            needle = params["search"].lower()
            rows = [e for e in rows if needle in e["title"]["rendered"].lower()]
        page_rows, headers, page, total_pages = self._paginate(rows, params)
        if rows and page > total_pages:
            return httpx.Response(
                400,
                json={"code": "rest_post_invalid_page_number", "message": "The page number requested is larger than the number of pages available."},
            )
        return httpx.Response(200, json=page_rows, headers=headers)


def make_result(state: FilterState, total: int = 20) -> QueryResult:
    """Deterministic QueryResult for a resolved state, used by the fake catalog endpoint."""
    offset = (state.category or 0) * 1000 + state.page * 100
    count = max(0, min(state.page_size, total - (state.page - 1) * state.page_size))
    items = [
        Item(
            id=offset + i,
            title=RenderedText(rendered=f"{state.search or 'Project'} {offset + i}"),
            link=f"https://example.test/portfolio/{offset + i}/",
            image=f"https://example.test/uploads/{offset + i}.jpg",
        )
        for i in range(count)
    ]
    return QueryResult(
        items=items,
        categories=CATEGORIES,
        total=total,
        total_pages=max(1, math.ceil(total / state.page_size)),
    )


class FakeCatalogApi:
    """Stands in for CatalogApiClient; responses can be held back and released one by one."""

    def __init__(self) -> None:
        self.calls: list[FilterState] = []
        self.hold = False
        self.fail = False
        self._gates: list[asyncio.Event] = []

    async def do_fetch_portfolio(self, state: FilterState, token: CancellationToken) -> QueryResult:
        self.calls.append(state)
        return await token.guard(self._respond(state))

    async def _respond(self, state: FilterState) -> QueryResult:
        if self.hold:
            gate = asyncio.Event()
            self._gates.append(gate)
            await gate.wait()
        if self.fail:
            raise RepositoryUnavailable("catalog endpoint down")
        return make_result(state)

    def release_all(self) -> None:
        for gate in self._gates:
            gate.set()
        self._gates.clear()


async def wait_for(predicate, timeout: float = 1.0) -> None:
    """Yield to the loop until ``predicate()`` holds."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not reached in time")
        await asyncio.sleep(0.001)


@pytest.fixture(scope="session")
def logger():
    return setup_logging("catalog.tests")


@pytest.fixture
def helper_config(logger):
    return HelperConfig(logger=logger)


@pytest.fixture
def fake_wordpress():
    return FakeWordpress()


@pytest_asyncio.fixture
async def cms_client(helper_config, fake_wordpress):
    client = CMSClientWordpress(helper_config=helper_config)
    await client.boot(transport=httpx.MockTransport(fake_wordpress.handler))
    yield client
    await client.close()


@pytest.fixture
def fake_api():
    return FakeCatalogApi()


@pytest.fixture
def boot_payload():
    """Server render of the first page (all categories, no search, 8 per page)."""
    state = FilterState(page_size=8)
    result = make_result(state)
    return BootPayload(
        uid="voyp_test00000001",
        config=FeatureFlags(items_per_page=8),
        initial=InitialState(
            projects=result.items,
            categories=result.categories,
            total_pages=result.total_pages,
            total=result.total,
            current_page=1,
            active_category=None,
            search="",
        ),
        api_base="/voy/v1/portfolio",
    )
