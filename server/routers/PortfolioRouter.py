"""Portfolio router: the network form of the catalog query service.

GET  /voy/v1/portfolio            : one page of items + in-use categories + totals
POST /voy/v1/portfolio/bootstrap  : initial-state blob for an embedded instance
"""

from fastapi import APIRouter, HTTPException, Query, Request

from shared.errors.CatalogErrors import RepositoryUnavailable
from shared.models.boot import BootstrapRequest, BootstrapResponse
from shared.models.catalog import QueryResult

portfolio_router = APIRouter(prefix="/voy/v1", tags=["Portfolio"])

UNAVAILABLE_DETAIL = "Catalog repository unavailable."


@portfolio_router.get("/portfolio", response_model=QueryResult)
async def get_portfolio(
    request: Request,
    page: str | None = Query(default="1", description="Page (1-indexed)"),
    per_page: str | None = Query(default="8", description="Page size, clamped to 1..50"),
    search: str | None = Query(default=None, description="Free-text search"),
    category: str | None = Query(default=None, description="Category term id or slug"),
) -> QueryResult:
    """Return one page of the portfolio catalog.

    Parameters are taken as raw strings: malformed or out-of-range values fall
    back to defaults instead of failing the request.

    Raises:
        HTTPException: 502 if the content repository is unavailable.
    """
    request.app.state.logging.info(
        "Portfolio request: page=%r per_page=%r category=%r search=%r",
        page,
        per_page,
        category,
        (search or "")[:80],
    )
    query_service = request.app.state.query_service
    try:
        return await query_service.do_query(
            raw_category=category,
            raw_search=search,
            raw_page=page,
            raw_page_size=per_page,
        )
    except RepositoryUnavailable:
        raise HTTPException(status_code=502, detail=UNAVAILABLE_DETAIL)


@portfolio_router.post("/portfolio/bootstrap", response_model=BootstrapResponse)
async def post_bootstrap(request: Request, body: BootstrapRequest) -> BootstrapResponse:
    """Build the server-rendered initial state for one embedded instance.

    Raises:
        HTTPException: 502 if the content repository is unavailable.
    """
    bootstrap_service = request.app.state.bootstrap_service
    try:
        return await bootstrap_service.do_build(body.attributes, body.query_string)
    except RepositoryUnavailable:
        raise HTTPException(status_code=502, detail=UNAVAILABLE_DETAIL)
