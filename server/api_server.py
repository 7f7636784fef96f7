"""FastAPI application entry point for the portfolio catalog API."""

import os
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from shared.logging.logging_setup import setup_logging
from shared.helper.HelperConfig import HelperConfig
from shared.clients.cms.CMSClientInterface import CMSClientInterface
from shared.clients.cms.CMSClientManager import CMSClientManager
from shared.errors.CatalogErrors import RemoteRequestError
from server.core.CatalogQueryService import CatalogQueryService
from server.core.BootstrapService import BootstrapService
from server.routers.PortfolioRouter import portfolio_router
from server.routers.HealthRouter import health_router

logging = setup_logging()
app_version = os.getenv("APP_VERSION", "unknown")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    # when the app starts
    app.state.logging = logging
    app.state.helper_config = HelperConfig(logger=logging)

    cms_client = CMSClientManager(helper_config=app.state.helper_config).get_client()
    await cms_client.boot()
    app.state.cms_client = cms_client

    app.state.query_service = CatalogQueryService(
        helper_config=app.state.helper_config,
        cms_client=cms_client,
    )
    app.state.bootstrap_service = BootstrapService(
        helper_config=app.state.helper_config,
        query_service=app.state.query_service,
    )

    await check_connections(cms_client)
    logging.info("Portfolio catalog API ready.", color="green")

    # while the app is running...
    yield

    # when the app shuts down
    logging.info("Shutting down, closing the CMS client...")
    await cms_client.close()
    logging.info("CMS client closed.")


app = FastAPI(
    title="portfolio_catalog",
    description=(
        "Filterable, searchable, paginated portfolio catalog backed by a content repository "
        "(WordPress REST API). Serves pages via GET /voy/v1/portfolio and initial-state "
        "blobs for embedded instances via POST /voy/v1/portfolio/bootstrap."
    ),
    version=app_version,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(portfolio_router)
app.include_router(health_router)


async def check_connections(cms_client: CMSClientInterface) -> None:
    """Check connectivity to the content repository on startup.

    Failures are non-fatal: requests answer 502 until the repository is back.
    """
    try:
        result = await cms_client.do_healthcheck()
    except RemoteRequestError as e:
        logging.warning("CMS client '%s' is not reachable: %s", cms_client.__class__.__name__, e)
        return
    if not result.is_success:
        logging.warning(
            "CMS client '%s' is not reachable (status %d). Catalog requests may fail.",
            cms_client.__class__.__name__,
            result.status_code,
        )


if __name__ == "__main__":
    import uvicorn

    logging.info(
        "Starting portfolio catalog API v%s from root dir: %s on port 8000...",
        app_version,
        os.environ.get("ROOT_DIR", "unknown"),
    )
    uvicorn.run(app, host="0.0.0.0", port=8000)
