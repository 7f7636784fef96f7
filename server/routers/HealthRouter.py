"""Health router: liveness plus reachability of the content repository."""

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from shared.errors.CatalogErrors import RemoteRequestError

health_router = APIRouter(tags=["Health"])


@health_router.get("/health")
async def get_health(request: Request) -> JSONResponse:
    """Report the app version and whether the content repository answers.

    Always 200 while the app itself is up; repository trouble is reported in the body.
    """
    cms_client = request.app.state.cms_client
    try:
        response = await cms_client.do_healthcheck()
        repository = "ok" if response.is_success else f"status {response.status_code}"
    except RemoteRequestError:
        repository = "unreachable"

    return JSONResponse(
        content={
            "status": "ok",
            "version": request.app.version,
            "repository": repository,
        }
    )
