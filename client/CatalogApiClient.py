import httpx
from pydantic import ValidationError

from client.CancellationToken import CancellationToken
from shared.clients.ClientInterface import ClientInterface
from shared.errors.CatalogErrors import RemoteRequestError, RepositoryUnavailable
from shared.helper.HelperConfig import HelperConfig
from shared.models.catalog import FilterState, QueryResult, sanitize_search
from shared.models.config import EnvConfig


class CatalogApiClient(ClientInterface):
    """HTTP client for the catalog endpoint, used by the browser-side controller.

    ``api_base`` comes from the boot payload. An absolute URL is used as is; a
    bare path is joined onto CATALOG_API_BASE_URL.
    """

    def __init__(self, helper_config: HelperConfig, api_base: str, base_url: str | None = None):
        super().__init__(helper_config)
        if api_base.startswith(("http://", "https://")):
            self._base_url = api_base
            self._endpoint = ""
        else:
            self._base_url = base_url or self.get_config_val("BASE_URL", default=None)
            self._endpoint = api_base

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_client_type(self) -> str:
        return "catalog"

    def _get_engine_name(self) -> str:
        return "api"

    ################ CONFIG ##################
    def _get_required_config(self) -> list[EnvConfig]:
        return [EnvConfig(env_key="BASE_URL", val_type="string", default="")]

    ################ AUTH ##################
    def _get_auth_header(self) -> dict:
        # public endpoint
        return {}

    ################ ENDPOINTS ##################
    def _get_base_url(self) -> str:
        return self._base_url

    def _get_endpoint_healthcheck(self) -> str:
        return self._endpoint

    ################ PARAMS ##################
    def _get_params_portfolio(self, state: FilterState) -> dict:
        params: dict = {"page": state.page, "per_page": state.page_size}
        search = sanitize_search(state.search)
        if search:
            params["search"] = search
        if state.category is not None:
            params["category"] = state.category
        return params

    ##########################################
    ############### REQUESTS #################
    ##########################################

    async def do_fetch_portfolio(self, state: FilterState, token: CancellationToken) -> QueryResult:
        """Fetch one page of the catalog for ``state``.

        Args:
            state (FilterState): The resolved filter to fetch.
            token (CancellationToken): Aborts the request when cancelled.

        Returns:
            QueryResult: The decoded response body.

        Raises:
            RequestCancelled: If the token was cancelled before the response was applied.
            RepositoryUnavailable: On transport failure, a non-2xx status or a malformed body.
        """
        try:
            response = await token.guard(
                self.do_request(
                    method="GET",
                    endpoint=self._endpoint,
                    params=self._get_params_portfolio(state),
                    additional_headers={"Cache-Control": "no-store"},
                )
            )
        except RemoteRequestError as e:
            raise RepositoryUnavailable(str(e)) from e

        if not response.is_success:
            self.logging.error("Catalog request failed with status %d", response.status_code)
            raise RepositoryUnavailable(f"Catalog endpoint answered with status {response.status_code}.")

        try:
            return QueryResult.model_validate(response.json())
        except (ValueError, ValidationError, httpx.DecodingError) as e:
            self.logging.error("Catalog response could not be decoded: %s", e)
            raise RepositoryUnavailable("Catalog endpoint returned a malformed body.") from e
