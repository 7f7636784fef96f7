"""Bootstrap service: builds the initial-state blob for one embedded catalog instance.

The server renders the first page itself so the catalog is visible before any
client code runs. The blob handed to the client carries the instance's
feature flags and the exact QueryResult that was rendered, together with the
filter it was rendered for, so the client can adopt it as a cache entry.
"""

import uuid

from server.core.CatalogQueryService import CatalogQueryService
from shared.catalog.FilterResolver import coerce_int
from shared.catalog.UrlStateCodec import UrlStateCodec
from shared.errors.CatalogErrors import InvalidInput
from shared.helper.HelperConfig import HelperConfig
from shared.models.boot import (
    PLACEHOLDER_IMAGE,
    BootPayload,
    BootstrapResponse,
    InitialState,
    InstanceDescriptor,
    ShortcodeAttributes,
)
from shared.models.catalog import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE, FeatureFlags


class BootstrapService:
    """Computes the server-rendered initial state of an instance."""

    def __init__(
        self,
        helper_config: HelperConfig,
        query_service: CatalogQueryService,
        codec: UrlStateCodec | None = None,
    ) -> None:
        self.logging = helper_config.get_logger()
        self._query_service = query_service
        self._codec = codec or UrlStateCodec()
        self._api_base = helper_config.get_string_val("CATALOG_API_BASE", default="/voy/v1/portfolio")
        self._placeholder = helper_config.get_string_val("CATALOG_PLACEHOLDER", default=PLACEHOLDER_IMAGE)

    async def do_build(self, attributes: ShortcodeAttributes, query_string: str = "") -> BootstrapResponse:
        """Build descriptor and boot payload for one instance.

        Values in the address bar win over the embed attributes; a disabled
        feature ignores both.

        Args:
            attributes (ShortcodeAttributes): The instance's embed options.
            query_string (str): The page's query string.

        Returns:
            BootstrapResponse: Registry descriptor plus the boot payload.

        Raises:
            RepositoryUnavailable: If the initial query cannot be served.
        """
        flags = self.build_flags(attributes)
        url_state = self._codec.decode(query_string, flags)
        present = self._codec.is_present(query_string, flags)

        initial_search = ""
        if flags.search_enabled:
            initial_search = url_state.search if present["search"] else attributes.q
        initial_category = None
        if flags.filters_enabled:
            initial_category = url_state.category if present["category"] else attributes.category
        initial_page = 1
        if flags.paginator_enabled:
            initial_page = url_state.page if present["page"] else (attributes.page or 1)

        resolved = await self._query_service.do_resolve(
            initial_category, initial_search, initial_page, flags.items_per_page
        )
        result = await self._query_service.do_execute(resolved.state)

        uid = f"voyp_{uuid.uuid4().hex[:13]}"
        descriptor = InstanceDescriptor(
            uid=uid,
            container_id=f"voy-portfolio-{uid}",
            state_id=f"voy-portfolio-state-{uid}",
        )
        payload = BootPayload(
            uid=uid,
            config=flags,
            initial=InitialState(
                projects=result.items,
                categories=result.categories,
                total_pages=result.total_pages,
                total=result.total,
                current_page=resolved.state.page,
                active_category=resolved.state.category,
                search=resolved.state.search,
            ),
            api_base=self._api_base,
            placeholder=self._placeholder,
        )
        self.logging.info(
            "Bootstrapped instance %s: category=%s page=%d items=%d",
            uid,
            resolved.state.category if resolved.state.category is not None else "all",
            resolved.state.page,
            len(result.items),
        )
        return BootstrapResponse(descriptor=descriptor, payload=payload)

    def build_flags(self, attributes: ShortcodeAttributes) -> FeatureFlags:
        try:
            per_page = coerce_int("per_page", attributes.per_page)
        except InvalidInput:
            per_page = DEFAULT_PAGE_SIZE
        return FeatureFlags(
            search_enabled=attributes.search == "1",
            filters_enabled=attributes.filters == "1",
            paginator_enabled=attributes.paginator == "1",
            items_per_page=max(1, min(MAX_PAGE_SIZE, per_page)),
        )
