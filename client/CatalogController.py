"""Catalog controller: the interactive state machine of one embedded instance.

The controller owns the current FilterState, the ResponseCache, the in-flight
request and the search debounce timer. Every user event goes through it:

  idle ──event──> (cache hit) ──> idle            results swap instantly
  idle ──event──> (cache miss) ──> loading ──ok──> idle
                                          └─fail─> error ──event──> ...

A newer event always supersedes an older in-flight request; the superseded
response is never applied and never turns into an error.
"""

import asyncio
from enum import Enum
from typing import Callable

from pydantic import BaseModel

from client.CancellationToken import CancellationToken
from client.CatalogApiClient import CatalogApiClient
from client.ResponseCache import ResponseCache
from shared.catalog.FilterResolver import FilterResolver, categories_lookup
from shared.catalog.UrlStateCodec import UrlStateCodec
from shared.errors.CatalogErrors import RepositoryUnavailable, RequestCancelled
from shared.helper.HelperConfig import HelperConfig
from shared.models.boot import BootPayload
from shared.models.catalog import (
    CanonicalQueryKey,
    Category,
    CategoryOutcome,
    FilterState,
    Item,
    QueryResult,
)

NO_RESULTS_MESSAGE = "No results"


class ControllerStatus(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    ERROR = "error"


class ViewItem(BaseModel):
    """An item as displayed; ``image_loaded`` drives the fade-in of its picture."""

    item: Item
    image: str
    srcset: str = ""
    image_loaded: bool = False

    @classmethod
    def from_item(cls, item: Item, placeholder: str, image_loaded: bool = False) -> "ViewItem":
        if not item.image:
            # nothing to wait for
            return cls(item=item, image=placeholder, srcset="", image_loaded=True)
        return cls(item=item, image=item.image, srcset=item.srcset, image_loaded=image_loaded)


class ViewState(BaseModel):
    """Everything a renderer needs to draw the instance."""

    status: ControllerStatus = ControllerStatus.IDLE
    items: list[ViewItem] = []
    categories: list[Category] = []
    active_category: int | None = None
    search: str = ""
    current_page: int = 1
    total_pages: int = 1
    total: int = 0
    message: str | None = None


class CatalogController:
    def __init__(
        self,
        helper_config: HelperConfig,
        boot: BootPayload,
        api_client: CatalogApiClient,
        on_render: Callable[[ViewState], None] | None = None,
        on_address_change: Callable[[str], None] | None = None,
        debounce_seconds: float | None = None,
        codec: UrlStateCodec | None = None,
    ) -> None:
        self.logging = helper_config.get_logger()
        self.uid = boot.uid
        self.flags = boot.config
        self._boot = boot
        self._api_client = api_client
        self._cache = ResponseCache(helper_config)
        self._codec = codec or UrlStateCodec()
        self._resolver = FilterResolver(helper_config, default_page_size=self.flags.items_per_page)
        if debounce_seconds is None:
            debounce_seconds = helper_config.get_number_val("CATALOG_SEARCH_DEBOUNCE_MS", default=650) / 1000
        self._debounce_seconds = debounce_seconds
        self._on_render = on_render
        self._on_address_change = on_address_change

        initial = boot.initial
        self._state = FilterState(
            category=initial.active_category if self.flags.filters_enabled else None,
            search=initial.search if self.flags.search_enabled else "",
            page=initial.current_page if self.flags.paginator_enabled else 1,
            page_size=self.flags.items_per_page,
        )
        self.status = ControllerStatus.IDLE
        self.view = ViewState()
        self.query_string = ""

        self._token: CancellationToken | None = None
        self._debounce_task: asyncio.Task | None = None

    ##########################################
    ################ GETTER ##################
    ##########################################

    @property
    def state(self) -> FilterState:
        return self._state

    @property
    def cache(self) -> ResponseCache:
        return self._cache

    def get_key(self, state: FilterState | None = None) -> CanonicalQueryKey:
        return CanonicalQueryKey.from_state(state or self._state, search_enabled=self.flags.search_enabled)

    ##########################################
    ################ EVENTS ##################
    ##########################################

    async def do_mount(self, query_string: str = "") -> None:
        """Adopt the server-rendered state, then reconcile it with the address bar.

        The first paint shows exactly what the server rendered. Only if the
        address describes a different query is a fetch issued.

        Args:
            query_string (str): The page's query string at mount time.
        """
        initial = self._boot.initial
        server_state = self._state
        server_key = self.get_key(server_state)
        self._cache.put(server_key, initial.to_query_result())

        self.view.categories = list(initial.categories)
        self._apply_result(initial.to_query_result(), images_loaded=True)
        self._render()

        url_state = self._codec.decode(query_string, self.flags)
        present = self._codec.is_present(query_string, self.flags)
        if not any(present.values()):
            return

        resolved = await self._resolver.do_resolve(
            url_state.category if present["category"] else server_state.category,
            url_state.search if present["search"] else server_state.search,
            url_state.page if present["page"] else server_state.page,
            self.flags.items_per_page,
            lookup=categories_lookup(self.view.categories),
        )
        state = resolved.state
        if resolved.outcome == CategoryOutcome.UNRESOLVABLE_SLUG:
            # only in-use categories are known here; keep what the server resolved
            state = state.with_changes(category=server_state.category)
        self._state = state

        if self.get_key() != server_key:
            self.logging.debug("Instance %s: address differs from server render, refetching", self.uid)
            await self._fetch()

    async def do_change_category(self, category_id: int | None) -> None:
        """Switch category (None = all). Resets to page 1 and clears the search."""
        if not self.flags.filters_enabled:
            return
        self._cancel_debounce()
        changes: dict = {"category": category_id, "page": 1}
        if self.flags.search_enabled and self._state.search:
            changes["search"] = ""
        self._state = self._state.with_changes(**changes)
        self._publish_address()
        await self._fetch()

    async def do_change_page(self, page: int) -> bool:
        """Go to ``page``. Returns False (and does nothing) when it is out of range."""
        if not self.flags.paginator_enabled:
            return False
        if page < 1 or page > self.view.total_pages:
            return False
        self._state = self._state.with_changes(page=page)
        self._publish_address()
        await self._fetch()
        return True

    def on_search_input(self, text: str) -> None:
        """Record typed search text and (re)arm the debounce timer.

        Must be called from within the running event loop.
        """
        if not self.flags.search_enabled:
            return
        self._state = self._state.with_changes(search=text)
        self._cancel_debounce()
        self._debounce_task = asyncio.get_running_loop().create_task(self._debounced_search())

    def on_image_load(self, item_id: int) -> None:
        self._set_image_loaded(item_id)

    def on_image_error(self, item_id: int) -> None:
        self._set_image_loaded(item_id, broken=True)

    async def do_close(self) -> None:
        """Cancel the pending debounce and the in-flight request."""
        task = self._debounce_task
        self._cancel_debounce()
        self._cancel_in_flight()
        if task is not None:
            try:
                await task
            except asyncio.CancelledError:
                pass

    ##########################################
    ############### FETCHING #################
    ##########################################

    async def _debounced_search(self) -> None:
        await asyncio.sleep(self._debounce_seconds)
        # detach first so a later keystroke cannot cancel the fetch below
        self._debounce_task = None
        self._state = self._state.with_changes(page=1)
        self._publish_address()
        await self._fetch()

    async def _fetch(self) -> None:
        state = self._state
        key = self.get_key(state)

        cached = self._cache.get(key)
        if cached is not None:
            self._cancel_in_flight()
            self.status = ControllerStatus.IDLE
            self._apply_result(cached)
            self._render()
            return

        self._cancel_in_flight()
        token = CancellationToken(label=str(key))
        self._token = token
        self.status = ControllerStatus.LOADING
        self._render()

        try:
            result = await self._api_client.do_fetch_portfolio(state, token)
        except RequestCancelled:
            self.logging.debug("Instance %s: request %s superseded", self.uid, key)
            return
        except RepositoryUnavailable as e:
            if token.cancelled:
                return
            self.logging.error("Instance %s: request %s failed: %s", self.uid, key, e)
            self._token = None
            self.status = ControllerStatus.ERROR
            self._apply_result(QueryResult.empty(self.view.categories))
            self._render()
            return

        if token.cancelled:
            return
        self._token = None
        self._cache.put(key, result)
        self.status = ControllerStatus.IDLE
        self._apply_result(result)
        self._render()

    def _cancel_in_flight(self) -> None:
        if self._token is not None:
            self._token.cancel()
            self._token = None

    def _cancel_debounce(self) -> None:
        if self._debounce_task is not None:
            self._debounce_task.cancel()
            self._debounce_task = None

    ##########################################
    ################# VIEW ###################
    ##########################################

    def _apply_result(self, result: QueryResult, images_loaded: bool = False) -> None:
        placeholder = self._boot.placeholder
        self.view.items = [ViewItem.from_item(item, placeholder, image_loaded=images_loaded) for item in result.items]
        if not self.view.categories and result.categories:
            self.view.categories = list(result.categories)
        self.view.total = result.total
        self.view.total_pages = result.total_pages
        self.view.message = None if result.items else NO_RESULTS_MESSAGE

    def _set_image_loaded(self, item_id: int, broken: bool = False) -> None:
        for view_item in self.view.items:
            if view_item.item.id != item_id:
                continue
            if broken:
                view_item.image = self._boot.placeholder
                view_item.srcset = ""
            elif view_item.image_loaded:
                return
            view_item.image_loaded = True
            self._render()
            return

    def _publish_address(self) -> None:
        self.query_string = self._codec.encode(self._state, self.flags, self.view.categories)
        if self._on_address_change is not None:
            self._on_address_change(self.query_string)

    def _render(self) -> None:
        self.view.status = self.status
        category = self._state.category
        self.view.active_category = category if isinstance(category, int) else None
        self.view.search = self._state.search
        self.view.current_page = self._state.page
        if self._on_render is not None:
            self._on_render(self.view.model_copy(deep=True))
