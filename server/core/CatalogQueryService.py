"""Catalog query service: runs one filter against the content repository.

Flow: FilterState → EntryQuery (published, portfolio type, search, optional
taxonomy predicate, page/offset) → entries page + in-use terms (fetched
concurrently) → QueryResult.
"""

import asyncio
from typing import Any

import httpx

from shared.catalog.FilterResolver import FilterResolver, repository_lookup
from shared.clients.cms.CMSClientInterface import CMSClientInterface
from shared.clients.cms.models.Entry import EntryQuery
from shared.errors.CatalogErrors import RemoteRequestError, RepositoryUnavailable
from shared.helper.HelperConfig import HelperConfig
from shared.models.catalog import FilterState, QueryResult, ResolvedFilter, sanitize_search


class CatalogQueryService:
    """Executes canonical filters against the content repository."""

    def __init__(
        self,
        helper_config: HelperConfig,
        cms_client: CMSClientInterface,
        filter_resolver: FilterResolver | None = None,
    ) -> None:
        self.logging = helper_config.get_logger()
        self._cms = cms_client
        self._resolver = filter_resolver or FilterResolver(helper_config=helper_config)

    ##########################################
    ################ CORE ####################
    ##########################################

    async def do_query(
        self,
        raw_category: Any = None,
        raw_search: Any = None,
        raw_page: Any = None,
        raw_page_size: Any = None,
    ) -> QueryResult:
        """Resolve raw request parameters and execute them (the network form).

        Returns:
            QueryResult: The page of items, in-use categories and totals.

        Raises:
            RepositoryUnavailable: If the repository fails during slug lookup or the query.
        """
        resolved = await self.do_resolve(raw_category, raw_search, raw_page, raw_page_size)
        return await self.do_execute(resolved.state)

    async def do_resolve(
        self,
        raw_category: Any = None,
        raw_search: Any = None,
        raw_page: Any = None,
        raw_page_size: Any = None,
    ) -> ResolvedFilter:
        """Resolve raw filter input, looking slugs up in the repository's taxonomy.

        Raises:
            RepositoryUnavailable: If the slug lookup itself fails.
        """
        try:
            return await self._resolver.do_resolve(
                raw_category,
                raw_search,
                raw_page,
                raw_page_size,
                lookup=repository_lookup(self._cms),
            )
        except (RemoteRequestError, httpx.HTTPError, ValueError) as e:
            self.logging.error("Category lookup failed: %s", e)
            raise RepositoryUnavailable("Category lookup failed.") from e

    async def do_execute(self, state: FilterState) -> QueryResult:
        """Execute a resolved filter.

        Args:
            state (FilterState): The filter; its category must already be a term id or None.

        Returns:
            QueryResult: Items of the requested slice, every in-use category
            (independent of this filter) and totals. total_pages is at least 1.

        Raises:
            ValueError: If the category is still an unresolved slug.
            RepositoryUnavailable: If the repository fails; no partial result is returned.
        """
        if not state.is_resolved:
            raise ValueError(f"Category '{state.category}' must be resolved before executing a query.")

        query = self._build_entry_query(state)
        self.logging.info(
            "Executing catalog query: category=%s search=%r page=%d per_page=%d",
            state.category if state.category is not None else "all",
            state.search[:80],
            state.page,
            state.page_size,
        )

        try:
            entries_response, terms = await asyncio.gather(
                self._cms.do_fetch_entries(query),
                self._cms.do_fetch_terms_in_use(),
            )
        except (RemoteRequestError, httpx.HTTPError, ValueError) as e:
            self.logging.error("Catalog query failed, repository unavailable: %s", e)
            raise RepositoryUnavailable("The content repository did not answer.") from e

        taxonomy = self._cms.get_taxonomy()
        total = entries_response.overallCount
        result = QueryResult(
            items=[entry.to_item(taxonomy) for entry in entries_response.entries],
            categories=[term.to_category() for term in terms],
            total=total,
            total_pages=self.compute_total_pages(total, state.page_size),
        )

        self.logging.info(
            "Catalog query complete: items=%d total=%d total_pages=%d",
            len(result.items),
            result.total,
            result.total_pages,
        )
        return result

    ##########################################
    ############### HELPERS ##################
    ##########################################

    @staticmethod
    def compute_total_pages(total: int, page_size: int) -> int:
        """ceil(total / page_size), but never less than one page."""
        return max(1, -(-total // page_size))

    def _build_entry_query(self, state: FilterState) -> EntryQuery:
        return EntryQuery(
            post_type=self._cms.get_post_type(),
            status="publish",
            search=sanitize_search(state.search),
            taxonomy=self._cms.get_taxonomy(),
            term_id=state.category,
            page=state.page,
            per_page=state.page_size,
        )
