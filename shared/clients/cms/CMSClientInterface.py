from abc import abstractmethod

import httpx

from shared.helper.HelperConfig import HelperConfig
from shared.clients.ClientInterface import ClientInterface
from shared.clients.cms.models.Entry import EntryQuery, EntriesListResponse
from shared.clients.cms.models.Term import TermDetails, TermsListResponse
from shared.errors.CatalogErrors import RemoteRequestError


class CMSClientInterface(ClientInterface):
    """Read-only access to the content repository that stores the catalog entries."""

    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_client_type(self) -> str:
        return "cms"

    @abstractmethod
    def get_post_type(self) -> str:
        """
        Returns the content type the catalog lists. E.g. "portfolio"
        """
        pass

    @abstractmethod
    def get_taxonomy(self) -> str:
        """
        Returns the taxonomy used for category filtering. E.g. "project-cat"
        """
        pass

    ################ ENDPOINTS ##################
    @abstractmethod
    def _get_endpoint_entries(self, post_type: str) -> str:
        """
        Returns the endpoint path for entry listing requests of the given content type.

        Args:
            post_type (str): The content type to list.

        Returns:
            str: The endpoint path (e.g. "/wp-json/wp/v2/portfolio")
        """
        pass

    @abstractmethod
    def _get_endpoint_terms(self) -> str:
        """
        Returns the endpoint path for term listing requests of the filtering taxonomy.

        Returns:
            str: The endpoint path (e.g. "/wp-json/wp/v2/project-cat")
        """
        pass

    @abstractmethod
    def _get_params_entries(self, query: EntryQuery) -> dict:
        """
        Translates an EntryQuery into backend query parameters.
        """
        pass

    @abstractmethod
    def _get_params_terms(self, page: int, page_size: int, slug: str | None = None, hide_empty: bool = True) -> dict:
        """
        Returns the query parameters for a term listing request.
        """
        pass

    ##########################################
    ########### RESPONSE PARSER ##############
    ##########################################

    @abstractmethod
    def _parse_endpoint_entries(self, response: httpx.Response, query: EntryQuery) -> EntriesListResponse:
        """
        Parses one page of entries, including pagination totals.
        """
        pass

    @abstractmethod
    def _parse_endpoint_terms(self, response: httpx.Response, page: int) -> TermsListResponse:
        """
        Parses one page of taxonomy terms.
        """
        pass

    @abstractmethod
    def _is_page_out_of_range(self, response: httpx.Response) -> bool:
        """
        Returns True if the backend rejected the request only because the page is past the last one.
        """
        pass

    ##########################################
    ############### REQUESTS #################
    ##########################################

    ############# LISTING REQUESTS ##############
    async def do_fetch_entries(self, query: EntryQuery) -> EntriesListResponse:
        """
        Fetches one page of entries matching the query.

        A page past the end is not an error: it yields an empty page that still
        carries the real total so callers can report pagination correctly.

        Args:
            query (EntryQuery): Type, status, taxonomy, search and paging predicates.

        Returns:
            EntriesListResponse: The entries of the requested page and the totals.

        Raises:
            RemoteRequestError: If the backend is unreachable or answers with an error.
        """
        endpoint = self._get_endpoint_entries(query.post_type)
        resp = await self.do_request(method="GET", endpoint=endpoint, params=self._get_params_entries(query))

        if self._is_page_out_of_range(resp):
            total = await self.do_count_entries(query)
            self.logging.debug("Page %d is past the end of %d entries on %s.", query.page, total, self._get_engine_name())
            return EntriesListResponse(
                engine=self._get_engine_name(),
                entries=[],
                currentPage=query.page,
                overallCount=total,
                pageLength=query.per_page,
                lastPage=max(1, -(-total // query.per_page)),
            )
        if not resp.is_success:
            self.logging.error("Entry listing on %s failed with status %d.", self._get_engine_name(), resp.status_code)
            raise RemoteRequestError(url=str(resp.request.url), status_code=resp.status_code)

        entries_list_response = self._parse_endpoint_entries(resp, query)
        self.logging.debug(
            "Fetched entries page %d of %s from %s: %d entries, %d overall",
            query.page,
            entries_list_response.lastPage,
            self._get_engine_name(),
            len(entries_list_response.entries),
            entries_list_response.overallCount,
        )
        return entries_list_response

    async def do_count_entries(self, query: EntryQuery) -> int:
        """
        Counts all entries matching the query's predicates, ignoring its paging.

        Returns:
            int: The number of matching entries.
        """
        count_query = query.model_copy(update={"page": 1, "per_page": 1})
        resp = await self.do_request(
            method="GET",
            endpoint=self._get_endpoint_entries(query.post_type),
            params=self._get_params_entries(count_query),
            raise_on_error=True,
        )
        return self._parse_endpoint_entries(resp, count_query).overallCount

    async def do_fetch_terms_in_use(self) -> list[TermDetails]:
        """
        Fetches every term of the filtering taxonomy that has at least one published entry.

        Returns:
            list[TermDetails]: All in-use terms, across all pages.
        """
        terms: list[TermDetails] = []
        page = 1
        page_size = 100
        while True:
            resp = await self.do_request(
                method="GET",
                endpoint=self._get_endpoint_terms(),
                params=self._get_params_terms(page=page, page_size=page_size, hide_empty=True),
                raise_on_error=True,
            )
            terms_list_response = self._parse_endpoint_terms(resp, page=page)
            terms.extend(t for t in terms_list_response.terms if t.count is None or t.count > 0)
            page = terms_list_response.nextPage
            if not page:
                break
        self.logging.debug("Fetched %d in-use terms of '%s' from %s", len(terms), self.get_taxonomy(), self._get_engine_name())
        return terms

    ############# GET REQUESTS ##############
    async def do_fetch_term_by_slug(self, slug: str) -> TermDetails | None:
        """
        Looks a term of the filtering taxonomy up by its slug.

        Args:
            slug (str): The sanitised slug.

        Returns:
            TermDetails | None: The term, or None if no term carries that slug.
        """
        resp = await self.do_request(
            method="GET",
            endpoint=self._get_endpoint_terms(),
            params=self._get_params_terms(page=1, page_size=1, slug=slug, hide_empty=False),
            raise_on_error=True,
        )
        terms = self._parse_endpoint_terms(resp, page=1).terms
        return next((t for t in terms if t.slug == slug), None)
