"""URL state codec: keeps the visible filter in the address bar.

Only non-default fields are written so shared links stay short:
``?page=2&c=branding&search=logo``. ``c`` is the category parameter; ``cat``
is still read for old links. A feature that is switched off for an instance
never writes or reads its field.
"""

from typing import Sequence
from urllib.parse import parse_qs, urlencode

from shared.catalog.FilterResolver import coerce_int, is_numeric_token, sanitize_search
from shared.errors.CatalogErrors import InvalidInput
from shared.models.catalog import Category, FeatureFlags, FilterState, UrlState

PARAM_PAGE = "page"
PARAM_CATEGORY = "c"
PARAM_CATEGORY_LEGACY = "cat"
PARAM_SEARCH = "search"


class UrlStateCodec:
    """Encodes and decodes the filter part of the address bar."""

    def encode(
        self,
        state: FilterState | UrlState,
        flags: FeatureFlags,
        categories: Sequence[Category] = (),
    ) -> str:
        """Encode a filter into a query string without the leading "?".

        Args:
            state: The filter to encode.
            flags: Which fields participate at all.
            categories: Known categories, used to write a slug instead of a raw id.

        Returns:
            str: The query string; empty when every field is at its default.
        """
        params: list[tuple[str, str]] = []

        if flags.paginator_enabled and state.page > 1:
            params.append((PARAM_PAGE, str(state.page)))

        if flags.filters_enabled and state.category not in (None, ""):
            params.append((PARAM_CATEGORY, self._category_token(state.category, categories)))

        if flags.search_enabled:
            search = sanitize_search(state.search)
            if search:
                params.append((PARAM_SEARCH, search))

        return urlencode(params)

    def decode(self, query_string: str, flags: FeatureFlags) -> UrlState:
        """Decode a query string into a partial filter.

        The category comes back as a token (term id or slug) that still has to
        go through the FilterResolver.

        Args:
            query_string: With or without the leading "?".
            flags: Which fields participate at all.

        Returns:
            UrlState: The decoded fields; absent or unusable fields keep their defaults.
        """
        params = parse_qs(query_string.lstrip("?"), keep_blank_values=False)

        page = 1
        if flags.paginator_enabled and PARAM_PAGE in params:
            try:
                page = max(1, coerce_int("page", params[PARAM_PAGE][0]))
            except InvalidInput:
                page = 1

        category: int | str | None = None
        if flags.filters_enabled:
            raw = self._first(params, PARAM_CATEGORY) or self._first(params, PARAM_CATEGORY_LEGACY)
            if raw and is_numeric_token(raw):
                try:
                    category_id = coerce_int("category", raw)
                except InvalidInput:
                    category_id = 0
                # 0 and below mean "all categories"
                category = category_id if category_id > 0 else None
            elif raw:
                category = raw

        search = ""
        if flags.search_enabled:
            search = sanitize_search(self._first(params, PARAM_SEARCH))

        return UrlState(category=category, search=search, page=page)

    def is_present(self, query_string: str, flags: FeatureFlags) -> dict[str, bool]:
        """Report which filter fields the address actually carries (after flag gating)."""
        params = parse_qs(query_string.lstrip("?"), keep_blank_values=False)
        return {
            "page": flags.paginator_enabled and PARAM_PAGE in params,
            "category": flags.filters_enabled and bool(
                self._first(params, PARAM_CATEGORY) or self._first(params, PARAM_CATEGORY_LEGACY)
            ),
            "search": flags.search_enabled and bool(sanitize_search(self._first(params, PARAM_SEARCH))),
        }

    def _first(self, params: dict[str, list[str]], name: str) -> str:
        values = params.get(name) or []
        return values[0].strip() if values else ""

    def _category_token(self, category: int | str, categories: Sequence[Category]) -> str:
        if isinstance(category, int):
            match = next((c for c in categories if c.id == category), None)
            return match.slug if match else str(category)
        return category.strip()
