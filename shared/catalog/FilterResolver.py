"""Filter resolver: turns raw filter input into a canonical FilterState.

Raw values arrive from query strings, embed attributes or UI events and may be
missing, malformed or out of range. Every such problem is absorbed here by
falling back to a default; nothing in this module fails a request except the
category lookup collaborator itself (e.g. the repository being down).
"""

import re
import unicodedata
from typing import Any, Awaitable, Callable, Sequence

from shared.clients.cms.CMSClientInterface import CMSClientInterface
from shared.errors.CatalogErrors import CatalogError, InvalidInput, UnresolvableCategorySlug
from shared.helper.HelperConfig import HelperConfig
from shared.models.catalog import (
    DEFAULT_PAGE_SIZE,
    MAX_PAGE_SIZE,
    Category,
    CategoryOutcome,
    FilterState,
    ResolvedFilter,
    sanitize_search,
)

CategoryLookup = Callable[[str], Awaitable[int]]

_NUMERIC = re.compile(r"^\s*[+-]?(\d+(\.\d*)?|\.\d+)\s*$")
_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")
_LEADING_FRACTION = re.compile(r"^\s*[+-]?\.\d")
_HTML_TAG = re.compile(r"<[^>]*>")
_SLUG_SEPARATORS = re.compile(r"[\s/._]+")
_SLUG_INVALID = re.compile(r"[^a-z0-9_-]")
_SLUG_DASHES = re.compile(r"-+")


def coerce_int(field: str, raw: Any) -> int:
    """Coerce a raw value to int the lenient way query strings need.

    "3" -> 3, " 3 " -> 3, "3abc" -> 3, "2.9" -> 2, ".5" -> 0, 4.0 -> 4.

    Raises:
        InvalidInput: If no leading integer can be read.
    """
    if isinstance(raw, bool):
        raise InvalidInput(field, raw)
    if isinstance(raw, int):
        return raw
    if isinstance(raw, float):
        return int(raw)
    match = _LEADING_INT.match(str(raw))
    if not match:
        # ".5" has no integer digits and reads as 0
        if _LEADING_FRACTION.match(str(raw)):
            return 0
        raise InvalidInput(field, raw)
    return int(match.group(1))


def is_numeric_token(raw: Any) -> bool:
    if isinstance(raw, bool):
        return False
    if isinstance(raw, (int, float)):
        return True
    return isinstance(raw, str) and bool(_NUMERIC.match(raw))


def sanitize_slug(raw: str) -> str:
    """Normalise a category token into slug form ("Diseño Web" -> "diseno-web")."""
    text = unicodedata.normalize("NFKD", _HTML_TAG.sub("", raw))
    text = "".join(ch for ch in text if not unicodedata.combining(ch)).lower().strip()
    text = _SLUG_SEPARATORS.sub("-", text)
    text = _SLUG_INVALID.sub("", text)
    return _SLUG_DASHES.sub("-", text).strip("-")


def categories_lookup(categories: Sequence[Category]) -> CategoryLookup:
    """Slug lookup against a category list already at hand (client side)."""
    by_slug = {c.slug: c.id for c in categories}

    async def lookup(slug: str) -> int:
        try:
            return by_slug[slug]
        except KeyError:
            raise UnresolvableCategorySlug(slug) from None

    return lookup


def repository_lookup(cms_client: CMSClientInterface) -> CategoryLookup:
    """Slug lookup against the content repository's taxonomy (server side)."""

    async def lookup(slug: str) -> int:
        term = await cms_client.do_fetch_term_by_slug(slug)
        if term is None:
            raise UnresolvableCategorySlug(slug)
        return term.id

    return lookup


class FilterResolver:
    """Normalises (category, search, page, page size) into a FilterState."""

    def __init__(self, helper_config: HelperConfig, default_page_size: int | None = None) -> None:
        self.logging = helper_config.get_logger()
        if default_page_size is None:
            default_page_size = helper_config.get_int_val(
                "CATALOG_DEFAULT_PER_PAGE", default=DEFAULT_PAGE_SIZE, minimum=1, maximum=MAX_PAGE_SIZE
            )
        self._default_page_size = default_page_size

    ##########################################
    ################ CORE ####################
    ##########################################

    async def do_resolve(
        self,
        raw_category: Any,
        raw_search: Any,
        raw_page: Any,
        raw_page_size: Any,
        lookup: CategoryLookup,
    ) -> ResolvedFilter:
        """Resolve raw filter input into a canonical FilterState.

        Args:
            raw_category: Term id, numeric string, slug, or nothing.
            raw_search: Free text, possibly empty.
            raw_page: Requested page, possibly malformed.
            raw_page_size: Requested page size, possibly malformed.
            lookup: Resolves a sanitised slug to a term id or raises UnresolvableCategorySlug.

        Returns:
            ResolvedFilter: The state, what happened to the category, and every absorbed error.
        """
        absorbed: list[CatalogError] = []

        page = self.resolve_page(raw_page, absorbed)
        page_size = self.resolve_page_size(raw_page_size, absorbed)
        search = sanitize_search(raw_search)
        category, outcome, requested = await self._resolve_category(raw_category, lookup, absorbed)

        for error in absorbed:
            self.logging.debug("Absorbed while resolving filter: %s", error)

        return ResolvedFilter(
            state=FilterState(category=category, search=search, page=page, page_size=page_size),
            outcome=outcome,
            requested_category=requested,
            absorbed=absorbed,
        )

    ##########################################
    ############### HELPERS ##################
    ##########################################

    def resolve_page(self, raw_page: Any, absorbed: list[CatalogError]) -> int:
        if raw_page is None or raw_page == "":
            return 1
        try:
            page = coerce_int("page", raw_page)
        except InvalidInput as e:
            absorbed.append(e)
            return 1
        if page < 1:
            absorbed.append(InvalidInput("page", raw_page, f"Page {page} is below 1"))
            return 1
        return page

    def resolve_page_size(self, raw_page_size: Any, absorbed: list[CatalogError]) -> int:
        if raw_page_size is None or raw_page_size == "":
            return self._default_page_size
        try:
            page_size = coerce_int("page_size", raw_page_size)
        except InvalidInput as e:
            absorbed.append(e)
            return self._default_page_size
        clamped = min(MAX_PAGE_SIZE, max(1, page_size))
        if clamped != page_size:
            absorbed.append(InvalidInput("page_size", raw_page_size, f"Page size {page_size} clamped to {clamped}"))
        return clamped

    async def _resolve_category(
        self,
        raw_category: Any,
        lookup: CategoryLookup,
        absorbed: list[CatalogError],
    ) -> tuple[int | None, CategoryOutcome, str | None]:
        if raw_category is None:
            return None, CategoryOutcome.NOT_REQUESTED, None
        token = raw_category.strip() if isinstance(raw_category, str) else raw_category
        # "" and "0" both mean "all categories"
        if token == "" or token == "0" or token == 0:
            return None, CategoryOutcome.NOT_REQUESTED, None
        requested = str(token)

        if is_numeric_token(token):
            try:
                category_id = coerce_int("category", token)
            except InvalidInput as e:
                absorbed.append(e)
                return None, CategoryOutcome.INVALID, requested
            if category_id == 0:
                return None, CategoryOutcome.NOT_REQUESTED, None
            if category_id < 0:
                absorbed.append(InvalidInput("category", raw_category, f"Category id {category_id} is not positive"))
                return None, CategoryOutcome.INVALID, requested
            return category_id, CategoryOutcome.BY_ID, requested

        slug = sanitize_slug(str(token))
        if not slug:
            absorbed.append(InvalidInput("category", raw_category))
            return None, CategoryOutcome.INVALID, requested
        try:
            category_id = await lookup(slug)
        except UnresolvableCategorySlug as e:
            absorbed.append(e)
            self.logging.info("Category slug %r does not resolve, showing all categories.", slug)
            return None, CategoryOutcome.UNRESOLVABLE_SLUG, requested
        return category_id, CategoryOutcome.BY_SLUG, requested
