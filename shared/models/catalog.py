"""Pydantic models for the portfolio catalog.

Hierarchy:
  Category / Item     : wire shapes shared by the REST endpoint and the client.
  QueryResult         : one page of items plus in-use categories and totals; the cache payload.
  FilterState         : the filter the user is looking at (category, search, page, page size).
  CanonicalQueryKey   : normalised, hashable identity of a FilterState used for cache lookups.
  UrlState            : the partial FilterState carried in the address bar.
  FeatureFlags        : per-instance switches for search, filters and paginator.
  ResolvedFilter      : FilterResolver output: the state plus what happened to the category.
"""

import re
from enum import Enum
from typing import Literal, NamedTuple

from pydantic import BaseModel, ConfigDict, Field

from shared.errors.CatalogErrors import CatalogError

MAX_PAGE_SIZE = 50
DEFAULT_PAGE_SIZE = 8

_HTML_TAG = re.compile(r"<[^>]*>")


def sanitize_search(raw) -> str:
    """Strip tags, collapse whitespace and trim."""
    if raw is None:
        return ""
    return " ".join(_HTML_TAG.sub("", str(raw)).split())


class Category(BaseModel):
    """A taxonomy term with at least one published item."""

    model_config = ConfigDict(frozen=True)

    id: int
    name: str
    slug: str


class RenderedText(BaseModel):
    """Keeps the nested ``title.rendered`` shape the client reads."""

    model_config = ConfigDict(frozen=True)

    rendered: str = ""


class Item(BaseModel):
    """A single portfolio entry as sent over the wire."""

    model_config = ConfigDict(frozen=True)

    id: int
    title: RenderedText = RenderedText()
    link: str = ""
    image: str = ""
    srcset: str = ""
    project_cat_links: list[Category] = []


class QueryResult(BaseModel):
    """One page of catalog items, the in-use categories and pagination totals.

    Serialised by alias this is exactly the body of ``GET /voy/v1/portfolio``.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    items: list[Item] = Field(default_factory=list, alias="projects")
    categories: list[Category] = Field(default_factory=list)
    total: int = Field(default=0, ge=0)
    total_pages: int = Field(default=1, ge=1)

    @classmethod
    def empty(cls, categories: list[Category] | None = None) -> "QueryResult":
        return cls(items=[], categories=categories or [], total=0, total_pages=1)


class FilterState(BaseModel):
    """Filter the catalog is showing.

    ``category`` is either a resolved term id, ``None`` (all), or (before
    resolution only) a slug string.
    """

    model_config = ConfigDict(frozen=True)

    category: int | str | None = None
    search: str = ""
    page: int = Field(default=1, ge=1)
    page_size: int = Field(default=DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE)

    @property
    def is_resolved(self) -> bool:
        return self.category is None or isinstance(self.category, int)

    def with_changes(self, **changes) -> "FilterState":
        return self.model_copy(update=changes)


class CanonicalQueryKey(NamedTuple):
    """Order-independent identity of a query, used as the cache key."""

    category: int | Literal["all"]
    search: str
    page: int
    page_size: int

    @classmethod
    def from_state(cls, state: FilterState, search_enabled: bool = True) -> "CanonicalQueryKey":
        """Build the key for a resolved FilterState.

        Args:
            state (FilterState): The filter to key. Its category must be resolved.
            search_enabled (bool): When False the search text never takes part in the key.

        Returns:
            CanonicalQueryKey: The normalised key.

        Raises:
            ValueError: If the category is still an unresolved slug.
        """
        category = state.category
        if isinstance(category, str):
            if category.strip():
                raise ValueError(f"Category '{category}' must be resolved before building a cache key.")
            category = None
        search = sanitize_search(state.search) if search_enabled else ""
        return cls(
            category="all" if category is None else category,
            search=search,
            page=state.page,
            page_size=state.page_size,
        )

    def __str__(self) -> str:
        return f"{self.category}|{self.search}|{self.page}|{self.page_size}"


class UrlState(BaseModel):
    """Filter fields that live in the address bar (page size never does)."""

    model_config = ConfigDict(frozen=True)

    category: int | str | None = None
    search: str = ""
    page: int = Field(default=1, ge=1)


class FeatureFlags(BaseModel):
    """Per-instance configuration; serialised with the keys of the boot blob."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    search_enabled: bool = Field(default=True, alias="ENABLE_SEARCH")
    filters_enabled: bool = Field(default=True, alias="ENABLE_FILTERS")
    paginator_enabled: bool = Field(default=True, alias="ENABLE_PAGINATOR")
    items_per_page: int = Field(default=DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE, alias="ITEMS_PER_PAGE")


class CategoryOutcome(str, Enum):
    NOT_REQUESTED = "not_requested"
    BY_ID = "by_id"
    BY_SLUG = "by_slug"
    UNRESOLVABLE_SLUG = "unresolvable_slug"
    INVALID = "invalid"


class ResolvedFilter(BaseModel):
    """Result of FilterResolver.do_resolve().

    ``absorbed`` lists the resolution-layer errors that were handled by
    falling back to a default, so callers can tell "no filter requested"
    apart from "filter requested but not found".
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    state: FilterState
    outcome: CategoryOutcome = CategoryOutcome.NOT_REQUESTED
    requested_category: str | None = None
    absorbed: list[CatalogError] = []
