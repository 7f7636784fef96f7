"""Generic CMS content entry model, backend-independent."""

from pydantic import BaseModel, Field

from shared.clients.cms.models.Term import TermDetails
from shared.models.catalog import Item, RenderedText


class EntryQuery(BaseModel):
    """
    A single query against the content repository.

    Page and per_page together with the predicates reproduce the same slice,
    provided the backend sorts stably.
    """
    post_type: str = "portfolio"
    status: str = "publish"
    search: str = ""
    taxonomy: str = "project-cat"
    term_id: int | None = None
    page: int = Field(default=1, ge=1)
    per_page: int = Field(default=8, ge=1, le=100)


class EntryBase(BaseModel):
    """
    Represents a single content entry, as returned by a CMS client.
    """
    engine: str
    id: int


class EntryDetails(EntryBase):
    """
    Represents a single content entry with everything the catalog renders.
    """
    title: str = ""
    link: str = ""
    status: str | None = None
    post_type: str | None = None
    term_ids: list[int] = []
    terms: list[TermDetails] = []
    image_url: str = ""
    srcset: str = ""

    def to_item(self, taxonomy: str) -> Item:
        """Convert to the wire Item, keeping only the terms of the filtering taxonomy."""
        return Item(
            id=self.id,
            title=RenderedText(rendered=self.title),
            link=self.link,
            image=self.image_url,
            srcset=self.srcset,
            project_cat_links=[t.to_category() for t in self.terms if t.taxonomy == taxonomy],
        )


class EntriesListResponse(BaseModel):
    """
    Represents the response from a CMS when fetching one page of entries.
    """
    engine: str
    entries: list[EntryDetails] = []
    currentPage: int
    nextPage: int | None = None
    previousPage: int | None = None
    overallCount: int = 0
    pageLength: int | None = None
    lastPage: int | None = None
