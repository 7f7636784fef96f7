"""Generic CMS taxonomy term model, backend-independent."""

from pydantic import BaseModel

from shared.models.catalog import Category


class TermBase(BaseModel):
    """
    Represents a single taxonomy term, as returned by a CMS client.
    """
    engine: str
    id: int


class TermDetails(TermBase):
    """
    Represents a single taxonomy term with its metadata, as returned by a CMS client.
    """
    name: str = ""
    slug: str = ""
    taxonomy: str | None = None
    count: int | None = None

    def to_category(self) -> Category:
        return Category(id=self.id, name=self.name, slug=self.slug)


class TermsListResponse(BaseModel):
    """
    Represents the response from a CMS when fetching one page of terms.
    """
    engine: str
    terms: list[TermDetails] = []
    currentPage: int
    nextPage: int | None = None
    overallCount: int | None = None
    lastPage: int | None = None
