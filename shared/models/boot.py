"""Pydantic models for the initial-state handoff between server render and client."""

from pydantic import BaseModel, ConfigDict, Field

from shared.models.catalog import Category, FeatureFlags, Item, QueryResult

PLACEHOLDER_IMAGE = (
    "data:image/png;base64,iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAQAAAC1HAwCAAAAC0lEQVR4nGNgYAAAAAMAASsJTYQAAAAASUVORK5CYII="
)


class ShortcodeAttributes(BaseModel):
    """Embed options for one catalog instance.

    Flags are the strings "1"/"0". ``category``, ``q`` and ``page`` are the
    initial deep-link values used when the address bar carries none.
    """

    search: str = "1"
    filters: str = "1"
    paginator: str = "1"
    per_page: str = "8"
    category: str = ""
    q: str = ""
    page: str = ""


class InitialState(BaseModel):
    """Server-computed QueryResult plus the filter it was computed for."""

    projects: list[Item] = []
    categories: list[Category] = []
    total_pages: int = Field(default=1, ge=1)
    total: int = Field(default=0, ge=0)
    current_page: int = Field(default=1, ge=1)
    active_category: int | None = None
    search: str = ""

    def to_query_result(self) -> QueryResult:
        return QueryResult(
            items=self.projects,
            categories=self.categories,
            total=self.total,
            total_pages=self.total_pages,
        )


class BootPayload(BaseModel):
    """The opaque JSON blob embedded next to each rendered instance."""

    model_config = ConfigDict(populate_by_name=True)

    uid: str = ""
    config: FeatureFlags = FeatureFlags()
    initial: InitialState = InitialState()
    api_base: str = Field(default="", alias="apiBase")
    placeholder: str = PLACEHOLDER_IMAGE


class InstanceDescriptor(BaseModel):
    """Registry entry used to discover and mount one instance."""

    model_config = ConfigDict(populate_by_name=True)

    uid: str
    container_id: str = Field(alias="containerId")
    state_id: str = Field(alias="stateId")


class BootstrapRequest(BaseModel):
    attributes: ShortcodeAttributes = ShortcodeAttributes()
    query_string: str = ""


class BootstrapResponse(BaseModel):
    descriptor: InstanceDescriptor
    payload: BootPayload
