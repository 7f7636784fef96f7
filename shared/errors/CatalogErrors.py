"""Error taxonomy for the portfolio catalog.

Resolution-layer errors (InvalidInput, UnresolvableCategorySlug) are absorbed
by the FilterResolver before any query is issued. Transport-layer errors
(RepositoryUnavailable) propagate up to the router or the client controller.
RequestCancelled marks a superseded request and is never a user-visible failure.
"""


class CatalogError(Exception):
    """Base class for all catalog errors."""


class InvalidInput(CatalogError):
    """A raw filter value (page, page size, category token) could not be used as given."""

    def __init__(self, field: str, raw_value: object, message: str | None = None) -> None:
        self.field = field
        self.raw_value = raw_value
        super().__init__(message or f"Invalid value for '{field}': {raw_value!r}")


class UnresolvableCategorySlug(CatalogError):
    """A category slug has no matching taxonomy term."""

    def __init__(self, slug: str) -> None:
        self.slug = slug
        super().__init__(f"Category slug '{slug}' does not resolve to a term.")


class RepositoryUnavailable(CatalogError):
    """The content repository (or the catalog API in front of it) failed to answer."""


class RequestCancelled(CatalogError):
    """An in-flight request was superseded by a newer one."""


class RemoteRequestError(CatalogError):
    """An HTTP request to a backend failed at transport level or returned a non-2xx status."""

    def __init__(self, url: str, status_code: int | None = None, message: str | None = None) -> None:
        self.url = url
        self.status_code = status_code
        if message is None:
            message = (
                f"Request to {url} failed with status {status_code}"
                if status_code is not None
                else f"Request to {url} failed"
            )
        super().__init__(message)
