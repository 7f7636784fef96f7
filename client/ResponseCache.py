"""In-memory response cache owned by one catalog controller.

Maps a CanonicalQueryKey to the QueryResult fetched for it. Entries live as
long as the controller (one page session): there is no TTL and no eviction.
"""

from shared.helper.HelperConfig import HelperConfig
from shared.models.catalog import CanonicalQueryKey, QueryResult


class ResponseCache:
    def __init__(self, helper_config: HelperConfig) -> None:
        self.logging = helper_config.get_logger()
        self._entries: dict[CanonicalQueryKey, QueryResult] = {}

    def get(self, key: CanonicalQueryKey) -> QueryResult | None:
        result = self._entries.get(key)
        self.logging.debug("Response cache %s for %s", "hit" if result is not None else "miss", key)
        return result

    def put(self, key: CanonicalQueryKey, result: QueryResult) -> None:
        self._entries[key] = result

    def clear(self) -> None:
        self._entries.clear()

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)
