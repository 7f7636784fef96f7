import base64

import httpx

from shared.clients.cms.CMSClientInterface import CMSClientInterface
from shared.clients.cms.models.Entry import EntryQuery, EntriesListResponse, EntryDetails
from shared.clients.cms.models.Term import TermsListResponse, TermDetails
from shared.helper.HelperConfig import HelperConfig
from shared.models.config import EnvConfig


class CMSClientWordpress(CMSClientInterface):
    """Content repository backed by the WordPress REST API (wp/v2)."""

    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)
        self._base_url = self.get_config_val("BASE_URL", default=None, val_type="string")
        self._api_key = self.get_config_val("API_KEY", default="", val_type="string")
        self._post_type = self.get_config_val("POST_TYPE", default="portfolio", val_type="string")
        self._taxonomy = self.get_config_val("TAXONOMY", default="project-cat", val_type="string")
        self._image_size = self.get_config_val("IMAGE_SIZE", default="medium_large", val_type="string")

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_engine_name(self) -> str:
        return "Wordpress"

    def get_post_type(self) -> str:
        return self._post_type

    def get_taxonomy(self) -> str:
        return self._taxonomy

    ################ CONFIG ##################
    def _get_required_config(self) -> list[EnvConfig]:
        return [
            EnvConfig(env_key="BASE_URL", val_type="string", default=None),
            EnvConfig(env_key="API_KEY", val_type="string", default=""),
            EnvConfig(env_key="POST_TYPE", val_type="string", default="portfolio"),
            EnvConfig(env_key="TAXONOMY", val_type="string", default="project-cat"),
            EnvConfig(env_key="IMAGE_SIZE", val_type="string", default="medium_large"),
        ]

    ################ AUTH ##################
    def _get_auth_header(self) -> dict:
        # application passwords are sent as "user:password"
        if self._api_key:
            token = base64.b64encode(self._api_key.encode("utf-8")).decode("ascii")
            return {"Authorization": f"Basic {token}"}
        else:
            return {}

    ################ ENDPOINTS ##################
    def _get_base_url(self) -> str:
        return self._base_url

    def _get_endpoint_healthcheck(self) -> str:
        return "/wp-json/"

    def _get_endpoint_entries(self, post_type: str) -> str:
        return f"/wp-json/wp/v2/{post_type}"

    def _get_endpoint_terms(self) -> str:
        return f"/wp-json/wp/v2/{self._taxonomy}"

    def _get_params_entries(self, query: EntryQuery) -> dict:
        return {
            "status": query.status,
            "page": query.page,
            "per_page": query.per_page,
            "search": query.search or None,
            query.taxonomy: query.term_id,
            # publication order, newest first (same as WP_Query's default)
            "orderby": "date",
            "order": "desc",
            "_embed": "wp:featuredmedia,wp:term",
        }

    def _get_params_terms(self, page: int, page_size: int, slug: str | None = None, hide_empty: bool = True) -> dict:
        return {
            "page": page,
            "per_page": page_size,
            "slug": slug,
            "hide_empty": "true" if hide_empty else "false",
            "orderby": "name",
        }

    ##########################################
    ########### RESPONSE PARSER ##############
    ##########################################

    ############### LIST RESPONSES ###############
    def _parse_endpoint_entries(self, response: httpx.Response, query: EntryQuery) -> EntriesListResponse:
        meta = self._parse_listing_meta(response, current_page=query.page)

        entries = [self._parse_endpoint_entry(item) for item in response.json()]

        return EntriesListResponse(
            engine=self._get_engine_name(),
            entries=entries,
            currentPage=query.page,
            nextPage=meta["next_page"],
            previousPage=query.page - 1 if query.page > 1 else None,
            overallCount=meta["overall_results_count"],
            pageLength=query.per_page,
            lastPage=meta["last_page"],
        )

    def _parse_endpoint_terms(self, response: httpx.Response, page: int) -> TermsListResponse:
        meta = self._parse_listing_meta(response, current_page=page)

        terms = [self._parse_endpoint_term(item) for item in response.json()]

        return TermsListResponse(
            engine=self._get_engine_name(),
            terms=terms,
            currentPage=page,
            nextPage=meta["next_page"],
            overallCount=meta["overall_results_count"],
            lastPage=meta["last_page"],
        )

    def _parse_listing_meta(self, response: httpx.Response, current_page: int) -> dict:
        """
        Parse pagination metadata from the X-WP-Total / X-WP-TotalPages headers.

        Args:
            response (httpx.Response): The raw listing response.
            current_page (int): The page that was requested.

        Returns:
            dict: next_page, last_page and overall_results_count.
        """
        overall_results_count = self._parse_header_int(response, "X-WP-Total")
        last_page = self._parse_header_int(response, "X-WP-TotalPages")
        next_page = current_page + 1 if current_page < last_page else None
        return {
            "next_page": next_page,
            "last_page": max(1, last_page),
            "overall_results_count": overall_results_count,
        }

    def _parse_header_int(self, response: httpx.Response, header: str) -> int:
        raw = response.headers.get(header, "")
        return int(raw) if raw.strip().isdigit() else 0

    def _is_page_out_of_range(self, response: httpx.Response) -> bool:
        if response.status_code != 400:
            return False
        try:
            body = response.json()
        except ValueError:
            return False
        return isinstance(body, dict) and body.get("code") == "rest_post_invalid_page_number"

    ############### GET RESPONSES ###############
    def _parse_endpoint_entry(self, response: dict) -> EntryDetails:
        embedded = response.get("_embedded") or {}
        image_url, srcset = self._parse_featured_media(embedded.get("wp:featuredmedia") or [])

        terms: list[TermDetails] = []
        for group in embedded.get("wp:term") or []:
            for term in group or []:
                if isinstance(term, dict) and "id" in term:
                    terms.append(self._parse_endpoint_term(term))

        return EntryDetails(
                #base
                engine=self._get_engine_name(),
                id=response.get("id"),

                #details
                title=(response.get("title") or {}).get("rendered", ""),
                link=response.get("link") or "",
                status=response.get("status"),
                post_type=response.get("type"),
                term_ids=response.get(self._taxonomy) or [],
                terms=terms,
                image_url=image_url,
                srcset=srcset,
            )

    def _parse_endpoint_term(self, response: dict) -> TermDetails:
        return TermDetails(
                #base
                engine=self._get_engine_name(),
                id=response.get("id"),

                #details
                name=response.get("name") or "",
                slug=response.get("slug") or "",
                taxonomy=response.get("taxonomy"),
                count=response.get("count"),
            )

    def _parse_featured_media(self, media: list) -> tuple[str, str]:
        """
        Resolve the grid image URL and the responsive srcset of a featured image.

        Args:
            media (list): The "wp:featuredmedia" embed. Unreadable media arrives as an error object.

        Returns:
            tuple[str, str]: (image URL, srcset). Both empty if the entry has no usable image.
        """
        if not media or not isinstance(media[0], dict) or not media[0].get("source_url"):
            return "", ""
        attachment = media[0]
        source_url = attachment["source_url"]
        details = attachment.get("media_details") or {}
        sizes: dict = details.get("sizes") or {}

        preferred = sizes.get(self._image_size) or {}
        image_url = preferred.get("source_url") or source_url

        candidates: dict[str, int] = {}
        for size in sizes.values():
            if size.get("source_url") and size.get("width"):
                candidates[size["source_url"]] = int(size["width"])
        if details.get("width"):
            candidates.setdefault(source_url, int(details["width"]))
        srcset = ", ".join(f"{url} {width}w" for url, width in sorted(candidates.items(), key=lambda c: c[1]))
        return image_url, srcset
