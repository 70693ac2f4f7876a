"""Google Custom Search JSON API client for general web search."""

import logging
import os
from dataclasses import dataclass
from typing import Any, Optional

from .http import JSONHTTPClient

logger = logging.getLogger(__name__)

CUSTOM_SEARCH_URL = "https://www.googleapis.com/customsearch/v1"
MAX_RESULTS_PER_REQUEST = 10


class WebSearchError(Exception):
    """Raised when a web search request fails."""

    pass


@dataclass
class WebPage:
    """One organic web search hit."""

    title: str
    url: str
    snippet: str = ""
    domain: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "url": self.url,
            "snippet": self.snippet,
            "domain": self.domain,
        }


class WebSearchClient(JSONHTTPClient):
    """Client for a Programmable Search Engine (Custom Search JSON API)."""

    error_class = WebSearchError

    def __init__(
        self,
        api_key: Optional[str] = None,
        engine_id: Optional[str] = None,
        **kwargs: Any,
    ) -> None:
        """Initialize web search client.

        Args:
            api_key: API key. Defaults to GOOGLE_CUSTOM_SEARCH_API_KEY env var.
            engine_id: Search engine id (cx). Defaults to
                GOOGLE_CUSTOM_SEARCH_ENGINE_ID env var.

        Raises:
            ValueError: If the key or engine id is missing.
        """
        super().__init__(**kwargs)
        self.api_key = api_key or os.environ.get("GOOGLE_CUSTOM_SEARCH_API_KEY")
        self.engine_id = engine_id or os.environ.get("GOOGLE_CUSTOM_SEARCH_ENGINE_ID")
        if not self.api_key or not self.engine_id:
            raise ValueError(
                "Web search requires GOOGLE_CUSTOM_SEARCH_API_KEY and "
                "GOOGLE_CUSTOM_SEARCH_ENGINE_ID."
            )

    async def search(self, query: str, num_results: int = 10) -> list[WebPage]:
        """Run one web search.

        Raises:
            WebSearchError: If the request fails.
        """
        num_results = max(1, min(num_results, MAX_RESULTS_PER_REQUEST))
        logger.info("Web search: '%s' (num %d)", query, num_results)

        data = await self._get(
            CUSTOM_SEARCH_URL,
            params={
                "key": self.api_key,
                "cx": self.engine_id,
                "q": query,
                "num": num_results,
            },
        )
        return [
            WebPage(
                title=item.get("title", ""),
                url=item.get("link", ""),
                snippet=item.get("snippet", ""),
                domain=item.get("displayLink", ""),
            )
            for item in data.get("items", [])
            if item.get("link")
        ]
