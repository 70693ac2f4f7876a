"""Firecrawl client for rendering business websites before analysis.

Firecrawl handles JavaScript rendering, which matters for the site builders
(Wix, Squarespace) that small businesses commonly use.
"""

import asyncio
import logging
import os
from dataclasses import dataclass, field
from typing import Any, Optional

from firecrawl import Firecrawl

logger = logging.getLogger(__name__)

DEFAULT_FORMATS = ["markdown", "rawHtml", "links"]


class FirecrawlError(Exception):
    """Base exception for Firecrawl client errors."""

    pass


class FirecrawlRateLimitError(FirecrawlError):
    """Raised when API rate limit is exceeded."""

    pass


class FirecrawlAuthError(FirecrawlError):
    """Raised when API authentication fails."""

    pass


class FirecrawlScrapeError(FirecrawlError):
    """Raised when scraping a URL fails."""

    pass


@dataclass
class ScrapeResult:
    """Rendered content of a single page.

    Attributes:
        url: The URL that was scraped.
        markdown: Main content as markdown.
        raw_html: Full page HTML.
        links: Links found on the page.
        metadata: Page metadata (title, description, status code, ...).
    """

    url: str
    markdown: Optional[str] = None
    raw_html: Optional[str] = None
    links: list[str] = field(default_factory=list)
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def has_content(self) -> bool:
        return bool(self.markdown or self.raw_html)


def _read(response: Any, *names: str) -> Any:
    """Read the first present field from an SDK document or a plain dict."""
    for name in names:
        if isinstance(response, dict):
            value = response.get(name)
        else:
            value = getattr(response, name, None)
        if value is not None:
            return value
    return None


class FirecrawlClient:
    """Async wrapper around the Firecrawl SDK scrape endpoint.

    Example:
        >>> client = FirecrawlClient()
        >>> page = await client.scrape_url("https://acmeplumbing.com")
        >>> page.metadata.get("title")
        'Acme Plumbing'
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        client: Optional[Firecrawl] = None,
    ) -> None:
        """Initialize Firecrawl client.

        Args:
            api_key: Firecrawl API key. Defaults to FIRECRAWL_API_KEY env var.
            client: Pre-built SDK client (mainly for tests).

        Raises:
            ValueError: If no API key is provided or found in environment.
        """
        self.api_key = api_key or os.environ.get("FIRECRAWL_API_KEY")
        if not self.api_key and client is None:
            raise ValueError(
                "Firecrawl API key required. Set FIRECRAWL_API_KEY environment "
                "variable or pass api_key parameter."
            )
        self._client = client or Firecrawl(api_key=self.api_key)

    def _parse_scrape_response(self, url: str, response: Any) -> ScrapeResult:
        metadata = _read(response, "metadata") or {}
        if not isinstance(metadata, dict):
            if hasattr(metadata, "model_dump"):
                metadata = metadata.model_dump(exclude_none=True)
            else:
                metadata = dict(vars(metadata))

        links = _read(response, "links") or []
        if isinstance(links, str):
            links = [links]

        return ScrapeResult(
            url=url,
            markdown=_read(response, "markdown"),
            raw_html=_read(response, "raw_html", "rawHtml", "html"),
            links=list(links),
            metadata=metadata,
        )

    async def scrape_url(
        self,
        url: str,
        formats: Optional[list[str]] = None,
    ) -> ScrapeResult:
        """Scrape a single URL and return its rendered content.

        Raises:
            FirecrawlAuthError: If API authentication fails.
            FirecrawlRateLimitError: If rate limit is exceeded.
            FirecrawlScrapeError: If scraping fails or returns nothing.
        """
        formats = formats or DEFAULT_FORMATS.copy()
        logger.info("Scraping URL: %s (formats: %s)", url, formats)

        loop = asyncio.get_event_loop()
        try:
            response = await loop.run_in_executor(
                None,
                lambda: self._client.scrape(
                    url, formats=formats, only_main_content=False
                ),
            )
        except Exception as e:
            error_msg = str(e)
            logger.error("Failed to scrape %s: %s", url, error_msg)
            if "401" in error_msg or "unauthorized" in error_msg.lower():
                raise FirecrawlAuthError(f"Authentication failed: {error_msg}") from e
            if "429" in error_msg or "rate limit" in error_msg.lower():
                raise FirecrawlRateLimitError(f"Rate limit exceeded: {error_msg}") from e
            raise FirecrawlScrapeError(f"Scrape failed for {url}: {error_msg}") from e

        if not response:
            raise FirecrawlScrapeError(f"Empty response from Firecrawl for {url}")

        result = self._parse_scrape_response(url, response)
        if not result.has_content:
            raise FirecrawlScrapeError(f"No content returned for {url}")
        return result
