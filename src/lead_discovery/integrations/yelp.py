"""Yelp Fusion API client for business search."""

import logging
import os
from dataclasses import dataclass, field
from typing import Any, Optional

from .http import JSONHTTPClient

logger = logging.getLogger(__name__)

YELP_BASE_URL = "https://api.yelp.com/v3"
MAX_LIMIT = 50


class YelpError(Exception):
    """Raised when a Yelp API request fails."""

    pass


@dataclass
class YelpBusiness:
    """A business returned by Yelp's ``businesses/search`` endpoint.

    Attributes:
        id: Yelp business id.
        name: Business name.
        address: First address line.
        city: City.
        state: State code.
        zip_code: Postal code.
        phone: Display phone (national format when available).
        rating: Star rating.
        review_count: Number of reviews.
        yelp_url: The business page on Yelp (not the business website).
        categories: Category titles, most specific first.
        is_closed: Whether Yelp marks the business permanently closed.
    """

    id: str
    name: str
    address: str = ""
    city: str = ""
    state: str = ""
    zip_code: Optional[str] = None
    phone: Optional[str] = None
    rating: Optional[float] = None
    review_count: Optional[int] = None
    yelp_url: Optional[str] = None
    categories: list[str] = field(default_factory=list)
    is_closed: bool = False


class YelpClient(JSONHTTPClient):
    """Async client for the Yelp Fusion business search."""

    error_class = YelpError

    def __init__(self, api_key: Optional[str] = None, **kwargs: Any) -> None:
        """Initialize Yelp client.

        Args:
            api_key: Yelp API key. Defaults to YELP_API_KEY env var.
            **kwargs: Passed to JSONHTTPClient (timeout, retries, session).

        Raises:
            ValueError: If no API key is provided or found in environment.
        """
        super().__init__(**kwargs)
        self.api_key = api_key or os.environ.get("YELP_API_KEY")
        if not self.api_key:
            raise ValueError(
                "Yelp API key required. Set YELP_API_KEY environment "
                "variable or pass api_key parameter."
            )

    def _parse_business(self, data: dict[str, Any]) -> YelpBusiness:
        location = data.get("location") or {}
        return YelpBusiness(
            id=data.get("id", ""),
            name=data.get("name", ""),
            address=location.get("address1") or "",
            city=location.get("city") or "",
            state=location.get("state") or "",
            zip_code=location.get("zip_code") or None,
            phone=data.get("display_phone") or data.get("phone") or None,
            rating=data.get("rating"),
            review_count=data.get("review_count"),
            yelp_url=data.get("url"),
            categories=[
                category.get("title", "")
                for category in data.get("categories", [])
                if category.get("title")
            ],
            is_closed=bool(data.get("is_closed", False)),
        )

    async def search(
        self,
        term: str,
        location: str,
        limit: int = 20,
    ) -> list[YelpBusiness]:
        """Search businesses by term and location.

        Args:
            term: Search term (e.g. "HVAC", "dental").
            location: Location phrase (e.g. "San Diego, CA").
            limit: Maximum businesses to return (1-50).

        Returns:
            Open businesses in Yelp's relevance order.

        Raises:
            YelpError: If the request fails.
        """
        limit = max(1, min(limit, MAX_LIMIT))
        logger.info("Yelp search: '%s' in '%s' (limit %d)", term, location, limit)

        data = await self._get(
            f"{YELP_BASE_URL}/businesses/search",
            params={"term": term, "location": location, "limit": limit},
            headers={"Authorization": f"Bearer {self.api_key}"},
        )
        businesses = [self._parse_business(item) for item in data.get("businesses", [])]
        return [business for business in businesses if not business.is_closed]
