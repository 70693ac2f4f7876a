"""Google Maps Places API client used as the structured search backend.

Runs Places text searches; Place Details (phone variants, website, address
components) are fetched separately for merged, unique hits.
"""

import asyncio
import logging
import os
from dataclasses import dataclass, field
from typing import Any, Optional

import googlemaps
from googlemaps.exceptions import ApiError, TransportError, Timeout

logger = logging.getLogger(__name__)

# Constants
MAX_RESULTS_PER_PAGE = 20
DETAIL_FIELDS = [
    "address_component",
    "formatted_phone_number",
    "international_phone_number",
    "website",
]


class GoogleMapsError(Exception):
    """Base exception for Google Maps client errors."""

    pass


class GoogleMapsSearchError(GoogleMapsError):
    """Raised when a text search request fails."""

    pass


@dataclass
class PlaceResult:
    """Represents a single place returned by a text search.

    Attributes:
        place_id: Unique Google Places identifier.
        name: Business name.
        formatted_address: Full address line as returned by the API.
        national_phone: Phone in national format (preferred for display).
        international_phone: Phone in international format.
        website: Website URL (may be None).
        rating: Average star rating (0.0-5.0).
        review_count: Number of user reviews.
        types: Place types/categories, most specific first.
        address_components: Raw address components from Place Details.
        business_status: Operating status (OPERATIONAL, CLOSED_TEMPORARILY, ...).
    """

    place_id: str
    name: str
    formatted_address: str
    national_phone: Optional[str] = None
    international_phone: Optional[str] = None
    website: Optional[str] = None
    rating: Optional[float] = None
    review_count: Optional[int] = None
    types: list[str] = field(default_factory=list)
    address_components: list[dict[str, Any]] = field(default_factory=list)
    business_status: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "place_id": self.place_id,
            "name": self.name,
            "formatted_address": self.formatted_address,
            "national_phone": self.national_phone,
            "international_phone": self.international_phone,
            "website": self.website,
            "rating": self.rating,
            "review_count": self.review_count,
            "types": self.types,
            "address_components": self.address_components,
            "business_status": self.business_status,
        }


class GoogleMapsClient:
    """Async wrapper around the googlemaps SDK for business text search.

    Attributes:
        api_key: Google Maps API key.
        enrich_details: Whether text-search hits are enriched with Place Details.

    Example:
        >>> client = GoogleMapsClient()
        >>> places = await client.text_search("plumbers in Santa Fe, NM", max_results=20)
        >>> for place in places:
        ...     print(place.name, place.national_phone)
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        enrich_details: bool = True,
        client: Optional[googlemaps.Client] = None,
    ) -> None:
        """Initialize Google Maps client.

        Args:
            api_key: Google Maps API key. Defaults to GOOGLE_MAPS_API_KEY env var.
            enrich_details: Fetch phone/website/address components per hit.
            client: Pre-built googlemaps.Client (mainly for tests).

        Raises:
            ValueError: If no API key is provided or found in environment.
        """
        self.api_key = api_key or os.environ.get("GOOGLE_MAPS_API_KEY")
        if not self.api_key and client is None:
            raise ValueError(
                "Google Maps API key required. Set GOOGLE_MAPS_API_KEY environment "
                "variable or pass api_key parameter."
            )

        self.enrich_details = enrich_details
        self._client = client or googlemaps.Client(key=self.api_key)
        logger.info("GoogleMapsClient initialized (enrich_details=%s)", enrich_details)

    def _parse_place(self, place_data: dict[str, Any]) -> PlaceResult:
        """Parse a raw text-search hit into PlaceResult."""
        return PlaceResult(
            place_id=place_data.get("place_id", ""),
            name=place_data.get("name", ""),
            formatted_address=place_data.get(
                "formatted_address", place_data.get("vicinity", "")
            ),
            rating=place_data.get("rating"),
            review_count=place_data.get("user_ratings_total"),
            types=place_data.get("types", []),
            business_status=place_data.get("business_status"),
        )

    async def _fetch_place_details(self, place_id: str) -> dict[str, Any]:
        """Fetch contact and address details for a single place.

        Returns:
            The ``result`` object of the details response, or an empty dict
            if the request failed (the hit is still usable without details).
        """
        loop = asyncio.get_event_loop()
        try:
            result = await loop.run_in_executor(
                None,
                lambda: self._client.place(place_id, fields=DETAIL_FIELDS),
            )
            return result.get("result", {})
        except (ApiError, TransportError, Timeout) as e:
            logger.warning("Failed to fetch details for place %s: %s", place_id, e)
            return {}

    async def enrich_place_details(self, place: PlaceResult) -> PlaceResult:
        """Populate phone, website and address components from Place Details."""
        if not place.place_id:
            return place

        details = await self._fetch_place_details(place.place_id)
        place.national_phone = details.get("formatted_phone_number")
        place.international_phone = details.get("international_phone_number")
        place.website = details.get("website")
        place.address_components = details.get("address_components", [])
        return place

    async def enrich_places(self, places: list[PlaceResult]) -> list[PlaceResult]:
        """Fetch Place Details for each place concurrently.

        Callers merge duplicate hits first; each place costs one billable
        details request. A no-op when ``enrich_details`` is off.
        """
        if not self.enrich_details or not places:
            return list(places)

        logger.debug("Enriching %d places with contact details", len(places))
        return list(await asyncio.gather(*(self.enrich_place_details(p) for p in places)))

    async def text_search(
        self,
        query: str,
        max_results: int = MAX_RESULTS_PER_PAGE,
    ) -> list[PlaceResult]:
        """Run one Places text search.

        Only the first page is requested; ``max_results`` is capped at the
        API's page size. Hits carry no contact details; see ``enrich_places``.

        Args:
            query: Free-text query, e.g. "plumbers in Santa Fe, New Mexico".
            max_results: Maximum hits to return (1-20).

        Returns:
            List of PlaceResult.

        Raises:
            GoogleMapsSearchError: If the text search request fails.
        """
        max_results = max(1, min(max_results, MAX_RESULTS_PER_PAGE))
        logger.info("Places text search: '%s' (max %d)", query, max_results)

        loop = asyncio.get_event_loop()
        try:
            response = await loop.run_in_executor(
                None,
                lambda: self._client.places(query=query),
            )
        except (ApiError, TransportError, Timeout) as e:
            logger.error("Text search failed for '%s': %s", query, e)
            raise GoogleMapsSearchError(f"Text search failed for '{query}': {e}") from e

        places = [
            self._parse_place(place_data)
            for place_data in response.get("results", [])[:max_results]
        ]
        logger.info("Text search '%s' returned %d places", query, len(places))
        return places

    def close(self) -> None:
        """Clean up client resources."""
        session = getattr(self._client, "session", None)
        if session is not None:
            session.close()
