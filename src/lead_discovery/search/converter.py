"""Conversion of raw backend records into canonical Leads.

Every converter returns None instead of raising when a record cannot form
a valid Lead (missing name or address), so callers can drop bad records
silently while merging.
"""

import logging
import re
from typing import Any, Optional

from ..integrations.google_maps import PlaceResult
from ..integrations.yelp import YelpBusiness
from ..models.lead import Lead, LeadSource

logger = logging.getLogger(__name__)

# Data quality estimate per backend, 0-100
SOURCE_CONFIDENCE: dict[str, int] = {
    LeadSource.GOOGLE_PLACES.value: 95,
    LeadSource.YELP.value: 85,
    LeadSource.PERPLEXITY.value: 70,
}

# Place types too generic to serve as an industry label
GENERIC_PLACE_TYPES = frozenset({
    "point_of_interest",
    "establishment",
    "store",
    "food",
    "health",
    "premise",
    "political",
    "geocode",
})

CLOSED_STATUSES = frozenset({"CLOSED_PERMANENTLY"})
COUNTRY_SUFFIXES = frozenset({"usa", "us", "united states", "united states of america"})

_STATE_ZIP_RE = re.compile(r"^(?P<state>[A-Za-z][A-Za-z .]*?)\s+(?P<zip>\d{5}(?:-\d{4})?)$")


def industry_from_types(types: list[str], fallback: str = "") -> str:
    """Pick the most specific non-generic place type as a readable label.

    Example:
        >>> industry_from_types(["plumber", "point_of_interest"])
        'plumber'
    """
    for place_type in types:
        if place_type and place_type not in GENERIC_PLACE_TYPES:
            return place_type.replace("_", " ")
    return fallback


def parse_address_components(
    components: list[dict[str, Any]],
) -> tuple[str, str, Optional[str]]:
    """Read city, state and postal code from Places address components.

    Returns:
        Tuple of (city, state short code, postal code or None).
    """
    city = ""
    state = ""
    postal_code = None
    for component in components:
        types = component.get("types", [])
        if "locality" in types:
            city = component.get("long_name") or component.get("short_name") or ""
        elif "postal_town" in types and not city:
            city = component.get("long_name") or ""
        elif "administrative_area_level_1" in types:
            state = component.get("short_name") or component.get("long_name") or ""
        elif "postal_code" in types:
            postal_code = component.get("long_name") or component.get("short_name") or None
    return city, state, postal_code


def parse_address_blob(address: str) -> tuple[str, str, Optional[str]]:
    """Best-effort split of a one-line address into city, state and postal code.

    Understands the common US shape ``"street, city, ST 12345[, USA]"``.
    Other formats yield empty parts rather than errors.

    Example:
        >>> parse_address_blob("123 Main St, Santa Fe, NM 87501, USA")
        ('Santa Fe', 'NM', '87501')
    """
    parts = [part.strip() for part in address.split(",") if part.strip()]
    if parts and parts[-1].lower() in COUNTRY_SUFFIXES:
        parts = parts[:-1]
    if len(parts) < 2:
        return "", "", None

    city = parts[-2]
    tail = parts[-1]
    match = _STATE_ZIP_RE.match(tail)
    if match:
        return city, match.group("state").strip(), match.group("zip")
    if re.fullmatch(r"\d{5}(?:-\d{4})?", tail):
        return city, "", tail
    return city, tail, None


def parse_location_hint(location: Optional[str]) -> tuple[str, str]:
    """Split a "City, State" search location into its two parts."""
    if not location:
        return "", ""
    parts = [part.strip() for part in location.split(",") if part.strip()]
    if not parts:
        return "", ""
    if len(parts) == 1:
        return parts[0], ""
    return parts[0], parts[1]


def coerce_float(value: Any) -> Optional[float]:
    try:
        return float(value) if value is not None and value != "" else None
    except (TypeError, ValueError):
        return None


def coerce_int(value: Any) -> Optional[int]:
    try:
        return int(float(value)) if value is not None and value != "" else None
    except (TypeError, ValueError):
        return None


def _blank_to_none(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def place_to_lead(place: PlaceResult, industry_hint: str = "") -> Optional[Lead]:
    """Convert a Google Places result into a Lead.

    Address parts come from address components when present, otherwise
    from the formatted address. The national phone format is preferred.

    Returns:
        The Lead, or None if the record is malformed or permanently closed.
    """
    if place.business_status in CLOSED_STATUSES:
        logger.debug("Dropping closed place %s", place.place_id)
        return None

    if place.address_components:
        city, state, postal_code = parse_address_components(place.address_components)
    else:
        city, state, postal_code = parse_address_blob(place.formatted_address or "")

    try:
        return Lead(
            name=(place.name or "").strip(),
            address=(place.formatted_address or "").strip(),
            industry=industry_from_types(place.types, industry_hint),
            city=city,
            state=state,
            postal_code=postal_code,
            phone=_blank_to_none(place.national_phone or place.international_phone),
            website=_blank_to_none(place.website),
            rating=place.rating,
            review_count=place.review_count,
            confidence_score=SOURCE_CONFIDENCE[LeadSource.GOOGLE_PLACES.value],
            source=LeadSource.GOOGLE_PLACES.value,
            provider_id=place.place_id or None,
        )
    except ValueError as e:
        logger.debug("Skipping malformed place %r: %s", place.place_id, e)
        return None


def yelp_to_lead(business: YelpBusiness, industry_hint: str = "") -> Optional[Lead]:
    """Convert a Yelp business into a Lead.

    The Yelp page URL is not the business's own website, so ``website``
    stays empty.
    """
    try:
        return Lead(
            name=(business.name or "").strip(),
            address=(business.address or "").strip(),
            industry=business.categories[0] if business.categories else industry_hint,
            city=business.city,
            state=business.state,
            postal_code=business.zip_code,
            phone=_blank_to_none(business.phone),
            rating=business.rating,
            review_count=business.review_count,
            confidence_score=SOURCE_CONFIDENCE[LeadSource.YELP.value],
            source=LeadSource.YELP.value,
            provider_id=f"yelp:{business.id}" if business.id else None,
        )
    except ValueError as e:
        logger.debug("Skipping malformed Yelp business %r: %s", business.id, e)
        return None


def perplexity_to_lead(
    row: dict[str, Any],
    industry_hint: str = "",
    location_hint: Optional[str] = None,
) -> Optional[Lead]:
    """Convert one Perplexity business row into a Lead.

    Missing city/state fall back to the location the search was run for.
    """
    address = str(row.get("address") or "").strip()
    city, state, postal_code = parse_address_blob(address)
    hint_city, hint_state = parse_location_hint(location_hint)

    try:
        return Lead(
            name=str(row.get("name") or "").strip(),
            address=address,
            industry=str(row.get("industry") or industry_hint),
            city=city or hint_city,
            state=state or hint_state,
            postal_code=postal_code,
            phone=_blank_to_none(row.get("phone")),
            email=_blank_to_none(row.get("email")),
            website=_blank_to_none(row.get("website")),
            rating=coerce_float(row.get("rating")),
            review_count=coerce_int(
                row.get("reviewCount", row.get("review_count", row.get("reviews")))
            ),
            confidence_score=SOURCE_CONFIDENCE[LeadSource.PERPLEXITY.value],
            source=LeadSource.PERPLEXITY.value,
        )
    except ValueError as e:
        logger.debug("Skipping malformed Perplexity row: %s", e)
        return None
