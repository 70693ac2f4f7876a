"""Canonical lead record produced by the discovery engine."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

DEFAULT_OPPORTUNITY_SCORE = 50


class LeadSource(str, Enum):
    """Provenance tags for the backend or path that produced a lead."""

    GOOGLE_PLACES = "google_places_api"
    YELP = "yelp_api"
    PERPLEXITY = "perplexity_ai"
    MANUAL = "manual"


@dataclass(frozen=True)
class Lead:
    """A discovered business, normalized across search backends.

    Leads are immutable. Scoring and enrichment return updated copies via
    ``dataclasses.replace`` so a lead handed to the caller never changes
    underneath it.

    Attributes:
        name: Business display name (never blank).
        address: Street address or full address line (never blank).
        industry: Human-readable category label.
        city: City or locality.
        state: State or region code.
        phone: Preferred phone representation.
        email: Contact email, when enrichment found one.
        website: Business website URL.
        postal_code: Postal / ZIP code.
        rating: Average star rating (0.0-5.0).
        review_count: Number of reviews backing the rating.
        opportunity_score: Sales opportunity estimate, 0-100.
        pain_points: Ordered sales pain points from scoring.
        confidence_score: Data quality estimate for the source, 0-100.
        source: Provenance tag (see LeadSource).
        provider_id: Backend identifier, used as the merge key.
        scoring_note: Explanation attached by the heuristic scorer.
    """

    name: str
    address: str
    industry: str = ""
    city: str = ""
    state: str = ""
    phone: Optional[str] = None
    email: Optional[str] = None
    website: Optional[str] = None
    postal_code: Optional[str] = None
    rating: Optional[float] = None
    review_count: Optional[int] = None
    opportunity_score: int = DEFAULT_OPPORTUNITY_SCORE
    pain_points: tuple[str, ...] = field(default_factory=tuple)
    confidence_score: int = 0
    source: str = LeadSource.MANUAL.value
    provider_id: Optional[str] = None
    scoring_note: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.name or not self.name.strip():
            raise ValueError("Lead name must not be blank")
        if not self.address or not self.address.strip():
            raise ValueError("Lead address must not be blank")
        if not 0 <= self.opportunity_score <= 100:
            raise ValueError(
                f"opportunity_score must be between 0 and 100, got {self.opportunity_score}"
            )
        if not isinstance(self.pain_points, tuple):
            object.__setattr__(self, "pain_points", tuple(self.pain_points))

    @property
    def has_contact(self) -> bool:
        """Check if the lead can be reached by phone or website."""
        return bool(self.phone or self.website)

    @property
    def location(self) -> str:
        """City and state joined for display and prompts."""
        return ", ".join(part for part in (self.city, self.state) if part)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "name": self.name,
            "industry": self.industry,
            "phone": self.phone,
            "email": self.email,
            "website": self.website,
            "address": self.address,
            "city": self.city,
            "state": self.state,
            "postal_code": self.postal_code,
            "rating": self.rating,
            "review_count": self.review_count,
            "opportunity_score": self.opportunity_score,
            "pain_points": list(self.pain_points),
            "confidence_score": self.confidence_score,
            "source": self.source,
            "provider_id": self.provider_id,
            "scoring_note": self.scoring_note,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Lead":
        """Build a Lead from a ``to_dict``-shaped mapping.

        Unknown keys are ignored; missing optional keys take their defaults.

        Raises:
            ValueError: If name or address is missing or blank.
        """
        known = set(cls.__dataclass_fields__)
        values = {key: value for key, value in data.items() if key in known}
        if values.get("pain_points") is None:
            values.pop("pain_points", None)
        for text_field in ("name", "address", "industry", "city", "state"):
            if values.get(text_field) is None:
                values[text_field] = ""
        return cls(**values)
