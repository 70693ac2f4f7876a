"""Search filters and the fan-out search response."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional

from .lead import Lead


@dataclass(frozen=True)
class SearchFilters:
    """Caller-supplied constraints applied after conversion.

    A missing rating or review count passes the corresponding bound, since
    absence of data is not evidence against the lead.

    Attributes:
        min_rating: Minimum star rating.
        max_rating: Maximum star rating.
        has_website: True keeps only leads with a website, False only those without.
        min_reviews: Minimum review count.
        max_reviews: Maximum review count.
    """

    min_rating: Optional[float] = None
    max_rating: Optional[float] = None
    has_website: Optional[bool] = None
    min_reviews: Optional[int] = None
    max_reviews: Optional[int] = None

    def matches(self, lead: Lead) -> bool:
        """Check if a lead satisfies every configured bound."""
        if lead.rating is not None:
            if self.min_rating is not None and lead.rating < self.min_rating:
                return False
            if self.max_rating is not None and lead.rating > self.max_rating:
                return False
        if lead.review_count is not None:
            if self.min_reviews is not None and lead.review_count < self.min_reviews:
                return False
            if self.max_reviews is not None and lead.review_count > self.max_reviews:
                return False
        if self.has_website is not None and bool(lead.website) != self.has_website:
            return False
        return True

    def merged(self, min_rating: Optional[float]) -> "SearchFilters":
        """Return a copy with ``min_rating`` overridden when given."""
        if min_rating is None:
            return self
        return SearchFilters(
            min_rating=min_rating,
            max_rating=self.max_rating,
            has_website=self.has_website,
            min_reviews=self.min_reviews,
            max_reviews=self.max_reviews,
        )


@dataclass
class SearchResponse:
    """Result of one multi-strategy search.

    Attributes:
        leads: Deduplicated, filtered leads (unordered; call ``rank``).
        total_found: Unique records actually retrieved before filtering.
        search_query: The exact-phrase query that was issued.
        timestamp: When the search completed (UTC).
        errors: One message per failed strategy.
        message: Note for the caller, e.g. when the backend is unavailable.
    """

    leads: list[Lead]
    total_found: int
    search_query: str
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    errors: list[str] = field(default_factory=list)
    message: Optional[str] = None

    @property
    def partial(self) -> bool:
        """True when at least one strategy failed."""
        return bool(self.errors)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "leads": [lead.to_dict() for lead in self.leads],
            "total_found": self.total_found,
            "search_query": self.search_query,
            "timestamp": self.timestamp.isoformat(),
            "errors": list(self.errors),
            "message": self.message,
        }
