"""Pydantic models for inbound search and orchestration requests."""

from typing import Optional

from pydantic import BaseModel, Field, field_validator

from .search import SearchFilters


class SearchRequest(BaseModel):
    """Request for a deterministic multi-strategy search."""

    query: str = Field(..., min_length=1, description="Free-text business search")
    location: Optional[str] = Field(default=None, description="City, region or address")
    max_results: int = Field(default=20, ge=1, le=60, description="Per-strategy result cap")
    min_rating: Optional[float] = Field(default=None, ge=0, le=5)
    max_rating: Optional[float] = Field(default=None, ge=0, le=5)
    has_website: Optional[bool] = Field(default=None)
    min_reviews: Optional[int] = Field(default=None, ge=0)
    max_reviews: Optional[int] = Field(default=None, ge=0)

    @field_validator("query")
    @classmethod
    def strip_query(cls, v: str) -> str:
        """Reject whitespace-only queries."""
        v = v.strip()
        if not v:
            raise ValueError("query must not be blank")
        return v

    def to_filters(self) -> SearchFilters:
        """Build the post-conversion filter set."""
        return SearchFilters(
            min_rating=self.min_rating,
            max_rating=self.max_rating,
            has_website=self.has_website,
            min_reviews=self.min_reviews,
            max_reviews=self.max_reviews,
        )


class OrchestrationRequest(BaseModel):
    """Request for a model-directed discovery run."""

    query: str = Field(..., min_length=1, description="Free-text discovery request")
    max_iterations: int = Field(default=5, ge=1, le=20)
    enable_email_enrichment: bool = Field(default=True)
    enable_website_analysis: bool = Field(default=True)

    @field_validator("query")
    @classmethod
    def strip_query(cls, v: str) -> str:
        """Reject whitespace-only queries."""
        v = v.strip()
        if not v:
            raise ValueError("query must not be blank")
        return v
