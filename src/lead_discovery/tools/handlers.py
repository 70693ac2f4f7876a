"""Handler implementations for every tool in the catalog.

Handlers raise on backend failures; the executor turns exceptions into
structured errors. A backend that is not configured is not a failure: the
handler returns an empty result with a ``message``.
"""

import logging
from datetime import datetime, timezone
from statistics import mean
from typing import Any, Optional

from pydantic import BaseModel, Field, ValidationError, field_validator

from ..integrations.perplexity import PerplexityError
from ..models.lead import Lead
from ..models.search import SearchFilters
from ..ranking import normalize_name, rank
from ..scoring import heuristic_opportunity_score
from ..search.converter import coerce_float, coerce_int, perplexity_to_lead, yelp_to_lead
from .registry import (
    AnalyzeWebsiteInput,
    BaseTool,
    EnrichEmailInput,
    ResearchCompetitorsInput,
    ScoreOpportunityInput,
    SearchGoogleMapsInput,
    SearchPerplexityInput,
    SearchWebInput,
    SearchYelpInput,
    ToolName,
    VerifyBusinessInput,
    register_tool,
)

logger = logging.getLogger(__name__)

MAX_COMPETITORS = 10
BASIC_VERIFICATION_BASELINE = 50
BASIC_VERIFICATION_CAP = 85
VERIFIED_THRESHOLD = 70

# Alternate spellings the model may use for lead fields
BUSINESS_FIELD_ALIASES = {
    "reviews": "review_count",
    "reviewCount": "review_count",
    "user_ratings_total": "review_count",
    "zipCode": "postal_code",
    "zip_code": "postal_code",
    "opportunityScore": "opportunity_score",
    "painPoints": "pain_points",
    "business_name": "name",
}


def _not_configured(message: str, **extra: Any) -> dict[str, Any]:
    return {"leads": [], "count": 0, "message": message, **extra}


@register_tool(ToolName.SEARCH_GOOGLE_MAPS)
class SearchGoogleMapsTool(BaseTool):
    """Multi-strategy Places search."""

    async def execute(self, params: SearchGoogleMapsInput) -> dict[str, Any]:
        engine = self.context.search_engine
        if not engine.available:
            return _not_configured("Google Maps API key not configured")

        response = await engine.search(
            params.query,
            location=params.location,
            max_results=params.limit,
            min_rating=params.min_rating,
            filters=SearchFilters(
                max_rating=params.max_rating,
                has_website=params.has_website,
                min_reviews=params.min_reviews,
                max_reviews=params.max_reviews,
            ),
        )
        leads = rank(response.leads)
        return {
            "leads": leads,
            "count": len(leads),
            "total_found": response.total_found,
            "search_query": response.search_query,
            "errors": response.errors,
            "message": response.message,
        }


@register_tool(ToolName.SEARCH_YELP)
class SearchYelpTool(BaseTool):
    async def execute(self, params: SearchYelpInput) -> dict[str, Any]:
        if self.context.yelp is None:
            return _not_configured("Yelp API key not configured")

        businesses = await self.context.yelp.search(params.term, params.location, params.limit)
        leads = [
            lead
            for lead in (yelp_to_lead(business, params.term) for business in businesses)
            if lead is not None and lead.has_contact
        ]
        return {"leads": leads, "count": len(leads)}


@register_tool(ToolName.SEARCH_WEB)
class SearchWebTool(BaseTool):
    async def execute(self, params: SearchWebInput) -> dict[str, Any]:
        if self.context.web_search is None:
            return {
                "results": [],
                "count": 0,
                "message": "Web search requires GOOGLE_CUSTOM_SEARCH_API_KEY and GOOGLE_CUSTOM_SEARCH_ENGINE_ID",
            }

        pages = await self.context.web_search.search(params.query, params.num_results)
        return {"results": [page.to_dict() for page in pages], "count": len(pages)}


@register_tool(ToolName.SEARCH_PERPLEXITY)
class SearchPerplexityTool(BaseTool):
    async def execute(self, params: SearchPerplexityInput) -> dict[str, Any]:
        if self.context.perplexity is None:
            return _not_configured("Perplexity API key not configured")

        rows = await self.context.perplexity.search_businesses(
            params.query,
            location=params.location or "",
            industry=params.industry or "",
            limit=params.limit,
        )
        leads = [
            lead
            for lead in (
                perplexity_to_lead(row, params.industry or params.query, params.location)
                for row in rows
            )
            if lead is not None and lead.has_contact
        ]
        return {
            "leads": leads,
            "count": len(leads),
            "message": f"Found {len(leads)} businesses using Perplexity",
        }


@register_tool(ToolName.ENRICH_EMAIL)
class EnrichEmailTool(BaseTool):
    async def execute(self, params: EnrichEmailInput) -> dict[str, Any]:
        if self.context.email_enricher is None:
            return {
                "business_name": params.business_name,
                "email": None,
                "message": "Email enrichment requires HUNTER_API_KEY or APOLLO_API_KEY",
            }

        result = await self.context.email_enricher.find_email(
            params.business_name, params.domain
        )
        return {"business_name": params.business_name, **result.to_dict()}


@register_tool(ToolName.ANALYZE_WEBSITE)
class AnalyzeWebsiteTool(BaseTool):
    async def execute(self, params: AnalyzeWebsiteInput) -> dict[str, Any]:
        analysis = await self.context.website_analyzer.analyze(params.url)
        return analysis.to_dict()


def normalize_business_data(data: dict[str, Any]) -> dict[str, Any]:
    """Map alternate field names onto Lead fields and coerce numbers."""
    normalized: dict[str, Any] = {}
    for key, value in data.items():
        normalized.setdefault(BUSINESS_FIELD_ALIASES.get(key, key), value)
    normalized["rating"] = coerce_float(normalized.get("rating"))
    normalized["review_count"] = coerce_int(normalized.get("review_count"))
    return normalized


@register_tool(ToolName.SCORE_OPPORTUNITY)
class ScoreOpportunityTool(BaseTool):
    """Scores one business; incomplete records use the heuristic directly."""

    async def execute(self, params: ScoreOpportunityInput) -> dict[str, Any]:
        data = normalize_business_data(params.business_data)
        data.pop("opportunity_score", None)
        data.pop("pain_points", None)

        try:
            lead = Lead.from_dict(data)
        except (TypeError, ValueError) as e:
            logger.debug("Scoring raw business data without a full lead: %s", e)
            score, note = heuristic_opportunity_score(
                data.get("rating"), data.get("review_count"), bool(data.get("website"))
            )
            return {
                "score": score,
                "pain_points": [],
                "method": "heuristic",
                "scoring_note": note,
            }

        scored = await self.context.scorer.score(lead)
        return {
            "name": scored.name,
            "score": scored.opportunity_score,
            "pain_points": list(scored.pain_points),
            "method": "heuristic" if scored.scoring_note else "ai",
            "scoring_note": scored.scoring_note,
        }


def market_insights(competitors: list[Lead]) -> dict[str, Any]:
    """Summary statistics over a competitor set."""
    ratings = [lead.rating for lead in competitors if lead.rating is not None]
    reviews = [lead.review_count for lead in competitors if lead.review_count is not None]
    with_website = sum(1 for lead in competitors if lead.website)
    return {
        "competitor_count": len(competitors),
        "average_rating": round(mean(ratings), 2) if ratings else None,
        "average_reviews": round(mean(reviews), 1) if reviews else None,
        "total_reviews": sum(reviews),
        "website_coverage": round(with_website / len(competitors), 2) if competitors else None,
        "top_competitors": [lead.name for lead in competitors[:5]],
    }


@register_tool(ToolName.RESEARCH_COMPETITORS)
class ResearchCompetitorsTool(BaseTool):
    """Same-industry businesses in the same location, excluding the business itself."""

    async def execute(self, params: ResearchCompetitorsInput) -> dict[str, Any]:
        engine = self.context.search_engine
        if not engine.available:
            return {
                "competitors": [],
                "market_insights": None,
                "message": "Google Maps API key not configured",
            }

        response = await engine.search(params.industry, location=params.location)
        own_name = normalize_name(params.business_name)
        competitors = rank(
            lead for lead in response.leads if normalize_name(lead.name) != own_name
        )
        return {
            "business_name": params.business_name,
            "competitors": [lead.to_dict() for lead in competitors[:MAX_COMPETITORS]],
            "market_insights": market_insights(competitors),
        }


class VerificationReport(BaseModel):
    """Validated shape of a web-grounded verification answer."""

    verified: bool = False
    confidence: int = Field(default=0, ge=0, le=100)
    exists: bool = False
    phone_valid: bool = False
    website_valid: bool = False
    found_online: bool = False
    sources: list[str] = Field(default_factory=list)
    notes: str = "Verification completed"
    red_flags: list[str] = Field(default_factory=list)

    @field_validator("sources", "red_flags", mode="before")
    @classmethod
    def drop_nulls(cls, v: Any) -> list[Any]:
        if v is None:
            return []
        return [item for item in v if item]


def basic_verification(
    phone: Optional[str] = None,
    website: Optional[str] = None,
    address: Optional[str] = None,
    location: Optional[str] = None,
) -> dict[str, Any]:
    """Completeness-based verification used when web research is unavailable.

    Starts at 50, adds 15 for a phone, 15 for a website, 10 for an address
    and 10 for a location. Verified at 70 or more; confidence capped at 85.
    """
    confidence = BASIC_VERIFICATION_BASELINE
    checks: list[str] = []
    for label, value, weight in (
        ("phone", phone, 15),
        ("website", website, 15),
        ("address", address, 10),
        ("location", location, 10),
    ):
        if value:
            confidence += weight
            checks.append(label)

    return {
        "verified": confidence >= VERIFIED_THRESHOLD,
        "confidence": min(confidence, BASIC_VERIFICATION_CAP),
        "exists": True,
        "phone_valid": bool(phone),
        "website_valid": bool(website),
        "found_online": False,
        "sources": ["basic_validation"],
        "notes": f"Basic verification based on data completeness ({', '.join(checks) or 'no details'})",
        "red_flags": [],
        "method": "basic",
        "verification_date": datetime.now(timezone.utc).isoformat(),
    }


@register_tool(ToolName.VERIFY_BUSINESS)
class VerifyBusinessTool(BaseTool):
    async def execute(self, params: VerifyBusinessInput) -> dict[str, Any]:
        fallback_args = {
            "phone": params.phone,
            "website": params.website,
            "address": params.address,
            "location": params.location,
        }
        if self.context.perplexity is None:
            return basic_verification(**fallback_args)

        try:
            raw = await self.context.perplexity.verify_business(
                params.business_name, **fallback_args
            )
            report = VerificationReport.model_validate(raw)
        except (PerplexityError, ValidationError) as e:
            logger.warning("Web verification failed for '%s': %s", params.business_name, e)
            return basic_verification(**fallback_args)

        return {
            **report.model_dump(),
            "method": "perplexity",
            "verification_date": datetime.now(timezone.utc).isoformat(),
        }
