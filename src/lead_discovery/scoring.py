"""Opportunity scoring for discovered leads.

The primary path asks a language model for a 0-100 opportunity score and a
short list of sales pain points. Model output is untrusted: it is extracted,
validated against ``OpportunityAnalysis``, and any failure falls back to a
deterministic heuristic. Scoring never raises for a valid Lead.
"""

import asyncio
import dataclasses
import logging
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .models.lead import Lead
from .utils.json_extraction import extract_json_object

logger = logging.getLogger(__name__)

DEFAULT_AI_LIMIT = 10
DEFAULT_AI_TIMEOUT_SECONDS = 15.0

# Heuristic weights
BASELINE_SCORE = 50
LOW_RATING_THRESHOLD = 4.0
LOW_RATING_BONUS = 20
MID_RATING_THRESHOLD = 4.5
MID_RATING_BONUS = 10
LOW_REVIEW_THRESHOLD = 50
LOW_REVIEW_BONUS = 15
NO_WEBSITE_BONUS = 20
MAX_SCORE = 100

SCORING_PROMPT = """Analyze this business as a B2B sales lead and provide:
1. Opportunity Score (0-100): how good a prospect this is for B2B marketing and web services.
2. Key Pain Points: 3-5 specific challenges this business likely faces.

Business: {name}
Industry: {industry}
Location: {location}
Rating: {rating}
Reviews: {reviews}
Has Website: {has_website}
Has Phone: {has_phone}

Respond ONLY with valid JSON:
{{"opportunityScore": 0, "painPoints": ["pain point 1", "pain point 2", "pain point 3"]}}"""


class OpportunityAnalysis(BaseModel):
    """Validated shape of the model's scoring answer."""

    model_config = ConfigDict(populate_by_name=True)

    opportunity_score: int = Field(..., alias="opportunityScore", ge=0, le=100)
    pain_points: list[str] = Field(default_factory=list, alias="painPoints", max_length=10)


def heuristic_opportunity_score(
    rating: Optional[float],
    review_count: Optional[int],
    has_website: bool,
) -> tuple[int, str]:
    """Deterministic opportunity score from public signals.

    Starts at 50; adds 20 for a rating under 4.0 (or 10 under 4.5), 15 for
    fewer than 50 reviews and 20 for no website; capped at 100. A missing
    rating adds nothing. A missing review count is treated as no reviews,
    since Places omits the count for unreviewed businesses.

    Returns:
        Tuple of (score, human-readable note listing the applied factors).
    """
    score = BASELINE_SCORE
    factors: list[str] = []

    if rating is not None:
        if rating < LOW_RATING_THRESHOLD:
            score += LOW_RATING_BONUS
            factors.append(f"low rating ({rating:.1f})")
        elif rating < MID_RATING_THRESHOLD:
            score += MID_RATING_BONUS
            factors.append(f"average rating ({rating:.1f})")

    reviews = review_count or 0
    if reviews < LOW_REVIEW_THRESHOLD:
        score += LOW_REVIEW_BONUS
        factors.append(f"few reviews ({reviews})")

    if not has_website:
        score += NO_WEBSITE_BONUS
        factors.append("no website")

    score = min(score, MAX_SCORE)
    note = "Heuristic score"
    if factors:
        note += ": " + ", ".join(factors)
    return score, note


def build_scoring_prompt(lead: Lead) -> str:
    """Compact prompt describing the signals the score depends on."""
    return SCORING_PROMPT.format(
        name=lead.name,
        industry=lead.industry or "unknown",
        location=lead.location or lead.address,
        rating=f"{lead.rating} stars" if lead.rating is not None else "N/A",
        reviews=lead.review_count if lead.review_count is not None else "N/A",
        has_website="Yes" if lead.website else "No",
        has_phone="Yes" if lead.phone else "No",
    )


def parse_opportunity_analysis(text: Optional[str]) -> OpportunityAnalysis:
    """Extract and validate a scoring answer.

    Raises:
        ValueError: If no JSON object is present or it fails validation.
    """
    data = extract_json_object(text)
    if data is None:
        raise ValueError("No JSON object in scoring response")
    try:
        return OpportunityAnalysis.model_validate(data)
    except ValidationError as e:
        raise ValueError(f"Invalid scoring response: {e}") from e


class OpportunityScorer:
    """Scores leads with an AI model, falling back to the heuristic.

    Attributes:
        client: Object with ``async complete(prompt, max_tokens) -> str``,
            or None to always use the heuristic.
        ai_limit: How many leads of a batch go through the AI path.
        ai_timeout: Seconds to wait for one model answer before using the
            heuristic; must stay below the tool timeout.

    Example:
        >>> scorer = OpportunityScorer(OpenAIReasoningClient())
        >>> scored = await scorer.score_batch(leads)
    """

    def __init__(
        self,
        client: Optional[Any] = None,
        ai_limit: int = DEFAULT_AI_LIMIT,
        max_tokens: int = 512,
        ai_timeout: float = DEFAULT_AI_TIMEOUT_SECONDS,
    ) -> None:
        self.client = client
        self.ai_limit = max(0, ai_limit)
        self.max_tokens = max_tokens
        self.ai_timeout = ai_timeout

    def score_heuristically(self, lead: Lead) -> Lead:
        score, note = heuristic_opportunity_score(
            lead.rating, lead.review_count, bool(lead.website)
        )
        return dataclasses.replace(
            lead, opportunity_score=score, pain_points=(), scoring_note=note
        )

    async def score(self, lead: Lead) -> Lead:
        """Return a copy of the lead with score and pain points attached."""
        if self.client is None:
            return self.score_heuristically(lead)

        try:
            text = await asyncio.wait_for(
                self.client.complete(build_scoring_prompt(lead), max_tokens=self.max_tokens),
                self.ai_timeout,
            )
            analysis = parse_opportunity_analysis(text)
        except asyncio.TimeoutError:
            logger.warning(
                "AI scoring timed out for '%s' after %.0fs, using heuristic",
                lead.name,
                self.ai_timeout,
            )
            return self.score_heuristically(lead)
        except Exception as e:
            logger.warning("AI scoring failed for '%s', using heuristic: %s", lead.name, e)
            return self.score_heuristically(lead)

        return dataclasses.replace(
            lead,
            opportunity_score=analysis.opportunity_score,
            pain_points=tuple(point for point in analysis.pain_points if point.strip()),
            scoring_note=None,
        )

    async def score_batch(self, leads: list[Lead]) -> list[Lead]:
        """Score the first ``ai_limit`` leads; the rest keep their defaults.

        Order is preserved.
        """
        head = leads[: self.ai_limit]
        tail = leads[self.ai_limit:]
        scored = await asyncio.gather(*(self.score(lead) for lead in head))
        logger.info("Scored %d of %d leads", len(scored), len(leads))
        return list(scored) + list(tail)
