"""Multi-strategy search fan-out.

One user query becomes up to three backend queries (see ``strategies``),
issued concurrently. Hits are merged by provider id so a business returned
by several strategies counts once, converted to Leads, filtered, and
optionally scored.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Callable, Optional

from ..models.lead import Lead
from ..models.search import SearchFilters, SearchResponse
from ..ranking import normalize_name
from .converter import place_to_lead
from .strategies import derive_strategy_queries

logger = logging.getLogger(__name__)

PROVIDER_MAX_RESULTS = 20


class SearchBackendError(Exception):
    """Raised when every search strategy failed."""

    pass


def merge_key(record: Any) -> str:
    """Merge key for a raw record: provider id, else normalized name."""
    provider_id = getattr(record, "place_id", None)
    if provider_id:
        return provider_id
    return normalize_name(getattr(record, "name", "") or "")


class LeadSearchEngine:
    """Deterministic multi-strategy search over one structured backend.

    The backend is any object with a coroutine
    ``text_search(query, max_results) -> list[PlaceResult]``; in production
    that is ``GoogleMapsClient``. A backend that also has
    ``enrich_places(records)`` gets the merged, unique records once, so a
    business found by several strategies is enriched a single time.

    Attributes:
        backend: Structured search backend, or None when not configured.
        scorer: Optional OpportunityScorer applied to the filtered leads.
        converter: Raw record -> Lead (or None) conversion function.

    Example:
        >>> engine = LeadSearchEngine(GoogleMapsClient())
        >>> response = await engine.search("plumbers", "Santa Fe, New Mexico")
        >>> len(response.leads) <= response.total_found
        True
    """

    def __init__(
        self,
        backend: Optional[Any] = None,
        scorer: Optional[Any] = None,
        converter: Callable[[Any, str], Optional[Lead]] = place_to_lead,
    ) -> None:
        self.backend = backend
        self.scorer = scorer
        self.converter = converter

    @property
    def available(self) -> bool:
        return self.backend is not None

    async def _run_strategy(self, query: str, per_call: int) -> list[Any]:
        return list(await self.backend.text_search(query, max_results=per_call))

    async def search(
        self,
        query: str,
        location: Optional[str] = None,
        max_results: int = PROVIDER_MAX_RESULTS,
        min_rating: Optional[float] = None,
        filters: Optional[SearchFilters] = None,
    ) -> SearchResponse:
        """Search with every applicable strategy and merge the results.

        Args:
            query: Free-text business query, e.g. "plumbers".
            location: Optional location phrase.
            max_results: Per-strategy result cap (bounded by the provider cap).
            min_rating: Minimum rating; leads without a rating pass.
            filters: Additional rating/review/website constraints.

        Returns:
            SearchResponse whose leads all have a phone or a website.
            ``total_found`` counts unique records actually retrieved.

        Raises:
            SearchBackendError: If every strategy failed.
        """
        strategy_queries = derive_strategy_queries(query, location)
        exact_query = strategy_queries[0][1]

        if self.backend is None:
            logger.warning("Search backend not configured; returning no leads")
            return SearchResponse(
                leads=[],
                total_found=0,
                search_query=exact_query,
                message="Structured search backend is not configured",
            )

        per_call = max(1, min(max_results, PROVIDER_MAX_RESULTS))
        logger.info(
            "Fan-out search for '%s' with %d strategies",
            exact_query,
            len(strategy_queries),
            extra={"strategies": [text for _, text in strategy_queries]},
        )

        outcomes = await asyncio.gather(
            *(self._run_strategy(text, per_call) for _, text in strategy_queries),
            return_exceptions=True,
        )

        merged: dict[str, Any] = {}
        errors: list[str] = []
        for (strategy, text), outcome in zip(strategy_queries, outcomes):
            if isinstance(outcome, BaseException):
                if not isinstance(outcome, Exception):
                    raise outcome
                logger.warning("Strategy %s ('%s') failed: %s", strategy.value, text, outcome)
                errors.append(f"{strategy.value} strategy '{text}' failed: {outcome}")
                continue

            logger.debug("Strategy %s returned %d records", strategy.value, len(outcome))
            for record in outcome:
                key = merge_key(record)
                if key and key not in merged:
                    merged[key] = record

        if len(errors) == len(strategy_queries):
            raise SearchBackendError("; ".join(errors))

        records = list(merged.values())
        enrich = getattr(self.backend, "enrich_places", None)
        if enrich is not None:
            records = await enrich(records)

        leads = self._convert(records, query)

        active_filters = (filters or SearchFilters()).merged(min_rating)
        leads = [lead for lead in leads if active_filters.matches(lead)]
        leads = [lead for lead in leads if lead.has_contact]

        if self.scorer is not None and leads:
            leads = await self.scorer.score_batch(leads)

        logger.info(
            "Search '%s' retrieved %d unique records, returning %d leads",
            exact_query,
            len(merged),
            len(leads),
            extra={"total_found": len(merged), "returned": len(leads), "errors": len(errors)},
        )

        return SearchResponse(
            leads=leads,
            total_found=len(merged),
            search_query=exact_query,
            timestamp=datetime.now(timezone.utc),
            errors=errors,
            message="Some search strategies failed" if errors else None,
        )

    def _convert(self, records: Any, query: str) -> list[Lead]:
        leads: list[Lead] = []
        for record in records:
            lead = self.converter(record, query)
            if lead is not None:
                leads.append(lead)
        return leads


__all__ = [
    "PROVIDER_MAX_RESULTS",
    "LeadSearchEngine",
    "SearchBackendError",
    "merge_key",
]
