"""Lead deduplication and ranking.

Both functions are pure: they never mutate their input, never raise for a
well-formed list of leads, and never drop a lead except for the identity
collapse performed by ``dedupe``.
"""

from typing import Iterable

from .models.lead import Lead


def normalize_name(name: str) -> str:
    """Identity key for a business: trimmed, case-insensitive name."""
    return name.strip().lower()


def dedupe(leads: Iterable[Lead]) -> list[Lead]:
    """Collapse leads sharing a normalized name, keeping the first seen.

    Order is preserved. Callers that want the best record per name should
    ``rank`` before calling this.

    Args:
        leads: Leads in priority order.

    Returns:
        New list with one lead per normalized name.
    """
    seen: set[str] = set()
    unique: list[Lead] = []
    for lead in leads:
        key = normalize_name(lead.name)
        if key in seen:
            continue
        seen.add(key)
        unique.append(lead)
    return unique


def _rank_key(lead: Lead) -> tuple[int, float, int]:
    # Missing rating or review count compares as zero
    return (
        -lead.opportunity_score,
        -(lead.rating or 0.0),
        -(lead.review_count or 0),
    )


def rank(leads: Iterable[Lead]) -> list[Lead]:
    """Sort by opportunity score, then rating, then review count, all descending.

    The sort is stable, so ties keep their input order.
    """
    return sorted(leads, key=_rank_key)
