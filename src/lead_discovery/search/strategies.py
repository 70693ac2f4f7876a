"""Query reformulation strategies for the multi-strategy search.

A single user query is rewritten into up to three independent backend
queries: the exact phrase, a broadened variant where a recognised narrow
term is swapped for its broader category, and the category alone. The
narrow-to-broad mapping lives in ``BROADENING_TERMS`` and is meant to be
extended as new verticals show up.
"""

import re
from enum import Enum
from typing import Optional

# Narrow term -> broad category. Keys are lowercase singular forms; plural
# "s"/"es" endings are matched automatically.
BROADENING_TERMS: dict[str, str] = {
    # Food & drink
    "smash burger": "burger restaurant",
    "burger": "restaurant",
    "hamburger": "restaurant",
    "pizza": "restaurant",
    "taco": "mexican restaurant",
    "burrito": "mexican restaurant",
    "sushi": "japanese restaurant",
    "ramen": "japanese restaurant",
    "pho": "vietnamese restaurant",
    "bbq": "restaurant",
    "barbecue": "restaurant",
    "sandwich": "restaurant",
    "bagel": "bakery",
    "donut": "bakery",
    "cupcake": "bakery",
    "espresso": "coffee shop",
    "latte": "coffee shop",
    "boba": "cafe",
    "craft beer": "bar",
    # Home services
    "plumber": "home services",
    "electrician": "home services",
    "roofer": "home services",
    "hvac": "home services",
    "handyman": "home services",
    "landscaper": "home services",
    "water heater repair": "plumbing service",
    "drain cleaning": "plumbing service",
    # Health & personal care
    "dentist": "health clinic",
    "orthodontist": "dental clinic",
    "chiropractor": "health clinic",
    "physical therapist": "health clinic",
    "med spa": "beauty salon",
    "nail salon": "beauty salon",
    "hair salon": "beauty salon",
    "barber": "beauty salon",
    "yoga studio": "fitness studio",
    "pilates": "fitness studio",
    "crossfit": "gym",
    # Professional & auto
    "attorney": "law firm",
    "lawyer": "law firm",
    "accountant": "financial services",
    "cpa": "financial services",
    "mechanic": "auto repair",
    "oil change": "auto repair",
    "car wash": "auto services",
}


class SearchStrategy(str, Enum):
    """The reformulation that produced a backend query."""

    EXACT = "exact"
    BROADENED = "broadened"
    CATEGORY = "category"


def _term_pattern(term: str) -> re.Pattern:
    return re.compile(rf"\b{re.escape(term)}(?:e?s)?\b", re.IGNORECASE)


# Longest terms first so "smash burger" wins over "burger"
_BROADENING_PATTERNS: list[tuple[str, re.Pattern, str]] = [
    (term, _term_pattern(term), BROADENING_TERMS[term])
    for term in sorted(BROADENING_TERMS, key=len, reverse=True)
]


def find_broad_category(query: str) -> Optional[tuple[str, str]]:
    """Locate the first recognised narrow term in a query.

    Args:
        query: Free-text search query.

    Returns:
        Tuple of (matched text as it appears in the query, broad category),
        or None when no term matches.
    """
    for _, pattern, category in _BROADENING_PATTERNS:
        match = pattern.search(query)
        if match:
            return match.group(0), category
    return None


def _collapse_spaces(text: str) -> str:
    return " ".join(text.split())


def derive_strategy_queries(
    query: str,
    location: Optional[str] = None,
) -> list[tuple[SearchStrategy, str]]:
    """Build the tagged list of backend queries for one search.

    Args:
        query: Free-text search query.
        location: Optional location phrase (e.g. "Santa Fe, New Mexico").

    Returns:
        Up to three (strategy, query) pairs with distinct query strings,
        exact first.
    """
    query = _collapse_spaces(query)
    location = _collapse_spaces(location) if location else None

    candidates: list[tuple[SearchStrategy, str]] = [
        (SearchStrategy.EXACT, f"{query} in {location}" if location else query)
    ]

    found = find_broad_category(query)
    if found is not None:
        matched, category = found
        broadened = _collapse_spaces(query.replace(matched, category, 1))
        candidates.append(
            (
                SearchStrategy.BROADENED,
                f"{broadened} near {location}" if location else broadened,
            )
        )
        candidates.append(
            (
                SearchStrategy.CATEGORY,
                f"{category} in {location}" if location else category,
            )
        )

    seen: set[str] = set()
    unique: list[tuple[SearchStrategy, str]] = []
    for strategy, text in candidates:
        key = text.lower()
        if key in seen:
            continue
        seen.add(key)
        unique.append((strategy, text))
    return unique


def derive_search_queries(query: str, location: Optional[str] = None) -> list[str]:
    """Return up to three distinct query strings for the fan-out.

    Example:
        >>> derive_search_queries("plumbers", "Santa Fe, New Mexico")
        ['plumbers in Santa Fe, New Mexico', 'home services near Santa Fe, New Mexico', 'home services in Santa Fe, New Mexico']
    """
    return [text for _, text in derive_strategy_queries(query, location)]
