"""Multi-strategy search: query reformulation, fan-out and conversion."""

from .fanout import PROVIDER_MAX_RESULTS, LeadSearchEngine, SearchBackendError
from .strategies import (
    BROADENING_TERMS,
    SearchStrategy,
    derive_search_queries,
    derive_strategy_queries,
)

__all__ = [
    "BROADENING_TERMS",
    "PROVIDER_MAX_RESULTS",
    "LeadSearchEngine",
    "SearchBackendError",
    "SearchStrategy",
    "derive_search_queries",
    "derive_strategy_queries",
]
