"""External service clients for the lead discovery engine.

Imports are lazy so that importing one client does not pull in every SDK.
"""

from importlib import import_module
from typing import TYPE_CHECKING

_LAZY_ATTRIBUTES = {
    "GoogleMapsClient": ".google_maps",
    "PlaceResult": ".google_maps",
    "YelpClient": ".yelp",
    "YelpBusiness": ".yelp",
    "PerplexityClient": ".perplexity",
    "EmailEnricher": ".email_enrichment",
    "HunterClient": ".email_enrichment",
    "ApolloClient": ".email_enrichment",
    "FirecrawlClient": ".firecrawl",
    "WebsiteAnalyzer": ".website_analyzer",
    "WebSearchClient": ".web_search",
    "OpenAIReasoningClient": ".openai_client",
}

if TYPE_CHECKING:
    from .email_enrichment import ApolloClient, EmailEnricher, HunterClient
    from .firecrawl import FirecrawlClient
    from .google_maps import GoogleMapsClient, PlaceResult
    from .openai_client import OpenAIReasoningClient
    from .perplexity import PerplexityClient
    from .web_search import WebSearchClient
    from .website_analyzer import WebsiteAnalyzer
    from .yelp import YelpBusiness, YelpClient


def __getattr__(name: str):
    """Module-level __getattr__ for lazy imports."""
    module_name = _LAZY_ATTRIBUTES.get(name)
    if module_name is None:
        raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
    return getattr(import_module(module_name, __name__), name)


__all__ = list(_LAZY_ATTRIBUTES)
