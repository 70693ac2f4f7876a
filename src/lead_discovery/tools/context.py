"""Clients available to tool handlers for one engine instance."""

import logging
from dataclasses import dataclass, field
from typing import Any, Optional

from ..config import Config, config
from ..integrations.email_enrichment import ApolloClient, EmailEnricher, HunterClient
from ..integrations.firecrawl import FirecrawlClient
from ..integrations.google_maps import GoogleMapsClient
from ..integrations.perplexity import PerplexityClient
from ..integrations.web_search import WebSearchClient
from ..integrations.website_analyzer import WebsiteAnalyzer
from ..integrations.yelp import YelpClient
from ..scoring import OpportunityScorer
from ..search.fanout import LeadSearchEngine

logger = logging.getLogger(__name__)


@dataclass
class ToolContext:
    """Optional backends shared by the tool handlers.

    A None client means the capability is not configured; the matching
    tool answers with an empty result and an explanatory message.
    """

    search_engine: LeadSearchEngine = field(default_factory=LeadSearchEngine)
    scorer: OpportunityScorer = field(default_factory=OpportunityScorer)
    website_analyzer: WebsiteAnalyzer = field(default_factory=WebsiteAnalyzer)
    yelp: Optional[YelpClient] = None
    perplexity: Optional[PerplexityClient] = None
    email_enricher: Optional[EmailEnricher] = None
    web_search: Optional[WebSearchClient] = None

    @classmethod
    def from_config(
        cls,
        cfg: Config = config,
        reasoning_client: Optional[Any] = None,
    ) -> "ToolContext":
        """Build clients for every backend that has credentials.

        Args:
            cfg: Configuration to read keys and tuning from.
            reasoning_client: Client used for AI opportunity scoring.
        """
        http_options = {
            "timeout_seconds": cfg.HTTP_TIMEOUT_SECONDS,
            "max_retries": cfg.RETRY_MAX_ATTEMPTS,
            "backoff_factor": cfg.RETRY_BACKOFF_FACTOR,
        }

        scorer = OpportunityScorer(
            reasoning_client,
            ai_limit=cfg.AI_SCORING_LIMIT,
            ai_timeout=cfg.AI_SCORING_TIMEOUT_SECONDS,
        )
        maps = (
            GoogleMapsClient(api_key=cfg.GOOGLE_MAPS_API_KEY)
            if cfg.GOOGLE_MAPS_API_KEY
            else None
        )

        hunter = HunterClient(cfg.HUNTER_API_KEY, **http_options) if cfg.HUNTER_API_KEY else None
        apollo = ApolloClient(cfg.APOLLO_API_KEY, **http_options) if cfg.APOLLO_API_KEY else None
        enricher = EmailEnricher(hunter, apollo) if hunter or apollo else None

        firecrawl = (
            FirecrawlClient(api_key=cfg.FIRECRAWL_API_KEY) if cfg.FIRECRAWL_API_KEY else None
        )

        web_search = None
        if cfg.GOOGLE_CUSTOM_SEARCH_API_KEY and cfg.GOOGLE_CUSTOM_SEARCH_ENGINE_ID:
            web_search = WebSearchClient(
                cfg.GOOGLE_CUSTOM_SEARCH_API_KEY,
                cfg.GOOGLE_CUSTOM_SEARCH_ENGINE_ID,
                **http_options,
            )

        context = cls(
            search_engine=LeadSearchEngine(maps, scorer=scorer),
            scorer=scorer,
            website_analyzer=WebsiteAnalyzer(
                firecrawl, timeout_seconds=cfg.HTTP_TIMEOUT_SECONDS
            ),
            yelp=YelpClient(cfg.YELP_API_KEY, **http_options) if cfg.YELP_API_KEY else None,
            perplexity=(
                PerplexityClient(cfg.PERPLEXITY_API_KEY, model=cfg.PERPLEXITY_MODEL, **http_options)
                if cfg.PERPLEXITY_API_KEY
                else None
            ),
            email_enricher=enricher,
            web_search=web_search,
        )
        logger.info(
            "Tool context initialized",
            extra={"backends": cfg.available_backends()},
        )
        return context

    def close(self) -> None:
        """Close the HTTP sessions of every configured backend."""
        clients = (
            self.search_engine.backend,
            self.website_analyzer,
            self.yelp,
            self.perplexity,
            self.email_enricher,
            self.web_search,
        )
        for client in clients:
            close = getattr(client, "close", None)
            if close is not None:
                close()
