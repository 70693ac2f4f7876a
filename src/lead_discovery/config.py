"""Lead discovery engine configuration module.

This module provides centralized configuration management for the discovery
engine, loading settings from environment variables.

Configuration is loaded from:
1. .env file (if present)
2. Environment variables

Every search backend and enrichment provider is configured independently.
A missing key never stops the engine; it only removes that capability, so
partial coverage is reported instead of a hard failure.

Usage:
    >>> from lead_discovery.config import config
    >>> config.available_backends()["google_maps"]
    True
"""

import logging
import os

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


class ConfigError(Exception):
    """Raised when configuration validation fails."""

    pass


class Config:
    """Application configuration loaded from environment variables.

    Attributes:
        OPENAI_API_KEY: OpenAI API key for the reasoning model and AI scoring.
        OPENAI_MODEL: Chat model used by the orchestrator and scorer.
        GOOGLE_MAPS_API_KEY: Google Maps Places API key (structured search).
        YELP_API_KEY: Yelp Fusion API key.
        PERPLEXITY_API_KEY: Perplexity API key (web-grounded search/verification).
        HUNTER_API_KEY: Hunter.io key for email discovery.
        APOLLO_API_KEY: Apollo.io key for email discovery fallback.
        FIRECRAWL_API_KEY: Firecrawl key for website analysis.
        GOOGLE_CUSTOM_SEARCH_API_KEY: Google Custom Search key for web search.
        GOOGLE_CUSTOM_SEARCH_ENGINE_ID: Custom Search engine id (cx).
    """

    def __init__(self) -> None:
        """Initialize configuration by loading from environment variables."""
        self.logger = logging.getLogger(__name__)

        # Application environment
        self.APP_ENV = self._get_optional("APP_ENV", "dev")
        self.DEBUG = self._get_bool("DEBUG")
        self.LOG_LEVEL = self._get_optional("LOG_LEVEL", "INFO")

        # OpenAI Configuration
        self.OPENAI_API_KEY = self._get_optional("OPENAI_API_KEY")
        self.OPENAI_MODEL = self._get_optional("OPENAI_MODEL", "gpt-4o")
        self.OPENAI_TIMEOUT_SECONDS = float(
            self._get_optional("OPENAI_TIMEOUT_SECONDS", "60")
        )

        # Search backends
        self.GOOGLE_MAPS_API_KEY = self._get_optional("GOOGLE_MAPS_API_KEY")
        self.YELP_API_KEY = self._get_optional("YELP_API_KEY")
        self.PERPLEXITY_API_KEY = self._get_optional("PERPLEXITY_API_KEY")
        self.PERPLEXITY_MODEL = self._get_optional("PERPLEXITY_MODEL", "sonar-pro")
        self.GOOGLE_CUSTOM_SEARCH_API_KEY = self._get_optional(
            "GOOGLE_CUSTOM_SEARCH_API_KEY"
        )
        self.GOOGLE_CUSTOM_SEARCH_ENGINE_ID = self._get_optional(
            "GOOGLE_CUSTOM_SEARCH_ENGINE_ID"
        )

        # Enrichment providers
        self.HUNTER_API_KEY = self._get_optional("HUNTER_API_KEY")
        self.APOLLO_API_KEY = self._get_optional("APOLLO_API_KEY")
        self.FIRECRAWL_API_KEY = self._get_optional("FIRECRAWL_API_KEY")

        # Engine tuning
        self.SEARCH_MAX_RESULTS = int(self._get_optional("SEARCH_MAX_RESULTS", "20"))
        self.AI_SCORING_LIMIT = int(self._get_optional("AI_SCORING_LIMIT", "10"))
        self.AI_SCORING_TIMEOUT_SECONDS = float(
            self._get_optional("AI_SCORING_TIMEOUT_SECONDS", "15")
        )
        self.ORCHESTRATOR_MAX_ITERATIONS = int(
            self._get_optional("ORCHESTRATOR_MAX_ITERATIONS", "5")
        )
        self.TOOL_TIMEOUT_SECONDS = float(
            self._get_optional("TOOL_TIMEOUT_SECONDS", "45")
        )
        self.HTTP_TIMEOUT_SECONDS = int(self._get_optional("HTTP_TIMEOUT_SECONDS", "30"))

        # Rate limiting / retries
        self.RETRY_MAX_ATTEMPTS = int(self._get_optional("RETRY_MAX_ATTEMPTS", "3"))
        self.RETRY_BACKOFF_FACTOR = float(
            self._get_optional("RETRY_BACKOFF_FACTOR", "1.0")
        )

    def _get_optional(self, name: str, default: str = "") -> str:
        """Get an optional configuration value from environment variables.

        Args:
            name: The name of the environment variable.
            default: Default value if not found (default: "").

        Returns:
            The value of the environment variable or the default value.
        """
        if name in os.environ:
            return os.environ[name]
        return default

    def _get_bool(self, name: str) -> bool:
        """Get a boolean configuration value from environment variables.

        Returns:
            True if the environment variable exists and is set to 'true' or '1'.
        """
        return name in os.environ and os.environ[name].lower() in ["true", "1"]

    def validate_for_search(self) -> None:
        """Validate configuration required for structured lead search.

        Raises:
            ConfigError: If the Places API key is missing.
        """
        if not self.GOOGLE_MAPS_API_KEY:
            raise ConfigError("GOOGLE_MAPS_API_KEY is required for lead search")

    def validate_for_orchestration(self) -> None:
        """Validate configuration required for the agent loop.

        Raises:
            ConfigError: If no reasoning model credential is configured.
        """
        if not self.OPENAI_API_KEY:
            raise ConfigError("OPENAI_API_KEY is required for orchestration")

    def available_backends(self) -> dict[str, bool]:
        """Report which external capabilities are configured.

        Returns:
            Mapping of capability name to whether its credentials are present.
        """
        return {
            "openai": bool(self.OPENAI_API_KEY),
            "google_maps": bool(self.GOOGLE_MAPS_API_KEY),
            "yelp": bool(self.YELP_API_KEY),
            "perplexity": bool(self.PERPLEXITY_API_KEY),
            "web_search": bool(
                self.GOOGLE_CUSTOM_SEARCH_API_KEY and self.GOOGLE_CUSTOM_SEARCH_ENGINE_ID
            ),
            "hunter": bool(self.HUNTER_API_KEY),
            "apollo": bool(self.APOLLO_API_KEY),
            "firecrawl": bool(self.FIRECRAWL_API_KEY),
        }

    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.APP_ENV.lower() in ["prod", "production"]

    def get_log_level(self) -> int:
        """Get logging level as integer.

        Returns:
            Logging level constant (e.g., logging.INFO).
        """
        level_map = {
            "DEBUG": logging.DEBUG,
            "INFO": logging.INFO,
            "WARNING": logging.WARNING,
            "ERROR": logging.ERROR,
            "CRITICAL": logging.CRITICAL,
        }
        return level_map.get(self.LOG_LEVEL.upper(), logging.INFO)


# Create global singleton instance
config = Config()
