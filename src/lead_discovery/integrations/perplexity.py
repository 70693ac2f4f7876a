"""Perplexity chat-completions client for web-grounded business research."""

import logging
import os
from typing import Any, Optional

from ..utils.json_extraction import extract_json_array, extract_json_object
from .http import JSONHTTPClient

logger = logging.getLogger(__name__)

PERPLEXITY_URL = "https://api.perplexity.ai/chat/completions"
DEFAULT_MODEL = "sonar-pro"

SEARCH_SYSTEM_PROMPT = (
    "You are a business research assistant. Provide accurate, real business "
    "information from the web. Always return valid JSON."
)
VERIFY_SYSTEM_PROMPT = (
    "You are a business verification assistant. Check if businesses are real "
    "and legitimate using web search. Always return valid JSON."
)

SEARCH_PROMPT_TEMPLATE = """Find {limit} real {industry} businesses in {location} that match this query: "{query}".

For each business, provide the exact business name, complete address, phone
number, website URL and email (if available), and rating and review count.

Respond with JSON only:
{{
  "businesses": [
    {{
      "name": "Business Name",
      "address": "123 Main St, City, ST 12345",
      "phone": "(555) 123-4567",
      "website": "https://example.com",
      "email": "contact@example.com",
      "rating": 4.5,
      "reviewCount": 234
    }}
  ]
}}"""

VERIFY_PROMPT_TEMPLATE = """Verify if "{business_name}" in {location} is a real, legitimate business.

Details to verify:
- Phone: {phone}
- Website: {website}
- Address: {address}

Respond with JSON only:
{{
  "verified": true,
  "confidence": 0,
  "exists": true,
  "phone_valid": true,
  "website_valid": true,
  "found_online": true,
  "sources": [],
  "notes": "Brief verification summary",
  "red_flags": []
}}"""


class PerplexityError(Exception):
    """Raised when a Perplexity request fails or returns unusable content."""

    pass


class PerplexityClient(JSONHTTPClient):
    """Async client for Perplexity's OpenAI-compatible chat endpoint.

    Example:
        >>> client = PerplexityClient()
        >>> rows = await client.search_businesses("HVAC with low ratings", "San Diego, CA")
    """

    error_class = PerplexityError

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = DEFAULT_MODEL,
        **kwargs: Any,
    ) -> None:
        """Initialize Perplexity client.

        Args:
            api_key: Perplexity API key. Defaults to PERPLEXITY_API_KEY env var.
            model: Online model name.
            **kwargs: Passed to JSONHTTPClient (timeout, retries, session).

        Raises:
            ValueError: If no API key is provided or found in environment.
        """
        super().__init__(**kwargs)
        self.api_key = api_key or os.environ.get("PERPLEXITY_API_KEY")
        if not self.api_key:
            raise ValueError(
                "Perplexity API key required. Set PERPLEXITY_API_KEY environment "
                "variable or pass api_key parameter."
            )
        self.model = model

    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float = 0.2,
        max_tokens: int = 4000,
    ) -> str:
        """Run one chat completion and return the assistant text.

        Raises:
            PerplexityError: If the request fails or the reply is empty.
        """
        data = await self._post(
            PERPLEXITY_URL,
            json={
                "model": self.model,
                "messages": [
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt},
                ],
                "temperature": temperature,
                "max_tokens": max_tokens,
            },
            headers={
                "Authorization": f"Bearer {self.api_key}",
                "Content-Type": "application/json",
            },
        )
        choices = data.get("choices") or []
        content = (choices[0].get("message") or {}).get("content") if choices else None
        if not content:
            raise PerplexityError("Empty response from Perplexity")
        return content

    async def search_businesses(
        self,
        query: str,
        location: str = "",
        industry: str = "",
        limit: int = 20,
    ) -> list[dict[str, Any]]:
        """Ask Perplexity for businesses matching a query.

        Returns:
            Raw business dicts (name, address, phone, website, email, rating,
            reviewCount); entries that are not objects are dropped.

        Raises:
            PerplexityError: If the request fails or no JSON list can be parsed.
        """
        prompt = SEARCH_PROMPT_TEMPLATE.format(
            limit=limit,
            industry=industry,
            location=location or "any location",
            query=query,
        )
        content = await self.complete(SEARCH_SYSTEM_PROMPT, prompt)

        rows = extract_json_array(content)
        if rows is None:
            logger.warning("Could not parse Perplexity business list")
            raise PerplexityError("Failed to parse Perplexity response")

        businesses = [row for row in rows if isinstance(row, dict)]
        logger.info("Perplexity returned %d businesses for '%s'", len(businesses), query)
        return businesses[:limit]

    async def verify_business(
        self,
        business_name: str,
        phone: Optional[str] = None,
        website: Optional[str] = None,
        address: Optional[str] = None,
        location: Optional[str] = None,
    ) -> dict[str, Any]:
        """Ask Perplexity whether a business is real.

        Returns:
            The decoded verification object (unvalidated).

        Raises:
            PerplexityError: If the request fails or no JSON object is found.
        """
        prompt = VERIFY_PROMPT_TEMPLATE.format(
            business_name=business_name,
            location=location or "unknown",
            phone=phone or "unknown",
            website=website or "none",
            address=address or "unknown",
        )
        content = await self.complete(
            VERIFY_SYSTEM_PROMPT, prompt, temperature=0.1, max_tokens=1000
        )

        report = extract_json_object(content)
        if report is None:
            raise PerplexityError("Failed to parse Perplexity verification response")
        return report
