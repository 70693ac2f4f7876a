"""Contact email discovery via Hunter.io with an Apollo.io fallback."""

import logging
import os
from dataclasses import dataclass, field
from typing import Any, Optional
from urllib.parse import urlparse

from .http import JSONHTTPClient

logger = logging.getLogger(__name__)

HUNTER_DOMAIN_SEARCH_URL = "https://api.hunter.io/v2/domain-search"
APOLLO_PEOPLE_MATCH_URL = "https://api.apollo.io/v1/people/match"

# Addresses that are never useful as sales contacts
IGNORED_EMAIL_MARKERS = ("noreply", "no-reply", "example.com", "test.com", "spam")


class EmailEnrichmentError(Exception):
    """Base exception for email enrichment errors."""

    pass


class HunterError(EmailEnrichmentError):
    """Raised when a Hunter.io request fails."""

    pass


class ApolloError(EmailEnrichmentError):
    """Raised when an Apollo.io request fails."""

    pass


@dataclass
class EmailContact:
    """A single email contact found for a domain."""

    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    position: Optional[str] = None
    confidence: Optional[int] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "email": self.email,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "position": self.position,
            "confidence": self.confidence,
        }


@dataclass
class EmailLookupResult:
    """Outcome of an email lookup across providers.

    Attributes:
        domain: Normalized domain that was searched.
        email: Best email found, if any.
        source: Provider that supplied ``email`` ("hunter" or "apollo").
        contacts: All usable contacts found.
        errors: Provider failures encountered along the way.
    """

    domain: str
    email: Optional[str] = None
    source: Optional[str] = None
    contacts: list[EmailContact] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    @property
    def found(self) -> bool:
        return self.email is not None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "domain": self.domain,
            "email": self.email,
            "source": self.source,
            "contacts": [contact.to_dict() for contact in self.contacts],
            "errors": list(self.errors),
        }


def normalize_domain(domain_or_url: str) -> str:
    """Reduce a URL or bare domain to its lowercase host without ``www.``.

    Example:
        >>> normalize_domain("https://www.AcmePlumbing.com/contact")
        'acmeplumbing.com'
    """
    value = domain_or_url.strip()
    if "://" not in value:
        value = f"http://{value}"
    host = urlparse(value).hostname or ""
    if host.startswith("www."):
        host = host[4:]
    return host.lower()


def is_usable_email(email: Optional[str]) -> bool:
    if not email or "@" not in email:
        return False
    lowered = email.lower()
    return not any(marker in lowered for marker in IGNORED_EMAIL_MARKERS)


class HunterClient(JSONHTTPClient):
    """Hunter.io domain search client."""

    error_class = HunterError

    def __init__(self, api_key: Optional[str] = None, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.api_key = api_key or os.environ.get("HUNTER_API_KEY")
        if not self.api_key:
            raise ValueError(
                "Hunter API key required. Set HUNTER_API_KEY environment "
                "variable or pass api_key parameter."
            )

    async def domain_search(self, domain: str, limit: int = 5) -> list[EmailContact]:
        """List known email contacts for a domain, highest confidence first.

        Raises:
            HunterError: If the request fails.
        """
        data = await self._get(
            HUNTER_DOMAIN_SEARCH_URL,
            params={"domain": domain, "limit": limit},
            headers={"X-API-KEY": self.api_key},
        )
        emails = (data.get("data") or {}).get("emails") or []
        contacts = [
            EmailContact(
                email=item.get("value", ""),
                first_name=item.get("first_name"),
                last_name=item.get("last_name"),
                position=item.get("position"),
                confidence=item.get("confidence"),
            )
            for item in emails
            if is_usable_email(item.get("value"))
        ]
        contacts.sort(key=lambda contact: contact.confidence or 0, reverse=True)
        return contacts


class ApolloClient(JSONHTTPClient):
    """Apollo.io people-match client."""

    error_class = ApolloError

    def __init__(self, api_key: Optional[str] = None, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.api_key = api_key or os.environ.get("APOLLO_API_KEY")
        if not self.api_key:
            raise ValueError(
                "Apollo API key required. Set APOLLO_API_KEY environment "
                "variable or pass api_key parameter."
            )

    async def match_person(
        self,
        organization_name: str,
        domain: str,
    ) -> Optional[EmailContact]:
        """Match the primary contact for an organization.

        Raises:
            ApolloError: If the request fails.
        """
        data = await self._post(
            APOLLO_PEOPLE_MATCH_URL,
            json={"domain": domain, "organization_name": organization_name},
            headers={
                "Content-Type": "application/json",
                "Cache-Control": "no-cache",
                "X-Api-Key": self.api_key,
            },
        )
        person = data.get("person") or {}
        if not is_usable_email(person.get("email")):
            return None
        return EmailContact(
            email=person["email"],
            first_name=person.get("first_name"),
            last_name=person.get("last_name"),
            position=person.get("title"),
        )


class EmailEnricher:
    """Finds a contact email for a business from the configured providers.

    Hunter is tried first; Apollo is used when Hunter is not configured,
    fails, or finds nothing. Provider failures are collected on the result
    rather than raised, unless every configured provider failed.
    """

    def __init__(
        self,
        hunter: Optional[HunterClient] = None,
        apollo: Optional[ApolloClient] = None,
    ) -> None:
        if hunter is None and apollo is None:
            raise ValueError("At least one of Hunter or Apollo must be configured")
        self.hunter = hunter
        self.apollo = apollo

    async def find_email(self, business_name: str, domain: str) -> EmailLookupResult:
        """Look up a contact email for a business domain.

        Args:
            business_name: Business name (used for Apollo matching).
            domain: Website URL or bare domain.

        Returns:
            EmailLookupResult; ``email`` is None when nothing was found.

        Raises:
            EmailEnrichmentError: If the domain is invalid or every configured
                provider failed.
        """
        normalized = normalize_domain(domain)
        if not normalized or "." not in normalized:
            raise EmailEnrichmentError(f"Invalid domain: {domain!r}")

        result = EmailLookupResult(domain=normalized)
        attempted = 0

        if self.hunter is not None:
            attempted += 1
            try:
                contacts = await self.hunter.domain_search(normalized)
                result.contacts.extend(contacts)
                if contacts:
                    result.email = contacts[0].email
                    result.source = "hunter"
                    return result
            except HunterError as e:
                logger.warning("Hunter lookup failed for %s: %s", normalized, e)
                result.errors.append(str(e))

        if self.apollo is not None:
            attempted += 1
            try:
                contact = await self.apollo.match_person(business_name, normalized)
                if contact is not None:
                    result.contacts.append(contact)
                    result.email = contact.email
                    result.source = "apollo"
            except ApolloError as e:
                logger.warning("Apollo lookup failed for %s: %s", normalized, e)
                result.errors.append(str(e))

        if result.email is None and len(result.errors) == attempted:
            raise EmailEnrichmentError(
                f"All email providers failed for {normalized}: {'; '.join(result.errors)}"
            )
        return result

    def close(self) -> None:
        for client in (self.hunter, self.apollo):
            if client is not None:
                client.close()
