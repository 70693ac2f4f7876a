"""Business website analysis.

Fetches a site (through Firecrawl when configured, otherwise a plain HTTP
GET) and derives online-presence signals from its HTML: transport security,
mobile readiness, contact paths, social profiles and the site builder or
tracking stack in use. The signals roll up into a 0-100 presence score.
"""

import asyncio
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Optional
from urllib.parse import urlparse

import requests

from .email_enrichment import is_usable_email
from .firecrawl import FirecrawlClient, FirecrawlError
from .http import DEFAULT_TIMEOUT_SECONDS, build_session

logger = logging.getLogger(__name__)

MAX_HTML_CHARS = 500_000

_VIEWPORT_RE = re.compile(r"<meta[^>]+name=[\"']viewport[\"']", re.IGNORECASE)
_FORM_RE = re.compile(r"<form\b.*?</form>", re.IGNORECASE | re.DOTALL)
_FORM_FIELD_RE = re.compile(
    r"type=[\"']email[\"']|name=[\"'][^\"']*(?:email|message|phone)[^\"']*[\"']|<textarea",
    re.IGNORECASE,
)
_TEL_RE = re.compile(r"href=[\"']tel:|\(?\b\d{3}\)?[\s.-]\d{3}[\s.-]\d{4}\b", re.IGNORECASE)
_EMAIL_RE = re.compile(r"[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}")
_BOOKING_RE = re.compile(
    r"calendly\.com|acuityscheduling|squareup\.com/appointments|book (?:now|online)|schedule (?:an? )?(?:appointment|service)",
    re.IGNORECASE,
)

SOCIAL_PATTERNS: dict[str, re.Pattern] = {
    "facebook": re.compile(r"https?://(?:www\.)?facebook\.com/[^\s\"'<>]+", re.IGNORECASE),
    "instagram": re.compile(r"https?://(?:www\.)?instagram\.com/[^\s\"'<>]+", re.IGNORECASE),
    "twitter": re.compile(r"https?://(?:www\.)?(?:twitter|x)\.com/[^\s\"'<>]+", re.IGNORECASE),
    "linkedin": re.compile(r"https?://(?:www\.)?linkedin\.com/[^\s\"'<>]+", re.IGNORECASE),
    "youtube": re.compile(r"https?://(?:www\.)?youtube\.com/[^\s\"'<>]+", re.IGNORECASE),
    "tiktok": re.compile(r"https?://(?:www\.)?tiktok\.com/[^\s\"'<>]+", re.IGNORECASE),
    "yelp": re.compile(r"https?://(?:www\.)?yelp\.com/biz/[^\s\"'<>]+", re.IGNORECASE),
}

# Technology name -> lowercase HTML signature
TECHNOLOGY_SIGNATURES: dict[str, tuple[str, ...]] = {
    "WordPress": ("wp-content", "wp-includes"),
    "Wix": ("static.wixstatic.com", "wix.com"),
    "Squarespace": ("squarespace.com", "static1.squarespace"),
    "Shopify": ("cdn.shopify.com",),
    "Webflow": ("webflow.com", "data-wf-page"),
    "GoDaddy Website Builder": ("img1.wsimg.com",),
    "Next.js": ("__next_data__", "/_next/"),
    "jQuery": ("jquery",),
    "Google Analytics": ("google-analytics.com", "googletagmanager.com"),
    "Facebook Pixel": ("connect.facebook.net",),
}


class WebsiteAnalysisError(Exception):
    """Raised when a website cannot be fetched for analysis."""

    pass


@dataclass
class WebsiteAnalysis:
    """Online-presence signals extracted from a business website.

    Attributes:
        url: The analyzed URL.
        reachable: Whether the page could be fetched.
        uses_https: Whether the final URL is served over HTTPS.
        mobile_friendly: Whether a responsive viewport meta tag is present.
        has_contact_form: Whether a form with contact-style fields exists.
        has_phone: Whether a phone number or tel: link is visible.
        has_email: Whether a usable email address is visible.
        has_online_booking: Whether an online booking path was detected.
        emails: Usable email addresses found on the page.
        social_links: Platform -> first profile URL found.
        technology_stack: Detected site builders and trackers.
        title: Page title, when known.
        presence_score: 0-100 roll-up of the signals above.
        fetched_with: "firecrawl" or "http".
    """

    url: str
    reachable: bool = True
    uses_https: bool = False
    mobile_friendly: bool = False
    has_contact_form: bool = False
    has_phone: bool = False
    has_email: bool = False
    has_online_booking: bool = False
    emails: list[str] = field(default_factory=list)
    social_links: dict[str, str] = field(default_factory=dict)
    technology_stack: list[str] = field(default_factory=list)
    title: Optional[str] = None
    presence_score: int = 0
    fetched_with: str = "http"

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "url": self.url,
            "reachable": self.reachable,
            "uses_https": self.uses_https,
            "mobile_friendly": self.mobile_friendly,
            "has_contact_form": self.has_contact_form,
            "has_phone": self.has_phone,
            "has_email": self.has_email,
            "has_online_booking": self.has_online_booking,
            "emails": list(self.emails),
            "social_links": dict(self.social_links),
            "technology_stack": list(self.technology_stack),
            "title": self.title,
            "presence_score": self.presence_score,
            "fetched_with": self.fetched_with,
        }


def normalize_url(url: str) -> str:
    """Add a scheme to bare domains.

    Raises:
        WebsiteAnalysisError: If the value has no usable host.
    """
    value = url.strip()
    if "://" not in value:
        value = f"https://{value}"
    if not urlparse(value).hostname:
        raise WebsiteAnalysisError(f"Invalid website URL: {url!r}")
    return value


def compute_presence_score(analysis: WebsiteAnalysis) -> int:
    """Score online presence from extracted signals, capped at 100."""
    if not analysis.reachable:
        return 0
    score = 20
    if analysis.uses_https:
        score += 15
    if analysis.mobile_friendly:
        score += 15
    if analysis.has_contact_form:
        score += 15
    if analysis.has_phone:
        score += 10
    if analysis.has_email:
        score += 5
    if analysis.has_online_booking:
        score += 5
    score += min(len(analysis.social_links) * 5, 15)
    return min(score, 100)


def analyze_html(
    url: str,
    html: str,
    title: Optional[str] = None,
    fetched_with: str = "http",
) -> WebsiteAnalysis:
    """Extract presence signals from page HTML.

    Args:
        url: Final URL of the page.
        html: Page HTML (truncated to MAX_HTML_CHARS).
        title: Page title if already known.
        fetched_with: Label of the fetch path.

    Returns:
        WebsiteAnalysis with ``presence_score`` filled in.
    """
    html = html[:MAX_HTML_CHARS]
    lowered = html.lower()

    if title is None:
        match = re.search(r"<title[^>]*>(.*?)</title>", html, re.IGNORECASE | re.DOTALL)
        title = " ".join(match.group(1).split()) if match else None

    emails: list[str] = []
    for email in _EMAIL_RE.findall(html):
        if is_usable_email(email) and email.lower() not in emails:
            emails.append(email.lower())

    social_links: dict[str, str] = {}
    for platform, pattern in SOCIAL_PATTERNS.items():
        match = pattern.search(html)
        if match:
            social_links[platform] = match.group(0)

    technology_stack = [
        name
        for name, signatures in TECHNOLOGY_SIGNATURES.items()
        if any(signature in lowered for signature in signatures)
    ]

    analysis = WebsiteAnalysis(
        url=url,
        uses_https=url.lower().startswith("https://"),
        mobile_friendly=bool(_VIEWPORT_RE.search(html)),
        has_contact_form=any(
            _FORM_FIELD_RE.search(form) for form in _FORM_RE.findall(html)
        ),
        has_phone=bool(_TEL_RE.search(html)),
        has_email=bool(emails),
        has_online_booking=bool(_BOOKING_RE.search(html)),
        emails=emails[:5],
        social_links=social_links,
        technology_stack=technology_stack,
        title=title,
        fetched_with=fetched_with,
    )
    analysis.presence_score = compute_presence_score(analysis)
    return analysis


class WebsiteAnalyzer:
    """Fetches and analyzes business websites.

    Uses Firecrawl when a client is supplied and falls back to a plain HTTP
    fetch if Firecrawl is absent or fails.
    """

    def __init__(
        self,
        firecrawl: Optional[FirecrawlClient] = None,
        timeout_seconds: int = DEFAULT_TIMEOUT_SECONDS,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.firecrawl = firecrawl
        self.timeout_seconds = timeout_seconds
        self._session = session

    def _fetch_html_sync(self, url: str) -> tuple[str, str]:
        if self._session is None:
            self._session = build_session(max_retries=1)
        try:
            response = self._session.get(url, timeout=self.timeout_seconds)
        except requests.RequestException as e:
            raise WebsiteAnalysisError(f"Could not fetch {url}: {e}") from e
        if response.status_code >= 400:
            raise WebsiteAnalysisError(
                f"Website {url} returned status {response.status_code}"
            )
        return response.url or url, response.text or ""

    async def _fetch_html(self, url: str) -> tuple[str, str]:
        loop = asyncio.get_event_loop()
        return await loop.run_in_executor(None, lambda: self._fetch_html_sync(url))

    async def analyze(self, url: str) -> WebsiteAnalysis:
        """Fetch and analyze one website.

        Raises:
            WebsiteAnalysisError: If the URL is invalid or the site cannot be
                fetched by any available path.
        """
        url = normalize_url(url)

        if self.firecrawl is not None:
            try:
                page = await self.firecrawl.scrape_url(url)
                final_url = page.metadata.get("sourceURL") or page.metadata.get("url") or url
                html = page.raw_html or page.markdown or ""
                return analyze_html(
                    final_url,
                    html,
                    title=page.metadata.get("title"),
                    fetched_with="firecrawl",
                )
            except FirecrawlError as e:
                logger.warning("Firecrawl failed for %s, falling back to HTTP: %s", url, e)

        final_url, html = await self._fetch_html(url)
        analysis = analyze_html(final_url, html)
        logger.info(
            "Analyzed %s: presence score %d",
            final_url,
            analysis.presence_score,
            extra={"url": final_url, "technology_stack": analysis.technology_stack},
        )
        return analysis

    def close(self) -> None:
        """Close the fallback HTTP session, if one was created."""
        if self._session is not None:
            self._session.close()
            self._session = None
