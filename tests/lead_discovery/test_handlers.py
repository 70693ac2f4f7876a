"""Unit tests for the tool handlers, exercised through the executor."""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest
import requests

from lead_discovery.integrations.email_enrichment import (
    EmailContact,
    EmailEnricher,
    EmailEnrichmentError,
    EmailLookupResult,
    HunterClient,
)
from lead_discovery.integrations.perplexity import PerplexityError
from lead_discovery.integrations.web_search import WebPage, WebSearchClient
from lead_discovery.integrations.website_analyzer import WebsiteAnalysis
from lead_discovery.integrations.yelp import YelpBusiness
from lead_discovery.models.tooling import ToolCall
from lead_discovery.scoring import OpportunityScorer
from lead_discovery.search.fanout import LeadSearchEngine
from lead_discovery.tools import ToolContext, ToolExecutor, build_tool_registry
from lead_discovery.tools.handlers import basic_verification, market_insights, normalize_business_data


async def run_tool(context: ToolContext, name: str, arguments: dict):
    executor = ToolExecutor(build_tool_registry(context))
    return await executor.execute(ToolCall(id="call_1", name=name, input=arguments))


class TestSearchGoogleMapsTool:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_not_configured(self):
        result = await run_tool(ToolContext(), "search_google_maps", {"query": "plumbers"})

        assert result.ok
        assert result.payload["count"] == 0
        assert result.payload["message"] == "Google Maps API key not configured"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_returns_ranked_leads(self, places_backend, make_place):
        backend = places_backend(
            default=[
                make_place("a", "Has Website", website="https://a.com"),
                make_place("b", "No Website"),
            ]
        )
        context = ToolContext(search_engine=LeadSearchEngine(backend))

        result = await run_tool(
            context, "search_google_maps", {"query": "plumbers", "location": "Santa Fe, NM"}
        )

        assert result.ok
        assert [lead.name for lead in result.leads] == ["Has Website", "No Website"]
        assert result.payload["count"] == 2
        assert result.payload["search_query"] == "plumbers in Santa Fe, NM"
        assert result.payload["leads"][0]["name"] == "Has Website"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_filters_forwarded(self, places_backend, make_place):
        backend = places_backend(
            default=[
                make_place("a", "Has Website", website="https://a.com"),
                make_place("b", "No Website"),
            ]
        )
        context = ToolContext(search_engine=LeadSearchEngine(backend))

        result = await run_tool(
            context, "search_google_maps", {"query": "plumbers", "has_website": False}
        )

        assert [lead.name for lead in result.leads] == ["No Website"]


class TestSearchYelpTool:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_not_configured(self):
        result = await run_tool(ToolContext(), "search_yelp", {"term": "tacos", "location": "LA"})

        assert result.payload["leads"] == []
        assert "Yelp" in result.payload["message"]

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_converts_and_drops_uncontactable(self):
        yelp = AsyncMock()
        yelp.search.return_value = [
            YelpBusiness(id="1", name="Taco Town", address="1 Sunset Blvd", phone="(323) 555-0110"),
            YelpBusiness(id="2", name="Silent Tacos", address="2 Sunset Blvd"),
        ]

        result = await run_tool(
            ToolContext(yelp=yelp), "search_yelp", {"term": "tacos", "location": "Los Angeles, CA"}
        )

        yelp.search.assert_awaited_once_with("tacos", "Los Angeles, CA", 20)
        assert [lead.name for lead in result.leads] == ["Taco Town"]

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_backend_error_is_structured(self):
        yelp = AsyncMock()
        yelp.search.side_effect = RuntimeError("Yelp API error (status 500)")

        result = await run_tool(ToolContext(yelp=yelp), "search_yelp", {"term": "tacos", "location": "LA"})

        assert result.error == "Yelp API error (status 500)"


class TestSearchWebTool:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_results(self):
        web_search = AsyncMock()
        web_search.search.return_value = [
            WebPage(title="ABC Plumbing", url="https://abcplumbing.com", domain="abcplumbing.com")
        ]

        result = await run_tool(
            ToolContext(web_search=web_search), "search_web", {"query": "ABC Plumbing Santa Fe"}
        )

        assert result.payload["count"] == 1
        assert result.payload["results"][0]["url"] == "https://abcplumbing.com"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_not_configured(self):
        result = await run_tool(ToolContext(), "search_web", {"query": "x"})

        assert result.payload["results"] == []
        assert "GOOGLE_CUSTOM_SEARCH_API_KEY" in result.payload["message"]


class TestSearchPerplexityTool:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_converts_rows(self):
        perplexity = AsyncMock()
        perplexity.search_businesses.return_value = [
            {"name": "Desert Dental", "address": "400 Cerrillos Rd, Santa Fe, NM 87505", "phone": "555-0123"},
            {"name": "", "address": "nowhere"},
        ]

        result = await run_tool(
            ToolContext(perplexity=perplexity),
            "search_perplexity",
            {"query": "dentists", "location": "Santa Fe, NM", "industry": "dentist"},
        )

        assert [lead.name for lead in result.leads] == ["Desert Dental"]
        assert result.leads[0].industry == "dentist"
        assert result.payload["message"] == "Found 1 businesses using Perplexity"


class TestEnrichEmailTool:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_not_configured(self):
        result = await run_tool(
            ToolContext(), "enrich_email", {"business_name": "ABC", "domain": "abc.com"}
        )

        assert result.ok
        assert result.payload["email"] is None
        assert "HUNTER_API_KEY" in result.payload["message"]

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_found(self):
        enricher = AsyncMock()
        enricher.find_email.return_value = EmailLookupResult(
            domain="abc.com",
            email="owner@abc.com",
            source="hunter",
            contacts=[EmailContact(email="owner@abc.com", confidence=92)],
        )

        result = await run_tool(
            ToolContext(email_enricher=enricher),
            "enrich_email",
            {"business_name": "ABC Plumbing", "domain": "https://www.abc.com"},
        )

        assert result.payload["email"] == "owner@abc.com"
        assert result.payload["business_name"] == "ABC Plumbing"
        assert result.payload["source"] == "hunter"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_provider_failure(self):
        enricher = AsyncMock()
        enricher.find_email.side_effect = EmailEnrichmentError("All email providers failed for abc.com")

        result = await run_tool(
            ToolContext(email_enricher=enricher),
            "enrich_email",
            {"business_name": "ABC Plumbing", "domain": "abc.com"},
        )

        assert "All email providers failed" in result.error


class TestAnalyzeWebsiteTool:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_returns_analysis(self):
        analyzer = AsyncMock()
        analyzer.analyze.return_value = WebsiteAnalysis(
            url="https://abc.com", uses_https=True, presence_score=35
        )

        result = await run_tool(
            ToolContext(website_analyzer=analyzer), "analyze_website", {"url": "abc.com"}
        )

        analyzer.analyze.assert_awaited_once_with("abc.com")
        assert result.payload["presence_score"] == 35
        assert result.payload["uses_https"] is True


class TestScoreOpportunityTool:
    """Tests for scoring arbitrary business data."""

    @pytest.mark.unit
    def test_normalize_business_data(self):
        data = normalize_business_data({"business_name": "ABC", "reviews": "20", "rating": "3.5"})

        assert data == {"name": "ABC", "review_count": 20, "rating": 3.5}

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_full_business_scored(self):
        result = await run_tool(
            ToolContext(),
            "score_opportunity",
            {
                "business_data": {
                    "name": "ABC Plumbing",
                    "address": "1 Road, Santa Fe, NM",
                    "rating": "3.5",
                    "reviewCount": 20,
                    "website": "https://abc.com",
                }
            },
        )

        assert result.payload["score"] == 85
        assert result.payload["method"] == "heuristic"
        assert result.payload["name"] == "ABC Plumbing"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_ai_scored(self):
        client = AsyncMock()
        client.complete.return_value = '{"opportunityScore": 77, "painPoints": ["Outdated site"]}'
        result = await run_tool(
            ToolContext(scorer=OpportunityScorer(client)),
            "score_opportunity",
            {"business_data": {"name": "ABC", "address": "1 Road"}},
        )

        assert result.payload["score"] == 77
        assert result.payload["pain_points"] == ["Outdated site"]
        assert result.payload["method"] == "ai"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_incomplete_business_uses_heuristic(self):
        result = await run_tool(
            ToolContext(),
            "score_opportunity",
            {"business_data": {"rating": 4.8, "reviews": 300, "website": "https://x.com"}},
        )

        assert result.ok
        assert result.payload["score"] == 50
        assert result.payload["method"] == "heuristic"


class TestResearchCompetitorsTool:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_excludes_business_and_summarizes(self, places_backend, make_place):
        backend = places_backend(
            default=[
                make_place("self", "ABC Plumbing", rating=4.0, review_count=40),
                make_place("c1", "Rival Plumbing", rating=4.8, review_count=300, website="https://rival.com"),
                make_place("c2", "Budget Pipes", rating=3.6, review_count=20),
            ]
        )
        context = ToolContext(search_engine=LeadSearchEngine(backend))

        result = await run_tool(
            context,
            "research_competitors",
            {"business_name": "abc plumbing", "industry": "plumbers", "location": "Santa Fe, NM"},
        )

        names = [competitor["name"] for competitor in result.payload["competitors"]]
        assert sorted(names) == ["Budget Pipes", "Rival Plumbing"]
        insights = result.payload["market_insights"]
        assert insights["competitor_count"] == 2
        assert insights["average_rating"] == 4.2
        assert insights["total_reviews"] == 320
        assert insights["website_coverage"] == 0.5
        assert result.leads == []

    @pytest.mark.unit
    def test_market_insights_empty(self):
        insights = market_insights([])

        assert insights["competitor_count"] == 0
        assert insights["average_rating"] is None
        assert insights["website_coverage"] is None


class TestVerifyBusinessTool:
    """Tests for web verification with the completeness fallback."""

    @pytest.mark.unit
    def test_basic_verification_scoring(self):
        assert basic_verification()["confidence"] == 50
        assert basic_verification()["verified"] is False
        partial = basic_verification(phone="555-0100", website="https://abc.com")
        assert partial["confidence"] == 80
        assert partial["verified"] is True
        full = basic_verification("555-0100", "https://abc.com", "1 Road", "Santa Fe, NM")
        assert full["confidence"] == 85
        assert full["sources"] == ["basic_validation"]

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_without_perplexity(self):
        result = await run_tool(
            ToolContext(), "verify_business", {"business_name": "ABC", "phone": "555-0100"}
        )

        assert result.payload["method"] == "basic"
        assert result.payload["confidence"] == 65
        assert result.payload["verified"] is False

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_perplexity_report(self):
        perplexity = AsyncMock()
        perplexity.verify_business.return_value = {
            "verified": True,
            "confidence": 92,
            "exists": True,
            "sources": ["https://abc.com", None],
            "notes": "Listed on Google and BBB",
        }

        result = await run_tool(
            ToolContext(perplexity=perplexity), "verify_business", {"business_name": "ABC Plumbing"}
        )

        assert result.payload["method"] == "perplexity"
        assert result.payload["confidence"] == 92
        assert result.payload["sources"] == ["https://abc.com"]
        assert "verification_date" in result.payload

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_perplexity_failure_falls_back(self):
        perplexity = AsyncMock()
        perplexity.verify_business.side_effect = PerplexityError("timeout")

        result = await run_tool(
            ToolContext(perplexity=perplexity),
            "verify_business",
            {"business_name": "ABC", "website": "https://abc.com"},
        )

        assert result.ok
        assert result.payload["method"] == "basic"
        assert result.payload["confidence"] == 65

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_invalid_report_falls_back(self):
        perplexity = AsyncMock()
        perplexity.verify_business.return_value = {"verified": True, "confidence": 400}

        result = await run_tool(
            ToolContext(perplexity=perplexity), "verify_business", {"business_name": "ABC"}
        )

        assert result.payload["method"] == "basic"


class TestTransportFailuresHideCredentials:
    @staticmethod
    def refusing_session(url: str) -> MagicMock:
        session = MagicMock()
        session.request.side_effect = requests.ConnectionError(
            f"HTTPConnectionPool(host='127.0.0.1', port=9): Max retries exceeded with url: {url}"
        )
        return session

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_search_web_error_omits_key(self):
        session = self.refusing_session("/customsearch/v1?key=SECRET-GCS-KEY&cx=cx-1&q=abc")
        web_search = WebSearchClient("SECRET-GCS-KEY", "cx-1", session=session)

        result = await run_tool(ToolContext(web_search=web_search), "search_web", {"query": "abc"})

        assert not result.ok
        assert "ConnectionError" in result.error
        assert "SECRET-GCS-KEY" not in result.error

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_enrich_email_error_omits_key(self):
        session = self.refusing_session("/v2/domain-search?domain=abc.com&api_key=SECRET-HUNTER-KEY&limit=5")
        enricher = EmailEnricher(hunter=HunterClient("SECRET-HUNTER-KEY", session=session))

        result = await run_tool(
            ToolContext(email_enricher=enricher),
            "enrich_email",
            {"business_name": "ABC Plumbing", "domain": "abc.com"},
        )

        assert "All email providers failed" in result.error
        assert "SECRET-HUNTER-KEY" not in result.error


class TestSlowScoringModel:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_search_keeps_leads_when_scoring_stalls(self, places_backend, make_place):
        async def stalled(prompt, max_tokens=512):
            await asyncio.sleep(5)

        client = AsyncMock()
        client.complete.side_effect = stalled
        backend = places_backend(default=[make_place("a", "ABC Plumbing")])
        scorer = OpportunityScorer(client, ai_timeout=0.05)
        context = ToolContext(search_engine=LeadSearchEngine(backend, scorer=scorer), scorer=scorer)
        executor = ToolExecutor(build_tool_registry(context), timeout_seconds=1.0)

        result = await executor.execute(
            ToolCall(id="call_1", name="search_google_maps", input={"query": "plumbers"})
        )

        assert result.ok
        assert [lead.name for lead in result.leads] == ["ABC Plumbing"]
        assert result.leads[0].scoring_note.startswith("Heuristic score")
