"""Tool catalog and handler registry.

The set of tools is closed: ``ToolName`` enumerates every capability, each
has a pydantic input model and description here, and exactly one handler
class registered with ``@register_tool``. ``build_tool_registry`` refuses
to build an incomplete registry, so a new tool cannot be half-added.

The catalog (``TOOL_CATALOG``) is built at import time and is read-only.
"""

from abc import ABC, abstractmethod
from enum import Enum
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Callable, Mapping, Optional

from pydantic import BaseModel, Field

from ..models.tooling import ToolSpec

if TYPE_CHECKING:
    from .context import ToolContext


class ToolName(str, Enum):
    """Every tool the reasoning model can call."""

    SEARCH_GOOGLE_MAPS = "search_google_maps"
    SEARCH_YELP = "search_yelp"
    SEARCH_WEB = "search_web"
    SEARCH_PERPLEXITY = "search_perplexity"
    ENRICH_EMAIL = "enrich_email"
    ANALYZE_WEBSITE = "analyze_website"
    SCORE_OPPORTUNITY = "score_opportunity"
    RESEARCH_COMPETITORS = "research_competitors"
    VERIFY_BUSINESS = "verify_business"


# Tools that can be switched off per orchestration run
OPTIONAL_TOOLS = {
    "enable_email_enrichment": ToolName.ENRICH_EMAIL,
    "enable_website_analysis": ToolName.ANALYZE_WEBSITE,
}


class SearchGoogleMapsInput(BaseModel):
    query: str = Field(..., min_length=1, description='Search query, e.g. "HVAC companies"')
    location: Optional[str] = Field(default=None, description='Location, e.g. "San Diego, CA"')
    limit: int = Field(default=20, ge=1, le=60, description="Maximum results per search strategy")
    min_rating: Optional[float] = Field(default=None, ge=0, le=5, description="Minimum star rating")
    max_rating: Optional[float] = Field(default=None, ge=0, le=5, description="Maximum star rating")
    has_website: Optional[bool] = Field(
        default=None, description="True for only businesses with a website, false for only without"
    )
    min_reviews: Optional[int] = Field(default=None, ge=0, description="Minimum review count")
    max_reviews: Optional[int] = Field(default=None, ge=0, description="Maximum review count")


class SearchYelpInput(BaseModel):
    term: str = Field(..., min_length=1, description='Search term, e.g. "HVAC", "dental"')
    location: str = Field(..., min_length=1, description='Location, e.g. "San Diego, CA"')
    limit: int = Field(default=20, ge=1, le=50, description="Number of results")


class SearchWebInput(BaseModel):
    query: str = Field(..., min_length=1, description="Web search query")
    num_results: int = Field(default=10, ge=1, le=10, description="Number of results to return")


class SearchPerplexityInput(BaseModel):
    query: str = Field(..., min_length=1, description="Search query for businesses")
    location: Optional[str] = Field(default=None, description="Geographic location to search in")
    industry: Optional[str] = Field(default=None, description="Industry or business type")
    limit: int = Field(default=20, ge=1, le=50, description="Maximum number of businesses")


class EnrichEmailInput(BaseModel):
    business_name: str = Field(..., min_length=1, description="Name of the business")
    domain: str = Field(..., min_length=3, description='Business website or domain, e.g. "example.com"')


class AnalyzeWebsiteInput(BaseModel):
    url: str = Field(..., min_length=3, description="Website URL to analyze")


class ScoreOpportunityInput(BaseModel):
    business_data: dict[str, Any] = Field(
        ...,
        description="Business fields: name, address, industry, rating, review_count, website, phone",
    )


class ResearchCompetitorsInput(BaseModel):
    business_name: str = Field(..., min_length=1, description="Business to research")
    industry: str = Field(..., min_length=1, description="Industry category")
    location: str = Field(..., min_length=1, description="Geographic location")


class VerifyBusinessInput(BaseModel):
    business_name: str = Field(..., min_length=1, description="Name of the business to verify")
    phone: Optional[str] = Field(default=None, description="Business phone number")
    website: Optional[str] = Field(default=None, description="Business website URL")
    address: Optional[str] = Field(default=None, description="Business address")
    location: Optional[str] = Field(default=None, description="City and state")


_TOOL_DEFINITIONS: dict[ToolName, tuple[str, type[BaseModel]]] = {
    ToolName.SEARCH_GOOGLE_MAPS: (
        "Search for local businesses with Google Maps. Runs several query "
        "reformulations and merges them. Returns name, address, phone, website, "
        "rating and reviews. Best for businesses with a physical location.",
        SearchGoogleMapsInput,
    ),
    ToolName.SEARCH_YELP: (
        "Search for businesses on Yelp. Returns ratings, reviews, categories and "
        "phone numbers. Good for restaurants, retail and service businesses.",
        SearchYelpInput,
    ),
    ToolName.SEARCH_WEB: (
        "General web search. Returns page titles, URLs and snippets. Use to find "
        "business websites and online presence when maps/Yelp coverage is thin.",
        SearchWebInput,
    ),
    ToolName.SEARCH_PERPLEXITY: (
        "Search for businesses using Perplexity's live web research. Returns "
        "business records including contact info when available.",
        SearchPerplexityInput,
    ),
    ToolName.ENRICH_EMAIL: (
        "Find contact email addresses for a business from its website domain "
        "using Hunter.io or Apollo.io.",
        EnrichEmailInput,
    ),
    ToolName.ANALYZE_WEBSITE: (
        "Analyze a business website: HTTPS, mobile readiness, contact form, "
        "phone/email presence, social links, technology stack and an overall "
        "presence score.",
        AnalyzeWebsiteInput,
    ),
    ToolName.SCORE_OPPORTUNITY: (
        "Calculate a 0-100 sales opportunity score and likely pain points for a "
        "business from its rating, reviews and web presence.",
        ScoreOpportunityInput,
    ),
    ToolName.RESEARCH_COMPETITORS: (
        "Research competitors of a business in its industry and location. "
        "Returns ranked competitors and market statistics.",
        ResearchCompetitorsInput,
    ),
    ToolName.VERIFY_BUSINESS: (
        "Verify that a business is real by checking phone, website, address and "
        "online presence. Returns verification status and confidence.",
        VerifyBusinessInput,
    ),
}


def _input_schema(model: type[BaseModel]) -> dict[str, Any]:
    schema = model.model_json_schema()
    schema.pop("title", None)
    return schema


TOOL_INPUT_MODELS: Mapping[str, type[BaseModel]] = MappingProxyType(
    {name.value: model for name, (_, model) in _TOOL_DEFINITIONS.items()}
)

TOOL_CATALOG: Mapping[str, ToolSpec] = MappingProxyType(
    {
        name.value: ToolSpec(
            name=name.value,
            description=description,
            input_schema=_input_schema(model),
        )
        for name, (description, model) in _TOOL_DEFINITIONS.items()
    }
)


class BaseTool(ABC):
    """Common interface of every tool handler.

    Subclasses set ``name`` and implement ``execute``. Handlers return a
    JSON-compatible dict; Lead objects may be returned under ``"leads"``
    and are split out by the executor.
    """

    name: ToolName

    def __init__(self, context: "ToolContext") -> None:
        self.context = context

    @property
    def input_model(self) -> type[BaseModel]:
        return TOOL_INPUT_MODELS[self.name.value]

    @property
    def spec(self) -> ToolSpec:
        return TOOL_CATALOG[self.name.value]

    @abstractmethod
    async def execute(self, params: Any) -> dict[str, Any]:
        """Run the tool with validated input."""


# Registry mapping tool names to handler classes, populated by @register_tool
TOOL_HANDLERS: dict[ToolName, type[BaseTool]] = {}


def register_tool(name: ToolName) -> Callable[[type[BaseTool]], type[BaseTool]]:
    """Decorator to register a handler class for a tool.

    Raises:
        ValueError: If a handler is already registered for the name.

    Example:
        @register_tool(ToolName.SEARCH_YELP)
        class SearchYelpTool(BaseTool):
            ...
    """

    def decorator(cls: type[BaseTool]) -> type[BaseTool]:
        if name in TOOL_HANDLERS:
            raise ValueError(f"Tool {name.value} is already registered")
        cls.name = name
        TOOL_HANDLERS[name] = cls
        return cls

    return decorator


def build_tool_registry(context: "ToolContext") -> dict[str, BaseTool]:
    """Instantiate every registered handler against a context.

    Raises:
        RuntimeError: If any ToolName has no registered handler.
    """
    missing = [name.value for name in ToolName if name not in TOOL_HANDLERS]
    if missing:
        raise RuntimeError(f"No handler registered for tools: {', '.join(missing)}")
    return {name.value: TOOL_HANDLERS[name](context) for name in ToolName}
