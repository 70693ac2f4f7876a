"""Data model for the lead discovery engine."""

from .lead import DEFAULT_OPPORTUNITY_SCORE, Lead, LeadSource
from .orchestration import ExecutionStep, OrchestratorResult
from .requests import OrchestrationRequest, SearchRequest
from .search import SearchFilters, SearchResponse
from .tooling import ToolCall, ToolResult, ToolSpec

__all__ = [
    "DEFAULT_OPPORTUNITY_SCORE",
    "Lead",
    "LeadSource",
    "ExecutionStep",
    "OrchestratorResult",
    "OrchestrationRequest",
    "SearchRequest",
    "SearchFilters",
    "SearchResponse",
    "ToolCall",
    "ToolResult",
    "ToolSpec",
]
