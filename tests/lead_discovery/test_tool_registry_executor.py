"""Unit tests for the tool catalog, handler registry and executor."""

import asyncio
from typing import Any

import pytest

from lead_discovery.models.tooling import ToolCall
from lead_discovery.tools import (
    TOOL_CATALOG,
    TOOL_HANDLERS,
    BaseTool,
    ToolContext,
    ToolExecutor,
    ToolName,
    build_tool_registry,
    register_tool,
)


class _StaticTool(BaseTool):
    """Handler double returning a fixed payload."""

    name = ToolName.SEARCH_WEB

    def __init__(self, payload: Any = None, error: Exception = None, delay: float = 0.0):
        super().__init__(ToolContext())
        self.payload = payload if payload is not None else {"results": [], "count": 0}
        self.error = error
        self.delay = delay
        self.received = []

    async def execute(self, params):
        self.received.append(params)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.payload


class TestToolCatalog:
    """Tests for the read-only catalog."""

    @pytest.mark.unit
    def test_every_tool_has_a_definition(self):
        assert list(TOOL_CATALOG) == [name.value for name in ToolName]

    @pytest.mark.unit
    def test_catalog_is_read_only(self):
        with pytest.raises(TypeError):
            TOOL_CATALOG["new_tool"] = None

    @pytest.mark.unit
    def test_schema_lists_required_fields(self):
        schema = TOOL_CATALOG["search_google_maps"].input_schema

        assert schema["type"] == "object"
        assert schema["required"] == ["query"]
        assert "title" not in schema
        assert {"query", "location", "limit", "min_rating", "has_website"} <= set(schema["properties"])

    @pytest.mark.unit
    def test_openai_tool_shape(self):
        tool = TOOL_CATALOG["enrich_email"].to_openai_tool()

        assert tool["type"] == "function"
        assert tool["function"]["name"] == "enrich_email"
        assert set(tool["function"]["parameters"]["required"]) == {"business_name", "domain"}

    @pytest.mark.unit
    def test_executor_specs_exclude_disabled(self):
        executor = ToolExecutor(
            build_tool_registry(ToolContext()), disabled={"enrich_email", "analyze_website"}
        )

        names = [spec.name for spec in executor.specs()]

        assert "enrich_email" not in names
        assert "analyze_website" not in names
        assert names == [name for name in TOOL_CATALOG if name in names]
        assert len(names) == len(ToolName) - 2


class TestToolRegistry:
    """Tests for @register_tool and build_tool_registry."""

    @pytest.mark.unit
    def test_every_tool_has_a_handler(self):
        assert set(TOOL_HANDLERS) == set(ToolName)

    @pytest.mark.unit
    def test_handler_names_match_registration(self):
        assert all(handler.name is name for name, handler in TOOL_HANDLERS.items())

    @pytest.mark.unit
    def test_duplicate_registration_rejected(self):
        with pytest.raises(ValueError, match="already registered"):

            @register_tool(ToolName.SEARCH_YELP)
            class Duplicate(BaseTool):
                async def execute(self, params):
                    return {}

    @pytest.mark.unit
    def test_build_registry(self):
        context = ToolContext()

        tools = build_tool_registry(context)

        assert set(tools) == set(TOOL_CATALOG)
        assert all(tool.context is context for tool in tools.values())

    @pytest.mark.unit
    def test_build_registry_refuses_missing_handler(self, monkeypatch):
        monkeypatch.delitem(TOOL_HANDLERS, ToolName.VERIFY_BUSINESS)

        with pytest.raises(RuntimeError, match="verify_business"):
            build_tool_registry(ToolContext())


class TestToolExecutor:
    """Tests for dispatch; every failure becomes a structured result."""

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_success(self):
        tool = _StaticTool({"results": [{"title": "A"}], "count": 1})
        executor = ToolExecutor({"search_web": tool})

        result = await executor.execute(ToolCall(id="1", name="search_web", input={"query": "plumbers"}))

        assert result.ok
        assert result.to_dict() == {"results": [{"title": "A"}], "count": 1}
        assert tool.received[0].num_results == 10

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_unknown_tool(self):
        executor = ToolExecutor({})

        result = await executor.execute(ToolCall(id="1", name="launch_rocket", input={}))

        assert result.error == "Unknown tool: launch_rocket"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_disabled_tool(self):
        executor = ToolExecutor({"search_web": _StaticTool()}, disabled={"search_web"})

        result = await executor.execute(ToolCall(id="1", name="search_web", input={"query": "x"}))

        assert "disabled" in result.error
        assert executor.specs() == []

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_invalid_input(self):
        tool = _StaticTool()
        executor = ToolExecutor({"search_web": tool})

        result = await executor.execute(ToolCall(id="1", name="search_web", input={"num_results": 99}))

        assert result.error.startswith("Invalid input for search_web")
        assert "query" in result.error
        assert tool.received == []

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_handler_exception(self):
        executor = ToolExecutor({"search_web": _StaticTool(error=RuntimeError("backend exploded"))})

        result = await executor.execute(ToolCall(id="1", name="search_web", input={"query": "x"}))

        assert result.error == "backend exploded"
        assert result.to_dict() == {"error": "backend exploded"}

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_timeout(self):
        executor = ToolExecutor({"search_web": _StaticTool(delay=1.0)}, timeout_seconds=0.01)

        result = await executor.execute(ToolCall(id="1", name="search_web", input={"query": "x"}))

        assert "timed out" in result.error

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_leads_split_out_of_payload(self, make_lead):
        lead = make_lead()
        executor = ToolExecutor({"search_web": _StaticTool({"leads": [lead], "count": 1})})

        result = await executor.execute(ToolCall(id="1", name="search_web", input={"query": "x"}))

        assert result.leads == [lead]
        assert result.payload["leads"] == [lead.to_dict()]

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_error_field_in_payload(self):
        executor = ToolExecutor({"search_web": _StaticTool({"results": [], "error": "quota"})})

        result = await executor.execute(ToolCall(id="1", name="search_web", input={"query": "x"}))

        assert result.error == "quota"
        assert "error" not in result.payload

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_execute_many_keeps_call_order(self):
        slow = _StaticTool({"count": 1}, delay=0.05)
        fast = _StaticTool({"count": 2})
        executor = ToolExecutor({"search_web": slow, "search_perplexity": fast})

        results = await executor.execute_many(
            [
                ToolCall(id="1", name="search_web", input={"query": "x"}),
                ToolCall(id="2", name="search_perplexity", input={"query": "y"}),
            ]
        )

        assert [result.payload["count"] for result in results] == [1, 2]
