"""Shared fixtures for the lead discovery test suite.

Backends and the reasoning model are replaced by small in-memory fakes so
the tests never touch the network.
"""

from typing import Any, Optional
from unittest.mock import MagicMock

import pytest

from lead_discovery.integrations.google_maps import PlaceResult
from lead_discovery.integrations.openai_client import ModelTurn
from lead_discovery.models.lead import Lead
from lead_discovery.models.tooling import ToolCall


class FakePlacesBackend:
    """Structured search backend returning canned results per query.

    A response mapped to an exception instance is raised instead.
    """

    def __init__(self, responses: Optional[dict[str, Any]] = None, default: Any = None):
        self.responses = responses or {}
        self.default = default if default is not None else []
        self.calls: list[tuple[str, int]] = []

    async def text_search(self, query: str, max_results: int = 20) -> list[PlaceResult]:
        self.calls.append((query, max_results))
        outcome = self.responses.get(query, self.default)
        if isinstance(outcome, Exception):
            raise outcome
        return list(outcome)[:max_results]


class ScriptedReasoningClient:
    """Reasoning client that replays a fixed list of turns.

    Exceptions in the script are raised from ``chat``. Once the script is
    used up, the client answers with a plain completion.
    """

    def __init__(self, turns: list[Any]):
        self.turns = list(turns)
        self.calls: list[dict[str, Any]] = []

    async def chat(self, messages, tools=None, max_tokens=4096) -> ModelTurn:
        self.calls.append({"messages": list(messages), "tools": tools})
        if not self.turns:
            return ModelTurn(text="Done.", stop_reason="stop")
        turn = self.turns.pop(0)
        if isinstance(turn, Exception):
            raise turn
        return turn

    async def close(self) -> None:
        pass


class AlwaysCallingClient:
    """Reasoning client that asks for one more tool call on every turn."""

    def __init__(self, tool_name: str = "search_google_maps", arguments: Optional[dict] = None):
        self.tool_name = tool_name
        self.arguments = arguments or {"query": "plumbers", "location": "Santa Fe, NM"}
        self.calls = 0

    async def chat(self, messages, tools=None, max_tokens=4096) -> ModelTurn:
        self.calls += 1
        return ModelTurn(
            text=f"Searching again ({self.calls})",
            tool_calls=[ToolCall(id=f"call_{self.calls}", name=self.tool_name, input=dict(self.arguments))],
            stop_reason="tool_calls",
        )


@pytest.fixture
def make_lead():
    """Factory for valid leads with sensible defaults."""

    def _make(name: str = "ABC Plumbing", **overrides: Any) -> Lead:
        values: dict[str, Any] = {
            "address": "123 Main St, Santa Fe, NM 87501",
            "city": "Santa Fe",
            "state": "NM",
            "phone": "(505) 555-0100",
        }
        values.update(overrides)
        return Lead(name=name, **values)

    return _make


@pytest.fixture
def make_place():
    """Factory for Places results with contact details."""

    def _make(place_id: str, name: str, **overrides: Any) -> PlaceResult:
        values: dict[str, Any] = {
            "formatted_address": "123 Main St, Santa Fe, NM 87501, USA",
            "national_phone": "(505) 555-0100",
            "rating": 4.5,
            "review_count": 100,
            "types": ["plumber", "point_of_interest", "establishment"],
        }
        values.update(overrides)
        return PlaceResult(place_id=place_id, name=name, **values)

    return _make


@pytest.fixture
def tool_turn():
    """Build a model turn requesting the given (name, input) tool calls."""

    def _make(*calls: tuple[str, dict[str, Any]], text: str = "") -> ModelTurn:
        return ModelTurn(
            text=text,
            tool_calls=[
                ToolCall(id=f"call_{index}", name=name, input=arguments)
                for index, (name, arguments) in enumerate(calls, start=1)
            ],
            stop_reason="tool_calls",
        )

    return _make


@pytest.fixture
def places_backend():
    return FakePlacesBackend


@pytest.fixture
def scripted_client():
    return ScriptedReasoningClient


@pytest.fixture
def always_calling_client():
    return AlwaysCallingClient


@pytest.fixture
def json_session():
    """Factory for a requests session stub answering every request with JSON."""

    def _make(payload: Any, status_code: int = 200) -> MagicMock:
        response = MagicMock(status_code=status_code, text="")
        response.json.return_value = payload
        session = MagicMock()
        session.request.return_value = response
        return session

    return _make
