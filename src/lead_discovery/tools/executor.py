"""Tool dispatch with validation, timeouts and structured errors.

``ToolExecutor.execute`` never raises for a failing tool: unknown names,
disabled tools, invalid input, timeouts and handler exceptions all come
back as a ToolResult with ``error`` set.
"""

import asyncio
import logging
from typing import Any, Iterable, Mapping, Optional

from pydantic import ValidationError

from ..models.lead import Lead
from ..models.tooling import ToolCall, ToolResult, ToolSpec
from .registry import TOOL_CATALOG, BaseTool

logger = logging.getLogger(__name__)

TOOL_TIMEOUT_SECONDS = 45.0


def format_validation_error(error: ValidationError) -> str:
    """One-line summary of a pydantic validation error."""
    parts = []
    for item in error.errors():
        location = ".".join(str(part) for part in item.get("loc", ())) or "input"
        parts.append(f"{location}: {item.get('msg', 'invalid')}")
    return "; ".join(parts)


class ToolExecutor:
    """Dispatches tool calls to registered handlers.

    Attributes:
        tools: Tool name -> handler instance.
        timeout_seconds: Per-call timeout.
        disabled: Tool names refused for this executor.
    """

    def __init__(
        self,
        tools: Mapping[str, BaseTool],
        timeout_seconds: float = TOOL_TIMEOUT_SECONDS,
        disabled: Optional[Iterable[str]] = None,
    ) -> None:
        self.tools = dict(tools)
        self.timeout_seconds = timeout_seconds
        self.disabled = set(disabled or ())

    def specs(self) -> list[ToolSpec]:
        """Specs of the registered, enabled tools in catalog order."""
        return [
            spec
            for name, spec in TOOL_CATALOG.items()
            if name in self.tools and name not in self.disabled
        ]

    def is_available(self, name: str) -> bool:
        return name in self.tools and name not in self.disabled

    async def execute(self, call: ToolCall) -> ToolResult:
        """Validate and run one tool call.

        Returns:
            ToolResult carrying the payload, or an error message.
        """
        tool = self.tools.get(call.name)
        if tool is None:
            logger.warning("Model requested unknown tool %s", call.name)
            return ToolResult.failure(call.name, f"Unknown tool: {call.name}")
        if call.name in self.disabled:
            return ToolResult.failure(call.name, f"Tool {call.name} is disabled for this run")

        try:
            params = tool.input_model.model_validate(call.input or {})
        except ValidationError as e:
            return ToolResult.failure(
                call.name, f"Invalid input for {call.name}: {format_validation_error(e)}"
            )

        try:
            payload = await asyncio.wait_for(tool.execute(params), self.timeout_seconds)
        except asyncio.TimeoutError:
            logger.warning("Tool %s timed out after %.0fs", call.name, self.timeout_seconds)
            return ToolResult.failure(
                call.name, f"Tool {call.name} timed out after {self.timeout_seconds:.0f}s"
            )
        except Exception as e:
            logger.warning("Tool %s failed: %s", call.name, e, exc_info=True)
            return ToolResult.failure(call.name, str(e) or e.__class__.__name__)

        return self._to_result(call.name, payload)

    async def execute_many(self, calls: list[ToolCall]) -> list[ToolResult]:
        """Run independent calls concurrently; results keep call order."""
        return list(await asyncio.gather(*(self.execute(call) for call in calls)))

    @staticmethod
    def _to_result(tool_name: str, payload: Any) -> ToolResult:
        if not isinstance(payload, dict):
            return ToolResult.failure(tool_name, f"Tool {tool_name} returned no result object")

        payload = dict(payload)
        leads: list[Lead] = []
        raw_leads = payload.get("leads")
        if isinstance(raw_leads, list):
            leads = [item for item in raw_leads if isinstance(item, Lead)]
            payload["leads"] = [
                item.to_dict() if isinstance(item, Lead) else item for item in raw_leads
            ]

        error = payload.pop("error", None)
        return ToolResult(tool_name=tool_name, payload=payload, error=error, leads=leads)
