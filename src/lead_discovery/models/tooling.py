"""Tool contract records exchanged between the agent loop and the executor."""

from dataclasses import dataclass, field
from typing import Any, Optional

from .lead import Lead


@dataclass(frozen=True)
class ToolSpec:
    """Describes one capability the reasoning model may invoke.

    Attributes:
        name: Unique tool name.
        description: Human-readable description shown to the model.
        input_schema: JSON schema of the tool input.
    """

    name: str
    description: str
    input_schema: dict[str, Any]

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "input_schema": self.input_schema,
        }

    def to_openai_tool(self) -> dict[str, Any]:
        """Render as an OpenAI chat-completions function tool."""
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.input_schema,
            },
        }


@dataclass(frozen=True)
class ToolCall:
    """A tool invocation emitted by the reasoning model."""

    id: str
    name: str
    input: dict[str, Any] = field(default_factory=dict)


@dataclass
class ToolResult:
    """Outcome of one tool call.

    A failed call still yields a ToolResult with ``error`` set, so the agent
    loop can report it back to the model and keep going.

    Attributes:
        tool_name: Name of the tool that produced the result.
        payload: JSON-compatible output fields.
        error: Error message if the call failed.
        leads: Lead objects returned by the tool, if any.
    """

    tool_name: str
    payload: dict[str, Any] = field(default_factory=dict)
    error: Optional[str] = None
    leads: list[Lead] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_dict(self) -> dict[str, Any]:
        """Convert to the wire shape ``{...fields, error?}``."""
        data = dict(self.payload)
        if self.error is not None:
            data["error"] = self.error
        return data

    @classmethod
    def failure(cls, tool_name: str, error: str) -> "ToolResult":
        return cls(tool_name=tool_name, error=error)
