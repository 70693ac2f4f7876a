"""OpenAI chat-completions client used for orchestration and scoring.

The agent loop depends only on ``chat`` returning a ``ModelTurn``; any
object with the same coroutine can stand in for this client.
"""

import json
import logging
import os
from dataclasses import dataclass, field
from typing import Any, Optional

from openai import AsyncOpenAI, OpenAIError

from ..models.tooling import ToolCall

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gpt-4o"
DEFAULT_TIMEOUT_SECONDS = 60.0


class ReasoningClientError(Exception):
    """Raised when the reasoning model call fails."""

    pass


@dataclass
class ModelTurn:
    """One assistant turn.

    Attributes:
        text: Assistant prose (may be empty when only tools are called).
        tool_calls: Tool invocations in emission order.
        stop_reason: Provider finish reason ("tool_calls", "stop", ...).
    """

    text: str = ""
    tool_calls: list[ToolCall] = field(default_factory=list)
    stop_reason: Optional[str] = None

    @property
    def wants_tools(self) -> bool:
        return bool(self.tool_calls)

    def to_message(self) -> dict[str, Any]:
        """Render as an assistant message for the conversation history."""
        message: dict[str, Any] = {"role": "assistant", "content": self.text or None}
        if self.tool_calls:
            message["tool_calls"] = [
                {
                    "id": call.id,
                    "type": "function",
                    "function": {
                        "name": call.name,
                        "arguments": json.dumps(call.input),
                    },
                }
                for call in self.tool_calls
            ]
        return message


def _parse_arguments(raw: Optional[str], tool_name: str) -> dict[str, Any]:
    if not raw:
        return {}
    try:
        value = json.loads(raw)
    except json.JSONDecodeError:
        logger.warning("Tool %s called with non-JSON arguments", tool_name)
        return {}
    return value if isinstance(value, dict) else {}


class OpenAIReasoningClient:
    """Async wrapper over ``AsyncOpenAI`` chat completions.

    Example:
        >>> client = OpenAIReasoningClient()
        >>> turn = await client.chat(messages, tools=[spec.to_openai_tool()])
        >>> turn.wants_tools
        True
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = DEFAULT_MODEL,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        client: Optional[AsyncOpenAI] = None,
    ) -> None:
        """Initialize the reasoning client.

        Args:
            api_key: OpenAI API key. Defaults to OPENAI_API_KEY env var.
            model: Chat model name.
            timeout_seconds: Per-request timeout.
            client: Pre-built AsyncOpenAI client (mainly for tests).

        Raises:
            ValueError: If no API key is provided or found in environment.
        """
        self.api_key = api_key or os.environ.get("OPENAI_API_KEY")
        if not self.api_key and client is None:
            raise ValueError(
                "OpenAI API key required. Set OPENAI_API_KEY environment "
                "variable or pass api_key parameter."
            )
        self.model = model
        self._client = client or AsyncOpenAI(api_key=self.api_key, timeout=timeout_seconds)

    async def chat(
        self,
        messages: list[dict[str, Any]],
        tools: Optional[list[dict[str, Any]]] = None,
        max_tokens: int = 4096,
    ) -> ModelTurn:
        """Run one chat completion turn.

        Args:
            messages: Conversation history in chat-completions format.
            tools: Function tool definitions offered to the model.
            max_tokens: Completion token cap.

        Returns:
            The parsed assistant turn.

        Raises:
            ReasoningClientError: If the request fails or returns no choices.
        """
        params: dict[str, Any] = {
            "model": self.model,
            "messages": messages,
            "max_tokens": max_tokens,
        }
        if tools:
            params["tools"] = tools

        try:
            response = await self._client.chat.completions.create(**params)
        except OpenAIError as e:
            raise ReasoningClientError(f"Chat completion failed: {e}") from e

        if not response.choices:
            raise ReasoningClientError("Chat completion returned no choices")

        choice = response.choices[0]
        message = choice.message
        tool_calls = [
            ToolCall(
                id=call.id,
                name=call.function.name,
                input=_parse_arguments(call.function.arguments, call.function.name),
            )
            for call in (message.tool_calls or [])
        ]
        return ModelTurn(
            text=message.content or "",
            tool_calls=tool_calls,
            stop_reason=choice.finish_reason,
        )

    async def complete(self, prompt: str, max_tokens: int = 1000) -> str:
        """Single-prompt completion returning the assistant text.

        Raises:
            ReasoningClientError: If the request fails.
        """
        turn = await self.chat([{"role": "user", "content": prompt}], max_tokens=max_tokens)
        return turn.text

    async def close(self) -> None:
        await self._client.close()
