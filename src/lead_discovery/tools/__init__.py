"""Tool registry, handlers and executor for the agent loop.

Importing this package registers every handler.
"""

from .registry import (
    TOOL_CATALOG,
    TOOL_HANDLERS,
    BaseTool,
    ToolName,
    build_tool_registry,
    register_tool,
)
from . import handlers  # noqa: F401  registers the tool handlers
from .context import ToolContext
from .executor import TOOL_TIMEOUT_SECONDS, ToolExecutor

__all__ = [
    "TOOL_CATALOG",
    "TOOL_HANDLERS",
    "TOOL_TIMEOUT_SECONDS",
    "BaseTool",
    "ToolContext",
    "ToolExecutor",
    "ToolName",
    "build_tool_registry",
    "register_tool",
]
