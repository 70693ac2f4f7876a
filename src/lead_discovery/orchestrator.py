"""Agent loop that lets a reasoning model drive lead discovery.

The model is offered the tool catalog and decides which tools to call, in
any order, until it answers without tool calls or the iteration budget runs
out. Each iteration:

1. Send the conversation and the enabled tool specs to the model
2. Dispatch every tool call of the turn concurrently through the executor
3. Log one ExecutionStep per call and collect returned leads
4. Append the assistant turn and one tool message per call

Tool failures stay inside their ToolResult and are shown to the model. A
failure of the reasoning call itself ends the run: accumulated leads are
returned as a degraded result, and with nothing accumulated the error
propagates.
"""

import json
import logging
from typing import Any, Mapping, Optional

from .config import Config, config
from .integrations.openai_client import OpenAIReasoningClient
from .models.lead import Lead
from .models.orchestration import ExecutionStep, OrchestratorResult
from .models.tooling import ToolResult
from .ranking import dedupe, rank
from .tools import BaseTool, ToolContext, ToolExecutor, build_tool_registry
from .tools.executor import TOOL_TIMEOUT_SECONDS
from .tools.registry import OPTIONAL_TOOLS

logger = logging.getLogger(__name__)

DEFAULT_MAX_ITERATIONS = 5
DEGRADED_CONFIDENCE_FACTOR = 0.7
MAX_TOOL_RESULT_CHARS = 12000
MAX_LEADS_IN_TOOL_MESSAGE = 25

# Saturation points of the confidence metric
CONFIDENCE_TOOL_TARGET = 3
CONFIDENCE_LEAD_TARGET = 20

SYSTEM_PROMPT = """You are a lead discovery agent for a B2B sales team.
Your job is to find local businesses that match the user's request and
gather what a salesperson needs: name, address, phone, website, email,
rating, reviews and an opportunity assessment.

Tools:
- search_google_maps is the primary source for businesses with a location.
- search_yelp and search_perplexity add coverage; search_web finds websites.
- enrich_email, analyze_website, verify_business and score_opportunity add
  detail to businesses you already found.
- research_competitors describes the market around one business.

Rules:
- Call several independent tools in one turn when they do not depend on
  each other.
- If a tool returns an error, try a different tool or different input.
- Stop calling tools once you have a useful set of leads, and reply with a
  short summary of what you found and how."""


def calculate_confidence(tools_used: int, leads_found: int) -> float:
    """Confidence in [0, 1] rewarding tool diversity and result volume.

    ``min(1, 0.5 * min(tools/3, 1) + 0.5 * min(leads/20, 1))``
    """
    tool_part = min(tools_used / CONFIDENCE_TOOL_TARGET, 1.0)
    lead_part = min(leads_found / CONFIDENCE_LEAD_TARGET, 1.0)
    return min(1.0, 0.5 * tool_part + 0.5 * lead_part)


def render_tool_message(result: ToolResult) -> str:
    """Serialize a tool result for the conversation, bounded in size."""
    data = result.to_dict()
    leads = data.get("leads")
    if isinstance(leads, list) and len(leads) > MAX_LEADS_IN_TOOL_MESSAGE:
        data["leads"] = leads[:MAX_LEADS_IN_TOOL_MESSAGE]
        data["leads_omitted"] = len(leads) - MAX_LEADS_IN_TOOL_MESSAGE

    content = json.dumps(data, default=str)
    if len(content) > MAX_TOOL_RESULT_CHARS:
        content = content[:MAX_TOOL_RESULT_CHARS] + "... [truncated]"
    return content


def lead_sources(leads: list[Lead]) -> list[str]:
    """Distinct provenance tags in first-seen order."""
    sources: list[str] = []
    for lead in leads:
        if lead.source not in sources:
            sources.append(lead.source)
    return sources


class AgentOrchestrator:
    """Runs model-directed discovery over the tool registry.

    Attributes:
        client: Reasoning client with ``async chat(messages, tools, max_tokens) -> ModelTurn``.
        tools: Tool name -> handler instance.
        tool_timeout: Per tool call timeout in seconds.

    Example:
        >>> orchestrator = AgentOrchestrator.from_config()
        >>> result = await orchestrator.run("plumbers with no website in Santa Fe")
        >>> result.metadata["confidence"]
        0.65
    """

    def __init__(
        self,
        client: Any,
        context: Optional[ToolContext] = None,
        tools: Optional[Mapping[str, BaseTool]] = None,
        tool_timeout: float = TOOL_TIMEOUT_SECONDS,
        max_tokens: int = 4096,
    ) -> None:
        self.client = client
        self.context = context or ToolContext()
        self.tools = dict(tools) if tools is not None else build_tool_registry(self.context)
        self.tool_timeout = tool_timeout
        self.max_tokens = max_tokens

    @classmethod
    def from_config(cls, cfg: Config = config) -> "AgentOrchestrator":
        """Build an orchestrator with every configured backend.

        Raises:
            ConfigError: If the reasoning model credential is missing.
        """
        cfg.validate_for_orchestration()
        client = OpenAIReasoningClient(
            api_key=cfg.OPENAI_API_KEY,
            model=cfg.OPENAI_MODEL,
            timeout_seconds=cfg.OPENAI_TIMEOUT_SECONDS,
        )
        context = ToolContext.from_config(cfg, reasoning_client=client)
        return cls(client, context=context, tool_timeout=cfg.TOOL_TIMEOUT_SECONDS)

    async def close(self) -> None:
        """Release the backend sessions and the reasoning client."""
        self.context.close()
        close = getattr(self.client, "close", None)
        if close is not None:
            await close()

    async def run(
        self,
        query: str,
        max_iterations: int = DEFAULT_MAX_ITERATIONS,
        enable_email_enrichment: bool = True,
        enable_website_analysis: bool = True,
    ) -> OrchestratorResult:
        """Satisfy a free-text discovery request.

        Args:
            query: The user's request, e.g. "HVAC companies in San Diego".
            max_iterations: Maximum number of reasoning turns.
            enable_email_enrichment: Offer the email enrichment tool.
            enable_website_analysis: Offer the website analysis tool.

        Returns:
            OrchestratorResult with deduplicated, ranked leads.

        Raises:
            ValueError: If max_iterations is less than 1.
            Exception: Whatever the reasoning client raised, when it fails
                before any lead was accumulated.
        """
        if max_iterations < 1:
            raise ValueError("max_iterations must be at least 1")

        options = {
            "enable_email_enrichment": enable_email_enrichment,
            "enable_website_analysis": enable_website_analysis,
        }
        disabled = {tool.value for option, tool in OPTIONAL_TOOLS.items() if not options[option]}
        executor = ToolExecutor(self.tools, timeout_seconds=self.tool_timeout, disabled=disabled)
        tool_definitions = [spec.to_openai_tool() for spec in executor.specs()]

        messages: list[dict[str, Any]] = [
            {"role": "system", "content": SYSTEM_PROMPT},
            {"role": "user", "content": query},
        ]
        accumulated: list[Lead] = []
        steps: list[ExecutionStep] = []
        tools_used: list[str] = []
        summary: Optional[str] = None
        degraded = False
        iterations = 0

        logger.info(
            "Starting orchestration",
            extra={"query": query, "max_iterations": max_iterations, "disabled_tools": sorted(disabled)},
        )

        try:
            while iterations < max_iterations:
                iterations += 1
                turn = await self.client.chat(
                    messages, tools=tool_definitions, max_tokens=self.max_tokens
                )

                if not turn.wants_tools:
                    summary = turn.text.strip() or "Discovery complete."
                    break

                logger.info(
                    "Iteration %d: model requested %d tool call(s)",
                    iterations,
                    len(turn.tool_calls),
                    extra={"tools": [call.name for call in turn.tool_calls]},
                )
                results = await executor.execute_many(turn.tool_calls)

                messages.append(turn.to_message())
                for call, result in zip(turn.tool_calls, results):
                    steps.append(
                        ExecutionStep(
                            step=len(steps) + 1,
                            tool=call.name,
                            input=dict(call.input),
                            output=result.to_dict(),
                            reasoning=turn.text,
                        )
                    )
                    if executor.is_available(call.name) and call.name not in tools_used:
                        tools_used.append(call.name)
                    accumulated.extend(result.leads)
                    messages.append(
                        {
                            "role": "tool",
                            "tool_call_id": call.id,
                            "content": render_tool_message(result),
                        }
                    )
        except Exception as e:
            if not accumulated:
                logger.error("Orchestration failed with no leads gathered: %s", e)
                raise
            logger.warning(
                "Reasoning failed at iteration %d, returning %d gathered leads: %s",
                iterations,
                len(accumulated),
                e,
            )
            degraded = True
            summary = (
                f"Stopped early after a reasoning failure ({e}); "
                f"returning {len(accumulated)} leads gathered so far."
            )

        budget_exhausted = summary is None
        leads = rank(dedupe(accumulated))
        if budget_exhausted:
            summary = (
                f"Iteration budget of {max_iterations} exhausted before the search "
                f"completed; returning {len(leads)} leads gathered so far."
            )

        confidence = calculate_confidence(len(tools_used), len(leads))
        if degraded:
            confidence *= DEGRADED_CONFIDENCE_FACTOR

        logger.info(
            "Orchestration finished with %d leads",
            len(leads),
            extra={
                "iterations": iterations,
                "tools_used": tools_used,
                "budget_exhausted": budget_exhausted,
                "degraded": degraded,
            },
        )

        return OrchestratorResult(
            leads=leads,
            reasoning=summary,
            tools_used=tools_used,
            execution_steps=steps,
            metadata={
                "total_results": len(leads),
                "sources": lead_sources(leads),
                "confidence": confidence,
                "iterations": iterations,
                "budget_exhausted": budget_exhausted,
                "degraded": degraded,
            },
        )
