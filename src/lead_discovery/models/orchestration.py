"""Records produced by one agent-loop run."""

from dataclasses import dataclass, field
from typing import Any

from .lead import Lead


@dataclass(frozen=True)
class ExecutionStep:
    """One dispatched tool call in an orchestration run.

    Attributes:
        step: 1-based sequence number across the whole run.
        tool: Tool name.
        input: Arguments the model supplied.
        output: Tool result in wire shape (``{...fields, error?}``).
        reasoning: Model text accompanying the call, if any.
    """

    step: int
    tool: str
    input: dict[str, Any]
    output: dict[str, Any]
    reasoning: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "step": self.step,
            "tool": self.tool,
            "input": self.input,
            "output": self.output,
            "reasoning": self.reasoning,
        }


@dataclass
class OrchestratorResult:
    """Final output of an orchestration run, handed to the caller.

    Attributes:
        leads: Deduplicated leads accumulated across iterations.
        reasoning: Closing summary from the model (or a budget/degraded note).
        tools_used: Distinct tool names, in first-use order.
        execution_steps: Ordered log of dispatched tool calls.
        metadata: total_results, sources, confidence, iterations,
            budget_exhausted and degraded.
    """

    leads: list[Lead]
    reasoning: str
    tools_used: list[str] = field(default_factory=list)
    execution_steps: list[ExecutionStep] = field(default_factory=list)
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "leads": [lead.to_dict() for lead in self.leads],
            "reasoning": self.reasoning,
            "tools_used": list(self.tools_used),
            "execution_steps": [step.to_dict() for step in self.execution_steps],
            "metadata": dict(self.metadata),
        }
