from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal, Union


# Agent events - discriminated union using Literal type field.
# These are the events the agent's tool callback splices into a stream.
@dataclass(frozen=True)
class ToolExecutionStartEvent:
    tool_name: str
    inputs: dict[str, Any]
    type: Literal["tool_execution_start"] = "tool_execution_start"

@dataclass(frozen=True)
class ToolExecutionEndEvent:
    tool_name: str
    result: Any
    is_error: bool = False
    type: Literal["tool_execution_end"] = "tool_execution_end"


AgentEvent = Union[ToolExecutionStartEvent, ToolExecutionEndEvent]


class ToolRoundsExceededError(RuntimeError):
    """The model kept requesting tools past the configured round limit."""
