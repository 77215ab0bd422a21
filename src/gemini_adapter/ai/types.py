"""Core type definitions shared by the Gemini adapter.

Messages, usage records and stream events are frozen dataclasses
(immutable).  Tools live in :mod:`gemini_adapter.ai.tools` because they carry
mutable per-call state.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Literal, Union

if TYPE_CHECKING:
    from gemini_adapter.ai.tools import Tool


# ---------------------------------------------------------------------------
# Literal type aliases
# ---------------------------------------------------------------------------

GeminiRole = Literal["user", "model"]


# ---------------------------------------------------------------------------
# Usage
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Usage:
    """Token usage for a single request/response pair.

    ``estimated`` is set when Gemini only reported ``totalTokenCount``: the
    whole total is then booked as output and ``input_tokens`` is ``0``, which
    is not a real input/output split.
    """

    input_tokens: int
    output_tokens: int
    estimated: bool = False

    @property
    def total_tokens(self) -> int:
        return self.input_tokens + self.output_tokens

    def to_dict(self) -> dict[str, int]:
        return {
            "input_tokens": self.input_tokens,
            "output_tokens": self.output_tokens,
        }


# ---------------------------------------------------------------------------
# Message dataclasses
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class UserMessage:
    """A message sent by the user."""

    content: str
    role: Literal["user"] = "user"


@dataclass(frozen=True)
class AssistantMessage:
    """A plain text message produced by the model."""

    content: str
    usage: Usage | None = None
    role: Literal["assistant"] = "assistant"


@dataclass(frozen=True)
class SystemMessage:
    """A system message.  Never sent inside ``contents``."""

    content: str
    role: Literal["system"] = "system"


@dataclass(frozen=True)
class ToolCallMessage:
    """The model asking the caller to run one or more tools.

    ``tools`` holds tool instances whose inputs are already bound from the
    function-call arguments.
    """

    content: str | None
    tools: list[Tool] = field(default_factory=list)
    usage: Usage | None = None
    role: Literal["assistant"] = "assistant"


@dataclass(frozen=True)
class ToolCallResultMessage:
    """Executed tools, each carrying its result, sent back to the model."""

    tools: list[Tool] = field(default_factory=list)
    content: str | None = None
    role: Literal["user"] = "user"


Message = Union[
    UserMessage,
    AssistantMessage,
    SystemMessage,
    ToolCallMessage,
    ToolCallResultMessage,
]
"""Union of all message types."""


# ---------------------------------------------------------------------------
# Stream events
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TextDeltaEvent:
    """Emitted for each text part as soon as it is decoded."""

    delta: str
    type: Literal["text_delta"] = "text_delta"


@dataclass(frozen=True)
class UsageEvent:
    """Emitted once, after the stream ends, when usage was reported."""

    usage: Usage
    type: Literal["usage"] = "usage"

    def to_dict(self) -> dict[str, Any]:
        return {"usage": self.usage.to_dict()}


StreamEvent = Union[TextDeltaEvent, UsageEvent, Any]
"""Events yielded by ``stream``.

Anything other than a :class:`TextDeltaEvent` or :class:`UsageEvent` was
produced by the tool-execution callback and is forwarded untouched.
"""
