"""Shared test fixtures for gemini-adapter test suite."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

import pytest

from gemini_adapter.ai.tools import PropertyType, Tool, ToolProperty
from gemini_adapter.ai.types import (
    AssistantMessage,
    Message,
    TextDeltaEvent,
    ToolCallMessage,
    Usage,
    UsageEvent,
)

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Callable, Sequence

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def sse_line(chunk: dict[str, Any] | str) -> str:
    """Format one SSE data line (dicts are JSON-encoded)."""
    payload = chunk if isinstance(chunk, str) else json.dumps(chunk)
    return f"data: {payload}\r\n\r\n"


def sse_body(*chunks: dict[str, Any] | str) -> bytes:
    """Build a full SSE body the way Gemini sends it."""
    return "".join(sse_line(c) for c in chunks).encode("utf-8")


def text_chunk(text: str, finish_reason: str | None = None) -> dict[str, Any]:
    candidate: dict[str, Any] = {"content": {"role": "model", "parts": [{"text": text}]}}
    if finish_reason is not None:
        candidate["finishReason"] = finish_reason
    return {"candidates": [candidate]}


def call_chunk(
    *calls: tuple[str, dict[str, Any] | None],
    finish_reason: str | None = None,
) -> dict[str, Any]:
    parts = []
    for name, args in calls:
        call: dict[str, Any] = {"name": name}
        if args is not None:
            call["args"] = args
        parts.append({"functionCall": call})
    candidate: dict[str, Any] = {"content": {"role": "model", "parts": parts}}
    if finish_reason is not None:
        candidate["finishReason"] = finish_reason
    return {"candidates": [candidate]}


def finish_chunk(reason: str) -> dict[str, Any]:
    return {"candidates": [{"finishReason": reason}]}


def usage_chunk(**counts: int) -> dict[str, Any]:
    return {"usageMetadata": counts}


class ByteStream:
    """Async byte iterable that records how many chunks were pulled."""

    def __init__(self, chunks: Sequence[bytes]) -> None:
        self._chunks = list(chunks)
        self.reads = 0

    def __aiter__(self) -> AsyncIterator[bytes]:
        return self._iterate()

    async def _iterate(self) -> AsyncIterator[bytes]:
        for chunk in self._chunks:
            self.reads += 1
            yield chunk

    @property
    def exhausted(self) -> bool:
        return self.reads == len(self._chunks)


def line_stream(*chunks: dict[str, Any] | str) -> ByteStream:
    """One network chunk per SSE line."""
    return ByteStream([sse_line(c).encode("utf-8") for c in chunks])


async def collect(events: AsyncIterator[Any]) -> list[Any]:
    return [event async for event in events]


def texts(events: list[Any]) -> list[str]:
    return [e.delta for e in events if isinstance(e, TextDeltaEvent)]


def make_tool(
    name: str = "get_weather",
    executor: Callable[..., Any] | None = None,
    properties: list[ToolProperty] | None = None,
) -> Tool:
    return Tool(
        name=name,
        description=f"The {name} tool",
        properties=properties if properties is not None else [
            ToolProperty(
                name="city",
                type=PropertyType.STRING,
                description="City name",
                required=True,
            ),
        ],
        executor=executor,
    )


class ToolCallRecorder:
    """Tool-execution callback that records calls and yields scripted events."""

    def __init__(self, *events: Any) -> None:
        self.calls: list[ToolCallMessage] = []
        self._events = events

    async def __call__(self, message: ToolCallMessage) -> AsyncIterator[Any]:
        self.calls.append(message)
        for event in self._events:
            yield event


# ---------------------------------------------------------------------------
# Mock chat provider
# ---------------------------------------------------------------------------

class MockChatProvider:
    """A mock provider replaying scripted replies.

    Each entry of *replies* is either a :class:`Message` (returned by
    ``chat``) or a list of events (yielded by ``stream``).  A
    :class:`ToolCallMessage` entry makes ``stream`` invoke the tool callback.
    """

    def __init__(self, replies: Sequence[Message | list[Any]]) -> None:
        self._replies = list(replies)
        self.system: str | None = None
        self.tools: list[Tool] = []
        self.requests: list[list[Message]] = []

    def system_prompt(self, prompt: str | None) -> MockChatProvider:
        self.system = prompt
        return self

    def set_tools(self, tools: Sequence[Tool]) -> MockChatProvider:
        self.tools = list(tools)
        return self

    def _next(self, messages: Sequence[Message]) -> Message | list[Any]:
        self.requests.append(list(messages))
        return self._replies.pop(0)

    def _bind(self, reply: ToolCallMessage) -> ToolCallMessage:
        by_name = {t.name: t for t in self.tools}
        tools = [by_name[t.name].copy().set_inputs(t.inputs) for t in reply.tools]
        return ToolCallMessage(content=reply.content, tools=tools)

    async def chat(self, messages: Sequence[Message]) -> Message:
        reply = self._next(messages)
        assert not isinstance(reply, list)
        if isinstance(reply, ToolCallMessage):
            return self._bind(reply)
        return reply

    async def stream(
        self,
        messages: Sequence[Message],
        execute_tools: Callable[[ToolCallMessage], AsyncIterator[Any]],
    ) -> AsyncIterator[Any]:
        reply = self._next(messages)
        if isinstance(reply, ToolCallMessage):
            async for event in execute_tools(self._bind(reply)):
                yield event
            return
        assert isinstance(reply, list)
        for event in reply:
            yield event


def text_reply(*deltas: str, usage: Usage | None = None) -> list[Any]:
    events: list[Any] = [TextDeltaEvent(delta=d) for d in deltas]
    if usage is not None:
        events.append(UsageEvent(usage=usage))
    return events


def assistant(text: str) -> AssistantMessage:
    return AssistantMessage(content=text)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def weather_tool() -> Tool:
    """Provide a tool with one required string property."""
    def get_weather(city: str) -> dict[str, Any]:
        return {"city": city, "forecast": "sunny"}

    return make_tool(executor=get_weather)


@pytest.fixture
def recorder() -> ToolCallRecorder:
    return ToolCallRecorder()
