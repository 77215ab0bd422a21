"""Minimal tool-running agent on top of a :class:`ChatProvider`.

The agent keeps the conversation in memory and supplies the provider with a
tool-execution callback: run every requested tool, record the tool call and
its results, then ask the provider again.  In streaming mode that second
request is itself a stream, whose events the provider splices into the
outer one.
"""

from __future__ import annotations

import logging
from contextlib import aclosing
from typing import TYPE_CHECKING, Any

from gemini_adapter.agent.types import (
    ToolExecutionEndEvent,
    ToolExecutionStartEvent,
    ToolRoundsExceededError,
)
from gemini_adapter.ai.types import (
    AssistantMessage,
    TextDeltaEvent,
    ToolCallMessage,
    ToolCallResultMessage,
    UsageEvent,
)

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator, AsyncIterator, Sequence

    from gemini_adapter.agent.types import AgentEvent
    from gemini_adapter.ai.providers.base import ChatProvider
    from gemini_adapter.ai.tools import Tool
    from gemini_adapter.ai.types import Message, StreamEvent, Usage

logger = logging.getLogger(__name__)

DEFAULT_MAX_TOOL_ROUNDS = 10


class Agent:
    """Conversation driver with automatic tool execution.

    Parameters
    ----------
    provider:
        The chat provider to talk to.
    tools:
        Tools to declare to the model.  Executed by name when requested.
    system_prompt:
        Optional system instruction.
    max_tool_rounds:
        How many consecutive tool calls a single user message may trigger.
    """

    def __init__(
        self,
        provider: ChatProvider,
        tools: Sequence[Tool] | None = None,
        system_prompt: str | None = None,
        max_tool_rounds: int = DEFAULT_MAX_TOOL_ROUNDS,
    ) -> None:
        self.provider = provider
        self.messages: list[Message] = []
        self.max_tool_rounds = max_tool_rounds
        self.last_usage: Usage | None = None
        if tools is not None:
            provider.set_tools(tools)
        if system_prompt is not None:
            provider.system_prompt(system_prompt)

    # -- request/response --------------------------------------------------

    async def chat(self, message: Message) -> Message:
        """Send *message* and return the final reply after any tool rounds."""
        self.messages.append(message)
        reply = await self.provider.chat(self.messages)

        rounds = 0
        while isinstance(reply, ToolCallMessage):
            rounds = self._next_round(rounds)
            async with aclosing(self._run_tools(reply)) as events:
                async for _ in events:
                    pass
            reply = await self.provider.chat(self.messages)

        self.messages.append(reply)
        if getattr(reply, "usage", None) is not None:
            self.last_usage = reply.usage
        return reply

    # -- streaming ---------------------------------------------------------

    async def stream(self, message: Message) -> AsyncIterator[StreamEvent]:
        """Send *message* and stream the reply, tool rounds included."""
        self.messages.append(message)
        async with aclosing(self._stream_turn(rounds=0)) as events:
            async for event in events:
                yield event

    async def _stream_turn(self, rounds: int) -> AsyncGenerator[StreamEvent, None]:
        text: list[str] = []
        in_tools = False
        ran_tools = False

        def flush_text() -> None:
            if text:
                self.messages.append(AssistantMessage(content="".join(text)))
                text.clear()

        async def execute_tools(tool_call: ToolCallMessage) -> AsyncGenerator[Any, None]:
            nonlocal in_tools, ran_tools
            next_round = self._next_round(rounds)
            flush_text()
            in_tools = ran_tools = True
            try:
                async with aclosing(self._run_tools(tool_call)) as events:
                    async for event in events:
                        yield event
                async with aclosing(self._stream_turn(next_round)) as events:
                    async for event in events:
                        yield event
            finally:
                in_tools = False

        async with aclosing(self.provider.stream(self.messages, execute_tools)) as stream:
            async for event in stream:
                if not in_tools:
                    if isinstance(event, TextDeltaEvent):
                        text.append(event.delta)
                    elif isinstance(event, UsageEvent) and not ran_tools:
                        # A nested turn already recorded the usage of the
                        # latest request.
                        self.last_usage = event.usage
                yield event

        flush_text()

    # -- tools -------------------------------------------------------------

    def _next_round(self, rounds: int) -> int:
        rounds += 1
        if rounds > self.max_tool_rounds:
            raise ToolRoundsExceededError(
                f"Model requested tools more than {self.max_tool_rounds} times in a row"
            )
        return rounds

    async def _run_tools(self, tool_call: ToolCallMessage) -> AsyncGenerator[AgentEvent, None]:
        """Execute each tool of *tool_call* and record both messages."""
        for tool in tool_call.tools:
            yield ToolExecutionStartEvent(tool_name=tool.name, inputs=dict(tool.inputs))

            is_error = False
            try:
                await tool.execute()
            except Exception as exc:
                logger.warning("Tool %s failed: %s", tool.name, exc)
                tool.result = f"Error: {exc}"
                is_error = True

            yield ToolExecutionEndEvent(
                tool_name=tool.name,
                result=tool.result,
                is_error=is_error,
            )

        self.messages.append(tool_call)
        self.messages.append(ToolCallResultMessage(tools=list(tool_call.tools)))
