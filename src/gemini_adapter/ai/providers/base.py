"""Chat provider protocol definition.

The :class:`~gemini_adapter.agent.agent.Agent` only depends on this
protocol; :class:`~gemini_adapter.ai.providers.gemini.GeminiProvider`
satisfies it.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator, Callable, Sequence

    from gemini_adapter.ai.tools import Tool
    from gemini_adapter.ai.types import Message, StreamEvent, ToolCallMessage


@runtime_checkable
class ChatProvider(Protocol):
    """Protocol a chat provider must satisfy.

    A provider is configured fluently with :pymeth:`system_prompt` and
    :pymeth:`set_tools`, then exposes two entry points:

    * :pymeth:`chat` -- one request, one reply message.
    * :pymeth:`stream` -- an async iterator of stream events.  When the model
      asks for tools, the provider calls *execute_tools* with the
      :class:`~gemini_adapter.ai.types.ToolCallMessage` and forwards every
      event it yields.
    """

    def system_prompt(self, prompt: str | None) -> ChatProvider:
        """Set the system instruction sent with every request."""
        ...

    def set_tools(self, tools: Sequence[Tool]) -> ChatProvider:
        """Replace the tools declared to the model."""
        ...

    async def chat(self, messages: Sequence[Message]) -> Message:
        """Return the model's reply to *messages*.

        Returns
        -------
        Message
            An :class:`~gemini_adapter.ai.types.AssistantMessage` or a
            :class:`~gemini_adapter.ai.types.ToolCallMessage`.
        """
        ...

    def stream(
        self,
        messages: Sequence[Message],
        execute_tools: Callable[[ToolCallMessage], AsyncGenerator[Any, None]],
    ) -> AsyncGenerator[StreamEvent, None]:
        """Stream the model's reply to *messages*.

        Parameters
        ----------
        messages:
            The conversation so far.
        execute_tools:
            Tool-execution callback, an async generator function; may itself
            call :pymeth:`stream` again.  Its exceptions propagate unchanged.

        Returns
        -------
        AsyncGenerator[StreamEvent, None]
            Text deltas, events produced by *execute_tools*, and a final
            usage event.
        """
        ...
