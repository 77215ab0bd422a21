"""Message conversion (gemini_adapter -> Gemini ``contents``)."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

from gemini_adapter.ai.types import (
    AssistantMessage,
    SystemMessage,
    ToolCallMessage,
    ToolCallResultMessage,
    UserMessage,
)

if TYPE_CHECKING:
    from collections.abc import Sequence

    from gemini_adapter.ai.tools import Tool
    from gemini_adapter.ai.types import GeminiRole, Message


class MessageMapper:
    """Maps messages to the Gemini ``contents`` array.

    Gemini only knows the ``user`` and ``model`` roles.  Tool results are
    sent back as ``functionResponse`` parts in a ``user`` entry; tool calls
    replay as ``functionCall`` parts in a ``model`` entry.  System messages
    are skipped since the system prompt travels in ``systemInstruction``.

    Consecutive entries with the same role are not merged.
    """

    def __init__(self, messages: Sequence[Message]) -> None:
        self.messages = list(messages)
        self._mapping: list[dict[str, Any]] = []

    def map(self) -> list[dict[str, Any]]:
        self._mapping = []
        for message in self.messages:
            if isinstance(message, ToolCallResultMessage):
                self._map_function_response(message.tools)
            elif isinstance(message, ToolCallMessage):
                self._add_message("model", self._map_function_call(message))
            elif isinstance(message, AssistantMessage):
                self._add_message("model", [{"text": message.content}])
            elif isinstance(message, UserMessage):
                self._add_message("user", [{"text": message.content}])
            elif isinstance(message, SystemMessage):
                continue
        return self._mapping

    def _add_message(self, role: GeminiRole, parts: list[dict[str, Any]]) -> None:
        self._mapping.append({"role": role, "parts": parts})

    def _map_function_response(self, tools: list[Tool]) -> None:
        parts = []
        for tool in tools:
            result = tool.result
            if not isinstance(result, str):
                result = json.dumps(result, default=str)
            parts.append({
                "functionResponse": {
                    "name": tool.name,
                    "response": {"content": result},
                },
            })
        if parts:
            self._add_message("user", parts)

    @staticmethod
    def _map_function_call(message: ToolCallMessage) -> list[dict[str, Any]]:
        parts: list[dict[str, Any]] = []
        if message.content:
            parts.append({"text": message.content})
        for tool in message.tools:
            parts.append({
                "functionCall": {
                    "name": tool.name,
                    "args": dict(tool.inputs) if tool.inputs else {},
                },
            })
        return parts
