"""Projection of Gemini parts and usage counters onto generic types."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from gemini_adapter.ai.types import ToolCallMessage, Usage

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from gemini_adapter.ai.providers.gemini.chunks import Part, UsageMetadata
    from gemini_adapter.ai.tools import Tool

logger = logging.getLogger(__name__)


def create_tool_message(
    parts: Iterable[Part],
    find_tool: Callable[[str], Tool | None],
) -> ToolCallMessage:
    """Build a :class:`ToolCallMessage` from accumulated function-call parts.

    Each ``functionCall`` is resolved through *find_tool*; the tool is copied
    and its inputs bound from ``args``.  Names the registry does not know are
    dropped.  Text parts found alongside the calls become the message
    content.
    """
    tools: list[Tool] = []
    text: str | None = None

    for part in parts:
        if part.function_call is not None:
            call = part.function_call
            tool = find_tool(call.name)
            if tool is None:
                logger.debug("Ignoring call to unknown tool %r", call.name)
                continue
            tools.append(tool.copy().set_inputs(call.args or {}))
        elif part.text is not None:
            text = (text or "") + part.text

    return ToolCallMessage(content=text, tools=tools)


def usage_from_metadata(metadata: UsageMetadata | None) -> Usage | None:
    """Convert Gemini token counters into a :class:`Usage`.

    The prompt/candidates pair is preferred.  When only ``totalTokenCount``
    is present the total is reported as output with zero input and the
    usage is flagged ``estimated``; that split is not accurate.
    """
    if metadata is None:
        return None
    if metadata.has_split:
        return Usage(
            input_tokens=metadata.prompt_token_count or 0,
            output_tokens=metadata.candidates_token_count or 0,
        )
    if metadata.total_token_count is not None:
        return Usage(
            input_tokens=0,
            output_tokens=metadata.total_token_count,
            estimated=True,
        )
    return None
