"""Parsing of full (non-streaming) ``generateContent`` responses."""

from __future__ import annotations

import dataclasses
from typing import TYPE_CHECKING

from pydantic import ValidationError

from gemini_adapter.ai.errors import InvalidResponseError, blocked_response_error
from gemini_adapter.ai.providers.gemini.chunks import GenerateContentResponse
from gemini_adapter.ai.providers.gemini.decoder import TOOL_FINISH_REASONS
from gemini_adapter.ai.providers.gemini.projection import (
    create_tool_message,
    usage_from_metadata,
)
from gemini_adapter.ai.types import AssistantMessage

if TYPE_CHECKING:
    from collections.abc import Callable, Collection

    from gemini_adapter.ai.tools import Tool
    from gemini_adapter.ai.types import Message


def parse_chat_response(
    body: str,
    find_tool: Callable[[str], Tool | None],
    tool_finish_reasons: Collection[str] = TOOL_FINISH_REASONS,
) -> Message:
    """Turn a ``generateContent`` body into an assistant or tool-call message.

    Raises :class:`BlockedContentError` when the prompt was blocked and
    :class:`InvalidResponseError` for anything else that carries no content.
    """
    try:
        response = GenerateContentResponse.model_validate_json(body)
    except ValidationError as exc:
        raise InvalidResponseError(
            f"Gemini API response could not be decoded: {body}", body=body,
        ) from exc

    parts = response.parts
    if parts is not None:
        first = parts[0] if parts else None
        message: Message
        if response.finish_reason in tool_finish_reasons or (
            first is not None and first.is_function_call
        ):
            message = create_tool_message(parts, find_tool)
        else:
            text = "".join(part.text or "" for part in parts)
            message = AssistantMessage(content=text)

        usage = usage_from_metadata(response.usage_metadata)
        if usage is not None:
            message = dataclasses.replace(message, usage=usage)
        return message

    if response.block_reason is not None:
        raise blocked_response_error(
            response.block_reason,
            response.prompt_feedback.safety_ratings if response.prompt_feedback else None,
        )

    raise InvalidResponseError(
        f"Invalid response structure from Gemini API: {body}", body=body,
    )
