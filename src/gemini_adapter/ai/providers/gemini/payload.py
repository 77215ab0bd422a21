"""Request body construction for ``generateContent`` / ``streamGenerateContent``.

The empty-object rules here are part of the wire contract: Gemini wants
``{}`` rather than an absent key for ``generationConfig`` (when parameters
were configured) and for a tool's ``properties``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from gemini_adapter.ai.providers.gemini.mapper import MessageMapper

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from gemini_adapter.ai.tools import Tool, ToolProperty
    from gemini_adapter.ai.types import Message


# ---------------------------------------------------------------------------
# Tool conversion
# ---------------------------------------------------------------------------


def _property_schema(prop: ToolProperty) -> dict[str, Any]:
    return {
        "type": str(prop.type).upper(),
        "description": prop.description,
    }


def convert_tools(tools: Sequence[Tool]) -> list[dict[str, Any]] | None:
    """Convert tools to a single Gemini ``functionDeclarations`` entry."""
    if not tools:
        return None

    declarations = []
    for tool in tools:
        properties = {p.name: _property_schema(p) for p in tool.properties}
        declarations.append({
            "name": tool.name,
            "description": tool.description,
            "parameters": {
                "type": "OBJECT",
                "properties": properties,
                "required": tool.required_properties,
            },
        })
    return [{"functionDeclarations": declarations}]


# ---------------------------------------------------------------------------
# Payload
# ---------------------------------------------------------------------------


def _generation_config(parameters: Mapping[str, Any] | None) -> dict[str, Any] | None:
    if not parameters:
        return None
    return {k: v for k, v in parameters.items() if v is not None}


def build_payload(
    contents: list[dict[str, Any]],
    parameters: Mapping[str, Any] | None = None,
    system_prompt: str | None = None,
    tools: Sequence[Tool] | None = None,
) -> dict[str, Any]:
    """Assemble the JSON request body from already-mapped ``contents``."""
    payload: dict[str, Any] = {
        "contents": contents,
        "generationConfig": _generation_config(parameters),
    }

    if system_prompt is not None and system_prompt.strip():
        payload["systemInstruction"] = {"parts": [{"text": system_prompt}]}

    converted = convert_tools(tools or [])
    if converted:
        payload["tools"] = converted

    payload = {k: v for k, v in payload.items() if v is not None}
    return payload


def build_request(
    messages: Sequence[Message],
    parameters: Mapping[str, Any] | None = None,
    system_prompt: str | None = None,
    tools: Sequence[Tool] | None = None,
) -> dict[str, Any]:
    """Map *messages* and build the request body in one step."""
    contents = MessageMapper(messages).map()
    return build_payload(contents, parameters, system_prompt, tools)
