from __future__ import annotations

from gemini_adapter.ai.providers.gemini.decoder import StreamDecoder, StreamState
from gemini_adapter.ai.providers.gemini.mapper import MessageMapper
from gemini_adapter.ai.providers.gemini.payload import build_payload, build_request
from gemini_adapter.ai.providers.gemini.provider import (
    DEFAULT_BASE_URL,
    DEFAULT_MODEL,
    GeminiProvider,
)
from gemini_adapter.ai.providers.gemini.sse import LineReader

__all__ = [
    "DEFAULT_BASE_URL",
    "DEFAULT_MODEL",
    "GeminiProvider",
    "LineReader",
    "MessageMapper",
    "StreamDecoder",
    "StreamState",
    "build_payload",
    "build_request",
]
