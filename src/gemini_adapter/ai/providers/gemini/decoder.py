"""Decoder for the ``streamGenerateContent`` SSE body.

Turns SSE lines into stream events.  Text parts are emitted as soon as they
are decoded.  Function-call parts are held back until a finish reason tells
whether they form a complete tool call (run it through the callback and
splice its events in) or a stale fragment (drop it).  Usage is reported once,
after the last line.
"""

from __future__ import annotations

import logging
from contextlib import aclosing
from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING, Any

from gemini_adapter.ai.errors import (
    MalformedChunkError,
    ProviderError,
    blocked_stream_error,
    classify_error,
)
from gemini_adapter.ai.providers.gemini.chunks import decode_chunk
from gemini_adapter.ai.providers.gemini.projection import (
    create_tool_message,
    usage_from_metadata,
)
from gemini_adapter.ai.providers.gemini.sse import LineReader, data_payload
from gemini_adapter.ai.types import TextDeltaEvent, UsageEvent

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator, AsyncIterator, Callable, Collection

    from gemini_adapter.ai.providers.gemini.chunks import Part, StreamChunk, UsageMetadata
    from gemini_adapter.ai.tools import Tool
    from gemini_adapter.ai.types import StreamEvent, ToolCallMessage

    ExecuteToolsCallback = Callable[[ToolCallMessage], AsyncGenerator[Any, None]]

logger = logging.getLogger(__name__)

TOOL_FINISH_REASONS: frozenset[str] = frozenset({"TOOL_CODE"})
STOP_FINISH_REASON = "STOP"


class StreamState(StrEnum):
    STREAMING = "streaming"
    FLUSHING_USAGE = "flushing_usage"
    DONE = "done"
    ERRORED = "errored"


@dataclass
class _Accumulator:
    """Per-stream mutable state.  Never shared between streams."""

    full_text: str = ""
    pending_function_call_parts: list[Part] = field(default_factory=list)
    final_usage: UsageMetadata | None = None


class StreamDecoder:
    """Single-use decoder for one streamed response.

    Parameters
    ----------
    execute_tools:
        Async generator function called with the projected
        :class:`ToolCallMessage` once a tool call is complete.  Every event it
        yields is forwarded to the consumer before the decoder reads another
        line.  Exceptions it raises propagate unchanged.
    find_tool:
        Tool registry lookup used by the projection.
    tool_finish_reasons:
        Finish reasons that resolve pending function-call parts into a tool
        call.
    """

    def __init__(
        self,
        execute_tools: ExecuteToolsCallback,
        find_tool: Callable[[str], Tool | None],
        tool_finish_reasons: Collection[str] = TOOL_FINISH_REASONS,
    ) -> None:
        self._execute_tools = execute_tools
        self._find_tool = find_tool
        self._tool_finish_reasons = frozenset(tool_finish_reasons)
        self._acc = _Accumulator()
        self._callback_error: BaseException | None = None
        self.state = StreamState.STREAMING

    @property
    def full_text(self) -> str:
        return self._acc.full_text

    async def decode(self, reader: LineReader) -> AsyncIterator[StreamEvent]:
        """Yield events for every line *reader* produces.

        Raises :class:`ProviderError`; transport and unexpected failures are
        classified and chained.  Errors raised by the tool callback are
        re-raised as they are.
        """
        if self.state is not StreamState.STREAMING:
            raise RuntimeError(f"StreamDecoder cannot be reused (state: {self.state})")

        try:
            while line := await reader.readline():
                async with aclosing(self._process_line(line)) as events:
                    async for event in events:
                        yield event

            self.state = StreamState.FLUSHING_USAGE
            usage = usage_from_metadata(self._acc.final_usage)
            if usage is not None:
                yield UsageEvent(usage=usage)
            self.state = StreamState.DONE
        except ProviderError:
            self.state = StreamState.ERRORED
            raise
        except Exception as exc:
            self.state = StreamState.ERRORED
            if exc is self._callback_error:
                raise
            raise classify_error(exc, streaming=True) from exc

    async def _process_line(self, line: str) -> AsyncGenerator[StreamEvent, None]:
        payload = data_payload(line)
        if not payload:
            return

        try:
            chunk = decode_chunk(payload)
        except MalformedChunkError:
            logger.debug("Skipping malformed stream chunk: %.200s", payload)
            return

        if chunk.block_reason is not None:
            raise blocked_stream_error(chunk.block_reason)

        if chunk.usage_metadata is not None:
            self._store_usage(chunk.usage_metadata)

        for event in self._handle_parts(chunk):
            yield event

        async with aclosing(self._handle_finish_reason(chunk)) as events:
            async for event in events:
                yield event

    def _store_usage(self, usage: UsageMetadata) -> None:
        # The last report wins, except that a total-only report never
        # replaces an earlier prompt/candidates split.
        current = self._acc.final_usage
        if current is not None and current.has_split and not usage.has_split:
            return
        self._acc.final_usage = usage

    def _handle_parts(self, chunk: StreamChunk) -> list[TextDeltaEvent]:
        parts = chunk.parts
        if not parts:
            return []

        if parts[0].is_function_call:
            self._acc.pending_function_call_parts.extend(parts)
            return []

        events = []
        for part in parts:
            if part.text is not None:
                self._acc.full_text += part.text
                events.append(TextDeltaEvent(delta=part.text))
        return events

    async def _handle_finish_reason(self, chunk: StreamChunk) -> AsyncGenerator[Any, None]:
        reason = chunk.finish_reason
        pending = self._acc.pending_function_call_parts
        if reason is None or not pending:
            return

        if reason in self._tool_finish_reasons:
            message = create_tool_message(pending, self._find_tool)
            self._acc.pending_function_call_parts = []
            try:
                async with aclosing(self._execute_tools(message)) as events:
                    async for event in events:
                        yield event
            except Exception as exc:
                self._callback_error = exc
                raise
        elif reason == STOP_FINISH_REASON:
            names = [p.function_call.name for p in pending if p.function_call is not None]
            logger.warning(
                "Discarding unresolved function call parts %s: stream finished with %s",
                names,
                reason,
            )
            self._acc.pending_function_call_parts = []
