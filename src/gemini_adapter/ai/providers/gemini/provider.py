"""Google Gemini provider.

Talks to the Gemini REST API directly over ``httpx``: ``generateContent``
for :meth:`GeminiProvider.chat` and ``streamGenerateContent?alt=sse`` for
:meth:`GeminiProvider.stream`.
"""

from __future__ import annotations

import logging
from contextlib import aclosing
from typing import TYPE_CHECKING, Any

import httpx

from gemini_adapter.ai.errors import ProviderError, classify_error
from gemini_adapter.ai.providers.gemini.chat import parse_chat_response
from gemini_adapter.ai.providers.gemini.decoder import (
    TOOL_FINISH_REASONS,
    StreamDecoder,
    StreamState,
)
from gemini_adapter.ai.providers.gemini.payload import build_request
from gemini_adapter.ai.providers.gemini.sse import LineReader

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator, Collection, Mapping, Sequence
    from types import TracebackType

    from gemini_adapter.ai.providers.gemini.decoder import ExecuteToolsCallback
    from gemini_adapter.ai.tools import Tool
    from gemini_adapter.ai.types import Message, StreamEvent
    from gemini_adapter.config.settings import Settings

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"
DEFAULT_MODEL = "gemini-1.5-flash-latest"
DEFAULT_TIMEOUT = 60.0

_HEADERS = {"Content-Type": "application/json"}


# ---------------------------------------------------------------------------
# Client creation
# ---------------------------------------------------------------------------


def _create_client(timeout: float) -> httpx.AsyncClient:
    return httpx.AsyncClient(
        timeout=httpx.Timeout(timeout, connect=10.0),
        headers=_HEADERS,
    )


# ---------------------------------------------------------------------------
# Provider class
# ---------------------------------------------------------------------------


class GeminiProvider:
    """Gemini provider implementing :class:`ChatProvider`.

    Parameters
    ----------
    api_key:
        Google AI API key, sent as the ``key`` query parameter.
    model:
        Gemini model id.
    parameters:
        Generation parameters sent as ``generationConfig``
        (``temperature``, ``maxOutputTokens``, ...).
    base_url:
        API root including the version segment.
    client:
        Optional pre-configured ``httpx.AsyncClient``.  The provider only
        closes clients it created itself.
    timeout:
        Read timeout in seconds for clients the provider creates.
    tool_finish_reasons:
        Finish reasons that turn accumulated function calls into a tool call.
    """

    def __init__(
        self,
        api_key: str,
        model: str = DEFAULT_MODEL,
        parameters: Mapping[str, Any] | None = None,
        *,
        base_url: str = DEFAULT_BASE_URL,
        client: httpx.AsyncClient | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        tool_finish_reasons: Collection[str] = TOOL_FINISH_REASONS,
    ) -> None:
        self.api_key = api_key
        self.model = model
        self.parameters: dict[str, Any] = dict(parameters or {})
        self.base_url = base_url.rstrip("/")
        self.tool_finish_reasons = frozenset(tool_finish_reasons)
        self.system: str | None = None
        self.tools: list[Tool] = []

        self._owns_client = client is None
        self._client = client if client is not None else _create_client(timeout)

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        client: httpx.AsyncClient | None = None,
    ) -> GeminiProvider:
        """Build a provider from loaded settings.

        Connection and generation options come from the ``gemini`` section;
        ``system_prompt`` becomes the system instruction.
        """
        config = settings.gemini
        if not config.api_key:
            raise ValueError(
                "No API key for Gemini: set GEMINI_API_KEY or gemini.api_key"
            )
        return cls(
            api_key=config.api_key,
            model=config.model,
            parameters=config.parameters,
            base_url=config.base_url,
            client=client,
            timeout=config.timeout,
            tool_finish_reasons=config.tool_finish_reasons,
        ).system_prompt(settings.system_prompt)

    @property
    def api(self) -> str:
        return "google-generative-ai"

    # -- configuration -----------------------------------------------------

    def system_prompt(self, prompt: str | None) -> GeminiProvider:
        self.system = prompt
        return self

    def set_tools(self, tools: Sequence[Tool]) -> GeminiProvider:
        self.tools = list(tools)
        return self

    def find_tool(self, name: str) -> Tool | None:
        return next((t for t in self.tools if t.name == name), None)

    # -- requests ----------------------------------------------------------

    def _endpoint(self, action: str) -> str:
        return f"{self.base_url}/models/{self.model}:{action}"

    def _payload(self, messages: Sequence[Message]) -> dict[str, Any]:
        return build_request(messages, self.parameters, self.system, self.tools)

    async def chat(self, messages: Sequence[Message]) -> Message:
        """Send *messages* to ``generateContent`` and return the reply."""
        payload = self._payload(messages)
        url = self._endpoint("generateContent")
        logger.debug("POST %s (%d contents)", url, len(payload["contents"]))

        try:
            response = await self._client.post(
                url,
                params={"key": self.api_key},
                json=payload,
                headers=_HEADERS,
            )
            if response.is_error:
                response.raise_for_status()
            return parse_chat_response(
                response.text, self.find_tool, self.tool_finish_reasons,
            )
        except ProviderError:
            raise
        except Exception as exc:
            raise classify_error(exc) from exc

    async def stream(
        self,
        messages: Sequence[Message],
        execute_tools: ExecuteToolsCallback,
    ) -> AsyncGenerator[StreamEvent, None]:
        """Stream *messages* through ``streamGenerateContent``.

        Yields :class:`TextDeltaEvent` as text arrives, whatever
        *execute_tools* yields when the model calls tools, and a final
        :class:`UsageEvent`.  The HTTP response is released when the
        generator finishes, fails or is closed early.
        """
        payload = self._payload(messages)
        url = self._endpoint("streamGenerateContent")
        decoder = StreamDecoder(execute_tools, self.find_tool, self.tool_finish_reasons)
        logger.debug("POST %s (stream, %d contents)", url, len(payload["contents"]))

        try:
            async with self._client.stream(
                "POST",
                url,
                params={"key": self.api_key, "alt": "sse"},
                json=payload,
                headers=_HEADERS,
            ) as response:
                if response.is_error:
                    await response.aread()
                    response.raise_for_status()

                reader = LineReader(response.aiter_bytes())
                async with aclosing(decoder.decode(reader)) as events:
                    async for event in events:
                        yield event
        except ProviderError:
            raise
        except Exception as exc:
            # The decoder classifies its own failures and lets tool callback
            # errors through unchanged.
            if decoder.state is StreamState.ERRORED:
                raise
            raise classify_error(exc, streaming=True) from exc

    # -- lifecycle ---------------------------------------------------------

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> GeminiProvider:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.aclose()
