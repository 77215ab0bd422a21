"""Error taxonomy for the Gemini adapter.

Every fatal failure reaches the caller as a :class:`ProviderError` (or one of
its subclasses) carrying a readable message, an optional HTTP status code and
the original exception chained as ``__cause__``.  Nothing here is retried;
retry policy belongs to the caller.
"""

from __future__ import annotations

import json
from typing import Any

import httpx


class ProviderError(Exception):
    """Base error raised for any failed Gemini request."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class BlockedContentError(ProviderError):
    """Gemini refused the prompt on safety or policy grounds."""

    def __init__(
        self,
        message: str,
        reason: str,
        safety_ratings: list[dict[str, Any]] | None = None,
    ) -> None:
        super().__init__(message)
        self.reason = reason
        self.safety_ratings = safety_ratings or []


class InvalidResponseError(ProviderError):
    """A full response matched neither the content nor the block shape."""

    def __init__(self, message: str, body: str) -> None:
        super().__init__(message)
        self.body = body


class ClientRequestError(ProviderError):
    """The API answered with a 4xx or 5xx status."""

    def __init__(self, message: str, status_code: int, body: str | None = None) -> None:
        super().__init__(message, status_code=status_code)
        self.body = body


class TransportError(ProviderError):
    """Network or connection level failure."""


class UnexpectedProviderError(ProviderError):
    """Any other exception raised while processing a request."""


class MalformedChunkError(ValueError):
    """A single SSE data line could not be decoded.

    Never surfaces to callers: the stream decoder skips the line.
    """


# ---------------------------------------------------------------------------
# Factories
# ---------------------------------------------------------------------------


def blocked_stream_error(reason: str | None) -> BlockedContentError:
    reason = reason or "Unknown reason"
    return BlockedContentError(f"Gemini API stream blocked: {reason}", reason=reason)


def blocked_response_error(
    reason: str | None,
    safety_ratings: list[dict[str, Any]] | None,
) -> BlockedContentError:
    reason = reason or "Unknown reason"
    ratings = safety_ratings or []
    return BlockedContentError(
        f"Gemini API request blocked: {reason} - Safety Ratings: {json.dumps(ratings)}",
        reason=reason,
        safety_ratings=ratings,
    )


def classify_error(exc: BaseException, *, streaming: bool = False) -> ProviderError:
    """Map an exception raised during a request onto the error taxonomy.

    :class:`ProviderError` instances are returned unchanged.  The caller is
    expected to ``raise classify_error(exc) from exc``.

    For an :class:`httpx.HTTPStatusError` raised on a streamed response the
    body must already have been read, otherwise it is reported as missing.
    """
    if isinstance(exc, ProviderError):
        return exc

    kind = "stream request" if streaming else "request"

    if isinstance(exc, httpx.HTTPStatusError):
        status = exc.response.status_code
        body = _response_body(exc.response)
        return ClientRequestError(
            f"Gemini API {kind} failed with status {status}: {exc} - Response: "
            f"{body if body is not None else 'No response body'}",
            status_code=status,
            body=body,
        )

    if isinstance(exc, (httpx.HTTPError, httpx.StreamError)):
        return TransportError(f"Gemini API {kind} failed: {exc}")

    what = "stream" if streaming else "response"
    return UnexpectedProviderError(f"Error processing Gemini API {what}: {exc}")


def _response_body(response: httpx.Response) -> str | None:
    try:
        return response.text or None
    except httpx.ResponseNotRead:
        return None
