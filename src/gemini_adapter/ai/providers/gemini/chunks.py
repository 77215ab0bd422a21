"""Pydantic models for the Gemini wire format.

Each SSE ``data:`` line and each full ``generateContent`` body is validated
into these models, so business logic reads typed attributes instead of
probing nested dicts.  Unknown vendor fields are ignored.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from gemini_adapter.ai.errors import MalformedChunkError


class _WireModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


# --- Parts ---

class FunctionCall(_WireModel):
    name: str
    args: dict[str, Any] | None = None


class FunctionResponse(_WireModel):
    name: str
    response: dict[str, Any]


class Part(_WireModel):
    """One content part.  Exactly one of the fields is normally set."""

    text: str | None = None
    function_call: FunctionCall | None = Field(default=None, alias="functionCall")
    function_response: FunctionResponse | None = Field(default=None, alias="functionResponse")

    @property
    def is_function_call(self) -> bool:
        return self.function_call is not None


# --- Candidates / metadata ---

class Content(_WireModel):
    role: str | None = None
    parts: list[Part] | None = None


class Candidate(_WireModel):
    content: Content | None = None
    finish_reason: str | None = Field(default=None, alias="finishReason")


class UsageMetadata(_WireModel):
    prompt_token_count: int | None = Field(default=None, alias="promptTokenCount")
    candidates_token_count: int | None = Field(default=None, alias="candidatesTokenCount")
    total_token_count: int | None = Field(default=None, alias="totalTokenCount")

    @property
    def has_split(self) -> bool:
        return self.prompt_token_count is not None and self.candidates_token_count is not None


class PromptFeedback(_WireModel):
    block_reason: str | None = Field(default=None, alias="blockReason")
    safety_ratings: list[dict[str, Any]] | None = Field(default=None, alias="safetyRatings")


class GenerateContentResponse(_WireModel):
    """One streamed chunk or one full non-streaming response body."""

    candidates: list[Candidate] | None = None
    usage_metadata: UsageMetadata | None = Field(default=None, alias="usageMetadata")
    prompt_feedback: PromptFeedback | None = Field(default=None, alias="promptFeedback")

    @property
    def first_candidate(self) -> Candidate | None:
        return self.candidates[0] if self.candidates else None

    @property
    def parts(self) -> list[Part] | None:
        candidate = self.first_candidate
        if candidate is None or candidate.content is None:
            return None
        return candidate.content.parts

    @property
    def finish_reason(self) -> str | None:
        candidate = self.first_candidate
        return candidate.finish_reason if candidate else None

    @property
    def block_reason(self) -> str | None:
        if self.prompt_feedback is None:
            return None
        return self.prompt_feedback.block_reason


StreamChunk = GenerateContentResponse


def decode_chunk(payload: str) -> StreamChunk:
    """Decode the JSON payload of one SSE data line.

    Raises :class:`MalformedChunkError` when the payload is not JSON or does
    not have the chunk shape.
    """
    try:
        return StreamChunk.model_validate_json(payload)
    except ValidationError as exc:
        raise MalformedChunkError(f"Malformed Gemini chunk: {exc}") from exc
