"""Settings Pydantic models for gemini-adapter configuration."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, field_validator

from gemini_adapter.ai.providers.gemini.decoder import TOOL_FINISH_REASONS
from gemini_adapter.ai.providers.gemini.provider import (
    DEFAULT_BASE_URL,
    DEFAULT_MODEL,
    DEFAULT_TIMEOUT,
)


class GeminiConfig(BaseModel):
    """Connection and generation settings for the Gemini API."""

    api_key: str | None = Field(default=None, repr=False)
    model: str = DEFAULT_MODEL
    base_url: str = DEFAULT_BASE_URL
    parameters: dict[str, Any] = Field(default_factory=dict)
    timeout: float = Field(default=DEFAULT_TIMEOUT, gt=0)
    tool_finish_reasons: list[str] = Field(
        default_factory=lambda: sorted(TOOL_FINISH_REASONS),
    )

    model_config = {"extra": "ignore"}

    @field_validator("tool_finish_reasons")
    @classmethod
    def _upper_reasons(cls, value: list[str]) -> list[str]:
        return [reason.upper() for reason in value]


class Settings(BaseModel):
    """Top-level settings loaded from YAML files and the environment."""

    gemini: GeminiConfig = Field(default_factory=GeminiConfig)
    system_prompt: str | None = None

    model_config = {"extra": "ignore"}
