"""Pydantic models for chat API requests and responses."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

DEFAULT_TEMPERATURE = 0.2
DEFAULT_MAX_TOKENS = 1024


class ChatRequest(BaseModel):
    """Request body for a chat completion.

    Messages are kept as plain mappings so they reach the upstream exactly
    as the client sent them.
    """

    messages: list[dict[str, Any]] = Field(..., min_length=1)
    temperature: float = DEFAULT_TEMPERATURE
    max_tokens: int = DEFAULT_MAX_TOKENS

    def upstream_payload(self) -> dict[str, Any]:
        return {
            "messages": self.messages,
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
        }


class ChatResponse(BaseModel):
    """Normalised reply returned to the frontend."""

    reply: str = ""
    usage: Any = None
