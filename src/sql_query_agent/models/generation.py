"""
Text generation models.

Provider-independent shapes for completion responses and token budgets.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class UniformResponse(BaseModel):
    """Completion text plus token usage, independent of provider payload shape.

    Usage counts are ``None`` when the provider does not report them.
    """

    completion: str = Field(description="Generated text")
    prompt_tokens: int | None = Field(default=None, description="Input tokens, if reported")
    completion_tokens: int | None = Field(default=None, description="Output tokens, if reported")
    total_tokens: int | None = Field(default=None, description="Total tokens, if reported")
    model: str = Field(default="", description="Model identifier that produced the completion")
    raw_response: dict[str, Any] = Field(
        default_factory=dict, description="Decoded provider payload", repr=False
    )


class TokenBudget(BaseModel):
    """Generation length granted for one prompt against a model context window."""

    model_id: str
    context_window: int
    prompt_tokens: int
    safety_margin: int
    max_tokens: int = Field(description="Tokens the backend may generate")

    @property
    def remaining(self) -> int:
        """Tokens left after the prompt and safety margin."""
        return self.context_window - self.prompt_tokens - self.safety_margin
