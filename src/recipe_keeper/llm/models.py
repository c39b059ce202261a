"""Gemini ``generateContent`` wire models.

Gemini's JSON is camelCase, which the downstream base schemas already
produce and accept.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from recipe_keeper.schemas.base import DownstreamRequest, DownstreamResponse


class GeminiInlineData(DownstreamRequest):
    """Base64 file content sent inline with a prompt."""

    mime_type: str
    data: str


class GeminiPart(DownstreamRequest):
    """One part of a message: text or inline data."""

    text: str | None = None
    inline_data: GeminiInlineData | None = None


class GeminiContent(DownstreamRequest):
    role: str = "user"
    parts: list[GeminiPart]


class GeminiGenerationConfig(DownstreamRequest):
    temperature: float = 0.1
    top_p: float | None = None
    top_k: int | None = None
    max_output_tokens: int | None = None


class GeminiGenerateRequest(DownstreamRequest):
    """Request body for ``models/{model}:generateContent``."""

    contents: list[GeminiContent]
    generation_config: GeminiGenerationConfig | None = None


class GeminiResponsePart(DownstreamResponse):
    text: str | None = None


class GeminiResponseContent(DownstreamResponse):
    parts: list[GeminiResponsePart] = Field(default_factory=list)
    role: str | None = None


class GeminiCandidate(DownstreamResponse):
    content: GeminiResponseContent | None = None
    finish_reason: str | None = None


class GeminiUsageMetadata(DownstreamResponse):
    prompt_token_count: int = 0
    candidates_token_count: int = 0
    total_token_count: int = 0


class GeminiGenerateResponse(DownstreamResponse):
    """Response body of ``generateContent``."""

    candidates: list[GeminiCandidate] = Field(default_factory=list)
    usage_metadata: GeminiUsageMetadata = Field(default_factory=GeminiUsageMetadata)
    model_version: str | None = None

    @property
    def text(self) -> str:
        """Concatenated text of the first candidate."""
        if not self.candidates or self.candidates[0].content is None:
            return ""
        return "".join(part.text or "" for part in self.candidates[0].content.parts)


class LLMCompletionResult(BaseModel):
    """A completed model call with its token accounting."""

    raw_response: str = Field(..., description="Raw text returned by the model")
    model: str = Field(..., description="Model that produced the response")
    prompt_tokens: int = Field(default=0, description="Input tokens billed")
    completion_tokens: int = Field(default=0, description="Output tokens billed")
    total_tokens: int = Field(default=0, description="Total tokens billed")
