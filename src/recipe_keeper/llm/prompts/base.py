"""Base class for LLM prompts.

A prompt owns its template, its sampling settings and the schema its reply
is parsed into, so call sites never hold prompt strings.
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from typing import Any, ClassVar, Generic, TypeVar

import orjson
from pydantic import BaseModel, ValidationError

from recipe_keeper.llm.exceptions import LLMValidationError
from recipe_keeper.llm.models import GeminiGenerationConfig


T = TypeVar("T", bound=BaseModel)

_FENCED_JSON = re.compile(r"```(?:json)?\s*\n?([\s\S]*?)\n?```")
_JSON_OBJECT = re.compile(r"\{[\s\S]*\}")


def extract_json_object(text: str) -> dict[str, Any]:
    """Parse a JSON object out of a model reply.

    Tries, in order: the whole reply, the first fenced code block, and the
    outermost ``{...}`` span.

    Raises:
        LLMValidationError: If no candidate parses to a JSON object.
    """
    candidates = [text]
    fenced = _FENCED_JSON.search(text)
    if fenced:
        candidates.append(fenced.group(1))
    braces = _JSON_OBJECT.search(text)
    if braces:
        candidates.append(braces.group(0))

    for candidate in candidates:
        try:
            value = orjson.loads(candidate)
        except orjson.JSONDecodeError:
            continue
        if isinstance(value, dict):
            return value

    msg = "Could not parse a JSON object from the model response"
    raise LLMValidationError(msg)


class BasePrompt(ABC, Generic[T]):
    """Base class for all LLM prompts.

    Example:
        ```python
        class RecipeTextPrompt(BasePrompt[ExtractedRecipe]):
            output_schema = ExtractedRecipe

            def format(self, text: str) -> str:
                return f"Extract the recipe from:\\n\\n{text}"
        ```
    """

    output_schema: ClassVar[type[BaseModel]]
    """Pydantic model the reply is validated against."""

    temperature: ClassVar[float] = 0.1
    top_p: ClassVar[float | None] = None
    top_k: ClassVar[int | None] = None
    max_tokens: ClassVar[int | None] = None

    @abstractmethod
    def format(self, **kwargs: Any) -> str:
        """Render the prompt text."""
        ...

    @property
    def name(self) -> str:
        """Prompt identifier for logging."""
        return self.__class__.__name__

    def get_generation_config(self) -> GeminiGenerationConfig:
        return GeminiGenerationConfig(
            temperature=self.temperature,
            top_p=self.top_p,
            top_k=self.top_k,
            max_output_tokens=self.max_tokens,
        )

    def parse(self, raw_response: str) -> T:
        """Validate a reply against ``output_schema``.

        Raises:
            LLMValidationError: If the reply holds no usable JSON object.
        """
        data = extract_json_object(raw_response)
        try:
            return self.output_schema.model_validate(data)  # type: ignore[return-value]
        except ValidationError as e:
            msg = f"Response does not match {self.output_schema.__name__}: {e}"
            raise LLMValidationError(msg) from e
