"""LLM API clients."""

from recipe_keeper.llm.client.gemini import GeminiClient


__all__ = ["GeminiClient"]
