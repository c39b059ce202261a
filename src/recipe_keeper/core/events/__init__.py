"""Application lifecycle events."""

from recipe_keeper.core.events.lifespan import lifespan


__all__ = ["lifespan"]
