"""AI recipe import."""

from recipe_keeper.services.recipe_import.service import RecipeImportService


__all__ = ["RecipeImportService"]
