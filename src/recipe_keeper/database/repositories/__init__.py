"""Database repositories."""

from recipe_keeper.database.repositories.admin import AdminRepository
from recipe_keeper.database.repositories.comments import CommentRepository
from recipe_keeper.database.repositories.cookbooks import CookbookRepository
from recipe_keeper.database.repositories.invitations import InvitationRepository
from recipe_keeper.database.repositories.nutrition import NutritionRepository
from recipe_keeper.database.repositories.profiles import ProfileRepository
from recipe_keeper.database.repositories.promo_codes import PromoCodeRepository
from recipe_keeper.database.repositories.ratings import RatingRepository
from recipe_keeper.database.repositories.recipe_images import RecipeImageRepository
from recipe_keeper.database.repositories.recipes import RecipeRepository
from recipe_keeper.database.repositories.shares import ShareRepository
from recipe_keeper.database.repositories.subscriptions import SubscriptionRepository
from recipe_keeper.database.repositories.usage import UsageRepository


__all__ = [
    "AdminRepository",
    "CommentRepository",
    "CookbookRepository",
    "InvitationRepository",
    "NutritionRepository",
    "ProfileRepository",
    "PromoCodeRepository",
    "RatingRepository",
    "RecipeImageRepository",
    "RecipeRepository",
    "ShareRepository",
    "SubscriptionRepository",
    "UsageRepository",
]
