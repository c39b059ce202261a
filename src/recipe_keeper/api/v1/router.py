"""API v1 router aggregating all endpoint routers.

All endpoints are mounted under /api/v1 via the v1_prefix configuration.
"""

from __future__ import annotations

from fastapi import APIRouter

from recipe_keeper.api.v1.endpoints import (
    admin,
    billing,
    comments,
    cookbooks,
    health,
    images,
    imports,
    ingredients,
    invitations,
    nutrition,
    profile,
    promo,
    ratings,
    recipe_images,
    recipes,
    shares,
    uploads,
    usage,
    variations,
    webhooks,
)


router = APIRouter()

router.include_router(health.router)

# Recipes and everything hanging off them
router.include_router(recipes.router)
router.include_router(recipe_images.router)
router.include_router(shares.router)
router.include_router(ratings.router)
router.include_router(comments.router)
router.include_router(uploads.router)
router.include_router(ingredients.router)

# Cookbooks
router.include_router(cookbooks.router)
router.include_router(invitations.router)

# AI features
router.include_router(imports.router)
router.include_router(images.router)
router.include_router(variations.router)
router.include_router(nutrition.router)
router.include_router(usage.router)

# Billing
router.include_router(billing.router)
router.include_router(promo.router)
router.include_router(webhooks.router)

router.include_router(profile.router)
router.include_router(admin.router)
