"""Redis-backed caching and rate limiting."""

from recipe_keeper.cache.rate_limit import (
    ActionRateLimiter,
    RateLimitDecision,
    create_action_limiter,
    limiter,
    setup_rate_limiting,
)
from recipe_keeper.cache.redis import (
    check_redis_health,
    close_redis_pools,
    get_cache_client,
    init_redis_pools,
)
from recipe_keeper.cache.store import JsonCache, cache


__all__ = [
    "ActionRateLimiter",
    "JsonCache",
    "RateLimitDecision",
    "cache",
    "check_redis_health",
    "close_redis_pools",
    "create_action_limiter",
    "get_cache_client",
    "init_redis_pools",
    "limiter",
    "setup_rate_limiting",
]
