"""Rate limiting backed by Redis sliding windows.

Two layers share the ``limits`` engine:

- a global slowapi ``Limiter`` applied by middleware to every route, keyed
  by user id (falling back to client IP)
- ``ActionRateLimiter`` for named, more expensive actions such as AI
  imports or invitations, checked explicitly inside handlers

Both fail open: if Redis is unreachable the request is allowed and a
warning is logged.
"""

from __future__ import annotations

import asyncio
import math
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING

from jose import JWTError, jwt
from limits import RateLimitItem, parse
from limits.storage import storage_from_string
from limits.strategies import MovingWindowRateLimiter
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address
from starlette.responses import JSONResponse

from recipe_keeper.core.config import get_settings
from recipe_keeper.core.exceptions import RateLimitException
from recipe_keeper.observability.logging import get_logger
from recipe_keeper.observability.metrics import RATE_LIMIT_REJECTIONS


if TYPE_CHECKING:
    from fastapi import FastAPI
    from starlette.requests import Request

    from recipe_keeper.core.config.settings import RateLimitActionSettings

logger = get_logger(__name__)


# =============================================================================
# Global request limit (slowapi)
# =============================================================================


def _bearer_subject(request: Request) -> str | None:
    """Read ``sub`` from the bearer token without verifying it.

    The middleware runs before authentication, so the token is not trusted
    here; it only decides which bucket a request counts against.
    """
    header = request.headers.get("authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not token:
        return None
    try:
        claims = jwt.get_unverified_claims(token)
    except JWTError:
        return None
    subject = claims.get("sub")
    return str(subject) if subject else None


def _get_rate_limit_key(request: Request) -> str:
    """Key requests by user where possible, otherwise by client address."""
    user = getattr(request.state, "user", None)
    if user is not None:
        return f"user:{user.id}"
    subject = _bearer_subject(request)
    if subject:
        return f"user:{subject}"
    return f"ip:{get_remote_address(request)}"


def create_limiter() -> Limiter:
    """Build the global limiter from settings."""
    settings = get_settings()
    return Limiter(
        key_func=_get_rate_limit_key,
        default_limits=[settings.rate_limiting.default],
        storage_uri=settings.redis_rate_limit_url,
        strategy="moving-window",
        key_prefix=f"{settings.rate_limiting.key_prefix}:api",
        enabled=settings.rate_limiting.enabled,
        swallow_errors=True,
        headers_enabled=True,
    )


limiter = create_limiter()


async def rate_limit_exceeded_handler(
    request: Request,
    exc: Exception,
) -> JSONResponse:
    """Render slowapi rejections in the standard error shape."""
    assert isinstance(exc, RateLimitExceeded)
    logger.warning("Rate limit exceeded", path=request.url.path, limit=str(exc.detail))
    RATE_LIMIT_REJECTIONS.labels(action="api").inc()

    return JSONResponse(
        status_code=429,
        content={
            "error": "RATE_LIMIT_EXCEEDED",
            "message": f"Too many requests ({exc.detail}). Please try again later.",
            "details": None,
            "request_id": getattr(request.state, "request_id", None),
        },
    )


def setup_rate_limiting(app: FastAPI) -> None:
    """Attach the global limiter, its middleware and its error handler."""
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
    app.add_middleware(SlowAPIMiddleware)
    logger.info("Rate limiting configured", default=get_settings().rate_limiting.default)


# =============================================================================
# Named action limits
# =============================================================================


@dataclass(frozen=True)
class RateLimitDecision:
    """Outcome of a single rate limit check."""

    allowed: bool
    limit: int | None = None
    remaining: int | None = None
    reset_at: float | None = None
    message: str | None = None

    @property
    def headers(self) -> dict[str, str]:
        if self.limit is None:
            return {}
        headers = {
            "X-RateLimit-Limit": str(self.limit),
            "X-RateLimit-Remaining": str(self.remaining or 0),
        }
        if self.reset_at is not None:
            headers["X-RateLimit-Reset"] = str(int(self.reset_at))
            if not self.allowed:
                retry_after = max(0, math.ceil(self.reset_at - time.time()))
                headers["Retry-After"] = str(retry_after)
        return headers


def format_retry_message(label: str, reset_at: float, now: float | None = None) -> str:
    """Build the user-facing message for a rejected action.

    Args:
        label: Human-readable action name, e.g. ``recipe import``.
        reset_at: Epoch seconds at which the window frees a slot.
        now: Current epoch seconds; defaults to ``time.time()``.

    Returns:
        A message such as ``"... try again in 5 minutes."``.
    """
    current = time.time() if now is None else now
    minutes = max(1, math.ceil((reset_at - current) / 60))
    plural = "" if minutes == 1 else "s"
    return (
        f"Rate limit exceeded for {label}. "
        f"You can try again in {minutes} minute{plural}."
    )


class ActionRateLimiter:
    """Sliding-window limits for named actions.

    ``limits`` storage is synchronous, so each check runs in a worker thread.
    """

    def __init__(
        self,
        storage_uri: str,
        actions: dict[str, RateLimitActionSettings],
        *,
        key_prefix: str = "ratelimit",
        enabled: bool = True,
    ) -> None:
        self._storage = storage_from_string(storage_uri)
        self._strategy = MovingWindowRateLimiter(self._storage)
        self._rules: dict[str, tuple[RateLimitItem, str]] = {
            name: (parse(config.limit), config.label) for name, config in actions.items()
        }
        self._key_prefix = key_prefix
        self.enabled = enabled

    def rule(self, action: str) -> tuple[RateLimitItem, str]:
        try:
            return self._rules[action]
        except KeyError:
            msg = f"Unknown rate limit action: {action}"
            raise ValueError(msg) from None

    def _hit(self, item: RateLimitItem, key: str) -> RateLimitDecision:
        allowed = self._strategy.hit(item, self._key_prefix, key)
        stats = self._strategy.get_window_stats(item, self._key_prefix, key)
        return RateLimitDecision(
            allowed=allowed,
            limit=item.amount,
            remaining=stats.remaining,
            reset_at=stats.reset_time,
        )

    async def check(self, action: str, identifier: str) -> RateLimitDecision:
        """Count one attempt of ``action`` by ``identifier``.

        Args:
            action: Configured action name, e.g. ``import``.
            identifier: User id or client IP.

        Returns:
            The decision. Storage failures produce an allowing decision.
        """
        item, label = self.rule(action)
        if not self.enabled:
            return RateLimitDecision(allowed=True)

        key = f"{action}:{identifier}"
        try:
            decision = await asyncio.to_thread(self._hit, item, key)
        except Exception as e:  # noqa: BLE001
            logger.warning(
                "Rate limit check failed, allowing request",
                action=action,
                error=str(e),
            )
            return RateLimitDecision(allowed=True)

        if decision.allowed:
            return decision

        RATE_LIMIT_REJECTIONS.labels(action=action).inc()
        logger.warning("Action rate limit exceeded", action=action, identifier=identifier)
        return RateLimitDecision(
            allowed=False,
            limit=decision.limit,
            remaining=0,
            reset_at=decision.reset_at,
            message=format_retry_message(label, decision.reset_at or time.time()),
        )

    async def enforce(self, action: str, identifier: str) -> RateLimitDecision:
        """Like :meth:`check`, but raise ``RateLimitException`` on rejection."""
        decision = await self.check(action, identifier)
        if not decision.allowed:
            raise RateLimitException(
                message=decision.message or "Rate limit exceeded",
                headers=decision.headers,
            )
        return decision


def create_action_limiter() -> ActionRateLimiter:
    """Build the named-action limiter from settings."""
    settings = get_settings()
    return ActionRateLimiter(
        settings.redis_rate_limit_url,
        settings.rate_limiting.actions,
        key_prefix=settings.rate_limiting.key_prefix,
        enabled=settings.rate_limiting.enabled,
    )
