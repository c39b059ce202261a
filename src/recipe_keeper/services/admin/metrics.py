"""Dashboard metrics derived from raw counts.

Revenue figures assume list prices: monthly plans at 9.99 and annual plans
at 8.25 per month. LTV assumes an 80% gross margin.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING, Any

from recipe_keeper.cache.store import cache
from recipe_keeper.database.repositories.admin import DashboardCounts
from recipe_keeper.schemas.admin import (
    ActivationMetrics,
    CookbookMetrics,
    DashboardMetricsResponse,
    EventMetrics,
    PromoMetrics,
    RecipeMetrics,
    SubscriptionMetrics,
    TierCounts,
    UserMetrics,
)


if TYPE_CHECKING:
    from recipe_keeper.core.config.settings import BillingSettings
    from recipe_keeper.database.repositories.admin import AdminRepository


GROSS_MARGIN = 0.80

# Dashboard counts are shared by every admin.
DASHBOARD_CACHE_KEY = "admin:dashboard-counts"
DASHBOARD_CACHE_TTL = 60


def metric_windows(now: datetime) -> tuple[datetime, datetime, datetime]:
    """Return the start of the month, 30 days ago and one year ago."""
    month_start = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    try:
        year_ago = now.replace(year=now.year - 1)
    except ValueError:
        # 29 February
        year_ago = now.replace(year=now.year - 1, day=28)
    return month_start, now - timedelta(days=30), year_ago


def _subscription_metrics(
    counts: DashboardCounts, billing: BillingSettings
) -> SubscriptionMetrics:
    active = counts.active_monthly + counts.active_annual
    mrr = (
        counts.active_monthly * billing.monthly_price
        + counts.active_annual * billing.annual_monthly_price
    )
    arpu = round(mrr / counts.total_subscriptions, 2) if counts.total_subscriptions else 0.0

    average_customers = (active + counts.canceled_subscriptions) / 2 or 1
    churn = counts.churn_last_year / average_customers
    ltv = round(arpu * GROSS_MARGIN * 12 / churn, 2) if churn > 0 else 0.0

    return SubscriptionMetrics(
        active=active,
        canceled=counts.canceled_subscriptions,
        mrr=round(mrr, 2),
        arr=round(mrr * 12, 2),
        arpu=arpu,
        ltv=ltv,
        churn_rate=round(churn * 100, 2),
    )


def build_dashboard(
    counts: DashboardCounts,
    billing: BillingSettings,
    *,
    generated_at: datetime,
) -> DashboardMetricsResponse:
    """Turn raw counts into the dashboard payload."""
    average_per_user = (
        round(counts.total_recipes / counts.total_users, 1) if counts.total_users else 0.0
    )
    activation_rate = (
        round(counts.users_with_recipes / counts.total_users * 100, 2)
        if counts.total_users
        else 0.0
    )

    return DashboardMetricsResponse(
        users=UserMetrics(
            total=counts.total_users,
            active=counts.active_users,
            new_this_month=counts.new_users_this_month,
            by_tier=TierCounts(
                free=counts.free_subscriptions,
                monthly=counts.active_monthly,
                annual=counts.active_annual,
                promo=counts.promo_users,
            ),
        ),
        recipes=RecipeMetrics(
            total=counts.total_recipes,
            this_month=counts.recipes_this_month,
            average_per_user=average_per_user,
        ),
        cookbooks=CookbookMetrics(
            total=counts.total_cookbooks,
            shared=counts.shared_cookbooks,
            max_members=counts.max_members,
        ),
        subscriptions=_subscription_metrics(counts, billing),
        activation=ActivationMetrics(
            activated_users=counts.users_with_recipes,
            total_users=counts.total_users,
            activation_rate=activation_rate,
        ),
        promos=PromoMetrics(
            active_codes=counts.active_promo_codes,
            total_uses=counts.promo_users,
        ),
        events=EventMetrics(
            churn_this_month=counts.churn_this_month,
            total_churn=counts.total_churn,
        ),
        generated_at=generated_at,
    )


async def load_dashboard(
    repository: AdminRepository,
    billing: BillingSettings,
    now: datetime | None = None,
) -> DashboardMetricsResponse:
    """Query the counts (cached briefly in Redis) and derive the dashboard."""
    current = now or datetime.now(UTC)
    month_start, thirty_days_ago, year_ago = metric_windows(current)

    async def fetch_counts() -> dict[str, Any]:
        counts = await repository.get_dashboard_counts(
            month_start, thirty_days_ago, year_ago
        )
        return counts.model_dump()

    raw = await cache.get_or_set(
        DASHBOARD_CACHE_KEY, fetch_counts, ttl=DASHBOARD_CACHE_TTL
    )
    return build_dashboard(
        DashboardCounts.model_validate(raw), billing, generated_at=current
    )


def metrics_rows(metrics: DashboardMetricsResponse) -> list[tuple[str, str]]:
    """Flatten the dashboard into ``(Metric, Value)`` export rows."""
    users, recipes, books = metrics.users, metrics.recipes, metrics.cookbooks
    subs, activation, events = metrics.subscriptions, metrics.activation, metrics.events
    rows: list[tuple[str, object]] = [
        ("Total Users", users.total),
        ("Active Users (30d)", users.active),
        ("New Users This Month", users.new_this_month),
        ("Free Users", users.by_tier.free),
        ("Monthly Subscribers", users.by_tier.monthly),
        ("Annual Subscribers", users.by_tier.annual),
        ("Promo Users", users.by_tier.promo),
        ("Total Recipes", recipes.total),
        ("Recipes This Month", recipes.this_month),
        ("Avg Recipes/User", recipes.average_per_user),
        ("Total Cookbooks", books.total),
        ("Shared Cookbooks", books.shared),
        ("Max Cookbook Members", books.max_members),
        ("MRR", f"${subs.mrr}"),
        ("ARR", f"${subs.arr}"),
        ("ARPU", f"${subs.arpu}"),
        ("LTV", f"${subs.ltv}"),
        ("Churn Rate", f"{subs.churn_rate}%"),
        ("Churn This Month", events.churn_this_month),
        ("Total Churn", events.total_churn),
        ("Activation Rate", f"{activation.activation_rate}%"),
        ("Activated Users", activation.activated_users),
        ("Active Promo Codes", metrics.promos.active_codes),
        ("Promo Code Uses", metrics.promos.total_uses),
    ]
    return [(name, str(value)) for name, value in rows]
