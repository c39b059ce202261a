"""Application configuration using Pydantic Settings with YAML support.

Configuration is layered from:
- YAML files under ``config/base/``, grouped by domain
- Per-environment overrides under ``config/environments/{APP_ENV}/``
- A ``.env`` file and environment variables (secrets live only here)
"""

from __future__ import annotations

from enum import StrEnum
from functools import lru_cache
from typing import TYPE_CHECKING, Annotated

from pydantic import BaseModel, BeforeValidator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .yaml_source import MultiYamlConfigSettingsSource


if TYPE_CHECKING:
    from pydantic_settings import PydanticBaseSettingsSource


# Resend builds ship with this placeholder key; treat it as "not configured".
DUMMY_RESEND_KEY = "re_dummy_key_for_build"


class AuthMode(StrEnum):
    """How bearer tokens are validated.

    - LOCAL_JWT: verify the auth provider's HS256 access tokens with the shared secret
    - HEADER: trust X-User-* headers set by a gateway (development only)
    - DISABLED: every request is an anonymous user (tests only)
    """

    LOCAL_JWT = "local_jwt"
    HEADER = "header"
    DISABLED = "disabled"


def parse_list(v: str | list[str]) -> list[str]:
    """Parse comma-separated string or list into list of strings."""
    if isinstance(v, str):
        return [x.strip() for x in v.split(",") if x.strip()]
    return v


# =============================================================================
# Nested Configuration Models (from YAML)
# =============================================================================


class AppSettings(BaseModel):
    """Application identity settings."""

    name: str = "Family Recipe Keeper API"
    version: str = "0.1.0"
    debug: bool = False
    # Public URL of the web frontend, used in emails and billing redirects.
    public_url: str = "http://localhost:3004"


class ServerSettings(BaseModel):
    """Server configuration settings."""

    host: str = "127.0.0.1"
    port: int = 8000


class ApiSettings(BaseModel):
    """API configuration settings."""

    v1_prefix: str = "/api/v1"
    cors_origins: list[str] = []


class JwtSettings(BaseModel):
    """JWT token settings."""

    algorithm: str = "HS256"


class AuthHeaderSettings(BaseModel):
    """Header-based auth settings."""

    user_id: str = "X-User-ID"
    email: str = "X-User-Email"
    roles: str = "X-User-Roles"


class AuthJwtValidationSettings(BaseModel):
    """JWT validation settings."""

    issuer: str | None = None
    audience: list[str] = ["authenticated"]


class AuthSettings(BaseModel):
    """Authentication configuration settings."""

    mode: str = "local_jwt"
    jwt: JwtSettings = JwtSettings()
    headers: AuthHeaderSettings = AuthHeaderSettings()
    jwt_validation: AuthJwtValidationSettings = AuthJwtValidationSettings()


class RedisSettings(BaseModel):
    """Redis configuration settings."""

    host: str = "localhost"
    port: int = 6379
    user: str | None = None
    cache_db: int = 0
    rate_limit_db: int = 2


class DatabaseSettings(BaseModel):
    """PostgreSQL database configuration settings."""

    host: str = "localhost"
    port: int = 5432
    name: str = "postgres"
    db_schema: str = "public"
    user: str | None = None
    min_pool_size: int = 2
    max_pool_size: int = 10
    command_timeout: float = 30.0
    # Transaction-mode poolers (pgbouncer, Supavisor) need this set to 0.
    statement_cache_size: int = 100
    ssl: bool = False


class RateLimitActionSettings(BaseModel):
    """A named rate limit, e.g. ``10/hour``, with its user-facing label."""

    limit: str
    label: str


def _default_rate_limit_actions() -> dict[str, RateLimitActionSettings]:
    return {
        "import": RateLimitActionSettings(limit="10/hour", label="recipe import"),
        "variation": RateLimitActionSettings(
            limit="10/day", label="recipe variation"
        ),
        "image": RateLimitActionSettings(limit="10/day", label="image generation"),
        "api": RateLimitActionSettings(limit="100/minute", label="API requests"),
        "invitation": RateLimitActionSettings(
            limit="10/hour", label="cookbook invitation"
        ),
        "auth": RateLimitActionSettings(
            limit="5 per 15 minutes", label="authentication"
        ),
    }


class RateLimitingSettings(BaseModel):
    """Rate limiting configuration."""

    enabled: bool = True
    default: str = "100/minute"
    key_prefix: str = "ratelimit"
    actions: dict[str, RateLimitActionSettings] = _default_rate_limit_actions()


class LoggingSettings(BaseModel):
    """Logging configuration settings."""

    level: str = "INFO"
    format: str = "json"


class MetricsSettings(BaseModel):
    """Metrics configuration settings."""

    enabled: bool = True


class ErrorTrackingSettings(BaseModel):
    """Error tracker (Sentry) settings."""

    enabled: bool = True
    traces_sample_rate: float = 0.0
    environment: str | None = None


class TracingSettings(BaseModel):
    """OpenTelemetry tracing settings."""

    enabled: bool = False
    otlp_endpoint: str | None = None
    insecure: bool = True


class ObservabilitySettings(BaseModel):
    """Observability configuration settings."""

    metrics: MetricsSettings = MetricsSettings()
    tracing: TracingSettings = TracingSettings()
    error_tracking: ErrorTrackingSettings = ErrorTrackingSettings()


class BillingSettings(BaseModel):
    """Subscription billing configuration."""

    monthly_price_id: str = ""
    annual_price_id: str = ""
    free_recipe_limit: int = 25
    premium_recipe_limit: int = 999999
    monthly_price: float = 9.99
    # Annual plan price expressed per month.
    annual_monthly_price: float = 8.25
    timeout: float = 15.0


class EmailSettings(BaseModel):
    """Transactional email configuration."""

    api_url: str = "https://api.resend.com"
    from_address: str = "My Family Recipe Keeper <noreply@recipekeeper.app>"
    timeout: float = 10.0


class StorageSettings(BaseModel):
    """Object storage configuration."""

    url: str = "http://localhost:54321"
    bucket: str = "recipe-images"
    max_file_size: int = 5 * 1024 * 1024
    allowed_types: list[str] = [
        "image/jpeg",
        "image/jpg",
        "image/png",
        "image/webp",
        "image/gif",
    ]
    timeout: float = 30.0


class ImageGenerationSettings(BaseModel):
    """AI image generation configuration."""

    url: str = "https://fal.run"
    model: str = "fal-ai/flux/schnell"
    image_size: str = "landscape_16_9"
    num_inference_steps: int = 4
    max_variations: int = 4
    timeout: float = 60.0


class RecipeImportSettings(BaseModel):
    """AI recipe import configuration."""

    url: str = "https://generativelanguage.googleapis.com/v1beta"
    model: str = "gemini-2.0-flash"
    timeout: float = 60.0
    max_retries: int = 2
    requests_per_minute: float = 15.0
    temperature: float = 0.1
    max_output_tokens: int = 2048
    # USD per million tokens.
    input_cost_per_million: float = 0.075
    output_cost_per_million: float = 0.30


class RecipeVariationSettings(BaseModel):
    """AI recipe variation configuration."""

    # Variations a free account may generate per calendar month.
    free_monthly_limit: int = 5
    input_cost_per_million: float = 0.075
    output_cost_per_million: float = 0.30


class NutritionSettings(BaseModel):
    """USDA FoodData Central configuration."""

    url: str = "https://api.nal.usda.gov/fdc/v1"
    data_type: str = "Survey (FNDDS)"
    # Used when a recipe's servings text has no number in it.
    default_servings: int = 4
    requests_per_minute: float = 60.0
    timeout: float = 10.0


# =============================================================================
# Main Settings Class
# =============================================================================


class Settings(BaseSettings):
    """Application settings with YAML + environment variable support.

    Configuration is loaded from multiple sources with the following priority
    (highest to lowest):
    1. Environment variables
    2. .env file (secrets only)
    3. Environment-specific YAML files (config/environments/{APP_ENV}/)
    4. Base YAML files (config/base/)
    5. Default values in code

    Environment variables can override any setting using the nested delimiter '__'.
    For example: BILLING__MONTHLY_PRICE_ID=price_123 overrides billing.monthly_price_id.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_ignore_empty=True,
        extra="ignore",
        case_sensitive=False,
        env_nested_delimiter="__",
    )

    APP_ENV: str = "development"

    # =========================================================================
    # Nested Configuration Sections (from YAML)
    # =========================================================================
    app: AppSettings = AppSettings()
    server: ServerSettings = ServerSettings()
    api: ApiSettings = ApiSettings()
    auth: AuthSettings = AuthSettings()
    redis: RedisSettings = RedisSettings()
    database: DatabaseSettings = DatabaseSettings()
    rate_limiting: RateLimitingSettings = RateLimitingSettings()
    logging: LoggingSettings = LoggingSettings()
    observability: ObservabilitySettings = ObservabilitySettings()
    billing: BillingSettings = BillingSettings()
    email: EmailSettings = EmailSettings()
    storage: StorageSettings = StorageSettings()
    image_generation: ImageGenerationSettings = ImageGenerationSettings()
    recipe_import: RecipeImportSettings = RecipeImportSettings()
    recipe_variations: RecipeVariationSettings = RecipeVariationSettings()
    nutrition: NutritionSettings = NutritionSettings()

    # =========================================================================
    # Secrets (from .env only - never in YAML)
    # =========================================================================
    JWT_SECRET_KEY: str = ""
    REDIS_PASSWORD: str = ""
    DATABASE_PASSWORD: str = ""
    SENTRY_DSN: str | None = None
    STRIPE_SECRET_KEY: str = ""
    STRIPE_WEBHOOK_SECRET: str = ""
    RESEND_API_KEY: str = ""
    FAL_KEY: str = ""
    GOOGLE_AI_API_KEY: str = ""
    # USDA issues a shared, heavily throttled demo key.
    USDA_API_KEY: str = "DEMO_KEY"
    STORAGE_SERVICE_KEY: str = ""

    # Always treated as super admins, in addition to the admin_users table.
    SUPER_ADMIN_EMAILS: Annotated[list[str], BeforeValidator(parse_list)] = []

    # Extra origins allowed in addition to api.cors_origins (comma-separated).
    EXTRA_CORS_ORIGINS: Annotated[list[str], BeforeValidator(parse_list)] = []

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Put YAML below the environment and above Docker secrets."""
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            MultiYamlConfigSettingsSource(settings_cls),
            file_secret_settings,
        )

    # =========================================================================
    # Computed Fields
    # =========================================================================

    @property
    def auth_mode_enum(self) -> AuthMode:
        """Get auth mode as enum with validation."""
        try:
            return AuthMode(self.auth.mode.lower())
        except ValueError:
            msg = (
                f"Invalid auth mode: {self.auth.mode}. "
                f"Must be one of: {', '.join(m.value for m in AuthMode)}"
            )
            raise ValueError(msg) from None

    @property
    def cors_origins(self) -> list[str]:
        """All allowed CORS origins."""
        return [*self.api.cors_origins, *self.EXTRA_CORS_ORIGINS]

    def _build_redis_url(self, db: int) -> str:
        """Build a ``redis://[user:password@]host:port/db`` URL."""
        auth_part = ""
        if self.redis.user and self.REDIS_PASSWORD:
            auth_part = f"{self.redis.user}:{self.REDIS_PASSWORD}@"
        elif self.REDIS_PASSWORD:
            auth_part = f":{self.REDIS_PASSWORD}@"
        elif self.redis.user:
            auth_part = f"{self.redis.user}@"

        return f"redis://{auth_part}{self.redis.host}:{self.redis.port}/{db}"

    @property
    def redis_cache_url(self) -> str:
        """Build Redis cache connection URL."""
        return self._build_redis_url(self.redis.cache_db)

    @property
    def redis_rate_limit_url(self) -> str:
        """Build Redis rate limit connection URL."""
        return self._build_redis_url(self.redis.rate_limit_db)

    @property
    def billing_enabled(self) -> bool:
        """Whether Stripe credentials are configured."""
        return bool(self.STRIPE_SECRET_KEY)

    @property
    def email_enabled(self) -> bool:
        """Whether a real Resend key is configured."""
        return bool(self.RESEND_API_KEY) and self.RESEND_API_KEY != DUMMY_RESEND_KEY

    # =========================================================================
    # Environment Helpers
    # =========================================================================

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.APP_ENV == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.APP_ENV == "production"

    @property
    def is_non_production(self) -> bool:
        """Local, test and development environments get docs and verbose errors."""
        return self.APP_ENV in ("local", "test", "development")

    @property
    def is_testing(self) -> bool:
        """Check if running in test environment."""
        return self.APP_ENV == "test"


@lru_cache
def get_settings() -> Settings:
    """Return the process-wide settings instance."""
    return Settings()


settings = get_settings()
