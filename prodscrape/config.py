"""Configuration management using pydantic-settings."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ScraperSettings(BaseSettings):
    """Scraper configuration loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="PRODSCRAPE_",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Pipeline limits
    list_products_concurrency: int = Field(
        default=2,
        description="Categories paginated at once by the dual-bounded policy",
        ge=1,
        le=100,
    )

    get_product_concurrency: int = Field(
        default=5,
        description="Product detail fetches in flight for the dual-bounded policy",
        ge=1,
        le=100,
    )

    rate_limited_list_concurrency: int = Field(
        default=3,
        description="Categories paginated at once by the rate-limited policy",
        ge=1,
        le=100,
    )

    get_product_delay_ms: int = Field(
        default=100,
        description="Delay before each product detail fetch in the rate-limited policy",
        ge=0,
        le=60_000,
    )

    max_pages: int | None = Field(
        default=None,
        description="Maximum listing pages fetched per category. Unlimited if not set.",
        ge=1,
    )

    # Simulated products API
    api_categories: int = Field(
        default=5,
        description="Number of categories in the simulated catalogue",
        ge=0,
        le=1000,
    )

    api_products_per_category: int = Field(
        default=20,
        description="Number of products per simulated category",
        ge=0,
        le=10_000,
    )

    api_page_size: int = Field(
        default=5,
        description="Products returned per listing page",
        ge=1,
        le=1000,
    )

    api_latency_ms: int = Field(
        default=20,
        description="Base latency of every simulated API call",
        ge=0,
        le=10_000,
    )

    api_jitter_ms: int = Field(
        default=10,
        description="Random extra latency added to every simulated API call",
        ge=0,
        le=10_000,
    )

    api_seed: int = Field(
        default=0,
        description="Seed for simulated catalogue contents and latency jitter",
    )

    api_enforce_limits: bool = Field(
        default=False,
        description="Make the simulated API fail when the policy limits are exceeded",
    )

    # Logging configuration
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )

    log_format: str = Field(
        default="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        description="Log message format string",
    )


def get_settings() -> ScraperSettings:
    """Get the application settings instance."""
    return ScraperSettings()
