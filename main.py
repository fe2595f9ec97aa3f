"""CLI interface for the product catalogue scraper."""

import asyncio
import json
import logging
import sys
import time
from enum import Enum

import typer

from prodscrape.api import SimulatedProductsApi
from prodscrape.config import ScraperSettings, get_settings
from prodscrape.scraper import CatalogScraper

app = typer.Typer(help="Bounded-concurrency product catalogue scraper")

logger = logging.getLogger("prodscrape.cli")


class Policy(str, Enum):
    naive = "naive"
    dual_bounded = "dual-bounded"
    rate_limited = "rate-limited"


def setup_logging(settings: ScraperSettings) -> None:
    """Configure logging for the CLI."""
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper()),
        format=settings.log_format,
        handlers=[
            logging.StreamHandler(sys.stderr),
        ],
    )


def build_api(
    settings: ScraperSettings, policy: Policy, enforce_limits: bool
) -> SimulatedProductsApi:
    """Create the simulated API, optionally enforcing the policy's limits."""
    limits = {}
    if enforce_limits:
        if policy == Policy.rate_limited:
            limits = dict(
                max_concurrent_list=settings.rate_limited_list_concurrency,
                max_concurrent_get=1,
                min_get_interval_ms=settings.get_product_delay_ms,
            )
        else:
            # The naive policy is held to the dual-bounded limits
            limits = dict(
                max_concurrent_list=settings.list_products_concurrency,
                max_concurrent_get=settings.get_product_concurrency,
            )

    return SimulatedProductsApi.generate(
        settings.api_categories,
        settings.api_products_per_category,
        seed=settings.api_seed,
        page_size=settings.api_page_size,
        latency_ms=settings.api_latency_ms,
        jitter_ms=settings.api_jitter_ms,
        **limits,
    )


@app.command()
def categories():
    """Show the categories offered by the simulated API."""
    settings = get_settings()
    setup_logging(settings)

    api = build_api(settings, Policy.naive, enforce_limits=False)
    for category in asyncio.run(api.list_categories()):
        typer.echo(f"  - {category.id}")


@app.command()
def scrape(
    policy: Policy = typer.Option(
        Policy.dual_bounded,
        "--policy",
        "-p",
        help="Concurrency policy used to fetch listings and product details",
    ),
    output: str | None = typer.Option(
        None,
        "--output",
        "-o",
        help="Output file path. If not specified, prints to stdout.",
    ),
    enforce_limits: bool | None = typer.Option(
        None,
        "--enforce-limits/--no-enforce-limits",
        help="Make the simulated API fail when the policy exceeds its limits.",
    ),
):
    """Scrape every product detail and output them as JSON."""
    settings = get_settings()
    setup_logging(settings)

    if enforce_limits is None:
        enforce_limits = settings.api_enforce_limits

    api = build_api(settings, policy, enforce_limits)
    scraper = CatalogScraper(api, settings)

    start = time.monotonic()
    try:
        products = asyncio.run(scraper.run(policy.value))
    except Exception as e:
        logger.error(f"Scrape failed: {e}", exc_info=True)
        typer.echo(f"Error: {policy.value} scrape failed: {e}", err=True)
        raise typer.Exit(1)
    elapsed = time.monotonic() - start

    json_data = json.dumps([product.model_dump() for product in products], indent=2)

    if output:
        with open(output, "w") as f:
            f.write(json_data)
        typer.echo(f"Results saved to {output}", err=True)
    else:
        typer.echo(json_data)

    typer.echo(
        f"Successfully scraped {len(products)} products using the {policy.value} "
        f"policy in {elapsed:.2f}s",
        err=True,
    )


if __name__ == "__main__":
    app()
