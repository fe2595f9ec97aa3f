"""In-memory products API with simulated latency and load limits."""

import asyncio
import logging
import random
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Generator, Mapping, Sequence

from ..model import Category, Cursor, Page, Product, ProductDetail
from .errors import (
    ApiBadRequestError,
    ApiNotFoundError,
    ApiOverloadError,
    ApiRateLimitError,
)

logger = logging.getLogger(__name__)

ENDPOINTS = ("list_categories", "list_products", "get_product")


@dataclass
class EndpointStats:
    """Call statistics for one API endpoint."""

    calls: int = 0
    rejected: int = 0
    in_flight: int = 0
    max_in_flight: int = 0
    started_at: list[float] = field(default_factory=list)

    def start_intervals(self) -> list[float]:
        """Seconds between consecutive call start times."""
        return [b - a for a, b in zip(self.started_at, self.started_at[1:])]


class SimulatedProductsApi:
    """Products API backed by an in-memory catalogue.

    Listing pages use the integer offset of the next page as cursor. Every
    call sleeps for the configured latency. Optional limits make the API
    misbehave the way an overloaded remote service would: calls beyond
    max_concurrent_list / max_concurrent_get simultaneous requests raise
    ApiOverloadError, and get_product calls starting less than
    min_get_interval_ms apart raise ApiRateLimitError.
    """

    def __init__(
        self,
        catalogue: Mapping[str, Sequence[ProductDetail]],
        page_size: int = 5,
        latency_ms: float = 0,
        jitter_ms: float = 0,
        seed: int = 0,
        max_concurrent_list: int | None = None,
        max_concurrent_get: int | None = None,
        min_get_interval_ms: float | None = None,
    ):
        if page_size < 1:
            raise ValueError(f"page_size must be a positive integer, got {page_size!r}")

        self.catalogue = {
            category_id: list(products) for category_id, products in catalogue.items()
        }
        self.page_size = page_size
        self.latency_ms = latency_ms
        self.jitter_ms = jitter_ms
        self.max_concurrent_list = max_concurrent_list
        self.max_concurrent_get = max_concurrent_get
        self.min_get_interval_ms = min_get_interval_ms

        self._rng = random.Random(seed)
        self._details = {
            product.id: product
            for products in self.catalogue.values()
            for product in products
        }
        self.stats = {endpoint: EndpointStats() for endpoint in ENDPOINTS}

    @classmethod
    def generate(
        cls,
        categories: int,
        products_per_category: int,
        seed: int = 0,
        **kwargs,
    ) -> "SimulatedProductsApi":
        """Build an API over a generated catalogue."""
        rng = random.Random(seed)
        catalogue = {}
        for c in range(1, categories + 1):
            category_id = f"cat-{c:02d}"
            catalogue[category_id] = [
                ProductDetail(
                    id=f"{category_id}-p{p:03d}",
                    name=f"Product {p} in category {c}",
                    price=round(rng.uniform(1, 500), 2),
                    description=f"Generated product {p} of {category_id}",
                )
                for p in range(1, products_per_category + 1)
            ]

        logger.debug(
            f"Generated catalogue with {categories} categories of "
            f"{products_per_category} products"
        )
        return cls(catalogue, seed=seed, **kwargs)

    async def list_categories(self) -> list[Category]:
        with self._track("list_categories"):
            await self._latency()
            return [Category(id=category_id) for category_id in self.catalogue]

    async def list_products(self, category_id: str, cursor: Cursor) -> Page:
        with self._track("list_products", self.max_concurrent_list):
            await self._latency()

            if category_id not in self.catalogue:
                raise ApiNotFoundError(f"Unknown category: {category_id}")

            products = self.catalogue[category_id]
            if (
                isinstance(cursor, bool)
                or not isinstance(cursor, int)
                or not 0 <= cursor <= len(products)
            ):
                raise ApiBadRequestError(
                    f"Invalid cursor {cursor!r} for category {category_id}"
                )

            end = cursor + self.page_size
            return Page(
                next_cursor=end if end < len(products) else None,
                result=[Product(id=p.id) for p in products[cursor:end]],
            )

    async def get_product(self, product_id: str) -> ProductDetail:
        with self._track("get_product", self.max_concurrent_get):
            await self._latency()

            try:
                return self._details[product_id]
            except KeyError:
                raise ApiNotFoundError(f"Unknown product: {product_id}") from None

    @contextmanager
    def _track(
        self, endpoint: str, limit: int | None = None
    ) -> Generator[None, None, None]:
        """Record a call and apply the endpoint's load limits."""
        stats = self.stats[endpoint]
        now = time.monotonic()

        if limit is not None and stats.in_flight >= limit:
            stats.rejected += 1
            raise ApiOverloadError(
                f"{endpoint}: more than {limit} simultaneous calls"
            )

        if (
            endpoint == "get_product"
            and self.min_get_interval_ms is not None
            and stats.started_at
            and (now - stats.started_at[-1]) * 1000 < self.min_get_interval_ms
        ):
            stats.rejected += 1
            raise ApiRateLimitError(
                f"{endpoint}: calls less than {self.min_get_interval_ms}ms apart"
            )

        stats.calls += 1
        stats.in_flight += 1
        stats.max_in_flight = max(stats.max_in_flight, stats.in_flight)
        stats.started_at.append(now)
        try:
            yield
        finally:
            stats.in_flight -= 1

    async def _latency(self) -> None:
        delay = self.latency_ms
        if self.jitter_ms:
            delay += self._rng.uniform(0, self.jitter_ms)
        await asyncio.sleep(delay / 1000)
