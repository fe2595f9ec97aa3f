"""Catalogue scraping pipelines.

Every policy lists categories, paginates each category's product listing
and then fetches the detail record of every product found. They differ only
in how much concurrency each stage is allowed:

- naive: categories paginated one after another, details all at once
- dual-bounded: at most `list_products_concurrency` categories paginated at
  once, at most `get_product_concurrency` detail fetches in flight
- rate-limited: at most `rate_limited_list_concurrency` categories
  paginated at once, details fetched one at a time with a fixed delay
  before each call

Results are in no particular order. Any API failure aborts the run.
"""

import asyncio
import logging
import time
from itertools import chain
from typing import Iterable

from ..concurrency import concurrent_map, delayed_return
from ..config import ScraperSettings
from ..model import INITIAL_CURSOR, Category, Product, ProductDetail
from ..protocol import ProductsApi

logger = logging.getLogger(__name__)

POLICIES = {
    "naive": "scrape",
    "dual-bounded": "scrape_v2",
    "rate-limited": "scrape_v3",
}


class PaginationError(RuntimeError):
    """A category listing did not terminate within the page limit."""


class CatalogScraper:
    """Collects product details from a products API."""

    def __init__(self, api: ProductsApi, settings: ScraperSettings | None = None):
        self.api = api
        self.settings = settings or ScraperSettings()

    async def run(self, policy: str) -> list[ProductDetail]:
        """Run the scrape using the named policy."""
        try:
            method = getattr(self, POLICIES[policy])
        except KeyError:
            raise ValueError(
                f"Unknown policy '{policy}', expected one of: {', '.join(POLICIES)}"
            ) from None

        logger.info(f"Starting {policy} scrape")
        start = time.monotonic()
        details = await method()
        logger.info(
            f"Completed {policy} scrape: {len(details)} products in "
            f"{time.monotonic() - start:.2f}s"
        )
        return details

    async def get_products_by_category(self, category: Category) -> list[Product]:
        """Follow a category's listing cursor until it runs out."""
        products: list[Product] = []
        cursor = INITIAL_CURSOR
        pages = 0

        while True:
            if self.settings.max_pages is not None and pages >= self.settings.max_pages:
                raise PaginationError(
                    f"Category {category.id} exceeded {self.settings.max_pages} pages"
                )

            page = await self.api.list_products(category.id, cursor)
            pages += 1
            products.extend(page.result)

            if page.next_cursor is None:
                break
            cursor = page.next_cursor

        logger.debug(
            f"Category {category.id}: {len(products)} products in {pages} pages"
        )
        return products

    async def get_all_products_by_category(
        self, categories: Iterable[Category]
    ) -> list[Product]:
        """Paginate categories one after another."""
        products: list[Product] = []
        for category in categories:
            products.extend(await self.get_products_by_category(category))
        return products

    async def get_product_details(self, product: Product) -> ProductDetail:
        return await self.api.get_product(product.id)

    async def scrape(self) -> list[ProductDetail]:
        """Naive policy: sequential listings, unbounded detail fetches."""
        categories = await self.api.list_categories()
        products = await self.get_all_products_by_category(categories)
        logger.info(f"Found {len(products)} products in {len(categories)} categories")

        return list(
            await asyncio.gather(
                *(self.get_product_details(product) for product in products)
            )
        )

    async def scrape_v2(self) -> list[ProductDetail]:
        """Dual-bounded policy: capped listings and capped detail fetches."""
        categories = await self.api.list_categories()
        products = await self._collect_products(
            categories, self.settings.list_products_concurrency
        )

        return await concurrent_map(
            self.settings.get_product_concurrency,
            self.get_product_details,
            products,
        )

    async def scrape_v3(self) -> list[ProductDetail]:
        """Rate-limited policy: capped listings, one delayed detail fetch at a time."""
        categories = await self.api.list_categories()
        products = await self._collect_products(
            categories, self.settings.rate_limited_list_concurrency
        )

        delayed_get_product_details = delayed_return(
            self.settings.get_product_delay_ms, self.get_product_details
        )

        # The delay only spaces calls because each one is awaited before the next
        details = []
        for product in products:
            details.append(await delayed_get_product_details(product))
        return details

    async def _collect_products(
        self, categories: list[Category], concurrency: int
    ) -> list[Product]:
        """Paginate up to `concurrency` categories at once and flatten the result."""
        per_category = await concurrent_map(
            concurrency, self.get_products_by_category, categories
        )
        products = list(chain.from_iterable(per_category))
        logger.info(f"Found {len(products)} products in {len(categories)} categories")
        return products
