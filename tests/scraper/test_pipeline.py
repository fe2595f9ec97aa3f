"""Tests for the catalogue scraping pipelines."""

import asyncio
import time

import pytest

from prodscrape.api import ApiNotFoundError, ApiOverloadError, SimulatedProductsApi
from prodscrape.config import ScraperSettings
from prodscrape.model import Category, Page, Product, ProductDetail
from prodscrape.scraper import POLICIES, CatalogScraper, PaginationError


class StubProductsApi:
    """Two-category API that records overlapping calls per endpoint."""

    PAGES = {
        ("a", 0): Page(next_cursor=1, result=[Product(id="p1")]),
        ("a", 1): Page(next_cursor=None, result=[Product(id="p2")]),
        ("b", 0): Page(next_cursor=None, result=[Product(id="p3")]),
    }

    def __init__(self, pages=None, latency=0.005):
        self.pages = pages or self.PAGES
        self.latency = latency
        self.active = {"list_products": 0, "get_product": 0}
        self.max_active = {"list_products": 0, "get_product": 0}
        self.get_product_calls = []

    async def _call(self, endpoint):
        self.active[endpoint] += 1
        self.max_active[endpoint] = max(self.max_active[endpoint], self.active[endpoint])
        try:
            await asyncio.sleep(self.latency)
        finally:
            self.active[endpoint] -= 1

    async def list_categories(self):
        return [Category(id=category_id) for category_id in dict.fromkeys(k[0] for k in self.pages)]

    async def list_products(self, category_id, cursor):
        await self._call("list_products")
        return self.pages[(category_id, cursor)]

    async def get_product(self, product_id):
        self.get_product_calls.append(product_id)
        await self._call("get_product")
        return ProductDetail(id=product_id, name=product_id, price=1, description="")


def expected_details(*ids):
    return {ProductDetail(id=i, name=i, price=1, description="") for i in ids}


class TestPagination:
    """Test cases for per-category pagination."""

    @pytest.mark.asyncio
    async def test_follows_cursor_until_null(self):
        """Test that every page is fetched and accumulated in order."""
        scraper = CatalogScraper(StubProductsApi())

        products = await scraper.get_products_by_category(Category(id="a"))

        assert products == [Product(id="p1"), Product(id="p2")]

    @pytest.mark.asyncio
    async def test_empty_page_with_cursor_continues(self):
        """Test that an empty page with a cursor does not end pagination."""
        pages = {
            ("a", 0): Page(next_cursor="x", result=[]),
            ("a", "x"): Page(next_cursor=None, result=[Product(id="p9")]),
        }
        scraper = CatalogScraper(StubProductsApi(pages))

        products = await scraper.get_products_by_category(Category(id="a"))

        assert products == [Product(id="p9")]

    @pytest.mark.asyncio
    async def test_page_limit(self):
        """Test that a listing that never ends hits the page limit."""

        class EndlessApi(StubProductsApi):
            async def list_products(self, category_id, cursor):
                return Page(next_cursor=cursor + 1, result=[Product(id=f"p{cursor}")])

        scraper = CatalogScraper(EndlessApi(), ScraperSettings(max_pages=3))

        with pytest.raises(PaginationError, match="exceeded 3 pages"):
            await scraper.get_products_by_category(Category(id="a"))

    @pytest.mark.asyncio
    async def test_all_categories_sequential(self):
        """Test that categories are paginated one at a time."""
        api = StubProductsApi()
        scraper = CatalogScraper(api)

        products = await scraper.get_all_products_by_category(await api.list_categories())

        assert [p.id for p in products] == ["p1", "p2", "p3"]
        assert api.max_active["list_products"] == 1


class TestPolicies:
    """Test cases shared by every scrape policy."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("policy", list(POLICIES))
    async def test_returns_every_product_once(self, policy):
        """Test that each policy returns exactly the three stub products."""
        api = StubProductsApi()
        scraper = CatalogScraper(api, ScraperSettings(get_product_delay_ms=10))

        details = await scraper.run(policy)

        assert len(details) == 3
        assert set(details) == expected_details("p1", "p2", "p3")
        assert sorted(api.get_product_calls) == ["p1", "p2", "p3"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("method", ["scrape", "scrape_v2", "scrape_v3"])
    async def test_generated_catalogue(self, method):
        """Test that detail fetches match the summaries across many pages."""
        api = SimulatedProductsApi.generate(4, 7, page_size=3)
        scraper = CatalogScraper(api, ScraperSettings(get_product_delay_ms=1))

        details = await getattr(scraper, method)()

        expected = {p for products in api.catalogue.values() for p in products}
        assert len(details) == 28
        assert set(details) == expected
        assert api.stats["get_product"].calls == 28

    @pytest.mark.asyncio
    @pytest.mark.parametrize("method", ["scrape", "scrape_v2", "scrape_v3"])
    async def test_upstream_failure_propagates(self, method):
        """Test that a failing listing call fails the whole run."""
        pages = dict(StubProductsApi.PAGES)
        del pages[("a", 1)]
        scraper = CatalogScraper(StubProductsApi(pages), ScraperSettings(get_product_delay_ms=1))

        with pytest.raises(KeyError):
            await getattr(scraper, method)()

    @pytest.mark.asyncio
    async def test_detail_failure_propagates(self):
        """Test that a failing detail fetch fails the run without partial results."""
        api = SimulatedProductsApi.generate(2, 3)
        del api._details["cat-02-p002"]

        with pytest.raises(ApiNotFoundError):
            await CatalogScraper(api).scrape_v2()

    @pytest.mark.asyncio
    async def test_detail_failure_propagates_unbounded(self):
        """Test that a failing detail fetch fails the naive run."""
        api = SimulatedProductsApi.generate(2, 3)
        del api._details["cat-01-p003"]

        with pytest.raises(ApiNotFoundError, match="cat-01-p003"):
            await CatalogScraper(api).scrape()

    @pytest.mark.asyncio
    async def test_unknown_policy(self):
        scraper = CatalogScraper(StubProductsApi())

        with pytest.raises(ValueError, match="Unknown policy 'eager'"):
            await scraper.run("eager")


class TestDualBounded:
    """Test cases for the dual-bounded policy."""

    @pytest.mark.asyncio
    async def test_respects_limits(self):
        """Test listing and detail concurrency never exceed 2 and 5."""
        api = SimulatedProductsApi.generate(7, 9, page_size=2, latency_ms=2)

        details = await CatalogScraper(api).scrape_v2()

        assert len(details) == 63
        assert api.stats["list_products"].max_in_flight == 2
        assert api.stats["get_product"].max_in_flight == 5

    @pytest.mark.asyncio
    async def test_passes_enforced_limits(self):
        """Test that an API enforcing the limits never rejects a call."""
        api = SimulatedProductsApi.generate(
            5, 6, page_size=2, latency_ms=2, max_concurrent_list=2, max_concurrent_get=5
        )

        details = await CatalogScraper(api).scrape_v2()

        assert len(details) == 30
        assert api.stats["list_products"].rejected == 0
        assert api.stats["get_product"].rejected == 0

    @pytest.mark.asyncio
    async def test_custom_limits(self):
        api = SimulatedProductsApi.generate(6, 4, page_size=2, latency_ms=2)
        settings = ScraperSettings(list_products_concurrency=3, get_product_concurrency=2)

        await CatalogScraper(api, settings).scrape_v2()

        assert api.stats["list_products"].max_in_flight == 3
        assert api.stats["get_product"].max_in_flight == 2

    @pytest.mark.asyncio
    async def test_naive_overloads_limited_api(self):
        """Test that the unbounded policy trips the same API limits."""
        api = SimulatedProductsApi.generate(
            2, 6, latency_ms=2, max_concurrent_list=2, max_concurrent_get=5
        )

        with pytest.raises(ApiOverloadError):
            await CatalogScraper(api).scrape()


class TestRateLimited:
    """Test cases for the bounded plus rate-limited policy."""

    @pytest.mark.asyncio
    async def test_detail_calls_spaced_by_delay(self):
        """Test that consecutive get_product calls start at least 100ms apart."""
        api = SimulatedProductsApi.generate(2, 3, page_size=2, latency_ms=1)

        details = await CatalogScraper(api).scrape_v3()

        assert len(details) == 6
        intervals = api.stats["get_product"].start_intervals()
        assert len(intervals) == 5
        assert all(interval >= 0.1 for interval in intervals)
        assert api.stats["get_product"].max_in_flight == 1

    @pytest.mark.asyncio
    async def test_detail_failure_after_delay(self):
        """Test that a failing detail fetch surfaces after its delay and stops the run."""

        class FailingApi(StubProductsApi):
            listed_at = 0.0

            async def list_products(self, category_id, cursor):
                page = await super().list_products(category_id, cursor)
                self.listed_at = max(self.listed_at, time.monotonic())
                return page

            async def get_product(self, product_id):
                self.get_product_calls.append(product_id)
                raise ApiNotFoundError(f"Unknown product: {product_id}")

        api = FailingApi()

        with pytest.raises(ApiNotFoundError, match="p1"):
            await CatalogScraper(api).scrape_v3()

        assert time.monotonic() - api.listed_at >= 0.1
        assert api.get_product_calls == ["p1"]

    @pytest.mark.asyncio
    async def test_listing_concurrency(self):
        """Test that at most 3 categories are paginated at once."""
        api = SimulatedProductsApi.generate(7, 4, page_size=2, latency_ms=2)
        settings = ScraperSettings(get_product_delay_ms=0)

        await CatalogScraper(api, settings).scrape_v3()

        assert api.stats["list_products"].max_in_flight == 3

    @pytest.mark.asyncio
    async def test_passes_enforced_rate_limit(self):
        """Test that an API enforcing one call per 100ms accepts the run."""
        api = SimulatedProductsApi.generate(
            3,
            1,
            max_concurrent_list=3,
            max_concurrent_get=1,
            min_get_interval_ms=100,
        )

        details = await CatalogScraper(api).scrape_v3()

        assert len(details) == 3
        assert api.stats["get_product"].rejected == 0
