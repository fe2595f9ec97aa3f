"""Bounded-concurrency scraping of paginated product catalogues."""

from .api import SimulatedProductsApi
from .concurrency import concurrent_map, delayed_return, split
from .model import Category, Page, Product, ProductDetail
from .protocol import ProductsApi
from .scraper import CatalogScraper

__all__ = [
    "CatalogScraper",
    "Category",
    "Page",
    "Product",
    "ProductDetail",
    "ProductsApi",
    "SimulatedProductsApi",
    "concurrent_map",
    "delayed_return",
    "split",
]
