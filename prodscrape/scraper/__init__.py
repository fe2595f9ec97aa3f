from .pipeline import POLICIES, CatalogScraper, PaginationError

__all__ = ["POLICIES", "CatalogScraper", "PaginationError"]
