from typing import runtime_checkable, Protocol

from .model import Category, Cursor, Page, ProductDetail


@runtime_checkable
class ProductsApi(Protocol):
    async def list_categories(self) -> list[Category]: ...
    async def list_products(self, category_id: str, cursor: Cursor) -> Page: ...
    async def get_product(self, product_id: str) -> ProductDetail: ...
