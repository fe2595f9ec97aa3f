from pydantic import BaseModel, ConfigDict, Field

Cursor = int | str

INITIAL_CURSOR: Cursor = 0


class Category(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str


class Product(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str


class ProductDetail(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    price: float
    description: str


class Page(BaseModel):
    model_config = ConfigDict(frozen=True)

    next_cursor: Cursor | None = None
    result: list[Product] = Field(default_factory=list)
