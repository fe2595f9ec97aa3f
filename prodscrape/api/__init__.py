from .errors import (
    ApiBadRequestError,
    ApiNotFoundError,
    ApiOverloadError,
    ApiRateLimitError,
    ProductsApiError,
)
from .simulated import EndpointStats, SimulatedProductsApi

__all__ = [
    "ApiBadRequestError",
    "ApiNotFoundError",
    "ApiOverloadError",
    "ApiRateLimitError",
    "EndpointStats",
    "ProductsApiError",
    "SimulatedProductsApi",
]
