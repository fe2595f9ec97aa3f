"""Errors raised by products API implementations."""


class ProductsApiError(RuntimeError):
    """Base class for products API failures."""


class ApiNotFoundError(ProductsApiError):
    """Requested category or product does not exist."""


class ApiBadRequestError(ProductsApiError):
    """Request arguments were rejected, e.g. an unknown cursor."""


class ApiOverloadError(ProductsApiError):
    """Too many simultaneous calls to an endpoint."""


class ApiRateLimitError(ProductsApiError):
    """Calls to an endpoint arrived faster than its allowed rate."""
