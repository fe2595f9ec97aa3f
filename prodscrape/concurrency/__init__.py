"""Bounded-concurrency and rate-limiting primitives."""

from .chunks import split
from .delay import delayed_return
from .mapper import concurrent_map, concurrent_map_chained, concurrent_map_pool

__all__ = [
    "split",
    "concurrent_map",
    "concurrent_map_chained",
    "concurrent_map_pool",
    "delayed_return",
]
