"""Splitting sequences into fixed-size ordered groups."""

from typing import Sequence, TypeVar

T = TypeVar("T")


def check_positive(name: str, value: int) -> None:
    """Raise ValueError unless value is a positive int."""
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise ValueError(f"{name} must be a positive integer, got {value!r}")


def split(size: int, items: Sequence[T]) -> list[list[T]]:
    """Partition items into consecutive groups of at most size elements.

    Order is preserved within and across groups; the last group may be
    shorter. An empty sequence yields no groups.

    Raises:
        ValueError: If size is not a positive integer
    """
    check_positive("size", size)
    items = list(items)
    return [items[i : i + size] for i in range(0, len(items), size)]
