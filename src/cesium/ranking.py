"""Top-N selection."""

from collections.abc import Callable, Iterable
from typing import TypeVar

T = TypeVar("T")


def top_n(items: Iterable[T], count: int, key: Callable[[T], float]) -> list[T]:
    """
    Return the count highest-scoring items, highest first.

    sorted() is stable with reverse=True, so equal scores keep input order.
    """
    if count <= 0:
        return []
    return sorted(items, key=key, reverse=True)[:count]
