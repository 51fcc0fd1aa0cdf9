"""Small helpers over sequences."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
from typing import Any, TypeVar

T = TypeVar("T")


def filter_items(items: Iterable[T], predicate: Callable[[T], bool]) -> list[T]:
    """Return the items that satisfy ``predicate``, in order."""
    return [item for item in items if predicate(item)]


def partition(items: Sequence[T], size: int) -> list[list[T]]:
    """Split ``items`` into lists of at most ``size`` elements."""
    if not items or size <= 0:
        return []
    return [list(items[start:start + size]) for start in range(0, len(items), size)]


def contains(items: Iterable[T], value: T) -> bool:
    """Return True if ``value`` equals any of ``items``."""
    return any(item == value for item in items)


def value_at(index: int, values: Sequence[T] | None, default: T) -> T:
    """Return ``values[index]`` when in bounds, else ``default``."""
    if values is None or index < 0 or index >= len(values):
        return default
    return values[index]


def minimum(*args: Any) -> Any:
    """Return the smallest argument, or None when there is none."""
    if not args:
        return None
    return min(args)