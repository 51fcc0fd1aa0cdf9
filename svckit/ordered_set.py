"""A set that remembers the order in which values were first added."""

from __future__ import annotations

from collections.abc import Hashable, Iterable, Iterator
from typing import Generic, TypeVar

T = TypeVar("T", bound=Hashable)


class OrderedSet(Generic[T]):
    """Set of unique values kept in insertion order."""

    def __init__(self, values: Iterable[T] | None = None) -> None:
        self._members: set[T] = set()
        self._ordered: list[T] = []
        for value in values or ():
            self.add(value)

    def add(self, value: T) -> None:
        """Add ``value`` unless it is already present."""
        if value not in self._members:
            self._members.add(value)
            self._ordered.append(value)

    def __contains__(self, value: object) -> bool:
        return value in self._members

    def values(self) -> list[T]:
        """Return the values in insertion order."""
        return list(self._ordered)

    def __len__(self) -> int:
        return len(self._members)

    def __iter__(self) -> Iterator[T]:
        return iter(self._ordered)

    def value_at(self, index: int) -> T:
        """Return the value at ``index`` in insertion order."""
        return self._ordered[index]

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._ordered!r})"