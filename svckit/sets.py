"""An unordered set with JSON (de)serialisation as a list."""

from __future__ import annotations

import json
from collections.abc import Hashable, Iterable, Iterator
from typing import Any, Generic, TypeVar

T = TypeVar("T", bound=Hashable)


class Set(Generic[T]):
    """Mutable set of hashable values."""

    def __init__(self, values: Iterable[T] | None = None) -> None:
        self._values: set[T] = set(values or ())

    def add(self, *args: T) -> None:
        """Add all given values."""
        self._values.update(args)

    def clear(self) -> None:
        """Remove every value."""
        self._values = set()

    def remove(self, value: T) -> None:
        """Remove ``value`` if present; missing values are ignored."""
        self._values.discard(value)

    def __contains__(self, value: object) -> bool:
        return value in self._values

    def contains_any(self, *args: T) -> bool:
        """Return True if at least one of the values is present."""
        return any(value in self._values for value in args)

    def contains_all(self, *args: T) -> bool:
        """Return True if every one of the values is present."""
        return all(value in self._values for value in args)

    def extend(self, other: Set[T]) -> None:
        """Add every value of ``other``."""
        self._values.update(other)

    def __len__(self) -> int:
        return len(self._values)

    def __iter__(self) -> Iterator[T]:
        return iter(self._values)

    def to_list(self) -> list[T]:
        """Return the values as a list in no particular order."""
        return list(self._values)

    def to_json(self) -> str:
        """Serialise the set as a JSON array."""
        return json.dumps(self.to_list())

    def load_json(self, data: str | bytes) -> None:
        """Replace the contents with the values of a JSON array."""
        decoded: Any = json.loads(data)
        if decoded is None:
            decoded = []
        if not isinstance(decoded, list):
            raise ValueError("expected a JSON array")
        self.clear()
        self.add(*decoded)

    @classmethod
    def from_json(cls, data: str | bytes) -> Set[Any]:
        """Build a set from a JSON array."""
        result: Set[Any] = cls()
        result.load_json(data)
        return result

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._values!r})"