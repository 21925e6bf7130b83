"""Sorted set of distinct integers."""

from __future__ import annotations

import bisect
import random


class IntSet:
    """Keeps integers sorted and free of duplicates."""

    def __init__(self) -> None:
        self._values: list[int] = []

    def __len__(self) -> int:
        return len(self._values)

    def values(self) -> list[int]:
        """Return a sorted copy of the members."""
        return list(self._values)

    def __contains__(self, value: object) -> bool:
        if not isinstance(value, int):
            return False
        idx = bisect.bisect_left(self._values, value)
        return idx < len(self._values) and self._values[idx] == value

    def add(self, value: int) -> bool:
        """Insert ``value``; return True if it was not already present."""
        idx = bisect.bisect_left(self._values, value)
        if idx < len(self._values) and self._values[idx] == value:
            return False
        self._values.insert(idx, value)
        return True

    def remove(self, value: int) -> bool:
        """Delete ``value``; return True if it was present."""
        idx = bisect.bisect_left(self._values, value)
        if idx >= len(self._values) or self._values[idx] != value:
            return False
        del self._values[idx]
        return True

    def random(self) -> int | None:
        """Return a random member without removing it, or None if empty."""
        if not self._values:
            return None
        return random.choice(self._values)

    def pop(self) -> int:
        """Remove and return a random member; raise KeyError if empty."""
        if not self._values:
            raise KeyError("pop from an empty set")
        return self._values.pop(random.randrange(len(self._values)))