"""Compact list of byte strings stored in a Python list."""

from __future__ import annotations

from collections.abc import Iterator


class ListPack:
    """Array-backed list of byte strings supporting negative indices."""

    def __init__(self, size: int = 0) -> None:
        if size < 0:
            raise ValueError("size must not be negative")
        self._data: list[bytes] = []

    def __len__(self) -> int:
        return len(self._data)

    def __iter__(self) -> Iterator[bytes]:
        return iter(list(self._data))

    def push_front(self, value: bytes) -> None:
        self._data.insert(0, value)

    def push_back(self, value: bytes) -> None:
        self._data.append(value)

    def pop_front(self) -> bytes:
        """Remove and return the first element; raise IndexError if empty."""
        if not self._data:
            raise IndexError("pop from an empty listpack")
        return self._data.pop(0)

    def pop_back(self) -> bytes:
        """Remove and return the last element; raise IndexError if empty."""
        if not self._data:
            raise IndexError("pop from an empty listpack")
        return self._data.pop()

    def _normalize(self, index: int) -> int:
        n = len(self._data)
        if index < 0:
            index += n
        if not 0 <= index < n:
            raise IndexError("listpack index out of range")
        return index

    def get(self, index: int) -> bytes:
        """Return the element at ``index``; raise IndexError if out of range."""
        return self._data[self._normalize(index)]

    def range(self, start: int, stop: int) -> list[bytes]:
        """Return elements from ``start`` to ``stop`` inclusive, clamped."""
        n = len(self._data)
        if n == 0:
            return []
        if start < 0:
            start += n
        if stop < 0:
            stop += n
        start = max(start, 0)
        stop = min(stop, n - 1)
        if start > stop:
            return []
        return self._data[start:stop + 1]

    def set(self, index: int, value: bytes) -> None:
        """Replace the element at ``index``; raise IndexError if out of range."""
        self._data[self._normalize(index)] = value

    def remove_by_value(self, count: int, value: bytes) -> int:
        """Remove matches of ``value``: ``count`` from the head if positive,
        ``-count`` from the tail if negative, all if zero. Return the number removed."""
        if count == 0:
            kept = [item for item in self._data if item != value]
            removed = len(self._data) - len(kept)
            self._data = kept
            return removed

        from_tail = count < 0
        limit = abs(count)
        items = reversed(self._data) if from_tail else iter(self._data)
        kept = []
        removed = 0
        for item in items:
            if removed < limit and item == value:
                removed += 1
                continue
            kept.append(item)
        if from_tail:
            kept.reverse()
        self._data = kept
        return removed

    def get_raw(self, index: int) -> bytes | None:
        """Return the element at a non-negative ``index``, or None."""
        if 0 <= index < len(self._data):
            return self._data[index]
        return None

    def remove_at(self, index: int) -> None:
        """Delete the element at a non-negative ``index``; ignore bad indices."""
        if 0 <= index < len(self._data):
            del self._data[index]

    def clear(self) -> None:
        self._data.clear()