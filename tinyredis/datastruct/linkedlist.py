"""Doubly linked list with node handles."""

from __future__ import annotations

from collections.abc import Iterator
from typing import Any


class Node:
    """A list node; ``value`` may be changed in place."""

    __slots__ = ("value", "_prev", "_next", "_owner")

    def __init__(self, value: Any) -> None:
        self.value = value
        self._prev: Node | None = None
        self._next: Node | None = None
        self._owner: LinkedList | None = None

    @property
    def prev(self) -> Node | None:
        return self._prev

    @property
    def next(self) -> Node | None:
        return self._next


class LinkedList:
    """Doubly linked list supporting negative indices."""

    def __init__(self) -> None:
        self._head: Node | None = None
        self._tail: Node | None = None
        self._len = 0

    def __len__(self) -> int:
        return self._len

    def __iter__(self) -> Iterator[Any]:
        node = self._head
        while node is not None:
            yield node.value
            node = node._next

    @property
    def head(self) -> Node | None:
        return self._head

    @property
    def tail(self) -> Node | None:
        return self._tail

    def _new_node(self, value: Any) -> Node:
        node = Node(value)
        node._owner = self
        return node

    def push_front(self, value: Any) -> Node:
        """Insert ``value`` at the head and return its node."""
        node = self._new_node(value)
        if self._head is None:
            self._head = self._tail = node
        else:
            node._next = self._head
            self._head._prev = node
            self._head = node
        self._len += 1
        return node

    def push_back(self, value: Any) -> Node:
        """Insert ``value`` at the tail and return its node."""
        node = self._new_node(value)
        if self._tail is None:
            self._head = self._tail = node
        else:
            node._prev = self._tail
            self._tail._next = node
            self._tail = node
        self._len += 1
        return node

    def remove(self, node: Node | None) -> None:
        """Unlink ``node``; nodes not in this list are ignored."""
        if node is None or node._owner is not self:
            return
        if node._prev is not None:
            node._prev._next = node._next
        else:
            self._head = node._next
        if node._next is not None:
            node._next._prev = node._prev
        else:
            self._tail = node._prev
        node._prev = node._next = None
        node._owner = None
        self._len -= 1

    def pop_front(self) -> Any:
        """Remove and return the first value; raise IndexError if empty."""
        if self._head is None:
            raise IndexError("pop from an empty list")
        node = self._head
        self.remove(node)
        return node.value

    def pop_back(self) -> Any:
        """Remove and return the last value; raise IndexError if empty."""
        if self._tail is None:
            raise IndexError("pop from an empty list")
        node = self._tail
        self.remove(node)
        return node.value

    def _normalize(self, index: int) -> int:
        if index < 0:
            index += self._len
        if not 0 <= index < self._len:
            raise IndexError("list index out of range")
        return index

    def get_node(self, index: int) -> Node:
        """Return the node at ``index``; raise IndexError if out of range."""
        index = self._normalize(index)
        if index < self._len // 2:
            node = self._head
            for _ in range(index):
                node = node._next
        else:
            node = self._tail
            for _ in range(self._len - 1 - index):
                node = node._prev
        return node

    def get(self, index: int) -> Any:
        """Return the value at ``index``; raise IndexError if out of range."""
        return self.get_node(index).value

    def set(self, index: int, value: Any) -> None:
        """Replace the value at ``index``; raise IndexError if out of range."""
        self.get_node(index).value = value

    def range(self, start: int, stop: int) -> list[Any]:
        """Return values from ``start`` to ``stop`` inclusive, clamped."""
        if self._len == 0:
            return []
        if start < 0:
            start += self._len
        if stop < 0:
            stop += self._len
        start = max(start, 0)
        stop = min(stop, self._len - 1)
        if start > stop:
            return []
        result = []
        node = self.get_node(start)
        for _ in range(stop - start + 1):
            if node is None:
                break
            result.append(node.value)
            node = node._next
        return result

    def remove_by_value(self, count: int, value: Any) -> int:
        """Remove matches of ``value``: ``count`` from the head if positive,
        ``-count`` from the tail if negative, all if zero. Return the number removed."""
        removed = 0
        if count >= 0:
            node = self._head
            while node is not None and (count == 0 or removed < count):
                following = node._next
                if node.value == value:
                    self.remove(node)
                    removed += 1
                node = following
            return removed

        limit = -count
        node = self._tail
        while node is not None and removed < limit:
            preceding = node._prev
            if node.value == value:
                self.remove(node)
                removed += 1
            node = preceding
        return removed

    def _check_pivot(self, pivot: Node | None) -> Node:
        if pivot is None or pivot._owner is not self:
            raise ValueError("pivot is not a node of this list")
        return pivot

    def insert_before(self, pivot: Node, value: Any) -> Node:
        """Insert ``value`` before ``pivot`` and return the new node."""
        pivot = self._check_pivot(pivot)
        node = self._new_node(value)
        node._prev = pivot._prev
        node._next = pivot
        if pivot._prev is not None:
            pivot._prev._next = node
        else:
            self._head = node
        pivot._prev = node
        self._len += 1
        return node

    def insert_after(self, pivot: Node, value: Any) -> Node:
        """Insert ``value`` after ``pivot`` and return the new node."""
        pivot = self._check_pivot(pivot)
        node = self._new_node(value)
        node._next = pivot._next
        node._prev = pivot
        if pivot._next is not None:
            pivot._next._prev = node
        else:
            self._tail = node
        pivot._next = node
        self._len += 1
        return node