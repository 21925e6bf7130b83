"""Skip list ordered by (score, member), with rank spans for fast rank queries."""

from __future__ import annotations

import math
import random
from collections.abc import Iterator
from dataclasses import dataclass
from decimal import Decimal
from itertools import islice

MAX_LEVEL = 32
PROBABILITY = 0.25

_rng = random.Random()


def random_level() -> int:
    """Return a random node height between 1 and MAX_LEVEL."""
    level = 1
    while _rng.random() < PROBABILITY and level < MAX_LEVEL:
        level += 1
    return level


def format_score(score: float) -> str:
    """Format ``score`` as the shortest exact decimal, without an exponent."""
    if math.isnan(score):
        return "NaN"
    if math.isinf(score):
        return "+Inf" if score > 0 else "-Inf"
    text = format(Decimal(repr(float(score))), "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


@dataclass
class SkipListElement:
    """A member and its score."""

    member: bytes
    score: float


class SkipListNode:
    """A node with one forward pointer and span per level."""

    __slots__ = ("element", "forward", "span", "backward")

    def __init__(self, level: int, element: SkipListElement | None = None) -> None:
        self.element = element
        self.forward: list[SkipListNode | None] = [None] * level
        self.span: list[int] = [0] * level
        self.backward: SkipListNode | None = None


def _precedes(node: SkipListNode, score: float, member: bytes) -> bool:
    element = node.element
    return element.score < score or (element.score == score and element.member < member)


class SkipList:
    """Sorted collection of (score, member) pairs with rank lookups."""

    def __init__(self) -> None:
        self._header = SkipListNode(MAX_LEVEL)
        self._tail: SkipListNode | None = None
        self._level = 1
        self._length = 0

    def __len__(self) -> int:
        return self._length

    @property
    def head(self) -> SkipListNode:
        """The sentinel header node."""
        return self._header

    @property
    def level(self) -> int:
        """The current number of levels in use."""
        return self._level

    def _iter_forward(self) -> Iterator[SkipListNode]:
        node = self._header.forward[0]
        while node is not None:
            yield node
            node = node.forward[0]

    def _iter_backward(self) -> Iterator[SkipListNode]:
        node = self._tail
        while node is not None:
            yield node
            node = node.backward

    def insert(self, score: float, member: bytes) -> SkipListNode:
        """Insert ``member`` with ``score`` and return its node."""
        member = bytes(member)
        score = float(score)
        header = self._header
        update: list[SkipListNode] = [header] * MAX_LEVEL
        rank = [0] * MAX_LEVEL

        x = header
        for i in range(self._level - 1, -1, -1):
            rank[i] = 0 if i == self._level - 1 else rank[i + 1]
            while x.forward[i] is not None and _precedes(x.forward[i], score, member):
                rank[i] += x.span[i]
                x = x.forward[i]
            update[i] = x

        level = random_level()
        if level > self._level:
            for i in range(self._level, level):
                rank[i] = 0
                update[i] = header
                header.span[i] = self._length
            self._level = level

        node = SkipListNode(level, SkipListElement(member=member, score=score))
        for i in range(level):
            node.forward[i] = update[i].forward[i]
            update[i].forward[i] = node
            node.span[i] = update[i].span[i] - (rank[0] - rank[i])
            update[i].span[i] = rank[0] - rank[i] + 1

        for i in range(level, self._level):
            update[i].span[i] += 1

        node.backward = None if update[0] is header else update[0]
        if node.forward[0] is not None:
            node.forward[0].backward = node
        else:
            self._tail = node

        self._length += 1
        return node

    def delete(self, score: float, member: bytes) -> bool:
        """Remove the pair; return True if it was present."""
        member = bytes(member)
        update: list[SkipListNode] = [self._header] * MAX_LEVEL
        x = self._header
        for i in range(self._level - 1, -1, -1):
            while x.forward[i] is not None and _precedes(x.forward[i], score, member):
                x = x.forward[i]
            update[i] = x

        target = x.forward[0]
        if target is None or target.element.score != score or target.element.member != member:
            return False

        for i in range(self._level):
            if update[i].forward[i] is target:
                update[i].span[i] += target.span[i] - 1
                update[i].forward[i] = target.forward[i]
            else:
                update[i].span[i] -= 1

        if target.forward[0] is not None:
            target.forward[0].backward = target.backward
        else:
            self._tail = target.backward

        while self._level > 1 and self._header.forward[self._level - 1] is None:
            self._level -= 1

        self._length -= 1
        return True

    def get_rank(self, score: float, member: bytes) -> int | None:
        """Return the 0-based rank of the pair, or None if it is absent."""
        member = bytes(member)
        rank = 0
        x = self._header
        for i in range(self._level - 1, -1, -1):
            while x.forward[i] is not None and _precedes(x.forward[i], score, member):
                rank += x.span[i]
                x = x.forward[i]
        x = x.forward[0]
        if x is not None and x.element.score == score and x.element.member == member:
            return rank
        return None

    def get_by_rank(self, rank: int) -> SkipListNode | None:
        """Return the node at 0-based ``rank``, or None if out of range."""
        if rank < 0 or rank >= self._length:
            return None
        traversed = 0
        x = self._header
        for i in range(self._level - 1, -1, -1):
            while x.forward[i] is not None and traversed + x.span[i] <= rank:
                traversed += x.span[i]
                x = x.forward[i]
        return x.forward[0]

    def _clamp(self, start: int, stop: int) -> tuple[int, int] | None:
        n = self._length
        if n == 0:
            return None
        if start < 0:
            start += n
        if stop < 0:
            stop += n
        start = max(start, 0)
        stop = min(stop, n - 1)
        if start > stop:
            return None
        return start, stop

    @staticmethod
    def _to_bytes(nodes: Iterator[SkipListNode], with_scores: bool) -> list[bytes]:
        result: list[bytes] = []
        for node in nodes:
            result.append(node.element.member)
            if with_scores:
                result.append(format_score(node.element.score).encode("ascii"))
        return result

    def range_to_bytes(self, start: int, stop: int, with_scores: bool = False) -> list[bytes]:
        """Members from ``start`` to ``stop`` inclusive in ascending order,
        each followed by its score when ``with_scores`` is set."""
        bounds = self._clamp(start, stop)
        if bounds is None:
            return []
        lo, hi = bounds
        return self._to_bytes(islice(self._iter_forward(), lo, hi + 1), with_scores)

    def reverse_range_to_bytes(
        self, start: int, stop: int, with_scores: bool = False
    ) -> list[bytes]:
        """Like ``range_to_bytes`` but counting from the highest score down."""
        bounds = self._clamp(start, stop)
        if bounds is None:
            return []
        lo, hi = bounds
        return self._to_bytes(islice(self._iter_backward(), lo, hi + 1), with_scores)

    def range_by_score(
        self, min_score: float, max_score: float, forward: bool = True
    ) -> list[SkipListNode]:
        """Nodes whose score lies in [min_score, max_score], ascending or descending."""
        if self._length == 0:
            return []
        nodes: list[SkipListNode] = []
        if forward:
            x = self.first_greater_equal(min_score)
            while x is not None and x.element.score <= max_score:
                nodes.append(x)
                x = x.forward[0]
        else:
            x = self._tail
            while x is not None and x.element.score > max_score:
                x = x.backward
            while x is not None and x.element.score >= min_score:
                nodes.append(x)
                x = x.backward
        return nodes

    def _seek_rank(self, target: int) -> SkipListNode | None:
        rank = 0
        x = self._header
        for i in range(self._level - 1, -1, -1):
            while x.forward[i] is not None and rank + x.span[i] <= target:
                rank += x.span[i]
                x = x.forward[i]
        return x.forward[0]

    def range_nodes(
        self, start_rank: int, stop_rank: int, forward: bool = True
    ) -> list[SkipListNode]:
        """Nodes from ``start_rank`` to ``stop_rank`` inclusive (0-based, clamped).

        When ``forward`` is False the ranks count from the highest score down."""
        start_rank = max(start_rank, 0)
        stop_rank = min(stop_rank, self._length - 1)
        if start_rank > stop_rank or self._length == 0:
            return []
        count = stop_rank - start_rank + 1
        if forward:
            first = self._seek_rank(start_rank)
        else:
            first = self._seek_rank(self._length - 1 - start_rank)

        nodes: list[SkipListNode] = []
        x = first
        while x is not None and len(nodes) < count:
            nodes.append(x)
            x = x.forward[0] if forward else x.backward
        return nodes

    def first_greater_equal(self, target: float) -> SkipListNode | None:
        """Return the first node with score >= ``target``, or None."""
        x = self._header
        for i in range(self._level - 1, -1, -1):
            while x.forward[i] is not None and x.forward[i].element.score < target:
                x = x.forward[i]
        return x.forward[0]