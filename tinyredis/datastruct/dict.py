"""A thread-safe dictionary split into independently locked shards."""

from __future__ import annotations

import random
import threading
from collections.abc import Callable, Iterator
from typing import Any

DEFAULT_DICT_SIZE = 1024
SHARD_COUNT = 1024

_FNV_OFFSET = 2166136261
_FNV_PRIME = 16777619
_MASK32 = 0xFFFFFFFF


def compute_hash(key: str | bytes) -> int:
    """Return the 32-bit FNV-style hash used to pick a shard for ``key``."""
    data = key.encode("utf-8") if isinstance(key, str) else bytes(key)
    value = _FNV_OFFSET
    for byte in data:
        value = (value * _FNV_PRIME) & _MASK32
        value ^= byte
    return value


class _Shard:
    __slots__ = ("data", "lock")

    def __init__(self) -> None:
        self.data: dict[Any, Any] = {}
        self.lock = threading.RLock()


class ConcurrentDict:
    """Mapping whose keys are spread over shards, each with its own lock."""

    def __init__(self, shard_count: int = DEFAULT_DICT_SIZE) -> None:
        if shard_count <= 0:
            raise ValueError("shard_count must be positive")
        self._shards = [_Shard() for _ in range(shard_count)]
        self._count = 0
        self._count_lock = threading.Lock()

    def _shard_for(self, key: str | bytes) -> _Shard:
        return self._shards[compute_hash(key) % len(self._shards)]

    def _adjust_count(self, delta: int) -> None:
        with self._count_lock:
            self._count += delta

    def get(self, key: str | bytes, default: Any = None) -> Any:
        """Return the value stored under ``key``, or ``default``."""
        shard = self._shard_for(key)
        with shard.lock:
            return shard.data.get(key, default)

    def __contains__(self, key: object) -> bool:
        if not isinstance(key, (str, bytes)):
            return False
        shard = self._shard_for(key)
        with shard.lock:
            return key in shard.data

    def __len__(self) -> int:
        with self._count_lock:
            return self._count

    def put(self, key: str | bytes, value: Any) -> bool:
        """Store ``value``; return True if the key was new, False if replaced."""
        shard = self._shard_for(key)
        with shard.lock:
            existed = key in shard.data
            shard.data[key] = value
            if existed:
                return False
            self._adjust_count(1)
            return True

    def put_if_absent(self, key: str | bytes, value: Any) -> bool:
        """Store ``value`` only when ``key`` is missing; return True if stored."""
        shard = self._shard_for(key)
        with shard.lock:
            if key in shard.data:
                return False
            shard.data[key] = value
            self._adjust_count(1)
            return True

    def put_if_exists(self, key: str | bytes, value: Any) -> bool:
        """Replace the value only when ``key`` exists; return True if updated."""
        shard = self._shard_for(key)
        with shard.lock:
            if key not in shard.data:
                return False
            shard.data[key] = value
            return True

    def remove(self, key: str | bytes) -> bool:
        """Delete ``key``; return True if it was present."""
        shard = self._shard_for(key)
        with shard.lock:
            if key not in shard.data:
                return False
            del shard.data[key]
            self._adjust_count(-1)
            return True

    def items(self) -> Iterator[tuple[Any, Any]]:
        """Yield ``(key, value)`` pairs, one shard at a time."""
        for shard in self._shards:
            with shard.lock:
                snapshot = list(shard.data.items())
            yield from snapshot

    def keys(self) -> list[Any]:
        """Return a list of every key."""
        return [key for key, _ in self.items()]

    def for_each(self, consumer: Callable[[Any, Any], bool]) -> None:
        """Call ``consumer(key, value)`` for each entry until it returns False."""
        for key, value in self.items():
            if not consumer(key, value):
                return

    def random_keys(self, limit: int) -> list[Any]:
        """Return up to ``limit`` distinct keys chosen at random."""
        if limit <= 0:
            return []
        if limit >= len(self):
            return self.keys()

        used: set[Any] = set()
        result: list[Any] = []
        while len(result) < limit:
            if len(self) <= len(result):
                break
            shard = random.choice(self._shards)
            with shard.lock:
                candidates = [key for key in shard.data if key not in used]
            if not candidates:
                continue
            key = random.choice(candidates)
            used.add(key)
            result.append(key)
        return result

    def clear(self) -> None:
        """Remove every entry."""
        with self._count_lock:
            for shard in self._shards:
                with shard.lock:
                    shard.data = {}
            self._count = 0