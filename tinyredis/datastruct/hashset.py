"""Set of binary members backed by a concurrent dictionary."""

from __future__ import annotations

from tinyredis.datastruct.dict import SHARD_COUNT, ConcurrentDict


class HashSet:
    """Unordered set of byte strings."""

    def __init__(self) -> None:
        self._dict = ConcurrentDict(SHARD_COUNT)

    def add(self, member: bytes) -> bool:
        """Add ``member``; return True if it was not already present."""
        return self._dict.put_if_absent(bytes(member), None)

    def remove(self, member: bytes) -> bool:
        """Remove ``member``; return True if it was present."""
        return self._dict.remove(bytes(member))

    def __contains__(self, member: object) -> bool:
        if not isinstance(member, (bytes, bytearray, memoryview)):
            return False
        return bytes(member) in self._dict

    def __len__(self) -> int:
        return len(self._dict)

    def members(self) -> list[bytes]:
        """Return every member."""
        return self._dict.keys()

    def random(self) -> bytes | None:
        """Return a random member without removing it, or None if empty."""
        keys = self._dict.random_keys(1)
        return keys[0] if keys else None

    def pop(self) -> bytes:
        """Remove and return a random member; raise KeyError if empty."""
        keys = self._dict.random_keys(1)
        if not keys:
            raise KeyError("pop from an empty set")
        member = keys[0]
        self._dict.remove(member)
        return member