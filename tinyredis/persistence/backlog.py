"""Fixed-size replication backlog addressed by global stream offsets."""

from __future__ import annotations

import threading


class ReplBacklog:
    """Keeps the most recent ``size`` bytes of the replication stream."""

    def __init__(self, size: int, start_offset: int = 0) -> None:
        if size <= 0:
            raise ValueError("backlog size must be positive")
        self._size = size
        self._buf = bytearray()
        self._end = start_offset
        self._lock = threading.Lock()

    def append(self, data: bytes) -> None:
        """Add ``data``, dropping the oldest bytes once the backlog is full."""
        with self._lock:
            self._buf += data
            self._end += len(data)
            excess = len(self._buf) - self._size
            if excess > 0:
                del self._buf[:excess]

    def _start(self) -> int:
        return self._end - len(self._buf)

    def can_serve(self, offset: int) -> bool:
        """Return True if bytes from ``offset`` onwards are still held."""
        with self._lock:
            return self._start() <= offset < self._end

    def read_from(self, offset: int) -> bytes | None:
        """Return every byte from ``offset`` to the end, or None if not held."""
        with self._lock:
            start = self._start()
            if not start <= offset < self._end:
                return None
            return bytes(self._buf[offset - start:])

    @property
    def start_offset(self) -> int:
        """Global offset of the oldest byte held."""
        with self._lock:
            return self._start()

    @property
    def end_offset(self) -> int:
        """Global offset just past the newest byte held."""
        with self._lock:
            return self._end