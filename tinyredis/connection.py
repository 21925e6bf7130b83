"""Client connections: real sockets and the silent connection used for replay."""

from __future__ import annotations

import socket
import threading
from enum import Enum
from typing import Protocol


class ConnRole(Enum):
    """What the peer on a connection is."""

    NORMAL = 0
    SLAVE = 1


class ConnectionClosedError(ConnectionError):
    """Raised when writing to a connection that has been closed."""

    def __init__(self, message: str = "connection closed") -> None:
        super().__init__(message)


class Connection(Protocol):
    """A client the server can reply to."""

    @property
    def db_index(self) -> int: ...

    def write(self, data: bytes) -> int: ...

    def close(self) -> None: ...

    @property
    def closed(self) -> bool: ...

    def select_db(self, index: int) -> None: ...

    @property
    def remote_addr(self) -> str: ...

    def is_slave(self) -> bool: ...

    def set_slave(self) -> None: ...


class AOFConnection:
    """A connection that discards writes; used when replaying the append-only file."""

    def __init__(self, db_index: int = 0) -> None:
        self.db_index = db_index
        self._closed = False
        self._role = ConnRole.NORMAL

    def write(self, data: bytes) -> int:
        return len(data)

    def close(self) -> None:
        """Mark the connection closed; writes are discarded either way."""
        self._closed = True

    @property
    def closed(self) -> bool:
        return self._closed

    def select_db(self, index: int) -> None:
        self.db_index = index

    @property
    def remote_addr(self) -> str:
        return "local:aof"

    def is_slave(self) -> bool:
        return self._role is ConnRole.SLAVE

    def set_slave(self) -> None:
        """A replay connection never serves a replica; its role stays normal."""
        self._role = ConnRole.NORMAL


def _describe_peer(sock: socket.socket) -> str:
    try:
        peer = sock.getpeername()
    except OSError:
        return "unknown"
    if isinstance(peer, tuple):
        host, port = peer[0], peer[1]
        if ":" in str(host):
            return f"[{host}]:{port}"
        return f"{host}:{port}"
    text = peer.decode("utf-8", "replace") if isinstance(peer, bytes) else str(peer)
    return text or "unknown"


class TCPConnection:
    """A thread-safe wrapper around a connected socket."""

    def __init__(self, sock: socket.socket) -> None:
        self._sock = sock
        self._db_index = 0
        self._role = ConnRole.NORMAL
        self._lock = threading.Lock()
        self._closed = False
        self._remote_addr = _describe_peer(sock)

    def __enter__(self) -> TCPConnection:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def write(self, data: bytes) -> int:
        """Send all of ``data``; raise ConnectionClosedError once closed."""
        with self._lock:
            if self._closed:
                raise ConnectionClosedError()
            self._sock.sendall(data)
            return len(data)

    def close(self) -> None:
        """Close the socket; further calls do nothing."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            self._sock.close()

    @property
    def closed(self) -> bool:
        with self._lock:
            return self._closed

    @property
    def db_index(self) -> int:
        with self._lock:
            return self._db_index

    def select_db(self, index: int) -> None:
        with self._lock:
            self._db_index = index

    @property
    def remote_addr(self) -> str:
        return self._remote_addr

    def is_slave(self) -> bool:
        with self._lock:
            return self._role is ConnRole.SLAVE

    def set_slave(self) -> None:
        with self._lock:
            self._role = ConnRole.SLAVE