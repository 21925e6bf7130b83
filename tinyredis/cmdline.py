"""Command lines, stored values and the interface a database offers."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from tinyredis.connection import Connection
    from tinyredis.protocol.resp import Reply

CmdLine = list[bytes]

_WRITE_COMMANDS = frozenset(
    {
        # string
        b"set",
        b"setnx",
        b"incr",
        b"incrby",
        b"decr",
        b"decrby",
        # hash
        b"hset",
        b"hdel",
        # list
        b"lpush",
        b"rpush",
        b"lpop",
        b"rpop",
        b"lset",
        b"ltrim",
        b"lrem",
        # set
        b"sadd",
        b"srem",
        # zset
        b"zadd",
        b"zrem",
        # key
        b"del",
        b"expire",
        b"rename",
        # db
        b"select",
        b"flushdb",
    }
)


def is_write(cmd_line: Sequence[bytes]) -> bool:
    """Return True if the command name (case-insensitive) modifies data."""
    if not cmd_line:
        return False
    return bytes(cmd_line[0]).lower() in _WRITE_COMMANDS


@runtime_checkable
class Cloneable(Protocol):
    """A value that can produce an independent copy of itself."""

    def clone(self) -> Any: ...


@runtime_checkable
class RedisData(Protocol):
    """A stored value that can be written back as a command."""

    def to_write_cmd_line(self, key: str) -> list[bytes]: ...


@dataclass
class DataEntity:
    """A value held in a database slot."""

    data: Any

    def clone(self) -> DataEntity:
        """Return a deep copy; raise TypeError if the data cannot be cloned."""
        if not isinstance(self.data, Cloneable):
            raise TypeError(f"{type(self.data).__name__} value cannot be cloned")
        return DataEntity(self.data.clone())


class Database(Protocol):
    """Operations a single keyspace offers to commands and persistence.

    Expiry times are absolute Unix timestamps in seconds."""

    index: int

    def get_entity(self, key: str) -> DataEntity | None: ...

    def put_entity(self, key: str, entity: DataEntity) -> bool: ...

    def for_each(self, handler: Callable[[str, RedisData], None]) -> None: ...

    def remove(self, key: str) -> bool: ...

    def execute(self, conn: Connection, cmd_line: Sequence[bytes]) -> Reply: ...

    def set_expire(self, key: str, expire_at: float) -> None: ...

    def is_expired(self, key: str) -> bool: ...

    def delete_ttl(self, key: str) -> None: ...

    def get_expire_time(self, key: str) -> float | None: ...