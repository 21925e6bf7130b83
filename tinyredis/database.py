"""A single keyspace: stored values, expiry times and command dispatch."""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from typing import Protocol

from tinyredis.cmdline import Database, DataEntity, RedisData
from tinyredis.connection import AOFConnection, Connection
from tinyredis.datastruct.dict import ConcurrentDict
from tinyredis.protocol.resp import (
    Reply,
    StandardErrReply,
    arg_num_err_reply,
    is_error_reply,
)

AOF_REWRITE_MIN_SIZE = 64 * 1024 * 1024
AOF_REWRITE_PERCENTAGE = 25
AOF_CHECK_INTERVAL = 10.0
EXPIRE_INTERVAL = 1.0
EXPIRE_SAMPLE_SIZE = 20

_SHARDS = 1024
_log = logging.getLogger(__name__)


class _AOFSink(Protocol):
    def add_aof(self, cmd_line: Sequence[bytes]) -> None: ...

    def has_data(self) -> bool: ...

    def load(self, replay: Callable[[list[bytes]], None]) -> None: ...

    def rewrite(self, db: Database) -> None: ...

    def log_size(self) -> int: ...


@dataclass(frozen=True)
class Command:
    """A command: its name, the function that runs it and its arity.

    A non-negative arity demands exactly that many words (name included);
    a negative arity demands at least ``-arity`` words."""

    name: str
    executor: Callable[[Database, list[bytes]], Reply]
    arity: int


def validate_arity(arity: int, cmd_line: Sequence[bytes]) -> bool:
    """Return True if ``cmd_line`` has a word count allowed by ``arity``."""
    n = len(cmd_line)
    if arity >= 0:
        return n == arity
    return n >= -arity


class DB:
    """One numbered database, with active expiry and automatic AOF rewriting."""

    def __init__(
        self,
        index: int = 0,
        aof_handler: _AOFSink | None = None,
        commands: Mapping[str, Command] | None = None,
    ) -> None:
        self._setup(index, aof_handler, commands)
        if aof_handler is not None and aof_handler.has_data():
            self.load_aof()
        self.start_expire_task()
        if aof_handler is not None:
            self._start_thread(self._rewrite_loop, "aof-rewrite-check")

    def _setup(
        self,
        index: int,
        aof_handler: _AOFSink | None,
        commands: Mapping[str, Command] | None,
    ) -> None:
        self.index = index
        self._aof = aof_handler
        self._commands = {name.lower(): cmd for name, cmd in (commands or {}).items()}
        self._data = ConcurrentDict(_SHARDS)
        self._ttl = ConcurrentDict(_SHARDS)
        self._stop = threading.Event()
        self._threads: list[threading.Thread] = []
        self._expire_started = False

    def __enter__(self) -> DB:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def load_aof(self) -> None:
        """Replay the append-only log into this database without logging it again."""
        conn = AOFConnection(self.index)
        self._aof.load(lambda cmd_line: self.execute(conn, cmd_line))

    def get_entity(self, key: str) -> DataEntity | None:
        """Return the entity under ``key``; expired keys are removed and give None."""
        entity = self._data.get(key)
        if entity is None:
            return None
        if self.is_expired(key):
            self.remove(key)
            return None
        return entity

    def put_entity(self, key: str, entity: DataEntity) -> bool:
        """Store ``entity``; return True if ``key`` was new."""
        return self._data.put(key, entity)

    def delete_ttl(self, key: str) -> None:
        self._ttl.remove(key)

    def remove(self, key: str) -> bool:
        """Delete ``key`` and its expiry; return True if it held a value."""
        self._ttl.remove(key)
        return self._data.remove(key)

    def execute(self, conn: Connection, cmd_line: Sequence[bytes]) -> Reply:
        """Run a command and log it unless it failed or came from AOF replay."""
        if not cmd_line:
            raise ValueError("empty command")
        name = bytes(cmd_line[0]).decode("utf-8", "replace").lower()
        command = self._commands.get(name)
        if command is None:
            return StandardErrReply(f"ERR unknown command '{name}'")
        if not validate_arity(command.arity, cmd_line):
            return arg_num_err_reply(name)

        reply = command.executor(self, [bytes(arg) for arg in cmd_line[1:]])
        if (
            not is_error_reply(reply)
            and self._aof is not None
            and not isinstance(conn, AOFConnection)
        ):
            self._aof.add_aof(list(cmd_line))
        return reply

    def for_each(self, handler: Callable[[str, RedisData], None]) -> None:
        """Call ``handler(key, data)`` for every stored value."""
        for key, entity in self._data.items():
            handler(key, entity.data)

    def set_expire(self, key: str, expire_at: float) -> None:
        """Expire ``key`` at the Unix timestamp ``expire_at``."""
        self._ttl.put(key, expire_at)

    def is_expired(self, key: str) -> bool:
        expire_at = self._ttl.get(key)
        if expire_at is None:
            return False
        return time.time() > expire_at

    def get_expire_time(self, key: str) -> float | None:
        """Return the expiry timestamp of ``key``, or None if it has none."""
        return self._ttl.get(key)

    def start_expire_task(self) -> None:
        """Start removing expired keys in the background, once per second."""
        if self._expire_started:
            return
        self._expire_started = True
        self._start_thread(self._expire_loop, "active-expire")

    def active_expire(self) -> None:
        """Check a random sample of keys with expiry times and drop expired ones."""
        now = time.time()
        for key in self._ttl.random_keys(EXPIRE_SAMPLE_SIZE):
            expire_at = self._ttl.get(key)
            if expire_at is not None and now > expire_at:
                self.remove(key)

    def clear(self) -> None:
        """Drop every key and expiry time."""
        self._data = ConcurrentDict(_SHARDS)
        self._ttl = ConcurrentDict(_SHARDS)

    def clone(self) -> DB:
        """Return an independent copy with no log and no background tasks."""
        copy = DB.__new__(DB)
        copy._setup(self.index, None, self._commands)
        for key, entity in self._data.items():
            copy._data.put(key, entity.clone())
        for key, expire_at in self._ttl.items():
            copy._ttl.put(key, expire_at)
        return copy

    def close(self) -> None:
        """Stop the background tasks."""
        self._stop.set()
        current = threading.current_thread()
        for thread in self._threads:
            if thread is not current:
                thread.join()
        self._threads = []

    def _start_thread(self, target: Callable[[], None], name: str) -> None:
        thread = threading.Thread(target=target, name=name, daemon=True)
        self._threads.append(thread)
        thread.start()

    def _expire_loop(self) -> None:
        while not self._stop.wait(EXPIRE_INTERVAL):
            try:
                self.active_expire()
            except Exception:
                _log.exception("active expire failed")

    def _rewrite_loop(self) -> None:
        last_size = 0
        while not self._stop.wait(AOF_CHECK_INTERVAL):
            aof = self._aof
            if aof is None:
                continue
            try:
                size = aof.log_size()
            except OSError:
                continue
            if size < AOF_REWRITE_MIN_SIZE:
                continue
            if last_size == 0:
                last_size = size
                continue
            growth = (size - last_size) * 100 // last_size
            if growth < AOF_REWRITE_PERCENTAGE:
                continue
            try:
                aof.rewrite(self.clone())
            except Exception:
                _log.exception("aof rewrite failed")