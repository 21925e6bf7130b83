"""Append-only file persistence, with rewriting and replication hooks."""

from __future__ import annotations

import contextlib
import logging
import os
import queue
import threading
import time
from collections.abc import Callable, Sequence
from enum import IntEnum
from pathlib import Path
from typing import TYPE_CHECKING, Any

from tinyredis.cmdline import Database, RedisData, is_write
from tinyredis.datastruct.skiplist import format_score
from tinyredis.persistence.backlog import ReplBacklog
from tinyredis.protocol.parser import Parser, ProtocolError, to_cmd_line
from tinyredis.protocol.resp import MultiBulkReply

if TYPE_CHECKING:
    from tinyredis.connection import Connection

BATCH_SIZE = 1024
FLUSH_INTERVAL = 1.0

_STOP = object()
_log = logging.getLogger(__name__)


class AOFState(IntEnum):
    """Whether the log is being written normally or rewritten."""

    NORMAL = 0
    REWRITING = 1


def _encode(cmd_line: Sequence[bytes]) -> bytes:
    return MultiBulkReply(list(cmd_line)).to_bytes()


class AOFHandler:
    """Writes write commands to ``db<index>.aof`` from a background thread."""

    def __init__(self, directory: str | os.PathLike[str], db_index: int = 0) -> None:
        base = Path(directory)
        base.mkdir(parents=True, exist_ok=True)
        self.path = base / f"db{db_index}.aof"
        self._lock = threading.RLock()
        self._slaves_lock = threading.Lock()
        self._file = self._open()
        self._state = AOFState.NORMAL
        self._rewrite_buf: list[list[bytes]] = []
        self._pending = 0
        self._backlog: ReplBacklog | None = None
        self._slaves: set[Connection] = set()
        self._offset = self.log_size()
        self._closed = False
        self._queue: queue.Queue[Any] = queue.Queue()
        self._worker = threading.Thread(target=self._run, name="aof-writer", daemon=True)
        self._worker.start()

    def __enter__(self) -> AOFHandler:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _open(self):
        return open(self.path, "ab")

    def add_aof(self, cmd_line: Sequence[bytes]) -> None:
        """Queue a command for writing; non-write commands are ignored later."""
        if self._closed:
            raise RuntimeError("AOF handler is closed")
        self._queue.put([bytes(arg) for arg in cmd_line])

    def set_backlog(self, backlog: ReplBacklog | None) -> None:
        self._backlog = backlog

    def set_state(self, state: AOFState | int) -> None:
        with self._lock:
            self._state = AOFState(state)

    def current_offset(self) -> int:
        """Replication offset: the number of bytes logged so far."""
        with self._lock:
            return self._offset

    def add_slave(self, conn: Connection) -> None:
        with self._slaves_lock:
            self._slaves.add(conn)

    def remove_slave(self, conn: Connection) -> None:
        with self._slaves_lock:
            self._slaves.discard(conn)

    def _run(self) -> None:
        last_flush = time.monotonic()
        while True:
            timeout = max(0.0, FLUSH_INTERVAL - (time.monotonic() - last_flush))
            try:
                item = self._queue.get(timeout=timeout)
            except queue.Empty:
                if self._pending:
                    self._sync()
                last_flush = time.monotonic()
                continue
            try:
                if item is _STOP:
                    return
                self._handle(item)
                if self._pending >= BATCH_SIZE or time.monotonic() - last_flush >= FLUSH_INTERVAL:
                    self._sync()
                    last_flush = time.monotonic()
            except Exception:
                _log.exception("aof: failed to handle command")
            finally:
                self._queue.task_done()

    def _handle(self, cmd_line: list[bytes]) -> None:
        if not is_write(cmd_line):
            return
        with self._lock:
            if self._state is AOFState.NORMAL:
                self._write_cmd(cmd_line)
            else:
                self._rewrite_buf.append(cmd_line)
            self._pending += 1

    def _write_cmd(self, cmd_line: list[bytes]) -> None:
        data = _encode(cmd_line)
        with self._lock:
            self._file.write(data)
            self._offset += len(data)
            if self._backlog is not None:
                self._backlog.append(data)

        with self._slaves_lock:
            slaves = list(self._slaves)
        for conn in slaves:
            try:
                conn.write(data)
            except OSError as exc:
                _log.warning("aof replication: write to slave failed: %s", exc)
                with contextlib.suppress(OSError):
                    conn.close()
                self.remove_slave(conn)

    def _sync(self) -> None:
        with self._lock:
            if self._file.closed:
                return
            try:
                self._file.flush()
                os.fsync(self._file.fileno())
            except OSError as exc:
                _log.error("aof flush failed: %s", exc)
            self._pending = 0

    def flush(self) -> None:
        """Wait for queued commands to be handled, then flush and fsync the log."""
        if self._worker.is_alive():
            self._queue.join()
        self._sync()

    def rewrite(self, db: Database) -> None:
        """Replace the log with a snapshot of ``db`` plus commands logged meanwhile."""
        with self._lock:
            if self._state is AOFState.REWRITING:
                return
            self._state = AOFState.REWRITING

        tmp_path = self.path.with_name(self.path.name + ".tmp")
        try:
            with open(tmp_path, "wb") as out:
                now = time.time()

                def write_entry(key: str, data: RedisData) -> None:
                    ttl = None
                    expire_at = db.get_expire_time(key)
                    if expire_at is not None:
                        ttl = expire_at - now
                        if ttl <= 0:
                            return
                    out.write(_encode(data.to_write_cmd_line(key)))
                    if ttl is not None:
                        out.write(
                            _encode([b"expire", key.encode("utf-8"), format_score(ttl).encode("ascii")])
                        )

                db.for_each(write_entry)

                with self._lock:
                    for cmd_line in self._rewrite_buf:
                        out.write(_encode(cmd_line))
                    self._rewrite_buf = []
                out.flush()
                os.fsync(out.fileno())
        except BaseException:
            with contextlib.suppress(OSError):
                tmp_path.unlink()
            self.set_state(AOFState.NORMAL)
            raise

        with self._lock:
            try:
                self._file.flush()
                os.fsync(self._file.fileno())
                self._file.close()
                try:
                    os.replace(tmp_path, self.path)
                finally:
                    self._file = self._open()
                self._offset = os.fstat(self._file.fileno()).st_size
                for cmd_line in self._rewrite_buf:
                    data = _encode(cmd_line)
                    self._file.write(data)
                    self._offset += len(data)
                self._rewrite_buf = []
            finally:
                self._state = AOFState.NORMAL

    def read_all(self) -> tuple[bytes, int]:
        """Return the whole log and the replication offset where it begins."""
        with self._lock:
            self._file.flush()
            data = self.path.read_bytes()
            end = self._backlog.end_offset if self._backlog is not None else self._offset
            return data, end - len(data)

    def has_data(self) -> bool:
        """Return True if the log file exists and is not empty."""
        try:
            return self.path.stat().st_size > 0
        except OSError:
            return False

    def load(self, replay: Callable[[list[bytes]], None]) -> None:
        """Call ``replay`` for each command in the log, stopping at bad input."""
        with open(self.path, "rb") as source:
            parser = Parser(source)
            try:
                for payload in parser:
                    try:
                        cmd_line = to_cmd_line(payload)
                    except (TypeError, ValueError):
                        continue
                    _log.debug("aof reload: %r", cmd_line)
                    replay(cmd_line)
            except ProtocolError as exc:
                _log.warning("aof reload stopped: %s", exc)

    def log_size(self) -> int:
        """Size of the log file on disk, in bytes."""
        with self._lock:
            if self._file.closed:
                return 0
            return os.fstat(self._file.fileno()).st_size

    def reset(self, offset: int) -> None:
        """Empty the log and restart the replication offset at ``offset``."""
        with self._lock:
            self._file.flush()
            self._file.truncate(0)
            self._file.seek(0)
            os.fsync(self._file.fileno())
            self._pending = 0
            self._offset = offset
            self._rewrite_buf = []

    def close(self) -> None:
        """Write out queued commands, stop the writer thread and close the file."""
        if self._closed:
            return
        self._closed = True
        self._queue.put(_STOP)
        self._worker.join()
        with self._lock:
            if not self._file.closed:
                self._file.flush()
                os.fsync(self._file.fileno())
                self._file.close()