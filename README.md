# tinyredis

The pieces of a small key-value store that speaks the Redis serialization
protocol (RESP): a streaming protocol parser and reply encoder, the in-memory
data structures that hold values, a keyspace with key expiry and command
dispatch, an append-only file (AOF) that logs write commands so they can be
replayed, and a ring buffer of recent log bytes for replicas to catch up from.

The package needs nothing beyond the Python standard library (3.10 or later).

## What is inside

- `tinyredis.protocol.parser`: `Parser` reads RESP values (simple strings,
  errors, integers, bulk strings, arrays) from a binary stream or a bytes
  object. `parse()` raises `EOFError` at the end of the stream and
  `ProtocolError` on malformed input; iterating a parser yields values until
  the stream ends. `to_cmd_line` turns a parsed payload into a list of byte
  strings.
- `tinyredis.protocol.resp`: the reply types `SimpleStringReply`, `IntReply`,
  `StandardErrReply`, `BulkReply` and `MultiBulkReply`, each with
  `to_bytes()`, and the helpers `ok_reply`, `null_bulk_reply`,
  `arg_num_err_reply` and `is_error_reply`.
- `tinyredis.datastruct`: `ConcurrentDict` (a dictionary split into
  independently locked shards), `HashSet` (byte-string members), `IntSet`
  (sorted distinct integers), `LinkedList` (doubly linked, with node handles),
  `ListPack` (array-backed list of byte strings) and `SkipList` (ordered by
  score, then member, with rank lookups).
- `tinyredis.cmdline`: `is_write` tells whether a command line modifies data;
  `DataEntity` wraps a stored value; `Database`, `RedisData` and `Cloneable`
  describe the interfaces values and keyspaces offer.
- `tinyredis.connection`: `TCPConnection` wraps a connected socket (writing
  after `close()` raises `ConnectionClosedError`); `AOFConnection` discards
  writes and marks commands that come from log replay.
- `tinyredis.persistence.aof`: `AOFHandler` appends write commands to
  `db<N>.aof` from a background thread, replays the log with `load`, can
  replace the log with a snapshot of a database, and forwards each logged
  command to registered replica connections and to a backlog.
- `tinyredis.persistence.backlog`: `ReplBacklog`, a fixed-size buffer of the
  most recent bytes of the log, addressed by global offsets.
- `tinyredis.database`: `DB` runs commands through a table of `Command`
  entries, checks their arity, tracks expiry times and passes successful
  commands to the AOF handler.

## Examples

Encoding replies:

```python
from tinyredis.protocol.resp import MultiBulkReply, ok_reply, is_error_reply

assert ok_reply().to_bytes() == b"+OK\r\n"
assert MultiBulkReply([b"set", b"k", b"v"]).to_bytes() == (
    b"*3\r\n$3\r\nset\r\n$1\r\nk\r\n$1\r\nv\r\n"
)
assert not is_error_reply(ok_reply())
```

Parsing a request:

```python
from tinyredis.protocol.parser import Parser, to_cmd_line

parser = Parser(b"*2\r\n$3\r\nGET\r\n$1\r\nk\r\n")
assert to_cmd_line(parser.parse()) == [b"GET", b"k"]
```

A keyspace with a command table you supply:

```python
from tinyredis.cmdline import DataEntity
from tinyredis.connection import AOFConnection
from tinyredis.database import DB, Command
from tinyredis.protocol.resp import BulkReply, null_bulk_reply, ok_reply


def set_command(db, args):
    db.put_entity(args[0].decode(), DataEntity(args[1]))
    return ok_reply()


def get_command(db, args):
    entity = db.get_entity(args[0].decode())
    return null_bulk_reply() if entity is None else BulkReply(entity.data)


commands = {
    "set": Command("set", set_command, 3),
    "get": Command("get", get_command, 2),
}

with DB(0, None, commands) as db:
    conn = AOFConnection(0)
    assert db.execute(conn, [b"SET", b"k", b"v"]).to_bytes() == b"+OK\r\n"
    assert db.execute(conn, [b"GET", b"k"]).to_bytes() == b"$1\r\nv\r\n"
```

A sorted set's ordering:

```python
from tinyredis.datastruct.skiplist import SkipList

board = SkipList()
board.insert(1.0, b"a")
board.insert(2.0, b"b")
board.insert(3.0, b"c")

assert board.get_rank(2.0, b"b") == 1
assert board.range_to_bytes(1, 2, True) == [b"b", b"2", b"c", b"3"]
assert board.reverse_range_to_bytes(0, 1, False) == [b"c", b"b"]
```

The backlog:

```python
from tinyredis.persistence.backlog import ReplBacklog

backlog = ReplBacklog(5, 0)
backlog.append(b"12345")
backlog.append(b"6")

assert not backlog.can_serve(0)
assert backlog.read_from(1) == b"23456"
```

## Persistence and expiry

Only write commands (`set`, `del`, `expire`, `hset`, `lpush`, `zadd` and the
like, as listed by `is_write`) reach the log; everything else passed to
`AOFHandler.add_aof` is dropped. The writer thread flushes and fsyncs after
1024 commands or once a second, and `flush()` waits for queued commands to be
written. A `DB` created with a handler whose log already holds data replays it
at start-up through an `AOFConnection`, so replayed commands are not logged
twice.

Every 10 seconds a `DB` checks the log size. The first size seen at or above
64 MB becomes the baseline; once the log has grown by a quarter over it, the
log is replaced by a snapshot of a copy of the database, followed by the
commands that arrived meanwhile. Expiry times are Unix timestamps; once a
second a sample of 20 keys that have one is checked and expired keys are
removed, and an expired key is also removed when it is read.

## What this package does not do

There is no network server and no command to start one: nothing here listens
on a port or answers clients. `DB` has no built-in commands; the caller
supplies the `Command` table. The replica handshake (`PSYNC`, `REPLCONF ACK`)
is not implemented; the package provides only the pieces such a handshake
would use, namely `ReplBacklog`, `AOFHandler.read_all` and the replica
connections registered with `AOFHandler.add_slave`.