import time

import pytest

from tinyredis.cmdline import DataEntity
from tinyredis.connection import AOFConnection
from tinyredis.database import DB, Command, validate_arity
from tinyredis.protocol.resp import BulkReply, null_bulk_reply, ok_reply


class MemoryAOF:
    def __init__(self, log=None):
        self.log = list(log or [])

    def add_aof(self, cmd_line):
        self.log.append(list(cmd_line))

    def has_data(self):
        return bool(self.log)

    def load(self, replay):
        for cmd in list(self.log):
            replay(cmd)

    def rewrite(self, db):
        pass

    def log_size(self):
        return 0


class MockString:
    def __init__(self, value):
        self.value = value

    def to_write_cmd_line(self, key):
        return [b"set", key.encode(), self.value.encode()]

    def clone(self):
        return MockString(self.value)


class PlainConnection:
    db_index = 0
    closed = False
    remote_addr = "mock"

    def write(self, data):
        return 0

    def close(self):
        pass

    def select_db(self, index):
        pass

    def is_slave(self):
        return False

    def set_slave(self):
        pass


def _set(db, args):
    db.put_entity(args[0].decode(), DataEntity(MockString(args[1].decode())))
    return ok_reply()


def _get(db, args):
    entity = db.get_entity(args[0].decode())
    if entity is None:
        return null_bulk_reply()
    return BulkReply(entity.data.value.encode())


COMMANDS = {
    "set": Command("set", _set, 3),
    "get": Command("get", _get, 2),
}


@pytest.fixture
def aof():
    return MemoryAOF()


@pytest.fixture
def db(aof):
    database = DB(0, aof, COMMANDS)
    yield database
    database.close()


def _keys(db):
    found = []
    db.for_each(lambda key, data: found.append(key))
    return found


def test_put_and_get_entity(db):
    db.put_entity("key1", DataEntity(MockString("test")))
    got = db.get_entity("key1")
    assert got is not None
    assert got.data.value == "test"


def test_remove(db):
    db.put_entity("key2", DataEntity(MockString("remove")))
    assert db.remove("key2") is True
    assert db.get_entity("key2") is None
    assert db.remove("key2") is False


def test_ttl_and_is_expired(db):
    db.put_entity("ttlkey", DataEntity(MockString("ttl")))
    db.set_expire("ttlkey", time.time() + 3600)
    assert db.is_expired("ttlkey") is False
    db.set_expire("ttlkey", time.time() - 1)
    assert db.is_expired("ttlkey") is True
    assert db.get_entity("ttlkey") is None
    assert db.get_expire_time("ttlkey") is None


def test_key_without_ttl_never_expires(db):
    db.put_entity("plain", DataEntity(MockString("v")))
    assert db.is_expired("plain") is False
    assert db.get_expire_time("plain") is None


def test_delete_ttl(db):
    db.put_entity("k", DataEntity(MockString("v")))
    db.set_expire("k", time.time() - 1)
    db.delete_ttl("k")
    assert db.get_entity("k").data.value == "v"


def test_exec_command_logs_to_aof(db, aof):
    conn = PlainConnection()
    reply = db.execute(conn, [b"set", b"cmdkey", b"cmdval"])
    assert reply.to_bytes() == b"+OK\r\n"
    reply = db.execute(conn, [b"get", b"cmdkey"])
    assert reply.to_bytes() == b"$6\r\ncmdval\r\n"
    assert len(aof.log) == 2


def test_exec_is_case_insensitive(db):
    reply = db.execute(PlainConnection(), [b"SET", b"k", b"v"])
    assert reply.to_bytes() == b"+OK\r\n"


def test_exec_with_aof_connection_skips_aof(db, aof):
    db.execute(AOFConnection(0), [b"set", b"aofkey", b"aofval"])
    assert aof.log == []
    assert db.get_entity("aofkey").data.value == "aofval"


def test_unknown_command(db, aof):
    reply = db.execute(PlainConnection(), [b"nope"])
    assert reply.to_bytes() == b"-ERR unknown command 'nope'\r\n"
    assert aof.log == []


def test_wrong_arity_is_not_logged(db, aof):
    reply = db.execute(PlainConnection(), [b"set", b"only"])
    assert reply.to_bytes() == b"-ERR wrong number of arguments for 'set' command\r\n"
    assert aof.log == []


def test_empty_command_raises(db):
    with pytest.raises(ValueError):
        db.execute(PlainConnection(), [])


def test_clone(db):
    db.put_entity("clonekey", DataEntity(MockString("hello")))
    expire = time.time() + 3600
    db.set_expire("clonekey", expire)

    clone = db.clone()
    try:
        entity = clone.get_entity("clonekey")
        assert entity is not None
        assert entity.data.value == "hello"
        assert clone.get_expire_time("clonekey") == expire

        db.remove("clonekey")
        assert clone.get_entity("clonekey") is not None
        entity.data.value = "changed"
        assert db.get_entity("clonekey") is None
    finally:
        clone.close()


def test_clone_copies_values_deeply(db):
    db.put_entity("k", DataEntity(MockString("orig")))
    clone = db.clone()
    clone.get_entity("k").data.value = "mutated"
    assert db.get_entity("k").data.value == "orig"
    clone.close()


def test_active_expire_removes_only_expired(db):
    for i in range(30):
        key = f"exp{i}"
        db.put_entity(key, DataEntity(MockString(key)))
        if i % 2 == 0:
            db.set_expire(key, time.time() - 1)
        else:
            db.set_expire(key, time.time() + 3600)

    db.active_expire()
    remaining = _keys(db)
    assert 15 <= len(remaining) <= 25
    for i in range(1, 30, 2):
        assert f"exp{i}" in remaining


def test_active_expire_small_sample_removes_all_expired(db):
    for i in range(10):
        key = f"k{i}"
        db.put_entity(key, DataEntity(MockString(key)))
        db.set_expire(key, time.time() - 1 if i < 5 else time.time() + 3600)
    db.active_expire()
    assert sorted(_keys(db)) == [f"k{i}" for i in range(5, 10)]


def test_for_each_passes_stored_data(db):
    db.put_entity("a", DataEntity(MockString("1")))
    db.put_entity("b", DataEntity(MockString("2")))
    seen = {}
    db.for_each(lambda key, data: seen.__setitem__(key, data.value))
    assert seen == {"a": "1", "b": "2"}


def test_clear(db):
    db.put_entity("a", DataEntity(MockString("1")))
    db.set_expire("a", time.time() + 10)
    db.clear()
    assert _keys(db) == []
    assert db.get_expire_time("a") is None


def test_loads_aof_on_start():
    aof = MemoryAOF([[b"set", b"k1", b"v1"], [b"set", b"k2", b"v2"]])
    db = DB(3, aof, COMMANDS)
    try:
        assert db.index == 3
        assert db.get_entity("k1").data.value == "v1"
        assert db.get_entity("k2").data.value == "v2"
        assert len(aof.log) == 2
    finally:
        db.close()


@pytest.mark.parametrize(
    "arity, words, expected",
    [
        (3, 3, True),
        (3, 2, False),
        (3, 4, False),
        (-2, 2, True),
        (-2, 5, True),
        (-2, 1, False),
        (0, 0, True),
    ],
)
def test_validate_arity(arity, words, expected):
    assert validate_arity(arity, [b"x"] * words) is expected