import io

import pytest

from tinyredis.protocol.parser import Parser, ProtocolError, RespError, to_cmd_line
from tinyredis.protocol.resp import MultiBulkReply


@pytest.mark.parametrize(
    "data, expected",
    [
        (b"+OK\r\n", "OK"),
        (b"-ERR unknown command\r\n", RespError("ERR unknown command")),
        (b":42\r\n", 42),
        (b":-7\r\n", -7),
        (b"$6\r\nfoobar\r\n", b"foobar"),
        (b"$0\r\n\r\n", b""),
        (b"$-1\r\n", None),
        (b"*2\r\n$3\r\nfoo\r\n$3\r\nbar\r\n", [b"foo", b"bar"]),
        (b"*-1\r\n", None),
        (b"*0\r\n", []),
        (b"*2\r\n:1\r\n*1\r\n+x\r\n", [1, ["x"]]),
    ],
)
def test_parse_values(data, expected):
    assert Parser(io.BytesIO(data)).parse() == expected


@pytest.mark.parametrize(
    "data, message",
    [
        (b"?what\r\n", "protocol error: unknown RESP type"),
        (b"$abc\r\n", "protocol error: invalid bulk length"),
        (b"*xyz\r\n", "protocol error: invalid array length"),
        (b"+OK\n", "protocol error: invalid line ending"),
        (b"$3\r\nfooXY", "protocol error: expected CR"),
        (b"$3\r\nfoo\rX", "protocol error: expected LF"),
        (b":abc\r\n", "protocol error: invalid integer"),
        (b"$-5\r\n", "protocol error: invalid bulk length"),
        (b"*-2\r\n", "protocol error: invalid array length"),
    ],
)
def test_protocol_errors(data, message):
    with pytest.raises(ProtocolError) as info:
        Parser(data).parse()
    assert str(info.value) == message


def test_resp_error_str():
    error = Parser(b"-ERR bad\r\n").parse()
    assert str(error) == "ERR bad"


def test_eof_on_empty_stream():
    with pytest.raises(EOFError):
        Parser(b"").parse()


def test_eof_on_truncated_bulk():
    with pytest.raises(EOFError):
        Parser(b"$10\r\nabc").parse()


def test_eof_on_unterminated_line():
    with pytest.raises(EOFError):
        Parser(b"+OK").parse()


def test_binary_bulk_string():
    data = bytes([0, 1, 13, 10, 255])
    payload = Parser(b"$5\r\n" + data + b"\r\n").parse()
    assert payload == data


def test_sequential_parse():
    parser = Parser(b"+OK\r\n:1\r\n$1\r\na\r\n")
    assert parser.parse() == "OK"
    assert parser.parse() == 1
    assert parser.parse() == b"a"
    with pytest.raises(EOFError):
        parser.parse()


def test_iteration_stops_at_eof():
    assert list(Parser(b"+OK\r\n:1\r\n*1\r\n$1\r\nx\r\n")) == ["OK", 1, [b"x"]]


def test_iteration_propagates_protocol_error():
    with pytest.raises(ProtocolError):
        list(Parser(b"+OK\r\n?bad\r\n"))


def test_round_trip_with_multibulk_reply():
    cmd = [b"set", b"key", b"value with spaces"]
    encoded = MultiBulkReply(cmd).to_bytes()
    assert to_cmd_line(Parser(encoded).parse()) == cmd


def test_to_cmd_line_from_simple_string():
    assert to_cmd_line("FULLRESYNC abc 42") == [b"FULLRESYNC", b"abc", b"42"]


def test_to_cmd_line_mixed_array():
    assert to_cmd_line([b"expire", "k", 10]) == [b"expire", b"k", b"10"]


@pytest.mark.parametrize("payload", [42, b"raw", None, RespError("ERR"), [b"a", None]])
def test_to_cmd_line_rejects_wrong_types(payload):
    with pytest.raises(TypeError):
        to_cmd_line(payload)


@pytest.mark.parametrize("payload", [[], "", "   "])
def test_to_cmd_line_rejects_empty(payload):
    with pytest.raises(ValueError):
        to_cmd_line(payload)