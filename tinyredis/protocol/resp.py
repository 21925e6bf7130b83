"""Reply values and their RESP wire encoding."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass

CRLF = b"\r\n"
_NULL_BULK = b"$-1\r\n"


def _encode_bulk(arg: bytes | None) -> bytes:
    if arg is None:
        return _NULL_BULK
    return b"$" + str(len(arg)).encode("ascii") + CRLF + bytes(arg) + CRLF


class Reply(ABC):
    """A value that can be sent to a client."""

    @abstractmethod
    def to_bytes(self) -> bytes:
        """Return the RESP encoding of this reply."""

    def __bytes__(self) -> bytes:
        return self.to_bytes()


@dataclass(frozen=True)
class SimpleStringReply(Reply):
    """A status line such as ``+OK``."""

    status: str

    def to_bytes(self) -> bytes:
        return b"+" + self.status.encode("utf-8") + CRLF


@dataclass(frozen=True)
class IntReply(Reply):
    """An integer reply."""

    value: int

    def to_bytes(self) -> bytes:
        return b":" + str(self.value).encode("ascii") + CRLF


@dataclass(frozen=True)
class StandardErrReply(Reply):
    """An error reply."""

    status: str

    def to_bytes(self) -> bytes:
        return b"-" + self.status.encode("utf-8") + CRLF


@dataclass(frozen=True)
class BulkReply(Reply):
    """A binary-safe string, or the null bulk string when ``arg`` is None."""

    arg: bytes | None

    def to_bytes(self) -> bytes:
        return _encode_bulk(self.arg)


@dataclass(frozen=True)
class MultiBulkReply(Reply):
    """An array of bulk strings; None elements encode as null bulk strings."""

    args: Sequence[bytes | None]

    def __post_init__(self) -> None:
        object.__setattr__(self, "args", tuple(self.args))

    def to_bytes(self) -> bytes:
        parts = [b"*", str(len(self.args)).encode("ascii"), CRLF]
        parts.extend(_encode_bulk(arg) for arg in self.args)
        return b"".join(parts)


_OK = SimpleStringReply("OK")
_NULL_BULK_REPLY = BulkReply(None)


def ok_reply() -> SimpleStringReply:
    """Return the shared ``+OK`` reply."""
    return _OK


def null_bulk_reply() -> BulkReply:
    """Return the shared null bulk reply."""
    return _NULL_BULK_REPLY


def arg_num_err_reply(cmd_name: str) -> StandardErrReply:
    """Return the error for a command called with the wrong number of arguments."""
    return StandardErrReply(f"ERR wrong number of arguments for '{cmd_name}' command")


def is_error_reply(reply: Reply) -> bool:
    """Return True if ``reply`` encodes as a RESP error."""
    return reply.to_bytes().startswith(b"-")