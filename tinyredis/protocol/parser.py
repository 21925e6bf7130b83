"""Streaming parser for the RESP wire protocol."""

from __future__ import annotations

import io
import re
from collections.abc import Iterator
from dataclasses import dataclass
from typing import BinaryIO, Union

_TEXT_ENCODING = "utf-8"
_TEXT_ERRORS = "surrogateescape"
_INT_PATTERN = re.compile(rb"[+-]?[0-9]+")
_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1


class ProtocolError(ValueError):
    """The stream does not follow the RESP protocol."""


@dataclass(frozen=True)
class RespError:
    """An error message received as a RESP error value."""

    message: str

    def __str__(self) -> str:
        return self.message


Payload = Union[str, RespError, int, bytes, list, None]


def _parse_int(raw: bytes, message: str) -> int:
    if not _INT_PATTERN.fullmatch(raw):
        raise ProtocolError(message)
    value = int(raw)
    if not _INT64_MIN <= value <= _INT64_MAX:
        raise ProtocolError(message)
    return value


class Parser:
    """Reads RESP values one at a time from a binary stream."""

    def __init__(self, reader: BinaryIO | bytes | bytearray) -> None:
        if isinstance(reader, (bytes, bytearray, memoryview)):
            reader = io.BytesIO(bytes(reader))
        self._reader = reader

    def parse(self) -> Payload:
        """Read and return the next value.

        Raises EOFError at the end of the stream and ProtocolError on bad input."""
        prefix = self._reader.read(1)
        if not prefix:
            raise EOFError("end of stream")
        match prefix:
            case b"+":
                return self._read_line().decode(_TEXT_ENCODING, _TEXT_ERRORS)
            case b"-":
                return RespError(self._read_line().decode(_TEXT_ENCODING, _TEXT_ERRORS))
            case b":":
                return _parse_int(self._read_line(), "protocol error: invalid integer")
            case b"$":
                return self._parse_bulk_string()
            case b"*":
                return self._parse_array()
            case _:
                raise ProtocolError("protocol error: unknown RESP type")

    def __iter__(self) -> Iterator[Payload]:
        """Yield values until the stream ends."""
        while True:
            try:
                payload = self.parse()
            except EOFError:
                return
            yield payload

    def _parse_bulk_string(self) -> bytes | None:
        length = _parse_int(self._read_line(), "protocol error: invalid bulk length")
        if length == -1:
            return None
        if length < 0:
            raise ProtocolError("protocol error: invalid bulk length")
        data = self._read_exact(length)
        self._expect_crlf()
        return data

    def _parse_array(self) -> list[Payload] | None:
        count = _parse_int(self._read_line(), "protocol error: invalid array length")
        if count == -1:
            return None
        if count < 0:
            raise ProtocolError("protocol error: invalid array length")
        return [self.parse() for _ in range(count)]

    def _read_line(self) -> bytes:
        line = self._reader.readline()
        if not line.endswith(b"\n"):
            raise EOFError("end of stream")
        if len(line) < 2 or line[-2:-1] != b"\r":
            raise ProtocolError("protocol error: invalid line ending")
        return line[:-2]

    def _read_exact(self, size: int) -> bytes:
        chunks = []
        remaining = size
        while remaining > 0:
            chunk = self._reader.read(remaining)
            if not chunk:
                raise EOFError("unexpected end of stream")
            chunks.append(chunk)
            remaining -= len(chunk)
        return b"".join(chunks)

    def _expect_crlf(self) -> None:
        if self._reader.read(1) != b"\r":
            raise ProtocolError("protocol error: expected CR")
        if self._reader.read(1) != b"\n":
            raise ProtocolError("protocol error: expected LF")


def to_cmd_line(payload: Payload) -> list[bytes]:
    """Turn a parsed payload into a command line of byte strings.

    Arrays give their elements; a simple string is split on whitespace.
    Raises TypeError for payloads that cannot form a command and
    ValueError for an empty command."""
    if isinstance(payload, str):
        parts = payload.split()
        if not parts:
            raise ValueError("empty command")
        return [part.encode(_TEXT_ENCODING, _TEXT_ERRORS) for part in parts]
    if isinstance(payload, list):
        if not payload:
            raise ValueError("empty command")
        line: list[bytes] = []
        for item in payload:
            if isinstance(item, bytes):
                line.append(item)
            elif isinstance(item, str):
                line.append(item.encode(_TEXT_ENCODING, _TEXT_ERRORS))
            elif isinstance(item, int) and not isinstance(item, bool):
                line.append(str(item).encode("ascii"))
            else:
                raise TypeError(f"cannot use {type(item).__name__} as a command argument")
        return line
    raise TypeError(f"cannot build a command from {type(payload).__name__}")