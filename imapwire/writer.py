"""Serialisation of IMAP fields onto a byte stream."""

from __future__ import annotations

import io
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Any, BinaryIO, Iterable

from .seqset import SeqSet

NIL = "NIL"
CRLF = "\r\n"

_UINT32_MASK = 0xFFFFFFFF
_MAX_ASYNC_LITERAL = 4096
_CHUNK_SIZE = 64 * 1024
_MONTHS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun",
           "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")


class RawString(str):
    """A string written as is, with no quoting (atoms, keywords)."""

    __slots__ = ()


@dataclass(frozen=True)
class SearchDate:
    """A date written in the form used by SEARCH criteria."""

    value: date


class LiteralLengthError(Exception):
    """Raised when a literal's data does not match its declared length."""

    def __init__(self, actual: int, expected: int) -> None:
        super().__init__(
            f"imap: size of Literal is not equal to Len() ({expected} != {actual})"
        )
        self.actual = actual
        self.expected = expected


class Literal:
    """Data sent as an IMAP literal: bytes, or a binary stream with a length."""

    def __init__(self, source: Any, length: int | None = None) -> None:
        if isinstance(source, str):
            source = source.encode("utf-8")
        if isinstance(source, (bytes, bytearray, memoryview)):
            data = bytes(source)
            self._stream: BinaryIO = io.BytesIO(data)
            self.length = len(data) if length is None else length
        else:
            if length is None:
                raise TypeError("a length is required for a literal stream")
            self._stream = source
            self.length = length

    def __len__(self) -> int:
        return self.length

    def read(self, size: int = -1) -> bytes:
        """Read up to ``size`` bytes of the literal's data."""
        return self._stream.read(size)


def format_string_list(items: Iterable[str]) -> list:
    """Turn a list of strings into a list of fields."""
    return list(items)


def _is_ascii(text: str) -> bool:
    """Whether every character is printable 7-bit ASCII."""
    return all(0x20 <= ord(char) < 0x7F for char in text)


def _quote(text: str) -> str:
    return '"' + text.replace("\\", "\\\\").replace('"', '\\"') + '"'


def _format_date(value: date) -> str:
    return f"{value.day}-{_MONTHS[value.month - 1]}-{value.year:04d}"


def _format_date_time(value: datetime) -> str:
    offset = value.utcoffset() or timedelta(0)
    minutes = int(offset.total_seconds()) // 60
    sign = "-" if minutes < 0 else "+"
    hours, mins = divmod(abs(minutes), 60)
    return (
        f"{value.day:2d}-{_MONTHS[value.month - 1]}-{value.year:04d} "
        f"{value.hour:02d}:{value.minute:02d}:{value.second:02d} "
        f"{sign}{hours:02d}{mins:02d}"
    )


def _is_zero_time(value: datetime) -> bool:
    return value.replace(tzinfo=None) == datetime.min


class Writer:
    """Writes IMAP fields, lists, literals and lines to a binary stream."""

    def __init__(self, stream: BinaryIO, allow_async_literals: bool = False) -> None:
        self.stream = stream
        self.allow_async_literals = allow_async_literals

    def write_string(self, text: str) -> None:
        """Write text unchanged, encoded as UTF-8."""
        self.stream.write(str.__str__(text).encode("utf-8"))

    def write_crlf(self) -> None:
        """End the current line and flush."""
        self.write_string(CRLF)
        self.flush()

    def _write_quoted_or_literal(self, text: str) -> None:
        if _is_ascii(text):
            self.write_string(_quote(text))
        else:
            # 8-bit data is only allowed inside literals.
            self._write_literal(Literal(text))

    def _write_date_time(self, value: datetime) -> None:
        if _is_zero_time(value):
            self.write_string(NIL)
        else:
            self.write_string(_quote(_format_date_time(value)))

    def _write_literal(self, literal: Literal) -> None:
        length = len(literal)
        unsync = self.allow_async_literals and length <= _MAX_ASYNC_LITERAL
        self.write_string("{" + str(length) + ("+" if unsync else "") + "}" + CRLF)

        written = 0
        while written < length:
            chunk = literal.read(min(_CHUNK_SIZE, length - written))
            if not chunk:
                raise LiteralLengthError(written, length)
            self.stream.write(chunk)
            written += len(chunk)

        extra = 0
        while chunk := literal.read(_CHUNK_SIZE):
            extra += len(chunk)
        if extra:
            raise LiteralLengthError(written + extra, length)

    def write_field(self, field: Any) -> None:
        """Write one field in the form its type calls for."""
        if field is None:
            self.write_string(NIL)
        elif isinstance(field, RawString):
            self.write_string(field)
        elif isinstance(field, str):
            self._write_quoted_or_literal(field)
        elif isinstance(field, bool):
            raise TypeError(f"imap: cannot format field: {field!r}")
        elif isinstance(field, int):
            self.write_string(str(field & _UINT32_MASK))
        elif isinstance(field, Literal):
            self._write_literal(field)
        elif isinstance(field, (list, tuple)):
            self.write_list(field)
        elif isinstance(field, SearchDate):
            self.write_string(_quote(_format_date(field.value)))
        elif isinstance(field, datetime):
            self._write_date_time(field)
        elif isinstance(field, date):
            self.write_string(_quote(_format_date(field)))
        elif isinstance(field, SeqSet):
            self.write_string(str(field))
        else:
            raise TypeError(f"imap: cannot format field: {field!r}")

    def write_fields(self, fields: Iterable[Any]) -> None:
        """Write fields separated by single spaces."""
        for index, field in enumerate(fields):
            if index:
                self.write_string(" ")
            self.write_field(field)

    def write_list(self, fields: Iterable[Any]) -> None:
        """Write fields as a parenthesised list."""
        self.write_string("(")
        self.write_fields(fields)
        self.write_string(")")

    def write_resp_code(self, code: str, args: Iterable[Any] | None) -> None:
        """Write a bracketed response code with its arguments."""
        self.write_string("[")
        self.write_fields([RawString(code), *(args or ())])
        self.write_string("]")

    def write_line(self, *args: Any) -> None:
        """Write fields followed by CRLF."""
        self.write_fields(args)
        self.write_crlf()

    def flush(self) -> None:
        """Flush the underlying stream if it can be flushed."""
        flush = getattr(self.stream, "flush", None)
        if flush is not None:
            flush()