"""SEARCH criteria: parsing from command fields and formatting back."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, BinaryIO, Callable, Iterator, Optional

from .seqset import SeqSet
from .writer import RawString, SearchDate

SEEN_FLAG = "\\Seen"
ANSWERED_FLAG = "\\Answered"
FLAGGED_FLAG = "\\Flagged"
DELETED_FLAG = "\\Deleted"
DRAFT_FLAG = "\\Draft"
RECENT_FLAG = "\\Recent"

_SYSTEM_FLAGS = (SEEN_FLAG, ANSWERED_FLAG, FLAGGED_FLAG, DELETED_FLAG, DRAFT_FLAG, RECENT_FLAG)
_HEADER_KEYS = ("Bcc", "Cc", "From", "Subject", "To")
_ONE_DAY = timedelta(hours=24)
_UINT32_MAX = 0xFFFFFFFF
_MONTHS = {name: index for index, name in enumerate(
    ("jan", "feb", "mar", "apr", "may", "jun",
     "jul", "aug", "sep", "oct", "nov", "dec"), start=1)}
_DATE_RE = re.compile(r" ?(\d{1,2})-([A-Za-z]{3})-(\d{4})")
_TOKEN_CHARS = frozenset(
    "abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789!#$%&'*+-.^_`|~"
)
_END = object()

CharsetReader = Callable[[BinaryIO], Optional[BinaryIO]]


def canonical_flag(flag: str) -> str:
    """Return the canonical form of a flag.

    System flags keep their RFC 3501 spelling; any other flag is lowercased.
    """
    for system_flag in _SYSTEM_FLAGS:
        if system_flag.lower() == flag.lower():
            return system_flag
    return flag.lower()


def _canonical_header_key(key: str) -> str:
    """Capitalise each dash-separated word, leaving invalid keys untouched."""
    if not key or any(char not in _TOKEN_CHARS for char in key):
        return key
    chars = []
    upper = True
    for char in key:
        if upper and "a" <= char <= "z":
            char = char.upper()
        elif not upper and "A" <= char <= "Z":
            char = char.lower()
        chars.append(char)
        upper = char == "-"
    return "".join(chars)


def _maybe_string(value: Any) -> str:
    return value if isinstance(value, str) else ""


def _read_exactly(stream: Any, length: int) -> bytes | None:
    data = bytearray()
    while len(data) < length:
        chunk = stream.read(length - len(data))
        if not chunk:
            return None
        data.extend(chunk)
    return bytes(data)


def _convert_field(value: Any, charset_reader: CharsetReader | None) -> str:
    """Turn a string or literal field into text."""
    if isinstance(value, str):
        # Quoted strings and atoms are 7-bit, no decoding needed.
        return value
    if isinstance(value, (bytes, bytearray)):
        from .writer import Literal

        value = Literal(bytes(value))
    if not (hasattr(value, "read") and hasattr(value, "__len__")):
        return ""
    length = len(value)
    stream = value
    if charset_reader is not None:
        decoded = charset_reader(value)
        if decoded is not None:
            stream = decoded
    data = _read_exactly(stream, length)
    if data is None:
        return ""
    return data.decode("utf-8", "replace")


def _parse_date(value: Any) -> datetime:
    text = _maybe_string(value)
    match = _DATE_RE.fullmatch(text)
    if match is None:
        raise ValueError(f"imap: cannot parse date {text!r}")
    day, month_name, year = match.groups()
    month = _MONTHS.get(month_name.lower())
    if month is None:
        raise ValueError(f"imap: cannot parse date {text!r}")
    try:
        return datetime(int(year), month, int(day), tzinfo=timezone.utc)
    except ValueError:
        raise ValueError(f"imap: cannot parse date {text!r}") from None


def _parse_number(value: Any) -> int:
    if isinstance(value, int) and not isinstance(value, bool):
        number = value
    elif isinstance(value, str) and value.isascii() and value.isdigit():
        number = int(value)
    else:
        raise ValueError(f"imap: expected a number, got {value!r}")
    if not 0 <= number <= _UINT32_MAX:
        raise ValueError(f"imap: number out of range: {value!r}")
    return number


def _pop(fields: Iterator[Any]) -> Any:
    value = next(fields, _END)
    if value is _END:
        raise ValueError("imap: no enough fields for search key")
    return value


@dataclass(eq=False)
class SearchCriteria:
    """A message matches when it matches every one of these criteria.

    Dates are ``None`` when unset; only their day is significant.
    """

    seq_num: SeqSet | None = None
    uid: SeqSet | None = None
    since: datetime | None = None
    before: datetime | None = None
    sent_since: datetime | None = None
    sent_before: datetime | None = None
    header: dict[str, list[str]] = field(default_factory=dict)
    body: list[str] = field(default_factory=list)
    text: list[str] = field(default_factory=list)
    with_flags: list[str] = field(default_factory=list)
    without_flags: list[str] = field(default_factory=list)
    larger: int = 0
    smaller: int = 0
    not_: list[SearchCriteria] = field(default_factory=list)
    or_: list[tuple[SearchCriteria, SearchCriteria]] = field(default_factory=list)

    def _key(self) -> tuple:
        return (
            None if self.seq_num is None else str(self.seq_num),
            None if self.uid is None else str(self.uid),
            self.since, self.before, self.sent_since, self.sent_before,
            self.header, self.body, self.text,
            self.with_flags, self.without_flags,
            self.larger, self.smaller,
            self.not_, [tuple(pair) for pair in self.or_],
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SearchCriteria):
            return NotImplemented
        return self._key() == other._key()

    def _add_header(self, key: str, value: str) -> None:
        self.header.setdefault(_canonical_header_key(key), []).append(value)

    def parse(self, fields: list, charset_reader: CharsetReader | None = None) -> None:
        """Add criteria read from command fields.

        ``charset_reader`` optionally wraps a literal's stream to convert its
        charset to UTF-8. Raises ValueError on malformed criteria.
        """
        iterator = iter(fields)
        for first in iterator:
            self._parse_key(first, iterator, charset_reader)

    def _parse_next(self, fields: Iterator[Any], charset_reader: CharsetReader | None) -> None:
        first = next(fields, _END)
        if first is not _END:
            self._parse_key(first, fields, charset_reader)

    def _parse_key(self, first: Any, fields: Iterator[Any],
                   charset_reader: CharsetReader | None) -> None:
        if isinstance(first, (list, tuple)):
            self.parse(list(first), charset_reader)
            return
        if not isinstance(first, str):
            raise ValueError(
                f"imap: invalid search criteria field type: {type(first).__name__}"
            )
        key = first.upper()

        if key == "ALL":
            pass
        elif key in ("ANSWERED", "DELETED", "DRAFT", "FLAGGED", "RECENT", "SEEN"):
            self.with_flags.append(canonical_flag("\\" + key))
        elif key in ("BCC", "CC", "FROM", "SUBJECT", "TO"):
            self._add_header(key, _convert_field(_pop(fields), charset_reader))
        elif key == "BEFORE":
            moment = _parse_date(_pop(fields))
            if self.before is None or moment < self.before:
                self.before = moment
        elif key == "BODY":
            self.body.append(_convert_field(_pop(fields), charset_reader))
        elif key == "HEADER":
            name = _pop(fields)
            value = _pop(fields)
            self._add_header(_maybe_string(name), _convert_field(value, charset_reader))
        elif key == "KEYWORD":
            self.with_flags.append(canonical_flag(_maybe_string(_pop(fields))))
        elif key == "LARGER":
            number = _parse_number(_pop(fields))
            if self.larger == 0 or number > self.larger:
                self.larger = number
        elif key == "NEW":
            self.with_flags.append(RECENT_FLAG)
            self.without_flags.append(SEEN_FLAG)
        elif key == "NOT":
            negated = SearchCriteria()
            negated._parse_next(fields, charset_reader)
            self.not_.append(negated)
        elif key == "OLD":
            self.without_flags.append(RECENT_FLAG)
        elif key == "ON":
            moment = _parse_date(_pop(fields))
            self.since = moment
            self.before = moment + _ONE_DAY
        elif key == "OR":
            left, right = SearchCriteria(), SearchCriteria()
            left._parse_next(fields, charset_reader)
            right._parse_next(fields, charset_reader)
            self.or_.append((left, right))
        elif key == "SENTBEFORE":
            moment = _parse_date(_pop(fields))
            if self.sent_before is None or moment < self.sent_before:
                self.sent_before = moment
        elif key == "SENTON":
            moment = _parse_date(_pop(fields))
            self.sent_since = moment
            self.sent_before = moment + _ONE_DAY
        elif key == "SENTSINCE":
            moment = _parse_date(_pop(fields))
            if self.sent_since is None or moment > self.sent_since:
                self.sent_since = moment
        elif key == "SINCE":
            moment = _parse_date(_pop(fields))
            if self.since is None or moment > self.since:
                self.since = moment
        elif key == "SMALLER":
            number = _parse_number(_pop(fields))
            if self.smaller == 0 or number < self.smaller:
                self.smaller = number
        elif key == "TEXT":
            self.text.append(_convert_field(_pop(fields), charset_reader))
        elif key == "UID":
            self.uid = SeqSet.parse(_maybe_string(_pop(fields)))
        elif key in ("UNANSWERED", "UNDELETED", "UNDRAFT", "UNFLAGGED", "UNSEEN"):
            self.without_flags.append(canonical_flag("\\" + key[2:]))
        elif key == "UNKEYWORD":
            self.without_flags.append(canonical_flag(_maybe_string(_pop(fields))))
        else:
            self.seq_num = SeqSet.parse(key)

    @staticmethod
    def _format_range(fields: list, since: datetime | None, before: datetime | None,
                      on_key: str, since_key: str, before_key: str) -> None:
        if since is not None and before is not None and before - since == _ONE_DAY:
            fields += [RawString(on_key), SearchDate(since)]
            return
        if since is not None:
            fields += [RawString(since_key), SearchDate(since)]
        if before is not None:
            fields += [RawString(before_key), SearchDate(before)]

    def format(self) -> list:
        """Return the criteria as a list of fields ready to be written."""
        fields: list = []
        if self.seq_num is not None:
            fields.append(self.seq_num)
        if self.uid is not None:
            fields += [RawString("UID"), self.uid]

        self._format_range(fields, self.since, self.before, "ON", "SINCE", "BEFORE")
        self._format_range(fields, self.sent_since, self.sent_before,
                           "SENTON", "SENTSINCE", "SENTBEFORE")

        for key, values in self.header.items():
            if key in _HEADER_KEYS:
                prefix: list = [RawString(key.upper())]
            else:
                prefix = [RawString("HEADER"), key]
            for value in values:
                fields += [*prefix, value]

        for value in self.body:
            fields += [RawString("BODY"), value]
        for value in self.text:
            fields += [RawString("TEXT"), value]

        for flag in self.with_flags:
            if flag in _SYSTEM_FLAGS:
                fields.append(RawString(flag[1:].upper()))
            else:
                fields += [RawString("KEYWORD"), flag]
        for flag in self.without_flags:
            if flag == RECENT_FLAG:
                fields.append(RawString("OLD"))
            elif flag in _SYSTEM_FLAGS:
                fields.append(RawString("UN" + flag[1:].upper()))
            else:
                fields += [RawString("UNKEYWORD"), flag]

        if self.larger > 0:
            fields += [RawString("LARGER"), self.larger]
        if self.smaller > 0:
            fields += [RawString("SMALLER"), self.smaller]

        for negated in self.not_:
            fields += [RawString("NOT"), negated.format()]
        for left, right in self.or_:
            fields += [RawString("OR"), left.format(), right.format()]

        return fields