"""Status responses (RFC 3501, section 7.1)."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .writer import RawString, Writer


class StatusRespType(str, Enum):
    """The kind of a status response."""

    OK = "OK"
    NO = "NO"
    BAD = "BAD"
    PREAUTH = "PREAUTH"
    BYE = "BYE"


class StatusRespCode(str, Enum):
    """Status response codes defined by RFC 3501."""

    ALERT = "ALERT"
    BAD_CHARSET = "BADCHARSET"
    CAPABILITY = "CAPABILITY"
    PARSE = "PARSE"
    PERMANENT_FLAGS = "PERMANENTFLAGS"
    READ_ONLY = "READ-ONLY"
    READ_WRITE = "READ-WRITE"
    TRY_CREATE = "TRYCREATE"
    UID_NEXT = "UIDNEXT"
    UID_VALIDITY = "UIDVALIDITY"
    UNSEEN = "UNSEEN"


def _text(value: Any) -> str:
    return value.value if isinstance(value, Enum) else str.__str__(value)


class StatusError(Exception):
    """Raised for a NO or BAD status response; the message is its info text."""

    def __init__(self, response: StatusResp) -> None:
        super().__init__(response.info)
        self.response = response


@dataclass
class StatusResp:
    """A tagged or untagged status response. An empty tag is written as ``*``."""

    tag: str = ""
    type: StatusRespType | str = StatusRespType.OK
    code: StatusRespCode | str = ""
    arguments: list = field(default_factory=list)
    info: str = ""

    def check(self) -> None:
        """Raise StatusError if this is a NO or BAD response."""
        if _text(self.type) in (StatusRespType.NO.value, StatusRespType.BAD.value):
            raise StatusError(self)

    def write_to(self, writer: Writer) -> None:
        """Write this response as one line."""
        tag = self.tag or "*"
        writer.write_fields([RawString(tag), RawString(_text(self.type))])
        writer.write_string(" ")
        if self.code:
            writer.write_resp_code(_text(self.code), self.arguments)
            writer.write_string(" ")
        writer.write_string(self.info)
        writer.write_crlf()