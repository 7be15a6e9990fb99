"""Modified UTF-7, the mailbox name encoding of IMAP4rev1 (RFC 3501, 5.1.3)."""

from __future__ import annotations

import base64
import struct
from itertools import groupby

_MIN = 0x20  # lowest self-representing character
_MAX = 0x7E  # highest self-representing character

_ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789+,"
_B64_INDEX = {char: index for index, char in enumerate(_ALPHABET)}


class InvalidUTF7Error(ValueError):
    """Raised when input is not valid modified UTF-7."""

    def __init__(self) -> None:
        super().__init__("utf7: invalid UTF-7")


def _is_printable(char: str) -> bool:
    return _MIN <= ord(char) <= _MAX


def _encode_run(chars) -> str:
    # Lone surrogates cannot be written as UTF-16; they become U+FFFD.
    text = "".join("\ufffd" if 0xD800 <= ord(c) <= 0xDFFF else c for c in chars)
    encoded = base64.b64encode(text.encode("utf-16-be"), altchars=b"+,")
    return "&" + encoded.rstrip(b"=").decode("ascii") + "-"


def encode(text: str | bytes) -> str:
    """Encode text as modified UTF-7.

    Bytes are read as UTF-8; every byte that is not part of a valid
    sequence is encoded as U+FFFD.
    """
    if isinstance(text, (bytes, bytearray)):
        text = bytes(text).decode("utf-8", "surrogateescape")
    parts = []
    for printable, run in groupby(text, _is_printable):
        if printable:
            parts.append("".join(run).replace("&", "&-"))
        else:
            parts.append(_encode_run(run))
    return "".join(parts)


def _decode_base64(chunk: str) -> bytes:
    if len(chunk) % 4 == 1:
        raise InvalidUTF7Error()
    data = bytearray()
    acc = 0
    nbits = 0
    for char in chunk:
        value = _B64_INDEX.get(char)
        if value is None:
            raise InvalidUTF7Error()
        acc = (acc << 6) | value
        nbits += 6
        if nbits >= 8:
            nbits -= 8
            data.append((acc >> nbits) & 0xFF)
            acc &= (1 << nbits) - 1
    return bytes(data)


def _decode_segment(chunk: str) -> str:
    """Decode the base64 part of a shifted segment into text."""
    data = _decode_base64(chunk)
    if len(data) % 2:
        raise InvalidUTF7Error()
    units = iter(struct.unpack(f">{len(data) // 2}H", data))
    chars = []
    for unit in units:
        if 0xD800 <= unit <= 0xDFFF:
            low = next(units, None)
            if low is None or not (unit < 0xDC00 and 0xDC00 <= low <= 0xDFFF):
                raise InvalidUTF7Error()
            code = 0x10000 + ((unit - 0xD800) << 10) + (low - 0xDC00)
        elif _MIN <= unit <= _MAX:
            # Printable ASCII must never be shifted.
            raise InvalidUTF7Error()
        else:
            code = unit
        chars.append(chr(code))
    return "".join(chars)


def decode(text: str | bytes) -> str:
    """Decode modified UTF-7 into text, raising InvalidUTF7Error on bad input."""
    if isinstance(text, (bytes, bytearray)):
        text = bytes(text).decode("latin-1")
    out = []
    after_ascii = True
    pos = 0
    while pos < len(text):
        char = text[pos]
        if not _is_printable(char):
            raise InvalidUTF7Error()
        if char != "&":
            out.append(char)
            after_ascii = True
            pos += 1
            continue
        end = text.find("-", pos + 1)
        if end < 0:
            # Implicit shift back to ASCII.
            raise InvalidUTF7Error()
        if end == pos + 1:
            out.append("&")
            after_ascii = True
        else:
            if not after_ascii:
                # Two shifted segments with nothing between them.
                raise InvalidUTF7Error()
            out.append(_decode_segment(text[pos + 1:end]))
            after_ascii = False
        pos = end + 1
    return "".join(out)