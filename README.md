# imapwire

Building blocks for the IMAP4rev1 wire format (RFC 3501). It is plain Python
and needs no third-party packages.

## Modules

- `imapwire.seqset` holds `Seq`, `SeqSet`, `parse_seq` and `BadSeqSetError`.
  A `Seq` is one sequence number or range. A `SeqSet` holds a set of message
  sequence numbers or UIDs such as `1:3,5,7:*` and keeps it sorted and merged.
  `SeqSet` has `parse`, `add`, `add_num`, `add_range`, `add_set`, `clear`,
  `empty`, `dynamic` and `contains`. Zero stands for `*`. Malformed input
  raises `BadSeqSetError`, which is a `ValueError`.
- `imapwire.utf7` holds `encode` and `decode` for modified UTF-7, the
  encoding IMAP uses for mailbox names. Both accept `str` or `bytes`.
  `decode` raises `InvalidUTF7Error` on bad input.
- `imapwire.writer` holds `Writer`, which writes fields to a binary stream.
  `None` is written as `NIL` and `RawString` as an atom, unquoted. Other
  strings become quoted strings, or literals when they are not printable
  ASCII. Integers are written as numbers and lists or tuples as
  parenthesised lists. A `Literal` wraps bytes or a stream with a length.
  `SearchDate` and `date` are written as `"5-Nov-1984"`. A `datetime` is
  written as `"10-Nov-2009 23:00:00 +0000"`, or `NIL` when it is
  `datetime.min`. A `SeqSet` is written in its string form. With
  `allow_async_literals=True`, literals of at most 4096 bytes get the
  non-synchronising `{n+}` header. A literal whose data does not match its
  length raises `LiteralLengthError`. `format_string_list` turns a list of
  strings into fields.
- `imapwire.status` holds `StatusResp` for tagged and untagged responses.
  The enum `StatusRespType` has `OK`, `NO`, `BAD`, `PREAUTH` and `BYE`, and
  the enum `StatusRespCode` has the RFC 3501 response codes. `check()` raises
  `StatusError` for `NO` and `BAD` responses. `write_to(writer)` writes the
  response as one line.
- `imapwire.search` holds `SearchCriteria`. Its `parse` method reads the
  arguments of a SEARCH command, and its `format` method turns the criteria
  back into fields. `canonical_flag` returns the RFC spelling of system
  flags and lowercases any other flag.

## Examples

Sequence sets:

```python
from imapwire.seqset import SeqSet

s = SeqSet.parse("1,2,3,7:9,20:*")
str(s)          # '1:3,7:9,20:*'
s.contains(8)   # True
s.dynamic()     # True
```

Mailbox names:

```python
from imapwire import utf7

utf7.encode("~peter/mail/台北/日本語")   # '~peter/mail/&U,BTFw-/&ZeVnLIqe-'
utf7.decode("&Jjo-!")                    # '☺!'
```

Writing a status response:

```python
import io
from imapwire.writer import Writer
from imapwire.status import StatusResp, StatusRespType, StatusRespCode

buf = io.BytesIO()
StatusResp(
    tag="a001",
    type=StatusRespType.OK,
    code=StatusRespCode.READ_ONLY,
    info="EXAMINE completed",
).write_to(Writer(buf))
buf.getvalue()   # b'a001 OK [READ-ONLY] EXAMINE completed\r\n'
```

Search criteria:

```python
import io
from imapwire.search import SearchCriteria
from imapwire.writer import Writer

c = SearchCriteria()
c.parse(["UNSEEN", "FROM", "alice@example.com", "LARGER", "1024"], None)
c.header        # {'From': ['alice@example.com']}
c.larger        # 1024

buf = io.BytesIO()
Writer(buf).write_fields(c.format())
buf.getvalue()  # b'FROM "alice@example.com" UNSEEN LARGER 1024'
```

## What it does not do

This package only handles pieces of the wire format. It has no client, no
server and no network code. It has no reader that parses raw protocol
lines into fields. It does not store mailboxes or messages, and it does not
check messages against `SearchCriteria`. Callers supply the fields and do
the matching themselves.

## Running the tests

```
pip install -e .[test]
pytest
```