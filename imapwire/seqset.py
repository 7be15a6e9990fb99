"""Sets of message sequence numbers and UIDs (the IMAP ``sequence-set`` rule).

A :class:`Seq` is a single ``seq-number`` or ``seq-range``. Zero stands for
``*``, which is safe because sequence numbers are never zero. A range always
has ``start <= stop``, except ``n:*``, which is stored as ``Seq(n, 0)``.
"""

from __future__ import annotations

from bisect import bisect_left
from dataclasses import dataclass

_MAX = 0xFFFFFFFF
_DIGITS = frozenset("0123456789")


class BadSeqSetError(ValueError):
    """Raised when a sequence set value is malformed."""

    def __init__(self, value: str) -> None:
        super().__init__(f'imap: bad sequence set value "{value}"')
        self.value = value


def _parse_seq_number(value: str) -> int:
    """Parse a non-zero 32-bit number or ``*`` (returned as 0)."""
    if value == "*":
        return 0
    if value and value[0] != "0" and set(value) <= _DIGITS:
        number = int(value)
        if number <= _MAX:
            return number
    raise BadSeqSetError(value)


@dataclass(frozen=True)
class Seq:
    """A single sequence number or range; 0 stands for ``*``."""

    start: int
    stop: int

    def contains(self, q: int) -> bool:
        """Whether sequence number ``q`` lies in this value.

        ``*`` (q == 0) is contained only in ``*`` and ``n:*``.
        """
        if q == 0:
            return self.stop == 0
        return self.start != 0 and self.start <= q and (q <= self.stop or self.stop == 0)

    def less(self, q: int) -> bool:
        """Whether this value precedes and does not contain ``q``."""
        return (self.stop < q or q == 0) and self.stop != 0

    def merge(self, other: Seq) -> tuple[Seq, bool]:
        """Union of two values if they touch or overlap.

        Returns ``(union, True)`` on success and ``(self, False)`` otherwise.
        """
        if self == other:
            return self, True
        if self.start != 0 and other.start != 0:
            low, high = (other, self) if self.start > other.start else (self, other)
            if (low.stop >= high.stop and high.stop != 0) or low.stop == 0:
                return low, True
            if low.stop + 1 >= high.start:
                return Seq(low.start, high.stop), True
            return self, False
        # Exactly one of the two is "*".
        if self.start == 0:
            if other.stop == 0:
                return other, True
        elif self.stop == 0:
            return self, True
        return self, False

    def __str__(self) -> str:
        if self.start == self.stop:
            return "*" if self.start == 0 else str(self.start)
        if self.stop == 0:
            return f"{self.start}:*"
        return f"{self.start}:{self.stop}"


def parse_seq(value: str) -> Seq:
    """Parse ``n`` or ``n:m`` where either side may be ``*``."""
    head, sep, tail = value.partition(":")
    if not sep:
        number = _parse_seq_number(value)
        return Seq(number, number)
    try:
        start = _parse_seq_number(head)
        stop = _parse_seq_number(tail)
    except BadSeqSetError:
        raise BadSeqSetError(value) from None
    if (stop < start and stop != 0) or start == 0:
        start, stop = stop, start
    return Seq(start, stop)


class SeqSet:
    """A sorted, merged set of sequence values. Empty when created."""

    def __init__(self) -> None:
        self.seqs: list[Seq] = []

    @classmethod
    def parse(cls, text: str) -> SeqSet:
        """Build a set from its string form."""
        result = cls()
        result.add(text)
        return result

    def add(self, text: str) -> None:
        """Insert the comma separated values of ``text``.

        Values inserted before a malformed one stay in the set.
        """
        for part in text.split(","):
            self._insert(parse_seq(part))

    def add_num(self, *args: int) -> None:
        """Insert sequence numbers; 0 stands for ``*``."""
        for number in args:
            self._insert(Seq(number, number))

    def add_range(self, start: int, stop: int) -> None:
        """Insert a range, in either order."""
        if (stop < start and stop != 0) or start == 0:
            start, stop = stop, start
        self._insert(Seq(start, stop))

    def add_set(self, other: SeqSet) -> None:
        """Insert every value of another set."""
        for value in other.seqs:
            self._insert(value)

    def clear(self) -> None:
        """Remove every value."""
        self.seqs.clear()

    def empty(self) -> bool:
        """Whether the set holds no values."""
        return not self.seqs

    def dynamic(self) -> bool:
        """Whether the set holds ``*`` or ``n:*``."""
        return bool(self.seqs) and self.seqs[-1].stop == 0

    def contains(self, q: int) -> bool:
        """Whether the non-zero number ``q`` is in the set.

        ``n:*`` contains every ``q >= n``; ``*`` on its own matches nothing.
        """
        _, found = self._search(q)
        return found and q != 0

    def __str__(self) -> str:
        return ",".join(str(value) for value in self.seqs)

    def __repr__(self) -> str:
        return f"SeqSet({str(self)!r})"

    def _search(self, q: int) -> tuple[int, bool]:
        index = bisect_left(self.seqs, True, key=lambda value: not value.less(q))
        if index == len(self.seqs):
            return index, False
        return index, self.seqs[index].contains(q)

    def _insert(self, value: Seq) -> None:
        seqs = self.seqs
        index, _ = self._search(value.start)
        merged = False
        if index > 0:
            seqs[index - 1], merged = seqs[index - 1].merge(value)
        if index == len(seqs):
            if not merged:
                seqs.append(value)
            return
        if merged:
            index -= 1
        else:
            seqs[index], merged = seqs[index].merge(value)
            if not merged:
                seqs.insert(index, value)
                return
        # seqs[index] grew; absorb any following entries it now reaches.
        end = index + 1
        while end < len(seqs):
            union, ok = seqs[index].merge(seqs[end])
            if not ok:
                break
            seqs[index] = union
            end += 1
        del seqs[index + 1:end]