"""Mark spec file format.

A spec is plain text with one entry per line. An entry is either a single
line number::

    10

or an inclusive range written as two numbers separated by whitespace::

    20 30

Blank lines are skipped. Line numbers above
ViewerConstants.MAX_LINE_NUMBER and anything else are rejected with
MalformedSpec.
"""

from __future__ import annotations

import re
from typing import Iterable, NamedTuple, Union

from .constants import ViewerConstants
from .errors import MalformedSpec

_NUMBER = re.compile(r"[0-9]+")


class SpecEntry(NamedTuple):
    """An inclusive run of marked lines; start == end for a single line."""
    start: int
    end: int

    @classmethod
    def single(cls, n: int) -> SpecEntry:
        return cls(n, n)

    @property
    def is_range(self) -> bool:
        return self.start != self.end

    def lines(self) -> range:
        return range(self.start, self.end + 1)

    def format(self) -> str:
        if self.is_range:
            return f"{self.start} {self.end}"
        return str(self.start)


def _parse_number(token: str, line_no: int, text: str) -> int:
    if not _NUMBER.fullmatch(token):
        raise MalformedSpec(f"invalid line number {token!r}", line_no, text)
    limit = ViewerConstants.MAX_LINE_NUMBER
    digits = token.lstrip("0") or "0"
    # Length check first: int() refuses very long digit strings
    if len(digits) > len(str(limit)) or int(digits) > limit:
        raise MalformedSpec(f"line number {digits} exceeds {limit}", line_no, text)
    return int(digits)


def parse_entries(text: str) -> list[SpecEntry]:
    """Parse spec text into entries, in file order.

    Raises:
        MalformedSpec: on a non-numeric token, a number above
            ViewerConstants.MAX_LINE_NUMBER, more than two numbers on a
            line, or a range whose start exceeds its end
    """
    entries = []
    for line_no, line in enumerate(text.splitlines(), start=1):
        tokens = line.split()
        if not tokens:
            continue
        if len(tokens) > 2:
            raise MalformedSpec("expected a number or a range", line_no, line)
        numbers = [_parse_number(token, line_no, line) for token in tokens]
        if len(numbers) == 1:
            entries.append(SpecEntry.single(numbers[0]))
            continue
        start, end = numbers
        if start > end:
            raise MalformedSpec(f"range start {start} is after end {end}", line_no, line)
        entries.append(SpecEntry(start, end))
    return entries


def parse(text: str) -> set[int]:
    """Parse spec text into the set of marked line numbers.

    Duplicate and overlapping entries are unioned.
    """
    marks: set[int] = set()
    for entry in parse_entries(text):
        marks.update(entry.lines())
    return marks


def serialize(entries: Iterable[Union[SpecEntry, int]]) -> str:
    """Format entries in ascending order, one per line.

    Bare integers are written as single entries, so passing a mark set
    directly gives the unoptimized one-number-per-mark form.
    """
    normalized = [
        entry if isinstance(entry, SpecEntry) else SpecEntry.single(entry)
        for entry in entries
    ]
    normalized.sort()
    return '\n'.join(entry.format() for entry in normalized)


def optimize(marks: Iterable[int]) -> list[SpecEntry]:
    """Collapse marked lines into the minimal ascending list of entries.

    Consecutive numbers become one range; isolated numbers stay single.
    """
    entries: list[SpecEntry] = []
    start = prev = None
    for n in sorted(set(marks)):
        if prev is not None and n == prev + 1:
            prev = n
            continue
        if start is not None:
            entries.append(SpecEntry(start, prev))
        start = prev = n
    if start is not None:
        entries.append(SpecEntry(start, prev))
    return entries
