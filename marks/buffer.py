"""Immutable line storage for the viewed source file."""

from __future__ import annotations

from pathlib import Path
from typing import Iterator, Sequence, Union

from .errors import OutOfRange


class LineBuffer:
    """Lines of a source file, addressed by 1-based line number."""

    __slots__ = ("_lines",)

    def __init__(self, lines: Sequence[str] = ()):
        self._lines = tuple(lines)

    @classmethod
    def load(cls, raw_text: str) -> LineBuffer:
        """Split raw text into lines.

        A trailing newline does not produce an extra empty line and an
        empty string has no lines at all. CRLF line endings are accepted.
        """
        if not raw_text:
            return cls()
        lines = raw_text.split('\n')
        if lines[-1] == "":
            lines.pop()
        return cls(line[:-1] if line.endswith('\r') else line for line in lines)

    @classmethod
    def read(cls, path: Union[str, Path]) -> LineBuffer:
        with open(path, 'r', encoding='utf-8', errors='replace') as f:
            return cls.load(f.read())

    def line_count(self) -> int:
        return len(self._lines)

    def line_at(self, n: int) -> str:
        """Return the text of line n (1-based).

        Raises:
            OutOfRange: if n is not in [1, line_count]
        """
        if not 1 <= n <= len(self._lines):
            raise OutOfRange(n, len(self._lines))
        return self._lines[n - 1]

    def contains(self, n: int) -> bool:
        return 1 <= n <= len(self._lines)

    @property
    def lines(self) -> tuple[str, ...]:
        return self._lines

    def __len__(self) -> int:
        return len(self._lines)

    def __iter__(self) -> Iterator[str]:
        return iter(self._lines)
