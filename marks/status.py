"""Marked-line statistics for files and directory trees."""

from __future__ import annotations

import os
from pathlib import Path
from typing import NamedTuple, Union

from .buffer import LineBuffer
from .store import SpecStore


class MarkStatus(NamedTuple):
    marked: int
    lines: int

    def __add__(self, other: MarkStatus) -> MarkStatus:  # type: ignore[override]
        return MarkStatus(self.marked + other.marked, self.lines + other.lines)

    @property
    def ratio(self) -> int:
        """Marked share in whole percent."""
        if self.lines == 0:
            return 0
        return 100 * self.marked // self.lines

    def __str__(self) -> str:
        return f"lines: {self.lines}, marked: {self.marked}, ratio: {self.ratio}%"


def file_status(path: Union[str, Path]) -> MarkStatus:
    """Count the lines of a file and how many of them are marked.

    Raises:
        MalformedSpec: if the file's spec is invalid
        OSError: if the file or its spec cannot be read
    """
    buffer = LineBuffer.read(path)
    marks = SpecStore.for_source(path).load()
    marked = sum(1 for n in marks if buffer.contains(n))
    return MarkStatus(marked, buffer.line_count())


def directory_status(path: Union[str, Path]) -> MarkStatus:
    """Sum file_status over every file below a directory."""
    total = MarkStatus(0, 0)
    for root, dirs, files in os.walk(path):
        dirs.sort()
        for name in sorted(files):
            total = total + file_status(Path(root) / name)
    return total


def status(path: Union[str, Path]) -> MarkStatus:
    if Path(path).is_dir():
        return directory_status(path)
    return file_status(path)
