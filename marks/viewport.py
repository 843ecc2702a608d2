"""Cursor and scrolling model over a LineBuffer."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from .buffer import LineBuffer
from .constants import ViewerConstants


class Jump(Enum):
    """Absolute and paged cursor jumps."""
    TOP = "top"
    BOTTOM = "bottom"
    PAGE_DOWN = "page_down"
    PAGE_UP = "page_up"


@dataclass(frozen=True)
class Viewport:
    """First visible line and number of visible rows."""
    top_line: int = 1
    height: int = 1

    @property
    def bottom_line(self) -> int:
        return self.top_line + self.height - 1


def _clamp(value: int, low: int, high: int) -> int:
    return max(low, min(value, high))


def reframe(cursor: int, viewport: Viewport, buffer: LineBuffer) -> Viewport:
    """Scroll the viewport the minimum amount that keeps the cursor visible."""
    top = viewport.top_line
    if cursor < top:
        top = cursor
    elif cursor > viewport.bottom_line:
        top = cursor - viewport.height + 1
    max_top = max(1, buffer.line_count() - viewport.height + 1)
    return Viewport(_clamp(top, 1, max_top), viewport.height)


class ViewportModel:
    """Tracks the cursor line and the visible window.

    After every cursor change the viewport is reframed so that
    top_line <= cursor <= top_line + height - 1 holds.
    """

    def __init__(self, height: int = 1):
        self.cursor = 1
        self.viewport = Viewport(1, max(1, height))

    @property
    def top_line(self) -> int:
        return self.viewport.top_line

    @property
    def height(self) -> int:
        return self.viewport.height

    def _last_line(self, buffer: LineBuffer) -> int:
        return max(1, buffer.line_count())

    def move_cursor(self, delta: int, buffer: LineBuffer) -> int:
        """Move the cursor by delta lines, clamped to the buffer; no wrap."""
        return self.set_cursor(self.cursor + delta, buffer)

    def set_cursor(self, line_no: int, buffer: LineBuffer) -> int:
        self.cursor = _clamp(line_no, 1, self._last_line(buffer))
        self.reframe(buffer)
        return self.cursor

    def jump(self, kind: Jump, buffer: LineBuffer) -> int:
        if kind is Jump.TOP:
            return self.set_cursor(1, buffer)
        if kind is Jump.BOTTOM:
            return self.set_cursor(self._last_line(buffer), buffer)
        if kind is Jump.PAGE_DOWN:
            return self.move_cursor(ViewerConstants.PAGE_SIZE, buffer)
        if kind is Jump.PAGE_UP:
            return self.move_cursor(-ViewerConstants.PAGE_SIZE, buffer)
        raise ValueError(f"unknown jump {kind!r}")

    def reframe(self, buffer: LineBuffer) -> Viewport:
        self.viewport = reframe(self.cursor, self.viewport, buffer)
        return self.viewport

    def resize(self, height: int, buffer: LineBuffer) -> Viewport:
        """Change the number of visible rows, e.g. after a terminal resize."""
        self.viewport = Viewport(self.viewport.top_line, max(1, height))
        return self.reframe(buffer)

    def visible_range(self, buffer: LineBuffer) -> range:
        """Line numbers currently on screen, limited to existing lines."""
        last = min(self.viewport.bottom_line, buffer.line_count())
        return range(self.viewport.top_line, last + 1)
