"""Terminal interface using Blessed for display and Curtsies for input."""

import logging
import re
import select
import sys
from typing import Optional

import blessed

from .constants import ViewerConstants
from .controller import Frame, FrameRow

logger = logging.getLogger(__name__)

# Anything left after tab expansion that would move the terminal cursor
_CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f]")


def format_row(term: blessed.Terminal, row: FrameRow, width: Optional[int] = None,
               highlight_cursor: bool = True) -> str:
    """Compose one gutter + text line with mark and cursor styling.

    Marked lines are green, the cursor line is drawn in reverse video and
    the line number gutter is cyan. Control characters are shown as '?'.
    When width is given the text is cut or padded so the whole row is
    exactly width columns.
    """
    gutter = f"{row.line_no:>{ViewerConstants.GUTTER_WIDTH}}"
    text = _CONTROL_CHARS.sub('?', row.text.expandtabs())
    if width is not None:
        text_width = max(0, width - len(gutter) - len(ViewerConstants.GUTTER_SEPARATOR))
        text = text[:text_width].ljust(text_width)
    # Each styled segment ends with term.normal, so reverse is set per segment
    reverse = term.reverse if highlight_cursor and row.is_cursor else ""
    styled = term.green(reverse + text) if row.marked else reverse + text
    line = term.cyan(reverse + gutter) + reverse + ViewerConstants.GUTTER_SEPARATOR + styled
    if reverse:
        line += term.normal
    return line


class TerminalInterface:
    """Handles terminal I/O using Blessed."""

    def __init__(self, terminal: Optional[blessed.Terminal] = None):
        """Initialize with a terminal instance (or create one)."""
        self.term = terminal or blessed.Terminal()
        self.is_fullscreen = False
        self._curtsies_input: Optional[object] = None
        # Last drawn rows, for minimal updates
        self._last_lines: Optional[list[str]] = None
        self._last_status: Optional[str] = None

    def setup(self):
        """Enter fullscreen mode and raw input."""
        print(self.term.enter_fullscreen, end='')
        print(self.term.hide_cursor, end='')
        print(self.term.clear, end='', flush=True)
        self.is_fullscreen = True
        if self._curtsies_input is None:
            from curtsies import Input
            self._curtsies_input = Input(keynames='curtsies')
            self._curtsies_input.__enter__()

    def cleanup(self):
        """Exit fullscreen mode and restore terminal."""
        if self._curtsies_input is not None:
            try:
                self._curtsies_input.__exit__(None, None, None)
            except Exception as e:
                # Teardown must not hide the exception that ended the loop
                logger.warning(f"Could not restore terminal input mode: {e}")
            finally:
                self._curtsies_input = None
        if self.is_fullscreen:
            print(self.term.exit_fullscreen, end='')
            print(self.term.normal_cursor, end='', flush=True)
            self.is_fullscreen = False

    def invalidate_frame(self) -> None:
        """Invalidate cached frame so next update does a full clear."""
        self._last_lines = None
        self._last_status = None

    def draw_frame(self, frame: Frame) -> None:
        """Draw the visible rows and the status line.

        Only rows that changed since the previous frame are rewritten.
        """
        width = self.term.width
        rows = self.height
        lines = [format_row(self.term, row, width) for row in frame.rows]
        lines += [self.term.bright_black("~")] * (rows - len(lines))

        if self._last_lines is None or len(self._last_lines) != len(lines):
            print(self.term.home + self.term.clear, end='')
            self._last_lines = [""] * len(lines)
            self._last_status = None

        for y, line in enumerate(lines):
            if line != self._last_lines[y]:
                print(self.term.move(y, 0) + line + self.term.clear_eol, end='')
                self._last_lines[y] = line

        status = frame.status[:width].ljust(width)
        if status != self._last_status:
            print(self.term.move(self.term.height - 1, 0) + status, end='')
            self._last_status = status

        if frame.prompt:
            print(self.term.move(self.term.height - 1, len(frame.status)) + self.term.normal_cursor,
                  end='', flush=True)
        else:
            print(self.term.hide_cursor, end='', flush=True)

    def get_key(self, timeout=None):
        """Get a single keypress from the user.

        Args:
            timeout: Timeout in seconds (None for blocking, 0 for non-blocking)

        Returns:
            The curtsies key name, or None when nothing arrived in time.
        """
        if self._curtsies_input is None:
            return None
        if timeout is None:
            return str(next(self._curtsies_input))
        r, _, _ = select.select([sys.stdin], [], [], float(timeout))
        if not r:
            return None
        return str(next(self._curtsies_input))

    @property
    def width(self):
        """Terminal width in columns."""
        return self.term.width

    @property
    def height(self):
        """Terminal height in rows (excluding status line)."""
        return self.term.height - 1  # Reserve one line for status
