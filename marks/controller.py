"""Modal state machine behind the interactive viewer.

The controller knows nothing about the terminal: it consumes KeyEvents and
produces Frames describing what should be drawn.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Iterable, Optional, Union

from .buffer import LineBuffer
from .commands import grep_input_registry, normal_mode_registry
from .constants import ViewerConstants
from .errors import NoMatches
from .keyboard import KeyEvent
from .search import Matcher, SearchIndex, substring_matcher
from .store import SpecStore
from .viewport import ViewportModel

logger = logging.getLogger(__name__)


class Mode(Enum):
    NORMAL = "normal"
    GREP_INPUT = "grep_input"


@dataclass
class ViewerSession:
    """Everything a viewer needs to know about the file being viewed."""
    source_path: Path
    buffer: LineBuffer
    store: SpecStore
    read_only: bool = False

    @classmethod
    def open(cls, source_path: Union[str, Path], store: Optional[SpecStore] = None,
             read_only: bool = False) -> ViewerSession:
        """Read the source file and locate its spec file.

        Raises:
            OSError: if the source file cannot be read
        """
        source_path = Path(source_path)
        buffer = LineBuffer.read(source_path)
        if store is None:
            store = SpecStore.for_source(source_path)
        return cls(source_path, buffer, store, read_only)


@dataclass(frozen=True)
class FrameRow:
    line_no: int
    text: str
    marked: bool
    is_cursor: bool


@dataclass(frozen=True)
class Frame:
    """Render request: the visible rows plus the status line."""
    rows: list[FrameRow] = field(default_factory=list)
    status: str = ""
    prompt: bool = False


class ViewerController:
    """Interprets key events for the Normal and GrepInput modes."""

    def __init__(self, session: ViewerSession, height: int = 1,
                 marks: Optional[Iterable[int]] = None,
                 matcher: Matcher = substring_matcher):
        """Initialize the controller.

        Args:
            session: The viewed file and its spec store
            height: Number of rows available for file lines
            marks: Initial mark set; loaded from the spec store when None
            matcher: Line matcher used by searches

        Raises:
            MalformedSpec: if marks is None and the spec file is invalid
        """
        self.session = session
        self.buffer = session.buffer
        self.viewport = ViewportModel(height)
        self.marks: set[int] = set(marks) if marks is not None else session.store.load()
        self.search_index = SearchIndex(matcher)
        self.mode = Mode.NORMAL
        self.pending_query = ""
        self.status_message: Optional[str] = None
        self.running = True
        self.modified = False
        # Set when the last key was a quit whose save failed
        self._quit_save_failed = False
        self._save_error = ""
        self._force_quit = False
        self._registries = {
            Mode.NORMAL: normal_mode_registry(),
            Mode.GREP_INPUT: grep_input_registry(),
        }
        self.viewport.reframe(self.buffer)

    @property
    def cursor(self) -> int:
        return self.viewport.cursor

    def handle_key(self, key_event: KeyEvent) -> None:
        """Dispatch a key to the handler of the current mode."""
        # Clear status message on any keypress
        self.status_message = None
        # Only a quit directly after a failed quit-save may skip saving
        self._force_quit = self._quit_save_failed
        self._quit_save_failed = False
        if self._registries[self.mode].execute(self, key_event):
            self.modified = True

    # Marks

    def mark_line(self, line_no: int) -> bool:
        """Add a line to the mark set; returns True if it was not marked."""
        if not self.buffer.contains(line_no) or line_no in self.marks:
            return False
        self.marks.add(line_no)
        return True

    def unmark_line(self, line_no: int) -> bool:
        """Remove a line from the mark set; returns True if it was marked."""
        if line_no not in self.marks:
            return False
        self.marks.discard(line_no)
        return True

    def save(self, optimized: bool = False) -> bool:
        """Persist the mark set to the spec file.

        Failures are reported in the status line; the in-memory mark set
        is kept as is so the save can be retried.
        """
        if self.session.read_only:
            self.status_message = "Read-only: marks not saved"
            return False
        try:
            entries = self.session.store.save(self.marks, optimized=optimized)
        except OSError as e:
            logger.warning(f"Could not save spec file {self.session.store.path}: {e}")
            self._save_error = e.strerror or str(e)
            self.status_message = ViewerConstants.SAVE_FAILED_MESSAGE.format(self._save_error)
            return False
        self.modified = False
        self.status_message = ViewerConstants.SAVED_MESSAGE.format(
            len(entries), self.session.store.path.name[:12])
        return True

    def quit(self) -> None:
        """Leave the viewer, saving first when marks changed.

        When that save fails the viewer stays open; pressing quit again
        right away exits without saving.
        """
        if self.modified and not self.session.read_only and not self._force_quit:
            if not self.save():
                self._quit_save_failed = True
                self.status_message = ViewerConstants.QUIT_SAVE_FAILED_MESSAGE.format(
                    self._save_error)
                return
        self.running = False

    # Search

    def start_search(self) -> None:
        self.mode = Mode.GREP_INPUT
        self.pending_query = ""

    def submit_search(self) -> None:
        query = self.pending_query
        self.pending_query = ""
        self.mode = Mode.NORMAL
        state = self.search_index.search(query, self.buffer)
        logger.debug("Search %r: %d matches", query, len(state.matches))
        if state.current is not None:
            self.viewport.set_cursor(state.current, self.buffer)
        elif query:
            self.status_message = ViewerConstants.PATTERN_NOT_FOUND_MESSAGE.format(query)

    def cancel_search(self) -> None:
        self.pending_query = ""
        self.mode = Mode.NORMAL

    def goto_match(self, forward: bool = True) -> None:
        try:
            if forward:
                line_no = self.search_index.next_match()
            else:
                line_no = self.search_index.prev_match()
        except NoMatches:
            self.status_message = ViewerConstants.NO_MATCHES_MESSAGE
            return
        self.viewport.set_cursor(line_no, self.buffer)

    # Rendering

    def resize(self, height: int) -> None:
        self.viewport.resize(height, self.buffer)

    def frame(self) -> Frame:
        """Describe the current screen contents."""
        rows = [
            FrameRow(
                line_no=n,
                text=self.buffer.line_at(n),
                marked=n in self.marks,
                is_cursor=n == self.viewport.cursor,
            )
            for n in self.viewport.visible_range(self.buffer)
        ]
        if self.mode is Mode.GREP_INPUT:
            return Frame(rows, f"/{self.pending_query}", prompt=True)
        return Frame(rows, self.status_message or self._summary())

    def _summary(self) -> str:
        total = self.buffer.line_count()
        if total == 0:
            return ViewerConstants.EMPTY_FILE_MESSAGE
        marked = sum(1 for n in self.marks if self.buffer.contains(n))
        flag = " [+]" if self.modified else ""
        return (f"{self.session.source_path.name}{flag}  "
                f"marked {marked}/{total}  line {self.viewport.cursor}/{total}")
