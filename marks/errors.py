"""Exception types shared across the marks package."""

from typing import Optional


class MarksError(Exception):
    """Base class for all marks errors."""


class OutOfRange(MarksError, IndexError):
    """A line number fell outside the buffer bounds."""

    def __init__(self, line_no: int, line_count: int):
        super().__init__(f"line {line_no} out of range [1, {line_count}]")
        self.line_no = line_no
        self.line_count = line_count


class MalformedSpec(MarksError, ValueError):
    """The spec text could not be parsed.

    Attributes:
        line_no: 1-based line of the spec text that failed, if known
        text: The offending line
    """

    def __init__(self, message: str, line_no: Optional[int] = None, text: str = ""):
        super().__init__(message)
        self.message = message
        self.line_no = line_no
        self.text = text
        # Set by SpecStore when the text came from a spec file
        self.path = None

    def __str__(self) -> str:
        if self.line_no is None:
            location = str(self.path) if self.path is not None else ""
        elif self.path is not None:
            location = f"{self.path}:{self.line_no}"
        else:
            location = f"line {self.line_no}"
        detail = f"{self.message}: {self.text!r}" if self.line_no is not None else self.message
        return f"{location}: {detail}" if location else detail


class NoMatches(MarksError, LookupError):
    """Search navigation was requested with an empty match list."""
