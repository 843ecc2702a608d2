"""Marks - view source files with persistent per-line marks."""

from .buffer import LineBuffer
from .controller import Frame, Mode, ViewerController, ViewerSession
from .errors import MalformedSpec, MarksError, NoMatches, OutOfRange
from .spec import SpecEntry, optimize, parse, serialize
from .store import SpecStore

__all__ = [
    'LineBuffer',
    'Frame',
    'Mode',
    'ViewerController',
    'ViewerSession',
    'MalformedSpec',
    'MarksError',
    'NoMatches',
    'OutOfRange',
    'SpecEntry',
    'optimize',
    'parse',
    'serialize',
    'SpecStore',
]
