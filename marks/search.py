"""Search ("grep") over a LineBuffer and circular match navigation."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Optional, Sequence

from .buffer import LineBuffer
from .errors import NoMatches

# Takes a query and all lines, returns 0-based indexes of matching lines
Matcher = Callable[[str, Sequence[str]], list]


def substring_matcher(query: str, lines: Sequence[str]) -> list[int]:
    """Substring match with smart case.

    The match is case-insensitive unless the query has an uppercase letter.
    """
    if not query:
        return []
    if query.lower() == query:
        needle = query.lower()
        return [i for i, line in enumerate(lines) if needle in line.lower()]
    return [i for i, line in enumerate(lines) if query in line]


@dataclass
class SearchState:
    """Result of the last submitted search.

    index points at the current match in matches, or is None when there
    are no matches.
    """
    query: str = ""
    matches: list[int] = field(default_factory=list)
    index: Optional[int] = None

    @property
    def current(self) -> Optional[int]:
        if self.index is None:
            return None
        return self.matches[self.index]


def search(query: str, buffer: LineBuffer,
           matcher: Matcher = substring_matcher) -> SearchState:
    """Run a fresh search; the first match (if any) becomes current."""
    if not query:
        return SearchState(query=query)
    found = sorted({i + 1 for i in matcher(query, buffer.lines)})
    return SearchState(query=query, matches=found, index=0 if found else None)


def _step(state: SearchState, delta: int) -> int:
    if not state.matches:
        raise NoMatches(state.query)
    if state.index is None:
        state.index = 0 if delta > 0 else len(state.matches) - 1
    else:
        state.index = (state.index + delta) % len(state.matches)
    return state.matches[state.index]


def next_match(state: SearchState) -> int:
    """Advance to the next match, wrapping past the last one.

    Raises:
        NoMatches: if the match list is empty
    """
    return _step(state, 1)


def prev_match(state: SearchState) -> int:
    """Step back to the previous match, wrapping past the first one.

    Raises:
        NoMatches: if the match list is empty
    """
    return _step(state, -1)


class SearchIndex:
    """Holds the search state of a viewer session."""

    def __init__(self, matcher: Matcher = substring_matcher):
        self.matcher = matcher
        self.state = SearchState()

    def search(self, query: str, buffer: LineBuffer) -> SearchState:
        self.state = search(query, buffer, self.matcher)
        return self.state

    def next_match(self) -> int:
        return next_match(self.state)

    def prev_match(self) -> int:
        return prev_match(self.state)
