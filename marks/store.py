"""Spec file location and persistence.

Each source file has one spec file, stored in the user data directory and
named by the SHA-256 digest of the source file's resolved path.
"""

from __future__ import annotations

import hashlib
import logging
import os
import tempfile
from pathlib import Path
from typing import Iterable, Optional, Union

import platformdirs

from .constants import ViewerConstants
from .errors import MalformedSpec
from .spec import SpecEntry, optimize, parse, serialize

logger = logging.getLogger(__name__)


def spec_dir() -> Path:
    """Directory holding all spec files.

    MARKS_SPEC_DIR wins over the platform data directory.
    """
    override = os.environ.get(ViewerConstants.SPEC_DIR_ENV)
    if override:
        return Path(override)
    return Path(platformdirs.user_data_dir(ViewerConstants.APP_NAME, ViewerConstants.APP_AUTHOR))


def spec_path_for(source: Union[str, Path]) -> Path:
    """Compute the spec file path for a source file."""
    resolved = Path(source).resolve()
    digest = hashlib.sha256(os.fsencode(resolved)).hexdigest()
    return spec_dir() / digest


class SpecStore:
    """Loads and saves the mark set of one spec file.

    Saves are full-file replacements: the text is written to a temporary
    file in the same directory and renamed over the spec file.
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    @classmethod
    def for_source(cls, source: Union[str, Path]) -> SpecStore:
        return cls(spec_path_for(source))

    def exists(self) -> bool:
        return self.path.exists()

    def touch(self) -> None:
        """Create the spec file (and its directory) if missing."""
        if self.path.exists():
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.touch()
        logger.debug("Created spec file %s", self.path)

    def read_text(self) -> str:
        """Return the raw spec text, or '' when there is no spec yet."""
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                return f.read()
        except FileNotFoundError:
            return ""

    def load(self) -> set[int]:
        """Load the mark set.

        Raises:
            MalformedSpec: if the spec file cannot be parsed
            OSError: if the spec file exists but cannot be read
        """
        try:
            marks = parse(self.read_text())
        except MalformedSpec as e:
            e.path = self.path
            raise
        logger.debug("Loaded %d marks from %s", len(marks), self.path)
        return marks

    def save(self, marks: Iterable[int], optimized: bool = False) -> list[SpecEntry]:
        """Write the mark set, replacing the whole spec file.

        Args:
            marks: Marked line numbers
            optimized: Collapse contiguous runs into ranges before writing

        Returns:
            The entries that were written

        Raises:
            OSError: if the directory cannot be created or the file written;
                the previous spec file is left untouched
        """
        marks = set(marks)
        if optimized:
            entries = optimize(marks)
        else:
            entries = [SpecEntry.single(n) for n in sorted(marks)]
        text = serialize(entries)
        if text:
            text += '\n'
        self._write_atomic(text)
        logger.debug("Saved %d entries to %s", len(entries), self.path)
        return entries

    def _write_atomic(self, content: str) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        temp_filename: Optional[str] = None
        try:
            with tempfile.NamedTemporaryFile(mode='w', encoding='utf-8',
                                             dir=self.path.parent, suffix='.tmp',
                                             delete=False) as temp_file:
                temp_filename = temp_file.name
                temp_file.write(content)
                temp_file.flush()
                os.fsync(temp_file.fileno())
            os.replace(temp_filename, self.path)
        except OSError:
            if temp_filename is not None and os.path.exists(temp_filename):
                try:
                    os.remove(temp_filename)
                except OSError as e:
                    logger.warning(f"Could not remove temporary file {temp_filename}: {e}")
            raise
