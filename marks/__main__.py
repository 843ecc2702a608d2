"""Marks CLI entry point.

Allows running via `python -m marks` and provides the console script
defined in `pyproject.toml`.
"""

from __future__ import annotations

import argparse
import importlib.metadata
import logging
import os
import subprocess
import sys
from typing import Optional, Sequence

from .errors import MalformedSpec
from .spec import optimize, parse

logger = logging.getLogger("marks")


def get_version_string() -> str:
    try:
        return importlib.metadata.version("marks")
    except importlib.metadata.PackageNotFoundError:
        return "unknown"


def cmd_print(args: argparse.Namespace) -> int:
    """Print the file with line numbers, marked lines highlighted."""
    import blessed
    from .buffer import LineBuffer
    from .controller import FrameRow
    from .store import SpecStore
    from .terminal import format_row

    buffer = LineBuffer.read(args.file)
    marks = SpecStore.for_source(args.file).load()
    term = blessed.Terminal()
    print(term.yellow(args.file))
    for n, text in enumerate(buffer, start=1):
        row = FrameRow(n, text, n in marks, False)
        print(format_row(term, row, highlight_cursor=False))
    return 0


def cmd_view(args: argparse.Namespace) -> int:
    # Lazy import to avoid importing UI deps for the other subcommands
    from .controller import ViewerSession
    from .viewer import Viewer

    session = ViewerSession.open(args.file, read_only=args.read_only)
    Viewer(session).run()
    return 0


def cmd_status(args: argparse.Namespace) -> int:
    from .status import status

    print(status(args.path))
    return 0


def cmd_edit(args: argparse.Namespace) -> int:
    """Open the spec file in the user's editor, then check it parses."""
    from .store import SpecStore

    store = SpecStore.for_source(args.file)
    store.touch()
    editor = os.environ.get("VISUAL") or os.environ.get("EDITOR") or "vi"
    logger.debug("Editing %s with %s", store.path, editor)
    returncode = subprocess.call([editor, str(store.path)])
    if returncode != 0:
        logger.warning(f"Editor {editor} exited with status {returncode}")
    store.load()
    return 0


def cmd_debug(args: argparse.Namespace) -> int:
    """Show where the spec lives and what it contains."""
    from .store import SpecStore

    store = SpecStore.for_source(args.file)
    print(f"spec: {store.path}")
    print(f"exists: {store.exists()}")
    marks = parse(store.read_text())
    print(f"marks: {len(marks)}")
    for entry in optimize(marks):
        print(entry.format())
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="marks",
        description="View source files with marked lines.",
    )
    parser.add_argument("-V", "--version", action="version",
                        version=f"%(prog)s {get_version_string()}")
    parser.add_argument("-v", "--verbose", action="store_true",
                        help="log debug messages to stderr")
    subparsers = parser.add_subparsers(dest="command", required=True)

    p = subparsers.add_parser("print", help="print a file with its marks")
    p.add_argument("file")
    p.set_defaults(func=cmd_print)

    p = subparsers.add_parser("view", help="browse a file and edit its marks")
    p.add_argument("file")
    p.add_argument("--read-only", action="store_true",
                   help="never write the spec file")
    p.set_defaults(func=cmd_view)

    p = subparsers.add_parser("status", help="count marked lines of a file or directory")
    p.add_argument("path")
    p.set_defaults(func=cmd_status)

    p = subparsers.add_parser("edit", help="edit a file's spec in $EDITOR")
    p.add_argument("file")
    p.set_defaults(func=cmd_edit)

    p = subparsers.add_parser("debug", help="show spec location and entries")
    p.add_argument("file")
    p.set_defaults(func=cmd_debug)
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(name)s: %(levelname)s: %(message)s",
        stream=sys.stderr,
    )
    try:
        return args.func(args)
    except MalformedSpec as e:
        print(f"marks: malformed spec: {e}", file=sys.stderr)
        return 1
    except OSError as e:
        print(f"marks: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
