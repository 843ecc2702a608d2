#!/usr/bin/env python3
"""Marks - view source files with persistent per-line marks.

Usage:
    python main.py view FILE

Viewer keys:
    j/k, Ctrl-D/Ctrl-U, g/G: Move cursor
    m/M: Mark line and move down/up
    u/U: Unmark line and move down/up
    o: Optimize and save marks
    /: Search, n/N: Next/previous match
    q: Quit (saves changed marks)
"""

import sys
from marks.__main__ import main


if __name__ == "__main__":
    sys.exit(main())
