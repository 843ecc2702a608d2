"""Constants and configuration for the marks viewer."""


class ViewerConstants:
    """Central configuration constants for the viewer."""

    # Application identity (platformdirs)
    APP_NAME = "marks"
    APP_AUTHOR = "marks"

    # Environment variable overriding the spec directory
    SPEC_DIR_ENV = "MARKS_SPEC_DIR"

    # Navigation
    PAGE_SIZE = 10  # Lines moved by Ctrl-D / Ctrl-U

    # Spec files
    MAX_LINE_NUMBER = 1_000_000  # Largest line number a spec may name

    # Rendering
    GUTTER_WIDTH = 4  # Right-aligned line number column
    GUTTER_SEPARATOR = "|"

    # Resize handling
    RESIZE_PIPE_MARKER = b'R'  # Byte written to pipe to signal resize

    # Status messages
    NO_MATCHES_MESSAGE = "No matches"
    PATTERN_NOT_FOUND_MESSAGE = "Pattern not found: {}"
    SAVED_MESSAGE = "Saved {} entries to {}"
    SAVE_FAILED_MESSAGE = "Error: {}"
    QUIT_SAVE_FAILED_MESSAGE = "Error: {} (q again quits without saving)"
    EMPTY_FILE_MESSAGE = "Empty file"
