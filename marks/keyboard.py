"""Keyboard input handling using curtsies-style tokens."""

from typing import Optional
from dataclasses import dataclass
from enum import Enum


class KeyType(Enum):
    """Types of key events."""
    REGULAR = "regular"
    CTRL = "ctrl"
    SPECIAL = "special"


@dataclass(frozen=True)
class KeyEvent:
    """Represents a parsed keyboard event."""
    key_type: KeyType
    value: str  # The base key (e.g., 'j', 'd' for Ctrl-D, 'enter')
    raw: str = ""

    @classmethod
    def char(cls, ch: str) -> 'KeyEvent':
        return cls(KeyType.REGULAR, ch, ch)

    @classmethod
    def ctrl(cls, ch: str) -> 'KeyEvent':
        return cls(KeyType.CTRL, ch, f"<Ctrl-{ch}>")

    @classmethod
    def special(cls, name: str) -> 'KeyEvent':
        return cls(KeyType.SPECIAL, name, f"<{name.upper()}>")


class KeyboardHandler:
    """Turns terminal key tokens into KeyEvents."""

    def __init__(self, terminal_interface):
        self.terminal = terminal_interface

    def get_key_event(self, timeout: Optional[float] = None) -> Optional[KeyEvent]:
        """Get next key event and map curtsies-style names to KeyEvent."""
        key = self.terminal.get_key(timeout)
        if not key:
            return None
        return self.parse_key(key)

    def parse_key(self, key) -> KeyEvent:
        """Parse a curtsies key token (or a raw character) into a KeyEvent."""
        key_str = str(key)

        # Curtsies-style key names like '<UP>', '<Ctrl-d>', '<PAGEDOWN>'
        if key_str.startswith('<') and key_str.endswith('>') and len(key_str) > 2:
            name = key_str[1:-1].lower().replace('+', '-')
            parts = name.split('-')
            base = parts[-1]
            mods = set(parts[:-1])
            if base in ('pageup', 'page_up'):
                base = 'page_up'
            elif base in ('pagedown', 'page_down'):
                base = 'page_down'

            if base in ('space', 'spacebar', 'spc') and not mods:
                return KeyEvent(KeyType.REGULAR, ' ', key_str)
            if base == 'tab' and not mods:
                return KeyEvent(KeyType.REGULAR, '\t', key_str)
            if 'ctrl' in mods and len(base) == 1:
                # Ctrl-J / Ctrl-M are what the terminal sends for Enter
                if base in ('j', 'm'):
                    return KeyEvent(KeyType.SPECIAL, 'enter', key_str)
                return KeyEvent(KeyType.CTRL, base, key_str)
            if base in ('esc', 'escape') and not mods:
                return KeyEvent(KeyType.SPECIAL, 'escape', key_str)
            # Arrows, paging keys, backspace and unknown names
            return KeyEvent(KeyType.SPECIAL, base, key_str)

        # Single-byte ASCII control chars (Ctrl-<letter>)
        if len(key_str) == 1:
            o = ord(key_str)
            if o in (10, 13):
                return KeyEvent(KeyType.SPECIAL, 'enter', key_str)
            if o in (8, 127):
                return KeyEvent(KeyType.SPECIAL, 'backspace', key_str)
            if 1 <= o <= 26:
                return KeyEvent(KeyType.CTRL, chr(ord('a') + o - 1), key_str)
            if o == 27:
                return KeyEvent(KeyType.SPECIAL, 'escape', key_str)

        return KeyEvent(KeyType.REGULAR, key_str, key_str)
