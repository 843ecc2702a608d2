"""Command pattern implementation for viewer actions.

Each mode has its own CommandRegistry mapping (KeyType, value) to a command.
"""

from abc import ABC, abstractmethod
from typing import Dict, Tuple, Optional, TYPE_CHECKING
from .keyboard import KeyType
from .viewport import Jump

if TYPE_CHECKING:
    from .controller import ViewerController
    from .keyboard import KeyEvent


class ViewerCommand(ABC):
    """Base class for viewer commands."""

    @abstractmethod
    def execute(self, viewer: 'ViewerController', key_event: 'KeyEvent') -> bool:
        """Execute the command.

        Args:
            viewer: Controller instance
            key_event: The key event that triggered this command

        Returns:
            True if the command changed the mark set
        """
        pass


class MoveCommand(ViewerCommand):
    """Relative cursor movement."""

    def __init__(self, delta: int):
        self.delta = delta

    def execute(self, viewer, key_event) -> bool:
        viewer.viewport.move_cursor(self.delta, viewer.buffer)
        return False


class JumpCommand(ViewerCommand):
    def __init__(self, kind: Jump):
        self.kind = kind

    def execute(self, viewer, key_event) -> bool:
        viewer.viewport.jump(self.kind, viewer.buffer)
        return False


class MarkCommand(ViewerCommand):
    """Mark the cursor line, then step the cursor."""

    def __init__(self, step: int):
        self.step = step

    def execute(self, viewer, key_event) -> bool:
        changed = viewer.mark_line(viewer.viewport.cursor)
        viewer.viewport.move_cursor(self.step, viewer.buffer)
        return changed


class UnmarkCommand(ViewerCommand):
    """Unmark the cursor line, then step the cursor."""

    def __init__(self, step: int):
        self.step = step

    def execute(self, viewer, key_event) -> bool:
        changed = viewer.unmark_line(viewer.viewport.cursor)
        viewer.viewport.move_cursor(self.step, viewer.buffer)
        return changed


class OptimizeCommand(ViewerCommand):
    def execute(self, viewer, key_event) -> bool:
        viewer.save(optimized=True)
        return False


class QuitCommand(ViewerCommand):
    def execute(self, viewer, key_event) -> bool:
        viewer.quit()
        return False


class NextMatchCommand(ViewerCommand):
    def execute(self, viewer, key_event) -> bool:
        viewer.goto_match(forward=True)
        return False


class PrevMatchCommand(ViewerCommand):
    def execute(self, viewer, key_event) -> bool:
        viewer.goto_match(forward=False)
        return False


class StartSearchCommand(ViewerCommand):
    def execute(self, viewer, key_event) -> bool:
        viewer.start_search()
        return False


class AppendQueryCommand(ViewerCommand):
    """Add a typed character to the pending query."""

    def execute(self, viewer, key_event) -> bool:
        char = key_event.value
        if char and ord(char[0]) >= 32:
            viewer.pending_query += char
        return False


class DeleteQueryCharCommand(ViewerCommand):
    def execute(self, viewer, key_event) -> bool:
        viewer.pending_query = viewer.pending_query[:-1]
        return False


class SubmitSearchCommand(ViewerCommand):
    def execute(self, viewer, key_event) -> bool:
        viewer.submit_search()
        return False


class CancelSearchCommand(ViewerCommand):
    def execute(self, viewer, key_event) -> bool:
        viewer.cancel_search()
        return False


class CommandRegistry:
    """Registry for mapping key combinations to commands."""

    def __init__(self, fallback: Optional[ViewerCommand] = None):
        self._commands: Dict[Tuple[KeyType, str], ViewerCommand] = {}
        # Used for REGULAR keys without a registered command
        self.fallback = fallback

    def register(self, key: Tuple[KeyType, str], command: ViewerCommand):
        """Register a command for a key combination."""
        self._commands[key] = command

    def get_command(self, key_type: KeyType, value: str) -> Optional[ViewerCommand]:
        """Get the command for a key combination."""
        return self._commands.get((key_type, value))

    def execute(self, viewer: 'ViewerController', key_event: 'KeyEvent') -> bool:
        """Execute the command for the given key event.

        Returns:
            True if the mark set was changed
        """
        command = self.get_command(key_event.key_type, key_event.value)
        if command:
            return command.execute(viewer, key_event)
        if self.fallback is not None and key_event.key_type == KeyType.REGULAR:
            return self.fallback.execute(viewer, key_event)
        return False


def normal_mode_registry() -> CommandRegistry:
    """Key bindings for navigation, marking and search navigation."""
    registry = CommandRegistry()
    registry.register((KeyType.REGULAR, 'q'), QuitCommand())

    # Movement
    registry.register((KeyType.REGULAR, 'j'), MoveCommand(1))
    registry.register((KeyType.REGULAR, 'k'), MoveCommand(-1))
    registry.register((KeyType.SPECIAL, 'down'), MoveCommand(1))
    registry.register((KeyType.SPECIAL, 'up'), MoveCommand(-1))
    registry.register((KeyType.CTRL, 'd'), JumpCommand(Jump.PAGE_DOWN))
    registry.register((KeyType.CTRL, 'u'), JumpCommand(Jump.PAGE_UP))
    registry.register((KeyType.SPECIAL, 'page_down'), JumpCommand(Jump.PAGE_DOWN))
    registry.register((KeyType.SPECIAL, 'page_up'), JumpCommand(Jump.PAGE_UP))
    registry.register((KeyType.REGULAR, 'g'), JumpCommand(Jump.TOP))
    registry.register((KeyType.REGULAR, 'G'), JumpCommand(Jump.BOTTOM))

    # Marks
    registry.register((KeyType.REGULAR, 'm'), MarkCommand(1))
    registry.register((KeyType.REGULAR, 'M'), MarkCommand(-1))
    registry.register((KeyType.REGULAR, 'u'), UnmarkCommand(1))
    registry.register((KeyType.REGULAR, 'U'), UnmarkCommand(-1))
    registry.register((KeyType.REGULAR, 'o'), OptimizeCommand())

    # Search
    registry.register((KeyType.REGULAR, 'n'), NextMatchCommand())
    registry.register((KeyType.REGULAR, 'N'), PrevMatchCommand())
    registry.register((KeyType.REGULAR, '/'), StartSearchCommand())
    return registry


def grep_input_registry() -> CommandRegistry:
    """Key bindings while typing a search query."""
    registry = CommandRegistry(fallback=AppendQueryCommand())
    registry.register((KeyType.SPECIAL, 'enter'), SubmitSearchCommand())
    registry.register((KeyType.SPECIAL, 'escape'), CancelSearchCommand())
    registry.register((KeyType.CTRL, 'g'), CancelSearchCommand())
    registry.register((KeyType.SPECIAL, 'backspace'), DeleteQueryCharCommand())
    return registry
