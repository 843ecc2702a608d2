"""Interactive viewer: the blocking key-read loop around the controller."""

import logging
import os
import select
import signal
from typing import Optional

from .constants import ViewerConstants
from .controller import ViewerController, ViewerSession
from .keyboard import KeyboardHandler
from .terminal import TerminalInterface

logger = logging.getLogger(__name__)


class Viewer:
    """Main viewer application: reads one key, dispatches it, redraws."""

    def __init__(self, session: ViewerSession, terminal: Optional[TerminalInterface] = None):
        """Initialize the viewer components.

        Raises:
            MalformedSpec: if the session's spec file is invalid
        """
        self.terminal = terminal or TerminalInterface()
        self.keyboard = KeyboardHandler(self.terminal)
        self.controller = ViewerController(session, height=self.terminal.height)
        # Create pipe for resize signaling
        self._resize_pipe_r, self._resize_pipe_w = os.pipe()

    def _handle_resize(self, signum, frame):
        """Handle terminal resize signal."""
        del signum, frame  # Unused
        # Write to pipe to wake up select()
        os.write(self._resize_pipe_w, ViewerConstants.RESIZE_PIPE_MARKER)

    def _draw(self):
        self.terminal.draw_frame(self.controller.frame())

    def run(self):
        """Run the main viewer loop until the controller stops."""
        self.terminal.setup()
        original_winch_handler = signal.signal(signal.SIGWINCH, self._handle_resize)
        try:
            self._draw()
            while self.controller.running:
                # Wait for input on stdin or resize pipe
                ready, _, _ = select.select([0, self._resize_pipe_r], [], [])
                if self._resize_pipe_r in ready:
                    os.read(self._resize_pipe_r, 1024)
                    self.controller.resize(self.terminal.height)
                    self.terminal.invalidate_frame()
                    self._draw()
                elif 0 in ready:
                    key_event = self.keyboard.get_key_event(timeout=0)
                    if key_event:
                        self.controller.handle_key(key_event)
                        if self.controller.running:
                            self._draw()
        except KeyboardInterrupt:
            logger.debug("Interrupted, leaving viewer without saving")
        finally:
            signal.signal(signal.SIGWINCH, original_winch_handler)
            os.close(self._resize_pipe_r)
            os.close(self._resize_pipe_w)
            self.terminal.cleanup()
