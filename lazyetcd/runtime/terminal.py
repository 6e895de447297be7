"""Raw-mode terminal session on the alternate screen."""

from __future__ import annotations

import contextlib
import os
import termios
import tty

# Alternate screen on, cursor hidden, autowrap off; and the reverse.
ENTER_SEQUENCE = b"\x1b[?1049h\x1b[?25l\x1b[?7l"
LEAVE_SEQUENCE = b"\x1b[?7h\x1b[?25h\x1b[?1049l"


class TerminalController:
    def __init__(self, stdin_fd: int, stdout_fd: int) -> None:
        self.stdin_fd = stdin_fd
        self.stdout_fd = stdout_fd

    @contextlib.contextmanager
    def raw_mode(self):
        """Run the wrapped block full-screen, restoring the tty afterwards."""
        saved = termios.tcgetattr(self.stdin_fd)
        tty.setraw(self.stdin_fd, termios.TCSAFLUSH)
        os.write(self.stdout_fd, ENTER_SEQUENCE)
        try:
            yield
        finally:
            os.write(self.stdout_fd, LEAVE_SEQUENCE)
            termios.tcsetattr(self.stdin_fd, termios.TCSAFLUSH, saved)


__all__ = ["ENTER_SEQUENCE", "LEAVE_SEQUENCE", "TerminalController"]
