from __future__ import annotations

import logging
import shutil

from ..input import read_key
from .app import EtcdBrowserApp, initial_left_width
from .render import write_frame
from .terminal import TerminalController

logger = logging.getLogger(__name__)

LOOP_TIMEOUT_MS = 100


def run_main_loop(app: EtcdBrowserApp, *, stdin_fd: int, stdout_fd: int) -> None:
    """Drive ``app`` on a raw-mode terminal until it asks to quit."""
    terminal = TerminalController(stdin_fd, stdout_fd)
    state = app.state
    last_size: tuple[int, int] | None = None
    busy_frame = 0

    term = shutil.get_terminal_size((80, 24))
    app.columns = term.columns
    state.left_width = initial_left_width(term.columns)
    app.start()

    with terminal.raw_mode():
        try:
            while True:
                term = shutil.get_terminal_size((80, 24))
                size = (term.columns, term.lines)
                if size != last_size:
                    last_size = size
                    app.columns = term.columns
                    state.dirty = True

                app.tick()
                if state.busy_label:
                    busy_frame += 1
                    state.dirty = True
                if state.dirty:
                    write_frame(app.frame(term.columns, term.lines, busy_frame), stdout_fd)
                    state.dirty = False

                key = read_key(stdin_fd, timeout_ms=LOOP_TIMEOUT_MS)
                if app.handle_key(key):
                    break
        finally:
            logger.info("shutting down")
            app.shutdown()


__all__ = ["LOOP_TIMEOUT_MS", "run_main_loop"]
