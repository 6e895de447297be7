"""Best-effort system clipboard copy through platform helper commands."""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
import sys

logger = logging.getLogger(__name__)


def clipboard_commands() -> list[list[str]]:
    if sys.platform == "darwin":
        return [["pbcopy"]]
    if os.name == "nt":
        return [["clip"]]
    return [
        ["wl-copy"],
        ["xclip", "-selection", "clipboard"],
        ["xsel", "--clipboard", "--input"],
    ]


def copy_text(text: str) -> bool:
    """Copy ``text``; returns ``False`` when no helper is installed or all fail."""
    if not text:
        return False
    for command in clipboard_commands():
        if shutil.which(command[0]) is None:
            continue
        try:
            proc = subprocess.run(command, input=text, text=True, check=False, capture_output=True)
        except OSError:
            logger.debug("clipboard helper %s failed to start", command[0], exc_info=True)
            continue
        if proc.returncode == 0:
            return True
        logger.debug("clipboard helper %s exited %d", command[0], proc.returncode)
    return False


__all__ = ["clipboard_commands", "copy_text"]
