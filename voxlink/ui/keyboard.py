"""Non-blocking keyboard polling for the terminal UI."""

import os
import select
import sys
import logging
from typing import Optional

logger = logging.getLogger(__name__)

ESCAPE = "\x1b"


class KeyPoller:
    """Reads single keypresses without blocking the main loop.

    Use as a context manager: the terminal is put in cbreak mode on entry and
    restored on exit. When stdin is not a terminal, poll() always returns None.
    """

    def __init__(self, stream=None):
        self.stream = stream or sys.stdin
        self._old_settings = None
        self._enabled = False

    def __enter__(self) -> "KeyPoller":
        try:
            import termios
            import tty

            if self.stream.isatty():
                fd = self.stream.fileno()
                self._old_settings = termios.tcgetattr(fd)
                tty.setcbreak(fd)
                self._enabled = True
        except ImportError:
            logger.warning("Unix terminal modules not available")
        except (OSError, ValueError) as e:
            logger.warning(f"Keyboard input disabled: {e}")
        return self

    def __exit__(self, *exc_info) -> None:
        if self._old_settings is not None:
            import termios

            termios.tcsetattr(self.stream.fileno(), termios.TCSADRAIN, self._old_settings)
            self._old_settings = None
        self._enabled = False

    def poll(self) -> Optional[str]:
        """Return a pending key (lower-cased) or None."""
        if not self._enabled:
            return None
        fd = self.stream.fileno()
        if not select.select([fd], [], [], 0)[0]:
            return None
        data = os.read(fd, 1)
        if not data:
            return None
        key = data.decode('utf-8', errors='ignore').lower()
        logger.debug(f"Key detected: {key!r}")
        return key
