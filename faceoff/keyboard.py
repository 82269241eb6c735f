"""
Keyboard polling used to end the capture loop.

Headless runs read the terminal in cbreak mode without blocking; runs with
a window ask OpenCV, which only sees keys while its window has focus.
"""

import os
import select
import sys
import termios
import tty

import cv2


class TerminalKeyPoller:
    """Non-blocking "was any key hit" check on a terminal."""

    def __init__(self, stream=None):
        self.stream = stream if stream is not None else sys.stdin
        self._saved_attrs = None

    def __enter__(self):
        if self.stream.isatty():
            fd = self.stream.fileno()
            self._saved_attrs = termios.tcgetattr(fd)
            # no echo, no line buffering
            tty.setcbreak(fd)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self._saved_attrs is not None:
            termios.tcsetattr(self.stream.fileno(), termios.TCSADRAIN, self._saved_attrs)
            self._saved_attrs = None

    def key_pressed(self) -> bool:
        ready, _, _ = select.select([self.stream], [], [], 0)
        if not ready:
            return False
        # EOF (closed or redirected stdin) is not a key
        return len(os.read(self.stream.fileno(), 1)) > 0


class WindowKeyPoller:
    """Key check through cv2.waitKey, which also pumps the window events."""

    def __init__(self, delay_ms: int = 1):
        self.delay_ms = delay_ms

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        pass

    def key_pressed(self) -> bool:
        return cv2.waitKey(self.delay_ms) != -1
