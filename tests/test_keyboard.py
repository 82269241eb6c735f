"""
Unit tests for keyboard polling.
Author: Sumesh Thakur (sumeshthkr@gmail.com)
"""

import os
import pytest
from pathlib import Path

import sys
sys.path.insert(0, str(Path(__file__).parent.parent))

from faceoff import keyboard
from faceoff.keyboard import TerminalKeyPoller, WindowKeyPoller


@pytest.fixture
def pipe():
    """A pipe standing in for a redirected stdin."""
    read_fd, write_fd = os.pipe()
    reader = os.fdopen(read_fd, "r")
    yield reader, write_fd
    reader.close()
    try:
        os.close(write_fd)
    except OSError:
        pass


class TestTerminalKeyPoller:
    """Tests for the non-blocking terminal key check."""

    def test_no_input(self, pipe):
        reader, _ = pipe
        with TerminalKeyPoller(reader) as poller:
            assert not poller.key_pressed()

    def test_key_hit(self, pipe):
        reader, write_fd = pipe
        os.write(write_fd, b"q")

        with TerminalKeyPoller(reader) as poller:
            assert poller.key_pressed()
            assert not poller.key_pressed()

    def test_eof_is_not_a_key(self, pipe):
        reader, write_fd = pipe
        os.close(write_fd)

        with TerminalKeyPoller(reader) as poller:
            assert not poller.key_pressed()

    def test_non_tty_left_alone(self, pipe):
        reader, _ = pipe
        poller = TerminalKeyPoller(reader)
        with poller:
            assert poller._saved_attrs is None


class TestWindowKeyPoller:
    """Tests for the OpenCV window key check."""

    def test_no_key(self, monkeypatch):
        monkeypatch.setattr(keyboard.cv2, "waitKey", lambda delay: -1)
        assert not WindowKeyPoller().key_pressed()

    def test_any_key(self, monkeypatch):
        delays = []

        def fake_wait(delay):
            delays.append(delay)
            return ord("x")

        monkeypatch.setattr(keyboard.cv2, "waitKey", fake_wait)
        with WindowKeyPoller(delay_ms=5) as poller:
            assert poller.key_pressed()
        assert delays == [5]
