"""
Capture Loop Module
===================

The capture-and-annotate loop: wait for whichever stream has a frame,
count it, and for colour frames optionally detect a face with its eyes
and show the annotated image.

Author: Sumesh Thakur (sumeshthkr@gmail.com)
"""

import sys
import cv2
import numpy as np
from typing import Optional
from dataclasses import dataclass
from enum import Enum

from .config import CaptureConfig
from .depth_camera import CameraFrame, DEPTH_STREAM, COLOR_STREAM
from .face_detection import FaceEyeDetector, FaceEyeResult
from .visualization import draw_face_result, colorize_depth, format_status


class RunMode(Enum):
    """
    How much the loop does with each colour frame.

    HEADLESS: Count frames only, quit on a terminal key
    DISPLAY: Also show the colour stream in a window
    DETECT: Also detect and draw a face and its eyes
    """
    HEADLESS = "headless"
    DISPLAY = "display"
    DETECT = "detect"

    @property
    def shows_window(self) -> bool:
        return self is not RunMode.HEADLESS


@dataclass
class FrameCounts:
    """
    Running totals of what the loop has seen.

    Attributes:
        depth: Depth frames read
        color: Colour frames read
        timeouts: Iterations where no stream became ready
        unexpected: Iterations reporting a stream index other than depth/colour
    """
    depth: int = 0
    color: int = 0
    timeouts: int = 0
    unexpected: int = 0

    @property
    def frames(self) -> int:
        return self.depth + self.color


class CaptureLoop:
    """
    Frame arbitration and colour-frame processing for one camera.

    The camera only needs a wait_for_frame() returning
    (stream_index, CameraFrame), with (None, None) meaning nothing was ready.
    """

    def __init__(
        self,
        camera,
        config: Optional[CaptureConfig] = None,
        detector: Optional[FaceEyeDetector] = None,
        display: bool = False,
        show_depth: bool = False
    ):
        """
        Args:
            camera: Source of frames (DepthCamera or a stand-in)
            config: Capture configuration
            detector: Face/eye detector; None disables detection
            display: Show the colour stream in a window
            show_depth: Also show a colourised depth window (needs display)
        """
        self.camera = camera
        self.config = config or CaptureConfig()
        self.detector = detector
        self.display = display
        self.show_depth = show_depth and display

        self.counts = FrameCounts()
        self.last_result: Optional[FaceEyeResult] = None
        self.last_color_image: Optional[np.ndarray] = None

    def step(self) -> Optional[int]:
        """
        Run one iteration: wait, read one frame, process it, print status.

        Returns:
            Index of the stream that was ready, or None on timeout
        """
        index, frame = self.camera.wait_for_frame()
        self.handle_frame(index, frame)
        print(format_status(self.counts.depth, self.counts.color), end="", flush=True)
        return index

    def handle_frame(self, index: Optional[int], frame: Optional[CameraFrame]) -> None:
        """Count a frame by the stream it came from and dispatch it."""
        if index is None:
            self.counts.timeouts += 1
        elif index == DEPTH_STREAM:
            self.counts.depth += 1
            if self.show_depth:
                cv2.imshow(
                    self.config.depth_window_name,
                    colorize_depth(frame.image, self.config.max_depth_mm)
                )
        elif index == COLOR_STREAM:
            self.counts.color += 1
            self.process_color(frame.image)
        else:
            self.counts.unexpected += 1
            print(f"Error: Unexpected stream: {index}", file=sys.stderr)

    def process_color(self, image: np.ndarray) -> None:
        """
        Annotate a BGR colour frame and show it.

        Args:
            image: BGR frame, drawn on in place
        """
        if self.detector is not None:
            result = self.detector.detect_bgr(image)
            draw_face_result(image, result, self.config)
            self.last_result = result

        self.last_color_image = image
        if self.display:
            cv2.imshow(self.config.window_name, image)

    def run(self, key_poller) -> FrameCounts:
        """
        Loop until key_poller reports a key (or Ctrl-C).

        Args:
            key_poller: Object with key_pressed() -> bool

        Returns:
            Final frame counts
        """
        try:
            while not key_poller.key_pressed():
                self.step()
        except KeyboardInterrupt:
            print("\nInterrupted by user")
        print()
        return self.counts

    def close_windows(self) -> None:
        if self.display:
            cv2.destroyAllWindows()
