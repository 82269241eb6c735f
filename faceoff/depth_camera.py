"""
Depth Camera Input Module
=========================

Handles input from an OpenNI2 depth camera with a depth and a colour
stream. Waits on whichever stream has a frame ready first and converts
the frame buffer into a NumPy image.

Author: Sumesh Thakur (sumeshthkr@gmail.com)

References:
- OpenNI2 Python bindings: https://pypi.org/project/openni/
- OpenNI2 Programmer's Guide: https://structure.io/openni
"""

import cv2
import numpy as np
from typing import List, Optional, Tuple
from dataclasses import dataclass

from .config import CaptureConfig

# The bindings load the native OpenNI2 library at initialize() time
from openni import openni2
from openni.utils import OpenNIError


DEPTH_STREAM = 0
COLOR_STREAM = 1
STREAM_NAMES = {DEPTH_STREAM: "depth", COLOR_STREAM: "colour"}


@dataclass
class CameraFrame:
    """
    One frame read from a depth camera stream.

    Attributes:
        stream_index: DEPTH_STREAM or COLOR_STREAM
        image: uint16 HxW depth in millimetres, or uint8 HxWx3 BGR colour
        timestamp: Sensor timestamp in microseconds
        frame_number: Sensor frame index
    """
    stream_index: int
    image: np.ndarray
    timestamp: int = 0
    frame_number: int = 0


def depth_buffer_to_image(buffer, width: int, height: int) -> np.ndarray:
    """View a 16-bit depth buffer as an HxW array (copied, the SDK reuses it)."""
    return np.frombuffer(buffer, dtype=np.uint16).reshape(height, width).copy()


def color_buffer_to_image(buffer, width: int, height: int) -> np.ndarray:
    """Turn a packed RGB888 buffer into an HxWx3 BGR image."""
    rgb = np.frombuffer(buffer, dtype=np.uint8).reshape(height, width, 3)
    return cv2.cvtColor(rgb, cv2.COLOR_RGB2BGR)


class DepthCamera:
    """
    An OpenNI2 device with its depth and colour streams.

    Use as a context manager: leaving the block stops and destroys the
    streams, closes the device and unloads OpenNI2, releasing exactly
    what was acquired even when open() failed half way.

    A stream that cannot be created or started is reported and left out;
    the camera keeps running with the remaining stream.
    """

    def __init__(self, config: Optional[CaptureConfig] = None):
        self.config = config or CaptureConfig()

        self.device = None
        self.depth_stream = None
        self.color_stream = None
        self._initialized = False
        self.is_open = False

    def open(self) -> bool:
        """
        Initialize OpenNI2, open the first device and start its streams.

        Returns:
            True if the device is open (with at least the streams that could start)
        """
        try:
            if self.config.openni_redist:
                openni2.initialize(self.config.openni_redist)
            else:
                openni2.initialize()
        except OpenNIError as e:
            print(f"Initialize failed: {e}")
            return False
        self._initialized = True

        try:
            self.device = openni2.Device.open_any()
        except OpenNIError as e:
            print(f"Couldn't open device: {e}")
            return False

        self.depth_stream = self._start_stream(DEPTH_STREAM)
        self.color_stream = self._start_stream(COLOR_STREAM)

        self.is_open = True
        return True

    def _start_stream(self, index: int):
        """Create and start one stream; None if the sensor is absent or fails."""
        sensor = openni2.SENSOR_DEPTH if index == DEPTH_STREAM else openni2.SENSOR_COLOR
        name = STREAM_NAMES[index]

        if not self.device.has_sensor(sensor):
            print(f"No {name} sensor on device")
            return None

        try:
            if index == DEPTH_STREAM:
                stream = self.device.create_depth_stream()
            else:
                stream = self.device.create_color_stream()
        except OpenNIError as e:
            print(f"Couldn't create {name} stream: {e}")
            return None

        try:
            stream.start()
        except OpenNIError as e:
            print(f"Couldn't start the {name} stream: {e}")
            stream.close()
            return None

        return stream

    @property
    def streams(self) -> List:
        """Stream slots in index order; absent streams are None."""
        return [self.depth_stream, self.color_stream]

    def wait_for_frame(self) -> Tuple[Optional[int], Optional[CameraFrame]]:
        """
        Block until any started stream has a frame, then read it.

        Returns:
            (stream_index, frame), or (None, None) on timeout or wait failure
        """
        slots = self.streams
        active = [s for s in slots if s is not None]
        if not active:
            print(f"Wait failed! (timeout is {self.config.timeout_ms} ms): no stream started")
            return None, None

        try:
            ready = openni2.wait_for_any_stream(active, timeout=self.config.timeout_seconds)
        except OpenNIError as e:
            print(f"Wait failed! (timeout is {self.config.timeout_ms} ms): {e}")
            return None, None

        if ready is None:
            print(f"Wait failed! (timeout is {self.config.timeout_ms} ms): timed out")
            return None, None

        # Identity lookup; a stream the camera doesn't own gets an index past the slots
        index = next((i for i, s in enumerate(slots) if s is ready), len(slots))
        if index not in STREAM_NAMES:
            return index, None

        return index, self.read_frame(index)

    def read_frame(self, index: int) -> CameraFrame:
        """Read the next frame of one stream and convert it to an image."""
        stream = self.streams[index]
        frame = stream.read_frame()

        if index == DEPTH_STREAM:
            image = depth_buffer_to_image(frame.get_buffer_as_uint16(), frame.width, frame.height)
        else:
            image = color_buffer_to_image(frame.get_buffer_as_uint8(), frame.width, frame.height)

        return CameraFrame(
            stream_index=index,
            image=image,
            timestamp=frame.timestamp,
            frame_number=frame.frameIndex
        )

    def close(self) -> None:
        """Stop and destroy streams, close the device and unload OpenNI2."""
        for stream in (self.depth_stream, self.color_stream):
            if stream is not None:
                stream.stop()
        for stream in (self.depth_stream, self.color_stream):
            if stream is not None:
                stream.close()
        self.depth_stream = None
        self.color_stream = None

        try:
            if self.device is not None:
                self.device.close()
        finally:
            self.device = None
            if self._initialized:
                openni2.unload()
                self._initialized = False
            self.is_open = False

    def __enter__(self):
        """Context manager entry."""
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()
