"""
Face and Eye Detection Module
=============================

Haar-cascade face detection followed by left/right eye detection inside
the upper band of the detected face.

The eye cascades run on a crop of the face, so the rectangles they report
are local to that crop. They are translated back into full-image
coordinates by the crop's top-left corner, which is the face box origin.

Only the first face and the first candidate of each eye cascade are used;
there is no confidence or size based selection between candidates.

Author: Sumesh Thakur (sumeshthkr@gmail.com)

References:
- OpenCV Cascade Classifier: https://docs.opencv.org/4.x/db/d28/tutorial_cascade_classifier.html
- P. Viola and M. Jones, "Rapid Object Detection using a Boosted Cascade of Simple Features"
"""

import cv2
import numpy as np
from typing import NamedTuple, Optional, Sequence, Tuple
from dataclasses import dataclass
from pathlib import Path

from .config import CaptureConfig


class Region(NamedTuple):
    """Axis-aligned rectangle (x, y, width, height) in pixel coordinates."""
    x: int
    y: int
    width: int
    height: int

    def offset(self, dx: int, dy: int) -> "Region":
        """Translate the rectangle by (dx, dy)."""
        return Region(self.x + dx, self.y + dy, self.width, self.height)

    @property
    def top_left(self) -> Tuple[int, int]:
        return (self.x, self.y)

    @property
    def bottom_right(self) -> Tuple[int, int]:
        return (self.x + self.width, self.y + self.height)


@dataclass
class FaceEyeResult:
    """
    Detections for one colour frame, all in full-image coordinates.

    Attributes:
        face: First face found (None if no face)
        left_eye: First left eye found in the eye band
        right_eye: First right eye found in the eye band
    """
    face: Optional[Region] = None
    left_eye: Optional[Region] = None
    right_eye: Optional[Region] = None


def face_min_size(frame_width: int, frame_height: int, ratio: float = 0.25) -> Tuple[int, int]:
    """Smallest face the face cascade reports, relative to the frame size."""
    return (int(frame_width * ratio), int(frame_height * ratio))


def eye_band(face: Region, ratio: float = 0.6) -> Region:
    """Upper part of the face box searched for eyes."""
    return Region(face.x, face.y, face.width, int(face.height * ratio))


def eye_min_size(band: Region, ratio: float = 0.25) -> Tuple[int, int]:
    """Smallest eye the eye cascades report; square, from the band width."""
    size = int(band.width * ratio)
    return (size, size)


def to_image_coords(local: Region, crop: Region) -> Region:
    """Translate a rectangle found inside `crop` into full-image coordinates."""
    return local.offset(crop.x, crop.y)


def first_region(candidates: Sequence) -> Optional[Region]:
    """First rectangle reported by a cascade, or None."""
    if len(candidates) == 0:
        return None
    x, y, w, h = candidates[0]
    return Region(int(x), int(y), int(w), int(h))


def load_cascade(path: Path) -> Optional[cv2.CascadeClassifier]:
    """
    Load one cascade classifier file.

    Returns:
        The classifier, or None if the file is missing or unreadable
    """
    if not path.is_file():
        print(f"Error: cascade file not found: {path}")
        return None

    cascade = cv2.CascadeClassifier(str(path))
    if cascade.empty():
        print(f"Error: could not load cascade {path}")
        return None
    return cascade


class FaceEyeDetector:
    """
    Single-face detector with left and right eye localisation.

    Works on grayscale images. The classifiers only need a
    `detectMultiScale(image, scaleFactor=, minNeighbors=, minSize=)` method,
    so tests can pass stubs in place of cv2.CascadeClassifier.
    """

    def __init__(self, face_cascade, left_eye_cascade, right_eye_cascade,
                 config: Optional[CaptureConfig] = None):
        self.face_cascade = face_cascade
        self.left_eye_cascade = left_eye_cascade
        self.right_eye_cascade = right_eye_cascade
        self.config = config or CaptureConfig()

    @classmethod
    def from_config(cls, config: CaptureConfig,
                    cascade_dir: Optional[Path] = None) -> Optional["FaceEyeDetector"]:
        """
        Load the three cascades named in the configuration.

        Args:
            config: Capture configuration
            cascade_dir: Directory overriding config.cascade_dir

        Returns:
            FaceEyeDetector, or None if any cascade failed to load
        """
        if cascade_dir is None:
            paths = config.cascade_paths()
        else:
            paths = tuple(
                Path(cascade_dir) / name
                for name in (config.face_cascade, config.left_eye_cascade, config.right_eye_cascade)
            )

        cascades = [load_cascade(p) for p in paths]
        if any(c is None for c in cascades):
            return None

        print(f"Loaded cascades from: {paths[0].parent}")
        return cls(*cascades, config=config)

    def _detect(self, cascade, image: np.ndarray, min_size: Tuple[int, int]) -> Optional[Region]:
        candidates = cascade.detectMultiScale(
            image,
            scaleFactor=self.config.scale_factor,
            minNeighbors=self.config.min_neighbors,
            minSize=min_size
        )
        return first_region(candidates)

    def detect(self, gray: np.ndarray) -> FaceEyeResult:
        """
        Find a face and its eyes in a grayscale image.

        Args:
            gray: Single-channel image

        Returns:
            FaceEyeResult in full-image coordinates
        """
        height, width = gray.shape[:2]
        face = self._detect(
            self.face_cascade, gray,
            face_min_size(width, height, self.config.face_min_ratio)
        )
        if face is None:
            return FaceEyeResult()

        band = eye_band(face, self.config.eye_band_ratio)
        band_image = gray[band.y:band.y + band.height, band.x:band.x + band.width]
        min_size = eye_min_size(band, self.config.eye_min_ratio)

        left = self._detect(self.left_eye_cascade, band_image, min_size)
        right = self._detect(self.right_eye_cascade, band_image, min_size)

        return FaceEyeResult(
            face=face,
            left_eye=to_image_coords(left, band) if left is not None else None,
            right_eye=to_image_coords(right, band) if right is not None else None,
        )

    def detect_bgr(self, image: np.ndarray) -> FaceEyeResult:
        """Convert a BGR frame to grayscale and run detect()."""
        gray = cv2.cvtColor(image, cv2.COLOR_BGR2GRAY)
        return self.detect(gray)


def opencv_cascade_dir() -> Path:
    """Directory of the cascades shipped with opencv-python."""
    return Path(cv2.data.haarcascades)
