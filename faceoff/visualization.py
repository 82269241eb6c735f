"""
Visualization Module
====================

Drawing and console output for the capture loop:
- Face and eye bounding boxes
- Depth preview colour map
- Running frame-count status line

Author: Sumesh Thakur (sumeshthkr@gmail.com)

References:
- OpenCV Drawing Functions: https://docs.opencv.org/4.x/dc/da5/tutorial_py_drawing_functions.html
- OpenCV Colormaps: https://docs.opencv.org/4.x/d3/d50/group__imgproc__colormap.html
"""

import cv2
import numpy as np
from typing import Tuple

from .config import CaptureConfig
from .face_detection import FaceEyeResult, Region


def draw_region(
    image: np.ndarray,
    region: Region,
    color: Tuple[int, int, int],
    thickness: int = 2
) -> np.ndarray:
    """Draw one rectangle in place and return the image."""
    cv2.rectangle(image, region.top_left, region.bottom_right, color, thickness)
    return image


def draw_face_result(
    image: np.ndarray,
    result: FaceEyeResult,
    config: CaptureConfig
) -> np.ndarray:
    """
    Draw the face box and eye boxes onto a frame.

    The face uses config.face_color, both eyes use config.eye_color.
    Nothing is drawn when no face was found.

    Args:
        image: BGR frame, drawn on in place
        result: Detections in full-image coordinates
        config: Colours and line thickness

    Returns:
        The same image
    """
    if result.face is None:
        return image

    draw_region(image, result.face, config.face_color, config.line_thickness)

    for eye in (result.left_eye, result.right_eye):
        if eye is not None:
            draw_region(image, eye, config.eye_color, config.line_thickness)

    return image


def colorize_depth(
    depth: np.ndarray,
    max_depth_mm: int = 4000,
    invalid_color: Tuple[int, int, int] = (0, 0, 0)
) -> np.ndarray:
    """
    Apply colormap to a raw sensor depth frame for preview.

    Closer surfaces appear warmer. Pixels with no depth reading (0) or
    beyond max_depth_mm get invalid_color.

    Args:
        depth: uint16 depth in millimetres
        max_depth_mm: Depth mapped to the far end of the colour map
        invalid_color: Color for invalid depth values (BGR)

    Returns:
        Colorized depth map (BGR format)
    """
    clipped = np.clip(depth.astype(np.float32), 0, max_depth_mm)
    normalized = 1.0 - clipped / max_depth_mm
    normalized = (normalized * 255).astype(np.uint8)

    colorized = cv2.applyColorMap(normalized, cv2.COLORMAP_JET)

    invalid_mask = (depth == 0) | (depth > max_depth_mm)
    colorized[invalid_mask] = invalid_color

    return colorized


def format_status(depth_frames: int, color_frames: int) -> str:
    """Status line overwritten in place on the console."""
    return f"\rDepth frames : {depth_frames}  Colour frames : {color_frames}"
