"""
Capture Configuration Module
============================

Holds every tunable of the capture loop: the wait timeout, the detection
size ratios, drawing colours and the location of the cascade files.
Supports JSON configuration files or defaults with keyword overrides.

Author: Sumesh Thakur (sumeshthkr@gmail.com)

References:
- OpenCV Cascade Classifier: https://docs.opencv.org/4.x/db/d28/tutorial_cascade_classifier.html
- OpenNI2 Python bindings: https://pypi.org/project/openni/
"""

import json
import sys
from dataclasses import dataclass, asdict, fields, replace
from typing import Optional, Tuple
from pathlib import Path


FACE_CASCADE_FILE = "haarcascade_frontalface_default.xml"
LEFT_EYE_CASCADE_FILE = "haarcascade_lefteye_2splits.xml"
RIGHT_EYE_CASCADE_FILE = "haarcascade_righteye_2splits.xml"

RATIO_FIELDS = ("face_min_ratio", "eye_band_ratio", "eye_min_ratio")
COLOR_FIELDS = ("face_color", "eye_color")
INT_FIELDS = ("timeout_ms", "min_neighbors", "line_thickness", "max_depth_mm")
FLOAT_FIELDS = RATIO_FIELDS + ("scale_factor",)
STRING_FIELDS = (
    "window_name", "depth_window_name",
    "face_cascade", "left_eye_cascade", "right_eye_cascade",
)
OPTIONAL_STRING_FIELDS = ("data_dir", "openni_redist")


@dataclass(frozen=True)
class CaptureConfig:
    """
    Parameters for one run of the capture-and-annotate loop.

    Attributes:
        timeout_ms: How long to wait for any stream to become ready
        face_min_ratio: Minimum face size as a fraction of frame width/height
        eye_band_ratio: Fraction of the face height searched for eyes (from the top)
        eye_min_ratio: Minimum eye size as a fraction of the eye band width
        scale_factor: Cascade image pyramid scale step
        min_neighbors: Cascade neighbour count needed to keep a candidate
        face_color: BGR colour of the face box
        eye_color: BGR colour of the eye boxes
        line_thickness: Box line thickness in pixels
        window_name: Title of the colour window
        depth_window_name: Title of the optional depth preview window
        max_depth_mm: Depth mapped to the far end of the preview colour map
        face_cascade: File name of the frontal face cascade
        left_eye_cascade: File name of the left eye cascade
        right_eye_cascade: File name of the right eye cascade
        data_dir: Directory holding the cascades (None = next to the program)
        openni_redist: Directory of the OpenNI2 redistributable (None = SDK default)
    """
    timeout_ms: int = 2000
    face_min_ratio: float = 0.25
    eye_band_ratio: float = 0.6
    eye_min_ratio: float = 0.25
    scale_factor: float = 1.1
    min_neighbors: int = 3
    face_color: Tuple[int, int, int] = (0, 255, 0)
    eye_color: Tuple[int, int, int] = (255, 0, 0)
    line_thickness: int = 2
    window_name: str = "RGB"
    depth_window_name: str = "Depth"
    max_depth_mm: int = 4000
    face_cascade: str = FACE_CASCADE_FILE
    left_eye_cascade: str = LEFT_EYE_CASCADE_FILE
    right_eye_cascade: str = RIGHT_EYE_CASCADE_FILE
    data_dir: Optional[str] = None
    openni_redist: Optional[str] = None

    @property
    def timeout_seconds(self) -> float:
        """Wait timeout in seconds, as the OpenNI2 bindings expect it."""
        return self.timeout_ms / 1000.0

    @property
    def cascade_dir(self) -> Path:
        """Directory the cascade files are loaded from."""
        if self.data_dir is not None:
            return Path(self.data_dir)
        return default_data_dir()

    def cascade_paths(self) -> Tuple[Path, Path, Path]:
        """Full paths of the face, left eye and right eye cascades."""
        base = self.cascade_dir
        return (
            base / self.face_cascade,
            base / self.left_eye_cascade,
            base / self.right_eye_cascade,
        )


def default_data_dir() -> Path:
    """
    The `data` directory next to the running program.

    Resolved from the program's own path rather than the working directory
    so the cascades are found wherever the program is launched from.
    """
    return Path(sys.argv[0]).resolve().parent / "data"


def _is_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _is_number(value) -> bool:
    return _is_int(value) or isinstance(value, float)


def check_types(config: CaptureConfig) -> None:
    """
    Check every field holds a value of the type OpenCV and OpenNI2 expect.

    Raises:
        ValueError: If any field has the wrong type
    """
    for name in INT_FIELDS:
        value = getattr(config, name)
        if not _is_int(value):
            raise ValueError(f"{name} must be an integer, got {value!r}")

    for name in FLOAT_FIELDS:
        value = getattr(config, name)
        if not _is_number(value):
            raise ValueError(f"{name} must be a number, got {value!r}")

    for name in STRING_FIELDS:
        value = getattr(config, name)
        if not isinstance(value, str):
            raise ValueError(f"{name} must be a string, got {value!r}")

    for name in OPTIONAL_STRING_FIELDS:
        value = getattr(config, name)
        if value is not None and not isinstance(value, str):
            raise ValueError(f"{name} must be a string or null, got {value!r}")

    for name in COLOR_FIELDS:
        color = getattr(config, name)
        if not isinstance(color, tuple) or len(color) != 3 or not all(_is_int(c) for c in color):
            raise ValueError(f"{name} must be 3 integers, got {color!r}")


def validate_config(config: CaptureConfig) -> CaptureConfig:
    """
    Check value types and ranges of a configuration.

    Raises:
        ValueError: If any parameter has the wrong type or is out of range
    """
    check_types(config)

    if config.timeout_ms <= 0:
        raise ValueError("timeout_ms must be positive")

    for name in RATIO_FIELDS:
        value = getattr(config, name)
        if not 0.0 < value <= 1.0:
            raise ValueError(f"{name} must be in (0, 1], got {value}")

    if config.scale_factor <= 1.0:
        raise ValueError("scale_factor must be greater than 1")
    if config.min_neighbors < 0:
        raise ValueError("min_neighbors must not be negative")
    if config.line_thickness <= 0:
        raise ValueError("line_thickness must be positive")
    if config.max_depth_mm <= 0:
        raise ValueError("max_depth_mm must be positive")

    for name in COLOR_FIELDS:
        color = getattr(config, name)
        if not all(0 <= c <= 255 for c in color):
            raise ValueError(f"{name} must be 3 values in 0-255")

    return config


def create_default_config(**overrides) -> CaptureConfig:
    """
    Create a configuration with the built-in defaults.

    Args:
        **overrides: Field values replacing the defaults

    Returns:
        Validated CaptureConfig
    """
    config = CaptureConfig()
    if overrides:
        config = replace(config, **overrides)
    return validate_config(config)


def load_config_from_json(config_path: str) -> CaptureConfig:
    """
    Load capture configuration from a JSON file.

    Any subset of the CaptureConfig fields may be given; missing fields
    keep their defaults. Colours are given as [B, G, R] lists.

    Args:
        config_path: Path to the JSON configuration file

    Returns:
        CaptureConfig object with loaded parameters

    Raises:
        FileNotFoundError: If config file doesn't exist
        ValueError: If config file is invalid
    """
    path = Path(config_path)
    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with open(path, 'r') as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in {config_path}: {e}") from e

    if not isinstance(data, dict):
        raise ValueError("Configuration must be a JSON object")

    known = {f.name for f in fields(CaptureConfig)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ValueError(f"Unknown field(s) in config: {', '.join(unknown)}")

    for name in COLOR_FIELDS:
        if isinstance(data.get(name), list):
            data[name] = tuple(data[name])

    return create_default_config(**data)


def save_config_to_json(config: CaptureConfig, output_path: str) -> None:
    """
    Save capture configuration to a JSON file.

    Args:
        config: CaptureConfig object to save
        output_path: Path for the output JSON file
    """
    data = asdict(config)
    for name in COLOR_FIELDS:
        data[name] = list(data[name])

    with open(output_path, 'w') as f:
        json.dump(data, f, indent=4)
