"""
Unit tests for capture configuration module.
Author: Sumesh Thakur (sumeshthkr@gmail.com)
"""

import pytest
import tempfile
import json
from pathlib import Path

import sys
sys.path.insert(0, str(Path(__file__).parent.parent))

from faceoff.config import (
    CaptureConfig,
    load_config_from_json,
    create_default_config,
    save_config_to_json,
    default_data_dir,
    FACE_CASCADE_FILE,
    LEFT_EYE_CASCADE_FILE,
    RIGHT_EYE_CASCADE_FILE,
)


class TestCaptureConfig:
    """Tests for CaptureConfig dataclass."""

    def test_defaults(self):
        """Test default loop parameters."""
        config = CaptureConfig()
        assert config.timeout_ms == 2000
        assert config.face_min_ratio == 0.25
        assert config.eye_band_ratio == 0.6
        assert config.eye_min_ratio == 0.25
        assert config.window_name == "RGB"
        assert config.face_color != config.eye_color

    def test_timeout_seconds(self):
        """Test timeout conversion for the SDK."""
        config = create_default_config(timeout_ms=1500)
        assert abs(config.timeout_seconds - 1.5) < 1e-9

    def test_cascade_paths_with_data_dir(self):
        """Test cascade paths under an explicit data directory."""
        config = create_default_config(data_dir="/opt/cascades")
        face, left, right = config.cascade_paths()

        assert face == Path("/opt/cascades") / FACE_CASCADE_FILE
        assert left == Path("/opt/cascades") / LEFT_EYE_CASCADE_FILE
        assert right == Path("/opt/cascades") / RIGHT_EYE_CASCADE_FILE

    def test_default_data_dir_next_to_program(self, monkeypatch, tmp_path):
        """Test data directory is found next to the running program."""
        program = tmp_path / "bin" / "main.py"
        monkeypatch.setattr(sys, "argv", [str(program)])

        assert default_data_dir() == (tmp_path / "bin").resolve() / "data"
        assert CaptureConfig().cascade_dir == (tmp_path / "bin").resolve() / "data"


class TestDefaultConfig:
    """Tests for default configuration creation."""

    def test_overrides(self):
        """Test custom parameter values."""
        config = create_default_config(timeout_ms=500, min_neighbors=5)
        assert config.timeout_ms == 500
        assert config.min_neighbors == 5
        assert config.eye_band_ratio == 0.6

    @pytest.mark.parametrize("field,value", [
        ("timeout_ms", 0),
        ("face_min_ratio", 0.0),
        ("eye_band_ratio", 1.5),
        ("eye_min_ratio", -0.1),
        ("scale_factor", 1.0),
        ("line_thickness", 0),
        ("face_color", (0, 255)),
        ("eye_color", (0, 0, 300)),
        ("eye_color", [0, 0, 255]),
        ("line_thickness", 1.5),
        ("depth_window_name", None),
    ])
    def test_invalid_values(self, field, value):
        """Test out-of-range or mistyped values are rejected."""
        with pytest.raises(ValueError):
            create_default_config(**{field: value})


class TestConfigLoading:
    """Tests for configuration loading and saving."""

    def _write(self, data) -> str:
        with tempfile.NamedTemporaryFile(mode='w', suffix='.json', delete=False) as f:
            json.dump(data, f)
            return f.name

    def test_load_partial_config(self):
        """Test loading a JSON file that sets only some fields."""
        temp_path = self._write({
            "timeout_ms": 1000,
            "face_color": [0, 0, 255],
            "data_dir": "/tmp/cascades"
        })

        try:
            config = load_config_from_json(temp_path)
            assert config.timeout_ms == 1000
            assert config.face_color == (0, 0, 255)
            assert config.data_dir == "/tmp/cascades"
            assert config.eye_min_ratio == 0.25
        finally:
            Path(temp_path).unlink()

    def test_load_missing_file(self):
        """Test loading non-existent file."""
        with pytest.raises(FileNotFoundError):
            load_config_from_json("/nonexistent/path/config.json")

    def test_load_unknown_field(self):
        """Test loading configuration with a misspelled field."""
        temp_path = self._write({"timout_ms": 1000})

        try:
            with pytest.raises(ValueError):
                load_config_from_json(temp_path)
        finally:
            Path(temp_path).unlink()

    def test_load_wrong_type(self):
        """Test loading configuration with a non-numeric value."""
        temp_path = self._write({"timeout_ms": "fast"})

        try:
            with pytest.raises(ValueError):
                load_config_from_json(temp_path)
        finally:
            Path(temp_path).unlink()

    @pytest.mark.parametrize("data", [
        {"face_color": 5},
        {"eye_color": [0, 0, "x"]},
        {"eye_color": [0, 0, 1.5]},
        {"line_thickness": 1.5},
        {"min_neighbors": 2.5},
        {"timeout_ms": True},
        {"scale_factor": "1.2"},
        {"window_name": 7},
        {"face_cascade": None},
        {"data_dir": 3},
        {"openni_redist": ["/opt/openni"]},
    ])
    def test_load_bad_field_type(self, data):
        """Test every field type mismatch surfaces as ValueError."""
        temp_path = self._write(data)

        try:
            with pytest.raises(ValueError):
                load_config_from_json(temp_path)
        finally:
            Path(temp_path).unlink()

    def test_load_float_ratio_as_int(self):
        """Test whole numbers are accepted for float fields."""
        temp_path = self._write({"eye_band_ratio": 1, "scale_factor": 2})

        try:
            config = load_config_from_json(temp_path)
            assert config.eye_band_ratio == 1
            assert config.scale_factor == 2
        finally:
            Path(temp_path).unlink()

    def test_load_not_an_object(self):
        """Test loading a JSON list."""
        temp_path = self._write([1, 2, 3])

        try:
            with pytest.raises(ValueError):
                load_config_from_json(temp_path)
        finally:
            Path(temp_path).unlink()

    def test_save_and_load_config(self):
        """Test round-trip save and load."""
        original = create_default_config(
            timeout_ms=750,
            eye_color=(10, 20, 30),
            window_name="Camera"
        )

        with tempfile.NamedTemporaryFile(suffix='.json', delete=False) as f:
            temp_path = f.name

        try:
            save_config_to_json(original, temp_path)
            loaded = load_config_from_json(temp_path)

            assert loaded == original
        finally:
            Path(temp_path).unlink()
