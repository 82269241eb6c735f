#!/usr/bin/env python3
"""
FaceOff Depth Camera Demo - Main Entry Point
============================================

Reads frames from an OpenNI2 depth camera, shows the colour stream and
marks the first detected face and its eyes.

Author: Sumesh Thakur (sumeshthkr@gmail.com)

Usage:
    python main.py
    python main.py --mode headless
    python main.py --mode display --show-depth
    python main.py --config faceoff.json

References:
- OpenNI2 Python bindings: https://pypi.org/project/openni/
- OpenCV Python Tutorials: https://docs.opencv.org/4.x/d6/d00/tutorial_py_root.html
"""

import argparse
import sys
from dataclasses import replace
from typing import Optional

from faceoff import VERSION_MAJOR, VERSION_MINOR
from faceoff.config import (
    CaptureConfig,
    load_config_from_json,
    create_default_config,
    save_config_to_json,
    validate_config,
)
from faceoff.depth_camera import DepthCamera
from faceoff.face_detection import FaceEyeDetector, opencv_cascade_dir
from faceoff.capture_loop import CaptureLoop, RunMode
from faceoff.keyboard import TerminalKeyPoller, WindowKeyPoller


EXIT_OK = 0
EXIT_DEVICE_ERROR = 1
EXIT_CASCADE_ERROR = -1


def parse_args(argv=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Depth camera capture with face and eye detection",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    # Colour window with face and eye boxes
    python main.py

    # Count frames only, no window
    python main.py --mode headless

    # Colour and depth windows, no detection
    python main.py --mode display --show-depth

Press any key to quit.
        """,
    )

    parser.add_argument(
        "--mode",
        type=str,
        choices=[m.value for m in RunMode],
        default=RunMode.DETECT.value,
        help="headless: count frames; display: show colour; detect: also find faces (default: detect)",
    )

    # Configuration
    parser.add_argument(
        "--config", type=str, help="Path to capture configuration JSON file"
    )
    parser.add_argument(
        "--save-config",
        type=str,
        metavar="PATH",
        help="Write the effective configuration to a JSON file and exit",
    )
    parser.add_argument(
        "--timeout",
        type=int,
        metavar="MS",
        help="Frame wait timeout in milliseconds (default: 2000)",
    )

    # Cascades
    cascade_group = parser.add_mutually_exclusive_group()
    cascade_group.add_argument(
        "--data-dir", type=str, help="Directory holding the cascade XML files"
    )
    cascade_group.add_argument(
        "--opencv-cascades",
        action="store_true",
        help="Use the cascades shipped with opencv-python",
    )

    # Display
    parser.add_argument(
        "--show-depth",
        action="store_true",
        help="Also show a colourised depth window (display/detect modes)",
    )

    return parser.parse_args(argv)


def setup_config(args) -> CaptureConfig:
    """Load or create capture configuration and apply command line overrides."""
    if args.config:
        print(f"Loading configuration from: {args.config}")
        config = load_config_from_json(args.config)
    else:
        config = create_default_config()

    if args.timeout is not None:
        config = validate_config(replace(config, timeout_ms=args.timeout))
    if args.data_dir:
        config = replace(config, data_dir=args.data_dir)
    elif args.opencv_cascades:
        config = replace(config, data_dir=str(opencv_cascade_dir()))

    return config


def setup_detector(mode: RunMode, config: CaptureConfig) -> Optional[FaceEyeDetector]:
    """Load the cascades when the mode needs them."""
    if mode is not RunMode.DETECT:
        return None
    return FaceEyeDetector.from_config(config)


def main(argv=None) -> int:
    """Main entry point."""
    args = parse_args(argv)
    mode = RunMode(args.mode)

    print(f"FaceOff v{VERSION_MAJOR}.{VERSION_MINOR}")

    try:
        config = setup_config(args)
    except (FileNotFoundError, ValueError) as e:
        print(f"Error: {e}")
        return EXIT_DEVICE_ERROR

    if args.save_config:
        save_config_to_json(config, args.save_config)
        print(f"Configuration saved to: {args.save_config}")
        return EXIT_OK

    detector = setup_detector(mode, config)
    if mode is RunMode.DETECT and detector is None:
        print("Error: Could not load face/eye cascades")
        return EXIT_CASCADE_ERROR

    print("hit a key to quit")

    with DepthCamera(config) as camera:
        if not camera.is_open:
            return EXIT_DEVICE_ERROR

        loop = CaptureLoop(
            camera,
            config=config,
            detector=detector,
            display=mode.shows_window,
            show_depth=args.show_depth,
        )
        poller = WindowKeyPoller() if mode.shows_window else TerminalKeyPoller()

        try:
            with poller:
                counts = loop.run(poller)
        finally:
            loop.close_windows()

    print(f"Processed {counts.frames} frames ({counts.depth} depth, {counts.color} colour)")
    if counts.timeouts:
        print(f"Timed out waiting for a frame {counts.timeouts} times")
    print("Done!")
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
