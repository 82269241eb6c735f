"""
FaceOff Depth Camera Demo
=========================

Reads depth and colour frames from an OpenNI2 depth camera, shows the
colour stream and marks a detected face with its eyes using Haar cascades.

Author: Sumesh Thakur (sumeshthkr@gmail.com)

References:
- OpenNI2: https://structure.io/openni
- OpenCV Face Detection: https://docs.opencv.org/4.x/db/d28/tutorial_cascade_classifier.html
"""

VERSION_MAJOR = 1
VERSION_MINOR = 0

__version__ = f"{VERSION_MAJOR}.{VERSION_MINOR}.0"
__author__ = "Sumesh Thakur"
__email__ = "sumeshthkr@gmail.com"
