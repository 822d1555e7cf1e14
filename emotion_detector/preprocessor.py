"""
Preprocessing for the emotion detection pipeline.

Responsibility:
    Decode a captured image file into a BGR raster, convert it to
    single-channel grayscale for detection, and cut out normalized face
    crops for classification.

Non-goals:
    - No frame acquisition.
    - No detection or classification.

Hard-coded:
    - Grayscale uses OpenCV's BGR2GRAY weighting (ITU-R BT.601 luma):
      Y = 0.299 R + 0.587 G + 0.114 B.
    - Crops are resized with bilinear interpolation (cv2.INTER_LINEAR),
      which is deterministic for identical input.
"""

from pathlib import Path
from typing import Tuple, Union

import cv2
import numpy as np

from emotion_detector.detection import FaceRegion
from emotion_detector.errors import DecodeError

LUMA_WEIGHTS = (0.299, 0.587, 0.114)  # R, G, B


def decode_image(path: Union[str, Path]) -> np.ndarray:
    """Read an image file into a BGR uint8 array.

    Raises:
        DecodeError: If the file is missing, empty, or not a decodable image.
    """
    path = Path(path)
    if not path.is_file():
        raise DecodeError(f"Captured image not found: {path}")

    frame = cv2.imread(str(path), cv2.IMREAD_COLOR)
    if frame is None or frame.size == 0:
        raise DecodeError(f"Unreadable or malformed image data: {path}")

    return frame


def to_grayscale(frame: np.ndarray) -> np.ndarray:
    """Convert a BGR (or already single-channel) raster to grayscale.

    Raises:
        ValueError: If the frame is empty or has an unsupported shape.
    """
    if frame is None or frame.size == 0:
        raise ValueError("Cannot convert an empty frame to grayscale.")

    if frame.ndim == 2:
        return frame.copy()

    if frame.ndim == 3 and frame.shape[2] == 3:
        return cv2.cvtColor(frame, cv2.COLOR_BGR2GRAY)

    if frame.ndim == 3 and frame.shape[2] == 4:
        return cv2.cvtColor(frame, cv2.COLOR_BGRA2GRAY)

    raise ValueError(
        f"Expected a BGR, BGRA, or grayscale frame, got shape {frame.shape}."
    )


def crop_region(gray: np.ndarray, region: FaceRegion) -> np.ndarray:
    """Return the sub-raster bounded by region.

    Raises:
        ValueError: If the region does not lie inside the raster.
    """
    h, w = gray.shape[:2]
    if not region.fits(w, h):
        raise ValueError(f"Region {region} lies outside the {w}x{h} frame.")
    return gray[region.y:region.y2, region.x:region.x2]


def normalize_face(face: np.ndarray, size: Tuple[int, int]) -> np.ndarray:
    """Resize a face crop to the classifier's (width, height) input size."""
    if face is None or face.size == 0:
        raise ValueError("Cannot normalize an empty face crop.")
    return cv2.resize(face, size, interpolation=cv2.INTER_LINEAR)
