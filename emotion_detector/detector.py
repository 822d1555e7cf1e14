"""
FaceDetector — Haar cascade face detection on grayscale rasters.

Public contract:
    FaceDetector.detect(gray: np.ndarray) -> list[FaceRegion]

Constraints:
    - Input must be a single-channel uint8 numpy array.
    - Deterministic for identical input and parameters.
    - No reference to the input raster is kept after detect() returns.
    - Thread-safety is not guaranteed (single-threaded design).

Non-goals:
    - No file reading, camera access, or I/O of any kind.
    - No emotion classification.
    - No tracking or temporal state.
"""

import logging
from typing import List, Optional

import numpy as np

from emotion_detector.config import DetectionConfig
from emotion_detector.detection import FaceRegion
from emotion_detector.model_loader import load_cascade
from emotion_detector.postprocessor import postprocess

logger = logging.getLogger(__name__)


class FaceDetector:
    """Face detector backed by an OpenCV Haar cascade.

    Usage:
        detector = FaceDetector()                   # Default cascade path
        detector = FaceDetector(config=my_config)   # Custom DetectionConfig
        regions = detector.detect(gray)             # 2-D uint8 array

    The constructor loads the cascade once. The loaded model is treated
    as read-only and reused across every detect() call.
    """

    def __init__(self, config: Optional[DetectionConfig] = None) -> None:
        """Initialize the detector and load the cascade.

        Raises:
            ModelLoadError: If the cascade file is missing or unparsable.
        """
        self._config = config or DetectionConfig()
        self._cascade = load_cascade(self._config)

        logger.info(
            "FaceDetector initialized (scale_factor=%.2f, min_neighbors=%d)",
            self._config.scale_factor,
            self._config.min_neighbors,
        )

    def detect(self, gray: np.ndarray) -> List[FaceRegion]:
        """Detect faces in a grayscale raster.

        Args:
            gray: Single-channel uint8 image with shape (H, W).

        Returns:
            FaceRegions in the cascade's emission order, each lying fully
            inside the raster. Empty if no faces are found.

        Raises:
            TypeError: If gray is not a numpy ndarray.
            ValueError: If gray is empty or not single-channel uint8.
        """
        self._validate_raster(gray)

        kwargs = {
            "scaleFactor": self._config.scale_factor,
            "minNeighbors": self._config.min_neighbors,
        }
        if self._config.min_size is not None:
            kwargs["minSize"] = tuple(self._config.min_size)

        rects = self._cascade.detectMultiScale(gray, **kwargs)

        h, w = gray.shape[:2]
        regions = postprocess(rects, frame_width=w, frame_height=h)
        logger.debug("Detected %d face(s) in %dx%d raster.", len(regions), w, h)
        return regions

    @property
    def config(self) -> DetectionConfig:
        """Return the active detection configuration (read-only)."""
        return self._config

    @staticmethod
    def _validate_raster(gray: np.ndarray) -> None:
        """Validate that the input raster meets the API contract.

        Raises:
            TypeError: If gray is not a numpy ndarray.
            ValueError: If gray is empty, not 2-D, or not uint8.
        """
        if not isinstance(gray, np.ndarray):
            raise TypeError(
                f"Expected a numpy ndarray, got {type(gray).__name__}. "
                f"Convert the decoded frame with to_grayscale() first."
            )

        if gray.size == 0:
            raise ValueError("Raster is empty (zero size).")

        if gray.ndim != 2:
            raise ValueError(
                f"Expected a 2-dimensional grayscale raster (H, W), "
                f"got {gray.ndim} dimensions with shape {gray.shape}."
            )

        if gray.dtype != np.uint8:
            raise ValueError(f"Expected dtype uint8, got {gray.dtype}.")
