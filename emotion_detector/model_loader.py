"""
Model loading for the emotion detection system.

Responsibility:
    Load the Haar cascade face detector and, when configured, the ONNX
    emotion classifier network from disk.

Non-goals:
    - No preprocessing, inference, or frame-level logic.
    - No automatic model downloading.
    - No fallback to alternative models.

Failure behavior:
    - Missing or unparsable model files raise ModelLoadError with the
      exact expected path and where to obtain the file.
"""

import logging
from typing import Optional

import cv2

from emotion_detector.config import DetectionConfig, resolve_path
from emotion_detector.errors import ModelLoadError

logger = logging.getLogger(__name__)

CASCADE_DOWNLOAD_URL = (
    "https://raw.githubusercontent.com/opencv/opencv/master/"
    "data/haarcascades/haarcascade_frontalface_default.xml"
)


def load_cascade(config: DetectionConfig) -> cv2.CascadeClassifier:
    """Load the Haar cascade face detection model.

    Args:
        config: DetectionConfig containing the cascade path.

    Returns:
        A loaded cv2.CascadeClassifier.

    Raises:
        ModelLoadError: If the cascade file is absent or cannot be parsed.
    """
    cascade_path = resolve_path(config.cascade_path)

    # Fail fast with actionable messages
    if not cascade_path.is_file():
        raise ModelLoadError(
            f"Haar cascade file not found.\n"
            f"  Expected: {cascade_path}\n"
            f"  Download it from:\n"
            f"    {CASCADE_DOWNLOAD_URL}\n"
            f"  and place it at the path above, or update "
            f"'detection.cascade_path' in your config."
        )

    logger.info("Loading cascade: %s", cascade_path)
    try:
        cascade = cv2.CascadeClassifier(str(cascade_path))
    except cv2.error as e:
        raise ModelLoadError(
            f"Failed to parse Haar cascade: {cascade_path}\n  OpenCV error: {e}"
        ) from e

    if cascade.empty():
        raise ModelLoadError(
            f"Haar cascade loaded empty (corrupt or not a cascade file).\n"
            f"  Path: {cascade_path}\n"
            f"  Re-download it from {CASCADE_DOWNLOAD_URL}"
        )

    logger.info("Cascade loaded successfully.")
    return cascade


def load_emotion_net(model_path: Optional[str]) -> cv2.dnn.Net:
    """Load an ONNX emotion classification network on the CPU backend.

    Args:
        model_path: Path to the .onnx file (relative to project root).

    Returns:
        A cv2.dnn.Net ready for inference.

    Raises:
        ModelLoadError: If the file is absent or cannot be parsed.
    """
    if not model_path:
        raise ModelLoadError(
            "No emotion model configured. Set 'classifier.model_path' "
            "or use the 'placeholder' classifier backend."
        )

    path = resolve_path(model_path)

    if not path.is_file():
        raise ModelLoadError(
            f"Emotion model not found.\n"
            f"  Expected: {path}\n"
            f"  Provide a FER-2013 style ONNX model (7 outputs, 48x48 grayscale input),\n"
            f"  or set 'classifier.backend' to 'placeholder'."
        )

    logger.info("Loading emotion model: %s", path)
    try:
        net = cv2.dnn.readNetFromONNX(str(path))
    except cv2.error as e:
        raise ModelLoadError(
            f"Failed to parse emotion model: {path}\n  OpenCV error: {e}"
        ) from e

    net.setPreferableBackend(cv2.dnn.DNN_BACKEND_OPENCV)
    net.setPreferableTarget(cv2.dnn.DNN_TARGET_CPU)

    logger.info("Emotion model loaded successfully.")
    return net
