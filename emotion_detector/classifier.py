"""
Emotion classification for normalized face crops.

Public contract:
    EmotionClassifier.classify(face: np.ndarray) -> EmotionLabel

The face is a single-channel uint8 crop already resized to the
configured input size (48x48 by default). Implementations hold no
mutable state shared with callers and have no side effects beyond
their own inference.

Implementations:
    - PlaceholderEmotionClassifier: NON-DETERMINISTIC. Returns a random
      label. Only membership in EmotionLabel may be asserted about its
      output. Stand-in until a trained model is configured.
    - DnnEmotionClassifier: deterministic argmax over a FER-2013 style
      ONNX model run with OpenCV DNN. No model is shipped.
"""

import logging
import random
from abc import ABC, abstractmethod
from typing import Optional, Tuple

import cv2
import numpy as np

from emotion_detector.config import ClassifierConfig
from emotion_detector.detection import EmotionLabel
from emotion_detector.model_loader import load_emotion_net

logger = logging.getLogger(__name__)


class EmotionClassifier(ABC):
    """Maps a normalized face crop to one EmotionLabel."""

    #: Whether identical input always yields the identical label.
    deterministic: bool = True

    def __init__(self, input_size: Tuple[int, int] = (48, 48)) -> None:
        self._input_size = tuple(input_size)

    @property
    def input_size(self) -> Tuple[int, int]:
        """Expected (width, height) of each face crop."""
        return self._input_size

    def classify(self, face: np.ndarray) -> EmotionLabel:
        """Classify one face crop.

        Raises:
            TypeError: If face is not a numpy ndarray.
            ValueError: If face does not match the expected input size.
        """
        self._validate_face(face)
        return self._predict(face)

    @abstractmethod
    def _predict(self, face: np.ndarray) -> EmotionLabel:
        """Return the label for a validated crop."""

    def _validate_face(self, face: np.ndarray) -> None:
        if not isinstance(face, np.ndarray):
            raise TypeError(f"Expected a numpy ndarray, got {type(face).__name__}.")

        w, h = self._input_size
        if face.shape[:2] != (h, w):
            raise ValueError(
                f"Expected a {w}x{h} face crop, got shape {face.shape}. "
                f"Resize with normalize_face() first."
            )


class PlaceholderEmotionClassifier(EmotionClassifier):
    """Random emotion choice. NON-DETERMINISTIC placeholder.

    Ignores the pixels entirely. Replace with a trained classifier by
    setting classifier.backend to 'dnn'; callers need no changes.
    """

    deterministic = False

    def __init__(
        self,
        input_size: Tuple[int, int] = (48, 48),
        seed: Optional[int] = None,
    ) -> None:
        super().__init__(input_size)
        self._labels = tuple(EmotionLabel)
        self._rng = random.Random(seed)

    def _predict(self, face: np.ndarray) -> EmotionLabel:
        return self._rng.choice(self._labels)


class DnnEmotionClassifier(EmotionClassifier):
    """Argmax over a 7-way emotion network loaded with cv2.dnn.

    The network must accept a (1, 1, H, W) float blob scaled to [0, 1]
    and emit 7 scores in EmotionLabel order.
    """

    def __init__(self, net: cv2.dnn.Net, input_size: Tuple[int, int] = (48, 48)) -> None:
        super().__init__(input_size)
        self._net = net

    def _predict(self, face: np.ndarray) -> EmotionLabel:
        blob = cv2.dnn.blobFromImage(
            face,
            scalefactor=1.0 / 255.0,
            size=self._input_size,
            mean=0,
            swapRB=False,
            crop=False,
        )
        self._net.setInput(blob)
        scores = np.asarray(self._net.forward()).reshape(-1)

        if scores.size != len(EmotionLabel):
            raise ValueError(
                f"Emotion model produced {scores.size} scores, "
                f"expected {len(EmotionLabel)}."
            )

        return EmotionLabel.from_index(int(np.argmax(scores)))


def create_classifier(config: ClassifierConfig) -> EmotionClassifier:
    """Build the classifier selected by classifier.backend.

    Raises:
        ModelLoadError: If the 'dnn' backend's model cannot be loaded.
        ValueError: If the backend name is unknown.
    """
    if config.backend == "placeholder":
        logger.warning(
            "Using the placeholder emotion classifier: labels are random "
            "and carry no information about the face."
        )
        return PlaceholderEmotionClassifier(config.input_size, seed=config.seed)

    if config.backend == "dnn":
        net = load_emotion_net(config.model_path)
        return DnnEmotionClassifier(net, config.input_size)

    raise ValueError(
        f"Unknown classifier backend '{config.backend}'. "
        f"Supported: ['dnn', 'placeholder']."
    )
