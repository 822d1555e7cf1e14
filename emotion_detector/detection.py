"""
Data transfer objects for the emotion detection pipeline.

Defines the frozen value types passed between pipeline stages and
returned to callers:

    - Frame: a decoded raster and its dimensions.
    - FaceRegion: an axis-aligned face box in frame coordinates.
    - EmotionLabel: the closed set of emotion categories.
    - DetectionResult: one FaceRegion paired with one EmotionLabel.
    - PipelineState: lifecycle state of a DetectionPipeline.

Non-goals:
    - No rendering logic.
    - No file I/O.
    - No coordinate clamping (that belongs in postprocessor).
"""

from dataclasses import dataclass
from enum import Enum

import numpy as np


@dataclass(frozen=True)
class Frame:
    """A decoded raster owned by the pipeline for one run.

    Attributes:
        pixels: Image data, shape (H, W) or (H, W, C).
        width: Raster width in pixels.
        height: Raster height in pixels.
    """

    pixels: np.ndarray
    width: int
    height: int

    @classmethod
    def from_array(cls, pixels: np.ndarray) -> "Frame":
        """Wrap an array, taking dimensions from its shape."""
        h, w = pixels.shape[:2]
        return cls(pixels=pixels, width=int(w), height=int(h))


@dataclass(frozen=True, slots=True)
class FaceRegion:
    """A detected face as an axis-aligned rectangle.

    Attributes:
        x: Left edge (absolute pixels).
        y: Top edge (absolute pixels).
        width: Box width in pixels.
        height: Box height in pixels.

    Regions produced by the detector always satisfy
    ``fits(frame.width, frame.height)``.
    """

    x: int
    y: int
    width: int
    height: int

    @property
    def x2(self) -> int:
        """Exclusive right edge."""
        return self.x + self.width

    @property
    def y2(self) -> int:
        """Exclusive bottom edge."""
        return self.y + self.height

    @property
    def area(self) -> int:
        """Bounding box area in pixels."""
        return self.width * self.height

    def fits(self, frame_width: int, frame_height: int) -> bool:
        """Return True if the region lies entirely inside the frame."""
        return (
            self.x >= 0
            and self.y >= 0
            and self.width > 0
            and self.height > 0
            and self.x2 <= frame_width
            and self.y2 <= frame_height
        )

    def to_dict(self) -> dict:
        """Return a plain dict suitable for JSON serialization."""
        return {"x": self.x, "y": self.y, "width": self.width, "height": self.height}


class EmotionLabel(Enum):
    """Closed set of emotion categories, in FER-2013 class index order."""

    ANGRY = "Angry"
    DISGUST = "Disgust"
    FEAR = "Fear"
    HAPPY = "Happy"
    SAD = "Sad"
    SURPRISE = "Surprise"
    NEUTRAL = "Neutral"

    @classmethod
    def from_index(cls, index: int) -> "EmotionLabel":
        """Map a model output index to its label.

        Raises:
            ValueError: If index is outside the label set.
        """
        members = list(cls)
        if not 0 <= index < len(members):
            raise ValueError(
                f"Emotion index {index} out of range [0, {len(members) - 1}]."
            )
        return members[index]

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True, slots=True)
class DetectionResult:
    """One face and its emotion label. The unit returned by the pipeline."""

    region: FaceRegion
    label: EmotionLabel

    def to_dict(self) -> dict:
        """Return a plain dict suitable for JSON serialization."""
        return {**self.region.to_dict(), "emotion": self.label.value}


class PipelineState(Enum):
    """Lifecycle state of a DetectionPipeline."""

    UNINITIALIZED = "uninitialized"
    READY = "ready"
    RUNNING = "running"
    FAILED = "failed"
