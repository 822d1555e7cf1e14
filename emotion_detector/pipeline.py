"""
DetectionPipeline — capture → decode → detect → classify for one frame.

Public contract:
    DetectionPipeline.run() -> list[DetectionResult]

Guarantees, on success and on every failure branch:
    - Every intermediate raster is released exactly once (RasterScope).
    - The transient capture file is deleted before run() returns or raises.
    - Failures surface as PipelineError subclasses; CaptureError from the
      frame source propagates unchanged.

Non-goals:
    - No scheduling, retry, or looping (see scheduler).
    - No console output (see reporter).
"""

import logging
from pathlib import Path
from typing import List, Optional

import numpy as np

from emotion_detector.buffers import BufferTracker, RasterScope
from emotion_detector.classifier import EmotionClassifier, create_classifier
from emotion_detector.config import AppConfig
from emotion_detector.detection import (
    DetectionResult,
    EmotionLabel,
    FaceRegion,
    Frame,
    PipelineState,
)
from emotion_detector.detector import FaceDetector
from emotion_detector.errors import (
    CaptureError,
    ClassificationError,
    DecodeError,
    DetectionError,
    PipelineError,
)
from emotion_detector.frame_source import FrameSource, create_frame_source
from emotion_detector.preprocessor import (
    crop_region,
    decode_image,
    normalize_face,
    to_grayscale,
)

logger = logging.getLogger(__name__)


class DetectionPipeline:
    """Runs one capture/detect/classify cycle per run() call.

    The detector and classifier are loaded once and reused read-only
    across runs. Rasters never outlive a single run.

    Usage:
        pipeline = DetectionPipeline.from_config(config)
        results = pipeline.run()
    """

    def __init__(
        self,
        frame_source: FrameSource,
        detector: FaceDetector,
        classifier: EmotionClassifier,
        tracker: Optional[BufferTracker] = None,
    ) -> None:
        # The detector arrives with its model loaded, so construction is the
        # UNINITIALIZED -> READY transition; a failed load never yields an instance.
        self._source = frame_source
        self._detector = detector
        self._classifier = classifier
        self._tracker = tracker
        self._state = PipelineState.READY

    @classmethod
    def from_config(
        cls,
        config: AppConfig,
        tracker: Optional[BufferTracker] = None,
    ) -> "DetectionPipeline":
        """Build a pipeline and load its models.

        Raises:
            ModelLoadError: If the detector or classifier model cannot be loaded.
        """
        detector = FaceDetector(config.detection)
        classifier = create_classifier(config.classifier)
        frame_source = create_frame_source(config.capture)
        return cls(frame_source, detector, classifier, tracker=tracker)

    @property
    def state(self) -> PipelineState:
        """Current lifecycle state."""
        return self._state

    def run(self) -> List[DetectionResult]:
        """Capture one frame and return a result per detected face.

        Returns:
            DetectionResults in detector emission order. Empty when no
            faces are found.

        Raises:
            CaptureError: The frame could not be acquired.
            DecodeError: The captured file is not a readable image.
            DetectionError: The face detector failed.
            ClassificationError: The classifier failed on a face.
        """
        self._state = PipelineState.RUNNING
        try:
            image_path = self._capture()
            try:
                results = self._process(image_path)
            finally:
                self._discard(image_path)
        except BaseException:
            self._state = PipelineState.FAILED
            raise

        self._state = PipelineState.READY
        logger.info("Pipeline run complete: %d face(s).", len(results))
        return results

    def _capture(self) -> Path:
        try:
            return Path(self._source.capture())
        except PipelineError:
            raise
        except Exception as e:
            raise CaptureError(f"Frame source failed: {e}") from e

    def _process(self, image_path: Path) -> List[DetectionResult]:
        with RasterScope(self._tracker) as scope:
            frame = Frame.from_array(scope.hold("frame", decode_image(image_path)))

            try:
                gray = scope.hold("gray", to_grayscale(frame.pixels))
            except (ValueError, TypeError) as e:
                raise DecodeError(f"Cannot convert {image_path} to grayscale: {e}") from e

            try:
                regions = self._detector.detect(gray)
            except PipelineError:
                raise
            except Exception as e:
                raise DetectionError(f"Face detection failed: {e}") from e

            logger.debug(
                "Detected %d face(s) in %dx%d frame.", len(regions), frame.width, frame.height
            )

            return [
                self._classify_region(gray, region, index)
                for index, region in enumerate(regions)
            ]

    def _classify_region(
        self,
        gray: np.ndarray,
        region: FaceRegion,
        index: int,
    ) -> DetectionResult:
        h, w = gray.shape[:2]
        if not region.fits(w, h):
            raise DetectionError(
                f"Detector returned region {index} {region} outside the {w}x{h} frame."
            )

        with RasterScope(self._tracker) as scope:
            try:
                crop = scope.hold(f"face[{index}]", crop_region(gray, region))
                face = scope.hold(
                    f"face[{index}].normalized",
                    normalize_face(crop, self._classifier.input_size),
                )
                label = self._classifier.classify(face)
            except PipelineError:
                raise
            except Exception as e:
                raise ClassificationError(
                    f"Failed to classify face {index} at {region}: {e}"
                ) from e

        if not isinstance(label, EmotionLabel):
            raise ClassificationError(
                f"Classifier returned {label!r} for face {index}, expected an EmotionLabel."
            )

        return DetectionResult(region=region, label=label)

    @staticmethod
    def _discard(image_path: Path) -> None:
        """Delete the transient capture file."""
        try:
            image_path.unlink(missing_ok=True)
            logger.debug("Removed capture artifact: %s", image_path)
        except OSError as e:
            logger.error("Failed to remove capture artifact %s: %s", image_path, e)
