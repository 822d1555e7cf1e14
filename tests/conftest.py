"""
Pytest configuration and shared fixtures.
"""

from collections import Counter
from pathlib import Path
from typing import List, Optional, Sequence

import cv2
import numpy as np
import pytest

from emotion_detector.classifier import EmotionClassifier
from emotion_detector.config import CaptureConfig
from emotion_detector.detection import EmotionLabel, FaceRegion
from emotion_detector.errors import CaptureError
from emotion_detector.frame_source import FileFrameSource, FrameSource


class CountingTracker:
    """BufferTracker that counts acquire/release events per raster name."""

    def __init__(self) -> None:
        self.acquired = Counter()
        self.released = Counter()
        self.order: List[str] = []

    def on_acquire(self, name: str, raster: np.ndarray) -> None:
        self.acquired[name] += 1
        self.order.append(f"+{name}")

    def on_release(self, name: str) -> None:
        self.released[name] += 1
        self.order.append(f"-{name}")

    def assert_released_exactly_once(self) -> None:
        assert self.acquired == self.released
        assert all(count == 1 for count in self.acquired.values())


class StubDetector:
    """Detector returning preset regions, or raising a preset error."""

    def __init__(self, regions: Sequence[FaceRegion] = (), error: Optional[Exception] = None):
        self.regions = list(regions)
        self.error = error
        self.calls = 0

    def detect(self, gray: np.ndarray) -> List[FaceRegion]:
        self.calls += 1
        assert gray.ndim == 2
        if self.error is not None:
            raise self.error
        return list(self.regions)


class MeanIntensityClassifier(EmotionClassifier):
    """Deterministic stub: label chosen from the crop's mean intensity."""

    def __init__(self, fail_on_call: Optional[int] = None) -> None:
        super().__init__((48, 48))
        self.calls = 0
        self.fail_on_call = fail_on_call

    def _predict(self, face: np.ndarray) -> EmotionLabel:
        self.calls += 1
        if self.fail_on_call is not None and self.calls == self.fail_on_call:
            raise RuntimeError("classifier exploded")
        return EmotionLabel.from_index(int(face.mean()) % len(EmotionLabel))


class FailingFrameSource(FrameSource):
    """Frame source whose device always fails."""

    def _capture_to(self, path: Path) -> None:
        path.write_bytes(b"partial")
        raise CaptureError("camera exited with status 1")


class GarbageFrameSource(FrameSource):
    """Frame source producing a file that is not an image."""

    def _capture_to(self, path: Path) -> None:
        path.write_bytes(b"definitely not a jpeg")


@pytest.fixture
def sample_image(tmp_path) -> Path:
    """A 120x160 lossless BGR image with a horizontal gradient."""
    frame = np.zeros((120, 160, 3), dtype=np.uint8)
    frame[:, :, 0] = np.linspace(0, 255, 160, dtype=np.uint8)
    frame[:, :, 1] = 128
    frame[40:80, 60:100, 2] = 255
    path = tmp_path / "sample.png"
    assert cv2.imwrite(str(path), frame)
    return path


@pytest.fixture
def work_dir(tmp_path) -> Path:
    path = tmp_path / "work"
    path.mkdir()
    return path


@pytest.fixture
def capture_config(work_dir) -> CaptureConfig:
    return CaptureConfig(backend="file", work_dir=str(work_dir))


@pytest.fixture
def file_source(sample_image, work_dir) -> FileFrameSource:
    config = CaptureConfig(backend="file", source=str(sample_image), work_dir=str(work_dir))
    return FileFrameSource(config)


@pytest.fixture
def tracker() -> CountingTracker:
    return CountingTracker()
