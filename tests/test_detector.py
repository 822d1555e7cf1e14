"""
Tests for the detector and model loading modules.
"""

from pathlib import Path

import cv2
import numpy as np
import pytest

from emotion_detector import detector as detector_module
from emotion_detector.config import DetectionConfig
from emotion_detector.detection import FaceRegion
from emotion_detector.detector import FaceDetector
from emotion_detector.errors import ModelLoadError
from emotion_detector.model_loader import CASCADE_DOWNLOAD_URL

# OpenCV wheels ship the stock cascades; skip integration tests without them
_CV2_DATA = getattr(cv2, "data", None)
_BUNDLED_CASCADE = (
    Path(_CV2_DATA.haarcascades) / "haarcascade_frontalface_default.xml"
    if _CV2_DATA is not None else None
)
_CASCADE_EXISTS = _BUNDLED_CASCADE is not None and _BUNDLED_CASCADE.is_file()


class FakeCascade:
    """Stands in for cv2.CascadeClassifier; records detectMultiScale calls."""

    def __init__(self, rects):
        self.rects = rects
        self.calls = []

    def detectMultiScale(self, gray, **kwargs):
        self.calls.append(kwargs)
        return self.rects


@pytest.fixture
def fake_cascade(monkeypatch):
    cascade = FakeCascade(np.array([[10, 10, 30, 30], [80, 80, 40, 40]], dtype=np.int32))
    monkeypatch.setattr(detector_module, "load_cascade", lambda config: cascade)
    return cascade


def test_missing_cascade_raises_model_load_error(tmp_path):
    """Test that an absent model file is fatal with remediation guidance."""
    config = DetectionConfig(cascade_path=str(tmp_path / "missing.xml"))

    with pytest.raises(ModelLoadError) as excinfo:
        FaceDetector(config)

    assert CASCADE_DOWNLOAD_URL in str(excinfo.value)


def test_corrupt_cascade_raises_model_load_error(tmp_path):
    """Test that an unparsable model file is fatal."""
    path = tmp_path / "corrupt.xml"
    path.write_text("<opencv_storage><nonsense/></opencv_storage>", encoding="utf-8")

    with pytest.raises(ModelLoadError):
        FaceDetector(DetectionConfig(cascade_path=str(path)))


def test_detect_passes_tunables(fake_cascade):
    """Test that configured sensitivity parameters reach the cascade."""
    detector = FaceDetector(DetectionConfig(scale_factor=1.2, min_neighbors=5, min_size=(24, 24)))

    detector.detect(np.zeros((100, 100), dtype=np.uint8))

    assert fake_cascade.calls == [{"scaleFactor": 1.2, "minNeighbors": 5, "minSize": (24, 24)}]


def test_detect_defaults(fake_cascade):
    """Test documented defaults: scale step 1.1, three neighbours, no min size."""
    FaceDetector().detect(np.zeros((100, 100), dtype=np.uint8))

    assert fake_cascade.calls == [{"scaleFactor": 1.1, "minNeighbors": 3}]


def test_detect_regions_fit_frame(fake_cascade):
    """Test that every returned region lies fully inside the frame."""
    regions = FaceDetector().detect(np.zeros((100, 100), dtype=np.uint8))

    assert regions == [
        FaceRegion(x=10, y=10, width=30, height=30),
        FaceRegion(x=80, y=80, width=20, height=20),
    ]
    assert all(r.fits(100, 100) for r in regions)


def test_detector_input_validation(fake_cascade):
    """Test strict input validation."""
    detector = FaceDetector()

    # 1. Wrong type
    with pytest.raises(TypeError):
        detector.detect("not a frame")

    # 2. Empty raster
    with pytest.raises(ValueError):
        detector.detect(np.array([], dtype=np.uint8))

    # 3. Color raster
    with pytest.raises(ValueError, match="2-dimensional"):
        detector.detect(np.zeros((100, 100, 3), dtype=np.uint8))

    # 4. Wrong dtype
    with pytest.raises(ValueError, match="uint8"):
        detector.detect(np.zeros((100, 100), dtype=np.float32))


@pytest.mark.skipif(not _CASCADE_EXISTS, reason="Bundled Haar cascade not found")
def test_detector_integration_blank_frame():
    """Smoke test: a blank frame has no faces."""
    detector = FaceDetector(DetectionConfig(cascade_path=str(_BUNDLED_CASCADE)))

    assert detector.detect(np.zeros((240, 320), dtype=np.uint8)) == []


@pytest.mark.skipif(not _CASCADE_EXISTS, reason="Bundled Haar cascade not found")
def test_detector_integration_deterministic_and_in_bounds():
    """Test repeat detection on noise is identical and stays in bounds."""
    detector = FaceDetector(
        DetectionConfig(cascade_path=str(_BUNDLED_CASCADE), min_neighbors=0)
    )
    rng = np.random.default_rng(42)
    gray = rng.integers(0, 256, size=(180, 240), dtype=np.uint8)

    first = detector.detect(gray)
    second = detector.detect(gray)

    assert first == second
    assert all(r.fits(240, 180) for r in first)
