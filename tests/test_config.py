"""
Tests for the configuration module.
"""

import pytest

from emotion_detector.config import (
    AppConfig,
    CaptureConfig,
    ClassifierConfig,
    DetectionConfig,
    SchedulerConfig,
    _validate,
    load_config,
)


def test_load_defaults():
    """Test loading configuration without any file."""
    config = load_config(None)
    assert isinstance(config, AppConfig)
    assert config.capture.backend == "libcamera"
    assert config.capture.timeout_seconds == 2.0
    assert config.detection.scale_factor == 1.1
    assert config.detection.min_neighbors == 3
    assert config.classifier.input_size == (48, 48)
    assert config.classifier.backend == "placeholder"
    assert config.output.format == "text"


def test_validation_failure():
    """Test fail-fast validation."""
    bad_config = AppConfig(detection=DetectionConfig(scale_factor=1.0))
    with pytest.raises(ValueError, match="scale_factor"):
        _validate(bad_config)

    bad_config = AppConfig(detection=DetectionConfig(min_neighbors=-1))
    with pytest.raises(ValueError, match="min_neighbors"):
        _validate(bad_config)

    bad_config = AppConfig(capture=CaptureConfig(backend="invalid"))
    with pytest.raises(ValueError, match="backend"):
        _validate(bad_config)

    bad_config = AppConfig(capture=CaptureConfig(timeout_seconds=0))
    with pytest.raises(ValueError, match="timeout_seconds"):
        _validate(bad_config)

    bad_config = AppConfig(classifier=ClassifierConfig(input_size=(48, 0)))
    with pytest.raises(ValueError, match="input_size"):
        _validate(bad_config)

    bad_config = AppConfig(scheduler=SchedulerConfig(interval_seconds=-1))
    with pytest.raises(ValueError, match="interval_seconds"):
        _validate(bad_config)


def test_dnn_backend_requires_model_path():
    """Test that the DNN classifier cannot be selected without a model."""
    with pytest.raises(ValueError, match="model_path"):
        _validate(AppConfig(classifier=ClassifierConfig(backend="dnn")))


def test_opencv_backend_requires_device_index():
    """Test that the OpenCV capture backend rejects non-numeric sources."""
    with pytest.raises(ValueError, match="device index"):
        _validate(AppConfig(capture=CaptureConfig(backend="opencv", source="cam.jpg")))


def test_env_override(monkeypatch):
    """Test environment variable overrides."""
    monkeypatch.setenv("EMOTION_DETECT_DETECTION_SCALE_FACTOR", "1.3")
    monkeypatch.setenv("EMOTION_DETECT_CAPTURE_BACKEND", "opencv")
    monkeypatch.setenv("EMOTION_DETECT_SCHEDULER_INTERVAL_SECONDS", "2.5")

    config = load_config(None)

    assert config.detection.scale_factor == 1.3
    assert config.capture.backend == "opencv"
    assert config.scheduler.interval_seconds == 2.5


def test_yaml_file(tmp_path):
    """Test loading values from a YAML file."""
    path = tmp_path / "config.yaml"
    path.write_text(
        "capture:\n"
        "  backend: file\n"
        "  source: sample.jpg\n"
        "detection:\n"
        "  min_neighbors: 5\n"
        "  min_size: [30, 30]\n"
        "classifier:\n"
        "  input_size: [64, 64]\n"
        "  seed: 7\n"
        "scheduler:\n"
        "  interval_seconds: 2\n"
        "output:\n"
        "  format: JSON\n",
        encoding="utf-8",
    )

    config = load_config(str(path))

    assert config.capture.backend == "file"
    assert config.detection.min_neighbors == 5
    assert config.detection.min_size == (30, 30)
    assert config.classifier.input_size == (64, 64)
    assert config.classifier.seed == 7
    assert config.scheduler.interval_seconds == 2.0
    assert config.output.format == "json"


def test_missing_config_file(tmp_path):
    """Test that an explicit but missing config file fails loudly."""
    with pytest.raises(FileNotFoundError):
        load_config(str(tmp_path / "nope.yaml"))


def test_work_dir_defaults_to_temp_dir():
    """Test that transient captures go to the system temp dir by default."""
    import tempfile
    from pathlib import Path

    assert CaptureConfig().resolved_work_dir == Path(tempfile.gettempdir())
