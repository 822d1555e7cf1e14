"""
Configuration management for the emotion detection system.

Provides a layered configuration system with the following precedence
(highest to lowest):

    CLI arguments > Environment variables > YAML config file > Defaults

Design constraints:
    - The system MUST run with zero configuration (safe defaults only).
    - Missing or invalid values fail early and loudly.
    - No capture, detection, or model loading logic belongs here.

Non-goals:
    - No dynamic reloading.
    - No database-backed or remote configuration.
"""

import logging
import os
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Tuple

import yaml

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Project root resolution
# ---------------------------------------------------------------------------
# Resolved relative to this file's location: emotion_detector/config.py → repo root
_PROJECT_ROOT = Path(__file__).resolve().parent.parent


def resolve_path(path: str) -> Path:
    """Resolve a configured path, treating relative paths as project-relative."""
    resolved = Path(path).expanduser()
    if not resolved.is_absolute():
        resolved = _PROJECT_ROOT / resolved
    return resolved


# ---------------------------------------------------------------------------
# Configuration dataclasses
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class CaptureConfig:
    """Frame acquisition configuration.

    Attributes:
        backend: 'libcamera' (Pi camera via libcamera-still), 'opencv'
                 (cv2.VideoCapture device) or 'file' (copy of a fixed image).
        source: Device index for 'opencv', image path for 'file'.
                Ignored by 'libcamera'.
        command: Executable invoked by the 'libcamera' backend.
        warmup_ms: Camera warm-up before the still is taken (libcamera -t).
        timeout_seconds: Bounded wait for a capture, on top of the warm-up.
        width: Requested still width in pixels.
        height: Requested still height in pixels.
        work_dir: Directory for transient capture files. None means the
                  system temp directory.
        file_prefix: Filename prefix for transient capture files.
    """

    backend: str = "libcamera"
    source: str = "0"
    command: str = "libcamera-still"
    warmup_ms: int = 2000
    timeout_seconds: float = 2.0
    width: int = 640
    height: int = 480
    work_dir: Optional[str] = None
    file_prefix: str = "capture_"

    @property
    def resolved_work_dir(self) -> Path:
        """Directory where transient capture files are written."""
        if self.work_dir is None:
            return Path(tempfile.gettempdir())
        return resolve_path(self.work_dir)


@dataclass(frozen=True)
class DetectionConfig:
    """Face detector configuration.

    Attributes:
        cascade_path: Path to the Haar cascade XML (relative to project root).
        scale_factor: Image pyramid step between detection scales. Higher
                      values give fewer, coarser detections.
        min_neighbors: Neighbouring positive windows needed to confirm a face.
        min_size: Smallest face (width, height) to report. None disables.
    """

    cascade_path: str = "models/haarcascade_frontalface_default.xml"
    scale_factor: float = 1.1
    min_neighbors: int = 3
    min_size: Optional[Tuple[int, int]] = None


@dataclass(frozen=True)
class ClassifierConfig:
    """Emotion classifier configuration.

    Attributes:
        backend: 'placeholder' (random label, non-deterministic) or 'dnn'
                 (ONNX model run through OpenCV DNN).
        input_size: Normalized (width, height) of each face crop.
        model_path: ONNX model path, required by the 'dnn' backend.
        seed: Optional RNG seed for the placeholder backend.
    """

    backend: str = "placeholder"
    input_size: Tuple[int, int] = (48, 48)
    model_path: Optional[str] = None
    seed: Optional[int] = None


@dataclass(frozen=True)
class SchedulerConfig:
    """Continuous-mode loop configuration.

    Attributes:
        interval_seconds: Pause after an iteration completes before the
                          next one starts.
        heartbeat_every: Log a heartbeat every N iterations (0 disables).
    """

    interval_seconds: float = 3.0
    heartbeat_every: int = 10


@dataclass(frozen=True)
class OutputConfig:
    """Result reporting configuration.

    Attributes:
        format: 'text' for human-readable lines, 'json' for one JSON
                object per iteration.
    """

    format: str = "text"


@dataclass(frozen=True)
class AppConfig:
    """Top-level application configuration.

    Aggregates all sub-configurations into a single, frozen object.
    """

    capture: CaptureConfig = field(default_factory=CaptureConfig)
    detection: DetectionConfig = field(default_factory=DetectionConfig)
    classifier: ClassifierConfig = field(default_factory=ClassifierConfig)
    scheduler: SchedulerConfig = field(default_factory=SchedulerConfig)
    output: OutputConfig = field(default_factory=OutputConfig)


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------

_VALID_CAPTURE_BACKENDS = {"libcamera", "opencv", "file"}
_VALID_CLASSIFIER_BACKENDS = {"placeholder", "dnn"}
_VALID_OUTPUT_FORMATS = {"text", "json"}


def _validate(config: AppConfig) -> None:
    """Validate configuration values. Raises ValueError on invalid state."""

    if config.capture.backend not in _VALID_CAPTURE_BACKENDS:
        raise ValueError(
            f"Invalid capture.backend: '{config.capture.backend}'. "
            f"Must be one of {_VALID_CAPTURE_BACKENDS}."
        )

    if config.capture.timeout_seconds <= 0:
        raise ValueError(
            f"capture.timeout_seconds must be positive, "
            f"got {config.capture.timeout_seconds}."
        )

    if config.capture.warmup_ms < 0:
        raise ValueError(
            f"capture.warmup_ms must be non-negative, got {config.capture.warmup_ms}."
        )

    if config.capture.width <= 0 or config.capture.height <= 0:
        raise ValueError(
            f"capture.width and capture.height must be positive, "
            f"got {config.capture.width}x{config.capture.height}."
        )

    if config.capture.backend == "opencv" and not str(config.capture.source).strip().isdigit():
        raise ValueError(
            f"capture.source must be a device index for the 'opencv' backend, "
            f"got '{config.capture.source}'."
        )

    if config.detection.scale_factor <= 1.0:
        raise ValueError(
            f"detection.scale_factor must be greater than 1.0, "
            f"got {config.detection.scale_factor}."
        )

    if config.detection.min_neighbors < 0:
        raise ValueError(
            f"detection.min_neighbors must be non-negative, "
            f"got {config.detection.min_neighbors}."
        )

    min_size = config.detection.min_size
    if min_size is not None and (len(min_size) != 2 or any(d <= 0 for d in min_size)):
        raise ValueError(
            f"detection.min_size must be a positive (width, height) tuple or None, "
            f"got {min_size}."
        )

    if config.classifier.backend not in _VALID_CLASSIFIER_BACKENDS:
        raise ValueError(
            f"Invalid classifier.backend: '{config.classifier.backend}'. "
            f"Must be one of {_VALID_CLASSIFIER_BACKENDS}."
        )

    if len(config.classifier.input_size) != 2:
        raise ValueError(
            f"classifier.input_size must be a (width, height) tuple, "
            f"got {config.classifier.input_size}."
        )

    if any(d <= 0 for d in config.classifier.input_size):
        raise ValueError(
            f"classifier.input_size dimensions must be positive, "
            f"got {config.classifier.input_size}."
        )

    if config.classifier.backend == "dnn" and not config.classifier.model_path:
        raise ValueError(
            "classifier.model_path is required when classifier.backend is 'dnn'."
        )

    if config.scheduler.interval_seconds < 0:
        raise ValueError(
            f"scheduler.interval_seconds must be non-negative, "
            f"got {config.scheduler.interval_seconds}."
        )

    if config.scheduler.heartbeat_every < 0:
        raise ValueError(
            f"scheduler.heartbeat_every must be non-negative, "
            f"got {config.scheduler.heartbeat_every}."
        )

    if config.output.format not in _VALID_OUTPUT_FORMATS:
        raise ValueError(
            f"Invalid output.format: '{config.output.format}'. "
            f"Must be one of {_VALID_OUTPUT_FORMATS}."
        )


# ---------------------------------------------------------------------------
# YAML loading
# ---------------------------------------------------------------------------

def _parse_tuple(value, expected_len: int, cast_type=float):
    """Convert a list from YAML into a tuple of the expected type and length."""
    if isinstance(value, str):
        value = [v for v in value.replace("x", ",").split(",") if v.strip()]
    if isinstance(value, (list, tuple)):
        if len(value) != expected_len:
            raise ValueError(
                f"Expected {expected_len} values, got {len(value)}: {value}"
            )
        return tuple(cast_type(v) for v in value)
    return value


def _optional(value, cast_type):
    """Cast a YAML/env value, mapping null-ish values to None."""
    if value is None or (isinstance(value, str) and value.strip().lower() in ("", "none", "null")):
        return None
    return cast_type(value)


def _build_capture_config(raw: dict) -> CaptureConfig:
    """Build CaptureConfig from a raw YAML dict."""
    kwargs = {}
    if "backend" in raw:
        kwargs["backend"] = str(raw["backend"]).lower()
    if "source" in raw:
        kwargs["source"] = str(raw["source"])
    if "command" in raw:
        kwargs["command"] = str(raw["command"])
    if "warmup_ms" in raw:
        kwargs["warmup_ms"] = int(raw["warmup_ms"])
    if "timeout_seconds" in raw:
        kwargs["timeout_seconds"] = float(raw["timeout_seconds"])
    if "width" in raw:
        kwargs["width"] = int(raw["width"])
    if "height" in raw:
        kwargs["height"] = int(raw["height"])
    if "work_dir" in raw:
        kwargs["work_dir"] = _optional(raw["work_dir"], str)
    if "file_prefix" in raw:
        kwargs["file_prefix"] = str(raw["file_prefix"])
    return CaptureConfig(**kwargs)


def _build_detection_config(raw: dict) -> DetectionConfig:
    """Build DetectionConfig from a raw YAML dict."""
    kwargs = {}
    if "cascade_path" in raw:
        kwargs["cascade_path"] = str(raw["cascade_path"])
    if "scale_factor" in raw:
        kwargs["scale_factor"] = float(raw["scale_factor"])
    if "min_neighbors" in raw:
        kwargs["min_neighbors"] = int(raw["min_neighbors"])
    if "min_size" in raw:
        val = raw["min_size"]
        kwargs["min_size"] = None if _optional(val, str) is None else _parse_tuple(val, 2, int)
    return DetectionConfig(**kwargs)


def _build_classifier_config(raw: dict) -> ClassifierConfig:
    """Build ClassifierConfig from a raw YAML dict."""
    kwargs = {}
    if "backend" in raw:
        kwargs["backend"] = str(raw["backend"]).lower()
    if "input_size" in raw:
        kwargs["input_size"] = _parse_tuple(raw["input_size"], 2, int)
    if "model_path" in raw:
        kwargs["model_path"] = _optional(raw["model_path"], str)
    if "seed" in raw:
        kwargs["seed"] = _optional(raw["seed"], int)
    return ClassifierConfig(**kwargs)


def _build_scheduler_config(raw: dict) -> SchedulerConfig:
    """Build SchedulerConfig from a raw YAML dict."""
    kwargs = {}
    if "interval_seconds" in raw:
        kwargs["interval_seconds"] = float(raw["interval_seconds"])
    if "heartbeat_every" in raw:
        kwargs["heartbeat_every"] = int(raw["heartbeat_every"])
    return SchedulerConfig(**kwargs)


def _build_output_config(raw: dict) -> OutputConfig:
    """Build OutputConfig from a raw YAML dict."""
    kwargs = {}
    if "format" in raw:
        kwargs["format"] = str(raw["format"]).lower()
    return OutputConfig(**kwargs)


# ---------------------------------------------------------------------------
# Environment variable overrides
# ---------------------------------------------------------------------------

_ENV_PREFIX = "EMOTION_DETECT_"


def _apply_env_overrides(raw: dict) -> dict:
    """Apply environment variable overrides to the raw config dict.

    Environment variables follow the pattern:
        EMOTION_DETECT_CAPTURE_BACKEND=opencv
        EMOTION_DETECT_SCHEDULER_INTERVAL_SECONDS=2.5
    """
    env_map = {
        f"{_ENV_PREFIX}CAPTURE_BACKEND": ("capture", "backend"),
        f"{_ENV_PREFIX}CAPTURE_SOURCE": ("capture", "source"),
        f"{_ENV_PREFIX}CAPTURE_TIMEOUT_SECONDS": ("capture", "timeout_seconds"),
        f"{_ENV_PREFIX}CAPTURE_WORK_DIR": ("capture", "work_dir"),
        f"{_ENV_PREFIX}DETECTION_CASCADE_PATH": ("detection", "cascade_path"),
        f"{_ENV_PREFIX}DETECTION_SCALE_FACTOR": ("detection", "scale_factor"),
        f"{_ENV_PREFIX}DETECTION_MIN_NEIGHBORS": ("detection", "min_neighbors"),
        f"{_ENV_PREFIX}CLASSIFIER_BACKEND": ("classifier", "backend"),
        f"{_ENV_PREFIX}CLASSIFIER_MODEL_PATH": ("classifier", "model_path"),
        f"{_ENV_PREFIX}SCHEDULER_INTERVAL_SECONDS": ("scheduler", "interval_seconds"),
        f"{_ENV_PREFIX}OUTPUT_FORMAT": ("output", "format"),
    }

    for env_var, (section, key) in env_map.items():
        value = os.environ.get(env_var)
        if value is not None:
            raw.setdefault(section, {})[key] = value
            logger.debug("Config override from env: %s=%s", env_var, value)

    return raw


# ---------------------------------------------------------------------------
# Public loader
# ---------------------------------------------------------------------------

def load_config(config_path: Optional[str] = None) -> AppConfig:
    """Load and validate application configuration.

    Precedence (highest → lowest):
        Environment variables > YAML file > Hard-coded defaults

    Args:
        config_path: Path to a YAML configuration file. If None,
                     the system runs entirely on defaults.

    Returns:
        A validated, frozen AppConfig instance.

    Raises:
        FileNotFoundError: If config_path is provided but does not exist.
        ValueError: If any configuration value is invalid.
        yaml.YAMLError: If the YAML file is malformed.
    """
    raw: dict = {}

    # --- Layer 1: YAML file ---
    if config_path is not None:
        resolved = resolve_path(config_path)

        if not resolved.is_file():
            raise FileNotFoundError(
                f"Configuration file not found: {resolved}. "
                f"Provide a valid path or omit to use defaults."
            )

        logger.info("Loading config from: %s", resolved)
        with open(resolved, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}

    # --- Layer 2: Environment variable overrides ---
    raw = _apply_env_overrides(raw)

    # --- Build typed configs ---
    config = AppConfig(
        capture=_build_capture_config(raw.get("capture") or {}),
        detection=_build_detection_config(raw.get("detection") or {}),
        classifier=_build_classifier_config(raw.get("classifier") or {}),
        scheduler=_build_scheduler_config(raw.get("scheduler") or {}),
        output=_build_output_config(raw.get("output") or {}),
    )

    # --- Validate ---
    _validate(config)

    logger.debug("Configuration loaded: %s", config)
    return config
