"""
Frame acquisition for the emotion detection pipeline.

Responsibility:
    Produce one still image per capture() call as a uniquely named
    transient file. The caller owns the returned file and must delete it
    once consumed. Sources clean up any partial file they created when
    the capture itself fails.

Backends:
    - LibcameraFrameSource: shells out to libcamera-still (Pi CSI camera).
    - OpenCVFrameSource: grabs one frame from a cv2.VideoCapture device.
    - FileFrameSource: copies a fixed image (development without a camera).

Non-goals:
    - No decoding, detection, or classification.
    - No infinite retry on a dead device.
    - No implicit fallback between backends.
"""

import logging
import shutil
import subprocess
import time
import uuid
from abc import ABC, abstractmethod
from pathlib import Path
from typing import List

import cv2

from emotion_detector.config import CaptureConfig, resolve_path
from emotion_detector.errors import CaptureError

logger = logging.getLogger(__name__)

# Frames read and discarded before keeping one (auto-exposure settling)
_OPENCV_READ_ATTEMPTS = 5


class FrameSource(ABC):
    """Acquires one still image per request.

    Subclasses implement _capture_to(path). The base class picks a unique
    transient path and guarantees no partial file survives a failure.
    """

    def __init__(self, config: CaptureConfig) -> None:
        self._config = config
        self._work_dir = config.resolved_work_dir

    def capture(self) -> Path:
        """Capture one image to a new transient file.

        Returns:
            Path to the captured image. The caller must delete it.

        Raises:
            CaptureError: If the device fails, exits non-zero, or times out.
        """
        try:
            self._work_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise CaptureError(f"Capture directory unavailable: {self._work_dir}: {e}") from e

        path = self._next_path()
        try:
            self._capture_to(path)
            if not path.is_file():
                raise CaptureError(f"Capture reported success but wrote no file: {path}")
        except BaseException:
            path.unlink(missing_ok=True)
            raise

        logger.info("Image captured: %s", path)
        return path

    def _next_path(self) -> Path:
        """Return a transient path that no other capture can share."""
        name = f"{self._config.file_prefix}{time.time_ns()}_{uuid.uuid4().hex[:8]}.jpg"
        return self._work_dir / name

    @abstractmethod
    def _capture_to(self, path: Path) -> None:
        """Write one captured image to path, or raise CaptureError."""


class LibcameraFrameSource(FrameSource):
    """Raspberry Pi camera capture through the libcamera-still CLI.

    The subprocess wait is bounded by the camera warm-up plus
    timeout_seconds, so a stuck camera cannot hang the process.
    """

    def build_command(self, path: Path) -> List[str]:
        """Return the argv used to capture a still to path."""
        cfg = self._config
        return [
            cfg.command,
            "-t", str(cfg.warmup_ms),
            "-o", str(path),
            "--width", str(cfg.width),
            "--height", str(cfg.height),
            "--nopreview",
        ]

    def _capture_to(self, path: Path) -> None:
        cmd = self.build_command(path)
        timeout = self._config.warmup_ms / 1000.0 + self._config.timeout_seconds
        logger.debug("Running capture command: %s (timeout=%.1fs)", " ".join(cmd), timeout)

        try:
            proc = subprocess.run(
                cmd,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.PIPE,
                check=False,
                timeout=timeout,
                # Own session: a terminal Ctrl+C must not kill an in-flight capture
                start_new_session=True,
            )
        except subprocess.TimeoutExpired as e:
            raise CaptureError(
                f"Camera capture timed out after {timeout:.1f}s ({cmd[0]})."
            ) from e
        except FileNotFoundError as e:
            raise CaptureError(
                f"Capture command not found: '{cmd[0]}'. "
                f"Install libcamera-apps or set capture.backend."
            ) from e
        except OSError as e:
            raise CaptureError(f"Failed to run capture command '{cmd[0]}': {e}") from e

        if proc.returncode != 0:
            err = (proc.stderr or b"").decode("utf-8", errors="ignore").strip()[-500:]
            raise CaptureError(
                f"Capture command exited with status {proc.returncode}: {err or 'no output'}"
            )


class OpenCVFrameSource(FrameSource):
    """Single-frame capture from a cv2.VideoCapture device index.

    The device is opened per capture and released on every path; no
    handle is held between iterations.
    """

    def __init__(self, config: CaptureConfig) -> None:
        super().__init__(config)
        self._device_index = int(str(config.source).strip())

    def _capture_to(self, path: Path) -> None:
        cap = cv2.VideoCapture(self._device_index)
        try:
            if not cap.isOpened():
                raise CaptureError(
                    f"Failed to open webcam device {self._device_index}. "
                    f"Ensure the device exists and is accessible."
                )

            cap.set(cv2.CAP_PROP_FRAME_WIDTH, self._config.width)
            cap.set(cv2.CAP_PROP_FRAME_HEIGHT, self._config.height)

            frame = None
            for _ in range(_OPENCV_READ_ATTEMPTS):
                ret, candidate = cap.read()
                if ret and candidate is not None:
                    frame = candidate

            if frame is None:
                raise CaptureError(
                    f"Webcam device {self._device_index} produced no frame after "
                    f"{_OPENCV_READ_ATTEMPTS} reads."
                )

            if not cv2.imwrite(str(path), frame):
                raise CaptureError(f"Failed to write captured frame to {path}.")
        finally:
            cap.release()


class FileFrameSource(FrameSource):
    """Serves copies of a fixed image file as if it were a camera."""

    def __init__(self, config: CaptureConfig) -> None:
        super().__init__(config)
        self._image_path = resolve_path(config.source)

    def _capture_to(self, path: Path) -> None:
        if not self._image_path.is_file():
            raise CaptureError(f"Capture source image not found: {self._image_path}")
        try:
            shutil.copyfile(self._image_path, path)
        except OSError as e:
            raise CaptureError(f"Failed to copy {self._image_path}: {e}") from e


_BACKENDS = {
    "libcamera": LibcameraFrameSource,
    "opencv": OpenCVFrameSource,
    "file": FileFrameSource,
}


def create_frame_source(config: CaptureConfig) -> FrameSource:
    """Build the FrameSource selected by capture.backend.

    Raises:
        ValueError: If the backend name is unknown.
    """
    try:
        source_cls = _BACKENDS[config.backend]
    except KeyError:
        raise ValueError(
            f"Unknown capture backend '{config.backend}'. "
            f"Supported: {sorted(_BACKENDS)}."
        ) from None

    logger.info("Frame source initialized: backend=%s", config.backend)
    return source_cls(config)
