"""
Error taxonomy for the emotion detection system.

    EmotionDetectorError
    ├── ModelLoadError        fatal, startup only
    └── PipelineError         iteration-local, caught by the Scheduler
        ├── CaptureError
        ├── DecodeError
        ├── DetectionError
        └── ClassificationError

ModelLoadError is deliberately not a PipelineError: the scheduler never
catches it, so a missing or corrupt model aborts the process at startup.
"""


class EmotionDetectorError(Exception):
    """Base class for all errors raised by this package."""


class ModelLoadError(EmotionDetectorError):
    """A detector or classifier model is missing or cannot be parsed."""


class PipelineError(EmotionDetectorError):
    """A single pipeline iteration failed. The process may continue."""


class CaptureError(PipelineError):
    """The camera device failed, exited non-zero, or timed out."""


class DecodeError(PipelineError):
    """The captured image data is missing, malformed, or unreadable."""


class DetectionError(PipelineError):
    """The face detector failed on a decoded frame."""


class ClassificationError(PipelineError):
    """The emotion classifier failed on a face crop."""
