"""
Emotion Detector — periodic camera face detection and emotion labelling.

Public API:
    - DetectionPipeline: capture → detect → classify for one frame.
    - Scheduler: single-shot or continuous execution of a pipeline.
    - FaceDetector: Haar cascade face detection on grayscale rasters.
    - EmotionClassifier: interface for face-crop classifiers.
    - DetectionResult, FaceRegion, EmotionLabel: result types.
    - load_config: layered configuration loader.

Usage:
    from emotion_detector import DetectionPipeline, Scheduler, load_config

    config = load_config()
    pipeline = DetectionPipeline.from_config(config)
    results = Scheduler(pipeline, config.scheduler).run_once()
"""

from emotion_detector.classifier import EmotionClassifier
from emotion_detector.config import AppConfig, load_config
from emotion_detector.detection import DetectionResult, EmotionLabel, FaceRegion
from emotion_detector.detector import FaceDetector
from emotion_detector.errors import (
    CaptureError,
    ClassificationError,
    DecodeError,
    DetectionError,
    ModelLoadError,
    PipelineError,
)
from emotion_detector.pipeline import DetectionPipeline
from emotion_detector.scheduler import Scheduler

__all__ = [
    "AppConfig",
    "CaptureError",
    "ClassificationError",
    "DecodeError",
    "DetectionError",
    "DetectionPipeline",
    "DetectionResult",
    "EmotionClassifier",
    "EmotionLabel",
    "FaceDetector",
    "FaceRegion",
    "ModelLoadError",
    "PipelineError",
    "Scheduler",
    "load_config",
]
