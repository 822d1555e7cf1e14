"""
Result reporting for the emotion detection pipeline.

Responsibility:
    Write each iteration's DetectionResults to a text stream (stdout by
    default), either as human-readable lines or as one JSON object per
    iteration for downstream consumption.

Non-goals:
    - No detection logic.
    - No persistence of historical results.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import List, Optional, TextIO

from emotion_detector.config import OutputConfig
from emotion_detector.detection import DetectionResult

logger = logging.getLogger(__name__)

NO_FACES_MESSAGE = "No faces detected"


def format_text(results: List[DetectionResult]) -> str:
    """Render results as one line per face."""
    if not results:
        return NO_FACES_MESSAGE

    lines = ["Detected faces and emotions:"]
    for index, result in enumerate(results, start=1):
        r = result.region
        lines.append(
            f"Face {index}: {result.label.value} at ({r.x}, {r.y}) size {r.width}x{r.height}"
        )
    return "\n".join(lines)


def format_json(iteration: int, results: List[DetectionResult]) -> str:
    """Render one iteration as a single-line JSON object.

    Schema:
        {"iteration": N, "timestamp": ISO-8601, "faces": [
            {"x": ..., "y": ..., "width": ..., "height": ..., "emotion": ...}
        ]}
    """
    payload = {
        "iteration": iteration,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "faces": [r.to_dict() for r in results],
    }
    return json.dumps(payload)


class ResultReporter:
    """Writes iteration results to a stream in the configured format.

    Usage:
        reporter = ResultReporter(config.output)
        scheduler = Scheduler(pipeline, on_result=reporter.report)
    """

    def __init__(self, config: Optional[OutputConfig] = None, stream: Optional[TextIO] = None) -> None:
        self._config = config or OutputConfig()
        self._stream = stream

    def report(self, iteration: int, results: List[DetectionResult]) -> None:
        """Write one iteration's results and flush."""
        if self._config.format == "json":
            text = format_json(iteration, results)
        else:
            text = format_text(results)

        stream = self._stream or sys.stdout
        stream.write(text + "\n")
        stream.flush()
        logger.debug("Reported iteration %d (%d face(s)).", iteration, len(results))
