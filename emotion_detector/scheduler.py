"""
Scheduler — single-shot and continuous execution of a DetectionPipeline.

Responsibility:
    - Single-shot: run the pipeline once and surface its result or error.
    - Continuous: run iterations back to back with a fixed pause after
      each one, contain per-iteration PipelineErrors, emit a heartbeat,
      and stop cooperatively when cancelled.

Cancellation:
    stop() sets a threading.Event. The event is checked before every
    iteration and the inter-iteration pause is Event.wait(), so no new
    iteration starts once cancellation is observed. An iteration that is
    already running is allowed to finish.

Non-goals:
    - No concurrent iterations.
    - No mid-iteration cancellation or timeouts on detect/classify.
"""

import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, List, Optional

from emotion_detector.config import SchedulerConfig
from emotion_detector.detection import DetectionResult
from emotion_detector.errors import PipelineError
from emotion_detector.pipeline import DetectionPipeline

logger = logging.getLogger(__name__)

ResultCallback = Callable[[int, List[DetectionResult]], None]


@dataclass(frozen=True)
class RunStats:
    """Summary of a continuous run."""

    iterations: int
    failures: int
    elapsed_seconds: float


class Scheduler:
    """Drives a DetectionPipeline once or on a fixed polling interval.

    Usage:
        scheduler = Scheduler(pipeline, config.scheduler, on_result=reporter.report)
        scheduler.run_once()          # single-shot, raises PipelineError
        scheduler.run_forever()       # until scheduler.stop()
    """

    def __init__(
        self,
        pipeline: DetectionPipeline,
        config: Optional[SchedulerConfig] = None,
        on_result: Optional[ResultCallback] = None,
        stop_event: Optional[threading.Event] = None,
    ) -> None:
        self._pipeline = pipeline
        self._config = config or SchedulerConfig()
        self._on_result = on_result
        self._stop_event = stop_event or threading.Event()

    def stop(self) -> None:
        """Request cancellation. Safe to call from a signal handler."""
        self._stop_event.set()

    @property
    def stopped(self) -> bool:
        """True once cancellation has been requested."""
        return self._stop_event.is_set()

    def run_once(self) -> List[DetectionResult]:
        """Run the pipeline exactly once.

        Raises:
            PipelineError: If the iteration fails.
        """
        results = self._pipeline.run()
        self._report(1, results)
        return results

    def run_forever(self, max_iterations: Optional[int] = None) -> RunStats:
        """Run iterations until stop() is called.

        Args:
            max_iterations: Optional upper bound on iterations. None runs
                            until cancelled.

        Returns:
            Counts of iterations run and failed.
        """
        interval = self._config.interval_seconds
        heartbeat_every = self._config.heartbeat_every
        started = time.monotonic()
        iterations = 0
        failures = 0

        logger.info("Starting continuous detection (interval=%.1fs).", interval)

        while not self._stop_event.is_set():
            iterations += 1
            try:
                results = self._pipeline.run()
            except PipelineError as e:
                failures += 1
                logger.error("Iteration %d failed: %s", iterations, e)
            else:
                self._report(iterations, results)

            if heartbeat_every and iterations % heartbeat_every == 0:
                logger.info(
                    "Heartbeat: %d iteration(s), %d failed, uptime %.0fs.",
                    iterations, failures, time.monotonic() - started,
                )

            if max_iterations is not None and iterations >= max_iterations:
                break

            # Pause measured from the end of this iteration; returns early on stop()
            if self._stop_event.wait(interval):
                break

        elapsed = time.monotonic() - started
        logger.info(
            "Continuous detection stopped after %d iteration(s) (%d failed).",
            iterations, failures,
        )
        return RunStats(iterations=iterations, failures=failures, elapsed_seconds=elapsed)

    def _report(self, iteration: int, results: List[DetectionResult]) -> None:
        if self._on_result is not None:
            self._on_result(iteration, results)
