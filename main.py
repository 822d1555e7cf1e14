"""
Emotion Detector CLI Entrypoint.

Responsibility:
    Parse command-line arguments, configure the application, load the
    models, wire the pipeline to the scheduler, and map outcomes to
    process exit codes.

Usage:
    python main.py                          # Single-shot
    python main.py --realtime               # Continuous until Ctrl+C
    python main.py --config my_config.yaml --realtime --interval 2

Exit codes:
    0  success, or continuous mode stopped by SIGINT/SIGTERM
    1  configuration error, missing model, or failed single-shot run

This module is the executable entry point. It should not be imported
by other modules.
"""

import argparse
import logging
import signal
import sys
from typing import List, Optional

# Configure logging before importing local modules
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger("main")

from emotion_detector.config import load_config
from emotion_detector.errors import ModelLoadError, PipelineError
from emotion_detector.pipeline import DetectionPipeline
from emotion_detector.reporter import ResultReporter
from emotion_detector.scheduler import Scheduler

_STOP_SIGNALS = (signal.SIGINT, signal.SIGTERM)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Emotion Detector — camera face detection with emotion labels",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )

    parser.add_argument(
        "--realtime",
        action="store_true",
        help="Run continuously on a fixed interval until interrupted. "
             "Without this flag a single detection is performed.",
    )
    parser.add_argument(
        "--config",
        type=str,
        help="Path to YAML configuration file.",
    )
    parser.add_argument(
        "--interval",
        type=float,
        help="Seconds to wait between iterations in realtime mode. Overrides config.",
    )

    return parser.parse_args(argv)


def _install_stop_handlers(scheduler: Scheduler) -> dict:
    """Route SIGINT/SIGTERM to scheduler.stop(). Returns previous handlers."""

    def _handle(signum, _frame):
        logger.info("Received %s, shutting down gracefully...", signal.Signals(signum).name)
        scheduler.stop()

    previous = {}
    for sig in _STOP_SIGNALS:
        previous[sig] = signal.signal(sig, _handle)
    return previous


def _restore_handlers(previous: dict) -> None:
    for sig, handler in previous.items():
        signal.signal(sig, handler)


def main(argv: Optional[List[str]] = None) -> int:
    """Run detection once or continuously and return the exit code."""
    args = parse_args(argv)

    # 1. Load Configuration (CLI args > ENV > YAML > Defaults)
    try:
        config = load_config(args.config)

        if args.interval is not None:
            if args.interval < 0:
                raise ValueError(f"--interval must be non-negative, got {args.interval}.")
            # We must use object.__setattr__ because the dataclass is frozen
            object.__setattr__(config.scheduler, "interval_seconds", args.interval)

        logger.info("Configuration active for this run.")

    except Exception as e:
        logger.error("Configuration error: %s", e)
        return 1

    # 2. Initialize Components
    try:
        pipeline = DetectionPipeline.from_config(config)
    except ModelLoadError as e:
        logger.error("Failed to initialize emotion detector:\n%s", e)
        return 1
    except (ValueError, RuntimeError) as e:
        logger.error("Initialization failed: %s", e)
        return 1
    except Exception as e:
        logger.exception("Unexpected initialization error: %s", e)
        return 1

    reporter = ResultReporter(config.output)
    scheduler = Scheduler(pipeline, config.scheduler, on_result=reporter.report)

    # 3. Single-shot
    if not args.realtime:
        try:
            scheduler.run_once()
        except PipelineError as e:
            logger.error("Detection failed (%s): %s", type(e).__name__, e)
            return 1
        except KeyboardInterrupt:
            logger.info("Interrupted by user.")
            return 0
        logger.info("Detection complete.")
        return 0

    # 4. Continuous
    logger.info("Starting real-time emotion detection. Press Ctrl+C to stop.")
    previous = _install_stop_handlers(scheduler)
    try:
        stats = scheduler.run_forever()
    finally:
        _restore_handlers(previous)

    logger.info(
        "Shut down cleanly. Iterations: %d, failed: %d, uptime: %.0fs.",
        stats.iterations, stats.failures, stats.elapsed_seconds,
    )
    return 0


def cli() -> None:
    """Console-script entry point."""
    sys.exit(main())


if __name__ == "__main__":
    cli()
