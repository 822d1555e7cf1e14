"""
Scoped ownership of intermediate rasters.

Every raster the pipeline creates during one run (decoded frame,
grayscale copy, face crops, normalized crops) is registered with a
RasterScope. Leaving the scope releases each registered raster exactly
once, in reverse acquisition order, on success and on every error path.

Releasing drops the scope's reference so the underlying buffer can be
reclaimed immediately rather than whenever the caller's frame dies. An
optional BufferTracker observes acquire/release events; tests use it to
verify lifecycle discipline.
"""

import logging
from typing import List, Optional, Protocol, Tuple

import numpy as np

logger = logging.getLogger(__name__)


class BufferTracker(Protocol):
    """Observer notified of every raster acquire and release."""

    def on_acquire(self, name: str, raster: np.ndarray) -> None:
        ...

    def on_release(self, name: str) -> None:
        ...


class RasterScope:
    """Context manager owning a set of rasters for a bounded lifetime.

    Usage:
        with RasterScope(tracker) as scope:
            gray = scope.hold("gray", to_grayscale(frame))
            ...
        # every held raster has been released here
    """

    def __init__(self, tracker: Optional[BufferTracker] = None) -> None:
        self._tracker = tracker
        self._held: List[Tuple[str, np.ndarray]] = []
        self._closed = False

    def hold(self, name: str, raster: np.ndarray) -> np.ndarray:
        """Register raster with this scope and return it unchanged."""
        if self._closed:
            raise RuntimeError(f"Cannot hold '{name}': scope already released.")
        self._held.append((name, raster))
        if self._tracker is not None:
            self._tracker.on_acquire(name, raster)
        return raster

    @property
    def held(self) -> int:
        """Number of rasters currently owned by the scope."""
        return len(self._held)

    def release(self) -> None:
        """Release every held raster once. Further calls are no-ops."""
        if self._closed:
            return
        self._closed = True

        while self._held:
            name, _ = self._held.pop()
            if self._tracker is not None:
                self._tracker.on_release(name)
            logger.debug("Released raster: %s", name)

    def __enter__(self) -> "RasterScope":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.release()
