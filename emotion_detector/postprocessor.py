"""
Postprocessing for the face detection stage.

Responsibility:
    Turn the raw rectangles returned by detectMultiScale into FaceRegion
    objects that are guaranteed to lie inside the frame. Applies boundary
    clamping and drops degenerate boxes.

Non-goals:
    - No drawing, saving, or display logic.
    - No model loading or inference.
    - No reordering: regions keep the detector's emission order.
"""

from typing import List, Sequence

from emotion_detector.detection import FaceRegion


def postprocess(
    rects: Sequence,
    frame_width: int,
    frame_height: int,
) -> List[FaceRegion]:
    """Convert raw (x, y, w, h) rectangles into clamped FaceRegions.

    Args:
        rects: Output of CascadeClassifier.detectMultiScale, either an
               (N, 4) integer array or an empty tuple when nothing is found.
        frame_width: Frame width in pixels.
        frame_height: Frame height in pixels.

    Returns:
        FaceRegions in emission order, each satisfying
        region.fits(frame_width, frame_height).
    """
    regions: List[FaceRegion] = []

    for rect in rects:
        x, y, w, h = (int(v) for v in rect[:4])

        # Clamp corners to frame boundaries
        x1 = max(0, min(x, frame_width))
        y1 = max(0, min(y, frame_height))
        x2 = max(0, min(x + w, frame_width))
        y2 = max(0, min(y + h, frame_height))

        # Skip degenerate boxes
        if x2 <= x1 or y2 <= y1:
            continue

        regions.append(FaceRegion(x=x1, y=y1, width=x2 - x1, height=y2 - y1))

    return regions
