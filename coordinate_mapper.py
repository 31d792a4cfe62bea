"""
Maps recognizer boxes onto the display.

The recognizer reports boxes normalized to the source image with the origin
at the bottom-left and y growing upward. Displays are addressed in pixels from
the top-left with y growing downward, so the vertical position is flipped
about the box's own height, not just negated.
"""
import logging

from config import BOUNDS_TOLERANCE
from text_result import NormalizedRect, PixelRect

logger = logging.getLogger(__name__)


def to_display(box, content_rect):
    """
    Convert a normalized box into display pixels inside content_rect.

    box: NormalizedRect (bottom-left origin)
    content_rect: ContentRect the source content is drawn into
    Returns a PixelRect (top-left origin).
    """
    x = box.x * content_rect.width + content_rect.origin_x
    y = (1 - box.y - box.height) * content_rect.height + content_rect.origin_y
    width = box.width * content_rect.width
    height = box.height * content_rect.height
    return PixelRect(x, y, width, height)


def _clamp_unit(value):
    return max(0.0, min(1.0, value))


def clamp_normalized_rect(box):
    """Clamp a box into the unit square, shrinking it rather than rejecting it."""
    if (box.x < -BOUNDS_TOLERANCE or box.y < -BOUNDS_TOLERANCE
            or box.x + box.width > 1 + BOUNDS_TOLERANCE
            or box.y + box.height > 1 + BOUNDS_TOLERANCE):
        logger.debug(f"Bounding box {tuple(box)} exceeds tolerance, clamping")

    x = _clamp_unit(box.x)
    y = _clamp_unit(box.y)
    right = _clamp_unit(box.x + max(box.width, 0.0))
    top = _clamp_unit(box.y + max(box.height, 0.0))
    return NormalizedRect(x, y, max(0.0, right - x), max(0.0, top - y))


def map_matches(matches, content_rect):
    """Clamp and map every match, returning (match, PixelRect) pairs in order."""
    return [(match, to_display(clamp_normalized_rect(match.bounding_box), content_rect))
            for match in matches]
