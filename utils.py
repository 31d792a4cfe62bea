import cv2
import logging
import numpy as np

from config import (BOX_COLOR, BOX_FILL_ALPHA, BOX_THICKNESS, INFO_TEXT_COLOR,
                    MATCH_STATUS_COLOR, NO_MATCH_STATUS_COLOR)

logger = logging.getLogger(__name__)


def draw_match_boxes(frame, boxes):
    """
    Draws a green box with a translucent fill around every match.
    boxes: list of (RecognizedText, PixelRect) pairs in display pixels
    """
    if frame is None or not boxes:
        return frame

    height, width = frame.shape[:2]
    overlay = frame.copy()
    rects = []

    for match, rect in boxes:
        # Convert to integer pixels inside the frame for OpenCV
        x1 = max(0, min(int(round(rect.x)), width - 1))
        y1 = max(0, min(int(round(rect.y)), height - 1))
        x2 = max(0, min(int(round(rect.x + rect.width)), width - 1))
        y2 = max(0, min(int(round(rect.y + rect.height)), height - 1))
        if x2 <= x1 or y2 <= y1:
            logger.debug(f"Skipping empty box for '{match.text}'")
            continue
        cv2.rectangle(overlay, (x1, y1), (x2, y2), BOX_COLOR, -1)
        rects.append((x1, y1, x2, y2))

    if not rects:
        return frame

    frame[:] = cv2.addWeighted(overlay, BOX_FILL_ALPHA, frame, 1 - BOX_FILL_ALPHA, 0)
    for x1, y1, x2, y2 in rects:
        cv2.rectangle(frame, (x1, y1), (x2, y2), BOX_COLOR, BOX_THICKNESS)

    return frame


def status_text(query, match_count):
    """Status line for the current search, or None when nothing is searched."""
    if not query:
        return None
    if match_count == 0:
        return "No matches found"
    return f"Found {match_count} match{'' if match_count == 1 else 'es'}"


def draw_status(frame, query, match_count):
    """Draws the search bar and the match-count status onto the frame."""
    height = frame.shape[0]
    cv2.putText(frame, f"Search: {query}_", (10, 30),
                cv2.FONT_HERSHEY_SIMPLEX, 0.8, INFO_TEXT_COLOR, 2)

    status = status_text(query, match_count)
    if status:
        color = MATCH_STATUS_COLOR if match_count else NO_MATCH_STATUS_COLOR
        (text_width, text_height), _ = cv2.getTextSize(status, cv2.FONT_HERSHEY_SIMPLEX, 0.8, 2)
        cv2.rectangle(frame, (5, height - 45), (25 + text_width, height - 35 + text_height), color, -1)
        cv2.putText(frame, status, (15, height - 25),
                    cv2.FONT_HERSHEY_SIMPLEX, 0.8, INFO_TEXT_COLOR, 2)
    return frame


def letterbox(image, surface_size, content_rect):
    """
    Draws image scaled into content_rect on a black canvas of surface_size.
    Returns the canvas (height x width x 3, uint8).
    """
    canvas = np.zeros((surface_size.height, surface_size.width, 3), dtype=np.uint8)
    width = int(round(content_rect.width))
    height = int(round(content_rect.height))
    if width <= 0 or height <= 0:
        return canvas

    if len(image.shape) == 2:
        image = cv2.cvtColor(image, cv2.COLOR_GRAY2BGR)
    resized = cv2.resize(image, (width, height), interpolation=cv2.INTER_AREA)

    x = int(round(content_rect.origin_x))
    y = int(round(content_rect.origin_y))
    # Rounding can push the image a pixel past the canvas
    height = min(height, surface_size.height - y)
    width = min(width, surface_size.width - x)
    canvas[y:y + height, x:x + width] = resized[:height, :width]
    return canvas
