import argparse
import asyncio
import cv2
import logging
import sys

from camera_feed import VideoStream
from config import *  # Import configuration
from frame_throttle import FrameThrottle
from ocr_processor import OCRProcessor
from recognition_pipeline import RecognitionPipeline
from text_result import Size
from utils import draw_match_boxes, draw_status, letterbox

logger = logging.getLogger(__name__)

ESCAPE_KEY = 27
BACKSPACE_KEYS = (8, 127)
NO_KEY = 255


def edit_query(query, key):
    """
    Apply one key press to the search query.
    Returns the new query, or None when the user asked to quit (Esc).
    """
    if key == ESCAPE_KEY:
        return None
    if key in BACKSPACE_KEYS:
        return query[:-1]
    if 32 <= key <= 126:
        return query + chr(key)
    return query


def handle_key(pipeline):
    """Read a key press and push query edits to the pipeline. False means quit."""
    key = cv2.waitKey(DISPLAY_WAIT_MS) & 0xFF
    if key == NO_KEY:
        return True

    query = edit_query(pipeline.state.query, key)
    if query is None:
        logger.info("Escape pressed, stopping")
        return False
    if query != pipeline.state.query:
        pipeline.set_query(query)
    return True


def show(frame, pipeline):
    state = pipeline.state
    draw_match_boxes(frame, pipeline.overlay_boxes())
    draw_status(frame, state.query, state.match_count)
    cv2.imshow(WINDOW_TITLE, frame)


def report_failure(error):
    logger.warning(f"Recognition cycle produced no results: {error}")


async def run_live(source, query):
    logger.info("Starting live search")

    stream = VideoStream(source)
    if not stream.is_initialized():
        logger.error("Failed to initialize video stream")
        return False

    ocr = OCRProcessor()
    if not ocr.is_initialized():
        logger.error("Failed to initialize OCR processor")
        stream.stop()
        return False

    pipeline = RecognitionPipeline(
        ocr,
        frame_source=stream,
        throttle=FrameThrottle(THROTTLE_INTERVAL),
        drop_while_busy=DROP_FRAMES_WHILE_RECOGNIZING,
        on_error=report_failure,
    )
    pipeline.set_query(query)

    # The window shows camera frames at native size, so the surface is the frame
    frame_size = stream.frame_size()
    pipeline.set_display_geometry(frame_size, frame_size, LIVE_FIT_POLICY)

    if not pipeline.start():
        stream.stop()
        return False

    try:
        while stream.thread.is_alive():
            ret, frame = stream.read()
            if not ret:
                await asyncio.sleep(0.1)
                continue

            size = Size(frame.shape[1], frame.shape[0])
            if size != frame_size:
                logger.info(f"Frame size changed to {size.width}x{size.height}")
                frame_size = size
                pipeline.set_display_geometry(size, size, LIVE_FIT_POLICY)

            show(frame, pipeline)
            if not handle_key(pipeline):
                break

            # Async sleep to ensure video feed is not blocked
            await asyncio.sleep(ASYNC_SLEEP_TIME)
    finally:
        logger.info("Cleaning up resources...")
        pipeline.stop()
        logger.info(f"Pipeline stats: {pipeline.stats()}")
        cv2.destroyAllWindows()

    return True


async def run_static(image_path, query):
    logger.info(f"Starting still-image search on {image_path}")

    image = cv2.imread(image_path)
    if image is None:
        logger.error(f"Could not read image: {image_path}")
        return False

    ocr = OCRProcessor()
    if not ocr.is_initialized():
        logger.error("Failed to initialize OCR processor")
        return False

    pipeline = RecognitionPipeline(ocr, on_error=report_failure)
    pipeline.set_query(query)

    surface = Size(*STATIC_DISPLAY_SIZE)
    content_rect = pipeline.set_display_geometry(
        surface, Size(image.shape[1], image.shape[0]), STATIC_FIT_POLICY)
    background = letterbox(image, surface, content_rect)
    pipeline.recognize_image(image)

    try:
        while True:
            show(background.copy(), pipeline)
            if not handle_key(pipeline):
                break
            await asyncio.sleep(ASYNC_SLEEP_TIME)
    finally:
        pipeline.stop()
        cv2.destroyAllWindows()

    return True


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Search for text in a live camera feed or an image.")
    parser.add_argument("--source", type=int, default=CAMERA_SOURCE, help="camera index")
    parser.add_argument("--image", help="search a still image instead of the camera")
    parser.add_argument("--query", default="", help="initial search query")
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    logging.basicConfig(level=LOG_LEVEL, format=LOG_FORMAT)

    logger.info("Type to search, Backspace to delete, Esc to quit")
    if args.image:
        return 0 if asyncio.run(run_static(args.image, args.query)) else 1
    logger.info(f"OCR runs every {THROTTLE_INTERVAL} frames")
    return 0 if asyncio.run(run_live(args.source, args.query)) else 1


if __name__ == "__main__":
    try:
        status = main()
        logger.info("Application finished")
        sys.exit(status)
    except KeyboardInterrupt:
        logger.info("Application interrupted by user")
