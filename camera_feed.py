import cv2
import logging
import threading
import time
from threading import Thread

from config import MAX_CONSECUTIVE_FAILURES
from text_result import Size

logger = logging.getLogger(__name__)


class VideoStream:
    """
    Camera frame source.

    A background thread reads frames as fast as the device delivers them and
    pushes each one to the on_frame callback given to start(). The latest
    frame is also kept for the display loop to read().
    """

    def __init__(self, src=0, max_consecutive_failures=MAX_CONSECUTIVE_FAILURES):
        logger.info(f"Initializing VideoStream with source: {src}")
        self.src = src
        self.cap = None
        self.frame = None
        self.frame_lock = threading.Lock()
        self.stopped = False
        self.thread = None
        self.on_frame = None
        self.max_consecutive_failures = max_consecutive_failures
        self.initialization_successful = False

        try:
            self.cap = cv2.VideoCapture(src)
            if not self.cap.isOpened():
                logger.error(f"Failed to open camera source {src}")
                return

            # Test reading first frame
            ret, frame = self.cap.read()
            if not ret or frame is None:
                logger.error("Failed to read initial frame from camera")
                return

            self.frame = frame
            self.initialization_successful = True
            logger.info(f"Camera resolution: {frame.shape[1]}x{frame.shape[0]}")

        except Exception as e:
            logger.error(f"Error during VideoStream initialization: {e}")
            self.cleanup()

    def is_initialized(self):
        """Check if the video stream was initialized successfully"""
        return self.initialization_successful and self.cap is not None and self.cap.isOpened()

    def frame_size(self):
        """Native size of the camera frames, or None before the first frame."""
        with self.frame_lock:
            if self.frame is None:
                return None
            height, width = self.frame.shape[:2]
        return Size(width, height)

    def start(self, on_frame=None):
        """Start pushing frames to on_frame from a background thread."""
        if not self.is_initialized():
            logger.error("Cannot start VideoStream: camera not initialized")
            return False

        self.on_frame = on_frame
        self.stopped = False
        logger.info("Starting background thread for frame updates")
        self.thread = Thread(target=self.update, args=(), daemon=True)
        self.thread.start()
        return True

    def update(self):
        """Method to read frames from camera in background thread"""
        logger.info("Background update thread started")
        frame_count = 0
        consecutive_failures = 0

        while not self.stopped:
            if self.cap is None or not self.cap.isOpened():
                logger.error("Camera not available in background thread")
                break

            ret, frame = self.cap.read()
            if not ret or frame is None:
                consecutive_failures += 1
                logger.warning(f"Background thread: Failed to read frame "
                               f"(attempt {consecutive_failures}/{self.max_consecutive_failures})")
                if consecutive_failures >= self.max_consecutive_failures:
                    logger.error("Too many consecutive failures in background thread, stopping")
                    break
                time.sleep(0.01)  # Brief pause before retry
                continue

            consecutive_failures = 0
            frame_count += 1
            with self.frame_lock:
                self.frame = frame

            if self.on_frame is not None:
                try:
                    self.on_frame(frame)
                except Exception as e:
                    logger.error(f"Frame callback failed on frame {frame_count}: {e}")

            # Only log every 300 frames (about every ten seconds at 30fps)
            if frame_count % 300 == 0:
                logger.debug(f"Background thread: Read {frame_count} frames successfully")

        logger.info("Background update thread stopped")

    def read(self):
        """Return the latest frame"""
        with self.frame_lock:
            if self.frame is None:
                return False, None
            return True, self.frame.copy()  # Return a copy to avoid threading issues

    def stop(self):
        """Stop the video stream and release camera"""
        logger.info("Stopping video stream")
        self.stopped = True

        # Wait for background thread to finish
        if self.thread and self.thread.is_alive() and self.thread is not threading.current_thread():
            self.thread.join(timeout=2.0)  # Wait up to 2 seconds
            if self.thread.is_alive():
                logger.warning("Background thread did not finish gracefully")

        self.cleanup()

    def cleanup(self):
        """Release the camera"""
        try:
            if self.cap is not None:
                self.cap.release()
                self.cap = None
                logger.info("Camera released successfully")
        except Exception as e:
            logger.error(f"Error during cleanup: {e}")
