import logging

from config import THROTTLE_INTERVAL

logger = logging.getLogger(__name__)


class FrameThrottle:
    """
    Admits every Nth frame for recognition and drops the rest.

    Not thread safe: call admit() from the single thread delivering frames.
    """

    def __init__(self, interval=THROTTLE_INTERVAL):
        if interval < 1:
            raise ValueError(f"Throttle interval must be >= 1, got {interval}")
        self.interval = interval
        self.frame_count = 0
        logger.info(f"FrameThrottle admitting every {interval} frame(s)")

    def admit(self):
        """Count one frame arrival; True if this frame should be recognized."""
        # Only the remainder matters, so keep the counter bounded
        self.frame_count = (self.frame_count + 1) % self.interval
        return self.frame_count == 0

    def reset(self):
        self.frame_count = 0
