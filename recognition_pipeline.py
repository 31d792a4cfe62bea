"""
Live recognition pipeline.

Frames arrive from the camera thread, every Nth one is handed to the
recognizer, and each completed recognition is filtered against the current
query. The outcome is published as one immutable SearchState: writers (the
recognizer's completion and set_query/set_display_geometry callers) serialize
on a single lock and swap the reference, readers just read pipeline.state.

Completions are published in the order they finish, not the order their
frames were dispatched; a slow early frame can overwrite a newer one.
Construct with drop_while_busy=True to never have more than one recognition
outstanding.
"""
import logging
import threading

from content_rect import resolve_content_rect
from coordinate_mapper import map_matches
from frame_throttle import FrameThrottle
from ocr_processor import RecognitionFailure
from query_matcher import QueryMatcher
from text_result import EMPTY_STATE

logger = logging.getLogger(__name__)


class RecognitionPipeline:
    def __init__(self, recognizer, frame_source=None, throttle=None, matcher=None,
                 drop_while_busy=False, on_error=None):
        """
        recognizer: object with submit(image) -> concurrent.futures.Future
        frame_source: object with start(on_frame) and stop(), optional for static images
        on_error: called with the exception of every failed recognition
        """
        self.recognizer = recognizer
        self.frame_source = frame_source
        self.throttle = throttle or FrameThrottle()
        self.matcher = matcher or QueryMatcher()
        self.drop_while_busy = drop_while_busy
        self.on_error = on_error

        self.state = EMPTY_STATE._replace(query=self.matcher.query)
        self.lock = threading.Lock()
        self.listeners = []
        self.running = False

        self.in_flight = 0
        self.cycle_count = 0
        self.last_completed_cycle = 0
        self.counters = {
            'frames': 0,
            'admitted': 0,
            'dropped_busy': 0,
            'completed': 0,
            'failed': 0,
        }

    def start(self):
        """Start receiving frames from the frame source."""
        if self.frame_source is None:
            logger.error("Cannot start pipeline without a frame source")
            return False

        logger.info("Starting recognition pipeline")
        self.throttle.reset()
        self.running = True
        started = self.frame_source.start(self.on_frame)
        if started is False:
            self.running = False
            logger.error("Frame source failed to start")
            return False
        return True

    def stop(self):
        """Stop the frame source and shut the recognizer down."""
        logger.info("Stopping recognition pipeline")
        self.running = False
        if self.frame_source is not None:
            self.frame_source.stop()
        shutdown = getattr(self.recognizer, 'shutdown', None)
        if shutdown is not None:
            shutdown()

    def add_listener(self, callback):
        """Call callback(state) with every newly published SearchState."""
        self.listeners.append(callback)

    def on_frame(self, frame):
        """
        Handle one frame arrival from the producer thread. Never blocks on
        recognition. Returns True if the frame was sent to the recognizer.
        """
        admitted = self.throttle.admit()
        with self.lock:
            self.counters['frames'] += 1
            if not admitted:
                return False
            if self.drop_while_busy and self.in_flight:
                self.counters['dropped_busy'] += 1
                return False
            cycle = self._begin_cycle()

        self._dispatch(frame, cycle)
        return True

    def recognize_image(self, image):
        """Recognize a single still image, bypassing the frame throttle."""
        with self.lock:
            cycle = self._begin_cycle()
        logger.info(f"Recognizing still image (cycle {cycle})")
        return self._dispatch(image, cycle)

    def set_query(self, query):
        """Change the query and re-filter the last recognition result."""
        with self.lock:
            self.matcher.set_query(query)
            matches = self.matcher.filter(self.state.results)
            state = self._publish(query=self.matcher.query, matches=tuple(matches))
        logger.debug(f"Query '{state.query}' matches {state.match_count} of {len(state.results)} lines")
        self._notify(state)
        return state

    def set_display_geometry(self, surface_size, content_size, policy):
        """Recompute where content sits on the display after a resize or content change."""
        content_rect = resolve_content_rect(surface_size, content_size, policy)
        with self.lock:
            state = self._publish(content_rect=content_rect)
        logger.debug(f"Content rect {tuple(content_rect)} for surface {tuple(surface_size)}")
        self._notify(state)
        return content_rect

    def overlay_boxes(self):
        """(match, PixelRect) pairs for the current matches, from a single snapshot."""
        state = self.state
        if state.content_rect is None:
            return []
        return map_matches(state.matches, state.content_rect)

    def stats(self):
        with self.lock:
            stats = dict(self.counters)
            stats['in_flight'] = self.in_flight
        return stats

    def _begin_cycle(self):
        # Caller holds the lock
        self.cycle_count += 1
        self.in_flight += 1
        self.counters['admitted'] += 1
        return self.cycle_count

    def _dispatch(self, frame, cycle):
        logger.debug(f"Dispatching cycle {cycle} to recognizer")
        try:
            future = self.recognizer.submit(frame)
        except Exception as e:
            self._complete_cycle(cycle, [], e)
            return None

        future.add_done_callback(lambda done: self._on_recognition_done(cycle, done))
        return future

    def _on_recognition_done(self, cycle, future):
        if future.cancelled():
            self._complete_cycle(cycle, [], RecognitionFailure(f"Recognition for cycle {cycle} was cancelled"))
            return

        error = future.exception()
        if error is not None:
            self._complete_cycle(cycle, [], error)
        else:
            self._complete_cycle(cycle, future.result() or [], None)

    def _complete_cycle(self, cycle, results, error):
        if error is not None:
            logger.error(f"Recognition failed for cycle {cycle}: {error}")

        with self.lock:
            self.in_flight -= 1
            self.counters['failed' if error is not None else 'completed'] += 1
            if cycle < self.last_completed_cycle:
                logger.debug(f"Cycle {cycle} completed after cycle {self.last_completed_cycle}, publishing anyway")
            self.last_completed_cycle = max(self.last_completed_cycle, cycle)

            matches = self.matcher.filter(results)
            state = self._publish(results=tuple(results), matches=tuple(matches))

        logger.debug(f"Cycle {cycle}: {len(results)} lines, {state.match_count} matches")

        if error is not None and self.on_error is not None:
            try:
                self.on_error(error)
            except Exception as callback_error:
                logger.error(f"Error callback failed: {callback_error}")

        self._notify(state)

    def _publish(self, **changes):
        # Caller holds the lock
        self.state = self.state._replace(generation=self.state.generation + 1, **changes)
        return self.state

    def _notify(self, state):
        for listener in list(self.listeners):
            try:
                listener(state)
            except Exception as e:
                logger.error(f"Pipeline listener failed: {e}")
