import threading
from concurrent.futures import Future
from unittest.mock import MagicMock

import pytest

from frame_throttle import FrameThrottle
from ocr_processor import RecognitionFailure
from recognition_pipeline import RecognitionPipeline
from tests.conftest import make_text
from text_result import ContentRect, FitPolicy, PixelRect, Size


def feed(pipeline, count):
    return [pipeline.on_frame(f"frame-{i}") for i in range(1, count + 1)]


def test_nine_frames_dispatch_three_recognitions(recognizer):
    pipeline = RecognitionPipeline(recognizer, throttle=FrameThrottle(3))

    admitted = feed(pipeline, 9)

    assert admitted.count(True) == 3
    assert [frame for frame, _ in recognizer.submitted] == ["frame-3", "frame-6", "frame-9"]
    assert pipeline.stats()['in_flight'] == 3


def test_last_completed_cycle_wins(recognizer):
    pipeline = RecognitionPipeline(recognizer, throttle=FrameThrottle(3))
    pipeline.set_query("sign")
    feed(pipeline, 9)

    recognizer.complete(0, ["first sign"])
    recognizer.complete(2, ["third sign"])
    recognizer.complete(1, ["second sign"])

    assert [r.text for r in pipeline.state.results] == ["second sign"]
    assert [m.text for m in pipeline.state.matches] == ["second sign"]
    assert pipeline.stats()['in_flight'] == 0


def test_query_set_before_completion_applies_to_results(recognizer):
    pipeline = RecognitionPipeline(recognizer, throttle=FrameThrottle(3))
    feed(pipeline, 3)
    pipeline.set_query("foo")

    recognizer.complete(0, ["foobar", "baz"])

    assert [m.text for m in pipeline.state.matches] == ["foobar"]
    assert pipeline.state.query == "foo"


def test_query_change_refilters_last_results_without_recognizing(recognizer):
    pipeline = RecognitionPipeline(recognizer, throttle=FrameThrottle(1))
    pipeline.on_frame("frame")
    recognizer.complete(0, ["Exit", "Parking", "EXIT 12"])

    state = pipeline.set_query("exit")

    assert [m.text for m in state.matches] == ["Exit", "EXIT 12"]
    assert len(recognizer.submitted) == 1

    state = pipeline.set_query("")
    assert state.matches == ()
    assert len(state.results) == 3


def test_failed_recognition_publishes_empty_cycle(recognizer):
    errors = []
    pipeline = RecognitionPipeline(recognizer, throttle=FrameThrottle(1), on_error=errors.append)
    pipeline.set_query("exit")
    pipeline.on_frame("frame-1")
    recognizer.complete(0, ["exit"])
    assert pipeline.state.match_count == 1

    pipeline.on_frame("frame-2")
    failure = RecognitionFailure("engine crashed")
    recognizer.submitted[1][1].set_exception(failure)

    assert pipeline.state.results == ()
    assert pipeline.state.matches == ()
    assert errors == [failure]
    stats = pipeline.stats()
    assert stats['failed'] == 1
    assert stats['completed'] == 1
    assert stats['in_flight'] == 0


def test_submit_raising_is_absorbed():
    recognizer = MagicMock()
    recognizer.submit.side_effect = RuntimeError("no engine")
    errors = []
    pipeline = RecognitionPipeline(recognizer, throttle=FrameThrottle(1), on_error=errors.append)

    assert pipeline.on_frame("frame") is True

    assert pipeline.state.results == ()
    assert len(errors) == 1
    assert pipeline.stats()['in_flight'] == 0


def test_cancelled_recognition_counts_as_failure(recognizer):
    errors = []
    pipeline = RecognitionPipeline(recognizer, throttle=FrameThrottle(1), on_error=errors.append)
    pipeline.on_frame("frame")

    recognizer.submitted[0][1].cancel()

    assert isinstance(errors[0], RecognitionFailure)
    assert pipeline.stats()['in_flight'] == 0


def test_erroring_error_callback_does_not_break_pipeline(recognizer):
    def explode(error):
        raise ValueError("callback bug")

    pipeline = RecognitionPipeline(recognizer, throttle=FrameThrottle(1), on_error=explode)
    pipeline.on_frame("frame")
    recognizer.submitted[0][1].set_exception(RecognitionFailure("bad frame"))

    assert pipeline.stats()['in_flight'] == 0


def test_drop_while_busy_keeps_one_recognition_outstanding(recognizer):
    pipeline = RecognitionPipeline(recognizer, throttle=FrameThrottle(3), drop_while_busy=True)

    feed(pipeline, 9)
    assert len(recognizer.submitted) == 1
    assert pipeline.stats()['dropped_busy'] == 2

    recognizer.complete(0, ["done"])
    feed(pipeline, 3)
    assert len(recognizer.submitted) == 2


def test_recognize_image_bypasses_throttle(recognizer):
    pipeline = RecognitionPipeline(recognizer, throttle=FrameThrottle(30))

    future = pipeline.recognize_image("still")

    assert isinstance(future, Future)
    assert recognizer.submitted[0][0] == "still"


def test_overlay_boxes_map_matches_into_content_rect(recognizer):
    pipeline = RecognitionPipeline(recognizer, throttle=FrameThrottle(1))
    pipeline.set_display_geometry(Size(400, 600), Size(400, 400), FitPolicy.FIT)
    pipeline.set_query("exit")
    pipeline.on_frame("frame")
    recognizer.submitted[0][1].set_result([
        make_text("EXIT", box=(0.25, 0.25, 0.5, 0.25)),
        make_text("Parking"),
    ])

    boxes = pipeline.overlay_boxes()

    assert len(boxes) == 1
    match, rect = boxes[0]
    assert match.text == "EXIT"
    assert rect == pytest.approx(PixelRect(100, 300, 200, 100))


def test_overlay_boxes_empty_without_geometry(recognizer):
    pipeline = RecognitionPipeline(recognizer, throttle=FrameThrottle(1))
    pipeline.set_query("exit")
    pipeline.on_frame("frame")
    recognizer.complete(0, ["exit"])

    assert pipeline.overlay_boxes() == []


def test_set_display_geometry_publishes_content_rect(recognizer):
    pipeline = RecognitionPipeline(recognizer)

    rect = pipeline.set_display_geometry(Size(640, 480), Size(640, 480), "fill")

    assert rect == ContentRect(0, 0, 640, 480)
    assert pipeline.state.content_rect == rect


def test_listeners_receive_every_publish(recognizer):
    pipeline = RecognitionPipeline(recognizer, throttle=FrameThrottle(1))
    seen = []
    pipeline.add_listener(seen.append)

    pipeline.set_query("a")
    pipeline.on_frame("frame")
    recognizer.complete(0, ["abc"])

    assert [state.generation for state in seen] == [1, 2]
    assert seen[-1].match_count == 1


def test_failing_listener_is_isolated(recognizer):
    pipeline = RecognitionPipeline(recognizer)
    pipeline.add_listener(MagicMock(side_effect=RuntimeError("draw failed")))

    state = pipeline.set_query("x")

    assert pipeline.state is state


def test_start_requires_frame_source(recognizer):
    assert RecognitionPipeline(recognizer).start() is False


def test_start_and_stop_drive_owned_collaborators(recognizer):
    source = MagicMock()
    pipeline = RecognitionPipeline(recognizer, frame_source=source)

    assert pipeline.start() is True
    source.start.assert_called_once_with(pipeline.on_frame)

    pipeline.stop()
    source.stop.assert_called_once()
    assert recognizer.shut_down is True
    assert pipeline.running is False


def test_snapshots_are_never_torn(recognizer):
    pipeline = RecognitionPipeline(recognizer, throttle=FrameThrottle(1))
    words = ["alpha", "beta", "gamma", "alphabet"]
    for i in range(200):
        pipeline.on_frame(i)
    stop = threading.Event()
    torn = []

    def read():
        while not stop.is_set():
            state = pipeline.state
            query = state.query.casefold()
            expected = [r for r in state.results if query and query in r.text.casefold()]
            if list(state.matches) != expected:
                torn.append(state)

    def complete():
        for i, (_, future) in enumerate(recognizer.submitted):
            future.set_result([make_text(words[i % 4]), make_text(words[(i + 1) % 4])])

    def change_query():
        for i in range(200):
            pipeline.set_query(["alpha", "BETA", "", "a"][i % 4])

    reader = threading.Thread(target=read)
    reader.start()
    writers = [threading.Thread(target=complete), threading.Thread(target=change_query)]
    for writer in writers:
        writer.start()
    for writer in writers:
        writer.join()
    stop.set()
    reader.join()

    assert torn == []
    assert pipeline.stats()['in_flight'] == 0
