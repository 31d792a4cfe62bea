"""Shared fixtures: a recognizer handing out Futures the test completes by hand."""
from concurrent.futures import Future

import pytest

from text_result import NormalizedRect, RecognizedText


class FakeRecognizer:
    def __init__(self):
        self.submitted = []
        self.shut_down = False

    def submit(self, frame):
        future = Future()
        self.submitted.append((frame, future))
        return future

    def shutdown(self):
        self.shut_down = True

    def complete(self, index, texts):
        _, future = self.submitted[index]
        future.set_result([make_text(text) for text in texts])


def make_text(text, box=(0.1, 0.1, 0.2, 0.1), confidence=0.9):
    return RecognizedText(text, NormalizedRect(*box), confidence)


@pytest.fixture
def recognizer():
    return FakeRecognizer()
