"""
Value types shared by the recognizer, the pipeline and the overlay code.

All of them are immutable tuples so they can be handed between the camera,
recognizer and display threads without copying.
"""
from collections import namedtuple
from enum import Enum

# Normalized box: fractions of the source image, origin at the bottom-left, y grows upward
NormalizedRect = namedtuple("NormalizedRect", ["x", "y", "width", "height"])

# Display pixels, origin at the top-left, y grows downward
PixelRect = namedtuple("PixelRect", ["x", "y", "width", "height"])

# Part of the display surface actually covered by the video or image
ContentRect = namedtuple("ContentRect", ["origin_x", "origin_y", "width", "height"])

Size = namedtuple("Size", ["width", "height"])

RecognizedText = namedtuple("RecognizedText", ["text", "bounding_box", "confidence"])


class FitPolicy(Enum):
    FILL = "fill"  # crop-to-fill, the renderer crops before we see pixels
    FIT = "fit"    # letterbox, content centered inside the surface


class SearchState(namedtuple("SearchState", ["results", "query", "matches", "content_rect", "generation"])):
    """
    Snapshot published by the pipeline.

    results: last full recognition result (tuple of RecognizedText)
    query: query the matches were computed with
    matches: subsequence of results containing the query
    content_rect: where the content sits on the display surface, or None
    generation: bumped on every publish
    """
    __slots__ = ()

    @property
    def match_count(self):
        return len(self.matches)


EMPTY_STATE = SearchState(results=(), query="", matches=(), content_rect=None, generation=0)
