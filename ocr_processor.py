import cv2
import logging
import pytesseract
from concurrent.futures import ThreadPoolExecutor
from PIL import Image

from config import TESSERACT_CONFIG, MIN_WORD_CONFIDENCE, RECOGNIZER_WORKERS
from text_result import NormalizedRect, RecognizedText

logger = logging.getLogger(__name__)


class RecognitionFailure(Exception):
    """Raised when the text recognition engine fails on a frame."""


class OCRProcessor:
    """
    Tesseract text recognizer.

    submit() runs recognition on a worker thread and returns a Future that
    resolves exactly once, either with a list of RecognizedText (one per text
    line, boxes normalized with a bottom-left origin) or with the exception.
    """

    def __init__(self, workers=RECOGNIZER_WORKERS):
        logger.info("Initializing OCRProcessor with Tesseract")
        self.initialization_successful = False
        self.tesseract_config = TESSERACT_CONFIG
        self.frame_count = 0
        self.executor = None

        try:
            # Check if Tesseract is available
            pytesseract.get_tesseract_version()
            logger.info("Tesseract is available")

            self.executor = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="ocr")
            self.initialization_successful = True
            logger.info("Tesseract OCR processor initialized successfully")

        except Exception as e:
            logger.error(f"Failed to initialize Tesseract: {e}")
            logger.error("Please install Tesseract: brew install tesseract (macOS) or apt-get install tesseract-ocr (Ubuntu)")
            self.initialization_successful = False

    def is_initialized(self):
        """Check if OCR processor was initialized successfully"""
        return self.initialization_successful

    def preprocess_frame(self, frame):
        """
        Preprocess frame for better OCR results. Geometry is left unchanged
        so boxes found on the result line up with the original frame.
        """
        try:
            if len(frame.shape) == 3:
                gray = cv2.cvtColor(frame, cv2.COLOR_BGR2GRAY)
            else:
                gray = frame

            # Apply Gaussian blur to reduce noise
            blurred = cv2.GaussianBlur(gray, (3, 3), 0)

            # Apply adaptive thresholding for better text contrast
            thresh = cv2.adaptiveThreshold(
                blurred, 255, cv2.ADAPTIVE_THRESH_GAUSSIAN_C, cv2.THRESH_BINARY, 11, 2
            )

            # Apply morphological operations to clean up text
            kernel = cv2.getStructuringElement(cv2.MORPH_RECT, (2, 2))
            return cv2.morphologyEx(thresh, cv2.MORPH_CLOSE, kernel)

        except Exception as e:
            logger.error(f"Error preprocessing frame: {e}")
            return frame

    def submit(self, frame):
        """Queue a frame for recognition and return its Future."""
        if self.executor is None:
            raise RecognitionFailure("OCR processor not properly initialized")
        return self.executor.submit(self.recognize, frame)

    def recognize(self, frame):
        """
        Run Tesseract on a frame and return one RecognizedText per text line.
        Raises RecognitionFailure if the frame is unusable or Tesseract fails.
        """
        if not self.is_initialized():
            raise RecognitionFailure("OCR processor not properly initialized")

        if frame is None or len(frame.shape) not in (2, 3):
            raise RecognitionFailure(f"Invalid frame: {None if frame is None else frame.shape}")

        height, width = frame.shape[:2]
        if height <= 0 or width <= 0:
            raise RecognitionFailure(f"Invalid frame dimensions: {width}x{height}")

        self.frame_count += 1
        logger.debug(f"Recognizing frame {self.frame_count} ({width}x{height})")

        pil_image = Image.fromarray(self.preprocess_frame(frame))
        try:
            data = pytesseract.image_to_data(
                pil_image,
                config=self.tesseract_config,
                output_type=pytesseract.Output.DICT
            )
        except Exception as ocr_error:
            raise RecognitionFailure(f"Tesseract OCR processing failed: {ocr_error}") from ocr_error

        results = lines_from_tesseract_data(data, width, height)
        logger.debug(f"Frame {self.frame_count}: {len(results)} text lines")
        return results

    def shutdown(self, wait=False):
        if self.executor is not None:
            logger.info("Shutting down OCR worker")
            self.executor.shutdown(wait=wait, cancel_futures=True)
            self.executor = None


def lines_from_tesseract_data(data, image_width, image_height, min_confidence=MIN_WORD_CONFIDENCE):
    """
    Group Tesseract word rows into text lines.

    data: dict from pytesseract.image_to_data(output_type=Output.DICT)
    Returns RecognizedText tuples in reading order. Each line's box is the
    union of its word boxes, converted from top-left pixels to bottom-left
    normalized coordinates; confidence is the mean word confidence on 0-1.
    """
    lines = {}
    for i in range(len(data['text'])):
        text = str(data['text'][i]).strip()
        try:
            confidence = float(data['conf'][i])
        except (TypeError, ValueError):
            continue
        if not text or confidence < min_confidence:
            continue

        key = (data['page_num'][i], data['block_num'][i], data['par_num'][i], data['line_num'][i])
        left = data['left'][i]
        top = data['top'][i]
        right = left + data['width'][i]
        bottom = top + data['height'][i]

        line = lines.get(key)
        if line is None:
            lines[key] = {'words': [text], 'confs': [confidence],
                          'left': left, 'top': top, 'right': right, 'bottom': bottom}
        else:
            line['words'].append(text)
            line['confs'].append(confidence)
            line['left'] = min(line['left'], left)
            line['top'] = min(line['top'], top)
            line['right'] = max(line['right'], right)
            line['bottom'] = max(line['bottom'], bottom)

    results = []
    for line in lines.values():
        box = NormalizedRect(
            x=line['left'] / image_width,
            y=1 - line['bottom'] / image_height,
            width=(line['right'] - line['left']) / image_width,
            height=(line['bottom'] - line['top']) / image_height,
        )
        confidence = sum(line['confs']) / len(line['confs']) / 100.0
        results.append(RecognizedText(" ".join(line['words']), box, min(confidence, 1.0)))
    return results
