"""
Configuration file for the live text search system.
"""

# Frame admission configuration
THROTTLE_INTERVAL = 3     # Send every Nth camera frame to the recognizer
DROP_FRAMES_WHILE_RECOGNIZING = True  # Skip admitted frames while a recognition is still running

# Display policy per mode ("fill" = crop-to-fill pass-through, "fit" = letterbox)
LIVE_FIT_POLICY = "fill"
STATIC_FIT_POLICY = "fit"
STATIC_DISPLAY_SIZE = (800, 600)  # Window canvas (width, height) for static-image mode

# Bounding box tolerance: engines overshoot the unit square slightly
BOUNDS_TOLERANCE = 0.01

# OCR configuration - Tesseract
TESSERACT_CONFIG = '--oem 3 --psm 11'  # Sparse text: find as much text as possible
MIN_WORD_CONFIDENCE = 30  # Tesseract confidence is 0-100, -1 for non-word rows
RECOGNIZER_WORKERS = 1    # Worker threads running Tesseract

# Camera configuration
CAMERA_SOURCE = 0         # Camera source (0 for default camera)
MAX_CONSECUTIVE_FAILURES = 30  # Consecutive frame read failures before the camera thread stops

# Display configuration
WINDOW_TITLE = "Live Text Search"
BOX_COLOR = (0, 255, 0)   # Green boxes around matches
BOX_FILL_ALPHA = 0.1      # Translucent fill inside match boxes
BOX_THICKNESS = 3
INFO_TEXT_COLOR = (255, 255, 255)  # White color for info text
MATCH_STATUS_COLOR = (0, 160, 0)
NO_MATCH_STATUS_COLOR = (128, 128, 128)
DISPLAY_WAIT_MS = 1
ASYNC_SLEEP_TIME = 0.01   # Yield to the event loop between displayed frames

# Logging configuration
LOG_LEVEL = "INFO"
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
