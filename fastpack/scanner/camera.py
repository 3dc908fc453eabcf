"""
==============================================================================
Camera Feed Module
==============================================================================

OpenCV frame sources for the barcode decoder.

Classes / functions:
-------------------
- CameraFeed: Background capture thread feeding a BarcodeDecoder
- scan_image: Submit a still image file as a single frame

==============================================================================
"""

from __future__ import annotations

import logging
import threading
import time
from pathlib import Path
from typing import Callable, Optional

import cv2
import numpy as np

from fastpack.core import exceptions

from .core import BarcodeDecoder, DecodedCode


# Module logger
logger = logging.getLogger(__name__)


class CameraFeed:
    """
    Reads frames from a camera on a background thread.

    Every frame is handed to the decoder; the decoder decides whether to drop
    it. Failing to open the camera is reported by start() returning False,
    which callers treat like a denied camera permission.

    Example:
        >>> feed = CameraFeed(decoder, camera_index=0)
        >>> if feed.start():
        ...     ...
        >>> feed.stop()
    """

    # Consecutive read failures tolerated before the feed gives up
    MAX_READ_FAILURES = 30

    def __init__(
        self,
        decoder: BarcodeDecoder,
        camera_index: int = 0,
        capture_factory: Optional[Callable[[int], "cv2.VideoCapture"]] = None,
        frame_interval: float = 0.0
    ) -> None:
        """
        Initialize camera feed.

        Args:
            decoder: Decoder receiving frames
            camera_index: Camera device index (0 = default)
            capture_factory: Builds the capture object (cv2.VideoCapture)
            frame_interval: Pause between reads in seconds
        """
        self._decoder = decoder
        self._camera_index = camera_index
        self._capture_factory = capture_factory or cv2.VideoCapture
        self._frame_interval = frame_interval
        self._cap = None
        self._thread: Optional[threading.Thread] = None
        self._stop_event = threading.Event()

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> bool:
        """
        Open the camera and start the capture thread.

        Returns:
            True if the camera opened, False otherwise
        """
        if self.is_running:
            return True

        try:
            cap = self._capture_factory(self._camera_index)
        except Exception as e:
            logger.error(f"Camera {self._camera_index} could not be created: {e}")
            return False

        if cap is None or not cap.isOpened():
            logger.error(f"Cannot open camera {self._camera_index}")
            if cap is not None:
                cap.release()
            return False

        self._cap = cap
        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._run,
            name=f"camera-{self._camera_index}",
            daemon=True,
        )
        self._thread.start()
        logger.info(f"📷 Camera {self._camera_index} started")
        return True

    def _run(self) -> None:
        failures = 0

        while not self._stop_event.is_set():
            try:
                ok, frame = self._cap.read()
            except Exception as e:
                logger.warning(f"Camera read error: {e}")
                ok, frame = False, None

            if not ok:
                failures += 1
                if failures >= self.MAX_READ_FAILURES:
                    logger.error("Too many failed reads, stopping camera feed")
                    break
                continue

            failures = 0
            self._submit(frame)

            if self._frame_interval:
                time.sleep(self._frame_interval)

    def _submit(self, frame: np.ndarray) -> None:
        if frame is None or frame.size == 0:
            logger.debug("Empty frame skipped")
            return
        self._decoder.submit_frame(frame)

    def stop(self, timeout: float = 2.0) -> None:
        """Stop the capture thread and release the camera."""
        self._stop_event.set()

        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None

        if self._cap is not None:
            self._cap.release()
            self._cap = None
            logger.info(f"🛑 Camera {self._camera_index} stopped")


def scan_image(decoder: BarcodeDecoder, image_path: Path) -> Optional[DecodedCode]:
    """
    Scan a barcode from a static image file.

    Returns:
        DecodedCode if the image holds a valid code, None otherwise

    Raises:
        AppException: CAMERA_UNAVAILABLE if the file is missing or unreadable
    """
    if not image_path.exists():
        logger.error(f"Image not found: {image_path}")
        raise exceptions.camera_unavailable(str(image_path))

    frame: Optional[np.ndarray] = cv2.imread(str(image_path))
    if frame is None:
        logger.error(f"Could not read image: {image_path}")
        raise exceptions.camera_unavailable(str(image_path))

    return decoder.submit_frame(frame)
