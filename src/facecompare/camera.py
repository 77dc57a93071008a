"""
Webcam access through OpenCV.

The device is acquired once and kept open; frames come back as RGB arrays
ready for face detection.
"""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import numpy as np

# cv2 is imported lazily so the rest of the package (and its tests) work
# without OpenCV installed.

logger = logging.getLogger(__name__)


class CameraError(RuntimeError):
    """Raised when the webcam cannot be opened or read."""


def _import_cv2():
    try:
        import cv2
    except ImportError as e:
        raise CameraError(
            "opencv-python-headless is required for webcam capture. "
            "Install with: pip install opencv-python-headless"
        ) from e
    return cv2


class Webcam:
    """A single video capture device."""

    def __init__(
        self,
        device_index: int = 0,
        width: int | None = None,
        height: int | None = None,
        warmup_frames: int = 5,
    ):
        self.device_index = device_index
        self.width = width
        self.height = height
        self.warmup_frames = warmup_frames
        self._cap = None
        self._lock = threading.Lock()

    @classmethod
    def from_settings(cls, camera_settings) -> Webcam:
        return cls(
            device_index=camera_settings.device_index,
            width=camera_settings.width,
            height=camera_settings.height,
            warmup_frames=camera_settings.warmup_frames,
        )

    @property
    def is_open(self) -> bool:
        return self._cap is not None

    def open(self) -> None:
        """
        Acquire the capture device.

        Raises:
            CameraError: If OpenCV is missing or the device cannot be opened
        """
        if self._cap is not None:
            return

        cv2 = _import_cv2()
        cap = cv2.VideoCapture(self.device_index)
        if not cap.isOpened():
            cap.release()
            raise CameraError(f"Cannot open camera device {self.device_index}")

        if self.width and self.height:
            cap.set(cv2.CAP_PROP_FRAME_WIDTH, self.width)
            cap.set(cv2.CAP_PROP_FRAME_HEIGHT, self.height)

        # Let auto exposure settle before the first real capture
        for _ in range(self.warmup_frames):
            cap.read()

        self._cap = cap
        width, height = self.frame_size
        logger.info(f"Camera {self.device_index} opened ({width}x{height})")

    @property
    def frame_size(self) -> tuple[int, int]:
        """(width, height) of the live stream, (0, 0) when closed."""
        if self._cap is None:
            return (0, 0)
        cv2 = _import_cv2()
        return (
            int(self._cap.get(cv2.CAP_PROP_FRAME_WIDTH)),
            int(self._cap.get(cv2.CAP_PROP_FRAME_HEIGHT)),
        )

    def read_frame(self) -> np.ndarray:
        """
        Grab the current frame.

        Returns:
            Frame as an RGB numpy array

        Raises:
            CameraError: If the camera is not open or the read fails
        """
        if self._cap is None:
            raise CameraError("Camera is not open")

        cv2 = _import_cv2()
        with self._lock:
            ret, frame = self._cap.read()
        if not ret or frame is None:
            raise CameraError(f"Failed to read a frame from camera {self.device_index}")
        return cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)

    def release(self) -> None:
        if self._cap is not None:
            self._cap.release()
            self._cap = None
            logger.info(f"Camera {self.device_index} released")

    def __enter__(self) -> Webcam:
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.release()
