"""
Face comparison session.

Holds the reference and captured images with their descriptors, decides which
actions are available, and turns every outcome into the message shown to the
user. At most one action runs at a time; failures stay inside the action that
caused them.
"""

import io
import logging
import threading
import time
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import IO

import numpy as np
from PIL import Image, ImageOps

from facecompare.camera import CameraError, Webcam
from facecompare.config import RecognitionSettings, Settings
from facecompare.face_recognition import ModelLoadError, extract_descriptor, load_models
from facecompare.similarity import MatchResult, compare_descriptors

logger = logging.getLogger(__name__)

NO_FACE_REFERENCE = "No face detected in the uploaded image"
NO_FACE_CAPTURED = "No face detected in captured image"
REFERENCE_ERROR = "Error processing the image"
CAPTURE_ERROR = "Error processing the captured image"
COMPARE_ERROR = "Error comparing the faces"
MISSING_DESCRIPTORS = "Please ensure both images have detected faces"
LOADING_MODELS = "Loading face recognition models..."
ACTION_IN_PROGRESS = "Another action is in progress"

ImageSource = str | Path | bytes | IO[bytes]


class Phase(str, Enum):
    IDLE = "idle"
    LOADING_MODELS = "loading-models"
    READY = "ready"
    UPLOADING = "uploading"
    CAPTURING = "capturing"
    COMPARING = "comparing"
    RESULT = "result"


@dataclass
class SessionImage:
    """An image held for preview, with where it came from."""

    source: str
    image: Image.Image
    jpeg: bytes | None = None

    @property
    def size(self) -> tuple[int, int]:
        return self.image.size


def open_image(source: ImageSource) -> tuple[Image.Image, str]:
    """
    Decode an image from a path, raw bytes or a binary file object.

    EXIF orientation is applied so phone photos come out upright.

    Returns:
        (RGB image, label describing the source)
    """
    if isinstance(source, (str, Path)):
        label = str(source)
        img = Image.open(source)
    elif isinstance(source, bytes):
        label = "<bytes>"
        img = Image.open(io.BytesIO(source))
    else:
        label = str(getattr(source, "name", "<stream>"))
        img = Image.open(source)
    img = ImageOps.exif_transpose(img)
    return img.convert("RGB"), label


def encode_jpeg(frame_rgb: np.ndarray, quality: int = 92) -> bytes:
    bio = io.BytesIO()
    Image.fromarray(frame_rgb).save(bio, format="JPEG", quality=quality)
    return bio.getvalue()


class CompareSession:
    """State of one reference-vs-capture comparison."""

    def __init__(
        self,
        recognition: RecognitionSettings | None = None,
        camera: Webcam | None = None,
        jpeg_quality: int = 92,
        capture_dir: Path | None = None,
    ):
        self.recognition = recognition or RecognitionSettings()
        self.camera = camera
        self.jpeg_quality = jpeg_quality
        self.capture_dir = capture_dir

        self.phase = Phase.IDLE
        self.models_loaded = False
        self.model_error: str | None = None
        self.is_processing = False

        self.reference: SessionImage | None = None
        self.reference_descriptor: np.ndarray | None = None
        self.captured: SessionImage | None = None
        self.captured_descriptor: np.ndarray | None = None
        self.result: MatchResult | None = None
        self.message = ""

        self._action_lock = threading.Lock()

    @classmethod
    def from_settings(cls, settings: Settings, camera: Webcam | None = None) -> "CompareSession":
        if camera is None:
            camera = Webcam.from_settings(settings.camera)
        return cls(
            recognition=settings.recognition,
            camera=camera,
            jpeg_quality=settings.camera.jpeg_quality,
            capture_dir=settings.capture_dir,
        )

    # ------------------------------------------------------------------
    # Startup
    # ------------------------------------------------------------------

    def load_models(self) -> bool:
        """Load the recognition models; on failure the session stays in loading state."""
        self.phase = Phase.LOADING_MODELS
        try:
            load_models(self.recognition.backend, self.recognition.detection_model)
        except (ModelLoadError, ValueError) as e:
            self.model_error = str(e)
            logger.error(f"Error loading models: {e}")
            return False

        self.models_loaded = True
        self.model_error = None
        self.phase = Phase.READY
        return True

    def start_camera(self) -> bool:
        if self.camera is None:
            logger.error("Error accessing webcam: no camera configured")
            return False
        try:
            self.camera.open()
        except CameraError as e:
            logger.error(f"Error accessing webcam: {e}")
            return False
        return True

    def start(self) -> None:
        self.load_models()
        self.start_camera()

    def start_in_background(self) -> threading.Thread:
        """Run start() on a daemon thread so a UI stays responsive while models load."""
        thread = threading.Thread(target=self.start, name="facecompare-start", daemon=True)
        thread.start()
        return thread

    # ------------------------------------------------------------------
    # Control state
    # ------------------------------------------------------------------

    @property
    def loading(self) -> bool:
        return not self.models_loaded

    @property
    def can_upload(self) -> bool:
        return self.models_loaded and not self.is_processing

    @property
    def can_capture(self) -> bool:
        return self.models_loaded and not self.is_processing

    @property
    def show_compare(self) -> bool:
        return self.reference is not None and self.captured is not None

    @property
    def can_compare(self) -> bool:
        return (
            self.show_compare
            and not self.is_processing
            and self.reference_descriptor is not None
            and self.captured_descriptor is not None
        )

    @property
    def show_reset(self) -> bool:
        return self.reference is not None or self.captured is not None

    def missing_inputs(self) -> list[str]:
        missing = []
        if self.reference_descriptor is None:
            missing.append("reference image")
        if self.captured_descriptor is None:
            missing.append("captured image")
        return missing

    def status(self) -> dict:
        return {
            "phase": self.phase.value,
            "models_loaded": self.models_loaded,
            "model_error": self.model_error,
            "camera_open": self.camera is not None and self.camera.is_open,
            "processing": self.is_processing,
            "reference": self.reference.source if self.reference else None,
            "reference_face": self.reference_descriptor is not None,
            "captured": self.captured.source if self.captured else None,
            "captured_face": self.captured_descriptor is not None,
            "can_upload": self.can_upload,
            "can_capture": self.can_capture,
            "show_compare": self.show_compare,
            "can_compare": self.can_compare,
            "show_reset": self.show_reset,
            "message": LOADING_MODELS if self.loading and not self.message else self.message,
        }

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    def _begin(self, phase: Phase) -> bool:
        if not self._action_lock.acquire(blocking=False):
            logger.warning(f"Ignoring {phase.value}: another action is in progress")
            return False
        self.is_processing = True
        self.phase = phase
        return True

    def _end(self, phase: Phase = Phase.READY) -> None:
        self.phase = phase
        self.is_processing = False
        self._action_lock.release()

    def _describe(self, image: Image.Image) -> np.ndarray | None:
        rec = self.recognition
        return extract_descriptor(
            np.array(image),
            backend_name=rec.backend,
            detection_model=rec.detection_model,
            encoding_model=rec.encoding_model,
            num_jitters=rec.num_jitters,
            upsample_times=rec.upsample_times,
            min_face_size=rec.min_face_size_pixels,
        )

    def upload_reference(self, source: ImageSource) -> bool:
        """
        Set the reference image and extract its descriptor.

        Returns:
            True if a face was found. Ignored (False) while models are loading
            or another action is running.
        """
        if not self.models_loaded:
            logger.debug("Upload ignored: models not loaded")
            return False
        if not self._begin(Phase.UPLOADING):
            return False

        try:
            self.result = None
            self.message = ""
            image, label = open_image(source)
            self.reference = SessionImage(label, image)
            self.reference_descriptor = None

            descriptor = self._describe(image)
            if descriptor is None:
                logger.error("No face detected in the reference image")
                self.message = NO_FACE_REFERENCE
                return False

            self.reference_descriptor = descriptor
            logger.info("Reference face descriptor extracted")
            return True
        except Exception as e:
            logger.error(f"Error processing reference image: {e}")
            self.message = REFERENCE_ERROR
            return False
        finally:
            self._end()

    def capture_frame(self) -> bool:
        """
        Capture the current webcam frame and extract its descriptor.

        Returns:
            True if a face was found. Ignored (False) while models are loading
            or another action is running.
        """
        if not self.models_loaded:
            logger.debug("Capture ignored: models not loaded")
            return False
        if not self._begin(Phase.CAPTURING):
            return False

        try:
            self.result = None
            self.message = ""
            if self.camera is None:
                raise CameraError("No camera configured")
            frame = self.camera.read_frame()

            # Detect on the JPEG that is previewed, not the raw frame
            jpeg = encode_jpeg(frame, self.jpeg_quality)
            image = Image.open(io.BytesIO(jpeg)).convert("RGB")
            self.captured = SessionImage("webcam", image, jpeg)
            self.captured_descriptor = None
            self._save_capture(jpeg)

            return self._describe_captured(image)
        except Exception as e:
            logger.error(f"Error processing captured image: {e}")
            self.message = CAPTURE_ERROR
            return False
        finally:
            self._end()

    def set_captured(self, source: ImageSource) -> bool:
        """Use an image file in place of a webcam capture."""
        if not self.models_loaded:
            logger.debug("Capture ignored: models not loaded")
            return False
        if not self._begin(Phase.CAPTURING):
            return False

        try:
            self.result = None
            self.message = ""
            image, label = open_image(source)
            self.captured = SessionImage(label, image)
            self.captured_descriptor = None

            return self._describe_captured(image)
        except Exception as e:
            logger.error(f"Error processing captured image: {e}")
            self.message = CAPTURE_ERROR
            return False
        finally:
            self._end()

    def _describe_captured(self, image: Image.Image) -> bool:
        descriptor = self._describe(image)
        if descriptor is None:
            logger.error("No face detected in captured image")
            self.message = NO_FACE_CAPTURED
            return False
        self.captured_descriptor = descriptor
        logger.info("Captured face descriptor extracted")
        return True

    def _save_capture(self, jpeg: bytes) -> None:
        if self.capture_dir is None:
            return
        stamp = time.strftime("%Y%m%d-%H%M%S")
        path = self.capture_dir / f"capture-{stamp}-{int(time.time() * 1000) % 1000:03d}.jpg"
        try:
            path.write_bytes(jpeg)
            logger.info(f"Saved capture to {path}")
        except OSError as e:
            logger.warning(f"Could not save capture to {path}: {e}")

    def compare(self) -> MatchResult | None:
        """
        Compare the reference and captured descriptors.

        Returns:
            The MatchResult, or None when a descriptor is missing or another
            action is running
        """
        missing = self.missing_inputs()
        if missing:
            self.result = None
            self.message = f"{MISSING_DESCRIPTORS} (missing: {', '.join(missing)})"
            logger.warning(f"Compare blocked, missing descriptor for: {', '.join(missing)}")
            return None
        if not self._begin(Phase.COMPARING):
            self.message = ACTION_IN_PROGRESS
            return None

        next_phase = Phase.READY
        try:
            result = compare_descriptors(
                self.reference_descriptor,
                self.captured_descriptor,
                threshold=self.recognition.match_threshold,
            )
        except ValueError as e:
            logger.error(f"Error comparing descriptors: {e}")
            self.message = COMPARE_ERROR
            return None
        else:
            self.result = result
            self.message = result.message()
            next_phase = Phase.RESULT
            logger.info(
                f"Distance {result.distance:.4f} -> {result.similarity:.2f}% similar, "
                f"{'match' if result.matched else 'no match'} (threshold: {result.threshold})"
            )
            return result
        finally:
            self._end(next_phase)

    def reset(self) -> None:
        """Clear both images, both descriptors and the result."""
        self.reference = None
        self.reference_descriptor = None
        self.captured = None
        self.captured_descriptor = None
        self.result = None
        self.message = ""
        if self.models_loaded:
            self.phase = Phase.READY
        logger.info("Session reset")
