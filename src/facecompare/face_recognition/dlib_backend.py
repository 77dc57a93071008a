# descriptor extraction (face_recognition / dlib)
import logging
import threading
from types import ModuleType

import numpy as np

logger = logging.getLogger(__name__)

DESCRIPTOR_SIZE = 128


class ModelLoadError(RuntimeError):
    """Raised when the face recognition models cannot be loaded."""


# The face_recognition import itself loads the dlib weights, so it is deferred
# until load_models() and cached here.
_lock = threading.Lock()
_face_recognition: ModuleType | None = None


def models_loaded() -> bool:
    return _face_recognition is not None


def load_models(detection_model: str = "hog") -> ModuleType:
    """
    Load the dlib detector, landmark and descriptor models.

    Importing face_recognition pulls the pre-trained weights from the
    face_recognition_models package. A warm-up detection on a blank image
    makes the first real request as fast as later ones.

    Args:
        detection_model: 'hog' or 'cnn', warmed up here

    Returns:
        The loaded face_recognition module

    Raises:
        ModelLoadError: If the library or its model weights are unavailable
    """
    global _face_recognition

    if _face_recognition is None:
        with _lock:
            # Double-check locking pattern
            if _face_recognition is None:
                logger.info("Loading face recognition models...")
                try:
                    import face_recognition
                # face_recognition calls quit() when face_recognition_models is missing
                except (ImportError, SystemExit) as e:
                    raise ModelLoadError(
                        "face_recognition and face_recognition_models are required. "
                        "Install with: pip install facecompare[dlib]"
                    ) from e

                try:
                    face_recognition.face_locations(
                        np.zeros((64, 64, 3), dtype=np.uint8), model=detection_model
                    )
                except Exception as e:
                    raise ModelLoadError(f"Model warm-up failed ({detection_model}): {e}") from e

                _face_recognition = face_recognition
                logger.info("Models loaded successfully")

    return _face_recognition


def _largest(locations: list[tuple[int, int, int, int]]) -> tuple[int, int, int, int]:
    # (top, right, bottom, left)
    return max(locations, key=lambda b: (b[2] - b[0]) * (b[1] - b[3]))


def extract_descriptor(
    img_rgb: np.ndarray,
    detection_model: str = "hog",
    encoding_model: str = "large",
    num_jitters: int = 1,
    upsample_times: int = 1,
    min_face_size: int = 0,
) -> np.ndarray | None:
    """
    Detect a single face and compute its 128-d descriptor.

    When several faces are found only the largest is encoded.

    Args:
        img_rgb: Image as numpy array in RGB format (from PIL Image.open().convert("RGB"))
        detection_model: 'hog' or 'cnn'
        encoding_model: 'large' (68 landmarks) or 'small' (5 landmarks)
        num_jitters: Re-samples per face when encoding
        upsample_times: Upsampling passes while detecting
        min_face_size: Minimum face size in pixels

    Returns:
        Descriptor as float64 array, or None if no face was found

    Raises:
        ModelLoadError: If load_models() has not completed
    """
    fr = _face_recognition
    if fr is None:
        raise ModelLoadError("Models are not loaded. Call load_models() first.")

    locs = fr.face_locations(
        img_rgb, number_of_times_to_upsample=upsample_times, model=detection_model
    )
    locs = [b for b in locs if (b[2] - b[0]) >= min_face_size and (b[1] - b[3]) >= min_face_size]
    if not locs:
        return None

    if len(locs) > 1:
        logger.debug(f"{len(locs)} faces detected, using the largest")

    encs = fr.face_encodings(
        img_rgb, [_largest(locs)], num_jitters=num_jitters, model=encoding_model
    )
    if not encs:
        return None
    return np.asarray(encs[0], dtype=np.float64)
