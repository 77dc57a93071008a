"""
Factory module that provides a unified interface to face descriptor backends.

Supported backends:
- 'face_recognition': dlib ResNet descriptors (128-d, Euclidean distance)
"""

import logging
from types import ModuleType

import numpy as np

logger = logging.getLogger(__name__)

# Module-level cache for backend instances (singleton pattern)
_backend_cache: dict[str, ModuleType] = {}


def load_models(backend_name: str = "face_recognition", detection_model: str = "hog") -> None:
    """
    Load the models of the given backend once.

    Raises:
        ModelLoadError: If the backend's models cannot be loaded
        ValueError: If the backend name is unknown
    """
    backend = _get_backend(backend_name)
    backend.load_models(detection_model)


def models_loaded(backend_name: str = "face_recognition") -> bool:
    return _get_backend(backend_name).models_loaded()


def extract_descriptor(
    img_rgb: np.ndarray,
    backend_name: str = "face_recognition",
    detection_model: str = "hog",
    encoding_model: str = "large",
    num_jitters: int = 1,
    upsample_times: int = 1,
    min_face_size: int = 0,
) -> np.ndarray | None:
    """
    Return the descriptor of the single best face in an image.

    Args:
        img_rgb: Image as numpy array in RGB format (from PIL)
        backend_name: Which backend to use
        detection_model: Face detector ('hog' or 'cnn')
        encoding_model: Landmark model for alignment ('large' or 'small')
        num_jitters: Re-samples per face when encoding
        upsample_times: Upsampling passes while detecting
        min_face_size: Minimum face size in pixels

    Returns:
        Descriptor vector, or None when no face is found
    """
    backend = _get_backend(backend_name)
    return backend.extract_descriptor(
        img_rgb,
        detection_model=detection_model,
        encoding_model=encoding_model,
        num_jitters=num_jitters,
        upsample_times=upsample_times,
        min_face_size=min_face_size,
    )


def _get_backend(backend_name: str) -> ModuleType:
    """
    Get or load the appropriate backend module.

    Uses module-level caching to avoid repeated imports.
    """
    if backend_name in _backend_cache:
        return _backend_cache[backend_name]

    backend: ModuleType
    if backend_name == "face_recognition":
        from facecompare.face_recognition import dlib_backend

        backend = dlib_backend
    else:
        raise ValueError(
            f"Unknown backend: {backend_name}. Supported backends: 'face_recognition'"
        )

    _backend_cache[backend_name] = backend
    return backend
