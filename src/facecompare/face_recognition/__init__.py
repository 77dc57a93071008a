"""
Face descriptor backends.

Detection, landmarks and descriptors come from the face_recognition library
(dlib); this package only selects a single face and returns its descriptor.
"""

from facecompare.face_recognition.dlib_backend import DESCRIPTOR_SIZE, ModelLoadError
from facecompare.face_recognition.factory import extract_descriptor, load_models, models_loaded

__all__ = [
    "DESCRIPTOR_SIZE",
    "ModelLoadError",
    "extract_descriptor",
    "load_models",
    "models_loaded",
]
