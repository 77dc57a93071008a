"""
facecompare - compare a reference photo with a webcam capture.

Faces are detected and described by the face_recognition library (dlib);
this package runs the comparison session and scores two descriptors by
Euclidean distance against a 0.5 threshold.
"""

__version__ = "0.1.0"

from facecompare.config import Settings
from facecompare.session import CompareSession, Phase
from facecompare.similarity import MATCH_THRESHOLD, MatchResult, compare_descriptors

__all__ = [
    "__version__",
    "Settings",
    "CompareSession",
    "Phase",
    "MATCH_THRESHOLD",
    "MatchResult",
    "compare_descriptors",
]
