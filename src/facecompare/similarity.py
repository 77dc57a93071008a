"""
Descriptor comparison.

Two descriptors are the same person when their Euclidean distance is below
the match threshold. The similarity percentage is a linear map of the
distance, clamped to [0, 100].
"""

from dataclasses import dataclass

import numpy as np

MATCH_THRESHOLD = 0.5


@dataclass(frozen=True)
class MatchResult:
    """Outcome of comparing two face descriptors."""

    distance: float
    similarity: float
    threshold: float = MATCH_THRESHOLD

    @property
    def matched(self) -> bool:
        return self.distance < self.threshold

    def message(self) -> str:
        verdict = "✅ Face Match Found!" if self.matched else "❌ No Match Found"
        return f"Match Result: {self.similarity:.2f}% similar\n{verdict}"


def euclidean_distance(a, b) -> float:
    """
    Euclidean distance between two descriptors.

    Raises:
        ValueError: If either input is not a non-empty 1-D vector or the
            lengths differ
    """
    va = np.asarray(a, dtype=np.float64)
    vb = np.asarray(b, dtype=np.float64)
    if va.ndim != 1 or vb.ndim != 1:
        raise ValueError("Descriptors must be 1-D vectors")
    if va.size == 0:
        raise ValueError("Descriptors must not be empty")
    if va.shape != vb.shape:
        raise ValueError(f"Descriptor length mismatch: {va.size} != {vb.size}")
    return float(np.linalg.norm(va - vb))


def similarity_percent(distance: float) -> float:
    """Map a distance to a similarity percentage in [0, 100]."""
    return max(0.0, min(100.0, (1.0 - distance) * 100.0))


def compare_descriptors(reference, captured, threshold: float = MATCH_THRESHOLD) -> MatchResult:
    distance = euclidean_distance(reference, captured)
    return MatchResult(
        distance=distance,
        similarity=similarity_percent(distance),
        threshold=threshold,
    )
