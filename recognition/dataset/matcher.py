"""
Feature matcher for the local recognition path.

Compares a fixed-length feature vector against the reference snapshot
using mean absolute difference.
"""
from typing import Optional, Sequence

from ..shared.schemas import ReferenceEntry, MatchResult


def similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """
    Similarity of two feature vectors.

    Args:
        a: First feature vector
        b: Second feature vector

    Returns:
        1 minus the mean absolute per-dimension difference, floored at 0.
        Vectors of different (or zero) length are not comparable and score 0.
    """
    if len(a) != len(b) or len(a) == 0:
        return 0.0

    total = sum(abs(x - y) for x, y in zip(a, b))
    return max(0.0, 1.0 - total / len(a))


def match(query: Sequence[float], reference: Sequence[ReferenceEntry]) -> Optional[MatchResult]:
    """
    Find the closest reference entry for a query vector.

    No threshold is applied here; callers decide whether the combined
    confidence is good enough.

    Args:
        query: Feature vector to look up
        reference: Reference entries to scan

    Returns:
        MatchResult for the best entry, or None when nothing is comparable
    """
    if not query:
        return None

    best_entry = None
    best_similarity = 0.0

    for entry in reference:
        if len(entry.features) != len(query):
            continue
        score = similarity(query, entry.features)
        # Strictly greater: first entry wins ties
        if best_entry is None or score > best_similarity:
            best_entry = entry
            best_similarity = score

    if best_entry is None:
        return None

    return MatchResult(
        entry=best_entry,
        similarity=best_similarity,
        combined_confidence=best_similarity * best_entry.confidence,
    )
