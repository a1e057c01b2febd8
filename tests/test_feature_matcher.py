"""
Unit tests for the feature matcher.

Tests the similarity metric and best-match selection used by the local
recognition path.
"""
import pytest

from recognition.dataset.matcher import similarity, match
from recognition.dataset.builtin import get_built_in_dataset
from recognition.shared.schemas import ReferenceEntry


HELLO_VECTOR = [0.8, 0.9, 0.7, 0.85, 0.92]


def make_entry(entry_id: str, label: str, features, confidence: float = 1.0) -> ReferenceEntry:
    return ReferenceEntry(id=entry_id, label=label, features=features, confidence=confidence)


class TestSimilarity:
    """Test the mean-absolute-difference similarity."""

    @pytest.mark.parametrize("vector", [
        [0.0],
        [1.0, 1.0, 1.0],
        HELLO_VECTOR,
        [0.1, 0.2, 0.3, 0.4, 0.5, 0.6, 0.7],
    ])
    def test_identical_vectors(self, vector):
        """A vector is perfectly similar to itself."""
        assert similarity(vector, vector) == 1.0

    def test_known_difference(self):
        """Mean absolute difference of 0.2 gives similarity 0.8."""
        assert similarity([0.5, 0.5], [0.3, 0.7]) == pytest.approx(0.8)

    def test_bounded(self):
        """Similarity stays within [0, 1], even for opposite vectors."""
        assert similarity([0.0, 0.0, 0.0], [1.0, 1.0, 1.0]) == 0.0
        value = similarity([0.2, 0.9, 0.4], [0.7, 0.1, 0.4])
        assert 0.0 <= value <= 1.0

    def test_symmetric(self):
        """Argument order does not matter."""
        a = [0.12, 0.5, 0.93, 0.4, 0.0]
        b = [0.6, 0.25, 0.1, 0.44, 1.0]
        assert similarity(a, b) == similarity(b, a)

    def test_mismatched_length(self):
        """Vectors of different length are not comparable."""
        assert similarity([0.5, 0.5], [0.5, 0.5, 0.5]) == 0.0
        assert similarity([], [0.5]) == 0.0

    def test_empty_vectors(self):
        """Two empty vectors score 0 instead of dividing by zero."""
        assert similarity([], []) == 0.0


class TestMatch:
    """Test best-match selection."""

    def test_exact_match_on_hello(self):
        """The hello vector matches the hello entry exactly."""
        reference = [make_entry("hello_1", "hello", HELLO_VECTOR, 0.95)]
        result = match(HELLO_VECTOR, reference)

        assert result is not None
        assert result.entry.label == "hello"
        assert result.similarity == 1.0
        assert result.combined_confidence == pytest.approx(0.95)

    def test_empty_reference(self):
        """No reference entries means no match."""
        assert match(HELLO_VECTOR, []) is None
        assert match([0.1], []) is None

    def test_no_comparable_entries(self):
        """Entries of another length are skipped entirely."""
        reference = [make_entry("short", "short", [0.5, 0.5])]
        assert match(HELLO_VECTOR, reference) is None

    def test_mismatched_entries_skipped(self):
        """A comparable entry is found among mismatched ones."""
        reference = [
            make_entry("short", "short", [0.8, 0.9]),
            make_entry("hello_1", "hello", HELLO_VECTOR, 0.95),
        ]
        result = match(HELLO_VECTOR, reference)
        assert result.entry.id == "hello_1"

    def test_best_entry_selected(self):
        """The most similar entry wins, regardless of position."""
        reference = [
            make_entry("far", "far", [0.0, 0.0, 0.0]),
            make_entry("near", "near", [0.5, 0.5, 0.4]),
            make_entry("mid", "mid", [0.3, 0.3, 0.3]),
        ]
        result = match([0.5, 0.5, 0.5], reference)
        assert result.entry.id == "near"

    def test_first_entry_wins_ties(self):
        """Later entries with equal similarity do not replace the first."""
        reference = [
            make_entry("first", "same", [0.4, 0.6], 0.5),
            make_entry("second", "same", [0.6, 0.4], 0.9),
        ]
        result = match([0.5, 0.5], reference)
        assert result.entry.id == "first"
        assert result.combined_confidence == pytest.approx(0.9 * 0.5)

    def test_no_threshold_applied(self):
        """Weak matches are still reported with their low scores."""
        reference = [make_entry("weak", "weak", [1.0, 1.0], 0.5)]
        result = match([0.0, 0.1], reference)

        assert result is not None
        assert result.similarity == pytest.approx(0.05)
        assert result.combined_confidence == pytest.approx(0.025)

    def test_combined_confidence(self):
        """Combined confidence is similarity times the entry weight."""
        reference = [make_entry("e", "e", [0.5, 0.5], 0.8)]
        result = match([0.6, 0.4], reference)
        assert result.combined_confidence == pytest.approx(result.similarity * 0.8)

    def test_idempotent(self):
        """Same inputs give the same output."""
        reference = get_built_in_dataset()
        query = [0.7, 0.85, 0.75, 0.8, 0.9]
        assert match(query, reference) == match(query, reference)

    def test_empty_query(self):
        """An empty query has nothing to compare."""
        reference = [make_entry("empty", "empty", [])]
        assert match([], reference) is None
