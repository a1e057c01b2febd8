"""
Unit tests for the reference set, stored datasets and feature extraction.
"""
import pytest

from recognition.dataset.builtin import get_built_in_dataset, BUILT_IN_SIGNS
from recognition.dataset.features import extract_image_features
from recognition.dataset.reference_set import ReferenceSet, entries_from_dataset, merge_entries
from recognition.shared.schemas import ReferenceEntry
from shared.database.config import build_engine, build_session_factory, create_tables
from shared.database.store import DatasetStore


class FakeStore:
    """In-memory dataset store."""

    def __init__(self, rows=None, fail_fetch=False, fail_save=False):
        self.rows = list(rows or [])
        self.fail_fetch = fail_fetch
        self.fail_save = fail_save

    def fetch_completed(self):
        if self.fail_fetch:
            raise ConnectionError("store unavailable")
        return list(self.rows)

    def save_dataset(self, dataset_id, dataset_type, uploaded_by, metadata):
        if self.fail_save:
            raise ConnectionError("store unavailable")
        self.rows.append({"dataset_id": dataset_id, "metadata": metadata})


def stored_row(dataset_id, items):
    return {"dataset_id": dataset_id, "metadata": {"data": items}}


@pytest.fixture
def sqlite_store():
    """Dataset store over an in-memory SQLite database."""
    engine = build_engine("sqlite:///:memory:")
    create_tables(engine)
    return DatasetStore(build_session_factory(engine))


class TestBuiltInDataset:
    """Test the bundled signs."""

    def test_built_in_entries(self):
        """Ten signs with five features each."""
        entries = get_built_in_dataset()
        assert len(entries) == len(BUILT_IN_SIGNS) == 10
        assert all(len(entry.features) == 5 for entry in entries)
        assert entries[0].label == "hello"
        assert entries[0].confidence == 0.95

    def test_default_reference_set_uses_built_in(self):
        """A fresh reference set starts from the bundled signs."""
        reference_set = ReferenceSet()
        assert len(reference_set.snapshot()) == 10
        assert reference_set.is_loaded is False


class TestStoredEntries:
    """Test conversion of stored dataset items."""

    def test_entries_from_dataset(self):
        """Items get dataset-scoped ids and default confidence."""
        entries = entries_from_dataset("dataset_1", {"data": [
            {"id": "a", "label": "Love", "features": [0.1, 0.2, 0.3, 0.4, 0.5], "confidence": 0.9},
            {"label": "friend", "features": [0.5, 0.5, 0.5, 0.5, 0.5]},
        ]})

        assert [entry.id for entry in entries] == ["dataset_1_a", "dataset_1_1"]
        assert entries[0].label == "love"
        assert entries[1].confidence == 0.8

    def test_invalid_items_skipped(self):
        """Unlabeled items and out-of-range features are dropped."""
        entries = entries_from_dataset("dataset_2", {"data": [
            {"id": "x", "features": [0.1]},
            {"id": "y", "label": "big", "features": [1.5, 0.2]},
            {"id": "z", "label": "small", "features": [0.2, 0.2]},
            "not a dict",
        ]})

        assert [entry.id for entry in entries] == ["dataset_2_z"]

    def test_repeated_item_ids_kept(self):
        """A repeated item id gets an index-qualified entry id."""
        entries = entries_from_dataset("dataset_3", {"data": [
            {"id": "1", "label": "coffee", "features": [0.1]},
            {"id": "1", "label": "tea", "features": [0.2]},
        ]})

        assert [entry.id for entry in entries] == ["dataset_3_1", "dataset_3_1_1"]
        assert [entry.label for entry in entries] == ["coffee", "tea"]

    def test_missing_metadata(self):
        """Datasets without a data list contribute nothing."""
        assert entries_from_dataset("d", None) == []
        assert entries_from_dataset("d", {"filename": "x.csv"}) == []

    def test_merge_overrides_by_id(self):
        """Entries in the second list replace same-id entries in the first."""
        base = [ReferenceEntry(id="a", label="old", features=[0.1])]
        extra = [
            ReferenceEntry(id="a", label="new", features=[0.2]),
            ReferenceEntry(id="b", label="other", features=[0.3]),
        ]
        merged = merge_entries(base, extra)
        assert {entry.id: entry.label for entry in merged} == {"a": "new", "b": "other"}


class TestReferenceSetLoading:
    """Test loading, refreshing and stats."""

    def test_load_merges_stored_datasets(self):
        """Stored entries are added to the built-in list."""
        store = FakeStore([stored_row("dataset_1", [
            {"id": "1", "label": "family", "features": [0.3, 0.3, 0.3, 0.3, 0.3], "confidence": 0.9}
        ])])
        reference_set = ReferenceSet()

        count = reference_set.load(store)

        assert count == 11
        assert "family" in {entry.label for entry in reference_set.snapshot()}
        assert reference_set.is_loaded is True

    def test_load_without_store(self):
        """No store means only the built-in list."""
        reference_set = ReferenceSet([])
        assert reference_set.load(None) == 10

    def test_load_falls_back_on_store_error(self):
        """An unavailable store leaves the built-in list in place."""
        reference_set = ReferenceSet([])
        count = reference_set.load(FakeStore(fail_fetch=True))
        assert count == 10
        assert reference_set.snapshot()[0].label == "hello"

    def test_reload_failure_keeps_stored_entries(self):
        """A failed refresh after a good load keeps the previous snapshot."""
        store = FakeStore([stored_row("dataset_1", [
            {"id": "1", "label": "coffee", "features": [0.3, 0.6, 0.3, 0.6, 0.3]}
        ])])
        reference_set = ReferenceSet()
        reference_set.load(store)

        store.fail_fetch = True
        count = reference_set.refresh(store)

        assert count == 11
        assert "coffee" in {entry.label for entry in reference_set.snapshot()}
        assert reference_set.is_loaded is True

    def test_refresh_swaps_whole_snapshot(self):
        """A snapshot taken before a refresh is unaffected by it."""
        store = FakeStore()
        reference_set = ReferenceSet()
        before = reference_set.snapshot()

        store.rows.append(stored_row("dataset_9", [
            {"id": "1", "label": "eat", "features": [0.2, 0.2, 0.2, 0.2, 0.2]}
        ]))
        reference_set.refresh(store)
        after = reference_set.snapshot()

        assert len(before) == 10
        assert len(after) == 11
        assert before is not after

    def test_stats(self):
        """Stats count entries, distinct labels and average weight."""
        reference_set = ReferenceSet([
            ReferenceEntry(id="1", label="hello", features=[0.1], confidence=0.9),
            ReferenceEntry(id="2", label="hello", features=[0.2], confidence=0.7),
            ReferenceEntry(id="3", label="yes", features=[0.3], confidence=0.8),
        ])
        stats = reference_set.stats()

        assert stats.total_signs == 3
        assert stats.unique_labels == 2
        assert stats.average_confidence == pytest.approx(0.8)

    def test_stats_empty(self):
        """Empty sets report zeros instead of dividing by zero."""
        stats = ReferenceSet([]).stats()
        assert stats.total_signs == 0
        assert stats.average_confidence == 0.0


class TestDatasetUpload:
    """Test dataset uploads through the reference set."""

    def test_upload_success(self):
        """A valid upload is stored and merged."""
        store = FakeStore()
        reference_set = ReferenceSet()

        result = reference_set.upload(store, [
            {"id": "1", "label": "home", "features": [0.4, 0.4, 0.4, 0.4, 0.4], "confidence": 0.9}
        ], filename="signs.json", uploaded_by="admin-1", description="home signs")

        assert result.success is True
        assert result.dataset_id.startswith("dataset_")
        assert result.entries == 1
        assert store.rows[0]["metadata"]["description"] == "home signs"
        assert store.rows[0]["metadata"]["record_count"] == 1
        assert "home" in {entry.label for entry in reference_set.snapshot()}

    def test_upload_without_valid_entries(self):
        """Uploads with nothing usable are rejected without touching the store."""
        store = FakeStore()
        result = ReferenceSet().upload(store, [{"id": "1"}], filename="bad.json", uploaded_by="admin")

        assert result.success is False
        assert "no valid entries" in result.error
        assert store.rows == []

    def test_upload_store_error_reported(self):
        """Store failures are reported in the result, not raised."""
        result = ReferenceSet().upload(
            FakeStore(fail_save=True),
            [{"id": "1", "label": "go", "features": [0.1, 0.1, 0.1, 0.1, 0.1]}],
            filename="signs.json",
            uploaded_by="admin",
        )
        assert result.success is False
        assert "unavailable" in result.error

    def test_upload_visible_when_reload_fails(self):
        """Saved entries reach the snapshot even if the reload cannot read the store."""
        store = FakeStore()
        reference_set = ReferenceSet()
        reference_set.load(store)
        store.fail_fetch = True

        result = reference_set.upload(store, [
            {"id": "1", "label": "milk", "features": [0.2, 0.4, 0.2, 0.4, 0.2]}
        ], filename="milk.json", uploaded_by="admin")

        assert result.success is True
        assert "milk" in {entry.label for entry in reference_set.snapshot()}

    def test_upload_keeps_repeated_item_ids(self):
        """Items sharing an id within one upload all land in the snapshot."""
        store = FakeStore()
        reference_set = ReferenceSet()

        result = reference_set.upload(store, [
            {"id": "1", "label": "coffee", "features": [0.3, 0.3, 0.3, 0.3, 0.3]},
            {"id": "1", "label": "tea", "features": [0.4, 0.4, 0.4, 0.4, 0.4]},
        ], filename="drinks.json", uploaded_by="admin")

        labels = [entry.label for entry in reference_set.snapshot()]
        assert result.entries == 2
        assert "coffee" in labels and "tea" in labels
        assert len(reference_set.snapshot()) == 12


class TestSqlDatasetStore:
    """Test the SQLAlchemy-backed store with the reference set."""

    def test_round_trip_through_database(self, sqlite_store):
        """Uploaded datasets are read back on the next load."""
        reference_set = ReferenceSet()
        result = reference_set.upload(sqlite_store, [
            {"id": "1", "label": "school", "features": [0.6, 0.6, 0.6, 0.6, 0.6], "confidence": 0.85}
        ], filename="school.json", uploaded_by="admin")

        assert result.success is True

        fresh = ReferenceSet([])
        assert fresh.load(sqlite_store) == 11
        assert "school" in {entry.label for entry in fresh.snapshot()}

    def test_empty_database(self, sqlite_store):
        """An empty datasets table yields only the built-in list."""
        assert sqlite_store.fetch_completed() == []
        assert ReferenceSet([]).load(sqlite_store) == 10


class TestFeatureExtraction:
    """Test deterministic feature extraction."""

    def test_deterministic(self):
        """The same payload always yields the same features."""
        payload = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64
        assert extract_image_features(payload) == extract_image_features(payload)

    def test_range_and_length(self):
        """Features are normalized and sized on request."""
        features = extract_image_features("some text", length=7)
        assert len(features) == 7
        assert all(0.0 <= value < 1.0 for value in features)

    def test_stride(self):
        """Consecutive features step by 17 hundredths modulo 1."""
        features = extract_image_features("hello")
        steps = [round(value * 100) for value in features]
        for current, following in zip(steps, steps[1:]):
            assert (current + 17) % 100 == following
