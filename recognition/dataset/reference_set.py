"""
Reference set holder for the local matcher.

Keeps an immutable snapshot of reference entries. Loading and refreshing
build a complete new snapshot and swap it in with a single assignment, so
readers always see either the old or the new set, never a mix.
"""
import logging
import time
from typing import Any, Dict, Iterable, List, Optional, Protocol, Tuple

from pydantic import ValidationError

from ..shared.errors import DatasetError
from ..shared.schemas import ReferenceEntry, DatasetStats, DatasetUploadResult, utc_timestamp
from .builtin import get_built_in_dataset

logger = logging.getLogger(__name__)

DEFAULT_ENTRY_CONFIDENCE = 0.8


class DatasetSource(Protocol):
    """Remote store of uploaded datasets."""

    def fetch_completed(self) -> List[Dict[str, Any]]:
        """Return completed dataset rows as dicts with dataset_id and metadata."""
        ...

    def save_dataset(self, dataset_id: str, dataset_type: str, uploaded_by: str,
                     metadata: Dict[str, Any]) -> None:
        """Persist a completed dataset row."""
        ...


def entries_from_dataset(dataset_id: str, metadata: Optional[Dict[str, Any]]) -> List[ReferenceEntry]:
    """
    Convert the items of one stored dataset into reference entries.

    Args:
        dataset_id: Identifier of the stored dataset
        metadata: Dataset metadata holding a "data" list of items

    Returns:
        Valid entries; malformed items are skipped with a warning
    """
    if not metadata or not isinstance(metadata.get("data"), list):
        return []

    entries = []
    seen_ids = set()
    for index, item in enumerate(metadata["data"]):
        if not isinstance(item, dict) or not item.get("label"):
            logger.warning(f"Skipping unlabeled item {index} in dataset {dataset_id}")
            continue

        entry_id = f"{dataset_id}_{item.get('id') or index}"
        if entry_id in seen_ids:
            # Repeated item ids keep every item under an index-qualified id
            entry_id = f"{entry_id}_{index}"
            logger.warning(f"Duplicate item id in dataset {dataset_id}, stored as {entry_id}")

        try:
            entries.append(ReferenceEntry(
                id=entry_id,
                label=str(item["label"]).strip().lower(),
                features=item.get("features") or [],
                confidence=item.get("confidence") or DEFAULT_ENTRY_CONFIDENCE,
            ))
            seen_ids.add(entry_id)
        except ValidationError as e:
            logger.warning(f"Skipping invalid item {index} in dataset {dataset_id}: {e.error_count()} errors")

    return entries


def merge_entries(base: Iterable[ReferenceEntry], extra: Iterable[ReferenceEntry]) -> List[ReferenceEntry]:
    """Merge two entry lists by id; entries in extra replace those in base."""
    merged: Dict[str, ReferenceEntry] = {}
    for entry in base:
        merged[entry.id] = entry
    for entry in extra:
        merged[entry.id] = entry
    return list(merged.values())


class ReferenceSet:
    """Read-mostly holder of the reference snapshot."""

    def __init__(self, entries: Optional[Iterable[ReferenceEntry]] = None):
        self._entries: Tuple[ReferenceEntry, ...] = tuple(
            entries if entries is not None else get_built_in_dataset()
        )
        self.is_loaded = False

    def snapshot(self) -> Tuple[ReferenceEntry, ...]:
        """Current immutable snapshot."""
        return self._entries

    def replace(self, entries: Iterable[ReferenceEntry]):
        """Swap in a new snapshot wholesale."""
        self._entries = tuple(entries)

    def load(self, store: Optional[DatasetSource] = None) -> int:
        """
        Build the snapshot from the built-in list merged with stored datasets.

        Args:
            store: Remote dataset source; None uses only the built-in list

        Returns:
            Number of entries in the new snapshot
        """
        entries = get_built_in_dataset()

        if store is not None:
            try:
                stored = []
                for row in store.fetch_completed():
                    stored.extend(entries_from_dataset(row.get("dataset_id"), row.get("metadata")))
            except Exception as e:
                if self.is_loaded:
                    logger.error(f"Error reloading stored datasets, keeping current snapshot: {e}")
                    return len(self._entries)
                logger.error(f"Error loading stored datasets, using built-in dataset: {e}")
            else:
                entries = merge_entries(entries, stored)
                self.is_loaded = True

        self.replace(entries)
        logger.info(f"Dataset loaded with {len(entries)} entries")
        return len(entries)

    def refresh(self, store: Optional[DatasetSource] = None) -> int:
        """Reload the snapshot from scratch."""
        return self.load(store)

    def upload(
        self,
        store: DatasetSource,
        items: List[Dict[str, Any]],
        filename: str,
        uploaded_by: str,
        dataset_type: str = "sign_language",
        description: str = ""
    ) -> DatasetUploadResult:
        """
        Store a new dataset and refresh the snapshot to include it.

        Args:
            store: Remote dataset source to write to
            items: Raw items ({id, label, features, confidence})
            filename: Original upload filename
            uploaded_by: User id of the uploader
            dataset_type: Dataset type tag
            description: Free-form note from the uploader

        Returns:
            DatasetUploadResult; errors are reported, not raised
        """
        dataset_id = f"dataset_{int(time.time() * 1000)}"
        metadata = {
            "filename": filename,
            "upload_date": utc_timestamp(),
            "description": description,
            "record_count": len(items),
            "data": items,
        }

        try:
            usable = entries_from_dataset(dataset_id, metadata)
            if not usable:
                raise DatasetError("Dataset contains no valid entries")

            store.save_dataset(dataset_id, dataset_type, uploaded_by, metadata)
            # Saved entries are visible even if the reload below cannot reach the store
            self.replace(merge_entries(self._entries, usable))
            self.refresh(store)
            logger.info(f"Uploaded dataset {dataset_id} with {len(usable)} entries")
            return DatasetUploadResult(success=True, dataset_id=dataset_id, entries=len(usable))

        except Exception as e:
            logger.error(f"Dataset upload error: {e}")
            return DatasetUploadResult(success=False, error=str(e))

    def stats(self) -> DatasetStats:
        """Summary statistics over the current snapshot."""
        entries = self._entries
        if not entries:
            return DatasetStats(total_signs=0, unique_labels=0, average_confidence=0.0)

        return DatasetStats(
            total_signs=len(entries),
            unique_labels=len({entry.label for entry in entries}),
            average_confidence=sum(entry.confidence for entry in entries) / len(entries),
        )
