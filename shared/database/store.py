"""
Dataset store backed by the datasets table.

Gives the reference set a session-per-call reader and writer so it never
holds a database session between refreshes.
"""
from typing import Any, Callable, Dict, List

from sqlalchemy.orm import Session

from .crud import dataset_crud


class DatasetStore:
    """Reads and writes stored sign datasets."""

    def __init__(self, session_factory: Callable[[], Session]):
        self.session_factory = session_factory

    def fetch_completed(self) -> List[Dict[str, Any]]:
        """Completed datasets as plain dicts."""
        db = self.session_factory()
        try:
            return [
                {"dataset_id": row.dataset_id, "metadata": row.metadata_json or {}}
                for row in dataset_crud.get_completed(db)
            ]
        finally:
            db.close()

    def save_dataset(self, dataset_id: str, dataset_type: str, uploaded_by: str,
                     metadata: Dict[str, Any]) -> None:
        """Persist a completed dataset."""
        db = self.session_factory()
        try:
            dataset_crud.create_dataset(
                db,
                dataset_id=dataset_id,
                type=dataset_type,
                uploaded_by=uploaded_by,
                metadata=metadata,
            )
        finally:
            db.close()
