"""Folio Repository - Atomic per-template folio counters"""
from typing import Optional
from pymongo.collection import Collection
from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError

from .mongo_client import get_collection, storage_errors
from ..domain.models import FolioCounter
from ..domain.errors import ConflictingFolioError
from ..utils.time import utc_now
from ..utils.logger import get_logger

logger = get_logger(__name__)

# Attempts at the upsert before giving up on a racing insert
UPSERT_ATTEMPTS = 2


class FolioRepository:
    """
    Repository for folio counters

    Counters are created and incremented with a single
    ``find_one_and_update`` ($inc + upsert), so MongoDB serializes
    concurrent callers on the same template document. Two callers can
    both attempt the initial upsert; the unique index on ``template_id``
    rejects the loser with DuplicateKeyError and its retry lands on the
    now-existing document.
    """

    def __init__(self):
        self._counters: Collection = get_collection("folio_counters")

    def get_folio_counter(self, template_id: int) -> Optional[FolioCounter]:
        """Get counter for a template"""
        with storage_errors("get_folio_counter"):
            doc = self._counters.find_one({"template_id": template_id})
        if doc:
            doc.pop("_id", None)
            return FolioCounter.model_validate(doc)
        return None

    def atomic_increment_folio_counter(self, template_id: int) -> int:
        """Create the counter at 1 or increment it; returns the issued value"""
        for attempt in range(1, UPSERT_ATTEMPTS + 1):
            try:
                with storage_errors("atomic_increment_folio_counter"):
                    doc = self._counters.find_one_and_update(
                        {"template_id": template_id},
                        {
                            "$inc": {"last_folio_number": 1},
                            "$set": {"updated_at": utc_now()},
                        },
                        upsert=True,
                        return_document=ReturnDocument.AFTER
                    )
                return int(doc["last_folio_number"])
            except DuplicateKeyError:
                logger.warning(
                    f"Concurrent folio counter creation for template {template_id} (attempt {attempt})",
                    extra={"template_id": template_id}
                )

        raise ConflictingFolioError(
            f"Could not issue a folio for template {template_id}",
            details={"template_id": template_id, "attempts": UPSERT_ATTEMPTS}
        )
