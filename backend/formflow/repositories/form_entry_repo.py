"""Form Entry Repository - Data access for form entries"""
from typing import Any, Dict, List, Optional, Tuple
from pymongo.collection import Collection
from pymongo import DESCENDING, ReturnDocument
from pymongo.errors import DuplicateKeyError

from .mongo_client import get_collection, storage_errors, to_document
from ..domain.models import FormEntry
from ..domain.errors import FormEntryNotFoundError, ConflictingFolioError
from ..utils.logger import get_logger

logger = get_logger(__name__)

# Field groups written at most once, keyed by the field whose null-ness guards the write
ONCE_ONLY_FIELDS: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("signed_at", ("signature", "signed_by", "signed_at")),
    ("approved_at", ("approved_by", "approved_at")),
)


def split_once_only_fields(fields: Dict[str, Any]) -> List[Tuple[str, Dict[str, Any]]]:
    """Pop the once-only groups out of ``fields``; returns (guard, values) per non-empty group"""
    groups = []
    for guard, names in ONCE_ONLY_FIELDS:
        values = {name: fields.pop(name) for name in names if name in fields}
        if values:
            groups.append((guard, values))
    return groups


class FormEntryRepository:
    """Repository for form entry operations"""

    def __init__(self):
        self._entries: Collection = get_collection("form_entries")

    def create_form_entry(self, entry: FormEntry) -> FormEntry:
        """Insert a new entry; a duplicate (template_id, folio_number) is a folio conflict"""
        # Don't use mode="json" - it converts datetime to strings, breaking MongoDB sorting
        doc = to_document(entry.model_dump())
        doc["_id"] = entry.entry_id

        try:
            with storage_errors("create_form_entry"):
                self._entries.insert_one(doc)
        except DuplicateKeyError as e:
            raise ConflictingFolioError(
                f"Folio {entry.folio_number} is already assigned for template {entry.template_id}",
                details={"template_id": entry.template_id, "folio_number": entry.folio_number}
            ) from e

        logger.info(
            f"Created form entry: {entry.entry_id}",
            extra={"entry_id": entry.entry_id, "template_id": entry.template_id, "folio_number": entry.folio_number}
        )
        return entry

    def get_form_entry(self, entry_id: str) -> Optional[FormEntry]:
        """Get entry by ID"""
        with storage_errors("get_form_entry"):
            doc = self._entries.find_one({"entry_id": entry_id})
        if doc:
            doc.pop("_id", None)
            return FormEntry.model_validate(doc)
        return None

    def persist_form_entry_fields(self, entry_id: str, fields: Dict[str, Any]) -> FormEntry:
        """
        Write the field set computed by the transition service

        The field set was computed from a copy that may be stale, so the
        once-only parts are written under filters the store evaluates:
        each stage timestamp only where that stage key is absent, and the
        signature / approval groups only where their guard field is null.
        Everything else is a plain ``$set``.
        """
        fields = dict(fields)
        stages = fields.pop("stage_completed_at", None) or {}
        once_groups = split_once_only_fields(fields)

        with storage_errors("persist_form_entry_fields"):
            for stage, completed_at in stages.items():
                key = f"stage_completed_at.{stage}"
                self._entries.update_one(
                    {"entry_id": entry_id, key: {"$exists": False}},
                    {"$set": {key: completed_at}}
                )
            for guard, values in once_groups:
                self._entries.update_one(
                    {"entry_id": entry_id, guard: None},
                    {"$set": to_document(values)}
                )
            if fields:
                result = self._entries.find_one_and_update(
                    {"entry_id": entry_id},
                    {"$set": to_document(fields)},
                    return_document=ReturnDocument.AFTER
                )
            else:
                result = self._entries.find_one({"entry_id": entry_id})

        if result is None:
            raise FormEntryNotFoundError(f"Form entry {entry_id} not found")

        result.pop("_id", None)
        logger.info(f"Updated form entry: {entry_id}", extra={"entry_id": entry_id})
        return FormEntry.model_validate(result)

    def delete_form_entry(self, entry_id: str) -> None:
        """Delete an entry"""
        with storage_errors("delete_form_entry"):
            result = self._entries.delete_one({"entry_id": entry_id})
        if result.deleted_count == 0:
            raise FormEntryNotFoundError(f"Form entry {entry_id} not found")
        logger.info(f"Deleted form entry: {entry_id}", extra={"entry_id": entry_id})

    def list_form_entries(
        self,
        template_id: Optional[int] = None,
        department: Optional[str] = None,
        visible_to_user: Optional[str] = None,
        skip: int = 0,
        limit: int = 50
    ) -> List[FormEntry]:
        """
        List entries, newest first

        When ``visible_to_user`` is given, only entries created by that user
        or belonging to ``department`` are returned.
        """
        query: Dict[str, Any] = {}
        if template_id is not None:
            query["template_id"] = template_id

        if visible_to_user is not None:
            scope: List[Dict[str, Any]] = [{"created_by": visible_to_user}]
            if department:
                scope.append({"department": department})
            query["$or"] = scope
        elif department:
            query["department"] = department

        with storage_errors("list_form_entries"):
            cursor = self._entries.find(query).sort("created_at", DESCENDING).skip(skip).limit(limit)
            entries = []
            for doc in cursor:
                doc.pop("_id", None)
                entries.append(FormEntry.model_validate(doc))
        return entries
