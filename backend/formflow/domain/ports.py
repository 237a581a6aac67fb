"""Collaborator ports consumed by the workflow core.

The core never talks to MongoDB, HTTP or the session layer directly. It is
handed objects satisfying these protocols; the pymongo repositories in
``formflow.repositories`` are the production adapters and the tests use
in-memory fakes.
"""
from typing import Any, Dict, List, Optional, Protocol

from .models import ActivityLog, FormEntry, FolioCounter


class FormEntryStore(Protocol):
    """Storage contract for form entries"""

    def get_form_entry(self, entry_id: str) -> Optional[FormEntry]:
        ...

    def persist_form_entry_fields(self, entry_id: str, fields: Dict[str, Any]) -> FormEntry:
        ...

    def create_form_entry(self, entry: FormEntry) -> FormEntry:
        ...

    def delete_form_entry(self, entry_id: str) -> None:
        ...

    def list_form_entries(
        self,
        template_id: Optional[int] = None,
        department: Optional[str] = None,
        visible_to_user: Optional[str] = None,
        skip: int = 0,
        limit: int = 50
    ) -> List[FormEntry]:
        ...


class FolioStore(Protocol):
    """Storage contract for folio counters.

    ``atomic_increment_folio_counter`` must create the counter at 1 or
    increment it as one serialized operation against the store and return
    the resulting value. A read followed by a separate write does not
    satisfy this contract.
    """

    def get_folio_counter(self, template_id: int) -> Optional[FolioCounter]:
        ...

    def atomic_increment_folio_counter(self, template_id: int) -> int:
        ...


class ActivityStore(Protocol):
    """Append-only activity log storage"""

    def create_activity(self, activity: ActivityLog) -> ActivityLog:
        ...

    def get_recent_activity(self, limit: int = 10) -> List[ActivityLog]:
        ...
