"""Repository modules - Data access layer"""
from .mongo_client import get_database, get_collection
from .form_entry_repo import FormEntryRepository
from .folio_repo import FolioRepository
from .activity_repo import ActivityRepository

__all__ = [
    "get_database",
    "get_collection",
    "FormEntryRepository",
    "FolioRepository",
    "ActivityRepository",
]
