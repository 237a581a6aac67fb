"""Service modules - Business logic layer"""
from .form_entry_service import FormEntryService

__all__ = [
    "FormEntryService",
]
