"""Folio Sequencer - Unique, increasing folio numbers per template"""
import re
from typing import Optional, Tuple

from ..domain.models import FolioCounter
from ..domain.ports import FolioStore
from ..domain.errors import ConflictingFolioError, FolioCounterNotFoundError
from ..repositories.folio_repo import FolioRepository
from ..utils.logger import get_logger

logger = get_logger(__name__)

# Template names start with a form code, e.g. "CA-RE-01-01 - Temperature log"
FORM_CODE_PATTERN = re.compile(r"^([A-Z]{2}-[A-Z]{2}-\d{2}-\d{2})")


def format_folio(
    folio_number: int,
    template_name: Optional[str] = None,
    prefix: Optional[str] = None
) -> str:
    """
    Display form of a folio

    Examples:
        >>> format_folio(12, "CA-RE-01-01 - Temperature log")
        'CA-RE-01-01-F12'
        >>> format_folio(12, "Untitled")
        '12'
    """
    code = prefix
    if not code and template_name:
        match = FORM_CODE_PATTERN.match(template_name)
        if match:
            code = match.group(1)
    return f"{code}-F{folio_number}" if code else str(folio_number)


class FolioSequencer:
    """
    Issue folio numbers backed by a persisted counter per template

    The store performs the create-or-increment as one atomic operation;
    this class never reads the counter and writes it back separately.
    Calls for different templates touch different counters and do not
    block one another.
    """

    def __init__(self, store: Optional[FolioStore] = None):
        self.store = store or FolioRepository()

    def next_folio(self, template_id: int) -> int:
        """
        Issue the next folio for a template

        Returns:
            1 on the first call for a template, then strictly increasing values

        Raises:
            ConflictingFolioError: If the store could not resolve a race
            StorageUnavailableError: If the store is unreachable
        """
        folio_number = self.store.atomic_increment_folio_counter(template_id)
        if not isinstance(folio_number, int) or folio_number < 1:
            raise ConflictingFolioError(
                f"Folio counter for template {template_id} returned an invalid value",
                details={"template_id": template_id, "value": folio_number}
            )

        logger.info(
            f"Issued folio {folio_number} for template {template_id}",
            extra={"template_id": template_id, "folio_number": folio_number}
        )
        return folio_number

    def peek_next_folio(self, template_id: int) -> int:
        """Value the next call would return; display only, nothing is reserved"""
        return self.preview_next_folio(template_id)[0]

    def preview_next_folio(self, template_id: int, template_name: Optional[str] = None) -> Tuple[int, str]:
        """
        Next folio and its display form, nothing reserved

        A prefix stored on the counter takes precedence over the form code
        parsed from ``template_name``.
        """
        counter = self.store.get_folio_counter(template_id)
        if counter is None:
            return 1, format_folio(1, template_name=template_name)
        next_number = counter.last_folio_number + 1
        return next_number, format_folio(next_number, template_name=template_name, prefix=counter.prefix)

    def get_counter(self, template_id: int) -> FolioCounter:
        """Persisted counter, or FolioCounterNotFoundError if none was issued yet"""
        counter = self.store.get_folio_counter(template_id)
        if counter is None:
            raise FolioCounterNotFoundError(
                f"No folio has been issued for template {template_id}",
                details={"template_id": template_id}
            )
        return counter
