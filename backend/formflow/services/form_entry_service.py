"""Form Entry Service - Wires the workflow core to storage and the activity log"""
from typing import Any, Dict, List, Optional

from ..config.settings import settings
from ..domain.models import (
    ActorContext, FormEntry, FolioCounter, SignaturePayload, TimeAccessResult, ActivityLog
)
from ..domain.enums import UserRole, WorkflowStatus, ActivityAction
from ..domain.errors import (
    PermissionDeniedError, ConflictingFolioError, StorageUnavailableError, FormEntryNotFoundError
)
from ..domain.ports import FormEntryStore
from ..engine.transition_service import WorkflowTransitionService, parse_status
from ..engine.folio_sequencer import FolioSequencer
from ..engine.activity_writer import ActivityWriter
from ..repositories.form_entry_repo import FormEntryRepository
from ..utils.idgen import generate_form_entry_id
from ..utils.time import Clock, utc_now
from ..utils.logger import get_logger

logger = get_logger(__name__)

# Roles allowed to capture new entries
CREATOR_ROLES = frozenset({
    UserRole.SUPERADMIN,
    UserRole.ADMIN,
    UserRole.PRODUCTION_MANAGER,
    UserRole.PRODUCTION,
    UserRole.QUALITY_MANAGER,
    UserRole.QUALITY,
})

ACTIVITY_VIEWER_ROLES = frozenset({UserRole.SUPERADMIN, UserRole.ADMIN})


class FormEntryService:
    """Service for form entry lifecycle operations"""

    def __init__(
        self,
        entry_repo: Optional[FormEntryStore] = None,
        sequencer: Optional[FolioSequencer] = None,
        transitions: Optional[WorkflowTransitionService] = None,
        activity: Optional[ActivityWriter] = None,
        clock: Clock = utc_now
    ):
        self.repo = entry_repo or FormEntryRepository()
        self.sequencer = sequencer or FolioSequencer()
        self.transitions = transitions or WorkflowTransitionService(clock=clock)
        self.activity = activity or ActivityWriter(clock=clock)
        self._clock = clock

    # =========================================================================
    # Creation
    # =========================================================================

    def create_entry(
        self,
        actor: ActorContext,
        template_id: int,
        data: Dict[str, Any],
        department: Optional[str] = None
    ) -> FormEntry:
        """
        Create an entry in INITIATED with a freshly issued folio

        The folio is issued before the insert; if it cannot be issued no
        entry is written. A folio conflict or storage failure is retried
        ``settings.folio_retry_attempts`` times, then surfaced.
        """
        if actor.role not in CREATOR_ROLES:
            raise PermissionDeniedError(
                f"Role {actor.role.value} cannot create form entries",
                details={"role": actor.role.value}
            )

        attempts = 1 + max(settings.folio_retry_attempts, 0)
        last_error: Optional[Exception] = None

        for attempt in range(1, attempts + 1):
            try:
                folio_number = self.sequencer.next_folio(template_id)
                now = self._clock()
                entry = FormEntry(
                    entry_id=generate_form_entry_id(),
                    template_id=template_id,
                    department=department or settings.default_department,
                    data=data,
                    workflow_status=WorkflowStatus.initial(),
                    folio_number=folio_number,
                    created_by=actor.id,
                    last_updated_by=actor.id,
                    created_at=now,
                    updated_at=now
                )
                created = self.repo.create_form_entry(entry)
                break
            except (ConflictingFolioError, StorageUnavailableError) as e:
                last_error = e
                logger.warning(
                    f"Entry creation attempt {attempt}/{attempts} failed for template {template_id}: {e}",
                    extra={"template_id": template_id, "user_id": actor.id}
                )
        else:
            raise last_error

        self.activity.record(
            user_id=actor.id,
            action=ActivityAction.CREATED.value,
            resource_id=created.entry_id,
            details={"template_id": template_id, "folio_number": created.folio_number}
        )
        return created

    # =========================================================================
    # Reads
    # =========================================================================

    def _load(self, entry_id: str) -> FormEntry:
        entry = self.repo.get_form_entry(entry_id)
        if entry is None:
            raise FormEntryNotFoundError(f"Form entry {entry_id} not found", details={"entry_id": entry_id})
        return entry

    def get_entry(self, actor: ActorContext, entry_id: str) -> FormEntry:
        """Get an entry the actor is allowed to see"""
        entry = self._load(entry_id)
        if not self.transitions.evaluator.can_view(actor, entry):
            raise PermissionDeniedError(
                "Not authorized to view this entry",
                details={"entry_id": entry_id}
            )
        return entry

    def list_entries(
        self,
        actor: ActorContext,
        template_id: Optional[int] = None,
        skip: int = 0,
        limit: int = 50
    ) -> List[FormEntry]:
        """Admins see everything; others see their own entries and their department's"""
        if actor.role in (UserRole.SUPERADMIN, UserRole.ADMIN):
            return self.repo.list_form_entries(template_id=template_id, skip=skip, limit=limit)
        return self.repo.list_form_entries(
            template_id=template_id,
            department=actor.department,
            visible_to_user=actor.id,
            skip=skip,
            limit=limit
        )

    # =========================================================================
    # Workflow
    # =========================================================================

    def transition_entry(
        self,
        actor: ActorContext,
        entry_id: str,
        target_status: str,
        signature: Optional[str] = None
    ) -> FormEntry:
        """Authorize, compute and persist a status change, then log it"""
        target = parse_status(target_status)
        entry = self._load(entry_id)

        payload = SignaturePayload(signature=signature) if signature else None
        fields = self.transitions.apply_transition(actor, entry, target, payload=payload)
        updated = self.repo.persist_form_entry_fields(entry_id, fields)

        self.activity.record(
            user_id=actor.id,
            action=target.value,
            resource_id=entry_id,
            details={
                "template_id": entry.template_id,
                "folio_number": entry.folio_number,
                "from_status": entry.workflow_status.value,
                "to_status": target.value,
            }
        )
        return updated

    def delete_entry(self, actor: ActorContext, entry_id: str) -> None:
        """Delete an entry; only roles holding the delete capability"""
        entry = self._load(entry_id)
        decision = self.transitions.evaluator.evaluate_delete(actor, entry, now=self._clock())
        if not decision.allowed:
            raise PermissionDeniedError(
                decision.reason or "Operation not permitted",
                reason_code=decision.reason_code.value if decision.reason_code else None,
                details={"entry_id": entry_id, "role": actor.role.value}
            )

        self.repo.delete_form_entry(entry_id)
        self.activity.record(
            user_id=actor.id,
            action=ActivityAction.DELETED.value,
            resource_id=entry_id,
            details={"template_id": entry.template_id, "folio_number": entry.folio_number}
        )

    def time_access(self, actor: ActorContext) -> TimeAccessResult:
        """Time gate result for the actor's role, right now"""
        return self.transitions.evaluator.time_gate.check(actor.role, self._clock())

    def editable_statuses(self, actor: ActorContext) -> List[WorkflowStatus]:
        """Statuses in which the actor's role may edit an entry, in workflow order"""
        editable = self.transitions.evaluator.matrix.editable_statuses(actor.role)
        return [status for status in WorkflowStatus if status in editable]

    # =========================================================================
    # Folios & Activity
    # =========================================================================

    def next_folio_preview(self, template_id: int, template_name: Optional[str] = None) -> Dict[str, Any]:
        """Folio the next entry of this template would receive (not reserved)"""
        next_number, formatted = self.sequencer.preview_next_folio(template_id, template_name=template_name)
        return {
            "template_id": template_id,
            "next_folio": next_number,
            "formatted_folio": formatted,
        }

    def folio_counter(self, template_id: int) -> FolioCounter:
        return self.sequencer.get_counter(template_id)

    def recent_activity(self, actor: ActorContext, limit: int = 10) -> List[ActivityLog]:
        """Recent activity; admins only"""
        if actor.role not in ACTIVITY_VIEWER_ROLES:
            raise PermissionDeniedError(
                f"Role {actor.role.value} cannot view activity",
                details={"role": actor.role.value}
            )
        return self.activity.recent(limit)
