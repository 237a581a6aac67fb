"""Workflow Transition Service - Compute the persisted state of a status change"""
from datetime import datetime
from typing import Any, Dict, Optional, Union

from ..domain.models import ActorContext, FormEntry, SignaturePayload
from ..domain.enums import WorkflowStatus
from ..domain.errors import InvalidTransitionError, PermissionDeniedError
from ..utils.logger import get_logger
from ..utils.time import Clock, utc_now
from .permission_guard import PermissionEvaluator

logger = get_logger(__name__)


def parse_status(value: Union[str, WorkflowStatus]) -> WorkflowStatus:
    """
    Parse an untrusted status value

    Accepts the wire value ("pending_quality") or the member name
    ("PENDING_QUALITY").

    Raises:
        InvalidTransitionError: If the value is not a workflow status
    """
    if isinstance(value, WorkflowStatus):
        return value
    if isinstance(value, str):
        candidate = value.strip()
        try:
            return WorkflowStatus(candidate.lower())
        except ValueError:
            if candidate.upper() in WorkflowStatus.__members__:
                return WorkflowStatus[candidate.upper()]
    raise InvalidTransitionError(
        f"Unknown workflow status: {value!r}",
        details={"allowed": [s.value for s in WorkflowStatus]}
    )


class WorkflowTransitionService:
    """
    Entry point used by the CRUD layer to change an entry's status

    Given (user, entry, target status, optional signature) it asks the
    PermissionEvaluator and, when allowed, returns the field set for the
    storage collaborator to persist. It performs no storage I/O.

    Once-only fields:
    - stage_completed_at[stage] is added only if absent
    - signature / signed_by / signed_at are set only on the first signing
    - approved_by / approved_at are set only on the first approval
    """

    def __init__(
        self,
        evaluator: Optional[PermissionEvaluator] = None,
        clock: Clock = utc_now
    ):
        self.evaluator = evaluator or PermissionEvaluator()
        self._clock = clock

    def apply_transition(
        self,
        user: ActorContext,
        entry: FormEntry,
        target_status: Union[str, WorkflowStatus],
        payload: Optional[SignaturePayload] = None,
        now: Optional[datetime] = None
    ) -> Dict[str, Any]:
        """
        Authorize and compute a status change

        Args:
            user: Acting principal
            entry: Current state of the entry
            target_status: Requested status
            payload: Signature captured for SIGNED transitions
            now: Instant of the change; defaults to the injected clock

        Returns:
            Fields to persist on the entry

        Raises:
            InvalidTransitionError: If target_status is not a workflow status
            PermissionDeniedError: If the evaluator denies the change
        """
        target = parse_status(target_status)
        now = now or self._clock()

        decision = self.evaluator.evaluate(user, entry, target, now=now)
        if not decision.allowed:
            raise PermissionDeniedError(
                decision.reason or "Operation not permitted",
                reason_code=decision.reason_code.value if decision.reason_code else None,
                details={
                    "entry_id": entry.entry_id,
                    "current_status": entry.workflow_status.value,
                    "target_status": target.value,
                    "role": user.role.value,
                }
            )

        stages = dict(entry.stage_completed_at)
        if target.value not in stages:
            stages[target.value] = now

        fields: Dict[str, Any] = {
            "workflow_status": target,
            "stage_completed_at": stages,
            "last_updated_by": user.id,
            "updated_at": now,
        }

        if target == WorkflowStatus.SIGNED and payload is not None:
            if entry.signed_at is None and entry.signature is None:
                fields["signature"] = payload.signature
                fields["signed_by"] = user.id
                fields["signed_at"] = now
            else:
                logger.info(
                    f"Entry {entry.entry_id} already signed; keeping original signature",
                    extra={"entry_id": entry.entry_id, "user_id": user.id}
                )

        if target == WorkflowStatus.APPROVED:
            if entry.approved_at is None:
                fields["approved_by"] = user.id
                fields["approved_at"] = now
            else:
                logger.info(
                    f"Entry {entry.entry_id} already approved; keeping original approver",
                    extra={"entry_id": entry.entry_id, "user_id": user.id}
                )

        logger.info(
            f"Transition computed: {entry.workflow_status.value} -> {target.value}",
            extra={
                "entry_id": entry.entry_id,
                "user_id": user.id,
                "status": entry.workflow_status.value,
                "target_status": target.value,
            }
        )
        return fields
