"""Permission Guard - Allow/deny decisions for form entry mutations"""
from datetime import datetime
from typing import Optional

from ..domain.models import ActorContext, FormEntry, PermissionDecision
from ..domain.enums import WorkflowStatus, UserRole, EntryAction
from ..utils.logger import get_logger
from .time_gate import TimeAccessGate
from .capability_matrix import RoleCapabilityMatrix

logger = get_logger(__name__)

ADMIN_ROLES = frozenset({UserRole.SUPERADMIN, UserRole.ADMIN})


class PermissionEvaluator:
    """
    Orchestrates the time gate, the capability matrix and the override rules

    Order of checks (first match wins):
    1. SUPERADMIN / ADMIN -> allowed
    2. Entry creator -> allowed (bypasses the time gate and the matrix)
    3. Time gate denied -> denied with the gate's reason
    4. Capability matrix denied -> denied naming role, current status and target
    5. Allowed

    Pure decision logic: no I/O, only the gate's clock is read.
    """

    def __init__(
        self,
        time_gate: Optional[TimeAccessGate] = None,
        matrix: Optional[RoleCapabilityMatrix] = None
    ):
        self.time_gate = time_gate or TimeAccessGate()
        self.matrix = matrix or RoleCapabilityMatrix()

    def evaluate(
        self,
        user: ActorContext,
        entry: FormEntry,
        target_status: WorkflowStatus,
        now: Optional[datetime] = None
    ) -> PermissionDecision:
        """Decide whether ``user`` may move ``entry`` to ``target_status``"""
        decision = self._evaluate(user, entry, EntryAction.TRANSITION, target_status, now, creator_override=True)
        self._log_decision(user, entry, EntryAction.TRANSITION, target_status, decision)
        return decision

    def evaluate_delete(
        self,
        user: ActorContext,
        entry: FormEntry,
        now: Optional[datetime] = None
    ) -> PermissionDecision:
        """Same pipeline with the synthetic delete capability; creators get no override"""
        decision = self._evaluate(user, entry, EntryAction.DELETE, None, now, creator_override=False)
        self._log_decision(user, entry, EntryAction.DELETE, None, decision)
        return decision

    def can_view(self, user: ActorContext, entry: FormEntry) -> bool:
        """Admins, the creator, or anyone in the entry's department"""
        if user.role in ADMIN_ROLES:
            return True
        if entry.created_by == user.id:
            return True
        return user.department is not None and entry.department == user.department

    def _evaluate(
        self,
        user: ActorContext,
        entry: FormEntry,
        action: EntryAction,
        target_status: Optional[WorkflowStatus],
        now: Optional[datetime],
        creator_override: bool
    ) -> PermissionDecision:
        if user.role in ADMIN_ROLES:
            return PermissionDecision(allowed=True, basis="elevated_role")

        if creator_override and entry.created_by == user.id:
            return PermissionDecision(allowed=True, basis="creator_override")

        gate = self.time_gate.check(user.role, now)
        if not gate.allowed:
            return PermissionDecision(
                allowed=False,
                reason=gate.reason,
                reason_code=gate.reason_code,
                basis="time_gate"
            )

        current = entry.workflow_status or WorkflowStatus.INITIATED
        return self.matrix.check_action(user.role, action, current, target_status)

    def _log_decision(
        self,
        user: ActorContext,
        entry: FormEntry,
        action: EntryAction,
        target_status: Optional[WorkflowStatus],
        decision: PermissionDecision
    ) -> None:
        logger.info(
            f"Permission {'granted' if decision.allowed else 'denied'}: "
            f"user={user.id}, role={user.role.value}, action={action.value}, "
            f"status={entry.workflow_status.value}, "
            f"target={target_status.value if target_status else None}, basis={decision.basis}",
            extra={
                "entry_id": entry.entry_id,
                "user_id": user.id,
                "role": user.role.value,
                "action": action.value,
                "status": entry.workflow_status.value,
                "target_status": target_status.value if target_status else None,
                "reason_code": decision.reason_code.value if decision.reason_code else None,
            }
        )
