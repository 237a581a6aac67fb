"""Role Capability Matrix - Which statuses a role may edit and where it may move them"""
from types import MappingProxyType
from typing import Mapping, Optional

from ..domain.enums import WorkflowStatus, UserRole, EntryAction, DenialReason
from ..domain.models import RoleCapability, PermissionDecision

# Policy name for line roles: they edit content while the entry sits in their
# stage, but only an elevated role may advance the status.
ADVANCEMENT_REQUIRES_ELEVATION = "advancement_requires_elevation"

UNRESTRICTED = RoleCapability(unrestricted=True, can_delete=True)
READ_ONLY = RoleCapability()


def stage_bound(status: WorkflowStatus) -> RoleCapability:
    """Capability for a line role pinned to one stage (self-loop only)"""
    return RoleCapability(
        editable_statuses=frozenset({status}),
        transitions_from={status: frozenset({status})},
    )


DEFAULT_CAPABILITIES: Mapping[UserRole, RoleCapability] = MappingProxyType({
    UserRole.SUPERADMIN: UNRESTRICTED,
    UserRole.ADMIN: UNRESTRICTED,
    UserRole.PRODUCTION_MANAGER: UNRESTRICTED,
    UserRole.QUALITY_MANAGER: UNRESTRICTED,
    UserRole.PRODUCTION: stage_bound(WorkflowStatus.IN_PROGRESS),
    UserRole.QUALITY: stage_bound(WorkflowStatus.PENDING_QUALITY),
    UserRole.VIEWER: READ_ONLY,
})


class RoleCapabilityMatrix:
    """
    Data-driven role policy

    Elevated roles carry a single unrestricted flag. Line and read-only
    roles carry a sparse table of editable statuses and allowed targets;
    a transition is allowed only when the current status is editable AND
    the target is listed for that status.
    """

    def __init__(self, capabilities: Optional[Mapping[UserRole, RoleCapability]] = None):
        capabilities = DEFAULT_CAPABILITIES if capabilities is None else capabilities
        missing = [r.value for r in UserRole if r not in capabilities]
        if missing:
            raise ValueError(f"No capabilities configured for roles: {missing}")
        self._capabilities: Mapping[UserRole, RoleCapability] = MappingProxyType(dict(capabilities))

    def capability_for(self, role: UserRole) -> RoleCapability:
        return self._capabilities[role]

    def editable_statuses(self, role: UserRole) -> frozenset:
        capability = self.capability_for(role)
        if capability.unrestricted:
            return frozenset(WorkflowStatus)
        return capability.editable_statuses

    def allowed_targets(self, role: UserRole, current: WorkflowStatus) -> frozenset:
        """Targets the role may set while the entry is in ``current``"""
        capability = self.capability_for(role)
        if capability.unrestricted:
            return frozenset(WorkflowStatus)
        if current not in capability.editable_statuses:
            return frozenset()
        return capability.transitions_from.get(current, frozenset())

    def check_transition(
        self,
        role: UserRole,
        current: WorkflowStatus,
        target: WorkflowStatus
    ) -> PermissionDecision:
        """Look up ``target in transitions_from[current] and current in editable_statuses``"""
        capability = self.capability_for(role)
        if capability.unrestricted:
            return PermissionDecision(allowed=True, basis="capability_matrix")

        if current not in capability.editable_statuses:
            return PermissionDecision(
                allowed=False,
                reason=f"Role {role.value} cannot edit entries in status {current.value}",
                reason_code=DenialReason.STATUS_NOT_EDITABLE,
                basis="capability_matrix"
            )

        if target not in self.allowed_targets(role, current):
            if self.requires_elevation(role, current, target):
                return PermissionDecision(
                    allowed=False,
                    reason=(
                        f"Transition from {current.value} to {target.value} is not allowed "
                        f"for role {role.value}: advancement requires elevation"
                    ),
                    reason_code=DenialReason.ADVANCEMENT_REQUIRES_ELEVATION,
                    basis=ADVANCEMENT_REQUIRES_ELEVATION
                )
            return PermissionDecision(
                allowed=False,
                reason=f"Transition from {current.value} to {target.value} is not allowed for role {role.value}",
                reason_code=DenialReason.TRANSITION_NOT_ALLOWED,
                basis="capability_matrix"
            )

        return PermissionDecision(allowed=True, basis="capability_matrix")

    def requires_elevation(self, role: UserRole, current: WorkflowStatus, target: WorkflowStatus) -> bool:
        """True when a stage-bound role tries to move an entry out of its own stage"""
        capability = self.capability_for(role)
        if capability.unrestricted:
            return False
        allowed = capability.transitions_from.get(current, frozenset())
        return current in capability.editable_statuses and allowed == {current} and target != current

    def check_action(
        self,
        role: UserRole,
        action: EntryAction,
        current: WorkflowStatus,
        target: Optional[WorkflowStatus] = None
    ) -> PermissionDecision:
        """Dispatch on the requested capability"""
        if action == EntryAction.DELETE:
            if self.capability_for(role).can_delete:
                return PermissionDecision(allowed=True, basis="capability_matrix")
            return PermissionDecision(
                allowed=False,
                reason=f"Role {role.value} cannot delete entries in status {current.value}",
                reason_code=DenialReason.DELETE_NOT_ALLOWED,
                basis="capability_matrix"
            )
        if target is None:
            raise ValueError("A target status is required for transition checks")
        return self.check_transition(role, current, target)
