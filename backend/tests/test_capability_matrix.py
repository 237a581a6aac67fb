"""Tests for the role capability matrix"""
import pytest

from formflow.domain.enums import UserRole, WorkflowStatus, EntryAction, DenialReason
from formflow.domain.models import RoleCapability
from formflow.engine.capability_matrix import (
    ADVANCEMENT_REQUIRES_ELEVATION, DEFAULT_CAPABILITIES, RoleCapabilityMatrix, stage_bound
)

ELEVATED = [UserRole.SUPERADMIN, UserRole.ADMIN, UserRole.PRODUCTION_MANAGER, UserRole.QUALITY_MANAGER]


class TestDefaultPolicy:

    @pytest.mark.parametrize("role", ELEVATED)
    def test_elevated_roles_unrestricted(self, matrix, role):
        for current in WorkflowStatus:
            for target in WorkflowStatus:
                assert matrix.check_transition(role, current, target).allowed
        assert matrix.editable_statuses(role) == frozenset(WorkflowStatus)

    def test_production_self_loop_only(self, matrix):
        assert matrix.editable_statuses(UserRole.PRODUCTION) == {WorkflowStatus.IN_PROGRESS}
        assert matrix.allowed_targets(UserRole.PRODUCTION, WorkflowStatus.IN_PROGRESS) == {WorkflowStatus.IN_PROGRESS}
        assert matrix.allowed_targets(UserRole.PRODUCTION, WorkflowStatus.PENDING_QUALITY) == frozenset()

    def test_quality_self_loop_only(self, matrix):
        decision = matrix.check_transition(
            UserRole.QUALITY, WorkflowStatus.PENDING_QUALITY, WorkflowStatus.PENDING_QUALITY
        )
        assert decision.allowed

    def test_advancement_is_named_policy(self, matrix):
        decision = matrix.check_transition(
            UserRole.PRODUCTION, WorkflowStatus.IN_PROGRESS, WorkflowStatus.PENDING_QUALITY
        )
        assert not decision.allowed
        assert decision.reason_code == DenialReason.ADVANCEMENT_REQUIRES_ELEVATION
        assert decision.basis == ADVANCEMENT_REQUIRES_ELEVATION
        assert "produccion" in decision.reason
        assert "in_progress" in decision.reason
        assert "pending_quality" in decision.reason

    def test_status_outside_stage_not_editable(self, matrix):
        decision = matrix.check_transition(
            UserRole.QUALITY, WorkflowStatus.IN_PROGRESS, WorkflowStatus.IN_PROGRESS
        )
        assert not decision.allowed
        assert decision.reason_code == DenialReason.STATUS_NOT_EDITABLE

    def test_viewer_never_mutates(self, matrix):
        assert matrix.editable_statuses(UserRole.VIEWER) == frozenset()
        for current in WorkflowStatus:
            for target in WorkflowStatus:
                decision = matrix.check_transition(UserRole.VIEWER, current, target)
                assert not decision.allowed
                assert decision.reason_code == DenialReason.STATUS_NOT_EDITABLE

    @pytest.mark.parametrize("role", list(UserRole))
    def test_lookup_rule_for_every_role(self, matrix, role):
        """allowed iff current is editable AND target is listed for current"""
        capability = DEFAULT_CAPABILITIES[role]
        for current in WorkflowStatus:
            for target in WorkflowStatus:
                expected = capability.unrestricted or (
                    current in capability.editable_statuses
                    and target in capability.transitions_from.get(current, frozenset())
                )
                assert matrix.check_transition(role, current, target).allowed is expected


class TestDeleteCapability:

    @pytest.mark.parametrize("role", ELEVATED)
    def test_elevated_roles_may_delete(self, matrix, role):
        assert matrix.check_action(role, EntryAction.DELETE, WorkflowStatus.APPROVED).allowed

    @pytest.mark.parametrize("role", [UserRole.PRODUCTION, UserRole.QUALITY, UserRole.VIEWER])
    def test_other_roles_may_not_delete(self, matrix, role):
        decision = matrix.check_action(role, EntryAction.DELETE, WorkflowStatus.IN_PROGRESS)
        assert not decision.allowed
        assert decision.reason_code == DenialReason.DELETE_NOT_ALLOWED

    def test_transition_action_requires_target(self, matrix):
        with pytest.raises(ValueError):
            matrix.check_action(UserRole.ADMIN, EntryAction.TRANSITION, WorkflowStatus.INITIATED)


class TestCustomMatrix:

    def test_missing_role_rejected(self):
        with pytest.raises(ValueError, match="No capabilities"):
            RoleCapabilityMatrix({UserRole.ADMIN: RoleCapability(unrestricted=True)})

    def test_plain_denial_without_elevation_policy(self):
        capabilities = dict(DEFAULT_CAPABILITIES)
        capabilities[UserRole.PRODUCTION] = RoleCapability(
            editable_statuses=frozenset({WorkflowStatus.IN_PROGRESS}),
            transitions_from={
                WorkflowStatus.IN_PROGRESS: frozenset({WorkflowStatus.IN_PROGRESS, WorkflowStatus.PENDING_QUALITY})
            },
        )
        matrix = RoleCapabilityMatrix(capabilities)

        assert matrix.check_transition(
            UserRole.PRODUCTION, WorkflowStatus.IN_PROGRESS, WorkflowStatus.PENDING_QUALITY
        ).allowed
        decision = matrix.check_transition(
            UserRole.PRODUCTION, WorkflowStatus.IN_PROGRESS, WorkflowStatus.APPROVED
        )
        assert decision.reason_code == DenialReason.TRANSITION_NOT_ALLOWED

    def test_capabilities_are_frozen(self):
        capability = stage_bound(WorkflowStatus.IN_PROGRESS)
        with pytest.raises(Exception):
            capability.can_delete = True
