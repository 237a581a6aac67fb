"""Workflow Engine - Authorization, transitions and folio sequencing"""
from .time_gate import TimeAccessGate
from .capability_matrix import RoleCapabilityMatrix
from .permission_guard import PermissionEvaluator
from .transition_service import WorkflowTransitionService, parse_status
from .folio_sequencer import FolioSequencer, format_folio
from .activity_writer import ActivityWriter

__all__ = [
    "TimeAccessGate",
    "RoleCapabilityMatrix",
    "PermissionEvaluator",
    "WorkflowTransitionService",
    "parse_status",
    "FolioSequencer",
    "format_folio",
    "ActivityWriter",
]
