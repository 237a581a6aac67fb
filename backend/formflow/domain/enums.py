"""Domain Enumerations - Workflow states, roles and actions"""
from enum import Enum
from typing import List


class WorkflowStatus(str, Enum):
    """Lifecycle state of a form entry"""
    INITIATED = "initiated"
    IN_PROGRESS = "in_progress"
    PENDING_QUALITY = "pending_quality"
    COMPLETED = "completed"
    SIGNED = "signed"
    APPROVED = "approved"
    REJECTED = "rejected"

    @property
    def is_terminal(self) -> bool:
        """APPROVED and REJECTED have no outgoing transitions"""
        return self in TERMINAL_STATUSES

    @classmethod
    def initial(cls) -> "WorkflowStatus":
        return cls.INITIATED

    @classmethod
    def happy_path(cls) -> List["WorkflowStatus"]:
        """Linear order an entry follows when nothing is rejected (introspection only, not enforced)"""
        return [
            cls.INITIATED,
            cls.IN_PROGRESS,
            cls.PENDING_QUALITY,
            cls.COMPLETED,
            cls.SIGNED,
            cls.APPROVED,
        ]


TERMINAL_STATUSES = frozenset({WorkflowStatus.APPROVED, WorkflowStatus.REJECTED})


class UserRole(str, Enum):
    """Closed set of roles attached to a user"""
    SUPERADMIN = "superadmin"
    ADMIN = "admin"
    PRODUCTION_MANAGER = "gerente_produccion"
    PRODUCTION = "produccion"
    QUALITY_MANAGER = "gerente_calidad"
    QUALITY = "calidad"
    VIEWER = "viewer"


class EntryAction(str, Enum):
    """Capabilities checked against the role matrix"""
    TRANSITION = "transition"
    DELETE = "delete"


class ActivityAction(str, Enum):
    """Activity log actions for form entries (status changes log the status value)"""
    CREATED = "created"
    DELETED = "deleted"


class DenialReason(str, Enum):
    """Machine-readable reason attached to a denied decision"""
    OUTSIDE_WORK_DAYS = "OUTSIDE_WORK_DAYS"
    OUTSIDE_WORK_HOURS = "OUTSIDE_WORK_HOURS"
    STATUS_NOT_EDITABLE = "STATUS_NOT_EDITABLE"
    TRANSITION_NOT_ALLOWED = "TRANSITION_NOT_ALLOWED"
    ADVANCEMENT_REQUIRES_ELEVATION = "ADVANCEMENT_REQUIRES_ELEVATION"
    DELETE_NOT_ALLOWED = "DELETE_NOT_ALLOWED"
