"""Domain Models - Pydantic schemas for all entities"""
from datetime import datetime
from typing import Any, Dict, FrozenSet, Mapping, Optional
from pydantic import BaseModel, Field, ConfigDict

from .enums import WorkflowStatus, UserRole, DenialReason


# ============================================================================
# Principal
# ============================================================================

class ActorContext(BaseModel):
    """Acting principal, as provided by the session collaborator"""
    model_config = ConfigDict(extra="forbid")

    id: str = Field(..., description="User ID")
    role: UserRole = Field(..., description="Role attached to the user")
    department: Optional[str] = Field(None, description="Department used for visibility scoping")
    display_name: Optional[str] = Field(None, description="User display name")


# ============================================================================
# Form Entry & Folio
# ============================================================================

class FormEntry(BaseModel):
    """One submitted instance of a form template"""
    model_config = ConfigDict(extra="ignore")

    entry_id: str = Field(..., description="Unique entry ID, immutable")
    template_id: int = Field(..., description="Template defining the field schema")
    department: str = Field(..., description="Classification used for visibility scoping")
    data: Dict[str, Any] = Field(default_factory=dict, description="Field-id to value payload, opaque to the engine")

    workflow_status: WorkflowStatus = Field(default=WorkflowStatus.INITIATED)
    stage_completed_at: Dict[str, datetime] = Field(
        default_factory=dict,
        description="Stage name to completion timestamp; append-only"
    )
    folio_number: int = Field(..., ge=1, description="Unique and increasing per template")

    created_by: str
    last_updated_by: Optional[str] = None

    # Set once by the transition that reaches SIGNED / APPROVED
    signature: Optional[str] = None
    signed_by: Optional[str] = None
    signed_at: Optional[datetime] = None
    approved_by: Optional[str] = None
    approved_at: Optional[datetime] = None

    created_at: datetime
    updated_at: Optional[datetime] = None


class FolioCounter(BaseModel):
    """Persisted last-issued folio for one template"""
    model_config = ConfigDict(extra="ignore")

    template_id: int
    last_folio_number: int = Field(..., ge=1)
    prefix: Optional[str] = None
    updated_at: Optional[datetime] = None


class SignaturePayload(BaseModel):
    """Signature captured when an entry is moved to SIGNED"""
    model_config = ConfigDict(extra="forbid")

    signature: str = Field(..., min_length=1, description="Encoded signature image or token")


# ============================================================================
# Policy Configuration
# ============================================================================

class RoleSchedule(BaseModel):
    """Weekdays (0=Sunday..6=Saturday) and hours (0-23) a role may act"""
    model_config = ConfigDict(frozen=True)

    days: FrozenSet[int]
    hours: FrozenSet[int]


class RoleCapability(BaseModel):
    """Statuses a role may act upon and the targets it may set from each"""
    model_config = ConfigDict(frozen=True)

    unrestricted: bool = False
    can_delete: bool = False
    editable_statuses: FrozenSet[WorkflowStatus] = frozenset()
    transitions_from: Mapping[WorkflowStatus, FrozenSet[WorkflowStatus]] = Field(default_factory=dict)


# ============================================================================
# Decisions
# ============================================================================

class TimeAccessResult(BaseModel):
    """Outcome of the time access gate"""
    allowed: bool
    reason: Optional[str] = None
    reason_code: Optional[DenialReason] = None
    allowed_hours_description: Optional[str] = None


class PermissionDecision(BaseModel):
    """Allow/deny decision with a human-readable reason"""
    allowed: bool
    reason: Optional[str] = None
    reason_code: Optional[DenialReason] = None
    basis: Optional[str] = Field(None, description="Rule that produced the decision")


# ============================================================================
# Activity Log
# ============================================================================

class ActivityLog(BaseModel):
    """Activity log record (append-only)"""
    model_config = ConfigDict(extra="ignore")

    activity_id: str
    user_id: str
    action: str
    resource_type: str = "form_entry"
    resource_id: str
    details: Dict[str, Any] = Field(default_factory=dict)
    timestamp: datetime
