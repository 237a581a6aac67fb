"""Form Entry API Routes - Capture, workflow status and deletion"""
from typing import Any, Dict, List, Optional
from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, Field

from ..deps import get_current_user_dep, get_correlation_id_dep, get_form_entry_service
from ...domain.models import ActorContext, FormEntry
from ...services.form_entry_service import FormEntryService
from ...utils.time import format_iso
from ...utils.logger import get_logger

logger = get_logger(__name__)
router = APIRouter()


# ============================================================================
# Request/Response Models
# ============================================================================

class CreateEntryRequest(BaseModel):
    """Request to capture a new form entry"""
    template_id: int = Field(..., ge=1)
    data: Dict[str, Any]
    department: Optional[str] = Field(None, max_length=100)


class UpdateStatusRequest(BaseModel):
    """Request to move an entry to another workflow status"""
    status: str = Field(..., min_length=1)
    signature: Optional[str] = Field(None, description="Required to record a signature on SIGNED")


class EntryResponse(BaseModel):
    """Form entry response"""
    entry_id: str
    template_id: int
    department: str
    data: Dict[str, Any]
    workflow_status: str
    stage_completed_at: Dict[str, str]
    folio_number: int
    created_by: str
    last_updated_by: Optional[str]
    signature: Optional[str]
    signed_by: Optional[str]
    signed_at: Optional[str]
    approved_by: Optional[str]
    approved_at: Optional[str]
    created_at: str
    updated_at: Optional[str]


class EntryListResponse(BaseModel):
    """List of entries"""
    items: List[EntryResponse]
    skip: int
    limit: int


# ============================================================================
# Helper Functions
# ============================================================================

def _entry_to_response(entry: FormEntry) -> EntryResponse:
    """Convert entry model to response"""
    return EntryResponse(
        entry_id=entry.entry_id,
        template_id=entry.template_id,
        department=entry.department,
        data=entry.data,
        workflow_status=entry.workflow_status.value,
        stage_completed_at={stage: format_iso(at) for stage, at in entry.stage_completed_at.items()},
        folio_number=entry.folio_number,
        created_by=entry.created_by,
        last_updated_by=entry.last_updated_by,
        signature=entry.signature,
        signed_by=entry.signed_by,
        signed_at=format_iso(entry.signed_at) if entry.signed_at else None,
        approved_by=entry.approved_by,
        approved_at=format_iso(entry.approved_at) if entry.approved_at else None,
        created_at=format_iso(entry.created_at),
        updated_at=format_iso(entry.updated_at) if entry.updated_at else None
    )


# ============================================================================
# Routes
# ============================================================================

@router.post("", response_model=EntryResponse, status_code=status.HTTP_201_CREATED)
async def create_entry(
    request: CreateEntryRequest,
    actor: ActorContext = Depends(get_current_user_dep),
    correlation_id: str = Depends(get_correlation_id_dep),
    service: FormEntryService = Depends(get_form_entry_service)
):
    """Capture a new entry; a folio is issued atomically for its template"""
    entry = service.create_entry(
        actor=actor,
        template_id=request.template_id,
        data=request.data,
        department=request.department
    )
    logger.info(
        f"Created entry {entry.entry_id} with folio {entry.folio_number}",
        extra={"entry_id": entry.entry_id, "template_id": entry.template_id, "user_id": actor.id}
    )
    return _entry_to_response(entry)


@router.get("", response_model=EntryListResponse)
async def list_entries(
    template_id: Optional[int] = Query(None, ge=1),
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=200),
    actor: ActorContext = Depends(get_current_user_dep),
    correlation_id: str = Depends(get_correlation_id_dep),
    service: FormEntryService = Depends(get_form_entry_service)
):
    """List entries visible to the current user"""
    entries = service.list_entries(actor, template_id=template_id, skip=skip, limit=limit)
    return EntryListResponse(items=[_entry_to_response(e) for e in entries], skip=skip, limit=limit)


@router.get("/{entry_id}", response_model=EntryResponse)
async def get_entry(
    entry_id: str,
    actor: ActorContext = Depends(get_current_user_dep),
    correlation_id: str = Depends(get_correlation_id_dep),
    service: FormEntryService = Depends(get_form_entry_service)
):
    """Get a single entry"""
    return _entry_to_response(service.get_entry(actor, entry_id))


@router.patch("/{entry_id}/status", response_model=EntryResponse)
async def update_status(
    entry_id: str,
    request: UpdateStatusRequest,
    actor: ActorContext = Depends(get_current_user_dep),
    correlation_id: str = Depends(get_correlation_id_dep),
    service: FormEntryService = Depends(get_form_entry_service)
):
    """
    Move an entry to another workflow status.

    Denials come back as 403 with the reason from the time gate or the
    capability matrix; unknown statuses come back as 400.
    """
    entry = service.transition_entry(
        actor=actor,
        entry_id=entry_id,
        target_status=request.status,
        signature=request.signature
    )
    return _entry_to_response(entry)


@router.delete("/{entry_id}")
async def delete_entry(
    entry_id: str,
    actor: ActorContext = Depends(get_current_user_dep),
    correlation_id: str = Depends(get_correlation_id_dep),
    service: FormEntryService = Depends(get_form_entry_service)
):
    """Delete an entry (privileged roles only)"""
    service.delete_entry(actor, entry_id)
    return {"message": "Form entry deleted", "entry_id": entry_id}
