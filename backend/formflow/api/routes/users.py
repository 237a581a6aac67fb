"""User API Routes - Current principal and schedule status"""
from typing import List, Optional
from fastapi import APIRouter, Depends
from pydantic import BaseModel

from ..deps import get_current_user_dep, get_form_entry_service
from ...domain.models import ActorContext
from ...services.form_entry_service import FormEntryService

router = APIRouter()


class TimeAccessResponse(BaseModel):
    """Whether the current user may act right now"""
    allowed: bool
    reason: Optional[str] = None
    reason_code: Optional[str] = None
    allowed_hours: Optional[str] = None
    editable_statuses: List[str] = []


@router.get("/me", response_model=ActorContext)
async def get_me(actor: ActorContext = Depends(get_current_user_dep)):
    """Current principal"""
    return actor


@router.get("/me/time-access", response_model=TimeAccessResponse)
async def get_time_access(
    actor: ActorContext = Depends(get_current_user_dep),
    service: FormEntryService = Depends(get_form_entry_service)
):
    """Evaluate the time access gate for the current user's role"""
    result = service.time_access(actor)
    return TimeAccessResponse(
        allowed=result.allowed,
        reason=result.reason,
        reason_code=result.reason_code.value if result.reason_code else None,
        allowed_hours=result.allowed_hours_description,
        editable_statuses=[status.value for status in service.editable_statuses(actor)]
    )
