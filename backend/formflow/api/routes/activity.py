"""Activity API Routes - Recent activity for administrators"""
from typing import Any, Dict, List
from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from ..deps import get_current_user_dep, get_form_entry_service
from ...domain.models import ActorContext
from ...services.form_entry_service import FormEntryService
from ...utils.time import format_iso

router = APIRouter()


class ActivityResponse(BaseModel):
    """Activity log record"""
    activity_id: str
    user_id: str
    action: str
    resource_type: str
    resource_id: str
    details: Dict[str, Any]
    timestamp: str


@router.get("", response_model=List[ActivityResponse])
async def get_recent_activity(
    limit: int = Query(10, ge=1, le=100),
    actor: ActorContext = Depends(get_current_user_dep),
    service: FormEntryService = Depends(get_form_entry_service)
):
    """Most recent activity (SUPERADMIN / ADMIN)"""
    return [
        ActivityResponse(
            activity_id=a.activity_id,
            user_id=a.user_id,
            action=a.action,
            resource_type=a.resource_type,
            resource_id=a.resource_id,
            details=a.details,
            timestamp=format_iso(a.timestamp)
        )
        for a in service.recent_activity(actor, limit=limit)
    ]
