"""Form Template API Routes - Folio information per template"""
from typing import Optional
from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from ..deps import get_current_user_dep, get_form_entry_service
from ...domain.models import ActorContext
from ...services.form_entry_service import FormEntryService
from ...utils.time import format_iso

router = APIRouter()


class NextFolioResponse(BaseModel):
    """Folio the next entry would receive"""
    template_id: int
    next_folio: int
    formatted_folio: str


class FolioCounterResponse(BaseModel):
    """Persisted folio counter"""
    template_id: int
    last_folio_number: int
    prefix: Optional[str]
    updated_at: Optional[str]


@router.get("/{template_id}/next-folio", response_model=NextFolioResponse)
async def get_next_folio(
    template_id: int,
    name: Optional[str] = Query(None, description="Template name, used to extract the form code"),
    actor: ActorContext = Depends(get_current_user_dep),
    service: FormEntryService = Depends(get_form_entry_service)
):
    """Preview the next folio. Nothing is reserved; the folio is issued on entry creation."""
    return NextFolioResponse(**service.next_folio_preview(template_id, template_name=name))


@router.get("/{template_id}/folio-counter", response_model=FolioCounterResponse)
async def get_folio_counter(
    template_id: int,
    actor: ActorContext = Depends(get_current_user_dep),
    service: FormEntryService = Depends(get_form_entry_service)
):
    """Last folio issued for the template"""
    counter = service.folio_counter(template_id)
    return FolioCounterResponse(
        template_id=counter.template_id,
        last_folio_number=counter.last_folio_number,
        prefix=counter.prefix,
        updated_at=format_iso(counter.updated_at) if counter.updated_at else None
    )
