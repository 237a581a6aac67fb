"""API Routes module"""
from fastapi import APIRouter

from .form_entries import router as form_entries_router
from .form_templates import router as form_templates_router
from .users import router as users_router
from .activity import router as activity_router

# Main API router
api_router = APIRouter()

api_router.include_router(form_entries_router, prefix="/form-entries", tags=["Form Entries"])
api_router.include_router(form_templates_router, prefix="/form-templates", tags=["Form Templates"])
api_router.include_router(users_router, prefix="/users", tags=["Users"])
api_router.include_router(activity_router, prefix="/activity", tags=["Activity"])

__all__ = ["api_router"]
