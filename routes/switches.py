"""
Switch collection API routes.
"""

from fastapi import APIRouter, Depends
from fastapi.responses import Response
import structlog

from routes.imports import get_owner_id, handle_error
from services.export_service import EXPORT_FILENAME, get_export_service

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/switches", tags=["Switches"])


@router.get("/export")
async def export_switches(owner_id: str = Depends(get_owner_id)):
    """Download the user's collection as CSV (re-importable)."""
    try:
        content = get_export_service().export_for_owner(owner_id)
        return Response(
            content=content,
            media_type="text/csv",
            headers={"Content-Disposition": f'attachment; filename="{EXPORT_FILENAME}"'}
        )
    except Exception as e:
        return handle_error(e)
