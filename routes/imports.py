"""
CSV import API routes.

One import session per upload; the client walks it through
Mapping -> Preview -> Importing -> Complete.
"""

from fastapi import APIRouter, Depends, File, Header, UploadFile
from fastapi.responses import JSONResponse, Response
import structlog

from models.bulk_import import (
    AcceptManufacturerRequest,
    ImportRow,
    ImportSessionResponse,
    MappingUpdateRequest,
    OverwriteRequest,
    RowEditRequest,
)
from services.export_service import TEMPLATE_FILENAME, build_template_csv
from services.import_session_service import get_import_session_service
from exceptions import AppError, ValidationError

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/imports", tags=["Imports"])


def get_owner_id(x_user_id: str = Header(..., min_length=1)) -> str:
    """Owner of the import, from the X-User-Id header."""
    return x_user_id


# ===================
# EXCEPTION HANDLER
# ===================

def handle_error(e: Exception) -> JSONResponse:
    """Convert exception to JSON response."""
    if isinstance(e, AppError):
        return JSONResponse(
            status_code=e.status_code,
            content=e.to_dict()
        )
    logger.error("unexpected_error", error=str(e), type=type(e).__name__)
    return JSONResponse(
        status_code=500,
        content={
            "error": {
                "code": "INTERNAL_ERROR",
                "message": "An unexpected error occurred"
            }
        }
    )


# ===================
# UPLOAD
# ===================

@router.get("/template")
async def download_template():
    """CSV template: catalog headers plus one example row."""
    return Response(
        content=build_template_csv(),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{TEMPLATE_FILENAME}"'}
    )


@router.post("", response_model=ImportSessionResponse, status_code=201)
async def upload_csv(
    file: UploadFile = File(...),
    owner_id: str = Depends(get_owner_id)
):
    """
    Upload a CSV file and start an import session.

    The header row is auto-mapped; the session starts in Mapping.
    """
    try:
        _require_csv(file)
        contents = await file.read()

        service = get_import_session_service()
        session = service.start(owner_id, contents)

        logger.info(
            "import_upload_received",
            session_id=session.session_id,
            filename=file.filename,
            size=len(contents)
        )

        return service.to_response(session)

    except Exception as e:
        return handle_error(e)


@router.post("/{session_id}/file", response_model=ImportSessionResponse)
async def upload_csv_into_session(
    session_id: str,
    file: UploadFile = File(...),
    owner_id: str = Depends(get_owner_id)
):
    """Upload a new file into a session that was reset."""
    try:
        _require_csv(file)
        contents = await file.read()

        service = get_import_session_service()
        session = service.load_file(session_id, owner_id, contents)
        return service.to_response(session)

    except Exception as e:
        return handle_error(e)


def _require_csv(file: UploadFile) -> None:
    filename = (file.filename or "").lower()
    if not filename.endswith(".csv"):
        raise ValidationError(
            "Please upload a .csv file",
            code="INVALID_FILE_TYPE",
            details={"filename": file.filename}
        )


# ===================
# SESSION
# ===================

@router.get("/{session_id}", response_model=ImportSessionResponse)
async def get_import_session(session_id: str, owner_id: str = Depends(get_owner_id)):
    """Current stage, mapping, preview rows, progress and result."""
    try:
        service = get_import_session_service()
        return service.to_response(service.get(session_id, owner_id))
    except Exception as e:
        return handle_error(e)


@router.delete("/{session_id}", status_code=204)
async def discard_import_session(session_id: str, owner_id: str = Depends(get_owner_id)):
    """Drop the session and everything uploaded into it."""
    try:
        get_import_session_service().discard(session_id, owner_id)
        return Response(status_code=204)
    except Exception as e:
        return handle_error(e)


@router.post("/{session_id}/reset", response_model=ImportSessionResponse)
async def reset_import_session(session_id: str, owner_id: str = Depends(get_owner_id)):
    """Back to Upload (also "Import More" after completion)."""
    try:
        service = get_import_session_service()
        return service.to_response(service.reset(session_id, owner_id))
    except Exception as e:
        return handle_error(e)


# ===================
# MAPPING
# ===================

@router.put("/{session_id}/mapping", response_model=ImportSessionResponse)
async def update_column_mapping(
    session_id: str,
    data: MappingUpdateRequest,
    owner_id: str = Depends(get_owner_id)
):
    """Override the field one column maps to (field null = skip)."""
    try:
        service = get_import_session_service()
        session = service.update_mapping(session_id, owner_id, data.column, data.field)
        return service.to_response(session)
    except Exception as e:
        return handle_error(e)


@router.post("/{session_id}/confirm-mapping", response_model=ImportSessionResponse)
def confirm_column_mapping(session_id: str, owner_id: str = Depends(get_owner_id)):
    """
    Normalize rows, match duplicates and validate manufacturers.

    Returns the preview in the Ready stage.
    """
    try:
        service = get_import_session_service()
        return service.to_response(service.confirm_mapping(session_id, owner_id))
    except Exception as e:
        return handle_error(e)


@router.post("/{session_id}/back-to-mapping", response_model=ImportSessionResponse)
async def back_to_mapping(session_id: str, owner_id: str = Depends(get_owner_id)):
    """Leave the preview and adjust the column mapping."""
    try:
        service = get_import_session_service()
        return service.to_response(service.back_to_mapping(session_id, owner_id))
    except Exception as e:
        return handle_error(e)


# ===================
# PREVIEW
# ===================

@router.patch("/{session_id}/rows/{row_id}", response_model=ImportRow)
def edit_preview_row(
    session_id: str,
    row_id: int,
    data: RowEditRequest,
    owner_id: str = Depends(get_owner_id)
):
    """Commit an edited cell; the value is normalized like a CSV cell."""
    try:
        service = get_import_session_service()
        return service.edit_record(session_id, owner_id, row_id, data.field, data.value)
    except Exception as e:
        return handle_error(e)


@router.put("/{session_id}/rows/{row_id}/overwrite", response_model=ImportRow)
async def set_row_overwrite(
    session_id: str,
    row_id: int,
    data: OverwriteRequest,
    owner_id: str = Depends(get_owner_id)
):
    """Update the existing switch instead of skipping this duplicate."""
    try:
        service = get_import_session_service()
        return service.set_overwrite(session_id, owner_id, row_id, data.overwrite)
    except Exception as e:
        return handle_error(e)


@router.delete("/{session_id}/rows/{row_id}", response_model=ImportSessionResponse)
async def remove_preview_row(
    session_id: str,
    row_id: int,
    owner_id: str = Depends(get_owner_id)
):
    """Leave one row out of the import."""
    try:
        service = get_import_session_service()
        return service.to_response(service.remove_row(session_id, owner_id, row_id))
    except Exception as e:
        return handle_error(e)


@router.post("/{session_id}/manufacturers/accept", response_model=ImportSessionResponse)
async def accept_new_manufacturer(
    session_id: str,
    data: AcceptManufacturerRequest,
    owner_id: str = Depends(get_owner_id)
):
    """Accept an unrecognized manufacturer name as new."""
    try:
        service = get_import_session_service()
        session = service.accept_manufacturer(session_id, owner_id, data.name)
        return service.to_response(session)
    except Exception as e:
        return handle_error(e)


@router.post("/{session_id}/manufacturers/revalidate", response_model=ImportSessionResponse)
def revalidate_manufacturers(session_id: str, owner_id: str = Depends(get_owner_id)):
    """Validate manufacturers again after the validator was unavailable."""
    try:
        service = get_import_session_service()
        return service.to_response(service.revalidate_manufacturers(session_id, owner_id))
    except Exception as e:
        return handle_error(e)


# ===================
# IMPORT
# ===================

@router.post("/{session_id}/execute", response_model=ImportSessionResponse)
def execute_import(session_id: str, owner_id: str = Depends(get_owner_id)):
    """
    Import the preview rows.

    Runs in the threadpool; GET /{session_id} reports progress while
    this request is in flight. Refused with 409 while any row has an
    unverified manufacturer.
    """
    try:
        service = get_import_session_service()
        return service.to_response(service.run_import(session_id, owner_id))
    except Exception as e:
        return handle_error(e)
