"""
Bulk import models.

Data structures for one CSV import session: per-row annotations,
the final import result, and the request/response bodies of the
import routes.
"""

from typing import Any, Optional
from pydantic import BaseModel, ConfigDict, Field

from models.base import BaseSchema


# ===================
# ROW ANNOTATIONS
# ===================

class DuplicateAnnotation(BaseModel):
    """
    Collision of an imported row with an existing switch.

    is_duplicate and existing_id are fixed once resolved; only
    overwrite may change afterwards.
    """

    model_config = ConfigDict(validate_assignment=True)

    is_duplicate: bool = Field(False, frozen=True)
    existing_id: Optional[str] = Field(
        None,
        frozen=True,
        description="ID of the matched existing switch"
    )
    overwrite: bool = Field(
        False,
        description="Update the existing switch instead of skipping the row"
    )


class ManufacturerCheck(BaseModel):
    """Validator verdict for one manufacturer name."""

    is_valid: bool
    suggestions: list[str] = Field(default_factory=list)
    verified_name: Optional[str] = Field(
        None,
        description="Canonical spelling when the name (or an alias) matched"
    )


class ManufacturerAnnotation(BaseModel):
    """Manufacturer validation state attached to a row."""

    manufacturer_valid: bool
    manufacturer_suggestions: list[str] = Field(default_factory=list)
    verified_name: Optional[str] = None
    validation_unavailable: bool = Field(
        False,
        description="Validator could not be reached; name is treated as unvalidated"
    )

    @classmethod
    def from_check(cls, check: ManufacturerCheck) -> "ManufacturerAnnotation":
        return cls(
            manufacturer_valid=check.is_valid,
            manufacturer_suggestions=list(check.suggestions),
            verified_name=check.verified_name,
        )

    @classmethod
    def unavailable(cls) -> "ManufacturerAnnotation":
        return cls(manufacturer_valid=False, validation_unavailable=True)


class ImportRow(BaseModel):
    """
    One normalized record in the preview.

    values holds only the fields that are present; name is always
    among them.
    """

    row_id: int = Field(..., ge=0, description="Stable row identifier within the session")
    source_line: int = Field(..., ge=1, description="1-based data row number in the uploaded file")
    values: dict[str, Any] = Field(default_factory=dict)
    duplicate: DuplicateAnnotation = Field(default_factory=DuplicateAnnotation)
    manufacturer_check: Optional[ManufacturerAnnotation] = None

    @property
    def name(self) -> str:
        return self.values.get("name") or ""

    @property
    def manufacturer(self) -> Optional[str]:
        return self.values.get("manufacturer")


# ===================
# RESULT
# ===================

class ImportResult(BaseModel):
    """
    Outcome of one import run.

    Invariant: success_count + skipped_count + len(error_messages) == total_rows.
    """

    model_config = ConfigDict(frozen=True)

    success_count: int = Field(0, ge=0)
    skipped_count: int = Field(0, ge=0)
    error_messages: tuple[str, ...] = Field(default_factory=tuple)
    total_rows: int = Field(0, ge=0)

    @property
    def error_count(self) -> int:
        return len(self.error_messages)


# ===================
# REQUESTS
# ===================

class MappingUpdateRequest(BaseSchema):
    """Override the field a column maps to (null = skip the column)."""

    column: int = Field(..., ge=0, description="0-based column index")
    field: Optional[str] = Field(None, description="Switch field key, or null to skip")


class RowEditRequest(BaseSchema):
    """Commit an edited cell value for one preview row."""

    field: str = Field(..., min_length=1, description="Switch field key")
    value: Optional[str] = Field(None, description="Raw value, normalized like a CSV cell")


class OverwriteRequest(BaseSchema):
    """Choose whether a duplicate row updates the existing switch."""

    overwrite: bool


class AcceptManufacturerRequest(BaseSchema):
    """Accept an unrecognized manufacturer name as new for this session."""

    name: str = Field(..., min_length=1, max_length=100)


# ===================
# RESPONSES
# ===================

class FieldOption(BaseSchema):
    """Selectable target field for column mapping."""

    key: str
    label: str
    required: bool = False


class ImportSessionResponse(BaseSchema):
    """Snapshot of an import session for the client."""

    session_id: str
    stage: str
    header: list[str]
    column_mapping: dict[int, Optional[str]]
    fields: list[FieldOption]
    has_name_column: bool
    rows: list[ImportRow] = Field(default_factory=list)
    dropped_row_count: int = Field(0, description="Data rows dropped for lacking a name")
    duplicate_count: int = 0
    blocking_rows: list[int] = Field(default_factory=list)
    accepted_manufacturers: list[str] = Field(default_factory=list)
    validation_unavailable: bool = False
    progress: int = Field(0, ge=0, le=100)
    result: Optional[ImportResult] = None
