"""
Pydantic models for validation and serialization.
"""

from models.base import BaseSchema
from models.switch import (
    SwitchType,
    SwitchTechnology,
    ExistingSwitch,
)
from models.bulk_import import (
    DuplicateAnnotation,
    ManufacturerCheck,
    ManufacturerAnnotation,
    ImportRow,
    ImportResult,
    MappingUpdateRequest,
    RowEditRequest,
    OverwriteRequest,
    AcceptManufacturerRequest,
    FieldOption,
    ImportSessionResponse,
)

__all__ = [
    "BaseSchema",
    "SwitchType",
    "SwitchTechnology",
    "ExistingSwitch",
    "DuplicateAnnotation",
    "ManufacturerCheck",
    "ManufacturerAnnotation",
    "ImportRow",
    "ImportResult",
    "MappingUpdateRequest",
    "RowEditRequest",
    "OverwriteRequest",
    "AcceptManufacturerRequest",
    "FieldOption",
    "ImportSessionResponse",
]
