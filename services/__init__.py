"""
Business logic services.

Each service handles one stage or collaborator of the CSV import.
"""

from services.column_mapper import ColumnMapping, auto_map, update_mapping, has_name_column
from services.field_normalizer import normalize, normalize_row
from services.duplicate_resolver import resolve, resolve_all
from services.manufacturer_service import ManufacturerService, get_manufacturer_service
from services.switch_service import SwitchService, get_switch_service
from services.import_state_machine import ImportStage, ImportEvent, next_stage, blocking_rows
from services.import_executor import ImportExecutor
from services.import_session_service import (
    ImportSession,
    ImportSessionService,
    get_import_session_service,
)
from services.export_service import ExportService, get_export_service

__all__ = [
    "ColumnMapping",
    "auto_map",
    "update_mapping",
    "has_name_column",
    "normalize",
    "normalize_row",
    "resolve",
    "resolve_all",
    "ManufacturerService",
    "get_manufacturer_service",
    "SwitchService",
    "get_switch_service",
    "ImportStage",
    "ImportEvent",
    "next_stage",
    "blocking_rows",
    "ImportExecutor",
    "ImportSession",
    "ImportSessionService",
    "get_import_session_service",
    "ExportService",
    "get_export_service",
]
