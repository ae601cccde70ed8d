"""
Import pipeline stages and transitions.

Upload -> Mapping -> Preview(Validating) -> Preview(Ready) -> Importing -> Complete

Transitions are a pure function of (stage, event); nothing here
touches session state.
"""

from enum import Enum
from typing import Iterable, Sequence

from exceptions import InvalidImportTransitionError
from models.bulk_import import ImportRow


class ImportStage(str, Enum):
    UPLOAD = "upload"
    MAPPING = "mapping"
    VALIDATING = "validating"
    READY = "ready"
    IMPORTING = "importing"
    COMPLETE = "complete"


class ImportEvent(str, Enum):
    FILE_LOADED = "file_loaded"
    MAPPING_CONFIRMED = "mapping_confirmed"
    VALIDATION_COMPLETED = "validation_completed"
    REVALIDATION_STARTED = "revalidation_started"
    IMPORT_STARTED = "import_started"
    IMPORT_COMPLETED = "import_completed"
    BACK_TO_MAPPING = "back_to_mapping"
    RESET = "reset"


TRANSITIONS: dict[tuple[ImportStage, ImportEvent], ImportStage] = {
    (ImportStage.UPLOAD, ImportEvent.FILE_LOADED): ImportStage.MAPPING,
    (ImportStage.MAPPING, ImportEvent.MAPPING_CONFIRMED): ImportStage.VALIDATING,
    (ImportStage.VALIDATING, ImportEvent.VALIDATION_COMPLETED): ImportStage.READY,
    # Retrying the validator re-enters Validating from Ready
    (ImportStage.READY, ImportEvent.REVALIDATION_STARTED): ImportStage.VALIDATING,
    (ImportStage.READY, ImportEvent.IMPORT_STARTED): ImportStage.IMPORTING,
    (ImportStage.IMPORTING, ImportEvent.IMPORT_COMPLETED): ImportStage.COMPLETE,
    (ImportStage.READY, ImportEvent.BACK_TO_MAPPING): ImportStage.MAPPING,
    (ImportStage.MAPPING, ImportEvent.RESET): ImportStage.UPLOAD,
    (ImportStage.VALIDATING, ImportEvent.RESET): ImportStage.UPLOAD,
    (ImportStage.READY, ImportEvent.RESET): ImportStage.UPLOAD,
    (ImportStage.COMPLETE, ImportEvent.RESET): ImportStage.UPLOAD,
}


def next_stage(stage: ImportStage, event: ImportEvent) -> ImportStage:
    """
    Apply an event to a stage.

    Raises:
        InvalidImportTransitionError: If the event is not allowed in stage
    """
    try:
        return TRANSITIONS[(stage, event)]
    except KeyError:
        raise InvalidImportTransitionError(stage.value, event.value)


def can_transition(stage: ImportStage, event: ImportEvent) -> bool:
    return (stage, event) in TRANSITIONS


def is_blocking(row: ImportRow, accepted: Iterable[str]) -> bool:
    """
    True when the row's manufacturer keeps the import from starting.

    A row blocks when its manufacturer is non-empty, was not validated
    (or validation was unavailable) and the name was not accepted as new.
    """
    manufacturer = row.manufacturer
    if not manufacturer or not manufacturer.strip():
        return False
    check = row.manufacturer_check
    if check is not None and check.manufacturer_valid:
        return False
    return manufacturer not in accepted


def blocking_rows(rows: Sequence[ImportRow], accepted: Iterable[str]) -> list[int]:
    """Row ids that block the Ready -> Importing transition."""
    accepted_names = set(accepted)
    return [row.row_id for row in rows if is_blocking(row, accepted_names)]
