"""
Duplicate resolver for CSV imports.

Matches imported records against the user's existing switches by
case-insensitive name. A match marks the row as a duplicate that is
skipped by default; the user may opt into overwriting it.
"""

from typing import Any, Mapping, Sequence
import structlog

from models.bulk_import import DuplicateAnnotation, ImportRow
from models.switch import ExistingSwitch
from utils.text_utils import fold_name

logger = structlog.get_logger(__name__)


def build_name_index(existing: Sequence[ExistingSwitch]) -> dict[str, str]:
    """
    Map folded name -> switch id.

    When several existing switches share a folded name the first one
    wins; later ones are ignored.
    """
    index: dict[str, str] = {}
    for switch in existing:
        index.setdefault(fold_name(switch.name), switch.id)
    return index


def resolve(
    record: Mapping[str, Any],
    existing: Sequence[ExistingSwitch]
) -> DuplicateAnnotation:
    """
    Annotate one record against the existing collection.

    Args:
        record: Normalized record (must contain name)
        existing: User's existing switches

    Returns:
        DuplicateAnnotation with overwrite=False
    """
    return _annotate(record.get("name"), build_name_index(existing))


def resolve_all(
    rows: Sequence[ImportRow],
    existing: Sequence[ExistingSwitch]
) -> list[ImportRow]:
    """
    Attach a DuplicateAnnotation to every row.

    Rows are updated in place and returned for convenience.
    """
    index = build_name_index(existing)
    duplicates = 0

    for row in rows:
        row.duplicate = _annotate(row.values.get("name"), index)
        if row.duplicate.is_duplicate:
            duplicates += 1

    logger.info(
        "duplicates_resolved",
        rows=len(rows),
        existing=len(existing),
        duplicates=duplicates
    )

    return list(rows)


def _annotate(name: Any, index: dict[str, str]) -> DuplicateAnnotation:
    existing_id = index.get(fold_name(name)) if name else None
    if existing_id is None:
        return DuplicateAnnotation(is_duplicate=False)
    return DuplicateAnnotation(is_duplicate=True, existing_id=existing_id)
