"""
Column mapper for CSV imports.

Maps each column index of an uploaded CSV to a switch field key, or to
None ("skip this column"). The automatic mapping is only a default;
users override individual columns before normalization runs.
"""

from typing import Optional, Sequence
import structlog

from config.switch_fields import FieldDefinition, SWITCH_FIELDS, FIELDS_BY_KEY
from exceptions import UnknownSwitchFieldError, ValidationError
from utils.text_utils import lookup_key

logger = structlog.get_logger(__name__)

# column index -> field key, None = skip
ColumnMapping = dict[int, Optional[str]]

# Keys and headers this short are too generic for substring matching
MIN_CONTAINMENT_LENGTH = 4


def match_header(
    header: str,
    field_catalog: Sequence[FieldDefinition] = SWITCH_FIELDS
) -> Optional[str]:
    """
    Resolve a single header cell to a field key.

    Pass 1 (exact): the header's lookup key equals a field's label or
    key lookup key.
    Pass 2 (containment): the first field whose key is a substring of
    the header, or whose label contains the header. Both sides must be
    at least MIN_CONTAINMENT_LENGTH characters, so "type" does not
    grab unrelated headers.

    Args:
        header: Header cell text
        field_catalog: Candidate fields in priority order

    Returns:
        Field key, or None when nothing matches
    """
    normalized = lookup_key(header)
    if not normalized:
        return None

    for candidate in field_catalog:
        if normalized in (lookup_key(candidate.label), lookup_key(candidate.key)):
            return candidate.key

    for candidate in field_catalog:
        key = lookup_key(candidate.key)
        if len(key) >= MIN_CONTAINMENT_LENGTH and key in normalized:
            return candidate.key
        if len(normalized) >= MIN_CONTAINMENT_LENGTH and normalized in lookup_key(candidate.label):
            return candidate.key

    return None


def auto_map(
    header: Sequence[str],
    field_catalog: Sequence[FieldDefinition] = SWITCH_FIELDS
) -> ColumnMapping:
    """
    Build the default column mapping for a header row.

    Each column is resolved independently; the result depends only on
    the header and the catalog.

    Args:
        header: Header row cells
        field_catalog: Candidate fields in priority order

    Returns:
        ColumnMapping with an entry for every column
    """
    mapping: ColumnMapping = {
        index: match_header(cell, field_catalog)
        for index, cell in enumerate(header)
    }

    logger.info(
        "columns_auto_mapped",
        columns=len(mapping),
        mapped=sum(1 for key in mapping.values() if key),
        has_name=has_name_column(mapping)
    )

    return mapping


def update_mapping(
    mapping: ColumnMapping,
    column: int,
    field_key: Optional[str]
) -> ColumnMapping:
    """
    Return a copy of mapping with one column overridden.

    Args:
        mapping: Current mapping
        column: 0-based column index (must exist in mapping)
        field_key: Target field key, or None to skip the column

    Raises:
        UnknownSwitchFieldError: If field_key is not in the catalog
        ValidationError: If column is not part of the mapping
    """
    if column not in mapping:
        raise ValidationError(
            f"Column {column} is not in the uploaded header",
            code="UNKNOWN_COLUMN",
            details={"column": column}
        )

    if field_key is not None and field_key not in FIELDS_BY_KEY:
        raise UnknownSwitchFieldError(field_key)

    updated = dict(mapping)
    updated[column] = field_key
    return updated


def mapped_fields(mapping: ColumnMapping) -> set[str]:
    """Field keys that at least one column maps to."""
    return {key for key in mapping.values() if key}


def has_name_column(mapping: ColumnMapping) -> bool:
    """True when some column supplies the required name field."""
    return "name" in mapped_fields(mapping)
