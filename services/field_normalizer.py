"""
Field normalizer for CSV imports.

Converts raw CSV cell strings into canonical, typed switch field
values. Every rule is idempotent: normalizing an already-normalized
value returns it unchanged, so edited preview cells can be pushed
through the same function on every commit.

Rules by field category (see config.switch_fields):

- NUMERIC: leading float token, finite and inside the field's range,
  otherwise absent. "45g" → 45.0, "abc" → None, "1e999" → None.
- CLOSED_ENUM: upper-case, whitespace/hyphen/underscore runs → "_",
  alias lookup. Unknown tokens are kept in transformed form.
  "silent linear" → "SILENT_LINEAR", "Hall Effect" → "MAGNETIC".
- DIRECTIONAL: lower-case synonym lookup, unknown values kept as given.
  "h" → "Horizontal", "off center" → "Off-Center", "n" → "North".
- UNIT_TEXT: leading number plus optional unit letters, unit
  lower-cased. "62G" / "62 g" / "62g g" → "62g".
- FREE_TEXT: surrounding quotes and whitespace removed, nothing else.

Absent values are returned as None and never stored in a record.
"""

import math
import re
from typing import Any, Optional, Union
import structlog

from config.switch_aliases import CLOSED_ENUM_TABLES, DIRECTIONAL_TABLES
from config.switch_fields import FieldCategory, FieldDefinition, FIELDS_BY_KEY
from exceptions import UnknownSwitchFieldError
from parsers.csv_tokenizer import TokenizedCSV
from services.column_mapper import ColumnMapping
from utils.text_utils import strip_quotes

logger = structlog.get_logger(__name__)

RawValue = Union[str, int, float, None]
NormalizedValue = Union[str, float, None]

_NUMBER = r"(?:\d+(?:\.\d+)?|\.\d+)"
_LEADING_FLOAT = re.compile(r"^[+-]?" + _NUMBER + r"(?:[eE][+-]?\d+)?")
_ENUM_SEPARATORS = re.compile(r"[\s_-]+")
_NUMBER_WITH_UNIT = re.compile(r"^(" + _NUMBER + r")\s*([A-Za-z]+)?")


# ===================
# CATEGORY RULES
# ===================

def normalize_numeric(raw: RawValue, definition: FieldDefinition) -> Optional[float]:
    """
    Parse a numeric field value.

    Accepts strings (leading float token, like a lenient float parser)
    or numbers. Non-finite and out-of-range results are absent.
    """
    if raw is None or isinstance(raw, bool):
        return None

    if isinstance(raw, (int, float)):
        number = float(raw)
    else:
        cleaned = strip_quotes(str(raw))
        if cleaned is None:
            return None
        match = _LEADING_FLOAT.match(cleaned)
        if not match:
            return None
        number = float(match.group(0))

    if not math.isfinite(number):
        return None

    if definition.min_value is not None and number < definition.min_value:
        return None
    if definition.max_value is not None and number > definition.max_value:
        return None

    return number


def normalize_closed_enum(value: str, field_key: str) -> str:
    """Canonicalize a type/technology token, keeping unknown tokens."""
    canonical_values, aliases = CLOSED_ENUM_TABLES[field_key]
    token = _ENUM_SEPARATORS.sub("_", value.upper())

    if token in aliases:
        return aliases[token]
    if token in canonical_values:
        return token

    # Lenient pass-through: unknown values are kept, not rejected
    logger.debug("enum_value_not_recognized", field=field_key, value=token)
    return token


def normalize_directional(value: str, field_key: str) -> str:
    """Map magnet orientation/position/polarity synonyms to display values."""
    synonyms = DIRECTIONAL_TABLES[field_key]
    canonical = synonyms.get(value.strip().lower())

    if canonical is None:
        logger.debug("directional_value_not_recognized", field=field_key, value=value)
        return value

    return canonical


def normalize_unit_text(value: str) -> str:
    """Collapse "<number> <unit>" spellings to "<number><unit>"."""
    match = _NUMBER_WITH_UNIT.match(value)
    if not match or not match.group(2):
        return value
    return f"{match.group(1)}{match.group(2).lower()}"


# ===================
# PUBLIC API
# ===================

def normalize(raw: RawValue, field_key: str) -> NormalizedValue:
    """
    Normalize one cell for a target field.

    Args:
        raw: Raw cell text (or an already-normalized value)
        field_key: Switch field key from the catalog

    Returns:
        Canonical value, or None when the field should be absent

    Raises:
        UnknownSwitchFieldError: If field_key is not in the catalog
    """
    definition = FIELDS_BY_KEY.get(field_key)
    if definition is None:
        raise UnknownSwitchFieldError(field_key)

    if definition.category == FieldCategory.NUMERIC:
        return normalize_numeric(raw, definition)

    if raw is None:
        return None

    value = strip_quotes(str(raw))
    if value is None:
        return None

    if definition.category == FieldCategory.CLOSED_ENUM:
        return normalize_closed_enum(value, field_key)
    if definition.category == FieldCategory.DIRECTIONAL:
        return normalize_directional(value, field_key)
    if definition.category == FieldCategory.UNIT_TEXT:
        return normalize_unit_text(value)

    return value


def normalize_row(cells: list[str], mapping: ColumnMapping) -> dict[str, Any]:
    """
    Build a normalized record from one data row.

    Only present fields are included. When several columns map to the
    same field, the right-most column with a present value wins.

    Args:
        cells: Tokenized data row (may be shorter than the header)
        mapping: Column index -> field key (None = skip)

    Returns:
        Dict of field key -> normalized value
    """
    record: dict[str, Any] = {}

    for index in sorted(mapping):
        field_key = mapping[index]
        if not field_key:
            continue

        value = normalize(TokenizedCSV.cell(cells, index), field_key)
        if value is not None:
            record[field_key] = value

    return record
