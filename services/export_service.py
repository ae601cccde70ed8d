"""
Export service: CSV template and collection export.

Both files use the field catalog labels as the header row, in catalog
order, so either one re-imports with an exact automatic mapping.
"""

import csv
from io import StringIO
from typing import Any, Iterable, Mapping, Optional
import structlog

from config.switch_fields import SWITCH_FIELDS, TEMPLATE_SAMPLE_ROW
from services.switch_service import SwitchService, get_switch_service

logger = structlog.get_logger(__name__)

TEMPLATE_FILENAME = "switch-import-template.csv"
EXPORT_FILENAME = "switches-export.csv"


def format_cell(value: Any) -> str:
    """
    Render one stored value as CSV text.

    45.0 -> "45", 2.5 -> "2.5", None -> "".
    """
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _write_csv(rows: Iterable[Mapping[str, Any]]) -> str:
    buffer = StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow([f.label for f in SWITCH_FIELDS])
    for row in rows:
        writer.writerow([format_cell(row.get(f.key)) for f in SWITCH_FIELDS])
    return buffer.getvalue()


def build_template_csv() -> str:
    """Header row plus one example switch."""
    return _write_csv([TEMPLATE_SAMPLE_ROW])


def export_collection_csv(switches: Iterable[Mapping[str, Any]]) -> str:
    """
    Render switches as CSV.

    Every cell is quoted; embedded quotes are doubled. Columns the
    catalog doesn't know (id, user_id, timestamps) are left out.
    """
    return _write_csv(switches)


class ExportService:
    """Collection export for one owner."""

    def __init__(self, switch_service: Optional[SwitchService] = None):
        self.switches = switch_service or get_switch_service()

    def export_for_owner(self, owner_id: str) -> str:
        switches = self.switches.get_all_for_owner(owner_id)
        content = export_collection_csv(switches)

        logger.info("switch_collection_exported", owner_id=owner_id, count=len(switches))

        return content


# Singleton instance
_export_service: Optional[ExportService] = None


def get_export_service() -> ExportService:
    """Get or create ExportService instance."""
    global _export_service
    if _export_service is None:
        _export_service = ExportService()
    return _export_service
