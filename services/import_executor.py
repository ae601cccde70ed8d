"""
Import executor.

Writes preview rows to the collection strictly one at a time, in input
order. A failing row is recorded and the batch continues.
"""

from typing import Any, Callable, Optional, Protocol, Sequence
import structlog

from exceptions import AppError
from models.bulk_import import ImportResult, ImportRow

logger = structlog.get_logger(__name__)

ProgressCallback = Callable[[int], None]


class SwitchRepository(Protocol):
    """Persistence operations the executor needs."""

    def create(self, owner_id: str, fields: dict[str, Any]) -> str: ...

    def update(self, switch_id: str, owner_id: str, fields: dict[str, Any]) -> Any: ...


def progress_percent(processed: int, total: int) -> int:
    """Rounded completion percentage; an empty batch is complete."""
    if total <= 0:
        return 100
    return round(100 * processed / total)


def format_row_error(position: int, error: Exception) -> str:
    detail = error.message if isinstance(error, AppError) else str(error)
    return f"Row {position}: {detail}"


def row_fields(row: ImportRow) -> dict[str, Any]:
    """Fields to persist, with the verified manufacturer spelling when known."""
    fields = dict(row.values)
    check = row.manufacturer_check
    if check is not None and check.verified_name and fields.get("manufacturer"):
        fields["manufacturer"] = check.verified_name
    return fields


class ImportExecutor:
    """
    Sequential row writer.

    For each row:
    - duplicate without overwrite -> skipped
    - duplicate with overwrite -> update existing switch
    - otherwise -> create
    """

    def __init__(self, repository: SwitchRepository):
        self.repository = repository

    def run(
        self,
        rows: Sequence[ImportRow],
        owner_id: str,
        on_progress: Optional[ProgressCallback] = None
    ) -> ImportResult:
        """
        Import all rows.

        Args:
            rows: Preview rows in input order
            owner_id: Owning user ID
            on_progress: Called with the percentage after every row

        Returns:
            ImportResult (success + skipped + errors == total rows)
        """
        total = len(rows)
        success_count = 0
        skipped_count = 0
        errors: list[str] = []

        logger.info("import_run_started", owner_id=owner_id, total_rows=total)

        for position, row in enumerate(rows, start=1):
            duplicate = row.duplicate

            if duplicate.is_duplicate and not duplicate.overwrite:
                skipped_count += 1
            else:
                try:
                    fields = row_fields(row)
                    if duplicate.is_duplicate:
                        self.repository.update(duplicate.existing_id, owner_id, fields)
                    else:
                        self.repository.create(owner_id, fields)
                    success_count += 1
                except Exception as e:
                    logger.warning(
                        "row_import_failed",
                        position=position,
                        row_id=row.row_id,
                        name=row.name,
                        error=str(e),
                        error_type=type(e).__name__
                    )
                    errors.append(format_row_error(position, e))

            if on_progress is not None:
                on_progress(progress_percent(position, total))

        if total == 0 and on_progress is not None:
            on_progress(100)

        result = ImportResult(
            success_count=success_count,
            skipped_count=skipped_count,
            error_messages=tuple(errors),
            total_rows=total
        )

        logger.info(
            "import_run_completed",
            owner_id=owner_id,
            success=result.success_count,
            skipped=result.skipped_count,
            errors=result.error_count
        )

        return result
