"""
Import session service.

Drives one CSV import through its pipeline stages and keeps the
in-progress sessions in memory:

    start / load_file      Upload -> Mapping (tokenize + auto-map)
    update_mapping         Mapping
    confirm_mapping        Mapping -> Validating -> Ready
    edit_record, ...       Ready (preview edits)
    run_import             Ready -> Importing -> Complete
    reset                  back to Upload, pipeline state discarded

Sessions expire after import_session_ttl_minutes of inactivity.
"""

import threading
import time
import uuid
from dataclasses import dataclass, field
from typing import Callable, Optional, Sequence, Union
import structlog

from config import settings
from config.switch_fields import SWITCH_FIELDS
from exceptions import (
    ImportRowNotFoundError,
    ImportSessionNotFoundError,
    ImportValidationBlockedError,
    InvalidImportTransitionError,
    ManufacturerLookupError,
    ValidationError,
)
from models.bulk_import import (
    FieldOption,
    ImportResult,
    ImportRow,
    ImportSessionResponse,
    ManufacturerAnnotation,
    ManufacturerCheck,
)
from parsers.csv_tokenizer import tokenize
from services import column_mapper, duplicate_resolver
from services.column_mapper import ColumnMapping
from services.field_normalizer import normalize, normalize_row
from services.import_executor import ImportExecutor
from services.import_state_machine import (
    ImportEvent,
    ImportStage,
    blocking_rows,
    next_stage,
)
from services.manufacturer_service import ManufacturerService, get_manufacturer_service
from services.switch_service import SwitchService, get_switch_service

logger = structlog.get_logger(__name__)


@dataclass
class ImportSession:
    """Mutable state of one import."""

    session_id: str
    owner_id: str
    stage: ImportStage = ImportStage.UPLOAD
    header: list[str] = field(default_factory=list)
    data_rows: list[list[str]] = field(default_factory=list)
    column_mapping: ColumnMapping = field(default_factory=dict)
    rows: list[ImportRow] = field(default_factory=list)
    dropped_row_count: int = 0
    accepted_manufacturers: set[str] = field(default_factory=set)
    progress: int = 0
    result: Optional[ImportResult] = None
    touched_at: float = 0.0
    # Bumped whenever a validation pass starts; stale passes don't commit
    generation: int = 0
    lock: threading.RLock = field(default_factory=threading.RLock, repr=False)

    def clear_pipeline(self) -> None:
        """Forget everything derived from the uploaded file."""
        self.header = []
        self.data_rows = []
        self.column_mapping = {}
        self.rows = []
        self.dropped_row_count = 0
        self.accepted_manufacturers = set()
        self.progress = 0
        self.result = None

    def find_row(self, row_id: int) -> ImportRow:
        for row in self.rows:
            if row.row_id == row_id:
                return row
        raise ImportRowNotFoundError(row_id)

    @property
    def validation_unavailable(self) -> bool:
        return any(
            row.manufacturer_check is not None and row.manufacturer_check.validation_unavailable
            for row in self.rows
        )


class ImportSessionService:
    """
    CSV import pipeline.

    Handles:
    - Session storage (in memory, TTL, bounded count)
    - Stage transitions via the import state machine
    - Normalization, duplicate matching and manufacturer validation
    - Sequential import through ImportExecutor
    """

    def __init__(
        self,
        switch_service: Optional[SwitchService] = None,
        manufacturer_service: Optional[ManufacturerService] = None,
        ttl_minutes: Optional[int] = None,
        max_sessions: Optional[int] = None,
        clock: Callable[[], float] = time.monotonic
    ):
        self.switches = switch_service or get_switch_service()
        self.manufacturers = manufacturer_service or get_manufacturer_service()
        self.executor = ImportExecutor(self.switches)
        self.ttl_seconds = 60 * (ttl_minutes or settings.import_session_ttl_minutes)
        self.max_sessions = max_sessions or settings.import_session_max_count
        self._clock = clock
        self._lock = threading.Lock()
        self._sessions: dict[str, ImportSession] = {}

    # ===================
    # SESSION STORE
    # ===================

    def _prune(self, now: float) -> None:
        expired = [
            session_id for session_id, session in self._sessions.items()
            if session.stage != ImportStage.IMPORTING
            and (now - session.touched_at) >= self.ttl_seconds
        ]
        for session_id in expired:
            self._sessions.pop(session_id, None)

        while len(self._sessions) > self.max_sessions:
            idle = [s for s in self._sessions.values() if s.stage != ImportStage.IMPORTING]
            if not idle:
                break
            oldest = min(idle, key=lambda s: s.touched_at)
            self._sessions.pop(oldest.session_id, None)

        if expired:
            logger.debug("import_sessions_expired", count=len(expired))

    def create(self, owner_id: str) -> ImportSession:
        """Open an empty session in the Upload stage."""
        now = self._clock()
        session = ImportSession(
            session_id=str(uuid.uuid4()),
            owner_id=owner_id,
            touched_at=now
        )
        with self._lock:
            self._sessions[session.session_id] = session
            self._prune(now)

        logger.info("import_session_created", session_id=session.session_id, owner_id=owner_id)

        return session

    def get(self, session_id: str, owner_id: str) -> ImportSession:
        """
        Get a session owned by owner_id.

        Raises:
            ImportSessionNotFoundError: If missing, expired or owned by someone else
        """
        now = self._clock()
        with self._lock:
            self._prune(now)
            session = self._sessions.get(session_id)
            if session is None or session.owner_id != owner_id:
                raise ImportSessionNotFoundError(session_id)
            session.touched_at = now
            return session

    def stats(self) -> dict:
        """Session counts by stage, for the health endpoint."""
        with self._lock:
            self._prune(self._clock())
            by_stage: dict[str, int] = {}
            for session in self._sessions.values():
                by_stage[session.stage.value] = by_stage.get(session.stage.value, 0) + 1
            return {"active": len(self._sessions), "by_stage": by_stage}

    def discard(self, session_id: str, owner_id: str) -> None:
        """Drop a session. Not allowed while it is importing."""
        session = self.get(session_id, owner_id)
        with session.lock:
            if session.stage == ImportStage.IMPORTING:
                raise InvalidImportTransitionError(session.stage.value, "discard")
            with self._lock:
                self._sessions.pop(session_id, None)

        logger.info("import_session_discarded", session_id=session_id)

    # ===================
    # UPLOAD / MAPPING
    # ===================

    def start(self, owner_id: str, content: Union[str, bytes]) -> ImportSession:
        """
        Tokenize an uploaded file into a new session.

        Raises:
            CSVParseError: If the file is empty or not UTF-8; no session is created
        """
        csv = tokenize(content)
        session = self.create(owner_id)
        with session.lock:
            self._load(session, csv.header, csv.rows)
        return session

    def load_file(
        self,
        session_id: str,
        owner_id: str,
        content: Union[str, bytes]
    ) -> ImportSession:
        """Upload a file into an existing session that is back in Upload."""
        session = self.get(session_id, owner_id)
        csv = tokenize(content)
        with session.lock:
            self._load(session, csv.header, csv.rows)
        return session

    def _load(self, session: ImportSession, header: list[str], rows: list[list[str]]) -> None:
        session.stage = next_stage(session.stage, ImportEvent.FILE_LOADED)
        session.header = header
        session.data_rows = rows
        session.column_mapping = column_mapper.auto_map(header)

        logger.info(
            "import_file_loaded",
            session_id=session.session_id,
            columns=len(header),
            data_rows=len(rows),
            has_name_column=column_mapper.has_name_column(session.column_mapping)
        )

    def update_mapping(
        self,
        session_id: str,
        owner_id: str,
        column: int,
        field_key: Optional[str]
    ) -> ImportSession:
        """Override the field one column maps to (None = skip)."""
        session = self.get(session_id, owner_id)
        with session.lock:
            self._require_stage(session, "update_mapping", ImportStage.MAPPING)
            session.column_mapping = column_mapper.update_mapping(
                session.column_mapping, column, field_key
            )

        logger.info(
            "import_mapping_updated",
            session_id=session_id,
            column=column,
            field=field_key
        )

        return session

    # ===================
    # PREVIEW
    # ===================

    def confirm_mapping(self, session_id: str, owner_id: str) -> ImportSession:
        """
        Build the preview.

        Normalizes every data row, drops rows without a name, matches
        duplicates against the owner's collection and validates
        manufacturers in one batch. A failing validator leaves every
        manufacturer unvalidated instead of failing the request.

        The session stays readable in Validating while the collection
        and the validator are queried; the result is dropped if the
        session was reset meanwhile.
        """
        session = self.get(session_id, owner_id)
        with session.lock:
            session.stage = next_stage(session.stage, ImportEvent.MAPPING_CONFIRMED)
            session.generation += 1
            generation = session.generation
            data_rows = list(session.data_rows)
            mapping = dict(session.column_mapping)

        try:
            rows, dropped = self._build_rows(data_rows, mapping)
            existing = self.switches.list_existing(owner_id)
            duplicate_resolver.resolve_all(rows, existing)
            checks = self._check_manufacturers(session_id, rows)
        except Exception:
            with session.lock:
                if self._still_validating(session, generation):
                    session.stage = ImportStage.MAPPING
            raise

        with session.lock:
            if not self._still_validating(session, generation):
                logger.info("import_preview_discarded", session_id=session_id, stage=session.stage.value)
                return session

            self._annotate_manufacturers(rows, checks)
            session.rows = rows
            session.dropped_row_count = dropped
            session.stage = next_stage(session.stage, ImportEvent.VALIDATION_COMPLETED)

            logger.info(
                "import_preview_ready",
                session_id=session_id,
                rows=len(rows),
                dropped=dropped,
                blocking=len(blocking_rows(rows, session.accepted_manufacturers))
            )

        return session

    def _build_rows(
        self,
        data_rows: Sequence[list[str]],
        mapping: ColumnMapping
    ) -> tuple[list[ImportRow], int]:
        rows: list[ImportRow] = []
        dropped = 0

        for line, cells in enumerate(data_rows, start=1):
            values = normalize_row(cells, mapping)
            if not values.get("name"):
                dropped += 1
                continue
            rows.append(ImportRow(row_id=len(rows), source_line=line, values=values))

        return rows, dropped

    def _still_validating(self, session: ImportSession, generation: int) -> bool:
        return session.stage == ImportStage.VALIDATING and session.generation == generation

    def _check_manufacturers(
        self,
        session_id: str,
        rows: Sequence[ImportRow]
    ) -> Optional[dict[str, ManufacturerCheck]]:
        """Validate the rows' manufacturer names; None when the validator is unreachable."""
        names = [row.manufacturer for row in rows if row.manufacturer]

        try:
            return self.manufacturers.validate(names)
        except ManufacturerLookupError as e:
            logger.warning(
                "manufacturer_validation_unavailable",
                session_id=session_id,
                names=len(set(names)),
                error=e.message
            )
            return None

    @staticmethod
    def _annotate_manufacturers(
        rows: Sequence[ImportRow],
        checks: Optional[dict[str, ManufacturerCheck]]
    ) -> None:
        for row in rows:
            name = row.manufacturer
            if not name:
                row.manufacturer_check = None
            elif checks is None:
                row.manufacturer_check = ManufacturerAnnotation.unavailable()
            else:
                check = checks.get(name)
                row.manufacturer_check = (
                    ManufacturerAnnotation.from_check(check) if check else None
                )

    def edit_record(
        self,
        session_id: str,
        owner_id: str,
        row_id: int,
        field_key: str,
        raw: Optional[str]
    ) -> ImportRow:
        """
        Commit an edited preview cell.

        The value goes through the same normalization as a CSV cell. A
        manufacturer edit re-validates that one name; until the check
        returns the row counts as unvalidated.

        Raises:
            UnknownSwitchFieldError: If field_key is not a switch field
            ValidationError: If the edit would leave the row without a name
        """
        session = self.get(session_id, owner_id)
        with session.lock:
            self._require_stage(session, "edit_record", ImportStage.READY)
            row = session.find_row(row_id)
            value = normalize(raw, field_key)

            if field_key == "name" and value is None:
                raise ValidationError(
                    "Switch name is required",
                    code="NAME_REQUIRED",
                    details={"row_id": row_id}
                )

            if value is None:
                row.values.pop(field_key, None)
            else:
                row.values[field_key] = value

            if field_key == "manufacturer":
                row.manufacturer_check = None

        if field_key == "manufacturer" and value is not None:
            checks = self._check_manufacturers(session_id, [row])
            with session.lock:
                # A later edit of the same cell owns the annotation
                if row.manufacturer == value:
                    self._annotate_manufacturers([row], checks)

        logger.info(
            "import_row_edited",
            session_id=session_id,
            row_id=row_id,
            field=field_key,
            cleared=value is None
        )

        return row

    def set_overwrite(
        self,
        session_id: str,
        owner_id: str,
        row_id: int,
        overwrite: bool
    ) -> ImportRow:
        """Choose update-existing vs skip for a duplicate row."""
        session = self.get(session_id, owner_id)
        with session.lock:
            self._require_stage(session, "set_overwrite", ImportStage.READY)
            row = session.find_row(row_id)
            if not row.duplicate.is_duplicate:
                raise ValidationError(
                    "Row does not match an existing switch",
                    code="ROW_NOT_DUPLICATE",
                    details={"row_id": row_id}
                )
            row.duplicate.overwrite = overwrite

        logger.info("import_row_overwrite_set", session_id=session_id, row_id=row_id, overwrite=overwrite)

        return row

    def remove_row(self, session_id: str, owner_id: str, row_id: int) -> ImportSession:
        """Take a row out of the preview batch."""
        session = self.get(session_id, owner_id)
        with session.lock:
            self._require_stage(session, "remove_row", ImportStage.READY)
            row = session.find_row(row_id)
            session.rows.remove(row)

        logger.info("import_row_removed", session_id=session_id, row_id=row_id)

        return session

    def accept_manufacturer(self, session_id: str, owner_id: str, name: str) -> ImportSession:
        """Treat an unrecognized manufacturer as valid for this session."""
        session = self.get(session_id, owner_id)
        accepted = name.strip()
        if not accepted:
            raise ValidationError("Manufacturer name is required", code="MANUFACTURER_REQUIRED")

        with session.lock:
            self._require_stage(session, "accept_manufacturer", ImportStage.READY)
            session.accepted_manufacturers.add(accepted)

        logger.info("manufacturer_accepted_as_new", session_id=session_id, manufacturer=accepted)

        return session

    def revalidate_manufacturers(self, session_id: str, owner_id: str) -> ImportSession:
        """
        Run batch validation again, e.g. after the validator was unavailable.

        The session is in Validating until the validator answers; preview
        edits and the import wait for Ready.
        """
        session = self.get(session_id, owner_id)
        with session.lock:
            self._require_stage(session, "revalidate_manufacturers", ImportStage.READY)
            session.stage = next_stage(session.stage, ImportEvent.REVALIDATION_STARTED)
            session.generation += 1
            generation = session.generation
            rows = list(session.rows)

        try:
            checks = self._check_manufacturers(session_id, rows)
        except Exception:
            with session.lock:
                if self._still_validating(session, generation):
                    session.stage = ImportStage.READY
            raise

        with session.lock:
            if not self._still_validating(session, generation):
                logger.info("import_revalidation_discarded", session_id=session_id, stage=session.stage.value)
                return session

            self._annotate_manufacturers(session.rows, checks)
            session.stage = next_stage(session.stage, ImportEvent.VALIDATION_COMPLETED)

        logger.info(
            "import_manufacturers_revalidated",
            session_id=session_id,
            unavailable=checks is None
        )

        return session

    def back_to_mapping(self, session_id: str, owner_id: str) -> ImportSession:
        """Return from the preview to column mapping; preview rows are rebuilt on confirm."""
        session = self.get(session_id, owner_id)
        with session.lock:
            session.stage = next_stage(session.stage, ImportEvent.BACK_TO_MAPPING)
            session.rows = []
            session.dropped_row_count = 0

        logger.info("import_back_to_mapping", session_id=session_id)

        return session

    def reset(self, session_id: str, owner_id: str) -> ImportSession:
        """Return to Upload, discarding all pipeline state."""
        session = self.get(session_id, owner_id)
        with session.lock:
            session.stage = next_stage(session.stage, ImportEvent.RESET)
            session.clear_pipeline()

        logger.info("import_session_reset", session_id=session_id)

        return session

    # ===================
    # IMPORT
    # ===================

    def run_import(self, session_id: str, owner_id: str) -> ImportSession:
        """
        Import the preview rows.

        Blocks until every row is processed; progress is readable from
        the session meanwhile.

        Raises:
            ImportValidationBlockedError: If unverified manufacturers remain
            InvalidImportTransitionError: If the session is not Ready
        """
        session = self.get(session_id, owner_id)
        with session.lock:
            target = next_stage(session.stage, ImportEvent.IMPORT_STARTED)

            blocking = blocking_rows(session.rows, session.accepted_manufacturers)
            if blocking:
                names = sorted({session.find_row(row_id).manufacturer for row_id in blocking})
                logger.warning(
                    "import_blocked_by_manufacturers",
                    session_id=session_id,
                    blocking_count=len(blocking)
                )
                raise ImportValidationBlockedError(blocking, names)

            session.stage = target
            session.progress = 0
            rows = list(session.rows)

        def on_progress(percent: int) -> None:
            session.progress = percent

        result = self.executor.run(rows, owner_id, on_progress)

        with session.lock:
            session.result = result
            session.progress = 100
            session.stage = next_stage(session.stage, ImportEvent.IMPORT_COMPLETED)

        return session

    # ===================
    # VIEWS
    # ===================

    def to_response(self, session: ImportSession) -> ImportSessionResponse:
        """Snapshot a session for the API."""
        with session.lock:
            rows = [row.model_copy(deep=True) for row in session.rows]
            return ImportSessionResponse(
                session_id=session.session_id,
                stage=session.stage.value,
                header=list(session.header),
                column_mapping=dict(session.column_mapping),
                fields=[
                    FieldOption(key=f.key, label=f.label, required=f.required)
                    for f in SWITCH_FIELDS
                ],
                has_name_column=column_mapper.has_name_column(session.column_mapping),
                rows=rows,
                dropped_row_count=session.dropped_row_count,
                duplicate_count=sum(1 for row in rows if row.duplicate.is_duplicate),
                blocking_rows=blocking_rows(rows, session.accepted_manufacturers),
                accepted_manufacturers=sorted(session.accepted_manufacturers),
                validation_unavailable=session.validation_unavailable,
                progress=session.progress,
                result=session.result
            )

    def _require_stage(self, session: ImportSession, operation: str, *stages: ImportStage) -> None:
        if session.stage not in stages:
            raise InvalidImportTransitionError(session.stage.value, operation)


# Singleton instance
_import_session_service: Optional[ImportSessionService] = None


def get_import_session_service() -> ImportSessionService:
    """Get or create ImportSessionService instance."""
    global _import_session_service
    if _import_session_service is None:
        _import_session_service = ImportSessionService()
    return _import_session_service
