"""Import service: parse uploaded JSON/CSV, validate, create or upsert.

Every record is independent. Record-level failures are collected into the
result; only request-level problems (size, entity, undecodable file) raise.
"""

import json
from dataclasses import dataclass, field
from typing import BinaryIO

import structlog
from pydantic import BaseModel
from pydantic import ValidationError as SchemaValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from db.enums import (
    EntityName,
    ImportMode,
    NotificationCategory,
    NotificationPriority,
    NotificationType,
)
from kureno.services._types import ImportSummaryDict, RecordDict, RecordErrorDict
from kureno.services.errors import (
    DuplicateKeyError,
    MalformedFileError,
    PayloadTooLargeError,
    RecordError,
)
from kureno.services.notifications import NotificationService
from kureno.services.records import RecordWriter, WriteOutcome, WriterSpec, get_writer
from kureno.services.registry import get_spec
from kureno.services.tabular import parse_csv

logger = structlog.get_logger(__name__)

DEFAULT_MAX_UPLOAD_BYTES = 10 * 1024 * 1024

_ALLOWED_CONTENT_TYPES = ("application/json", "text/csv", "text/plain")


@dataclass(frozen=True)
class MalformedRecord:
    """Placeholder for an input row that could not be turned into a record."""

    reason: str


ParsedRecord = RecordDict | MalformedRecord


@dataclass
class ImportJob:
    entity: EntityName
    mode: ImportMode
    validate_only: bool
    records: list[ParsedRecord]


@dataclass
class ImportResult:
    entity: EntityName
    mode: ImportMode
    validate_only: bool
    total_records: int
    success_count: int = 0
    created: int = 0
    updated: int = 0
    errors: list[RecordErrorDict] = field(default_factory=list)

    @property
    def error_count(self) -> int:
        return len(self.errors)

    def summary(self) -> ImportSummaryDict:
        return ImportSummaryDict(
            totalRecords=self.total_records,
            successCount=self.success_count,
            errorCount=self.error_count,
            errors=self.errors,
            entity=self.entity.value,
            mode=self.mode.value,
            validateOnly=self.validate_only,
        )


# ------------------------------------------------------------------
# Upload handling
# ------------------------------------------------------------------


def read_upload(stream: BinaryIO, max_bytes: int = DEFAULT_MAX_UPLOAD_BYTES) -> bytes:
    """Read at most ``max_bytes``; anything larger is rejected unparsed."""
    content: bytes = stream.read(max_bytes + 1)
    if len(content) > max_bytes:
        raise PayloadTooLargeError(f"File exceeds the {max_bytes // (1024 * 1024)}MB upload limit")
    return content


def _is_csv(filename: str, content_type: str) -> bool:
    return filename.lower().endswith(".csv") or content_type.startswith("text/csv")


def parse_upload(
    content: bytes,
    filename: str,
    content_type: str,
    entity: EntityName,
) -> list[ParsedRecord]:
    """Decode an uploaded file into raw records for ``entity``.

    JSON may be a bare array or an export bundle holding the array under the
    entity's bundle key. CSV rows are un-flattened from dotted headers.
    """
    filename = filename or ""
    content_type = (content_type or "").split(";")[0].strip().lower()
    if content_type not in _ALLOWED_CONTENT_TYPES and not filename.lower().endswith(
        (".json", ".csv")
    ):
        raise MalformedFileError("Invalid file type. Only JSON and CSV files are allowed")

    try:
        text: str = content.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        raise MalformedFileError("File is not valid UTF-8 text") from e

    records: list[ParsedRecord]
    if _is_csv(filename, content_type):
        records = [
            MalformedRecord(f"Line {row.line}: {row.error}") if row.error else row.to_record()
            for row in parse_csv(text)
        ]
    else:
        try:
            parsed: object = json.loads(text)
        except json.JSONDecodeError as e:
            raise MalformedFileError("Invalid file format or corrupted data") from e
        if isinstance(parsed, dict):
            bundle_key: str = get_spec(entity).bundle_key
            parsed = parsed.get(bundle_key, parsed.get(entity.value, []))
        if not isinstance(parsed, list):
            raise MalformedFileError("Expected a JSON array of records")
        records = [
            item if isinstance(item, dict) else MalformedRecord("Record is not a JSON object")
            for item in parsed
        ]

    if not records:
        raise MalformedFileError("No valid data found in file")
    return records


def _schema_reason(exc: SchemaValidationError) -> str:
    parts: list[str] = []
    for err in exc.errors():
        loc: str = ".".join(str(p) for p in err["loc"])
        parts.append(f"{loc}: {err['msg']}" if loc else err["msg"])
    return "; ".join(parts)


# ------------------------------------------------------------------
# Service
# ------------------------------------------------------------------


class ImportService:
    """Validates and applies import jobs, one savepoint per applied record."""

    def __init__(self, session: Session) -> None:
        self.session: Session = session
        self.writer: RecordWriter = RecordWriter(session)

    def _import_one(
        self,
        spec: WriterSpec,
        job: ImportJob,
        raw: ParsedRecord,
        seen_keys: set[tuple[str, str]],
    ) -> WriteOutcome:
        if isinstance(raw, MalformedRecord):
            raise RecordError(raw.reason)
        try:
            data: BaseModel = spec.schema.model_validate(raw)
        except SchemaValidationError as e:
            raise RecordError(_schema_reason(e)) from e

        keys: list[tuple[str, str]] = spec.batch_keys(data)
        repeated: list[tuple[str, str]] = [k for k in keys if k in seen_keys]
        if job.mode is ImportMode.CREATE and repeated:
            field, value = repeated[0]
            raise DuplicateKeyError(f"{field} duplicated earlier in file: {value}")

        if job.validate_only:
            outcome: WriteOutcome = self.writer.write(job.entity, data, job.mode, dry_run=True)
            if repeated:
                outcome.action = "updated"
        else:
            with self.session.begin_nested():
                outcome = self.writer.write(job.entity, data, job.mode)
        seen_keys.update(keys)
        return outcome

    def import_records(self, job: ImportJob) -> ImportResult:
        spec: WriterSpec = get_writer(job.entity)
        result = ImportResult(
            entity=job.entity,
            mode=job.mode,
            validate_only=job.validate_only,
            total_records=len(job.records),
        )
        seen_keys: set[tuple[str, str]] = set()

        for index, raw in enumerate(job.records):
            try:
                outcome: WriteOutcome = self._import_one(spec, job, raw, seen_keys)
            except RecordError as e:
                result.errors.append(RecordErrorDict(index=index, reason=str(e)))
                continue
            except SQLAlchemyError:
                logger.exception("import_record_failed", entity=job.entity.value, index=index)
                result.errors.append(RecordErrorDict(index=index, reason="Storage error"))
                continue

            result.success_count += 1
            if outcome.action == "created":
                result.created += 1
            else:
                result.updated += 1

        logger.info(
            "import_finished",
            entity=job.entity.value,
            mode=job.mode.value,
            validate_only=job.validate_only,
            total=result.total_records,
            succeeded=result.success_count,
            failed=result.error_count,
        )
        return result

    def run(self, job: ImportJob, actor: str = "") -> ImportResult:
        """Import and, unless validating only, leave an admin notification."""
        result: ImportResult = self.import_records(job)
        if not job.validate_only:
            NotificationService(self.session).notify(
                title="Data Import Completed",
                message=(
                    f"Imported {result.success_count} of {result.total_records} "
                    f"{job.entity.value} records"
                ),
                type=NotificationType.WARNING if result.errors else NotificationType.SUCCESS,
                category=NotificationCategory.SYSTEM,
                priority=NotificationPriority.MEDIUM,
                recipient_email=actor or None,
                action_url=f"/admin/{job.entity.value}",
            )
        return result
