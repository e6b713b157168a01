"""Export service: JSON bundles and flattened single-entity CSV files."""

import json
from concurrent.futures import Future, ThreadPoolExecutor, wait
from dataclasses import dataclass
from pathlib import Path

import structlog
from sqlalchemy.orm import Session, sessionmaker

from db.enums import EntityName, ExportFormat
from kureno.services._helpers import now_iso, today_iso
from kureno.services._types import ExportInfoDict, RecordDict
from kureno.services.errors import (
    ExportTimeoutError,
    NoDataError,
    UnsupportedFormatError,
)
from kureno.services.registry import DateRange, EntitySpec, fetch_entity, resolve_entities
from kureno.services.tabular import to_csv

logger = structlog.get_logger(__name__)

EXPORT_SCHEMA_VERSION = "1.0"

_CONTENT_TYPES: dict[ExportFormat, str] = {
    ExportFormat.JSON: "application/json",
    ExportFormat.CSV: "text/csv",
}


@dataclass
class ExportFile:
    filename: str
    content_type: str
    body: str
    record_count: int

    @property
    def content_disposition(self) -> str:
        return f'attachment; filename="{self.filename}"'


class ExportService:
    """Builds downloadable exports. Never writes to the database."""

    def __init__(
        self,
        session: Session,
        session_factory: sessionmaker[Session] | None = None,
        app_name: str = "kureno",
        timeout: float | None = None,
        max_workers: int = 7,
        export_dir: str | Path = "exports",
    ):
        self.session = session
        self.session_factory = session_factory
        self.app_name = app_name
        self.timeout = timeout
        self.max_workers = max_workers
        self.export_dir = Path(export_dir)

    # ------------------------------------------------------------------
    # Fetching
    # ------------------------------------------------------------------

    def _fetch_isolated(
        self,
        factory: sessionmaker[Session],
        entity: EntityName,
        date_range: DateRange,
    ) -> list[RecordDict]:
        session: Session = factory()
        try:
            return fetch_entity(session, entity, date_range)
        finally:
            session.rollback()
            session.close()

    def fetch_bundle(
        self,
        specs: list[EntitySpec],
        date_range: DateRange,
    ) -> dict[str, list[RecordDict]]:
        """Fetch every entity; with a session factory, one thread and session each.

        Any failed fetch fails the whole bundle.
        """
        factory: sessionmaker[Session] | None = self.session_factory
        if len(specs) == 1 or factory is None:
            return {s.bundle_key: fetch_entity(self.session, s.name, date_range) for s in specs}

        pool = ThreadPoolExecutor(
            max_workers=min(self.max_workers, len(specs)),
            thread_name_prefix="export",
        )
        try:
            futures: dict[str, Future[list[RecordDict]]] = {
                s.bundle_key: pool.submit(self._fetch_isolated, factory, s.name, date_range) for s in specs
            }
            _, pending = wait(futures.values(), timeout=self.timeout)
            if pending:
                logger.error("export_timeout", pending=len(pending), timeout=self.timeout)
                raise ExportTimeoutError(f"Export did not finish within {self.timeout}s")
            return {key: f.result() for key, f in futures.items()}
        finally:
            pool.shutdown(wait=False, cancel_futures=True)

    # ------------------------------------------------------------------
    # Route-facing methods
    # ------------------------------------------------------------------

    def filename_for(self, entity: EntityName, fmt: ExportFormat) -> str:
        return f"{self.app_name}-{entity.value}-export-{today_iso()}.{fmt.value}"

    def export(
        self,
        entity: EntityName,
        fmt: ExportFormat,
        date_range: DateRange | None = None,
        actor: str = "",
    ) -> ExportFile:
        date_range = date_range or DateRange()

        if fmt is ExportFormat.CSV and entity is EntityName.ALL:
            raise UnsupportedFormatError("CSV export supports a single entity only")

        specs: list[EntitySpec] = resolve_entities(entity)
        bundle: dict[str, list[RecordDict]] = self.fetch_bundle(specs, date_range)
        record_count: int = sum(len(v) for v in bundle.values())

        if fmt is ExportFormat.CSV:
            records: list[RecordDict] = bundle[specs[0].bundle_key]
            if not records:
                raise NoDataError("No data found for export")
            body: str = to_csv(records)
        else:
            payload: dict[str, object] = dict(bundle)
            if entity is EntityName.ALL:
                payload["exportInfo"] = ExportInfoDict(
                    exportedAt=now_iso(),
                    exportedBy=actor,
                    entity=entity.value,
                    format=fmt.value,
                    dateRange=date_range.to_dict(),
                    version=EXPORT_SCHEMA_VERSION,
                )
            body = json.dumps(payload, indent=2, default=str, ensure_ascii=False)

        logger.info(
            "export_generated",
            entity=entity.value,
            format=fmt.value,
            records=record_count,
            actor=actor,
        )
        return ExportFile(
            filename=self.filename_for(entity, fmt),
            content_type=_CONTENT_TYPES[fmt],
            body=body,
            record_count=record_count,
        )

    # ------------------------------------------------------------------
    # File output (workers / CLI)
    # ------------------------------------------------------------------

    def save(self, export_file: ExportFile, output_path: Path | None = None) -> Path:
        if output_path is None:
            output_path = self.export_dir / export_file.filename
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(export_file.body, encoding="utf-8")
        return output_path
