"""Worker: import records from a JSON or CSV file.

Usage:
    python -m worker.import_data products.csv --entity products
    python -m worker.import_data kureno-all-export-2026-01-31.json -e users --mode upsert
    python -m worker.import_data blog.json -e blog --validate-only
"""

import argparse
import mimetypes
import sys
from pathlib import Path

import structlog

from config import Settings, get_settings
from db.connection import get_session, init_database
from db.enums import EntityName, ImportMode
from kureno.services.importer import (
    ImportJob,
    ImportResult,
    ImportService,
    ParsedRecord,
    parse_upload,
    read_upload,
)
from kureno.services.records import IMPORTABLE_ENTITIES

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Import records from JSON or CSV")
    parser.add_argument("path", type=Path, help="File to import (.json or .csv)")
    parser.add_argument(
        "--entity",
        "-e",
        required=True,
        choices=[e.value for e in IMPORTABLE_ENTITIES],
        help="Target entity",
    )
    parser.add_argument(
        "--mode",
        "-m",
        default=ImportMode.CREATE.value,
        choices=[m.value for m in ImportMode],
        help="create rejects existing keys; upsert updates them",
    )
    parser.add_argument(
        "--validate-only",
        action="store_true",
        default=False,
        help="Report what would happen without writing",
    )
    parser.add_argument("--actor", default=None, help="Notified admin (default: KURENO_ADMIN_EMAIL)")
    args = parser.parse_args(argv)

    settings: Settings = get_settings()
    entity = EntityName(args.entity)
    content_type: str = mimetypes.guess_type(args.path.name)[0] or ""

    with args.path.open("rb") as fh:
        content: bytes = read_upload(fh, settings.transfer.max_upload_bytes)
    records: list[ParsedRecord] = parse_upload(content, args.path.name, content_type, entity)

    job = ImportJob(
        entity=entity,
        mode=ImportMode(args.mode),
        validate_only=args.validate_only,
        records=records,
    )

    init_database()
    with get_session() as session:
        result: ImportResult = ImportService(session).run(
            job, actor=args.actor or settings.admin_email
        )

    for err in result.errors:
        logger.warning("record_rejected", index=err["index"], reason=err["reason"])

    logger.info(
        "Import complete",
        total=result.total_records,
        succeeded=result.success_count,
        created=result.created,
        updated=result.updated,
        failed=result.error_count,
        validate_only=job.validate_only,
    )
    return 1 if result.error_count else 0


if __name__ == "__main__":
    sys.exit(main())
