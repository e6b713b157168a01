"""Worker: export store data to a JSON or CSV file.

Usage:
    python -m worker.export_data
    python -m worker.export_data --entity products --format csv --start 2026-01-01
    python -m worker.export_data -e orders --start 2026-01-01 --end 2026-01-31 -o orders.json
"""

import argparse
from pathlib import Path

import structlog

from config import Settings, get_settings
from db.connection import get_session, get_session_factory
from db.enums import EntityName, ExportFormat
from kureno.services.export import ExportFile, ExportService
from kureno.services.registry import DateRange

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


def main(argv: list[str] | None = None) -> None:
    parser: argparse.ArgumentParser = argparse.ArgumentParser(
        description="Export store data to JSON or CSV",
    )
    parser.add_argument(
        "--entity",
        "-e",
        default=EntityName.ALL.value,
        choices=[e.value for e in EntityName],
        help="Entity to export (default: all)",
    )
    parser.add_argument(
        "--format",
        "-f",
        default=ExportFormat.JSON.value,
        choices=[f.value for f in ExportFormat],
        help="Output format (csv needs a single entity)",
    )
    parser.add_argument("--start", "-s", default=None, help="Created on or after (ISO date)")
    parser.add_argument("--end", default=None, help="Created on or before (ISO date)")
    parser.add_argument(
        "--output",
        "-o",
        type=Path,
        default=None,
        help="Output file path (defaults to the export directory)",
    )
    parser.add_argument(
        "--actor",
        default=None,
        help="Recorded as exportedBy (default: KURENO_ADMIN_EMAIL)",
    )
    args: argparse.Namespace = parser.parse_args(argv)

    settings: Settings = get_settings()
    entity: EntityName = EntityName(args.entity)
    fmt: ExportFormat = ExportFormat(args.format)
    date_range: DateRange = DateRange.parse(args.start, args.end)

    logger.info(
        "Starting data export",
        entity=entity.value,
        format=fmt.value,
        start=args.start,
        end=args.end,
    )

    with get_session() as session:
        service: ExportService = ExportService(
            session,
            session_factory=get_session_factory(),
            app_name=settings.app_name,
            timeout=settings.transfer.export_timeout_seconds,
            max_workers=settings.transfer.export_workers,
            export_dir=settings.export_dir,
        )
        export_file: ExportFile = service.export(
            entity, fmt, date_range, actor=args.actor or settings.admin_email
        )
        path: Path = service.save(export_file, args.output)

    logger.info(
        "Export complete",
        output=str(path),
        records=export_file.record_count,
    )


if __name__ == "__main__":
    main()
