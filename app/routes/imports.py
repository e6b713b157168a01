"""Import endpoint: multipart upload in, per-record report out."""

from fastapi import APIRouter, Depends, File, Form, UploadFile
from sqlalchemy.orm import Session

from app.dependencies import AdminIdentity, get_db, require_admin
from app.schemas.common import ErrorResponse
from app.schemas.imports import ImportResponse
from config import get_settings
from db.enums import EntityName, ImportMode
from kureno.services._types import ImportResponseDict
from kureno.services.errors import InvalidRequestError, UnsupportedEntityError
from kureno.services.importer import (
    ImportJob,
    ImportResult,
    ImportService,
    ParsedRecord,
    parse_upload,
    read_upload,
)
from kureno.services.records import IMPORTABLE_ENTITIES

router: APIRouter = APIRouter(
    prefix="/api/admin",
    tags=["imports"],
    dependencies=[Depends(require_admin)],
)

_TRUTHY = ("1", "true", "yes", "on")


def _parse_entity(raw: str) -> EntityName:
    if not raw:
        raise InvalidRequestError("File and entity type are required")
    try:
        entity = EntityName(raw.strip().lower())
    except ValueError:
        raise UnsupportedEntityError(f"Unknown entity type: {raw}") from None
    if entity not in IMPORTABLE_ENTITIES:
        raise UnsupportedEntityError(f"Import is not supported for entity: {entity.value}")
    return entity


def _parse_mode(raw: str) -> ImportMode:
    try:
        return ImportMode((raw or ImportMode.CREATE.value).strip().lower())
    except ValueError:
        raise InvalidRequestError(f"Invalid import mode: {raw}") from None


@router.post(
    "/import",
    response_model=ImportResponse,
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        413: {"model": ErrorResponse},
    },
)
def import_data(
    file: UploadFile | None = File(None),
    entity: str = Form(""),
    mode: str = Form(ImportMode.CREATE.value),
    validate_only: str = Form("false", alias="validateOnly"),
    db: Session = Depends(get_db),
    admin: AdminIdentity = Depends(require_admin),
) -> ImportResponseDict:
    if file is None:
        raise InvalidRequestError("File and entity type are required")
    entity_name: EntityName = _parse_entity(entity)
    import_mode: ImportMode = _parse_mode(mode)

    content: bytes = read_upload(file.file, get_settings().transfer.max_upload_bytes)
    records: list[ParsedRecord] = parse_upload(
        content, file.filename or "", file.content_type or "", entity_name
    )

    job = ImportJob(
        entity=entity_name,
        mode=import_mode,
        validate_only=validate_only.strip().lower() in _TRUTHY,
        records=records,
    )
    result: ImportResult = ImportService(db).run(job, actor=admin.email)

    verb: str = "Validated" if job.validate_only else "Imported"
    return ImportResponseDict(
        success=True,
        message=f"{verb} {result.success_count} of {result.total_records} records",
        summary=result.summary(),
    )
