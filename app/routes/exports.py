"""Export endpoint. Thin route, logic in services."""

from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response
from sqlalchemy.orm import Session, sessionmaker

from app.dependencies import AdminIdentity, get_db, get_export_session_factory, require_admin
from app.schemas.common import ErrorResponse
from config import Settings, get_settings
from db.enums import EntityName, ExportFormat
from kureno.services.export import ExportFile, ExportService
from kureno.services.registry import DateRange

router: APIRouter = APIRouter(
    prefix="/api/admin",
    tags=["exports"],
    dependencies=[Depends(require_admin)],
)


@router.get(
    "/export",
    response_class=Response,
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
    },
)
def export_data(
    entity: EntityName = Query(EntityName.ALL),
    format: ExportFormat = Query(ExportFormat.JSON),
    start_date: str | None = Query(None, alias="startDate"),
    end_date: str | None = Query(None, alias="endDate"),
    db: Session = Depends(get_db),
    session_factory: sessionmaker[Session] | None = Depends(get_export_session_factory),
    admin: AdminIdentity = Depends(require_admin),
) -> Response:
    settings: Settings = get_settings()
    svc: ExportService = ExportService(
        db,
        session_factory=session_factory,
        app_name=settings.app_name,
        timeout=settings.transfer.export_timeout_seconds,
        max_workers=settings.transfer.export_workers,
    )
    export_file: ExportFile = svc.export(
        entity,
        format,
        DateRange.parse(start_date, end_date),
        actor=admin.email,
    )
    return Response(
        content=export_file.body,
        media_type=export_file.content_type,
        headers={"Content-Disposition": export_file.content_disposition},
    )
