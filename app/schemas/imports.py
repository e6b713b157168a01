"""Import response schemas."""

from app.schemas.common import CamelModel


class RecordErrorResponse(CamelModel):
    index: int
    reason: str


class ImportSummaryResponse(CamelModel):
    total_records: int
    success_count: int
    error_count: int
    errors: list[RecordErrorResponse]
    entity: str
    mode: str
    validate_only: bool


class ImportResponse(CamelModel):
    success: bool
    message: str
    summary: ImportSummaryResponse
