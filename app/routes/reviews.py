"""Review moderation endpoints."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.dependencies import get_db, require_admin
from app.schemas.common import ErrorResponse
from app.schemas.reviews import BulkActionResponse, BulkReviewRequest
from kureno.services._types import BulkActionResultDict
from kureno.services.bulk import BulkActionService

router: APIRouter = APIRouter(
    prefix="/api/admin",
    tags=["reviews"],
    dependencies=[Depends(require_admin)],
)


@router.post(
    "/reviews/bulk",
    response_model=BulkActionResponse,
    responses={400: {"model": ErrorResponse}, 401: {"model": ErrorResponse}},
)
def bulk_reviews(body: BulkReviewRequest, db: Session = Depends(get_db)) -> BulkActionResultDict:
    svc = BulkActionService(db)
    return svc.apply(body.action, body.review_ids)
