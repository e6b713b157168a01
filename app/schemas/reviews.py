"""Review moderation request/response schemas."""

from pydantic import Field

from app.schemas.common import CamelModel


class BulkReviewRequest(CamelModel):
    action: str = Field("", description="verify | unverify | delete")
    review_ids: list[str] = Field(default_factory=list)


class BulkActionResponse(CamelModel):
    success: bool
    modified_count: int
    message: str
