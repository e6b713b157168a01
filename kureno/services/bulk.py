"""Bulk moderation actions over one collection (reviews by default)."""

from collections.abc import Iterable

import structlog
from sqlalchemy import delete, update
from sqlalchemy.engine import CursorResult
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from db.enums import BulkAction
from db.models import Base, Reviews
from kureno.services._helpers import now_iso
from kureno.services._types import BulkActionResultDict
from kureno.services.errors import InvalidActionError, InvalidRequestError, StorageError

logger = structlog.get_logger(__name__)

_PAST_TENSE: dict[BulkAction, str] = {
    BulkAction.VERIFY: "verified",
    BulkAction.UNVERIFY: "unverified",
    BulkAction.DELETE: "deleted",
}


def parse_action(raw: str) -> BulkAction:
    try:
        return BulkAction(raw)
    except ValueError:
        raise InvalidActionError(f"Invalid action: {raw!r}") from None


class BulkActionService:
    """Applies one action to a set of ids in a single statement.

    The model must have ``id``, ``verified`` and ``updated_at`` columns. Only
    rows whose flag actually changes count as modified.
    """

    def __init__(self, session: Session, model: type[Base] = Reviews, label: str = "review"):
        self.session = session
        self.model = model
        self.label = label

    def _set_verified(self, ids: list[str], flag: bool) -> int:
        model = self.model
        stmt = (
            update(model)
            .where(model.id.in_(ids), model.verified.is_not(flag))
            .values(verified=flag, updated_at=now_iso())
        )
        result: CursorResult = self.session.execute(stmt)
        return result.rowcount

    def _delete(self, ids: list[str]) -> int:
        stmt = delete(self.model).where(self.model.id.in_(ids))
        result: CursorResult = self.session.execute(stmt)
        return result.rowcount

    def apply(self, action: BulkAction | str, target_ids: Iterable[str]) -> BulkActionResultDict:
        if not isinstance(action, BulkAction):
            action = parse_action(action)
        ids: list[str] = list(dict.fromkeys(i for i in target_ids if i))
        if not ids:
            raise InvalidRequestError("At least one id is required")

        try:
            if action is BulkAction.DELETE:
                count: int = self._delete(ids)
            else:
                count = self._set_verified(ids, action is BulkAction.VERIFY)
            self.session.flush()
        except SQLAlchemyError as e:
            logger.exception("bulk_action_failed", action=action.value, targets=len(ids))
            raise StorageError("Bulk action failed") from e

        logger.info(
            "bulk_action_applied",
            action=action.value,
            model=self.model.__tablename__,
            requested=len(ids),
            affected=count,
        )
        return BulkActionResultDict(
            success=True,
            modifiedCount=count,
            message=f"Successfully {_PAST_TENSE[action]} {count} {self.label}(s)",
        )
