"""Tests for kureno.services.bulk."""

import pytest
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from db.enums import BulkAction
from db.models import Reviews
from kureno.services._helpers import new_id, now_iso
from kureno.services._types import BulkActionResultDict
from kureno.services.bulk import BulkActionService, parse_action
from kureno.services.errors import InvalidActionError, InvalidRequestError


def _seed_review(session: Session, verified: bool = False) -> Reviews:
    ts: str = now_iso()
    review = Reviews(
        id=new_id(),
        product_id=new_id(),
        user_id=new_id(),
        user_name="Ada",
        user_email="ada@example.com",
        rating=5,
        title="Great",
        comment="Holds a lot of coffee",
        verified=verified,
        created_at=ts,
        updated_at=ts,
    )
    session.add(review)
    session.flush()
    return review


def _verified_ids(session: Session) -> set[str]:
    return set(session.scalars(select(Reviews.id).where(Reviews.verified.is_(True))))


class TestVerify:
    def test_verify_reports_changed_rows(self, session: Session) -> None:
        a, b = _seed_review(session), _seed_review(session, verified=True)
        result: BulkActionResultDict = BulkActionService(session).apply("verify", [a.id, b.id])
        assert result["success"] is True
        assert result["modifiedCount"] == 1
        assert result["message"] == "Successfully verified 1 review(s)"
        assert _verified_ids(session) == {a.id, b.id}

    def test_verify_is_idempotent(self, session: Session) -> None:
        ids = [_seed_review(session, verified=True).id for _ in range(3)]
        result = BulkActionService(session).apply(BulkAction.VERIFY, ids)
        assert result["modifiedCount"] == 0

    def test_unverify(self, session: Session) -> None:
        a, b = _seed_review(session, verified=True), _seed_review(session)
        result = BulkActionService(session).apply("unverify", [a.id, b.id])
        assert result["modifiedCount"] == 1
        assert result["message"] == "Successfully unverified 1 review(s)"
        assert _verified_ids(session) == set()

    def test_unknown_ids_are_ignored(self, session: Session) -> None:
        a = _seed_review(session)
        result = BulkActionService(session).apply("verify", [a.id, "missing"])
        assert result["modifiedCount"] == 1


class TestDelete:
    def test_counts_actual_deletions(self, session: Session) -> None:
        a, b = _seed_review(session), _seed_review(session)
        result = BulkActionService(session).apply("delete", [a.id, b.id, "missing"])
        assert result["modifiedCount"] == 2
        assert result["message"] == "Successfully deleted 2 review(s)"
        assert session.scalar(select(func.count()).select_from(Reviews)) == 0

    def test_duplicate_ids_count_once(self, session: Session) -> None:
        a = _seed_review(session)
        result = BulkActionService(session).apply("delete", [a.id, a.id])
        assert result["modifiedCount"] == 1


class TestValidation:
    def test_invalid_action(self, session: Session) -> None:
        a = _seed_review(session)
        with pytest.raises(InvalidActionError):
            BulkActionService(session).apply("approve", [a.id])
        assert _verified_ids(session) == set()

    def test_empty_ids(self, session: Session) -> None:
        with pytest.raises(InvalidRequestError):
            BulkActionService(session).apply("verify", [])

    def test_parse_action(self) -> None:
        assert parse_action("delete") is BulkAction.DELETE
        with pytest.raises(InvalidActionError):
            parse_action("")
