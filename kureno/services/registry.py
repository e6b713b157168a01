"""Entity registry and query builder.

Maps each concrete :class:`EntityName` to its ORM model, its bundle key in a
JSON export, and the serializer that inlines its relations.
"""

from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, date, datetime
from typing import Any

import structlog
from sqlalchemy import Select, and_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from db.enums import EntityName
from db.models import (
    AdminNotifications,
    Base,
    BlogPosts,
    Categories,
    Comments,
    Orders,
    Products,
    Users,
)
from kureno.services import serializers
from kureno.services._types import DateRangeDict, RecordDict
from kureno.services.errors import InvalidRequestError, StorageError

logger = structlog.get_logger(__name__)


def parse_instant(raw: str) -> datetime:
    """Parse an ISO date or datetime; bare dates are midnight UTC, naive times are UTC."""
    value: str = raw.strip()
    try:
        if len(value) == 10:
            d = date.fromisoformat(value)
            return datetime(d.year, d.month, d.day, tzinfo=UTC)
        parsed = datetime.fromisoformat(value)
        if parsed.tzinfo is None:
            return parsed.replace(tzinfo=UTC)
        return parsed.astimezone(UTC)
    except (ValueError, OverflowError) as e:
        raise InvalidRequestError(f"Invalid date: {raw!r}") from e


@dataclass(frozen=True)
class DateRange:
    """Inclusive creation-time window; either bound may be open."""

    start: datetime | None = None
    end: datetime | None = None
    raw_start: str | None = None
    raw_end: str | None = None

    @classmethod
    def parse(cls, start: str | None, end: str | None) -> "DateRange":
        start = start or None
        end = end or None
        return cls(
            start=parse_instant(start) if start else None,
            end=parse_instant(end) if end else None,
            raw_start=start,
            raw_end=end,
        )

    @property
    def is_open(self) -> bool:
        return self.start is None and self.end is None

    def conditions(self, column: Any) -> list:
        # created_at columns hold UTC isoformat() text, which sorts chronologically
        conditions: list = []
        if self.start is not None:
            conditions.append(column >= self.start.isoformat())
        if self.end is not None:
            conditions.append(column <= self.end.isoformat())
        return conditions

    def to_dict(self) -> DateRangeDict | None:
        if self.is_open:
            return None
        return DateRangeDict(startDate=self.raw_start, endDate=self.raw_end)


@dataclass(frozen=True)
class EntitySpec:
    name: EntityName
    bundle_key: str
    model: type[Base]
    serialize: Callable[[Any], RecordDict]


ENTITY_REGISTRY: dict[EntityName, EntitySpec] = {
    EntityName.PRODUCTS: EntitySpec(
        EntityName.PRODUCTS, "products", Products, serializers.product_record
    ),
    EntityName.CATEGORIES: EntitySpec(
        EntityName.CATEGORIES, "categories", Categories, serializers.category_record
    ),
    EntityName.USERS: EntitySpec(EntityName.USERS, "users", Users, serializers.user_record),
    EntityName.BLOG: EntitySpec(
        EntityName.BLOG, "blogPosts", BlogPosts, serializers.blog_post_record
    ),
    EntityName.ORDERS: EntitySpec(EntityName.ORDERS, "orders", Orders, serializers.order_record),
    EntityName.COMMENTS: EntitySpec(
        EntityName.COMMENTS, "comments", Comments, serializers.comment_record
    ),
    EntityName.NOTIFICATIONS: EntitySpec(
        EntityName.NOTIFICATIONS,
        "notifications",
        AdminNotifications,
        serializers.notification_record,
    ),
}

CONCRETE_ENTITIES: list[EntityName] = [e for e in EntityName if e is not EntityName.ALL]


def get_spec(entity: EntityName) -> EntitySpec:
    if entity is EntityName.ALL:
        raise InvalidRequestError("'all' is not a concrete entity")
    return ENTITY_REGISTRY[entity]


def resolve_entities(entity: EntityName) -> list[EntitySpec]:
    """Concrete specs for an entity name; ``all`` expands to every entity."""
    if entity is EntityName.ALL:
        return [ENTITY_REGISTRY[e] for e in CONCRETE_ENTITIES]
    return [ENTITY_REGISTRY[entity]]


def build_query(spec: EntitySpec, date_range: DateRange | None = None) -> Select:
    model = spec.model
    stmt: Select = select(model).order_by(model.created_at, model.id)
    conditions: list = date_range.conditions(model.created_at) if date_range else []
    if conditions:
        stmt = stmt.where(and_(*conditions))
    return stmt


def fetch_entity(
    session: Session,
    entity: EntityName,
    date_range: DateRange | None = None,
) -> list[RecordDict]:
    """Records of one concrete entity with relations inlined."""
    spec: EntitySpec = get_spec(entity)
    try:
        rows = session.scalars(build_query(spec, date_range)).all()
    except SQLAlchemyError as e:
        logger.exception("entity_fetch_failed", entity=entity.value)
        raise StorageError(f"Failed to load {entity.value}") from e
    return [spec.serialize(row) for row in rows]
