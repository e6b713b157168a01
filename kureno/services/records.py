"""Create-or-upsert writes keyed by each entity's natural unique key.

Shared by the creation endpoints and the importer so both apply the same
schema, the same reference resolution and the same duplicate rules.
"""

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel
from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from app.schemas.entities import BlogPostIn, CategoryIn, ProductIn, UserIn
from db.enums import EntityName, ImportMode, UserRole
from db.models import Base, BlogPosts, Categories, Products, Users
from kureno.services._helpers import dump_json, now_iso, slugify
from kureno.services.errors import DuplicateKeyError, UnsupportedEntityError, ValidationError

# (schema field, column, value): on update only fields present in the input are written
Assignment = tuple[str, str, Any]

_ROLE_PERMISSIONS: dict[UserRole, frozenset[str]] = {
    UserRole.ADMIN: frozenset(
        {
            "canManageProducts",
            "canManageOrders",
            "canManageUsers",
            "canManageContent",
            "canViewAnalytics",
            "canManageSettings",
        }
    ),
    UserRole.MANAGER: frozenset(
        {"canManageProducts", "canManageOrders", "canManageContent", "canViewAnalytics"}
    ),
    UserRole.USER: frozenset(),
}

_ALL_PERMISSIONS: tuple[str, ...] = (
    "canManageProducts",
    "canManageOrders",
    "canManageUsers",
    "canManageContent",
    "canViewAnalytics",
    "canManageSettings",
)


def permissions_for_role(role: UserRole) -> dict[str, bool]:
    granted: frozenset[str] = _ROLE_PERMISSIONS[role]
    return {p: p in granted for p in _ALL_PERMISSIONS}


# ------------------------------------------------------------------
# Reference resolution
# ------------------------------------------------------------------


def resolve_category(session: Session, ref: str) -> Categories:
    stmt = select(Categories).where(
        or_(
            Categories.id == ref,
            Categories.slug == ref.lower(),
            func.lower(Categories.name) == ref.lower(),
        )
    )
    category: Categories | None = session.scalars(stmt).first()
    if category is None:
        raise ValidationError(f"Unknown category: {ref}")
    return category


def resolve_user(session: Session, ref: str) -> Users:
    stmt = select(Users).where(or_(Users.id == ref, Users.email == ref.lower()))
    user: Users | None = session.scalars(stmt).first()
    if user is None:
        raise ValidationError(f"Unknown author: {ref}")
    return user


# ------------------------------------------------------------------
# Per-entity keys, unique lookups and column assignments
# ------------------------------------------------------------------

# (field name, unique column, value): one entry per unique column a record can collide on
Lookup = tuple[str, Any, str]


def _category_key(data: CategoryIn) -> str:
    return data.slug.lower() if data.slug else slugify(data.name)


def _category_lookups(data: CategoryIn) -> list[Lookup]:
    return [
        ("slug", Categories.slug, _category_key(data)),
        ("name", Categories.name, data.name),
    ]


def _category_values(session: Session, data: CategoryIn) -> list[Assignment]:
    return [
        ("name", "name", data.name),
        ("slug", "slug", _category_key(data)),
        ("description", "description", data.description),
    ]


def _product_key(data: ProductIn) -> str:
    return data.sku or slugify(data.name).upper()


def _product_lookups(data: ProductIn) -> list[Lookup]:
    return [("sku", Products.sku, _product_key(data))]


def _product_values(session: Session, data: ProductIn) -> list[Assignment]:
    category: Categories = resolve_category(session, data.category)
    return [
        ("sku", "sku", _product_key(data)),
        ("name", "name", data.name),
        ("description", "description", data.description),
        ("price", "price", data.price),
        ("images", "images", dump_json(data.images)),
        ("category", "category_id", category.id),
        ("stock", "stock", data.stock),
        ("featured", "featured", data.featured),
    ]


def _user_lookups(data: UserIn) -> list[Lookup]:
    return [("email", Users.email, data.email)]


def _user_values(session: Session, data: UserIn) -> list[Assignment]:
    address = data.address.model_dump(by_alias=True) if data.address else None
    return [
        ("name", "name", data.name),
        ("email", "email", data.email),
        ("role", "role", data.role.value),
        ("role", "permissions", dump_json(permissions_for_role(data.role))),
        ("phone", "phone", data.phone),
        ("bio", "bio", data.bio),
        ("address", "address", dump_json(address) if address else None),
        ("preferences", "preferences", dump_json(data.preferences.model_dump(by_alias=True))),
        ("is_active", "is_active", data.is_active),
    ]


def _blog_key(data: BlogPostIn) -> str:
    return data.slug.lower() if data.slug else slugify(data.title)


def _blog_lookups(data: BlogPostIn) -> list[Lookup]:
    return [("slug", BlogPosts.slug, _blog_key(data))]


def _blog_values(session: Session, data: BlogPostIn) -> list[Assignment]:
    author: Users = resolve_user(session, data.author)
    published_at: str | None = data.published_at
    if data.published and not published_at:
        published_at = now_iso()
    return [
        ("title", "title", data.title),
        ("slug", "slug", _blog_key(data)),
        ("content", "content", data.content),
        ("excerpt", "excerpt", data.excerpt),
        ("author", "author_id", author.id),
        ("cover_image", "cover_image", data.cover_image),
        ("tags", "tags", dump_json(data.tags)),
        ("published", "published", data.published),
        ("published", "published_at", published_at),
    ]


@dataclass(frozen=True)
class WriterSpec:
    schema: type[BaseModel]
    model: type[Base]
    key_field: str
    label: str
    natural_key: Callable[[Any], str]
    lookups: Callable[[Any], list[Lookup]]
    values: Callable[[Session, Any], list[Assignment]]

    def batch_keys(self, data: BaseModel) -> list[tuple[str, str]]:
        """The (field, value) pairs a later record in the same file must not repeat."""
        return [(field, value) for field, _column, value in self.lookups(data)]


WRITERS: dict[EntityName, WriterSpec] = {
    EntityName.CATEGORIES: WriterSpec(
        CategoryIn, Categories, "slug", "category",
        _category_key, _category_lookups, _category_values,
    ),
    EntityName.PRODUCTS: WriterSpec(
        ProductIn, Products, "sku", "product",
        _product_key, _product_lookups, _product_values,
    ),
    EntityName.USERS: WriterSpec(
        UserIn, Users, "email", "user",
        lambda d: d.email, _user_lookups, _user_values,
    ),
    EntityName.BLOG: WriterSpec(
        BlogPostIn, BlogPosts, "slug", "blog post",
        _blog_key, _blog_lookups, _blog_values,
    ),
}

IMPORTABLE_ENTITIES: list[EntityName] = list(WRITERS)


def get_writer(entity: EntityName) -> WriterSpec:
    writer: WriterSpec | None = WRITERS.get(entity)
    if writer is None:
        raise UnsupportedEntityError(f"Import is not supported for entity: {entity.value}")
    return writer


@dataclass(frozen=True)
class Match:
    row: Base
    field: str
    value: str


def find_existing(session: Session, writer: WriterSpec, data: BaseModel) -> Match | None:
    """The stored row the record collides with, checked column by column.

    Raises DuplicateKeyError when two unique columns point at different rows.
    """
    first: Match | None = None
    for field, column, value in writer.lookups(data):
        row: Base | None = session.scalars(select(writer.model).where(column == value)).first()
        if row is None:
            continue
        if first is None:
            first = Match(row, field, value)
        elif row is not first.row:
            raise DuplicateKeyError(f"{field} already used by another {writer.label}: {value}")
    return first


@dataclass
class WriteOutcome:
    action: str  # "created" | "updated"
    key: str
    row: Base | None


class RecordWriter:
    """Applies validated entity input to storage."""

    def __init__(self, session: Session) -> None:
        self.session: Session = session

    def write(
        self,
        entity: EntityName,
        data: BaseModel,
        mode: ImportMode = ImportMode.CREATE,
        dry_run: bool = False,
    ) -> WriteOutcome:
        """Create or upsert one record.

        With ``dry_run`` every lookup and reference check still runs but
        nothing is added or changed.
        """
        writer: WriterSpec = get_writer(entity)
        key: str = writer.natural_key(data)
        match: Match | None = find_existing(self.session, writer, data)

        if match is not None and mode is ImportMode.CREATE:
            raise DuplicateKeyError(f"{match.field} already exists: {match.value}")

        assignments: list[Assignment] = writer.values(self.session, data)
        existing: Base | None = match.row if match else None
        if dry_run:
            return WriteOutcome("updated" if existing else "created", key, existing)

        ts: str = now_iso()
        if existing is None:
            row: Base = writer.model(created_at=ts, updated_at=ts)
            for _field, column, value in assignments:
                setattr(row, column, value)
            self.session.add(row)
            action = "created"
        else:
            row = existing
            provided: set[str] = set(data.model_fields_set)
            for field, column, value in assignments:
                if field in provided or column == writer.key_field:
                    setattr(row, column, value)
            row.updated_at = ts
            action = "updated"

        self.session.flush()
        return WriteOutcome(action, key, row)
