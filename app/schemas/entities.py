"""Entity input schemas shared by the creation endpoints and the importer.

Reference fields (a product's category, a post's author) accept an id, a
natural key, or the ``{id, name}`` / ``{id, email}`` object an export emits,
so exported files can be imported back unchanged.
"""

import json
import re
from typing import Any

from pydantic import ConfigDict, Field, field_validator

from app.schemas.common import CamelModel
from db.enums import UserRole

_EMAIL_RE = re.compile(r"^\S+@\S+\.\S+$")


def _json_array(value: Any) -> Any:
    """CSV cells carry arrays as JSON text, the form the exporter writes."""
    if isinstance(value, str):
        try:
            parsed = json.loads(value)
        except json.JSONDecodeError:
            raise ValueError("must be a JSON array, e.g. [\"a\",\"b\"]") from None
        if not isinstance(parsed, list):
            raise ValueError("must be a JSON array")
        return parsed
    return value


def _reference(value: Any, keys: tuple[str, ...]) -> Any:
    if isinstance(value, dict):
        for key in keys:
            if value.get(key):
                return str(value[key])
        raise ValueError(f"reference object needs one of: {', '.join(keys)}")
    return value


class EntityIn(CamelModel):
    model_config = ConfigDict(str_strip_whitespace=True)


class CategoryIn(EntityIn):
    name: str = Field(..., min_length=1, max_length=100)
    slug: str | None = Field(None, max_length=120)
    description: str | None = None


class ProductIn(EntityIn):
    sku: str | None = Field(None, max_length=64)
    name: str = Field(..., min_length=1, max_length=100)
    description: str = Field("", max_length=2000)
    price: float = Field(..., ge=0)
    images: list[str] = Field(..., min_length=1)
    category: str = Field(..., min_length=1, description="Category id, slug or name")
    stock: int = Field(0, ge=0)
    featured: bool = False

    @field_validator("images", mode="before")
    @classmethod
    def _images(cls, v: Any) -> Any:
        return _json_array(v)

    @field_validator("category", mode="before")
    @classmethod
    def _category(cls, v: Any) -> Any:
        return _reference(v, ("id", "slug", "name"))


class AddressIn(EntityIn):
    street: str | None = None
    city: str | None = None
    state: str | None = None
    zip_code: str | None = None
    country: str | None = None


class PreferencesIn(EntityIn):
    email_notifications: bool = True
    marketing_emails: bool = False


class UserIn(EntityIn):
    name: str = Field(..., min_length=1)
    email: str
    role: UserRole = UserRole.USER
    phone: str | None = None
    bio: str | None = None
    address: AddressIn | None = None
    preferences: PreferencesIn = Field(default_factory=PreferencesIn)
    is_active: bool = True

    @field_validator("email")
    @classmethod
    def _email(cls, v: str) -> str:
        if not _EMAIL_RE.match(v):
            raise ValueError("invalid email format")
        return v.lower()


class BlogPostIn(EntityIn):
    title: str = Field(..., min_length=1, max_length=200)
    slug: str | None = Field(None, max_length=220)
    content: str = Field(..., min_length=1)
    excerpt: str = Field("", max_length=500)
    author: str = Field(..., min_length=1, description="Author user id or email")
    cover_image: str = ""
    tags: list[str] = Field(default_factory=list)
    published: bool = False
    published_at: str | None = None

    @field_validator("tags", mode="before")
    @classmethod
    def _tags(cls, v: Any) -> Any:
        return _json_array(v)

    @field_validator("author", mode="before")
    @classmethod
    def _author(cls, v: Any) -> Any:
        return _reference(v, ("id", "email"))
