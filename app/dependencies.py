"""FastAPI dependencies: DB sessions and the admin guard."""

import secrets
from dataclasses import dataclass

from fastapi import Header
from sqlalchemy.orm import Session, sessionmaker

from config import Settings, get_settings
from db.connection import get_db as get_db  # noqa: F401  re-exported for routes
from db.connection import get_session_factory
from kureno.services.errors import UnauthorizedError


@dataclass(frozen=True)
class AdminIdentity:
    email: str


def require_admin(
    x_api_key: str = Header(default=""),
    x_admin_email: str = Header(default=""),
) -> AdminIdentity:
    """Guard for every admin route.

    Without a configured API key every caller is refused, unless the
    environment is explicitly "development".
    """
    settings: Settings = get_settings()
    expected: str | None = settings.api_key
    if not expected:
        if settings.environment.strip().lower() != "development":
            raise UnauthorizedError("Unauthorized - Admin access required")
    elif not secrets.compare_digest(x_api_key.encode(), expected.encode()):
        raise UnauthorizedError("Unauthorized - Admin access required")
    return AdminIdentity(email=(x_admin_email or settings.admin_email).strip().lower())


def get_export_session_factory() -> sessionmaker[Session] | None:
    """Session factory for parallel export fetches; None means fetch in the request session."""
    return get_session_factory()
