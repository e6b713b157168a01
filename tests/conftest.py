"""Shared fixtures: in-memory SQLite DB with all tables."""

from collections.abc import Generator
from pathlib import Path

import pytest
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from config import get_settings
from db.models import Base


@pytest.fixture()
def engine() -> Generator[Engine, None, None]:
    eng: Engine = create_engine("sqlite:///:memory:", echo=False)
    Base.metadata.create_all(eng)
    yield eng
    eng.dispose()


@pytest.fixture()
def session(engine: Engine) -> Generator[Session, None, None]:
    factory: sessionmaker[Session] = sessionmaker(
        bind=engine,
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
    )
    sess: Session = factory()
    yield sess
    sess.rollback()
    sess.close()


@pytest.fixture()
def file_engine(tmp_path: Path) -> Generator[Engine, None, None]:
    """File-backed SQLite shared by several threads (parallel export fetches)."""
    eng: Engine = create_engine(
        f"sqlite:///{tmp_path / 'kureno-test.db'}",
        echo=False,
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(eng)
    yield eng
    eng.dispose()


@pytest.fixture(autouse=True)
def _fresh_settings(monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    """Settings come from a clean environment in every test; admin routes open without a key."""
    for var in ("KURENO_API_KEY", "KURENO_ADMIN_EMAIL", "DATABASE_URL"):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setenv("KURENO_ENVIRONMENT", "development")
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
