"""Tests for db.connection schema setup."""

from sqlalchemy import create_engine, inspect
from sqlalchemy.engine import Engine

from db.connection import init_database
from db.models import Base


def test_init_database_is_idempotent() -> None:
    eng: Engine = create_engine("sqlite:///:memory:", echo=False)
    try:
        created: list[str] = init_database(eng)
        assert set(created) == set(Base.metadata.tables)
        assert "reviews" in inspect(eng).get_table_names()
        assert init_database(eng) == []
    finally:
        eng.dispose()
