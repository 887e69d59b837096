from __future__ import annotations

import os
from typing import TYPE_CHECKING

import pytest
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine  # noqa: TC002
from sqlalchemy.pool import StaticPool

from assetsweep.adapters.sqlalchemy import (
    SqlAlchemyDocumentDatabase,
    create_all_tables,
    shutdown,
    start_mappers,
    startup,
)

os.environ.setdefault("DATABASE_URI", "sqlite+pysqlite:///:memory:")

if TYPE_CHECKING:
    from collections.abc import Iterator


@pytest.fixture
def sqlite_engine() -> Iterator[Engine]:
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        future=True,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    start_mappers()
    create_all_tables(engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def sqlite_documents(sqlite_engine: Engine) -> Iterator[SqlAlchemyDocumentDatabase]:
    startup(engine=sqlite_engine, force=True)
    try:
        yield SqlAlchemyDocumentDatabase()
    finally:
        shutdown()


@pytest.fixture
def cloudinary_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CLOUDINARY_CLOUD_NAME", "demo")
    monkeypatch.setenv("CLOUDINARY_API_KEY", "key-123")
    monkeypatch.setenv("CLOUDINARY_API_SECRET", "secret-xyz")
