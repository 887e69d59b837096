"""SQLAlchemy adapter package for assetsweep."""

from __future__ import annotations

from .documents import (
    CREATE,
    DELETE,
    READ,
    UPDATE,
    SqlAlchemyDocumentDatabase,
    StartupError,
    configured_engine,
    is_started,
    shutdown,
    startup,
)
from .mappings import DocumentRecord, create_all_tables, mapper_registry, start_mappers

__all__ = [
    "CREATE",
    "DELETE",
    "READ",
    "UPDATE",
    "DocumentRecord",
    "SqlAlchemyDocumentDatabase",
    "StartupError",
    "configured_engine",
    "create_all_tables",
    "is_started",
    "mapper_registry",
    "shutdown",
    "start_mappers",
    "startup",
]
