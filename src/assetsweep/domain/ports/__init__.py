"""Domain port definitions for adapters."""

from __future__ import annotations

from .documents import Document, DocumentDatabase, OperationResult
from .object_store import DELETE_NOT_FOUND, DELETE_OK, ObjectPage, ObjectStore

__all__ = [
    "DELETE_NOT_FOUND",
    "DELETE_OK",
    "Document",
    "DocumentDatabase",
    "ObjectPage",
    "ObjectStore",
    "OperationResult",
]
