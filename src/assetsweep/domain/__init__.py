"""Orphaned-object reconciliation domain."""

from __future__ import annotations

from .categories import ALL_CATEGORIES, AssetCategory, default_categories, resolve_categories
from .errors import (
    AssetSweepError,
    DocumentDatabaseError,
    EnumerationError,
    ObjectStoreError,
    ReferenceFetchError,
)
from .reconciliation import ReconcileOptions, Reconciler, reconcile_categories
from .types import (
    DeletionOutcome,
    DeletionStatus,
    FailedDeletion,
    ReconciliationReport,
    ResourceType,
    RunStage,
    RunStatus,
    StoredObject,
)

__all__ = [
    "ALL_CATEGORIES",
    "AssetCategory",
    "AssetSweepError",
    "DeletionOutcome",
    "DeletionStatus",
    "DocumentDatabaseError",
    "EnumerationError",
    "FailedDeletion",
    "ObjectStoreError",
    "ReconcileOptions",
    "ReconciliationReport",
    "Reconciler",
    "ReferenceFetchError",
    "ResourceType",
    "RunStage",
    "RunStatus",
    "StoredObject",
    "default_categories",
    "reconcile_categories",
    "resolve_categories",
]
