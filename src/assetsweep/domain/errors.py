"""Domain error hierarchy."""

from __future__ import annotations


class AssetSweepError(RuntimeError):
    """Base class for reconciliation errors."""


class ReferenceFetchError(AssetSweepError):
    """Raised when reference documents for a category cannot be read."""


class EnumerationError(AssetSweepError):
    """Raised when the store namespace cannot be listed completely."""


class ObjectStoreError(AssetSweepError):
    """Raised by object store adapters for failed store calls."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class DocumentDatabaseError(AssetSweepError):
    """Raised when a document database adapter is used in an unusable state."""
