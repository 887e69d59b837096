"""Value types shared by the reconciliation components."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum


def _utcnow() -> datetime:
    return datetime.now(UTC)


class ResourceType(StrEnum):
    IMAGE = "image"
    VIDEO = "video"
    RAW = "raw"


class DeletionStatus(StrEnum):
    DELETED = "deleted"
    ALREADY_ABSENT = "already_absent"
    FAILED = "failed"
    SKIPPED = "skipped"


class RunStatus(StrEnum):
    COMPLETED = "completed"
    FAILED = "failed"
    INTERRUPTED = "interrupted"


class RunStage(StrEnum):
    """Stages that can abort a run. Both come before any deletion is attempted."""

    FETCH_REFERENCES = "fetch_references"
    ENUMERATE_STORE = "enumerate_store"


@dataclass(frozen=True, slots=True)
class StoredObject:
    """An object held by the remote store, keyed by its store-assigned identifier."""

    object_id: str
    resource_type: ResourceType = ResourceType.IMAGE


@dataclass(frozen=True, slots=True)
class DeletionOutcome:
    object_id: str
    status: DeletionStatus
    reason: str | None = None

    @property
    def removed(self) -> bool:
        """Whether the object is gone from the store after the attempt."""

        return self.status in {DeletionStatus.DELETED, DeletionStatus.ALREADY_ABSENT}


@dataclass(frozen=True, slots=True)
class FailedDeletion:
    object_id: str
    reason: str


@dataclass(slots=True)
class ReconciliationReport:
    """Outcome of one reconciliation run for one asset category.

    ``deleted`` also lists objects the store reported as already absent; both end in
    the desired state. ``failed`` and ``skipped`` only ever hold objects that are
    still present in the store.
    """

    category: str
    status: RunStatus = RunStatus.COMPLETED
    failed_stage: RunStage | None = None
    error: str | None = None
    dry_run: bool = False
    referenced_count: int = 0
    total_in_store: int = 0
    unused_count: int = 0
    deleted: list[str] = field(default_factory=list[str])
    failed: list[FailedDeletion] = field(default_factory=list[FailedDeletion])
    skipped: list[str] = field(default_factory=list[str])
    unused: list[str] = field(default_factory=list[str])
    unrecognized_references: int = 0
    started_at: datetime = field(default_factory=_utcnow)
    finished_at: datetime | None = None

    @property
    def deleted_count(self) -> int:
        return len(self.deleted)

    @property
    def failed_count(self) -> int:
        return len(self.failed)

    @property
    def succeeded(self) -> bool:
        return self.status is RunStatus.COMPLETED

    def record(self, outcome: DeletionOutcome) -> None:
        if outcome.removed:
            self.deleted.append(outcome.object_id)
        elif outcome.status is DeletionStatus.SKIPPED:
            self.skipped.append(outcome.object_id)
        else:
            self.failed.append(FailedDeletion(outcome.object_id, outcome.reason or "unknown"))

    def fail(self, stage: RunStage, error: str) -> ReconciliationReport:
        self.status = RunStatus.FAILED
        self.failed_stage = stage
        self.error = error
        return self.finish()

    def finish(self) -> ReconciliationReport:
        self.finished_at = _utcnow()
        return self

    @property
    def message(self) -> str:
        if self.status is RunStatus.FAILED:
            stage = self.failed_stage.value if self.failed_stage else "unknown"
            return f"Run failed at stage {stage}, no changes made: {self.error}"
        if self.dry_run:
            return f"Dry run: {self.unused_count} unused objects would be deleted"
        if self.unused_count == 0:
            return "No unused objects found. All stored objects are referenced."
        prefix = "Run interrupted" if self.status is RunStatus.INTERRUPTED else "Cleanup complete"
        return f"{prefix}: {self.deleted_count} unused objects deleted, {self.failed_count} failed"

    def to_payload(self) -> dict[str, object]:
        """Render the caller-facing JSON object."""

        return {
            "category": self.category,
            "status": self.status.value,
            "stage": self.failed_stage.value if self.failed_stage else None,
            "error": self.error,
            "message": self.message,
            "dryRun": self.dry_run,
            "referencedCount": self.referenced_count,
            "totalInStore": self.total_in_store,
            "unusedCount": self.unused_count,
            "deletedCount": self.deleted_count,
            "failedCount": self.failed_count,
            "deleted": list(self.deleted),
            "failed": [{"id": entry.object_id, "reason": entry.reason} for entry in self.failed],
            "skipped": list(self.skipped),
            "unused": list(self.unused) if self.dry_run else [],
            "unrecognizedReferences": self.unrecognized_references,
            "startedAt": self.started_at.isoformat(),
            "finishedAt": self.finished_at.isoformat() if self.finished_at else None,
        }
