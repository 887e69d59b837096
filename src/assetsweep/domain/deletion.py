"""Deletion of orphaned objects with per-object failure isolation."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from .errors import ObjectStoreError, ReferenceFetchError
from .ports.object_store import DELETE_NOT_FOUND, DELETE_OK
from .types import DeletionOutcome, DeletionStatus

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from .ports import ObjectStore
    from .types import StoredObject

log = getLogger(__name__)

DEFAULT_CONCURRENCY = 5
MAX_CONCURRENCY = 10

type ReferenceCheck = Callable[[StoredObject], bool]
type StopSignal = Callable[[], bool]


@dataclass(slots=True)
class DeletionBatch:
    """Outcomes in orphan order; orphans never attempted are absent."""

    outcomes: list[DeletionOutcome] = field(default_factory=list[DeletionOutcome])
    interrupted: bool = False


async def delete_orphan(store: ObjectStore, obj: StoredObject) -> DeletionOutcome:
    """Delete one object. A store reporting the object as absent counts as success."""

    try:
        result = await store.delete_object(obj)
    except ObjectStoreError as exc:
        log.error(f"Error deleting {obj.object_id}: {exc}")
        return DeletionOutcome(obj.object_id, DeletionStatus.FAILED, str(exc) or type(exc).__name__)
    except Exception as exc:  # noqa: BLE001
        log.exception(f"Unexpected error deleting {obj.object_id}")
        return DeletionOutcome(obj.object_id, DeletionStatus.FAILED, str(exc) or type(exc).__name__)

    if result == DELETE_OK:
        log.info(f"Deleted: {obj.object_id}")
        return DeletionOutcome(obj.object_id, DeletionStatus.DELETED)
    if result == DELETE_NOT_FOUND:
        log.info(f"Already absent: {obj.object_id}")
        return DeletionOutcome(obj.object_id, DeletionStatus.ALREADY_ABSENT)

    log.error(f"Failed to delete {obj.object_id}: {result}")
    return DeletionOutcome(obj.object_id, DeletionStatus.FAILED, result or "empty result")


async def _attempt(
    store: ObjectStore,
    obj: StoredObject,
    still_referenced: ReferenceCheck | None,
) -> DeletionOutcome:
    if still_referenced is not None:
        try:
            # document lookups are blocking I/O
            referenced = await asyncio.to_thread(still_referenced, obj)
        except ReferenceFetchError as exc:
            log.error(f"Could not re-check references for {obj.object_id}: {exc}")
            return DeletionOutcome(
                obj.object_id, DeletionStatus.FAILED, f"revalidation failed: {exc}"
            )
        if referenced:
            log.warning(f"Skipping {obj.object_id}: referenced again since the scan started")
            return DeletionOutcome(obj.object_id, DeletionStatus.SKIPPED, "referenced")
    return await delete_orphan(store, obj)


async def delete_orphans(
    store: ObjectStore,
    orphans: Sequence[StoredObject],
    *,
    concurrency: int = DEFAULT_CONCURRENCY,
    still_referenced: ReferenceCheck | None = None,
    stop_requested: StopSignal | None = None,
) -> DeletionBatch:
    """Attempt every orphan with at most ``concurrency`` deletions in flight.

    Once ``stop_requested`` returns true no new attempt is started; deletions that
    already completed stay done and are reported.

    ``still_referenced`` runs in a worker thread, so lookups for different orphans
    overlap like the deletions do.
    """

    if not 1 <= concurrency <= MAX_CONCURRENCY:
        raise ValueError(f"concurrency must be between 1 and {MAX_CONCURRENCY}, got {concurrency}")

    results: list[DeletionOutcome | None] = [None] * len(orphans)
    pending = iter(enumerate(orphans))
    batch = DeletionBatch()

    async def worker() -> None:
        while True:
            if stop_requested is not None and stop_requested():
                return
            item = next(pending, None)
            if item is None:
                return
            index, obj = item
            results[index] = await _attempt(store, obj, still_referenced)

    async with asyncio.TaskGroup() as group:
        for _ in range(min(concurrency, len(orphans))):
            group.create_task(worker())

    batch.outcomes = [outcome for outcome in results if outcome is not None]
    batch.interrupted = len(batch.outcomes) < len(orphans)
    if batch.interrupted:
        log.warning(
            f"Stop requested: {len(orphans) - len(batch.outcomes)} orphans left unattempted"
        )
    return batch
