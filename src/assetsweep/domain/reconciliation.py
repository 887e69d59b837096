"""Reconcile stored objects against the documents that reference them."""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from .deletion import DEFAULT_CONCURRENCY, MAX_CONCURRENCY, delete_orphans
from .enumeration import MAX_PAGE_SIZE, enumerate_namespace
from .errors import EnumerationError, ReferenceFetchError
from .references import ReferenceScan, collect_referenced_ids, references_object
from .types import ReconciliationReport, RunStage, RunStatus

if TYPE_CHECKING:
    from collections.abc import Iterable

    from .categories import AssetCategory
    from .deletion import ReferenceCheck, StopSignal
    from .ports import DocumentDatabase, ObjectStore
    from .types import StoredObject

log = getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ReconcileOptions:
    dry_run: bool = False
    page_size: int = MAX_PAGE_SIZE
    concurrency: int = DEFAULT_CONCURRENCY
    revalidate: bool = True
    stop_requested: StopSignal | None = None

    def __post_init__(self) -> None:
        if not 1 <= self.page_size <= MAX_PAGE_SIZE:
            raise ValueError(f"page_size must be between 1 and {MAX_PAGE_SIZE}")
        if not 1 <= self.concurrency <= MAX_CONCURRENCY:
            raise ValueError(f"concurrency must be between 1 and {MAX_CONCURRENCY}")


class Reconciler:
    """Run reconciliation passes for asset categories.

    Each call to :meth:`run` is independent: the referenced set is rebuilt from the
    database and the namespace is listed again, so repeating a run right after a
    successful one finds nothing to delete.
    """

    def __init__(
        self,
        database: DocumentDatabase,
        store: ObjectStore,
        *,
        options: ReconcileOptions | None = None,
    ) -> None:
        self.database = database
        self.store = store
        self.options = options or ReconcileOptions()

    async def run(self, category: AssetCategory) -> ReconciliationReport:
        options = self.options
        report = ReconciliationReport(category=category.name, dry_run=options.dry_run)
        log.info(f"Starting cleanup of unused {category.label} in {category.namespace}")

        try:
            scan = self._fetch_references(category)
        except ReferenceFetchError as exc:
            log.error(f"Aborting {category.name}: {exc}")
            return report.fail(RunStage.FETCH_REFERENCES, str(exc))

        report.referenced_count = len(scan.referenced)
        report.unrecognized_references = scan.unrecognized
        log.info(
            f"Found {len(scan.referenced)} referenced objects in {scan.documents} "
            f"{category.collection} documents"
        )
        if scan.unrecognized:
            log.warning(
                f"{scan.unrecognized} reference values in {category.collection} "
                "could not be resolved to object identifiers"
            )

        try:
            stored = await enumerate_namespace(
                self.store,
                category.namespace,
                resource_types=category.resource_types,
                page_size=options.page_size,
            )
        except EnumerationError as exc:
            log.error(f"Aborting {category.name}: {exc}")
            return report.fail(RunStage.ENUMERATE_STORE, str(exc))

        report.total_in_store = len(stored)
        log.info(f"Found {len(stored)} objects in store folder {category.namespace}")

        orphans = [obj for obj in stored if obj.object_id not in scan.referenced]
        report.unused_count = len(orphans)
        log.info(f"Identified {len(orphans)} unused objects")

        if not orphans:
            return report.finish()
        if options.dry_run:
            report.unused = [obj.object_id for obj in orphans]
            return report.finish()

        batch = await delete_orphans(
            self.store,
            orphans,
            concurrency=options.concurrency,
            still_referenced=self._reference_check(category) if options.revalidate else None,
            stop_requested=options.stop_requested,
        )
        for outcome in batch.outcomes:
            report.record(outcome)
        if batch.interrupted:
            report.status = RunStatus.INTERRUPTED

        log.info(
            f"Cleanup of {category.name} complete: {report.deleted_count} deleted, "
            f"{report.failed_count} failed, {len(report.skipped)} skipped"
        )
        return report.finish()

    def _fetch_references(self, category: AssetCategory) -> ReferenceScan:
        try:
            result = self.database.read(category.collection)
        except Exception as exc:
            raise ReferenceFetchError(f"Failed to query {category.collection}: {exc}") from exc
        if not result.success:
            raise ReferenceFetchError(
                f"Failed to query {category.collection}: {result.error or 'unknown error'}"
            )
        return collect_referenced_ids(
            result.documents, category.reference_fields, namespace=category.namespace
        )

    def _reference_check(self, category: AssetCategory) -> ReferenceCheck:
        def still_referenced(obj: StoredObject) -> bool:
            for field_path in category.reference_fields:
                try:
                    result = self.database.find_referencing(
                        category.collection, field_path, obj.object_id
                    )
                except Exception as exc:
                    raise ReferenceFetchError(str(exc) or type(exc).__name__) from exc
                if not result.success:
                    raise ReferenceFetchError(result.error or "unknown error")
                if references_object(
                    result.documents,
                    (field_path,),
                    obj.object_id,
                    namespace=category.namespace,
                ):
                    return True
            return False

        return still_referenced


async def reconcile_categories(
    reconciler: Reconciler,
    categories: Iterable[AssetCategory],
) -> dict[str, ReconciliationReport]:
    """Run categories one after another; a failed category does not stop the rest."""

    reports: dict[str, ReconciliationReport] = {}
    for category in categories:
        stop = reconciler.options.stop_requested
        if stop is not None and stop():
            log.warning(f"Stop requested, not starting {category.name}")
            break
        reports[category.name] = await reconciler.run(category)
    return reports
