"""Application orchestration entry points."""

from __future__ import annotations

import asyncio
from contextlib import ExitStack, contextmanager
from logging import getLogger
from typing import TYPE_CHECKING

from assetsweep.adapters.cloudinary import CloudinaryObjectStore
from assetsweep.adapters.mongodb import MongoDocumentDatabase
from assetsweep.adapters.sqlalchemy import SqlAlchemyDocumentDatabase, is_started, startup
from assetsweep.config import get_cloudinary_config, get_database_config, get_sweep_config
from assetsweep.domain.categories import default_categories, resolve_categories
from assetsweep.domain.reconciliation import ReconcileOptions, Reconciler, reconcile_categories

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator, Sequence

    from assetsweep.config import CloudinaryConfig, DatabaseConfig, SweepConfig
    from assetsweep.domain.categories import AssetCategory
    from assetsweep.domain.deletion import StopSignal
    from assetsweep.domain.ports import DocumentDatabase, ObjectStore
    from assetsweep.domain.types import ReconciliationReport

log = getLogger(__name__)


@contextmanager
def open_document_database(config: DatabaseConfig | None = None) -> Iterator[DocumentDatabase]:
    """Yield the document database selected by configuration."""

    effective = config or get_database_config()
    if effective.backend == "mongodb":
        database = MongoDocumentDatabase.from_config(effective)
        try:
            yield database
        finally:
            database.close()
        return

    if not is_started():
        startup(database_uri=effective.uri)
    yield SqlAlchemyDocumentDatabase()


def build_object_store(config: CloudinaryConfig | None = None) -> CloudinaryObjectStore:
    return CloudinaryObjectStore(config=config or get_cloudinary_config())


def list_categories(sweep: SweepConfig | None = None) -> list[AssetCategory]:
    sweep_config = sweep or get_sweep_config()
    return list(default_categories(sweep_config.root_folder).values())


async def _reconcile_with_store(
    database: DocumentDatabase,
    store: ObjectStore | None,
    categories: Sequence[AssetCategory],
    options: ReconcileOptions,
    cloudinary: CloudinaryConfig | None,
) -> dict[str, ReconciliationReport]:
    if store is not None:
        return await reconcile_categories(Reconciler(database, store, options=options), categories)
    async with build_object_store(cloudinary) as cloudinary_store:
        reconciler = Reconciler(database, cloudinary_store, options=options)
        return await reconcile_categories(reconciler, categories)


def reconcile(
    category_names: Iterable[str],
    *,
    dry_run: bool = False,
    concurrency: int | None = None,
    page_size: int | None = None,
    revalidate: bool | None = None,
    stop_requested: StopSignal | None = None,
    database: DocumentDatabase | None = None,
    store: ObjectStore | None = None,
    sweep: SweepConfig | None = None,
) -> dict[str, ReconciliationReport]:
    """Reconcile the named categories using the configured adapters.

    Unset options fall back to the sweep configuration. Reports are keyed by category
    name in run order; a category missing from the result was not started because a
    stop was requested.
    """

    sweep_config = sweep or get_sweep_config()
    categories = resolve_categories(
        category_names, default_categories(sweep_config.root_folder)
    )
    options = ReconcileOptions(
        dry_run=dry_run,
        page_size=page_size or sweep_config.page_size,
        concurrency=concurrency or sweep_config.concurrency,
        revalidate=sweep_config.revalidate if revalidate is None else revalidate,
        stop_requested=stop_requested,
    )
    # credentials are checked before any database connection is opened
    cloudinary = get_cloudinary_config() if store is None else None

    log.info(
        f"Starting reconciliation: categories={[c.name for c in categories]}, "
        f"dry_run={options.dry_run}, concurrency={options.concurrency}, "
        f"page_size={options.page_size}, revalidate={options.revalidate}"
    )
    with ExitStack() as stack:
        effective_database = database or stack.enter_context(open_document_database())
        reports = asyncio.run(
            _reconcile_with_store(effective_database, store, categories, options, cloudinary)
        )

    for report in reports.values():
        log.info(f"Finished {report.category}: status={report.status}, {report.message}")
    return reports
