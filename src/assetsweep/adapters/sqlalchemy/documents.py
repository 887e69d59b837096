"""Document database backed by a single SQLAlchemy ``documents`` table."""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import UTC, datetime
from logging import getLogger
from typing import TYPE_CHECKING

from sqlalchemy import String, cast, create_engine, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from assetsweep.config.storage import get_database_config
from assetsweep.domain.errors import DocumentDatabaseError
from assetsweep.domain.ports.documents import OperationResult
from assetsweep.domain.references import field_values

from .mappings import DocumentRecord, create_all_tables, documents_table, start_mappers

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from sqlalchemy.engine import Engine

    from assetsweep.domain.ports.documents import Document

log = getLogger(__name__)

CREATE = "--create"
READ = "--read"
UPDATE = "--update"
DELETE = "--delete"


class StartupError(DocumentDatabaseError):
    """Raised when the SQLAlchemy document database is used before initialisation."""


@dataclass(slots=True)
class _AdapterState:
    _engine: Engine | None = None
    _session_factory: sessionmaker[Session] | None = None

    @property
    def engine(self) -> Engine | None:
        return self._engine

    @engine.setter
    def engine(self, value: Engine | None) -> None:
        self._session_factory = None
        self._engine = value

    @property
    def session_factory(self) -> sessionmaker[Session]:
        if self._engine is None:
            raise StartupError(
                "SQLAlchemy adapter not initialised. Call assetsweep.adapters.sqlalchemy."
                "startup() before opening the document database."
            )
        if self._session_factory is None:
            self._session_factory = sessionmaker(bind=self._engine, expire_on_commit=False)
        return self._session_factory


_STATE = _AdapterState()


def startup(
    *,
    engine: Engine | None = None,
    database_uri: str | None = None,
    force: bool = False,
) -> None:
    """Initialise the SQLAlchemy engine, metadata, and session factory."""

    if _STATE.engine is not None and not force:
        raise StartupError(
            "SQLAlchemy adapter already initialised. Pass force=True to reconfigure."
        )

    resolved_engine = engine or create_engine(
        database_uri or get_database_config().uri, future=True
    )
    start_mappers()
    create_all_tables(resolved_engine)
    _STATE.engine = resolved_engine


def configured_engine() -> Engine | None:
    """Return the engine currently managed by the adapter (if any)."""

    return _STATE.engine


def is_started() -> bool:
    return _STATE.engine is not None


def shutdown() -> None:
    """Dispose the managed engine and reset state (primarily for tests)."""

    if _STATE.engine is not None:
        _STATE.engine.dispose()
    _STATE.engine = None


def _matches(document: Mapping[str, object], filter: Document) -> bool:  # noqa: A002
    return all(document.get(key) == value for key, value in filter.items())


def _mentions(document: Mapping[str, object], field_path: str, needle: str) -> bool:
    values = list(field_values(document, field_path))
    if not values:
        return False
    return needle in json.dumps(values, ensure_ascii=False, default=str)


class SqlAlchemyDocumentDatabase:
    """Collections of JSON documents stored in one SQL table.

    Filters are equality matches on top-level keys; ``_id`` addresses the row id.
    Database errors are reported through :class:`OperationResult` and never raised.
    """

    def __init__(self, session_factory: sessionmaker[Session] | None = None) -> None:
        self._session_factory = session_factory or _STATE.session_factory
        self._commands: dict[str, Callable[[str, object], OperationResult]] = {
            CREATE: self._create_command,
            READ: self._read_command,
            UPDATE: self._update_command,
            DELETE: self._delete_command,
        }

    def execute(self, collection: str, command: str, data: object = None) -> OperationResult:
        """Dispatch one ``--create``/``--read``/``--update``/``--delete`` command."""

        handler = self._commands.get(command)
        if handler is None:
            return OperationResult.failure(f"Unknown command {command!r}")
        return handler(collection, data)

    def read(self, collection: str, filter: Document | None = None) -> OperationResult:  # noqa: A002
        try:
            with self._session_factory() as session:
                records = self._select(session, collection, filter or {})
                return OperationResult.ok([record.as_document() for record in records])
        except SQLAlchemyError as exc:
            return self._failure("read", collection, exc)

    def find_referencing(self, collection: str, field_path: str, needle: str) -> OperationResult:
        stmt = select(DocumentRecord).where(documents_table.c.collection == collection)
        if needle.isascii():
            # JSON text escapes non-ascii characters, so only ascii needles prefilter in SQL
            stmt = stmt.where(
                cast(documents_table.c.payload, String).contains(needle, autoescape=True)
            )
        try:
            with self._session_factory() as session:
                records = session.execute(stmt).scalars().all()
                return OperationResult.ok(
                    [
                        record.as_document()
                        for record in records
                        if _mentions(record.payload, field_path, needle)
                    ]
                )
        except SQLAlchemyError as exc:
            return self._failure("lookup", collection, exc)

    def create(self, collection: str, data: Document | Sequence[Document]) -> OperationResult:
        payloads = [data] if isinstance(data, Mapping) else list(data)
        records = [
            DocumentRecord(collection=collection, payload=dict(payload)) for payload in payloads
        ]
        try:
            with self._session_factory() as session, session.begin():
                session.add_all(records)
        except SQLAlchemyError as exc:
            return self._failure("create", collection, exc)
        ids = [record.id for record in records]
        log.debug(f"Created {len(ids)} documents in {collection}")
        return OperationResult.ok({"insertedIds": ids})

    def update(self, collection: str, filter: Document, update: Document) -> OperationResult:  # noqa: A002
        """Merge ``update`` into every document matching ``filter``."""

        try:
            with self._session_factory() as session, session.begin():
                records = self._select(session, collection, filter)
                now = datetime.now(tz=UTC)
                for record in records:
                    record.payload = {**record.payload, **update}
                    record.updated_at = now
        except SQLAlchemyError as exc:
            return self._failure("update", collection, exc)
        return OperationResult.ok({"matchedCount": len(records)})

    def delete(self, collection: str, filter: Document) -> OperationResult:  # noqa: A002
        if not filter:
            return OperationResult.failure("Refusing to delete without a filter")
        try:
            with self._session_factory() as session, session.begin():
                records = self._select(session, collection, filter)
                for record in records:
                    session.delete(record)
        except SQLAlchemyError as exc:
            return self._failure("delete", collection, exc)
        return OperationResult.ok({"deletedCount": len(records)})

    def _select(
        self,
        session: Session,
        collection: str,
        filter: Document,  # noqa: A002
    ) -> list[DocumentRecord]:
        stmt = select(DocumentRecord).where(documents_table.c.collection == collection)
        remaining = dict(filter)
        record_id = remaining.pop("_id", None)
        if record_id is not None:
            stmt = stmt.where(documents_table.c.id == str(record_id))
        stmt = stmt.order_by(documents_table.c.seq)
        records = session.execute(stmt).scalars().all()
        return [record for record in records if _matches(record.payload, remaining)]

    def _create_command(self, collection: str, data: object) -> OperationResult:
        if isinstance(data, Mapping) or (
            isinstance(data, (list, tuple)) and all(isinstance(item, Mapping) for item in data)
        ):
            return self.create(collection, data)
        return OperationResult.failure("Create expects a document or a list of documents")

    def _read_command(self, collection: str, data: object) -> OperationResult:
        if data is not None and not isinstance(data, Mapping):
            return OperationResult.failure("Read expects a filter document")
        result = self.read(collection, data)
        # a lookup by id answers with the single document
        if result.success and isinstance(data, Mapping) and ("_id" in data or "id" in data):
            found = result.documents
            if not found:
                return OperationResult.failure("Record not found")
            return OperationResult.ok(found[0])
        return result

    def _update_command(self, collection: str, data: object) -> OperationResult:
        if not isinstance(data, Mapping):
            return OperationResult.failure("Filter and update fields are required")
        filter_doc = data.get("filter")
        update_doc = data.get("update")
        if not isinstance(filter_doc, Mapping) or not isinstance(update_doc, Mapping):
            return OperationResult.failure("Filter and update fields are required")
        return self.update(collection, filter_doc, update_doc)

    def _delete_command(self, collection: str, data: object) -> OperationResult:
        if not isinstance(data, Mapping):
            return OperationResult.failure("Delete expects a filter document")
        return self.delete(collection, data)

    @staticmethod
    def _failure(action: str, collection: str, exc: SQLAlchemyError) -> OperationResult:
        log.error(f"Document {action} on {collection} failed: {exc}")
        return OperationResult.failure(str(exc))
