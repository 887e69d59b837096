"""Document database adapter over a MongoDB database handle."""

from __future__ import annotations

import re
from logging import getLogger
from typing import TYPE_CHECKING, Any

from bson import ObjectId
from pymongo import MongoClient
from pymongo.errors import PyMongoError

from assetsweep.domain.ports.documents import OperationResult
from assetsweep.domain.references import IDENTIFIER_KEYS

if TYPE_CHECKING:
    from collections.abc import Mapping

    from pymongo.database import Database

    from assetsweep.config.storage import DatabaseConfig
    from assetsweep.domain.ports.documents import Document

log = getLogger(__name__)

_NESTED_REFERENCE_KEYS = (*IDENTIFIER_KEYS, "url")


def _plain(document: Mapping[str, Any]) -> dict[str, object]:
    return {**document, "_id": str(document["_id"])} if "_id" in document else dict(document)


def _query(filter: Document | None) -> dict[str, object]:  # noqa: A002
    query = dict(filter or {})
    record_id = query.get("_id")
    if isinstance(record_id, str) and ObjectId.is_valid(record_id):
        query["_id"] = ObjectId(record_id)
    return query


class MongoDocumentDatabase:
    """Reference documents read from MongoDB collections.

    Errors raised by pymongo are reported through :class:`OperationResult`.
    """

    def __init__(
        self,
        database: Database[Any],
        *,
        client: MongoClient[Any] | None = None,
    ) -> None:
        self._database = database
        self._client = client

    @classmethod
    def from_config(cls, config: DatabaseConfig) -> MongoDocumentDatabase:
        client: MongoClient[Any] = MongoClient(config.uri)
        return cls(client[config.database_name or ""], client=client)

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None

    def read(self, collection: str, filter: Document | None = None) -> OperationResult:  # noqa: A002
        try:
            documents = [_plain(doc) for doc in self._database[collection].find(_query(filter))]
        except PyMongoError as exc:
            return self._failure("read", collection, exc)
        return OperationResult.ok(documents)

    def find_referencing(self, collection: str, field_path: str, needle: str) -> OperationResult:
        pattern = {"$regex": re.escape(needle)}
        paths = [field_path, *(f"{field_path}.{key}" for key in _NESTED_REFERENCE_KEYS)]
        query = {"$or": [{path: pattern} for path in paths]}
        try:
            documents = [_plain(doc) for doc in self._database[collection].find(query)]
        except PyMongoError as exc:
            return self._failure("lookup", collection, exc)
        return OperationResult.ok(documents)

    def delete(self, collection: str, filter: Document) -> OperationResult:  # noqa: A002
        if not filter:
            return OperationResult.failure("Refusing to delete without a filter")
        try:
            result = self._database[collection].delete_many(_query(filter))
        except PyMongoError as exc:
            return self._failure("delete", collection, exc)
        return OperationResult.ok({"deletedCount": result.deleted_count})

    @staticmethod
    def _failure(action: str, collection: str, exc: PyMongoError) -> OperationResult:
        log.error(f"MongoDB {action} on {collection} failed: {exc}")
        return OperationResult.failure(str(exc))
