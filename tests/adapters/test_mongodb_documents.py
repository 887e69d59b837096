from __future__ import annotations

from typing import TYPE_CHECKING, Any, cast

from bson import ObjectId
from pymongo.errors import ServerSelectionTimeoutError

from assetsweep.adapters.mongodb import MongoDocumentDatabase

if TYPE_CHECKING:
    from pymongo.database import Database


class _DeleteResult:
    def __init__(self, deleted_count: int) -> None:
        self.deleted_count = deleted_count


class _FakeCollection:
    def __init__(self, documents: list[dict[str, Any]], *, error: Exception | None = None) -> None:
        self.documents = documents
        self.error = error
        self.queries: list[dict[str, Any]] = []

    def find(self, query: dict[str, Any]) -> list[dict[str, Any]]:
        self.queries.append(query)
        if self.error is not None:
            raise self.error
        return list(self.documents)

    def delete_many(self, query: dict[str, Any]) -> _DeleteResult:
        self.queries.append(query)
        return _DeleteResult(len(self.documents))


def _database(collection: _FakeCollection) -> Database[Any]:
    return cast("Database[Any]", {"products": collection})


def test_read_stringifies_object_ids() -> None:
    oid = ObjectId()
    collection = _FakeCollection([{"_id": oid, "imagePublicIds": ["peakmode/products/a"]}])

    result = MongoDocumentDatabase(_database(collection)).read("products")

    assert result.success
    assert result.documents == [{"_id": str(oid), "imagePublicIds": ["peakmode/products/a"]}]
    assert collection.queries == [{}]


def test_find_referencing_searches_the_field_and_nested_identifiers() -> None:
    collection = _FakeCollection([])

    MongoDocumentDatabase(_database(collection)).find_referencing(
        "products", "media", "peakmode/products/a.b"
    )

    (query,) = collection.queries
    pattern = {"$regex": r"peakmode/products/a\.b"}
    assert query == {
        "$or": [
            {"media": pattern},
            {"media.public_id": pattern},
            {"media.publicId": pattern},
            {"media.objectId": pattern},
            {"media.url": pattern},
        ]
    }


def test_id_filters_are_converted_to_object_ids() -> None:
    oid = ObjectId()
    collection = _FakeCollection([{"_id": oid}])

    result = MongoDocumentDatabase(_database(collection)).delete("products", {"_id": str(oid)})

    assert result.data == {"deletedCount": 1}
    assert collection.queries == [{"_id": oid}]


def test_delete_requires_a_filter() -> None:
    collection = _FakeCollection([{"_id": ObjectId()}])

    result = MongoDocumentDatabase(_database(collection)).delete("products", {})

    assert not result.success
    assert collection.queries == []


def test_driver_errors_are_reported_not_raised() -> None:
    collection = _FakeCollection([], error=ServerSelectionTimeoutError("no servers available"))

    result = MongoDocumentDatabase(_database(collection)).read("products")

    assert not result.success
    assert result.error == "no servers available"
