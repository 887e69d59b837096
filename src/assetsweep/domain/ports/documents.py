"""Port for the document database holding reference documents."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Sequence

type Document = Mapping[str, object]


@dataclass(frozen=True, slots=True)
class OperationResult:
    """``{success, data|error}`` envelope returned by every database command."""

    success: bool
    data: object = None
    error: str | None = None

    @classmethod
    def ok(cls, data: object = None) -> OperationResult:
        return cls(success=True, data=data)

    @classmethod
    def failure(cls, error: str) -> OperationResult:
        return cls(success=False, error=error)

    @property
    def documents(self) -> Sequence[Document]:
        """Normalise zero, one or many documents into a list."""

        if self.data is None:
            return []
        if isinstance(self.data, Mapping):
            return [self.data]
        if isinstance(self.data, (list, tuple)):
            return [item for item in self.data if isinstance(item, Mapping)]
        return []


@runtime_checkable
class DocumentDatabase(Protocol):
    """Read/delete access to named document collections."""

    def read(self, collection: str, filter: Document | None = None) -> OperationResult: ...  # noqa: A002

    def find_referencing(self, collection: str, field_path: str, needle: str) -> OperationResult:
        """Return documents whose ``field_path`` value mentions ``needle``.

        Matching may be loose (substring); callers re-check the hits.
        """
        ...

    def delete(self, collection: str, filter: Document) -> OperationResult: ...  # noqa: A002
