"""Port for the remote content store holding uploaded objects."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from assetsweep.domain.types import ResourceType, StoredObject

DELETE_OK = "ok"
DELETE_NOT_FOUND = "not found"


@dataclass(frozen=True, slots=True)
class ObjectPage:
    """One page of a namespace listing."""

    objects: tuple[StoredObject, ...] = field(default_factory=tuple)
    next_cursor: str | None = None


@runtime_checkable
class ObjectStore(Protocol):
    async def list_objects(
        self,
        *,
        namespace: str,
        resource_type: ResourceType,
        cursor: str | None = None,
        max_results: int = 500,
    ) -> ObjectPage: ...

    async def delete_object(self, obj: StoredObject) -> str:
        """Delete one object and return the store's raw result code."""
        ...
