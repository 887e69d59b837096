"""Exhaustive listing of a store namespace through cursor pagination."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from .errors import EnumerationError
from .types import ResourceType

if TYPE_CHECKING:
    from collections.abc import Iterable

    from .ports import ObjectStore
    from .types import StoredObject

log = getLogger(__name__)

MAX_PAGE_SIZE = 500


async def enumerate_namespace(
    store: ObjectStore,
    namespace: str,
    *,
    resource_types: Iterable[ResourceType] = (ResourceType.IMAGE,),
    page_size: int = MAX_PAGE_SIZE,
) -> list[StoredObject]:
    """Return every object under ``namespace`` in arrival order.

    Pages are requested one after another since each cursor comes from the previous
    response. Any failed page aborts the whole listing: a partial listing is never
    returned.
    """

    if not 1 <= page_size <= MAX_PAGE_SIZE:
        raise ValueError(f"page_size must be between 1 and {MAX_PAGE_SIZE}, got {page_size}")

    # public ids are only unique within one resource type
    objects: dict[tuple[ResourceType, str], StoredObject] = {}
    for resource_type in resource_types:
        for obj in await _enumerate_resource_type(store, namespace, resource_type, page_size):
            objects.setdefault((obj.resource_type, obj.object_id), obj)
    return list(objects.values())


async def _enumerate_resource_type(
    store: ObjectStore,
    namespace: str,
    resource_type: ResourceType,
    page_size: int,
) -> list[StoredObject]:
    collected: list[StoredObject] = []
    seen_cursors: set[str] = set()
    cursor: str | None = None
    page_number = 0

    while True:
        try:
            page = await store.list_objects(
                namespace=namespace,
                resource_type=resource_type,
                cursor=cursor,
                max_results=page_size,
            )
        except Exception as exc:
            raise EnumerationError(
                f"Listing {resource_type} objects in {namespace} failed on page {page_number}: "
                f"{exc}"
            ) from exc

        collected.extend(page.objects)
        log.debug(
            f"Listed page {page_number} of {namespace} ({resource_type}): "
            f"{len(page.objects)} objects, next_cursor={page.next_cursor!r}"
        )

        cursor = page.next_cursor
        if not cursor:
            break
        if cursor in seen_cursors:
            raise EnumerationError(
                f"Listing {resource_type} objects in {namespace} returned a repeated cursor"
            )
        seen_cursors.add(cursor)
        page_number += 1

    return collected
