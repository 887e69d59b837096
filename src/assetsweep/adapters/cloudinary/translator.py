"""Translate Cloudinary payloads into domain values."""

from __future__ import annotations

from typing import TYPE_CHECKING

from assetsweep.domain.types import ResourceType, StoredObject

if TYPE_CHECKING:
    from .schema import ResourcePayload


def parse_stored_object(payload: ResourcePayload, *, requested: ResourceType) -> StoredObject:
    try:
        resource_type = ResourceType(payload.resource_type or requested)
    except ValueError:
        resource_type = requested
    return StoredObject(object_id=payload.public_id, resource_type=resource_type)
