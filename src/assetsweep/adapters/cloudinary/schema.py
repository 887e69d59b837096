"""Pydantic models describing the Cloudinary API payloads."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _blank_to_none(value: object) -> object:
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    return value


class CloudinaryBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class ResourcePayload(CloudinaryBaseModel):
    public_id: str
    resource_type: str | None = None
    type: str | None = None
    format: str | None = None
    size: int | None = Field(default=None, alias="bytes")
    created_at: str | None = None


class ResourceListResponse(CloudinaryBaseModel):
    resources: list[ResourcePayload] = Field(default_factory=list[ResourcePayload])
    next_cursor: str | None = None

    _normalize_cursor = field_validator("next_cursor", mode="before")(_blank_to_none)


class DestroyResponse(CloudinaryBaseModel):
    result: str


class ErrorDetail(CloudinaryBaseModel):
    message: str


class ErrorResponse(CloudinaryBaseModel):
    error: ErrorDetail
