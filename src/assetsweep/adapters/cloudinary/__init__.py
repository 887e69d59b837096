"""Public interface for the Cloudinary adapter."""

from __future__ import annotations

from .client import CloudinaryAPIError, CloudinaryObjectStore, sign_params
from .schema import DestroyResponse, ResourceListResponse, ResourcePayload
from .translator import parse_stored_object

__all__ = [
    "CloudinaryAPIError",
    "CloudinaryObjectStore",
    "DestroyResponse",
    "ResourceListResponse",
    "ResourcePayload",
    "parse_stored_object",
    "sign_params",
]
