"""Asset category descriptors driving the reconciler."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from .types import ResourceType

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

ALL_CATEGORIES = "all"

_MEDIA_TYPES = (ResourceType.IMAGE, ResourceType.VIDEO)


@dataclass(frozen=True, slots=True)
class AssetCategory:
    """Where one kind of uploaded asset lives and which documents reference it."""

    name: str
    collection: str
    namespace: str
    reference_fields: tuple[str, ...]
    resource_types: tuple[ResourceType, ...] = (ResourceType.IMAGE,)
    display_name: str = ""

    def __post_init__(self) -> None:
        if not self.reference_fields:
            raise ValueError(f"Category {self.name!r} needs at least one reference field")
        if not self.resource_types:
            raise ValueError(f"Category {self.name!r} needs at least one resource type")
        if not self.namespace or self.namespace != self.namespace.strip("/"):
            raise ValueError(f"Category {self.name!r} has an invalid namespace {self.namespace!r}")

    @property
    def label(self) -> str:
        return self.display_name or self.name


def default_categories(root_folder: str = "peakmode") -> dict[str, AssetCategory]:
    root = root_folder.strip("/")
    categories = (
        AssetCategory(
            name="products",
            collection="products",
            namespace=f"{root}/products",
            reference_fields=("imagePublicIds", "media"),
            display_name="product images",
        ),
        AssetCategory(
            name="reviews",
            collection="reviews",
            namespace=f"{root}/reviews",
            reference_fields=("images",),
            resource_types=_MEDIA_TYPES,
            display_name="review media",
        ),
        AssetCategory(
            name="messages",
            collection="messages",
            namespace=f"{root}/messages",
            reference_fields=("attachments",),
            resource_types=_MEDIA_TYPES,
            display_name="message attachments",
        ),
        AssetCategory(
            name="support",
            collection="support",
            namespace=f"{root}/support",
            reference_fields=("attachments",),
            resource_types=_MEDIA_TYPES,
            display_name="support attachments",
        ),
    )
    return {category.name: category for category in categories}


def resolve_categories(
    names: Iterable[str],
    table: Mapping[str, AssetCategory],
) -> list[AssetCategory]:
    """Return the categories named, in table order for ``all`` and request order otherwise."""

    resolved: list[AssetCategory] = []
    seen: set[str] = set()
    for name in names:
        if name == ALL_CATEGORIES:
            candidates = list(table.values())
        elif name in table:
            candidates = [table[name]]
        else:
            known = ", ".join(sorted(table))
            raise ValueError(f"Unknown category {name!r} (known: {known}, or {ALL_CATEGORIES})")
        for category in candidates:
            if category.name not in seen:
                seen.add(category.name)
                resolved.append(category)
    return resolved
