from __future__ import annotations

import pytest

from assetsweep.domain.categories import (
    ALL_CATEGORIES,
    AssetCategory,
    default_categories,
    resolve_categories,
)
from assetsweep.domain.types import ResourceType


def test_default_table_covers_every_upload_folder() -> None:
    table = default_categories()

    assert list(table) == ["products", "reviews", "messages", "support"]
    assert table["products"].namespace == "peakmode/products"
    assert table["products"].reference_fields == ("imagePublicIds", "media")
    assert table["products"].resource_types == (ResourceType.IMAGE,)
    assert table["reviews"].resource_types == (ResourceType.IMAGE, ResourceType.VIDEO)
    assert table["support"].collection == "support"


def test_root_folder_is_configurable() -> None:
    table = default_categories("/storefront/")

    assert table["messages"].namespace == "storefront/messages"


def test_all_expands_in_table_order_without_duplicates() -> None:
    table = default_categories()

    resolved = resolve_categories(["reviews", ALL_CATEGORIES, "reviews"], table)

    assert [category.name for category in resolved] == [
        "reviews",
        "products",
        "messages",
        "support",
    ]


def test_unknown_category_is_rejected() -> None:
    with pytest.raises(ValueError, match="Unknown category 'avatars'"):
        resolve_categories(["avatars"], default_categories())


@pytest.mark.parametrize(
    ("kwargs", "message"),
    [
        ({"reference_fields": ()}, "reference field"),
        ({"resource_types": ()}, "resource type"),
        ({"namespace": "/peakmode/products"}, "invalid namespace"),
        ({"namespace": ""}, "invalid namespace"),
    ],
)
def test_category_validation(kwargs: dict[str, object], message: str) -> None:
    values: dict[str, object] = {
        "name": "products",
        "collection": "products",
        "namespace": "peakmode/products",
        "reference_fields": ("imagePublicIds",),
    }
    values.update(kwargs)

    with pytest.raises(ValueError, match=message):
        AssetCategory(**values)  # type: ignore[arg-type]


def test_label_falls_back_to_name() -> None:
    category = AssetCategory(
        name="banners",
        collection="banners",
        namespace="peakmode/banners",
        reference_fields=("image",),
    )

    assert category.label == "banners"
    assert default_categories()["products"].label == "product images"
