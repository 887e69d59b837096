"""Extract stored-object identifiers from reference documents.

Documents reference uploaded objects in several shapes: a delivery URL, a bare
identifier, an ``{url, public_id}`` object, or a list of any of these. Values are
first parsed into a small sum type and then resolved by one recursive function.

Unparseable values are dropped rather than raised. They are counted so an operator
can spot documents whose references the extractor does not understand.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING
from urllib.parse import unquote, urlsplit

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

log = getLogger(__name__)

IDENTIFIER_KEYS = ("public_id", "publicId", "objectId")

# /<resource>/<type>/[<transformations>/]v<version>/<public id>[.<ext>]
_VERSIONED_PATH = re.compile(r"/v\d+/(?P<object_id>.+?)(?:\.[^./]+)?$")
_EXTENSION = re.compile(r"\.[A-Za-z0-9]+$")
_QUERY_OR_FRAGMENT = re.compile(r"[?#]")


@dataclass(frozen=True, slots=True)
class RawString:
    value: str


@dataclass(frozen=True, slots=True)
class UrlObject:
    object_id: str | None = None
    url: str | None = None


@dataclass(frozen=True, slots=True)
class ReferenceList:
    items: tuple[ReferenceValue, ...]


@dataclass(frozen=True, slots=True)
class Unrecognized:
    value: object


type ReferenceValue = RawString | UrlObject | ReferenceList | Unrecognized


@dataclass(frozen=True, slots=True)
class ResolvedReferences:
    object_ids: tuple[str, ...] = ()
    unrecognized: int = 0

    def __add__(self, other: ResolvedReferences) -> ResolvedReferences:
        return ResolvedReferences(
            object_ids=self.object_ids + other.object_ids,
            unrecognized=self.unrecognized + other.unrecognized,
        )


@dataclass(slots=True)
class ReferenceScan:
    """Referenced identifiers gathered from all documents of one category."""

    referenced: set[str]
    documents: int = 0
    unrecognized: int = 0


def parse_reference_value(value: object) -> ReferenceValue | None:
    """Classify a raw field value; ``None`` means the field holds nothing."""

    if value is None:
        return None
    if isinstance(value, str):
        return RawString(value)
    if isinstance(value, Mapping):
        return _parse_mapping(value)
    if isinstance(value, (list, tuple)):
        items = (parse_reference_value(item) for item in value)
        return ReferenceList(tuple(item for item in items if item is not None))
    return Unrecognized(value)


def _parse_mapping(value: Mapping[object, object]) -> ReferenceValue:
    object_id = next(
        (
            candidate
            for key in IDENTIFIER_KEYS
            if isinstance(candidate := value.get(key), str) and candidate.strip()
        ),
        None,
    )
    url = value.get("url")
    if object_id is None and not isinstance(url, str):
        return Unrecognized(value)
    return UrlObject(object_id=object_id, url=url if isinstance(url, str) else None)


def object_id_from_url(url: str) -> str | None:
    """Return the identifier embedded in a versioned delivery path.

    The scheme and host are optional: ``res.cloudinary.com/.../v1/<id>.jpg`` and a
    relative ``/v1/<id>.jpg`` resolve the same way as a full URL.
    """

    candidate = url.strip()
    if "://" in candidate or candidate.startswith("//"):
        path = urlsplit(candidate).path
    else:
        path = _QUERY_OR_FRAGMENT.split(candidate, maxsplit=1)[0]
    match = _VERSIONED_PATH.search(path)
    if match is None:
        return None
    return unquote(match.group("object_id"))


def object_id_from_string(value: str, *, namespace: str) -> str | None:
    candidate = value.strip()
    if not candidate:
        return None
    # a bare id may itself contain a /v<digits>/ segment
    if candidate.startswith(f"{namespace}/"):
        return _EXTENSION.sub("", candidate)
    return object_id_from_url(candidate)


def resolve_reference(reference: ReferenceValue, *, namespace: str) -> ResolvedReferences:
    match reference:
        case RawString(value=value):
            if not value.strip():
                return ResolvedReferences()
            object_id = object_id_from_string(value, namespace=namespace)
            if object_id is None:
                log.debug(f"Unrecognised reference string {value!r}")
                return ResolvedReferences(unrecognized=1)
            return ResolvedReferences((object_id,))
        case UrlObject(object_id=str() as object_id):
            return ResolvedReferences((object_id.strip(),))
        case UrlObject(url=str() as url):
            return resolve_reference(RawString(url), namespace=namespace)
        case ReferenceList(items=items):
            resolved = ResolvedReferences()
            for item in items:
                resolved += resolve_reference(item, namespace=namespace)
            return resolved
        case _:
            return ResolvedReferences()


def field_values(document: Mapping[str, object], field_path: str) -> Iterator[object]:
    """Yield the values found at a dotted path, fanning out over intermediate lists."""

    current: list[object] = [document]
    for part in field_path.split("."):
        following: list[object] = []
        for node in current:
            if isinstance(node, Mapping) and part in node:
                following.append(node[part])
            elif isinstance(node, (list, tuple)):
                following.extend(
                    item[part] for item in node if isinstance(item, Mapping) and part in item
                )
        current = following
    yield from current


def extract_object_ids(
    document: Mapping[str, object],
    field_path: str,
    *,
    namespace: str,
    into: set[str],
) -> int:
    """Add the identifiers referenced at ``field_path`` to ``into``.

    Only identifiers inside ``namespace`` are kept. Returns the number of
    unrecognised reference strings encountered.
    """

    unrecognized = 0
    prefix = f"{namespace}/"
    for value in field_values(document, field_path):
        reference = parse_reference_value(value)
        if reference is None:
            continue
        resolved = resolve_reference(reference, namespace=namespace)
        unrecognized += resolved.unrecognized
        into.update(object_id for object_id in resolved.object_ids if object_id.startswith(prefix))
    return unrecognized


def collect_referenced_ids(
    documents: Iterable[Mapping[str, object]],
    field_paths: Iterable[str],
    *,
    namespace: str,
) -> ReferenceScan:
    paths = tuple(field_paths)
    scan = ReferenceScan(referenced=set())
    for document in documents:
        scan.documents += 1
        for path in paths:
            scan.unrecognized += extract_object_ids(
                document, path, namespace=namespace, into=scan.referenced
            )
    return scan


def references_object(
    documents: Iterable[Mapping[str, object]],
    field_paths: Iterable[str],
    object_id: str,
    *,
    namespace: str,
) -> bool:
    scan = collect_referenced_ids(documents, field_paths, namespace=namespace)
    return object_id in scan.referenced
