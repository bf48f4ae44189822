"""Phase 3: Response normalization.

Reduces whatever the transport returned into a list of ``OutputItem``s:

- binary bodies of binary operations become one item with a base64 field and
  an attachment;
- JSON:API bodies are dispatched on the shape of ``data`` (list, object, or
  neither) and optionally flattened and split;
- everything else passes through verbatim.

Normalization is total: it never raises for an unexpected body shape.
"""

from __future__ import annotations

import base64
from dataclasses import dataclass
import json
from typing import TYPE_CHECKING, Any

from pydantic import Field

from apsflow.operations.base import ResponseKind
from apsflow.params import OperationParams

if TYPE_CHECKING:
    from apsflow.operations.base import OperationSpec

_IDENTITY_KEYS = ("id", "type")


@dataclass(frozen=True)
class BinaryAttachment:
    """A named byte payload carried next to an item's JSON."""

    name: str
    data: bytes
    file_name: str
    mime_type: str

    def as_dict(self) -> dict[str, Any]:
        """Return a JSON-safe description (content as base64)."""
        return {
            "data": base64.b64encode(self.data).decode("ascii"),
            "fileName": self.file_name,
            "mimeType": self.mime_type,
            "fileSize": len(self.data),
        }


@dataclass(frozen=True)
class OutputItem:
    """One output record, traceable to the input item that produced it."""

    json: Any
    paired_item: int
    binary: BinaryAttachment | None = None

    @classmethod
    def error(cls, message: str, paired_item: int) -> OutputItem:
        """Build the item emitted for a failed input under continue-on-failure."""
        return cls(json={"error": message}, paired_item=paired_item)

    def as_dict(self) -> dict[str, Any]:
        """Return the host-facing shape ``{json, pairedItem, binary?}``."""
        out: dict[str, Any] = {
            "json": self.json,
            "pairedItem": {"item": self.paired_item},
        }
        if self.binary is not None:
            out["binary"] = {self.binary.name: self.binary.as_dict()}
        return out


class OutputOptions(OperationParams):
    """Per-item output toggles for JSON:API responses."""

    #: Flatten each resource to ``id``, ``type``, ``href`` and its attributes.
    simplify: bool = True
    #: Emit one item per element of a ``data`` array.
    split_items: bool = Field(True, alias="splitItems")


def parse_body(raw: Any) -> Any:
    """Parse JSON text when possible; otherwise return *raw* unchanged."""
    if not isinstance(raw, str):
        return raw
    try:
        return json.loads(raw)
    except ValueError:
        return raw


def _self_href(links: Any) -> Any:
    if not isinstance(links, dict):
        return None
    self_link = links.get("self")
    if isinstance(self_link, dict) and self_link.get("href") is not None:
        return self_link["href"]
    if isinstance(self_link, str):
        return self_link
    return links.get("href")


def flatten_entity(entity: Any) -> dict[str, Any]:
    """Flatten one JSON:API resource into a single-level record.

    ``id`` and ``type`` are copied when the key is present and omitted
    otherwise. ``href`` comes from ``links.self.href`` (or a string
    ``links.self``), then ``links.href``, and is omitted when neither is set.
    Attribute fields are merged at the top level but never replace ``id``,
    ``type`` or ``href``. A record without ``attributes`` and ``links`` is
    already flat and is returned as a copy with identity fields first.
    Non-mapping input yields an empty record.
    """
    if not isinstance(entity, dict):
        return {}

    flat: dict[str, Any] = {k: entity[k] for k in _IDENTITY_KEYS if k in entity}

    if "attributes" not in entity and "links" not in entity:
        for key, value in entity.items():
            flat.setdefault(key, value)
        return flat

    href = _self_href(entity.get("links"))
    if href is not None:
        flat["href"] = href

    attributes = entity.get("attributes")
    if isinstance(attributes, dict):
        for key, value in attributes.items():
            flat.setdefault(key, value)
    return flat


def _binary_item(
    raw: bytes | bytearray | memoryview,
    spec: OperationSpec,
    params: OperationParams,
    item_index: int,
) -> OutputItem:
    binary = spec.binary
    assert binary is not None  # enforced by OperationRegistry.register
    data = bytes(raw)
    mime_type = binary.mime_type(params)
    return OutputItem(
        json={
            binary.field: base64.b64encode(data).decode("ascii"),
            "contentType": mime_type,
        },
        paired_item=item_index,
        binary=BinaryAttachment(
            name=binary.attachment,
            data=data,
            file_name=binary.file_name(params),
            mime_type=mime_type,
        ),
    )


def normalize_json_api(
    body: Any, options: OutputOptions, item_index: int
) -> list[OutputItem]:
    """Dispatch a parsed body on the shape of its ``data`` member."""
    data = body.get("data") if isinstance(body, dict) else None

    if isinstance(data, list):
        elements = [flatten_entity(e) for e in data] if options.simplify else data
        if options.split_items:
            return [OutputItem(json=e, paired_item=item_index) for e in elements]
        if options.simplify:
            return [OutputItem(json={"data": elements}, paired_item=item_index)]
        return [OutputItem(json=body, paired_item=item_index)]

    if isinstance(data, dict):
        target = flatten_entity(data) if options.simplify else data
        return [OutputItem(json=target, paired_item=item_index)]

    return [OutputItem(json=body, paired_item=item_index)]


def normalize_response(
    raw: Any,
    *,
    spec: OperationSpec,
    params: OperationParams,
    item_index: int,
    options: OutputOptions | None = None,
) -> list[OutputItem]:
    """Reduce one raw transport result to output items.

    Args:
        raw: Bytes, JSON text, or an already parsed value.
        spec: The operation that produced *raw*; decides binary handling and
            whether JSON:API dispatch applies.
        params: The operation's parameters (used for attachment metadata).
        item_index: Index of the originating input item.
        options: Output toggles; defaults to simplify and split.

    Returns:
        Zero or more items, all paired with *item_index*.
    """
    if spec.response is ResponseKind.BINARY and isinstance(
        raw, (bytes, bytearray, memoryview)
    ):
        return [_binary_item(raw, spec, params, item_index)]

    body = parse_body(raw)
    if spec.response is not ResponseKind.JSON_API:
        return [OutputItem(json=body, paired_item=item_index)]

    return normalize_json_api(body, options or OutputOptions(), item_index)
