"""Response normalization: dispatch on body shape, flattening, binary items."""

from __future__ import annotations

import base64
import json
from typing import Any

import pytest

from apsflow.normalize import (
    OutputItem,
    OutputOptions,
    flatten_entity,
    normalize_response,
    parse_body,
)
from apsflow.operations import DATA_MANAGEMENT, MODEL_DERIVATIVE
from apsflow.operations.data_management import DownloadObject, GetHubs
from apsflow.operations.model_derivative import GetManifest, GetThumbnail

pytestmark = pytest.mark.unit

ENTITY = {
    "id": "a",
    "type": "items",
    "attributes": {"name": "x"},
    "links": {"self": {"href": "u"}},
}
FLAT = {"id": "a", "type": "items", "href": "u", "name": "x"}


def _json_api(
    raw: Any, *, simplify: bool = True, split_items: bool = True, item_index: int = 0
) -> list[OutputItem]:
    return normalize_response(
        raw,
        spec=DATA_MANAGEMENT.get("getHubs"),
        params=GetHubs(),
        item_index=item_index,
        options=OutputOptions(simplify=simplify, split_items=split_items),
    )


# =============================================================================
# JSON:API dispatch
# =============================================================================


def test_list_body_simplified_and_split() -> None:
    out = _json_api({"data": [ENTITY]})

    assert out == [OutputItem(json=FLAT, paired_item=0)]


def test_list_body_simplified_without_split() -> None:
    out = _json_api({"data": [ENTITY]}, split_items=False)

    assert out == [OutputItem(json={"data": [FLAT]}, paired_item=0)]


def test_list_body_raw_and_split() -> None:
    second = {"id": "b", "type": "folders"}

    out = _json_api({"data": [ENTITY, second]}, simplify=False, item_index=3)

    assert [o.json for o in out] == [ENTITY, second]
    assert {o.paired_item for o in out} == {3}


def test_list_body_raw_without_split_returns_whole_body() -> None:
    body = {"jsonapi": {"version": "1.0"}, "data": [ENTITY], "links": {"next": None}}

    out = _json_api(body, simplify=False, split_items=False)

    assert out == [OutputItem(json=body, paired_item=0)]


def test_empty_data_array_with_split_yields_nothing() -> None:
    assert _json_api({"data": []}) == []


@pytest.mark.parametrize("simplify", [True, False])
def test_empty_data_array_without_split_yields_one_item(simplify: bool) -> None:
    out = _json_api({"data": []}, simplify=simplify, split_items=False)

    assert out == [OutputItem(json={"data": []}, paired_item=0)]


def test_single_object_body() -> None:
    assert _json_api({"data": ENTITY}) == [OutputItem(json=FLAT, paired_item=0)]
    assert _json_api({"data": ENTITY}, simplify=False) == [
        OutputItem(json=ENTITY, paired_item=0)
    ]


@pytest.mark.parametrize("simplify", [True, False])
def test_body_without_data_passes_through(simplify: bool) -> None:
    body = {"status": "success", "region": "US"}

    out = _json_api(body, simplify=simplify)

    assert out == [OutputItem(json=body, paired_item=0)]


def test_json_text_is_parsed() -> None:
    out = _json_api(json.dumps({"data": [ENTITY]}))

    assert out == [OutputItem(json=FLAT, paired_item=0)]


def test_unparseable_text_is_kept_verbatim() -> None:
    assert _json_api("<html>oops</html>") == [
        OutputItem(json="<html>oops</html>", paired_item=0)
    ]


def test_empty_body_is_kept() -> None:
    assert _json_api("") == [OutputItem(json="", paired_item=0)]


def test_parse_body_leaves_parsed_values_alone() -> None:
    value = {"a": 1}
    assert parse_body(value) is value
    assert parse_body("[1, 2]") == [1, 2]


def test_default_options_simplify_and_split() -> None:
    out = normalize_response(
        {"data": [ENTITY]},
        spec=DATA_MANAGEMENT.get("getHubs"),
        params=GetHubs(),
        item_index=0,
    )

    assert out == [OutputItem(json=FLAT, paired_item=0)]


# =============================================================================
# Documents
# =============================================================================


def test_documents_ignore_data_wrapper() -> None:
    body = {"type": "manifest", "data": [{"id": "x", "attributes": {"a": 1}}]}

    out = normalize_response(
        json.dumps(body),
        spec=MODEL_DERIVATIVE.get("getManifest"),
        params=GetManifest(urn="u"),
        item_index=1,
    )

    assert out == [OutputItem(json=body, paired_item=1)]


# =============================================================================
# Binary
# =============================================================================


def test_thumbnail_bytes_become_one_item_with_attachment() -> None:
    png = b"\x89PNG\r\n\x1a\nabc"

    out = normalize_response(
        png,
        spec=MODEL_DERIVATIVE.get("getThumbnail"),
        params=GetThumbnail(urn="u"),
        item_index=2,
    )

    assert len(out) == 1
    item = out[0]
    assert item.paired_item == 2
    assert item.json == {
        "thumbnail": base64.b64encode(png).decode("ascii"),
        "contentType": "image/png",
    }
    assert item.binary is not None
    assert item.binary.name == "data"
    assert item.binary.data == png
    assert item.binary.file_name == "thumbnail.png"
    assert item.binary.mime_type == "image/png"


def test_download_attachment_uses_object_name() -> None:
    out = normalize_response(
        b"col1,col2\n",
        spec=DATA_MANAGEMENT.get("downloadObject"),
        params=DownloadObject(bucket_key="bk", object_name="exports/report.csv"),
        item_index=0,
    )

    assert len(out) == 1
    assert out[0].json["content"] == base64.b64encode(b"col1,col2\n").decode("ascii")
    assert out[0].binary is not None
    assert out[0].binary.file_name == "report.csv"
    assert out[0].binary.mime_type == "text/csv"


def test_binary_operation_with_json_body_passes_through() -> None:
    body = {"reason": "thumbnail not ready"}

    out = normalize_response(
        json.dumps(body),
        spec=MODEL_DERIVATIVE.get("getThumbnail"),
        params=GetThumbnail(urn="u"),
        item_index=0,
    )

    assert out == [OutputItem(json=body, paired_item=0)]


def test_as_dict_shape() -> None:
    out = normalize_response(
        b"xy",
        spec=MODEL_DERIVATIVE.get("getThumbnail"),
        params=GetThumbnail(urn="u"),
        item_index=4,
    )

    data = out[0].as_dict()

    assert data["pairedItem"] == {"item": 4}
    assert data["binary"]["data"] == {
        "data": "eHk=",
        "fileName": "thumbnail.png",
        "mimeType": "image/png",
        "fileSize": 2,
    }
    assert "binary" not in OutputItem(json={}, paired_item=0).as_dict()


# =============================================================================
# Flattening
# =============================================================================


def test_identity_keys_win_over_attributes() -> None:
    entity = {
        "id": "real",
        "type": "items",
        "attributes": {"id": "shadow", "href": "shadow", "displayName": "d"},
        "links": {"self": {"href": "link"}},
    }

    assert flatten_entity(entity) == {
        "id": "real",
        "type": "items",
        "href": "link",
        "displayName": "d",
    }


def test_absent_identity_and_href_are_omitted() -> None:
    flat = flatten_entity({"attributes": {"name": "n"}, "links": {}})

    assert flat == {"name": "n"}


def test_present_null_identity_is_kept() -> None:
    flat = flatten_entity({"id": None, "type": "t", "attributes": {}})

    assert flat == {"id": None, "type": "t"}


@pytest.mark.parametrize(
    ("links", "href"),
    [
        ({"self": {"href": "a"}, "href": "b"}, "a"),
        ({"self": "s"}, "s"),
        ({"href": "b"}, "b"),
        ({"self": {}, "href": "b"}, "b"),
    ],
)
def test_href_lookup_order(links: dict[str, Any], href: str) -> None:
    assert flatten_entity({"id": "1", "links": links})["href"] == href


def test_flattened_output_is_stable() -> None:
    assert flatten_entity(flatten_entity(ENTITY)) == FLAT


@pytest.mark.parametrize("value", [None, "text", 3, ["a"]])
def test_non_mapping_entities_flatten_to_empty(value: Any) -> None:
    assert flatten_entity(value) == {}


def test_flatten_does_not_mutate_input() -> None:
    entity = json.loads(json.dumps(ENTITY))

    flatten_entity(entity)

    assert entity == ENTITY
