"""Model Derivative operations: translation jobs, manifests, metadata, thumbnails.

Responses here are domain documents rather than JSON:API resources, so they
are passed through untouched; only the thumbnail comes back as bytes.
"""

from __future__ import annotations

from enum import Enum
from typing import Literal

from pydantic import Field

from apsflow._http import JSON_ACCEPT, JSON_CONTENT_TYPE
from apsflow.operations.base import (
    BinaryOutput,
    Endpoint,
    OperationRegistry,
    ResponseKind,
)
from apsflow.params import OperationParams
from apsflow.request import RequestDescriptor, build_url, merge_headers

OutputFormat = Literal[
    "dwg", "fbx", "ifc", "iges", "obj", "step", "stl", "svf", "svf2", "thumbnail"
]
View = Literal["2d", "3d"]


class ModelDerivativeOperation(str, Enum):
    """Operations offered by the Model Derivative pipeline."""

    CREATE_JOB = "createJob"
    GET_MANIFEST = "getManifest"
    DELETE_MANIFEST = "deleteManifest"
    GET_METADATA = "getMetadata"
    GET_METADATA_TREE = "getMetadataTree"
    GET_THUMBNAIL = "getThumbnail"


MODEL_DERIVATIVE = OperationRegistry("model_derivative", json_api_output=False)


class _UrnParams(OperationParams):
    #: Base64-encoded URN of the source file.
    urn: str = Field(min_length=1)


class CreateJob(_UrnParams):
    """Submit a translation job.

    ``views`` only reaches the request when ``advancedOutputSettings`` is on.
    """

    operation: Literal["createJob"] = "createJob"
    output_format: OutputFormat = Field("svf", alias="outputFormat")
    advanced_output_settings: bool = Field(False, alias="advancedOutputSettings")
    views: list[View] = Field(default_factory=lambda: ["2d", "3d"])
    force_regenerate: bool = Field(False, alias="forceRegenerate")


class GetManifest(_UrnParams):
    operation: Literal["getManifest"] = "getManifest"
    #: ``""`` leaves the header off entirely.
    accept_encoding: Literal["", "gzip"] = Field("", alias="acceptEncoding")


class DeleteManifest(_UrnParams):
    operation: Literal["deleteManifest"] = "deleteManifest"


class GetMetadata(_UrnParams):
    operation: Literal["getMetadata"] = "getMetadata"


class GetMetadataTree(_UrnParams):
    operation: Literal["getMetadataTree"] = "getMetadataTree"
    #: Model view ID, from ``getMetadata``.
    guid: str = Field(min_length=1)
    force_get_tree: bool = Field(False, alias="forceGetTree")


class GetThumbnail(_UrnParams):
    operation: Literal["getThumbnail"] = "getThumbnail"
    width: int = Field(400, ge=1)
    height: int = Field(400, ge=1)


_DESIGN_DATA = "/modelderivative/v2/designdata/{urn}"


def _headers(endpoint: Endpoint, extra: dict[str, str] | None = None) -> dict[str, str]:
    return merge_headers(endpoint.default_headers, {"Accept": JSON_ACCEPT}, extra or {})


@MODEL_DERIVATIVE.register("createJob", CreateJob, response=ResponseKind.DOCUMENT)
def build_create_job(params: CreateJob, endpoint: Endpoint) -> RequestDescriptor:
    output_format: dict[str, object] = {"type": params.output_format}
    if params.advanced_output_settings:
        output_format["views"] = list(params.views)

    body = {
        "input": {"urn": params.urn},
        "output": {"formats": [output_format]},
    }
    return RequestDescriptor(
        method="POST",
        url=build_url(endpoint.base_url, "/modelderivative/v2/designdata/job"),
        query={"force": True} if params.force_regenerate else {},
        headers=merge_headers(
            endpoint.default_headers,
            {"Accept": JSON_ACCEPT, "Content-Type": JSON_CONTENT_TYPE},
        ),
        body=body,
        body_encoding="json",
    )


@MODEL_DERIVATIVE.register(
    "getManifest", GetManifest, response=ResponseKind.DOCUMENT
)
def build_get_manifest(params: GetManifest, endpoint: Endpoint) -> RequestDescriptor:
    extra = {"Accept-Encoding": params.accept_encoding} if params.accept_encoding else {}
    return RequestDescriptor(
        method="GET",
        url=build_url(endpoint.base_url, _DESIGN_DATA + "/manifest", urn=params.urn),
        headers=_headers(endpoint, extra),
    )


@MODEL_DERIVATIVE.register(
    "deleteManifest", DeleteManifest, response=ResponseKind.DOCUMENT
)
def build_delete_manifest(
    params: DeleteManifest, endpoint: Endpoint
) -> RequestDescriptor:
    return RequestDescriptor(
        method="DELETE",
        url=build_url(endpoint.base_url, _DESIGN_DATA + "/manifest", urn=params.urn),
        headers=_headers(endpoint),
    )


@MODEL_DERIVATIVE.register(
    "getMetadata", GetMetadata, response=ResponseKind.DOCUMENT
)
def build_get_metadata(params: GetMetadata, endpoint: Endpoint) -> RequestDescriptor:
    return RequestDescriptor(
        method="GET",
        url=build_url(endpoint.base_url, _DESIGN_DATA + "/metadata", urn=params.urn),
        headers=_headers(endpoint),
    )


@MODEL_DERIVATIVE.register(
    "getMetadataTree", GetMetadataTree, response=ResponseKind.DOCUMENT
)
def build_get_metadata_tree(
    params: GetMetadataTree, endpoint: Endpoint
) -> RequestDescriptor:
    url = build_url(
        endpoint.base_url,
        _DESIGN_DATA + "/metadata/{guid}",
        urn=params.urn,
        guid=params.guid,
    )
    return RequestDescriptor(
        method="GET",
        url=url,
        query={"forceget": True} if params.force_get_tree else {},
        headers=_headers(endpoint),
    )


@MODEL_DERIVATIVE.register(
    "getThumbnail",
    GetThumbnail,
    response=ResponseKind.BINARY,
    binary=BinaryOutput(
        field="thumbnail",
        file_name=lambda _params: "thumbnail.png",
        mime_type=lambda _params: "image/png",
    ),
)
def build_get_thumbnail(params: GetThumbnail, endpoint: Endpoint) -> RequestDescriptor:
    return RequestDescriptor(
        method="GET",
        url=build_url(endpoint.base_url, _DESIGN_DATA + "/thumbnail", urn=params.urn),
        query={"width": params.width, "height": params.height},
        headers=merge_headers(
            endpoint.default_headers, {"Accept": "image/png, application/json"}
        ),
        expect_binary=True,
    )
