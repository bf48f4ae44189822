"""Data Management and OSS operations.

Hubs, projects, folders and item versions come from the JSON:API flavoured
Data Management endpoints; buckets and objects from OSS v2. Every builder is
pure: parameters and endpoint in, request descriptor out.
"""

from __future__ import annotations

import base64
import binascii
from enum import Enum
import mimetypes
from typing import Literal

from pydantic import Field

from apsflow._http import JSON_API_ACCEPT, JSON_CONTENT_TYPE, OCTET_STREAM
from apsflow.errors import ConfigurationError
from apsflow.operations.base import (
    BinaryOutput,
    Endpoint,
    OperationRegistry,
    ResponseKind,
)
from apsflow.params import OperationParams
from apsflow.request import RequestDescriptor, build_url, merge_headers

Region = Literal["US", "EMEA"]
PolicyKey = Literal["transient", "temporary", "persistent"]


class DataManagementOperation(str, Enum):
    """Operations offered by the Data Management pipeline."""

    GET_HUBS = "getHubs"
    GET_PROJECTS = "getProjects"
    GET_TOP_FOLDERS = "getTopFolders"
    GET_ITEMS = "getItems"
    GET_ITEM_VERSIONS = "getItemVersions"
    LIST_BUCKETS = "listBuckets"
    CREATE_BUCKET = "createBucket"
    GET_BUCKET_DETAILS = "getBucketDetails"
    DELETE_BUCKET = "deleteBucket"
    UPLOAD_OBJECT = "uploadObject"
    DOWNLOAD_OBJECT = "downloadObject"
    GET_OBJECT_DETAILS = "getObjectDetails"
    DELETE_OBJECT = "deleteObject"
    COPY_OBJECT = "copyObject"


DATA_MANAGEMENT = OperationRegistry("data_management", json_api_output=True)


# =============================================================================
# Parameter variants
# =============================================================================


class GetHubs(OperationParams):
    operation: Literal["getHubs"] = "getHubs"


class GetProjects(OperationParams):
    operation: Literal["getProjects"] = "getProjects"
    #: e.g. ``b.123...``
    hub_id: str = Field(alias="hubId", min_length=1)


class _ProjectParams(OperationParams):
    #: ``b.123...`` or a GUID.
    project_id: str = Field(alias="projectId", min_length=1)


class GetTopFolders(_ProjectParams):
    operation: Literal["getTopFolders"] = "getTopFolders"


class GetItems(_ProjectParams):
    operation: Literal["getItems"] = "getItems"
    #: URN-style, e.g. ``urn:adsk.wipprod:fs.folder:co.xxxx``
    folder_id: str = Field(alias="folderId", min_length=1)


class GetItemVersions(_ProjectParams):
    operation: Literal["getItemVersions"] = "getItemVersions"
    #: URN-style, e.g. ``urn:adsk.wipprod:dm.lineage:xxxx``
    item_id: str = Field(alias="itemId", min_length=1)


class ListBuckets(OperationParams):
    operation: Literal["listBuckets"] = "listBuckets"
    region: Region = "US"
    limit: int = Field(50, ge=1)


class CreateBucket(OperationParams):
    operation: Literal["createBucket"] = "createBucket"
    #: Must be globally unique.
    new_bucket_key: str = Field(alias="newBucketKey", min_length=1)
    policy_key: PolicyKey = Field("temporary", alias="policyKey")
    region: Region = "US"


class _BucketParams(OperationParams):
    bucket_key: str = Field(alias="bucketKey", min_length=1)


class GetBucketDetails(_BucketParams):
    operation: Literal["getBucketDetails"] = "getBucketDetails"


class DeleteBucket(_BucketParams):
    operation: Literal["deleteBucket"] = "deleteBucket"


class _ObjectParams(_BucketParams):
    object_name: str = Field(alias="objectName", min_length=1)


class UploadObject(_ObjectParams):
    """Upload text, or base64-encoded binary when ``binaryData`` is set."""

    operation: Literal["uploadObject"] = "uploadObject"
    file_content: str = Field(alias="fileContent")
    content_type: str = Field(OCTET_STREAM, alias="contentType", min_length=1)
    binary_data: bool = Field(False, alias="binaryData")


class DownloadObject(_ObjectParams):
    operation: Literal["downloadObject"] = "downloadObject"


class GetObjectDetails(_ObjectParams):
    operation: Literal["getObjectDetails"] = "getObjectDetails"


class DeleteObject(_ObjectParams):
    operation: Literal["deleteObject"] = "deleteObject"


class CopyObject(_ObjectParams):
    operation: Literal["copyObject"] = "copyObject"
    new_object_name: str = Field(alias="newObjectName", min_length=1)


# =============================================================================
# Builders
# =============================================================================


def _json_api_get(endpoint: Endpoint, url: str) -> RequestDescriptor:
    return RequestDescriptor(
        method="GET",
        url=url,
        headers=merge_headers(endpoint.default_headers, {"Accept": JSON_API_ACCEPT}),
    )


@DATA_MANAGEMENT.register("getHubs", GetHubs, response=ResponseKind.JSON_API)
def build_get_hubs(params: GetHubs, endpoint: Endpoint) -> RequestDescriptor:
    return _json_api_get(endpoint, build_url(endpoint.base_url, "/project/v1/hubs"))


@DATA_MANAGEMENT.register("getProjects", GetProjects, response=ResponseKind.JSON_API)
def build_get_projects(params: GetProjects, endpoint: Endpoint) -> RequestDescriptor:
    url = build_url(
        endpoint.base_url, "/project/v1/hubs/{hubId}/projects", hubId=params.hub_id
    )
    return _json_api_get(endpoint, url)


@DATA_MANAGEMENT.register(
    "getTopFolders", GetTopFolders, response=ResponseKind.JSON_API
)
def build_get_top_folders(
    params: GetTopFolders, endpoint: Endpoint
) -> RequestDescriptor:
    url = build_url(
        endpoint.base_url,
        "/project/v1/projects/{projectId}/topFolders",
        projectId=params.project_id,
    )
    return _json_api_get(endpoint, url)


@DATA_MANAGEMENT.register("getItems", GetItems, response=ResponseKind.JSON_API)
def build_get_items(params: GetItems, endpoint: Endpoint) -> RequestDescriptor:
    url = build_url(
        endpoint.base_url,
        "/data/v1/projects/{projectId}/folders/{folderId}/contents",
        projectId=params.project_id,
        folderId=params.folder_id,
    )
    return _json_api_get(endpoint, url)


@DATA_MANAGEMENT.register(
    "getItemVersions", GetItemVersions, response=ResponseKind.JSON_API
)
def build_get_item_versions(
    params: GetItemVersions, endpoint: Endpoint
) -> RequestDescriptor:
    url = build_url(
        endpoint.base_url,
        "/data/v1/projects/{projectId}/items/{itemId}/versions",
        projectId=params.project_id,
        itemId=params.item_id,
    )
    return _json_api_get(endpoint, url)


@DATA_MANAGEMENT.register("listBuckets", ListBuckets, response=ResponseKind.JSON_API)
def build_list_buckets(params: ListBuckets, endpoint: Endpoint) -> RequestDescriptor:
    """Region travels as a header, not a query parameter."""
    return RequestDescriptor(
        method="GET",
        url=build_url(endpoint.base_url, "/oss/v2/buckets"),
        query={"limit": params.limit},
        headers=merge_headers(
            endpoint.default_headers,
            {"Accept": JSON_API_ACCEPT, "region": params.region},
        ),
    )


@DATA_MANAGEMENT.register(
    "createBucket", CreateBucket, response=ResponseKind.JSON_API
)
def build_create_bucket(params: CreateBucket, endpoint: Endpoint) -> RequestDescriptor:
    return RequestDescriptor(
        method="POST",
        url=build_url(endpoint.base_url, "/oss/v2/buckets"),
        headers=merge_headers(
            endpoint.default_headers,
            {"Content-Type": JSON_CONTENT_TYPE, "region": params.region},
        ),
        body={"bucketKey": params.new_bucket_key, "policyKey": params.policy_key},
        body_encoding="json",
    )


@DATA_MANAGEMENT.register(
    "getBucketDetails", GetBucketDetails, response=ResponseKind.JSON_API
)
def build_get_bucket_details(
    params: GetBucketDetails, endpoint: Endpoint
) -> RequestDescriptor:
    url = build_url(
        endpoint.base_url,
        "/oss/v2/buckets/{bucketKey}/details",
        bucketKey=params.bucket_key,
    )
    return _json_api_get(endpoint, url)


@DATA_MANAGEMENT.register(
    "deleteBucket", DeleteBucket, response=ResponseKind.JSON_API
)
def build_delete_bucket(params: DeleteBucket, endpoint: Endpoint) -> RequestDescriptor:
    return RequestDescriptor(
        method="DELETE",
        url=build_url(
            endpoint.base_url, "/oss/v2/buckets/{bucketKey}", bucketKey=params.bucket_key
        ),
        headers=merge_headers(endpoint.default_headers, {"Accept": JSON_API_ACCEPT}),
    )


_OBJECT_PATH = "/oss/v2/buckets/{bucketKey}/objects/{objectName}"


def _object_url(params: _ObjectParams, endpoint: Endpoint, suffix: str = "") -> str:
    return build_url(
        endpoint.base_url,
        _OBJECT_PATH + suffix,
        bucketKey=params.bucket_key,
        objectName=params.object_name,
    )


def _upload_bytes(params: UploadObject) -> bytes:
    if not params.binary_data:
        return params.file_content.encode("utf-8")
    # Line breaks and missing padding are tolerated; other characters are not.
    text = "".join(params.file_content.split())
    text += "=" * (-len(text) % 4)
    try:
        return base64.b64decode(text, altchars=b"-_", validate=True)
    except (binascii.Error, ValueError) as e:
        raise ConfigurationError(
            "fileContent is not valid base64",
            hint="Set binaryData=false to upload the text as-is.",
        ) from e


@DATA_MANAGEMENT.register(
    "uploadObject", UploadObject, response=ResponseKind.JSON_API
)
def build_upload_object(params: UploadObject, endpoint: Endpoint) -> RequestDescriptor:
    """Send the content as an opaque body; JSON encoding is bypassed."""
    return RequestDescriptor(
        method="PUT",
        url=_object_url(params, endpoint),
        headers=merge_headers(
            endpoint.default_headers, {"Content-Type": params.content_type}
        ),
        body=_upload_bytes(params),
        body_encoding="raw",
    )


def _download_file_name(params: DownloadObject) -> str:
    return params.object_name.rsplit("/", 1)[-1]


def _download_mime_type(params: DownloadObject) -> str:
    return mimetypes.guess_type(params.object_name)[0] or OCTET_STREAM


@DATA_MANAGEMENT.register(
    "downloadObject",
    DownloadObject,
    response=ResponseKind.BINARY,
    binary=BinaryOutput(
        field="content",
        file_name=_download_file_name,
        mime_type=_download_mime_type,
    ),
)
def build_download_object(
    params: DownloadObject, endpoint: Endpoint
) -> RequestDescriptor:
    return RequestDescriptor(
        method="GET",
        url=_object_url(params, endpoint),
        headers=merge_headers(endpoint.default_headers, {"Accept": JSON_API_ACCEPT}),
        expect_binary=True,
    )


@DATA_MANAGEMENT.register(
    "getObjectDetails", GetObjectDetails, response=ResponseKind.JSON_API
)
def build_get_object_details(
    params: GetObjectDetails, endpoint: Endpoint
) -> RequestDescriptor:
    return _json_api_get(endpoint, _object_url(params, endpoint, "/details"))


@DATA_MANAGEMENT.register(
    "deleteObject", DeleteObject, response=ResponseKind.JSON_API
)
def build_delete_object(params: DeleteObject, endpoint: Endpoint) -> RequestDescriptor:
    return RequestDescriptor(
        method="DELETE",
        url=_object_url(params, endpoint),
        headers=merge_headers(endpoint.default_headers, {"Accept": JSON_API_ACCEPT}),
    )


@DATA_MANAGEMENT.register("copyObject", CopyObject, response=ResponseKind.JSON_API)
def build_copy_object(params: CopyObject, endpoint: Endpoint) -> RequestDescriptor:
    url = build_url(
        endpoint.base_url,
        _OBJECT_PATH + "/copyTo/{newObjectName}",
        bucketKey=params.bucket_key,
        objectName=params.object_name,
        newObjectName=params.new_object_name,
    )
    return RequestDescriptor(
        method="PUT",
        url=url,
        headers=merge_headers(endpoint.default_headers, {"Accept": JSON_API_ACCEPT}),
    )
