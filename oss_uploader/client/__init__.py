"""
Aliyun OSS client adapter.

Typed put/head/list/delete/bucket-info operations over the oss2 SDK.
"""

from .client import (
    BucketInfo,
    HeadResult,
    ListResult,
    ObjectInfo,
    ObjectState,
    OSSClient,
    RemoteStorageError,
)

__all__ = [
    "BucketInfo",
    "HeadResult",
    "ListResult",
    "ObjectInfo",
    "ObjectState",
    "OSSClient",
    "RemoteStorageError",
]
