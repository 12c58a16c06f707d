"""
Aliyun OSS client adapter.

Wraps the oss2 SDK with the handful of typed operations the uploader, browser
and CLI need. SDK exceptions are translated into RemoteStorageError here so
callers never import oss2 themselves; a HEAD on a missing key is a normal
NOT_FOUND result rather than an exception.

Example usage:
    >>> from oss_uploader.client import OSSClient
    >>> client = OSSClient(config)
    >>> if client.head("assets/app.js").state is ObjectState.NOT_FOUND:
    ...     client.put("assets/app.js", "./dist/app.js")
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Optional

import oss2
from oss2.exceptions import NotFound, OssError

from oss_uploader.utils.config import OSSConfig
from oss_uploader.utils.logging import get_logger
from oss_uploader.utils.metrics import get_metrics

logger = get_logger(__name__)

metrics = get_metrics()

# OSS caps a single ListObjects page at 1000 keys
MAX_KEYS_PER_PAGE = 1000


class RemoteStorageError(Exception):
    """An OSS API call failed."""

    def __init__(self, message: str, code: Optional[str] = None) -> None:
        super().__init__(message)
        self.code = code


class ObjectState(str, Enum):
    """Outcome of an existence check."""

    FOUND = "found"
    NOT_FOUND = "not_found"
    ERROR = "error"


@dataclass(frozen=True)
class HeadResult:
    """Result of a HEAD request on one key."""

    state: ObjectState
    error: Optional[str] = None

    @property
    def exists(self) -> bool:
        return self.state is ObjectState.FOUND


@dataclass(frozen=True)
class ObjectInfo:
    """One object from a listing."""

    key: str
    size: int
    last_modified: Optional[int] = None


@dataclass
class ListResult:
    """
    Objects and common prefixes under one prefix.

    Attributes:
        objects: Objects directly returned by the listing
        prefixes: Common prefixes ("directories"); only filled when a
            delimiter was used
        truncated: Whether more keys were available than were fetched
    """

    objects: List[ObjectInfo] = field(default_factory=list)
    prefixes: List[str] = field(default_factory=list)
    truncated: bool = False


@dataclass(frozen=True)
class BucketInfo:
    """Subset of bucket metadata shown by the `info` command."""

    name: str
    location: Optional[str] = None
    creation_date: Optional[str] = None
    storage_class: Optional[str] = None
    extranet_endpoint: Optional[str] = None
    intranet_endpoint: Optional[str] = None


def describe_error(error: Exception) -> str:
    """Readable one-line message for an oss2 exception."""
    if isinstance(error, OssError):
        if error.code and error.message:
            return f"{error.code}: {error.message}"
        if error.message:
            return str(error.message)
        if error.code:
            return str(error.code)
        return f"HTTP {error.status}"
    return str(error)


def _strip_scheme(endpoint: str) -> str:
    for scheme in ("https://", "http://"):
        if endpoint.startswith(scheme):
            return endpoint[len(scheme):]
    return endpoint


def endpoint_host(config: OSSConfig, internal: Optional[bool] = None) -> str:
    """
    Host name the SDK talks to.

    A configured endpoint wins; otherwise the host is derived from the
    region (``<region>.aliyuncs.com`` or ``<region>-internal.aliyuncs.com``).
    """
    if config.endpoint:
        return _strip_scheme(config.endpoint).rstrip("/")
    use_internal = config.internal if internal is None else internal
    if use_internal:
        return f"{config.region}-internal.aliyuncs.com"
    return f"{config.region}.aliyuncs.com"


def build_endpoint(config: OSSConfig) -> str:
    """Endpoint URL (scheme included) passed to oss2.Bucket."""
    scheme = "https" if config.secure else "http"
    return f"{scheme}://{endpoint_host(config)}"


class OSSClient:
    """
    Typed facade over a single oss2.Bucket.

    Args:
        config: Validated OSS configuration
        bucket: Pre-built oss2.Bucket (tests inject a mock here)
    """

    def __init__(self, config: OSSConfig, bucket: Optional[Any] = None) -> None:
        self.config = config
        if bucket is None:
            auth = oss2.Auth(config.access_key_id, config.access_key_secret)
            bucket = oss2.Bucket(
                auth,
                build_endpoint(config),
                config.bucket,
                connect_timeout=config.timeout_seconds,
            )
        self._bucket = bucket

    def object_url(self, key: str) -> str:
        """Public URL of `key` (always the extranet host)."""
        scheme = "https" if self.config.secure else "http"
        return f"{scheme}://{self.config.bucket}.{endpoint_host(self.config, internal=False)}/{key}"

    def put(self, key: str, local_path: str) -> None:
        """
        Upload a local file to `key`.

        Raises:
            RemoteStorageError: If the SDK call fails
        """
        logger.debug(f"PUT {local_path} -> oss://{self.config.bucket}/{key}")
        try:
            self._bucket.put_object_from_file(key, local_path)
        except OssError as e:
            metrics.record_api_error(operation="put", error_type=e.code or type(e).__name__)
            raise RemoteStorageError(f"Failed to upload {key}: {describe_error(e)}", code=e.code)

    def head(self, key: str) -> HeadResult:
        """Check whether `key` exists. Never raises for SDK errors."""
        try:
            self._bucket.head_object(key)
        except NotFound:
            return HeadResult(ObjectState.NOT_FOUND)
        except OssError as e:
            metrics.record_api_error(operation="head", error_type=e.code or type(e).__name__)
            return HeadResult(ObjectState.ERROR, error=describe_error(e))
        return HeadResult(ObjectState.FOUND)

    def list(self, prefix: str = "", max_keys: int = 1000, delimiter: str = "") -> ListResult:
        """
        List up to `max_keys` objects under `prefix`.

        Pages through ListObjects until `max_keys` objects were collected or
        the listing is exhausted. With delimiter="/" the common prefixes are
        returned in `ListResult.prefixes`. A non-positive `max_keys` returns
        an empty result without calling OSS.

        Raises:
            RemoteStorageError: If the SDK call fails
        """
        result = ListResult()
        if max_keys <= 0:
            return result
        marker = ""

        try:
            while True:
                page_size = min(MAX_KEYS_PER_PAGE, max_keys - len(result.objects))
                page = self._bucket.list_objects(
                    prefix=prefix,
                    delimiter=delimiter,
                    marker=marker,
                    max_keys=page_size,
                )
                for info in page.object_list:
                    result.objects.append(
                        ObjectInfo(key=info.key, size=info.size, last_modified=info.last_modified)
                    )
                for common_prefix in page.prefix_list:
                    if common_prefix not in result.prefixes:
                        result.prefixes.append(common_prefix)

                if not page.is_truncated:
                    break
                if len(result.objects) >= max_keys:
                    result.truncated = True
                    break
                marker = page.next_marker
        except OssError as e:
            metrics.record_api_error(operation="list", error_type=e.code or type(e).__name__)
            raise RemoteStorageError(f"Failed to list files: {describe_error(e)}", code=e.code)

        logger.debug(
            f"Listed {len(result.objects)} object(s), {len(result.prefixes)} prefix(es) "
            f"under '{prefix}'"
        )
        return result

    def delete(self, key: str) -> None:
        """
        Delete `key`.

        Raises:
            RemoteStorageError: If the SDK call fails
        """
        try:
            self._bucket.delete_object(key)
        except OssError as e:
            metrics.record_api_error(operation="delete", error_type=e.code or type(e).__name__)
            raise RemoteStorageError(f"Failed to delete file: {describe_error(e)}", code=e.code)
        logger.info(f"Deleted oss://{self.config.bucket}/{key}")

    def bucket_info(self) -> BucketInfo:
        """
        Fetch bucket metadata; doubles as a connectivity check.

        Raises:
            RemoteStorageError: If the SDK call fails
        """
        try:
            info = self._bucket.get_bucket_info()
        except OssError as e:
            metrics.record_api_error(operation="info", error_type=e.code or type(e).__name__)
            raise RemoteStorageError(f"Failed to get bucket info: {describe_error(e)}", code=e.code)

        return BucketInfo(
            name=info.name,
            location=getattr(info, "location", None),
            creation_date=getattr(info, "creation_date", None),
            storage_class=getattr(info, "storage_class", None),
            extranet_endpoint=getattr(info, "extranet_endpoint", None),
            intranet_endpoint=getattr(info, "intranet_endpoint", None),
        )
