"""
Batch uploader for Aliyun OSS.

Uploads a file, a directory tree or a mixed list of both to an OSS prefix,
one file at a time. Every file produces an UploadResult; a failure on one
file (existing key, SDK error, unreadable file) is recorded and the batch
moves on. Optionally renames files with a content hash and writes a JSON
mapping of what went where.

Example usage:
    >>> from oss_uploader.uploader import OSSUploader, UploadOptions
    >>> uploader = OSSUploader(config)
    >>> results = uploader.upload(
    ...     UploadOptions(source="./dist", target="static/", exclude=["**/*.map"])
    ... )
    >>> failed = [r for r in results if not r.success]
"""

import fnmatch
import os
import time
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Union

from tqdm import tqdm

from oss_uploader.client import ObjectState, OSSClient, RemoteStorageError
from oss_uploader.uploader.hashing import add_hash_to_filename, file_content_hash
from oss_uploader.uploader.manifest import generate_mapping_file
from oss_uploader.utils.config import OSSConfig
from oss_uploader.utils.formatting import format_bytes, normalize_path, truncate_filename
from oss_uploader.utils.logging import get_logger, log_function_call
from oss_uploader.utils.metrics import get_metrics

# Module logger
logger = get_logger(__name__)

# Module metrics
metrics = get_metrics()

DEFAULT_INCLUDE_PATTERN = "**/*"

SOURCE_MISSING_ERROR = "Source path does not exist"
ALREADY_EXISTS_ERROR = "File already exists (use --overwrite to replace)"


@dataclass(frozen=True)
class UploadOptions:
    """
    Options for one upload run.

    Attributes:
        source: Local file or directory (ignored by upload_multiple)
        target: Remote prefix inside the bucket ("" for the bucket root)
        recursive: Allow directory sources
        overwrite: Replace existing keys; when False every key is checked
            with HEAD first
        include: Glob patterns relative to a directory source (default **/*)
        exclude: Glob patterns of files to skip
        verbose: Print one line per file instead of a progress bar
        generate_mapping: Write the mapping file after the run
        mapping_file: Mapping file path (default .oss-uploader-mapping.json)
        content_hash: Insert an 8-char content hash before the extension
        progress: Show a progress bar when not verbose
    """

    source: str = ""
    target: str = ""
    recursive: bool = True
    overwrite: bool = True
    include: Sequence[str] = field(default_factory=tuple)
    exclude: Sequence[str] = field(default_factory=tuple)
    verbose: bool = False
    generate_mapping: bool = True
    mapping_file: Optional[str] = None
    content_hash: bool = True
    progress: bool = True


@dataclass(frozen=True)
class UploadResult:
    """
    Result of uploading one file.

    Attributes:
        success: Whether the object was written
        local_path: Local file path
        remote_path: Object key (forward slashes, no leading slash)
        url: Public URL if successful
        size: File size in bytes if successful
        error: Error description (None if successful)
        duration_seconds: Wall time spent on this file
        uploaded_at: UTC time the upload finished
    """

    success: bool
    local_path: str
    remote_path: str
    url: Optional[str] = None
    size: Optional[int] = None
    error: Optional[str] = None
    duration_seconds: float = 0.0
    uploaded_at: Optional[datetime] = None


@dataclass(frozen=True)
class _UploadTask:
    """A file scheduled for upload under `remote_dir`."""

    local_path: str
    remote_dir: str


def join_key(*parts: str) -> str:
    """
    Join key segments with "/".

    Backslashes become forward slashes and empty segments and leading or
    trailing slashes are dropped, so keys never start with "/".
    """
    segments = []
    for part in parts:
        cleaned = normalize_path(part).strip("/")
        if cleaned:
            segments.append(cleaned)
    return "/".join(segments)


def matches_any(relative_path: str, patterns: Iterable[str]) -> bool:
    """
    True if `relative_path` (posix, relative to the source dir) matches a pattern.

    ``**/name`` also matches ``name`` at the top level.
    """
    for pattern in patterns:
        pattern = normalize_path(pattern)
        if fnmatch.fnmatchcase(relative_path, pattern):
            return True
        if pattern.startswith("**/") and fnmatch.fnmatchcase(relative_path, pattern[3:]):
            return True
    return False


def collect_files(
    directory: Union[str, Path],
    include: Optional[Sequence[str]] = None,
    exclude: Optional[Sequence[str]] = None,
) -> List[Path]:
    """
    Enumerate files under `directory`.

    Each include pattern is globbed in turn (sorted within the pattern);
    files matched by an earlier pattern are not repeated.

    Raises:
        ValueError: If an include pattern is absolute
    """
    directory = Path(directory)
    patterns = list(include) if include else [DEFAULT_INCLUDE_PATTERN]
    excluded = list(exclude or [])

    for pattern in patterns:
        if normalize_path(pattern).startswith("/") or Path(pattern).is_absolute():
            raise ValueError(
                f"Include pattern must be relative to the source directory: {pattern}"
            )

    seen = set()
    files: List[Path] = []
    for pattern in patterns:
        for path in sorted(p for p in directory.glob(pattern) if p.is_file()):
            relative = path.relative_to(directory).as_posix()
            if relative in seen or matches_any(relative, excluded):
                continue
            seen.add(relative)
            files.append(path)

    return files


class OSSUploader:
    """
    Sequential uploader bound to one bucket.

    Args:
        config: Validated OSS configuration
        client: OSS client (built from config if None)
        base_dir: Directory the default mapping file is written to
            (default: current working directory at write time)
    """

    def __init__(
        self,
        config: OSSConfig,
        client: Optional[OSSClient] = None,
        base_dir: Optional[Union[str, Path]] = None,
    ) -> None:
        self.config = config
        self.client = client if client is not None else OSSClient(config)
        self.base_dir = base_dir

    @log_function_call
    def upload(self, options: UploadOptions) -> List[UploadResult]:
        """
        Upload a single file or directory.

        Args:
            options: Upload options; options.source is the path to upload

        Returns:
            One UploadResult per file

        Raises:
            FileNotFoundError: If the source doesn't exist
            IsADirectoryError: If the source is a directory and
                options.recursive is False
            ValueError: If the source is neither a file nor a directory, or an
                include pattern is absolute
        """
        plan = self._plan_source(options)
        results = self._run(plan, options)

        if options.generate_mapping:
            generate_mapping_file(results, self.config, options.mapping_file, base_dir=self.base_dir)

        return results

    @log_function_call
    def upload_multiple(
        self, sources: Sequence[str], options: Optional[UploadOptions] = None
    ) -> List[UploadResult]:
        """
        Upload a mixed list of files and directories.

        Invalid sources become failed results instead of aborting the
        batch. A single mapping file covers the whole batch.

        Args:
            sources: Local files and/or directories
            options: Shared options (options.source is ignored)

        Returns:
            UploadResults in source order
        """
        options = options or UploadOptions()
        plan: List[Union[_UploadTask, UploadResult]] = []

        for source in sources:
            try:
                plan.extend(self._plan_source(replace(options, source=source)))
            except FileNotFoundError:
                logger.error(f"{SOURCE_MISSING_ERROR}: {source}")
                plan.append(
                    UploadResult(
                        success=False,
                        local_path=source,
                        remote_path="",
                        error=SOURCE_MISSING_ERROR,
                    )
                )
            except (IsADirectoryError, ValueError) as e:
                logger.error(str(e))
                plan.append(
                    UploadResult(success=False, local_path=source, remote_path="", error=str(e))
                )

        results = self._run(plan, options)

        if options.generate_mapping:
            generate_mapping_file(results, self.config, options.mapping_file, base_dir=self.base_dir)

        return results

    def _plan_source(self, options: UploadOptions) -> List[_UploadTask]:
        """Expand one source into upload tasks, validating it first."""
        source = Path(options.source)

        if not source.exists():
            raise FileNotFoundError(f"{SOURCE_MISSING_ERROR}: {options.source}")

        if source.is_file():
            return [_UploadTask(local_path=options.source, remote_dir=join_key(options.target))]

        if source.is_dir():
            if not options.recursive:
                raise IsADirectoryError(
                    f"Source is a directory: {options.source}. "
                    "Use --recursive to upload directories."
                )
            files = collect_files(source, options.include, options.exclude)
            logger.info(f"Found {len(files)} file(s) to upload from {source}")

            tasks = []
            for path in files:
                relative_dir = path.relative_to(source).parent.as_posix()
                if relative_dir == ".":
                    relative_dir = ""
                tasks.append(
                    _UploadTask(
                        local_path=str(path),
                        remote_dir=join_key(options.target, relative_dir),
                    )
                )
            return tasks

        raise ValueError(f"Invalid source: {options.source}")

    def _run(
        self, plan: Sequence[Union[_UploadTask, UploadResult]], options: UploadOptions
    ) -> List[UploadResult]:
        """Execute tasks in order; pre-failed results pass straight through."""
        total = sum(1 for item in plan if isinstance(item, _UploadTask))
        results: List[UploadResult] = []

        with tqdm(
            total=total,
            unit="file",
            desc="Uploading",
            disable=options.verbose or not options.progress or total == 0,
        ) as bar:
            for item in plan:
                if isinstance(item, UploadResult):
                    results.append(item)
                    continue

                bar.set_postfix_str(truncate_filename(os.path.basename(item.local_path)))
                result = self._upload_one(item, options)
                results.append(result)
                bar.update(1)

                if options.verbose:
                    self._report(result)

        successful = sum(1 for r in results if r.success)
        total_bytes = sum(r.size or 0 for r in results if r.success)
        logger.info(
            f"Batch upload complete: {successful}/{len(results)} successful, "
            f"{format_bytes(total_bytes)} uploaded"
        )
        return results

    def _upload_one(self, task: _UploadTask, options: UploadOptions) -> UploadResult:
        """Upload one file, converting every failure into a failed result."""
        start_time = time.time()
        filename = os.path.basename(task.local_path)
        remote_path = join_key(task.remote_dir, filename)

        try:
            if options.content_hash:
                file_hash = file_content_hash(task.local_path)
                remote_path = join_key(task.remote_dir, add_hash_to_filename(filename, file_hash))

            if not options.overwrite:
                head = self.client.head(remote_path)
                if head.state is ObjectState.FOUND:
                    logger.warning(f"Skipping existing object: {remote_path}")
                    metrics.record_upload_failure()
                    return UploadResult(
                        success=False,
                        local_path=task.local_path,
                        remote_path=remote_path,
                        error=ALREADY_EXISTS_ERROR,
                        duration_seconds=time.time() - start_time,
                    )
                if head.state is ObjectState.ERROR:
                    raise RemoteStorageError(f"Failed to check {remote_path}: {head.error}")

            size = os.path.getsize(task.local_path)
            with metrics.track_upload():
                self.client.put(remote_path, task.local_path)

        except (RemoteStorageError, OSError) as e:
            logger.error(f"Upload failed: {task.local_path} -> {remote_path}: {e}")
            metrics.record_upload_failure()
            return UploadResult(
                success=False,
                local_path=task.local_path,
                remote_path=remote_path,
                error=str(e),
                duration_seconds=time.time() - start_time,
            )

        duration = time.time() - start_time
        logger.debug(f"Uploaded {task.local_path} -> {remote_path} ({size} bytes in {duration:.2f}s)")
        metrics.record_upload_success(bytes_uploaded=size)

        return UploadResult(
            success=True,
            local_path=task.local_path,
            remote_path=remote_path,
            url=self.client.object_url(remote_path),
            size=size,
            duration_seconds=duration,
            uploaded_at=datetime.now(timezone.utc),
        )

    @staticmethod
    def _report(result: UploadResult) -> None:
        if result.success:
            tqdm.write(
                f"✓ {result.local_path} → {result.remote_path} ({format_bytes(result.size or 0)})"
            )
        else:
            tqdm.write(f"✗ {result.local_path} - {result.error}")
