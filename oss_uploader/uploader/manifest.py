"""
Upload manifest (mapping file) writer.

Records which local file went to which key/URL so build tooling can rewrite
asset references after a content-hashed upload.

Example output (.oss-uploader-mapping.json):
    {
      "uploadTime": "2026-01-04T10:30:15.123Z",
      "uploadTimeLocal": "2026-01-04 18:30:15",
      "bucket": "my-assets",
      "region": "oss-cn-hangzhou",
      "totalFiles": 1,
      "totalSize": 1536,
      "totalSizeFormatted": "1.5 KB",
      "files": [
        {
          "localPath": "/work/dist/app.js",
          "remotePath": "static/app.1a2b3c4d.js",
          "url": "https://my-assets.oss-cn-hangzhou.aliyuncs.com/static/app.1a2b3c4d.js",
          "size": 1536,
          "sizeFormatted": "1.5 KB",
          "uploadTime": "2026-01-04T10:30:14.987Z",
          "uploadTimeLocal": "2026-01-04 18:30:14"
        }
      ]
    }
"""

import json
from dataclasses import dataclass, asdict
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

from oss_uploader.utils.config import OSSConfig
from oss_uploader.utils.formatting import format_bytes
from oss_uploader.utils.logging import get_logger, log_function_call

logger = get_logger(__name__)

DEFAULT_MAPPING_FILENAME = ".oss-uploader-mapping.json"


@dataclass(frozen=True)
class UploadMapping:
    """One manifest entry (serialized with camelCase keys)."""

    localPath: str
    remotePath: str
    url: str
    size: int
    sizeFormatted: str
    uploadTime: str
    uploadTimeLocal: str


def iso_utc(moment: datetime) -> str:
    """ISO-8601 UTC timestamp with millisecond precision and a Z suffix."""
    utc = moment.astimezone(timezone.utc)
    return utc.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def local_time(moment: datetime) -> str:
    return moment.astimezone().strftime("%Y-%m-%d %H:%M:%S")


def build_mappings(results: Sequence[Any], now: Optional[datetime] = None) -> List[UploadMapping]:
    """Turn successful results (those with a URL) into manifest entries."""
    now = now or datetime.now(timezone.utc)
    mappings = []

    for result in results:
        if not (result.success and result.url):
            continue
        size = result.size or 0
        uploaded_at = result.uploaded_at or now
        mappings.append(
            UploadMapping(
                localPath=result.local_path,
                remotePath=result.remote_path,
                url=result.url,
                size=size,
                sizeFormatted=format_bytes(size),
                uploadTime=iso_utc(uploaded_at),
                uploadTimeLocal=local_time(uploaded_at),
            )
        )

    return mappings


@log_function_call
def generate_mapping_file(
    results: Sequence[Any],
    config: OSSConfig,
    path: Optional[Union[str, Path]] = None,
    base_dir: Optional[Union[str, Path]] = None,
) -> Optional[Path]:
    """
    Write the upload manifest for the successful results.

    Args:
        results: UploadResult list from an upload run
        config: Configuration the run used (bucket/region are recorded)
        path: Manifest path; relative paths resolve against base_dir
        base_dir: Directory for the default/relative manifest path
            (default: current working directory)

    Returns:
        Path written, or None if nothing succeeded (no file is written)
    """
    mappings = build_mappings(results)
    if not mappings:
        logger.debug("No successful uploads, skipping mapping file")
        return None

    base = Path(base_dir) if base_dir is not None else Path.cwd()
    mapping_path = Path(path) if path is not None else Path(DEFAULT_MAPPING_FILENAME)
    if not mapping_path.is_absolute():
        mapping_path = base / mapping_path

    now = datetime.now(timezone.utc)
    total_size = sum(m.size for m in mappings)

    document: Dict[str, Any] = {
        "uploadTime": iso_utc(now),
        "uploadTimeLocal": local_time(now),
        "bucket": config.bucket,
        "region": config.region,
        "totalFiles": len(mappings),
        "totalSize": total_size,
        "totalSizeFormatted": format_bytes(total_size),
        "files": [asdict(m) for m in mappings],
    }

    mapping_path.parent.mkdir(parents=True, exist_ok=True)
    mapping_path.write_text(json.dumps(document, indent=2, ensure_ascii=False), encoding="utf-8")

    logger.info(f"Upload mapping saved to: {mapping_path}")
    return mapping_path
