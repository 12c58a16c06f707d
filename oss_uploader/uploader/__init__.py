"""
OSS batch uploader.

Uploads files and directory trees to an OSS prefix sequentially, with
optional content-hash renaming and a JSON mapping of the uploaded files.
"""

from .hashing import add_hash_to_filename, content_hash, file_content_hash
from .manifest import UploadMapping, generate_mapping_file
from .uploader import (
    OSSUploader,
    UploadOptions,
    UploadResult,
    collect_files,
    join_key,
)

__all__ = [
    "OSSUploader",
    "UploadOptions",
    "UploadResult",
    "UploadMapping",
    "add_hash_to_filename",
    "collect_files",
    "content_hash",
    "file_content_hash",
    "generate_mapping_file",
    "join_key",
]
