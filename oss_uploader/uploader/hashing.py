"""
Content-hash file naming for cache busting.

    app.js      -> app.1a2b3c4d.js
    app.min.js  -> app.min.1a2b3c4d.js
    README      -> README.1a2b3c4d
    .gitignore  -> .gitignore.1a2b3c4d
"""

import hashlib
from pathlib import Path
from typing import Union

HASH_LENGTH = 8

# Read size for hashing large files
CHUNK_SIZE = 1024 * 1024


def content_hash(data: bytes) -> str:
    """Return the 8-character lowercase hex digest of `data`."""
    return hashlib.md5(data, usedforsecurity=False).hexdigest()[:HASH_LENGTH]


def file_content_hash(path: Union[str, Path]) -> str:
    """Same digest as content_hash(), streamed from a file."""
    digest = hashlib.md5(usedforsecurity=False)
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(CHUNK_SIZE), b""):
            digest.update(chunk)
    return digest.hexdigest()[:HASH_LENGTH]


def add_hash_to_filename(filename: str, file_hash: str) -> str:
    """
    Insert `file_hash` before the final extension of `filename`.

    Names without an extension, and dotfiles such as ``.gitignore``, get the
    hash appended instead.
    """
    dot = filename.rfind(".")
    if dot <= 0:
        return f"{filename}.{file_hash}"
    return f"{filename[:dot]}.{file_hash}{filename[dot:]}"
