import hashlib
import json
from pathlib import Path

from pydantic import BaseModel

CHUNK_SIZE = 1024 * 1024


def compute_content_hash(*args, len=16) -> str:
    """
    Compute SHA256 hash of content for run identifiers.

    Args:
        *args: Variable arguments to include in hash
        len: Length of the returned hash string (default 16)

    Returns:
        Hex string of SHA256 hash
    """
    # Create a deterministic string representation
    content_parts = []
    for arg in args:
        if arg is None:
            content_parts.append("NULL")
        elif isinstance(arg, BaseModel):
            content_parts.append(json.dumps(arg.model_dump(mode="json"), sort_keys=True))
        elif isinstance(arg, (dict, list)):
            content_parts.append(json.dumps(arg, sort_keys=True, default=str))
        else:
            content_parts.append(str(arg))

    content_str = "|".join(content_parts)
    return hashlib.sha256(content_str.encode("utf-8")).hexdigest()[:len]


def compute_file_hash(file_path: Path | str) -> str:
    """
    Compute the full SHA256 digest of a file's bytes.

    Args:
        file_path: File to hash

    Returns:
        Hex string of SHA256 hash
    """
    digest = hashlib.sha256()
    with open(file_path, "rb") as f:
        for chunk in iter(lambda: f.read(CHUNK_SIZE), b""):
            digest.update(chunk)
    return digest.hexdigest()
