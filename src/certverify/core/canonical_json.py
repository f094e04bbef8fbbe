"""
Canonical JSON Serialization

Deterministic JSON encoding and SHA-256 hashing for instances,
certificates, receipts and manifests. Two equal objects always encode
to the same bytes, which is what makes regenerated stores diffable
against the originals.
"""

import json
import hashlib
from typing import Any

import numpy as np


def _json_default(obj: Any) -> Any:
    """Convert numpy values that leak out of generation code."""
    if isinstance(obj, np.integer):
        return int(obj)
    if isinstance(obj, np.floating):
        return float(obj)
    if isinstance(obj, np.bool_):
        return bool(obj)
    if isinstance(obj, np.ndarray):
        return obj.tolist()
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


def canonical_dumps(obj: Any, indent: int = None) -> str:
    """
    Canonical JSON serialization with sorted keys.

    Args:
        obj: Object to serialize
        indent: Indentation level (None for compact)

    Returns:
        Canonical JSON string
    """
    return json.dumps(
        obj,
        sort_keys=True,
        separators=(',', ':') if indent is None else (',', ': '),
        indent=indent,
        ensure_ascii=True,
        default=_json_default
    )


def canonical_bytes(obj: Any) -> bytes:
    """On-disk form: indented canonical JSON with a trailing newline."""
    return (canonical_dumps(obj, indent=2) + "\n").encode("ascii")


def canonical_hash(obj: Any) -> str:
    """
    Compute SHA-256 hash of canonical JSON.

    Args:
        obj: Object to hash

    Returns:
        Hex digest of SHA-256 hash
    """
    return hashlib.sha256(canonical_dumps(obj).encode()).hexdigest()
