"""
Instance Records

An Instance is an immutable, identified computational object together
with the provenance needed to reproduce it: generation seed, position in
the generated sequence, creation timestamp and format version. The
content hash covers every other field, so any edit to a stored record
is detected on load.
"""

import re
from dataclasses import dataclass, field
from functools import cached_property
from typing import Any, Dict

from .core.canonical_json import canonical_hash
from .core.errors import CorruptInstance, UnsupportedFormat
from .graphs import Graph


FORMAT_VERSION = 1
SUPPORTED_FORMAT_VERSIONS = (1,)

GRAPH_KIND = "graph"

_HEX_DIGEST = re.compile(r"^[0-9a-f]{64}$")

_REQUIRED_FIELDS = (
    "id", "kind", "seed", "index", "format_version",
    "created_at", "payload", "content_hash",
)


def make_instance_id(kind: str, size: int, seed: int, index: int) -> str:
    """Deterministic instance id, e.g. ``graph-n4-s42-00000``."""
    return f"{kind}-n{size}-s{seed}-{index:05d}"


@dataclass(frozen=True)
class Instance:
    """A generated instance plus its provenance metadata."""
    id: str
    kind: str
    seed: int
    index: int
    created_at: str
    payload: Dict[str, Any]
    format_version: int = FORMAT_VERSION
    content_hash: str = field(default="", compare=False)

    def __post_init__(self):
        if not self.content_hash:
            object.__setattr__(self, "content_hash", self._compute_hash())

    def _hashed_fields(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "kind": self.kind,
            "seed": self.seed,
            "index": self.index,
            "format_version": self.format_version,
            "created_at": self.created_at,
            "payload": self.payload
        }

    def _compute_hash(self) -> str:
        return canonical_hash(self._hashed_fields())

    def verify(self) -> bool:
        """Check the stored content hash against the record."""
        return self.content_hash == self._compute_hash()

    @cached_property
    def graph(self) -> Graph:
        if self.kind != GRAPH_KIND:
            raise CorruptInstance(f"instance '{self.id}' has kind '{self.kind}', not a graph")
        return Graph.from_payload(self.payload)

    def to_canonical(self) -> Dict[str, Any]:
        data = self._hashed_fields()
        data["content_hash"] = self.content_hash
        return data

    @classmethod
    def from_dict(cls, data: Any) -> 'Instance':
        """
        Rebuild an instance from its stored form.

        Raises:
            UnsupportedFormat: if the format version is unknown
            CorruptInstance: if fields are missing or the hash does not match
        """
        if not isinstance(data, dict):
            raise CorruptInstance("instance record must be a JSON object")
        missing = [k for k in _REQUIRED_FIELDS if k not in data]
        if missing:
            raise CorruptInstance(f"instance record missing fields: {', '.join(missing)}")

        if data["format_version"] not in SUPPORTED_FORMAT_VERSIONS:
            raise UnsupportedFormat(
                f"instance '{data['id']}' has format_version {data['format_version']!r}; "
                f"supported: {list(SUPPORTED_FORMAT_VERSIONS)}"
            )

        stored_hash = data["content_hash"]
        if not isinstance(stored_hash, str) or not _HEX_DIGEST.match(stored_hash):
            raise CorruptInstance(
                f"instance '{data['id']}' has no valid content hash (got {stored_hash!r})"
            )

        instance = cls(
            id=data["id"],
            kind=data["kind"],
            seed=data["seed"],
            index=data["index"],
            created_at=data["created_at"],
            payload=data["payload"],
            format_version=data["format_version"],
            content_hash=data["content_hash"]
        )
        if not instance.verify():
            raise CorruptInstance(f"content hash mismatch for instance '{instance.id}'")
        if instance.kind == GRAPH_KIND:
            # Fail on load rather than on first check
            _ = instance.graph
        return instance
