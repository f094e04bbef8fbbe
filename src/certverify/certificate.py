"""
Certificates

A certificate is a claim about one instance plus the witness that
supports it. Certificates come from outside (solvers, proof search,
people), so parsing is strict: anything that does not have the expected
shape is a MalformedCertificate, never a negative verdict.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional

from .core.canonical_json import canonical_hash
from .core.errors import MalformedCertificate


class ClaimType(Enum):
    """Claims a certificate can make about a graph instance."""
    HAS_EDGE = "has_edge"                      # at least one edge
    INDEPENDENT_SET = "independent_set"        # alpha(G) >= k
    CLIQUE = "clique"                          # omega(G) >= k
    VERTEX_COVER = "vertex_cover"              # tau(G) <= k
    COLORING = "coloring"                      # chi(G) <= k
    INDEPENDENCE_BOUND = "independence_bound"  # alpha(G) <= k, via clique cover
    ODD_CYCLE = "odd_cycle"                    # G is not bipartite
    CONNECTED = "connected"                    # G is connected, via spanning tree


@dataclass(frozen=True)
class Certificate:
    """A claim about one instance and its witness."""
    instance_id: str
    claim_type: ClaimType
    witness: Dict[str, Any]
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def cert_hash(self) -> str:
        return canonical_hash(self.to_canonical())

    def to_canonical(self) -> Dict[str, Any]:
        return {
            "instance_id": self.instance_id,
            "claim_type": self.claim_type.value,
            "witness": self.witness,
            "metadata": self.metadata
        }

    @classmethod
    def from_dict(cls, data: Any) -> 'Certificate':
        """
        Parse a certificate record.

        Only the envelope is checked here; the witness shape is checked
        against its claim type by the checker.

        Raises:
            MalformedCertificate: on any structural problem
        """
        if not isinstance(data, dict):
            raise MalformedCertificate("certificate must be a JSON object")

        for key in ("instance_id", "claim_type", "witness"):
            if key not in data:
                raise MalformedCertificate(f"certificate missing '{key}'")

        instance_id = data["instance_id"]
        if not isinstance(instance_id, str) or not instance_id:
            raise MalformedCertificate("'instance_id' must be a non-empty string")

        try:
            claim_type = ClaimType(data["claim_type"])
        except ValueError:
            known = ", ".join(c.value for c in ClaimType)
            raise MalformedCertificate(
                f"unknown claim_type {data['claim_type']!r} (known: {known})"
            ) from None

        witness = data["witness"]
        if not isinstance(witness, dict):
            raise MalformedCertificate("'witness' must be a JSON object")

        metadata: Optional[Any] = data.get("metadata")
        if metadata is None:
            metadata = {}
        if not isinstance(metadata, dict):
            raise MalformedCertificate("'metadata' must be a JSON object when present")

        return cls(
            instance_id=instance_id,
            claim_type=claim_type,
            witness=witness,
            metadata=metadata
        )
