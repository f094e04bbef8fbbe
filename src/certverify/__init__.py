"""
certverify - Reproducible Instances and Certificate Verification

Generates seeded computational instances (graphs) with provenance
metadata and checks certificates (claims plus witnesses) against them.

- Generation is deterministic: the same configuration reproduces the
  same bytes
- Verification is a pure function of (instance, certificate)
- Malformed input raises; a wrong-but-well-formed witness yields an
  INVALID verdict with a reason
- Generation and verification events are recorded in receipt chains
"""

__version__ = "0.1.0"

from .core import (
    canonical_bytes,
    canonical_dumps,
    canonical_hash,
    CertVerifyError,
    InvalidConfiguration,
    WriteError,
    InstanceNotFound,
    MalformedCertificate,
    CorruptInstance,
    UnsupportedFormat,
    Verdict,
    CheckOutcome,
    VerificationResult,
)
from .graphs import Graph, random_graph
from .instance import Instance, FORMAT_VERSION, make_instance_id
from .certificate import Certificate, ClaimType
from .checkers import CHECKERS, check_claim
from .receipts import Receipt, ReceiptChain, ActionType
from .store import (
    InstanceStore,
    MemoryStore,
    DirectoryStore,
    load_instance,
    load_certificate,
)
from .generator import (
    GeneratorConfig,
    GenerationManifest,
    InstanceGenerator,
    generate_instances,
)
from .verifier import (
    BatchItem,
    CertificateVerifier,
    verify_certificate,
)
from .replay import ReplayReport, replay_generation

__all__ = [
    # Core
    "canonical_bytes",
    "canonical_dumps",
    "canonical_hash",
    "CertVerifyError",
    "InvalidConfiguration",
    "WriteError",
    "InstanceNotFound",
    "MalformedCertificate",
    "CorruptInstance",
    "UnsupportedFormat",
    "Verdict",
    "CheckOutcome",
    "VerificationResult",
    # Data model
    "Graph",
    "random_graph",
    "Instance",
    "FORMAT_VERSION",
    "make_instance_id",
    "Certificate",
    "ClaimType",
    # Checking
    "CHECKERS",
    "check_claim",
    # Receipts
    "Receipt",
    "ReceiptChain",
    "ActionType",
    # Stores
    "InstanceStore",
    "MemoryStore",
    "DirectoryStore",
    "load_instance",
    "load_certificate",
    # Generation
    "GeneratorConfig",
    "GenerationManifest",
    "InstanceGenerator",
    "generate_instances",
    # Verification
    "BatchItem",
    "CertificateVerifier",
    "verify_certificate",
    "ReplayReport",
    "replay_generation",
]
