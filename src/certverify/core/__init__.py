"""
Core Module - Foundational Components

Provides:
- Canonical JSON serialization
- Error taxonomy
- Verdict and verification result types
"""

from .canonical_json import canonical_bytes, canonical_dumps, canonical_hash
from .errors import (
    CertVerifyError,
    InvalidConfiguration,
    WriteError,
    InstanceNotFound,
    MalformedCertificate,
    CorruptInstance,
    UnsupportedFormat,
)
from .verdict import (
    Verdict,
    CheckOutcome,
    VerificationResult,
    utc_now,
)

__all__ = [
    'canonical_bytes',
    'canonical_dumps',
    'canonical_hash',
    'CertVerifyError',
    'InvalidConfiguration',
    'WriteError',
    'InstanceNotFound',
    'MalformedCertificate',
    'CorruptInstance',
    'UnsupportedFormat',
    'Verdict',
    'CheckOutcome',
    'VerificationResult',
    'utc_now',
]
