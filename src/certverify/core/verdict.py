"""
Verification Verdicts

A verification has exactly two admissible outcomes:

- VALID: the witness satisfies the claim against the instance
- INVALID: the witness is well-formed but does not satisfy the claim

Input errors (missing instance, malformed certificate) never become a
verdict; they are raised from certverify.core.errors instead.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict

from .canonical_json import canonical_hash


class Verdict(Enum):
    """The two admissible verdicts."""
    VALID = "VALID"
    INVALID = "INVALID"


def utc_now() -> str:
    """ISO-8601 UTC timestamp with second precision."""
    return datetime.now(timezone.utc).replace(microsecond=0).isoformat()


@dataclass(frozen=True)
class CheckOutcome:
    """Raw outcome of a claim checker, before it is bound to its inputs."""
    passed: bool
    reason: str = ""

    @classmethod
    def ok(cls) -> 'CheckOutcome':
        return cls(True, "")

    @classmethod
    def fail(cls, reason: str) -> 'CheckOutcome':
        if not reason:
            raise ValueError("A failed check needs a reason")
        return cls(False, reason)


@dataclass
class VerificationResult:
    """
    Result of checking one certificate against one instance.

    `checked_at` is metadata only: it is excluded from `fingerprint()`,
    so re-verifying the same pair always yields the same fingerprint.
    """
    verdict: Verdict
    reason: str
    instance_id: str
    claim_type: str
    instance_hash: str
    cert_hash: str
    checked_at: str = field(default_factory=utc_now)

    @property
    def passed(self) -> bool:
        return self.verdict == Verdict.VALID

    @classmethod
    def from_outcome(
        cls,
        outcome: CheckOutcome,
        instance_id: str,
        claim_type: str,
        instance_hash: str,
        cert_hash: str
    ) -> 'VerificationResult':
        return cls(
            verdict=Verdict.VALID if outcome.passed else Verdict.INVALID,
            reason=outcome.reason,
            instance_id=instance_id,
            claim_type=claim_type,
            instance_hash=instance_hash,
            cert_hash=cert_hash
        )

    def verdict_line(self) -> str:
        """Single human-readable line, as printed by the CLI."""
        line = f"{self.verdict.value} {self.instance_id} {self.claim_type}"
        if not self.passed:
            line += f": {self.reason}"
        return line

    def fingerprint(self) -> str:
        data = self.to_canonical()
        del data["checked_at"]
        return canonical_hash(data)

    def to_canonical(self) -> Dict[str, Any]:
        return {
            "verdict": self.verdict.value,
            "passed": self.passed,
            "reason": self.reason,
            "instance_id": self.instance_id,
            "claim_type": self.claim_type,
            "instance_hash": self.instance_hash,
            "cert_hash": self.cert_hash,
            "checked_at": self.checked_at
        }
