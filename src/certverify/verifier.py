"""
Certificate Verifier

verify_certificate() is the pure core: a verdict that depends only on
(instance, certificate). No clock, network or randomness feeds into it;
the wall clock only stamps the result's checked_at metadata.

CertificateVerifier binds the core to an instance store, records every
verification in a receipt chain, and checks independent pairs
concurrently. The store is read-only during verification, so workers
share it without locking.
"""

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional

from .certificate import Certificate
from .checkers import check_claim
from .core.canonical_json import canonical_hash
from .core.errors import (
    CertVerifyError,
    InstanceNotFound,
    InvalidConfiguration,
    MalformedCertificate,
)
from .core.verdict import VerificationResult
from .instance import GRAPH_KIND, Instance
from .receipts import ActionType, ReceiptChain
from .store import InstanceStore


logger = logging.getLogger(__name__)


def verify_certificate(instance: Instance, certificate: Certificate) -> VerificationResult:
    """
    Check a certificate against the instance it references.

    Args:
        instance: The instance the claim is about
        certificate: Claim and witness

    Returns:
        VerificationResult with a VALID or INVALID verdict

    Raises:
        InstanceNotFound: if the certificate references a different instance
        MalformedCertificate: if the witness does not match the claim's schema
    """
    if certificate.instance_id != instance.id:
        raise InstanceNotFound(
            certificate.instance_id, f"supplied instance '{instance.id}'"
        )
    if instance.kind != GRAPH_KIND:
        raise MalformedCertificate(
            f"claim '{certificate.claim_type.value}' does not apply to kind '{instance.kind}'"
        )

    outcome = check_claim(instance.graph, certificate.claim_type, certificate.witness)
    return VerificationResult.from_outcome(
        outcome,
        instance_id=instance.id,
        claim_type=certificate.claim_type.value,
        instance_hash=instance.content_hash,
        cert_hash=certificate.cert_hash
    )


@dataclass
class BatchItem:
    """Outcome of one pair in a batch: a result or an input error."""
    certificate: Certificate
    result: Optional[VerificationResult] = None
    error: Optional[CertVerifyError] = None

    @property
    def passed(self) -> bool:
        return self.result is not None and self.result.passed

    def to_canonical(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "instance_id": self.certificate.instance_id,
            "claim_type": self.certificate.claim_type.value,
            "cert_hash": self.certificate.cert_hash,
        }
        if self.result is not None:
            data["result"] = self.result.to_canonical()
        if self.error is not None:
            data["error"] = {"kind": self.error.kind, "message": str(self.error)}
        return data


class CertificateVerifier:
    """
    Verifies certificates against instances held in a store.

    Each call to verify() appends a receipt, in completion order for
    single calls and in input order for verify_many().
    """

    def __init__(self, store: InstanceStore):
        self.store = store
        self.chain = ReceiptChain()
        self._lock = threading.Lock()

    def _record(self, result: VerificationResult) -> None:
        with self._lock:
            self.chain.add_receipt(
                ActionType.VERIFY,
                {"instance_id": result.instance_id, "claim_type": result.claim_type},
                input_hash=canonical_hash([result.instance_hash, result.cert_hash]),
                output_hash=result.fingerprint()
            )

    def _check(self, certificate: Certificate) -> VerificationResult:
        instance = self.store.get(certificate.instance_id)
        result = verify_certificate(instance, certificate)
        logger.debug(result.verdict_line())
        return result

    def verify(self, certificate: Certificate) -> VerificationResult:
        """
        Resolve the referenced instance and check the certificate.

        Raises:
            InstanceNotFound: if the store does not hold the instance
            MalformedCertificate: if the witness shape is wrong
        """
        result = self._check(certificate)
        self._record(result)
        return result

    def _try(self, certificate: Certificate) -> BatchItem:
        try:
            return BatchItem(certificate, result=self._check(certificate))
        except CertVerifyError as e:
            logger.debug("%s for %s: %s", e.kind, certificate.instance_id, e)
            return BatchItem(certificate, error=e)

    def verify_many(
        self,
        certificates: Iterable[Certificate],
        workers: Optional[int] = None
    ) -> List[BatchItem]:
        """
        Verify independent pairs, concurrently when workers > 1.

        Input errors are captured per item instead of aborting the batch.
        Results come back in input order.

        Args:
            certificates: Certificates to verify
            workers: Thread count (None lets the executor choose, 1 is serial)

        Raises:
            InvalidConfiguration: if workers is given and below 1
        """
        certificates = list(certificates)
        if workers is not None and (
            isinstance(workers, bool) or not isinstance(workers, int) or workers < 1
        ):
            raise InvalidConfiguration(f"workers must be a positive integer, got {workers!r}")
        if workers == 1 or len(certificates) <= 1:
            items = [self._try(c) for c in certificates]
        else:
            with ThreadPoolExecutor(max_workers=workers) as pool:
                items = list(pool.map(self._try, certificates))

        for item in items:
            if item.result is not None:
                self._record(item.result)

        n_valid = sum(1 for i in items if i.passed)
        n_error = sum(1 for i in items if i.error is not None)
        logger.info(
            "Verified %d certificates: %d valid, %d invalid, %d errors",
            len(items), n_valid, len(items) - n_valid - n_error, n_error
        )
        return items
