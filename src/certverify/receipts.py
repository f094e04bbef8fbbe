"""
Provenance Receipts

Generation and verification events are logged as a hash-linked list.
Receipt k stores the hash of receipt k-1, so the last hash commits to
the whole history: an edited, dropped or reordered event shows up as a
broken link, and a replayed run can be compared by one hash.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List

from .core.canonical_json import canonical_hash
from .core.errors import CorruptInstance


GENESIS = "genesis"

_RECEIPT_FIELDS = (
    "sequence", "action", "params", "input_hash",
    "output_hash", "prev_hash", "receipt_hash",
)


class ActionType(Enum):
    """Logged events."""
    GENERATE = "generate"  # one instance written
    VERIFY = "verify"      # one certificate checked


@dataclass
class Receipt:
    """
    One logged event.

    For GENERATE, input_hash is the configuration hash and output_hash
    the instance content hash. For VERIFY, input_hash covers the
    (instance, certificate) pair and output_hash the result fingerprint.
    """
    sequence: int
    action: ActionType
    params: Dict[str, Any]
    input_hash: str
    output_hash: str
    prev_hash: str
    receipt_hash: str = ""

    def __post_init__(self):
        if not self.receipt_hash:
            self.receipt_hash = self.expected_hash()

    def expected_hash(self) -> str:
        body = self.to_canonical()
        del body["receipt_hash"]
        return canonical_hash(body)

    def verify(self) -> bool:
        return self.receipt_hash == self.expected_hash()

    def to_canonical(self) -> Dict[str, Any]:
        return {
            "sequence": self.sequence,
            "action": self.action.value,
            "params": self.params,
            "input_hash": self.input_hash,
            "output_hash": self.output_hash,
            "prev_hash": self.prev_hash,
            "receipt_hash": self.receipt_hash
        }

    @classmethod
    def from_dict(cls, data: Any) -> 'Receipt':
        """
        Parse a stored receipt without re-hashing it.

        Raises:
            CorruptInstance: if a field is missing, the action is unknown,
                or the stored hash is empty
        """
        if not isinstance(data, dict):
            raise CorruptInstance("receipt must be a JSON object")
        missing = [k for k in _RECEIPT_FIELDS if k not in data]
        if missing:
            raise CorruptInstance(f"receipt missing fields: {', '.join(missing)}")
        try:
            action = ActionType(data["action"])
        except ValueError:
            raise CorruptInstance(f"receipt has unknown action {data['action']!r}") from None
        # An empty hash would be recomputed in __post_init__ and always verify
        if not isinstance(data["receipt_hash"], str) or not data["receipt_hash"]:
            raise CorruptInstance(f"receipt {data['sequence']!r} has no receipt_hash")
        return cls(
            sequence=data["sequence"],
            action=action,
            params=data["params"],
            input_hash=data["input_hash"],
            output_hash=data["output_hash"],
            prev_hash=data["prev_hash"],
            receipt_hash=data["receipt_hash"]
        )


class ReceiptChain:
    """Append-only event log; final_hash commits to every entry."""

    def __init__(self):
        self.receipts: List[Receipt] = []
        self._prev_hash: str = GENESIS

    def __len__(self) -> int:
        return len(self.receipts)

    def add_receipt(
        self,
        action: ActionType,
        params: Dict[str, Any],
        input_hash: str,
        output_hash: str
    ) -> Receipt:
        """Log one event, linked to the current tail."""
        receipt = Receipt(
            sequence=len(self.receipts),
            action=action,
            params=params,
            input_hash=input_hash,
            output_hash=output_hash,
            prev_hash=self._prev_hash
        )
        self.receipts.append(receipt)
        self._prev_hash = receipt.receipt_hash
        return receipt

    def verify_chain(self) -> bool:
        """
        True if every receipt hashes to its stored value, sequence
        numbers run 0..n-1, and each prev_hash names its predecessor.
        """
        expected_prev = GENESIS
        for position, receipt in enumerate(self.receipts):
            if (
                not receipt.verify()
                or receipt.sequence != position
                or receipt.prev_hash != expected_prev
            ):
                return False
            expected_prev = receipt.receipt_hash
        return True

    @property
    def final_hash(self) -> str:
        return self.receipts[-1].receipt_hash if self.receipts else GENESIS

    def to_canonical(self) -> Dict[str, Any]:
        return {
            "receipts": [r.to_canonical() for r in self.receipts],
            "final_hash": self.final_hash
        }

    @classmethod
    def from_canonical(cls, data: Any) -> 'ReceiptChain':
        """
        Rebuild a logged chain; integrity is left to verify_chain().

        Raises:
            CorruptInstance: if the chain or any receipt is not well-formed
        """
        if not isinstance(data, dict) or not isinstance(data.get("receipts"), list):
            raise CorruptInstance("receipt chain must be an object with a 'receipts' list")
        chain = cls()
        for entry in data["receipts"]:
            receipt = Receipt.from_dict(entry)
            chain.receipts.append(receipt)
            chain._prev_hash = receipt.receipt_hash
        return chain
