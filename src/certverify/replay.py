"""
Replay and Verify a Generated Store

Re-runs the generator from the configuration recorded in a store's
manifest and checks that:
1. The manifest's receipt chain is intact
2. Every regenerated instance is byte-identical to the stored one
3. The regenerated chain hash matches the recorded one
4. The store holds no instance outside the recorded run
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List

from .core.canonical_json import canonical_bytes
from .core.errors import CertVerifyError, CorruptInstance
from .generator import GenerationManifest, InstanceGenerator
from .store import InstanceStore


logger = logging.getLogger(__name__)


@dataclass
class ReplayReport:
    """Summary of a replay run."""
    checked: int = 0
    chain_intact: bool = False
    chain_hash_matches: bool = False
    mismatches: List[Dict[str, str]] = field(default_factory=list)

    @property
    def passed(self) -> bool:
        return self.chain_intact and self.chain_hash_matches and not self.mismatches

    def to_canonical(self) -> Dict[str, Any]:
        return {
            "checked": self.checked,
            "chain_intact": self.chain_intact,
            "chain_hash_matches": self.chain_hash_matches,
            "mismatches": self.mismatches,
            "passed": self.passed
        }


def load_manifest(store: InstanceStore) -> GenerationManifest:
    """
    Read the generation manifest of a store.

    Raises:
        CorruptInstance: if the store has no manifest or it cannot be parsed
    """
    data = store.get_manifest()
    if data is None:
        raise CorruptInstance(f"{store.describe()} has no generation manifest")
    try:
        return GenerationManifest.from_canonical(data)
    except CorruptInstance:
        raise
    except (KeyError, TypeError, ValueError) as e:
        raise CorruptInstance(f"malformed generation manifest: {e!r}") from e


def replay_generation(store: InstanceStore) -> ReplayReport:
    """
    Regenerate a store's instances and compare them byte for byte.

    Args:
        store: Store written by InstanceGenerator.generate

    Returns:
        ReplayReport; passed is True only for a byte-identical reproduction
    """
    recorded = load_manifest(store)
    report = ReplayReport(chain_intact=recorded.chain.verify_chain())
    if not report.chain_intact:
        logger.warning("Receipt chain in %s failed integrity check", store.describe())

    generator = InstanceGenerator(recorded.config)
    replayed = generator.build_manifest()
    report.chain_hash_matches = replayed.chain_hash == recorded.chain_hash

    if replayed.instance_ids != recorded.instance_ids:
        report.mismatches.append({
            "id": "*",
            "message": "regenerated id sequence differs from the manifest"
        })

    for instance in generator:
        report.checked += 1
        expected = canonical_bytes(instance.to_canonical())
        try:
            stored = store.get_bytes(instance.id)
        except CertVerifyError as e:
            report.mismatches.append({"id": instance.id, "message": str(e)})
            continue
        if stored != expected:
            report.mismatches.append({
                "id": instance.id,
                "message": "stored record differs from regenerated record"
            })

    listed = set(replayed.instance_ids)
    for stray_id in store.ids():
        if stray_id not in listed:
            report.mismatches.append({
                "id": stray_id,
                "message": "stored instance is not part of the recorded run"
            })

    logger.info(
        "Replayed %d instances from %s: %s",
        report.checked, store.describe(), "PASS" if report.passed else "FAIL"
    )
    return report
