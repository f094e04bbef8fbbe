"""
Instance Generator

Deterministic pseudo-random instances from an explicit configuration.

Instance i of a run is drawn from its own stream,
numpy.random.default_rng(SeedSequence([seed, i])), so:
- the sequence depends only on the configuration, never on global RNG state
- any instance can be reproduced on its own (instance_at)
- re-running the same configuration yields byte-identical records

Distinct seeds are independent and may be generated concurrently.
"""

import logging
from dataclasses import asdict, dataclass
from typing import Any, Callable, Dict, Iterator, List

import numpy as np

from .core.canonical_json import canonical_hash
from .core.errors import InvalidConfiguration
from .graphs import random_graph
from .instance import FORMAT_VERSION, GRAPH_KIND, Instance, make_instance_id
from .receipts import ActionType, ReceiptChain
from .store import InstanceStore


logger = logging.getLogger(__name__)

DEFAULT_CREATED_AT = "1970-01-01T00:00:00+00:00"


def _graph_payload(config: 'GeneratorConfig', rng: np.random.Generator) -> Dict[str, Any]:
    return random_graph(config.size, config.edge_probability, rng).to_payload()


PAYLOAD_BUILDERS: Dict[str, Callable[['GeneratorConfig', np.random.Generator], Dict[str, Any]]] = {
    GRAPH_KIND: _graph_payload,
}


def _is_int(value: Any) -> bool:
    return isinstance(value, (int, np.integer)) and not isinstance(value, (bool, np.bool_))


@dataclass(frozen=True)
class GeneratorConfig:
    """Configuration for one generation run."""
    count: int
    size: int
    seed: int
    edge_probability: float = 0.5
    kind: str = GRAPH_KIND
    created_at: str = DEFAULT_CREATED_AT

    def validate(self) -> 'GeneratorConfig':
        """
        Check the configuration.

        Raises:
            InvalidConfiguration: on any structurally invalid field
        """
        for name in ("count", "size", "seed"):
            if not _is_int(getattr(self, name)):
                raise InvalidConfiguration(f"{name} must be an integer, got {getattr(self, name)!r}")
        if self.count <= 0:
            raise InvalidConfiguration(f"count must be positive, got {self.count}")
        if self.size <= 0:
            raise InvalidConfiguration(f"size must be positive, got {self.size}")
        if self.seed < 0:
            raise InvalidConfiguration(f"seed must be non-negative, got {self.seed}")
        if isinstance(self.edge_probability, bool) or not isinstance(self.edge_probability, (int, float)):
            raise InvalidConfiguration("edge_probability must be a number")
        if not 0.0 <= self.edge_probability <= 1.0:
            raise InvalidConfiguration(
                f"edge_probability must lie in [0, 1], got {self.edge_probability}"
            )
        if self.kind not in PAYLOAD_BUILDERS:
            raise InvalidConfiguration(
                f"unknown instance kind {self.kind!r} (known: {sorted(PAYLOAD_BUILDERS)})"
            )
        if not isinstance(self.created_at, str) or not self.created_at:
            raise InvalidConfiguration("created_at must be a non-empty timestamp string")
        return self

    def to_canonical(self) -> Dict[str, Any]:
        data = asdict(self)
        data["format_version"] = FORMAT_VERSION
        return data

    @classmethod
    def from_canonical(cls, data: Dict[str, Any]) -> 'GeneratorConfig':
        fields = {k: data[k] for k in ("count", "size", "seed") if k in data}
        for k in ("edge_probability", "kind", "created_at"):
            if k in data:
                fields[k] = data[k]
        try:
            return cls(**fields).validate()
        except TypeError as e:
            raise InvalidConfiguration(f"incomplete generator configuration: {e}") from e


@dataclass
class GenerationManifest:
    """Provenance record of one generation run."""
    config: GeneratorConfig
    instance_ids: List[str]
    instance_hashes: List[str]
    chain: ReceiptChain

    @property
    def chain_hash(self) -> str:
        return self.chain.final_hash

    def to_canonical(self) -> Dict[str, Any]:
        return {
            "config": self.config.to_canonical(),
            "instances": [
                {"id": i, "content_hash": h}
                for i, h in zip(self.instance_ids, self.instance_hashes)
            ],
            "chain": self.chain.to_canonical(),
            "chain_hash": self.chain_hash
        }

    @classmethod
    def from_canonical(cls, data: Dict[str, Any]) -> 'GenerationManifest':
        entries = data["instances"]
        return cls(
            config=GeneratorConfig.from_canonical(data["config"]),
            instance_ids=[e["id"] for e in entries],
            instance_hashes=[e["content_hash"] for e in entries],
            chain=ReceiptChain.from_canonical(data["chain"])
        )


class InstanceGenerator:
    """
    Lazy, finite, restartable instance sequence.

    Iterating twice yields the same instances; nothing is cached between
    iterations and no state outside the configuration is consulted.
    """

    def __init__(self, config: GeneratorConfig):
        self.config = config.validate()
        self._build = PAYLOAD_BUILDERS[config.kind]

    def __len__(self) -> int:
        return self.config.count

    def __iter__(self) -> Iterator[Instance]:
        return self.instances()

    def instances(self) -> Iterator[Instance]:
        for index in range(self.config.count):
            yield self.instance_at(index)

    def instance_at(self, index: int) -> Instance:
        """Reproduce the index-th instance of the run in isolation."""
        if not 0 <= index < self.config.count:
            raise IndexError(f"instance index {index} outside 0..{self.config.count - 1}")
        cfg = self.config
        rng = np.random.default_rng(np.random.SeedSequence([cfg.seed, index]))
        return Instance(
            id=make_instance_id(cfg.kind, cfg.size, cfg.seed, index),
            kind=cfg.kind,
            seed=cfg.seed,
            index=index,
            created_at=cfg.created_at,
            payload=self._build(cfg, rng),
            format_version=FORMAT_VERSION
        )

    def build_manifest(self) -> GenerationManifest:
        """Compute the manifest without touching a store."""
        return self._run(store=None)

    def generate(self, store: InstanceStore) -> GenerationManifest:
        """
        Write every instance and the manifest to the store.

        Raises:
            WriteError: if the store cannot be written
        """
        manifest = self._run(store)
        store.put_manifest(manifest.to_canonical())
        logger.info(
            "Generated %d %s instances (size=%d, seed=%d) into %s, chain %s",
            self.config.count, self.config.kind, self.config.size,
            self.config.seed, store.describe(), manifest.chain_hash[:16]
        )
        return manifest

    def _run(self, store) -> GenerationManifest:
        chain = ReceiptChain()
        config_hash = canonical_hash(self.config.to_canonical())
        ids, hashes = [], []
        for instance in self.instances():
            if store is not None:
                store.put(instance)
            chain.add_receipt(
                ActionType.GENERATE,
                {"instance_id": instance.id, "index": instance.index},
                input_hash=config_hash,
                output_hash=instance.content_hash
            )
            ids.append(instance.id)
            hashes.append(instance.content_hash)
            logger.debug("Generated %s (%s)", instance.id, instance.content_hash[:12])
        return GenerationManifest(self.config, ids, hashes, chain)


def generate_instances(
    count: int,
    size: int,
    seed: int,
    **options: Any
) -> List[Instance]:
    """Convenience wrapper returning the full instance list."""
    return list(InstanceGenerator(GeneratorConfig(count, size, seed, **options)))
