r"""
Shared fixtures: a small hand-built graph instance and stores.

The fixture graph is a triangle 0-1-2 with a tail 2-3-4:

    0---1
     \ /
      2---3---4
"""

import pytest

from certverify import Certificate, ClaimType, Instance, MemoryStore


HOUSE_EDGES = [[0, 1], [0, 2], [1, 2], [2, 3], [3, 4]]


def make_instance(n, edges, instance_id="graph-n5-s0-00000", seed=0, index=0):
    return Instance(
        id=instance_id,
        kind="graph",
        seed=seed,
        index=index,
        created_at="2026-01-01T00:00:00+00:00",
        payload={"n": n, "edges": edges},
    )


def make_cert(instance, claim, witness, metadata=None):
    return Certificate(
        instance_id=instance.id,
        claim_type=ClaimType(claim),
        witness=witness,
        metadata=metadata or {},
    )


@pytest.fixture
def tailed_triangle():
    return make_instance(5, HOUSE_EDGES)


@pytest.fixture
def memory_store(tailed_triangle):
    store = MemoryStore()
    store.put(tailed_triangle)
    return store
