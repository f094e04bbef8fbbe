"""
Graph Payloads

Simple undirected graphs on vertices 0..n-1, the payload kind carried by
generated instances. Edges are stored normalised (u < v, no loops, no
duplicates, lexicographically sorted) so the JSON form is canonical.
"""

from typing import Any, Dict, Iterable, List, Sequence, Tuple

import numpy as np

from .core.errors import CorruptInstance


Edge = Tuple[int, int]


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def normalize_edges(n: int, edges: Iterable[Sequence[int]]) -> Tuple[Edge, ...]:
    """
    Normalise an edge list for a graph on n vertices.

    Raises:
        ValueError: on loops, out-of-range endpoints or non-pairs
    """
    seen = set()
    for edge in edges:
        if len(edge) != 2 or not all(_is_int(x) for x in edge):
            raise ValueError(f"Edge must be a pair of integers, got {edge!r}")
        u, v = edge
        if u == v:
            raise ValueError(f"Self loop on vertex {u}")
        if not (0 <= u < n and 0 <= v < n):
            raise ValueError(f"Edge {edge!r} out of range for n={n}")
        seen.add((min(u, v), max(u, v)))
    return tuple(sorted(seen))


class Graph:
    """
    Immutable simple undirected graph with a dense adjacency matrix.

    The matrix makes every adjacency test O(1), which keeps the claim
    checkers polynomial (at most quadratic in the witness size).
    """

    def __init__(self, n: int, edges: Iterable[Sequence[int]] = ()):
        if not _is_int(n) or n < 0:
            raise ValueError(f"Vertex count must be a non-negative integer, got {n!r}")
        self.n = n
        self.edges = normalize_edges(n, edges)
        self.adjacency = np.zeros((n, n), dtype=bool)
        for u, v in self.edges:
            self.adjacency[u, v] = True
            self.adjacency[v, u] = True
        self.adjacency.setflags(write=False)

    @property
    def m(self) -> int:
        return len(self.edges)

    def contains_vertex(self, v: int) -> bool:
        return 0 <= v < self.n

    def has_edge(self, u: int, v: int) -> bool:
        if not (self.contains_vertex(u) and self.contains_vertex(v)):
            return False
        return bool(self.adjacency[u, v])

    def degree(self, v: int) -> int:
        return int(self.adjacency[v].sum())

    def neighbors(self, v: int) -> List[int]:
        return [int(u) for u in np.flatnonzero(self.adjacency[v])]

    def to_payload(self) -> Dict[str, Any]:
        return {"n": self.n, "edges": [[u, v] for u, v in self.edges]}

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> 'Graph':
        """
        Rebuild a graph from a stored payload.

        Raises:
            CorruptInstance: if the payload is not a well-formed graph
        """
        if not isinstance(payload, dict) or "n" not in payload or "edges" not in payload:
            raise CorruptInstance("graph payload must be an object with 'n' and 'edges'")
        edges = payload["edges"]
        if not isinstance(edges, list) or not all(isinstance(e, list) for e in edges):
            raise CorruptInstance("graph payload 'edges' must be a list of pairs")
        try:
            graph = cls(payload["n"], edges)
        except ValueError as e:
            raise CorruptInstance(f"invalid graph payload: {e}") from e
        # Stored payloads must already be in normal form
        if graph.to_payload()["edges"] != edges:
            raise CorruptInstance("graph payload edges are not in canonical order")
        return graph

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Graph):
            return NotImplemented
        return self.n == other.n and self.edges == other.edges

    def __hash__(self) -> int:
        return hash((self.n, self.edges))

    def __repr__(self) -> str:
        return f"Graph(n={self.n}, m={self.m})"


def random_graph(n: int, edge_probability: float, rng: np.random.Generator) -> Graph:
    """
    Sample an Erdos-Renyi G(n, p) graph.

    One uniform draw per vertex pair, in row-major upper-triangle order,
    so the result depends only on the generator state.
    """
    rows, cols = np.triu_indices(n, k=1)
    keep = rng.random(rows.shape[0]) < edge_probability
    edges = [(int(u), int(v)) for u, v in zip(rows[keep], cols[keep])]
    return Graph(n, edges)
