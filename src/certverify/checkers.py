"""
Claim Checkers

One checker per claim type. Each takes a graph and a witness and returns
a CheckOutcome. Checkers are pure and polynomial in the size of the graph
plus the witness: checking is cheap, finding the witness was the hard
part.

Two failure modes are kept apart:
- the witness does not have the claim's schema -> MalformedCertificate
- the witness has the schema but does not prove the claim -> failed outcome
"""

import logging
from typing import Any, Callable, Dict, List, Tuple

import numpy as np
from scipy.sparse import coo_matrix
from scipy.sparse.csgraph import connected_components

from .certificate import ClaimType
from .core.errors import MalformedCertificate
from .core.verdict import CheckOutcome
from .graphs import Graph


logger = logging.getLogger(__name__)

Checker = Callable[[Graph, Dict[str, Any]], CheckOutcome]

CHECKERS: Dict[ClaimType, Checker] = {}


def register(claim_type: ClaimType) -> Callable[[Checker], Checker]:
    """Register a checker for a claim type."""
    def decorator(fn: Checker) -> Checker:
        CHECKERS[claim_type] = fn
        return fn
    return decorator


# ---------------------------------------------------------------------------
# Witness schema helpers
# ---------------------------------------------------------------------------

def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _require(witness: Dict[str, Any], key: str) -> Any:
    if key not in witness:
        raise MalformedCertificate(f"witness missing '{key}'")
    return witness[key]


def _count_field(witness: Dict[str, Any], key: str) -> int:
    value = _require(witness, key)
    if not _is_int(value) or value < 0:
        raise MalformedCertificate(f"witness '{key}' must be a non-negative integer")
    return value


def _int_list(value: Any, what: str) -> List[int]:
    if not isinstance(value, list) or not all(_is_int(v) for v in value):
        raise MalformedCertificate(f"{what} must be a list of integers")
    return value


def _vertex_field(witness: Dict[str, Any], key: str) -> List[int]:
    return _int_list(_require(witness, key), f"witness '{key}'")


def _edge_field(witness: Dict[str, Any], key: str) -> List[Tuple[int, int]]:
    value = _require(witness, key)
    if not isinstance(value, list):
        raise MalformedCertificate(f"witness '{key}' must be a list of vertex pairs")
    edges = []
    for item in value:
        pair = _int_list(item, f"each entry of witness '{key}'")
        if len(pair) != 2:
            raise MalformedCertificate(f"each entry of witness '{key}' must be a pair")
        edges.append((pair[0], pair[1]))
    return edges


# ---------------------------------------------------------------------------
# Substantive helpers (return a failure reason or "")
# ---------------------------------------------------------------------------

def _out_of_range(graph: Graph, vertices: List[int]) -> str:
    for v in vertices:
        if not graph.contains_vertex(v):
            return f"vertex {v} is not in the graph (n={graph.n})"
    return ""


def _repeated(vertices: List[int]) -> str:
    seen = set()
    for v in vertices:
        if v in seen:
            return f"vertex {v} appears more than once"
        seen.add(v)
    return ""


def _first_pair(mask: np.ndarray, vertices: List[int]) -> Tuple[int, int]:
    i, j = np.argwhere(mask)[0]
    return vertices[int(i)], vertices[int(j)]


# ---------------------------------------------------------------------------
# Checkers
# ---------------------------------------------------------------------------

@register(ClaimType.HAS_EDGE)
def check_has_edge(graph: Graph, witness: Dict[str, Any]) -> CheckOutcome:
    """Witness {"edge": [u, v]}: the graph has at least one edge."""
    edge = _int_list(_require(witness, "edge"), "witness 'edge'")
    if len(edge) != 2:
        raise MalformedCertificate("witness 'edge' must be a pair")
    reason = _out_of_range(graph, edge)
    if reason:
        return CheckOutcome.fail(reason)
    u, v = edge
    if not graph.has_edge(u, v):
        return CheckOutcome.fail(f"({u}, {v}) is not an edge")
    return CheckOutcome.ok()


@register(ClaimType.INDEPENDENT_SET)
def check_independent_set(graph: Graph, witness: Dict[str, Any]) -> CheckOutcome:
    """Witness {"vertices": [...], "size": k}: alpha(G) >= k."""
    vertices = _vertex_field(witness, "vertices")
    size = _count_field(witness, "size")
    reason = _out_of_range(graph, vertices) or _repeated(vertices)
    if reason:
        return CheckOutcome.fail(reason)
    if len(vertices) < size:
        return CheckOutcome.fail(
            f"witness has {len(vertices)} vertices, claim needs {size}"
        )
    sub = graph.adjacency[np.ix_(vertices, vertices)]
    if sub.any():
        u, v = _first_pair(sub, vertices)
        return CheckOutcome.fail(f"vertices {u} and {v} are adjacent")
    return CheckOutcome.ok()


@register(ClaimType.CLIQUE)
def check_clique(graph: Graph, witness: Dict[str, Any]) -> CheckOutcome:
    """Witness {"vertices": [...], "size": k}: omega(G) >= k."""
    vertices = _vertex_field(witness, "vertices")
    size = _count_field(witness, "size")
    reason = _out_of_range(graph, vertices) or _repeated(vertices)
    if reason:
        return CheckOutcome.fail(reason)
    if len(vertices) < size:
        return CheckOutcome.fail(
            f"witness has {len(vertices)} vertices, claim needs {size}"
        )
    sub = graph.adjacency[np.ix_(vertices, vertices)]
    missing = ~sub & ~np.eye(len(vertices), dtype=bool)
    if missing.any():
        u, v = _first_pair(missing, vertices)
        return CheckOutcome.fail(f"vertices {u} and {v} are not adjacent")
    return CheckOutcome.ok()


@register(ClaimType.VERTEX_COVER)
def check_vertex_cover(graph: Graph, witness: Dict[str, Any]) -> CheckOutcome:
    """Witness {"vertices": [...], "size": k}: tau(G) <= k."""
    vertices = _vertex_field(witness, "vertices")
    size = _count_field(witness, "size")
    reason = _out_of_range(graph, vertices)
    if reason:
        return CheckOutcome.fail(reason)
    cover = set(vertices)
    if len(cover) > size:
        return CheckOutcome.fail(
            f"cover has {len(cover)} vertices, claim allows at most {size}"
        )
    for u, v in graph.edges:
        if u not in cover and v not in cover:
            return CheckOutcome.fail(f"edge ({u}, {v}) is not covered")
    return CheckOutcome.ok()


@register(ClaimType.COLORING)
def check_coloring(graph: Graph, witness: Dict[str, Any]) -> CheckOutcome:
    """Witness {"colors": [c_0, ..., c_{n-1}], "num_colors": k}: chi(G) <= k."""
    colors = _vertex_field(witness, "colors")
    num_colors = _count_field(witness, "num_colors")
    if len(colors) != graph.n:
        return CheckOutcome.fail(
            f"coloring assigns {len(colors)} colors for {graph.n} vertices"
        )
    for v, c in enumerate(colors):
        if not 0 <= c < num_colors:
            return CheckOutcome.fail(
                f"vertex {v} has color {c}, outside 0..{num_colors - 1}"
            )
    for u, v in graph.edges:
        if colors[u] == colors[v]:
            return CheckOutcome.fail(f"edge ({u}, {v}) is monochromatic (color {colors[u]})")
    return CheckOutcome.ok()


@register(ClaimType.INDEPENDENCE_BOUND)
def check_independence_bound(graph: Graph, witness: Dict[str, Any]) -> CheckOutcome:
    """
    Witness {"cliques": [[...], ...], "bound": k}: alpha(G) <= k.

    An independent set meets each clique at most once, so a cover of the
    vertex set by k cliques bounds the independence number by k.
    """
    raw = _require(witness, "cliques")
    if not isinstance(raw, list):
        raise MalformedCertificate("witness 'cliques' must be a list of vertex lists")
    cliques = [_int_list(c, "each entry of witness 'cliques'") for c in raw]
    bound = _count_field(witness, "bound")

    if len(cliques) > bound:
        return CheckOutcome.fail(
            f"cover uses {len(cliques)} cliques, claim bound is {bound}"
        )
    covered = np.zeros(graph.n, dtype=bool)
    for idx, clique in enumerate(cliques):
        reason = _out_of_range(graph, clique) or _repeated(clique)
        if reason:
            return CheckOutcome.fail(f"clique {idx}: {reason}")
        sub = graph.adjacency[np.ix_(clique, clique)]
        missing = ~sub & ~np.eye(len(clique), dtype=bool)
        if missing.any():
            u, v = _first_pair(missing, clique)
            return CheckOutcome.fail(f"clique {idx}: vertices {u} and {v} are not adjacent")
        covered[clique] = True
    if not covered.all():
        v = int(np.flatnonzero(~covered)[0])
        return CheckOutcome.fail(f"vertex {v} is not covered by any clique")
    return CheckOutcome.ok()


@register(ClaimType.ODD_CYCLE)
def check_odd_cycle(graph: Graph, witness: Dict[str, Any]) -> CheckOutcome:
    """
    Witness {"cycle": [v_0, ..., v_{m-1}]}: G is not bipartite.

    Any closed walk of odd length contains an odd cycle, so repeated
    vertices are accepted.
    """
    cycle = _vertex_field(witness, "cycle")
    reason = _out_of_range(graph, cycle)
    if reason:
        return CheckOutcome.fail(reason)
    if len(cycle) < 3:
        return CheckOutcome.fail(f"cycle has {len(cycle)} vertices, need at least 3")
    if len(cycle) % 2 == 0:
        return CheckOutcome.fail(f"cycle has even length {len(cycle)}")
    for i, u in enumerate(cycle):
        v = cycle[(i + 1) % len(cycle)]
        if not graph.has_edge(u, v):
            return CheckOutcome.fail(f"({u}, {v}) is not an edge")
    return CheckOutcome.ok()


@register(ClaimType.CONNECTED)
def check_connected(graph: Graph, witness: Dict[str, Any]) -> CheckOutcome:
    """Witness {"tree_edges": [[u, v], ...]}: a connected spanning subgraph."""
    tree_edges = _edge_field(witness, "tree_edges")
    for u, v in tree_edges:
        reason = _out_of_range(graph, [u, v])
        if reason:
            return CheckOutcome.fail(reason)
        if not graph.has_edge(u, v):
            return CheckOutcome.fail(f"({u}, {v}) is not an edge")
    if graph.n <= 1:
        return CheckOutcome.ok()

    rows = np.array([u for u, _ in tree_edges], dtype=np.int64)
    cols = np.array([v for _, v in tree_edges], dtype=np.int64)
    data = np.ones(len(tree_edges), dtype=np.int8)
    matrix = coo_matrix((data, (rows, cols)), shape=(graph.n, graph.n))
    n_components, _ = connected_components(matrix, directed=False)
    if n_components != 1:
        return CheckOutcome.fail(
            f"witness edges leave {n_components} components"
        )
    return CheckOutcome.ok()


def check_claim(graph: Graph, claim_type: ClaimType, witness: Dict[str, Any]) -> CheckOutcome:
    """
    Dispatch a witness to the checker for its claim type.

    Raises:
        MalformedCertificate: if no checker handles the claim or the
            witness does not match its schema
    """
    checker = CHECKERS.get(claim_type)
    if checker is None:
        raise MalformedCertificate(f"no checker for claim type '{claim_type.value}'")
    outcome = checker(graph, witness)
    logger.debug("%s on %r: passed=%s", claim_type.value, graph, outcome.passed)
    return outcome
