"""
Community detection module for the netlens library.

This module partitions the nodes of a graph into communities with one of
three algorithms:

- Louvain multilevel modularity optimization
- Girvan-Newman divisive clustering by edge betweenness
- Deterministic label propagation

Every algorithm works on the undirected view of the graph and returns a
partition: a dictionary mapping each node identifier to a dense community id,
numbered in the order communities are first met while walking the node
enumeration. Long-running detections can be handed to an executor with
submit_detection() and cancelled cooperatively.
"""

from collections import Counter
from concurrent.futures import CancelledError, Executor, Future, ThreadPoolExecutor
from typing import List, Dict, Any, Optional, Tuple, Sequence, Hashable, NamedTuple

import numpy as np
import networkit as nk

from netlens.common.cancellation import CancellationToken, check_cancelled
from netlens.common.exceptions import (
    NetworkAnalysisError,
    ComputationError,
    ConfigurationError,
    ScaleLimitError,
    OperationCancelledError,
    validate_parameter,
    require_positive
)
from netlens.common.logging_config import get_logger, log_function_entry, LoggingTimer
from netlens.network.construction import Graph

logger = get_logger(__name__)

AVAILABLE_ALGORITHMS = ["louvain", "girvan_newman", "label_propagation"]

# Girvan-Newman recomputes all edge betweenness after every removal
GIRVAN_NEWMAN_NODE_LIMIT = 100

MIN_LABEL_PROPAGATION_ITERATIONS = 20
MAX_LOUVAIN_PASSES = 100

# Louvain gains at or below this value count as no improvement
_GAIN_EPSILON = 1e-12

# Relative tolerance when comparing edge betweenness scores
_BETWEENNESS_TIE_TOLERANCE = 1e-9

Partition = Dict[str, int]


class GirvanNewmanResult(NamedTuple):
    """Partition produced by Girvan-Newman and the edges it removed, in removal order."""
    partition: Partition
    removed_edges: List[Tuple[str, str]]


def detect_communities(
    graph: Graph,
    algorithm: str = "louvain",
    resolution: float = 1.0,
    target_communities: int = 2,
    max_iterations: int = 30,
    cancel_token: Optional[CancellationToken] = None
) -> Partition:
    """
    Detect communities in a graph.

    Parameters
    ----------
    graph : Graph
        Graph produced by build_graph(); directed graphs are treated as
        undirected
    algorithm : str, default "louvain"
        Detection algorithm. Available options:
        - "louvain": multilevel modularity optimization
        - "girvan_newman": divisive edge-betweenness clustering (at most
          100 nodes)
        - "label_propagation": deterministic label propagation
    resolution : float, default 1.0
        Louvain resolution. Values below 1 favour larger communities, values
        above 1 smaller ones.
    target_communities : int, default 2
        Girvan-Newman stops once this many connected components exist
    max_iterations : int, default 30
        Label propagation pass cap (at least 20)
    cancel_token : CancellationToken, optional
        Token polled between passes, levels, removals and BFS sources

    Returns
    -------
    Dict[str, int]
        Node identifier -> community id in [0, k)

    Raises
    ------
    ConfigurationError
        If the algorithm or a parameter is invalid
    ScaleLimitError
        If Girvan-Newman is requested on more than 100 nodes
    OperationCancelledError
        If cancel_token is tripped during detection
    ComputationError
        If detection fails unexpectedly

    Examples
    --------
    >>> graph = build_graph("a b\\nb c\\nc a\\nd e\\ne f\\nf d\\nc d")
    >>> detect_communities(graph, "louvain")
    {'a': 0, 'b': 0, 'c': 0, 'd': 1, 'e': 1, 'f': 1}
    >>> detect_communities(graph, "girvan_newman", target_communities=2)
    {'a': 0, 'b': 0, 'c': 0, 'd': 1, 'e': 1, 'f': 1}
    """
    log_function_entry(
        "detect_communities",
        algorithm=algorithm,
        resolution=resolution,
        target_communities=target_communities,
        max_iterations=max_iterations
    )

    _validate_community_parameters(algorithm, resolution, target_communities, max_iterations)

    with LoggingTimer("detect_communities", {"algorithm": algorithm, "nodes": graph.number_of_nodes()}):
        try:
            if algorithm == "louvain":
                partition = louvain(graph, resolution=resolution, cancel_token=cancel_token)
            elif algorithm == "girvan_newman":
                partition = girvan_newman(
                    graph, target_communities=target_communities, cancel_token=cancel_token
                ).partition
            else:
                partition = label_propagation(
                    graph, max_iterations=max_iterations, cancel_token=cancel_token
                )

            logger.info(
                "Community detection completed: %s found %d communities on %d nodes",
                algorithm, len(set(partition.values())), graph.number_of_nodes()
            )
            return partition

        except Exception as e:
            if isinstance(e, NetworkAnalysisError):
                raise
            raise ComputationError(
                f"Community detection failed: {str(e)}",
                operation="detect_communities",
                error_type="computation",
                resource_info={"nodes": graph.number_of_nodes(), "edges": graph.number_of_edges()},
                cause=e
            )


def _validate_community_parameters(
    algorithm: str,
    resolution: float,
    target_communities: int,
    max_iterations: int
) -> None:
    """
    Validate parameters for community detection.

    Raises
    ------
    ConfigurationError
        If any parameter is invalid
    """
    validate_parameter(algorithm, AVAILABLE_ALGORITHMS, "algorithm", "detect_communities")
    require_positive(resolution, "resolution")

    if target_communities < 1:
        raise ConfigurationError(
            f"target_communities must be at least 1, got {target_communities}",
            parameter="target_communities",
            value=target_communities
        )

    if max_iterations < MIN_LABEL_PROPAGATION_ITERATIONS:
        raise ConfigurationError(
            f"max_iterations must be at least {MIN_LABEL_PROPAGATION_ITERATIONS}, "
            f"got {max_iterations}",
            parameter="max_iterations",
            value=max_iterations
        )


def _relabel_communities(labels: Sequence[Hashable], nodes: Sequence[str]) -> Partition:
    """
    Map raw labels to dense ids in order of first appearance along ``nodes``.

    Parameters
    ----------
    labels : Sequence[Hashable]
        Raw community label of every node, aligned with ``nodes``
    nodes : Sequence[str]
        Node identifiers in enumeration order

    Returns
    -------
    Dict[str, int]
        Partition with contiguous community ids starting from 0
    """
    community_map: Dict[Hashable, int] = {}
    partition = {}
    for node, label in zip(nodes, labels):
        if label not in community_map:
            community_map[label] = len(community_map)
        partition[node] = community_map[label]
    return partition


# ---------------------------------------------------------------------------
# Label propagation
# ---------------------------------------------------------------------------

def label_propagation(
    graph: Graph,
    max_iterations: int = 30,
    cancel_token: Optional[CancellationToken] = None
) -> Partition:
    """
    Deterministic label propagation.

    Every node starts with its own identifier as label. Nodes are visited in
    enumeration order and adopt the most frequent label among their
    neighbours, with ties going to the lexicographically smallest label.
    Updates take effect immediately within a pass. Propagation stops after a
    pass without changes or after ``max_iterations`` passes. Isolated nodes
    keep their own label.

    Parameters
    ----------
    graph : Graph
        Input graph, treated as undirected
    max_iterations : int, default 30
        Maximum number of passes, at least 20
    cancel_token : CancellationToken, optional
        Token polled between passes

    Returns
    -------
    Dict[str, int]
        Dense partition of the graph's nodes
    """
    if max_iterations < MIN_LABEL_PROPAGATION_ITERATIONS:
        raise ConfigurationError(
            f"max_iterations must be at least {MIN_LABEL_PROPAGATION_ITERATIONS}, "
            f"got {max_iterations}",
            parameter="max_iterations",
            value=max_iterations
        )

    undirected = graph.with_directedness(False)
    nodes = undirected.id_mapper.internal_to_original
    adjacency = undirected.adjacency_lists()
    labels = list(nodes)

    for iteration in range(max_iterations):
        check_cancelled(cancel_token, "label_propagation")

        changed = False
        for v, neighbours in enumerate(adjacency):
            if not neighbours:
                continue

            counts = Counter(labels[w] for w in neighbours)
            top = max(counts.values())
            best_label = min(label for label, count in counts.items() if count == top)

            if best_label != labels[v]:
                labels[v] = best_label
                changed = True

        if not changed:
            logger.debug("Label propagation converged after %d passes", iteration + 1)
            break
    else:
        logger.debug("Label propagation stopped at the %d pass cap", max_iterations)

    return _relabel_communities(labels, nodes)


# ---------------------------------------------------------------------------
# Louvain
# ---------------------------------------------------------------------------

def _louvain_levels(
    graph: Graph,
    resolution: float,
    cancel_token: Optional[CancellationToken]
) -> Tuple[Graph, List[List[int]]]:
    """
    Run Louvain and return the per-level community assignments.

    Level ``l`` maps each node of level ``l`` (original nodes at level 0) to
    its community, which is a node of level ``l + 1``.
    """
    undirected = graph.with_directedness(False)
    n = undirected.number_of_nodes()
    nodes = undirected.id_mapper.internal_to_original

    degrees = [float(k) for k in undirected.out_degrees.tolist()]
    total_degree = sum(degrees)
    if total_degree == 0:
        return undirected, []

    # Multiplicity of links between distinct nodes; self-loops only count in degrees
    links: List[Dict[int, float]] = []
    for i, neighbours in enumerate(undirected.adjacency_lists()):
        counts: Dict[int, float] = {}
        for j in neighbours:
            if j != i:
                counts[j] = counts.get(j, 0.0) + 1.0
        links.append(counts)

    visit_order = sorted(range(n), key=lambda i: nodes[i])
    levels: List[List[int]] = []

    while True:
        check_cancelled(cancel_token, "louvain")

        membership = _louvain_local_moves(
            links, degrees, visit_order, total_degree, resolution, cancel_token
        )

        dense: Dict[int, int] = {}
        assignment = []
        for community in membership:
            if community not in dense:
                dense[community] = len(dense)
            assignment.append(dense[community])

        num_communities = len(dense)
        if num_communities == len(links):
            break
        levels.append(assignment)

        aggregated_degrees = [0.0] * num_communities
        for i, community in enumerate(assignment):
            aggregated_degrees[community] += degrees[i]

        aggregated_links: List[Dict[int, float]] = [{} for _ in range(num_communities)]
        for i, neighbours in enumerate(links):
            ci = assignment[i]
            for j, weight in neighbours.items():
                cj = assignment[j]
                if ci != cj:
                    aggregated_links[ci][cj] = aggregated_links[ci].get(cj, 0.0) + weight

        logger.debug("Louvain level %d: %d -> %d nodes", len(levels), len(links), num_communities)

        links = aggregated_links
        degrees = aggregated_degrees
        visit_order = list(range(num_communities))

        if not any(links):
            break

    return undirected, levels


def _louvain_local_moves(
    links: List[Dict[int, float]],
    degrees: List[float],
    visit_order: List[int],
    total_degree: float,
    resolution: float,
    cancel_token: Optional[CancellationToken]
) -> List[int]:
    """
    Phase 1: greedy local moves starting from singleton communities.

    The gain of moving node i from its community C to a neighbouring
    community D, scaled by m, is

        (k_i,D - k_i,C) + (resolution * k_i / 2m) * ((Sigma_C - k_i) - Sigma_D)

    where k_i,X counts links from i into X and Sigma_X is the total degree of
    X. A node moves to the best strictly positive gain, otherwise it stays.
    """
    community = list(range(len(links)))
    community_degree = list(degrees)

    for pass_number in range(MAX_LOUVAIN_PASSES):
        check_cancelled(cancel_token, "louvain")

        moved = False
        for i in visit_order:
            current = community[i]
            k_i = degrees[i]

            links_to: Dict[int, float] = {}
            for j, weight in links[i].items():
                c = community[j]
                links_to[c] = links_to.get(c, 0.0) + weight

            k_current = links_to.get(current, 0.0)
            penalty = resolution * k_i / total_degree
            current_remainder = community_degree[current] - k_i

            best_community = current
            best_gain = _GAIN_EPSILON
            for target, k_target in links_to.items():
                if target == current:
                    continue
                gain = (k_target - k_current) + penalty * (current_remainder - community_degree[target])
                if gain > best_gain:
                    best_gain = gain
                    best_community = target

            if best_community != current:
                community_degree[current] -= k_i
                community_degree[best_community] += k_i
                community[i] = best_community
                moved = True

        if not moved:
            break
    else:
        logger.warning("Louvain local moves hit the %d pass failsafe", MAX_LOUVAIN_PASSES)

    return community


def louvain(
    graph: Graph,
    resolution: float = 1.0,
    cancel_token: Optional[CancellationToken] = None
) -> Partition:
    """
    Louvain multilevel modularity optimization.

    Phase 1 visits nodes in sorted order (identifiers at the first level,
    community index above it) and moves each to the neighbouring community
    with the best strictly positive modularity gain until a pass makes no
    move. Phase 2 collapses every community into one node; edges between
    communities become links whose multiplicity is the number of original
    edges between them, intra-community edges are dropped from the links, and
    each collapsed node keeps its members' total degree. The two phases repeat
    until a level merges nothing or no inter-community edge remains, and the
    levels are then composed top-down.

    Parameters
    ----------
    graph : Graph
        Input graph, treated as undirected
    resolution : float, default 1.0
        Scales the degree penalty of the gain

    Returns
    -------
    Dict[str, int]
        Dense partition; a graph without edges yields singleton communities
    """
    require_positive(resolution, "resolution")

    undirected, levels = _louvain_levels(graph, resolution, cancel_token)
    nodes = undirected.id_mapper.internal_to_original
    return _relabel_communities(_compose_levels(levels, len(nodes)), nodes)


def louvain_hierarchy(
    graph: Graph,
    resolution: float = 1.0,
    cancel_token: Optional[CancellationToken] = None
) -> List[Partition]:
    """
    Louvain partitions of the original nodes after each aggregation level.

    The first entry is the result of the first local-moving phase, the last
    equals louvain(). Modularity is non-decreasing along the list. A graph
    without merges returns a single singleton partition.
    """
    require_positive(resolution, "resolution")

    undirected, levels = _louvain_levels(graph, resolution, cancel_token)
    nodes = undirected.id_mapper.internal_to_original
    if not levels:
        return [_relabel_communities(range(len(nodes)), nodes)]

    return [
        _relabel_communities(_compose_levels(levels[:depth], len(nodes)), nodes)
        for depth in range(1, len(levels) + 1)
    ]


def _compose_levels(levels: List[List[int]], n: int) -> List[int]:
    assignment = np.arange(n)
    for level in levels:
        assignment = np.asarray(level)[assignment]
    return assignment.tolist()


# ---------------------------------------------------------------------------
# Girvan-Newman
# ---------------------------------------------------------------------------

def girvan_newman(
    graph: Graph,
    target_communities: int = 2,
    cancel_token: Optional[CancellationToken] = None
) -> GirvanNewmanResult:
    """
    Girvan-Newman divisive clustering.

    Works on an undirected simple copy of the graph held in a NetworkIt
    graph. While fewer than ``target_communities`` connected components exist
    and edges remain, the edge with the highest shortest-path betweenness is
    removed. Ties are resolved towards the smallest edge, comparing edges by
    their lexicographically ordered endpoint identifiers. The communities are
    the connected components left at the end.

    Parameters
    ----------
    graph : Graph
        Input graph with at most 100 nodes
    target_communities : int, default 2
        Number of components to reach
    cancel_token : CancellationToken, optional
        Token polled between removals

    Returns
    -------
    GirvanNewmanResult
        Final partition and the removed edges in removal order

    Raises
    ------
    ScaleLimitError
        If the graph has more than 100 nodes; raised before any work
    """
    n = graph.number_of_nodes()
    if n > GIRVAN_NEWMAN_NODE_LIMIT:
        raise ScaleLimitError(
            f"Girvan-Newman supports at most {GIRVAN_NEWMAN_NODE_LIMIT} nodes, "
            f"got {n}",
            node_count=n,
            limit=GIRVAN_NEWMAN_NODE_LIMIT,
            operation="girvan_newman"
        )
    if target_communities < 1:
        raise ConfigurationError(
            f"target_communities must be at least 1, got {target_communities}",
            parameter="target_communities",
            value=target_communities
        )

    nodes = graph.id_mapper.internal_to_original
    if n == 0:
        return GirvanNewmanResult(partition={}, removed_edges=[])

    live = nk.Graph(n, weighted=False, directed=False)
    for u, v in graph.edges.tolist():
        if u != v and not live.hasEdge(u, v):
            live.addEdge(u, v)
    live.indexEdges()

    num_components, labels = _connected_components(live)
    removed_edges: List[Tuple[str, str]] = []

    if num_components >= target_communities:
        logger.debug("Girvan-Newman: %d initial components already meet target %d",
                     num_components, target_communities)

    while num_components < target_communities and live.numberOfEdges() > 0:
        check_cancelled(cancel_token, "girvan_newman")

        u, v = _max_betweenness_edge(live, nodes)
        live.removeEdge(u, v)
        removed_edges.append((nodes[u], nodes[v]))

        num_components, labels = _connected_components(live)
        logger.debug("Girvan-Newman removed %s-%s, %d components",
                     nodes[u], nodes[v], num_components)

    return GirvanNewmanResult(
        partition=_relabel_communities(labels, nodes),
        removed_edges=removed_edges
    )


def _connected_components(graph: nk.Graph) -> Tuple[int, List[int]]:
    cc = nk.components.ConnectedComponents(graph)
    cc.run()
    partition = cc.getPartition()
    return cc.numberOfComponents(), [partition.subsetOf(v) for v in range(graph.numberOfNodes())]


def edge_betweenness(
    graph: nk.Graph,
    nodes: Sequence[str]
) -> Dict[Tuple[int, int], float]:
    """
    Unnormalized edge betweenness of an undirected NetworkIt graph.

    Scores come from NetworkIt's Betweenness with edge centrality enabled,
    so both orientations of every shortest path are counted. Edges are keyed
    by their endpoint indices ordered by identifier.
    """
    graph.indexEdges()
    btw = nk.centrality.Betweenness(graph, normalized=False, computeEdgeCentrality=True)
    btw.run()
    edge_scores = btw.edgeScores()

    scores: Dict[Tuple[int, int], float] = {}
    for u, v in graph.iterEdges():
        key = (u, v) if nodes[u] <= nodes[v] else (v, u)
        scores[key] = edge_scores[graph.edgeId(u, v)]
    return scores


def _max_betweenness_edge(graph: nk.Graph, nodes: Sequence[str]) -> Tuple[int, int]:
    scores = edge_betweenness(graph, nodes)

    best_score = max(scores.values())
    threshold = best_score - _BETWEENNESS_TIE_TOLERANCE * max(1.0, abs(best_score))
    candidates = [edge for edge, score in scores.items() if score >= threshold]
    return min(candidates, key=lambda edge: (nodes[edge[0]], nodes[edge[1]]))


# ---------------------------------------------------------------------------
# Background execution
# ---------------------------------------------------------------------------

class DetectionJob:
    """
    Handle on a community detection running on an executor.

    Attributes
    ----------
    algorithm : str
        Algorithm being run
    token : CancellationToken
        Token shared with the running detection
    """

    def __init__(self, future: Future, token: CancellationToken, algorithm: str) -> None:
        self._future = future
        self.token = token
        self.algorithm = algorithm

    def cancel(self) -> None:
        """Request cancellation; a running detection stops at its next checkpoint."""
        self.token.cancel()
        self._future.cancel()

    def done(self) -> bool:
        return self._future.done()

    @property
    def cancelled(self) -> bool:
        return self.token.is_cancelled

    def result(self, timeout: Optional[float] = None) -> Partition:
        """
        Wait for the partition.

        Raises
        ------
        OperationCancelledError
            If the job was cancelled before or while running
        concurrent.futures.TimeoutError
            If the result is not ready within ``timeout`` seconds
        """
        try:
            return self._future.result(timeout)
        except CancelledError:
            raise OperationCancelledError(
                f"{self.algorithm} was cancelled before it started",
                operation=self.algorithm
            )

    def __repr__(self) -> str:
        state = "done" if self.done() else "running"
        return f"DetectionJob(algorithm={self.algorithm!r}, state={state})"


def submit_detection(
    graph: Graph,
    algorithm: str = "louvain",
    executor: Optional[Executor] = None,
    **params: Any
) -> DetectionJob:
    """
    Run detect_communities() on an executor.

    Parameters
    ----------
    graph : Graph
        Input graph
    algorithm : str, default "louvain"
        Detection algorithm
    executor : Executor, optional
        Executor to submit to. When omitted a single-use worker thread is
        started for this job.
    **params
        Keyword arguments for detect_communities()

    Returns
    -------
    DetectionJob
        Handle to wait on or cancel the detection

    Raises
    ------
    ConfigurationError
        If the algorithm or a parameter is invalid; raised before submission

    Examples
    --------
    >>> job = submit_detection(graph, "girvan_newman", target_communities=3)
    >>> partition = job.result(timeout=60)
    """
    if "cancel_token" in params:
        raise ConfigurationError(
            "submit_detection() creates its own cancellation token",
            parameter="cancel_token"
        )

    _validate_community_parameters(
        algorithm,
        params.get("resolution", 1.0),
        params.get("target_communities", 2),
        params.get("max_iterations", 30)
    )

    token = CancellationToken()
    if executor is None:
        own_executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="netlens-detection")
        future = own_executor.submit(
            detect_communities, graph, algorithm, cancel_token=token, **params
        )
        own_executor.shutdown(wait=False)
    else:
        future = executor.submit(
            detect_communities, graph, algorithm, cancel_token=token, **params
        )

    logger.debug("Submitted %s detection on %d nodes", algorithm, graph.number_of_nodes())
    return DetectionJob(future, token, algorithm)


def get_community_summary(partition: Partition) -> Dict[str, Any]:
    """
    Get summary statistics for a partition.

    Returns
    -------
    Dict[str, Any]
        Summary statistics including:
        - num_communities: Number of communities
        - community_sizes: Community sizes, largest first
        - size_distribution: min/max/mean/median/std of the sizes
        - total_nodes: Number of nodes in the partition
    """
    community_counts = Counter(partition.values())
    community_sizes = list(community_counts.values())

    size_stats = {
        "min": min(community_sizes) if community_sizes else 0,
        "max": max(community_sizes) if community_sizes else 0,
        "mean": float(np.mean(community_sizes)) if community_sizes else 0.0,
        "median": float(np.median(community_sizes)) if community_sizes else 0.0,
        "std": float(np.std(community_sizes)) if community_sizes else 0.0
    }

    return {
        "num_communities": len(community_sizes),
        "community_sizes": sorted(community_sizes, reverse=True),
        "size_distribution": size_stats,
        "total_nodes": len(partition)
    }
