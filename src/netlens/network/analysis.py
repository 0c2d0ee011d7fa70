"""
Network analysis module for the netlens library.

This module computes per-node centrality scores that quantify node importance
in different ways: in/out degree, closeness, Brandes betweenness, PageRank and
HITS. All measures work on the arena-indexed adjacency of a Graph; results are
plain dictionaries keyed by node identifier in node-enumeration order, with
helpers to rank them and turn them into Polars DataFrames.
"""

from typing import List, Dict, Any, Optional, Tuple, Union, NamedTuple

import numpy as np
import networkit as nk
import polars as pl

from netlens.common.cancellation import CancellationToken, check_cancelled
from netlens.common.exceptions import (
    NetworkAnalysisError,
    ComputationError,
    ConfigurationError,
    validate_parameter,
    require_positive
)
from netlens.common.logging_config import get_logger, log_function_entry, LoggingTimer
from netlens.network.construction import Graph

logger = get_logger(__name__)

# Available centrality selectors
AVAILABLE_ALGORITHMS = [
    "in_degree", "out_degree", "closeness", "betweenness", "pagerank", "hits"
]

# Selectors accepted as synonyms of another algorithm
ALGORITHM_ALIASES = {
    "hits_authority": "hits",
    "hits_hub": "hits",
}

# Keyword parameters each algorithm accepts through compute_centrality()
ALGORITHM_PARAMETERS = {
    "in_degree": [],
    "out_degree": [],
    "closeness": [],
    "betweenness": [],
    "pagerank": ["damping", "max_iterations", "tolerance"],
    "hits": ["max_iterations", "tolerance"],
}

CentralityResult = Dict[str, float]


class HITSResult(NamedTuple):
    """Authority and hub scores produced by HITS."""
    authority: CentralityResult
    hub: CentralityResult


def compute_centrality(
    graph: Graph,
    algorithm: str,
    directed: Optional[bool] = None,
    cancel_token: Optional[CancellationToken] = None,
    **params: Any
) -> Union[CentralityResult, HITSResult]:
    """
    Compute one centrality measure for every node of a graph.

    Parameters
    ----------
    graph : Graph
        Graph produced by build_graph()
    algorithm : str
        Centrality selector. Available options:
        - "in_degree": incoming edge count normalized by (n-1)
        - "out_degree": outgoing edge count normalized by (n-1)
        - "closeness": reachable nodes divided by total BFS distance
        - "betweenness": Brandes shortest-path betweenness
        - "pagerank": power-iteration PageRank
        - "hits": HITS authority and hub scores ("hits_authority" and
          "hits_hub" are accepted as aliases and return both)
    directed : bool, optional
        Directedness used for the computation. Defaults to the graph's own
        flag; a different value re-derives the adjacency from the same edges.
    cancel_token : CancellationToken, optional
        Token polled between BFS sources and iterations
    **params
        Algorithm parameters: ``damping``, ``max_iterations`` and
        ``tolerance`` for PageRank; ``max_iterations`` and ``tolerance``
        for HITS

    Returns
    -------
    Dict[str, float] or HITSResult
        Node identifier -> score in node-enumeration order. HITS returns a
        HITSResult holding the authority and hub dictionaries.

    Raises
    ------
    ConfigurationError
        If the selector or a parameter is invalid
    OperationCancelledError
        If cancel_token is tripped during the computation
    ComputationError
        If the computation fails unexpectedly

    Examples
    --------
    >>> graph = build_graph("a b\\nb c")
    >>> compute_centrality(graph, "out_degree")
    {'a': 0.5, 'b': 1.0, 'c': 0.5}
    >>> scores = compute_centrality(graph, "pagerank", damping=0.9)
    """
    log_function_entry("compute_centrality", algorithm=algorithm, directed=directed, params=params)

    validate_parameter(
        algorithm,
        AVAILABLE_ALGORITHMS + list(ALGORITHM_ALIASES),
        "algorithm",
        "compute_centrality"
    )
    selector = ALGORITHM_ALIASES.get(algorithm, algorithm)

    unknown = [name for name in params if name not in ALGORITHM_PARAMETERS[selector]]
    if unknown:
        raise ConfigurationError(
            f"Unsupported parameters for '{selector}': {unknown}",
            parameter=unknown[0],
            valid_options=ALGORITHM_PARAMETERS[selector] or None,
            function="compute_centrality"
        )

    if directed is not None:
        graph = graph.with_directedness(directed)

    with LoggingTimer("compute_centrality", {"algorithm": selector, "nodes": graph.number_of_nodes()}):
        try:
            if selector == "in_degree":
                result = in_degree_centrality(graph)
            elif selector == "out_degree":
                result = out_degree_centrality(graph)
            elif selector == "closeness":
                result = closeness_centrality(graph, cancel_token=cancel_token)
            elif selector == "betweenness":
                result = betweenness_centrality(graph, cancel_token=cancel_token)
            elif selector == "pagerank":
                result = pagerank(graph, cancel_token=cancel_token, **params)
            else:
                result = hits(graph, cancel_token=cancel_token, **params)

            logger.info("Centrality calculation completed: %s on %d nodes",
                        selector, graph.number_of_nodes())
            return result

        except Exception as e:
            if isinstance(e, NetworkAnalysisError):
                raise
            raise ComputationError(
                f"Centrality calculation failed: {str(e)}",
                operation="compute_centrality",
                error_type="computation",
                resource_info={"nodes": graph.number_of_nodes(), "edges": graph.number_of_edges()},
                cause=e
            )


def _as_result(graph: Graph, values: np.ndarray) -> CentralityResult:
    return dict(zip(graph.id_mapper.internal_to_original, values.tolist()))


def _arc_arrays(indptr: np.ndarray, indices: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """Expand CSR adjacency into parallel (row, column) arrays."""
    rows = np.repeat(np.arange(len(indptr) - 1), np.diff(indptr))
    return rows, np.asarray(indices)


def in_degree_centrality(graph: Graph) -> CentralityResult:
    """
    In-degree divided by (n-1); total degree for undirected graphs.

    All scores are zero when the graph has at most one node.
    """
    n = graph.number_of_nodes()
    if n <= 1:
        return _as_result(graph, np.zeros(n))
    return _as_result(graph, graph.in_degrees / (n - 1))


def out_degree_centrality(graph: Graph) -> CentralityResult:
    """
    Out-degree divided by (n-1); total degree for undirected graphs.

    All scores are zero when the graph has at most one node.
    """
    n = graph.number_of_nodes()
    if n <= 1:
        return _as_result(graph, np.zeros(n))
    return _as_result(graph, graph.out_degrees / (n - 1))


def closeness_centrality(
    graph: Graph,
    cancel_token: Optional[CancellationToken] = None
) -> CentralityResult:
    """
    Closeness centrality over the forward adjacency.

    Hop distances come from NetworkIt's all-pairs shortest paths on the
    exported graph. For every node the score is ``reached / total_distance``
    over the nodes it reaches; nodes that reach nothing score 0. No harmonic
    correction is applied, so a node in a small component is scored against
    that component only.
    """
    n = graph.number_of_nodes()
    check_cancelled(cancel_token, "closeness")
    if n == 0:
        return {}

    apsp = nk.distance.APSP(graph.to_networkit())
    apsp.run()
    distances = np.asarray(apsp.getDistances(), dtype=float)

    # unreachable pairs carry the largest representable distance
    reachable = np.isfinite(distances) & (distances < np.finfo(float).max) & (distances > 0)
    reached = reachable.sum(axis=1)
    total_distance = np.where(reachable, distances, 0.0).sum(axis=1)

    scores = np.zeros(n)
    np.divide(reached, total_distance, out=scores, where=total_distance > 0)
    return _as_result(graph, scores)


def betweenness_centrality(
    graph: Graph,
    cancel_token: Optional[CancellationToken] = None
) -> CentralityResult:
    """
    Node betweenness centrality by Brandes' algorithm.

    The raw shortest-path dependencies come from NetworkIt's Betweenness
    on the exported graph; both orientations of every undirected pair are
    counted. The sums are multiplied by 1/((n-1)(n-2)) for directed graphs
    and 2/((n-1)(n-2)) for undirected graphs when n > 2.

    Examples
    --------
    >>> scores = betweenness_centrality(build_graph("a b\\nb c"))
    >>> scores["b"]
    2.0
    """
    n = graph.number_of_nodes()
    check_cancelled(cancel_token, "betweenness")
    if n == 0:
        return {}

    btw = nk.centrality.Betweenness(graph.to_networkit(), normalized=False)
    btw.run()
    betweenness = np.asarray(btw.scores(), dtype=float)

    if n > 2:
        numerator = 1.0 if graph.directed else 2.0
        betweenness *= numerator / ((n - 1) * (n - 2))

    return _as_result(graph, betweenness)


def pagerank(
    graph: Graph,
    damping: float = 0.85,
    max_iterations: int = 100,
    tolerance: float = 1e-6,
    cancel_token: Optional[CancellationToken] = None
) -> CentralityResult:
    """
    PageRank by power iteration.

    Parameters
    ----------
    graph : Graph
        Input graph
    damping : float, default 0.85
        Probability of following an edge rather than teleporting
    max_iterations : int, default 100
        Maximum number of power iterations
    tolerance : float, default 1e-6
        Convergence threshold on the L1 change of the rank vector
    cancel_token : CancellationToken, optional
        Token polled between iterations

    Returns
    -------
    Dict[str, float]
        Ranks summing to 1. Empty when the graph is empty or the total rank
        underflows.

    Notes
    -----
    Rank held by dangling nodes (out-degree 0) is spread uniformly over all
    nodes on every iteration.
    """
    if not 0.0 < damping < 1.0:
        raise ConfigurationError(
            f"Parameter 'damping' must be within (0, 1), got {damping}",
            parameter="damping",
            value=damping
        )
    require_positive(max_iterations, "max_iterations")
    require_positive(tolerance, "tolerance")

    n = graph.number_of_nodes()
    if n == 0:
        return {}

    out_degrees = graph.out_degrees.astype(float)
    dangling = out_degrees == 0
    safe_degrees = np.where(dangling, 1.0, out_degrees)
    targets, sources = _arc_arrays(graph.rev_indptr, graph.rev_indices)

    rank = np.full(n, 1.0 / n)
    for iteration in range(max_iterations):
        check_cancelled(cancel_token, "pagerank")

        dangling_share = rank[dangling].sum() / n
        contribution = np.where(dangling, 0.0, rank / safe_degrees)
        incoming = np.bincount(targets, weights=contribution[sources], minlength=n)
        new_rank = (1.0 - damping) / n + damping * (incoming + dangling_share)

        change = np.abs(new_rank - rank).sum()
        rank = new_rank
        if change < tolerance:
            logger.debug("PageRank converged after %d iterations", iteration + 1)
            break

    total = rank.sum()
    if total < 1e-9:
        logger.warning("PageRank total underflowed to %g, returning empty result", total)
        return {}

    return _as_result(graph, rank / total)


def hits(
    graph: Graph,
    max_iterations: int = 100,
    tolerance: float = 1e-6,
    cancel_token: Optional[CancellationToken] = None
) -> HITSResult:
    """
    HITS authority and hub scores.

    Both vectors start at 1.0. Each iteration sets authorities to the sum of
    in-neighbours' hub scores, then hubs to the sum of out-neighbours'
    freshly updated authority scores; each vector is L2-normalized, with a
    divisor of 1 when its norm is zero. Iteration stops once the L1 change of
    the authority vector drops below ``tolerance``.
    """
    require_positive(max_iterations, "max_iterations")
    require_positive(tolerance, "tolerance")

    n = graph.number_of_nodes()
    if n == 0:
        return HITSResult(authority={}, hub={})

    in_targets, in_sources = _arc_arrays(graph.rev_indptr, graph.rev_indices)
    out_sources, out_targets = _arc_arrays(graph.indptr, graph.indices)

    authority = np.ones(n)
    hub = np.ones(n)
    for iteration in range(max_iterations):
        check_cancelled(cancel_token, "hits")

        new_authority = np.bincount(in_targets, weights=hub[in_sources], minlength=n)
        new_authority /= np.linalg.norm(new_authority) or 1.0

        new_hub = np.bincount(out_sources, weights=new_authority[out_targets], minlength=n)
        new_hub /= np.linalg.norm(new_hub) or 1.0

        change = np.abs(new_authority - authority).sum()
        authority, hub = new_authority, new_hub
        if change < tolerance:
            logger.debug("HITS converged after %d iterations", iteration + 1)
            break

    return HITSResult(authority=_as_result(graph, authority), hub=_as_result(graph, hub))


def rank_nodes(
    scores: CentralityResult,
    graph: Optional[Graph] = None,
    top_k: Optional[int] = None
) -> List[Tuple[str, float]]:
    """
    Order nodes by score, highest first.

    Ties are broken by the node's position in the graph's enumeration, or by
    the dictionary's own order when no graph is given.

    Examples
    --------
    >>> rank_nodes({"a": 0.2, "b": 0.5, "c": 0.2})
    [('b', 0.5), ('a', 0.2), ('c', 0.2)]
    """
    if graph is not None:
        position = graph.id_mapper.original_to_internal
        ranked = sorted(scores.items(), key=lambda item: (-item[1], position[item[0]]))
    else:
        ranked = sorted(scores.items(), key=lambda item: -item[1])

    if top_k is not None:
        ranked = ranked[:top_k]
    return ranked


def centrality_to_dataframe(
    result: Union[CentralityResult, HITSResult],
    graph: Optional[Graph] = None
) -> pl.DataFrame:
    """
    Convert a centrality result into a ranked Polars DataFrame.

    Returns
    -------
    pl.DataFrame
        Columns ``node_id``, ``score`` and ``rank`` (1 = most central). HITS
        results produce ``authority`` and ``hub`` columns instead of
        ``score`` and are ranked by authority.
    """
    if isinstance(result, HITSResult):
        ranked = rank_nodes(result.authority, graph)
        node_ids = [node for node, _ in ranked]
        return pl.DataFrame({
            "node_id": node_ids,
            "authority": [score for _, score in ranked],
            "hub": [result.hub[node] for node in node_ids],
            "rank": list(range(1, len(ranked) + 1)),
        }, schema={"node_id": pl.Utf8, "authority": pl.Float64, "hub": pl.Float64, "rank": pl.Int64})

    ranked = rank_nodes(result, graph)
    return pl.DataFrame({
        "node_id": [node for node, _ in ranked],
        "score": [score for _, score in ranked],
        "rank": list(range(1, len(ranked) + 1)),
    }, schema={"node_id": pl.Utf8, "score": pl.Float64, "rank": pl.Int64})


def get_centrality_summary(centrality_df: pl.DataFrame) -> Dict[str, Any]:
    """
    Get summary statistics for the score columns of a centrality DataFrame.

    Parameters
    ----------
    centrality_df : pl.DataFrame
        DataFrame returned by centrality_to_dataframe()

    Returns
    -------
    Dict[str, Any]
        count, mean, std, min, max and median per score column

    Examples
    --------
    >>> df = centrality_to_dataframe(compute_centrality(graph, "pagerank"))
    >>> get_centrality_summary(df)["score"]["count"]
    34
    """
    summary = {}
    if len(centrality_df) == 0:
        return summary

    score_cols = [col for col in centrality_df.columns if col not in ("node_id", "rank")]
    for col in score_cols:
        values = centrality_df[col]
        std = values.std()

        summary[col] = {
            "count": len(values),
            "mean": float(values.mean()),
            "std": float(std) if std is not None else 0.0,
            "min": float(values.min()),
            "max": float(values.max()),
            "median": float(values.median()),
        }

    return summary
