"""
Link prediction module for the netlens library.

Scores node pairs that are not yet connected using neighbour-set algebra on
the undirected view of a graph. The set operations are expressed as sparse
matrix products: with A the binary symmetric adjacency matrix, (A @ A)[u, v]
counts the common neighbours of u and v, and A @ diag(w) @ A sums a weight
w over them.
"""

from typing import List, Dict, Optional, Tuple, NamedTuple

import numpy as np
import polars as pl
import scipy.sparse as sp

from netlens.common.exceptions import validate_parameter
from netlens.common.logging_config import get_logger, log_function_entry, LoggingTimer
from netlens.network.construction import Graph

logger = get_logger(__name__)

AVAILABLE_ALGORITHMS = [
    "common_neighbors", "jaccard", "adamic_adar", "preferential_attachment"
]


class LinkPrediction(NamedTuple):
    """Predicted edge between two currently unconnected nodes."""
    source: str
    target: str
    score: float


def predict_links(graph: Graph, algorithm: str = "common_neighbors") -> List[LinkPrediction]:
    """
    Score every unordered pair of distinct, unconnected nodes.

    Parameters
    ----------
    graph : Graph
        Input graph; directed graphs are read as undirected
    algorithm : str, default "common_neighbors"
        Scoring function. Available options:
        - "common_neighbors": |N(u) & N(v)|
        - "jaccard": |N(u) & N(v)| / |N(u) | N(v)|
        - "adamic_adar": sum of 1 / ln(deg(w)) over common neighbours w with
          deg(w) > 1
        - "preferential_attachment": deg(u) * deg(v)

    Returns
    -------
    List[LinkPrediction]
        Predictions ordered by (source, target) enumeration position, with
        the source always enumerated before the target. Pairs with a zero
        score are left out, except for Jaccard which keeps every pair whose
        neighbourhood union is non-empty.

    Raises
    ------
    ConfigurationError
        If the algorithm is unknown

    Notes
    -----
    N(u) is the set of distinct neighbours of u other than u itself. deg(u)
    counts every incident edge endpoint, so parallel edges and self-loops
    raise it.

    Examples
    --------
    >>> graph = build_graph("a b\\nb c\\nc d")
    >>> predict_links(graph, "common_neighbors")
    [LinkPrediction(source='a', target='c', score=1.0), LinkPrediction(source='b', target='d', score=1.0)]
    """
    log_function_entry("predict_links", algorithm=algorithm)
    validate_parameter(algorithm, AVAILABLE_ALGORITHMS, "algorithm", "predict_links")

    n = graph.number_of_nodes()
    if n < 2:
        return []

    undirected = graph.with_directedness(False)

    with LoggingTimer("predict_links", {"algorithm": algorithm, "nodes": n}):
        adjacency = _neighbor_matrix(undirected)
        degrees = undirected.out_degrees.astype(np.float64)

        if algorithm == "common_neighbors":
            rows, cols, scores = _sparse_pair_scores(adjacency @ adjacency, adjacency)
        elif algorithm == "adamic_adar":
            weights = np.zeros(n)
            hubs = degrees > 1
            weights[hubs] = 1.0 / np.log(degrees[hubs])
            rows, cols, scores = _sparse_pair_scores(
                adjacency @ sp.diags(weights) @ adjacency, adjacency
            )
        elif algorithm == "jaccard":
            rows, cols = _candidate_pairs(adjacency)
            set_sizes = np.asarray(adjacency.sum(axis=1)).ravel()
            common = _pair_values(adjacency @ adjacency, rows, cols)
            union = set_sizes[rows] + set_sizes[cols] - common
            keep = union > 0
            rows, cols = rows[keep], cols[keep]
            scores = common[keep] / union[keep]
        else:
            rows, cols = _candidate_pairs(adjacency)
            scores = degrees[rows] * degrees[cols]
            keep = scores > 0
            rows, cols, scores = rows[keep], cols[keep], scores[keep]

        nodes = undirected.id_mapper.internal_to_original
        predictions = [
            LinkPrediction(nodes[u], nodes[v], score)
            for u, v, score in zip(rows.tolist(), cols.tolist(), scores.tolist())
        ]

    logger.info("Link prediction completed: %s produced %d candidate links",
                algorithm, len(predictions))
    return predictions


def _neighbor_matrix(graph: Graph) -> sp.csr_matrix:
    """Binary symmetric adjacency matrix without self-loops."""
    n = graph.number_of_nodes()
    sources = graph.edges[:, 0]
    targets = graph.edges[:, 1]
    distinct = sources != targets
    sources, targets = sources[distinct], targets[distinct]

    matrix = sp.coo_matrix(
        (np.ones(2 * len(sources)), (np.concatenate([sources, targets]), np.concatenate([targets, sources]))),
        shape=(n, n),
        dtype=np.float64
    ).tocsr()
    matrix.data[:] = 1.0
    return matrix


def _pair_values(matrix: sp.csr_matrix, rows: np.ndarray, cols: np.ndarray) -> np.ndarray:
    if len(rows) == 0:
        return np.zeros(0)
    return np.asarray(matrix[rows, cols]).ravel()


def _candidate_pairs(adjacency: sp.csr_matrix) -> Tuple[np.ndarray, np.ndarray]:
    """All (i, j) with i < j that are not adjacent, in row-major order."""
    n = adjacency.shape[0]
    rows, cols = np.triu_indices(n, k=1)
    unconnected = _pair_values(adjacency, rows, cols) == 0
    return rows[unconnected], cols[unconnected]


def _sparse_pair_scores(
    scores: sp.spmatrix,
    adjacency: sp.csr_matrix
) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Positive upper-triangle entries of ``scores`` on unconnected pairs, row-major."""
    upper = sp.triu(scores, k=1).tocoo()
    rows, cols, values = upper.row, upper.col, upper.data

    keep = (values > 0) & (_pair_values(adjacency, rows, cols) == 0)
    rows, cols, values = rows[keep], cols[keep], values[keep]

    order = np.lexsort((cols, rows))
    return rows[order], cols[order], values[order]


def predictions_to_dataframe(
    predictions: List[LinkPrediction],
    top_k: Optional[int] = None
) -> pl.DataFrame:
    """
    Convert predictions into a Polars DataFrame sorted by score.

    Ties keep their original order.

    Parameters
    ----------
    predictions : List[LinkPrediction]
        Output of predict_links()
    top_k : int, optional
        Keep only the best ``top_k`` rows

    Returns
    -------
    pl.DataFrame
        Columns ``source``, ``target`` and ``score``
    """
    df = pl.DataFrame(
        {
            "source": [p.source for p in predictions],
            "target": [p.target for p in predictions],
            "score": [p.score for p in predictions],
        },
        schema={"source": pl.Utf8, "target": pl.Utf8, "score": pl.Float64}
    )
    df = df.sort("score", descending=True, maintain_order=True)

    if top_k is not None:
        df = df.head(top_k)
    return df


def get_prediction_summary(predictions: List[LinkPrediction]) -> Dict[str, float]:
    """Count and score range of a prediction list."""
    if not predictions:
        return {"count": 0, "min": 0.0, "max": 0.0, "mean": 0.0}

    scores = np.array([p.score for p in predictions])
    return {
        "count": len(predictions),
        "min": float(scores.min()),
        "max": float(scores.max()),
        "mean": float(scores.mean()),
    }
