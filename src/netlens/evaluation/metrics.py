"""
Partition quality metrics for the netlens library.

This module scores detected communities, either against a ground-truth
partition (normalized mutual information, misclassified nodes) or against the
graph itself (modularity, coverage).
"""

from typing import List, Dict, Any, Mapping, Sequence

import numpy as np

from netlens.common.exceptions import require_positive
from netlens.common.logging_config import get_logger, log_function_entry
from netlens.common.validators import validate_partition
from netlens.network.construction import Graph

logger = get_logger(__name__)

# Added inside the mutual-information logarithm so empty cells never reach log(0)
NMI_EPSILON = 1e-15


def compute_nmi(
    ground_truth: Mapping[str, int],
    detected: Mapping[str, int],
    nodes: Sequence[str]
) -> float:
    """
    Normalized mutual information between two partitions.

    Builds the contingency table of (ground-truth, detected) community pairs
    over ``nodes`` and returns ``2 * MI / (H_gt + H_detected)`` with base-2
    logarithms, clamped to [0, 1].

    Parameters
    ----------
    ground_truth : Mapping[str, int]
        Reference partition
    detected : Mapping[str, int]
        Partition to score
    nodes : Sequence[str]
        Nodes to compare. Nodes missing from either partition are skipped,
        but probabilities are still taken over ``len(nodes)``.

    Returns
    -------
    float
        NMI in [0, 1]; exactly 1.0 when both partitions have zero entropy
        (for example a single community each, or no nodes at all)

    Examples
    --------
    >>> truth = {"a": 0, "b": 0, "c": 1, "d": 1}
    >>> compute_nmi(truth, {"a": 5, "b": 5, "c": 7, "d": 7}, list(truth))
    1.0
    >>> round(compute_nmi(truth, {"a": 0, "b": 1, "c": 0, "d": 1}, list(truth)), 6)
    0.0
    """
    log_function_entry("compute_nmi", nodes=len(nodes))

    n = len(nodes)
    if n == 0:
        return 1.0

    gt_labels = []
    detected_labels = []
    for node in nodes:
        if node in ground_truth and node in detected:
            gt_labels.append(ground_truth[node])
            detected_labels.append(detected[node])

    if not gt_labels:
        return 1.0

    gt_values, gt_index = np.unique(np.asarray(gt_labels), return_inverse=True)
    detected_values, detected_index = np.unique(np.asarray(detected_labels), return_inverse=True)

    contingency = np.zeros((len(gt_values), len(detected_values)))
    np.add.at(contingency, (gt_index, detected_index), 1.0)

    joint = contingency / n
    p_gt = contingency.sum(axis=1) / n
    p_detected = contingency.sum(axis=0) / n

    nonzero = joint > 0
    expected = np.outer(p_gt, p_detected)
    mutual_information = float(np.sum(
        joint[nonzero] * np.log2(joint[nonzero] / expected[nonzero] + NMI_EPSILON)
    ))

    h_gt = _entropy(p_gt)
    h_detected = _entropy(p_detected)

    if h_gt == 0.0 and h_detected == 0.0:
        return 1.0

    nmi = 2.0 * mutual_information / (h_gt + h_detected)
    return float(min(1.0, max(0.0, nmi)))


def _entropy(probabilities: np.ndarray) -> float:
    p = probabilities[probabilities > 0]
    return float(-np.sum(p * np.log2(p)))


def modularity(
    graph: Graph,
    partition: Mapping[str, int],
    resolution: float = 1.0
) -> float:
    """
    Newman modularity of a partition on the undirected view of a graph.

    Q = sum over communities c of L_c / m - resolution * (d_c / 2m)^2, where
    L_c counts edges inside c and d_c is the total degree of c. A graph
    without edges has modularity 0.

    Raises
    ------
    ValidationError
        If the partition does not cover every node
    """
    require_positive(resolution, "resolution")
    validate_partition(partition, nodes=graph.nodes)

    undirected = graph.with_directedness(False)
    m = undirected.number_of_edges()
    if m == 0:
        return 0.0

    nodes = undirected.id_mapper.internal_to_original
    _, membership = np.unique(np.asarray([partition[node] for node in nodes]), return_inverse=True)
    membership = membership.ravel()
    k = membership.max() + 1

    sources = membership[undirected.edges[:, 0]]
    targets = membership[undirected.edges[:, 1]]
    internal_edges = np.bincount(sources[sources == targets], minlength=k)
    community_degrees = np.bincount(membership, weights=undirected.out_degrees, minlength=k)

    q = internal_edges / m - resolution * (community_degrees / (2.0 * m)) ** 2
    return float(q.sum())


def coverage(graph: Graph, partition: Mapping[str, int]) -> float:
    """
    Fraction of edges whose endpoints share a community.

    Returns 1.0 for a graph without edges.
    """
    validate_partition(partition, nodes=graph.nodes)

    if graph.number_of_edges() == 0:
        return 1.0

    intra_community_edges = sum(
        1 for source, target in graph.edge_pairs() if partition[source] == partition[target]
    )
    return intra_community_edges / graph.number_of_edges()


def find_misclassified(
    ground_truth: Mapping[str, int],
    detected: Mapping[str, int]
) -> List[str]:
    """
    Nodes whose detected community id differs from their ground-truth id.

    Ids are compared as they are, without matching communities first, so the
    result is only meaningful when the detected ids were aligned with the
    ground truth (for example two factions numbered in the same order).
    Nodes absent from ``detected`` are not reported.
    """
    return [
        node for node, community in ground_truth.items()
        if node in detected and detected[node] != community
    ]


def evaluate_partition(
    graph: Graph,
    ground_truth: Mapping[str, int],
    detected: Mapping[str, int],
    resolution: float = 1.0
) -> Dict[str, Any]:
    """
    Score a detected partition against the graph and a ground truth.

    Returns
    -------
    Dict[str, Any]
        nmi, modularity, ground_truth_modularity, coverage,
        num_detected_communities, num_true_communities and
        num_misclassified

    Examples
    --------
    >>> karate = load_benchmark("karate")
    >>> detected = detect_communities(karate.graph, "louvain")
    >>> report = evaluate_partition(karate.graph, karate.ground_truth, detected)
    >>> 0.0 <= report["nmi"] <= 1.0
    True
    """
    nodes = graph.nodes
    report = {
        "nmi": compute_nmi(ground_truth, detected, nodes),
        "modularity": modularity(graph, detected, resolution),
        "ground_truth_modularity": modularity(graph, ground_truth, resolution),
        "coverage": coverage(graph, detected),
        "num_detected_communities": len(set(detected.values())),
        "num_true_communities": len(set(ground_truth.values())),
        "num_misclassified": len(find_misclassified(ground_truth, detected)),
    }
    logger.debug("Partition evaluation: %s", report)
    return report
