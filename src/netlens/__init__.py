"""
netlens - graph analytics for relational networks.

This package partitions nodes into communities, ranks nodes by structural
importance, predicts missing edges, generates synthetic benchmark networks
with known ground truth, and scores partitions against that ground truth.

Modules:
    common: Shared utilities for ID mapping, validation, logging and errors
    network: Graph construction, centrality, communities and link prediction
    generators: Synthetic benchmark generators and bundled reference networks
    evaluation: Normalized mutual information and partition quality
"""

__version__ = "0.1.0"

from netlens.common.exceptions import (
    NetworkAnalysisError,
    ValidationError,
    GraphConstructionError,
    ConfigurationError,
    ComputationError,
    ScaleLimitError,
    OperationCancelledError,
    DataFormatError
)
from netlens.common.cancellation import CancellationToken
from netlens.common.logging_config import setup_logging, get_logger

from netlens.network.construction import Graph, build_graph, parse_edge_list
from netlens.network.analysis import compute_centrality, HITSResult
from netlens.network.communities import detect_communities, submit_detection
from netlens.network.prediction import predict_links, LinkPrediction
from netlens.generators.synthetic import generate_gn, generate_lfr, GeneratedNetwork
from netlens.generators.datasets import load_benchmark
from netlens.evaluation.metrics import compute_nmi

__all__ = [
    "build_graph",
    "compute_centrality",
    "detect_communities",
    "predict_links",
    "generate_gn",
    "generate_lfr",
    "compute_nmi",
    "parse_edge_list",
    "submit_detection",
    "load_benchmark",
    "Graph",
    "HITSResult",
    "LinkPrediction",
    "GeneratedNetwork",
    "CancellationToken",
    "setup_logging",
    "get_logger",
    "NetworkAnalysisError",
    "ValidationError",
    "GraphConstructionError",
    "ConfigurationError",
    "ComputationError",
    "ScaleLimitError",
    "OperationCancelledError",
    "DataFormatError",
]
