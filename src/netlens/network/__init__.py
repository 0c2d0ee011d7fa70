"""
Network construction and analysis module.

This module provides the core graph analytics:
- Graph construction from edge-list text, pair sequences or DataFrames
- Centrality measures (in/out degree, closeness, betweenness, PageRank, HITS)
- Community detection (Louvain, Girvan-Newman, label propagation)
- Link prediction (common neighbours, Jaccard, Adamic-Adar, preferential attachment)
"""

# Network construction functions
from .construction import (
    Graph,
    parse_edge_list,
    read_edge_list,
    build_graph,
    get_graph_info
)

# Network analysis functions
from .analysis import (
    HITSResult,
    compute_centrality,
    in_degree_centrality,
    out_degree_centrality,
    closeness_centrality,
    betweenness_centrality,
    pagerank,
    hits,
    rank_nodes,
    centrality_to_dataframe,
    get_centrality_summary
)

# Community detection functions
from .communities import (
    GirvanNewmanResult,
    DetectionJob,
    detect_communities,
    label_propagation,
    louvain,
    louvain_hierarchy,
    girvan_newman,
    edge_betweenness,
    submit_detection,
    get_community_summary
)

# Link prediction functions
from .prediction import (
    LinkPrediction,
    predict_links,
    predictions_to_dataframe,
    get_prediction_summary
)
