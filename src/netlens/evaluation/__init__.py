"""
Partition evaluation module.

Provides normalized mutual information against a ground truth together with
graph-based partition quality scores (modularity, coverage).
"""

from .metrics import (
    compute_nmi,
    modularity,
    coverage,
    find_misclassified,
    evaluate_partition
)
