"""
Synthetic and reference networks.

Provides planted-partition (GN) and LFR-style benchmark generators with known
ground truth, and a small set of bundled real-world networks.
"""

from .synthetic import (
    GeneratedNetwork,
    generate_gn,
    generate_lfr
)

from .datasets import (
    BenchmarkNetwork,
    list_benchmarks,
    load_benchmark
)
