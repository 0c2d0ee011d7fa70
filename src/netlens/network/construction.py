"""
Network construction module for the netlens library.

This module turns raw edge lists into Graph objects: a node enumeration held
by an IDMapper plus arena-indexed adjacency, i.e. compressed sparse rows where
the neighbours of node index ``i`` are the contiguous slice
``indices[indptr[i]:indptr[i + 1]]``. Directed graphs additionally carry a
reverse adjacency for incoming neighbours. Every other component of the
library consumes this structure.
"""

from typing import Union, Tuple, Optional, List, Dict, Any, Sequence, Iterable
from pathlib import Path

import numpy as np
import polars as pl
import networkit as nk

from netlens.common.id_mapper import IDMapper
from netlens.common.exceptions import (
    GraphConstructionError,
    ValidationError,
    DataFormatError
)
from netlens.common.validators import validate_edgelist_dataframe
from netlens.common.logging_config import get_logger, log_function_entry, LoggingTimer

logger = get_logger(__name__)

EdgeListInput = Union[str, pl.DataFrame, Iterable[Sequence[str]]]


class Graph:
    """
    Immutable graph with dense node indices and CSR adjacency.

    Parameters
    ----------
    id_mapper : IDMapper
        Node enumeration; index order is the tie-breaking order used by the
        analytics routines
    edges : np.ndarray
        Array of shape (m, 2) holding (source, target) node indices in
        insertion order
    directed : bool
        Whether edges are directed

    Attributes
    ----------
    indptr, indices : np.ndarray
        Forward adjacency. For undirected graphs every edge appears in both
        endpoints' slices (a self-loop appears twice in its node's slice).
    rev_indptr, rev_indices : np.ndarray
        Reverse adjacency (incoming neighbours). Same arrays as the forward
        adjacency for undirected graphs.
    out_degrees, in_degrees : np.ndarray
        Per-node degree counts. For undirected graphs both hold the total degree.

    Notes
    -----
    Parallel edges are kept with their multiplicity. The sum of ``out_degrees``
    is ``m`` for directed graphs and ``2m`` for undirected ones.
    """

    def __init__(self, id_mapper: IDMapper, edges: np.ndarray, directed: bool) -> None:
        self.id_mapper = id_mapper
        self.directed = bool(directed)
        self.edges = np.asarray(edges, dtype=np.int64).reshape(-1, 2)
        self.edges.setflags(write=False)

        n = id_mapper.size()
        src = self.edges[:, 0]
        dst = self.edges[:, 1]

        if self.directed:
            self.indptr, self.indices = _build_csr(src, dst, n)
            self.rev_indptr, self.rev_indices = _build_csr(dst, src, n)
        else:
            # Interleave both orientations so each slice keeps insertion order
            sym_src = np.column_stack((src, dst)).ravel()
            sym_dst = np.column_stack((dst, src)).ravel()
            self.indptr, self.indices = _build_csr(sym_src, sym_dst, n)
            self.rev_indptr, self.rev_indices = self.indptr, self.indices

        self.out_degrees = np.diff(self.indptr)
        self.in_degrees = np.diff(self.rev_indptr)

        self._adjacency: Optional[List[List[int]]] = None
        self._reverse_adjacency: Optional[List[List[int]]] = None

    @property
    def nodes(self) -> List[str]:
        """Node identifiers in enumeration order."""
        return self.id_mapper.nodes()

    def number_of_nodes(self) -> int:
        return self.id_mapper.size()

    def number_of_edges(self) -> int:
        return int(self.edges.shape[0])

    def neighbors(self, node: str) -> List[str]:
        """Forward neighbours of a node (successors when directed)."""
        i = self.id_mapper.get_internal(node)
        return self.id_mapper.get_original_batch(self.indices[self.indptr[i]:self.indptr[i + 1]])

    def in_neighbors(self, node: str) -> List[str]:
        """Incoming neighbours of a node (same as neighbors() when undirected)."""
        i = self.id_mapper.get_internal(node)
        return self.id_mapper.get_original_batch(
            self.rev_indices[self.rev_indptr[i]:self.rev_indptr[i + 1]]
        )

    def out_degree(self, node: str) -> int:
        return int(self.out_degrees[self.id_mapper.get_internal(node)])

    def in_degree(self, node: str) -> int:
        return int(self.in_degrees[self.id_mapper.get_internal(node)])

    def degree(self, node: str) -> int:
        """Total degree: in + out for directed graphs, adjacency size otherwise."""
        i = self.id_mapper.get_internal(node)
        if self.directed:
            return int(self.out_degrees[i] + self.in_degrees[i])
        return int(self.out_degrees[i])

    def adjacency_lists(self) -> List[List[int]]:
        """Forward adjacency as plain index lists, for tight Python loops."""
        if self._adjacency is None:
            self._adjacency = _csr_to_lists(self.indptr, self.indices)
        return self._adjacency

    def reverse_adjacency_lists(self) -> List[List[int]]:
        """Reverse adjacency as plain index lists."""
        if not self.directed:
            return self.adjacency_lists()
        if self._reverse_adjacency is None:
            self._reverse_adjacency = _csr_to_lists(self.rev_indptr, self.rev_indices)
        return self._reverse_adjacency

    def edge_pairs(self) -> List[Tuple[str, str]]:
        """Edges as (source, target) identifier pairs in insertion order."""
        lookup = self.id_mapper.internal_to_original
        return [(lookup[u], lookup[v]) for u, v in self.edges.tolist()]

    def with_directedness(self, directed: bool) -> 'Graph':
        """
        Return a graph over the same nodes and edges with another directedness.

        Returns self when the flag already matches.
        """
        if bool(directed) == self.directed:
            return self
        return Graph(self.id_mapper, self.edges, directed)

    def to_networkit(self) -> nk.Graph:
        """
        Export to a NetworkIt graph whose node ids are this graph's indices.

        Returns
        -------
        nk.Graph
            Unweighted NetworkIt graph with the same directedness and edges
        """
        graph = nk.Graph(self.number_of_nodes(), weighted=False, directed=self.directed)
        for u, v in self.edges.tolist():
            graph.addEdge(u, v)
        return graph

    def __repr__(self) -> str:
        return (
            f"Graph(nodes={self.number_of_nodes()}, edges={self.number_of_edges()}, "
            f"directed={self.directed})"
        )


def _build_csr(src: np.ndarray, dst: np.ndarray, n: int) -> Tuple[np.ndarray, np.ndarray]:
    """Group ``dst`` by ``src`` into CSR arrays, keeping the original order within a row."""
    order = np.argsort(src, kind="stable")
    indices = dst[order].astype(np.int64, copy=False)
    counts = np.bincount(src, minlength=n) if len(src) else np.zeros(n, dtype=np.int64)
    indptr = np.zeros(n + 1, dtype=np.int64)
    np.cumsum(counts, out=indptr[1:])
    indptr.setflags(write=False)
    indices.setflags(write=False)
    return indptr, indices


def _csr_to_lists(indptr: np.ndarray, indices: np.ndarray) -> List[List[int]]:
    flat = indices.tolist()
    bounds = indptr.tolist()
    return [flat[bounds[i]:bounds[i + 1]] for i in range(len(bounds) - 1)]


def parse_edge_list(text: str) -> List[Tuple[str, str]]:
    """
    Parse whitespace-separated edge-list text.

    Each line contributes its first two tokens as (source, target), taken as
    literal strings. Lines with fewer than two tokens are skipped.

    Examples
    --------
    >>> parse_edge_list("a b\\n  c   d extra\\nlonely\\n")
    [('a', 'b'), ('c', 'd')]
    """
    edges = []
    for line in text.splitlines():
        parts = line.split()
        if len(parts) >= 2:
            edges.append((parts[0], parts[1]))
    return edges


def read_edge_list(path: Union[str, Path]) -> List[Tuple[str, str]]:
    """
    Read and parse an edge-list file.

    Raises
    ------
    DataFormatError
        If the file does not exist or cannot be decoded
    """
    file_path = Path(path)
    if not file_path.exists():
        raise DataFormatError(
            f"Edge list file not found: {path}",
            format_type="edge list",
            file_path=str(path)
        )

    logger.debug("Loading edge list from file: %s", file_path)
    try:
        text = file_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise DataFormatError(
            f"Error reading file: {e}",
            format_type="edge list",
            file_path=str(path),
            cause=e
        )
    return parse_edge_list(text)


def build_graph(
    edgelist: EdgeListInput,
    directed: bool = False,
    nodes: Optional[Iterable[str]] = None,
    source_col: str = "source",
    target_col: str = "target"
) -> Graph:
    """
    Build a Graph from an edge list.

    Parameters
    ----------
    edgelist : str, pl.DataFrame or iterable of pairs
        Edge-list text (one whitespace-separated pair per line), a Polars
        DataFrame with source/target columns, or an iterable of
        (source, target) pairs. Entries with fewer than two fields are skipped.
    directed : bool, default False
        If True, create a directed graph; otherwise undirected
    nodes : Iterable[str], optional
        Explicit node set and enumeration order. Isolated nodes are kept and
        edges touching unknown nodes are dropped silently. When omitted the
        nodes are taken from the edges in order of first appearance.
    source_col : str, default "source"
        Source column name for DataFrame input
    target_col : str, default "target"
        Target column name for DataFrame input

    Returns
    -------
    Graph
        The constructed graph

    Raises
    ------
    ValidationError
        If DataFrame input misses its columns or holds null identifiers
    GraphConstructionError
        If graph construction fails unexpectedly

    Examples
    --------
    >>> graph = build_graph("1 2\\n2 3\\n3 1")
    >>> graph.number_of_nodes(), graph.number_of_edges()
    (3, 3)
    >>> graph.neighbors("1")
    ['2', '3']
    """
    log_function_entry("build_graph", edgelist=type(edgelist).__name__, directed=directed)

    with LoggingTimer("build_graph"):
        pairs = _load_edge_pairs(edgelist, source_col, target_col)

        try:
            if nodes is None:
                id_mapper = IDMapper()
                for source, target in pairs:
                    id_mapper.add(source)
                    id_mapper.add(target)
            else:
                id_mapper = IDMapper.from_nodes(nodes)

            lookup = id_mapper.original_to_internal
            accepted = [
                (lookup[source], lookup[target])
                for source, target in pairs
                if source in lookup and target in lookup
            ]
            dropped = len(pairs) - len(accepted)
            if dropped:
                logger.debug("Dropped %d edges referencing unknown nodes", dropped)

            graph = Graph(id_mapper, np.array(accepted, dtype=np.int64).reshape(-1, 2), directed)

        except TypeError as e:
            raise GraphConstructionError(
                f"Unexpected error during graph construction: {e}",
                edge_count=len(pairs),
                operation="build_graph",
                cause=e
            )

        logger.info(
            "Graph construction completed: %d nodes, %d edges, directed=%s",
            graph.number_of_nodes(), graph.number_of_edges(), directed
        )
        return graph


def _load_edge_pairs(
    edgelist: EdgeListInput,
    source_col: str,
    target_col: str
) -> List[Tuple[str, str]]:
    """Normalize the supported edge-list inputs into a list of string pairs."""
    if isinstance(edgelist, str):
        return parse_edge_list(edgelist)

    if isinstance(edgelist, pl.DataFrame):
        validate_edgelist_dataframe(edgelist, source_col=source_col, target_col=target_col)
        frame = edgelist.select(
            pl.col(source_col).cast(pl.Utf8),
            pl.col(target_col).cast(pl.Utf8)
        )
        return list(frame.iter_rows())

    pairs = []
    try:
        for entry in edgelist:
            if isinstance(entry, str):
                entry = entry.split()
            if len(entry) < 2:
                continue
            source, target = entry[0], entry[1]
            if not isinstance(source, str) or not isinstance(target, str):
                raise ValidationError(
                    "Node identifiers must be strings",
                    field="edgelist",
                    value=(source, target),
                    expected="(str, str)"
                )
            pairs.append((source, target))
    except TypeError as e:
        raise DataFormatError(
            f"Unsupported edge list input: {type(edgelist).__name__}",
            format_type="edge list",
            cause=e
        )
    return pairs


def get_graph_info(graph: Graph) -> Dict[str, Any]:
    """
    Get summary statistics of a graph.

    Returns
    -------
    Dict[str, Any]
        num_nodes, num_edges, directed, average_degree (2m/n), density,
        num_isolated_nodes and num_self_loops

    Examples
    --------
    >>> info = get_graph_info(build_graph("a b\\nb c"))
    >>> info["average_degree"]
    1.3333333333333333
    """
    n = graph.number_of_nodes()
    m = graph.number_of_edges()

    possible_edges = n * (n - 1) if graph.directed else n * (n - 1) / 2
    if graph.directed:
        total_degrees = graph.out_degrees + graph.in_degrees
    else:
        total_degrees = graph.out_degrees

    return {
        "num_nodes": n,
        "num_edges": m,
        "directed": graph.directed,
        "average_degree": 2 * m / n if n > 0 else 0.0,
        "density": m / possible_edges if possible_edges > 0 else 0.0,
        "num_isolated_nodes": int(np.sum(total_degrees == 0)),
        "num_self_loops": int(np.sum(graph.edges[:, 0] == graph.edges[:, 1])) if m else 0,
    }
