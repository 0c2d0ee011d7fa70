"""
Synthetic benchmark networks with planted communities.

Two generators are provided:

- generate_gn(): the Girvan-Newman planted-partition model, equally sized
  blocks wired with independent Bernoulli trials
- generate_lfr(): an LFR-style benchmark with power-law degree and community
  size distributions and a mixing parameter mu controlling the fraction of
  each node's edges that leave its community

Both return a GeneratedNetwork carrying the graph, the planted (ground-truth)
partition and the generated edge list. All randomness flows from a single
numpy Generator, so a fixed ``random_seed`` reproduces a network exactly.
"""

import math
from types import MappingProxyType
from typing import List, Dict, Any, Optional, Tuple, Mapping, NamedTuple

import numpy as np

from netlens.common.exceptions import require_positive, require_probability
from netlens.common.logging_config import get_logger, log_function_entry, LoggingTimer
from netlens.network.construction import Graph, build_graph

logger = get_logger(__name__)


class GeneratedNetwork(NamedTuple):
    """
    A synthetic network and its planted partition.

    Attributes
    ----------
    graph : Graph
        Undirected graph over all generated nodes, isolated nodes included
    ground_truth : Mapping[str, int]
        Read-only node -> planted community id
    edges : Tuple[Tuple[str, str], ...]
        Generated edges in creation order
    metadata : Mapping[str, Any]
        Read-only generator parameters and diagnostics
    """
    graph: Graph
    ground_truth: Mapping[str, int]
    edges: Tuple[Tuple[str, str], ...]
    metadata: Mapping[str, Any]

    def edge_list(self) -> str:
        """Edges as edge-list text, one ``source target`` pair per line."""
        return "\n".join(f"{source} {target}" for source, target in self.edges)


def _freeze(
    nodes: List[str],
    ground_truth: Dict[str, int],
    edges: List[Tuple[str, str]],
    metadata: Dict[str, Any]
) -> GeneratedNetwork:
    return GeneratedNetwork(
        graph=build_graph(edges, directed=False, nodes=nodes),
        ground_truth=MappingProxyType(ground_truth),
        edges=tuple(edges),
        metadata=MappingProxyType(metadata)
    )


def generate_gn(
    num_communities: int = 4,
    nodes_per_community: int = 32,
    p_in: float = 0.5,
    p_out: float = 0.01,
    random_seed: Optional[int] = None
) -> GeneratedNetwork:
    """
    Generate a Girvan-Newman planted-partition network.

    Node ``c{c}_n{i}`` is the i-th node of community c. Every unordered pair
    of nodes is connected by an independent Bernoulli trial with probability
    ``p_in`` inside a community and ``p_out`` across communities.

    Parameters
    ----------
    num_communities : int, default 4
        Number of planted communities
    nodes_per_community : int, default 32
        Size of every community
    p_in : float, default 0.5
        Intra-community connection probability, within [0, 1]
    p_out : float, default 0.01
        Inter-community connection probability, within [0, 1]
    random_seed : int, optional
        Seed for reproducible generation

    Returns
    -------
    GeneratedNetwork
        Graph, ground truth and edge list

    Raises
    ------
    ConfigurationError
        If a size is not positive or a probability is outside [0, 1]

    Examples
    --------
    >>> network = generate_gn(2, 3, p_in=1.0, p_out=0.0)
    >>> network.edges
    (('c0_n0', 'c0_n1'), ('c0_n0', 'c0_n2'), ('c0_n1', 'c0_n2'), ('c1_n0', 'c1_n1'), ('c1_n0', 'c1_n2'), ('c1_n1', 'c1_n2'))
    """
    log_function_entry(
        "generate_gn",
        num_communities=num_communities,
        nodes_per_community=nodes_per_community,
        p_in=p_in,
        p_out=p_out,
        random_seed=random_seed
    )

    require_positive(num_communities, "num_communities")
    require_positive(nodes_per_community, "nodes_per_community")
    require_probability(p_in, "p_in")
    require_probability(p_out, "p_out")

    rng = np.random.default_rng(random_seed)

    with LoggingTimer("generate_gn", {"communities": num_communities, "size": nodes_per_community}):
        nodes = []
        ground_truth = {}
        for c in range(num_communities):
            for i in range(nodes_per_community):
                node_id = f"c{c}_n{i}"
                nodes.append(node_id)
                ground_truth[node_id] = c

        membership = np.repeat(np.arange(num_communities), nodes_per_community)
        rows, cols = np.triu_indices(len(nodes), k=1)
        same_block = membership[rows] == membership[cols]
        probabilities = np.where(same_block, p_in, p_out)
        connected = rng.random(len(rows)) < probabilities

        edges = [(nodes[u], nodes[v]) for u, v in zip(rows[connected].tolist(), cols[connected].tolist())]
        intra_edges = int(np.sum(connected & same_block))

        metadata = {
            "generator": "gn",
            "num_communities": num_communities,
            "nodes_per_community": nodes_per_community,
            "p_in": p_in,
            "p_out": p_out,
            "random_seed": random_seed,
            "num_intra_edges": intra_edges,
            "num_inter_edges": len(edges) - intra_edges,
        }

    logger.info("Generated GN network: %d nodes, %d edges", len(nodes), len(edges))
    return _freeze(nodes, ground_truth, edges, metadata)


def _power_law_sample(rng: np.random.Generator, low: int, high: int, exponent: float) -> int:
    """
    Draw an integer from a power law p(x) ~ x^-exponent bounded to [low, high].

    Uses inverse-transform sampling of the continuous distribution followed by
    rounding half up. An exponent of 1 has a logarithmic CDF and is sampled
    log-uniformly.
    """
    y = rng.random()
    if math.isclose(exponent, 1.0):
        value = low * (high / low) ** y
    else:
        alpha = 1.0 - exponent
        low_alpha = low ** alpha
        high_alpha = high ** alpha
        value = ((high_alpha - low_alpha) * y + low_alpha) ** (1.0 / alpha)
    return min(high, max(low, int(math.floor(value + 0.5))))


def _sample_community_sizes(
    rng: np.random.Generator,
    n: int,
    min_community: int,
    max_community: int,
    exponent: float
) -> List[int]:
    if n < min_community:
        return [n]

    sizes: List[int] = []
    remaining = n
    while remaining > 0:
        upper = min(max_community, remaining)
        if upper < min_community:
            # Leftover nodes cannot form a community of their own
            sizes[sizes.index(max(sizes))] += remaining
            break

        size = _power_law_sample(rng, min_community, upper, exponent)
        if 0 < remaining - size < min_community:
            size = remaining

        sizes.append(size)
        remaining -= size

    return sizes


def _pair_stubs(
    rng: np.random.Generator,
    stubs: List[int],
    seen: set,
    edges: List[Tuple[int, int]]
) -> int:
    """Shuffle and pair stubs in order, returning the number of discarded pairs."""
    shuffled = rng.permutation(np.asarray(stubs, dtype=np.int64)).tolist()
    discarded = 0
    for i in range(0, len(shuffled) - 1, 2):
        u, v = shuffled[i], shuffled[i + 1]
        key = (u, v) if u < v else (v, u)
        if u == v or key in seen:
            discarded += 1
            continue
        seen.add(key)
        edges.append((u, v))
    return discarded


def generate_lfr(
    n: int = 250,
    mu: float = 0.1,
    min_community: int = 20,
    max_community: int = 50,
    min_degree: int = 5,
    max_degree: int = 20,
    degree_exponent: float = 2.5,
    community_exponent: float = 1.5,
    random_seed: Optional[int] = None
) -> GeneratedNetwork:
    """
    Generate an LFR-style benchmark network.

    Steps:

    1. Community sizes are drawn from a power law on
       [min_community, max_community] until all nodes are placed. A community
       absorbs the rest when what would remain is too small to form one, and
       leftover nodes join the largest community. With ``n`` below
       ``min_community`` all nodes form a single community.
    2. Each node's degree is drawn from a power law on
       [min_degree, cap], with cap the smallest of ``max_degree``, ``n - 1``
       and ``floor((size - 1) / (1 - mu))`` so that the internal degree fits
       inside the node's community.
    3. If the degree total is odd, one random node gains a degree.
    4. A node of degree k gets ``round(mu * k)`` external stubs and the
       rest internal ones.
    5. If a community's internal stub total is odd, a random member with
       internal stubs converts one of them into an external stub, so no
       internal degree grows. With ``mu == 0`` that stub is dropped instead.
    6. Internal stubs are shuffled and paired within each community, then
       external stubs are shuffled and paired globally. Self-pairs and
       duplicate pairs are discarded.

    Parameters
    ----------
    n : int, default 250
        Number of nodes, named ``n0`` ... ``n{n-1}``
    mu : float, default 0.1
        Mixing parameter within [0, 1]
    min_community, max_community : int, default 20, 50
        Community size bounds (swapped if given in the wrong order)
    min_degree, max_degree : int, default 5, 20
        Degree bounds (swapped if given in the wrong order)
    degree_exponent : float, default 2.5
        Power-law exponent of the degree distribution
    community_exponent : float, default 1.5
        Power-law exponent of the community size distribution
    random_seed : int, optional
        Seed for reproducible generation

    Returns
    -------
    GeneratedNetwork
        Graph, ground truth, edge list and metadata with ``community_sizes``,
        ``degrees``, ``internal_stubs``, ``external_stubs`` and
        ``discarded_pairs``

    Raises
    ------
    ConfigurationError
        If a size or exponent is not positive or mu is outside [0, 1]
    """
    log_function_entry(
        "generate_lfr",
        n=n, mu=mu,
        min_community=min_community, max_community=max_community,
        min_degree=min_degree, max_degree=max_degree,
        degree_exponent=degree_exponent, community_exponent=community_exponent,
        random_seed=random_seed
    )

    require_positive(n, "n")
    require_probability(mu, "mu")
    for name, value in (
        ("min_community", min_community), ("max_community", max_community),
        ("min_degree", min_degree), ("max_degree", max_degree),
        ("degree_exponent", degree_exponent), ("community_exponent", community_exponent)
    ):
        require_positive(value, name)

    if min_community > max_community:
        min_community, max_community = max_community, min_community
    if min_degree > max_degree:
        min_degree, max_degree = max_degree, min_degree

    rng = np.random.default_rng(random_seed)

    with LoggingTimer("generate_lfr", {"nodes": n, "mu": mu}):
        sizes = _sample_community_sizes(rng, n, min_community, max_community, community_exponent)

        nodes = [f"n{k}" for k in range(n)]
        membership = np.repeat(np.arange(len(sizes)), sizes).tolist()
        members: List[List[int]] = []
        start = 0
        for size in sizes:
            members.append(list(range(start, start + size)))
            start += size

        degrees = []
        for k in range(n):
            size = sizes[membership[k]]
            if 1.0 - mu > 1e-9:
                community_cap = math.floor((size - 1) / (1.0 - mu))
            else:
                community_cap = n - 1
            upper = min(max_degree, n - 1, community_cap)
            lower = min(min_degree, upper)
            if lower < upper:
                degrees.append(_power_law_sample(rng, lower, upper, degree_exponent))
            else:
                degrees.append(lower)

        if sum(degrees) % 2 != 0:
            degrees[int(rng.integers(n))] += 1

        external = [int(math.floor(k * mu + 0.5)) for k in degrees]
        internal = [k - ext for k, ext in zip(degrees, external)]

        for community, community_members in enumerate(members):
            if sum(internal[k] for k in community_members) % 2 == 0:
                continue

            # an odd total guarantees a member with an internal stub
            candidates = [k for k in community_members if internal[k] > 0]
            k = candidates[int(rng.integers(len(candidates)))]
            internal[k] -= 1
            if mu == 0.0:
                degrees[k] -= 1
            else:
                external[k] += 1
            logger.debug("Fixed internal stub parity of community %d at node %s", community, nodes[k])

        seen: set = set()
        index_edges: List[Tuple[int, int]] = []
        discarded = 0
        for community_members in members:
            stubs = [k for k in community_members for _ in range(internal[k])]
            discarded += _pair_stubs(rng, stubs, seen, index_edges)

        external_stubs = [k for k in range(n) for _ in range(external[k])]
        discarded += _pair_stubs(rng, external_stubs, seen, index_edges)

        edges = [(nodes[u], nodes[v]) for u, v in index_edges]
        ground_truth = {node: community for node, community in zip(nodes, membership)}

        metadata = {
            "generator": "lfr",
            "n": n,
            "mu": mu,
            "min_community": min_community,
            "max_community": max_community,
            "min_degree": min_degree,
            "max_degree": max_degree,
            "degree_exponent": degree_exponent,
            "community_exponent": community_exponent,
            "random_seed": random_seed,
            "community_sizes": tuple(sizes),
            "degrees": MappingProxyType(dict(zip(nodes, degrees))),
            "internal_stubs": MappingProxyType(dict(zip(nodes, internal))),
            "external_stubs": MappingProxyType(dict(zip(nodes, external))),
            "discarded_pairs": discarded,
        }

    if discarded:
        logger.debug("LFR pairing discarded %d self or duplicate pairs", discarded)
    logger.info("Generated LFR network: %d nodes, %d edges, %d communities",
                n, len(edges), len(sizes))
    return _freeze(nodes, ground_truth, edges, metadata)
