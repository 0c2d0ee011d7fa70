"""
Bundled reference networks.

Small, well-studied networks shipped with the library for examples, tests and
sanity checks of the community detection and centrality routines:

- "karate": Zachary's Karate Club, 34 members and 78 friendships, with the
  two factions the club split into as ground truth
- "lesmis": co-appearances of characters in Les Miserables (no ground truth)
- "santafe": a collaboration network of Santa Fe Institute scientists (no
  ground truth)
"""

from types import MappingProxyType
from typing import List, Dict, Optional, Mapping, NamedTuple

from netlens.common.exceptions import validate_parameter
from netlens.common.logging_config import get_logger
from netlens.network.construction import Graph, build_graph

logger = get_logger(__name__)


class BenchmarkNetwork(NamedTuple):
    """A bundled network with its optional ground-truth partition."""
    name: str
    title: str
    graph: Graph
    ground_truth: Optional[Mapping[str, int]]
    edge_list: str
    node_details: Mapping[str, str]


KARATE_EDGES = """\
1 2
1 3
1 4
1 5
1 6
1 7
1 8
1 9
1 11
1 12
1 13
1 14
1 18
1 20
1 22
1 32
2 3
2 4
2 8
2 14
2 18
2 20
2 22
2 31
3 4
3 8
3 9
3 10
3 14
3 28
3 29
3 33
4 8
4 13
4 14
5 7
5 11
6 7
6 11
6 17
7 17
9 31
9 33
9 34
10 34
14 34
15 33
15 34
16 33
16 34
19 33
19 34
20 34
21 33
21 34
23 33
23 34
24 26
24 28
24 30
24 33
24 34
25 26
25 28
25 32
26 32
27 30
27 34
28 34
29 32
29 34
30 33
30 34
31 33
31 34
32 33
32 34
33 34
"""

# Members who followed the instructor ("Mr. Hi"); everybody else followed the officer
_KARATE_INSTRUCTOR_FACTION = {
    "1", "2", "3", "4", "5", "6", "7", "8", "9", "11", "12", "13", "14", "17", "18", "20", "22"
}

KARATE_GROUND_TRUTH = {
    str(member): 0 if str(member) in _KARATE_INSTRUCTOR_FACTION else 1
    for member in range(1, 35)
}

LES_MISERABLES_EDGES = """\
Napoleon Valjean
Myriel Napoleon
Mlle.Baptistine Valjean
Mme.Magloire Valjean
Mme.Magloire Mlle.Baptistine
CountessdeLo Valjean
Geborand Valjean
Champtercier Valjean
Cravatte Valjean
Count Valjean
OldMan Valjean
Labarre Valjean
Valjean Marguerite
Mme.deR Valjean
Isabeau Valjean
Gervais Valjean
Valjean Tholomyes
Tholomyes Fantine
Fantine Valjean
Mme.Thenardier Fantine
Mme.Thenardier Valjean
Thenardier Mme.Thenardier
Thenardier Valjean
Cosette Mme.Thenardier
Cosette Valjean
Javert Fantine
Javert Valjean
Fauchelevent Valjean
Bamatabois Fantine
Bamatabois Javert
Bamatabois Valjean
Perpetue Fantine
Simplice Fantine
Scaufflaire Valjean
Woman1 Valjean
Judge Valjean
Champmathieu Valjean
Brevet Valjean
Chenildieu Valjean
Cochepaille Valjean
Pontmercy Thenardier
Boulatruelle Thenardier
Eponine Mme.Thenardier
Anzelma Thenardier
Woman2 Valjean
MotherInnocent Valjean
Gribier Fauchelevent
Mlle.Gillenormand Valjean
Mme.Pontmercy Mlle.Gillenormand
Mlle.Vaubois Mlle.Gillenormand
Lt.Gillenormand Mlle.Gillenormand
Marius Mlle.Gillenormand
Marius Pontmercy
BaronessT Marius
Mabeuf Marius
Enjolras Marius
Combeferre Enjolras
Prouvaire Enjolras
Feuilly Enjolras
Courfeyrac Enjolras
Bahorel Enjolras
Bossuet Enjolras
Joly Enjolras
Grantaire Bossuet
Grantaire Enjolras
MotherPlutarch Mabeuf
Gueulemer Thenardier
Babet Thenardier
Claquesous Thenardier
Montparnasse Thenardier
Montparnasse Valjean
Gavroche Thenardier
Gavroche Marius
Gavroche Valjean
Magnon Mme.Pontmercy
Javert Marius
"""

SANTA_FE_EDGES = """\
1 2
1 3
1 4
1 5
1 6
1 7
2 8
2 9
3 10
3 11
4 12
4 13
5 14
6 15
7 16
8 11
8 17
8 18
9 19
9 20
10 21
10 22
10 23
11 1
11 24
12 25
13 26
14 27
14 28
14 29
15 30
16 31
17 19
17 32
18 33
18 34
19 2
19 35
20 36
21 37
22 38
23 39
24 40
24 41
25 42
26 43
27 44
28 45
29 46
30 47
31 48
32 49
32 50
33 51
34 52
35 53
36 54
37 55
38 56
39 57
40 58
41 59
42 60
43 61
44 62
45 63
46 64
47 65
48 66
49 67
50 68
51 69
52 70
53 71
54 72
55 73
56 74
57 75
58 76
59 77
60 78
61 79
62 80
63 81
64 82
65 83
66 84
67 85
68 86
87 105
88 106
89 107
90 108
91 109
92 110
93 111
94 112
95 113
96 114
97 115
98 116
99 117
100 118
"""

_BENCHMARKS = {
    "karate": {
        "title": "Zachary's Karate Club",
        "edge_list": KARATE_EDGES,
        "ground_truth": KARATE_GROUND_TRUTH,
        "node_details": {"1": "Mr. Hi (Instructor)", "34": "John A. (Officer)"},
    },
    "lesmis": {
        "title": "Les Miserables Characters",
        "edge_list": LES_MISERABLES_EDGES,
        "ground_truth": None,
        "node_details": {},
    },
    "santafe": {
        "title": "SFI Collaboration Network",
        "edge_list": SANTA_FE_EDGES,
        "ground_truth": None,
        "node_details": {},
    },
}


def list_benchmarks() -> List[str]:
    """Names accepted by load_benchmark()."""
    return list(_BENCHMARKS)


def load_benchmark(name: str, directed: bool = False) -> BenchmarkNetwork:
    """
    Load a bundled reference network.

    Parameters
    ----------
    name : str
        One of list_benchmarks()
    directed : bool, default False
        Directedness of the returned graph

    Returns
    -------
    BenchmarkNetwork
        The graph together with its edge-list text, its ground truth (None
        when the network has none) and short descriptions of notable nodes

    Raises
    ------
    ConfigurationError
        If the name is unknown

    Examples
    --------
    >>> karate = load_benchmark("karate")
    >>> karate.graph.number_of_nodes(), karate.graph.number_of_edges()
    (34, 78)
    """
    validate_parameter(name, list_benchmarks(), "name", "load_benchmark")
    entry = _BENCHMARKS[name]

    ground_truth: Optional[Dict[str, int]] = entry["ground_truth"]
    graph = build_graph(entry["edge_list"], directed=directed)
    logger.debug("Loaded benchmark %s: %r", name, graph)

    return BenchmarkNetwork(
        name=name,
        title=entry["title"],
        graph=graph,
        ground_truth=MappingProxyType(dict(ground_truth)) if ground_truth is not None else None,
        edge_list=entry["edge_list"],
        node_details=MappingProxyType(dict(entry["node_details"]))
    )
