"""
Tests for community detection.

This module tests Louvain, Girvan-Newman and label propagation together with
parameter validation, cancellation and background execution.
"""

import threading
from concurrent.futures import ThreadPoolExecutor

import networkit as nk
import pytest

from netlens.network.construction import build_graph
from netlens.network.communities import (
    GIRVAN_NEWMAN_NODE_LIMIT,
    detect_communities,
    label_propagation,
    louvain,
    louvain_hierarchy,
    girvan_newman,
    edge_betweenness,
    submit_detection,
    get_community_summary
)
from netlens.evaluation.metrics import modularity
from netlens.generators.datasets import load_benchmark
from netlens.common.cancellation import CancellationToken
from netlens.common.exceptions import (
    ConfigurationError,
    ScaleLimitError,
    OperationCancelledError
)

TWO_TRIANGLES = "a b\nb c\nc a\nd e\ne f\nf d\nc d"


class TestDetectCommunities:
    """Test the detection dispatcher and its validation."""

    def setup_method(self):
        """Set up two triangles joined by a bridge."""
        self.graph = build_graph(TWO_TRIANGLES)
        self.expected = {"a": 0, "b": 0, "c": 0, "d": 1, "e": 1, "f": 1}

    def test_all_algorithms_cover_every_node(self):
        """Test each algorithm returns a total, dense partition."""
        for algorithm in ("louvain", "girvan_newman", "label_propagation"):
            partition = detect_communities(self.graph, algorithm)

            assert list(partition) == self.graph.nodes
            assert set(partition.values()) == set(range(len(set(partition.values()))))
            assert partition["a"] == 0

    def test_louvain_and_girvan_newman_split_bridge(self):
        """Test both algorithms cut the bridge."""
        assert detect_communities(self.graph, "louvain") == self.expected
        assert detect_communities(self.graph, "girvan_newman", target_communities=2) == self.expected

    def test_invalid_algorithm(self):
        """Test an unknown algorithm raises ConfigurationError."""
        with pytest.raises(ConfigurationError) as exc_info:
            detect_communities(self.graph, "infomap")

        assert exc_info.value.valid_options == ["louvain", "girvan_newman", "label_propagation"]

    def test_invalid_parameters(self):
        """Test parameter validation."""
        with pytest.raises(ConfigurationError, match="resolution"):
            detect_communities(self.graph, "louvain", resolution=0.0)
        with pytest.raises(ConfigurationError, match="target_communities"):
            detect_communities(self.graph, "girvan_newman", target_communities=0)
        with pytest.raises(ConfigurationError, match="max_iterations"):
            detect_communities(self.graph, "label_propagation", max_iterations=5)

    def test_directed_graph_treated_as_undirected(self):
        """Test directed input gives the same partition as its undirected view."""
        directed = build_graph(TWO_TRIANGLES, directed=True)
        assert detect_communities(directed, "louvain") == self.expected

    def test_cancelled_token(self):
        """Test a tripped token stops detection."""
        token = CancellationToken()
        token.cancel()

        for algorithm in ("louvain", "girvan_newman", "label_propagation"):
            with pytest.raises(OperationCancelledError):
                detect_communities(self.graph, algorithm, cancel_token=token)


class TestLouvain:
    """Test Louvain modularity optimization."""

    def setup_method(self):
        """Load the karate club network."""
        self.karate = load_benchmark("karate").graph

    def test_two_triangles_modularity(self):
        """Test the bridge split reaches the expected modularity."""
        graph = build_graph(TWO_TRIANGLES)
        partition = louvain(graph)

        assert modularity(graph, partition) == pytest.approx(6 / 7 - 0.5)

    def test_karate_quality(self):
        """Test Louvain finds a high-modularity partition of the karate club."""
        partition = louvain(self.karate)

        assert modularity(self.karate, partition) > 0.38
        assert 2 <= len(set(partition.values())) <= 6

    def test_modularity_non_decreasing_across_levels(self):
        """Test every aggregation level keeps or improves modularity."""
        hierarchy = louvain_hierarchy(self.karate)
        singletons = {node: i for i, node in enumerate(self.karate.nodes)}

        scores = [modularity(self.karate, singletons)]
        scores += [modularity(self.karate, partition) for partition in hierarchy]

        for before, after in zip(scores, scores[1:]):
            assert after >= before - 1e-12
        assert hierarchy[-1] == louvain(self.karate)

    def test_deterministic(self):
        """Test repeated runs give identical partitions."""
        first = louvain(self.karate)
        second = louvain(self.karate)

        assert first == second
        assert modularity(self.karate, first) == modularity(self.karate, second)

    def test_resolution(self):
        """Test lower resolution never yields more communities."""
        coarse = louvain(self.karate, resolution=0.5)
        fine = louvain(self.karate, resolution=2.0)

        assert len(set(coarse.values())) <= len(set(fine.values()))

    def test_tiny_resolution_merges_connected_graph(self):
        """Test a vanishing penalty collapses a connected graph into one community."""
        partition = louvain(self.karate, resolution=0.01)
        assert set(partition.values()) == {0}

    def test_edgeless_graph(self):
        """Test a graph without edges keeps singleton communities."""
        graph = build_graph("", nodes=["a", "b", "c"])

        assert louvain(graph) == {"a": 0, "b": 1, "c": 2}
        assert louvain_hierarchy(graph) == [{"a": 0, "b": 1, "c": 2}]

    def test_disconnected_components_separate(self):
        """Test disjoint cliques end up in different communities."""
        graph = build_graph("a b\nb c\nc a\nx y\ny z\nz x")
        partition = louvain(graph)

        assert partition["a"] == partition["b"] == partition["c"]
        assert partition["x"] == partition["y"] == partition["z"]
        assert partition["a"] != partition["x"]


class TestGirvanNewman:
    """Test divisive edge-betweenness clustering."""

    def test_path_removes_middle_edge(self):
        """Test the edge with the highest betweenness goes first."""
        result = girvan_newman(build_graph("a b\nb c\nc d"), target_communities=2)

        assert result.removed_edges == [("b", "c")]
        assert result.partition == {"a": 0, "b": 0, "c": 1, "d": 1}

    def test_tie_break_smallest_edge(self):
        """Test ties are resolved towards the smallest endpoint identifiers."""
        result = girvan_newman(build_graph("a b\nb c\nc d\nd a"), target_communities=2)

        assert result.removed_edges == [("a", "b"), ("c", "d")]
        assert result.partition == {"a": 0, "b": 1, "c": 1, "d": 0}

    def test_target_already_met(self):
        """Test nothing is removed when components already meet the target."""
        graph = build_graph("a b\nb c\nc a\nx y\ny z\nz x")

        for target in (1, 2):
            result = girvan_newman(graph, target_communities=target)
            assert result.removed_edges == []
            assert result.partition == {"a": 0, "b": 0, "c": 0, "x": 1, "y": 1, "z": 1}

    def test_initial_components_match_networkit(self):
        """Test a target of one returns NetworkIt's connected components."""
        graph = build_graph("a b\nc d\nd e\nf g", nodes=["a", "b", "c", "d", "e", "f", "g", "h"])
        result = girvan_newman(graph, target_communities=1)

        nk_graph = graph.to_networkit()
        components = nk.components.ConnectedComponents(nk_graph)
        components.run()

        assert result.removed_edges == []
        assert len(set(result.partition.values())) == components.numberOfComponents()
        assert result.partition == {"a": 0, "b": 0, "c": 1, "d": 1, "e": 1, "f": 2, "g": 2, "h": 3}

    def test_target_beyond_edges(self):
        """Test removal stops once no edges remain."""
        result = girvan_newman(build_graph("a b\nb c"), target_communities=10)

        assert len(result.removed_edges) == 2
        assert result.partition == {"a": 0, "b": 1, "c": 2}

    def test_scale_limit(self):
        """Test graphs above the node limit are rejected before any work."""
        nodes = [str(i) for i in range(GIRVAN_NEWMAN_NODE_LIMIT + 1)]
        graph = build_graph("", nodes=nodes)

        with pytest.raises(ScaleLimitError) as exc_info:
            detect_communities(graph, "girvan_newman")

        assert exc_info.value.node_count == GIRVAN_NEWMAN_NODE_LIMIT + 1
        assert exc_info.value.limit == GIRVAN_NEWMAN_NODE_LIMIT

    def test_self_loops_and_parallel_edges_ignored(self):
        """Test the live copy is a simple graph."""
        result = girvan_newman(build_graph("a a\na b\na b\nb c\nc d"), target_communities=2)
        assert result.removed_edges == [("b", "c")]

    def test_karate_split(self):
        """Test the karate club splits into two groups."""
        graph = load_benchmark("karate").graph
        result = girvan_newman(graph, target_communities=2)

        assert len(set(result.partition.values())) == 2
        assert result.partition["1"] != result.partition["34"]

    def test_empty_graph(self):
        """Test an empty graph yields an empty partition."""
        result = girvan_newman(build_graph(""))
        assert result.partition == {}


class TestEdgeBetweenness:
    """Test edge betweenness accumulation."""

    def test_path_scores(self):
        """Test both directions of every shortest path are counted."""
        graph = build_graph("a b\nb c")
        scores = edge_betweenness(graph.to_networkit(), graph.nodes)

        assert scores == {(0, 1): 4.0, (1, 2): 4.0}

    def test_keys_ordered_by_identifier(self):
        """Test edge keys put the smaller identifier first."""
        graph = build_graph("z a")
        scores = edge_betweenness(graph.to_networkit(), graph.nodes)

        assert list(scores) == [(1, 0)]

    def test_bridged_triangle(self):
        """Test raw scores on a triangle with two pendant edges."""
        graph = build_graph("a b\nb c\nc d\nb d\nd e")
        scores = edge_betweenness(graph.to_networkit(), graph.nodes)

        assert scores == {
            (0, 1): pytest.approx(8.0),
            (1, 2): pytest.approx(4.0),
            (2, 3): pytest.approx(4.0),
            (1, 3): pytest.approx(8.0),
            (3, 4): pytest.approx(8.0)
        }

    def test_tied_maximum_removes_smallest_edge(self):
        """Test Girvan-Newman breaks betweenness ties by identifier order."""
        graph = build_graph("a b\nb c\nc d\nb d\nd e")
        result = girvan_newman(graph, target_communities=2)

        assert result.removed_edges == [("a", "b")]
        assert result.partition == {"a": 0, "b": 1, "c": 1, "d": 1, "e": 1}


class TestLabelPropagation:
    """Test deterministic label propagation."""

    def test_disjoint_triangles(self):
        """Test labels never cross components."""
        graph = build_graph("a b\nb c\nc a\nd e\ne f\nf d")
        assert label_propagation(graph) == {"a": 0, "b": 0, "c": 0, "d": 1, "e": 1, "f": 1}

    def test_isolated_nodes_keep_label(self):
        """Test nodes without neighbours stay in their own community."""
        graph = build_graph("a b", nodes=["a", "b", "c", "d"])
        partition = label_propagation(graph)

        assert partition["a"] == partition["b"]
        assert len({partition["a"], partition["c"], partition["d"]}) == 3

    def test_clique_single_community(self):
        """Test a clique converges to one label."""
        graph = build_graph("a b\na c\na d\nb c\nb d\nc d")
        assert set(label_propagation(graph).values()) == {0}

    def test_deterministic(self):
        """Test repeated runs give identical partitions."""
        graph = load_benchmark("karate").graph
        assert label_propagation(graph) == label_propagation(graph)

    def test_iteration_floor(self):
        """Test the pass cap cannot be set below 20."""
        with pytest.raises(ConfigurationError):
            label_propagation(build_graph("a b"), max_iterations=19)


class TestSubmitDetection:
    """Test background execution and cancellation."""

    def setup_method(self):
        """Set up a small graph."""
        self.graph = build_graph(TWO_TRIANGLES)

    def test_default_executor(self):
        """Test a job on its own worker thread."""
        job = submit_detection(self.graph, "louvain")

        assert job.result(timeout=30) == detect_communities(self.graph, "louvain")
        assert job.done()
        assert not job.cancelled

    def test_given_executor(self):
        """Test a job on a caller-owned executor with parameters."""
        with ThreadPoolExecutor(max_workers=2) as executor:
            job = submit_detection(self.graph, "girvan_newman", executor=executor, target_communities=3)
            partition = job.result(timeout=30)

        assert len(set(partition.values())) >= 3

    def test_invalid_parameters_fail_fast(self):
        """Test parameters are validated before submission."""
        with pytest.raises(ConfigurationError):
            submit_detection(self.graph, "spectral")
        with pytest.raises(ConfigurationError):
            submit_detection(self.graph, "louvain", cancel_token=CancellationToken())

    def test_cancel_before_start(self):
        """Test a queued job that is cancelled raises OperationCancelledError."""
        release = threading.Event()
        with ThreadPoolExecutor(max_workers=1) as executor:
            blocker = executor.submit(release.wait, 30)
            job = submit_detection(self.graph, "louvain", executor=executor)

            job.cancel()
            release.set()
            blocker.result(timeout=30)

            with pytest.raises(OperationCancelledError):
                job.result(timeout=30)

        assert job.cancelled


class TestCommunitySummary:
    """Test partition summaries."""

    def test_summary(self):
        """Test summary statistics."""
        summary = get_community_summary({"a": 0, "b": 0, "c": 0, "d": 1})

        assert summary["num_communities"] == 2
        assert summary["community_sizes"] == [3, 1]
        assert summary["total_nodes"] == 4
        assert summary["size_distribution"]["mean"] == pytest.approx(2.0)

    def test_empty_partition(self):
        """Test the summary of an empty partition."""
        summary = get_community_summary({})

        assert summary["num_communities"] == 0
        assert summary["size_distribution"]["max"] == 0
