"""
Tests for link prediction.
"""

import math

import pytest
import polars as pl

from netlens.network.construction import build_graph
from netlens.network.prediction import (
    AVAILABLE_ALGORITHMS,
    LinkPrediction,
    predict_links,
    predictions_to_dataframe,
    get_prediction_summary
)
from netlens.generators.datasets import load_benchmark
from netlens.common.exceptions import ConfigurationError


class TestPredictLinks:
    """Test the four scoring functions on a path a-b-c-d."""

    def setup_method(self):
        """Set up a path graph."""
        self.graph = build_graph("a b\nb c\nc d")

    def test_common_neighbors(self):
        """Test common neighbour counts."""
        assert predict_links(self.graph, "common_neighbors") == [
            LinkPrediction("a", "c", 1.0),
            LinkPrediction("b", "d", 1.0),
        ]

    def test_jaccard_keeps_zero_scores(self):
        """Test Jaccard emits every pair with a non-empty neighbour union."""
        predictions = predict_links(self.graph, "jaccard")

        assert [(p.source, p.target) for p in predictions] == [("a", "c"), ("a", "d"), ("b", "d")]
        assert [p.score for p in predictions] == pytest.approx([0.5, 0.0, 0.5])

    def test_adamic_adar(self):
        """Test Adamic-Adar weights common neighbours by 1/ln(degree)."""
        predictions = predict_links(self.graph, "adamic_adar")

        assert [(p.source, p.target) for p in predictions] == [("a", "c"), ("b", "d")]
        assert predictions[0].score == pytest.approx(1 / math.log(2))

    def test_preferential_attachment(self):
        """Test the degree product of every unconnected pair."""
        predictions = predict_links(self.graph, "preferential_attachment")

        assert predictions == [
            LinkPrediction("a", "c", 2.0),
            LinkPrediction("a", "d", 1.0),
            LinkPrediction("b", "d", 2.0),
        ]

    def test_unknown_algorithm(self):
        """Test an unknown algorithm raises ConfigurationError."""
        with pytest.raises(ConfigurationError):
            predict_links(self.graph, "katz")


class TestPredictionEdgeCases:
    """Test degenerate inputs."""

    def test_fewer_than_two_nodes(self):
        """Test graphs with fewer than two nodes give no predictions."""
        assert predict_links(build_graph(""), "jaccard") == []
        assert predict_links(build_graph("", nodes=["a"]), "jaccard") == []

    def test_isolated_nodes(self):
        """Test isolated nodes only appear in Jaccard output, with score zero."""
        graph = build_graph("a b", nodes=["a", "b", "c"])

        assert predict_links(graph, "preferential_attachment") == []
        assert predict_links(graph, "common_neighbors") == []
        assert predict_links(graph, "jaccard") == [
            LinkPrediction("a", "c", 0.0),
            LinkPrediction("b", "c", 0.0),
        ]

    def test_directed_graph_read_as_undirected(self):
        """Test edge direction is ignored."""
        graph = build_graph("a b\nc b", directed=True)
        assert predict_links(graph, "common_neighbors") == [LinkPrediction("a", "c", 1.0)]

    def test_self_loops(self):
        """Test self-loops raise the degree but never the neighbour sets."""
        graph = build_graph("a a\na b\nb c")

        assert predict_links(graph, "preferential_attachment") == [LinkPrediction("a", "c", 3.0)]
        assert predict_links(graph, "jaccard") == [LinkPrediction("a", "c", 1.0)]

    def test_complete_graph(self):
        """Test a complete graph leaves nothing to predict."""
        graph = build_graph("a b\na c\nb c")

        for algorithm in AVAILABLE_ALGORITHMS:
            assert predict_links(graph, algorithm) == []


class TestPredictionInvariants:
    """Test invariants on a real network."""

    def setup_method(self):
        """Load the karate club network."""
        self.graph = load_benchmark("karate").graph
        self.edges = {frozenset(pair) for pair in self.graph.edge_pairs()}

    def test_never_existing_edges_or_self_pairs(self):
        """Test no algorithm proposes an existing edge or a node with itself."""
        for algorithm in AVAILABLE_ALGORITHMS:
            for prediction in predict_links(self.graph, algorithm):
                assert prediction.source != prediction.target
                assert frozenset((prediction.source, prediction.target)) not in self.edges

    def test_dense_candidate_counts(self):
        """Test Jaccard and preferential attachment cover every unconnected pair."""
        n = self.graph.number_of_nodes()
        candidates = n * (n - 1) // 2 - self.graph.number_of_edges()

        assert len(predict_links(self.graph, "jaccard")) == candidates
        assert len(predict_links(self.graph, "preferential_attachment")) == candidates

    def test_positive_scores(self):
        """Test sparse algorithms emit strictly positive scores."""
        for algorithm in ("common_neighbors", "adamic_adar", "preferential_attachment"):
            assert all(p.score > 0 for p in predict_links(self.graph, algorithm))

    def test_row_major_order(self):
        """Test predictions follow enumeration order of source then target."""
        position = self.graph.id_mapper.original_to_internal
        keys = [(position[p.source], position[p.target]) for p in predict_links(self.graph, "adamic_adar")]

        assert keys == sorted(keys)
        assert all(u < v for u, v in keys)


class TestPredictionHelpers:
    """Test DataFrame conversion and summaries."""

    def setup_method(self):
        """Set up predictions on a path."""
        self.predictions = predict_links(build_graph("a b\nb c\nc d"), "preferential_attachment")

    def test_predictions_to_dataframe(self):
        """Test sorting by score keeps the original order of ties."""
        df = predictions_to_dataframe(self.predictions)

        assert isinstance(df, pl.DataFrame)
        assert df.columns == ["source", "target", "score"]
        assert list(zip(df["source"].to_list(), df["target"].to_list())) == [
            ("a", "c"), ("b", "d"), ("a", "d")
        ]

    def test_top_k(self):
        """Test only the best rows are kept."""
        assert len(predictions_to_dataframe(self.predictions, top_k=1)) == 1

    def test_empty_dataframe(self):
        """Test an empty prediction list."""
        assert len(predictions_to_dataframe([])) == 0

    def test_summary(self):
        """Test count and score range."""
        summary = get_prediction_summary(self.predictions)

        assert summary == {"count": 3, "min": 1.0, "max": 2.0, "mean": pytest.approx(5 / 3)}
        assert get_prediction_summary([])["count"] == 0
