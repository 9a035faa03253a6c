"""
Test suite for node and group cost matrices.
"""

import math

import pytest

from ..analysis.cancellation import CancellationToken
from ..analysis.matrix import group_cost_matrix, node_cost_matrix
from ..config import AnalysisConfig
from ..errors import AnalysisCancelled, UnknownNodeID
from ..ospf.spf import shortest_cost
from ..whatif.overrides import apply_overrides, fail_link


class TestNodeCostMatrix:
    """Tests for node_cost_matrix."""

    def test_cells_match_shortest_cost(self, country_topology):
        """Test every cell equals shortest_cost for its pair."""
        matrix = node_cost_matrix(country_topology, config=AnalysisConfig(max_workers=2))
        assert matrix.rows == sorted(country_topology.nodes)
        for row in matrix.rows:
            for column in matrix.columns:
                assert matrix.cost(row, column) == shortest_cost(country_topology, row, column)

    def test_subset(self, country_topology):
        """Test explicit sources and targets."""
        matrix = node_cost_matrix(country_topology, sources=["D1"], targets=["F1", "F2"])
        assert matrix.cells == [[20, 21]]

    def test_unreachable_serialised(self, line_topology):
        """Test unreachable cells are inf and serialise as "inf"."""
        failed = apply_overrides(line_topology, fail_link("B-C"))
        matrix = node_cost_matrix(failed, sources=["A"])
        assert math.isinf(matrix.cost("A", "C"))
        assert matrix.to_rows()[0]["costs"] == {"A": 0, "B": 5, "C": "inf"}

    def test_unknown_node(self, line_topology):
        """Test unknown row ids raise."""
        with pytest.raises(UnknownNodeID):
            node_cost_matrix(line_topology, sources=["Z"])

    def test_cancelled(self, country_topology):
        """Test a cancelled token leaves rows uncomputed."""
        token = CancellationToken()
        token.cancel()
        matrix = node_cost_matrix(country_topology, cancel_token=token)
        assert matrix.cancelled
        assert matrix.completed_rows == 0
        assert matrix.cost("D1", "F1") is None
        assert matrix.to_rows()[0]["costs"] is None

    def test_cancelled_discard(self, country_topology):
        """Test discard_partial raises on cancellation."""
        token = CancellationToken()
        token.cancel()
        with pytest.raises(AnalysisCancelled):
            node_cost_matrix(country_topology, cancel_token=token, discard_partial=True)


class TestGroupCostMatrix:
    """Tests for group_cost_matrix."""

    def test_group_costs(self, country_topology):
        """Test the cheapest node pair defines each cell."""
        matrix = group_cost_matrix(country_topology)
        assert matrix.rows == ["CHE", "DEU", "FRA"]
        assert matrix.cost("DEU", "FRA") == 20
        assert matrix.cost("DEU", "CHE") == 10
        assert matrix.cost("FRA", "CHE") == 10
        assert matrix.cost("DEU", "DEU") == 0
        assert not matrix.cancelled

    def test_selected_groups(self, country_topology):
        """Test an explicit group list."""
        matrix = group_cost_matrix(country_topology, groups=["FRA", "DEU"])
        assert matrix.columns == ["FRA", "DEU"]
        assert matrix.cells == [[0, 20], [20, 0]]

    def test_to_dict(self, country_topology):
        """Test serialisation."""
        data = group_cost_matrix(country_topology).to_dict()
        assert data["cancelled"] is False
        assert data["cells"][1]["row"] == "DEU"
