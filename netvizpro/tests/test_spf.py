"""
Test suite for shortest-cost queries and the SPF trace.
"""

import math

import pytest

from ..errors import UnknownNodeID
from ..ospf.spf import (
    INFINITY,
    PathResult,
    shortest_cost,
    shortest_path,
    single_source_costs,
    spf_trace,
    trace_path,
)
from ..whatif.overrides import apply_overrides, fail_link
from .conftest import make_topology


class TestShortestCost:
    """Tests for shortest_cost and shortest_path."""

    def test_line(self, line_topology):
        """Test A-B-C with cost 5 per hop costs 10."""
        assert shortest_cost(line_topology, "A", "C") == 10

    def test_same_node(self, line_topology):
        """Test distance to self is zero."""
        assert shortest_cost(line_topology, "B", "B") == 0
        path = shortest_path(line_topology, "B", "B")
        assert path.nodes == ("B",)
        assert path.hop_count == 0

    def test_unreachable_is_infinity(self, line_topology):
        """Test a failed link makes the far side unreachable."""
        failed = apply_overrides(line_topology, fail_link("B-C"))
        assert shortest_cost(failed, "A", "C") == INFINITY
        assert math.isinf(shortest_cost(failed, "A", "C"))
        assert shortest_path(failed, "A", "C") is None

    def test_asymmetric(self):
        """Test each direction is charged its own cost."""
        topology = make_topology([("A", "g"), ("B", "g")], [("A", "B", 10, 100)])
        assert shortest_cost(topology, "A", "B") == 10
        assert shortest_cost(topology, "B", "A") == 100

    def test_unknown_node(self, line_topology):
        """Test unknown endpoints raise UnknownNodeID."""
        with pytest.raises(UnknownNodeID):
            shortest_cost(line_topology, "A", "Z")
        with pytest.raises(UnknownNodeID):
            shortest_path(line_topology, "Z", "A")

    def test_shortest_path_links(self, diamond_topology):
        """Test the path carries traversed link ids."""
        path = shortest_path(diamond_topology, "A", "D")
        assert path.nodes == ("A", "B", "D")
        assert path.links == ("A-B", "B-D")
        assert path.total_cost == 4

    def test_single_source_costs(self, diamond_topology):
        """Test one-to-all costs."""
        costs = single_source_costs(diamond_topology, "A")
        assert costs == {"A": 0, "B": 2, "D": 4, "C": 5}


class TestPathResult:
    """Tests for PathResult."""

    def test_id_and_dict(self):
        """Test the id derives from the node sequence."""
        path = PathResult(nodes=["A", "B"], total_cost=3, links=["A-B"])
        assert path.id == "A>B"
        assert path.to_dict() == {
            "id": "A>B",
            "nodes": ["A", "B"],
            "links": ["A-B"],
            "totalCost": 3,
            "hopCount": 1,
        }
        assert path.uses_link("A-B")
        assert path.edges() == [("A", "B")]


class TestSPFTrace:
    """Tests for the step-by-step Dijkstra trace."""

    def test_trace_matches_shortest_cost(self, diamond_topology):
        """Test the final trace distance equals shortest_cost."""
        steps = spf_trace(diamond_topology, "A", "D")
        assert steps[0].action == "init"
        assert steps[-1].action == "done"
        assert steps[-1].distances["D"] == shortest_cost(diamond_topology, "A", "D")
        assert trace_path(steps, "A", "D") == ["A", "B", "D"]

    def test_trace_full_run(self, diamond_topology):
        """Test a run without target settles every reachable node."""
        steps = spf_trace(diamond_topology, "A")
        assert sorted(steps[-1].visited) == ["A", "B", "C", "D"]
        assert steps[-1].visited[0] == "A"

    def test_trace_unreachable(self, line_topology):
        """Test tracing towards an unreachable node."""
        failed = apply_overrides(line_topology, fail_link("A-B"))
        steps = spf_trace(failed, "A", "C")
        assert "unreachable" in steps[-1].description
        assert trace_path(steps, "A", "C") == []

    def test_relax_steps_only_on_improvement(self, diamond_topology):
        """Test relax steps always lower a tentative distance."""
        steps = spf_trace(diamond_topology, "A")
        previous = {}
        for step in steps:
            if step.action == "relax":
                assert step.distances[step.neighbor] < previous.get(step.neighbor, INFINITY)
            previous = step.distances
