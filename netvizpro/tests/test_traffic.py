"""
Test suite for traffic flow analysis.

Tests cover:
- Per-link path counts and traffic scores
- Single-point-of-failure, heavy and unused flags
- Same-group, unknown-group and cancelled queries
"""

import pytest

from ..analysis.cancellation import CancellationToken
from ..analysis.traffic import LinkUsage, traffic_flow
from ..errors import AnalysisCancelled
from .conftest import make_topology


class TestTrafficFlow:
    """Tests for traffic_flow."""

    def test_ring_spreads_load(self, country_topology):
        """Test every link of the ring carries half of the DEU -> FRA paths."""
        report = traffic_flow(country_topology, "DEU", "FRA")
        assert report.total_paths == 8
        assert [u.path_count for u in report.links] == [4, 4, 4, 4, 4]
        assert all(u.traffic_score == 50 for u in report.links)
        assert len(report.heavy_links) == 5
        assert report.single_points_of_failure == []
        assert report.unused_links == []

    def test_single_point_of_failure(self, line_topology):
        """Test a link carrying every path is flagged critical."""
        report = traffic_flow(line_topology, "X", "Z")
        assert report.total_paths == 1
        assert [u.link_id for u in report.single_points_of_failure] == ["A-B", "B-C"]
        assert report.heavy_links == []
        assert report.link("A-B").load_level == "critical"

    def test_unused_links(self, diamond_topology):
        """Test links off every analysed path are unused and sorted last."""
        report = traffic_flow(diamond_topology, "G1", "G4", per_pair_limit=1)
        assert [u.link_id for u in report.links] == ["A-B", "B-D", "A-C", "C-D"]
        assert {u.link_id for u in report.unused_links} == {"A-C", "C-D"}
        assert report.link("C-D").load_level == "unused"
        assert report.link("A-B").traffic_score == 100

    def test_spur_link_unused(self):
        """Test a link leading away from both groups is never used."""
        topology = make_topology(
            [("A", "g1"), ("B", "g2"), ("C", "g3")],
            [("A", "B", 1), ("B", "C", 1)],
        )
        report = traffic_flow(topology, "g1", "g2")
        assert report.link("B-C").is_unused
        assert report.to_dict()["counts"] == {
            "used": 1, "unused": 1, "single_points_of_failure": 1, "heavy": 0,
        }

    def test_same_group(self, country_topology):
        """Test a group paired with itself has no traffic report."""
        report = traffic_flow(country_topology, "DEU", "DEU")
        assert report.total_paths == 0
        assert report.links == []

    def test_unknown_group(self, country_topology):
        """Test an unknown group yields no paths and every link unused."""
        report = traffic_flow(country_topology, "DEU", "ESP")
        assert report.total_paths == 0
        assert len(report.unused_links) == len(country_topology.links)

    def test_cancelled(self, country_topology):
        """Test cancellation flags the report or raises when asked."""
        token = CancellationToken()
        token.cancel()
        report = traffic_flow(country_topology, "DEU", "FRA", cancel_token=token)
        assert report.cancelled
        assert report.total_paths == 0
        with pytest.raises(AnalysisCancelled):
            traffic_flow(country_topology, "DEU", "FRA", cancel_token=token, discard_partial=True)


class TestLinkUsage:
    """Tests for LinkUsage load levels."""

    @pytest.mark.parametrize("count,score,level", [
        (0, 0.0, "unused"),
        (1, 10.0, "light"),
        (1, 33.3, "moderate"),
    ])
    def test_load_level(self, count, score, level):
        """Test load levels below the heavy threshold."""
        usage = LinkUsage(link_id="A-B", source="A", target="B", forward_cost=1, reverse_cost=1,
                          path_count=count, traffic_score=score)
        assert usage.load_level == level
        assert usage.to_dict()["traffic_score"] == round(score, 1)
