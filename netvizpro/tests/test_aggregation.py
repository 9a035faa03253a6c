"""
Test suite for group-to-group aggregation.

Tests cover:
- Representative sampling
- Merged ranking and limits
- Unknown groups, per-pair errors and cancellation
- Group pair summaries
"""

import pytest

from ..analysis.aggregation import (
    aggregate_group_paths,
    analyze_group_pair,
    find_group_paths,
    select_representatives,
)
from ..analysis.cancellation import CancellationToken
from ..config import AnalysisConfig
from ..errors import AnalysisCancelled
from .conftest import make_topology


class TestSelectRepresentatives:
    """Tests for representative node selection."""

    def test_small_group_kept_whole(self, country_topology):
        """Test groups within the sample size are used whole."""
        assert select_representatives(country_topology, "DEU", 3) == ["D1", "D2"]

    def test_large_group_sampled(self):
        """Test at most sample_size nodes are kept, first by id."""
        topology = make_topology([(f"N{i}", "big") for i in range(6)], [])
        assert select_representatives(topology, "big", 3) == ["N0", "N1", "N2"]

    def test_unknown_group(self, country_topology):
        """Test an unknown group has no representatives."""
        assert select_representatives(country_topology, "ESP", 3) == []


class TestFindGroupPaths:
    """Tests for find_group_paths and aggregate_group_paths."""

    def test_ranked_merge(self, country_topology):
        """Test merged paths are sorted by cost."""
        paths = find_group_paths(country_topology, "DEU", "FRA")
        costs = [p.total_cost for p in paths]
        assert costs == sorted(costs)
        assert paths[0].nodes == ("D1", "C1", "F1")
        assert paths[0].total_cost == 20
        assert len(paths) == 8

    def test_overall_limit(self, country_topology):
        """Test the merged list is truncated to overall_limit."""
        paths = find_group_paths(country_topology, "DEU", "FRA", per_pair_limit=3, overall_limit=2)
        assert [p.total_cost for p in paths] == [20, 21]

    def test_per_pair_limit(self, country_topology):
        """Test each representative pair contributes at most per_pair_limit paths."""
        result = aggregate_group_paths(country_topology, "DEU", "FRA", per_pair_limit=1)
        assert result.pairs_evaluated == 4
        assert len(result.paths) == 4
        assert not result.sampled

    def test_sampling_flag(self, country_topology):
        """Test sampled is reported when a group is truncated."""
        config = AnalysisConfig(group_sample_size=1)
        result = aggregate_group_paths(country_topology, "DEU", "FRA", config=config)
        assert result.sampled
        assert result.source_nodes == ["D1"]
        assert result.dest_nodes == ["F1"]
        assert result.pairs_evaluated == 1

    def test_unknown_group_is_empty(self, country_topology):
        """Test an unknown group gives an empty result, not an error."""
        result = aggregate_group_paths(country_topology, "ESP", "FRA")
        assert result.paths == []
        assert result.pairs_evaluated == 0
        assert result.errors == []

    def test_same_group_skips_identical_nodes(self, country_topology):
        """Test pairs whose endpoints coincide are skipped."""
        result = aggregate_group_paths(country_topology, "DEU", "DEU")
        assert result.pairs_evaluated == 2
        assert all(p.source != p.target for p in result.paths)

    def test_zero_limit(self, country_topology):
        """Test a zero overall limit returns nothing."""
        assert find_group_paths(country_topology, "DEU", "FRA", overall_limit=0) == []


class TestCancellation:
    """Tests for cancellation of group queries."""

    def test_cancelled_returns_partial(self, country_topology):
        """Test a cancelled token stops the batch and flags the result."""
        token = CancellationToken()
        token.cancel()
        result = aggregate_group_paths(country_topology, "DEU", "FRA", cancel_token=token)
        assert result.cancelled
        assert result.pairs_evaluated == 0

    def test_discard_partial_raises(self, country_topology):
        """Test discard_partial turns cancellation into an error."""
        token = CancellationToken()
        token.cancel()
        with pytest.raises(AnalysisCancelled):
            aggregate_group_paths(country_topology, "DEU", "FRA", cancel_token=token,
                                  discard_partial=True)

    def test_expired_deadline(self, country_topology):
        """Test a zero timeout cancels immediately."""
        token = CancellationToken(timeout=0)
        assert token.is_cancelled
        assert token.remaining == 0.0
        result = aggregate_group_paths(country_topology, "DEU", "FRA", cancel_token=token)
        assert result.cancelled

    def test_token_without_deadline(self):
        """Test a fresh token is not cancelled."""
        token = CancellationToken()
        assert not token.is_cancelled
        assert token.remaining is None


class TestAnalyzeGroupPair:
    """Tests for group pair summaries."""

    def test_summary(self, country_topology):
        """Test statistics and transit groups for a group pair."""
        summary = analyze_group_pair(country_topology, "DEU", "FRA")
        assert summary.min_cost == 20
        assert summary.max_cost == 102
        assert summary.node_count == 5
        assert summary.transit_groups == {"CHE": (4, 1)}
        assert summary.to_dict()["transit_groups"][0]["group"] == "CHE"

    def test_no_paths(self, country_topology):
        """Test an empty summary for an unknown group."""
        summary = analyze_group_pair(country_topology, "DEU", "ESP")
        assert summary.paths == []
        assert summary.min_cost == 0
