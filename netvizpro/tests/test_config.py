"""
Test suite for analysis configuration.
"""

import pytest

from ..config import AnalysisConfig, get_config, resolve_config, set_config


class TestAnalysisConfig:
    """Tests for AnalysisConfig."""

    def test_defaults(self):
        """Test default bounds."""
        config = AnalysisConfig()
        assert (config.min_cost, config.max_cost) == (1, 65535)
        assert config.group_sample_size == 3
        assert config.major_cost_delta == 50

    def test_candidate_cap(self):
        """Test the candidate cap scales with limit and has a floor."""
        config = AnalysisConfig()
        assert config.candidate_cap(1) == 50
        assert config.candidate_cap(10) == 100

    def test_invalid_values(self):
        """Test invalid bounds are rejected."""
        with pytest.raises(ValueError):
            AnalysisConfig(min_cost=0)
        with pytest.raises(ValueError):
            AnalysisConfig(group_sample_size=0)

    def test_from_dict_ignores_unknown(self):
        """Test unknown keys are ignored and values coerced."""
        config = AnalysisConfig.from_dict({"group_sample_size": "5", "colour": "blue"})
        assert config.group_sample_size == 5

    def test_from_env(self):
        """Test NETVIZ_* variables override defaults."""
        config = AnalysisConfig.from_env({
            "NETVIZ_MAX_WORKERS": "8",
            "NETVIZ_MAJOR_COST_RATIO": "0.25",
            "OTHER": "1",
        })
        assert config.max_workers == 8
        assert config.major_cost_ratio == 0.25

    def test_with_overrides(self):
        """Test copies with replaced values."""
        config = AnalysisConfig().with_overrides(per_pair_limit=1)
        assert config.per_pair_limit == 1
        assert config.to_dict()["overall_limit"] == 10


class TestGlobalConfig:
    """Tests for the process-wide default."""

    def test_set_and_resolve(self):
        """Test set_config replaces the default used by resolve_config."""
        custom = AnalysisConfig(max_workers=2)
        set_config(custom)
        assert get_config() is custom
        assert resolve_config(None) is custom
        explicit = AnalysisConfig()
        assert resolve_config(explicit) is explicit
