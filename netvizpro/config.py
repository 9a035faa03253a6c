"""
Analysis Configuration

Provides:
- Cost range accepted at ingestion (OSPF metric range by default)
- Path enumeration bounds
- Group sampling and result limits
- Severity thresholds and risk score weights
- Traffic load thresholds
- Worker pool sizing for bulk matrix queries

Every value is a tuning bound rather than a fixed law. Defaults can be
overridden per call, from a dict, or from NETVIZ_* environment variables.
"""

import logging
import os
from dataclasses import dataclass, fields, asdict
from typing import Any, Dict, Mapping, Optional

logger = logging.getLogger(__name__)

OSPF_MIN_METRIC = 1
OSPF_MAX_METRIC = 65535

ENV_PREFIX = "NETVIZ_"


@dataclass(frozen=True)
class AnalysisConfig:
    """
    Tuning bounds for the analysis engine

    Attributes:
        min_cost: Lowest accepted link cost
        max_cost: Highest accepted link cost
        candidate_multiplier: Candidate paths gathered per requested path
        min_candidates: Floor for the candidate cap
        max_expansions: Edge expansions allowed per enumeration call
        group_sample_size: Representative nodes taken from each group
        per_pair_limit: Paths requested per representative pair
        overall_limit: Paths kept after merging a group query
        major_cost_delta: Absolute cost increase that makes a change major
        major_cost_ratio: Relative cost increase that makes a change major
        risk_affected_weight: Risk points for a fully affected pair set
        risk_cost_weight: Risk points for an average delta of cost_scale
        risk_cost_scale: Average delta that saturates risk_cost_weight
        risk_transit_weight: Risk points per added or removed transit group
        risk_broken_weight: Risk points per broken pair
        traffic_per_pair_limit: Paths per representative pair in traffic flow analysis
        heavy_load_percent: Traffic score from which a link counts as heavily loaded
        moderate_load_percent: Traffic score from which a link counts as moderately loaded
        max_workers: Thread pool size for matrix rows
    """
    min_cost: int = OSPF_MIN_METRIC
    max_cost: int = OSPF_MAX_METRIC
    candidate_multiplier: int = 10
    min_candidates: int = 50
    max_expansions: int = 200000
    group_sample_size: int = 3
    per_pair_limit: int = 3
    overall_limit: int = 10
    major_cost_delta: int = 50
    major_cost_ratio: float = 0.5
    risk_affected_weight: float = 40.0
    risk_cost_weight: float = 20.0
    risk_cost_scale: float = 100.0
    risk_transit_weight: float = 10.0
    risk_broken_weight: float = 20.0
    traffic_per_pair_limit: int = 5
    heavy_load_percent: float = 50.0
    moderate_load_percent: float = 20.0
    max_workers: int = 4

    def __post_init__(self):
        if self.min_cost < 1 or self.max_cost < self.min_cost:
            raise ValueError(f"Invalid cost range {self.min_cost}-{self.max_cost}")
        if self.candidate_multiplier < 1 or self.min_candidates < 1:
            raise ValueError("Candidate bounds must be positive")
        if self.max_expansions < 1:
            raise ValueError("max_expansions must be positive")
        if self.group_sample_size < 1:
            raise ValueError("group_sample_size must be positive")
        if self.max_workers < 1:
            raise ValueError("max_workers must be positive")

    def candidate_cap(self, limit: int) -> int:
        """Number of candidate paths to collect before ranking"""
        return max(limit * self.candidate_multiplier, self.min_candidates)

    def with_overrides(self, **changes: Any) -> "AnalysisConfig":
        """Return a copy with some values replaced"""
        values = self.to_dict()
        values.update(changes)
        return AnalysisConfig(**values)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "AnalysisConfig":
        """
        Build a config from a mapping, ignoring unknown keys

        Args:
            data: Mapping of field name -> value

        Returns:
            AnalysisConfig
        """
        known = {f.name: f for f in fields(cls)}
        values = {}
        for key, value in data.items():
            if key not in known:
                logger.debug(f"Ignoring unknown config key: {key}")
                continue
            values[key] = _coerce(known[key].type, value)
        return cls(**values)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "AnalysisConfig":
        """
        Build a config from NETVIZ_* environment variables

        NETVIZ_GROUP_SAMPLE_SIZE=5 sets group_sample_size, and so on.
        """
        environ = os.environ if environ is None else environ
        data = {}
        for f in fields(cls):
            env_key = f"{ENV_PREFIX}{f.name.upper()}"
            if env_key in environ:
                data[f.name] = environ[env_key]
        return cls.from_dict(data)


def _coerce(type_hint: Any, value: Any) -> Any:
    # dataclass field types are strings or types depending on how the module was loaded
    name = type_hint if isinstance(type_hint, str) else getattr(type_hint, "__name__", "")
    if name == "int":
        return int(value)
    if name == "float":
        return float(value)
    return value


_default_config: Optional[AnalysisConfig] = None


def get_config() -> AnalysisConfig:
    """Get or create the process-wide default config (read from the environment once)"""
    global _default_config
    if _default_config is None:
        _default_config = AnalysisConfig.from_env()
    return _default_config


def set_config(config: Optional[AnalysisConfig]) -> None:
    """Replace the process-wide default config; None re-reads the environment on next use"""
    global _default_config
    _default_config = config


def resolve_config(config: Optional[AnalysisConfig]) -> AnalysisConfig:
    """Use the given config or fall back to the default"""
    return config if config is not None else get_config()
