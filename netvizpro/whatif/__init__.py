"""
What-If Analysis Module

Provides:
- Link cost/status overrides on immutable snapshots
- Before/after route impact analysis, per pair and per modified link
- Scenario comparison by risk score
"""

from .overrides import (
    LinkOverride,
    Scenario,
    apply_overrides,
    reset_overrides,
    modified_links,
    fail_link,
    set_cost
)
from .analyzer import (
    Severity,
    RouteChange,
    ImpactQuery,
    ImpactReport,
    LinkImpact,
    classify_change,
    diff_impact,
    compare_scenarios
)

__all__ = [
    'LinkOverride',
    'Scenario',
    'apply_overrides',
    'reset_overrides',
    'modified_links',
    'fail_link',
    'set_cost',
    'Severity',
    'RouteChange',
    'ImpactQuery',
    'ImpactReport',
    'LinkImpact',
    'classify_change',
    'diff_impact',
    'compare_scenarios'
]
