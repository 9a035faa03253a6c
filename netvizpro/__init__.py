"""
NetViz Pro path-analysis engine

Weighted, directed-cost path analysis for OSPF-style topologies: shortest
costs, ranked alternative paths, group (country) aggregation, cost
matrices, transit hubs and what-if impact analysis.
"""

__version__ = "1.0.0"

from .config import AnalysisConfig, get_config, set_config
from .errors import (
    NetVizError,
    TopologyError,
    DuplicateNodeID,
    DuplicateLinkID,
    InvalidCost,
    UnknownNodeID,
    UnknownLinkID,
    AnalysisCancelled
)
from .ospf import (
    Topology,
    Node,
    Link,
    LinkStatus,
    PathResult,
    load_topology,
    parse_topology,
    shortest_cost,
    shortest_path,
    spf_trace,
    find_paths
)
from .analysis import (
    CancellationToken,
    find_group_paths,
    aggregate_group_paths,
    analyze_group_pair,
    node_cost_matrix,
    group_cost_matrix,
    analyze_transit,
    traffic_flow
)
from .whatif import (
    LinkOverride,
    apply_overrides,
    reset_overrides,
    diff_impact,
    compare_scenarios,
    ImpactQuery,
    ImpactReport,
    Severity
)

__all__ = [
    'AnalysisConfig',
    'get_config',
    'set_config',
    'NetVizError',
    'TopologyError',
    'DuplicateNodeID',
    'DuplicateLinkID',
    'InvalidCost',
    'UnknownNodeID',
    'UnknownLinkID',
    'AnalysisCancelled',
    'Topology',
    'Node',
    'Link',
    'LinkStatus',
    'PathResult',
    'load_topology',
    'parse_topology',
    'shortest_cost',
    'shortest_path',
    'spf_trace',
    'find_paths',
    'CancellationToken',
    'find_group_paths',
    'aggregate_group_paths',
    'analyze_group_pair',
    'node_cost_matrix',
    'group_cost_matrix',
    'analyze_transit',
    'traffic_flow',
    'LinkOverride',
    'apply_overrides',
    'reset_overrides',
    'diff_impact',
    'compare_scenarios',
    'ImpactQuery',
    'ImpactReport',
    'Severity'
]
