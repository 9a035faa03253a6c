"""
Batch Analysis Module

Provides:
- Group-to-group path aggregation
- Node and group cost matrices
- Transit hub analysis
- Per-link traffic flow for a group pair
- Cancellation tokens for long batches
"""

from .cancellation import CancellationToken
from .aggregation import (
    PairError,
    GroupQueryResult,
    GroupPairSummary,
    select_representatives,
    aggregate_group_paths,
    find_group_paths,
    analyze_group_pair
)
from .matrix import (
    CostMatrix,
    node_cost_matrix,
    group_cost_matrix
)
from .transit import (
    TransitHub,
    TransitReport,
    transit_groups,
    analyze_transit
)
from .traffic import (
    LinkUsage,
    TrafficFlowReport,
    traffic_flow
)

__all__ = [
    'CancellationToken',
    'PairError',
    'GroupQueryResult',
    'GroupPairSummary',
    'select_representatives',
    'aggregate_group_paths',
    'find_group_paths',
    'analyze_group_pair',
    'CostMatrix',
    'node_cost_matrix',
    'group_cost_matrix',
    'TransitHub',
    'TransitReport',
    'transit_groups',
    'analyze_transit',
    'LinkUsage',
    'TrafficFlowReport',
    'traffic_flow'
]
