"""
OSPF Topology and Path Module

Provides:
- Immutable topology snapshots with directional link costs
- Topology ingestion from JSON/YAML documents
- Shortest-cost queries and step-by-step SPF traces
- Bounded k-path enumeration
"""

from .topology import (
    Topology,
    Node,
    Link,
    LinkStatus,
    AdjacencyEntry
)
from .schema import (
    TopologyDocument,
    NodeRecord,
    LinkRecord,
    parse_topology,
    load_topology
)
from .spf import (
    INFINITY,
    PathResult,
    SPFStep,
    shortest_cost,
    shortest_path,
    single_source_costs,
    spf_trace,
    trace_path
)
from .paths import (
    PathEnumerator,
    find_paths
)

__all__ = [
    'Topology',
    'Node',
    'Link',
    'LinkStatus',
    'AdjacencyEntry',
    'TopologyDocument',
    'NodeRecord',
    'LinkRecord',
    'parse_topology',
    'load_topology',
    'INFINITY',
    'PathResult',
    'SPFStep',
    'shortest_cost',
    'shortest_path',
    'single_source_costs',
    'spf_trace',
    'trace_path',
    'PathEnumerator',
    'find_paths'
]
