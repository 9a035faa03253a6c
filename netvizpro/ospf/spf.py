"""
OSPF SPF (Shortest Path First) Calculation

Dijkstra over the directed adjacency view of a Topology. Each directed
edge carries the cost of traversing the link in that direction, so
asymmetric links are honoured without any special casing.

Unreachable destinations are a normal result (math.inf), not an error.
"""

import heapq
import logging
import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Set, Tuple, Union

import networkx as nx

from .topology import Topology

logger = logging.getLogger(__name__)

INFINITY = math.inf

Cost = Union[int, float]


@dataclass(frozen=True)
class PathResult:
    """
    Simple path between two nodes

    Attributes:
        nodes: Node ids, source first, target last, no repeats
        total_cost: Sum of directional costs in traversal order
        links: Link ids traversed, one per hop
    """
    nodes: Tuple[str, ...]
    total_cost: int
    links: Tuple[str, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "nodes", tuple(self.nodes))
        object.__setattr__(self, "links", tuple(self.links))

    @property
    def id(self) -> str:
        """Stable identifier derived from the node sequence"""
        return ">".join(self.nodes)

    @property
    def hop_count(self) -> int:
        return len(self.nodes) - 1

    @property
    def source(self) -> str:
        return self.nodes[0]

    @property
    def target(self) -> str:
        return self.nodes[-1]

    def uses_link(self, link_id: str) -> bool:
        return link_id in self.links

    def edges(self) -> List[Tuple[str, str]]:
        """Directed (u, v) hops in traversal order"""
        return list(zip(self.nodes, self.nodes[1:]))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "nodes": list(self.nodes),
            "links": list(self.links),
            "totalCost": self.total_cost,
            "hopCount": self.hop_count,
        }


def path_from_nodes(topology: Topology, nodes: Sequence[str]) -> PathResult:
    """
    Build a PathResult for a node sequence, charging each hop its directional cost

    Args:
        topology: Topology providing the edges
        nodes: Node ids along the path

    Returns:
        PathResult with total cost and traversed link ids
    """
    graph = topology.graph
    total = 0
    links = []
    for u, v in zip(nodes, nodes[1:]):
        data = graph.edges[u, v]
        total += data["weight"]
        links.append(data["link_id"])
    return PathResult(nodes=tuple(nodes), total_cost=total, links=tuple(links))


def shortest_cost(topology: Topology, source: str, target: str) -> Cost:
    """
    Minimum cost from source to target

    Args:
        topology: Topology snapshot
        source: Source node id
        target: Target node id

    Returns:
        Integer cost, 0 when source == target, INFINITY when unreachable

    Raises:
        UnknownNodeID: Either endpoint is not in the topology
    """
    topology.require_node(source, context="source")
    topology.require_node(target, context="target")

    if source == target:
        return 0

    try:
        return nx.dijkstra_path_length(topology.graph, source, target, weight="weight")
    except nx.NetworkXNoPath:
        return INFINITY


def shortest_path(topology: Topology, source: str, target: str) -> Optional[PathResult]:
    """
    Minimum-cost path from source to target

    Returns:
        PathResult, or None when target is unreachable

    Raises:
        UnknownNodeID: Either endpoint is not in the topology
    """
    topology.require_node(source, context="source")
    topology.require_node(target, context="target")

    if source == target:
        return PathResult(nodes=(source,), total_cost=0)

    try:
        _, nodes = nx.single_source_dijkstra(topology.graph, source, target, weight="weight")
    except nx.NetworkXNoPath:
        return None
    return path_from_nodes(topology, nodes)


def single_source_costs(topology: Topology, source: str) -> Dict[str, int]:
    """
    Costs from source to every reachable node (one Dijkstra run)

    Unreachable nodes are absent from the result.
    """
    topology.require_node(source, context="source")
    return dict(nx.single_source_dijkstra_path_length(topology.graph, source, weight="weight"))


@dataclass
class SPFStep:
    """
    One step of a traced Dijkstra run

    Attributes:
        step_number: Position in the trace
        action: init, visit, relax, skip or done
        current: Node being processed (None for init/done)
        neighbor: Neighbor relaxed in a relax step
        distances: Tentative distances known after this step
        visited: Settled nodes after this step
        previous: Predecessor map after this step
        description: Human-readable explanation
    """
    step_number: int
    action: str
    current: Optional[str] = None
    neighbor: Optional[str] = None
    distances: Dict[str, int] = field(default_factory=dict)
    visited: List[str] = field(default_factory=list)
    previous: Dict[str, str] = field(default_factory=dict)
    description: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "step_number": self.step_number,
            "action": self.action,
            "current": self.current,
            "neighbor": self.neighbor,
            "distances": self.distances,
            "visited": self.visited,
            "previous": self.previous,
            "description": self.description,
        }


def spf_trace(topology: Topology, source: str, target: Optional[str] = None) -> List[SPFStep]:
    """
    Run Dijkstra step by step, recording every visit and relaxation

    Used by the step-by-step visualiser. Ties in the priority queue are
    broken by node id so the trace is reproducible.

    Args:
        topology: Topology snapshot
        source: Start node
        target: Stop once this node is settled (None runs to completion)

    Returns:
        List of SPFStep, first step is init, last step is done
    """
    topology.require_node(source, context="source")
    if target is not None:
        topology.require_node(target, context="target")

    distances: Dict[str, int] = {source: 0}
    previous: Dict[str, str] = {}
    visited: Set[str] = set()
    order: List[str] = []
    steps: List[SPFStep] = []

    def record(action: str, description: str, current: Optional[str] = None,
               neighbor: Optional[str] = None):
        steps.append(SPFStep(
            step_number=len(steps),
            action=action,
            current=current,
            neighbor=neighbor,
            distances=dict(distances),
            visited=list(order),
            previous=dict(previous),
            description=description,
        ))

    record("init", f"Initialize: distance to {source} is 0, all others infinity")

    queue: List[Tuple[int, str]] = [(0, source)]
    while queue:
        dist, node_id = heapq.heappop(queue)

        if node_id in visited:
            record("skip", f"Skip {node_id}: already settled", current=node_id)
            continue
        if dist > distances.get(node_id, INFINITY):
            record("skip", f"Skip stale queue entry for {node_id} ({dist})", current=node_id)
            continue

        visited.add(node_id)
        order.append(node_id)
        record("visit", f"Processing node {node_id} with distance {dist}. Marking as visited.",
               current=node_id)

        if node_id == target:
            break

        for entry in topology.adjacency[node_id]:
            if entry.neighbor in visited:
                continue
            candidate = dist + entry.cost
            if candidate < distances.get(entry.neighbor, INFINITY):
                old = distances.get(entry.neighbor, INFINITY)
                distances[entry.neighbor] = candidate
                previous[entry.neighbor] = node_id
                heapq.heappush(queue, (candidate, entry.neighbor))
                record(
                    "relax",
                    f"Update {entry.neighbor}: {old} -> {candidate} via {node_id} (+{entry.cost})",
                    current=node_id,
                    neighbor=entry.neighbor,
                )

    if target is None:
        record("done", f"Complete: {len(visited)} nodes settled")
    elif target in visited:
        record("done", f"Reached {target} with cost {distances[target]}")
    else:
        record("done", f"{target} is unreachable from {source}")

    logger.debug(f"SPF trace {source} -> {target}: {len(steps)} steps")
    return steps


def trace_path(steps: List[SPFStep], source: str, target: str) -> List[str]:
    """
    Rebuild the shortest path from the last step of a trace

    Returns:
        Node ids source..target, or [] when target was not reached
    """
    if not steps:
        return []
    last = steps[-1]
    if target not in last.distances:
        return []
    path = [target]
    while path[-1] != source:
        prev = last.previous.get(path[-1])
        if prev is None:
            return []
        path.append(prev)
    path.reverse()
    return path
