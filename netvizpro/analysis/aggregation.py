"""
Group-to-group path aggregation

Extends point-to-point path search to group pairs (e.g. country A to
country B) without evaluating the full cross product of node pairs.

Approximation: each group is represented by at most
`group_sample_size` nodes (the first ones by node id). When a group is
larger than that, the result is NOT guaranteed to contain the true
group-wide optimum. This trades exactness for interactive latency;
GroupQueryResult.sampled tells callers when it happened.
"""

import logging
from dataclasses import dataclass, field
from statistics import mean
from typing import Any, Dict, List, Optional, Set, Tuple

from ..config import AnalysisConfig, resolve_config
from ..errors import UnknownNodeID
from ..ospf.paths import PathEnumerator
from ..ospf.spf import PathResult
from ..ospf.topology import Topology
from .cancellation import CancellationToken, finish_cancelled, is_cancelled

logger = logging.getLogger(__name__)


@dataclass
class PairError:
    """Query error recorded for one pair of a batch"""
    source: str
    destination: str
    message: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "source": self.source,
            "destination": self.destination,
            "message": self.message,
        }


@dataclass
class GroupQueryResult:
    """
    Result of a group-to-group path query

    Attributes:
        source_group: Group paths start in
        dest_group: Group paths end in
        paths: Merged paths, ascending by cost, at most overall_limit
        source_nodes: Representative source nodes used
        dest_nodes: Representative destination nodes used
        pairs_evaluated: Representative pairs actually searched
        sampled: True when either group was larger than the sample
        cancelled: True when the batch stopped early
        errors: Per-pair errors
    """
    source_group: str
    dest_group: str
    paths: List[PathResult] = field(default_factory=list)
    source_nodes: List[str] = field(default_factory=list)
    dest_nodes: List[str] = field(default_factory=list)
    pairs_evaluated: int = 0
    sampled: bool = False
    cancelled: bool = False
    errors: List[PairError] = field(default_factory=list)

    @property
    def best(self) -> Optional[PathResult]:
        return self.paths[0] if self.paths else None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "source_group": self.source_group,
            "dest_group": self.dest_group,
            "paths": [p.to_dict() for p in self.paths],
            "source_nodes": self.source_nodes,
            "dest_nodes": self.dest_nodes,
            "pairs_evaluated": self.pairs_evaluated,
            "sampled": self.sampled,
            "cancelled": self.cancelled,
            "errors": [e.to_dict() for e in self.errors],
        }


def select_representatives(topology: Topology, group: str, sample_size: int) -> List[str]:
    """
    Pick a bounded, deterministic subset of a group's nodes

    Args:
        topology: Topology snapshot
        group: Group name
        sample_size: Maximum nodes to keep

    Returns:
        The first sample_size node ids of the group by id (whole group if smaller)
    """
    return list(topology.nodes_in_group(group)[:sample_size])


def aggregate_group_paths(
    topology: Topology,
    source_group: str,
    dest_group: str,
    per_pair_limit: Optional[int] = None,
    overall_limit: Optional[int] = None,
    config: Optional[AnalysisConfig] = None,
    cancel_token: Optional[CancellationToken] = None,
    discard_partial: bool = False
) -> GroupQueryResult:
    """
    Group-to-group path search over representative node pairs

    Args:
        topology: Topology snapshot
        source_group: Group paths start in
        dest_group: Group paths end in
        per_pair_limit: Paths requested per representative pair
        overall_limit: Paths kept after merging
        config: Sampling and enumeration bounds
        cancel_token: Checked before each representative pair
        discard_partial: Raise AnalysisCancelled instead of returning partial results

    Returns:
        GroupQueryResult (an approximation when groups were sampled)
    """
    config = resolve_config(config)
    per_pair_limit = config.per_pair_limit if per_pair_limit is None else per_pair_limit
    overall_limit = config.overall_limit if overall_limit is None else overall_limit

    source_nodes = select_representatives(topology, source_group, config.group_sample_size)
    dest_nodes = select_representatives(topology, dest_group, config.group_sample_size)
    result = GroupQueryResult(
        source_group=source_group,
        dest_group=dest_group,
        source_nodes=source_nodes,
        dest_nodes=dest_nodes,
        sampled=(
            len(topology.nodes_in_group(source_group)) > len(source_nodes)
            or len(topology.nodes_in_group(dest_group)) > len(dest_nodes)
        ),
    )

    if overall_limit <= 0 or per_pair_limit <= 0:
        return result

    enumerator = PathEnumerator(topology, config)
    merged: List[PathResult] = []

    for source in source_nodes:
        for dest in dest_nodes:
            if is_cancelled(cancel_token):
                result.cancelled = True
                break
            if source == dest:
                continue
            try:
                merged.extend(enumerator.find(source, dest, per_pair_limit))
            except UnknownNodeID as e:
                logger.warning(f"Skipping pair {source} -> {dest}: {e}")
                result.errors.append(PairError(source, dest, str(e)))
            result.pairs_evaluated += 1
        if result.cancelled:
            break

    if result.cancelled:
        finish_cancelled(f"Group query {source_group} -> {dest_group}",
                         result.pairs_evaluated, discard_partial)

    # stable sort keeps per-pair ranking for equal costs
    merged.sort(key=lambda p: p.total_cost)
    result.paths = merged[:overall_limit]

    logger.debug(f"Group query {source_group} -> {dest_group}: {result.pairs_evaluated} pairs, "
                 f"{len(merged)} paths, kept {len(result.paths)}")
    return result


def find_group_paths(
    topology: Topology,
    source_group: str,
    dest_group: str,
    per_pair_limit: Optional[int] = None,
    overall_limit: Optional[int] = None,
    config: Optional[AnalysisConfig] = None,
    cancel_token: Optional[CancellationToken] = None
) -> List[PathResult]:
    """
    Ranked paths from one group to another

    Only representative nodes of each group are searched (see module
    docstring), so this is an approximation for large groups.
    """
    return aggregate_group_paths(
        topology, source_group, dest_group,
        per_pair_limit=per_pair_limit,
        overall_limit=overall_limit,
        config=config,
        cancel_token=cancel_token,
    ).paths


@dataclass
class GroupPairSummary:
    """
    Statistics for the paths between two groups

    Attributes:
        source_group: Source group
        dest_group: Destination group
        paths: Paths found (ascending cost)
        node_count: Distinct nodes used by the paths
        link_count: Distinct directed hops used by the paths
        min_cost: Cheapest path cost (0 when no path)
        avg_cost: Mean path cost (0 when no path)
        max_cost: Most expensive path cost (0 when no path)
        transit_groups: group -> (paths through it, distinct transit nodes)
        sampled: Representative sampling was applied
    """
    source_group: str
    dest_group: str
    paths: List[PathResult] = field(default_factory=list)
    node_count: int = 0
    link_count: int = 0
    min_cost: float = 0
    avg_cost: float = 0
    max_cost: float = 0
    transit_groups: Dict[str, Tuple[int, int]] = field(default_factory=dict)
    sampled: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "source_group": self.source_group,
            "dest_group": self.dest_group,
            "paths": [p.to_dict() for p in self.paths],
            "node_count": self.node_count,
            "link_count": self.link_count,
            "min_cost": self.min_cost,
            "avg_cost": self.avg_cost,
            "max_cost": self.max_cost,
            "transit_groups": [
                {"group": g, "path_count": count, "node_count": nodes}
                for g, (count, nodes) in self.transit_groups.items()
            ],
            "sampled": self.sampled,
        }


def analyze_group_pair(
    topology: Topology,
    source_group: str,
    dest_group: str,
    per_pair_limit: Optional[int] = None,
    config: Optional[AnalysisConfig] = None
) -> GroupPairSummary:
    """
    Summarise the paths between two groups

    Every representative pair contributes up to per_pair_limit paths; no
    overall truncation is applied.
    """
    config = resolve_config(config)
    per_pair_limit = config.per_pair_limit if per_pair_limit is None else per_pair_limit
    sample = config.group_sample_size
    unbounded = sample * sample * max(per_pair_limit, 0)

    query = aggregate_group_paths(
        topology, source_group, dest_group,
        per_pair_limit=per_pair_limit,
        overall_limit=unbounded,
        config=config,
    )
    summary = GroupPairSummary(
        source_group=source_group,
        dest_group=dest_group,
        paths=query.paths,
        sampled=query.sampled,
    )
    if not query.paths:
        return summary

    costs = [p.total_cost for p in query.paths]
    summary.min_cost = min(costs)
    summary.max_cost = max(costs)
    summary.avg_cost = mean(costs)

    used_nodes: Set[str] = set()
    used_hops: Set[Tuple[str, str]] = set()
    transit_paths: Dict[str, int] = {}
    transit_nodes: Dict[str, Set[str]] = {}
    for path in query.paths:
        used_nodes.update(path.nodes)
        used_hops.update(path.edges())
        groups_in_path = set()
        for node_id in path.nodes[1:-1]:
            group = topology.group_of(node_id)
            if group in (source_group, dest_group):
                continue
            groups_in_path.add(group)
            transit_nodes.setdefault(group, set()).add(node_id)
        for group in groups_in_path:
            transit_paths[group] = transit_paths.get(group, 0) + 1

    summary.node_count = len(used_nodes)
    summary.link_count = len(used_hops)
    summary.transit_groups = {
        group: (transit_paths[group], len(transit_nodes[group]))
        for group in sorted(transit_paths, key=lambda g: (-transit_paths[g], g))
    }
    return summary
