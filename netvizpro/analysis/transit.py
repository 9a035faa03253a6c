"""
Transit Analysis - which groups carry traffic between other groups

Provides:
- Transit groups of a single path
- Transit hub report over every ordered group pair
- Criticality score and alternative-route check per hub

Paths per group pair come from the aggregation layer, so the same
representative sampling (and the same approximation) applies.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Set, Tuple

from ..config import AnalysisConfig, resolve_config
from ..ospf.spf import PathResult
from ..ospf.topology import Topology
from .aggregation import PairError, aggregate_group_paths
from .cancellation import CancellationToken, finish_cancelled, is_cancelled

logger = logging.getLogger(__name__)


def transit_groups(topology: Topology, path: PathResult) -> List[str]:
    """
    Groups crossed by a path, excluding its source and destination groups

    Returns:
        Group names in traversal order, each listed once
    """
    if path.hop_count < 2:
        return []
    endpoints = {topology.group_of(path.source), topology.group_of(path.target)}
    seen: List[str] = []
    for node_id in path.nodes[1:-1]:
        group = topology.group_of(node_id)
        if group not in endpoints and group not in seen:
            seen.append(group)
    return seen


@dataclass
class TransitHub:
    """
    Group that carries transit traffic

    Attributes:
        group: Group name
        transit_path_count: Analysed paths crossing this group
        served_pairs: (source group, dest group) -> paths of that pair crossing it
        transit_nodes: Node id -> analysed paths through that node
        criticality_score: 0-100, higher means more traffic depends on it
        alternative_available: Every served pair also has a path avoiding it
    """
    group: str
    transit_path_count: int = 0
    served_pairs: Dict[Tuple[str, str], int] = field(default_factory=dict)
    transit_nodes: Dict[str, int] = field(default_factory=dict)
    criticality_score: int = 0
    alternative_available: bool = True

    @property
    def risk_level(self) -> str:
        if self.criticality_score >= 70:
            return "high"
        if self.criticality_score >= 40:
            return "medium"
        return "low"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "group": self.group,
            "transit_path_count": self.transit_path_count,
            "served_pairs": [
                {"source": s, "dest": d, "path_count": count}
                for (s, d), count in sorted(self.served_pairs.items(), key=lambda i: (-i[1], i[0]))
            ],
            "transit_nodes": [
                {"id": node_id, "paths_through": count}
                for node_id, count in sorted(self.transit_nodes.items(), key=lambda i: (-i[1], i[0]))
            ],
            "criticality_score": self.criticality_score,
            "risk_level": self.risk_level,
            "alternative_available": self.alternative_available,
        }


@dataclass
class TransitReport:
    """Transit hubs over a set of group pairs"""
    hubs: List[TransitHub] = field(default_factory=list)
    total_paths: int = 0
    pairs_evaluated: int = 0
    errors: List[PairError] = field(default_factory=list)
    cancelled: bool = False

    def hub(self, group: str) -> Optional[TransitHub]:
        for hub in self.hubs:
            if hub.group == group:
                return hub
        return None

    @property
    def critical_hubs(self) -> List[TransitHub]:
        """Hubs with no alternative route for at least one served pair"""
        return [hub for hub in self.hubs if not hub.alternative_available]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "hubs": [hub.to_dict() for hub in self.hubs],
            "total_paths": self.total_paths,
            "pairs_evaluated": self.pairs_evaluated,
            "errors": [e.to_dict() for e in self.errors],
            "cancelled": self.cancelled,
        }


def analyze_transit(
    topology: Topology,
    groups: Optional[Sequence[str]] = None,
    per_pair_limit: Optional[int] = None,
    config: Optional[AnalysisConfig] = None,
    cancel_token: Optional[CancellationToken] = None,
    discard_partial: bool = False
) -> TransitReport:
    """
    Find the groups that carry traffic between other groups

    Every ordered pair of distinct groups is queried. A path counts once
    per transit group it crosses.

    Criticality = path share * 0.5 + pair coverage * 0.3 + node diversity * 0.2
    (all as percentages, capped at 100), where pair coverage is relative to
    all ordered group pairs and node diversity is the share of the hub's
    nodes that carried transit.

    Args:
        topology: Topology snapshot
        groups: Groups to pair up (all groups when None)
        per_pair_limit: Paths per representative node pair
        config: Sampling and enumeration bounds
        cancel_token: Checked before each group pair
        discard_partial: Raise AnalysisCancelled instead of returning a partial report

    Returns:
        TransitReport with hubs sorted by criticality, highest first
    """
    config = resolve_config(config)
    per_pair_limit = config.per_pair_limit if per_pair_limit is None else per_pair_limit
    groups = topology.groups() if groups is None else list(groups)
    sample = config.group_sample_size
    keep_all = sample * sample * max(per_pair_limit, 0)

    report = TransitReport()
    hubs: Dict[str, TransitHub] = {}
    # (source group, dest group) -> transit groups of each analysed path
    pair_paths: Dict[Tuple[str, str], List[List[str]]] = {}

    for source_group in groups:
        for dest_group in groups:
            if source_group == dest_group:
                continue
            if is_cancelled(cancel_token):
                report.cancelled = True
                break

            result = aggregate_group_paths(
                topology, source_group, dest_group,
                per_pair_limit=per_pair_limit,
                overall_limit=keep_all,
                config=config,
            )
            report.pairs_evaluated += 1
            report.errors.extend(result.errors)

            pair = (source_group, dest_group)
            for path in result.paths:
                crossed = transit_groups(topology, path)
                pair_paths.setdefault(pair, []).append(crossed)
                report.total_paths += 1
                for group in crossed:
                    hub = hubs.setdefault(group, TransitHub(group=group))
                    hub.transit_path_count += 1
                    hub.served_pairs[pair] = hub.served_pairs.get(pair, 0) + 1
                for node_id in path.nodes[1:-1]:
                    group = topology.group_of(node_id)
                    if group in crossed:
                        hubs[group].transit_nodes[node_id] = hubs[group].transit_nodes.get(node_id, 0) + 1
        if report.cancelled:
            break

    if report.cancelled:
        finish_cancelled("Transit analysis", report.pairs_evaluated, discard_partial)

    possible_pairs = len(groups) * (len(groups) - 1)
    for hub in hubs.values():
        hub.criticality_score = _criticality(topology, hub, report.total_paths, possible_pairs)
        hub.alternative_available = all(
            any(hub.group not in crossed for crossed in pair_paths[pair])
            for pair in hub.served_pairs
        )

    report.hubs = sorted(hubs.values(), key=lambda h: (-h.criticality_score, h.group))
    logger.info(f"Transit analysis: {report.pairs_evaluated} group pairs, "
                f"{report.total_paths} paths, {len(report.hubs)} transit groups")
    return report


def _criticality(topology: Topology, hub: TransitHub, total_paths: int, possible_pairs: int) -> int:
    path_share = hub.transit_path_count / total_paths * 100 if total_paths else 0
    pair_coverage = len(hub.served_pairs) / possible_pairs * 100 if possible_pairs else 0
    members: Set[str] = set(topology.nodes_in_group(hub.group))
    diversity = len(hub.transit_nodes) / len(members) * 100 if members else 0
    return min(100, round(path_share * 0.5 + pair_coverage * 0.3 + diversity * 0.2))
