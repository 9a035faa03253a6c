"""
Traffic Flow Analysis - how one group pair's paths load each link

Provides:
- Per-link usage across the ranked paths of a group pair
- Traffic score (share of those paths crossing the link)
- Single-point-of-failure, heavy-load and unused link flags

Paths come from the aggregation layer, so representative sampling
applies. A parallel link that does not carry the directed edge is never
traversed and shows up as unused.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ..config import AnalysisConfig, resolve_config
from ..ospf.spf import PathResult
from ..ospf.topology import Topology
from .aggregation import PairError, aggregate_group_paths, select_representatives
from .cancellation import CancellationToken

logger = logging.getLogger(__name__)


@dataclass
class LinkUsage:
    """
    Usage of one link by a group pair's paths

    Attributes:
        link_id: Link id
        source: Link source node
        target: Link target node
        forward_cost: Cost source -> target
        reverse_cost: Cost target -> source
        path_count: Analysed paths traversing the link, either direction
        traffic_score: path_count as a percentage of all analysed paths
        is_single_point_of_failure: Every analysed path traverses the link
        is_heavy_load: traffic_score at or above the heavy threshold
    """
    link_id: str
    source: str
    target: str
    forward_cost: int
    reverse_cost: int
    path_count: int = 0
    traffic_score: float = 0.0
    is_single_point_of_failure: bool = False
    is_heavy_load: bool = False
    moderate_threshold: float = field(default=20.0, repr=False)

    @property
    def is_unused(self) -> bool:
        return self.path_count == 0

    @property
    def load_level(self) -> str:
        if self.is_unused:
            return "unused"
        if self.is_single_point_of_failure:
            return "critical"
        if self.is_heavy_load:
            return "heavy"
        if self.traffic_score > self.moderate_threshold:
            return "moderate"
        return "light"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "link_id": self.link_id,
            "source": self.source,
            "target": self.target,
            "forward_cost": self.forward_cost,
            "reverse_cost": self.reverse_cost,
            "path_count": self.path_count,
            "traffic_score": round(self.traffic_score, 1),
            "is_unused": self.is_unused,
            "is_single_point_of_failure": self.is_single_point_of_failure,
            "is_heavy_load": self.is_heavy_load,
            "load_level": self.load_level,
        }


@dataclass
class TrafficFlowReport:
    """Link usage for one group pair, busiest links first"""
    source_group: str
    dest_group: str
    links: List[LinkUsage] = field(default_factory=list)
    paths: List[PathResult] = field(default_factory=list)
    sampled: bool = False
    errors: List[PairError] = field(default_factory=list)
    cancelled: bool = False

    @property
    def total_paths(self) -> int:
        return len(self.paths)

    def link(self, link_id: str) -> Optional[LinkUsage]:
        for usage in self.links:
            if usage.link_id == link_id:
                return usage
        return None

    @property
    def used_links(self) -> List[LinkUsage]:
        return [usage for usage in self.links if not usage.is_unused]

    @property
    def unused_links(self) -> List[LinkUsage]:
        return [usage for usage in self.links if usage.is_unused]

    @property
    def single_points_of_failure(self) -> List[LinkUsage]:
        return [usage for usage in self.links if usage.is_single_point_of_failure]

    @property
    def heavy_links(self) -> List[LinkUsage]:
        """Heavily loaded links that are not single points of failure"""
        return [usage for usage in self.links
                if usage.is_heavy_load and not usage.is_single_point_of_failure]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "source_group": self.source_group,
            "dest_group": self.dest_group,
            "total_paths": self.total_paths,
            "links": [usage.to_dict() for usage in self.links],
            "counts": {
                "used": len(self.used_links),
                "unused": len(self.unused_links),
                "single_points_of_failure": len(self.single_points_of_failure),
                "heavy": len(self.heavy_links),
            },
            "sampled": self.sampled,
            "errors": [e.to_dict() for e in self.errors],
            "cancelled": self.cancelled,
        }


def traffic_flow(
    topology: Topology,
    source_group: str,
    dest_group: str,
    per_pair_limit: Optional[int] = None,
    config: Optional[AnalysisConfig] = None,
    cancel_token: Optional[CancellationToken] = None,
    discard_partial: bool = False
) -> TrafficFlowReport:
    """
    Measure how the paths between two groups load each link

    Every ranked path of every representative pair is kept, so a link's
    score is the share of all those paths that traverse it.

    Args:
        topology: Topology snapshot
        source_group: Group paths start in
        dest_group: Group paths end in
        per_pair_limit: Paths per representative pair (config default 5)
        config: Sampling bounds and load thresholds
        cancel_token: Checked before each representative pair
        discard_partial: Raise AnalysisCancelled instead of returning partial results

    Returns:
        TrafficFlowReport with one LinkUsage per link, most used first;
        empty when both groups are the same
    """
    config = resolve_config(config)
    per_pair_limit = config.traffic_per_pair_limit if per_pair_limit is None else per_pair_limit
    report = TrafficFlowReport(source_group=source_group, dest_group=dest_group)

    if source_group == dest_group:
        logger.debug(f"Traffic flow within {source_group} skipped")
        return report

    pair_count = (
        len(select_representatives(topology, source_group, config.group_sample_size))
        * len(select_representatives(topology, dest_group, config.group_sample_size))
    )
    result = aggregate_group_paths(
        topology, source_group, dest_group,
        per_pair_limit=per_pair_limit,
        overall_limit=pair_count * per_pair_limit,
        config=config,
        cancel_token=cancel_token,
        discard_partial=discard_partial,
    )
    report.paths = result.paths
    report.sampled = result.sampled
    report.errors = result.errors
    report.cancelled = result.cancelled

    counts: Dict[str, int] = {}
    for path in report.paths:
        for link_id in set(path.links):
            counts[link_id] = counts.get(link_id, 0) + 1

    total = report.total_paths
    for link in topology.links:
        count = counts.get(link.id, 0)
        score = count / total * 100 if total else 0.0
        report.links.append(LinkUsage(
            link_id=link.id,
            source=link.source,
            target=link.target,
            forward_cost=link.forward_cost,
            reverse_cost=link.reverse_cost,
            path_count=count,
            traffic_score=score,
            is_single_point_of_failure=count > 0 and count == total,
            is_heavy_load=score >= config.heavy_load_percent,
            moderate_threshold=config.moderate_load_percent,
        ))

    # stable sort keeps topology link order among equal counts
    report.links.sort(key=lambda usage: -usage.path_count)

    logger.info(f"Traffic flow {source_group} -> {dest_group}: {total} paths, "
                f"{len(report.used_links)} links used, "
                f"{len(report.single_points_of_failure)} single points of failure")
    return report
