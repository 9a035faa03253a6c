"""
Impact Analyzer - before/after comparison of two topology snapshots

Provides:
- Best-route diff per group pair or node pair
- Severity classification (broken, major, minor, improved)
- Transit group changes
- Heuristic risk score for ranking scenarios
- Scenario comparison
"""

import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Set, Tuple, Union

from ..analysis.aggregation import PairError, aggregate_group_paths
from ..analysis.cancellation import CancellationToken, finish_cancelled, is_cancelled
from ..analysis.transit import transit_groups
from ..config import AnalysisConfig, resolve_config
from ..errors import UnknownNodeID
from ..ospf.paths import PathEnumerator
from ..ospf.spf import INFINITY, PathResult
from ..ospf.topology import Link, Topology
from .overrides import Overrides, Scenario, apply_overrides

logger = logging.getLogger(__name__)


class Severity(Enum):
    """How a pair's best route changed"""
    BROKEN = "broken"
    MAJOR = "major"
    MINOR = "minor"
    IMPROVED = "improved"


SEVERITY_ORDER = {
    Severity.BROKEN: 0,
    Severity.MAJOR: 1,
    Severity.MINOR: 2,
    Severity.IMPROVED: 3,
}


def _serial_cost(cost: float) -> Union[int, float]:
    return -1 if math.isinf(cost) else cost


@dataclass
class RouteChange:
    """
    Best route of one pair before and after a change

    Attributes:
        source: Source group or node id
        destination: Destination group or node id
        before_path: Node ids of the best path before ([] if none)
        after_path: Node ids of the best path after ([] if none)
        before_cost: Cost before (math.inf when unreachable)
        after_cost: Cost after (math.inf when unreachable)
        cost_delta: after - before, an unreachable side counting as 0
        severity: Classification
    """
    source: str
    destination: str
    before_path: List[str]
    after_path: List[str]
    before_cost: float
    after_cost: float
    cost_delta: float
    severity: Severity

    @property
    def path_changed(self) -> bool:
        return self.before_path != self.after_path

    def to_dict(self) -> Dict[str, Any]:
        return {
            "source": self.source,
            "destination": self.destination,
            "before_path": self.before_path,
            "after_path": self.after_path,
            "before_cost": _serial_cost(self.before_cost),
            "after_cost": _serial_cost(self.after_cost),
            "cost_delta": self.cost_delta,
            "severity": self.severity.value,
        }


@dataclass
class LinkImpact:
    """
    Effect of one modified link

    Attributes:
        link_id: Modified link
        local_nodes: The link's two endpoints
        downstream_nodes: Nodes on changed best paths that traversed the link
        affected_pairs: Changed pairs whose best path traversed the link, before or after
    """
    link_id: str
    local_nodes: List[str]
    downstream_nodes: List[str] = field(default_factory=list)
    affected_pairs: List[Tuple[str, str]] = field(default_factory=list)

    @property
    def affected_count(self) -> int:
        return len(self.affected_pairs)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "link_id": self.link_id,
            "local_nodes": self.local_nodes,
            "downstream_nodes": self.downstream_nodes,
            "affected_pairs": [{"source": s, "destination": d} for s, d in self.affected_pairs],
            "affected_count": self.affected_count,
        }


@dataclass
class ImpactQuery:
    """
    Pairs to compare

    Attributes:
        group_pairs: (source group, dest group) pairs
        node_pairs: (source node, target node) pairs

    When both are None every ordered pair of distinct groups of the base
    topology is compared.
    """
    group_pairs: Optional[Sequence[Tuple[str, str]]] = None
    node_pairs: Optional[Sequence[Tuple[str, str]]] = None

    def resolve_group_pairs(self, topology: Topology) -> List[Tuple[str, str]]:
        if self.group_pairs is not None:
            return [tuple(pair) for pair in self.group_pairs]
        if self.node_pairs is not None:
            return []
        groups = topology.groups()
        return [(s, d) for s in groups for d in groups if s != d]

    def resolve_node_pairs(self) -> List[Tuple[str, str]]:
        return [tuple(pair) for pair in (self.node_pairs or [])]


@dataclass
class ImpactReport:
    """
    Impact of going from one snapshot to another

    Attributes:
        changes: Changed pairs, most severe first
        pairs_evaluated: Pairs compared
        pairs_affected: Pairs whose best cost or path changed
        avg_cost_change: Mean cost_delta over the changed pairs
        transit_added: Groups carrying transit only after the change
        transit_removed: Groups carrying transit only before the change
        risk_score: 0-100 heuristic, only meaningful for ranking scenarios
        errors: Per-pair query errors
        cancelled: True when the batch stopped early
        link_impacts: One entry per link that differs between the snapshots
        scenario: Name of the scenario that produced the report
    """
    changes: List[RouteChange] = field(default_factory=list)
    pairs_evaluated: int = 0
    pairs_affected: int = 0
    avg_cost_change: float = 0.0
    transit_added: List[str] = field(default_factory=list)
    transit_removed: List[str] = field(default_factory=list)
    risk_score: int = 0
    link_impacts: List[LinkImpact] = field(default_factory=list)
    errors: List[PairError] = field(default_factory=list)
    cancelled: bool = False
    scenario: str = ""

    def count(self, severity: Severity) -> int:
        return sum(1 for change in self.changes if change.severity == severity)

    @property
    def broken_count(self) -> int:
        return self.count(Severity.BROKEN)

    @property
    def major_count(self) -> int:
        return self.count(Severity.MAJOR)

    @property
    def minor_count(self) -> int:
        return self.count(Severity.MINOR)

    @property
    def improved_count(self) -> int:
        return self.count(Severity.IMPROVED)

    @property
    def affected_percentage(self) -> float:
        if not self.pairs_evaluated:
            return 0.0
        return self.pairs_affected / self.pairs_evaluated * 100

    def to_dict(self) -> Dict[str, Any]:
        return {
            "scenario": self.scenario,
            "changes": [c.to_dict() for c in self.changes],
            "pairs_evaluated": self.pairs_evaluated,
            "pairs_affected": self.pairs_affected,
            "affected_percentage": self.affected_percentage,
            "avg_cost_change": self.avg_cost_change,
            "transit_added": self.transit_added,
            "transit_removed": self.transit_removed,
            "risk_score": self.risk_score,
            "counts": {
                "broken": self.broken_count,
                "major": self.major_count,
                "minor": self.minor_count,
                "improved": self.improved_count,
            },
            "link_impacts": [li.to_dict() for li in self.link_impacts],
            "errors": [e.to_dict() for e in self.errors],
            "cancelled": self.cancelled,
        }


def classify_change(before_cost: float, after_cost: float, config: AnalysisConfig) -> Severity:
    """
    Classify a change of best cost

    Args:
        before_cost: Best cost before (math.inf when unreachable)
        after_cost: Best cost after (math.inf when unreachable)
        config: Major-change thresholds

    Returns:
        Severity (callers only classify pairs that actually changed)
    """
    if math.isinf(after_cost) and not math.isinf(before_cost):
        return Severity.BROKEN
    if after_cost < before_cost:
        return Severity.IMPROVED
    delta = after_cost - before_cost
    if delta > config.major_cost_delta:
        return Severity.MAJOR
    if before_cost > 0 and delta / before_cost > config.major_cost_ratio:
        return Severity.MAJOR
    return Severity.MINOR


def cost_delta(before_cost: float, after_cost: float) -> float:
    before = 0 if math.isinf(before_cost) else before_cost
    after = 0 if math.isinf(after_cost) else after_cost
    return after - before


def risk_score(report: ImpactReport, config: AnalysisConfig) -> int:
    """
    Heuristic 0-100 risk of a change set

    affected share, average absolute cost change (saturating at
    risk_cost_scale), transit group churn and broken pairs each add
    weighted points.
    """
    affected_ratio = report.pairs_affected / report.pairs_evaluated if report.pairs_evaluated else 0
    cost_factor = min(abs(report.avg_cost_change) / config.risk_cost_scale, 1)
    churn = len(report.transit_added) + len(report.transit_removed)
    score = (
        affected_ratio * config.risk_affected_weight
        + cost_factor * config.risk_cost_weight
        + churn * config.risk_transit_weight
        + report.broken_count * config.risk_broken_weight
    )
    return min(100, round(score))


class _BestRoutes:
    """Best path lookup for one snapshot"""

    def __init__(self, topology: Topology, config: AnalysisConfig):
        self.topology = topology
        self.config = config
        self.enumerator = PathEnumerator(topology, config)

    def for_groups(self, source_group: str, dest_group: str) -> Tuple[Optional[PathResult], List[PairError]]:
        result = aggregate_group_paths(
            self.topology, source_group, dest_group,
            per_pair_limit=1, overall_limit=1, config=self.config,
        )
        return result.best, result.errors

    def for_nodes(self, source: str, target: str) -> Optional[PathResult]:
        paths = self.enumerator.find(source, target, 1)
        return paths[0] if paths else None


def diff_impact(
    base: Topology,
    overridden: Topology,
    query: Optional[ImpactQuery] = None,
    config: Optional[AnalysisConfig] = None,
    cancel_token: Optional[CancellationToken] = None,
    discard_partial: bool = False
) -> ImpactReport:
    """
    Compare best routes between two snapshots

    Group pairs go through the aggregation layer (representative sampling
    applies); node pairs use the path enumerator directly.

    Args:
        base: Snapshot before the change
        overridden: Snapshot after the change
        query: Pairs to compare (all ordered group pairs by default)
        config: Thresholds, weights and sampling bounds
        cancel_token: Checked before each pair
        discard_partial: Raise AnalysisCancelled instead of returning a partial report

    Returns:
        ImpactReport
    """
    config = resolve_config(config)
    query = query or ImpactQuery()
    before = _BestRoutes(base, config)
    after = _BestRoutes(overridden, config)

    report = ImpactReport()
    transit_before: Set[str] = set()
    transit_after: Set[str] = set()
    link_impacts = {
        link_id: LinkImpact(link_id=link_id, local_nodes=[link.source, link.target])
        for link_id, link in _changed_links(base, overridden)
    }
    downstream: Dict[str, Set[str]] = {link_id: set() for link_id in link_impacts}

    pairs = [("group", pair) for pair in query.resolve_group_pairs(base)]
    pairs += [("node", pair) for pair in query.resolve_node_pairs()]

    for kind, (source, dest) in pairs:
        if is_cancelled(cancel_token):
            report.cancelled = True
            break

        if kind == "group":
            before_path, before_errors = before.for_groups(source, dest)
            after_path, after_errors = after.for_groups(source, dest)
            report.errors.extend(before_errors)
            report.errors.extend(after_errors)
        else:
            try:
                before_path = before.for_nodes(source, dest)
                after_path = after.for_nodes(source, dest)
            except UnknownNodeID as e:
                logger.warning(f"Skipping pair {source} -> {dest}: {e}")
                report.errors.append(PairError(source, dest, str(e)))
                continue
        report.pairs_evaluated += 1

        if before_path is not None:
            transit_before.update(transit_groups(base, before_path))
        if after_path is not None:
            transit_after.update(transit_groups(overridden, after_path))

        change = _compare(source, dest, before_path, after_path, config)
        if change is not None:
            report.changes.append(change)
            logger.debug(f"{source} -> {dest}: {change.severity.value} ({change.cost_delta:+})")
            for path in (before_path, after_path):
                if path is None:
                    continue
                for link_id in set(path.links) & link_impacts.keys():
                    downstream[link_id].update(path.nodes)
                    if (source, dest) not in link_impacts[link_id].affected_pairs:
                        link_impacts[link_id].affected_pairs.append((source, dest))

    for link_id, impact in link_impacts.items():
        impact.downstream_nodes = sorted(downstream[link_id])
    report.link_impacts = list(link_impacts.values())

    if report.cancelled:
        finish_cancelled("Impact diff", report.pairs_evaluated, discard_partial)

    report.changes.sort(key=lambda c: (SEVERITY_ORDER[c.severity], -abs(c.cost_delta)))
    report.pairs_affected = len(report.changes)
    if report.changes:
        report.avg_cost_change = sum(c.cost_delta for c in report.changes) / len(report.changes)
    report.transit_added = sorted(transit_after - transit_before)
    report.transit_removed = sorted(transit_before - transit_after)
    report.risk_score = risk_score(report, config)

    logger.info(f"Impact diff: {report.pairs_affected}/{report.pairs_evaluated} pairs affected, "
                f"risk {report.risk_score}")
    return report


def _changed_links(base: Topology, overridden: Topology) -> List[Tuple[str, Link]]:
    changed = []
    for link in overridden.links:
        if not base.has_link(link.id):
            continue
        old = base.link(link.id)
        if (old.forward_cost, old.reverse_cost, old.status) != (link.forward_cost, link.reverse_cost, link.status):
            changed.append((link.id, link))
    return changed


def _compare(
    source: str,
    dest: str,
    before_path: Optional[PathResult],
    after_path: Optional[PathResult],
    config: AnalysisConfig
) -> Optional[RouteChange]:
    before_cost = before_path.total_cost if before_path is not None else INFINITY
    after_cost = after_path.total_cost if after_path is not None else INFINITY
    if math.isinf(before_cost) and math.isinf(after_cost):
        return None

    before_nodes = list(before_path.nodes) if before_path is not None else []
    after_nodes = list(after_path.nodes) if after_path is not None else []
    if before_cost == after_cost and before_nodes == after_nodes:
        return None

    return RouteChange(
        source=source,
        destination=dest,
        before_path=before_nodes,
        after_path=after_nodes,
        before_cost=before_cost,
        after_cost=after_cost,
        cost_delta=cost_delta(before_cost, after_cost),
        severity=classify_change(before_cost, after_cost, config),
    )


def compare_scenarios(
    base: Topology,
    scenarios: Union[Mapping[str, Overrides], Iterable[Scenario]],
    query: Optional[ImpactQuery] = None,
    config: Optional[AnalysisConfig] = None,
    cancel_token: Optional[CancellationToken] = None,
    discard_partial: bool = False
) -> List[ImpactReport]:
    """
    Run diff_impact for several override sets against the same base

    Once the token fires no further scenario is started. A scenario cut
    short keeps its partial report, ranked after every complete one.

    Args:
        base: Snapshot all scenarios start from
        scenarios: name -> overrides, or Scenario objects
        query: Pairs to compare
        config: Thresholds, weights and sampling bounds
        cancel_token: Shared by every scenario
        discard_partial: Raise AnalysisCancelled instead of returning partial reports

    Returns:
        Complete reports ordered by risk score, lowest (best scenario)
        first, then any cancelled report
    """
    if isinstance(scenarios, Mapping):
        scenarios = [Scenario(name=name, overrides=dict(overrides)) for name, overrides in scenarios.items()]

    reports = []
    for scenario in scenarios:
        if is_cancelled(cancel_token):
            finish_cancelled("Scenario comparison", len(reports), discard_partial)
            break
        overridden = apply_overrides(base, scenario.overrides)
        report = diff_impact(base, overridden, query=query, config=config,
                             cancel_token=cancel_token, discard_partial=discard_partial)
        report.scenario = scenario.name
        reports.append(report)
        if report.cancelled:
            break

    reports.sort(key=lambda r: (r.cancelled, r.risk_score))
    if reports and not reports[0].cancelled:
        logger.info(f"Best scenario: {reports[0].scenario} (risk {reports[0].risk_score})")
    return reports
