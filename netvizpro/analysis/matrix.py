"""
Cost Matrix

Provides:
- Node-to-node cost matrix (one single-source Dijkstra per row)
- Group-to-group cost matrix (cheapest node pair per group pair)

Rows are computed in a bounded thread pool over the frozen graph. The
cancellation token is checked before each row starts; rows that never ran
are left as None.
"""

import logging
import math
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence

from ..config import AnalysisConfig, resolve_config
from ..ospf.spf import INFINITY, single_source_costs
from ..ospf.topology import Topology
from .cancellation import CancellationToken, finish_cancelled, is_cancelled

logger = logging.getLogger(__name__)


@dataclass
class CostMatrix:
    """
    Square or rectangular matrix of minimum costs

    Attributes:
        rows: Row labels (node ids or group names)
        columns: Column labels
        cells: cells[i][j] is the cost from rows[i] to columns[j];
            math.inf when unreachable, None when the row was not computed
        cancelled: True when the batch stopped early
    """
    rows: List[str]
    columns: List[str]
    cells: List[Optional[List[float]]] = field(default_factory=list)
    cancelled: bool = False

    def cost(self, row: str, column: str) -> Optional[float]:
        values = self.cells[self.rows.index(row)]
        if values is None:
            return None
        return values[self.columns.index(column)]

    @property
    def completed_rows(self) -> int:
        return sum(1 for values in self.cells if values is not None)

    def to_rows(self) -> List[Dict[str, Any]]:
        """Serialisable rows; unreachable cells become "inf" """
        out = []
        for label, values in zip(self.rows, self.cells):
            if values is None:
                out.append({"row": label, "costs": None})
                continue
            out.append({
                "row": label,
                "costs": {
                    column: "inf" if math.isinf(value) else value
                    for column, value in zip(self.columns, values)
                },
            })
        return out

    def to_dict(self) -> Dict[str, Any]:
        return {
            "rows": self.rows,
            "columns": self.columns,
            "cells": self.to_rows(),
            "cancelled": self.cancelled,
        }


def _run_rows(
    labels: Sequence[str],
    compute: Callable[[str], List[float]],
    config: AnalysisConfig,
    cancel_token: Optional[CancellationToken]
) -> List[Optional[List[float]]]:
    def guarded(label: str) -> Optional[List[float]]:
        if is_cancelled(cancel_token):
            return None
        return compute(label)

    with ThreadPoolExecutor(max_workers=config.max_workers) as pool:
        # map preserves row order
        return list(pool.map(guarded, labels))


def node_cost_matrix(
    topology: Topology,
    sources: Optional[Sequence[str]] = None,
    targets: Optional[Sequence[str]] = None,
    config: Optional[AnalysisConfig] = None,
    cancel_token: Optional[CancellationToken] = None,
    discard_partial: bool = False
) -> CostMatrix:
    """
    Minimum cost between every source and every target node

    Args:
        topology: Topology snapshot
        sources: Row node ids (all nodes, sorted, when None)
        targets: Column node ids (all nodes, sorted, when None)
        config: Worker pool sizing
        cancel_token: Checked before each row
        discard_partial: Raise AnalysisCancelled instead of returning a partial matrix

    Returns:
        CostMatrix

    Raises:
        UnknownNodeID: A requested source or target does not exist
    """
    config = resolve_config(config)
    sources = sorted(topology.nodes) if sources is None else list(sources)
    targets = sorted(topology.nodes) if targets is None else list(targets)
    for node_id in sources:
        topology.require_node(node_id, context="matrix row")
    for node_id in targets:
        topology.require_node(node_id, context="matrix column")

    def compute(source: str) -> List[float]:
        costs = single_source_costs(topology, source)
        return [costs.get(target, INFINITY) for target in targets]

    cells = _run_rows(sources, compute, config, cancel_token)
    matrix = CostMatrix(rows=sources, columns=targets, cells=cells)
    matrix.cancelled = matrix.completed_rows < len(sources)
    if matrix.cancelled:
        finish_cancelled("Node cost matrix", matrix.completed_rows, discard_partial)

    logger.info(f"Node cost matrix {len(sources)}x{len(targets)}, "
                f"{matrix.completed_rows} rows computed")
    return matrix


def group_cost_matrix(
    topology: Topology,
    groups: Optional[Sequence[str]] = None,
    config: Optional[AnalysisConfig] = None,
    cancel_token: Optional[CancellationToken] = None,
    discard_partial: bool = False
) -> CostMatrix:
    """
    Cheapest cost from any node of one group to any node of another

    The diagonal is 0. Every node of a row group is used as a Dijkstra
    source, so the result is exact (no sampling).

    Args:
        topology: Topology snapshot
        groups: Group names (all groups when None); unknown groups give
            an all-unreachable row and column
        config: Worker pool sizing
        cancel_token: Checked before each row
        discard_partial: Raise AnalysisCancelled instead of returning a partial matrix

    Returns:
        CostMatrix labelled by group
    """
    config = resolve_config(config)
    groups = topology.groups() if groups is None else list(groups)

    def compute(row_group: str) -> List[float]:
        best = {group: INFINITY for group in groups}
        for source in topology.nodes_in_group(row_group):
            costs = single_source_costs(topology, source)
            for group in groups:
                for target in topology.nodes_in_group(group):
                    cost = costs.get(target, INFINITY)
                    if cost < best[group]:
                        best[group] = cost
        return [0 if group == row_group else best[group] for group in groups]

    cells = _run_rows(groups, compute, config, cancel_token)
    matrix = CostMatrix(rows=groups, columns=list(groups), cells=cells)
    matrix.cancelled = matrix.completed_rows < len(groups)
    if matrix.cancelled:
        finish_cancelled("Group cost matrix", matrix.completed_rows, discard_partial)

    logger.info(f"Group cost matrix {len(groups)}x{len(groups)}, "
                f"{matrix.completed_rows} rows computed")
    return matrix
