"""
Bounded Path Enumerator

Finds up to `limit` simple paths between two nodes, ranked by cost.

The first candidate is the Dijkstra shortest path, taken with the fewest
hops among equal-cost routes. A limit of 1 is answered from it alone.

Further candidates come from a depth-first branch-and-bound search:
- one reverse Dijkstra from the target gives every node a lower bound on
  its remaining cost; nodes without one cannot reach the target
- neighbours are tried cheapest-bound first
- once `limit` candidates exist, a branch whose cost plus bound exceeds
  the current `limit`-th best cost is cut

Without truncation the result is the exact `limit` cheapest simple paths.
Two safety bounds still apply, and either sets `last_truncated`:
- a candidate cap (well above `limit`) on paths held for ranking
- a fixed number of edge expansions

Ordering: ascending total cost, then hop count, then discovery order.
"""

import heapq
import logging
from typing import Dict, List, Optional, Set, Tuple

import networkx as nx

from ..config import AnalysisConfig, resolve_config
from .spf import PathResult, path_from_nodes
from .topology import AdjacencyEntry, Topology

logger = logging.getLogger(__name__)


class PathEnumerator:
    """
    Bounded k-path enumerator over one topology snapshot
    """

    def __init__(self, topology: Topology, config: Optional[AnalysisConfig] = None):
        """
        Initialize enumerator

        Args:
            topology: Topology snapshot (read only)
            config: Enumeration bounds (candidate cap, max expansions)
        """
        self.topology = topology
        self.config = resolve_config(config)
        self.last_expansions = 0
        self.last_truncated = False

    def find(self, source: str, target: str, limit: int) -> List[PathResult]:
        """
        Find up to `limit` simple paths from source to target

        Args:
            source: Source node id
            target: Target node id
            limit: Maximum number of paths to return

        Returns:
            Paths sorted by ascending total cost; empty when limit <= 0 or
            when target is unreachable

        Raises:
            UnknownNodeID: Either endpoint is not in the topology
        """
        self.topology.require_node(source, context="source")
        self.topology.require_node(target, context="target")
        self.last_expansions = 0
        self.last_truncated = False

        if limit <= 0:
            return []
        if source == target:
            return [PathResult(nodes=(source,), total_cost=0)]

        seed = self._seed(source, target)
        if seed is None:
            return []
        if limit == 1:
            return [seed]

        candidates: Dict[Tuple[str, ...], PathResult] = {seed.nodes: seed}
        self._search(source, target, limit, candidates, self.config.candidate_cap(limit))

        ranked = sorted(
            enumerate(candidates.values()),
            key=lambda item: (item[1].total_cost, item[1].hop_count, item[0])
        )
        results = [path for _, path in ranked[:limit]]

        logger.debug(f"Enumerated {len(candidates)} candidates {source} -> {target} "
                     f"({self.last_expansions} expansions), returning {len(results)}")
        return results

    def _seed(self, source: str, target: str) -> Optional[PathResult]:
        # cost first, hop count second: hops never reach the node count
        scale = self.topology.graph.number_of_nodes()
        try:
            _, nodes = nx.single_source_dijkstra(
                self.topology.graph, source, target,
                weight=lambda u, v, data: data["weight"] * scale + 1
            )
        except nx.NetworkXNoPath:
            return None
        return path_from_nodes(self.topology, nodes)

    def _search(
        self,
        source: str,
        target: str,
        limit: int,
        candidates: Dict[Tuple[str, ...], PathResult],
        cap: int
    ):
        graph = self.topology.graph
        remaining = nx.single_source_dijkstra_path_length(
            graph.reverse(copy=False), target, weight="weight"
        )
        ordered: Dict[str, List[AdjacencyEntry]] = {}

        def neighbors_of(node_id: str) -> List[AdjacencyEntry]:
            if node_id not in ordered:
                entries = [e for e in self.topology.adjacency[node_id] if e.neighbor in remaining]
                entries.sort(key=lambda e: (e.cost + remaining[e.neighbor], e.neighbor))
                ordered[node_id] = entries
            return ordered[node_id]

        # max-heap (negated) of the `limit` cheapest costs found so far
        best = [-path.total_cost for path in candidates.values()]
        heapq.heapify(best)

        path: List[str] = [source]
        links: List[str] = []
        costs: List[int] = [0]
        on_path: Set[str] = {source}
        # next neighbour index to try, one frame per node on the path
        frames: List[int] = [0]
        expansions = 0

        while frames:
            node_id = path[-1]
            index = frames[-1]
            neighbors = neighbors_of(node_id)

            if index >= len(neighbors):
                frames.pop()
                on_path.discard(path.pop())
                costs.pop()
                if links:
                    links.pop()
                continue

            frames[-1] = index + 1
            entry = neighbors[index]
            if entry.neighbor in on_path:
                continue

            cost = costs[-1] + entry.cost
            if len(best) >= limit and cost + remaining[entry.neighbor] > -best[0]:
                # neighbours are sorted by the same bound
                frames[-1] = len(neighbors)
                continue

            expansions += 1
            if expansions > self.config.max_expansions:
                self.last_truncated = True
                logger.debug(f"Expansion budget reached for {source} -> {target}")
                break

            if entry.neighbor == target:
                nodes = tuple(path) + (target,)
                if nodes in candidates:
                    continue
                candidates[nodes] = PathResult(
                    nodes=nodes,
                    total_cost=cost,
                    links=tuple(links) + (entry.link_id,)
                )
                if len(best) < limit:
                    heapq.heappush(best, -cost)
                elif cost < -best[0]:
                    heapq.heapreplace(best, -cost)

                if len(candidates) >= cap:
                    bound = -best[0]
                    kept = {k: p for k, p in candidates.items() if p.total_cost <= bound}
                    candidates.clear()
                    candidates.update(kept)
                    if len(candidates) >= cap:
                        self.last_truncated = True
                        logger.debug(f"Candidate cap reached for {source} -> {target}")
                        break
                continue

            path.append(entry.neighbor)
            on_path.add(entry.neighbor)
            links.append(entry.link_id)
            costs.append(cost)
            frames.append(0)

        self.last_expansions = expansions


def find_paths(
    topology: Topology,
    source: str,
    target: str,
    limit: int,
    config: Optional[AnalysisConfig] = None
) -> List[PathResult]:
    """
    Find up to `limit` ranked simple paths between two nodes

    See PathEnumerator for the bounding policy.
    """
    return PathEnumerator(topology, config).find(source, target, limit)
