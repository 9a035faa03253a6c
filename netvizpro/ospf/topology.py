"""
Topology Model

Provides:
- Node and Link records (immutable)
- Directional link costs with up/down status
- Derived adjacency view backed by a frozen networkx DiGraph

A Topology is a snapshot: it is never patched in place. Overrides build a
new snapshot (see netvizpro.whatif.overrides).
"""

import logging
from dataclasses import dataclass, replace
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Mapping, NamedTuple, Optional, Tuple

import networkx as nx

from ..config import AnalysisConfig, resolve_config
from ..errors import DuplicateLinkID, DuplicateNodeID, InvalidCost, UnknownLinkID, UnknownNodeID

logger = logging.getLogger(__name__)


class LinkStatus(Enum):
    """Operational status of a link"""
    UP = "up"
    DOWN = "down"

    @classmethod
    def parse(cls, value: Any) -> "LinkStatus":
        """Accept an enum member or its (case-insensitive) string value"""
        if isinstance(value, cls):
            return value
        return cls(str(value).strip().lower())


@dataclass(frozen=True)
class Node:
    """
    Router in the topology

    Attributes:
        id: Unique node identifier
        group: Aggregation group (country/region)
        name: Display name
        hostname: Device hostname
        loopback_ip: Loopback address
        node_type: Device role
        is_active: Display flag, not read by any algorithm
    """
    id: str
    group: str = ""
    name: str = ""
    hostname: str = ""
    loopback_ip: str = ""
    node_type: str = "router"
    is_active: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "group": self.group,
            "name": self.name,
            "hostname": self.hostname,
            "loopback_ip": self.loopback_ip,
            "node_type": self.node_type,
            "is_active": self.is_active,
        }


@dataclass(frozen=True)
class Link:
    """
    Physical link with an independent cost per direction

    Attributes:
        id: Link identifier (stable within a snapshot)
        source: Source node id
        target: Target node id
        forward_cost: Cost of traversing source -> target
        reverse_cost: Cost of traversing target -> source
        status: Up or down; a down link carries no traffic either way
        original_forward_cost: Forward cost before an override
        original_reverse_cost: Reverse cost before an override
        original_status: Status before an override
        source_interface: Interface name on the source side
        target_interface: Interface name on the target side
    """
    id: str
    source: str
    target: str
    forward_cost: int
    reverse_cost: Optional[int] = None
    status: LinkStatus = LinkStatus.UP
    original_forward_cost: Optional[int] = None
    original_reverse_cost: Optional[int] = None
    original_status: Optional[LinkStatus] = None
    source_interface: str = ""
    target_interface: str = ""

    def __post_init__(self):
        if self.reverse_cost is None:
            object.__setattr__(self, "reverse_cost", self.forward_cost)
        if not isinstance(self.status, LinkStatus):
            object.__setattr__(self, "status", LinkStatus.parse(self.status))
        if self.original_status is not None and not isinstance(self.original_status, LinkStatus):
            object.__setattr__(self, "original_status", LinkStatus.parse(self.original_status))

    @property
    def is_up(self) -> bool:
        return self.status == LinkStatus.UP

    @property
    def is_symmetric(self) -> bool:
        return self.forward_cost == self.reverse_cost

    @property
    def has_originals(self) -> bool:
        """True once an override has recorded pre-change values"""
        return (
            self.original_forward_cost is not None
            or self.original_reverse_cost is not None
            or self.original_status is not None
        )

    @property
    def is_modified(self) -> bool:
        """True if current values differ from the recorded originals"""
        if self.original_forward_cost is not None and self.original_forward_cost != self.forward_cost:
            return True
        if self.original_reverse_cost is not None and self.original_reverse_cost != self.reverse_cost:
            return True
        if self.original_status is not None and self.original_status != self.status:
            return True
        return False

    def cost_from(self, node_id: str) -> int:
        """
        Cost of leaving node_id over this link

        Args:
            node_id: One of the link's endpoints

        Returns:
            forward_cost when leaving the source, reverse_cost when leaving the target
        """
        if node_id == self.source:
            return self.forward_cost
        if node_id == self.target:
            return self.reverse_cost
        raise UnknownNodeID(node_id, context=f"not an endpoint of link {self.id}")

    def other_end(self, node_id: str) -> str:
        return self.target if node_id == self.source else self.source

    def evolve(self, **changes: Any) -> "Link":
        """Copy of this link with some fields replaced"""
        return replace(self, **changes)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "source": self.source,
            "target": self.target,
            "forward_cost": self.forward_cost,
            "reverse_cost": self.reverse_cost,
            "status": self.status.value,
            "is_symmetric": self.is_symmetric,
            "original_forward_cost": self.original_forward_cost,
            "original_reverse_cost": self.original_reverse_cost,
            "original_status": self.original_status.value if self.original_status else None,
            "is_modified": self.is_modified,
            "source_interface": self.source_interface,
            "target_interface": self.target_interface,
        }


class AdjacencyEntry(NamedTuple):
    """One outgoing directed edge in the adjacency view"""
    neighbor: str
    cost: int
    link_id: str


class Topology:
    """
    Immutable topology snapshot

    Holds the node map, the link list and the derived directed graph.
    Every up link contributes source->target (forward_cost) and
    target->source (reverse_cost); down links contribute nothing.
    """

    def __init__(
        self,
        nodes: Iterable[Node],
        links: Iterable[Link],
        config: Optional[AnalysisConfig] = None
    ):
        """
        Build a topology snapshot

        Args:
            nodes: Node records
            links: Link records with canonical (string) endpoints
            config: Cost range to validate against (defaults to get_config())

        Raises:
            DuplicateNodeID: Two nodes share an id
            DuplicateLinkID: Two links share an id
            UnknownNodeID: A link references a missing node
            InvalidCost: A link cost is outside the accepted range
        """
        self.config = resolve_config(config)

        node_map: Dict[str, Node] = {}
        for node in nodes:
            if node.id in node_map:
                raise DuplicateNodeID(node.id)
            node_map[node.id] = node

        link_map: Dict[str, Link] = {}
        for link in links:
            if link.id in link_map:
                raise DuplicateLinkID(link.id)
            for endpoint in (link.source, link.target):
                if endpoint not in node_map:
                    raise UnknownNodeID(endpoint, context=f"endpoint of link {link.id}")
            self._check_cost(link, "forward_cost", link.forward_cost)
            self._check_cost(link, "reverse_cost", link.reverse_cost)
            link_map[link.id] = link

        self._nodes: Mapping[str, Node] = MappingProxyType(node_map)
        self._links: Mapping[str, Link] = MappingProxyType(link_map)
        self._groups = self._index_groups(node_map)
        self._graph = self._build_graph(node_map, link_map)
        self._adjacency = self._build_adjacency(self._graph)

        logger.info(f"Built topology with {len(node_map)} nodes, {len(link_map)} links "
                    f"and {self._graph.number_of_edges()} directed edges")

    @classmethod
    def from_records(
        cls,
        nodes: Iterable[Mapping[str, Any]],
        links: Iterable[Mapping[str, Any]],
        config: Optional[AnalysisConfig] = None,
        clamp_costs: bool = False
    ) -> "Topology":
        """
        Build a topology from raw node/link dictionaries

        Records are normalised through the ingestion schema first, so link
        endpoints may be ids or embedded node objects.
        """
        from .schema import parse_topology

        data = {"nodes": list(nodes), "links": list(links)}
        return parse_topology(data, config=config, clamp_costs=clamp_costs)

    def _check_cost(self, link: Link, field_name: str, value: Any):
        if isinstance(value, bool) or not isinstance(value, int):
            raise InvalidCost(link.id, field_name, value, self.config.min_cost, self.config.max_cost)
        if value < self.config.min_cost or value > self.config.max_cost:
            raise InvalidCost(link.id, field_name, value, self.config.min_cost, self.config.max_cost)

    @staticmethod
    def _index_groups(node_map: Mapping[str, Node]) -> Mapping[str, Tuple[str, ...]]:
        groups: Dict[str, List[str]] = {}
        for node in node_map.values():
            groups.setdefault(node.group, []).append(node.id)
        return MappingProxyType({g: tuple(sorted(ids)) for g, ids in groups.items()})

    @staticmethod
    def _build_graph(node_map: Mapping[str, Node], link_map: Mapping[str, Link]) -> nx.DiGraph:
        graph = nx.DiGraph()
        for node in node_map.values():
            graph.add_node(node.id, group=node.group)

        for link in link_map.values():
            if not link.is_up:
                continue
            for u, v, cost in ((link.source, link.target, link.forward_cost),
                               (link.target, link.source, link.reverse_cost)):
                existing = graph.get_edge_data(u, v)
                # Parallel links: the cheaper one carries the edge
                if existing is None or cost < existing["weight"]:
                    graph.add_edge(u, v, weight=cost, link_id=link.id)

        return nx.freeze(graph)

    @staticmethod
    def _build_adjacency(graph: nx.DiGraph) -> Mapping[str, Tuple[AdjacencyEntry, ...]]:
        adjacency = {}
        for node_id in graph.nodes:
            entries = [
                AdjacencyEntry(neighbor, data["weight"], data["link_id"])
                for neighbor, data in graph.adj[node_id].items()
            ]
            entries.sort(key=lambda e: (e.cost, e.neighbor))
            adjacency[node_id] = tuple(entries)
        return MappingProxyType(adjacency)

    @property
    def nodes(self) -> Mapping[str, Node]:
        """Read-only node id -> Node map"""
        return self._nodes

    @property
    def links(self) -> Tuple[Link, ...]:
        """Links in insertion order"""
        return tuple(self._links.values())

    @property
    def graph(self) -> nx.DiGraph:
        """Frozen directed graph; edge attribute 'weight' is the directional cost"""
        return self._graph

    @property
    def adjacency(self) -> Mapping[str, Tuple[AdjacencyEntry, ...]]:
        """Read-only node id -> outgoing edges, sorted by (cost, neighbor)"""
        return self._adjacency

    def has_node(self, node_id: str) -> bool:
        return node_id in self._nodes

    def node(self, node_id: str) -> Node:
        try:
            return self._nodes[node_id]
        except KeyError:
            raise UnknownNodeID(node_id) from None

    def has_link(self, link_id: str) -> bool:
        return link_id in self._links

    def link(self, link_id: str) -> Link:
        """Get a link by id (raises UnknownLinkID when absent)"""
        try:
            return self._links[link_id]
        except KeyError:
            raise UnknownLinkID(link_id) from None

    def require_node(self, node_id: str, context: Optional[str] = None):
        """Raise UnknownNodeID unless node_id is in the topology"""
        if node_id not in self._nodes:
            raise UnknownNodeID(node_id, context=context)

    def neighbors(self, node_id: str) -> Tuple[AdjacencyEntry, ...]:
        self.require_node(node_id)
        return self._adjacency[node_id]

    def groups(self) -> List[str]:
        """Sorted group names"""
        return sorted(self._groups)

    def nodes_in_group(self, group: str) -> Tuple[str, ...]:
        """Node ids of a group sorted by id (empty for an unknown group)"""
        return self._groups.get(group, ())

    def group_of(self, node_id: str) -> str:
        return self.node(node_id).group

    def adjacency_equals(self, other: "Topology") -> bool:
        """Value equality of the derived adjacency views"""
        return dict(self._adjacency) == dict(other.adjacency)

    def summary(self) -> Dict[str, Any]:
        down = sum(1 for link in self._links.values() if not link.is_up)
        asymmetric = sum(1 for link in self._links.values() if not link.is_symmetric)
        modified = sum(1 for link in self._links.values() if link.is_modified)
        return {
            "node_count": len(self._nodes),
            "link_count": len(self._links),
            "directed_edges": self._graph.number_of_edges(),
            "groups": len(self._groups),
            "down_links": down,
            "asymmetric_links": asymmetric,
            "modified_links": modified,
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            "nodes": [node.to_dict() for node in self._nodes.values()],
            "links": [link.to_dict() for link in self._links.values()],
        }

    def __repr__(self) -> str:
        return f"Topology(nodes={len(self._nodes)}, links={len(self._links)})"
