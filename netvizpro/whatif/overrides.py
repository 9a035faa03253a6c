"""
What-If Overrides - hypothetical link changes on a topology snapshot

Provides:
- Per-link cost and status overrides
- Overridden snapshot construction (the base is never touched)
- Reset of recorded overrides
- Named override scenarios

There is no shared simulation state: every call returns a new Topology,
so any number of scenarios can be evaluated against the same base.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from ..errors import UnknownLinkID
from ..ospf.topology import Link, LinkStatus, Topology

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LinkOverride:
    """
    Hypothetical change to one link

    Attributes:
        forward_cost: New source -> target cost (None keeps the current one)
        reverse_cost: New target -> source cost (None keeps the current one)
        status: New status (None keeps the current one)
    """
    forward_cost: Optional[int] = None
    reverse_cost: Optional[int] = None
    status: Optional[LinkStatus] = None

    def __post_init__(self):
        if self.status is not None and not isinstance(self.status, LinkStatus):
            object.__setattr__(self, "status", LinkStatus.parse(self.status))

    @classmethod
    def from_value(cls, value: Union["LinkOverride", Mapping[str, Any]]) -> "LinkOverride":
        """Accept a LinkOverride or a plain dict with the same keys"""
        if isinstance(value, cls):
            return value
        return cls(
            forward_cost=value.get("forward_cost", value.get("cost")),
            reverse_cost=value.get("reverse_cost"),
            status=value.get("status"),
        )

    @property
    def is_empty(self) -> bool:
        return self.forward_cost is None and self.reverse_cost is None and self.status is None

    def apply_to(self, link: Link) -> Link:
        """
        Overridden copy of a link

        Pre-change values are recorded in original_* unless an earlier
        override already recorded them.
        """
        changes: Dict[str, Any] = {}
        if link.original_forward_cost is None:
            changes["original_forward_cost"] = link.forward_cost
        if link.original_reverse_cost is None:
            changes["original_reverse_cost"] = link.reverse_cost
        if link.original_status is None:
            changes["original_status"] = link.status

        if self.forward_cost is not None:
            changes["forward_cost"] = self.forward_cost
        if self.reverse_cost is not None:
            changes["reverse_cost"] = self.reverse_cost
        if self.status is not None:
            changes["status"] = self.status
        return link.evolve(**changes)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "forward_cost": self.forward_cost,
            "reverse_cost": self.reverse_cost,
            "status": self.status.value if self.status else None,
        }


Overrides = Mapping[str, Union[LinkOverride, Mapping[str, Any]]]


def fail_link(link_id: str) -> Dict[str, LinkOverride]:
    """Override set that takes one link down"""
    return {link_id: LinkOverride(status=LinkStatus.DOWN)}


def set_cost(link_id: str, forward: int, reverse: Optional[int] = None) -> Dict[str, LinkOverride]:
    """Override set that changes one link's costs (reverse defaults to forward)"""
    return {link_id: LinkOverride(forward_cost=forward,
                                  reverse_cost=forward if reverse is None else reverse)}


def apply_overrides(base: Topology, overrides: Overrides) -> Topology:
    """
    Build a new snapshot with overrides applied

    Args:
        base: Topology to start from (left untouched)
        overrides: link id -> LinkOverride (or dict with the same keys)

    Returns:
        New Topology

    Raises:
        UnknownLinkID: An override targets a link not in base
        InvalidCost: An overridden cost is outside the accepted range
    """
    parsed = {}
    for link_id, value in overrides.items():
        if not base.has_link(link_id):
            raise UnknownLinkID(link_id, context="override target link")
        parsed[link_id] = LinkOverride.from_value(value)

    links = [
        parsed[link.id].apply_to(link) if link.id in parsed else link
        for link in base.links
    ]

    logger.info(f"Applying {len(parsed)} link overrides")
    return Topology(base.nodes.values(), links, config=base.config)


def reset_overrides(topology: Topology, link_ids: Optional[Iterable[str]] = None) -> Topology:
    """
    Restore recorded original values and clear them

    Args:
        topology: Overridden snapshot
        link_ids: Links to reset (every link with recorded originals when None)

    Returns:
        New Topology

    Raises:
        UnknownLinkID: A requested link does not exist
    """
    if link_ids is None:
        targets = {link.id for link in topology.links if link.has_originals}
    else:
        targets = set()
        for link_id in link_ids:
            if not topology.has_link(link_id):
                raise UnknownLinkID(link_id, context="reset target link")
            targets.add(link_id)

    links = []
    for link in topology.links:
        if link.id in targets and link.has_originals:
            link = link.evolve(
                forward_cost=_first_set(link.original_forward_cost, link.forward_cost),
                reverse_cost=_first_set(link.original_reverse_cost, link.reverse_cost),
                status=_first_set(link.original_status, link.status),
                original_forward_cost=None,
                original_reverse_cost=None,
                original_status=None,
            )
        links.append(link)

    logger.info(f"Reset overrides on {len(targets)} links")
    return Topology(topology.nodes.values(), links, config=topology.config)


def _first_set(original, current):
    return current if original is None else original


def modified_links(topology: Topology) -> List[Link]:
    """Links whose current values differ from their recorded originals"""
    return [link for link in topology.links if link.is_modified]


@dataclass
class Scenario:
    """
    Named set of link overrides

    Attributes:
        name: Scenario name
        overrides: link id -> LinkOverride
        description: Free-form description
    """
    name: str
    overrides: Dict[str, LinkOverride] = field(default_factory=dict)
    description: str = ""

    def __post_init__(self):
        self.overrides = {k: LinkOverride.from_value(v) for k, v in self.overrides.items()}

    def apply(self, base: Topology) -> Topology:
        return apply_overrides(base, self.overrides)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "overrides": {k: v.to_dict() for k, v in self.overrides.items()},
        }
