"""
Shared fixtures for the path-analysis test suite
"""

import pytest

from ..config import AnalysisConfig, set_config
from ..ospf.topology import Topology


@pytest.fixture(autouse=True)
def default_config():
    """Pin the process-wide config so NETVIZ_* variables cannot leak in."""
    config = AnalysisConfig()
    set_config(config)
    yield config
    set_config(None)


def make_topology(nodes, links, **kwargs) -> Topology:
    """
    Build a topology from compact tuples

    nodes: (id, group) tuples
    links: (source, target, forward_cost[, reverse_cost]) tuples, ids "source-target"
    """
    node_records = [{"id": node_id, "group": group} for node_id, group in nodes]
    link_records = []
    for link in links:
        record = {"source": link[0], "target": link[1], "forward_cost": link[2]}
        if len(link) > 3:
            record["reverse_cost"] = link[3]
        link_records.append(record)
    return Topology.from_records(node_records, link_records, **kwargs)


@pytest.fixture
def line_topology():
    """A - B - C with cost 5 on both links, one group per node."""
    return make_topology(
        [("A", "X"), ("B", "Y"), ("C", "Z")],
        [("A", "B", 5), ("B", "C", 5)],
    )


@pytest.fixture
def diamond_topology():
    """Two 2-hop routes A -> D: via B (2 + 2) and via C (5 + 5)."""
    return make_topology(
        [("A", "G1"), ("B", "G2"), ("C", "G3"), ("D", "G4")],
        [("A", "B", 2), ("B", "D", 2), ("A", "C", 5), ("C", "D", 5)],
    )


@pytest.fixture
def country_topology():
    """
    Three countries; CHE sits between DEU and FRA on the cheap route.

        D1 -10- C1 -10- F1
        |               |
        D2 ----100----- F2
    """
    return make_topology(
        [("D1", "DEU"), ("D2", "DEU"), ("C1", "CHE"), ("F1", "FRA"), ("F2", "FRA")],
        [
            ("D1", "C1", 10),
            ("C1", "F1", 10),
            ("D1", "D2", 1),
            ("F1", "F2", 1),
            ("D2", "F2", 100),
        ],
    )
