"""
Test suite for topology ingestion.

Tests cover:
- Endpoint normalisation and field aliases
- Derived link ids
- Cost normalisation and clamping
- JSON and YAML loading
"""

import json

import pytest
import yaml

from ..config import AnalysisConfig
from ..errors import DuplicateLinkID, InvalidCost, TopologyError
from ..ospf.schema import LinkRecord, assign_link_ids, load_topology, normalize_cost, parse_topology
from ..ospf.topology import LinkStatus


def document(**overrides):
    data = {
        "nodes": [
            {"id": "R1", "country": "DEU", "hostname": "r1.example"},
            {"id": "R2", "group": "FRA"},
        ],
        "links": [
            {"source": "R1", "target": "R2", "cost": 10, "reverse_cost": 20},
        ],
    }
    data.update(overrides)
    return data


class TestRecords:
    """Tests for node/link record normalisation."""

    def test_country_alias(self):
        """Test node group accepts country as an alias."""
        topology = parse_topology(document())
        assert topology.group_of("R1") == "DEU"
        assert topology.group_of("R2") == "FRA"

    def test_name_defaults_to_id(self):
        """Test display name falls back to the node id."""
        topology = parse_topology(document())
        assert topology.node("R2").name == "R2"
        assert topology.node("R1").hostname == "r1.example"

    def test_embedded_endpoints_are_unwrapped(self):
        """Test link endpoints given as node objects become ids."""
        data = document(links=[
            {"source": {"id": "R1", "x": 1.5}, "target": {"id": "R2"}, "forward_cost": 3},
        ])
        topology = parse_topology(data)
        link = topology.links[0]
        assert (link.source, link.target) == ("R1", "R2")

    def test_cost_alias_and_reverse(self):
        """Test cost is the forward cost alias."""
        link = parse_topology(document()).links[0]
        assert link.forward_cost == 10
        assert link.reverse_cost == 20

    def test_status_case_insensitive(self):
        """Test status strings are normalised."""
        record = LinkRecord.model_validate({"source": "a", "target": "b", "cost": 1, "status": "DOWN"})
        assert record.status == LinkStatus.DOWN

    def test_numeric_ids_become_strings(self):
        """Test numeric node ids are stringified consistently."""
        topology = parse_topology({
            "nodes": [{"id": 1, "group": 10}, {"id": 2, "group": 10}],
            "links": [{"source": 1, "target": 2, "cost": 1}],
        })
        assert topology.has_node("1")
        assert topology.nodes_in_group("10") == ("1", "2")

    def test_not_a_mapping(self):
        """Test a non-mapping document is rejected."""
        with pytest.raises(TopologyError):
            parse_topology(["nodes"])

    def test_missing_endpoint_field(self):
        """Test schema errors surface as TopologyError."""
        with pytest.raises(TopologyError):
            parse_topology(document(links=[{"source": "R1", "cost": 1}]))


class TestLinkIds:
    """Tests for link id derivation."""

    def test_derived_ids(self):
        """Test missing ids derive from endpoints with a suffix for parallels."""
        records = [
            LinkRecord(source="A", target="B", forward_cost=1),
            LinkRecord(source="A", target="B", forward_cost=2),
            LinkRecord(id="custom", source="B", target="C", forward_cost=1),
        ]
        assert assign_link_ids(records) == ["A-B", "A-B#2", "custom"]

    def test_parallel_links_are_kept(self):
        """Test parallel links survive ingestion as separate links."""
        topology = parse_topology(document(links=[
            {"source": "R1", "target": "R2", "cost": 10},
            {"source": "R1", "target": "R2", "cost": 5},
        ]))
        assert [link.id for link in topology.links] == ["R1-R2", "R1-R2#2"]
        assert topology.adjacency["R1"][0].cost == 5

    def test_explicit_duplicate_rejected(self):
        """Test explicit duplicate ids are rejected."""
        with pytest.raises(DuplicateLinkID):
            parse_topology(document(links=[
                {"id": "x", "source": "R1", "target": "R2", "cost": 1},
                {"id": "x", "source": "R2", "target": "R1", "cost": 1},
            ]))


class TestCostNormalisation:
    """Tests for cost validation and clamping."""

    def test_numeric_string(self):
        """Test numeric strings and integral floats are accepted."""
        config = AnalysisConfig()
        assert normalize_cost("l", "forward_cost", "42", config) == 42
        assert normalize_cost("l", "forward_cost", 42.0, config) == 42

    @pytest.mark.parametrize("value", [None, True, "abc", 0, 70000, 1.5, float("inf")])
    def test_rejected(self, value):
        """Test invalid costs raise InvalidCost."""
        with pytest.raises(InvalidCost):
            normalize_cost("l", "forward_cost", value, AnalysisConfig())

    def test_clamp(self):
        """Test clamping pulls values into range."""
        config = AnalysisConfig()
        assert normalize_cost("l", "forward_cost", 0, config, clamp=True) == 1
        assert normalize_cost("l", "forward_cost", 100000, config, clamp=True) == 65535
        assert normalize_cost("l", "forward_cost", 2.6, config, clamp=True) == 3

    def test_clamp_via_parse(self):
        """Test clamp_costs applies during parsing."""
        data = document(links=[{"source": "R1", "target": "R2", "cost": 0}])
        with pytest.raises(InvalidCost):
            parse_topology(data)
        assert parse_topology(data, clamp_costs=True).links[0].forward_cost == 1


class TestLoadTopology:
    """Tests for file loading."""

    def test_load_json(self, tmp_path):
        """Test loading a JSON document."""
        path = tmp_path / "topology.json"
        path.write_text(json.dumps(document()))
        topology = load_topology(path)
        assert topology.summary()["link_count"] == 1

    def test_load_yaml(self, tmp_path):
        """Test loading a YAML document."""
        path = tmp_path / "topology.yaml"
        path.write_text(yaml.safe_dump(document()))
        topology = load_topology(str(path))
        assert topology.groups() == ["DEU", "FRA"]

    def test_malformed_file(self, tmp_path):
        """Test unparseable files raise TopologyError."""
        path = tmp_path / "broken.json"
        path.write_text("{not json")
        with pytest.raises(TopologyError):
            load_topology(path)
