"""
Topology ingestion schema

Normalises externally supplied node/link records into the canonical shape
the Topology Model expects:
- link endpoints become plain node ids (embedded node objects are unwrapped)
- node group accepts "country" as an alias
- link forward cost accepts "cost" as an alias
- missing link ids are derived from the endpoints

Vendor-specific export formats are parsed elsewhere; this module only
accepts the normalised {nodes: [...], links: [...]} document, as JSON or
YAML.
"""

import json
import logging
import math
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, field_validator

from ..config import AnalysisConfig, resolve_config
from ..errors import InvalidCost, TopologyError
from .topology import Link, LinkStatus, Node, Topology

logger = logging.getLogger(__name__)


class NodeRecord(BaseModel):
    """Node as supplied by topology ingestion"""
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    id: str
    group: str = Field(default="", validation_alias=AliasChoices("group", "country"))
    name: str = ""
    hostname: str = ""
    loopback_ip: str = ""
    node_type: str = "router"
    is_active: bool = True

    @field_validator("id", "group", mode="before")
    @classmethod
    def _stringify(cls, value: Any) -> Any:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value

    @field_validator("name", "hostname", "loopback_ip", "node_type", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any) -> Any:
        return "" if value is None else value


class LinkRecord(BaseModel):
    """Link as supplied by topology ingestion"""
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    id: Optional[str] = None
    source: str
    target: str
    forward_cost: Any = Field(default=None, validation_alias=AliasChoices("forward_cost", "cost"))
    reverse_cost: Any = None
    status: LinkStatus = LinkStatus.UP
    original_forward_cost: Optional[int] = None
    original_reverse_cost: Optional[int] = None
    original_status: Optional[LinkStatus] = None
    source_interface: str = ""
    target_interface: str = ""

    @field_validator("source", "target", mode="before")
    @classmethod
    def _endpoint_id(cls, value: Any) -> Any:
        # Rendering layers embed node objects in place of ids
        if isinstance(value, dict):
            value = value.get("id")
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value

    @field_validator("id", mode="before")
    @classmethod
    def _link_id(cls, value: Any) -> Any:
        if value is None or value == "":
            return None
        return str(value)

    @field_validator("status", "original_status", mode="before")
    @classmethod
    def _status(cls, value: Any) -> Any:
        if value is None or isinstance(value, LinkStatus):
            return value
        return str(value).strip().lower()

    @field_validator("source_interface", "target_interface", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any) -> Any:
        return "" if value is None else value


class TopologyDocument(BaseModel):
    """Normalised topology snapshot document"""
    model_config = ConfigDict(extra="ignore")

    nodes: List[NodeRecord] = Field(default_factory=list)
    links: List[LinkRecord] = Field(default_factory=list)
    metadata: Dict[str, Any] = Field(default_factory=dict)


def normalize_cost(
    link_id: str,
    field_name: str,
    value: Any,
    config: AnalysisConfig,
    clamp: bool = False
) -> int:
    """
    Turn a raw cost into an integer metric

    Args:
        link_id: Link being ingested (for error messages)
        field_name: forward_cost or reverse_cost
        value: Raw value from the document
        config: Accepted cost range
        clamp: Clamp out-of-range or fractional values instead of rejecting

    Returns:
        Integer cost

    Raises:
        InvalidCost: Value is missing, non-numeric, or out of range without clamp
    """
    def invalid():
        return InvalidCost(link_id, field_name, value, config.min_cost, config.max_cost)

    if value is None or isinstance(value, bool):
        raise invalid()

    number = value
    if isinstance(number, str):
        try:
            number = float(number.strip())
        except ValueError:
            raise invalid() from None

    if isinstance(number, float):
        if not math.isfinite(number):
            raise invalid()
        if not number.is_integer():
            if not clamp:
                raise invalid()
            number = round(number)
        number = int(number)

    if not isinstance(number, int):
        raise invalid()

    if number < config.min_cost or number > config.max_cost:
        if not clamp:
            raise invalid()
        clamped = min(max(number, config.min_cost), config.max_cost)
        logger.warning(f"Clamped {field_name} on link {link_id} from {number} to {clamped}")
        number = clamped

    return number


def assign_link_ids(records: List[LinkRecord]) -> List[str]:
    """
    Resolve an id for every link record

    Explicit ids are kept. Missing ids are derived as "source-target";
    parallel links sharing a derived id get a "#n" suffix.
    """
    taken = {r.id for r in records if r.id is not None}
    seen: Dict[str, int] = {}
    ids = []
    for record in records:
        if record.id is not None:
            ids.append(record.id)
            continue
        base = f"{record.source}-{record.target}"
        count = seen.get(base, 0)
        candidate = base if count == 0 else f"{base}#{count + 1}"
        while candidate in taken:
            count += 1
            candidate = f"{base}#{count + 1}"
        seen[base] = count + 1
        taken.add(candidate)
        ids.append(candidate)
    return ids


def build_topology(
    document: TopologyDocument,
    config: Optional[AnalysisConfig] = None,
    clamp_costs: bool = False
) -> Topology:
    """
    Build a Topology from a validated document

    Args:
        document: Parsed topology document
        config: Cost range and defaults
        clamp_costs: Clamp out-of-range costs instead of raising InvalidCost

    Returns:
        Topology snapshot
    """
    config = resolve_config(config)

    nodes = [
        Node(
            id=record.id,
            group=record.group,
            name=record.name or record.id,
            hostname=record.hostname,
            loopback_ip=record.loopback_ip,
            node_type=record.node_type,
            is_active=record.is_active,
        )
        for record in document.nodes
    ]

    links = []
    for record, link_id in zip(document.links, assign_link_ids(document.links)):
        forward = normalize_cost(link_id, "forward_cost", record.forward_cost, config, clamp_costs)
        if record.reverse_cost is None:
            reverse = forward
        else:
            reverse = normalize_cost(link_id, "reverse_cost", record.reverse_cost, config, clamp_costs)
        links.append(Link(
            id=link_id,
            source=record.source,
            target=record.target,
            forward_cost=forward,
            reverse_cost=reverse,
            status=record.status,
            original_forward_cost=record.original_forward_cost,
            original_reverse_cost=record.original_reverse_cost,
            original_status=record.original_status,
            source_interface=record.source_interface,
            target_interface=record.target_interface,
        ))

    return Topology(nodes, links, config=config)


def parse_topology(
    data: Dict[str, Any],
    config: Optional[AnalysisConfig] = None,
    clamp_costs: bool = False
) -> Topology:
    """Validate a raw topology mapping and build the snapshot"""
    if not isinstance(data, dict):
        raise TopologyError(f"Topology document must be a mapping, got {type(data).__name__}")
    try:
        document = TopologyDocument.model_validate(data)
    except ValidationError as e:
        raise TopologyError(f"Invalid topology document: {e}") from e
    return build_topology(document, config=config, clamp_costs=clamp_costs)


def load_topology(
    path: Union[str, Path],
    config: Optional[AnalysisConfig] = None,
    clamp_costs: bool = False
) -> Topology:
    """
    Load a normalised topology document from a JSON or YAML file

    Args:
        path: File path; .yaml/.yml are read as YAML, anything else as JSON
        config: Cost range and defaults
        clamp_costs: Clamp out-of-range costs instead of raising InvalidCost

    Returns:
        Topology snapshot
    """
    path = Path(path)
    text = path.read_text(encoding="utf-8")

    try:
        if path.suffix.lower() in (".yaml", ".yml"):
            data = yaml.safe_load(text)
        else:
            data = json.loads(text)
    except (yaml.YAMLError, json.JSONDecodeError) as e:
        raise TopologyError(f"Cannot parse topology file {path}: {e}") from e

    logger.info(f"Loaded topology document from {path}")
    return parse_topology(data, config=config, clamp_costs=clamp_costs)
