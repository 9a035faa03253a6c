"""
NetViz Pro path analysis - Main Entry Point

Usage:
    python -m netvizpro --help
    python -m netvizpro cost topology.json R1 R7
    python -m netvizpro paths topology.json R1 R7 --limit 5
    python -m netvizpro group-paths topology.yaml DEU FRA
    python -m netvizpro matrix topology.json --groups
    python -m netvizpro transit topology.json
    python -m netvizpro traffic topology.json DEU FRA
    python -m netvizpro trace topology.json R1 --target R7
    python -m netvizpro whatif topology.json --fail R1-R2 --cost R2-R3=20/40
"""

import argparse
import json
import logging
import math
import sys
from typing import Any, Dict, List, Optional

from . import __version__
from .analysis.aggregation import aggregate_group_paths
from .analysis.cancellation import CancellationToken
from .analysis.matrix import group_cost_matrix, node_cost_matrix
from .analysis.transit import analyze_transit
from .analysis.traffic import traffic_flow
from .config import get_config
from .errors import NetVizError
from .logging_setup import LOG_LEVELS, setup_logging
from .ospf.paths import find_paths
from .ospf.schema import load_topology
from .ospf.spf import shortest_cost, spf_trace
from .whatif.analyzer import ImpactQuery, diff_impact
from .whatif.overrides import LinkOverride, apply_overrides

logger = logging.getLogger(__name__)


def parse_cost_override(value: str) -> Dict[str, LinkOverride]:
    """
    Parse LINK=FORWARD[/REVERSE] into an override

    Raises:
        argparse.ArgumentTypeError: Malformed value
    """
    link_id, sep, costs = value.rpartition("=")
    if not sep or not link_id:
        raise argparse.ArgumentTypeError(f"Expected LINK=FORWARD[/REVERSE], got {value!r}")
    forward, _, reverse = costs.partition("/")
    try:
        forward_cost = int(forward)
        reverse_cost = int(reverse) if reverse else forward_cost
    except ValueError:
        raise argparse.ArgumentTypeError(f"Costs must be integers: {value!r}") from None
    return {link_id: LinkOverride(forward_cost=forward_cost, reverse_cost=reverse_cost)}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="netvizpro",
        description="NetViz Pro: OSPF path analysis",
    )
    parser.add_argument("--log-level", default="WARNING", type=str.upper, choices=LOG_LEVELS,
                        help="Logging level for netvizpro loggers (records go to stderr)")
    parser.add_argument("--timeout", type=float, help="Cancel batch analyses after this many seconds")
    parser.add_argument("--clamp-costs", action="store_true",
                        help="Clamp out-of-range link costs instead of rejecting the topology")
    parser.add_argument("--version", action="version", version=f"netvizpro {__version__}")

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    cost_parser = subparsers.add_parser("cost", help="Shortest cost between two nodes")
    cost_parser.add_argument("topology", help="Topology JSON/YAML file")
    cost_parser.add_argument("source", help="Source node id")
    cost_parser.add_argument("target", help="Target node id")

    paths_parser = subparsers.add_parser("paths", help="Ranked paths between two nodes")
    paths_parser.add_argument("topology", help="Topology JSON/YAML file")
    paths_parser.add_argument("source", help="Source node id")
    paths_parser.add_argument("target", help="Target node id")
    paths_parser.add_argument("--limit", type=int, default=5, help="Maximum paths")

    group_parser = subparsers.add_parser("group-paths", help="Ranked paths between two groups")
    group_parser.add_argument("topology", help="Topology JSON/YAML file")
    group_parser.add_argument("source_group", help="Source group")
    group_parser.add_argument("dest_group", help="Destination group")
    group_parser.add_argument("--per-pair-limit", type=int, help="Paths per representative pair")
    group_parser.add_argument("--limit", type=int, help="Maximum paths overall")

    matrix_parser = subparsers.add_parser("matrix", help="Cost matrix")
    matrix_parser.add_argument("topology", help="Topology JSON/YAML file")
    matrix_parser.add_argument("--groups", action="store_true", help="Group matrix instead of node matrix")
    matrix_parser.add_argument("--only", nargs="+", help="Restrict rows/columns to these nodes or groups")

    transit_parser = subparsers.add_parser("transit", help="Transit hub analysis")
    transit_parser.add_argument("topology", help="Topology JSON/YAML file")
    transit_parser.add_argument("--groups", nargs="+", help="Groups to analyse")
    transit_parser.add_argument("--per-pair-limit", type=int, help="Paths per representative pair")

    traffic_parser = subparsers.add_parser("traffic", help="Per-link traffic flow between two groups")
    traffic_parser.add_argument("topology", help="Topology JSON/YAML file")
    traffic_parser.add_argument("source_group", help="Source group")
    traffic_parser.add_argument("dest_group", help="Destination group")
    traffic_parser.add_argument("--per-pair-limit", type=int, help="Paths per representative pair")

    trace_parser = subparsers.add_parser("trace", help="Step-by-step SPF trace")
    trace_parser.add_argument("topology", help="Topology JSON/YAML file")
    trace_parser.add_argument("source", help="Source node id")
    trace_parser.add_argument("--target", help="Stop once this node is settled")

    whatif_parser = subparsers.add_parser("whatif", help="Impact of link failures or cost changes")
    whatif_parser.add_argument("topology", help="Topology JSON/YAML file")
    whatif_parser.add_argument("--fail", action="append", default=[], metavar="LINK",
                               help="Take a link down (repeatable)")
    whatif_parser.add_argument("--cost", action="append", default=[], type=parse_cost_override,
                               metavar="LINK=FWD[/REV]", help="Change a link's costs (repeatable)")
    whatif_parser.add_argument("--node-pair", action="append", nargs=2, metavar=("SOURCE", "TARGET"),
                               help="Compare this node pair instead of all group pairs (repeatable)")

    return parser


def _cost_value(cost: float) -> Any:
    return "inf" if math.isinf(cost) else cost


def run_command(args: argparse.Namespace) -> Any:
    """Execute one parsed command and return its JSON-serialisable result"""
    config = get_config()
    topology = load_topology(args.topology, config=config, clamp_costs=args.clamp_costs)
    token = CancellationToken(timeout=args.timeout) if args.timeout else None

    if args.command == "cost":
        cost = shortest_cost(topology, args.source, args.target)
        return {
            "source": args.source,
            "target": args.target,
            "cost": _cost_value(cost),
            "reachable": not math.isinf(cost),
        }

    if args.command == "paths":
        paths = find_paths(topology, args.source, args.target, args.limit, config=config)
        return {"source": args.source, "target": args.target, "paths": [p.to_dict() for p in paths]}

    if args.command == "group-paths":
        result = aggregate_group_paths(
            topology, args.source_group, args.dest_group,
            per_pair_limit=args.per_pair_limit,
            overall_limit=args.limit,
            config=config,
            cancel_token=token,
        )
        return result.to_dict()

    if args.command == "matrix":
        if args.groups:
            return group_cost_matrix(topology, groups=args.only, config=config,
                                     cancel_token=token).to_dict()
        return node_cost_matrix(topology, sources=args.only, targets=args.only, config=config,
                                cancel_token=token).to_dict()

    if args.command == "transit":
        return analyze_transit(topology, groups=args.groups, per_pair_limit=args.per_pair_limit,
                               config=config, cancel_token=token).to_dict()

    if args.command == "traffic":
        return traffic_flow(topology, args.source_group, args.dest_group,
                            per_pair_limit=args.per_pair_limit, config=config,
                            cancel_token=token).to_dict()

    if args.command == "trace":
        return [step.to_dict() for step in spf_trace(topology, args.source, args.target)]

    if args.command == "whatif":
        overrides: Dict[str, LinkOverride] = {}
        for link_id in args.fail:
            overrides[link_id] = LinkOverride(status="down")
        for entry in args.cost:
            overrides.update(entry)
        overridden = apply_overrides(topology, overrides)
        query = ImpactQuery(node_pairs=args.node_pair) if args.node_pair else None
        return diff_impact(topology, overridden, query=query, config=config,
                           cancel_token=token).to_dict()

    raise ValueError(f"Unknown command: {args.command}")


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the path analysis CLI"""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 0

    setup_logging(args.log_level)

    try:
        result = run_command(args)
    except NetVizError as e:
        logger.error(f"{args.command} failed: {e}")
        print(json.dumps({"error": type(e).__name__, "message": str(e)}))
        return 1
    except OSError as e:
        logger.error(f"Cannot read topology: {e}")
        print(json.dumps({"error": type(e).__name__, "message": str(e)}))
        return 2

    print(json.dumps(result, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
