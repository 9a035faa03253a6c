"""
End-to-End What-If Demo

Builds a small three-country topology, then walks through path search,
group aggregation, transit analysis, traffic flow and a what-if
comparison of two maintenance scenarios.
"""

from netvizpro import (
    analyze_transit,
    compare_scenarios,
    find_group_paths,
    find_paths,
    group_cost_matrix,
    parse_topology,
    traffic_flow,
)
from netvizpro.logging_setup import setup_logging
from netvizpro.whatif import fail_link, set_cost


TOPOLOGY = {
    "nodes": [
        {"id": "deu-r1", "country": "DEU", "hostname": "fra-core-01"},
        {"id": "deu-r2", "country": "DEU", "hostname": "ber-core-01"},
        {"id": "che-r1", "country": "CHE", "hostname": "zrh-core-01"},
        {"id": "fra-r1", "country": "FRA", "hostname": "par-core-01"},
        {"id": "fra-r2", "country": "FRA", "hostname": "lyo-core-01"},
    ],
    "links": [
        {"source": "deu-r1", "target": "che-r1", "cost": 10},
        {"source": "che-r1", "target": "fra-r2", "cost": 10, "reverse_cost": 30},
        {"source": "deu-r1", "target": "deu-r2", "cost": 1},
        {"source": "fra-r1", "target": "fra-r2", "cost": 1},
        {"source": "deu-r2", "target": "fra-r1", "cost": 100},
    ],
}


def print_header(title):
    print()
    print("=" * 70)
    print(f"  {title}")
    print("=" * 70)


def main():
    """Run complete demo"""
    setup_logging("WARNING")
    topology = parse_topology(TOPOLOGY)
    print(f"Loaded {topology!r}: {topology.summary()}")

    print_header("Ranked paths deu-r2 -> fra-r1")
    for path in find_paths(topology, "deu-r2", "fra-r1", limit=3):
        print(f"  {path.total_cost:>5}  {' > '.join(path.nodes)}")

    print_header("Group paths DEU -> FRA")
    for path in find_group_paths(topology, "DEU", "FRA", overall_limit=4):
        print(f"  {path.total_cost:>5}  {' > '.join(path.nodes)}")

    print_header("Group cost matrix")
    matrix = group_cost_matrix(topology)
    print("        " + "".join(f"{c:>8}" for c in matrix.columns))
    for row in matrix.to_rows():
        print(f"{row['row']:>8}" + "".join(f"{row['costs'][c]:>8}" for c in matrix.columns))

    print_header("Transit hubs")
    for hub in analyze_transit(topology).hubs:
        print(f"  {hub.group}: {hub.transit_path_count} paths, criticality "
              f"{hub.criticality_score} ({hub.risk_level}), "
              f"alternatives: {'yes' if hub.alternative_available else 'no'}")

    print_header("Traffic flow DEU -> FRA")
    flow = traffic_flow(topology, "DEU", "FRA")
    print(f"  {flow.total_paths} paths analysed")
    for usage in flow.links:
        print(f"  {usage.link_id:<16} {usage.path_count:>3} paths  {usage.traffic_score:5.1f}%  {usage.load_level}")

    print_header("Scenario comparison")
    reports = compare_scenarios(topology, {
        "Swiss core maintenance": fail_link("deu-r1-che-r1"),
        "Raise DEU-FRA backup cost": set_cost("deu-r2-fra-r1", 200),
    })
    for report in reports:
        print(f"  {report.scenario}: risk {report.risk_score}, "
              f"{report.pairs_affected}/{report.pairs_evaluated} pairs affected")
        for change in report.changes[:3]:
            print(f"    [{change.severity.value:>8}] {change.source} -> {change.destination}: "
                  f"{change.to_dict()['before_cost']} -> {change.to_dict()['after_cost']}")
        for impact in report.link_impacts:
            print(f"    {impact.link_id}: {impact.affected_count} pairs rerouted, "
                  f"downstream {', '.join(impact.downstream_nodes) or 'none'}")
    print(f"\nBest scenario: {reports[0].scenario}")


if __name__ == "__main__":
    main()
