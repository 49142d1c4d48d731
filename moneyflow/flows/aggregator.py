"""
Flow Aggregator

Computes monthly inflow, outflow and net per node plus the income,
invested and expense totals for one profile.

DESIGN DECISION: Stats are recomputed from scratch on every call.
Graphs are tens of nodes, and there is no cache to invalidate.

A link counts when at least one endpoint is visible to the profile.
Links between two profiles' nodes are therefore seen from both sides.
"""

from typing import TYPE_CHECKING, Optional

from moneyflow.flows.projection import project_values
from moneyflow.models.graph import NodeType
from moneyflow.models.results import FlowStats, NodeBalance
from moneyflow.models.simulation import SimulationConfig

if TYPE_CHECKING:
    from moneyflow.graph.store import FlowGraph


def calculate_flows(
    graph: "FlowGraph",
    active_profile: Optional[str] = None,
    simulation: Optional[SimulationConfig] = None,
) -> FlowStats:
    """
    Aggregate the graph's monthly flows.

    Args:
        graph: The money graph
        active_profile: Profile to aggregate for; None means the graph's
            current profile, an empty string covers every node
        simulation: Projection settings; defaults to the graph's own

    Returns:
        FlowStats with balances for every node (not only visible ones,
        since hidden nodes can still be link endpoints) and projected
        values when the horizon is above zero
    """
    if active_profile is None:
        active_profile = graph.current_profile
    simulation = simulation or graph.simulation
    visible = {node.id for node in graph.nodes if node.belongs_to(active_profile)}
    nodes_by_id = {node.id: node for node in graph.nodes}

    stats = FlowStats(profile=active_profile or None)
    stats.node_balances = {node.id: NodeBalance() for node in graph.nodes}

    for node in graph.nodes:
        if node.type == NodeType.INCOME and node.id in visible:
            stats.total_income += node.value

    for link in graph.links:
        if link.source not in visible and link.target not in visible:
            continue

        if link.target in stats.node_balances:
            stats.node_balances[link.target].inflow += link.amount
        if link.source in stats.node_balances:
            stats.node_balances[link.source].outflow += link.amount

        target = nodes_by_id.get(link.target)
        if target is not None and target.id in visible:
            if target.type == NodeType.ASSET:
                stats.total_invested += link.amount
            elif target.type == NodeType.EXPENSE:
                stats.total_expenses += link.amount

    for balance in stats.node_balances.values():
        balance.net = balance.inflow - balance.outflow

    if simulation.months > 0:
        stats.months = simulation.months
        stats.future_values = project_values(graph.nodes, stats.node_balances, simulation)
    else:
        stats.future_values = {node.id: node.value for node in graph.nodes}

    return stats
