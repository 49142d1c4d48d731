"""
Projection Engine

Forecasts balances forward with monthly compounding.

For a balance P, a constant net monthly flow PMT and a monthly rate
r = annual_rate / 12, the value after n months is

    FV = P * (1 + r)^n + PMT * ((1 + r)^n - 1) / r      (r != 0)
    FV = P + PMT * n                                     (r == 0)

Real values divide FV by (1 + inflation / 12)^n.

The net flow is assumed to repeat unchanged every month of the horizon.
Negative rates go through the compounding branch; the formula holds for
any r != 0.
"""

from typing import Iterable, Mapping, Optional

from moneyflow.models.graph import Node, NodeType
from moneyflow.models.results import NodeBalance
from moneyflow.models.simulation import SimulationConfig


def future_value(
    value: float,
    interest_rate: float,
    monthly_flow: float,
    months: int,
    annual_inflation: float = 0.0,
    use_real_value: bool = False,
) -> float:
    """
    Project a balance `months` months forward.

    Args:
        value: Current balance (P)
        interest_rate: Annual nominal rate as a fraction
        monthly_flow: Net monthly contribution (PMT), may be negative
        months: Horizon; 0 returns `value` unchanged
        annual_inflation: Annual inflation used for the real-value discount
        use_real_value: Discount the nominal result by cumulative inflation

    Returns:
        Projected nominal (or real) value
    """
    if months <= 0:
        return value

    r = interest_rate / 12
    if r != 0:
        growth = (1 + r) ** months
        projected = value * growth + monthly_flow * ((growth - 1) / r)
    else:
        projected = value + monthly_flow * months

    if use_real_value:
        projected = projected / (1 + annual_inflation / 12) ** months

    return projected


def project_node(
    node: Node,
    monthly_flow: float,
    simulation: SimulationConfig,
    months: Optional[int] = None,
) -> float:
    """
    Projected value of one node.

    Income and expense nodes are monthly rates, not balances; they keep
    their nominal value.
    """
    if not NodeType(node.type).holds_balance:
        return node.value
    return future_value(
        value=node.value,
        interest_rate=node.interest_rate,
        monthly_flow=monthly_flow,
        months=simulation.months if months is None else months,
        annual_inflation=simulation.inflation_rate,
        use_real_value=simulation.is_real_value,
    )


def project_values(
    nodes: Iterable[Node],
    balances: Mapping[int, NodeBalance],
    simulation: SimulationConfig,
) -> dict[int, float]:
    """Projected value for every node, keyed by node id."""
    return {
        node.id: project_node(node, balances[node.id].net, simulation)
        for node in nodes
    }


def projection_series(
    node: Node,
    monthly_flow: float,
    simulation: SimulationConfig,
    step: int = 12,
) -> list[tuple[int, float]]:
    """
    (month, value) points from now to the simulation horizon.

    One point every `step` months, always including month 0 and the
    horizon itself. Used for year-by-year charts.
    """
    if step < 1:
        raise ValueError(f"step must be at least 1, got {step}")

    horizon = simulation.months
    points = list(range(0, horizon + 1, step))
    if points[-1] != horizon:
        points.append(horizon)
    return [
        (month, project_node(node, monthly_flow, simulation, months=month))
        for month in points
    ]
