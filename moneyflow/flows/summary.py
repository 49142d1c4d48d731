"""
Read-only summaries for dashboards and profile cards.

Nothing here mutates the graph; charts and cards read these values.
"""

from typing import TYPE_CHECKING, Optional

from pydantic import BaseModel

from moneyflow.models.graph import AssetNode, NodeType
from moneyflow.models.results import FlowStats

if TYPE_CHECKING:
    from moneyflow.graph.store import FlowGraph


class ProfileSummary(BaseModel):
    """What a profile card shows."""

    name: str
    node_count: int
    total_wealth: float
    is_current: bool


class SubItemValue(BaseModel):
    name: str
    ratio: float
    value: float


def net_worth(
    graph: "FlowGraph",
    stats: Optional[FlowStats] = None,
    profile: Optional[str] = None,
) -> float:
    """
    Sum of bucket and asset balances visible to `profile`.

    When `stats` carries a projection, projected values are summed
    instead of current balances.
    """
    stats = stats or graph.calculate_flows(profile)
    total = 0.0
    for node in graph.filtered_nodes(profile):
        if not NodeType(node.type).holds_balance:
            continue
        if stats.is_projected:
            total += stats.future_values.get(node.id, 0.0)
        else:
            total += node.value
    return total


def profile_summaries(graph: "FlowGraph") -> list[ProfileSummary]:
    """
    One summary per profile, in profile order.

    Only nodes owned by the profile count; shared nodes belong to no card.
    """
    summaries = []
    for owner in graph.owners:
        owned = [node for node in graph.nodes if node.owner == owner]
        wealth = sum(
            node.value for node in owned if NodeType(node.type).holds_balance
        )
        summaries.append(ProfileSummary(
            name=owner,
            node_count=len(owned),
            total_wealth=wealth,
            is_current=owner == graph.current_profile,
        ))
    return summaries


def sub_item_breakdown(node: AssetNode) -> list[SubItemValue]:
    """Value of each sub-item, largest share first."""
    return [
        SubItemValue(name=item.name, ratio=item.ratio, value=node.value * item.ratio / 100)
        for item in node.sub_items
    ]
