"""Flow aggregation, projection and summaries."""

from moneyflow.flows.aggregator import calculate_flows
from moneyflow.flows.projection import (
    future_value,
    project_node,
    project_values,
    projection_series,
)
from moneyflow.flows.summary import (
    ProfileSummary,
    SubItemValue,
    net_worth,
    profile_summaries,
    sub_item_breakdown,
)

__all__ = [
    "calculate_flows",
    "future_value",
    "project_node",
    "project_values",
    "projection_series",
    "ProfileSummary",
    "SubItemValue",
    "net_worth",
    "profile_summaries",
    "sub_item_breakdown",
]
