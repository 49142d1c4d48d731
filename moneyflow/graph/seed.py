"""
Sample graph for first-time users.

Salary lands in a main account, which feeds an ISA and a living-costs
bucket; fixed expenses are paid from the living-costs bucket.
"""

from moneyflow.graph.store import FlowGraph
from moneyflow.models.graph import NodeType


def seed_default_graph(graph: FlowGraph) -> FlowGraph:
    """Add the sample nodes and links to `graph` and return it."""
    salary = graph.add_node(NodeType.INCOME, "급여", 3_500_000).value
    main = graph.add_node(NodeType.BUCKET, "급여통장", 0).value
    isa = graph.add_node(NodeType.ASSET, "ISA 계좌", 25_000_000).value
    living = graph.add_node(NodeType.BUCKET, "생활비", 1_000_000).value
    graph.add_node(NodeType.ASSET, "해외주식", 20_000_000)

    rent = graph.add_node(NodeType.EXPENSE, "주거", 500_000).value
    telecom = graph.add_node(NodeType.EXPENSE, "통신비", 60_000).value
    subscriptions = graph.add_node(NodeType.EXPENSE, "AI구독료", 30_000).value

    graph.add_link(salary.id, main.id, 3_500_000)
    graph.add_link(main.id, isa.id, 1_000_000)
    graph.add_link(main.id, living.id, 1_000_000)
    graph.add_link(living.id, rent.id, 500_000)
    graph.add_link(living.id, telecom.id, 60_000)
    graph.add_link(living.id, subscriptions.id, 30_000)
    return graph
