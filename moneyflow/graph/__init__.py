"""Graph store package."""

from moneyflow.graph.store import FlowGraph

__all__ = ["FlowGraph"]
