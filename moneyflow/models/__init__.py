"""
Data Models Package

This package contains all Pydantic models used in Money Flow.
All data flowing through the system must conform to these schemas.
"""

from moneyflow.models.graph import (
    DEFAULT_ASSET_INTEREST_RATE,
    NODE_ADAPTER,
    NODE_CLASSES,
    PAYLOAD_FIELDS,
    AssetNode,
    BucketNode,
    ExpenseNode,
    IncomeNode,
    Link,
    LinkUpdate,
    Node,
    NodeType,
    NodeUpdate,
    SubItem,
    node_fields,
)
from moneyflow.models.results import (
    FlowStats,
    NodeBalance,
    OperationResult,
    OperationStatus,
    ValidationIssue,
    ValidationResult,
)
from moneyflow.models.simulation import SimulationConfig, Strategy
from moneyflow.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Graph models
    "DEFAULT_ASSET_INTEREST_RATE",
    "NODE_ADAPTER",
    "NODE_CLASSES",
    "PAYLOAD_FIELDS",
    "AssetNode",
    "BucketNode",
    "ExpenseNode",
    "IncomeNode",
    "Link",
    "LinkUpdate",
    "Node",
    "NodeType",
    "NodeUpdate",
    "SubItem",
    "node_fields",
    # Results
    "FlowStats",
    "NodeBalance",
    "OperationResult",
    "OperationStatus",
    "ValidationIssue",
    "ValidationResult",
    # Settings stored with the graph
    "SimulationConfig",
    "Strategy",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
