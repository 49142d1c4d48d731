"""Shared fixtures for Money Flow tests."""

import pytest

from moneyflow.audit import AuditLogger
from moneyflow.graph import FlowGraph
from moneyflow.models.graph import NodeType
from moneyflow.orchestrator import MoneyFlowSession
from moneyflow.persistence import StorageManager
from moneyflow.services.storage import InMemoryAuditStorage, InMemoryKeyValueStorage


@pytest.fixture
def graph() -> FlowGraph:
    return FlowGraph()


@pytest.fixture
def salary_graph() -> FlowGraph:
    """income(5,000,000) -> bucket(0) at 1,000,000 per month."""
    g = FlowGraph()
    salary = g.add_node(NodeType.INCOME, "Salary", 5_000_000).value
    account = g.add_node(NodeType.BUCKET, "Account", 0).value
    g.add_link(salary.id, account.id, 1_000_000)
    return g


@pytest.fixture
def kv_storage() -> InMemoryKeyValueStorage:
    return InMemoryKeyValueStorage()


@pytest.fixture
def audit_storage() -> InMemoryAuditStorage:
    return InMemoryAuditStorage()


@pytest.fixture
def session(kv_storage, audit_storage) -> MoneyFlowSession:
    return MoneyFlowSession(
        storage_manager=StorageManager(kv_storage),
        audit_logger=AuditLogger(audit_storage),
        seed_defaults=False,
    )
