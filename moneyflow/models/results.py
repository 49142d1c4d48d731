"""
Result Models for Money Flow

Every graph operation returns an OperationResult instead of raising or
silently doing nothing. Callers inspect `status` and react.

DESIGN DECISION: Rejections (duplicate link, self-loop, last profile) are
normal outcomes, not errors. They get their own statuses so callers can
tell "not performed" apart from "bad input" and "not found".
"""

from enum import Enum
from typing import Any, Generic, Optional, TypeVar

from pydantic import BaseModel, Field


T = TypeVar("T")


class OperationStatus(str, Enum):
    """Outcome of a graph operation."""
    OK = "ok"
    NOT_FOUND = "not_found"
    REJECTED_SELF_LOOP = "rejected_self_loop"
    REJECTED_DUPLICATE = "rejected_duplicate"
    REJECTED_LAST_PROFILE = "rejected_last_profile"
    INVALID = "invalid"

    @property
    def is_rejection(self) -> bool:
        return self.value.startswith("rejected_")


class ValidationIssue(BaseModel):
    """A single validation issue found in user-supplied values."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'negative_value', 'out_of_range')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        default="error",
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )


class ValidationResult(BaseModel):
    """Result of validating a set of user-supplied values."""

    issues: list[ValidationIssue] = Field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def is_valid(self) -> bool:
        return not self.has_errors

    @property
    def errors(self) -> list[ValidationIssue]:
        return [issue for issue in self.issues if issue.severity == "error"]


class OperationResult(BaseModel, Generic[T]):
    """
    Outcome of a graph operation.

    `value` holds the created/updated entity on success. It is the live
    object from the graph, not a copy.
    """

    status: OperationStatus
    value: Optional[T] = None
    message: Optional[str] = None
    issues: list[ValidationIssue] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.status == OperationStatus.OK

    @classmethod
    def success(cls, value: Any = None, message: Optional[str] = None) -> "OperationResult":
        return cls(status=OperationStatus.OK, value=value, message=message)

    @classmethod
    def not_found(cls, message: str) -> "OperationResult":
        return cls(status=OperationStatus.NOT_FOUND, message=message)

    @classmethod
    def rejected(cls, status: OperationStatus, message: str) -> "OperationResult":
        return cls(status=status, message=message)

    @classmethod
    def invalid(cls, issues: list[ValidationIssue]) -> "OperationResult":
        message = "; ".join(issue.message for issue in issues if issue.severity == "error")
        return cls(status=OperationStatus.INVALID, message=message, issues=issues)


class NodeBalance(BaseModel):
    """Monthly flow totals for one node."""

    inflow: float = Field(default=0.0, serialization_alias="in")
    outflow: float = Field(default=0.0, serialization_alias="out")
    net: float = 0.0


class FlowStats(BaseModel):
    """
    Aggregated monthly flows for one profile.

    Recomputed from scratch on every call; never cached.
    """

    profile: Optional[str] = None
    total_income: float = 0.0
    total_invested: float = 0.0
    total_expenses: float = 0.0
    node_balances: dict[int, NodeBalance] = Field(default_factory=dict)
    future_values: dict[int, float] = Field(default_factory=dict)
    months: int = Field(default=0, ge=0, description="Projection horizon used")

    @property
    def is_projected(self) -> bool:
        return self.months > 0

    def net(self, node_id: int) -> float:
        return self.node_balances[node_id].net
