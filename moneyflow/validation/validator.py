"""
Input Validation for the Money Graph

DESIGN DECISION: Validation happens at the boundary where user-supplied
values enter the graph, in two layers:

LAYER 1 - RANGE CHECKS (this module):
- Negative amounts and rates
- Percentages outside 0-100
- Sub-item ratios adding up to more than 100
- Payload fields sent to a node kind that does not carry them

LAYER 2 - SCHEMA CHECKS (pydantic):
- Types, required fields, non-empty names
- Converted into the same ValidationIssue shape by `issues_from_error`

The graph models stay permissive about ranges the projection math can
handle (e.g. a negative rate loaded from an old document still projects);
only new user input is held to the stricter rules.

IMPORTANT: Validation NEVER silently fixes issues. It reports them.
"""

from typing import Any, Optional

from pydantic import ValidationError

from moneyflow.models.graph import NodeType, node_fields
from moneyflow.models.results import ValidationIssue, ValidationResult


def issues_from_error(exc: ValidationError) -> list[ValidationIssue]:
    """Turn a pydantic ValidationError into validation issues."""
    issues = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ())) or "value"
        issues.append(ValidationIssue(
            field=location,
            issue_type=error.get("type", "invalid"),
            message=f"{location}: {error.get('msg', 'invalid value')}",
        ))
    return issues


def _number(values: dict[str, Any], key: str) -> Optional[float]:
    """Numeric value of `key`, or None when absent or not a number (pydantic reports those)."""
    value = values.get(key)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return value


class GraphValidator:
    """
    Validates user-supplied node, link and simulation values.

    All methods return a ValidationResult; none of them raise.
    """

    def validate_node_values(
        self,
        node_type: NodeType,
        values: dict[str, Any],
    ) -> ValidationResult:
        """
        Check node values against the rules for `node_type`.

        Args:
            node_type: Kind of the node after the change
            values: Field values to check (by field name). Every key
                must be a field `node_type` carries.
        """
        issues: list[ValidationIssue] = []

        unsupported = sorted(set(values) - node_fields(node_type))
        for field in unsupported:
            issues.append(ValidationIssue(
                field=field,
                issue_type="unsupported_field",
                message=f"{node_type.value} nodes do not have a {field}",
            ))

        name = values.get("name")
        if name is not None and not str(name).strip():
            issues.append(ValidationIssue(
                field="name",
                issue_type="missing",
                message="Node name must not be empty",
            ))

        value = _number(values, "value")
        if value is not None and value < 0 and not node_type.holds_balance:
            issues.append(ValidationIssue(
                field="value",
                issue_type="negative_value",
                message=f"Monthly {node_type.value} amount is negative ({value})",
                severity="warning",
            ))

        rate = _number(values, "interest_rate")
        if rate is not None and "interest_rate" not in unsupported:
            if rate < 0:
                issues.append(ValidationIssue(
                    field="interest_rate",
                    issue_type="negative_value",
                    message=f"Interest rate must not be negative ({rate})",
                ))
            elif rate > 1:
                issues.append(ValidationIssue(
                    field="interest_rate",
                    issue_type="suspicious_value",
                    message=f"Interest rate of {rate:.0%} per year looks unusually high",
                    severity="warning",
                ))

        weight = _number(values, "target_weight")
        if weight is not None and "target_weight" not in unsupported:
            if not 0 <= weight <= 100:
                issues.append(ValidationIssue(
                    field="target_weight",
                    issue_type="out_of_range",
                    message=f"Target weight must be between 0 and 100 ({weight})",
                ))

        sub_items = values.get("sub_items")
        if sub_items and "sub_items" not in unsupported:
            issues.extend(self.validate_sub_items(sub_items).issues)

        return ValidationResult(issues=issues)

    def validate_sub_items(self, sub_items: list) -> ValidationResult:
        """Each ratio must be in 0-100 and the ratios must not exceed 100 in total."""
        issues = []
        total = 0.0
        for index, item in enumerate(sub_items):
            ratio = _number(item if isinstance(item, dict) else getattr(item, "__dict__", {}), "ratio")
            if ratio is None:
                continue
            total += ratio
            if not 0 <= ratio <= 100:
                issues.append(ValidationIssue(
                    field=f"sub_items.{index}.ratio",
                    issue_type="out_of_range",
                    message=f"Sub-item ratio must be between 0 and 100 ({ratio})",
                ))
        if total > 100:
            issues.append(ValidationIssue(
                field="sub_items",
                issue_type="ratio_sum_exceeded",
                message=f"Sub-item ratios add up to {total:g}%, more than 100%",
            ))
        return ValidationResult(issues=issues)

    def validate_link_amount(self, amount: float) -> ValidationResult:
        issues = []
        if _number({"amount": amount}, "amount") is not None and amount < 0:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="negative_value",
                message=f"Link amount must not be negative ({amount})",
            ))
        return ValidationResult(issues=issues)

    def validate_simulation(self, values: dict[str, Any]) -> ValidationResult:
        issues = []
        months = _number(values, "months")
        if months is not None and months < 0:
            issues.append(ValidationIssue(
                field="months",
                issue_type="negative_value",
                message=f"Projection horizon must not be negative ({months})",
            ))
        inflation = _number(values, "inflation_rate")
        if inflation is not None and inflation < 0:
            issues.append(ValidationIssue(
                field="inflation_rate",
                issue_type="negative_value",
                message=f"Inflation rate must not be negative ({inflation})",
            ))
        return ValidationResult(issues=issues)
