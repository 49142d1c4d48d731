"""Validation package."""

from moneyflow.validation.validator import GraphValidator, issues_from_error

__all__ = ["GraphValidator", "issues_from_error"]
