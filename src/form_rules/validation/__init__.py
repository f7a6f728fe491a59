"""Authoring-time validation of form rules."""

from form_rules.validation.rule_linter import (
    LintReport,
    LintViolation,
    Severity,
    ViolationType,
    lint_rules,
    validate_rule,
)

__all__ = [
    "LintReport",
    "LintViolation",
    "Severity",
    "ViolationType",
    "lint_rules",
    "validate_rule",
]
