"""Rule engine: resolver, condition evaluator, orchestrator, reducer, controller."""

from form_rules.engine.comparisons import COMPARATORS, evaluate_comparison
from form_rules.engine.conditions import (
    evaluate_base_condition,
    evaluate_complex_condition,
    evaluate_rule_condition,
    subject_field,
)
from form_rules.engine.resolver import get_nested_property, resolve_dynamic_value
from form_rules.engine.reducer import RuleState, reduce_rule_state

__all__ = [
    "COMPARATORS",
    "RuleState",
    "evaluate_base_condition",
    "evaluate_comparison",
    "evaluate_complex_condition",
    "evaluate_rule_condition",
    "get_nested_property",
    "reduce_rule_state",
    "resolve_dynamic_value",
    "subject_field",
]
