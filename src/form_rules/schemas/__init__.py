"""Rule data model and operator registry."""

from form_rules.schemas.field_state import FieldConfig
from form_rules.schemas.operators import (
    CATEGORY_LABELS,
    CATEGORY_ORDER,
    OPERATOR_REGISTRY,
    ComparisonOperator,
    LogicalOperator,
    OperatorCategory,
    OperatorSpec,
    get_operator_spec,
    get_operators_by_category,
    get_operators_for_field_type,
    is_valid_comparison_operator,
    is_valid_logical_operator,
)
from form_rules.schemas.rule import (
    BaseCondition,
    ComplexCondition,
    ContextReference,
    DynamicValue,
    FieldReference,
    FunctionReference,
    Rule,
    RuleAction,
    RuleCondition,
    RuleContext,
    RuleEvaluationResult,
    RuleSet,
    is_reference,
    parse_dynamic_value,
)

__all__ = [
    "BaseCondition",
    "CATEGORY_LABELS",
    "CATEGORY_ORDER",
    "ComparisonOperator",
    "ComplexCondition",
    "ContextReference",
    "DynamicValue",
    "FieldConfig",
    "FieldReference",
    "FunctionReference",
    "LogicalOperator",
    "OPERATOR_REGISTRY",
    "OperatorCategory",
    "OperatorSpec",
    "Rule",
    "RuleAction",
    "RuleCondition",
    "RuleContext",
    "RuleEvaluationResult",
    "RuleSet",
    "get_operator_spec",
    "get_operators_by_category",
    "get_operators_for_field_type",
    "is_reference",
    "is_valid_comparison_operator",
    "is_valid_logical_operator",
    "parse_dynamic_value",
]
