"""
Condition evaluation.

Entry points:
- evaluate_base_condition: one field comparison
- evaluate_complex_condition: and / or / not over child conditions
- evaluate_rule_condition: dispatch on the condition shape

Error policy: resolution and comparison errors turn a base condition False.
UnknownOperatorError and UnknownFunctionError propagate out of the base and
top-level entry points, but a child raising either inside a complex
condition counts as False for that child.
"""

import logging
from collections.abc import Mapping
from typing import Any, List, Optional

from pydantic import TypeAdapter, ValidationError as PydanticValidationError

from form_rules.engine.comparisons import evaluate_comparison
from form_rules.engine.resolver import (
    CustomFunctions,
    TransformFunctions,
    resolve_dynamic_value,
)
from form_rules.errors import MalformedRuleError, UnknownFunctionError, UnknownOperatorError
from form_rules.schemas.rule import BaseCondition, ComplexCondition, RuleCondition, RuleContext

logger = logging.getLogger(__name__)

HARD_ERRORS = (UnknownOperatorError, UnknownFunctionError)

_CONDITION_ADAPTER: TypeAdapter = TypeAdapter(RuleCondition)


def parse_condition(condition: Any) -> Any:
    """
    Parse a condition mapping in the authored shape into a condition model.

    Models pass through unchanged.

    Raises:
        MalformedRuleError: If the mapping is not a valid base or complex condition
    """
    if not isinstance(condition, Mapping):
        return condition
    try:
        return _CONDITION_ADAPTER.validate_python(condition)
    except PydanticValidationError as e:
        raise MalformedRuleError(
            "Malformed condition",
            [f"{'.'.join(str(p) for p in err['loc']) or 'condition'}: {err['msg']}" for err in e.errors()],
        )


def evaluate_base_condition(
    condition: BaseCondition,
    context: RuleContext,
    custom_functions: Optional[CustomFunctions] = None,
    transform_functions: Optional[TransformFunctions] = None,
) -> bool:
    """
    Evaluate a single field comparison.

    Args:
        condition: Base condition to evaluate
        context: Evaluation context (form_data holds the field value)
        custom_functions: Registry for function references
        transform_functions: Registry for `condition.transform`

    Returns:
        Comparison result; False if resolution or comparison fails

    Raises:
        UnknownOperatorError: Operator outside the vocabulary
        UnknownFunctionError: Function reference to an unregistered name
    """
    transform_functions = transform_functions or {}
    try:
        field_value = context.form_data.get(condition.field)

        if condition.transform:
            transform = transform_functions.get(condition.transform)
            if transform is not None:
                field_value = transform(field_value)
            else:
                logger.debug(f"Transform '{condition.transform}' not registered; using raw value")

        comparison_value = resolve_dynamic_value(
            condition.value, context, custom_functions, transform_functions
        )
        return evaluate_comparison(field_value, condition.operator, comparison_value)
    except HARD_ERRORS:
        raise
    except Exception as e:
        logger.warning(f"Condition on '{condition.field}' failed, treating as false: {e}")
        return False


def evaluate_complex_condition(
    condition: ComplexCondition,
    context: RuleContext,
    custom_functions: Optional[CustomFunctions] = None,
    transform_functions: Optional[TransformFunctions] = None,
) -> bool:
    """
    Combine child results with and / or / not.

    `and` over no children is True, `or` over no children is False, and
    `not` negates the first child only.

    Raises:
        UnknownOperatorError: If the logical operator itself is unknown
    """
    operator = condition.operator
    if operator not in ("and", "or", "not"):
        raise UnknownOperatorError(operator)

    results: List[bool] = []
    for child in condition.conditions:
        try:
            results.append(
                evaluate_rule_condition(child, context, custom_functions, transform_functions)
            )
        except HARD_ERRORS as e:
            logger.warning(f"Nested condition failed, treating as false: {e}")
            results.append(False)

    if operator == "and":
        return all(results)
    if operator == "or":
        return any(results)
    if not results:
        return True
    return not results[0]


def evaluate_rule_condition(
    condition: Any,
    context: RuleContext,
    custom_functions: Optional[CustomFunctions] = None,
    transform_functions: Optional[TransformFunctions] = None,
) -> bool:
    """
    Evaluate a base or complex condition.

    Mappings in the authored shape are parsed first; other unrecognized
    shapes are False.

    Raises:
        MalformedRuleError: Mapping that is not a valid condition
        UnknownOperatorError: Operator outside the vocabulary (base condition)
        UnknownFunctionError: Unregistered function (base condition)
    """
    condition = parse_condition(condition)
    if isinstance(condition, ComplexCondition):
        return evaluate_complex_condition(condition, context, custom_functions, transform_functions)
    if isinstance(condition, BaseCondition):
        return evaluate_base_condition(condition, context, custom_functions, transform_functions)

    logger.warning(f"Unknown condition type: {type(condition).__name__}")
    return False


def subject_field(condition: Any) -> Optional[str]:
    """First field named by a base condition, depth-first; None if there is none."""
    if isinstance(condition, BaseCondition):
        return condition.field
    if isinstance(condition, ComplexCondition):
        for child in condition.conditions:
            found = subject_field(child)
            if found is not None:
                return found
    return None


def referenced_fields(condition: Any) -> List[str]:
    """All field names a condition reads, in depth-first order without duplicates."""
    found: List[str] = []

    def visit(node: Any) -> None:
        if isinstance(node, BaseCondition):
            if node.field not in found:
                found.append(node.field)
        elif isinstance(node, ComplexCondition):
            for child in node.conditions:
                visit(child)

    visit(condition)
    return found
