"""
Dynamic value resolution.

Turns a DynamicValue (literal, field reference, context reference or
function call) into a concrete value for the current evaluation context.
Path lookups never raise on missing data; only an unregistered function
name is a hard error.
"""

import logging
from collections.abc import Mapping, Sequence
from typing import Any, Callable, Dict, Optional

from pydantic import ValidationError as PydanticValidationError

from form_rules.errors import MalformedRuleError, UnknownFunctionError
from form_rules.schemas.rule import (
    ContextReference,
    FieldReference,
    FunctionReference,
    RuleContext,
    parse_dynamic_value,
)

logger = logging.getLogger(__name__)

CustomFunctions = Dict[str, Callable[..., Any]]
TransformFunctions = Dict[str, Callable[[Any], Any]]


def _step(current: Any, key: str) -> Any:
    if isinstance(current, Mapping):
        return current.get(key)
    # Numeric segments index into lists: "items.0.name"
    if isinstance(current, Sequence) and not isinstance(current, (str, bytes)):
        if key.isdigit():
            index = int(key)
            if index < len(current):
                return current[index]
    return None


def get_nested_property(obj: Any, path: str) -> Any:
    """
    Look up a dotted path inside nested mappings.

    Args:
        obj: Root object (mapping or list)
        path: Dotted path, e.g. "user.address.city" or "items.0.sku"

    Returns:
        The value at the path, or None as soon as a segment is missing or an
        intermediate value is not a container
    """
    if obj is None or not path:
        return None

    current = obj
    for key in path.split("."):
        current = _step(current, key)
        if current is None:
            return None
    return current


def _is_container(value: Any) -> bool:
    if isinstance(value, Mapping):
        return True
    return isinstance(value, Sequence) and not isinstance(value, (str, bytes))


def resolve_dynamic_value(
    value: Any,
    context: RuleContext,
    custom_functions: Optional[CustomFunctions] = None,
    transform_functions: Optional[TransformFunctions] = None,
) -> Any:
    """
    Resolve a DynamicValue against the evaluation context.

    Args:
        value: Literal or FieldReference / ContextReference / FunctionReference;
            reference-shaped mappings ({"type": "function", ...}) are parsed first
        context: Current evaluation context
        custom_functions: Registry for FunctionReference lookups
        transform_functions: Passed through to nested resolutions

    Returns:
        The resolved value; literals (lists and dicts included) are returned as-is

    Raises:
        UnknownFunctionError: If a FunctionReference names an unregistered function
        MalformedRuleError: If a reference-shaped mapping is missing required keys
    """
    custom_functions = custom_functions or {}

    if isinstance(value, Mapping):
        try:
            value = parse_dynamic_value(value)
        except PydanticValidationError as e:
            raise MalformedRuleError(f"Malformed {value.get('type')} reference", [str(e)])

    if isinstance(value, FieldReference):
        field_value = context.form_data.get(value.field_name)
        if value.property and _is_container(field_value):
            return get_nested_property(field_value, value.property)
        return field_value

    if isinstance(value, ContextReference):
        return get_nested_property(context.as_lookup(), value.key)

    if isinstance(value, FunctionReference):
        func = custom_functions.get(value.name)
        if not callable(func):
            raise UnknownFunctionError(value.name)
        resolved_args = [
            resolve_dynamic_value(arg, context, custom_functions, transform_functions)
            for arg in value.args
        ]
        logger.debug(f"Calling function '{value.name}' with {len(resolved_args)} args")
        return func(*resolved_args)

    return value
