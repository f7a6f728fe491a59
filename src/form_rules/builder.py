"""
Fluent rule authoring.

    rules = (
        RuleBuilder.create("profile")
        .when("maritalStatus").equals("married").show("spouseName")
        .when("age").less_than(18).then("alcoholPreference").hide()
        .build()
    )

Each completed `.when(...).<operator>(...).<action>(...)` chain appends one
rule with id "<prefix>_<n>". CommonRules and RuleBuilders wrap frequent
patterns.
"""

from typing import Any, Dict, List, Optional, Sequence

from form_rules.schemas.rule import (
    BaseCondition,
    ComplexCondition,
    ContextReference,
    FieldReference,
    FunctionReference,
    Rule,
)
from form_rules.validation.rule_linter import validate_rule


class RuleBuilder:
    """Accumulates rules built through condition and action chains."""

    def __init__(self, id_prefix: str = "rule"):
        self.id_prefix = id_prefix
        self._rules: List[Rule] = []

    @classmethod
    def create(cls, id_prefix: str = "rule") -> "RuleBuilder":
        return cls(id_prefix)

    def when(self, field_name: str) -> "ConditionBuilder":
        """Start a rule whose condition reads `field_name`."""
        return ConditionBuilder(self, field_name)

    def when_all(self, *conditions: Any) -> "ActionBuilder":
        """Start a rule requiring every condition (conditions as models or dicts)."""
        return ActionBuilder(self, ComplexCondition(operator="and", conditions=list(conditions)))

    def when_any(self, *conditions: Any) -> "ActionBuilder":
        return ActionBuilder(self, ComplexCondition(operator="or", conditions=list(conditions)))

    def when_not(self, condition: Any) -> "ActionBuilder":
        return ActionBuilder(self, ComplexCondition(operator="not", conditions=[condition]))

    def add_rule(self, rule: Rule) -> "RuleBuilder":
        self._rules.append(rule)
        return self

    def generate_id(self) -> str:
        return f"{self.id_prefix}_{len(self._rules) + 1}"

    def build(self) -> List[Rule]:
        return list(self._rules)


class ConditionBuilder:
    """Picks the comparison for a field; every method returns an ActionBuilder."""

    def __init__(self, rule_builder: RuleBuilder, field_name: str):
        self._builder = rule_builder
        self._field = field_name

    def _condition(self, operator: str, value: Any = None) -> "ActionBuilder":
        condition = BaseCondition(field=self._field, operator=operator, value=value)
        return ActionBuilder(self._builder, condition)

    # Basic comparison
    def equals(self, value: Any) -> "ActionBuilder":
        return self._condition("equals", value)

    def not_equals(self, value: Any) -> "ActionBuilder":
        return self._condition("not_equals", value)

    def greater_than(self, value: Any) -> "ActionBuilder":
        return self._condition("greater_than", value)

    def greater_than_or_equal(self, value: Any) -> "ActionBuilder":
        return self._condition("greater_than_or_equal", value)

    def less_than(self, value: Any) -> "ActionBuilder":
        return self._condition("less_than", value)

    def less_than_or_equal(self, value: Any) -> "ActionBuilder":
        return self._condition("less_than_or_equal", value)

    # Text
    def contains(self, value: Any) -> "ActionBuilder":
        return self._condition("contains", value)

    def not_contains(self, value: Any) -> "ActionBuilder":
        return self._condition("not_contains", value)

    def starts_with(self, value: Any) -> "ActionBuilder":
        return self._condition("starts_with", value)

    def ends_with(self, value: Any) -> "ActionBuilder":
        return self._condition("ends_with", value)

    def matches_regex(self, pattern: str) -> "ActionBuilder":
        return self._condition("matches_regex", pattern)

    def not_matches_regex(self, pattern: str) -> "ActionBuilder":
        return self._condition("not_matches_regex", pattern)

    # Membership and emptiness
    def is_in(self, values: Sequence[Any]) -> "ActionBuilder":
        return self._condition("in", list(values))

    def not_in(self, values: Sequence[Any]) -> "ActionBuilder":
        return self._condition("not_in", list(values))

    def is_empty(self) -> "ActionBuilder":
        return self._condition("is_empty")

    def is_not_empty(self) -> "ActionBuilder":
        return self._condition("is_not_empty")

    # Formats
    def has_email_format(self) -> "ActionBuilder":
        return self._condition("email_format")

    def has_url_format(self) -> "ActionBuilder":
        return self._condition("url_format")

    def has_phone_format(self) -> "ActionBuilder":
        return self._condition("phone_format")

    def has_credit_card_format(self) -> "ActionBuilder":
        return self._condition("credit_card_format")

    def has_uuid_format(self) -> "ActionBuilder":
        return self._condition("uuid_format")

    # Dates
    def before_date(self, value: Any) -> "ActionBuilder":
        return self._condition("before_date", value)

    def after_date(self, value: Any) -> "ActionBuilder":
        return self._condition("after_date", value)

    def is_weekend(self) -> "ActionBuilder":
        return self._condition("is_weekend")

    def is_business_day(self) -> "ActionBuilder":
        return self._condition("is_business_day")

    # Numeric
    def between(self, minimum: Any, maximum: Any) -> "ActionBuilder":
        return self._condition("between", [minimum, maximum])

    def not_between(self, minimum: Any, maximum: Any) -> "ActionBuilder":
        return self._condition("not_between", [minimum, maximum])

    def is_multiple_of(self, value: Any) -> "ActionBuilder":
        return self._condition("multiple_of", value)

    def is_integer(self) -> "ActionBuilder":
        return self._condition("is_integer")

    # Length
    def length_equals(self, length: int) -> "ActionBuilder":
        return self._condition("length_equals", length)

    def length_greater_than(self, length: int) -> "ActionBuilder":
        return self._condition("length_greater_than", length)

    def length_less_than(self, length: int) -> "ActionBuilder":
        return self._condition("length_less_than", length)

    # References
    def equals_field(self, field_name: str, property: Optional[str] = None) -> "ActionBuilder":
        return self._condition("equals", FieldReference(field_name=field_name, property=property))

    def equals_context(self, key: str) -> "ActionBuilder":
        return self._condition("equals", ContextReference(key=key))

    def equals_function(self, name: str, *args: Any) -> "ActionBuilder":
        return self._condition("equals", FunctionReference(name=name, args=list(args)))


class ActionBuilder:
    """Completes a rule with a single action and returns the RuleBuilder."""

    def __init__(self, rule_builder: RuleBuilder, condition: Any, description: Optional[str] = None):
        self._builder = rule_builder
        self._condition = condition
        self._description = description

    def described_as(self, description: str) -> "ActionBuilder":
        self._description = description
        return self

    def then(self, field_name: str) -> "FieldActionBuilder":
        return FieldActionBuilder(self, field_name)

    def add_action(self, action: Dict[str, Any]) -> RuleBuilder:
        rule = validate_rule(
            {
                "id": self._builder.generate_id(),
                "condition": self._condition,
                "actions": [action],
                "description": self._description,
                "enabled": True,
            }
        )
        return self._builder.add_rule(rule)

    def show(self, field_name: str) -> RuleBuilder:
        return self.add_action({"type": "show", "target": field_name})

    def hide(self, field_name: str) -> RuleBuilder:
        return self.add_action({"type": "hide", "target": field_name})

    def require(self, field_name: str) -> RuleBuilder:
        return self.add_action({"type": "set_value", "target": field_name, "params": {"required": True}})

    def make_optional(self, field_name: str) -> RuleBuilder:
        return self.add_action({"type": "set_value", "target": field_name, "params": {"required": False}})

    def disable(self, field_name: str) -> RuleBuilder:
        return self.add_action({"type": "disable", "target": field_name})

    def enable(self, field_name: str) -> RuleBuilder:
        return self.add_action({"type": "enable", "target": field_name})


class FieldActionBuilder:
    """`then(field)` form: the action targets the field picked in `then`."""

    def __init__(self, action_builder: ActionBuilder, field_name: str):
        self._actions = action_builder
        self._field = field_name

    def show(self) -> RuleBuilder:
        return self._actions.show(self._field)

    def hide(self) -> RuleBuilder:
        return self._actions.hide(self._field)

    def require(self) -> RuleBuilder:
        return self._actions.require(self._field)

    def make_optional(self) -> RuleBuilder:
        return self._actions.make_optional(self._field)

    def disable(self) -> RuleBuilder:
        return self._actions.disable(self._field)

    def enable(self) -> RuleBuilder:
        return self._actions.enable(self._field)

    def set_value(self, value: Any) -> RuleBuilder:
        return self._actions.add_action({"type": "set_value", "target": self._field, "value": value})

    def clear_value(self) -> RuleBuilder:
        return self._actions.add_action({"type": "clear_value", "target": self._field})

    def set_options(self, options: Any) -> RuleBuilder:
        return self._actions.add_action({"type": "set_options", "target": self._field, "value": options})

    def add_class(self, class_name: str) -> RuleBuilder:
        return self._actions.add_action(
            {"type": "add_class", "target": self._field, "params": {"class": class_name}}
        )

    def remove_class(self, class_name: str) -> RuleBuilder:
        return self._actions.add_action(
            {"type": "remove_class", "target": self._field, "params": {"class": class_name}}
        )

    def warn(self, message: str) -> RuleBuilder:
        return self._actions.add_action(
            {"type": "show_warning", "target": self._field, "params": {"message": message}}
        )

    def error(self, message: str) -> RuleBuilder:
        return self._actions.add_action(
            {"type": "show_error", "target": self._field, "params": {"message": message}}
        )


class CommonRules:
    """Ready-made rules for frequent form patterns."""

    @staticmethod
    def show_when(target_field: str, condition_field: str, value: Any) -> Rule:
        return RuleBuilder().when(condition_field).equals(value).show(target_field).build()[0]

    @staticmethod
    def hide_when(target_field: str, condition_field: str, value: Any) -> Rule:
        return RuleBuilder().when(condition_field).equals(value).hide(target_field).build()[0]

    @staticmethod
    def require_when(target_field: str, condition_field: str, value: Any) -> Rule:
        return RuleBuilder().when(condition_field).equals(value).require(target_field).build()[0]

    @staticmethod
    def show_fields_when(target_fields: Sequence[str], condition_field: str, value: Any) -> List[Rule]:
        return [CommonRules.show_when(field, condition_field, value) for field in target_fields]

    @staticmethod
    def adult_only_fields(age_field: str, target_fields: Sequence[str]) -> List[Rule]:
        return [
            RuleBuilder().when(age_field).greater_than_or_equal(18).show(field).build()[0]
            for field in target_fields
        ]


class RuleBuilders:
    """Rule constructors taking plain condition and action mappings."""

    @staticmethod
    def when_field_equals(field_name: str, value: Any, actions: List[Dict[str, Any]]) -> Rule:
        return validate_rule(
            {"condition": {"field": field_name, "operator": "equals", "value": value}, "actions": actions}
        )

    @staticmethod
    def show_when_field_equals(dependent_field: str, target_field: str, value: Any) -> Rule:
        return RuleBuilders.when_field_equals(
            dependent_field, value, [{"type": "show", "target": target_field}]
        )

    @staticmethod
    def when_all_conditions(conditions: List[Dict[str, Any]], actions: List[Dict[str, Any]]) -> Rule:
        return validate_rule({"condition": {"operator": "and", "conditions": conditions}, "actions": actions})

    @staticmethod
    def when_any_condition(conditions: List[Dict[str, Any]], actions: List[Dict[str, Any]]) -> Rule:
        return validate_rule({"condition": {"operator": "or", "conditions": conditions}, "actions": actions})

