"""Unit tests for rule models and the operator registry."""

import pytest
from pydantic import ValidationError

from form_rules.schemas.operators import (
    CATEGORY_ORDER,
    OPERATOR_REGISTRY,
    ComparisonOperator,
    OperatorCategory,
    expects_array,
    expects_range,
    get_operator_spec,
    get_operators_by_category,
    get_operators_for_field_type,
    is_valid_comparison_operator,
    is_valid_logical_operator,
    requires_value,
)
from form_rules.schemas.rule import (
    BaseCondition,
    ComplexCondition,
    ContextReference,
    FieldReference,
    FunctionReference,
    Rule,
    RuleContext,
    RuleEvaluationResult,
    RuleSet,
    is_reference,
)


class TestDynamicValues:
    def test_reference_mappings_become_models(self):
        condition = BaseCondition.model_validate(
            {"field": "a", "operator": "equals", "value": {"type": "field", "fieldName": "b", "property": "x.y"}}
        )
        assert isinstance(condition.value, FieldReference)
        assert condition.value.field_name == "b"
        assert condition.value.property == "x.y"

    def test_snake_case_field_name_accepted(self):
        assert FieldReference.model_validate({"field_name": "b"}).field_name == "b"

    def test_function_args_parsed_recursively(self):
        ref = FunctionReference.model_validate(
            {"name": "f", "args": [1, {"type": "context", "key": "user.id"}]}
        )
        assert ref.args[0] == 1
        assert isinstance(ref.args[1], ContextReference)

    def test_null_args_become_empty_list(self):
        assert FunctionReference.model_validate({"name": "f", "args": None}).args == []

    def test_plain_mapping_stays_literal(self):
        """A mapping whose type is not a reference kind is a literal value."""
        condition = BaseCondition.model_validate(
            {"field": "a", "operator": "equals", "value": {"type": "other", "x": 1}}
        )
        assert condition.value == {"type": "other", "x": 1}
        assert not is_reference(condition.value)

    def test_malformed_reference_rejected(self):
        with pytest.raises(ValidationError):
            BaseCondition.model_validate({"field": "a", "operator": "equals", "value": {"type": "field"}})


class TestConditions:
    def test_recursive_parsing(self):
        condition = ComplexCondition.model_validate(
            {
                "operator": "or",
                "conditions": [
                    {"field": "a", "operator": "is_empty"},
                    {"operator": "not", "conditions": [{"field": "b", "operator": "is_empty"}]},
                ],
            }
        )
        assert isinstance(condition.conditions[0], BaseCondition)
        assert isinstance(condition.conditions[1], ComplexCondition)
        assert isinstance(condition.conditions[1].conditions[0], BaseCondition)

    def test_unknown_operator_kept_as_string(self):
        """Operator names are checked at evaluation and lint time, not parse time."""
        assert BaseCondition(field="a", operator="whatever").operator == "whatever"

    def test_shapeless_condition_rejected(self):
        with pytest.raises(ValidationError):
            Rule.model_validate({"condition": {"operator": "equals"}, "actions": []})


class TestRule:
    def test_actions_tagged_union(self):
        rule = Rule.model_validate(
            {
                "condition": {"field": "a", "operator": "is_empty"},
                "actions": [
                    {"type": "show", "target": "b"},
                    {"type": "set_value", "target": "b", "value": None},
                    {"type": "add_class", "params": {"class": "x"}},
                ],
            }
        )
        assert [a.type for a in rule.actions] == ["show", "set_value", "add_class"]
        assert rule.actions[1].has_value is True
        assert rule.actions[0].has_value is False
        assert rule.actions[2].params == {"class": "x"}

    def test_unknown_action_type_rejected(self):
        with pytest.raises(ValidationError):
            Rule.model_validate({"condition": {"field": "a", "operator": "is_empty"}, "actions": [{"type": "explode"}]})

    def test_missing_actions_rejected(self):
        with pytest.raises(ValidationError):
            Rule.model_validate({"condition": {"field": "a", "operator": "is_empty"}})

    def test_camel_case_aliases(self):
        rule = Rule.model_validate(
            {"condition": {"field": "a", "operator": "is_empty"}, "actions": [], "debounceMs": 250}
        )
        assert rule.debounce_ms == 250
        assert rule.enabled is True

    def test_negative_debounce_rejected(self):
        with pytest.raises(ValidationError):
            Rule.model_validate({"condition": {"field": "a", "operator": "is_empty"}, "actions": [], "debounceMs": -1})

    def test_rule_is_frozen(self):
        rule = Rule.model_validate({"id": "r", "condition": {"field": "a", "operator": "is_empty"}, "actions": []})
        with pytest.raises(ValidationError):
            rule.id = "other"

    def test_label(self):
        condition = {"field": "a", "operator": "is_empty"}
        assert Rule.model_validate({"id": "r1", "name": "n", "condition": condition, "actions": []}).label == "r1"
        assert Rule.model_validate({"name": "n", "condition": condition, "actions": []}).label == "n"
        assert Rule.model_validate({"condition": condition, "actions": []}).label == "<anonymous>"

    def test_rule_set_global_alias(self):
        rule_set = RuleSet.model_validate({"name": "s", "global": True, "rules": []})
        assert rule_set.global_ is True


class TestContextAndResult:
    def test_form_data_alias(self):
        ctx = RuleContext.model_validate({"formData": {"a": 1}, "tenant": "acme"})
        assert ctx.form_data == {"a": 1}
        lookup = ctx.as_lookup()
        assert lookup["formData"] == lookup["form_data"] == {"a": 1}
        assert lookup["tenant"] == "acme"

    def test_result_dump_by_alias(self):
        result = RuleEvaluationResult(rule_id="r", condition_met=True)
        dumped = result.model_dump(by_alias=True)
        assert dumped["ruleId"] == "r"
        assert dumped["conditionMet"] is True
        assert dumped["executionTimeMs"] == 0.0


# =============================================================================
# Operator registry
# =============================================================================


class TestOperatorRegistry:
    def test_registry_matches_enum(self):
        assert set(OPERATOR_REGISTRY) == {op.value for op in ComparisonOperator}

    def test_validity_checks(self):
        assert is_valid_comparison_operator("between")
        assert not is_valid_comparison_operator("and")
        assert is_valid_logical_operator("not")
        assert not is_valid_logical_operator("xor")

    def test_value_expectations(self):
        assert expects_range("between")
        assert expects_array("in")
        assert not requires_value("is_empty")
        assert not requires_value("email_format")
        assert requires_value("equals")

    def test_operator_lookup(self):
        spec = get_operator_spec("length_equals")
        assert spec is not None
        assert spec.category == OperatorCategory.ADVANCED
        assert get_operator_spec("nope") is None

    def test_operators_for_field_type_sorted_by_category(self):
        specs = get_operators_for_field_type("string")
        names = [s.name for s in specs]
        assert "contains" in names
        assert "multiple_of" not in names
        orders = [CATEGORY_ORDER[s.category] for s in specs]
        assert orders == sorted(orders)

    def test_operators_by_category_covers_registry(self):
        grouped = get_operators_by_category()
        assert sum(len(v) for v in grouped.values()) == len(OPERATOR_REGISTRY)
