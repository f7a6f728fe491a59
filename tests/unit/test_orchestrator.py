"""Unit tests for rule orchestration and the action interpreter."""

import logging

import pytest

from form_rules.config import EngineSettings
from form_rules.engine.orchestrator import ActionInterpreter, RuleOrchestrator, order_rules
from form_rules.engine.reducer import (
    AddClass,
    AddError,
    AddWarning,
    RemoveClass,
    SetDisabled,
    SetOptions,
    SetRequired,
    SetVisibility,
)
from form_rules.forms.binding import InMemoryFormBinding
from form_rules.schemas.rule import RuleContext
from form_rules.validation.rule_linter import validate_rule


def _rule(rule_id, condition, actions, **extra):
    return validate_rule({"id": rule_id, "condition": condition, "actions": actions, **extra})


ALWAYS = {"operator": "and", "conditions": []}


class Recorder:
    """Dispatch callback recording (action type, target) pairs."""

    def __init__(self):
        self.calls = []

    def __call__(self, action, target, context):
        self.calls.append((action.type, target))


# =============================================================================
# RuleOrchestrator
# =============================================================================


class TestOrderRules:
    def test_list_order_by_default(self):
        rules = [_rule("a", ALWAYS, [], priority=1), _rule("b", ALWAYS, [], priority=5)]
        assert [r.id for r in order_rules(rules)] == ["a", "b"]

    def test_priority_order_is_stable(self):
        rules = [
            _rule("low", ALWAYS, [], priority=1),
            _rule("none", ALWAYS, []),
            _rule("high", ALWAYS, [], priority=10),
            _rule("high2", ALWAYS, [], priority=10),
        ]
        assert [r.id for r in order_rules(rules, by_priority=True)] == ["high", "high2", "low", "none"]


class TestRuleOrchestrator:
    def test_matching_rule_dispatches_actions_in_order(self):
        rule = _rule(
            "r1",
            {"field": "a", "operator": "equals", "value": 1},
            [{"type": "show", "target": "b"}, {"type": "disable", "target": "c"}],
        )
        recorder = Recorder()
        result = RuleOrchestrator().evaluate_rule(rule, RuleContext(form_data={"a": 1}), recorder)

        assert result.condition_met is True
        assert result.rule_id == "r1"
        assert [a.type for a in result.actions] == ["show", "disable"]
        assert recorder.calls == [("show", "b"), ("disable", "c")]
        assert result.execution_time_ms >= 0

    def test_non_matching_rule_dispatches_nothing(self):
        rule = _rule("r1", {"field": "a", "operator": "equals", "value": 1}, [{"type": "show", "target": "b"}])
        recorder = Recorder()
        result = RuleOrchestrator().evaluate_rule(rule, RuleContext(form_data={"a": 2}), recorder)
        assert result.condition_met is False
        assert result.actions == []
        assert recorder.calls == []

    def test_target_defaults_to_subject_field(self):
        """An action without target applies to the condition's field."""
        rule = _rule("r1", {"field": "a", "operator": "is_empty"}, [{"type": "hide"}])
        recorder = Recorder()
        RuleOrchestrator().evaluate_rule(rule, RuleContext(), recorder)
        assert recorder.calls == [("hide", "a")]

    def test_disabled_rule_is_skipped(self):
        rule = _rule("off", ALWAYS, [{"type": "show", "target": "b"}], enabled=False)
        recorder = Recorder()
        result = RuleOrchestrator().evaluate_rule(rule, RuleContext(), recorder)
        assert result.skipped is True
        assert result.condition_met is False
        assert recorder.calls == []

    def test_failing_rule_is_isolated(self):
        """A rule with an unknown operator fails alone; later rules still run."""
        rules = [
            _rule("broken", {"field": "a", "operator": "nearly"}, [{"type": "show", "target": "x"}]),
            _rule("ok", ALWAYS, [{"type": "show", "target": "y"}]),
        ]
        recorder = Recorder()
        results = RuleOrchestrator().evaluate_all(rules, RuleContext(), recorder)

        assert len(results) == 2
        assert results[0].condition_met is False
        assert "nearly" in results[0].errors[0]
        assert results[1].condition_met is True
        assert recorder.calls == [("show", "y")]

    def test_unknown_function_is_isolated(self):
        rules = [
            _rule(
                "fn",
                {"field": "a", "operator": "equals", "value": {"type": "function", "name": "missing"}},
                [{"type": "show", "target": "x"}],
            ),
        ]
        results = RuleOrchestrator().evaluate_all(rules, RuleContext())
        assert "missing" in results[0].errors[0]

    def test_dispatch_error_is_recorded(self):
        def failing_dispatch(action, target, context):
            raise RuntimeError("dispatch failed")

        rule = _rule("r", ALWAYS, [{"type": "show", "target": "x"}])
        result = RuleOrchestrator().evaluate_rule(rule, RuleContext(), failing_dispatch)
        assert result.errors == ["dispatch failed"]

    def test_priority_setting_applied(self):
        rules = [_rule("a", ALWAYS, [], priority=1), _rule("b", ALWAYS, [], priority=2)]
        orchestrator = RuleOrchestrator(settings=EngineSettings(order_by_priority=True))
        assert [r.rule_id for r in orchestrator.evaluate_all(rules, RuleContext())] == ["b", "a"]

    def test_rule_timings_logged(self, caplog):
        orchestrator = RuleOrchestrator(settings=EngineSettings(log_rule_timings=True))
        with caplog.at_level(logging.INFO, logger="form_rules.engine.orchestrator"):
            orchestrator.evaluate_all([_rule("timed", ALWAYS, [])], RuleContext())
        assert "timed" in caplog.text


# =============================================================================
# ActionInterpreter
# =============================================================================


@pytest.fixture
def emitted():
    return []


@pytest.fixture
def interpreter(profile_schema, emitted):
    binding = InMemoryFormBinding({"age": 30, "spouseName": "Sam"})
    return ActionInterpreter(profile_schema, binding, emit=emitted.append)


def _action(data):
    return validate_rule({"condition": ALWAYS, "actions": [data]}).actions[0]


class TestActionInterpreter:
    def test_visibility_and_enablement(self, interpreter, emitted):
        ctx = RuleContext()
        interpreter(_action({"type": "show"}), "a", ctx)
        interpreter(_action({"type": "hide"}), "a", ctx)
        interpreter(_action({"type": "enable"}), "a", ctx)
        interpreter(_action({"type": "disable"}), "a", ctx)
        assert emitted == [
            SetVisibility("a", True),
            SetVisibility("a", False),
            SetDisabled("a", False),
            SetDisabled("a", True),
        ]

    def test_set_value_required_param(self, interpreter, emitted):
        """params.required toggles the required flag without touching the value."""
        interpreter(_action({"type": "set_value", "params": {"required": True}}), "age", RuleContext())
        assert emitted == [SetRequired("age", True)]
        assert interpreter.binding.get_value("age") == 30

    def test_set_value_applies_valid_value(self, interpreter):
        interpreter(_action({"type": "set_value", "value": 41}), "age", RuleContext())
        assert interpreter.binding.get_value("age") == 41

    def test_set_value_resolves_references(self, interpreter):
        action = _action({"type": "set_value", "value": {"type": "field", "fieldName": "other"}})
        interpreter(action, "age", RuleContext(form_data={"other": 55}))
        assert interpreter.binding.get_value("age") == 55

    def test_set_value_rejects_invalid_value(self, interpreter, caplog):
        """A value failing schema validation never reaches the binding."""
        with caplog.at_level(logging.WARNING):
            interpreter(_action({"type": "set_value", "value": 500}), "age", RuleContext())
        assert interpreter.binding.get_value("age") == 30
        assert "Validation rejected" in caplog.text

    def test_clear_value(self, interpreter):
        interpreter.binding.set_errors("spouseName", ["bad"])
        interpreter(_action({"type": "clear_value"}), "spouseName", RuleContext())
        assert interpreter.binding.get_value("spouseName") is None
        assert interpreter.binding.get_errors() == {}

    def test_messages(self, interpreter, emitted):
        ctx = RuleContext(form_data={"age": 12})
        interpreter(_action({"type": "show_warning", "params": {"message": "Young"}}), "age", ctx)
        interpreter(_action({"type": "show_error", "value": {"type": "field", "fieldName": "age"}}), "age", ctx)
        interpreter(_action({"type": "show_error"}), "age", ctx)
        assert emitted == [AddWarning("age", "Young"), AddError("age", "12")]

    def test_classes(self, interpreter, emitted):
        interpreter(_action({"type": "add_class", "params": {"class": "hl"}}), "a", RuleContext())
        interpreter(_action({"type": "remove_class", "value": "hl"}), "a", RuleContext())
        interpreter(_action({"type": "add_class"}), "a", RuleContext())
        assert emitted == [AddClass("a", "hl"), RemoveClass("a", "hl")]

    def test_set_options(self, interpreter, emitted):
        interpreter(_action({"type": "set_options", "value": ["x", "y"]}), "a", RuleContext())
        interpreter(_action({"type": "set_options", "params": {"options": ["z"]}}), "a", RuleContext())
        assert emitted == [SetOptions("a", ["x", "y"]), SetOptions("a", ["z"])]

    def test_custom_action_forwarded(self, profile_schema, emitted):
        received = []
        interpreter = ActionInterpreter(
            profile_schema,
            InMemoryFormBinding(),
            emit=emitted.append,
            custom_action_handler=lambda action, ctx: received.append(action.params),
        )
        interpreter(_action({"type": "custom", "params": {"name": "track"}}), None, RuleContext())
        assert received == [{"name": "track"}]
        assert emitted == []

    def test_custom_action_without_handler_ignored(self, interpreter, emitted):
        interpreter(_action({"type": "custom"}), None, RuleContext())
        assert emitted == []

    def test_trigger_validation_is_noop(self, interpreter, emitted):
        interpreter(_action({"type": "trigger_validation"}), "age", RuleContext())
        assert emitted == []
        assert interpreter.binding.get_errors() == {}

    def test_missing_target_skipped(self, interpreter, emitted):
        interpreter(_action({"type": "show"}), None, RuleContext())
        assert emitted == []
