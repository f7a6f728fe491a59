"""
Rule evaluation orchestration.

RuleOrchestrator walks an ordered rule list, evaluates each rule's condition
and hands the actions of matching rules, in order, to a dispatch callback.
Each rule runs inside its own try block: a failing rule is logged and
recorded in its result, and the remaining rules still run.

ActionInterpreter is the standard dispatch target. It turns one RuleAction
into reducer actions and, for value actions, into writes on the form binding.
"""

import logging
import time
from abc import ABC, abstractmethod
from typing import Any, Callable, List, Optional, Sequence

from form_rules.config import EngineSettings
from form_rules.engine.conditions import evaluate_rule_condition, subject_field
from form_rules.engine.reducer import (
    AddClass,
    AddError,
    AddWarning,
    ReducerAction,
    RemoveClass,
    SetDisabled,
    SetOptions,
    SetRequired,
    SetVisibility,
)
from form_rules.engine.resolver import (
    CustomFunctions,
    TransformFunctions,
    resolve_dynamic_value,
)
from form_rules.errors import ValidationRejected
from form_rules.forms.binding import FormBinding
from form_rules.forms.schema import FormSchema
from form_rules.schemas.rule import Rule, RuleAction, RuleContext, RuleEvaluationResult

logger = logging.getLogger(__name__)

# (action, resolved target field, context)
ActionDispatch = Callable[[RuleAction, Optional[str], RuleContext], None]
CustomActionHandler = Callable[[RuleAction, RuleContext], None]


def order_rules(rules: Sequence[Rule], by_priority: bool = False) -> List[Rule]:
    """
    Rules in evaluation order.

    List order by default. With by_priority, a stable sort on descending
    priority (missing priority counts as 0).
    """
    if not by_priority:
        return list(rules)
    return sorted(rules, key=lambda rule: -(rule.priority or 0))


class IRuleOrchestrator(ABC):
    """Contract for evaluating a rule list against one context."""

    @abstractmethod
    def evaluate_all(
        self,
        rules: Sequence[Rule],
        context: RuleContext,
        dispatch: Optional[ActionDispatch] = None,
    ) -> List[RuleEvaluationResult]:
        pass


class RuleOrchestrator(IRuleOrchestrator):
    """Per-rule isolated evaluation in list (or priority) order."""

    def __init__(
        self,
        custom_functions: Optional[CustomFunctions] = None,
        transform_functions: Optional[TransformFunctions] = None,
        settings: Optional[EngineSettings] = None,
    ):
        self.custom_functions = custom_functions or {}
        self.transform_functions = transform_functions or {}
        self.settings = settings or EngineSettings()

    def evaluate_rule(
        self,
        rule: Rule,
        context: RuleContext,
        dispatch: Optional[ActionDispatch] = None,
    ) -> RuleEvaluationResult:
        """
        Evaluate one rule and dispatch its actions if the condition holds.

        Never raises: errors are logged and returned in the result.
        """
        start_time = time.perf_counter()
        result = RuleEvaluationResult(rule_id=rule.id)

        if not rule.enabled:
            result.skipped = True
            logger.debug(f"Rule '{rule.label}' disabled; skipped")
            return result

        if rule.debounce_ms:
            logger.debug(f"Rule '{rule.label}' declares debounceMs={rule.debounce_ms}; not enforced")

        try:
            result.condition_met = evaluate_rule_condition(
                rule.condition, context, self.custom_functions, self.transform_functions
            )
            if result.condition_met:
                default_target = subject_field(rule.condition)
                for action in rule.actions:
                    if dispatch is not None:
                        dispatch(action, action.target or default_target, context)
                    result.actions.append(action)
        except Exception as e:
            logger.warning(f"Rule '{rule.label}' failed: {e}")
            result.errors.append(str(e))

        result.execution_time_ms = (time.perf_counter() - start_time) * 1000
        if self.settings.log_rule_timings:
            logger.info(f"Rule '{rule.label}' evaluated in {result.execution_time_ms:.3f} ms")
        return result

    def evaluate_all(
        self,
        rules: Sequence[Rule],
        context: RuleContext,
        dispatch: Optional[ActionDispatch] = None,
    ) -> List[RuleEvaluationResult]:
        """
        Evaluate every rule against the context.

        Args:
            rules: Rules to evaluate
            context: Evaluation context for this pass
            dispatch: Called for each action of each matching rule, in order

        Returns:
            One result per rule, in evaluation order
        """
        ordered = order_rules(rules, self.settings.order_by_priority)
        results = [self.evaluate_rule(rule, context, dispatch) for rule in ordered]
        logger.debug(
            f"Evaluated {len(results)} rules: "
            f"{sum(1 for r in results if r.condition_met)} matched, "
            f"{sum(1 for r in results if r.errors)} failed"
        )
        return results


class ActionInterpreter:
    """
    Maps rule actions onto reducer actions and form-binding side effects.

    Args:
        schema: Field definitions used to validate set_value payloads
        binding: Live form handle for set_value / clear_value
        emit: Receives reducer actions (the controller feeds them to the reducer)
        custom_action_handler: Receives `custom` actions with the context
    """

    def __init__(
        self,
        schema: FormSchema,
        binding: FormBinding,
        emit: Callable[[ReducerAction], None],
        custom_functions: Optional[CustomFunctions] = None,
        transform_functions: Optional[TransformFunctions] = None,
        custom_action_handler: Optional[CustomActionHandler] = None,
    ):
        self.schema = schema
        self.binding = binding
        self.emit = emit
        self.custom_functions = custom_functions or {}
        self.transform_functions = transform_functions or {}
        self.custom_action_handler = custom_action_handler

    def _resolve(self, value: Any, context: RuleContext) -> Any:
        return resolve_dynamic_value(value, context, self.custom_functions, self.transform_functions)

    def __call__(self, action: RuleAction, target: Optional[str], context: RuleContext) -> None:
        self.apply(action, target, context)

    def apply(self, action: RuleAction, target: Optional[str], context: RuleContext) -> None:
        """Apply one action to its target field."""
        kind = action.type

        if kind == "custom":
            if self.custom_action_handler is None:
                logger.debug("Custom action without a registered handler; ignored")
                return
            self.custom_action_handler(action, context)
            return

        if kind == "trigger_validation":
            # Validation runs only when the caller asks for it
            return

        if target is None:
            logger.warning(f"Action '{kind}' has no target field; skipped")
            return

        if kind in ("show", "hide"):
            self.emit(SetVisibility(target, kind == "show"))
        elif kind in ("enable", "disable"):
            self.emit(SetDisabled(target, kind == "disable"))
        elif kind == "set_value":
            self._set_value(action, target, context)
        elif kind == "clear_value":
            if self.binding.get_value(target) is not None:
                self.binding.set_value(target, None)
            self.binding.clear_error(target)
        elif kind in ("show_warning", "show_error"):
            message = self._message(action, context)
            if message is None:
                logger.debug(f"Action '{kind}' on '{target}' has no message; ignored")
                return
            self.emit(AddWarning(target, message) if kind == "show_warning" else AddError(target, message))
        elif kind in ("add_class", "remove_class"):
            class_name = action.params.get("class")
            if class_name is None and action.has_value:
                class_name = self._resolve(action.value, context)
            if not class_name:
                logger.debug(f"Action '{kind}' on '{target}' has no class; ignored")
                return
            self.emit(AddClass(target, str(class_name)) if kind == "add_class" else RemoveClass(target, str(class_name)))
        elif kind == "set_options":
            if action.has_value:
                options = self._resolve(action.value, context)
            else:
                options = action.params.get("options")
            self.emit(SetOptions(target, options))

    def _message(self, action: RuleAction, context: RuleContext) -> Optional[str]:
        message = action.params.get("message")
        if message is None and action.has_value:
            message = self._resolve(action.value, context)
        return None if message is None else str(message)

    def _set_value(self, action: RuleAction, target: str, context: RuleContext) -> None:
        if "required" in action.params:
            self.emit(SetRequired(target, bool(action.params["required"])))

        if not action.has_value:
            return

        value = self._resolve(action.value, context)
        messages = self.schema.validate_field(target, value)
        if messages:
            rejected = ValidationRejected(target, value, messages)
            logger.warning(str(rejected))
            return

        if self.binding.get_value(target) != value:
            self.binding.set_value(target, value)
