"""
Evaluation cycle controller.

FormRuleController binds a rule list to a live form. Every change
notification from the binding (and every change of rules, schema or
context) runs one evaluation cycle:

    InitializeFields(schema fields) -> orchestrator -> reducer -> snapshot

Cycles never overlap. A change observed while a cycle is running (for
example a set_value action writing to the form) is queued and replayed as
another cycle once the current one finishes, bounded by
EngineSettings.max_settle_passes.
"""

import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from form_rules.config import EngineSettings
from form_rules.engine.orchestrator import (
    ActionInterpreter,
    CustomActionHandler,
    RuleOrchestrator,
)
from form_rules.engine.reducer import (
    InitializeFields,
    ReducerAction,
    RuleState,
    SetDisabled,
    SetRequired,
    SetVisibility,
    reduce_rule_state,
)
from form_rules.engine.resolver import CustomFunctions, TransformFunctions
from form_rules.errors import UnknownFieldError
from form_rules.forms.binding import FormBinding
from form_rules.forms.schema import FormSchema
from form_rules.schemas.field_state import FieldConfig
from form_rules.schemas.rule import Rule, RuleContext, RuleEvaluationResult

logger = logging.getLogger(__name__)

REQUIRED_MESSAGE = "This field is required"


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, (str, list, tuple, dict, set)):
        return len(value) == 0
    return False


class FormRuleController:
    """
    Owns the rule state of one form session.

    Args:
        schema: Schema collaborator (field names, types, validation)
        binding: Live form handle; the controller subscribes to its changes
        rules: Rules evaluated on every cycle
        custom_functions: Registry for function references
        transform_functions: Registry for condition transforms
        context: Auxiliary context (user, permissions, metadata, timestamp, custom)
        custom_action_handler: Receives `custom` actions
        settings: Engine settings; defaults when omitted
        evaluate_on_init: Run the first cycle immediately
    """

    def __init__(
        self,
        schema: FormSchema,
        binding: FormBinding,
        rules: Optional[Sequence[Rule]] = None,
        custom_functions: Optional[CustomFunctions] = None,
        transform_functions: Optional[TransformFunctions] = None,
        context: Optional[Mapping[str, Any]] = None,
        custom_action_handler: Optional[CustomActionHandler] = None,
        settings: Optional[EngineSettings] = None,
        evaluate_on_init: bool = True,
    ):
        self.schema = schema
        self.binding = binding
        self.settings = settings or EngineSettings()
        self._rules: List[Rule] = list(rules or [])
        self._context: Dict[str, Any] = dict(context or {})
        self._state = RuleState()
        self._last_results: List[RuleEvaluationResult] = []
        self._evaluating = False
        self._pending = False

        self.orchestrator = RuleOrchestrator(custom_functions, transform_functions, self.settings)
        self.interpreter = ActionInterpreter(
            schema,
            binding,
            emit=self._dispatch,
            custom_functions=custom_functions,
            transform_functions=transform_functions,
            custom_action_handler=custom_action_handler,
        )
        self._unsubscribe = binding.subscribe(self._on_change)

        if evaluate_on_init:
            self.evaluate_rules()

    # ------------------------------------------------------------------
    # State access
    # ------------------------------------------------------------------

    @property
    def state(self) -> RuleState:
        return self._state

    @property
    def rules(self) -> List[Rule]:
        return list(self._rules)

    @property
    def last_results(self) -> List[RuleEvaluationResult]:
        """Per-rule results of the most recent pass."""
        return list(self._last_results)

    def get_field_config(self, field_name: str) -> FieldConfig:
        """Current config of a field; defaults for fields without state."""
        return self._state.field_config(field_name)

    def field_configs(self) -> Dict[str, FieldConfig]:
        return self._state.snapshot()

    @property
    def field_visibility(self) -> Dict[str, bool]:
        return dict(self._state.visibility)

    @property
    def field_requirements(self) -> Dict[str, bool]:
        return dict(self._state.required)

    @property
    def field_disabled(self) -> Dict[str, bool]:
        return dict(self._state.disabled)

    @property
    def field_options(self) -> Dict[str, List[Any]]:
        return {name: list(options) for name, options in self._state.options.items()}

    # ------------------------------------------------------------------
    # Cycle
    # ------------------------------------------------------------------

    def _dispatch(self, action: ReducerAction) -> None:
        self._state = reduce_rule_state(self._state, action)

    def _on_change(self, field_name: Optional[str], value: Any) -> None:
        logger.debug(f"Form change on {field_name or '<several fields>'}")
        self.evaluate_rules()

    def build_context(self) -> RuleContext:
        """Fresh context for one pass: current form values plus auxiliary data."""
        extra = {k: v for k, v in self._context.items() if k not in ("form_data", "formData")}
        return RuleContext(form_data=self.binding.get_values(), **extra)

    def _run_cycle(self) -> None:
        self._dispatch(InitializeFields(self.schema.field_names()))
        self._last_results = self.orchestrator.evaluate_all(
            self._rules, self.build_context(), self.interpreter
        )

    def evaluate_rules(self) -> Dict[str, FieldConfig]:
        """
        Run an evaluation cycle now.

        When called while a cycle is already running, the request is queued
        and replayed after the running cycle.

        Returns:
            Snapshot of all field configs
        """
        if self._evaluating:
            self._pending = True
            return self.field_configs()

        self._evaluating = True
        try:
            passes = 0
            while True:
                self._pending = False
                self._run_cycle()
                passes += 1
                if not self._pending:
                    break
                if passes >= self.settings.max_settle_passes:
                    logger.warning(
                        f"Form did not settle after {passes} evaluation passes; "
                        "rules keep changing form values"
                    )
                    break
        finally:
            self._evaluating = False

        return self.field_configs()

    def set_rules(self, rules: Sequence[Rule]) -> None:
        self._rules = list(rules)
        self.evaluate_rules()

    def set_schema(self, schema: FormSchema) -> None:
        self.schema = schema
        self.interpreter.schema = schema
        self.evaluate_rules()

    def set_context(self, context: Mapping[str, Any]) -> None:
        self._context = dict(context)
        self.evaluate_rules()

    def close(self) -> None:
        """Stop listening to the form binding."""
        self._unsubscribe()

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def trigger_validation(self, field_names: Optional[Iterable[str]] = None) -> bool:
        """
        Validate current values and publish errors on the binding.

        Fields marked required by rules must also be non-empty.

        Args:
            field_names: Fields to validate; all schema fields when omitted

        Returns:
            True when every validated field is valid
        """
        values = self.binding.get_values()
        names = list(field_names) if field_names is not None else self.schema.field_names()
        valid = True

        for name in names:
            if not self.schema.has_field(name):
                logger.warning(f"Cannot validate undeclared field '{name}'")
                valid = False
                continue
            value = values.get(name)
            messages = self.schema.validate_field(name, value)
            if self._state.required.get(name) and _is_blank(value) and REQUIRED_MESSAGE not in messages:
                messages = [REQUIRED_MESSAGE, *messages]
            self.binding.set_errors(name, messages)
            if messages:
                valid = False

        logger.debug(f"Validation of {len(names)} fields: {'passed' if valid else 'failed'}")
        return valid

    def clear_field_value(self, field_name: str) -> None:
        """Reset a field's value to None and clear its validation error."""
        self._require_field(field_name)
        self.binding.set_value(field_name, None)
        self.binding.clear_error(field_name)

    # ------------------------------------------------------------------
    # Imperative helpers
    # ------------------------------------------------------------------

    def _require_field(self, field_name: str) -> None:
        if not self.schema.has_field(field_name):
            raise UnknownFieldError(field_name)

    def show(self, field_name: str) -> None:
        self._require_field(field_name)
        self._dispatch(SetVisibility(field_name, True))

    def hide(self, field_name: str) -> None:
        self._require_field(field_name)
        self._dispatch(SetVisibility(field_name, False))

    def enable(self, field_name: str) -> None:
        self._require_field(field_name)
        self._dispatch(SetDisabled(field_name, False))

    def disable(self, field_name: str) -> None:
        self._require_field(field_name)
        self._dispatch(SetDisabled(field_name, True))

    def require(self, field_name: str, required: bool = True) -> None:
        self._require_field(field_name)
        self._dispatch(SetRequired(field_name, required))

    def set_value_safe(self, field_name: str, value: Any) -> bool:
        """
        Set a value only if the schema accepts it.

        Returns:
            True if the value was applied, False if the field is undeclared
            or the value failed validation
        """
        if not self.schema.has_field(field_name):
            logger.warning(f"set_value_safe on undeclared field '{field_name}'")
            return False
        messages = self.schema.validate_field(field_name, value)
        if messages:
            logger.debug(f"Rejected value {value!r} for '{field_name}': {'; '.join(messages)}")
            return False
        self.binding.set_value(field_name, value)
        return True

    def set_value_unsafe(self, field_name: str, value: Any) -> None:
        """Set a value without any validation."""
        self.binding.set_value(field_name, value)
