"""
Rule Linter - authoring-time guardrail for form rules.

Validates parsed rules against:
- Operator vocabulary (comparison and logical operators, `not` arity)
- Value shapes expected by operators (lists for in/not_in, ranges for between)
- Regex literals
- The form schema (fields read by conditions, action targets, field references)
- Registered function names, when a registry is supplied

Structural problems (missing condition or actions, unknown action type) are
caught earlier by validate_rule, which raises MalformedRuleError.
"""

import logging
import re
from collections import Counter
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, Iterable, List, Mapping, Optional, Sequence, Set

from pydantic import ValidationError as PydanticValidationError

from form_rules.engine.conditions import subject_field
from form_rules.errors import MalformedRuleError
from form_rules.schemas.operators import (
    LOGICAL_OPERATORS,
    OPERATOR_REGISTRY,
)
from form_rules.schemas.rule import (
    BaseCondition,
    ComplexCondition,
    FieldReference,
    FunctionReference,
    Rule,
    is_reference,
)

if TYPE_CHECKING:
    from form_rules.forms.schema import FormSchema

logger = logging.getLogger(__name__)


class ViolationType(str, Enum):
    """Types of lint violations."""
    UNKNOWN_OPERATOR = "UNKNOWN_OPERATOR"
    ARITY_ERROR = "ARITY_ERROR"
    VALUE_SHAPE = "VALUE_SHAPE"
    INVALID_REGEX = "INVALID_REGEX"
    UNKNOWN_FIELD = "UNKNOWN_FIELD"
    UNKNOWN_FUNCTION = "UNKNOWN_FUNCTION"
    MISSING_TARGET = "MISSING_TARGET"
    MISSING_PARAM = "MISSING_PARAM"
    EMPTY_ACTIONS = "EMPTY_ACTIONS"
    DUPLICATE_ID = "DUPLICATE_ID"
    INERT_SETTING = "INERT_SETTING"


class Severity(str, Enum):
    """Violation severity levels."""
    CRITICAL = "CRITICAL"
    WARNING = "WARNING"


@dataclass
class LintViolation:
    """Structured lint finding."""
    rule_id: str
    type: ViolationType
    severity: Severity
    message: str
    location: Optional[str] = None
    operator: Optional[str] = None
    field: Optional[str] = None


@dataclass
class LintReport:
    """Lint report with summary counts and individual violations."""
    summary: Dict[str, int]
    violations: List[LintViolation] = field(default_factory=list)

    @property
    def has_critical(self) -> bool:
        return any(v.severity == Severity.CRITICAL for v in self.violations)

    def for_rule(self, rule_id: str) -> List[LintViolation]:
        return [v for v in self.violations if v.rule_id == rule_id]

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "summary": self.summary,
            "violations": [
                {**asdict(v), "type": v.type.value, "severity": v.severity.value}
                for v in self.violations
            ],
        }


def format_pydantic_errors(error: PydanticValidationError) -> List[str]:
    """Flatten pydantic errors into 'loc.path: message' strings."""
    messages = []
    for err in error.errors():
        loc = ".".join(str(part) for part in err.get("loc", ()))
        messages.append(f"{loc}: {err['msg']}" if loc else err["msg"])
    return messages


def validate_rule(data: Any) -> Rule:
    """
    Parse one rule definition.

    Args:
        data: Rule mapping (camelCase or snake_case keys) or a Rule

    Returns:
        Parsed, immutable Rule

    Raises:
        MalformedRuleError: If the definition is structurally invalid
    """
    if isinstance(data, Rule):
        return data
    if not isinstance(data, Mapping):
        raise MalformedRuleError(f"Rule must be a mapping, got {type(data).__name__}")
    try:
        return Rule.model_validate(dict(data))
    except PydanticValidationError as e:
        rule_ref = data.get("id") or data.get("name") or "<anonymous>"
        raise MalformedRuleError(f"Malformed rule '{rule_ref}'", format_pydantic_errors(e))


class _RuleLinter:
    """Collects violations for one rule."""

    def __init__(
        self,
        rule_id: str,
        known_fields: Optional[Set[str]],
        known_functions: Optional[Set[str]],
        known_transforms: Optional[Set[str]],
    ):
        self.rule_id = rule_id
        self.known_fields = known_fields
        self.known_functions = known_functions
        self.known_transforms = known_transforms
        self.violations: List[LintViolation] = []

    def add(self, vtype: ViolationType, severity: Severity, message: str, **extra: Any) -> None:
        self.violations.append(
            LintViolation(rule_id=self.rule_id, type=vtype, severity=severity, message=message, **extra)
        )

    def check_field(self, field_name: str, location: str) -> None:
        if self.known_fields is not None and field_name not in self.known_fields:
            self.add(
                ViolationType.UNKNOWN_FIELD,
                Severity.CRITICAL,
                f"Field '{field_name}' is not declared by the form schema",
                location=location,
                field=field_name,
            )

    def check_value_refs(self, value: Any, location: str) -> None:
        if isinstance(value, FieldReference):
            self.check_field(value.field_name, location)
        elif isinstance(value, FunctionReference):
            if self.known_functions is not None and value.name not in self.known_functions:
                self.add(
                    ViolationType.UNKNOWN_FUNCTION,
                    Severity.CRITICAL,
                    f"Function '{value.name}' is not registered",
                    location=location,
                )
            for index, arg in enumerate(value.args):
                self.check_value_refs(arg, f"{location}.args[{index}]")

    def check_condition(self, condition: Any, location: str) -> None:
        if isinstance(condition, ComplexCondition):
            self._check_complex(condition, location)
        elif isinstance(condition, BaseCondition):
            self._check_base(condition, location)

    def _check_complex(self, condition: ComplexCondition, location: str) -> None:
        op = condition.operator
        count = len(condition.conditions)
        if op not in LOGICAL_OPERATORS:
            self.add(
                ViolationType.UNKNOWN_OPERATOR,
                Severity.CRITICAL,
                f"Unknown logical operator '{op}'",
                location=location,
                operator=op,
            )
        elif op == "not" and count != 1:
            self.add(
                ViolationType.ARITY_ERROR,
                Severity.WARNING,
                f"'not' negates only its first condition; got {count}",
                location=location,
                operator=op,
            )
        elif count == 0:
            self.add(
                ViolationType.ARITY_ERROR,
                Severity.WARNING,
                f"'{op}' without conditions is always {'true' if op == 'and' else 'false'}",
                location=location,
                operator=op,
            )

        for index, child in enumerate(condition.conditions):
            self.check_condition(child, f"{location}.conditions[{index}]")

    def _check_base(self, condition: BaseCondition, location: str) -> None:
        op = condition.operator
        self.check_field(condition.field, location)
        self.check_value_refs(condition.value, f"{location}.value")

        if condition.transform and self.known_transforms is not None:
            if condition.transform not in self.known_transforms:
                self.add(
                    ViolationType.UNKNOWN_FUNCTION,
                    Severity.WARNING,
                    f"Transform '{condition.transform}' is not registered; raw value will be used",
                    location=location,
                )

        spec = OPERATOR_REGISTRY.get(op)
        if spec is None:
            self.add(
                ViolationType.UNKNOWN_OPERATOR,
                Severity.CRITICAL,
                f"Unknown comparison operator '{op}'",
                location=location,
                operator=op,
                field=condition.field,
            )
            return

        value = condition.value
        # Only literal values can be checked statically
        if is_reference(value):
            return

        if spec.requires_value and value is None:
            self.add(
                ViolationType.VALUE_SHAPE,
                Severity.WARNING,
                f"Operator '{op}' compares against a value but none is given",
                location=location,
                operator=op,
            )
        if spec.expects_array and not isinstance(value, (list, tuple)):
            self.add(
                ViolationType.VALUE_SHAPE,
                Severity.CRITICAL,
                f"Operator '{op}' expects a list value",
                location=location,
                operator=op,
            )
        if spec.expects_range and not (isinstance(value, (list, tuple)) and len(value) == 2):
            self.add(
                ViolationType.VALUE_SHAPE,
                Severity.CRITICAL,
                f"Operator '{op}' expects a [min, max] range",
                location=location,
                operator=op,
            )
        if op in ("matches_regex", "not_matches_regex") and isinstance(value, str):
            try:
                re.compile(value)
            except re.error as e:
                self.add(
                    ViolationType.INVALID_REGEX,
                    Severity.CRITICAL,
                    f"Invalid regex pattern '{value}': {e}",
                    location=location,
                    operator=op,
                )

    def check_actions(self, rule: Rule, location: str) -> None:
        if not rule.actions:
            self.add(ViolationType.EMPTY_ACTIONS, Severity.WARNING, "Rule has no actions", location=location)
            return

        default_target = subject_field(rule.condition)
        for index, action in enumerate(rule.actions):
            action_loc = f"{location}.actions[{index}]"
            target = action.target or default_target
            if action.type != "custom":
                if target is None:
                    self.add(
                        ViolationType.MISSING_TARGET,
                        Severity.CRITICAL,
                        f"Action '{action.type}' has no target and the condition names no field",
                        location=action_loc,
                    )
                else:
                    self.check_field(target, action_loc)
            self.check_value_refs(action.value, f"{action_loc}.value")

            if action.type in ("show_warning", "show_error") and not action.params.get("message"):
                self.add(
                    ViolationType.MISSING_PARAM,
                    Severity.WARNING,
                    f"Action '{action.type}' has no params.message",
                    location=action_loc,
                )
            if action.type in ("add_class", "remove_class") and not (
                action.params.get("class") or action.value
            ):
                self.add(
                    ViolationType.MISSING_PARAM,
                    Severity.WARNING,
                    f"Action '{action.type}' has no params.class",
                    location=action_loc,
                )


def lint_rules(
    rules: Sequence[Rule],
    schema: Optional["FormSchema"] = None,
    custom_functions: Optional[Iterable[str]] = None,
    transform_functions: Optional[Iterable[str]] = None,
) -> LintReport:
    """
    Lint parsed rules (exhaustive; never raises on rule content).

    Args:
        rules: Parsed rules
        schema: Optional form schema; enables field checks
        custom_functions: Optional names of registered functions
        transform_functions: Optional names of registered transforms

    Returns:
        LintReport with summary and violations

    Example:
        >>> report = lint_rules(rules, schema)
        >>> if report.has_critical:
        ...     logger.warning(f"Found {report.summary['critical_violations']} critical violations")
    """
    known_fields = set(schema.field_names()) if schema is not None else None
    known_functions = set(custom_functions) if custom_functions is not None else None
    known_transforms = set(transform_functions) if transform_functions is not None else None

    all_violations: List[LintViolation] = []
    for index, rule in enumerate(rules):
        rule_id = rule.id or rule.name or f"#{index}"
        linter = _RuleLinter(rule_id, known_fields, known_functions, known_transforms)
        location = f"rule[{rule_id}]"
        linter.check_condition(rule.condition, f"{location}.condition")
        linter.check_actions(rule, location)
        if rule.debounce_ms is not None:
            linter.add(
                ViolationType.INERT_SETTING,
                Severity.WARNING,
                "debounceMs is accepted but not enforced by the engine",
                location=location,
            )
        all_violations.extend(linter.violations)

    id_counts = Counter(rule.id for rule in rules if rule.id)
    for rule_id, count in id_counts.items():
        if count > 1:
            all_violations.append(
                LintViolation(
                    rule_id=rule_id,
                    type=ViolationType.DUPLICATE_ID,
                    severity=Severity.WARNING,
                    message=f"Rule id '{rule_id}' is used {count} times",
                )
            )

    summary = {
        "total_rules": len(rules),
        "violations": len(all_violations),
        "clean_rules": len(rules) - len({v.rule_id for v in all_violations}),
        "critical_violations": sum(1 for v in all_violations if v.severity == Severity.CRITICAL),
        "warnings": sum(1 for v in all_violations if v.severity == Severity.WARNING),
    }

    logger.info(
        f"Lint complete: {summary['violations']} violations found "
        f"({summary['critical_violations']} critical, {summary['warnings']} warnings)"
    )
    return LintReport(summary=summary, violations=all_violations)
