"""Exception taxonomy for the form rule engine.

Hard errors (UnknownOperatorError, UnknownFunctionError) propagate from the
single-condition entry points so callers can detect malformed rule
definitions. Everything else is recorded and isolated per rule.
"""

from typing import Any, List, Optional


class RuleEngineError(Exception):
    """Base class for all rule engine errors."""
    pass


class UnknownOperatorError(RuleEngineError):
    """Raised when a condition names an operator outside the vocabulary."""

    def __init__(self, operator: Any):
        self.operator = operator
        super().__init__(f"Unknown operator: {operator!r}")


class UnknownFunctionError(RuleEngineError):
    """Raised when a function reference names an unregistered function."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Unknown function: {name}")


class UnknownFieldError(RuleEngineError):
    """Raised by imperative helpers when a field is not declared by the schema."""

    def __init__(self, field_name: str):
        self.field_name = field_name
        super().__init__(f"Field '{field_name}' is not declared by the form schema")


class ValidationRejected(RuleEngineError):
    """A resolved value failed schema validation and was not applied."""

    def __init__(self, field_name: str, value: Any, messages: List[str]):
        self.field_name = field_name
        self.value = value
        self.messages = list(messages)
        super().__init__(
            f"Validation rejected value {value!r} for '{field_name}': {'; '.join(self.messages)}"
        )


class MalformedRuleError(RuleEngineError):
    """Raised when a rule definition is structurally invalid."""

    def __init__(self, message: str, errors: Optional[List[str]] = None):
        self.message = message
        self.errors = list(errors or [])
        detail = f" ({'; '.join(self.errors)})" if self.errors else ""
        super().__init__(f"{message}{detail}")


class SchemaLoadError(RuleEngineError):
    """Raised when a form schema or rule file cannot be loaded or is invalid."""
    pass
