"""Declarative form rules: conditions over form data drive per-field UI state."""

__version__ = "0.1.0"

from form_rules.config import EngineSettings, load_engine_settings
from form_rules.engine.conditions import evaluate_rule_condition
from form_rules.engine.controller import FormRuleController
from form_rules.engine.orchestrator import RuleOrchestrator
from form_rules.engine.resolver import resolve_dynamic_value
from form_rules.errors import (
    MalformedRuleError,
    RuleEngineError,
    SchemaLoadError,
    UnknownFieldError,
    UnknownFunctionError,
    UnknownOperatorError,
    ValidationRejected,
)
from form_rules.schemas.field_state import FieldConfig
from form_rules.schemas.rule import Rule, RuleContext, RuleSet

__all__ = [
    "EngineSettings",
    "FieldConfig",
    "FormRuleController",
    "MalformedRuleError",
    "Rule",
    "RuleContext",
    "RuleEngineError",
    "RuleOrchestrator",
    "RuleSet",
    "SchemaLoadError",
    "UnknownFieldError",
    "UnknownFunctionError",
    "UnknownOperatorError",
    "ValidationRejected",
    "evaluate_rule_condition",
    "load_engine_settings",
    "resolve_dynamic_value",
]
