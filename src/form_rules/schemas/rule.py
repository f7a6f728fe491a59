"""Pydantic models for declarative form rules.

Rules are authored as JSON/YAML (camelCase keys from the form builder are
accepted as aliases) and parsed once into immutable models:

    Rule
      condition: BaseCondition | ComplexCondition (recursive)
      actions:   RuleAction (tagged union keyed by `type`)

Values inside conditions and actions are DynamicValues: a literal, or a
reference to a form field, a context path, or a registered function.
"""

from collections.abc import Mapping
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import (
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Discriminator,
    Field,
    Tag,
    field_validator,
)


def parse_dynamic_value(value: Any) -> Any:
    """Turn reference-shaped mappings into reference models; keep literals as-is."""
    if isinstance(value, Mapping):
        ref_type = value.get("type")
        model = _REFERENCE_MODELS.get(ref_type) if isinstance(ref_type, str) else None
        if model is not None:
            return model.model_validate(dict(value))
    return value


DynamicValue = Annotated[Any, BeforeValidator(parse_dynamic_value)]


class FieldReference(BaseModel):
    """Points at a form field, optionally a dotted property path inside its value."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    type: Literal["field"] = "field"
    field_name: str = Field(..., alias="fieldName", min_length=1)
    property: Optional[str] = Field(
        default=None,
        description="Dotted path into the field's value, e.g. 'address.city'",
    )


class ContextReference(BaseModel):
    """Dotted path into the evaluation context (user, permissions, metadata, ...)."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    type: Literal["context"] = "context"
    key: str = Field(..., min_length=1, description="e.g. 'user.role'")


class FunctionReference(BaseModel):
    """Call of a registered custom function with recursively resolved arguments."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    type: Literal["function"] = "function"
    name: str = Field(..., min_length=1)
    args: List[DynamicValue] = Field(default_factory=list)

    @field_validator("args", mode="before")
    @classmethod
    def _none_args(cls, v: Any) -> Any:
        return [] if v is None else v


_REFERENCE_MODELS = {
    "field": FieldReference,
    "context": ContextReference,
    "function": FunctionReference,
}

Reference = Union[FieldReference, ContextReference, FunctionReference]


def is_reference(value: Any) -> bool:
    """True for field/context/function references, False for literals."""
    return isinstance(value, (FieldReference, ContextReference, FunctionReference))


# =============================================================================
# Conditions
# =============================================================================


class BaseCondition(BaseModel):
    """
    Single field comparison.

    `operator` stays a plain string so malformed operators surface as
    UnknownOperatorError at evaluation time; the rule linter reports them
    at authoring time.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    field: str = Field(..., min_length=1, description="Field name to evaluate")
    operator: str = Field(..., description="Comparison operator name")
    value: DynamicValue = None
    transform: Optional[str] = Field(
        default=None,
        description="Name of a transform function applied to the field value first",
    )


class ComplexCondition(BaseModel):
    """Boolean combination of child conditions (and / or / not)."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    operator: str = Field(..., description="Logical operator: and, or, not")
    conditions: List["RuleCondition"] = Field(default_factory=list)


def _condition_kind(value: Any) -> Optional[str]:
    if isinstance(value, ComplexCondition):
        return "complex"
    if isinstance(value, BaseCondition):
        return "base"
    if isinstance(value, Mapping):
        if "conditions" in value:
            return "complex"
        if "field" in value:
            return "base"
    return None


RuleCondition = Annotated[
    Union[
        Annotated[BaseCondition, Tag("base")],
        Annotated[ComplexCondition, Tag("complex")],
    ],
    Discriminator(_condition_kind),
]

ComplexCondition.model_rebuild()


# =============================================================================
# Actions
# =============================================================================


class _ActionBase(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    value: DynamicValue = None
    target: Optional[str] = Field(
        default=None,
        description="Target field; defaults to the rule's subject field",
    )
    params: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("params", mode="before")
    @classmethod
    def _none_params(cls, v: Any) -> Any:
        return {} if v is None else v

    @property
    def has_value(self) -> bool:
        """Whether `value` was given explicitly (None included)."""
        return "value" in self.model_fields_set


class VisibilityAction(_ActionBase):
    type: Literal["show", "hide"]


class EnableAction(_ActionBase):
    type: Literal["enable", "disable"]


class SetValueAction(_ActionBase):
    """Sets the required flag (params.required) and/or a validated value."""

    type: Literal["set_value"]


class ClearValueAction(_ActionBase):
    type: Literal["clear_value"]


class MessageAction(_ActionBase):
    """Appends params.message to the field's warnings or errors."""

    type: Literal["show_warning", "show_error"]


class ClassAction(_ActionBase):
    """Adds or removes the class token in params['class']."""

    type: Literal["add_class", "remove_class"]


class SetOptionsAction(_ActionBase):
    type: Literal["set_options"]


class TriggerValidationAction(_ActionBase):
    type: Literal["trigger_validation"]


class CustomAction(_ActionBase):
    """Forwarded verbatim to the host's custom action handler."""

    type: Literal["custom"]


RuleAction = Annotated[
    Union[
        VisibilityAction,
        EnableAction,
        SetValueAction,
        ClearValueAction,
        MessageAction,
        ClassAction,
        SetOptionsAction,
        TriggerValidationAction,
        CustomAction,
    ],
    Field(discriminator="type"),
]


# =============================================================================
# Rules
# =============================================================================


class Rule(BaseModel):
    """Condition plus ordered actions. Immutable once constructed."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: Optional[str] = Field(default=None, description="Optional ID for debugging/tracking")
    name: Optional[str] = None
    description: Optional[str] = None
    condition: RuleCondition
    actions: List[RuleAction]
    priority: Optional[float] = Field(
        default=None,
        description="Higher runs first, only when priority ordering is enabled",
    )
    enabled: bool = True
    debounce_ms: Optional[float] = Field(
        default=None,
        alias="debounceMs",
        ge=0,
        description="Accepted for compatibility; not enforced by the engine",
    )

    @property
    def label(self) -> str:
        """Identifier used in logs and evaluation results."""
        return self.id or self.name or "<anonymous>"


class RuleSet(BaseModel):
    """Named collection of rules as stored in a rules file."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    name: Optional[str] = None
    description: Optional[str] = None
    rules: List[Rule] = Field(default_factory=list)
    global_: bool = Field(
        default=False,
        alias="global",
        description="Whether rules apply globally or to specific forms",
    )


class RuleContext(BaseModel):
    """
    Read-only evaluation context for one cycle.

    `form_data` is the authoritative snapshot of field values; everything
    else is auxiliary data reachable through ContextReference paths.
    Unknown top-level keys are kept and are addressable as well.
    """

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    form_data: Dict[str, Any] = Field(default_factory=dict, alias="formData")
    user: Optional[Dict[str, Any]] = None
    permissions: Optional[List[str]] = None
    metadata: Optional[Dict[str, Any]] = None
    timestamp: Optional[float] = None
    custom: Optional[Dict[str, Any]] = None

    def as_lookup(self) -> Dict[str, Any]:
        """
        Flatten the context into a plain dict for dotted-path lookups.

        Both `form_data` and `formData` address the form values.
        """
        lookup: Dict[str, Any] = dict(self.model_extra or {})
        lookup.update(
            {
                "form_data": self.form_data,
                "formData": self.form_data,
                "user": self.user,
                "permissions": self.permissions,
                "metadata": self.metadata,
                "timestamp": self.timestamp,
                "custom": self.custom,
            }
        )
        return lookup


class RuleEvaluationResult(BaseModel):
    """Trace of one rule within one evaluation pass."""

    model_config = ConfigDict(populate_by_name=True)

    rule_id: Optional[str] = Field(default=None, alias="ruleId")
    condition_met: bool = Field(default=False, alias="conditionMet")
    skipped: bool = Field(default=False, description="True when the rule is disabled")
    actions: List[RuleAction] = Field(default_factory=list)
    errors: List[str] = Field(default_factory=list)
    execution_time_ms: float = Field(default=0.0, alias="executionTimeMs")
