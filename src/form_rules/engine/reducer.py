"""
Field-state reducer.

RuleState holds parallel maps from field name to each FieldConfig dimension.
reduce_rule_state is pure: it never mutates its input and returns a new
state for every action.

InitializeFields only fills gaps. A field that already has state keeps it,
so a field shown by an earlier cycle stays shown until some rule hides it.
Adding an already-present class, warning or error is a no-op, which keeps
repeated cycles over unchanged data idempotent.
"""

import logging
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Dict, Iterable, List, Tuple, Union

from form_rules.schemas.field_state import FieldConfig

logger = logging.getLogger(__name__)


# =============================================================================
# Reducer actions
# =============================================================================


@dataclass(frozen=True)
class InitializeFields:
    field_names: Tuple[str, ...]

    def __init__(self, field_names: Iterable[str]):
        object.__setattr__(self, "field_names", tuple(field_names))


@dataclass(frozen=True)
class SetVisibility:
    field_name: str
    visible: bool


@dataclass(frozen=True)
class SetRequired:
    field_name: str
    required: bool


@dataclass(frozen=True)
class SetDisabled:
    field_name: str
    disabled: bool


@dataclass(frozen=True)
class AddWarning:
    field_name: str
    message: str


@dataclass(frozen=True)
class AddError:
    field_name: str
    message: str


@dataclass(frozen=True)
class AddClass:
    field_name: str
    class_name: str


@dataclass(frozen=True)
class RemoveClass:
    field_name: str
    class_name: str


@dataclass(frozen=True)
class SetOptions:
    field_name: str
    options: Tuple[Any, ...]

    def __init__(self, field_name: str, options: Any):
        object.__setattr__(self, "field_name", field_name)
        if isinstance(options, (list, tuple)):
            object.__setattr__(self, "options", tuple(options))
        elif options is None:
            object.__setattr__(self, "options", ())
        else:
            object.__setattr__(self, "options", (options,))


ReducerAction = Union[
    InitializeFields,
    SetVisibility,
    SetRequired,
    SetDisabled,
    AddWarning,
    AddError,
    AddClass,
    RemoveClass,
    SetOptions,
]


# =============================================================================
# State
# =============================================================================


@dataclass(frozen=True)
class RuleState:
    """Per-field rule state; every map is keyed by the same field names."""

    visibility: Dict[str, bool] = field(default_factory=dict)
    required: Dict[str, bool] = field(default_factory=dict)
    disabled: Dict[str, bool] = field(default_factory=dict)
    warnings: Dict[str, Tuple[str, ...]] = field(default_factory=dict)
    errors: Dict[str, Tuple[str, ...]] = field(default_factory=dict)
    classes: Dict[str, Tuple[str, ...]] = field(default_factory=dict)
    options: Dict[str, Tuple[Any, ...]] = field(default_factory=dict)

    def field_names(self) -> List[str]:
        return list(self.visibility)

    def has_field(self, field_name: str) -> bool:
        return field_name in self.visibility

    def field_config(self, field_name: str) -> FieldConfig:
        """FieldConfig for a field; defaults for fields without state."""
        if not self.has_field(field_name):
            return FieldConfig()
        return FieldConfig(
            visible=self.visibility[field_name],
            required=self.required[field_name],
            disabled=self.disabled[field_name],
            warnings=list(self.warnings[field_name]),
            errors=list(self.errors[field_name]),
            classes=list(self.classes[field_name]),
            options=list(self.options[field_name]),
        )

    def snapshot(self) -> Dict[str, FieldConfig]:
        return {name: self.field_config(name) for name in self.field_names()}


_DEFAULT = FieldConfig()


def _with_field(state: RuleState, field_name: str) -> RuleState:
    """Seed a default entry for a field that has none."""
    if state.has_field(field_name):
        return state
    return RuleState(
        visibility={**state.visibility, field_name: _DEFAULT.visible},
        required={**state.required, field_name: _DEFAULT.required},
        disabled={**state.disabled, field_name: _DEFAULT.disabled},
        warnings={**state.warnings, field_name: ()},
        errors={**state.errors, field_name: ()},
        classes={**state.classes, field_name: ()},
        options={**state.options, field_name: ()},
    )


def _set(state: RuleState, dimension: str, field_name: str, value: Any) -> RuleState:
    state = _with_field(state, field_name)
    current: Dict[str, Any] = getattr(state, dimension)
    if current[field_name] == value:
        return state
    return replace(state, **{dimension: {**current, field_name: value}})


def _append_unique(state: RuleState, dimension: str, field_name: str, item: Any) -> RuleState:
    state = _with_field(state, field_name)
    existing = getattr(state, dimension)[field_name]
    if item in existing:
        return state
    return _set(state, dimension, field_name, existing + (item,))


# =============================================================================
# Handlers
# =============================================================================


def _initialize(state: RuleState, action: InitializeFields) -> RuleState:
    for name in action.field_names:
        state = _with_field(state, name)
    return state


def _remove_class(state: RuleState, action: RemoveClass) -> RuleState:
    state = _with_field(state, action.field_name)
    existing = state.classes[action.field_name]
    return _set(
        state,
        "classes",
        action.field_name,
        tuple(c for c in existing if c != action.class_name),
    )


_HANDLERS: Dict[type, Callable[[RuleState, Any], RuleState]] = {
    InitializeFields: _initialize,
    SetVisibility: lambda s, a: _set(s, "visibility", a.field_name, a.visible),
    SetRequired: lambda s, a: _set(s, "required", a.field_name, a.required),
    SetDisabled: lambda s, a: _set(s, "disabled", a.field_name, a.disabled),
    AddWarning: lambda s, a: _append_unique(s, "warnings", a.field_name, a.message),
    AddError: lambda s, a: _append_unique(s, "errors", a.field_name, a.message),
    AddClass: lambda s, a: _append_unique(s, "classes", a.field_name, a.class_name),
    RemoveClass: _remove_class,
    SetOptions: lambda s, a: _set(s, "options", a.field_name, a.options),
}


def reduce_rule_state(state: RuleState, action: ReducerAction) -> RuleState:
    """
    Apply one reducer action.

    Args:
        state: Current state (not modified)
        action: Reducer action

    Returns:
        New state (the same object when the action changes nothing)

    Raises:
        TypeError: If the action type is not a reducer action
    """
    handler = _HANDLERS.get(type(action))
    if handler is None:
        raise TypeError(f"Unsupported reducer action: {type(action).__name__}")
    return handler(state, action)


def reduce_all(state: RuleState, actions: Iterable[ReducerAction]) -> RuleState:
    for action in actions:
        state = reduce_rule_state(state, action)
    return state
