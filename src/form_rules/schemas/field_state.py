"""Per-field UI directives derived by the rule engine."""

from typing import Any, List

from pydantic import BaseModel, ConfigDict, Field


class FieldConfig(BaseModel):
    """
    Derived configuration for one field, consumed by the presentation layer.

    Attributes:
        visible: Whether the field is rendered
        required: Whether the field must be filled
        disabled: Whether the field is read-only
        warnings: Non-blocking messages attached by rules
        errors: Blocking messages attached by rules
        classes: Class tokens added by rules
        options: Dynamic option list for choice fields
    """

    model_config = ConfigDict(frozen=True)

    visible: bool = True
    required: bool = False
    disabled: bool = False
    warnings: List[str] = Field(default_factory=list)
    errors: List[str] = Field(default_factory=list)
    classes: List[str] = Field(default_factory=list)
    options: List[Any] = Field(default_factory=list)
