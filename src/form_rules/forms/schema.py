"""
Form schema collaborators.

The rule engine needs three things from a schema: the declared field names,
a per-field type, and "validate this value for this field" returning
messages. Two implementations:

- PydanticFormSchema: fields of a pydantic model, validated with a
  TypeAdapter built from each field's annotation and constraints
- SectionFormSchema: the JSON/YAML section format
  {"sections": {"<name>": {"fields": [{"key", "type", "required", "options"}]}}}
"""

import enum
import logging
import types
from abc import ABC, abstractmethod
from datetime import date, datetime
from decimal import Decimal
from typing import Annotated, Any, Dict, Iterable, List, Literal, Mapping, Optional, Type, Union, get_args, get_origin

from pydantic import BaseModel, TypeAdapter, ValidationError

from form_rules.errors import SchemaLoadError
from form_rules.utils.date_parsing import parse_date

logger = logging.getLogger(__name__)

FIELD_TYPES = ("integer", "number", "boolean", "string", "enum", "date", "array", "object")


class FormSchema(ABC):
    """
    Abstract schema collaborator.

    Implementations describe the fields of one form and validate candidate
    values for them.
    """

    @abstractmethod
    def field_names(self) -> List[str]:
        """Declared field names, in declaration order."""
        pass

    @abstractmethod
    def field_type(self, field_name: str) -> Optional[str]:
        """Simple type name for a field (one of FIELD_TYPES), None if undeclared."""
        pass

    @abstractmethod
    def validate_field(self, field_name: str, value: Any) -> List[str]:
        """
        Validate a value for one field.

        Returns:
            Error messages; empty when the value is valid
        """
        pass

    def has_field(self, field_name: str) -> bool:
        return field_name in self.field_names()

    def validate_all(
        self, values: Mapping[str, Any], field_names: Optional[Iterable[str]] = None
    ) -> Dict[str, List[str]]:
        """Validate several fields; only fields with errors appear in the result."""
        names = list(field_names) if field_names is not None else self.field_names()
        errors: Dict[str, List[str]] = {}
        for name in names:
            messages = self.validate_field(name, values.get(name))
            if messages:
                errors[name] = messages
        return errors


# =============================================================================
# Pydantic models
# =============================================================================


def _annotation_type_name(annotation: Any) -> str:
    origin = get_origin(annotation)
    if origin is Annotated:
        return _annotation_type_name(get_args(annotation)[0])
    if origin in (Union, types.UnionType):
        non_null = [arg for arg in get_args(annotation) if arg is not type(None)]
        return _annotation_type_name(non_null[0]) if non_null else "object"
    if origin is Literal:
        return "enum"
    if origin in (list, tuple, set, frozenset):
        return "array"
    if origin is dict:
        return "object"
    if not isinstance(annotation, type):
        return "object"
    if issubclass(annotation, enum.Enum):
        return "enum"
    if issubclass(annotation, bool):
        return "boolean"
    if issubclass(annotation, int):
        return "integer"
    if issubclass(annotation, (float, Decimal)):
        return "number"
    if issubclass(annotation, str):
        return "string"
    if issubclass(annotation, (date, datetime)):
        return "date"
    return "object"


class PydanticFormSchema(FormSchema):
    """Schema backed by a pydantic model class; each model field is a form field."""

    def __init__(self, model: Type[BaseModel]):
        self.model = model
        self._adapters: Dict[str, TypeAdapter] = {}

    def field_names(self) -> List[str]:
        return list(self.model.model_fields)

    def field_type(self, field_name: str) -> Optional[str]:
        info = self.model.model_fields.get(field_name)
        if info is None:
            return None
        return _annotation_type_name(info.annotation)

    def _adapter(self, field_name: str) -> TypeAdapter:
        adapter = self._adapters.get(field_name)
        if adapter is None:
            info = self.model.model_fields[field_name]
            annotation = info.annotation
            if info.metadata:
                annotation = Annotated[(annotation, *info.metadata)]
            adapter = TypeAdapter(annotation)
            self._adapters[field_name] = adapter
        return adapter

    def validate_field(self, field_name: str, value: Any) -> List[str]:
        if field_name not in self.model.model_fields:
            return [f"Unknown field '{field_name}'"]
        try:
            self._adapter(field_name).validate_python(value)
        except ValidationError as e:
            return [err["msg"] for err in e.errors()]
        return []


# =============================================================================
# Section schema
# =============================================================================


def _check_type(value: Any, expected_type: str) -> Optional[str]:
    """Return an error message if value does not match expected_type."""
    type_validators = {
        "integer": lambda v: isinstance(v, int) and not isinstance(v, bool),
        "number": lambda v: isinstance(v, (int, float)) and not isinstance(v, bool),
        "boolean": lambda v: isinstance(v, bool),
        "string": lambda v: isinstance(v, str),
        "array": lambda v: isinstance(v, (list, tuple)),
        "object": lambda v: isinstance(v, Mapping),
        "date": lambda v: parse_date(v) is not None,
    }
    validator = type_validators.get(expected_type)
    if validator is None or validator(value):
        return None
    return f"Expected {expected_type}, got {type(value).__name__} (value: {value!r})"


class SectionFormSchema(FormSchema):
    """
    Schema described by sections of field definitions.

    Example:
        {
            "sections": {
                "personal": {
                    "fields": [
                        {"key": "age", "type": "integer", "required": true},
                        {"key": "status", "type": "enum", "options": ["single", "married"]}
                    ]
                }
            }
        }
    """

    def __init__(self, schema: Mapping[str, Any]):
        self.schema = schema
        self._fields: Dict[str, Dict[str, Any]] = {}

        sections = schema.get("sections")
        if not isinstance(sections, Mapping):
            raise SchemaLoadError("Schema 'sections' must be a dictionary")

        for section_name, section_data in sections.items():
            for field_def in (section_data or {}).get("fields", []):
                key = field_def.get("key")
                if not key:
                    raise SchemaLoadError(f"Field without 'key' in section '{section_name}'")
                field_type = field_def.get("type", "string")
                if field_type not in FIELD_TYPES:
                    raise SchemaLoadError(
                        f"Field '{key}' has unknown type '{field_type}' "
                        f"(must be one of {', '.join(FIELD_TYPES)})"
                    )
                if key in self._fields:
                    logger.warning(f"Field '{key}' declared twice; keeping the last definition")
                self._fields[key] = {**field_def, "section": section_name, "type": field_type}

    def field_names(self) -> List[str]:
        return list(self._fields)

    def field_type(self, field_name: str) -> Optional[str]:
        field_def = self._fields.get(field_name)
        return field_def["type"] if field_def else None

    def field_definition(self, field_name: str) -> Optional[Dict[str, Any]]:
        return self._fields.get(field_name)

    def required_fields(self) -> List[str]:
        return [key for key, field_def in self._fields.items() if field_def.get("required")]

    def validate_field(self, field_name: str, value: Any) -> List[str]:
        field_def = self._fields.get(field_name)
        if field_def is None:
            return [f"Unknown field '{field_name}'"]

        if value is None:
            # None means "not filled"
            return ["Field is required"] if field_def.get("required") else []

        field_type = field_def["type"]
        if field_type == "enum":
            options = [str(opt) for opt in field_def.get("options", [])]
            if not isinstance(value, str):
                return [f"Enum value must be a string, got {type(value).__name__}"]
            if value not in options:
                return [f"Value '{value}' not in allowed options: {', '.join(options)}"]
            return []

        message = _check_type(value, field_type)
        return [message] if message else []
