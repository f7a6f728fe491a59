"""Schema and form-binding collaborators, plus file loaders."""

from form_rules.forms.schema import (
    FIELD_TYPES,
    FormSchema,
    PydanticFormSchema,
    SectionFormSchema,
)
from form_rules.forms.binding import FormBinding, InMemoryFormBinding
from form_rules.forms.schema_loader import (
    load_form_schema,
    load_rule_set,
    parse_rule_set,
)

__all__ = [
    "FIELD_TYPES",
    "FormBinding",
    "FormSchema",
    "InMemoryFormBinding",
    "PydanticFormSchema",
    "SectionFormSchema",
    "load_form_schema",
    "load_rule_set",
    "parse_rule_set",
]
