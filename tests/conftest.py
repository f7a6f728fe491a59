"""
Pytest fixtures and configuration for form rule tests.
Provides shared schemas, bindings and rule definitions.
"""

import json
from typing import Literal, Optional

import pytest
import yaml
from pydantic import BaseModel, Field

from form_rules.forms.binding import InMemoryFormBinding
from form_rules.forms.schema import PydanticFormSchema, SectionFormSchema
from form_rules.schemas.rule import RuleContext


class ProfileForm(BaseModel):
    """Form model used by controller tests."""

    maritalStatus: Optional[Literal["single", "married", "divorced"]] = None
    spouseName: Optional[str] = None
    age: Optional[int] = Field(default=None, ge=0, le=150)
    email: Optional[str] = Field(default=None, pattern=r"^[^@\s]+@[^@\s]+\.[a-z]+$")
    country: Optional[str] = None
    city: Optional[str] = None
    newsletter: Optional[bool] = None


SECTION_SCHEMA = {
    "sections": {
        "personal": {
            "fields": [
                {"key": "maritalStatus", "type": "enum", "options": ["single", "married", "divorced"]},
                {"key": "spouseName", "type": "string"},
                {"key": "age", "type": "integer", "required": True},
            ]
        },
        "employment": {
            "fields": [
                {"key": "salary", "type": "number"},
                {"key": "isAdmin", "type": "boolean"},
                {"key": "startDate", "type": "date"},
            ]
        },
    }
}

SAMPLE_RULES = [
    {
        "id": "show_spouse",
        "condition": {"field": "maritalStatus", "operator": "equals", "value": "married"},
        "actions": [{"type": "show", "target": "spouseName"}],
    },
    {
        "id": "hide_spouse",
        "condition": {"field": "maritalStatus", "operator": "equals", "value": "single"},
        "actions": [{"type": "hide", "target": "spouseName"}],
    },
    {
        "id": "admin_salary",
        "condition": {
            "operator": "and",
            "conditions": [
                {"field": "salary", "operator": "greater_than", "value": 100000},
                {"field": "isAdmin", "operator": "equals", "value": True},
            ],
        },
        "actions": [
            {"type": "show_warning", "target": "salary", "params": {"message": "High salary"}},
            {"type": "add_class", "target": "salary", "params": {"class": "highlight"}},
        ],
    },
]


@pytest.fixture
def profile_schema():
    """Pydantic-backed schema for the profile form."""
    return PydanticFormSchema(ProfileForm)


@pytest.fixture
def section_schema_dict():
    """Raw section schema mapping (copied per test)."""
    return json.loads(json.dumps(SECTION_SCHEMA))


@pytest.fixture
def section_schema(section_schema_dict):
    """SectionFormSchema built from the sample sections."""
    return SectionFormSchema(section_schema_dict)


@pytest.fixture
def binding():
    """Empty in-memory form binding."""
    return InMemoryFormBinding()


@pytest.fixture
def sample_rules():
    """Raw rule mappings as authored in a rules file."""
    return json.loads(json.dumps(SAMPLE_RULES))


@pytest.fixture
def make_context():
    """Factory for evaluation contexts."""

    def _make(form_data=None, **extra):
        return RuleContext(form_data=form_data or {}, **extra)

    return _make


@pytest.fixture
def rules_file(tmp_path, sample_rules):
    """Sample rules written as a YAML rule set."""
    path = tmp_path / "rules.yaml"
    path.write_text(
        yaml.safe_dump({"name": "employment", "rules": sample_rules}, sort_keys=False),
        encoding="utf-8",
    )
    return path


@pytest.fixture
def schema_file(tmp_path, section_schema_dict):
    """Sample section schema written as JSON."""
    path = tmp_path / "schema.json"
    path.write_text(json.dumps(section_schema_dict), encoding="utf-8")
    return path
