"""Unit tests for schema collaborators, bindings and file loaders."""

import json
from datetime import date
from enum import Enum
from typing import Dict, List, Optional

import pytest
import yaml
from pydantic import BaseModel, Field

from form_rules.errors import MalformedRuleError, SchemaLoadError
from form_rules.forms.binding import InMemoryFormBinding
from form_rules.forms.schema import PydanticFormSchema, SectionFormSchema
from form_rules.forms.schema_loader import (
    load_form_schema,
    load_rule_set,
    parse_rule_set,
    read_document,
)


class Color(str, Enum):
    RED = "red"
    BLUE = "blue"


class TypedForm(BaseModel):
    count: int
    ratio: Optional[float] = None
    flag: bool = False
    name: str = Field(default="", max_length=5)
    color: Optional[Color] = None
    born: Optional[date] = None
    tags: List[str] = Field(default_factory=list)
    extra: Dict[str, int] = Field(default_factory=dict)


# =============================================================================
# PydanticFormSchema
# =============================================================================


class TestPydanticFormSchema:
    def test_field_names_in_declaration_order(self):
        schema = PydanticFormSchema(TypedForm)
        assert schema.field_names() == ["count", "ratio", "flag", "name", "color", "born", "tags", "extra"]

    def test_field_types(self):
        schema = PydanticFormSchema(TypedForm)
        assert schema.field_type("count") == "integer"
        assert schema.field_type("ratio") == "number"
        assert schema.field_type("flag") == "boolean"
        assert schema.field_type("name") == "string"
        assert schema.field_type("color") == "enum"
        assert schema.field_type("born") == "date"
        assert schema.field_type("tags") == "array"
        assert schema.field_type("extra") == "object"
        assert schema.field_type("missing") is None

    def test_validate_field_uses_constraints(self):
        """Field constraints (max_length) are part of validation."""
        schema = PydanticFormSchema(TypedForm)
        assert schema.validate_field("name", "abc") == []
        assert schema.validate_field("name", "abcdefgh") != []

    def test_validate_field_type_errors(self):
        schema = PydanticFormSchema(TypedForm)
        assert schema.validate_field("count", 3) == []
        assert schema.validate_field("count", "many") != []
        assert schema.validate_field("color", "green") != []

    def test_unknown_field(self):
        assert PydanticFormSchema(TypedForm).validate_field("nope", 1) == ["Unknown field 'nope'"]

    def test_validate_all(self):
        schema = PydanticFormSchema(TypedForm)
        errors = schema.validate_all({"count": "x", "name": "ok"})
        assert set(errors) == {"count"}


# =============================================================================
# SectionFormSchema
# =============================================================================


class TestSectionFormSchema:
    def test_fields_and_types(self, section_schema):
        assert section_schema.field_names() == [
            "maritalStatus", "spouseName", "age", "salary", "isAdmin", "startDate",
        ]
        assert section_schema.field_type("salary") == "number"
        assert section_schema.required_fields() == ["age"]
        assert section_schema.field_definition("age")["section"] == "personal"

    def test_required_field_none(self, section_schema):
        assert section_schema.validate_field("age", None) == ["Field is required"]
        assert section_schema.validate_field("spouseName", None) == []

    def test_type_checks(self, section_schema):
        assert section_schema.validate_field("age", 4) == []
        assert section_schema.validate_field("age", True) != []
        assert section_schema.validate_field("salary", 1.5) == []
        assert section_schema.validate_field("isAdmin", "yes") != []
        assert section_schema.validate_field("startDate", "23.01.2026") == []
        assert section_schema.validate_field("startDate", "someday") != []

    def test_enum_options(self, section_schema):
        assert section_schema.validate_field("maritalStatus", "married") == []
        messages = section_schema.validate_field("maritalStatus", "widowed")
        assert messages == ["Value 'widowed' not in allowed options: single, married, divorced"]
        assert section_schema.validate_field("maritalStatus", 3) == ["Enum value must be a string, got int"]

    def test_unknown_type_rejected(self):
        with pytest.raises(SchemaLoadError):
            SectionFormSchema({"sections": {"s": {"fields": [{"key": "a", "type": "money"}]}}})

    def test_missing_key_rejected(self):
        with pytest.raises(SchemaLoadError):
            SectionFormSchema({"sections": {"s": {"fields": [{"type": "string"}]}}})

    def test_sections_must_be_mapping(self):
        with pytest.raises(SchemaLoadError):
            SectionFormSchema({"sections": []})


# =============================================================================
# InMemoryFormBinding
# =============================================================================


class TestInMemoryFormBinding:
    def test_notifies_on_change_only(self):
        binding = InMemoryFormBinding({"a": 1})
        events = []
        binding.subscribe(lambda name, value: events.append((name, value)))
        binding.set_value("a", 1)
        binding.set_value("a", 2)
        binding.set_value("b", None)
        assert events == [("a", 2), ("b", None)]

    def test_batch_update_single_notification(self):
        binding = InMemoryFormBinding({"a": 1})
        events = []
        binding.subscribe(lambda name, value: events.append(name))
        binding.set_values({"a": 1, "b": 2, "c": 3})
        binding.set_values({"a": 1})
        assert events == [None]
        assert binding.get_values() == {"a": 1, "b": 2, "c": 3}

    def test_unsubscribe(self):
        binding = InMemoryFormBinding()
        events = []
        unsubscribe = binding.subscribe(lambda name, value: events.append(name))
        unsubscribe()
        unsubscribe()
        binding.set_value("a", 1)
        assert events == []

    def test_errors(self):
        binding = InMemoryFormBinding()
        binding.set_errors("a", ["bad"])
        binding.set_errors("b", ["worse"])
        binding.set_errors("b", [])
        assert binding.get_errors() == {"a": ["bad"]}
        binding.clear_error("a")
        binding.clear_error("never")
        assert binding.get_errors() == {}

    def test_values_snapshot_is_a_copy(self):
        binding = InMemoryFormBinding({"a": 1})
        snapshot = binding.get_values()
        snapshot["a"] = 99
        assert binding.get_value("a") == 1


# =============================================================================
# Loaders
# =============================================================================


class TestReadDocument:
    def test_json_and_yaml(self, tmp_path):
        (tmp_path / "a.json").write_text(json.dumps({"x": 1}), encoding="utf-8")
        (tmp_path / "b.yml").write_text("x: 2\n", encoding="utf-8")
        assert read_document(tmp_path / "a.json") == {"x": 1}
        assert read_document(tmp_path / "b.yml") == {"x": 2}

    def test_missing_file(self, tmp_path):
        with pytest.raises(SchemaLoadError, match="not found"):
            read_document(tmp_path / "nope.json", "rules")

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text("{nope", encoding="utf-8")
        with pytest.raises(SchemaLoadError, match="Invalid JSON"):
            read_document(path)

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("a: [unclosed", encoding="utf-8")
        with pytest.raises(SchemaLoadError, match="Invalid YAML"):
            read_document(path)


class TestLoadFormSchema:
    def test_load(self, schema_file):
        schema = load_form_schema(schema_file)
        assert "salary" in schema.field_names()

    def test_missing_sections(self, tmp_path):
        path = tmp_path / "schema.json"
        path.write_text(json.dumps({"fields": []}), encoding="utf-8")
        with pytest.raises(SchemaLoadError, match="sections"):
            load_form_schema(path)


class TestRuleSets:
    def test_load_rule_set_yaml(self, rules_file):
        rule_set = load_rule_set(rules_file)
        assert rule_set.name == "employment"
        assert [r.id for r in rule_set.rules] == ["show_spouse", "hide_spouse", "admin_salary"]

    def test_bare_list(self, sample_rules):
        rule_set = parse_rule_set(sample_rules)
        assert rule_set.name is None
        assert len(rule_set.rules) == 3

    def test_rule_without_actions_rejected(self, tmp_path):
        """Every malformed rule is reported, not only the first one."""
        path = tmp_path / "rules.yaml"
        path.write_text(
            yaml.safe_dump(
                [
                    {"id": "no_actions", "condition": {"field": "a", "operator": "is_empty"}},
                    {"id": "bad_action", "condition": {"field": "a", "operator": "is_empty"}, "actions": [{"type": "zap"}]},
                ]
            ),
            encoding="utf-8",
        )
        with pytest.raises(MalformedRuleError) as exc_info:
            load_rule_set(path)
        assert exc_info.value.message == "2 malformed rule(s)"
        assert "no_actions" in exc_info.value.errors[0]
        assert "bad_action" in exc_info.value.errors[1]

    def test_rule_set_without_rules_list(self):
        with pytest.raises(MalformedRuleError):
            parse_rule_set({"name": "x"})

    def test_scalar_document_rejected(self):
        with pytest.raises(MalformedRuleError):
            parse_rule_set("rules")
