"""
Loading form schemas and rule sets from JSON or YAML files.

Rule files may hold either a bare list of rules or a rule set mapping:

    {"name": "...", "rules": [...], "global": false}
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Union

import yaml

from form_rules.errors import MalformedRuleError, SchemaLoadError
from form_rules.forms.schema import SectionFormSchema
from form_rules.schemas.rule import Rule, RuleSet
from form_rules.validation.rule_linter import validate_rule

logger = logging.getLogger(__name__)

_YAML_SUFFIXES = {".yaml", ".yml"}


def read_document(file_path: Union[str, Path], kind: str = "document") -> Any:
    """
    Read a JSON or YAML file (chosen by suffix).

    Raises:
        SchemaLoadError: If the file is missing or cannot be parsed
    """
    path = Path(file_path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            if path.suffix.lower() in _YAML_SUFFIXES:
                return yaml.safe_load(f)
            return json.load(f)
    except FileNotFoundError:
        raise SchemaLoadError(f"{kind.capitalize()} file not found: {path}")
    except json.JSONDecodeError as e:
        raise SchemaLoadError(f"Invalid JSON in {kind} file {path}: {e}")
    except yaml.YAMLError as e:
        raise SchemaLoadError(f"Invalid YAML in {kind} file {path}: {e}")


def load_form_schema(file_path: Union[str, Path]) -> SectionFormSchema:
    """
    Load a section-based form schema.

    Expected structure:
        {
            "sections": {
                "<section>": {"fields": [{"key": str, "type": str, ...}]}
            }
        }

    Raises:
        SchemaLoadError: If the file cannot be loaded or lacks a 'sections' dictionary
    """
    schema = read_document(file_path, "schema")
    if not isinstance(schema, dict) or "sections" not in schema:
        raise SchemaLoadError("Schema must contain 'sections' key")
    form_schema = SectionFormSchema(schema)
    logger.debug(f"Loaded schema {file_path} with {len(form_schema.field_names())} fields")
    return form_schema


def parse_rule_set(data: Any) -> RuleSet:
    """
    Build a RuleSet from a list of rule mappings or a rule set mapping.

    Every rule is parsed individually so one malformed rule is reported
    with its id; all failures are collected before raising.

    Raises:
        MalformedRuleError: If the container or any rule is malformed
    """
    if isinstance(data, list):
        header: Dict[str, Any] = {}
        raw_rules = data
    elif isinstance(data, dict):
        header = {k: v for k, v in data.items() if k != "rules"}
        raw_rules = data.get("rules")
        if not isinstance(raw_rules, list):
            raise MalformedRuleError("Rule set must contain a 'rules' list")
    else:
        raise MalformedRuleError(
            f"Rule file must hold a list or a mapping, got {type(data).__name__}"
        )

    rules: List[Rule] = []
    problems: List[str] = []
    for raw in raw_rules:
        try:
            rules.append(validate_rule(raw))
        except MalformedRuleError as e:
            problems.append(str(e))

    if problems:
        raise MalformedRuleError(f"{len(problems)} malformed rule(s)", problems)

    return RuleSet.model_validate({**header, "rules": rules})


def load_rule_set(file_path: Union[str, Path]) -> RuleSet:
    """
    Load and parse a rules file.

    Raises:
        SchemaLoadError: If the file cannot be read
        MalformedRuleError: If any rule is structurally invalid
    """
    rule_set = parse_rule_set(read_document(file_path, "rules"))
    logger.debug(f"Loaded {len(rule_set.rules)} rules from {file_path}")
    return rule_set
