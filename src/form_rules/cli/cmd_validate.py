"""Validate command: parse and lint a rules file."""

from pathlib import Path
from typing import Optional

import typer

from form_rules.cli._app import app
from form_rules.cli._common import setup_logging
from form_rules.cli._console import console, output_lint_report, print_err, print_ok, wants_json
from form_rules.errors import MalformedRuleError, SchemaLoadError
from form_rules.forms.schema_loader import load_form_schema, load_rule_set
from form_rules.validation.rule_linter import lint_rules


@app.command("validate", help="Parse and lint a rules file (JSON or YAML).")
def validate_cmd(
    ctx: typer.Context,
    rules_path: Path = typer.Argument(..., help="Rules file: a list of rules or a rule set"),
    schema_path: Optional[Path] = typer.Option(None, "--schema", "-s", help="Form schema to check field names against"),
    strict: bool = typer.Option(False, "--strict", help="Fail on warnings as well as critical violations"),
):
    """Exit code 1 when the file is malformed or lint finds critical issues."""
    setup_logging(verbose=ctx.obj["verbose"], quiet=ctx.obj["quiet"])

    try:
        rule_set = load_rule_set(rules_path)
        schema = load_form_schema(schema_path) if schema_path else None
    except MalformedRuleError as e:
        print_err(e.message)
        for problem in e.errors:
            console.print(f"  - {problem}")
        raise SystemExit(1)
    except SchemaLoadError as e:
        print_err(str(e))
        raise SystemExit(1)

    report = lint_rules(rule_set.rules, schema)
    output_lint_report(report, ctx=ctx)

    failed = report.has_critical or (strict and report.summary["warnings"] > 0)
    if failed:
        if not wants_json(ctx):
            print_err(f"{rules_path} has rule violations")
        raise SystemExit(1)

    if not ctx.obj["quiet"] and not wants_json(ctx):
        print_ok(f"{rules_path}: {len(rule_set.rules)} rules OK")
