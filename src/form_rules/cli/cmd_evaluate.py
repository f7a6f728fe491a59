"""Evaluate command: run one evaluation cycle over form data."""

from pathlib import Path
from typing import List, Optional

import typer

from form_rules.cli._app import app
from form_rules.cli._common import load_mapping, setup_logging
from form_rules.cli._console import (
    console,
    output_field_configs,
    output_json,
    output_table,
    print_err,
    print_warn,
    wants_json,
)
from form_rules.config import load_engine_settings
from form_rules.engine.controller import FormRuleController
from form_rules.errors import MalformedRuleError, SchemaLoadError
from form_rules.forms.binding import InMemoryFormBinding
from form_rules.forms.schema_loader import load_form_schema, load_rule_set
from form_rules.schemas.rule import RuleAction, RuleContext


@app.command("evaluate", help="Evaluate rules against form data and print per-field state.")
def evaluate_cmd(
    ctx: typer.Context,
    rules_path: Path = typer.Argument(..., help="Rules file (JSON or YAML)"),
    schema_path: Path = typer.Option(..., "--schema", "-s", help="Form schema file (JSON or YAML)"),
    data: Optional[str] = typer.Option(None, "--data", "-d", help="Form values: file path or inline JSON object"),
    context: Optional[str] = typer.Option(None, "--context", help="Context (user, permissions, ...): file or inline JSON"),
    config_path: Optional[Path] = typer.Option(None, "--config", help="Engine settings YAML"),
    validate: bool = typer.Option(False, "--validate", help="Also validate the resulting form values"),
    trace: bool = typer.Option(False, "--trace", help="Show per-rule evaluation results"),
):
    """Run one cycle (plus settle passes) with an in-memory form."""
    setup_logging(verbose=ctx.obj["verbose"], quiet=ctx.obj["quiet"])

    try:
        rule_set = load_rule_set(rules_path)
        schema = load_form_schema(schema_path)
        form_values = load_mapping(data, "form data")
        context_data = load_mapping(context, "context")
        settings = load_engine_settings(config_path)
    except MalformedRuleError as e:
        print_err(e.message)
        for problem in e.errors:
            console.print(f"  - {problem}")
        raise SystemExit(1)
    except (SchemaLoadError, ValueError) as e:
        print_err(str(e))
        raise SystemExit(1)

    custom_actions: List[dict] = []

    def record_custom(action: RuleAction, rule_context: RuleContext) -> None:
        custom_actions.append(action.model_dump(mode="json", exclude_none=True))

    binding = InMemoryFormBinding(form_values)
    controller = FormRuleController(
        schema,
        binding,
        rule_set.rules,
        context=context_data,
        custom_action_handler=record_custom,
        settings=settings,
    )

    valid = controller.trigger_validation() if validate else None
    results = controller.last_results
    values = binding.get_values()

    if wants_json(ctx):
        output_json(
            {
                "fields": {name: cfg.model_dump() for name, cfg in controller.field_configs().items()},
                "values": values,
                "validation": {"valid": valid, "errors": binding.get_errors()} if validate else None,
                "custom_actions": custom_actions,
                "results": [r.model_dump(mode="json", include={"rule_id", "condition_met", "skipped", "errors", "execution_time_ms"}) for r in results] if trace else None,
            }
        )
    else:
        output_field_configs(controller.field_configs(), ctx=ctx)

        if values != form_values:
            changed = {k: v for k, v in values.items() if form_values.get(k) != v or k not in form_values}
            console.print(f"Values changed by rules: {changed}")

        if trace:
            output_table(
                [
                    {
                        "rule": r.rule_id or "-",
                        "matched": "skipped" if r.skipped else ("yes" if r.condition_met else "no"),
                        "actions": len(r.actions),
                        "errors": "; ".join(r.errors),
                        "ms": f"{r.execution_time_ms:.3f}",
                    }
                    for r in results
                ],
                ctx=ctx,
                title="Rule results",
            )

        for action in custom_actions:
            console.print(f"Custom action: {action}")

        if validate:
            errors = binding.get_errors()
            for field_name, messages in errors.items():
                print_warn(f"{field_name}: {'; '.join(messages)}")

    failed_rules = [r for r in results if r.errors]
    if failed_rules and not wants_json(ctx):
        print_warn(f"{len(failed_rules)} rule(s) failed during evaluation")

    controller.close()
    if validate and not valid:
        raise SystemExit(1)
