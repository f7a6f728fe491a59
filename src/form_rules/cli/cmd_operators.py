"""Operators command: list the comparison operator vocabulary."""

from typing import Optional

import typer

from form_rules.cli._app import app
from form_rules.cli._console import output_table, print_err
from form_rules.schemas.operators import (
    CATEGORY_LABELS,
    CATEGORY_ORDER,
    OPERATOR_REGISTRY,
    OperatorCategory,
    get_operators_for_field_type,
)


@app.command("operators", help="List comparison operators, optionally for one field type.")
def operators_cmd(
    ctx: typer.Context,
    field_type: Optional[str] = typer.Option(None, "--field-type", "-t", help="string, number, boolean, date or array"),
    category: Optional[str] = typer.Option(None, "--category", "-c", help="basic, text, format, date or advanced"),
):
    """Print operator name, label, category and value expectations."""
    if field_type:
        specs = get_operators_for_field_type(field_type)
    else:
        specs = sorted(OPERATOR_REGISTRY.values(), key=lambda s: CATEGORY_ORDER[s.category])

    if category:
        valid = {c.value for c in OperatorCategory}
        if category not in valid:
            print_err(f"Unknown category '{category}'. Valid categories: {', '.join(sorted(valid))}")
            raise SystemExit(1)
        specs = [s for s in specs if s.category.value == category]

    rows = []
    for spec in specs:
        if spec.expects_range:
            value = "[min, max]"
        elif spec.expects_array:
            value = "list"
        elif spec.requires_value:
            value = "value"
        else:
            value = "-"
        rows.append(
            {
                "name": spec.name,
                "label": spec.label,
                "category": spec.category.value,
                "group": CATEGORY_LABELS[spec.category],
                "types": ", ".join(sorted(spec.supported_types)),
                "value": value,
            }
        )

    output_table(rows, ctx=ctx, title="Operators")
