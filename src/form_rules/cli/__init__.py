"""CLI package: Typer-based command-line interface.

Usage:
    form-rules --help
    python -m form_rules.cli validate rules.yaml --schema form.json
"""

from form_rules.cli._app import app

# Register command modules (side-effect imports)
import form_rules.cli.cmd_validate  # noqa: F401
import form_rules.cli.cmd_evaluate  # noqa: F401
import form_rules.cli.cmd_operators  # noqa: F401

__all__ = ["app"]
