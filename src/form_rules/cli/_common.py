"""Shared CLI helpers: logging setup and input loading."""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional

from rich.logging import RichHandler

from form_rules.cli._console import console
from form_rules.errors import SchemaLoadError
from form_rules.forms.schema_loader import read_document

logger = logging.getLogger(__name__)


def setup_logging(*, verbose: bool = False, quiet: bool = False) -> None:
    """Configure logging with Rich handler."""
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.WARNING
    else:
        level = logging.INFO

    handler = RichHandler(
        console=console,
        show_time=True,
        show_path=False,
        markup=False,
        rich_tracebacks=True,
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)


def load_mapping(source: Optional[str], what: str) -> Dict[str, Any]:
    """
    Load a mapping from a JSON/YAML file path or an inline JSON string.

    Args:
        source: File path, inline JSON object, or None
        what: Name used in error messages ("form data", "context")

    Returns:
        The mapping ({} when source is None)

    Raises:
        SchemaLoadError: If the input cannot be read or is not a mapping
    """
    if source is None:
        return {}

    stripped = source.strip()
    if stripped.startswith("{"):
        try:
            data = json.loads(stripped)
        except json.JSONDecodeError as e:
            raise SchemaLoadError(f"Invalid inline JSON for {what}: {e}")
    else:
        data = read_document(Path(source), what)

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise SchemaLoadError(f"{what.capitalize()} must be a mapping, got {type(data).__name__}")
    return data
