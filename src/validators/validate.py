"""JSON schema validation for seed dataset files."""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any

import click
from jsonschema import Draft7Validator, SchemaError
from rich.console import Console

console = Console()

DEFAULT_DATASET_PATH = Path(__file__).parent.parent.parent / "data" / "library_seed.json"
DEFAULT_SCHEMA_PATH = Path(__file__).parent.parent.parent / "schemas" / "library_seed.schema.json"


def load_schema(schema_path: Path) -> dict[str, Any]:
    """Load a JSON schema from file."""
    with open(schema_path, encoding="utf-8") as f:
        return json.load(f)


def validate_data(data: Any, schema: dict[str, Any]) -> list[str]:
    """Validate already-parsed data against a schema.

    Returns:
        List of validation errors (empty if valid), one per violation,
        prefixed with the JSON path of the offending value.
    """
    try:
        Draft7Validator.check_schema(schema)
    except SchemaError as e:
        return [f"Invalid schema: {e.message}"]

    validator = Draft7Validator(schema)
    errors: list[str] = []
    for error in sorted(validator.iter_errors(data), key=lambda e: [str(p) for p in e.path]):
        location = "/".join(str(p) for p in error.path) or "<root>"
        errors.append(f"Schema validation error at {location}: {error.message}")
    return errors


def validate_file(file_path: Path, schema: dict[str, Any]) -> list[str]:
    """Validate a JSON file against a schema.

    Returns:
        List of validation errors (empty if valid)
    """
    try:
        with open(file_path, encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        return [f"Invalid JSON: {e}"]

    return validate_data(data, schema)


@click.command()
@click.argument(
    "file_path",
    type=click.Path(exists=True, path_type=Path),
    default=DEFAULT_DATASET_PATH,
)
@click.option(
    "--schema",
    type=click.Path(exists=True, path_type=Path),
    default=DEFAULT_SCHEMA_PATH,
    help="Path to JSON schema",
)
def main(file_path: Path, schema: Path) -> None:
    """Validate a seed dataset file against its JSON schema."""
    console.print(f"[bold blue]Validating {file_path}...[/bold blue]")

    errors = validate_file(file_path, load_schema(schema))
    if errors:
        console.print("[red]✗ Validation failed[/red]")
        for error in errors:
            console.print(f"    {error}")
        sys.exit(1)

    console.print("[green]✓ Valid[/green]")


if __name__ == "__main__":
    main()
