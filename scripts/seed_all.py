"""Populate the library database, then verify it."""

from __future__ import annotations

import subprocess
import sys
from pathlib import Path

import click
from rich.console import Console

console = Console()

PROJECT_ROOT = Path(__file__).parent.parent


def run_step(module: str, args: list[str]) -> int:
    """Run a script module with the current interpreter from the project root."""
    result = subprocess.run(
        [sys.executable, "-m", module, *args],
        cwd=PROJECT_ROOT,
        capture_output=False,
    )
    return result.returncode


@click.command()
@click.option(
    "--env-file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Env file forwarded to both steps",
)
@click.option("--skip-populate", is_flag=True, help="Skip database population")
@click.option("--skip-verify", is_flag=True, help="Skip database verification")
def main(env_file: Path | None, skip_populate: bool, skip_verify: bool) -> None:
    """Orchestrate population and verification."""
    console.print("[bold blue]Starting full database seed...[/bold blue]")
    console.print()

    args = ["--env-file", str(env_file.resolve())] if env_file else []

    if not skip_populate:
        console.print("[bold cyan]Step 1/2: Populating...[/bold cyan]")
        if run_step("scripts.populate_database", args) != 0:
            console.print("[bold red]Population failed![/bold red]")
            sys.exit(1)
        console.print()

    if not skip_verify:
        console.print("[bold cyan]Step 2/2: Verifying...[/bold cyan]")
        if run_step("scripts.verify_database", args) != 0:
            console.print("[bold red]Verification failed![/bold red]")
            sys.exit(1)
        console.print()

    console.print("[bold green]✓ Full database seed complete![/bold green]")


if __name__ == "__main__":
    main()
